import asyncio
from datetime import date

import pytest

from parentplanner.core.errors import InvalidTransitionError, NotFoundError
from parentplanner.models.activity import Activity
from parentplanner.models.user import User
from parentplanner.services.activities import (
    create_activity,
    delete_activity,
    express_interest,
    filter_activities_on,
    format_date_for_display,
    get_activity_by_id,
    get_user_activities,
    get_user_and_friends_activities,
    group_activities_by_date,
    is_date_in_past,
    join_activity,
    leave_activity,
    sort_by_date_desc,
    update_activity,
)
from parentplanner.services.users import create_user

pytestmark = pytest.mark.anyio


async def _user(store, uid: str, friends=()) -> User:
    return await create_user(
        store,
        User(id=uid, email=f"{uid}@example.com", child_nickname=uid.upper(), friends=list(friends)),
    )


async def _activity(store, creator: str, day: str, name: str = "Park") -> Activity:
    return await create_activity(
        store,
        created_by=creator,
        name=name,
        date=day,
        time="10:00",
        location="Central Park",
    )


def _a(aid: str, day: str) -> Activity:
    return Activity(id=aid, created_by="u1", name=aid, date=day, time="", location="")


# --- date helpers ---


def test_sort_by_date_desc_is_stable_and_puts_unreadable_last():
    items = [_a("a", "2024-05-01"), _a("b", "soon"), _a("c", "2024-05-03"), _a("d", "2024-05-01")]

    assert [a.id for a in sort_by_date_desc(items)] == ["c", "a", "d", "b"]


def test_group_and_filter_by_date():
    items = [_a("a", "2024-05-03"), _a("b", "2024-05-01"), _a("c", "2024-05-03")]

    groups = group_activities_by_date(items)
    assert list(groups) == ["2024-05-03", "2024-05-01"]
    assert [a.id for a in groups["2024-05-03"]] == ["a", "c"]

    assert [a.id for a in filter_activities_on(items, date(2024, 5, 1))] == ["b"]


def test_is_date_in_past():
    today = date(2024, 5, 2)
    assert is_date_in_past("2024-05-01", today=today)
    assert not is_date_in_past("2024-05-02", today=today)
    assert not is_date_in_past("2024-05-03", today=today)
    assert not is_date_in_past("not a date", today=today)


def test_format_date_for_display():
    assert format_date_for_display("2024-05-01") == "Wed, May 1, 2024"
    assert format_date_for_display("whenever") == "whenever"


# --- registry ---


async def test_create_activity_makes_creator_a_participant(store):
    activity = await _activity(store, "u1", "2024-05-01")

    assert activity.id.endswith("-u1")
    assert activity.created_by == "u1"
    assert activity.participants == ["u1"]
    assert activity.interested_users == []

    stored = await get_activity_by_id(store, activity.id)
    assert stored == activity


async def test_get_activity_by_id_normalizes_missing_fields(store):
    await store.create("activities", {"id": "a1", "createdBy": "u1", "participants": None})

    activity = await get_activity_by_id(store, "a1")

    assert activity.name == ""
    assert activity.participants == []
    assert activity.interested_users == []


async def test_get_missing_activity_raises(store):
    with pytest.raises(NotFoundError):
        await get_activity_by_id(store, "nope")


async def test_update_and_delete_activity(store):
    activity = await _activity(store, "u1", "2024-05-01")

    updated = await update_activity(store, activity.model_copy(update={"location": "Library"}))
    assert updated.location == "Library"

    await delete_activity(store, activity.id)
    with pytest.raises(NotFoundError):
        await get_activity_by_id(store, activity.id)


async def test_get_user_activities_newest_first(store):
    await _activity(store, "u1", "2024-05-01", "first")
    await _activity(store, "u1", "2024-05-03", "third")
    await _activity(store, "u2", "2024-05-02", "other")

    activities = await get_user_activities(store, "u1")

    assert [a.name for a in activities] == ["third", "first"]


async def test_feed_merges_own_and_friend_activities(store):
    await _user(store, "u1", friends=["u2"])
    await _user(store, "u2", friends=["u1"])
    await _user(store, "u3")
    await _activity(store, "u1", "2024-05-01", "A")
    await _activity(store, "u2", "2024-05-03", "B")
    await _activity(store, "u3", "2024-05-02", "stranger")

    lookup = await get_user_and_friends_activities(store, "u1")

    assert lookup.ok
    assert [a.name for a in lookup.value] == ["B", "A"]


async def test_feed_for_user_without_friends(store):
    await _user(store, "u1")
    await _activity(store, "u1", "2024-05-01", "A")

    lookup = await get_user_and_friends_activities(store, "u1")

    assert [a.name for a in lookup.value] == ["A"]


async def test_feed_ignores_duplicate_and_missing_friends(store):
    await _user(store, "u1", friends=["u2", "u2", "ghost"])
    await _user(store, "u2")
    await _activity(store, "u2", "2024-05-03", "B")

    lookup = await get_user_and_friends_activities(store, "u1")

    assert lookup.ok
    assert [a.name for a in lookup.value] == ["B"]


async def test_feed_failure_is_reported_as_degraded(store, monkeypatch):
    await _user(store, "u1")

    async def broken_query(*args, **kwargs):
        raise RuntimeError("backend down")

    monkeypatch.setattr(store, "query", broken_query)

    lookup = await get_user_and_friends_activities(store, "u1")

    assert lookup.value == []
    assert not lookup.ok
    assert isinstance(lookup.error, RuntimeError)


# --- membership ---


async def test_express_interest_is_idempotent(store):
    activity = await _activity(store, "u1", "2024-05-01")

    await express_interest(store, activity.id, "u2")
    again = await express_interest(store, activity.id, "u2")

    assert again.interested_users == ["u2"]


async def test_express_interest_is_noop_for_participants(store):
    activity = await _activity(store, "u1", "2024-05-01")

    result = await express_interest(store, activity.id, "u1")

    assert result.interested_users == []


async def test_join_replaces_interest(store):
    activity = await _activity(store, "u1", "2024-05-01")
    await express_interest(store, activity.id, "u2")

    joined = await join_activity(store, activity.id, "u2")

    assert joined.participants == ["u1", "u2"]
    assert joined.interested_users == []


async def test_join_twice_keeps_single_membership(store):
    activity = await _activity(store, "u1", "2024-05-01")

    await join_activity(store, activity.id, "u2")
    joined = await join_activity(store, activity.id, "u2")

    assert joined.participants == ["u1", "u2"]


async def test_leave_removes_participant(store):
    activity = await _activity(store, "u1", "2024-05-01")
    await join_activity(store, activity.id, "u2")

    left = await leave_activity(store, activity.id, "u2")
    assert left.participants == ["u1"]

    again = await leave_activity(store, activity.id, "u2")
    assert again.participants == ["u1"]


async def test_creator_cannot_leave(store):
    activity = await _activity(store, "u1", "2024-05-01")

    with pytest.raises(InvalidTransitionError) as excinfo:
        await leave_activity(store, activity.id, "u1")

    assert str(excinfo.value) == "creator_cannot_leave"
    assert (await get_activity_by_id(store, activity.id)).participants == ["u1"]


async def test_membership_on_missing_activity_raises(store):
    with pytest.raises(NotFoundError):
        await join_activity(store, "nope", "u1")
    with pytest.raises(NotFoundError):
        await express_interest(store, "nope", "u1")
    with pytest.raises(NotFoundError):
        await leave_activity(store, "nope", "u1")


async def test_concurrent_joins_are_all_recorded(store):
    activity = await _activity(store, "u1", "2024-05-01")

    await asyncio.gather(*(join_activity(store, activity.id, f"u{i}") for i in range(2, 8)))

    participants = (await get_activity_by_id(store, activity.id)).participants
    assert participants[0] == "u1"
    assert sorted(participants[1:]) == [f"u{i}" for i in range(2, 8)]
