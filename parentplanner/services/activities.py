from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from parentplanner.core.errors import InvalidTransitionError
from parentplanner.models.activity import Activity
from parentplanner.services.results import Lookup
from parentplanner.services.users import get_user_friends
from parentplanner.stores.base import Collections, DocumentStore, FieldFilter, OrderBy, now_millis

logger = logging.getLogger(__name__)

_NEWEST_FIRST = [OrderBy("date", descending=True)]


def parse_activity_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        return None


def sort_by_date_desc(activities: Iterable[Activity]) -> list[Activity]:
    # Stable; activities with an unreadable date go last.
    dated: list[tuple[date, Activity]] = []
    undated: list[Activity] = []
    for activity in activities:
        parsed = parse_activity_date(activity.date)
        if parsed is None:
            undated.append(activity)
        else:
            dated.append((parsed, activity))

    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [a for _, a in dated] + undated


def group_activities_by_date(activities: Iterable[Activity]) -> dict[str, list[Activity]]:
    groups: dict[str, list[Activity]] = {}
    for activity in activities:
        groups.setdefault(activity.date, []).append(activity)
    return groups


def filter_activities_on(activities: Iterable[Activity], day: date) -> list[Activity]:
    wanted = day.isoformat()
    return [a for a in activities if a.date == wanted]


def is_date_in_past(value: str, *, today: date | None = None) -> bool:
    parsed = parse_activity_date(value)
    if parsed is None:
        return False
    return parsed < (today or date.today())


def format_date_for_display(value: str) -> str:
    """``"2024-05-01"`` -> ``"Wed, May 1, 2024"``; unreadable dates are returned as given."""
    parsed = parse_activity_date(value)
    if parsed is None:
        return value
    return f"{parsed:%a}, {parsed:%b} {parsed.day}, {parsed.year}"


async def create_activity(
    store: DocumentStore,
    *,
    created_by: str,
    name: str,
    date: str,
    time: str,
    location: str,
) -> Activity:
    activity = Activity(
        id=f"{now_millis()}-{created_by}",
        created_by=created_by,
        name=name,
        date=date,
        time=time,
        location=location,
        participants=[created_by],  # creator is automatically a participant
        interested_users=[],
    )
    record = await store.create(Collections.ACTIVITIES, activity.to_document())
    return Activity.model_validate(record)


async def get_activity_by_id(store: DocumentStore, activity_id: str) -> Activity:
    record = await store.get(Collections.ACTIVITIES, activity_id)
    # Partially written documents come back with defaults rather than failing.
    return Activity.model_validate({**record, "id": record.get("id") or activity_id})


async def update_activity(store: DocumentStore, activity: Activity) -> Activity:
    record = await store.update(Collections.ACTIVITIES, activity.id, activity.to_document())
    return Activity.model_validate(record)


async def delete_activity(store: DocumentStore, activity_id: str) -> None:
    await store.delete(Collections.ACTIVITIES, activity_id)


async def get_user_activities(store: DocumentStore, user_id: str) -> list[Activity]:
    records = await store.query(
        Collections.ACTIVITIES,
        [FieldFilter("createdBy", user_id)],
        _NEWEST_FIRST,
    )
    return [Activity.model_validate(r) for r in records]


def _unique_ids(ids: Iterable[str]) -> list[str]:
    out: list[str] = []
    seen: set[str] = set()
    for uid in ids:
        if not uid or uid in seen:
            continue
        seen.add(uid)
        out.append(uid)
    return out


async def get_user_and_friends_activities(store: DocumentStore, user_id: str) -> Lookup[list[Activity]]:
    """Activities created by the user or any of their friends, newest date first.

    Any failure is logged and reported as an empty list with the error
    attached; callers decide whether to show that as "no activities".
    """
    try:
        friends = await get_user_friends(store, user_id)
        all_ids = _unique_ids([user_id, *(f.id for f in friends)])

        if not all_ids:
            logger.warning("No valid user IDs for activity query")
            return Lookup([])

        if len(all_ids) == 1:
            return Lookup(await get_user_activities(store, all_ids[0]))

        # The store has no OR/IN over createdBy: one query per creator, merged here.
        by_id: dict[str, Activity] = {}
        for uid in all_ids:
            for activity in await get_user_activities(store, uid):
                by_id.setdefault(activity.id, activity)

        return Lookup(sort_by_date_desc(by_id.values()))
    except Exception as e:
        logger.exception("Error in get_user_and_friends_activities for %s", user_id)
        return Lookup([], error=e)


async def express_interest(store: DocumentStore, activity_id: str, user_id: str) -> Activity:
    activity = await get_activity_by_id(store, activity_id)

    if user_id in activity.interested_users or user_id in activity.participants:
        return activity

    record = await store.modify_arrays(
        Collections.ACTIVITIES,
        activity_id,
        add={"interestedUsers": [user_id]},
    )
    return Activity.model_validate(record)


async def join_activity(store: DocumentStore, activity_id: str, user_id: str) -> Activity:
    activity = await get_activity_by_id(store, activity_id)

    if user_id in activity.participants and user_id not in activity.interested_users:
        return activity

    # joining replaces interest
    record = await store.modify_arrays(
        Collections.ACTIVITIES,
        activity_id,
        add={"participants": [user_id]},
        remove={"interestedUsers": [user_id]},
    )
    return Activity.model_validate(record)


async def leave_activity(store: DocumentStore, activity_id: str, user_id: str) -> Activity:
    activity = await get_activity_by_id(store, activity_id)

    if activity.created_by == user_id:
        raise InvalidTransitionError("creator_cannot_leave")

    if user_id not in activity.participants:
        return activity

    record = await store.modify_arrays(
        Collections.ACTIVITIES,
        activity_id,
        remove={"participants": [user_id]},
    )
    return Activity.model_validate(record)
