from __future__ import annotations

from datetime import date

from parentplanner.models.activity import Activity
from parentplanner.models.user import User
from parentplanner.schemas.activities import ActivityDetailResponse, ActivityOut, CalendarDay
from parentplanner.schemas.friends import FriendListItem
from parentplanner.services.activities import format_date_for_display, group_activities_by_date, is_date_in_past
from parentplanner.services.users import get_user_by_id
from parentplanner.stores.base import DocumentStore


def user_out(user: User) -> FriendListItem:
    return FriendListItem(id=user.id, email=user.email, child_nickname=user.child_nickname)


def activity_out(activity: Activity, *, current_user_id: str, today: date | None = None) -> ActivityOut:
    return ActivityOut(
        id=activity.id,
        created_by=activity.created_by,
        name=activity.name,
        date=activity.date,
        display_date=format_date_for_display(activity.date),
        time=activity.time,
        location=activity.location,
        participants=activity.participants,
        interested_users=activity.interested_users,
        is_past=is_date_in_past(activity.date, today=today),
        is_creator=activity.created_by == current_user_id,
        is_participant=current_user_id in activity.participants,
        is_interested=current_user_id in activity.interested_users,
    )


def calendar_days(activities: list[Activity], *, current_user_id: str) -> list[CalendarDay]:
    # input is already newest-first, so the grouping keeps that order
    return [
        CalendarDay(
            date=day,
            display_date=format_date_for_display(day),
            activities=[activity_out(a, current_user_id=current_user_id) for a in items],
        )
        for day, items in group_activities_by_date(activities).items()
    ]


async def _resolve_users(store: DocumentStore, user_ids: list[str]) -> list[FriendListItem]:
    # Unknown users show up blank rather than failing the whole card.
    return [user_out((await get_user_by_id(store, uid)).value) for uid in user_ids]


async def build_activity_detail(
    store: DocumentStore,
    activity: Activity,
    *,
    current_user_id: str,
) -> ActivityDetailResponse:
    base = activity_out(activity, current_user_id=current_user_id)
    creator = (await get_user_by_id(store, activity.created_by)).value

    return ActivityDetailResponse(
        **base.model_dump(),
        creator=user_out(creator),
        participant_profiles=await _resolve_users(store, activity.participants),
        interested_profiles=await _resolve_users(store, activity.interested_users),
    )
