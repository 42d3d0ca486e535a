from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query

from parentplanner.api.deps import get_current_user, get_store
from parentplanner.api.http_errors import not_found_error, permission_error, value_error
from parentplanner.api.presenters.activities import activity_out, build_activity_detail, calendar_days
from parentplanner.core.errors import NotFoundError
from parentplanner.models.user import User
from parentplanner.schemas.activities import (
    ActivityDetailResponse,
    ActivityFeedResponse,
    ActivityOut,
    CalendarResponse,
    CreateActivityRequest,
    DeleteActivityResponse,
)
from parentplanner.services.activities import (
    create_activity,
    delete_activity,
    express_interest,
    filter_activities_on,
    get_activity_by_id,
    get_user_activities,
    get_user_and_friends_activities,
    join_activity,
    leave_activity,
)
from parentplanner.stores.base import DocumentStore

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("", response_model=ActivityFeedResponse)
async def activity_feed(
    on: date | None = Query(default=None, alias="date"),
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    lookup = await get_user_and_friends_activities(store, user.id)
    activities = lookup.value
    if on is not None:
        activities = filter_activities_on(activities, on)
    return ActivityFeedResponse(
        activities=[activity_out(a, current_user_id=user.id) for a in activities],
        degraded=not lookup.ok,
    )


@router.get("/calendar", response_model=CalendarResponse)
async def activity_calendar(
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    lookup = await get_user_and_friends_activities(store, user.id)
    return CalendarResponse(
        days=calendar_days(lookup.value, current_user_id=user.id),
        degraded=not lookup.ok,
    )


@router.get("/mine", response_model=list[ActivityOut])
async def my_activities(
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    activities = await get_user_activities(store, user.id)
    return [activity_out(a, current_user_id=user.id) for a in activities]


@router.post("", response_model=ActivityOut, status_code=201)
async def create_activity_route(
    payload: CreateActivityRequest,
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    activity = await create_activity(
        store,
        created_by=user.id,
        name=payload.name,
        date=payload.date.isoformat(),
        time=payload.time,
        location=payload.location,
    )
    return activity_out(activity, current_user_id=user.id)


@router.get("/{activity_id}", response_model=ActivityDetailResponse)
async def activity_detail(
    activity_id: str,
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    try:
        activity = await get_activity_by_id(store, activity_id)
    except NotFoundError as e:
        raise not_found_error(e, detail="Activity not found") from e
    return await build_activity_detail(store, activity, current_user_id=user.id)


@router.delete("/{activity_id}", response_model=DeleteActivityResponse)
async def delete_activity_route(
    activity_id: str,
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    try:
        activity = await get_activity_by_id(store, activity_id)
        if activity.created_by != user.id:
            raise PermissionError("Only the creator can delete this activity")
    except NotFoundError as e:
        raise not_found_error(e, detail="Activity not found") from e
    except PermissionError as e:
        raise permission_error(e) from e

    await delete_activity(store, activity_id)
    return DeleteActivityResponse(ok=True)


@router.post("/{activity_id}/join", response_model=ActivityOut)
async def join_activity_route(
    activity_id: str,
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    try:
        activity = await join_activity(store, activity_id, user.id)
    except NotFoundError as e:
        raise not_found_error(e, detail="Activity not found") from e
    return activity_out(activity, current_user_id=user.id)


@router.post("/{activity_id}/leave", response_model=ActivityOut)
async def leave_activity_route(
    activity_id: str,
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    try:
        activity = await leave_activity(store, activity_id, user.id)
    except NotFoundError as e:
        raise not_found_error(e, detail="Activity not found") from e
    except ValueError as e:
        raise value_error(
            e,
            code_statuses={"creator_cannot_leave": 409},
            detail_overrides={"creator_cannot_leave": "The creator cannot leave the activity"},
        ) from e
    return activity_out(activity, current_user_id=user.id)


@router.post("/{activity_id}/interest", response_model=ActivityOut)
async def express_interest_route(
    activity_id: str,
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    try:
        activity = await express_interest(store, activity_id, user.id)
    except NotFoundError as e:
        raise not_found_error(e, detail="Activity not found") from e
    return activity_out(activity, current_user_id=user.id)
