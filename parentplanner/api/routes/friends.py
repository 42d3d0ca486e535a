from __future__ import annotations

from fastapi import APIRouter, Depends

from parentplanner.api.deps import get_current_user, get_store
from parentplanner.api.http_errors import not_found_error, value_error
from parentplanner.api.presenters.activities import user_out
from parentplanner.core.config import settings
from parentplanner.core.errors import NotFoundError
from parentplanner.models.invitation import FriendInvitation
from parentplanner.models.user import User
from parentplanner.schemas.friends import (
    FriendAcceptRequest,
    FriendAcceptResponse,
    FriendInvitationOut,
    FriendInviteCreateRequest,
    FriendInviteCreateResponse,
    FriendListItem,
)
from parentplanner.services.users import (
    accept_invitation,
    create_invitation,
    get_invitation_by_code,
    get_user_friends,
)
from parentplanner.stores.base import DocumentStore

router = APIRouter(prefix="/friends", tags=["friends"])


def _invitation_out(invitation: FriendInvitation) -> FriendInvitationOut:
    return FriendInvitationOut(
        id=invitation.id,
        from_user_id=invitation.from_user_id,
        code=invitation.code,
        email=invitation.email,
        status=invitation.status.value,
    )


@router.post("/invite", response_model=FriendInviteCreateResponse, status_code=201)
async def generate_invite(
    payload: FriendInviteCreateRequest,
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    invitation = await create_invitation(store, user.id, payload.email)
    return FriendInviteCreateResponse(
        **_invitation_out(invitation).model_dump(),
        link=settings.invite_link(invitation.code),
    )


@router.get("/invite/{code}", response_model=FriendInvitationOut)
async def get_invite(
    code: str,
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    try:
        invitation = await get_invitation_by_code(store, code.strip().upper())
    except NotFoundError as e:
        raise not_found_error(e, detail="Invalid invite code") from e
    return _invitation_out(invitation)


@router.post("/accept", response_model=FriendAcceptResponse)
async def accept_invite(
    payload: FriendAcceptRequest,
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    try:
        await accept_invitation(store, payload.code.strip().upper(), user.id)
        return FriendAcceptResponse(ok=True)
    except NotFoundError as e:
        raise not_found_error(e, detail="Invalid invite code") from e
    except ValueError as e:
        raise value_error(
            e,
            code_statuses={
                "already_processed": 409,
                "cannot_friend_self": 400,
            },
            detail_overrides={
                "already_processed": "This invitation has already been processed",
                "cannot_friend_self": "You cannot friend yourself",
            },
            default_detail="Could not accept invite",
        ) from e


@router.get("", response_model=list[FriendListItem])
async def get_friends(
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    friends = await get_user_friends(store, user.id)
    return [user_out(f) for f in friends]
