from __future__ import annotations

from fastapi import APIRouter, Depends

from parentplanner.api.deps import get_current_user, get_store
from parentplanner.models.user import User
from parentplanner.schemas.auth import MeResponse, UpdateMeRequest
from parentplanner.services.users import set_child_nickname
from parentplanner.stores.base import DocumentStore

router = APIRouter(tags=["me"])


def _me_response(user: User) -> MeResponse:
    return MeResponse(
        id=user.id,
        email=user.email,
        child_nickname=user.child_nickname,
        friend_count=len(user.friends),
    )


@router.get("/me", response_model=MeResponse)
async def me(user: User = Depends(get_current_user)):
    return _me_response(user)


@router.patch("/me", response_model=MeResponse)
async def update_me(
    payload: UpdateMeRequest,
    store: DocumentStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    updated = await set_child_nickname(store, user.id, payload.child_nickname)
    return _me_response(updated)
