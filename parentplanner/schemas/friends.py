from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


class FriendInviteCreateRequest(BaseModel):
    email: EmailStr


class FriendInvitationOut(BaseModel):
    id: str
    from_user_id: str
    code: str
    email: str
    status: str


class FriendInviteCreateResponse(FriendInvitationOut):
    link: str


class FriendAcceptRequest(BaseModel):
    code: str = Field(min_length=4, max_length=32)


class FriendAcceptResponse(BaseModel):
    ok: bool


class FriendListItem(BaseModel):
    id: str
    email: str
    child_nickname: str
