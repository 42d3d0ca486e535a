from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class FriendInvitation(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    from_user_id: str = Field(alias="fromUserId")
    code: str
    email: str
    status: InvitationStatus = InvitationStatus.PENDING

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
