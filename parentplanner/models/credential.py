from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Credential(BaseModel):
    """Email/password identity; its id is the auth uid of the directory user."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    email: str
    password_hash: str = Field(alias="passwordHash")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
