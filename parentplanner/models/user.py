from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parentplanner.models._fields import id_list, text_or_empty


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    email: str = ""
    child_nickname: str = Field(default="", alias="childNickname")
    friends: list[str] = Field(default_factory=list)  # user ids, in acceptance order

    @field_validator("email", "child_nickname", mode="before")
    @classmethod
    def _text(cls, value: object) -> str:
        return text_or_empty(value)

    @field_validator("friends", mode="before")
    @classmethod
    def _friends(cls, value: object) -> list[str]:
        return id_list(value)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
