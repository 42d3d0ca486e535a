from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from parentplanner.models._fields import id_list, text_or_empty


class Activity(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    created_by: str = Field(default="", alias="createdBy")
    name: str = ""
    date: str = ""  # YYYY-MM-DD
    time: str = ""
    location: str = ""
    participants: list[str] = Field(default_factory=list)
    interested_users: list[str] = Field(default_factory=list, alias="interestedUsers")

    @field_validator("created_by", "name", "date", "time", "location", mode="before")
    @classmethod
    def _text(cls, value: object) -> str:
        return text_or_empty(value)

    @field_validator("participants", "interested_users", mode="before")
    @classmethod
    def _members(cls, value: object) -> list[str]:
        return id_list(value)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
