from __future__ import annotations

import datetime as dt
from pydantic import BaseModel, Field, field_validator
from typing import List

from parentplanner.schemas.friends import FriendListItem


class CreateActivityRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    date: dt.date
    time: str = Field(min_length=1, max_length=50)  # free text, e.g. "10:00" or "after school"
    location: str = Field(min_length=1, max_length=200)

    @field_validator("name", "time", "location")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ActivityOut(BaseModel):
    id: str
    created_by: str
    name: str
    date: str
    display_date: str
    time: str
    location: str
    participants: List[str]
    interested_users: List[str]
    is_past: bool
    is_creator: bool
    is_participant: bool
    is_interested: bool


class ActivityFeedResponse(BaseModel):
    activities: List[ActivityOut]
    degraded: bool = False  # true when the feed could not be loaded and is empty as a fallback


class CalendarDay(BaseModel):
    date: str
    display_date: str
    activities: List[ActivityOut]


class CalendarResponse(BaseModel):
    days: List[CalendarDay]
    degraded: bool = False


class ActivityDetailResponse(ActivityOut):
    creator: FriendListItem
    participant_profiles: List[FriendListItem]
    interested_profiles: List[FriendListItem]


class DeleteActivityResponse(BaseModel):
    ok: bool
