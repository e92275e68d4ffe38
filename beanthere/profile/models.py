from __future__ import annotations

from datetime import datetime

from pydantic import Field

from ..models import CamelModel


class ProfilePreferences(CamelModel):
    favorite_drink: str | None = None
    preferred_roast: str | None = None


class UserProfile(CamelModel):
    uid: str
    display_name: str = ""
    email: str = ""
    photo_url: str = Field(default="", alias="photoURL")
    bio: str = ""
    location: str = ""
    preferences: ProfilePreferences = Field(default_factory=ProfilePreferences)
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(CamelModel):
    display_name: str | None = Field(default=None, max_length=80)
    bio: str | None = Field(default=None, max_length=500)
    location: str | None = Field(default=None, max_length=120)
    preferences: ProfilePreferences | None = None
