"""Request/response schemas for profile endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class ProfileResponse(BaseModel):
    """A user's marketplace profile."""

    user_id: int
    role: str
    full_name: str | None = None
    phone: str | None = None
    city: str | None = None
    locality: str | None = None
    lat: float | None = None
    lon: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ProfileUpdateRequest(BaseModel):
    """Update own profile fields. Only tutor/student may be self-assigned."""

    full_name: str | None = Field(None, min_length=2, max_length=100)
    phone: str | None = Field(None, min_length=10, max_length=15)
    city: str | None = Field(None, min_length=2, max_length=100)
    locality: str | None = Field(None, max_length=100)
    role: Literal["tutor", "student"] | None = None


class LocationRequest(BaseModel):
    """Device coordinates; omit both to fall back to IP geolocation."""

    lat: float | None = Field(None, ge=-90, le=90)
    lon: float | None = Field(None, ge=-180, le=180)

    @model_validator(mode="after")
    def both_or_neither(self) -> LocationRequest:
        if (self.lat is None) != (self.lon is None):
            msg = "lat and lon must be provided together"
            raise ValueError(msg)
        return self


class LocationResponse(BaseModel):
    """Profile after a location update, with how the location was obtained."""

    profile: ProfileResponse
    source: Literal["geocoded", "coordinates", "ip"]
