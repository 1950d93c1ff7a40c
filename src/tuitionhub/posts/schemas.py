"""Request/response schemas for tuition posts, unlocks and applications."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Timing = Literal["Morning", "Afternoon", "Evening", "AnyTime"]
GenderPref = Literal["Any", "Male", "Female"]
TuitionType = Literal["Home Tuition", "At Tutor Home", "At Institute", "Online"]
PriceType = Literal["hourly", "monthly", "onetime"]


def _clean_subjects(v: list[str] | None) -> list[str] | None:
    if v is None:
        return v
    cleaned = [s.strip() for s in v if s and s.strip()]
    if not cleaned:
        msg = "At least one subject is required"
        raise ValueError(msg)
    return cleaned


class PostCreateRequest(BaseModel):
    """New tuition requirement. Locality and coordinates default from the profile."""

    title: str = Field(..., min_length=5, max_length=100)
    course: str | None = Field(None, max_length=100)
    subjects: list[str] = Field(..., min_length=1)
    board: str | None = Field(None, max_length=64)
    class_level: str | None = Field(None, max_length=64)
    city: str = Field(..., min_length=2, max_length=100)
    locality: str | None = Field(None, max_length=100)
    timing: Timing
    gender_pref: GenderPref
    tuition_type: TuitionType
    price_type: PriceType
    asked_price: float = Field(..., gt=0)
    description: str = Field(..., min_length=10, max_length=1000)

    @field_validator("subjects")
    @classmethod
    def strip_subjects(cls, v: list[str] | None) -> list[str] | None:
        return _clean_subjects(v)


class PostUpdateRequest(BaseModel):
    title: str | None = Field(None, min_length=5, max_length=100)
    course: str | None = Field(None, max_length=100)
    subjects: list[str] | None = Field(None, min_length=1)
    board: str | None = Field(None, max_length=64)
    class_level: str | None = Field(None, max_length=64)
    city: str | None = Field(None, min_length=2, max_length=100)
    locality: str | None = Field(None, max_length=100)
    timing: Timing | None = None
    gender_pref: GenderPref | None = None
    tuition_type: TuitionType | None = None
    price_type: PriceType | None = None
    asked_price: float | None = Field(None, gt=0)
    description: str | None = Field(None, min_length=10, max_length=1000)

    @field_validator("subjects")
    @classmethod
    def strip_subjects(cls, v: list[str] | None) -> list[str] | None:
        return _clean_subjects(v)


class PostResponse(BaseModel):
    id: int
    student_id: int
    title: str
    course: str | None = None
    subjects: list[str]
    board: str | None = None
    class_level: str | None = None
    city: str
    locality: str | None = None
    timing: str
    gender_pref: str
    tuition_type: str
    price_type: str
    asked_price: float
    description: str
    lat: float | None = None
    lon: float | None = None
    posted_on: datetime
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ContactDetails(BaseModel):
    """Student contact, only released to unlocked tutors, the owner and admins."""

    full_name: str | None = None
    phone: str | None = None


class PostAccessResponse(BaseModel):
    post_id: int
    state: Literal["locked", "pending_review", "unlocked"]
    price: float
    currency: str
    contact: ContactDetails | None = None


class UnlockRequest(BaseModel):
    method: Literal["qr", "razorpay"] = "qr"


class UnlockResponse(BaseModel):
    id: int
    tutor_id: int
    post_id: int
    amount: float
    currency: str
    provider: str | None = None
    status: str
    manual_payment_id: int | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ApplicationCreateRequest(BaseModel):
    message: str = Field(..., min_length=10, max_length=500)
    quoted_price: float = Field(..., gt=0)
    price_type: PriceType


class ApplicationResponse(BaseModel):
    id: int
    post_id: int
    tutor_id: int
    message: str
    quoted_price: float
    price_type: str
    created_at: datetime

    model_config = {"from_attributes": True}
