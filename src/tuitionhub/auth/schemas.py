"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator

from tuitionhub.profiles.schemas import ProfileResponse


class _EmailRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class RegisterRequest(_EmailRequest):
    """Sign-up with email + password."""

    password: str = Field(..., min_length=1, max_length=128)
    full_name: str | None = Field(None, min_length=2, max_length=100)


class LoginRequest(_EmailRequest):
    """Sign-in with email + password."""

    password: str = Field(..., min_length=1, max_length=128)


class RefreshRequest(BaseModel):
    """Refresh token rotation request."""

    refresh_token: str


class LogoutRequest(BaseModel):
    """Sign-out (revoke refresh token)."""

    refresh_token: str


class UserResponse(BaseModel):
    """Account fields safe to return to their owner."""

    id: int
    email: str
    created_at: datetime | None = None
    last_login: datetime | None = None
    login_count: int = 0

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    """Token response returned after successful auth."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = 3600
    user: UserResponse
    profile: ProfileResponse


class SessionResponse(BaseModel):
    """The caller's session context."""

    user: UserResponse
    profile: ProfileResponse
    is_admin: bool
