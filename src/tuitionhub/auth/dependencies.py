"""FastAPI authentication dependencies and the per-request session context."""

from __future__ import annotations

from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tuitionhub.auth.jwt import verify_token
from tuitionhub.auth.service import get_user_by_id
from tuitionhub.database import get_session
from tuitionhub.db.models import Profile, User
from tuitionhub.profiles.service import ensure_profile

_bearer = HTTPBearer()
_optional_bearer = HTTPBearer(auto_error=False)


@dataclass
class SessionContext:
    """Authenticated user plus their profile, resolved once per request."""

    user: User
    profile: Profile

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def role(self) -> str:
        return self.profile.role

    @property
    def is_admin(self) -> bool:
        return self.profile.role == "admin"


async def _resolve_user(db: AsyncSession, token: str) -> User:
    try:
        payload = verify_token(token, expected_type="access")
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    user = await get_user_by_id(db, int(payload["sub"]))
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    if user.is_banned:
        raise HTTPException(status_code=403, detail="Account is banned")
    return user


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Extract and verify the access JWT, return the User. Raises 401/403 on failure."""
    return await _resolve_user(db, credentials.credentials)


async def get_session_context(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SessionContext:
    """
    Build the session context for an authenticated request.

    Creates the profile on first use and commits it, so the role seen by the
    handler is the one stored server-side.
    """
    profile = await ensure_profile(db, user)
    await db.commit()
    return SessionContext(user=user, profile=profile)


async def get_optional_session_context(
    credentials: HTTPAuthorizationCredentials | None = Security(_optional_bearer),
    db: AsyncSession = Depends(get_session),
) -> SessionContext | None:
    """Session context when a bearer token is present, None for anonymous callers."""
    if credentials is None:
        return None
    user = await _resolve_user(db, credentials.credentials)
    profile = await ensure_profile(db, user)
    await db.commit()
    return SessionContext(user=user, profile=profile)


async def require_admin(
    ctx: SessionContext = Depends(get_session_context),
) -> SessionContext:
    """Require the administrator role. Raises 403 otherwise."""
    if not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Administrator access required")
    return ctx
