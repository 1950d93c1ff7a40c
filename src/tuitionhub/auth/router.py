"""Authentication router: all /api/v1/auth/* endpoints."""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from tuitionhub.auth.dependencies import SessionContext, get_current_user, get_session_context
from tuitionhub.auth.jwt import create_access_token, create_refresh_token, verify_token
from tuitionhub.auth.password import PasswordStrengthError
from tuitionhub.auth.schemas import (
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    SessionResponse,
    TokenResponse,
    UserResponse,
)
from tuitionhub.auth.service import (
    AccountLockedError,
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    authenticate_user,
    get_refresh_token,
    get_user_by_id,
    register_user,
    revoke_all_tokens,
    revoke_refresh_token,
    rotate_refresh_token,
    store_refresh_token,
)
from tuitionhub.config import get_settings
from tuitionhub.database import get_session
from tuitionhub.db.models import User
from tuitionhub.profiles.schemas import ProfileResponse
from tuitionhub.profiles.service import ensure_profile
from tuitionhub.redis_client import get_redis

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


async def _issue_tokens(db: AsyncSession, user: User, request: Request) -> TokenResponse:
    """Create access + refresh tokens, store the refresh hash and commit."""
    settings = get_settings()
    token_id = str(uuid.uuid4())
    access_token = create_access_token(user.id, user.email)
    refresh_token = create_refresh_token(user.id, user.email, token_id=token_id)

    await store_refresh_token(
        db,
        user_id=user.id,
        token_id=token_id,
        token_hash=hashlib.sha256(refresh_token.encode()).hexdigest(),
        expires_at=datetime.now(timezone.utc) + timedelta(days=settings.jwt_refresh_token_expire_days),
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    profile = await ensure_profile(db, user)
    await db.commit()

    return TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=UserResponse.model_validate(user),
        profile=ProfileResponse.model_validate(profile),
    )


# ---------------------------------------------------------------------------
# Sign-up / sign-in
# ---------------------------------------------------------------------------


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    body: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Create an account with email + password and sign in."""
    try:
        user = await register_user(db, email=body.email, password=body.password, full_name=body.full_name)
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    return await _issue_tokens(db, user, request)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
    redis: Redis = Depends(get_redis),  # type: ignore[assignment]
) -> TokenResponse:
    """Sign in with email + password."""
    try:
        user = await authenticate_user(db, redis, body.email, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except AccountLockedError as e:
        raise HTTPException(status_code=429, detail=str(e)) from e
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e

    logger.info("user_signed_in", user_id=user.id)
    return await _issue_tokens(db, user, request)


@router.get("/session", response_model=SessionResponse)
async def current_session(
    ctx: SessionContext = Depends(get_session_context),
) -> SessionResponse:
    """Return the caller's user, profile and admin flag."""
    return SessionResponse(
        user=UserResponse.model_validate(ctx.user),
        profile=ProfileResponse.model_validate(ctx.profile),
        is_admin=ctx.is_admin,
    )


# ---------------------------------------------------------------------------
# Token management
# ---------------------------------------------------------------------------


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: RefreshRequest,
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> TokenResponse:
    """Rotate refresh token."""
    try:
        payload = verify_token(body.refresh_token, expected_type="refresh")
    except pyjwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    jti = payload.get("jti")
    if not jti:
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    old_token = await get_refresh_token(db, jti)
    if old_token is None:
        raise HTTPException(status_code=401, detail="Refresh token not found")
    if old_token.is_revoked:
        # Reuse of a rotated token: end every session of this user.
        await revoke_all_tokens(db, old_token.user_id)
        await db.commit()
        logger.warning("refresh_token_reuse", user_id=old_token.user_id)
        raise HTTPException(status_code=401, detail="Refresh token has been revoked")

    user = await get_user_by_id(db, old_token.user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    settings = get_settings()
    new_token_id = str(uuid.uuid4())
    new_access = create_access_token(user.id, user.email)
    new_refresh = create_refresh_token(user.id, user.email, token_id=new_token_id)

    await rotate_refresh_token(
        db,
        old_token=old_token,
        new_token_id=new_token_id,
        new_token_hash=hashlib.sha256(new_refresh.encode()).hexdigest(),
        new_expires_at=datetime.now(timezone.utc) + timedelta(days=settings.jwt_refresh_token_expire_days),
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    profile = await ensure_profile(db, user)
    await db.commit()

    return TokenResponse(
        access_token=new_access,
        refresh_token=new_refresh,
        token_type="bearer",
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=UserResponse.model_validate(user),
        profile=ProfileResponse.model_validate(profile),
    )


@router.post("/logout")
async def logout(
    body: LogoutRequest,
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Revoke a refresh token."""
    try:
        payload = verify_token(body.refresh_token, expected_type="refresh")
    except pyjwt.InvalidTokenError:
        return {"status": "logged_out"}

    jti = payload.get("jti")
    if jti:
        await revoke_refresh_token(db, jti)
        await db.commit()

    return {"status": "logged_out"}


@router.post("/logout-all")
async def logout_all(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Revoke all refresh tokens for the current user."""
    count = await revoke_all_tokens(db, user.id)
    await db.commit()
    return {"status": "all_sessions_revoked", "revoked_count": str(count)}
