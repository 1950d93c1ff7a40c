"""
Authentication business logic.

Handles account creation, credential checks, account lockout and refresh-token
bookkeeping. Profile creation and role resolution live in tuitionhub.profiles.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select, update

from tuitionhub.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from tuitionhub.config import get_settings
from tuitionhub.db.models import RefreshToken, User
from tuitionhub.profiles.service import ensure_profile

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class EmailAlreadyRegisteredError(ValueError):
    """Raised on sign-up with an email that already has an account."""


class InvalidCredentialsError(ValueError):
    """Raised when email/password do not match an account."""


class AccountLockedError(PermissionError):
    """Raised when too many failed logins have locked the account."""


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Sign-up / sign-in
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    email: str,
    password: str,
    full_name: str | None = None,
) -> User:
    """
    Register a new account and create its profile.

    Raises:
        PasswordStrengthError: If the password is too weak.
        EmailAlreadyRegisteredError: If the email is taken.
    """
    validate_password_strength(password, email)

    if await get_user_by_email(db, email) is not None:
        msg = "Email already registered"
        raise EmailAlreadyRegisteredError(msg)

    now = datetime.now(timezone.utc)
    user = User(
        email=email.lower().strip(),
        password_hash=hash_password(password),
        created_at=now,
        last_login=now,
        login_count=1,
    )
    db.add(user)
    await db.flush()

    profile = await ensure_profile(db, user)
    if full_name:
        profile.full_name = full_name
        await db.flush()

    logger.info("user_created", user_id=user.id, role=profile.role)
    return user


async def authenticate_user(
    db: AsyncSession,
    redis: Redis,
    email: str,
    password: str,
) -> User:
    """
    Authenticate a user with email + password.

    Raises:
        InvalidCredentialsError: If credentials are invalid.
        AccountLockedError: If the account is locked.
        PermissionError: If the account is banned.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        msg = "Invalid email or password"
        raise InvalidCredentialsError(msg)

    if await check_account_lockout(redis, user.id):
        msg = "Account temporarily locked. Try again later."
        raise AccountLockedError(msg)

    if user.is_banned:
        msg = "Account is banned"
        raise PermissionError(msg)

    if not verify_password(password, user.password_hash):
        await increment_failed_login(redis, user.id)
        msg = "Invalid email or password"
        raise InvalidCredentialsError(msg)

    await clear_failed_login(redis, user.id)

    user.last_login = datetime.now(timezone.utc)
    user.login_count = (user.login_count or 0) + 1
    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        logger.info("password_rehashed", user_id=user.id)

    # First sign-in of an account created elsewhere gets its profile here.
    await ensure_profile(db, user)
    await db.flush()
    return user


# ---------------------------------------------------------------------------
# Account lockout
# ---------------------------------------------------------------------------


async def check_account_lockout(redis: Redis, user_id: int) -> bool:
    """Check if the account is locked due to too many failed login attempts."""
    settings = get_settings()
    count_str = await redis.get(f"login_attempts:{user_id}")
    if count_str is None:
        return False
    return int(count_str) >= settings.account_lockout_threshold


async def increment_failed_login(redis: Redis, user_id: int) -> int:
    """Increment failed login counter. Returns the new count."""
    settings = get_settings()
    key = f"login_attempts:{user_id}"
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, settings.account_lockout_duration_minutes * 60)
    return int(count)


async def clear_failed_login(redis: Redis, user_id: int) -> None:
    """Clear the failed login counter after a successful login."""
    await redis.delete(f"login_attempts:{user_id}")


# ---------------------------------------------------------------------------
# Refresh tokens
# ---------------------------------------------------------------------------


async def store_refresh_token(
    db: AsyncSession,
    user_id: int,
    token_id: str,
    token_hash: str,
    expires_at: datetime,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> RefreshToken:
    """Store a refresh token hash in the database."""
    token = RefreshToken(
        id=token_id,
        user_id=user_id,
        token_hash=token_hash,
        issued_at=datetime.now(timezone.utc),
        expires_at=expires_at,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(token)
    await db.flush()
    return token


async def get_refresh_token(db: AsyncSession, token_id: str) -> RefreshToken | None:
    """Look up a refresh token by its JTI."""
    result = await db.execute(select(RefreshToken).where(RefreshToken.id == token_id))
    return result.scalar_one_or_none()


async def rotate_refresh_token(
    db: AsyncSession,
    old_token: RefreshToken,
    new_token_id: str,
    new_token_hash: str,
    new_expires_at: datetime,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> RefreshToken:
    """Revoke old token and create a new one (rotation)."""
    old_token.is_revoked = True
    old_token.revoked_at = datetime.now(timezone.utc)
    old_token.replaced_by = new_token_id

    return await store_refresh_token(
        db,
        user_id=old_token.user_id,
        token_id=new_token_id,
        token_hash=new_token_hash,
        expires_at=new_expires_at,
        ip_address=ip_address,
        user_agent=user_agent,
    )


async def revoke_refresh_token(db: AsyncSession, token_id: str) -> bool:
    """Revoke a specific refresh token. Returns True if found."""
    token = await get_refresh_token(db, token_id)
    if token is None:
        return False
    token.is_revoked = True
    token.revoked_at = datetime.now(timezone.utc)
    await db.flush()
    return True


async def revoke_all_tokens(db: AsyncSession, user_id: int) -> int:
    """Revoke all refresh tokens for a user. Returns count revoked."""
    result = await db.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == user_id)
        .where(RefreshToken.is_revoked == False)  # noqa: E712
        .values(is_revoked=True, revoked_at=datetime.now(timezone.utc))
    )
    await db.flush()
    return result.rowcount  # type: ignore[return-value]
