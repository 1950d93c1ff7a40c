"""Profile business logic: lazy creation, role resolution and location."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from tuitionhub.config import get_settings
from tuitionhub.db.models import Profile, User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from tuitionhub.geo.service import GeoService

logger = structlog.get_logger()

DEFAULT_ROLE = "tutor"
SELF_ASSIGNABLE_ROLES = frozenset({"tutor", "student"})


class LocationUnavailableError(RuntimeError):
    """Raised when neither coordinates nor IP geolocation produced a location."""


def is_admin_email(email: str | None) -> bool:
    """Check an email against the server-held administrator allow-list."""
    if not email:
        return False
    return email.strip().lower() in get_settings().admin_emails


async def get_profile(db: AsyncSession, user_id: int) -> Profile | None:
    """Fetch a profile by user id."""
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    return result.scalar_one_or_none()


async def ensure_profile(db: AsyncSession, user: User) -> Profile:
    """
    Load the user's profile, creating it on first use.

    The admin role is kept in sync with the allow-list: listed emails are
    promoted, and an admin whose email was removed returns to the role held
    before promotion (the default role for accounts created as admin).
    """
    profile = await get_profile(db, user.id)
    listed = is_admin_email(user.email)

    if profile is None:
        profile = Profile(
            user_id=user.id,
            role="admin" if listed else DEFAULT_ROLE,
            created_at=datetime.now(timezone.utc),
        )
        db.add(profile)
        await db.flush()
        logger.info("profile_created", user_id=user.id, role=profile.role)
        return profile

    if listed and profile.role != "admin":
        logger.info("admin_role_granted", user_id=user.id, previous=profile.role)
        profile.previous_role = profile.role
        profile.role = "admin"
        await db.flush()
    elif not listed and profile.role == "admin":
        profile.role = profile.previous_role or DEFAULT_ROLE
        profile.previous_role = None
        logger.warning("admin_role_revoked", user_id=user.id, restored=profile.role)
        await db.flush()

    return profile


async def update_profile(
    db: AsyncSession,
    profile: Profile,
    *,
    full_name: str | None = None,
    phone: str | None = None,
    city: str | None = None,
    locality: str | None = None,
    role: str | None = None,
) -> Profile:
    """
    Update the caller's own profile fields.

    Raises:
        PermissionError: If the caller tries to assign a role they may not hold.
    """
    if role is not None:
        if role not in SELF_ASSIGNABLE_ROLES:
            msg = f"Role '{role}' cannot be self-assigned"
            raise PermissionError(msg)
        if profile.role == "admin":
            msg = "Administrator role is managed by the server"
            raise PermissionError(msg)
        profile.role = role

    if full_name is not None:
        profile.full_name = full_name
    if phone is not None:
        profile.phone = phone
    if city is not None:
        profile.city = city
    if locality is not None:
        profile.locality = locality

    profile.updated_at = datetime.now(timezone.utc)
    await db.flush()
    return profile


async def update_location(
    db: AsyncSession,
    profile: Profile,
    geo: GeoService,
    *,
    lat: float | None,
    lon: float | None,
    client_ip: str | None,
) -> tuple[Profile, str]:
    """
    Set the profile's location from device coordinates, else from the caller's IP.

    Returns:
        Tuple of (profile, source) where source is "geocoded", "coordinates" or "ip".

    Raises:
        LocationUnavailableError: If no location could be determined.
    """
    if lat is not None and lon is not None:
        profile.lat = lat
        profile.lon = lon
        place = await geo.reverse_geocode(lat, lon)
        source = "coordinates"
        if place is not None:
            profile.city = place.city or profile.city
            profile.locality = place.locality or profile.locality
            source = "geocoded"
    else:
        place = await geo.ip_lookup(client_ip)
        if place is None or not place.city:
            msg = "Unable to get location. Please enter manually."
            raise LocationUnavailableError(msg)
        profile.city = place.city
        profile.locality = place.locality
        source = "ip"

    profile.updated_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("profile_location_updated", user_id=profile.user_id, source=source)
    return profile, source
