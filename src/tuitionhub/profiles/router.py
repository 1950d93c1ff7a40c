"""Profile router: all /api/v1/profiles/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tuitionhub.auth.dependencies import SessionContext, get_session_context
from tuitionhub.database import get_session
from tuitionhub.geo.service import GeoService, get_geo_service
from tuitionhub.profiles.schemas import (
    LocationRequest,
    LocationResponse,
    ProfileResponse,
    ProfileUpdateRequest,
)
from tuitionhub.profiles.service import LocationUnavailableError, update_location, update_profile

router = APIRouter(prefix="/api/v1/profiles", tags=["Profiles"])


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    ctx: SessionContext = Depends(get_session_context),
) -> ProfileResponse:
    """Get own profile (created on first access)."""
    return ProfileResponse.model_validate(ctx.profile)


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    body: ProfileUpdateRequest,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    """Update contact fields and tutor/student role."""
    try:
        profile = await update_profile(
            db,
            ctx.profile,
            full_name=body.full_name,
            phone=body.phone,
            city=body.city,
            locality=body.locality,
            role=body.role,
        )
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    await db.commit()
    return ProfileResponse.model_validate(profile)


@router.post("/me/location", response_model=LocationResponse)
async def set_my_location(
    body: LocationRequest,
    request: Request,
    ctx: SessionContext = Depends(get_session_context),
    db: AsyncSession = Depends(get_session),
    geo: GeoService = Depends(get_geo_service),
) -> LocationResponse:
    """Set location from device coordinates, falling back to IP geolocation."""
    try:
        profile, source = await update_location(
            db,
            ctx.profile,
            geo,
            lat=body.lat,
            lon=body.lon,
            client_ip=request.client.host if request.client else None,
        )
    except LocationUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    await db.commit()
    return LocationResponse(profile=ProfileResponse.model_validate(profile), source=source)  # type: ignore[arg-type]
