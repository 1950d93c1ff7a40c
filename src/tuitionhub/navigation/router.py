"""Navigation router: /api/v1/navigation/* endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from tuitionhub.auth.dependencies import SessionContext, get_optional_session_context
from tuitionhub.navigation.guard import resolve_route

router = APIRouter(prefix="/api/v1/navigation", tags=["Navigation"])


class RouteDecisionResponse(BaseModel):
    path: str
    allowed: bool
    redirect: str | None = None


@router.get("/resolve", response_model=RouteDecisionResponse)
async def resolve(
    path: str = Query(..., min_length=1, max_length=512),
    ctx: SessionContext | None = Depends(get_optional_session_context),
) -> RouteDecisionResponse:
    """Whether the caller may open ``path`` in the web client, and the redirect if not."""
    decision = resolve_route(
        path,
        authenticated=ctx is not None,
        is_admin=ctx.is_admin if ctx is not None else False,
        role=ctx.role if ctx is not None else None,
    )
    return RouteDecisionResponse(path=decision.path, allowed=decision.allowed, redirect=decision.redirect)
