"""Client route gating: which paths a caller may open, and where to send them otherwise."""

from __future__ import annotations

import re
from dataclasses import dataclass

HOME = "/"
SIGN_IN = "/auth"

PUBLIC_ROUTES = ("/", "/browse", "/auth")
AUTHENTICATED_ROUTES = ("/create", "/profile", "/wallet")
ADMIN_ROUTES = ("/admin",)

_POST_DETAIL = re.compile(r"^/post/[^/]+$")
_UNLOCK = re.compile(r"^/unlock/[^/]+$")


@dataclass(frozen=True)
class RouteDecision:
    path: str
    allowed: bool
    redirect: str | None = None


def normalize_path(path: str) -> str:
    path = path.split("?", 1)[0].split("#", 1)[0].strip() or HOME
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or HOME
    return path


def resolve_route(path: str, *, authenticated: bool, is_admin: bool, role: str | None = None) -> RouteDecision:
    """
    Decide whether a client route may be rendered.

    Unauthenticated callers are sent to ``/auth`` for protected routes.
    Signed-in callers go home from ``/admin`` unless admin, from
    ``/unlock/<id>`` unless their role is ``tutor``, and from unknown paths.
    """
    path = normalize_path(path)

    if path in PUBLIC_ROUTES or _POST_DETAIL.match(path):
        return RouteDecision(path=path, allowed=True)

    if _UNLOCK.match(path):
        if not authenticated:
            return RouteDecision(path=path, allowed=False, redirect=SIGN_IN)
        if role != "tutor":
            return RouteDecision(path=path, allowed=False, redirect=HOME)
        return RouteDecision(path=path, allowed=True)

    if path in AUTHENTICATED_ROUTES or path in ADMIN_ROUTES:
        if not authenticated:
            return RouteDecision(path=path, allowed=False, redirect=SIGN_IN)
        if path in ADMIN_ROUTES and not is_admin:
            return RouteDecision(path=path, allowed=False, redirect=HOME)
        return RouteDecision(path=path, allowed=True)

    return RouteDecision(path=path, allowed=False, redirect=HOME)
