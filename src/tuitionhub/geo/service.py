"""
Reverse geocoding and IP geolocation over HTTP.

Both lookups are best-effort: transport errors, timeouts and unexpected
payloads are logged and reported as "no result" so callers can fall back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from tuitionhub.config import get_settings

logger = structlog.get_logger()

_PRIVATE_PREFIXES = ("127.", "10.", "192.168.", "::1", "testclient")


@dataclass(frozen=True)
class Place:
    """A resolved place name."""

    city: str | None
    locality: str | None


class GeoService:
    """Nominatim-style reverse geocoder with an ipapi-style IP fallback."""

    def __init__(
        self,
        geocode_url: str,
        ip_url: str,
        user_agent: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.geocode_url = geocode_url
        self.ip_url = ip_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        )

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any] | None:
        try:
            async with self._client() as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError):
            logger.warning("geo_lookup_failed", url=url, exc_info=True)
            return None
        return data if isinstance(data, dict) else None

    async def reverse_geocode(self, lat: float, lon: float) -> Place | None:
        """Resolve coordinates to city/locality."""
        data = await self._get_json(
            self.geocode_url,
            params={"format": "json", "lat": lat, "lon": lon, "zoom": 16, "addressdetails": 1},
        )
        address = (data or {}).get("address")
        if not isinstance(address, dict):
            return None
        city = address.get("city") or address.get("town") or address.get("village") or ""
        locality = address.get("suburb") or address.get("neighbourhood") or ""
        return Place(city=city or None, locality=locality or None)

    async def ip_lookup(self, ip: str | None) -> Place | None:
        """Approximate city/region for an IP address (the service's own egress IP for private ones)."""
        if ip and not ip.startswith(_PRIVATE_PREFIXES):
            url = f"{self.ip_url}/{ip}/json/"
        else:
            url = f"{self.ip_url}/json/"
        data = await self._get_json(url)
        if not data or not data.get("city"):
            return None
        return Place(city=data["city"], locality=data.get("region") or None)


def get_geo_service() -> GeoService:
    """Build the geo service from settings (FastAPI dependency)."""
    settings = get_settings()
    return GeoService(
        geocode_url=settings.geocode_url,
        ip_url=settings.ip_geolocation_url,
        user_agent=settings.geocode_user_agent,
        timeout=settings.location_timeout_seconds,
    )
