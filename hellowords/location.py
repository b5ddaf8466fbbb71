# -*- coding: utf-8 -*-
"""Location lookup for location-enabled saves."""
from __future__ import annotations

from typing import Dict, Optional
import asyncio
import logging

import httpx

logger = logging.getLogger(__name__)

NO_LOCATION = "No location saved"
LOCATION_UNAVAILABLE = "Location unavailable"

REVERSE_GEOCODE_URL = "https://api.bigdatacloud.net/data/reverse-geocode-client"


class Locator:
    """Anything that can name the current place."""

    async def locate(self) -> str:
        raise NotImplementedError


class ReverseGeocoder(Locator):
    """Turn configured coordinates into ``"City, REGION, CC"``."""

    def __init__(
        self,
        latitude: Optional[float],
        longitude: Optional[float],
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.latitude = latitude
        self.longitude = longitude
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(cls, cfg: Dict[str, object]) -> "ReverseGeocoder":
        lat = cfg.get("latitude")
        lon = cfg.get("longitude")
        return cls(
            latitude=float(lat) if lat is not None else None,
            longitude=float(lon) if lon is not None else None,
            timeout=float(cfg.get("location_timeout") or 5.0),
        )

    async def locate(self) -> str:
        if self.latitude is None or self.longitude is None:
            return LOCATION_UNAVAILABLE
        try:
            return await asyncio.wait_for(self._lookup(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("Reverse geocoding timed out after %.1fs", self.timeout)
            return LOCATION_UNAVAILABLE

    async def _lookup(self) -> str:
        params = {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "localityLanguage": "en",
        }
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.get(REVERSE_GEOCODE_URL, params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Reverse geocoding failed: %s", exc)
            return f"{self.latitude:.2f}, {self.longitude:.2f}"
        return format_place(data)


def format_place(data: Dict[str, object]) -> str:
    city = data.get("city") or data.get("locality") or "Unknown"
    subdivision_code = str(data.get("principalSubdivisionCode") or "")
    if subdivision_code:
        region = subdivision_code.split("-")[-1]
    else:
        region = str(data.get("principalSubdivision") or "")
    country = data.get("countryCode") or "Unknown"
    return f"{city}, {region}, {country}"


async def resolve_location(location_enabled: bool, locator: Optional[Locator]) -> str:
    """Location string for an authenticated save."""
    if not location_enabled or locator is None:
        return NO_LOCATION
    return await locator.locate()
