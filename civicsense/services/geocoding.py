from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class ReverseGeocoder:
    """
    Turns coordinates into a display address through a Nominatim-compatible
    endpoint. Any failure yields ``None``; a report is never rejected because
    the address lookup did not work.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        enabled: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.enabled = enabled
        self._transport = transport

    async def reverse(self, lat: float, lng: float) -> Optional[str]:
        if not self.enabled:
            return None
        params = {"lat": lat, "lon": lng, "format": "json"}
        headers = {"User-Agent": "civicsense-backend"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.get(self.url, params=params, headers=headers)
            if r.status_code != 200:
                logger.warning("Reverse geocoding returned %s", r.status_code)
                return None
            return r.json().get("display_name")
        except (httpx.HTTPError, ValueError):
            logger.warning("Reverse geocoding failed for %s,%s", lat, lng, exc_info=True)
            return None
