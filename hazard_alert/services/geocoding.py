"""
Geocoder — Destination search via the OpenStreetMap Nominatim API.

Free-text query → ranked list of places. An empty list is a normal outcome
("destination not found"), not an error; only provider failures raise
GeocodingUnavailable.

Usage policy: https://operations.osmfoundation.org/policies/nominatim/
(identify the application with a User-Agent, max 1 request/second).
"""

import logging
from typing import Optional

import httpx

from hazard_alert.core.config import settings
from hazard_alert.core.errors import GeocodingUnavailable
from hazard_alert.models.geocode import GeocodeResult

logger = logging.getLogger(__name__)


class Geocoder:
    def __init__(
        self,
        url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url or settings.nominatim_url
        self.user_agent = user_agent or settings.geocoder_user_agent
        self.timeout = timeout if timeout is not None else settings.upstream_timeout_seconds
        self._transport = transport

    async def search(self, query: str, limit: int = 5) -> list[GeocodeResult]:
        """
        Look up a free-text destination.

        Returns:
            Results in provider ranking order; [] when nothing matches.
        Raises:
            GeocodingUnavailable: on HTTP errors, timeouts or malformed payloads.
        """
        query = query.strip()
        if not query:
            return []

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.get(
                    self.url,
                    headers={"User-Agent": self.user_agent},
                    params={"format": "json", "q": query, "limit": limit},
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "Nominatim error: %s — %s",
                    exc.response.status_code,
                    exc.response.text[:200],
                )
                raise GeocodingUnavailable(f"provider returned {exc.response.status_code}") from exc
            except (httpx.HTTPError, ValueError) as exc:
                logger.error("Nominatim request failed: %s", exc)
                raise GeocodingUnavailable(str(exc)) from exc

        if not isinstance(data, list):
            raise GeocodingUnavailable("unexpected geocoder payload")

        results = []
        for item in data:
            try:
                results.append(
                    GeocodeResult(
                        display_name=item.get("display_name", ""),
                        lat=float(item["lat"]),
                        lon=float(item["lon"]),
                    )
                )
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed geocoder result: %s", exc)

        if not results:
            logger.info("No geocoding results for %r", query)
        return results


# Module-level singleton
geocoder = Geocoder()
