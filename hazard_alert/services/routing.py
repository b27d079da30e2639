"""
RoutingProvider — Driving routes via the OpenRouteService directions API.

Every failure mode (no API key, HTTP error status, timeout, network error,
a response without a usable LineString) is surfaced as a single
RouteUnavailable so callers only handle one error. No retries here.

OpenRouteService speaks GeoJSON, i.e. [lon, lat]; the rest of the backend
uses (lat, lon), so the conversion happens in this module and nowhere else.

API docs: https://openrouteservice.org/dev/#/api-docs/v2/directions
"""

import logging
from typing import Any, Optional

import httpx

from hazard_alert.core.config import settings
from hazard_alert.core.errors import RouteUnavailable
from hazard_alert.services.geo import Coordinate

logger = logging.getLogger(__name__)

DIRECTIONS_PATH = "/v2/directions/driving-car"


class RoutingProvider:
    """Thin async wrapper around the OpenRouteService directions endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = settings.ors_api_key if api_key is None else api_key
        self.base_url = (base_url or settings.ors_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.upstream_timeout_seconds
        # Injected in tests (httpx.MockTransport); None means the real network
        self._transport = transport
        self.enabled = bool(self.api_key)

        if not self.enabled:
            logger.warning(
                "ORS_API_KEY not set — routing disabled. "
                "Route requests will fail with RouteUnavailable."
            )

    async def get_route(self, source: Coordinate, dest: Coordinate) -> list[Coordinate]:
        """
        Resolve source → destination into an ordered, non-empty polyline.

        Raises:
            RouteUnavailable: for any provider, network or payload problem.
        """
        if not self.enabled:
            raise RouteUnavailable("routing provider is not configured")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.get(
                    f"{self.base_url}{DIRECTIONS_PATH}",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    params={
                        "start": f"{source.lon},{source.lat}",
                        "end": f"{dest.lon},{dest.lat}",
                    },
                )
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as exc:
                logger.error(
                    "OpenRouteService error: %s — %s",
                    exc.response.status_code,
                    exc.response.text[:200],
                )
                raise RouteUnavailable(f"provider returned {exc.response.status_code}") from exc
            except httpx.TimeoutException as exc:
                logger.error("OpenRouteService timed out after %.1fs", self.timeout)
                raise RouteUnavailable("provider timed out") from exc
            except (httpx.HTTPError, ValueError) as exc:
                logger.error("OpenRouteService request failed: %s", exc)
                raise RouteUnavailable(str(exc)) from exc

        route = self._parse(data)
        logger.info("Route resolved: %d points", len(route))
        return route

    @staticmethod
    def _parse(data: Any) -> list[Coordinate]:
        try:
            coordinates = data["features"][0]["geometry"]["coordinates"]
            route = [Coordinate(lat=float(pt[1]), lon=float(pt[0])) for pt in coordinates]
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            logger.error("OpenRouteService returned an unusable payload: %s", exc)
            raise RouteUnavailable("invalid route data") from exc
        if not route:
            raise RouteUnavailable("provider returned an empty route")
        return route


# Module-level singleton
routing_provider = RoutingProvider()
