"""
session.py — Presentation state for one connected client.

RouteSession owns what the map client would otherwise keep in globals: the
current route, the device location, an optional manual-location override and
the hazard overlay currently on screen. Core calls receive this state as
arguments; nothing here is module-level.

Overlay updates are wholesale and last-write-wins: each refresh takes a
sequence number, and a pass that finishes after a newer one was applied is
discarded. A refresh whose hazard fetch fails or times out leaves the
previous overlay untouched.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Iterable, Optional, Union

from hazard_alert.core.config import settings
from hazard_alert.models.alert import AlertEvent
from hazard_alert.models.hazard import Hazard
from hazard_alert.models.route import AffectedSegment
from hazard_alert.services.alert_dispatch import AlertDispatcher, NotifyCallback
from hazard_alert.services.correlator import correlate
from hazard_alert.services.geo import Coordinate
from hazard_alert.services.proximity import check_threshold

logger = logging.getLogger(__name__)

Overlay = dict[Hazard, list[AffectedSegment]]
FetchHazards = Callable[[], Awaitable[list[Hazard]]]
OverlayCallback = Callable[[Overlay], Union[None, Awaitable[None]]]


class RouteSession:
    def __init__(
        self,
        fetch_hazards: FetchHazards,
        notify: NotifyCallback,
        on_overlay: Optional[OverlayCallback] = None,
        route_threshold_m: Optional[float] = None,
        alert_threshold_m: Optional[float] = None,
        split_gaps: Optional[bool] = None,
        fetch_timeout: Optional[float] = None,
    ) -> None:
        self._fetch_hazards = fetch_hazards
        self._on_overlay = on_overlay
        self.route_threshold_m = check_threshold(
            route_threshold_m if route_threshold_m is not None else settings.route_threshold_m
        )
        self.split_gaps = settings.split_segment_gaps if split_gaps is None else split_gaps
        self.fetch_timeout = (
            fetch_timeout if fetch_timeout is not None else settings.upstream_timeout_seconds
        )

        self.dispatcher = AlertDispatcher(
            threshold_m=check_threshold(
                alert_threshold_m if alert_threshold_m is not None else settings.alert_threshold_m
            ),
            notify=notify,
            on_accept=self.schedule_refresh,
            seen_limit=settings.seen_events_limit,
        )

        self.route: tuple[Coordinate, ...] = ()
        self.device_location: Optional[Coordinate] = None
        self.manual_location: Optional[Coordinate] = None
        self.overlay: Overlay = {}

        self._issued = 0
        self._applied = 0
        self._tasks: set[asyncio.Task] = set()

    # ── Location ──────────────────────────────────────────────────────────────

    @property
    def location(self) -> Optional[Coordinate]:
        """Manual override when set, otherwise the last device location."""
        return self.manual_location or self.device_location

    def set_device_location(self, lat: float, lon: float) -> None:
        self.device_location = Coordinate(lat, lon)

    def set_manual_location(self, lat: float, lon: float) -> None:
        self.manual_location = Coordinate(lat, lon)
        logger.debug("Manual location set: %.5f, %.5f", lat, lon)

    def clear_manual_location(self) -> None:
        self.manual_location = None

    # ── Route + overlay ───────────────────────────────────────────────────────

    def set_route(self, coordinates: Iterable[tuple[float, float]]) -> None:
        self.route = tuple(Coordinate(*p) for p in coordinates)

    def clear(self) -> None:
        """Drop route and overlay; passes already in flight are discarded."""
        self.route = ()
        self.overlay = {}
        self._applied = self._issued

    async def refresh(self) -> bool:
        """
        Fetch hazards and recompute the overlay for the current route.

        Returns True when a new overlay was applied.
        """
        self._issued += 1
        ticket = self._issued
        route = self.route
        if not route:
            return False

        try:
            hazards = await asyncio.wait_for(self._fetch_hazards(), timeout=self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning("Hazard fetch timed out after %.1fs; keeping previous overlay", self.fetch_timeout)
            return False
        except Exception as exc:
            logger.warning("Hazard fetch failed: %s; keeping previous overlay", exc)
            return False

        overlay = correlate(route, hazards, self.route_threshold_m, split_gaps=self.split_gaps)

        if ticket <= self._applied:
            logger.debug("Discarding stale correlation pass %d (applied %d)", ticket, self._applied)
            return False

        self._applied = ticket
        self.overlay = overlay
        if self._on_overlay is not None:
            result = self._on_overlay(overlay)
            if inspect.isawaitable(result):
                await result
        return True

    def schedule_refresh(self) -> None:
        """Re-run the correlator in the background (no-op without a route)."""
        if not self.route:
            return
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._tasks.add(task)
        task.add_done_callback(self._refresh_done)

    def _refresh_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("Background overlay refresh failed: %r", exc)

    # ── Alerts ────────────────────────────────────────────────────────────────

    async def handle_alert(self, event: AlertEvent) -> bool:
        return await self.dispatcher.handle(event, self.location)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()
