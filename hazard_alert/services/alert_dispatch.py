"""
alert_dispatch.py — Should this broadcast interrupt this recipient?

should_notify() is the pure decision: is the reported hazard strictly within
the personal alert threshold of the recipient's current location. It uses
the same proximity predicate as the route correlator but its own threshold,
because "on my planned path" and "close to me right now" are different
questions.

AlertDispatcher wraps the decision with the per-recipient side effects:
notify once per event id, then ask for the route overlay to be recomputed.
Rejected events are only logged.
"""

import inspect
import logging
from collections import OrderedDict
from typing import Awaitable, Callable, Optional, Union

from hazard_alert.models.alert import AlertEvent
from hazard_alert.models.hazard import Hazard
from hazard_alert.services.geo import distance
from hazard_alert.services.proximity import is_near

logger = logging.getLogger(__name__)

NotifyCallback = Callable[[AlertEvent, float], Union[None, Awaitable[None]]]


def _as_hazard(event: AlertEvent) -> Hazard:
    return Hazard(
        id=event.hazard_id,
        type=event.type,
        latitude=event.latitude,
        longitude=event.longitude,
    )


def should_notify(
    event: AlertEvent, recipient_location: tuple[float, float], threshold_m: float
) -> bool:
    return is_near(_as_hazard(event), recipient_location, threshold_m)


class AlertDispatcher:
    """
    Per-recipient alert gate.

    Args:
        threshold_m:     personal alert radius in metres.
        notify:          called with (event, distance_m) for accepted events;
                         may be a coroutine function.
        on_accept:       called after notify, e.g. to schedule a route refresh.
        seen_limit:      how many accepted event ids to remember for dedup.
    """

    def __init__(
        self,
        threshold_m: float,
        notify: NotifyCallback,
        on_accept: Optional[Callable[[], None]] = None,
        seen_limit: int = 256,
    ) -> None:
        self.threshold_m = threshold_m
        self._notify = notify
        self._on_accept = on_accept
        self._seen_limit = seen_limit
        self._seen: OrderedDict[str, None] = OrderedDict()

    def already_notified(self, event_id: str) -> bool:
        return event_id in self._seen

    def _remember(self, event_id: str) -> None:
        self._seen[event_id] = None
        while len(self._seen) > self._seen_limit:
            self._seen.popitem(last=False)

    async def handle(
        self, event: AlertEvent, recipient_location: Optional[tuple[float, float]]
    ) -> bool:
        """Run the decision and its side effects. Returns True if the recipient was notified."""
        if self.already_notified(event.event_id):
            logger.debug("Duplicate alert %s ignored", event.event_id)
            return False

        if recipient_location is None:
            logger.debug("Alert %s rejected: recipient location unknown", event.event_id)
            return False

        if not should_notify(event, recipient_location, self.threshold_m):
            logger.debug(
                "Alert %s rejected: %s outside %.0f m",
                event.event_id, event.type, self.threshold_m,
            )
            return False

        self._remember(event.event_id)
        gap = distance((event.latitude, event.longitude), recipient_location)
        result = self._notify(event, gap)
        if inspect.isawaitable(result):
            await result
        if self._on_accept is not None:
            self._on_accept()
        return True
