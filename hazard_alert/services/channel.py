"""
channel.py — In-process publish/subscribe channel for hazard alerts.

Every connected WebSocket session subscribes; POST /api/v1/hazards broadcasts.
Delivery is best effort to the sessions connected at broadcast time, the
originating session included. There is no acknowledgment and no replay for
sessions that connect later.

A single uvicorn worker holds all sessions, so an asyncio.Queue per subscriber
is enough. Running several workers would need an external broker (e.g. a
MongoDB change stream on a replica set) feeding broadcast() in each process.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Union

from hazard_alert.models.alert import AlertEvent

logger = logging.getLogger(__name__)

Handler = Callable[[AlertEvent], Union[None, Awaitable[None]]]


class Subscription:
    """One subscriber's view of the channel: an async iterator of events."""

    def __init__(self, channel: "AlertChannel") -> None:
        self._channel = channel
        self._queue: asyncio.Queue[AlertEvent] = asyncio.Queue()
        self.closed = False

    def _put(self, event: AlertEvent) -> None:
        if not self.closed:
            self._queue.put_nowait(event)

    async def get(self) -> AlertEvent:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self.closed = True
        self._channel._unsubscribe(self)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> AlertEvent:
        if self.closed:
            raise StopAsyncIteration
        return await self.get()


class AlertChannel:
    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._handlers: list[Handler] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> Subscription:
        subscription = Subscription(self)
        self._subscriptions.append(subscription)
        logger.debug("Alert subscriber added (%d connected)", len(self._subscriptions))
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug("Alert subscriber removed (%d connected)", len(self._subscriptions))

    def on_receive(self, handler: Handler) -> Callable[[], None]:
        """Register a callback for every broadcast. Returns a function that unregisters it."""
        self._handlers.append(handler)

        def _remove() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _remove

    async def broadcast(self, event: AlertEvent) -> int:
        """Fan the event out to every subscriber and handler. Returns the number reached."""
        for subscription in list(self._subscriptions):
            subscription._put(event)

        reached = len(self._subscriptions)
        for handler in list(self._handlers):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
                reached += 1
            except Exception as exc:
                # Handler errors are logged; the remaining handlers still run
                logger.error("Alert handler %r failed: %s", handler, exc)

        logger.info("Broadcast alert %s (%s) to %d listener(s)", event.event_id, event.type, reached)
        return reached


# Module-level singleton shared by the hazards route and the alert stream
alert_channel = AlertChannel()
