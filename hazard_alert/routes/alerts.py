"""
alerts.py — Real-time hazard alerts over WebSocket.

Route:
  WS /api/v1/alerts/stream

Each connection is one client session (RouteSession). The session receives
every hazard broadcast, runs the alert decision against its own location
(ALERT_THRESHOLD_M) and only then pushes a notification. When it has a
route, an accepted alert also re-runs the route correlation and pushes the
new overlay.

CLIENT → SERVER (JSON)
──────────────────────
  {"type": "location", "latitude": 51.5, "longitude": -0.12}
  {"type": "manual_location", "latitude": 51.5, "longitude": -0.12}
  {"type": "clear_manual_location"}
  {"type": "route", "coordinates": [[51.5, -0.12], [51.51, -0.11]]}
  {"type": "clear"}

Every valid frame is acknowledged with {"type": "ack", "for": "<type>"};
an invalid one gets {"type": "error", "detail": "..."} and the socket stays open.

SERVER → CLIENT (JSON)
──────────────────────
  {"type": "notification", "event": {...AlertEvent...}, "distance_m": 812.4}
  {"type": "hazards", "hazards": [...RouteHazard...]}

Manual test (install wscat: npm i -g wscat):
  wscat -c ws://localhost:8000/api/v1/alerts/stream
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from hazard_alert.core.database import get_db
from hazard_alert.models.alert import AlertEvent, ClientFrame, NotificationFrame
from hazard_alert.routes.traffic import to_route_hazards
from hazard_alert.services.channel import Subscription, alert_channel
from hazard_alert.services.hazard_store import HazardStore
from hazard_alert.services.session import Overlay, RouteSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/alerts", tags=["alerts"])


class _SessionSocket:
    """Serialises sends: acks, notifications and overlay pushes come from different tasks."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self._lock = asyncio.Lock()

    async def send(self, payload: dict) -> None:
        async with self._lock:
            await self.websocket.send_json(payload)


async def _read_frames(socket: _SessionSocket, session: RouteSession) -> None:
    while True:
        raw = await socket.websocket.receive_text()
        try:
            frame = ClientFrame.model_validate_json(raw)
        except ValidationError as exc:
            await socket.send({"type": "error", "detail": exc.errors(include_url=False)[0]["msg"]})
            continue

        if frame.type == "location":
            session.set_device_location(frame.latitude, frame.longitude)
        elif frame.type == "manual_location":
            session.set_manual_location(frame.latitude, frame.longitude)
        elif frame.type == "clear_manual_location":
            session.clear_manual_location()
        elif frame.type == "clear":
            session.clear()
        elif frame.type == "route":
            session.set_route(frame.coordinates)

        await socket.send({"type": "ack", "for": frame.type})

        if frame.type == "route":
            await session.refresh()


async def _relay_alerts(subscription: Subscription, session: RouteSession) -> None:
    async for event in subscription:
        await session.handle_alert(event)


@router.websocket("/stream")
async def alert_stream(websocket: WebSocket, db=Depends(get_db)):
    socket = _SessionSocket(websocket)

    async def fetch_hazards():
        if db is None:
            raise RuntimeError("hazard store unavailable")
        return await HazardStore(db).list_all()

    async def notify(event: AlertEvent, distance_m: float) -> None:
        frame = NotificationFrame(event=event, distance_m=round(distance_m, 1))
        await socket.send(frame.model_dump(mode="json"))

    async def push_overlay(overlay: Overlay) -> None:
        await socket.send({
            "type": "hazards",
            "hazards": [h.model_dump(mode="json") for h in to_route_hazards(overlay)],
        })

    session = RouteSession(fetch_hazards, notify=notify, on_overlay=push_overlay)
    # Subscribe before accepting so no broadcast slips between connect and subscribe
    subscription = alert_channel.subscribe()
    try:
        await websocket.accept()
        tasks = {
            asyncio.create_task(_read_frames(socket, session)),
            asyncio.create_task(_relay_alerts(subscription, session)),
        }
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.warning("Alert stream session ended with error: %s", exc)
    finally:
        subscription.close()
        await session.close()
        logger.info("Alert stream client disconnected")
