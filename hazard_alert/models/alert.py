"""
alert.py — Messages exchanged on the real-time alert channel.

AlertEvent is transient: it is built when a hazard is reported, fanned out to
every connected session and never persisted.
"""

import uuid
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator


def _new_event_id() -> str:
    return uuid.uuid4().hex


class AlertEvent(BaseModel):
    """Broadcast when a hazard is reported."""

    # Unique per broadcast so recipients can drop duplicate deliveries
    event_id: str = Field(default_factory=_new_event_id)
    type: str
    latitude: float
    longitude: float
    message: str
    hazard_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))

    @classmethod
    def for_report(
        cls, hazard_type: str, latitude: float, longitude: float, hazard_id: Optional[str] = None
    ) -> "AlertEvent":
        return cls(
            type=hazard_type,
            latitude=latitude,
            longitude=longitude,
            hazard_id=hazard_id,
            message=f"{hazard_type.upper()} reported at ({latitude:.3f}, {longitude:.3f})",
        )


# ── WebSocket frames (client → server) ────────────────────────────────────────

ClientFrameType = Literal["location", "manual_location", "clear_manual_location", "route", "clear"]


class ClientFrame(BaseModel):
    """A control message from the map client on /api/v1/alerts/stream."""

    type: ClientFrameType
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    coordinates: Optional[list[tuple[float, float]]] = None   # [[lat, lon], ...]

    @model_validator(mode="after")
    def _check_payload(self) -> "ClientFrame":
        if self.type in ("location", "manual_location"):
            if self.latitude is None or self.longitude is None:
                raise ValueError(f"{self.type} requires latitude and longitude")
        if self.type == "route" and not self.coordinates:
            raise ValueError("route requires a non-empty coordinates list")
        return self


# ── WebSocket frames (server → client) ────────────────────────────────────────

class NotificationFrame(BaseModel):
    type: str = "notification"
    event: AlertEvent
    distance_m: float
