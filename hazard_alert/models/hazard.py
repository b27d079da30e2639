"""
hazard.py — Hazard records and the schemas that carry them over HTTP.

Hazard             — internal record returned by the store (hashable, read-only)
HazardReport       — what the client sends to POST /api/v1/hazards
HazardOut          — a hazard as returned by the API

Stored document shape (collection `hazards`):

  {
    "type": "accident",
    "latitude": 51.5074,
    "longitude": -0.1278,
    "location": "Main Street",          ← optional label
    "timestamp": ISODate("2026-10-18T12:00:00Z")   ← TTL index field
  }
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


def _as_coordinate(value: Any) -> Optional[float]:
    """Stored coordinate as a float; None when absent or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ── Internal record ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Hazard:
    id: Optional[str]
    type: str
    latitude: Optional[float]             # None when missing or not numeric in storage
    longitude: Optional[float]
    timestamp: Optional[datetime] = None
    location: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Hazard":
        """Build a Hazard from a Mongo document without rejecting partial records."""
        oid = doc.get("_id")
        return cls(
            id=str(oid) if oid is not None else None,
            type=str(doc.get("type") or ""),
            latitude=_as_coordinate(doc.get("latitude")),
            longitude=_as_coordinate(doc.get("longitude")),
            timestamp=doc.get("timestamp"),
            location=doc.get("location"),
        )


# ── Request ───────────────────────────────────────────────────────────────────

class HazardReport(BaseModel):
    """
    Payload for POST /api/v1/hazards.

    Every field is optional at the schema level: presence of type/latitude/
    longitude is checked by the store so a missing field produces the same
    400 response whichever client sent it.
    """
    type: Optional[str] = Field(default=None, max_length=50)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    location: Optional[str] = Field(default=None, max_length=200)


# ── Response ──────────────────────────────────────────────────────────────────

class HazardOut(BaseModel):
    id: Optional[str] = None
    type: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timestamp: Optional[datetime] = None
    location: Optional[str] = None
    severity: str = "default"            # "high" | "medium" | "default"

    @classmethod
    def from_hazard(cls, hazard: Hazard, severity: str = "default") -> "HazardOut":
        return cls(
            id=hazard.id,
            type=hazard.type,
            latitude=hazard.latitude,
            longitude=hazard.longitude,
            timestamp=hazard.timestamp,
            location=hazard.location,
            severity=severity,
        )
