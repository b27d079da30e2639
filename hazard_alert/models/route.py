"""
route.py — Route / affected-segment types and the GET /api/v1/traffic schemas.

Coordinates travel over the wire as [lat, lon] pairs (the order the map
client draws polylines in), not GeoJSON [lon, lat].
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field

from hazard_alert.models.hazard import HazardOut
from hazard_alert.services.geo import Coordinate


# ── Internal ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AffectedSegment:
    """Route points affected by one hazard, in route order."""

    points: tuple[Coordinate, ...]
    start_index: int      # route index of the first point
    end_index: int        # route index of the last point (inclusive)

    def __len__(self) -> int:
        return len(self.points)


# ── API ───────────────────────────────────────────────────────────────────────

class SegmentOut(BaseModel):
    points: list[tuple[float, float]]
    start_index: int
    end_index: int

    @classmethod
    def from_segment(cls, segment: AffectedSegment) -> "SegmentOut":
        return cls(
            points=[(p.lat, p.lon) for p in segment.points],
            start_index=segment.start_index,
            end_index=segment.end_index,
        )


class RouteHazard(BaseModel):
    """A hazard relevant to the route plus the segments to draw for it."""
    hazard: HazardOut
    segments: list[SegmentOut] = Field(default_factory=list)


class TrafficResponse(BaseModel):
    """Response body for GET /api/v1/traffic."""
    route: list[tuple[float, float]]
    hazards: list[RouteHazard]
    threshold_m: float
    message: Optional[str] = None     # user-facing note, e.g. hazards unavailable
