"""
traffic.py — Route + hazards-on-route endpoint.

Route:
  GET /api/v1/traffic?source_lat=..&source_lng=..&dest_lat=..&dest_lng=..   (60/minute)

HOW THE DATA FLOWS
──────────────────
1. OpenRouteService resolves source → destination into a polyline.
2. The hazard store returns every unexpired hazard.
3. correlate() keeps the hazards near the route and computes, per hazard,
   the route points it affects (ROUTE_THRESHOLD_M).
4. The response carries the polyline as [lat, lon] pairs plus each relevant
   hazard with its severity and drawable segments.

If the route cannot be fetched the whole request fails (502). If only the
hazard fetch fails, the route is still returned with no hazards and a
message; the client keeps whatever overlay it already shows.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request

from hazard_alert.core.config import settings
from hazard_alert.core.database import get_db
from hazard_alert.core.rate_limit import limiter
from hazard_alert.models.hazard import Hazard, HazardOut
from hazard_alert.models.route import AffectedSegment, RouteHazard, SegmentOut, TrafficResponse
from hazard_alert.services.correlator import classify_severity, correlate
from hazard_alert.services.geo import Coordinate
from hazard_alert.services.hazard_store import HazardStore
from hazard_alert.services.routing import routing_provider

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/traffic", tags=["traffic"])


def to_route_hazards(overlay: dict[Hazard, list[AffectedSegment]]) -> list[RouteHazard]:
    """Serialise a correlation result, keeping hazard order."""
    return [
        RouteHazard(
            hazard=HazardOut.from_hazard(hazard, classify_severity(hazard.type)),
            segments=[SegmentOut.from_segment(s) for s in segments],
        )
        for hazard, segments in overlay.items()
    ]


@router.get("", response_model=TrafficResponse)
@limiter.limit("60/minute")
async def get_traffic(
    request: Request,
    source_lat: float = Query(..., ge=-90, le=90),
    source_lng: float = Query(..., ge=-180, le=180),
    dest_lat: float = Query(..., ge=-90, le=90),
    dest_lng: float = Query(..., ge=-180, le=180),
    db=Depends(get_db),
):
    """Return the driving route and the hazards affecting it."""
    # RouteUnavailable propagates to the app-level handler (502)
    route = await routing_provider.get_route(
        Coordinate(source_lat, source_lng), Coordinate(dest_lat, dest_lng)
    )
    threshold = settings.route_threshold_m
    route_out = [(p.lat, p.lon) for p in route]

    if db is None:
        return TrafficResponse(
            route=route_out, hazards=[], threshold_m=threshold,
            message="Hazard data unavailable",
        )

    try:
        hazards = await HazardStore(db).list_all()
    except Exception as exc:
        logger.warning("Hazard fetch failed, returning route without hazards: %s", exc)
        return TrafficResponse(
            route=route_out, hazards=[], threshold_m=threshold,
            message="Hazard data unavailable",
        )

    overlay = correlate(route, hazards, threshold, split_gaps=settings.split_segment_gaps)
    return TrafficResponse(route=route_out, hazards=to_route_hazards(overlay), threshold_m=threshold)
