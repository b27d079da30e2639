"""
geocode.py — Destination search (autocomplete) endpoint.

Route:
  GET /api/v1/geocode?q=<text>&limit=5

An empty list means "destination not found" and is a 200; the client shows
that message itself. Provider failures become 502 via the app-level handler.
"""

import logging

from fastapi import APIRouter, Query, Request

from hazard_alert.core.rate_limit import limiter
from hazard_alert.models.geocode import GeocodeResult
from hazard_alert.services.geocoding import geocoder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/geocode", tags=["geocode"])


@router.get("", response_model=list[GeocodeResult])
@limiter.limit("60/minute")
async def search_destination(
    request: Request,
    q: str = Query(..., min_length=1, max_length=200),
    limit: int = Query(default=5, ge=1, le=10),
):
    return await geocoder.search(q, limit=limit)
