"""
hazards.py — Hazard report routes.

Routes:
  POST /api/v1/hazards — validate, persist, then broadcast an AlertEvent (30/minute)
  GET  /api/v1/hazards — every hazard still inside the retention window

A report missing type, latitude or longitude is rejected with 400 before
anything is stored or broadcast. Reports expire on their own after
HAZARD_TTL_SECONDS; there is no update or delete route.

Manual test:
  curl -X POST http://localhost:8000/api/v1/hazards \\
    -H 'Content-Type: application/json' \\
    -d '{"type": "accident", "latitude": 51.5074, "longitude": -0.1278}'
  curl http://localhost:8000/api/v1/hazards
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from hazard_alert.core.database import get_db
from hazard_alert.core.errors import HazardValidationError
from hazard_alert.core.rate_limit import limiter
from hazard_alert.models.alert import AlertEvent
from hazard_alert.models.hazard import HazardOut, HazardReport
from hazard_alert.services.channel import alert_channel
from hazard_alert.services.correlator import classify_severity
from hazard_alert.services.hazard_store import HazardStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/hazards", tags=["hazards"])


def _store_or_503(db) -> HazardStore:
    if db is None:
        raise HTTPException(status_code=503, detail="Hazard store unavailable")
    return HazardStore(db)


@router.post("", response_model=HazardOut, status_code=201)
@limiter.limit("30/minute")
async def report_hazard(request: Request, payload: HazardReport, db=Depends(get_db)):
    """Save a hazard report and alert every connected session."""
    missing = HazardStore.validate(payload.type, payload.latitude, payload.longitude)
    if missing:
        logger.info("Rejected hazard report, missing: %s", ", ".join(missing))
        raise HTTPException(status_code=400, detail="Missing required fields")

    store = _store_or_503(db)
    try:
        hazard = await store.create(
            payload.type, payload.latitude, payload.longitude, location=payload.location
        )
    except HazardValidationError:
        raise HTTPException(status_code=400, detail="Missing required fields")
    except Exception as exc:
        logger.error("Error saving hazard: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to save hazard")

    await alert_channel.broadcast(
        AlertEvent.for_report(hazard.type, hazard.latitude, hazard.longitude, hazard_id=hazard.id)
    )
    return HazardOut.from_hazard(hazard, classify_severity(hazard.type))


@router.get("", response_model=list[HazardOut])
async def list_hazards(db=Depends(get_db)):
    """Return the hazards currently on record (empty while the database is down)."""
    if db is None:
        return []
    try:
        hazards = await HazardStore(db).list_all()
    except Exception as exc:
        logger.error("Database error listing hazards: %s", exc)
        raise HTTPException(status_code=500, detail="Internal server error")
    return [HazardOut.from_hazard(h, classify_severity(h.type)) for h in hazards]
