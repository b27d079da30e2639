"""
Health check endpoint.

Used by container health checks, load balancers and the map client to tell
"API down" apart from "API up but hazard store unreachable".
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from hazard_alert.core import database as db_module
from hazard_alert.core.config import API_VERSION
from hazard_alert.services.channel import alert_channel

logger = logging.getLogger(__name__)
router = APIRouter()


class HealthResponse(BaseModel):
    status: str  # Always "ok" if the API process is alive
    version: str
    database: str  # "connected" | "disconnected"
    environment: str
    alert_sessions: int  # WebSocket sessions currently subscribed


@router.get("", response_model=HealthResponse, summary="API health check")
async def health_check() -> HealthResponse:
    """
    Returns the liveness status of the API and its database connection.

    The API reports healthy (HTTP 200) even when the database is down:
    routing and geocoding keep working without it.
    """
    from hazard_alert.core.config import settings

    db_status = "disconnected"
    try:
        # Access via module reference so tests can patch db_module.db_client
        if db_module.db_client.client is not None:
            await db_module.db_client.client.admin.command("ping")
            db_status = "connected"
    except Exception as exc:
        logger.warning("DB ping failed: %s", exc)

    return HealthResponse(
        status="ok",
        version=API_VERSION,
        database=db_status,
        environment=settings.environment,
        alert_sessions=alert_channel.subscriber_count,
    )
