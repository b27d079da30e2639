"""
Hazard Alert API — Application entry point.

Bootstraps FastAPI, wires up middleware, registers route groups,
and manages the MongoDB connection lifecycle.

Run locally:
    uvicorn hazard_alert.main:app --reload --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from hazard_alert.core.config import API_VERSION, settings
from hazard_alert.core.database import close_mongo_connection, connect_to_mongo
from hazard_alert.core.errors import UpstreamUnavailable
from hazard_alert.core.rate_limit import limiter
from hazard_alert.routes.alerts import router as alerts_router
from hazard_alert.routes.geocode import router as geocode_router
from hazard_alert.routes.hazards import router as hazards_router
from hazard_alert.routes.health import router as health_router
from hazard_alert.routes.traffic import router as traffic_router

# ─── Logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ─── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Code before `yield` runs on startup; code after runs on shutdown."""
    logger.info("Starting Hazard Alert API (env: %s)", settings.environment)
    await connect_to_mongo()
    yield
    logger.info("Shutting down Hazard Alert API")
    await close_mongo_connection()


# ─── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="Hazard Alert API",
    description=(
        "Hazard reporting, hazards-along-route correlation and "
        "real-time proximity alerts."
    ),
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
)


# ─── Rate limiting ─────────────────────────────────────────────────────────────
# Routes opt-in with @limiter.limit("N/minute") + request: Request parameter.
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ─── Errors ────────────────────────────────────────────────────────────────────
@app.exception_handler(UpstreamUnavailable)
async def upstream_unavailable_handler(request: Request, exc: UpstreamUnavailable):
    """One human-readable message per failed provider call; details go to the log."""
    logger.warning("%s %s failed upstream: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": exc.public_message})


# ─── Middleware ─────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Routes ────────────────────────────────────────────────────────────────────
app.include_router(health_router, prefix="/health", tags=["health"])
app.include_router(hazards_router)
app.include_router(traffic_router)
app.include_router(geocode_router)
app.include_router(alerts_router)


@app.get("/", tags=["root"])
async def root():
    """API root — basic metadata."""
    return {
        "name": "Hazard Alert API",
        "version": API_VERSION,
        "status": "running",
        "environment": settings.environment,
        "docs": "/docs",
    }
