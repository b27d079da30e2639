"""
Application configuration loaded from environment variables.

Uses pydantic-settings for type-safe env var parsing with automatic
.env file loading. API keys are injected via environment — never
hard-coded.

To extend: add new fields here and document them in .env.example.
See https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


API_VERSION = "0.1.0"


class Settings(BaseSettings):
    # ─── Core ──────────────────────────────────────────────────────
    environment: str = "development"
    debug: bool = False

    # ─── MongoDB ───────────────────────────────────────────────────
    mongo_uri: str = "mongodb://localhost:27017/hazard_alert"
    mongo_db_name: str = "hazard_alert"

    # Hazards are short-lived: the TTL index removes them after this many seconds.
    hazard_ttl_seconds: int = 120

    # ─── CORS ──────────────────────────────────────────────────────
    # Comma-separated allowed origins for the map client.
    cors_origins_str: str = "http://localhost:5000,http://localhost:5173"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins_str.split(",") if o.strip()]

    # ─── Proximity thresholds (metres) ─────────────────────────────
    # Route correlation and personal alerting are tuned independently.
    route_threshold_m: float = 500.0
    alert_threshold_m: float = 2000.0

    # When True, non-contiguous matches along a route become separate segments.
    split_segment_gaps: bool = False

    # Per-session memory of delivered alert ids (dedup window).
    seen_events_limit: int = 256

    # ─── Upstream providers ────────────────────────────────────────
    # Get a key from https://openrouteservice.org/dev/#/signup
    ors_api_key: str = ""
    ors_base_url: str = "https://api.openrouteservice.org"

    nominatim_url: str = "https://nominatim.openstreetmap.org/search"
    # Nominatim rejects requests without an identifying User-Agent.
    geocoder_user_agent: str = "hazard-alert/0.1"

    upstream_timeout_seconds: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Don't fail on unknown env vars
    )

    @field_validator("route_threshold_m", "alert_threshold_m")
    @classmethod
    def _threshold_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("proximity thresholds must be strictly positive")
        return value


# Module-level singleton — import this everywhere instead of instantiating Settings()
settings = Settings()
