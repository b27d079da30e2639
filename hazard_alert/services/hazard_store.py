"""
hazard_store.py — Create / list hazard reports in MongoDB.

Expiry is owned by MongoDB: a TTL index on `timestamp` deletes documents
HAZARD_TTL_SECONDS after they are written. The TTL monitor only sweeps once a
minute, so list_all() also filters out documents past the window.

Consumers must tolerate a hazard disappearing between two reads.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from hazard_alert.core.config import settings
from hazard_alert.core.errors import HazardValidationError
from hazard_alert.models.hazard import Hazard

logger = logging.getLogger(__name__)

COLLECTION = "hazards"


class HazardStore:
    """Gateway over the `hazards` collection."""

    def __init__(self, db: AsyncIOMotorDatabase, ttl_seconds: Optional[int] = None) -> None:
        self.db = db
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.hazard_ttl_seconds

    @property
    def collection(self):
        return self.db[COLLECTION]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index(
            "timestamp",
            expireAfterSeconds=self.ttl_seconds,
            name="hazard_ttl",
        )
        logger.info("Hazard TTL index ensured (%ds)", self.ttl_seconds)

    @staticmethod
    def validate(hazard_type: Any, latitude: Any, longitude: Any) -> list[str]:
        """Names of the required fields that are absent. Zero is a valid coordinate."""
        missing = []
        if hazard_type is None or not str(hazard_type).strip():
            missing.append("type")
        if latitude is None:
            missing.append("latitude")
        if longitude is None:
            missing.append("longitude")
        return missing

    async def create(
        self,
        hazard_type: Optional[str],
        latitude: Optional[float],
        longitude: Optional[float],
        location: Optional[str] = None,
    ) -> Hazard:
        missing = self.validate(hazard_type, latitude, longitude)
        if missing:
            raise HazardValidationError(missing)

        doc: dict[str, Any] = {
            "type": str(hazard_type).strip(),
            "latitude": float(latitude),
            "longitude": float(longitude),
            "timestamp": datetime.now(tz=timezone.utc),
        }
        if location:
            doc["location"] = location

        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info(
            "Hazard %s saved: %s at (%.5f, %.5f)",
            result.inserted_id, doc["type"], doc["latitude"], doc["longitude"],
        )
        return Hazard.from_document(doc)

    async def list_all(self) -> list[Hazard]:
        """Every unexpired hazard, in store order."""
        cutoff = datetime.now(tz=timezone.utc) - timedelta(seconds=self.ttl_seconds)
        cursor = self.collection.find({"timestamp": {"$gte": cutoff}})
        return [Hazard.from_document(doc) async for doc in cursor]
