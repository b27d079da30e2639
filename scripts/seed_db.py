#!/usr/bin/env python3
"""
seed_db.py — Scatter sample hazard reports around a point for local development.

Usage (from the repository root, after `pip install -e .`):
    python scripts/seed_db.py                                  # 8 hazards around central London
    python scripts/seed_db.py --lat 48.8566 --lon 2.3522 --count 20
    python scripts/seed_db.py --spread-m 5000 --clear          # wipe the collection first

Prerequisites:
    • MONGO_URI env var set (or .env file present)
    • MongoDB reachable from this machine

Seeded reports go through HazardStore, so they get the same validation and
timestamps as POST /api/v1/hazards and disappear after HAZARD_TTL_SECONDS.
Re-run the script to get fresh ones.
"""

import argparse
import asyncio
import math
import random
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")

import certifi  # noqa: E402
from motor.motor_asyncio import AsyncIOMotorClient  # noqa: E402

from hazard_alert.core.config import settings  # noqa: E402
from hazard_alert.services.hazard_store import COLLECTION, HazardStore  # noqa: E402

HAZARD_TYPES = ["accident", "roadblock", "flood", "pothole", "debris"]
STREETS = ["High Street", "Station Road", "Main Street", "Church Lane", "Park Avenue", None]

METRES_PER_DEGREE = 111_320


def _offset(lat: float, lon: float, spread_m: float) -> tuple[float, float]:
    """Random point within spread_m of (lat, lon), uniform over the disc."""
    r = spread_m * math.sqrt(random.random())
    theta = random.uniform(0, 2 * math.pi)
    dlat = (r * math.cos(theta)) / METRES_PER_DEGREE
    dlon = (r * math.sin(theta)) / (METRES_PER_DEGREE * max(math.cos(math.radians(lat)), 1e-6))
    return round(lat + dlat, 6), round(lon + dlon, 6)


async def seed(args: argparse.Namespace) -> None:
    print("Connecting to MongoDB...")
    kwargs = {"serverSelectionTimeoutMS": 5000}
    if settings.mongo_uri.startswith("mongodb+srv://"):
        kwargs["tlsCAFile"] = certifi.where()
    client = AsyncIOMotorClient(settings.mongo_uri, **kwargs)
    db = client[settings.mongo_db_name]

    try:
        await client.admin.command("ping")
        print(f"Connected (db: {settings.mongo_db_name}).")

        if args.clear:
            deleted = await db[COLLECTION].delete_many({})
            print(f"Removed {deleted.deleted_count} existing hazards.")

        store = HazardStore(db)
        await store.ensure_indexes()
        print(f"TTL index ensured ({store.ttl_seconds}s).")

        for _ in range(args.count):
            lat, lon = _offset(args.lat, args.lon, args.spread_m)
            hazard = await store.create(
                random.choice(HAZARD_TYPES), lat, lon, location=random.choice(STREETS)
            )
            print(f"  {hazard.type:<10} ({hazard.latitude:.5f}, {hazard.longitude:.5f})  {hazard.id}")

        print(f"\nSeed complete: {args.count} hazards, expiring in {store.ttl_seconds}s.")
    finally:
        client.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed sample hazard reports")
    parser.add_argument("--lat", type=float, default=51.5074, help="centre latitude")
    parser.add_argument("--lon", type=float, default=-0.1278, help="centre longitude")
    parser.add_argument("--count", type=int, default=8, help="number of hazards to insert")
    parser.add_argument("--spread-m", type=float, default=3000.0, help="max distance from the centre")
    parser.add_argument("--clear", action="store_true", help="delete existing hazards first")
    args = parser.parse_args()

    if args.count < 1:
        parser.error("--count must be at least 1")

    try:
        asyncio.run(seed(args))
    except Exception as exc:
        print(f"ERROR: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
