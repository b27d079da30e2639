"""geocode.py — Destination search results."""

from pydantic import BaseModel


class GeocodeResult(BaseModel):
    display_name: str
    lat: float
    lon: float
