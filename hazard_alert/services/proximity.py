"""
proximity.py — The single "is this hazard near that point?" predicate.

Both the route correlator (ROUTE_THRESHOLD_M) and the personal alert
dispatcher (ALERT_THRESHOLD_M) call is_near() with their own threshold; the
threshold is always an argument, never read from settings here.
"""

from hazard_alert.core.errors import MissingFieldError
from hazard_alert.models.hazard import Hazard
from hazard_alert.services.geo import distance


def check_threshold(threshold_m: float) -> float:
    """Return the threshold unchanged, or raise ValueError if it is not positive."""
    if not threshold_m > 0:
        raise ValueError(f"threshold must be strictly positive, got {threshold_m!r}")
    return threshold_m


def hazard_point(hazard: Hazard) -> tuple[float, float]:
    """(lat, lon) of a hazard; MissingFieldError when the record has no coordinates."""
    if hazard.latitude is None:
        raise MissingFieldError(hazard.id, "latitude")
    if hazard.longitude is None:
        raise MissingFieldError(hazard.id, "longitude")
    return hazard.latitude, hazard.longitude


def is_near(hazard: Hazard, point: tuple[float, float], threshold_m: float) -> bool:
    """True when the hazard lies strictly closer than threshold_m metres to point."""
    check_threshold(threshold_m)
    return distance(hazard_point(hazard), point) < threshold_m
