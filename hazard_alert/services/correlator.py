"""
correlator.py — Which hazards lie on a route, and which part of it they block.

USAGE
─────
    from hazard_alert.services.correlator import correlate

    overlay = correlate(route, hazards, threshold_m=500)
    for hazard, segments in overlay.items():
        for segment in segments:        # empty when only one point is affected
            draw(segment.points, colour_for(classify_severity(hazard.type)))

ALGORITHM
─────────
1. Relevance: a hazard is relevant when it is near at least one route point
   (existential over the whole route, not only the endpoints).
2. Affected points: every near point, in route order.
3. A group of affected points is drawable only with two or more points; a lone
   point cannot be drawn as a line.
4. By default all affected points form a single group. With split_gaps=True
   each maximal run of consecutive route indices is its own group.

Records without coordinates are logged and skipped; they never abort a pass.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from hazard_alert.core.errors import MissingFieldError
from hazard_alert.models.hazard import Hazard
from hazard_alert.models.route import AffectedSegment
from hazard_alert.services.geo import Coordinate
from hazard_alert.services.proximity import check_threshold, is_near

logger = logging.getLogger(__name__)

# Minimum number of points needed to draw a segment as a line
MIN_SEGMENT_POINTS = 2

_SEVERITY_BY_TYPE = {"accident": "high", "roadblock": "medium"}


def classify_severity(hazard_type: str | None) -> str:
    """'high' for accidents, 'medium' for roadblocks, 'default' otherwise (case-insensitive)."""
    return _SEVERITY_BY_TYPE.get((hazard_type or "").strip().lower(), "default")


def is_relevant(hazard: Hazard, route: Sequence[tuple[float, float]], threshold_m: float) -> bool:
    return any(is_near(hazard, point, threshold_m) for point in route)


def affected_indices(
    hazard: Hazard, route: Sequence[tuple[float, float]], threshold_m: float
) -> list[int]:
    """Route indices of every point near the hazard, ascending."""
    return [i for i, point in enumerate(route) if is_near(hazard, point, threshold_m)]


def affected_points(
    hazard: Hazard, route: Sequence[tuple[float, float]], threshold_m: float
) -> list[Coordinate]:
    return [Coordinate(*route[i]) for i in affected_indices(hazard, route, threshold_m)]


def _group(indices: list[int], split_gaps: bool) -> list[list[int]]:
    if not split_gaps:
        return [indices]
    runs: list[list[int]] = []
    for i in indices:
        if runs and i == runs[-1][-1] + 1:
            runs[-1].append(i)
        else:
            runs.append([i])
    return runs


def segments_for(
    hazard: Hazard,
    route: Sequence[tuple[float, float]],
    threshold_m: float,
    split_gaps: bool = False,
) -> list[AffectedSegment]:
    """Drawable segments for one hazard; [] when fewer than two points are affected."""
    indices = affected_indices(hazard, route, threshold_m)
    segments = []
    for group in _group(indices, split_gaps):
        if len(group) < MIN_SEGMENT_POINTS:
            continue
        segments.append(
            AffectedSegment(
                points=tuple(Coordinate(*route[i]) for i in group),
                start_index=group[0],
                end_index=group[-1],
            )
        )
    return segments


def correlate(
    route: Iterable[tuple[float, float]],
    hazards: Iterable[Hazard],
    threshold_m: float,
    split_gaps: bool = False,
) -> dict[Hazard, list[AffectedSegment]]:
    """
    Map every hazard relevant to the route onto its affected segments.

    Keys keep the order the hazards were supplied in. A relevant hazard whose
    affected points cannot form a line maps to an empty list; hazards that are
    not relevant are left out entirely.
    """
    check_threshold(threshold_m)
    # Materialised once; every hazard is checked against the same points
    points = tuple(Coordinate(*p) for p in route)
    result: dict[Hazard, list[AffectedSegment]] = {}
    if not points:
        return result

    for hazard in hazards:
        try:
            if not is_relevant(hazard, points, threshold_m):
                continue
            result[hazard] = segments_for(hazard, points, threshold_m, split_gaps)
        except MissingFieldError as exc:
            logger.warning("Skipping hazard during correlation: %s", exc)
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping hazard %s with unusable coordinates: %s", hazard.id, exc)

    logger.debug(
        "Correlated %d hazard(s) against a %d-point route (threshold %.0f m)",
        len(result), len(points), threshold_m,
    )
    return result
