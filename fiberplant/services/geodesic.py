"""Great-circle distance helpers for cable geometry."""

from __future__ import annotations

import math
from collections.abc import Sequence

from fiberplant.config import settings

EARTH_RADIUS_M = 6371000.0

LatLng = tuple[float, float]


def haversine_distance(p1: Sequence[float], p2: Sequence[float]) -> float:
    """Distance in metres between two ``(lat, lng)`` points given in degrees."""
    lat1, lng1 = float(p1[0]), float(p1[1])
    lat2, lng2 = float(p2[0]), float(p2[1])
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lng2 - lng1)
    a = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def path_length(points: Sequence[Sequence[float]]) -> float:
    """Sum of the distances between consecutive points.

    Fewer than two points is a degenerate path with length 0.
    """
    if len(points) < 2:
        return 0.0
    return sum(
        haversine_distance(points[index], points[index + 1])
        for index in range(len(points) - 1)
    )


def round_length(distance_m: float, digits: int | None = None) -> float:
    if digits is None:
        digits = settings.cable_length_precision
    return round(distance_m, digits)


def distance_display(distance_m: float) -> str:
    if distance_m >= 1000:
        return f"{distance_m / 1000:.2f} km"
    return f"{distance_m:.0f} m"
