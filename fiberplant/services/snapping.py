"""Snap newly drawn points onto existing cable endpoints."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass

from fiberplant.config import settings
from fiberplant.models.plant import FiberCable
from fiberplant.services.geodesic import haversine_distance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CableEndpoint:
    cable_id: uuid.UUID | None
    cable_name: str
    latitude: float
    longitude: float
    is_start: bool

    @property
    def point(self) -> tuple[float, float]:
        return self.latitude, self.longitude


@dataclass(frozen=True)
class SnapMatch:
    endpoint: CableEndpoint
    distance_m: float


def cable_endpoints(cables: Iterable[FiberCable]) -> Iterator[CableEndpoint]:
    """Yield the first and last coordinate of every drawable cable, in order."""
    for cable in cables:
        coordinates = cable.coordinates or []
        if len(coordinates) < 2:
            continue
        first = coordinates[0]
        last = coordinates[-1]
        yield CableEndpoint(
            cable_id=cable.id,
            cable_name=cable.name,
            latitude=float(first[0]),
            longitude=float(first[1]),
            is_start=True,
        )
        yield CableEndpoint(
            cable_id=cable.id,
            cable_name=cable.name,
            latitude=float(last[0]),
            longitude=float(last[1]),
            is_start=False,
        )


def find_nearest_endpoint(
    candidate: Sequence[float],
    cables: Iterable[FiberCable],
    threshold_m: float | None = None,
) -> SnapMatch | None:
    """Return the closest cable endpoint within ``threshold_m`` (inclusive).

    On equal distances the endpoint seen first wins, so the result follows the
    order of ``cables`` (start before end).
    """
    if threshold_m is None:
        threshold_m = settings.gis_snap_threshold_m
    best: SnapMatch | None = None
    for endpoint in cable_endpoints(cables):
        distance = haversine_distance(candidate, endpoint.point)
        if best is None or distance < best.distance_m:
            best = SnapMatch(endpoint=endpoint, distance_m=distance)
    if best is None or best.distance_m > threshold_m:
        return None
    logger.debug(
        "Snapped (%s, %s) to %s endpoint of cable %s (%.2f m)",
        candidate[0],
        candidate[1],
        "start" if best.endpoint.is_start else "end",
        best.endpoint.cable_name,
        best.distance_m,
    )
    return best
