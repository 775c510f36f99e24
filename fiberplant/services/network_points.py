"""Rules for FAT / closure / splitter sites."""

from __future__ import annotations

import enum
from collections.abc import Iterable

from fiberplant.models.plant import NetworkPoint

HIGH_UTILIZATION = 0.80
MEDIUM_UTILIZATION = 0.50


class UtilizationBand(enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


def utilization_ratio(used_ports: int, capacity: int) -> float:
    if capacity <= 0:
        return 0.0
    return used_ports / capacity


def utilization_band(point: NetworkPoint) -> UtilizationBand:
    """Band of ``used_ports / capacity``; both thresholds are exclusive."""
    ratio = utilization_ratio(point.used_ports or 0, point.capacity or 0)
    if ratio > HIGH_UTILIZATION:
        return UtilizationBand.high
    if ratio > MEDIUM_UTILIZATION:
        return UtilizationBand.medium
    return UtilizationBand.low


def normalize_signals(signals: Iterable[str] | None) -> list[str]:
    """Strip signal labels and drop blanks, keeping their order."""
    if not signals:
        return []
    cleaned = []
    for signal in signals:
        value = (signal or "").strip()
        if value:
            cleaned.append(value)
    return cleaned


def free_ports(point: NetworkPoint) -> int:
    return max((point.capacity or 0) - (point.used_ports or 0), 0)
