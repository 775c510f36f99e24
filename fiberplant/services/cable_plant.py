"""Cable plant aggregate: cables, network points and map labels.

Every mutator validates its input before touching storage and returns the
entities it changed, so callers can patch their local copy of the plant.
``load_state`` remains available for a full reload.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass

from fiberplant.errors import (
    InvalidOperationError,
    InvalidSplitIndexError,
    NotFoundError,
    PartialFailureError,
    PersistenceError,
    ValidationError,
)
from fiberplant.models.plant import (
    CableType,
    FiberCable,
    GisLabel,
    NetworkPoint,
    NetworkPointType,
    PlantStatus,
)
from fiberplant.schemas.plant import (
    CableMetadata,
    CoreSignal,
    LabelMetadata,
    NetworkPointMetadata,
)
from fiberplant.services import geodesic
from fiberplant.services.common import (
    coerce_uuid,
    require_name,
    validate_enum,
    validate_location,
)
from fiberplant.services.network_points import normalize_signals
from fiberplant.services.storage import PlantStorage

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 160


@dataclass(frozen=True)
class SplitResult:
    first: FiberCable
    second: FiberCable


@dataclass(frozen=True)
class PlantState:
    cables: list[FiberCable]
    network_points: list[NetworkPoint]
    labels: list[GisLabel]


def _normalize_points(points: Sequence[Sequence[float]] | None) -> list[list[float]]:
    if not points or len(points) < 2:
        raise ValidationError("A cable needs at least 2 points")
    normalized = []
    for position, point in enumerate(points):
        lat, lng = validate_location(point, label=f"point {position}")
        normalized.append([lat, lng])
    return normalized


def _validate_fiber_count(fiber_count) -> int:
    if isinstance(fiber_count, bool) or not isinstance(fiber_count, int) or fiber_count <= 0:
        raise ValidationError("Fiber count must be a positive integer")
    return fiber_count


def build_core_signals(
    fiber_count: int, core_signals: Sequence[CoreSignal] | None
) -> dict[str, str]:
    """Validate a full per-core signal list and keep only assigned cores.

    ``None`` stands for the blank list a new drawing starts with.
    """
    if core_signals is None:
        return {}
    if len(core_signals) != fiber_count:
        raise ValidationError(
            f"Expected {fiber_count} core signal entries, got {len(core_signals)}"
        )
    cores = sorted(entry.core for entry in core_signals)
    if cores != list(range(1, fiber_count + 1)):
        raise ValidationError(f"Core numbers must cover 1..{fiber_count} exactly once")
    return {
        str(entry.core): entry.signal.strip()
        for entry in sorted(core_signals, key=lambda item: item.core)
        if entry.signal and entry.signal.strip()
    }


def _part_name(name: str, part: int) -> str:
    suffix = f" (Part {part})"
    return name[: NAME_MAX_LENGTH - len(suffix)] + suffix


class CablePlant:
    def __init__(self, storage: PlantStorage, length_precision: int | None = None) -> None:
        self.storage = storage
        self.length_precision = length_precision

    def _length(self, coordinates: Sequence[Sequence[float]]) -> float:
        return geodesic.round_length(geodesic.path_length(coordinates), self.length_precision)

    # Queries

    def get_cable(self, cable_id) -> FiberCable:
        if isinstance(cable_id, FiberCable):
            cable_id = cable_id.id
        cable = self.storage.get_cable(coerce_uuid(cable_id))
        if cable is None:
            raise NotFoundError("Fiber cable not found")
        return cable

    def get_network_point(self, point_id) -> NetworkPoint:
        point = self.storage.get_network_point(coerce_uuid(point_id))
        if point is None:
            raise NotFoundError("Network point not found")
        return point

    def list_cables(self) -> list[FiberCable]:
        return self.storage.list_cables()

    def load_state(self) -> PlantState:
        return PlantState(
            cables=self.storage.list_cables(),
            network_points=self.storage.list_network_points(),
            labels=self.storage.list_labels(),
        )

    # Cables

    def create_cable(
        self, points: Sequence[Sequence[float]], metadata: CableMetadata
    ) -> FiberCable:
        coordinates = _normalize_points(points)
        name = require_name(metadata.name, "Cable")
        fiber_count = _validate_fiber_count(metadata.fiber_count)
        core_signals = build_core_signals(fiber_count, metadata.core_signals)
        cable = FiberCable(
            id=uuid.uuid4(),
            name=name,
            description=(metadata.description or "").strip() or None,
            coordinates=coordinates,
            cable_type=validate_enum(metadata.cable_type, CableType, "cable type"),
            length_meters=self._length(coordinates),
            fiber_count=fiber_count,
            core_signals=core_signals,
            status=validate_enum(metadata.status, PlantStatus, "status"),
            color=metadata.color,
        )
        created = self.storage.create_cable(cable)
        logger.info(
            "Created cable %s (%s): %d points, %.3f m",
            created.id,
            created.name,
            len(coordinates),
            created.length_meters,
        )
        return created

    def _trim(self, cable_id, count: int, from_end: bool) -> FiberCable:
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValidationError("Number of points to trim must be at least 1")
        cable = self.get_cable(cable_id)
        coordinates = list(cable.coordinates)
        if len(coordinates) - count < 2:
            raise InvalidOperationError(
                "Cannot trim - would leave less than 2 points",
                details={"points": len(coordinates), "requested": count},
            )
        remaining = coordinates[:-count] if from_end else coordinates[count:]
        updated = self.storage.update_cable(
            cable.id,
            {"coordinates": remaining, "length_meters": self._length(remaining)},
        )
        logger.info(
            "Trimmed %d point(s) from %s of cable %s, %d left",
            count,
            "end" if from_end else "start",
            updated.id,
            len(remaining),
        )
        return updated

    def trim_from_start(self, cable_id, count: int) -> FiberCable:
        return self._trim(cable_id, count, from_end=False)

    def trim_from_end(self, cable_id, count: int) -> FiberCable:
        return self._trim(cable_id, count, from_end=True)

    def split_at(self, cable_id, index: int) -> SplitResult:
        """Split a cable at an interior vertex into two cables sharing it.

        The first half keeps the original id. Edges before ``index`` go to
        the first half and the rest to the second, so the two lengths add
        up to the original.
        """
        cable = self.get_cable(cable_id)
        coordinates = list(cable.coordinates)
        if (
            isinstance(index, bool)
            or not isinstance(index, int)
            or not 1 <= index <= len(coordinates) - 2
        ):
            raise InvalidSplitIndexError(
                "Invalid split point",
                details={"index": index, "valid_range": [1, len(coordinates) - 2]},
            )
        first_coordinates = coordinates[: index + 1]
        second_coordinates = coordinates[index:]
        original = {
            "name": cable.name,
            "coordinates": coordinates,
            "length_meters": cable.length_meters,
        }
        first_changes = {
            "name": _part_name(cable.name, 1),
            "coordinates": first_coordinates,
            "length_meters": self._length(first_coordinates),
        }
        second = FiberCable(
            id=uuid.uuid4(),
            name=_part_name(cable.name, 2),
            description=cable.description,
            coordinates=second_coordinates,
            cable_type=cable.cable_type,
            length_meters=self._length(second_coordinates),
            fiber_count=cable.fiber_count,
            core_signals=dict(cable.core_signals or {}),
            status=cable.status,
            color=cable.color,
        )

        if self.storage.supports_transactions:
            with self.storage.transaction():
                first_half = self.storage.update_cable(cable.id, first_changes)
                second_half = self.storage.create_cable(second)
        else:
            first_half = self.storage.update_cable(cable.id, first_changes)
            try:
                second_half = self.storage.create_cable(second)
            except PersistenceError:
                self._restore_cable(cable.id, original)
                raise

        logger.info(
            "Split cable %s at point %d, second half is %s",
            first_half.id,
            index,
            second_half.id,
        )
        return SplitResult(first=first_half, second=second_half)

    def _restore_cable(self, cable_id: uuid.UUID, original: dict) -> None:
        try:
            self.storage.update_cable(cable_id, original)
        except PersistenceError as exc:
            logger.error("Could not restore cable %s after a failed split", cable_id)
            raise PartialFailureError(
                "Cable was truncated but its second half was not saved",
                details={"cable_id": str(cable_id)},
            ) from exc
        logger.warning("Restored cable %s after a failed split", cable_id)

    def delete_cable(self, cable_id) -> None:
        cable_uuid = coerce_uuid(cable_id)
        if not self.storage.delete_cable(cable_uuid):
            raise NotFoundError("Fiber cable not found")
        logger.info("Deleted cable %s", cable_uuid)

    # Network points

    def create_network_point(
        self, location: Sequence[float], metadata: NetworkPointMetadata
    ) -> NetworkPoint:
        lat, lng = validate_location(location)
        name = require_name(metadata.name, "Network point")
        capacity = metadata.capacity
        if isinstance(capacity, bool) or not isinstance(capacity, int) or capacity <= 0:
            raise ValidationError("Capacity must be a positive integer")
        point = NetworkPoint(
            id=uuid.uuid4(),
            name=name,
            description=(metadata.description or "").strip() or None,
            point_type=validate_enum(metadata.point_type, NetworkPointType, "point type"),
            latitude=lat,
            longitude=lng,
            capacity=capacity,
            used_ports=0,
            available_signals=normalize_signals(metadata.available_signals),
            assigned_customer_ids=[],
            status=validate_enum(metadata.status, PlantStatus, "status"),
            color=metadata.color,
        )
        created = self.storage.create_network_point(point)
        logger.info(
            "Created %s network point %s (%s) with %d ports",
            created.point_type.value,
            created.id,
            created.name,
            created.capacity,
        )
        return created

    def delete_network_point(self, point_id) -> None:
        point_uuid = coerce_uuid(point_id)
        if not self.storage.delete_network_point(point_uuid):
            raise NotFoundError("Network point not found")
        logger.info("Deleted network point %s", point_uuid)

    # Labels

    def create_label(self, location: Sequence[float], metadata: LabelMetadata) -> GisLabel:
        lat, lng = validate_location(location)
        label = GisLabel(
            id=uuid.uuid4(),
            name=require_name(metadata.name, "Label"),
            description=(metadata.description or "").strip() or None,
            label_type=(metadata.label_type or "poi").strip() or "poi",
            latitude=lat,
            longitude=lng,
            icon=metadata.icon,
            color=metadata.color,
        )
        created = self.storage.create_label(label)
        logger.info("Created label %s (%s)", created.id, created.name)
        return created

    def delete_label(self, label_id) -> None:
        label_uuid = coerce_uuid(label_id)
        if not self.storage.delete_label(label_uuid):
            raise NotFoundError("Label not found")
        logger.info("Deleted label %s", label_uuid)
