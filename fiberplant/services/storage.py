"""Storage gateway for the cable plant.

The plant services only talk to :class:`PlantStorage`; the SQLAlchemy
implementation below is what the application wires in, and tests may pass
any object with the same shape.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator, Mapping
from contextlib import AbstractContextManager, contextmanager
from typing import Any, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fiberplant.errors import NotFoundError, PersistenceError
from fiberplant.models.plant import FiberCable, GisLabel, NetworkPoint

logger = logging.getLogger(__name__)

TModel = TypeVar("TModel", FiberCable, NetworkPoint, GisLabel)


class PlantStorage(Protocol):
    """Persistence interface for cables, network points and labels."""

    # False means transaction() only groups calls and cannot undo them.
    supports_transactions: bool

    def transaction(self) -> AbstractContextManager[None]: ...

    def create_cable(self, cable: FiberCable) -> FiberCable: ...
    def get_cable(self, cable_id: uuid.UUID) -> FiberCable | None: ...
    def update_cable(self, cable_id: uuid.UUID, changes: Mapping[str, Any]) -> FiberCable: ...
    def delete_cable(self, cable_id: uuid.UUID) -> bool: ...
    def list_cables(self) -> list[FiberCable]: ...

    def create_network_point(self, point: NetworkPoint) -> NetworkPoint: ...
    def get_network_point(self, point_id: uuid.UUID) -> NetworkPoint | None: ...
    def update_network_point(
        self, point_id: uuid.UUID, changes: Mapping[str, Any]
    ) -> NetworkPoint: ...
    def delete_network_point(self, point_id: uuid.UUID) -> bool: ...
    def list_network_points(self) -> list[NetworkPoint]: ...

    def create_label(self, label: GisLabel) -> GisLabel: ...
    def get_label(self, label_id: uuid.UUID) -> GisLabel | None: ...
    def delete_label(self, label_id: uuid.UUID) -> bool: ...
    def list_labels(self) -> list[GisLabel]: ...


class SqlAlchemyPlantStorage:
    """Session-backed gateway.

    Outside :meth:`transaction` every write commits immediately. Inside it,
    writes are only flushed and the outermost block commits once or rolls
    everything back.
    """

    supports_transactions = True

    def __init__(self, db: Session) -> None:
        self.db = db
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        except Exception:
            self._depth -= 1
            if self._depth == 0:
                self.db.rollback()
                logger.info("Rolled back plant transaction")
            raise
        self._depth -= 1
        if self._depth == 0:
            self._commit()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Plant commit failed")
            raise PersistenceError("Failed to save fiber plant changes") from exc

    def _flush(self, what: str) -> None:
        try:
            self.db.flush()
        except SQLAlchemyError as exc:
            if self._depth == 0:
                self.db.rollback()
            logger.exception("Failed to write %s", what)
            raise PersistenceError(f"Failed to save {what}") from exc

    def _write(self, entity: TModel) -> TModel:
        self._flush(type(entity).__name__)
        if self._depth == 0:
            self._commit()
            self.db.refresh(entity)
        return entity

    def _create(self, entity: TModel) -> TModel:
        self.db.add(entity)
        return self._write(entity)

    def _get(self, model: type[TModel], entity_id: uuid.UUID) -> TModel | None:
        try:
            return self.db.get(model, entity_id)
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to load {model.__name__}") from exc

    def _update(
        self, model: type[TModel], entity_id: uuid.UUID, changes: Mapping[str, Any]
    ) -> TModel:
        entity = self._get(model, entity_id)
        if entity is None:
            raise NotFoundError(f"{model.__name__} {entity_id} not found")
        for key, value in changes.items():
            setattr(entity, key, value)
        return self._write(entity)

    def _delete(self, model: type[TModel], entity_id: uuid.UUID) -> bool:
        entity = self._get(model, entity_id)
        if entity is None:
            return False
        self.db.delete(entity)
        self._flush(model.__name__)
        if self._depth == 0:
            self._commit()
        return True

    def _list(self, model: type[TModel], *order_by) -> list[TModel]:
        try:
            return self.db.query(model).order_by(*order_by).all()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to list {model.__name__}") from exc

    def create_cable(self, cable: FiberCable) -> FiberCable:
        return self._create(cable)

    def get_cable(self, cable_id: uuid.UUID) -> FiberCable | None:
        return self._get(FiberCable, cable_id)

    def update_cable(self, cable_id: uuid.UUID, changes: Mapping[str, Any]) -> FiberCable:
        return self._update(FiberCable, cable_id, changes)

    def delete_cable(self, cable_id: uuid.UUID) -> bool:
        return self._delete(FiberCable, cable_id)

    def list_cables(self) -> list[FiberCable]:
        return self._list(FiberCable, FiberCable.created_at.asc(), FiberCable.name.asc())

    def create_network_point(self, point: NetworkPoint) -> NetworkPoint:
        return self._create(point)

    def get_network_point(self, point_id: uuid.UUID) -> NetworkPoint | None:
        return self._get(NetworkPoint, point_id)

    def update_network_point(
        self, point_id: uuid.UUID, changes: Mapping[str, Any]
    ) -> NetworkPoint:
        return self._update(NetworkPoint, point_id, changes)

    def delete_network_point(self, point_id: uuid.UUID) -> bool:
        return self._delete(NetworkPoint, point_id)

    def list_network_points(self) -> list[NetworkPoint]:
        return self._list(NetworkPoint, NetworkPoint.created_at.asc(), NetworkPoint.name.asc())

    def create_label(self, label: GisLabel) -> GisLabel:
        return self._create(label)

    def get_label(self, label_id: uuid.UUID) -> GisLabel | None:
        return self._get(GisLabel, label_id)

    def delete_label(self, label_id: uuid.UUID) -> bool:
        return self._delete(GisLabel, label_id)

    def list_labels(self) -> list[GisLabel]:
        return self._list(GisLabel, GisLabel.created_at.asc(), GisLabel.name.asc())
