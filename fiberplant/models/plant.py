import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from fiberplant.db import Base


class CableType(enum.Enum):
    drop = "drop"
    adss = "adss"
    fiber = "fiber"
    trunk = "trunk"


class PlantStatus(enum.Enum):
    active = "active"
    planned = "planned"
    maintenance = "maintenance"


class NetworkPointType(enum.Enum):
    fat = "fat"
    closure = "closure"
    splitter = "splitter"
    olt = "olt"
    fdt = "fdt"


class FiberCable(Base):
    __tablename__ = "fiber_cables"
    __table_args__ = (
        CheckConstraint("fiber_count > 0", name="ck_fiber_cables_fiber_count_positive"),
        Index("ix_fiber_cables_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    # [[lat, lng], ...] in degrees
    coordinates: Mapped[list] = mapped_column(JSON, nullable=False)
    cable_type: Mapped[CableType] = mapped_column(Enum(CableType), default=CableType.fiber)
    length_meters: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    fiber_count: Mapped[int] = mapped_column(Integer, nullable=False, default=12)
    # {"<core>": "<signal>"}; cores without a signal are omitted
    core_signals: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    status: Mapped[PlantStatus] = mapped_column(Enum(PlantStatus), default=PlantStatus.active)
    color: Mapped[str] = mapped_column(String(16), default="#3b82f6")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def start(self) -> tuple[float, float]:
        lat, lng = self.coordinates[0]
        return float(lat), float(lng)

    @property
    def end(self) -> tuple[float, float]:
        lat, lng = self.coordinates[-1]
        return float(lat), float(lng)


class NetworkPoint(Base):
    """FAT, closure, splitter, OLT or FDT site on the map."""

    __tablename__ = "network_points"
    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_network_points_capacity_positive"),
        CheckConstraint(
            "used_ports >= 0 AND used_ports <= capacity",
            name="ck_network_points_used_ports_range",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    point_type: Mapped[NetworkPointType] = mapped_column(
        Enum(NetworkPointType), default=NetworkPointType.fat
    )
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=8)
    used_ports: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    available_signals: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    assigned_customer_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[PlantStatus] = mapped_column(Enum(PlantStatus), default=PlantStatus.active)
    color: Mapped[str] = mapped_column(String(16), default="#f97316")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class GisLabel(Base):
    __tablename__ = "gis_labels"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(160), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    label_type: Mapped[str] = mapped_column(String(60), default="poi")
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    icon: Mapped[str | None] = mapped_column(String(60))
    color: Mapped[str] = mapped_column(String(16), default="#8b5cf6")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
