from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from fiberplant.models.plant import CableType, NetworkPointType, PlantStatus

# Name and capacity are deliberately unconstrained here: the plant services
# reject empty names and non-positive capacities with their own errors.


class CoreSignal(BaseModel):
    core: int
    signal: str = ""


class CableMetadata(BaseModel):
    name: str = Field(default="", max_length=160)
    description: str | None = None
    cable_type: CableType = CableType.fiber
    fiber_count: int = 12
    core_signals: list[CoreSignal] | None = None
    status: PlantStatus = PlantStatus.active
    color: str = Field(default="#3b82f6", max_length=16)


class CableCreate(CableMetadata):
    coordinates: list[tuple[float, float]]


class CableRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    coordinates: list[tuple[float, float]]
    cable_type: CableType
    length_meters: float
    fiber_count: int
    core_signals: dict[str, str]
    status: PlantStatus
    color: str
    created_at: datetime
    updated_at: datetime


class CableTrimRequest(BaseModel):
    side: Literal["start", "end"]
    count: int = 1


class CableSplitRequest(BaseModel):
    index: int


class CableSplitRead(BaseModel):
    first: CableRead
    second: CableRead


class NetworkPointMetadata(BaseModel):
    name: str = Field(default="", max_length=160)
    description: str | None = None
    point_type: NetworkPointType = NetworkPointType.fat
    capacity: int = 8
    available_signals: list[str] = Field(default_factory=list)
    status: PlantStatus = PlantStatus.active
    color: str = Field(default="#f97316", max_length=16)


class NetworkPointCreate(NetworkPointMetadata):
    latitude: float
    longitude: float


class NetworkPointRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    point_type: NetworkPointType
    latitude: float
    longitude: float
    capacity: int
    used_ports: int
    available_signals: list[str]
    assigned_customer_ids: list[int]
    status: PlantStatus
    color: str
    created_at: datetime
    updated_at: datetime


class LabelMetadata(BaseModel):
    name: str = Field(default="", max_length=160)
    description: str | None = None
    label_type: str = Field(default="poi", max_length=60)
    icon: str | None = Field(default=None, max_length=60)
    color: str = Field(default="#8b5cf6", max_length=16)


class LabelCreate(LabelMetadata):
    latitude: float
    longitude: float


class LabelRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    label_type: str
    latitude: float
    longitude: float
    icon: str | None = None
    color: str
    created_at: datetime


class PlantStateRead(BaseModel):
    cables: list[CableRead]
    network_points: list[NetworkPointRead]
    labels: list[LabelRead]


class PlantStatsRead(BaseModel):
    cables: int
    network_points: int
    labels: int
    total_cable_length_m: float
    total_cable_length_display: str
    cables_by_type: dict[str, int]
    points_by_band: dict[str, int]


class SnapRequest(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    threshold_m: float | None = Field(default=None, ge=0)


class SnapRead(BaseModel):
    cable_id: UUID
    cable_name: str
    latitude: float
    longitude: float
    is_start: bool
    distance_m: float
