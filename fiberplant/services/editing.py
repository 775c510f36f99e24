"""Interactive map editing as an explicit state machine.

The state is an immutable value and every transition is a plain function of
``(state, event) -> state``; :class:`EditingSession` holds the current state
for one editor and turns commits into plant mutations.

    Idle --select_tool--> DrawingLine | PlacingLabel | PlacingNetworkPoint
                          | PlacingCustomerPin
    DrawingLine --click--> DrawingLine (point appended, snapped if close)
    Placing* --click--> Placing* (location recorded once)
    any --commit / cancel--> Idle
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from fiberplant.errors import InvalidTransitionError, ValidationError
from fiberplant.models.customer import Customer
from fiberplant.models.plant import FiberCable, GisLabel, NetworkPoint
from fiberplant.schemas.plant import CableMetadata, LabelMetadata, NetworkPointMetadata
from fiberplant.services.cable_plant import CablePlant
from fiberplant.services.common import validate_location
from fiberplant.services.customers import CustomerFeed
from fiberplant.services.geodesic import path_length
from fiberplant.services.snapping import find_nearest_endpoint

logger = logging.getLogger(__name__)

LatLng = tuple[float, float]


class EditingTool(enum.Enum):
    line = "line"
    label = "label"
    network_point = "network_point"
    customer_pin = "customer_pin"


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class DrawingLine:
    points: tuple[LatLng, ...] = ()
    # Name of the last cable a click snapped to, for operator feedback only.
    snapped_cable: str | None = None


@dataclass(frozen=True)
class PlacingLabel:
    location: LatLng | None = None


@dataclass(frozen=True)
class PlacingNetworkPoint:
    location: LatLng | None = None


@dataclass(frozen=True)
class PlacingCustomerPin:
    location: LatLng | None = None


SessionState = Idle | DrawingLine | PlacingLabel | PlacingNetworkPoint | PlacingCustomerPin

IDLE = Idle()

_TOOL_STATES = {
    EditingTool.line: DrawingLine,
    EditingTool.label: PlacingLabel,
    EditingTool.network_point: PlacingNetworkPoint,
    EditingTool.customer_pin: PlacingCustomerPin,
}
_PLACING_STATES = (PlacingLabel, PlacingNetworkPoint, PlacingCustomerPin)


def select_tool(state: SessionState, tool: EditingTool) -> SessionState:
    if not isinstance(state, Idle):
        raise InvalidTransitionError(
            "Finish or cancel the current action before choosing another tool"
        )
    return _TOOL_STATES[tool]()


def click(
    state: SessionState,
    location: Sequence[float],
    cables: Iterable[FiberCable] = (),
    threshold_m: float | None = None,
) -> SessionState:
    point = validate_location(location)
    if isinstance(state, DrawingLine):
        match = find_nearest_endpoint(point, cables, threshold_m)
        if match is None:
            return replace(state, points=state.points + (point,))
        return DrawingLine(
            points=state.points + (match.endpoint.point,),
            snapped_cable=match.endpoint.cable_name,
        )
    if isinstance(state, _PLACING_STATES) and state.location is None:
        return replace(state, location=point)
    # Idle, or a location is already waiting for its details.
    return state


def finish_line(state: SessionState) -> tuple[LatLng, ...]:
    if not isinstance(state, DrawingLine):
        raise InvalidTransitionError("No cable is being drawn")
    if len(state.points) < 2:
        raise ValidationError("Please add at least 2 points to create a cable")
    return state.points


def cancel(state: SessionState) -> Idle:
    return IDLE


def drawing_length(state: SessionState) -> float:
    if isinstance(state, DrawingLine):
        return path_length(state.points)
    return 0.0


class EditingSession:
    """One operator's editing context on the map."""

    def __init__(
        self,
        plant: CablePlant,
        customers: CustomerFeed | None = None,
        snap_threshold_m: float | None = None,
    ) -> None:
        self.plant = plant
        self.customers = customers
        self.snap_threshold_m = snap_threshold_m
        self.state: SessionState = IDLE

    @property
    def is_idle(self) -> bool:
        return isinstance(self.state, Idle)

    @property
    def current_length(self) -> float:
        return drawing_length(self.state)

    def select_tool(self, tool: EditingTool | str) -> SessionState:
        self.state = select_tool(self.state, EditingTool(tool))
        logger.debug("Editing tool selected: %s", type(self.state).__name__)
        return self.state

    def click(self, lat: float, lng: float) -> SessionState:
        cables = self.plant.list_cables() if isinstance(self.state, DrawingLine) else ()
        self.state = click(self.state, (lat, lng), cables, self.snap_threshold_m)
        return self.state

    def cancel(self) -> SessionState:
        if not self.is_idle:
            logger.debug("Cancelled %s", type(self.state).__name__)
        self.state = cancel(self.state)
        return self.state

    def commit_line(self, metadata: CableMetadata) -> FiberCable:
        points = finish_line(self.state)
        cable = self.plant.create_cable(points, metadata)
        self.state = IDLE
        return cable

    def _placed_location(self, state_cls: type) -> LatLng:
        if not isinstance(self.state, state_cls):
            raise InvalidTransitionError(f"Session is not in {state_cls.__name__}")
        if self.state.location is None:
            raise ValidationError("Click on the map to choose a location first")
        return self.state.location

    def commit_label(self, metadata: LabelMetadata) -> GisLabel:
        location = self._placed_location(PlacingLabel)
        label = self.plant.create_label(location, metadata)
        self.state = IDLE
        return label

    def commit_network_point(self, metadata: NetworkPointMetadata) -> NetworkPoint:
        location = self._placed_location(PlacingNetworkPoint)
        point = self.plant.create_network_point(location, metadata)
        self.state = IDLE
        return point

    def commit_customer_pin(self, customer_id: int) -> Customer:
        location = self._placed_location(PlacingCustomerPin)
        if self.customers is None:
            raise InvalidTransitionError("No customer feed is attached to this session")
        customer = self.customers.set_customer_coordinates(customer_id, *location)
        self.state = IDLE
        return customer
