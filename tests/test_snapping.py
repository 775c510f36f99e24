import uuid

import pytest

from fiberplant.models.plant import FiberCable
from fiberplant.services.geodesic import haversine_distance
from fiberplant.services.snapping import cable_endpoints, find_nearest_endpoint


def _cable(name, coordinates):
    return FiberCable(id=uuid.uuid4(), name=name, coordinates=coordinates)


def test_cable_endpoints_start_then_end():
    cable = _cable("Feeder", [[0.0, 0.0], [0.0, 0.001], [0.0, 0.002]])
    endpoints = list(cable_endpoints([cable]))
    assert [e.is_start for e in endpoints] == [True, False]
    assert endpoints[0].point == (0.0, 0.0)
    assert endpoints[1].point == (0.0, 0.002)


def test_cable_endpoints_skip_degenerate_cables():
    assert list(cable_endpoints([_cable("Stub", [[0.0, 0.0]])])) == []


def test_snaps_to_nearest_endpoint_within_threshold():
    cable = _cable("Feeder", [[0.0, 0.0], [0.0, 0.001]])
    match = find_nearest_endpoint((0.0, 0.0011), [cable], threshold_m=15)
    assert match is not None
    assert match.endpoint.cable_id == cable.id
    assert match.endpoint.is_start is False
    assert match.endpoint.point == (0.0, 0.001)
    assert match.distance_m == pytest.approx(11.1, abs=0.2)


def test_threshold_is_inclusive():
    cable = _cable("Feeder", [[0.0, 0.0], [0.0, 0.001]])
    candidate = (0.0, 0.0011)
    distance = haversine_distance(candidate, (0.0, 0.001))
    assert find_nearest_endpoint(candidate, [cable], threshold_m=distance) is not None
    assert find_nearest_endpoint(candidate, [cable], threshold_m=distance - 1e-9) is None


def test_no_match_beyond_default_threshold():
    cable = _cable("Feeder", [[0.0, 0.0], [0.0, 0.001]])
    # roughly 22 m east of the end point
    assert find_nearest_endpoint((0.0, 0.0012), [cable]) is None


def test_picks_the_closest_of_several_endpoints():
    far = _cable("Far", [[0.0, 0.0], [0.0, 0.00105]])
    near = _cable("Near", [[0.0, 0.00102], [0.001, 0.00102]])
    match = find_nearest_endpoint((0.0, 0.00101), [far, near], threshold_m=15)
    assert match.endpoint.cable_name == "Near"
    assert match.endpoint.is_start is True


def test_equal_distances_keep_the_first_endpoint():
    first = _cable("First", [[0.0, 0.0], [0.0, 0.001]])
    second = _cable("Second", [[0.0, 0.001], [0.001, 0.001]])
    match = find_nearest_endpoint((0.0, 0.001), [first, second], threshold_m=15)
    assert match.endpoint.cable_name == "First"
    assert match.distance_m == 0.0


def test_empty_plant_never_snaps():
    assert find_nearest_endpoint((0.0, 0.0), [], threshold_m=1000) is None
