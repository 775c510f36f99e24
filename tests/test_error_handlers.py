from __future__ import annotations

import uuid

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fiberplant.api.plant import get_cable_plant, router
from fiberplant.errors import register_error_handlers
from fiberplant.services.cable_plant import CablePlant
from tests.mocks import InMemoryPlantStorage, NonTransactionalPlantStorage

COORDINATES = [[0.0, 0.0], [0.0, 0.001], [0.0, 0.002]]


def _build_app(storage) -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(router, prefix="/api/v1")
    app.dependency_overrides[get_cable_plant] = lambda: CablePlant(storage)

    @app.get("/crash")
    def crash():
        raise RuntimeError("boom")

    return app


@pytest.fixture()
def storage():
    return InMemoryPlantStorage()


@pytest.fixture()
def client(storage):
    return TestClient(_build_app(storage), raise_server_exceptions=False)


def _create_cable(client) -> dict:
    response = client.post(
        "/api/v1/gis/cables", json={"name": "Feeder", "coordinates": COORDINATES}
    )
    assert response.status_code == 201
    return response.json()


def test_create_and_split_over_http(client) -> None:
    cable = _create_cable(client)
    assert cable["length_meters"] == pytest.approx(222.4, abs=1.0)

    response = client.post(f"/api/v1/gis/cables/{cable['id']}/split", json={"index": 1})

    assert response.status_code == 200
    body = response.json()
    assert body["first"]["id"] == cable["id"]
    assert body["second"]["name"] == "Feeder (Part 2)"


def test_validation_error_maps_to_400(client) -> None:
    response = client.post(
        "/api/v1/gis/cables", json={"name": "Stub", "coordinates": [[0.0, 0.0]]}
    )
    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "validation_error"
    assert body["request_id"]


def test_invalid_operation_maps_to_409(client) -> None:
    cable = _create_cable(client)
    response = client.post(
        f"/api/v1/gis/cables/{cable['id']}/trim", json={"side": "start", "count": 2}
    )
    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "invalid_operation"
    assert body["message"] == "Cannot trim - would leave less than 2 points"
    assert body["details"] == {"points": 3, "requested": 2}


def test_split_index_maps_to_400(client) -> None:
    cable = _create_cable(client)
    response = client.post(f"/api/v1/gis/cables/{cable['id']}/split", json={"index": 0})
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_split_index"


def test_missing_cable_maps_to_404(client) -> None:
    response = client.get(f"/api/v1/gis/cables/{uuid.uuid4()}")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_storage_failure_maps_to_503(client, storage) -> None:
    storage.fail_on["create_label"] = 0
    response = client.post(
        "/api/v1/gis/labels", json={"name": "Mast", "latitude": 6.5, "longitude": 3.3}
    )
    assert response.status_code == 503
    assert response.json()["code"] == "persistence_error"


def test_partial_failure_maps_to_500() -> None:
    storage = NonTransactionalPlantStorage()
    client = TestClient(_build_app(storage), raise_server_exceptions=False)
    cable = _create_cable(client)
    storage.fail_on["create_cable"] = 0
    storage.fail_on["update_cable"] = 1

    response = client.post(f"/api/v1/gis/cables/{cable['id']}/split", json={"index": 1})

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "partial_failure"
    assert body["details"] == {"cable_id": cable["id"]}


def test_request_validation_maps_to_422(client) -> None:
    response = client.post("/api/v1/gis/cables", json={"name": "No geometry"})
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert isinstance(body["details"], list)


def test_request_id_is_echoed(client) -> None:
    response = client.get(
        f"/api/v1/gis/cables/{uuid.uuid4()}", headers={"x-request-id": "req-42"}
    )
    assert response.headers["x-request-id"] == "req-42"
    assert response.json()["request_id"] == "req-42"


def test_unhandled_error_maps_to_500(client) -> None:
    response = client.get("/crash")
    assert response.status_code == 500
    assert response.json()["code"] == "internal_error"


def test_application_mounts_plant_routes() -> None:
    from fiberplant.main import app

    client = TestClient(app)
    assert client.get("/health").json() == {"status": "ok"}
    paths = {route.path for route in app.routes}
    assert "/api/v1/gis/cables/{cable_id}/split" in paths
    assert "/api/v1/gis/snap" in paths
