from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from fiberplant.db import get_db
from fiberplant.schemas.customer import CustomerLocationUpdate, CustomerRead
from fiberplant.schemas.plant import (
    CableCreate,
    CableMetadata,
    CableRead,
    CableSplitRead,
    CableSplitRequest,
    CableTrimRequest,
    LabelCreate,
    LabelMetadata,
    LabelRead,
    NetworkPointCreate,
    NetworkPointMetadata,
    NetworkPointRead,
    PlantStateRead,
    PlantStatsRead,
    SnapRead,
    SnapRequest,
)
from fiberplant.services import plant_map
from fiberplant.services.cable_plant import CablePlant
from fiberplant.services.customers import CustomerFeed, SqlAlchemyCustomerFeed
from fiberplant.services.snapping import find_nearest_endpoint
from fiberplant.services.storage import SqlAlchemyPlantStorage

router = APIRouter(prefix="/gis")


def get_cable_plant(db: Session = Depends(get_db)) -> CablePlant:
    return CablePlant(SqlAlchemyPlantStorage(db))


def get_customer_feed(db: Session = Depends(get_db)) -> CustomerFeed:
    return SqlAlchemyCustomerFeed(db)


@router.get("/plant", response_model=PlantStateRead, tags=["gis-plant"])
def get_plant(plant: CablePlant = Depends(get_cable_plant)):
    state = plant.load_state()
    return PlantStateRead(
        cables=[CableRead.model_validate(cable) for cable in state.cables],
        network_points=[
            NetworkPointRead.model_validate(point) for point in state.network_points
        ],
        labels=[LabelRead.model_validate(label) for label in state.labels],
    )


@router.get("/plant/geojson", tags=["gis-plant"])
def get_plant_geojson(
    include_cables: bool = Query(True, description="Include fiber cables"),
    include_points: bool = Query(True, description="Include network points"),
    include_labels: bool = Query(True, description="Include map labels"),
    plant: CablePlant = Depends(get_cable_plant),
):
    """Return the plant as a GeoJSON FeatureCollection."""
    return plant_map.build_plant_geojson(
        plant.load_state(),
        include_cables=include_cables,
        include_points=include_points,
        include_labels=include_labels,
    )


@router.get("/plant/stats", response_model=PlantStatsRead, tags=["gis-plant"])
def get_plant_stats(plant: CablePlant = Depends(get_cable_plant)):
    return plant_map.get_plant_stats(plant.load_state())


@router.post(
    "/cables",
    response_model=CableRead,
    status_code=status.HTTP_201_CREATED,
    tags=["gis-cables"],
)
def create_cable(payload: CableCreate, plant: CablePlant = Depends(get_cable_plant)):
    metadata = CableMetadata.model_validate(payload.model_dump(exclude={"coordinates"}))
    return plant.create_cable(payload.coordinates, metadata)


@router.get("/cables/{cable_id}", response_model=CableRead, tags=["gis-cables"])
def get_cable(cable_id: str, plant: CablePlant = Depends(get_cable_plant)):
    return plant.get_cable(cable_id)


@router.post("/cables/{cable_id}/trim", response_model=CableRead, tags=["gis-cables"])
def trim_cable(
    cable_id: str, payload: CableTrimRequest, plant: CablePlant = Depends(get_cable_plant)
):
    if payload.side == "start":
        return plant.trim_from_start(cable_id, payload.count)
    return plant.trim_from_end(cable_id, payload.count)


@router.post(
    "/cables/{cable_id}/split", response_model=CableSplitRead, tags=["gis-cables"]
)
def split_cable(
    cable_id: str, payload: CableSplitRequest, plant: CablePlant = Depends(get_cable_plant)
):
    result = plant.split_at(cable_id, payload.index)
    return CableSplitRead(
        first=CableRead.model_validate(result.first),
        second=CableRead.model_validate(result.second),
    )


@router.delete(
    "/cables/{cable_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["gis-cables"],
)
def delete_cable(cable_id: str, plant: CablePlant = Depends(get_cable_plant)):
    plant.delete_cable(cable_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/network-points",
    response_model=NetworkPointRead,
    status_code=status.HTTP_201_CREATED,
    tags=["gis-network-points"],
)
def create_network_point(
    payload: NetworkPointCreate, plant: CablePlant = Depends(get_cable_plant)
):
    metadata = NetworkPointMetadata.model_validate(
        payload.model_dump(exclude={"latitude", "longitude"})
    )
    return plant.create_network_point((payload.latitude, payload.longitude), metadata)


@router.delete(
    "/network-points/{point_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["gis-network-points"],
)
def delete_network_point(point_id: str, plant: CablePlant = Depends(get_cable_plant)):
    plant.delete_network_point(point_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/labels",
    response_model=LabelRead,
    status_code=status.HTTP_201_CREATED,
    tags=["gis-labels"],
)
def create_label(payload: LabelCreate, plant: CablePlant = Depends(get_cable_plant)):
    metadata = LabelMetadata.model_validate(
        payload.model_dump(exclude={"latitude", "longitude"})
    )
    return plant.create_label((payload.latitude, payload.longitude), metadata)


@router.delete(
    "/labels/{label_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["gis-labels"],
)
def delete_label(label_id: str, plant: CablePlant = Depends(get_cable_plant)):
    plant.delete_label(label_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/customers/located", response_model=list[CustomerRead], tags=["gis-customers"]
)
def list_located_customers(feed: CustomerFeed = Depends(get_customer_feed)):
    return feed.list_customers_with_coordinates()


@router.get(
    "/customers/unlocated", response_model=list[CustomerRead], tags=["gis-customers"]
)
def list_unlocated_customers(
    search: str | None = Query(default=None, max_length=120),
    feed: CustomerFeed = Depends(get_customer_feed),
):
    return feed.list_customers_without_coordinates(search)


@router.put(
    "/customers/{customer_id}/location",
    response_model=CustomerRead,
    tags=["gis-customers"],
)
def set_customer_location(
    customer_id: int,
    payload: CustomerLocationUpdate,
    feed: CustomerFeed = Depends(get_customer_feed),
):
    return feed.set_customer_coordinates(customer_id, payload.latitude, payload.longitude)


@router.post("/snap", response_model=SnapRead | None, tags=["gis-plant"])
def snap_to_endpoint(payload: SnapRequest, plant: CablePlant = Depends(get_cable_plant)):
    """Resolve a clicked point to the nearest cable endpoint, or null."""
    match = find_nearest_endpoint(
        (payload.latitude, payload.longitude), plant.list_cables(), payload.threshold_m
    )
    if match is None:
        return None
    endpoint = match.endpoint
    return SnapRead(
        cable_id=endpoint.cable_id,
        cable_name=endpoint.cable_name,
        latitude=endpoint.latitude,
        longitude=endpoint.longitude,
        is_start=endpoint.is_start,
        distance_m=match.distance_m,
    )
