"""Map-facing views of the cable plant."""

from __future__ import annotations

from collections import Counter

from fiberplant.services.cable_plant import PlantState
from fiberplant.services.geodesic import distance_display
from fiberplant.services.network_points import UtilizationBand, free_ports, utilization_band


def build_plant_geojson(
    state: PlantState,
    *,
    include_cables: bool = True,
    include_points: bool = True,
    include_labels: bool = True,
) -> dict:
    """Build plant assets as a GeoJSON FeatureCollection.

    GeoJSON positions are ``[lng, lat]``, the reverse of the stored order.
    """
    features: list[dict] = []

    if include_cables:
        for cable in state.cables:
            features.append(
                {
                    "type": "Feature",
                    "geometry": {
                        "type": "LineString",
                        "coordinates": [[lng, lat] for lat, lng in cable.coordinates],
                    },
                    "properties": {
                        "id": str(cable.id),
                        "type": "fiber_cable",
                        "name": cable.name,
                        "cable_type": cable.cable_type.value if cable.cable_type else None,
                        "fiber_count": cable.fiber_count,
                        "length_meters": cable.length_meters,
                        "length_display": distance_display(cable.length_meters or 0.0),
                        "status": cable.status.value if cable.status else None,
                        "color": cable.color,
                    },
                }
            )

    if include_points:
        for point in state.network_points:
            features.append(
                {
                    "type": "Feature",
                    "geometry": {
                        "type": "Point",
                        "coordinates": [point.longitude, point.latitude],
                    },
                    "properties": {
                        "id": str(point.id),
                        "type": "network_point",
                        "name": point.name,
                        "point_type": point.point_type.value if point.point_type else None,
                        "capacity": point.capacity,
                        "used_ports": point.used_ports,
                        "free_ports": free_ports(point),
                        "utilization_band": utilization_band(point).value,
                        "status": point.status.value if point.status else None,
                        "color": point.color,
                    },
                }
            )

    if include_labels:
        for label in state.labels:
            features.append(
                {
                    "type": "Feature",
                    "geometry": {
                        "type": "Point",
                        "coordinates": [label.longitude, label.latitude],
                    },
                    "properties": {
                        "id": str(label.id),
                        "type": "label",
                        "name": label.name,
                        "label_type": label.label_type,
                        "icon": label.icon,
                        "color": label.color,
                    },
                }
            )

    return {"type": "FeatureCollection", "features": features}


def get_plant_stats(state: PlantState) -> dict:
    """Return summary statistics for the plant."""
    total_length = sum(cable.length_meters or 0.0 for cable in state.cables)
    cables_by_type = Counter(
        cable.cable_type.value for cable in state.cables if cable.cable_type
    )
    points_by_band = {band.value: 0 for band in UtilizationBand}
    for point in state.network_points:
        points_by_band[utilization_band(point).value] += 1
    return {
        "cables": len(state.cables),
        "network_points": len(state.network_points),
        "labels": len(state.labels),
        "total_cable_length_m": total_length,
        "total_cable_length_display": distance_display(total_length),
        "cables_by_type": dict(cables_by_type),
        "points_by_band": points_by_band,
    }
