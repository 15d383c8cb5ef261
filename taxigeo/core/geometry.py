"""Distance helpers built on geopy's great-circle model."""

from geopy.distance import great_circle

from taxigeo.core.models import BoundingBox, Coordinate


def distance_km(start: Coordinate, end: Coordinate) -> float:
    return great_circle(start.as_tuple(), end.as_tuple()).km


def is_point_inside_radius(center: Coordinate, point: Coordinate, radius_km: float) -> bool:
    if radius_km < 0:
        raise ValueError("radius_km must be >= 0")
    return distance_km(center, point) <= radius_km


def in_bounding_box(box: BoundingBox, point: Coordinate) -> bool:
    return box.contains(point.lat, point.lon)
