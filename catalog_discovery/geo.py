"""Geospatial helpers."""
from __future__ import annotations

import math
from typing import Dict, Iterable, List

from . import config
from .models import BoundingBox, CatalogRecord, CatalogValidationError, Location


def is_valid_coordinates(lat: float, lon: float) -> bool:
    if isinstance(lat, bool) or isinstance(lon, bool):
        return False
    if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
        return False
    if math.isnan(lat) or math.isnan(lon):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def validate_coordinates(lat: float, lon: float, field: str = "coordinates") -> None:
    if not is_valid_coordinates(lat, lon):
        raise CatalogValidationError(
            "invalid_coordinates",
            field,
            f"latitude must be within [-90, 90] and longitude within [-180, 180], got ({lat}, {lon})",
        )


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    validate_coordinates(lat1, lon1, "origin")
    validate_coordinates(lat2, lon2, "destination")
    r = config.EARTH_RADIUS_KM
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return r * c


def record_distance_km(record: CatalogRecord, lat: float, lon: float) -> float:
    return distance_km(lat, lon, record.location.latitude, record.location.longitude)


def bounding_box(records: Iterable[CatalogRecord]) -> BoundingBox:
    records = list(records)
    if not records:
        return BoundingBox(
            north=90.0, south=-90.0, east=180.0, west=-180.0,
            center_latitude=0.0, center_longitude=0.0,
        )

    lats = [r.location.latitude for r in records]
    lons = [r.location.longitude for r in records]
    north, south = max(lats), min(lats)
    east, west = max(lons), min(lons)
    return BoundingBox(
        north=north,
        south=south,
        east=east,
        west=west,
        center_latitude=(north + south) / 2,
        center_longitude=(east + west) / 2,
    )


def point_in_bounding_box(lat: float, lon: float, box: BoundingBox) -> bool:
    if not is_valid_coordinates(lat, lon):
        return False
    return box.south <= lat <= box.north and box.west <= lon <= box.east


def within_radius(
    records: Iterable[CatalogRecord],
    center_lat: float,
    center_lon: float,
    radius_km: float,
) -> List[CatalogRecord]:
    validate_coordinates(center_lat, center_lon, "center")
    return [r for r in records if record_distance_km(r, center_lat, center_lon) <= radius_km]


def sort_by_distance(
    records: Iterable[CatalogRecord],
    center_lat: float,
    center_lon: float,
    ascending: bool = True,
) -> List[CatalogRecord]:
    validate_coordinates(center_lat, center_lon, "center")
    return sorted(
        records,
        key=lambda r: record_distance_km(r, center_lat, center_lon),
        reverse=not ascending,
    )


def location_display_name(location: Location) -> str:
    parts = [location.city]
    if location.region:
        parts.append(location.region)
    parts.append(location.country)
    return ", ".join(parts)


def group_by_location(
    records: Iterable[CatalogRecord],
) -> Dict[str, Dict[str, List[CatalogRecord]]]:
    grouped: Dict[str, Dict[str, List[CatalogRecord]]] = {}
    for record in records:
        by_city = grouped.setdefault(record.location.country, {})
        by_city.setdefault(record.location.city, []).append(record)
    return grouped
