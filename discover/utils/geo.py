"""Geospatial utilities used for distance calculations."""

from __future__ import annotations

from math import atan2, cos, floor, isfinite, radians, sin, sqrt

EARTH_RADIUS_KM = 6371


def valid_coordinates(lat: float | None, lng: float | None) -> bool:
    """Return True when a lat/lng pair is present and inside valid ranges."""

    if lat is None or lng is None:
        return False
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        return False
    if not (isfinite(lat_f) and isfinite(lng_f)):
        return False
    return -90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Calculate distance between two lat/lng points in kilometers.

    Args:
        lat1: Latitude of the first point.
        lng1: Longitude of the first point.
        lat2: Latitude of the second point.
        lng2: Longitude of the second point.

    Returns:
        Great-circle distance in kilometers (unrounded).

    Notes:
        Coordinates are not validated here; use ``valid_coordinates`` first.
    """

    lat1_rad = radians(lat1)
    lat2_rad = radians(lat2)

    delta_lat = radians(lat2 - lat1)
    delta_lng = radians(lng2 - lng1)

    a = sin(delta_lat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(
        delta_lng / 2
    ) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> int:
    """Haversine distance rounded to the nearest whole kilometer.

    Halves round up, so 2.5 km is reported as 3 km.
    """

    return int(floor(haversine_km(lat1, lng1, lat2, lng2) + 0.5))
