import math
from typing import Tuple

EARTH_RADIUS_KM = 6371.0

LatLng = Tuple[float, float]


def haversine_km(a: LatLng, b: LatLng) -> float:
    lat1, lng1 = a
    lat2, lng2 = b
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def within_radius(center: LatLng, point: LatLng, radius_km: float) -> bool:
    return haversine_km(center, point) <= radius_km


def parse_lat_lng(value: str) -> LatLng:
    """Parse ``"lat,lng"`` into a validated tuple."""
    try:
        lat_s, lng_s = value.split(",")
        lat, lng = float(lat_s), float(lng_s)
    except ValueError:
        raise ValueError(f"Expected 'lat,lng', got {value!r}")
    if not -90 <= lat <= 90 or not -180 <= lng <= 180:
        raise ValueError(f"Coordinates out of range: {value!r}")
    return lat, lng
