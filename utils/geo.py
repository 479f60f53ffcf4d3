from typing import Tuple, Optional
from math import cos, radians, sin, sqrt, atan2

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = 6371000.0


def haversine(lat1: float, lon1: float, lat2: float, lon2: float, radius: float = EARTH_RADIUS_KM) -> float:
    """
    Great-circle distance between two points using the Haversine formula.
    The result is in the unit of `radius` (km by default, pass EARTH_RADIUS_M for meters).
    """
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)

    a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return radius * c


def distance_km(point_a: Tuple[float, float], point_b: Tuple[float, float]) -> float:
    """
    Calculate distance between two (lat, lon) points in kilometers
    """
    return haversine(point_a[0], point_a[1], point_b[0], point_b[1], EARTH_RADIUS_KM)


def distance_m(point_a: Tuple[float, float], point_b: Tuple[float, float]) -> float:
    """
    Calculate distance between two (lat, lon) points in meters
    """
    return haversine(point_a[0], point_a[1], point_b[0], point_b[1], EARTH_RADIUS_M)


# Storage keeps GeoJSON order [longitude, latitude]; API bodies use {lat, lng}.

def to_point(lat: float, lng: float) -> dict:
    return {"type": "Point", "coordinates": [float(lng), float(lat)]}


def point_lat_lng(point: Optional[dict]) -> Optional[Tuple[float, float]]:
    if not point or len(point.get("coordinates") or []) != 2:
        return None
    lng, lat = point["coordinates"]
    return lat, lng


def lat_lng_dict(point: Optional[dict]) -> Optional[dict]:
    coords = point_lat_lng(point)
    if coords is None:
        return None
    return {"lat": coords[0], "lng": coords[1]}


def bounding_box(lat: float, lng: float, radius_km: float) -> Tuple[float, float, float, float]:
    """
    Approximate (min_lat, max_lat, min_lng, max_lng) box around a point, ~111 km per degree.
    """
    lat_delta = radius_km / 111
    lng_delta = radius_km / (111 * cos(radians(lat)))
    return lat - lat_delta, lat + lat_delta, lng - abs(lng_delta), lng + abs(lng_delta)


def format_km(distance: float) -> str:
    return f"{distance:.2f} km"
