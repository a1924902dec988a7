"""
Geospatial helpers for report locations.

Stored points follow GeoJSON order: ``coordinates == [longitude, latitude]``.
"""

import math
from typing import Dict, Optional

EARTH_RADIUS_METERS = 6371000


def geo_point(latitude: float, longitude: float) -> Dict:
    return {"type": "Point", "coordinates": [longitude, latitude]}


def point_lat_lon(geolocation: Optional[Dict]):
    """(latitude, longitude) of a stored GeoJSON point, or None."""
    if not geolocation:
        return None
    coordinates = geolocation.get("coordinates") or []
    if len(coordinates) != 2:
        return None
    longitude, latitude = coordinates
    return latitude, longitude


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c
