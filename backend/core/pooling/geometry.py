"""Great-circle geometry between geocoded points.

Straight-line distance is the route-distance proxy for the whole engine;
no road network is consulted. Malformed coordinates are not validated here,
NaN inputs propagate to NaN outputs.
"""

import math

from ..models.domain import Location

EARTH_RADIUS_KM = 6371.0


def haversine_km(loc1: Location, loc2: Location) -> float:
    """Calculate haversine distance in km."""
    lat1 = math.radians(loc1.latitude)
    lat2 = math.radians(loc2.latitude)
    dlat = math.radians(loc2.latitude - loc1.latitude)
    dlon = math.radians(loc2.longitude - loc1.longitude)

    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def bearing_degrees(loc1: Location, loc2: Location) -> float:
    """Calculate initial bearing from loc1 to loc2 in degrees (0-360)."""
    lat1 = math.radians(loc1.latitude)
    lat2 = math.radians(loc2.latitude)
    dlon = math.radians(loc2.longitude - loc1.longitude)

    x = math.sin(dlon) * math.cos(lat2)
    y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)

    bearing = math.degrees(math.atan2(x, y))
    return (bearing + 360) % 360


def angular_difference(bearing1: float, bearing2: float) -> float:
    """Absolute difference between two bearings, wrapped to 0-180."""
    diff = abs(bearing1 - bearing2)
    if diff > 180:
        diff = 360 - diff
    return diff
