#Purpose: Straight-line distance math.
#Great-circle (haversine) distance between two (lat, lon) points, in meters.
#Rounded to whole meters, matching what the mobile apps display.
#No HTTP, no ranking rules.

import math
from typing import Tuple

LatLon = Tuple[float, float]

EARTH_RADIUS_M = 6378137 #WGS-84 equatorial radius


def haversine_m(origin: LatLon, destination: LatLon, radius_m: float = EARTH_RADIUS_M) -> float:
    """
    Great-circle distance in meters between origin and destination, both (lat, lon) in degrees.
    """
    lat1, lon1 = map(math.radians, origin)
    lat2, lon2 = map(math.radians, destination)

    delta_lat = lat2 - lat1
    delta_lon = lon2 - lon1

    a = math.sin(delta_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lon / 2) ** 2
    #clamp against float drift for antipodal points
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(max(0.0, 1 - a)))

    return float(round(radius_m * c))


def meters_to_km(distance_m: float, decimals: int = 2) -> float:
    return round(distance_m / 1000, decimals)


def format_km(distance_km: float, decimals: int = 2) -> str:
    return f"{distance_km:.{decimals}f} km"
