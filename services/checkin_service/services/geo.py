"""Great-circle distance between GPS coordinates."""

import math

EARTH_RADIUS_M = 6_371_000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Distance in meters between two points given in decimal degrees.

    Uses the Haversine formula on a spherical Earth of radius 6,371 km.
    Symmetric in its two points and 0 for identical coordinates.

    Example:
        >>> round(haversine_distance(0.0, 0.0, 1.0, 0.0))
        111195
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    a = min(a, 1.0)  # rounding near antipodal points
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def is_within_radius(
    lat: float, lon: float, center_lat: float, center_lon: float, radius_m: float
) -> bool:
    """True when (lat, lon) lies within ``radius_m`` of the center, boundary included."""
    return haversine_distance(lat, lon, center_lat, center_lon) <= radius_m
