"""
Great-circle distance helpers for radius filtering.
"""

import math

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Distance between two coordinates in kilometres.

    Examples:
        haversine_km(0, 0, 0, 0) -> 0.0
        haversine_km(44.4268, 26.1025, 46.7712, 23.6236) -> ~324 (Bucharest to Cluj)
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.asin(math.sqrt(a))
