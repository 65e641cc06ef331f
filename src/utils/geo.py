import math
from typing import Iterable, Tuple

EARTH_RADIUS_METERS = 6371e3


def haversine_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two coordinates in meters"""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def centroid(points: Iterable[Tuple[float, float]]) -> Tuple[float, float]:
    """Arithmetic mean of (lat, lng) pairs; adequate for city-scale groups"""
    points = list(points)
    if not points:
        return 0.0, 0.0
    return (
        sum(lat for lat, _ in points) / len(points),
        sum(lng for _, lng in points) / len(points),
    )
