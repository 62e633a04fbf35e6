# geo_utils.py
# Distance helpers for route and trip measurement.
# Works on plain degrees or Coord values; the tracker injects great_circle_distance.

import math
from typing import Sequence

from .models import Coord


EARTH_RADIUS_M = 6_371_000.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points in metres.

    Args:
        lat1, lon1: Origin in decimal degrees.
        lat2, lon2: Destination in decimal degrees.

    Returns:
        Distance in metres.
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def great_circle_distance(a: Coord, b: Coord) -> float:
    """Haversine distance between two coordinates in metres."""
    return haversine_distance(a.lat, a.lon, b.lat, b.lon)


def path_length(points: Sequence[Coord]) -> float:
    """Sum of the great-circle distances between consecutive points."""
    return sum(
        great_circle_distance(points[i], points[i + 1])
        for i in range(len(points) - 1)
    )
