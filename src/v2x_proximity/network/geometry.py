"""Great-circle helpers."""
from __future__ import annotations

import math

from ..domain.models import Coordinate
from ..utils.constants import EARTH_RADIUS_M


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in metres on a spherical Earth."""

    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)

    sin_half_lat = math.sin(d_lat / 2.0)
    sin_half_lon = math.sin(d_lon / 2.0)
    h = sin_half_lat * sin_half_lat + math.cos(lat1) * math.cos(lat2) * sin_half_lon * sin_half_lon
    c = 2.0 * math.atan2(math.sqrt(h), math.sqrt(1.0 - h))
    return EARTH_RADIUS_M * c


__all__ = ["haversine_m"]
