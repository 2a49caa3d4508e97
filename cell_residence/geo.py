"""Geospatial utilities (no external dependencies)."""

from __future__ import annotations

import math
from typing import Iterable

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute Haversine distance in kilometers between two lat/lon points.

    Args:
        lat1: Latitude 1 in degrees.
        lon1: Longitude 1 in degrees.
        lat2: Latitude 2 in degrees.
        lon2: Longitude 2 in degrees.

    Returns:
        Distance in kilometers.
    """

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_KM * c


def mean_center(coords: Iterable[tuple[float, float]]) -> tuple[float, float]:
    """Arithmetic mean of (lat, lon) pairs.

    Raises:
        ValueError: If coords is empty.
    """

    sum_lat = sum_lon = 0.0
    n = 0
    for lat, lon in coords:
        sum_lat += lat
        sum_lon += lon
        n += 1
    if n == 0:
        raise ValueError("坐标为空，无法计算中心点")
    return sum_lat / n, sum_lon / n


def center_of_gravity(coords: Iterable[tuple[float, float]]) -> tuple[float, float]:
    """Geographic midpoint of (lat, lon) pairs.

    Each point is mapped to a unit vector, the vectors are averaged and the
    mean vector is projected back to latitude/longitude.

    Raises:
        ValueError: If coords is empty.
    """

    x = y = z = 0.0
    n = 0
    for lat, lon in coords:
        phi = math.radians(lat)
        lam = math.radians(lon)
        x += math.cos(phi) * math.cos(lam)
        y += math.cos(phi) * math.sin(lam)
        z += math.sin(phi)
        n += 1
    if n == 0:
        raise ValueError("坐标为空，无法计算中心点")
    x /= n
    y /= n
    z /= n
    lat = math.degrees(math.atan2(z, math.sqrt(x * x + y * y)))
    lon = math.degrees(math.atan2(y, x))
    return lat, lon
