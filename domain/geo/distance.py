"""Geo Bounded Context - Distance Services.

Pure distance functions. NO I/O.

Two metrics live here on purpose:
- haversine on a 6371 km sphere, used for the coverage radius test
- WGS84 geodesic (pyproj) for reporting route lengths in meters
"""

from __future__ import annotations

import math
from collections.abc import Iterable

import numpy as np
from numpy.typing import ArrayLike, NDArray
from pyproj import Geod

from domain.geo.value_objects import GeoPoint

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
EARTH_RADIUS_KM = 6371.0

# WGS84 ellipsoid for geodesic calculations (same as GPS, EPSG:4326)
_geod = Geod(ellps="WGS84")


# ---------------------------------------------------------------------------
# Haversine
# ---------------------------------------------------------------------------
def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two coordinates in kilometers.

    Standard haversine on a sphere of radius EARTH_RADIUS_KM. ``a`` is clamped
    to [0, 1] so rounding near antipodes cannot leave the sqrt domain.

    Args:
        lat1: Latitude of the first point (degrees)
        lon1: Longitude of the first point (degrees)
        lat2: Latitude of the second point (degrees)
        lon2: Longitude of the second point (degrees)

    Returns:
        Distance in kilometers (>= 0)
    """
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def haversine_matrix_km(
    lats_a: ArrayLike, lons_a: ArrayLike, lats_b: ArrayLike, lons_b: ArrayLike
) -> NDArray[np.float64]:
    """Pairwise haversine distances, shape ``(len(a), len(b))``.

    Vectorized counterpart of :func:`haversine_km`; row i holds the distances
    from point a[i] to every point of b.
    """
    lat_a = np.radians(np.asarray(lats_a, dtype=np.float64))[:, np.newaxis]
    lon_a = np.radians(np.asarray(lons_a, dtype=np.float64))[:, np.newaxis]
    lat_b = np.radians(np.asarray(lats_b, dtype=np.float64))[np.newaxis, :]
    lon_b = np.radians(np.asarray(lons_b, dtype=np.float64))[np.newaxis, :]

    a = (
        np.sin((lat_b - lat_a) / 2) ** 2
        + np.cos(lat_a) * np.cos(lat_b) * np.sin((lon_b - lon_a) / 2) ** 2
    )
    a = np.clip(a, 0.0, 1.0)
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def degrees_to_km(degrees: float) -> float:
    """Arc length of ``degrees`` of a great circle on the haversine sphere.

    0.01 degree is about 1.112 km.
    """
    return math.radians(degrees) * EARTH_RADIUS_KM


# ---------------------------------------------------------------------------
# Geodesic length
# ---------------------------------------------------------------------------
def geodesic_length_m(points: Iterable[GeoPoint]) -> float:
    """WGS84 geodesic length of a polyline in meters.

    A polyline with fewer than two points has length 0.
    """
    pts = list(points)
    if len(pts) < 2:
        return 0.0
    length = _geod.line_length(
        [p.longitude for p in pts], [p.latitude for p in pts]
    )
    return float(abs(length))
