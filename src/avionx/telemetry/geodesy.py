"""
Planar and great-circle helpers for latitude/longitude math.

Everything here is a pure function of its arguments. Angles are degrees at
the boundary and converted to radians only where trigonometry needs them.
"""

from __future__ import annotations

import math
from typing import Final, Protocol

EARTH_RADIUS_M: Final[float] = 6_371_000.0
METERS_PER_DEGREE_LAT: Final[float] = 111_320.0


class HasLatLon(Protocol):
    @property
    def latitude(self) -> float: ...

    @property
    def longitude(self) -> float: ...


# ---------------------------------------- #


def normalize_heading(deg: float) -> float:
    h = deg % 360.0
    # -1e-17 % 360.0 == 360.0 in floating point
    if h >= 360.0:
        h = 0.0
    return h


# ---------------------------------------- #


def distance(a: HasLatLon, b: HasLatLon) -> float:
    """Great-circle distance in meters (haversine)."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    )
    # Rounding can push h a hair past 1 for antipodal points.
    h = min(1.0, max(0.0, h))
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


# ---------------------------------------- #


def bearing(origin: HasLatLon, target: HasLatLon) -> float:
    """
    Initial bearing from origin toward target, degrees in [0, 360).

    0 = north, 90 = east. Coincident points give 0.0.
    """
    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(target.latitude)
    d_lon = math.radians(target.longitude - origin.longitude)

    y = math.sin(d_lon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        d_lon
    )
    if x == 0.0 and y == 0.0:
        return 0.0

    return normalize_heading(math.degrees(math.atan2(y, x)))


# ---------------------------------------- #


def meters_per_degree_lon(latitude: float) -> float:
    return METERS_PER_DEGREE_LAT * math.cos(math.radians(latitude))


# ---------------------------------------- #


def offset(
    latitude: float, longitude: float, north_m: float, east_m: float
) -> tuple[float, float]:
    """
    Shift a position by a small north/east displacement in meters.

    Flat-earth approximation; the longitude scale is taken at the starting
    latitude. Latitude is clamped to the poles and longitude wrapped into
    [-180, 180).
    """
    new_lat = latitude + north_m / METERS_PER_DEGREE_LAT

    lon_scale = meters_per_degree_lon(latitude)
    new_lon = longitude
    if abs(lon_scale) > 1e-9:
        new_lon = longitude + east_m / lon_scale

    new_lat = min(90.0, max(-90.0, new_lat))
    if not -180.0 <= new_lon <= 180.0:
        new_lon = (new_lon + 180.0) % 360.0 - 180.0
    return new_lat, new_lon
