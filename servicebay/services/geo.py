"""Great-circle distance and near-query helpers."""

from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0
_KM_PER_DEGREE_LAT = 111.32


def haversine_km(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """Distance between two (longitude, latitude) points in kilometres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(lon: float, lat: float, radius_km: float) -> tuple[float, float, float, float]:
    """(min_lon, min_lat, max_lon, max_lat) enclosing a circle of ``radius_km``.

    Used as a cheap SQL pre-filter; callers still check the exact distance.
    """
    dlat = radius_km / _KM_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(lat))
    dlon = 180.0 if cos_lat < 1e-6 else min(180.0, radius_km / (_KM_PER_DEGREE_LAT * cos_lat))
    return lon - dlon, max(-90.0, lat - dlat), lon + dlon, min(90.0, lat + dlat)


def longitude_ranges(min_lon: float, max_lon: float) -> list[tuple[float, float]]:
    """Split a bounding-box longitude span into ranges inside [-180, 180].

    A box that crosses the antimeridian becomes two ranges; one spanning the
    whole globe collapses to [-180, 180].
    """
    if max_lon - min_lon >= 360:
        return [(-180.0, 180.0)]
    if min_lon < -180:
        return [(min_lon + 360, 180.0), (-180.0, max_lon)]
    if max_lon > 180:
        return [(min_lon, 180.0), (-180.0, max_lon - 360)]
    return [(min_lon, max_lon)]
