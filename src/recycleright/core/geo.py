from __future__ import annotations
from dataclasses import dataclass
from math import asin, cos, isfinite, nan, radians, sin, sqrt

"""
Geospatial helpers.

Points are (longitude, latitude) in decimal degrees, the order GeoJSON uses.
Nothing here validates ranges: out-of-range values are passed straight through
the trigonometry.
"""

EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class GeoPoint:
    """A longitude/latitude pair in decimal degrees (WGS84)."""

    lon: float
    lat: float


@dataclass(frozen=True)
class BoundingBox:
    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float


# Main island plus the southern and north-eastern offshore islands.
SINGAPORE_BBOX = BoundingBox(min_lon=103.6, min_lat=1.15, max_lon=104.1, max_lat=1.48)


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Compute great-circle distance in meters between two points.

    Returns NaN when any coordinate is non-finite; such a distance never ranks as a nearest bin.
    """
    if not all(isfinite(v) for v in (a.lat, a.lon, b.lat, b.lon)):
        return nan
    lat1 = radians(a.lat)
    lon1 = radians(a.lon)
    lat2 = radians(b.lat)
    lon2 = radians(b.lon)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Out-of-range latitudes can round h just outside [0, 1].
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_M * asin(sqrt(h))


def within_bbox(point: GeoPoint, bbox: BoundingBox = SINGAPORE_BBOX) -> bool:
    """True when `point` lies inside `bbox` (edges inclusive)."""
    return bbox.min_lon <= point.lon <= bbox.max_lon and bbox.min_lat <= point.lat <= bbox.max_lat
