"""
Nearest recycling bin lookup.

A single pass over the bin dataset keeps a bounded buffer of the K closest bins,
sorted ascending by distance:

- The buffer starts as K sentinel slots at (0, 0) with distance `inf`, so the result
  always has exactly K entries. Callers treat `inf` as "no bin for this slot".
- Each bin is inserted to the right of any entry with an equal distance, then the
  buffer is cut back to K. On ties the bin seen earlier in the dataset stays and a
  later bin equal to the current K-th distance is dropped.
- Distances are plain floats compared with `<`; nothing is rounded. A non-finite
  coordinate gives a NaN distance, which never compares smaller and is skipped.

The computation never raises for float input: out-of-range coordinates just produce
meaningless (but well-typed) distances.
"""

from __future__ import annotations

import math
from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterable

from recycleright.config.settings import Settings
from recycleright.core.geo import GeoPoint, SINGAPORE_BBOX, haversine_m, within_bbox
from recycleright.domain.models import NearestBin

from .loader import load_bin_coordinates

DEFAULT_K = 3
SENTINEL_POINT = GeoPoint(lon=0.0, lat=0.0)


@dataclass(frozen=True)
class CandidateEntry:
    coordinates: GeoPoint
    distance: float


def _distance(entry: CandidateEntry) -> float:
    return entry.distance


def nearest_candidates(origin: GeoPoint, bins: Iterable[GeoPoint], k: int = DEFAULT_K) -> list[CandidateEntry]:
    """Return the `k` bins closest to `origin`, nearest first, padded with sentinels."""
    if k < 1:
        raise ValueError("k must be >= 1")

    buffer = [CandidateEntry(coordinates=SENTINEL_POINT, distance=math.inf) for _ in range(k)]
    for point in bins:
        d = haversine_m(origin, point)
        idx = bisect_right(buffer, d, key=_distance)
        if idx >= k:
            continue
        buffer.insert(idx, CandidateEntry(coordinates=point, distance=d))
        buffer.pop()
    return buffer


def format_nearest(entries: Iterable[CandidateEntry]) -> list[NearestBin]:
    """Map tracker entries to the public `{longitude, latitude, distance}` records."""
    return [
        NearestBin(longitude=e.coordinates.lon, latitude=e.coordinates.lat, distance=e.distance)
        for e in entries
    ]


@dataclass(frozen=True)
class BinLocator:
    """The loaded bin dataset plus the result size; safe to share across threads."""

    bins: tuple[GeoPoint, ...]
    k: int = DEFAULT_K

    def nearest(self, current_longitude: float, current_latitude: float) -> list[NearestBin]:
        origin = GeoPoint(lon=float(current_longitude), lat=float(current_latitude))
        return format_nearest(nearest_candidates(origin, self.bins, self.k))

    def in_service_area(self, current_longitude: float, current_latitude: float) -> bool:
        return within_bbox(GeoPoint(lon=float(current_longitude), lat=float(current_latitude)), SINGAPORE_BBOX)


def build_locator(settings: Settings) -> BinLocator:
    """Load the configured dataset once and wrap it in a `BinLocator`."""
    return BinLocator(bins=load_bin_coordinates(settings.bins.path), k=settings.bins.k)
