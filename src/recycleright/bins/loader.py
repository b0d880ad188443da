"""
Recycling bin dataset loader.

The dataset is a GeoJSON FeatureCollection (the data.gov.sg "Recycling Bins" export).
Only each feature's `geometry.coordinates[0:2]` (longitude, latitude) is used; properties
and altitude are ignored. We validate the shape with Pydantic so a broken file fails
loudly at startup instead of producing odd distances later.
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from recycleright.core.env import resolve_project_path
from recycleright.core.geo import GeoPoint

logger = logging.getLogger(__name__)

PACKAGED_DATASET = "recycling_bins.geojson"


class BinDatasetError(RuntimeError):
    """The bin dataset is missing or malformed; no query can be served."""


class _Geometry(BaseModel):
    coordinates: list[float] = Field(..., min_length=2)


class _Feature(BaseModel):
    geometry: _Geometry


class _FeatureCollection(BaseModel):
    features: list[_Feature]


_COLLECTION_ADAPTER = TypeAdapter(_FeatureCollection)


def parse_bin_coordinates(payload: object) -> tuple[GeoPoint, ...]:
    """Extract an ordered tuple of bin coordinates from a decoded GeoJSON document."""
    try:
        collection = _COLLECTION_ADAPTER.validate_python(payload)
    except ValidationError as e:
        raise BinDatasetError(f"Invalid bin dataset: {e}") from e
    return tuple(
        GeoPoint(lon=f.geometry.coordinates[0], lat=f.geometry.coordinates[1]) for f in collection.features
    )


def _read_dataset_text(path: str | Path | None) -> tuple[str, str]:
    if path is None:
        source = f"recycleright.data/{PACKAGED_DATASET}"
        text = resources.files("recycleright.data").joinpath(PACKAGED_DATASET).read_text(encoding="utf-8")
        return source, text
    resolved = resolve_project_path(path)
    return str(resolved), resolved.read_text(encoding="utf-8")


def load_bin_coordinates(path: str | Path | None = None) -> tuple[GeoPoint, ...]:
    """Load the bin dataset from `path`, or the packaged dataset when `path` is None.

    Raises:
        BinDatasetError: If the file is missing, not JSON, or not a feature collection.
    """
    try:
        source, text = _read_dataset_text(path)
        payload = json.loads(text)
    except (OSError, ValueError) as e:
        raise BinDatasetError(f"Could not read bin dataset {path or PACKAGED_DATASET}: {e}") from e

    bins = parse_bin_coordinates(payload)
    logger.info("Loaded %d recycling bins from %s", len(bins), source)
    return bins
