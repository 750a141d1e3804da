"""
Country boundaries for the choropleth and the name harmonisation it needs.

The boundary dataset is a Natural Earth admin-0 GeoJSON FeatureCollection.
It is not bundled: by default it is downloaded from the natural-earth-vector
repository on every run.  Point ``BOUNDARIES_SOURCE`` or
``--boundaries-source`` at a local copy to run offline.  Feature property
names are lower-cased on load so the join key is ``geounit``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

import pandas as pd

from .config import BOUNDARIES_SOURCE, COUNTRY_NAME_FIXES, GEO_KEY
from .fetch import ParseError, load_json
from .pipeline import left_join, unmatched_keys

logger = logging.getLogger(__name__)


def _lower_keys(geojson: dict) -> dict:
    features = []
    for feature in geojson.get("features", []):
        props = feature.get("properties") or {}
        features.append({**feature, "properties": {str(k).lower(): v for k, v in props.items()}})
    return {**geojson, "features": features}


def load_boundaries(source: str | Path = BOUNDARIES_SOURCE) -> dict:
    """Load the boundary FeatureCollection with lower-cased property keys."""
    geojson = load_json(source)
    if not isinstance(geojson, dict) or geojson.get("type") != "FeatureCollection":
        raise ParseError(f"{source} is not a GeoJSON FeatureCollection")
    geojson = _lower_keys(geojson)
    logger.info("Loaded %d boundary features", len(geojson["features"]))
    return geojson


def boundary_table(geojson: dict, key: str = GEO_KEY) -> pd.DataFrame:
    """One row per feature holding its ``key`` property."""
    names = [(f.get("properties") or {}).get(key) for f in geojson.get("features", [])]
    return pd.DataFrame({key: names})


def harmonize_names(
    df: pd.DataFrame, column: str, mapping: Mapping[str, str] = COUNTRY_NAME_FIXES
) -> pd.DataFrame:
    """Rewrite country spellings in ``column`` to the boundary dataset's names."""
    out = df.copy()
    out[column] = out[column].replace(dict(mapping))
    return out


def join_boundaries(
    boundaries: pd.DataFrame,
    table: pd.DataFrame,
    *,
    on: str = "country",
    key: str = GEO_KEY,
) -> pd.DataFrame:
    """
    Left-join the boundary table with ``table`` after harmonising ``on``.

    Every boundary row is kept; rows of ``table`` whose names still do not
    match any boundary are reported and left out.
    """
    harmonized = harmonize_names(table, on)
    missing = unmatched_keys(harmonized, boundaries, on, right_on=key)
    if missing:
        logger.warning(
            "%d names have no boundary after harmonisation: %s", len(missing), missing[:10]
        )
    return left_join(boundaries, harmonized.rename(columns={on: key}), key)
