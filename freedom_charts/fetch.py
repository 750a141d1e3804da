"""
Fetch the freedom panel, the macro panel and the boundary GeoJSON.

Every source may be an ``http(s)`` URL or a local path.  There is no retry:
network failures surface as :class:`NetworkError`, malformed content as
:class:`ParseError`, and either one ends the run.
"""

from __future__ import annotations

import json
import logging
from io import BytesIO
from pathlib import Path
from typing import List, Optional

import pandas as pd
import requests

from .config import (
    DEFAULT_SEP,
    FREEDOM_COLUMNS,
    FREEDOM_SOURCE,
    PWT_COLUMNS,
    PWT_SOURCE,
    REQUEST_TIMEOUT,
)

logger = logging.getLogger(__name__)


class LoaderError(Exception):
    """Base class for failures while loading an input dataset."""


class NetworkError(LoaderError):
    """The resource could not be reached."""


class ParseError(LoaderError):
    """The resource was reached but its content is malformed."""


def ensure_columns(df: pd.DataFrame, required: List[str]) -> None:
    """Raise an error if the DataFrame lacks any of the required columns."""
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise KeyError(f"Missing expected columns: {missing}")


def fetch_bytes(source: str | Path, timeout: int = REQUEST_TIMEOUT) -> bytes:
    """Return the raw content of a URL or local file."""
    source_str = str(source)
    if source_str.lower().startswith(("http://", "https://")):
        try:
            response = requests.get(source_str, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise NetworkError(f"Could not fetch {source_str}: {exc}") from exc
        logger.info("Fetched %s (%d bytes)", source_str, len(response.content))
        return response.content

    path = Path(source)
    if not path.exists():
        raise NetworkError(f"Source not found at {path}")
    return path.read_bytes()


def load_csv(source: str | Path, sep: str = DEFAULT_SEP) -> pd.DataFrame:
    """Fetch and parse a comma-separated table."""
    content = fetch_bytes(source)
    try:
        df = pd.read_csv(BytesIO(content), sep=sep)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise ParseError(f"Malformed CSV at {source}: {exc}") from exc
    if df.empty:
        raise ParseError(f"CSV at {source} has no data rows")
    logger.info("Parsed %s: %d rows x %d columns", source, len(df), df.shape[1])
    return df


def load_json(source: str | Path) -> dict:
    """Fetch and parse a JSON document (used for GeoJSON boundaries)."""
    content = fetch_bytes(source)
    try:
        return json.loads(content)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ParseError(f"Malformed JSON at {source}: {exc}") from exc


def load_freedom(source: str | Path = FREEDOM_SOURCE) -> pd.DataFrame:
    """Load the raw political-freedom panel."""
    df = load_csv(source)
    ensure_columns(df, FREEDOM_COLUMNS)
    return df


def load_macro(source: Optional[str | Path] = PWT_SOURCE) -> pd.DataFrame:
    """Load the raw macroeconomic (Penn World Table) panel.

    There is no built-in default location; ``source`` comes from
    ``PWT_SOURCE``, ``DATA_BASE_URL`` or the caller.
    """
    if not source:
        raise ValueError(
            "No Penn World Table source configured; set PWT_SOURCE or DATA_BASE_URL, "
            "or pass --pwt-source."
        )
    df = load_csv(source)
    ensure_columns(df, PWT_COLUMNS)
    return df
