"""Writers for the chart and table artifacts of a run.

Tables are written as CSV and figures as standalone HTML (or PNG/SVG when
the optional ``kaleido`` engine is installed).  Nothing is written back to
the data sources; the only persisted state is the output directory.
"""

import os
import logging
from pathlib import Path
from typing import Optional

import pandas as pd
import plotly.graph_objects as go

from .config import OUTPUT_FORMATS

logger = logging.getLogger(__name__)


def resolve_output_dir(path: Optional[str | Path] = None) -> Path:
    """Select and create the artifact directory.

    The lookup order is:

    1. The explicit ``path`` argument.
    2. The ``CHARTS_OUTPUT_DIR`` environment variable, if set.
    3. An ``output`` folder in the current working directory.
    """
    target = Path(path or os.getenv("CHARTS_OUTPUT_DIR") or "output")
    target = target.expanduser().resolve()
    target.mkdir(parents=True, exist_ok=True)
    return target


def _atomic_to_csv(df: pd.DataFrame, path: Path, *, index: bool = False) -> None:
    """Write a DataFrame to CSV atomically.

    The CSV is first written to a temporary file in the same directory
    and then renamed to the final location.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    df.to_csv(tmp_path, index=index)
    tmp_path.replace(path)


def save_table(df: pd.DataFrame, path: str | Path, *, index: bool = False) -> Path:
    """Write ``df`` as CSV and return the final path."""
    path = Path(path).with_suffix(".csv")
    _atomic_to_csv(df, path, index=index)
    logger.info("Wrote table %s (%d rows)", path.name, len(df))
    return path


def save_figure(fig: go.Figure, path: str | Path, fmt: str = "html") -> Path:
    """Write ``fig`` in ``fmt`` and return the final path.

    ``html`` embeds a link to the plotly.js CDN; ``png`` and ``svg`` need
    ``kaleido``.
    """
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format {fmt!r}; expected one of {OUTPUT_FORMATS}")
    path = Path(path).with_suffix(f".{fmt}")
    path.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "html":
        fig.write_html(path, include_plotlyjs="cdn")
    else:
        fig.write_image(path)
    logger.info("Wrote chart %s", path.name)
    return path
