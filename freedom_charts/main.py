"""
Freedom x GDP charts: load the freedom and Penn World Table panels, build
the descriptive tables and render every chart into an output directory.

Runs top to bottom once; any failure (unreachable source, malformed CSV)
stops the run before the remaining charts are rendered.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from . import plotting
from .artifacts import resolve_output_dir, save_figure, save_table
from .config import (
    BOUNDARIES_SOURCE,
    FREEDOM_SOURCE,
    FREEDOM_YEAR,
    GDP_YEAR,
    OUTPUT_FORMATS,
    PWT_SOURCE,
)
from .geo import boundary_table, join_boundaries, load_boundaries
from .pipeline import run_pipeline

logger = logging.getLogger(__name__)

# payload key -> (file stem, write index)
TABLES: Dict[str, tuple[str, bool]] = {
    "crosstab_status_region": ("crosstab_status_region", True),
    "crosstab_status_ldc": ("crosstab_status_ldc", True),
    "crosstab_status_region_pct": ("crosstab_status_region_pct", True),
    "mean_cl_by_status": ("mean_cl_by_status", False),
    "mean_cl_by_status_ldc": ("mean_cl_by_status_ldc", False),
    "joined": ("joined", False),
}


def build_figures(payload: Dict[str, pd.DataFrame], geojson: dict) -> Dict[str, object]:
    """Build every chart from the pipeline payload and the boundary GeoJSON."""
    map_table = join_boundaries(boundary_table(geojson), payload["freedom"])
    return {
        "status_bar": plotting.status_bar(payload["status_counts"]),
        "status_ldc_grouped": plotting.grouped_mean_bar(payload["mean_cl_by_status_ldc"]),
        "status_ldc_stacked": plotting.stacked_mean_bar(payload["mean_cl_by_status_ldc"]),
        "region_status_share": plotting.proportion_bar(payload["region_status_share"]),
        "status_pie": plotting.status_pie(payload["status_counts"]),
        "cl_histogram": plotting.histogram_fixed(payload["cl_histogram"]),
        "log_gdp_histogram": plotting.histogram_auto(payload["joined"]),
        "cl_trend": plotting.trend_line(payload["cl_trend"]),
        "cl_map": plotting.choropleth_map(map_table, geojson),
    }


def write_outputs(
    payload: Dict[str, pd.DataFrame],
    figures: Dict[str, object],
    out_dir: Path,
    fmt: str = "html",
) -> List[Path]:
    """Write the descriptive tables and every figure; return the paths written."""
    written: List[Path] = []
    for key, (stem, index) in TABLES.items():
        written.append(save_table(payload[key], out_dir / stem, index=index))
    for name, fig in figures.items():
        written.append(save_figure(fig, out_dir / name, fmt=fmt))
    return written


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Render descriptive charts from the freedom and Penn World Table panels."
    )
    parser.add_argument(
        "--freedom-source",
        default=FREEDOM_SOURCE,
        help="Path or URL to the freedom panel CSV (default: configured URL).",
    )
    parser.add_argument(
        "--pwt-source",
        default=PWT_SOURCE,
        help="Path or URL to the Penn World Table CSV (default: $PWT_SOURCE, or "
        "pwt.csv under $DATA_BASE_URL; required when neither is set).",
    )
    parser.add_argument(
        "--boundaries-source",
        default=BOUNDARIES_SOURCE,
        help="Path or URL to the country boundary GeoJSON (default: Natural Earth).",
    )
    parser.add_argument(
        "--freedom-year",
        type=int,
        default=FREEDOM_YEAR,
        help=f"Survey year kept from the freedom panel (default: {FREEDOM_YEAR}).",
    )
    parser.add_argument(
        "--gdp-year",
        type=int,
        default=GDP_YEAR,
        help=f"Year of GDP joined to the freedom rows (default: {GDP_YEAR}).",
    )
    parser.add_argument(
        "--out-dir",
        default=None,
        help="Directory for charts and tables (default: $CHARTS_OUTPUT_DIR or ./output).",
    )
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default="html",
        help="Chart file format; png/svg need kaleido (default: html).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO).",
    )
    args = parser.parse_args(argv)
    if not args.pwt_source:
        parser.error(
            "no Penn World Table source; set PWT_SOURCE or DATA_BASE_URL, or pass --pwt-source"
        )
    return args


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    payload = run_pipeline(
        freedom_source=args.freedom_source,
        pwt_source=args.pwt_source,
        freedom_year=args.freedom_year,
        gdp_year=args.gdp_year,
    )
    geojson = load_boundaries(args.boundaries_source)
    figures = build_figures(payload, geojson)

    out_dir = resolve_output_dir(args.out_dir)
    written = write_outputs(payload, figures, out_dir, fmt=args.format)

    print("\n--- FREEDOM CHARTS COMPLETE ---")
    print(
        f"Freedom {args.freedom_year}: {len(payload['freedom'])} countries | "
        f"GDP {args.gdp_year} matched: {len(payload['joined'])}"
    )
    print(f"\nSaved outputs to {out_dir}/:")
    for path in written:
        print(f"  - {path.name}")
    print("\nMean CL by status:")
    print(payload["mean_cl_by_status"])


if __name__ == "__main__":
    main()
