"""Core pipeline logic: filter, aggregate and join the freedom and GDP panels.

This module turns two raw tables into the chart-ready views:

* The freedom panel, which provides civil-liberties (CL) and political
  rights (PR) scores, a freedom ``Status``, region and least-developed
  country flag per country and year.
* The macroeconomic panel (Penn World Table), which provides real GDP
  (``rgdpo``) per country and year.

The primary entry point is :func:`run_pipeline`, which loads both sources
and returns a dictionary of DataFrames (see :func:`build_payload`).  Every
helper is a pure function returning a new DataFrame.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from .config import (
    CL_BIN_EDGES,
    FREEDOM_COLUMNS,
    FREEDOM_DROP_COLUMNS,
    FREEDOM_SOURCE,
    FREEDOM_YEAR,
    GDP_YEAR,
    LDC_CODES,
    LDC_ORDER,
    MARGIN_LABEL,
    MISSING_LABEL,
    PWT_COLUMNS,
    PWT_SOURCE,
    STATUS_CODES,
    STATUS_ORDER,
)
from .fetch import ensure_columns, load_freedom, load_macro

# Module‑level logger
logger = logging.getLogger(__name__)


def _as_list(cols: str | Sequence[str]) -> List[str]:
    return [cols] if isinstance(cols, str) else list(cols)


# ---------------------------------------------------------------------------
# Filter / project
# ---------------------------------------------------------------------------


def filter_year(df: pd.DataFrame, year: int, *, year_col: str = "year") -> pd.DataFrame:
    """Return a copy holding only the rows observed in ``year``.

    Missing or non-numeric year values are excluded.
    """
    years = pd.to_numeric(df[year_col], errors="coerce")
    mask = (years == year).fillna(False).astype(bool)
    return df.loc[mask].copy()


def project(df: pd.DataFrame, exclude: Sequence[str]) -> pd.DataFrame:
    """Return a copy of ``df`` without the ``exclude`` columns (absent names are ignored)."""
    return df.drop(columns=list(exclude), errors="ignore").copy()


def recode(df: pd.DataFrame, column: str, mapping: Mapping) -> pd.DataFrame:
    """Replace raw codes in ``column`` with labels; unmapped values are kept."""
    out = df.copy()
    out[column] = out[column].map(lambda value: mapping.get(value, value))
    return out


def coerce_enum(
    df: pd.DataFrame,
    columns: Sequence[str],
    *,
    categories: Optional[Mapping[str, Sequence[str]]] = None,
) -> pd.DataFrame:
    """Convert string columns to pandas categoricals.

    Parameters
    ----------
    df : pd.DataFrame
        Input data.
    columns : Sequence[str]
        Columns to convert.
    categories : Mapping[str, Sequence[str]], optional
        Known vocabulary per column.  Known values lead in the given order
        (and the categorical is ordered); values outside the vocabulary are
        appended as extra categories rather than being dropped.

    Returns
    -------
    pd.DataFrame
        A copy with the converted columns.
    """
    out = df.copy()
    categories = categories or {}
    for col in columns:
        known = list(categories.get(col, []))
        if not known:
            out[col] = out[col].astype("category")
            continue
        unseen = [v for v in pd.unique(out[col].dropna()) if v not in known]
        out[col] = pd.Categorical(
            out[col], categories=known + sorted(unseen, key=str), ordered=True
        )
    return out


# ---------------------------------------------------------------------------
# Aggregation helpers
# ---------------------------------------------------------------------------


def group_mean(
    df: pd.DataFrame,
    group_cols: str | Sequence[str],
    value_col: str,
    *,
    name: Optional[str] = None,
) -> pd.DataFrame:
    """Mean of ``value_col`` per group.

    Missing group keys form their own group.  Missing values are skipped
    inside each group; a group with no values at all gets NaN.  The output
    column is named ``mean_<value_col>`` (lower-cased) unless ``name`` is
    given.
    """
    keys = _as_list(group_cols)
    name = name or f"mean_{value_col.lower()}"
    values = pd.to_numeric(df[value_col], errors="coerce")
    return (
        df[keys]
        .assign(**{value_col: values})
        .groupby(keys, dropna=False, observed=True)[value_col]
        .mean()
        .reset_index(name=name)
    )


def _labels(series: pd.Series) -> tuple[pd.Series, List[str]]:
    """String labels for a key column plus their display order."""
    labels = series.astype(object).where(series.notna(), MISSING_LABEL).astype(str)
    if isinstance(series.dtype, pd.CategoricalDtype):
        order = [str(c) for c in series.cat.categories]
    else:
        order = sorted(set(labels) - {MISSING_LABEL})
    present = set(labels)
    order = [label for label in order if label in present]
    if MISSING_LABEL in present:
        order.append(MISSING_LABEL)
    return labels, order


def cross_tab_count(df: pd.DataFrame, row_var: str, col_var: str) -> pd.DataFrame:
    """Contingency table of counts with ``config.MARGIN_LABEL`` margins.

    Parameters
    ----------
    df : pd.DataFrame
        Input data.
    row_var, col_var : str
        Columns spanning the rows and columns of the table.  Missing keys
        are counted under ``config.MISSING_LABEL``.

    Returns
    -------
    pd.DataFrame
        Counts indexed by ``row_var`` labels with one column per
        ``col_var`` label, plus a margin column and a margin row.
        The bottom-right cell equals ``len(df)``.

    Raises
    ------
    ValueError
        If a row or column label equals the margin label.
    """
    rows, row_order = _labels(df[row_var])
    cols, col_order = _labels(df[col_var])
    table = pd.crosstab(rows, cols).reindex(
        index=row_order, columns=col_order, fill_value=0
    )
    if MARGIN_LABEL in row_order or MARGIN_LABEL in col_order:
        raise ValueError(f"{MARGIN_LABEL!r} is reserved for the cross-tab margins")
    table[MARGIN_LABEL] = table.sum(axis=1)
    table.loc[MARGIN_LABEL] = table.sum(axis=0)
    return table.astype(int)


def cross_tab_percent(df: pd.DataFrame, row_var: str, col_var: str) -> pd.DataFrame:
    """Row percentages of :func:`cross_tab_count` (each row sums to 100)."""
    counts = cross_tab_count(df, row_var, col_var).drop(
        index=MARGIN_LABEL, columns=MARGIN_LABEL
    )
    return counts.div(counts.sum(axis=1), axis=0) * 100


def count_share(
    df: pd.DataFrame,
    group_cols: str | Sequence[str],
    *,
    within: Optional[str] = None,
) -> pd.DataFrame:
    """Row counts per group with their percentage share.

    ``pct`` is the share of each group among all rows, or among the rows
    sharing the same ``within`` value when it is given.
    """
    keys = _as_list(group_cols)
    counts = df.groupby(keys, dropna=False, observed=True).size().reset_index(name="n")
    if within is None:
        total = counts["n"].sum()
    else:
        total = counts.groupby(within, dropna=False, observed=True)["n"].transform("sum")
    counts["pct"] = counts["n"] / total * 100
    return counts


def cumulative_label(
    agg: pd.DataFrame,
    outer: str,
    inner: str,
    value_col: str,
    *,
    name: str = "label_y",
) -> pd.DataFrame:
    """Running sum of ``value_col`` inside each ``outer`` group.

    Rows are sorted by ``outer`` then ``inner`` (categorical order is
    respected) so ``name`` gives the top of each stacked segment.  Only
    used to position stacked-bar text labels.
    """
    out = agg.sort_values([outer, inner], kind="stable").reset_index(drop=True)
    out[name] = out.groupby(outer, dropna=False, observed=True)[value_col].cumsum()
    return out


def histogram_counts(series: pd.Series, edges: Sequence[float]) -> pd.DataFrame:
    """Count values per right-closed bin; the lowest edge is included."""
    values = pd.to_numeric(series, errors="coerce").dropna()
    bins = pd.cut(values, bins=list(edges), right=True, include_lowest=True)
    counts = bins.value_counts(sort=False)
    return pd.DataFrame(
        {
            "left": list(edges[:-1]),
            "right": list(edges[1:]),
            "count": counts.to_numpy(dtype=int),
        }
    )


# ---------------------------------------------------------------------------
# Join helpers
# ---------------------------------------------------------------------------


def unmatched_keys(
    left: pd.DataFrame,
    right: pd.DataFrame,
    on: str,
    *,
    right_on: Optional[str] = None,
) -> List[str]:
    """Sorted ``left`` keys that have no counterpart in ``right``."""
    right_keys = set(right[right_on or on].dropna())
    return sorted(str(k) for k in set(left[on].dropna()) - right_keys)


def warn_duplicates(df: pd.DataFrame, keys: str | Sequence[str]) -> int:
    """Log a warning when rows repeat on ``keys``; return how many repeat."""
    cols = _as_list(keys)
    dupes = df.duplicated(cols, keep="first")
    n_dupes = int(dupes.sum())
    if n_dupes:
        repeated = df.loc[dupes, cols].drop_duplicates().astype(str)
        logger.warning(
            "%d duplicate rows on %r; they are counted more than once: %s",
            n_dupes,
            cols,
            [tuple(row) for row in repeated.itertuples(index=False)][:10],
        )
    return n_dupes


def left_join(left: pd.DataFrame, right: pd.DataFrame, on: str) -> pd.DataFrame:
    """Attach at most one ``right`` row to each ``left`` row.

    When several ``right`` rows share a key the first one wins.  Rows of
    ``left`` without a match get missing values; overlapping non-key
    columns from ``right`` are suffixed with ``_right``.
    """
    dupes = right[on].duplicated(keep="first")
    if dupes.any():
        logger.warning(
            "Dropping %d duplicate join keys on %r (first match wins): %s",
            int(dupes.sum()),
            on,
            sorted(str(k) for k in right.loc[dupes, on].unique())[:10],
        )
    return left.merge(
        right.loc[~dupes],
        on=on,
        how="left",
        suffixes=("", "_right"),
        validate="many_to_one",
    )


def drop_missing(df: pd.DataFrame, column: str) -> pd.DataFrame:
    """Return a copy without rows missing ``column``."""
    return df.dropna(subset=[column]).copy()


def log_transform(df: pd.DataFrame, column: str, new_column: str) -> pd.DataFrame:
    """Add ``new_column = ln(column)``.

    Non-positive inputs are not guarded: they yield ``-inf`` or NaN and
    are only reported in the log.
    """
    out = df.copy()
    values = pd.to_numeric(out[column], errors="coerce")
    non_positive = int((values <= 0).sum())
    if non_positive:
        logger.warning(
            "%d non-positive values in %r; log is undefined for them", non_positive, column
        )
    with np.errstate(divide="ignore", invalid="ignore"):
        out[new_column] = np.log(values)
    return out


# ---------------------------------------------------------------------------
# Dataset preparation
# ---------------------------------------------------------------------------


def clean_freedom(raw: pd.DataFrame) -> pd.DataFrame:
    """Recode, project and type the full freedom panel (all years)."""
    ensure_columns(raw, FREEDOM_COLUMNS)
    df = raw.copy()
    df["year"] = pd.to_numeric(df["year"], errors="coerce").astype("Int64")
    for col in ("CL", "PR"):
        df[col] = pd.to_numeric(df[col], errors="coerce")
    df = recode(df, "Status", STATUS_CODES)
    df = recode(df, "is_ldc", LDC_CODES)
    df = project(df, FREEDOM_DROP_COLUMNS)
    return coerce_enum(
        df,
        ["Status", "Region_Name", "is_ldc"],
        categories={"Status": STATUS_ORDER, "is_ldc": LDC_ORDER},
    )


def prepare_freedom(raw: pd.DataFrame, year: int = FREEDOM_YEAR) -> pd.DataFrame:
    """Clean the freedom panel and keep the survey ``year`` only."""
    freedom = filter_year(clean_freedom(raw), year)
    warn_duplicates(freedom, ["country", "year"])
    return freedom


def prepare_macro(raw: pd.DataFrame, year: int = GDP_YEAR) -> pd.DataFrame:
    """Keep ``countrycode, country, year, rgdpo`` for the GDP ``year``."""
    ensure_columns(raw, PWT_COLUMNS)
    df = raw.copy()
    df["year"] = pd.to_numeric(df["year"], errors="coerce").astype("Int64")
    df["rgdpo"] = pd.to_numeric(df["rgdpo"], errors="coerce")
    df = filter_year(df, year)
    return project(df, [c for c in df.columns if c not in PWT_COLUMNS])


def build_joined(freedom: pd.DataFrame, macro: pd.DataFrame) -> pd.DataFrame:
    """Left-join freedom rows to GDP by country, drop missing GDP, add ``log_rgdpo``."""
    gdp = project(macro, ["year"])
    missing = unmatched_keys(freedom, gdp, "country")
    if missing:
        logger.info(
            "%d countries have no GDP match and will be dropped: %s",
            len(missing),
            missing[:10],
        )
    joined = drop_missing(left_join(freedom, gdp, "country"), "rgdpo")
    joined = log_transform(joined, "rgdpo", "log_rgdpo")
    logger.info("Joined table: %d of %d countries kept", len(joined), len(freedom))
    return joined.reset_index(drop=True)


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def build_payload(
    raw_freedom: pd.DataFrame,
    raw_macro: pd.DataFrame,
    *,
    freedom_year: int = FREEDOM_YEAR,
    gdp_year: int = GDP_YEAR,
) -> Dict[str, pd.DataFrame]:
    """Derive every chart and table view from the two raw panels.

    Returns
    -------
    Dict[str, pd.DataFrame]
        ``freedom_panel`` (all years), ``freedom`` and ``macro`` (single
        year), ``joined``, ``status_counts``, ``mean_cl_by_status``,
        ``mean_cl_by_status_ldc`` (with ``label_y``), ``region_status_share``,
        ``crosstab_status_region``, ``crosstab_status_ldc``,
        ``crosstab_status_region_pct``, ``cl_histogram`` and ``cl_trend``.
    """
    panel = clean_freedom(raw_freedom)
    freedom = filter_year(panel, freedom_year)
    macro = prepare_macro(raw_macro, gdp_year)
    warn_duplicates(freedom, ["country", "year"])

    if freedom.empty or macro.empty:
        raise ValueError(
            f"No rows remain after filtering to freedom year {freedom_year} "
            f"({len(freedom)} rows) and GDP year {gdp_year} ({len(macro)} rows)."
        )
    logger.info(
        "Freedom %d: %d rows | GDP %d: %d rows",
        freedom_year,
        len(freedom),
        gdp_year,
        len(macro),
    )

    by_status_ldc = group_mean(freedom, ["Status", "is_ldc"], "CL")
    return {
        "freedom_panel": panel,
        "freedom": freedom,
        "macro": macro,
        "joined": build_joined(freedom, macro),
        "status_counts": count_share(freedom, "Status"),
        "mean_cl_by_status": group_mean(freedom, "Status", "CL"),
        "mean_cl_by_status_ldc": cumulative_label(by_status_ldc, "Status", "is_ldc", "mean_cl"),
        "region_status_share": count_share(
            freedom, ["Region_Name", "Status"], within="Region_Name"
        ),
        "crosstab_status_region": cross_tab_count(freedom, "Status", "Region_Name"),
        "crosstab_status_ldc": cross_tab_count(freedom, "Status", "is_ldc"),
        "crosstab_status_region_pct": cross_tab_percent(freedom, "Status", "Region_Name"),
        "cl_histogram": histogram_counts(freedom["CL"], CL_BIN_EDGES),
        "cl_trend": group_mean(panel, ["year", "Region_Name"], "CL"),
    }


def run_pipeline(
    *,
    freedom_source: str | Path = FREEDOM_SOURCE,
    pwt_source: Optional[str | Path] = PWT_SOURCE,
    freedom_year: int = FREEDOM_YEAR,
    gdp_year: int = GDP_YEAR,
) -> Dict[str, pd.DataFrame]:
    """Load both panels and return the payload of :func:`build_payload`.

    Parameters
    ----------
    freedom_source, pwt_source : str or Path, optional
        Location (URL or path) of the freedom and Penn World Table CSVs.
        ``pwt_source`` has no default location; see :func:`fetch.load_macro`.
    freedom_year : int, optional
        Survey year kept from the freedom panel.  Defaults to 2020.
    gdp_year : int, optional
        Year of GDP joined onto the freedom rows.  Defaults to 2010.
    """
    raw_freedom = load_freedom(freedom_source)
    raw_macro = load_macro(pwt_source)
    return build_payload(
        raw_freedom, raw_macro, freedom_year=freedom_year, gdp_year=gdp_year
    )
