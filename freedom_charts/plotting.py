from typing import List

import pandas as pd
import plotly.graph_objects as go

from .config import (
    CHOROPLETH_SCALE,
    DEFAULT_COLOR,
    FIGURE_SIZE,
    GEO_KEY,
    LDC_COLORS,
    STATUS_COLORS,
)


# ============================================================
# Configuration / constants
# ============================================================

PLOT_BGCOLOR = "#f5f7fb"

HOVER_TEMPLATE_MEAN = "%{x}<br>Mean CL: %{y:.2f}<extra>%{fullData.name}</extra>"
HOVER_TEMPLATE_SHARE = "%{x}<br>Share: %{y:.1f}%<extra>%{fullData.name}</extra>"


# ============================================================
# Helper functions
# ============================================================


def _build_palette(
    defaults: dict[str, str], colors: dict[str, str] | None
) -> dict[str, str]:
    """
    Merge user-supplied colors with defaults (user overrides default).
    """
    return {**defaults, **(colors or {})}


def _resolve_color(level: object, palette: dict[str, str]) -> str:
    """
    Get color for a category level, trying both the raw and str-casted key.

    Levels absent from the palette (unseen or missing values) get
    ``DEFAULT_COLOR``.
    """
    color = palette.get(level)  # type: ignore[arg-type]
    if color is not None:
        return color
    return palette.get(str(level), DEFAULT_COLOR)


def _levels(series: pd.Series) -> List[object]:
    """Levels present in ``series``, in categorical order when it has one."""
    present = set(series.dropna())
    if isinstance(series.dtype, pd.CategoricalDtype):
        return [c for c in series.cat.categories if c in present]
    return sorted(present, key=str)


def _finish(fig: go.Figure, title: str, x_title: str = "", y_title: str = "") -> go.Figure:
    width, height = FIGURE_SIZE
    fig.update_layout(
        title=dict(text=f"<b>{title}</b>", x=0.5),
        width=width,
        height=height,
        plot_bgcolor=PLOT_BGCOLOR,
        margin=dict(t=80, l=60, r=40, b=60),
        legend=dict(bordercolor="#c7c7c7", borderwidth=1, bgcolor="#f9f9f9"),
    )
    if x_title:
        fig.update_xaxes(title_text=x_title)
    if y_title:
        fig.update_yaxes(title_text=y_title)
    return fig


# ============================================================
# Bar charts
# ============================================================


def status_bar(
    counts: pd.DataFrame,
    *,
    x: str = "Status",
    value_col: str = "n",
    colors: dict[str, str] | None = None,
) -> go.Figure:
    """Number of countries per freedom status."""
    if counts.empty:
        return go.Figure()
    palette = _build_palette(STATUS_COLORS, colors)
    fig = go.Figure(
        go.Bar(
            x=counts[x].astype(str),
            y=counts[value_col],
            marker_color=[_resolve_color(s, palette) for s in counts[x]],
            text=counts[value_col],
            textposition="outside",
            showlegend=False,
        )
    )
    return _finish(fig, "Countries by Freedom Status", x, "Number of countries")


def grouped_mean_bar(
    agg: pd.DataFrame,
    *,
    x: str = "Status",
    group: str = "is_ldc",
    value_col: str = "mean_cl",
    colors: dict[str, str] | None = None,
) -> go.Figure:
    """
    Side-by-side bars of a group mean, one bar per ``group`` level.

    Parameters
    ----------
    agg : pd.DataFrame
        Output of ``pipeline.group_mean`` over ``[x, group]``.
    x, group : str
        Columns for the x axis and the bar colour.
    value_col : str, default "mean_cl"
        Bar height.
    colors : dict[str, str] | None, default None
        Optional mapping of ``group`` level -> hex color.

    Returns
    -------
    go.Figure
    """
    if agg.empty:
        return go.Figure()
    palette = _build_palette(LDC_COLORS, colors)
    fig = go.Figure()
    for level in _levels(agg[group]):
        sub = agg[agg[group] == level]
        fig.add_trace(
            go.Bar(
                x=sub[x].astype(str),
                y=sub[value_col],
                name=f"{group} = {level}",
                marker_color=_resolve_color(level, palette),
                hovertemplate=HOVER_TEMPLATE_MEAN,
            )
        )
    fig.update_layout(barmode="group", legend_title_text=group)
    return _finish(fig, "Mean Civil Liberties Score by Status and LDC", x, "Mean CL")


def stacked_mean_bar(
    agg: pd.DataFrame,
    *,
    x: str = "Status",
    group: str = "is_ldc",
    value_col: str = "mean_cl",
    label_col: str = "label_y",
    colors: dict[str, str] | None = None,
) -> go.Figure:
    """
    Stacked bars of a group mean with each segment labelled by its value.

    ``agg`` must come from ``pipeline.cumulative_label`` so ``label_col``
    holds the top of every segment.  Traces are stacked in the same
    ``group`` order the running sum used, and labels sit just below the
    segment top.
    """
    if agg.empty:
        return go.Figure()
    palette = _build_palette(LDC_COLORS, colors)
    fig = go.Figure()
    for level in _levels(agg[group]):
        sub = agg[agg[group] == level]
        fig.add_trace(
            go.Bar(
                x=sub[x].astype(str),
                y=sub[value_col],
                name=f"{group} = {level}",
                marker_color=_resolve_color(level, palette),
                hovertemplate=HOVER_TEMPLATE_MEAN,
            )
        )

    labelled = agg.dropna(subset=[label_col])
    fig.add_trace(
        go.Scatter(
            x=labelled[x].astype(str),
            y=labelled[label_col],
            mode="text",
            text=labelled[value_col].round(2).astype(str),
            textposition="bottom center",
            textfont=dict(color="white", size=13),
            showlegend=False,
            hoverinfo="skip",
        )
    )
    fig.update_layout(barmode="stack", legend_title_text=group)
    return _finish(fig, "Mean Civil Liberties Score, Stacked by LDC", x, "Mean CL")


def proportion_bar(
    shares: pd.DataFrame,
    *,
    x: str = "Region_Name",
    group: str = "Status",
    value_col: str = "pct",
    colors: dict[str, str] | None = None,
) -> go.Figure:
    """100% stacked bars: share of each status within every region."""
    if shares.empty:
        return go.Figure()
    palette = _build_palette(STATUS_COLORS, colors)
    fig = go.Figure()
    for level in _levels(shares[group]):
        sub = shares[shares[group] == level]
        fig.add_trace(
            go.Bar(
                x=sub[x].astype(str),
                y=sub[value_col],
                name=str(level),
                marker_color=_resolve_color(level, palette),
                hovertemplate=HOVER_TEMPLATE_SHARE,
            )
        )
    fig.update_layout(barmode="stack", legend_title_text=group)
    fig.update_yaxes(range=[0, 100], ticksuffix="%")
    return _finish(fig, "Freedom Status Within Each Region", x, "Share of countries")


# ============================================================
# Pie / histograms / line
# ============================================================


def status_pie(
    counts: pd.DataFrame,
    *,
    names: str = "Status",
    value_col: str = "n",
    colors: dict[str, str] | None = None,
) -> go.Figure:
    """Share of countries per freedom status."""
    if counts.empty:
        return go.Figure()
    palette = _build_palette(STATUS_COLORS, colors)
    fig = go.Figure(
        go.Pie(
            labels=counts[names].astype(str),
            values=counts[value_col],
            marker=dict(colors=[_resolve_color(s, palette) for s in counts[names]]),
            sort=False,
            direction="clockwise",
            textinfo="label+percent",
        )
    )
    return _finish(fig, "Share of Countries by Freedom Status")


def histogram_fixed(bins: pd.DataFrame, *, x_title: str = "Civil liberties score") -> go.Figure:
    """Histogram from precomputed counts (``left``, ``right``, ``count``)."""
    if bins.empty:
        return go.Figure()
    widths = bins["right"] - bins["left"]
    fig = go.Figure(
        go.Bar(
            x=bins["left"] + widths / 2,
            y=bins["count"],
            width=widths,
            marker=dict(color="#1f77b4", line=dict(color="white", width=1)),
            customdata=bins[["left", "right"]].to_numpy(),
            hovertemplate="(%{customdata[0]}, %{customdata[1]}]: %{y}<extra></extra>",
            showlegend=False,
        )
    )
    fig.update_layout(bargap=0)
    return _finish(fig, "Distribution of Civil Liberties Scores", x_title, "Countries")


def histogram_auto(
    df: pd.DataFrame,
    *,
    value_col: str = "log_rgdpo",
    x_title: str = "log real GDP (rgdpo)",
) -> go.Figure:
    """Histogram with automatically chosen bins."""
    values = df[value_col].dropna() if value_col in df.columns else pd.Series(dtype=float)
    if values.empty:
        return go.Figure()
    fig = go.Figure(
        go.Histogram(
            x=values,
            marker=dict(color="#2ca02c", line=dict(color="white", width=1)),
            showlegend=False,
        )
    )
    return _finish(fig, "Distribution of log GDP", x_title, "Countries")


def trend_line(
    trend: pd.DataFrame,
    *,
    x: str = "year",
    group: str = "Region_Name",
    value_col: str = "mean_cl",
) -> go.Figure:
    """Mean CL over time, one line per region."""
    df_clean = trend.dropna(subset=[x, value_col])
    if df_clean.empty:
        return go.Figure()
    fig = go.Figure()
    for level in _levels(df_clean[group]):
        sub = df_clean[df_clean[group] == level].sort_values(x)
        fig.add_trace(
            go.Scatter(
                x=sub[x].tolist(),
                y=sub[value_col],
                mode="lines+markers",
                line=dict(width=3),
                marker=dict(size=7),
                name=str(level),
            )
        )
    fig.update_xaxes(tickmode="linear", dtick=1)
    fig.update_layout(legend_title_text=group)
    return _finish(fig, "Mean Civil Liberties Score by Region", "Year", "Mean CL")


# ============================================================
# Choropleth
# ============================================================


def choropleth_map(
    table: pd.DataFrame,
    geojson: dict,
    *,
    key: str = GEO_KEY,
    value_col: str = "CL",
) -> go.Figure:
    """
    World map shaded by ``value_col``.

    ``table`` is the output of ``geo.join_boundaries``: one row per boundary
    with its ``key`` name.  Boundaries without a value are left unshaded.
    """
    shaded = table.dropna(subset=[key, value_col])
    if shaded.empty:
        return go.Figure()
    fig = go.Figure(
        go.Choropleth(
            geojson=geojson,
            locations=shaded[key],
            z=shaded[value_col],
            featureidkey=f"properties.{key}",
            colorscale=CHOROPLETH_SCALE,
            marker_line_color="white",
            marker_line_width=0.5,
            colorbar=dict(title=value_col, thickness=15, len=0.7),
        )
    )
    fig.update_geos(showframe=False, showcoastlines=False, projection_type="natural earth")
    return _finish(fig, "Civil Liberties Score by Country")
