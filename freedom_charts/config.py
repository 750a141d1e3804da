"""
Configuration constants for the freedom / GDP chart pipeline.
"""

import os
from typing import Dict, List, Optional, Tuple

# ======================================================
#  DATA SOURCES / CONSTANTS
# ======================================================
_BASE_URL_ENV: Optional[str] = os.getenv("DATA_BASE_URL")

DATA_BASE_URL: str = _BASE_URL_ENV or (
    "https://raw.githubusercontent.com/rfordatascience/tidytuesday/master/"
    "data/2022/2022-02-22/"
)

FREEDOM_FILE: str = "freedom.csv"
PWT_FILE: str = "pwt.csv"

FREEDOM_SOURCE: str = os.getenv("FREEDOM_SOURCE", DATA_BASE_URL + FREEDOM_FILE)

# No public mirror serves the Penn World Table as CSV next to freedom.csv, so
# the GDP source must come from PWT_SOURCE, a DATA_BASE_URL holding both
# files, or --pwt-source.
PWT_SOURCE: Optional[str] = os.getenv("PWT_SOURCE") or (
    _BASE_URL_ENV + PWT_FILE if _BASE_URL_ENV else None
)

# Remote Natural Earth admin-0 countries (fetched on each run, not bundled);
# point BOUNDARIES_SOURCE at a local copy to work offline.
BOUNDARIES_SOURCE: str = os.getenv(
    "BOUNDARIES_SOURCE",
    "https://raw.githubusercontent.com/nvkelso/natural-earth-vector/master/"
    "geojson/ne_110m_admin_0_countries.geojson",
)
GEO_KEY: str = "geounit"

DEFAULT_SEP: str = ","
REQUEST_TIMEOUT: int = 30

FREEDOM_COLUMNS: List[str] = ["country", "year", "CL", "PR", "Status", "Region_Name", "is_ldc"]
PWT_COLUMNS: List[str] = ["countrycode", "country", "year", "rgdpo"]
FREEDOM_DROP_COLUMNS: List[str] = ["Region_Code"]

# ======================================================
#  PARAMETERS
# ======================================================
FREEDOM_YEAR: int = 2020
GDP_YEAR: int = 2010

# CL runs 1-7; right-closed bins with the lowest edge included
CL_BIN_EDGES: List[float] = [0, 1, 2, 3, 4, 5, 6, 7]

STATUS_CODES: Dict[str, str] = {
    "F": "Free",
    "PF": "Partly Free",
    "NF": "Not Free",
}
STATUS_ORDER: List[str] = ["Free", "Partly Free", "Not Free"]

LDC_CODES: Dict[object, str] = {
    1: "yes",
    0: "no",
    "1": "yes",
    "0": "no",
}
LDC_ORDER: List[str] = ["no", "yes"]

MISSING_LABEL: str = "(missing)"
# Cross-tab margin; parenthesised so it cannot be a country, region or status
MARGIN_LABEL: str = "(total)"

# Freedom panel spelling -> boundary dataset geounit
COUNTRY_NAME_FIXES: Dict[str, str] = {
    "United Kingdom of Great Britain and Northern Ireland": "United Kingdom",
    "Russian Federation": "Russia",
    "Bolivia (Plurinational State of)": "Bolivia",
    "Venezuela (Bolivarian Republic of)": "Venezuela",
    "Iran (Islamic Republic of)": "Iran",
    "Syrian Arab Republic": "Syria",
    "Viet Nam": "Vietnam",
    "Lao People's Democratic Republic": "Laos",
    "Republic of Korea": "South Korea",
    "Democratic People's Republic of Korea": "North Korea",
    "Republic of Moldova": "Moldova",
}

# ======================================================
#  CHART DEFAULTS
# ======================================================
STATUS_COLORS: Dict[str, str] = {
    "Free": "#2ca02c",
    "Partly Free": "#ff7f0e",
    "Not Free": "#d62728",
}

LDC_COLORS: Dict[str, str] = {
    "no": "#1f77b4",
    "yes": "#9467bd",
}

# Levels outside the palettes (unseen or missing categories)
DEFAULT_COLOR: str = "#7f7f7f"

CHOROPLETH_SCALE: str = "Viridis"
FIGURE_SIZE: Tuple[int, int] = (900, 550)

OUTPUT_FORMATS: Tuple[str, ...] = ("html", "png", "svg")
