"""Small in-memory panels shared by the test modules."""

import math

import pandas as pd

UK_LONG = "United Kingdom of Great Britain and Northern Ireland"


def raw_freedom() -> pd.DataFrame:
    return pd.DataFrame(
        [
            ("Aland", 2020, 1, 1, "F", 1, "Europe", 0),
            ("Borduria", 2020, 5, 6, "NF", 2, "Asia", 1),
            ("Carpania", 2020, 3, 4, "PF", 2, "Asia", 0),
            (UK_LONG, 2020, 1, 1, "F", 1, "Europe", 0),
            ("Aland", 2019, 2, 1, "F", 1, "Europe", 0),
            ("Borduria", 2019, 6, 6, "NF", 2, "Asia", 1),
        ],
        columns=["country", "year", "CL", "PR", "Status", "Region_Code", "Region_Name", "is_ldc"],
    )


def raw_macro() -> pd.DataFrame:
    return pd.DataFrame(
        [
            ("ALA", "Aland", "Euro", 2010, 20000.0, math.exp(10), 1.0),
            ("ALA", "Aland", "Euro", 2019, 30000.0, 30000.0, 1.1),
            ("BOR", "Borduria", "Dinar", 2010, 400.0, 500.0, 3.0),
            ("GBR", "United Kingdom", "Pound", 2010, 2.0e6, 2.1e6, 63.0),
        ],
        columns=["countrycode", "country", "currency_unit", "year", "rgdpe", "rgdpo", "pop"],
    )


def _square(x: float, y: float) -> dict:
    return {
        "type": "Polygon",
        "coordinates": [[[x, y], [x + 1, y], [x + 1, y + 1], [x, y + 1], [x, y]]],
    }


def geojson(names=("Aland", "Borduria", "United Kingdom", "Narnia"), key="geounit") -> dict:
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {key: name}, "geometry": _square(i * 2, 0)}
            for i, name in enumerate(names)
        ],
    }
