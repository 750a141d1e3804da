import os
import sys
import unittest

import pandas as pd

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from freedom_charts import geo, pipeline, plotting
from freedom_charts.config import DEFAULT_COLOR
from tests.helpers import geojson, raw_freedom, raw_macro


class TestFigures(unittest.TestCase):

    def setUp(self):
        self.payload = pipeline.build_payload(raw_freedom(), raw_macro())

    def test_status_bar(self):
        fig = plotting.status_bar(self.payload["status_counts"])
        self.assertEqual(len(fig.data), 1)
        self.assertEqual(list(fig.data[0].x), ["Free", "Partly Free", "Not Free"])
        self.assertEqual(list(fig.data[0].marker.color), ["#2ca02c", "#ff7f0e", "#d62728"])

    def test_status_outside_palette_gets_default_color(self):
        counts = pd.DataFrame({"Status": ["Free", "Transitional", None], "n": [2, 1, 1]})
        bar = plotting.status_bar(counts)
        pie = plotting.status_pie(counts)
        expected = ["#2ca02c", DEFAULT_COLOR, DEFAULT_COLOR]
        self.assertEqual(list(bar.data[0].marker.color), expected)
        self.assertEqual(list(pie.data[0].marker.colors), expected)
        self.assertEqual(plotting._resolve_color("Free", {"Free": "#000000"}), "#000000")

    def test_grouped_bar_has_one_trace_per_ldc_level(self):
        fig = plotting.grouped_mean_bar(self.payload["mean_cl_by_status_ldc"])
        self.assertEqual(fig.layout.barmode, "group")
        self.assertEqual([t.name for t in fig.data], ["is_ldc = no", "is_ldc = yes"])

    def test_stacked_bar_labels_sit_at_cumulative_offsets(self):
        agg = pipeline.cumulative_label(
            pd.DataFrame(
                {
                    "Status": ["Free", "Free"],
                    "is_ldc": ["no", "yes"],
                    "mean_cl": [1.0, 2.0],
                }
            ),
            "Status",
            "is_ldc",
            "mean_cl",
        )
        fig = plotting.stacked_mean_bar(agg)
        self.assertEqual(fig.layout.barmode, "stack")
        self.assertEqual(len(fig.data), 3)
        labels = fig.data[-1]
        self.assertEqual(labels.mode, "text")
        self.assertEqual(list(labels.y), [1.0, 3.0])
        self.assertEqual(list(labels.text), ["1.0", "2.0"])

    def test_proportion_bar(self):
        fig = plotting.proportion_bar(self.payload["region_status_share"])
        self.assertEqual(fig.layout.barmode, "stack")
        self.assertEqual(list(fig.layout.yaxis.range), [0, 100])
        self.assertEqual(len(fig.data), 3)

    def test_pie(self):
        fig = plotting.status_pie(self.payload["status_counts"])
        self.assertEqual(fig.data[0].type, "pie")
        self.assertEqual(list(fig.data[0].values), [2, 1, 1])

    def test_fixed_histogram_uses_bin_edges(self):
        fig = plotting.histogram_fixed(self.payload["cl_histogram"])
        bar = fig.data[0]
        self.assertEqual(list(bar.x)[:2], [0.5, 1.5])
        self.assertEqual(sum(bar.y), 4)
        self.assertEqual(fig.layout.bargap, 0)

    def test_auto_histogram(self):
        fig = plotting.histogram_auto(self.payload["joined"])
        self.assertEqual(fig.data[0].type, "histogram")
        self.assertEqual(len(fig.data[0].x), 2)

    def test_trend_line(self):
        fig = plotting.trend_line(self.payload["cl_trend"])
        self.assertEqual([t.name for t in fig.data], ["Asia", "Europe"])
        self.assertEqual(list(fig.data[0].x), [2019, 2020])

    def test_choropleth(self):
        shapes = geojson()
        table = geo.join_boundaries(geo.boundary_table(shapes), self.payload["freedom"])
        fig = plotting.choropleth_map(table, shapes)
        trace = fig.data[0]
        self.assertEqual(trace.type, "choropleth")
        self.assertEqual(trace.featureidkey, "properties.geounit")
        self.assertEqual(sorted(trace.locations), ["Aland", "Borduria", "United Kingdom"])

    def test_empty_inputs_give_empty_figures(self):
        empty = pd.DataFrame()
        self.assertEqual(len(plotting.status_bar(empty).data), 0)
        self.assertEqual(len(plotting.status_pie(empty).data), 0)
        self.assertEqual(len(plotting.histogram_fixed(empty).data), 0)
        self.assertEqual(len(plotting.histogram_auto(empty).data), 0)
        trend = pd.DataFrame({"year": [], "Region_Name": [], "mean_cl": []})
        self.assertEqual(len(plotting.trend_line(trend).data), 0)


if __name__ == "__main__":
    unittest.main()
