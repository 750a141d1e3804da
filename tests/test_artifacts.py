import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import pandas as pd
import plotly.graph_objects as go

# Add the project root to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from freedom_charts import artifacts


class TestArtifacts(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.out = Path(self.tmp.name)

    def test_resolve_output_dir_prefers_argument(self):
        target = artifacts.resolve_output_dir(self.out / "charts")
        self.assertTrue(target.is_dir())
        self.assertEqual(target.name, "charts")

    def test_resolve_output_dir_reads_environment(self):
        env_dir = str(self.out / "from_env")
        with mock.patch.dict(os.environ, {"CHARTS_OUTPUT_DIR": env_dir}):
            target = artifacts.resolve_output_dir()
        self.assertEqual(target, Path(env_dir).resolve())
        self.assertTrue(target.is_dir())

    def test_save_table_round_trip_with_index(self):
        table = pd.DataFrame({"no": [2, 1], "Total": [2, 1]}, index=["Free", "Total"])
        path = artifacts.save_table(table, self.out / "crosstab", index=True)
        self.assertEqual(path.suffix, ".csv")
        self.assertFalse(path.with_suffix(".csv.tmp").exists())
        loaded = pd.read_csv(path, index_col=0)
        self.assertEqual(loaded.loc["Total", "no"], 1)

    def test_save_figure_html(self):
        fig = go.Figure(go.Bar(x=["a"], y=[1]))
        path = artifacts.save_figure(fig, self.out / "bar")
        self.assertEqual(path.name, "bar.html")
        self.assertIn("plotly", path.read_text(encoding="utf-8").lower())

    def test_save_figure_rejects_unknown_format(self):
        with self.assertRaises(ValueError):
            artifacts.save_figure(go.Figure(), self.out / "bar", fmt="gif")


if __name__ == "__main__":
    unittest.main()
