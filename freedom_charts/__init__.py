"""freedom_charts package initializer.

This package contains the pipeline that loads the political-freedom and
Penn World Table panels, joins and aggregates them, and renders the
descriptive charts.  Modules include data loading, aggregation, boundary
handling, plotting and artifact writing helpers.  See individual module
docstrings for details.
"""
