"""
CCDRS - traffic-survey count reporting

A modular Python package that turns per-station, per-interval survey
observations into station and screenline count reports, using the
Functional Core, Imperative Shell architecture.

Structure:
- analysis/ : Functional Core (time codes, aggregation, checksums, text)
- data/     : Imperative Shell (SQLite access, queries, CountEngine)
- plotting/ : Plotly figures built from core tables
- reports/  : Report files and figures written to disk
"""

__version__ = "0.1.0"
