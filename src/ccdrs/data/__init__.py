"""
CCDRS Data Package (Imperative Shell)

This package handles all I/O operations, database management,
and resource handling for CCDRS count reporting.

Modules:
- manager: Database connection, read schema and region/survey lookups
- reader:  Observation, membership and category queries
- counts:  Station and screenline report orchestration
"""

from .manager import DatabaseManager, init_db
from .reader import (
    get_station_observations,
    get_screenline_observations,
    get_screenline_memberships,
    get_survey_categories,
    get_category_names,
    get_stations,
    get_screenlines,
    get_report_title,
)

from .counts import (
    CountEngine,
    get_station_report,
    get_screenline_report,
)

__all__ = [
    # Manager
    'DatabaseManager',
    'init_db',
    # Reader
    'get_station_observations',
    'get_screenline_observations',
    'get_screenline_memberships',
    'get_survey_categories',
    'get_category_names',
    'get_stations',
    'get_screenlines',
    'get_report_title',
    # Counts
    'CountEngine',
    'get_station_report',
    'get_screenline_report',
]
