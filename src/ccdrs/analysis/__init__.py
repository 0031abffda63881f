"""
CCDRS Analysis Package (Functional Core)

This package contains pure transformation functions with no I/O.
All functions accept data structures (DataFrames, dicts, tuples) and
return transformed data.

Modules:
- timecodes:   DMG time-code arithmetic and 15-minute buckets
- categories:  Category model, count types, and the column selector
- aggregation: Observation grouping and summation
- coverage:    Station-count and expected-record checksums
- formatting:  Delimited report text and the one-call report pipeline
"""

from .timecodes import (
    InvalidTimeCode,
    to_minutes,
    to_dmg,
    interval_start,
    interval_count,
    validate_window,
)

from .categories import (
    UnknownCategory,
    CountType,
    Category,
    CategorySelector,
    category_display_name,
    filter_by_count_type,
    technology_categories,
    vehicle_total_categories,
    person_total_categories,
    sort_categories,
    names_by_id,
)

from .aggregation import (
    InvalidObservation,
    ReportMode,
    Observation,
    observations_frame,
    aggregate_observations,
    observation_window,
    as_vectors,
)

from .coverage import (
    CoverageError,
    coverage_counts,
    expected_records,
    annotate_coverage,
)

from .formatting import (
    report_header,
    format_report,
    count_report,
)

__all__ = [
    # Time codes
    'InvalidTimeCode',
    'to_minutes',
    'to_dmg',
    'interval_start',
    'interval_count',
    'validate_window',
    # Categories
    'UnknownCategory',
    'CountType',
    'Category',
    'CategorySelector',
    'category_display_name',
    'filter_by_count_type',
    'technology_categories',
    'vehicle_total_categories',
    'person_total_categories',
    'sort_categories',
    'names_by_id',
    # Aggregation
    'InvalidObservation',
    'ReportMode',
    'Observation',
    'observations_frame',
    'aggregate_observations',
    'observation_window',
    'as_vectors',
    # Coverage
    'CoverageError',
    'coverage_counts',
    'expected_records',
    'annotate_coverage',
    # Formatting
    'report_header',
    'format_report',
    'count_report',
]
