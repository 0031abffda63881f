"""
CCDRS Coverage Checksums (Functional Core)

Pure functions only. No I/O, no SQL, no side effects.

Every report row carries two checksum numbers next to its counts:

``StationCount``
    Number of coverage units (distinct stations) behind the row.  Always 1
    for station reports; for screenline reports, the distinct stations mapped
    into the screenline for the survey, counted separately per direction.

``SumOfRecords``
    Records that *should* exist for the row:
    ``StationCount * interval_count(StartTime, EndTime)``.

The engine never compares these to the data.  A consumer who knows how many
records a site should have can spot incomplete surveys from them.

Package Location: src/ccdrs/analysis/coverage.py

Window convention:
    TOTAL mode  – every row shares the OBSERVED window of the report,
                  ``(interval_start(earliest time), latest time)``, as
                  returned by ``aggregation.observation_window``.
    INTERVAL    – each row's window is its own bucket,
                  ``(interval_start(time), time)``, i.e. one interval.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .aggregation import ReportMode
from .timecodes import (
    INTERVAL_MINUTES,
    interval_count,
    interval_start_array,
    to_minutes_array,
)

STATION_COUNT = "StationCount"
SUM_OF_RECORDS = "SumOfRecords"
START_TIME = "StartTime"
END_TIME = "EndTime"

CHECKSUM_COLUMNS: List[str] = [STATION_COUNT, SUM_OF_RECORDS, START_TIME, END_TIME]

CoverageLookup = Mapping[Tuple[str, str], int]


class CoverageError(KeyError):
    """
    Raised when an aggregated row has no coverage entry, i.e. the data layer
    returned observations for an entity/direction with no member stations.
    """

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


def coverage_counts(memberships: pd.DataFrame) -> Dict[Tuple[str, str], int]:
    """
    Count distinct member stations per ``(entity, direction)``.

    Args:
        memberships: DataFrame with columns ``[entity, direction,
            station_id]`` – one row per station mapped into an entity (a
            station may appear more than once; it is counted once).

    Returns:
        ``{(entity, direction): station_count}``.  Empty for empty input.
    """
    if memberships.empty:
        return {}
    counts = (
        memberships.astype({"entity": str, "direction": str})
        .groupby(["entity", "direction"])["station_id"]
        .nunique()
    )
    return {(e, d): int(n) for (e, d), n in counts.items()}


def expected_records(coverage_count: int, start_dmg: int, end_dmg: int) -> int:
    """
    Records expected for *coverage_count* stations over ``[start, end]``.

    Raises:
        InvalidTimeCode: If the window is malformed or reversed.
    """
    return int(coverage_count) * interval_count(start_dmg, end_dmg)


def annotate_coverage(
    table: pd.DataFrame,
    mode: Union[ReportMode, str],
    window: Optional[Tuple[int, int]] = None,
    coverage: Optional[CoverageLookup] = None,
) -> pd.DataFrame:
    """
    Prepend the checksum columns to an aggregated table.

    Args:
        table: Output of ``aggregate_observations`` for the same *mode*.
        mode: ``ReportMode.TOTAL`` or ``ReportMode.INTERVAL``.
        window: ``(start_dmg, end_dmg)`` shared by every row.  Required in
            TOTAL mode when *table* is not empty; ignored in INTERVAL mode.
        coverage: ``{(entity, direction): station_count}`` for screenline
            reports, or ``None`` for station reports (one unit per row).

    Returns:
        Copy of *table* with :data:`CHECKSUM_COLUMNS` inserted before the
        category columns.  Same index, int64 throughout.

    Raises:
        ValueError: If TOTAL mode rows exist but *window* is missing.
        CoverageError: If a row's ``(entity, direction)`` is absent from
            *coverage*.
        InvalidTimeCode: If a window or bucket start is malformed.
    """
    mode = ReportMode(mode)

    if table.empty:
        checksum = pd.DataFrame(
            {c: pd.Series(dtype="int64") for c in CHECKSUM_COLUMNS},
            index=table.index,
        )
        return pd.concat([checksum, table], axis=1)

    keys = table.index.to_frame(index=False)
    units = _coverage_units(keys, coverage)

    if mode is ReportMode.INTERVAL:
        ends = keys["time"].to_numpy(dtype=np.int64)
        starts = interval_start_array(ends)
        minutes = to_minutes_array(ends) - to_minutes_array(starts)
        spans = minutes // INTERVAL_MINUTES + 1
    else:
        if window is None:
            raise ValueError("A total-volume report needs a (start, end) window")
        start, end = window
        n_intervals = interval_count(start, end)
        starts = np.full(len(keys), int(start), dtype=np.int64)
        ends = np.full(len(keys), int(end), dtype=np.int64)
        spans = np.full(len(keys), n_intervals, dtype=np.int64)

    checksum = pd.DataFrame(
        {
            STATION_COUNT: units,
            SUM_OF_RECORDS: units * spans,
            START_TIME: starts,
            END_TIME: ends,
        },
        index=table.index,
    )
    return pd.concat([checksum, table], axis=1)


def _coverage_units(
    keys: pd.DataFrame,
    coverage: Optional[CoverageLookup],
) -> np.ndarray:
    """Look up the coverage unit count for every row key."""
    if coverage is None:
        return np.ones(len(keys), dtype=np.int64)

    pairs = list(zip(keys["entity"].astype(str), keys["direction"].astype(str)))
    missing = sorted({p for p in pairs if p not in coverage})
    if missing:
        raise CoverageError(
            f"No member stations known for (entity, direction) {missing}"
        )
    return np.array([coverage[p] for p in pairs], dtype=np.int64)
