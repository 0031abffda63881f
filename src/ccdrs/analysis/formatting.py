"""
CCDRS Report Formatting (Functional Core)

Pure functions only. No I/O, no SQL, no side effects.

Renders an annotated count table (aggregation + checksum columns) into the
comma-separated text consumed by the presentation layer, and chains the whole
core into one call, :func:`count_report`.

Package Location: src/ccdrs/analysis/formatting.py

Output layout::

    Station,Direction,StationCount,SumOfRecords,StartTime,EndTime,Auto1,Bus
    100E,E,1,4,601,700,12,3

Interval reports add a ``Time`` column after ``Direction``.  Rows are sorted
by entity (display name), then time, then direction, using a stable sort so
the same request always yields byte-identical text.  A report with no rows is
the header line alone.
"""

from __future__ import annotations

from typing import List, Mapping, Optional, Union

import pandas as pd

from .aggregation import (
    ObservationsLike,
    ReportMode,
    aggregate_observations,
    observation_window,
    observations_frame,
)
from .categories import CategorySelector
from .coverage import CHECKSUM_COLUMNS, CoverageLookup, annotate_coverage

STATION_LABEL = "Station"
SCREENLINE_LABEL = "Sline"


def report_header(
    selector: CategorySelector,
    mode: Union[ReportMode, str],
    entity_label: str = STATION_LABEL,
) -> List[str]:
    """
    Column names of a report, in output order.

    Raises:
        UnknownCategory: If a selected category has no display name.
    """
    mode = ReportMode(mode)
    leading = [entity_label, "Direction"]
    if mode is ReportMode.INTERVAL:
        leading.append("Time")
    return leading + CHECKSUM_COLUMNS + selector.names


def format_report(
    annotated: pd.DataFrame,
    selector: CategorySelector,
    mode: Union[ReportMode, str],
    entity_label: str = STATION_LABEL,
    entity_names: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Render an annotated table as comma-separated text.

    Args:
        annotated: Output of ``coverage.annotate_coverage``.
        selector: Category selection (supplies header names and width).
        mode: ``ReportMode.TOTAL`` or ``ReportMode.INTERVAL``.
        entity_label: Header of the first column (``"Station"`` or
            ``"Sline"``).
        entity_names: Optional ``{entity_key: display_name}``; keys without
            an entry are shown as-is.  Sorting uses the displayed name.

    Returns:
        Header line plus one line per row, each terminated by ``\\n``.

    Raises:
        UnknownCategory: If a selected category has no display name.
    """
    mode = ReportMode(mode)
    header = report_header(selector, mode, entity_label)
    keys = mode.key_columns
    columns = keys + CHECKSUM_COLUMNS + list(range(len(selector)))

    if annotated.empty:
        return ",".join(header) + "\n"

    frame = annotated.reset_index()
    if entity_names:
        frame["entity"] = frame["entity"].map(
            lambda e: entity_names.get(e, e)
        )

    sort_keys = ["entity", "time", "direction"] if "time" in keys else keys
    frame = frame.sort_values(sort_keys, kind="mergesort").reset_index(drop=True)

    return frame.loc[:, columns].to_csv(
        index=False, header=header, lineterminator="\n",
    )


def count_report(
    observations: ObservationsLike,
    selector: CategorySelector,
    mode: Union[ReportMode, str] = ReportMode.TOTAL,
    coverage: Optional[CoverageLookup] = None,
    entity_label: str = STATION_LABEL,
    entity_names: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Aggregate, checksum and format one report in a single call.

    Args:
        observations: Scoped observation stream (see
            ``aggregation.observations_frame``).
        selector: Category selection.
        mode: ``"total"`` or ``"interval"``.
        coverage: Screenline coverage lookup, ``None`` for station reports.
        entity_label: First header column.
        entity_names: Optional display names for entity keys.

    Returns:
        Report text; header only when *observations* is empty.

    Example::

        >>> sel = CategorySelector([1], names={1: "Auto1"})
        >>> obs = [("S1", "E", 615, 1, 2), ("S1", "E", 615, 1, 5)]
        >>> print(count_report(obs, sel, coverage={("S1", "E"): 2},
        ...                    entity_label="Sline"), end="")
        Sline,Direction,StationCount,SumOfRecords,StartTime,EndTime,Auto1
        S1,E,2,2,601,615,7
    """
    mode = ReportMode(mode)
    frame = observations_frame(observations)
    table = aggregate_observations(frame, selector, mode)
    window = observation_window(frame) if mode is ReportMode.TOTAL else None
    annotated = annotate_coverage(table, mode, window=window, coverage=coverage)
    return format_report(annotated, selector, mode, entity_label, entity_names)
