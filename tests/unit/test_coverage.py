"""
Tests of ccdrs.analysis.coverage
"""

from __future__ import annotations

import pandas as pd
import pytest

from ccdrs.analysis.aggregation import ReportMode, aggregate_observations
from ccdrs.analysis.categories import CategorySelector
from ccdrs.analysis.coverage import (
    CHECKSUM_COLUMNS,
    CoverageError,
    annotate_coverage,
    coverage_counts,
    expected_records,
)
from ccdrs.analysis.timecodes import InvalidTimeCode

SEL = CategorySelector([1])


def _table(obs, mode="total"):
    return aggregate_observations(obs, SEL, mode)


def test_coverage_counts_distinct_stations_per_direction():
    memberships = pd.DataFrame(
        {
            "entity": ["S1", "S1", "S1", "S1", "S2"],
            "direction": ["E", "E", "E", "W", "E"],
            "station_id": [1, 2, 2, 3, 2],
        }
    )

    assert coverage_counts(memberships) == {
        ("S1", "E"): 2,
        ("S1", "W"): 1,
        ("S2", "E"): 1,
    }


def test_coverage_counts_empty():
    empty = pd.DataFrame(columns=["entity", "direction", "station_id"])

    assert coverage_counts(empty) == {}


@pytest.mark.parametrize(
    "units, start, end, expected",
    (
        pytest.param(3, 601, 630, 6, id="three-stations-two-intervals"),
        pytest.param(1, 601, 615, 1, id="single"),
        pytest.param(2, 601, 700, 8, id="crosses-hour"),
        pytest.param(0, 601, 700, 0, id="no-stations"),
    ),
)
def test_expected_records(units, start, end, expected):
    assert expected_records(units, start, end) == expected


def test_expected_records_reversed_window():
    with pytest.raises(InvalidTimeCode):
        expected_records(1, 700, 601)


def test_total_mode_screenline():
    obs = [("S1", "E", 615, 1, 2), ("S1", "E", 630, 1, 5)]

    res = annotate_coverage(
        _table(obs), ReportMode.TOTAL, window=(601, 630),
        coverage={("S1", "E"): 3},
    )

    assert list(res.columns) == CHECKSUM_COLUMNS + [0]
    assert res.loc[("S1", "E")].tolist() == [3, 6, 601, 630, 7]


def test_total_mode_station_defaults_to_one_unit():
    obs = [("100E", "E", 615, 1, 2), ("101E", "E", 700, 1, 1)]

    res = annotate_coverage(_table(obs), "total", window=(601, 700))

    assert res[CHECKSUM_COLUMNS].values.tolist() == [
        [1, 4, 601, 700],
        [1, 4, 601, 700],
    ]


def test_interval_mode_uses_each_bucket():
    obs = [("S1", "E", 615, 1, 2), ("S1", "E", 700, 1, 5)]

    res = annotate_coverage(
        _table(obs, "interval"), "interval", coverage={("S1", "E"): 2},
    )

    assert res[CHECKSUM_COLUMNS].values.tolist() == [
        [2, 2, 601, 615],
        [2, 2, 646, 700],
    ]


def test_interval_mode_ignores_window():
    obs = [("100E", "E", 615, 1, 2)]

    res = annotate_coverage(
        _table(obs, "interval"), "interval", window=(600, 900),
    )

    assert res.iloc[0].tolist() == [1, 1, 601, 615, 2]


def test_total_mode_needs_window():
    with pytest.raises(ValueError, match="window"):
        annotate_coverage(_table([("100E", "E", 615, 1, 2)]), "total")


def test_missing_coverage_entry():
    obs = [("S1", "E", 615, 1, 2), ("S9", "W", 615, 1, 1)]

    with pytest.raises(CoverageError, match="S9"):
        annotate_coverage(
            _table(obs), "total", window=(601, 615),
            coverage={("S1", "E"): 1},
        )


@pytest.mark.parametrize("mode", ("total", "interval"))
def test_empty_table(mode):
    res = annotate_coverage(_table([], mode), mode)

    assert res.empty
    assert list(res.columns) == CHECKSUM_COLUMNS + [0]
