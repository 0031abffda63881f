"""
Tests of ccdrs.analysis.aggregation
"""

from __future__ import annotations

import random

import pandas as pd
import pytest

from ccdrs.analysis.aggregation import (
    OBSERVATION_COLUMNS,
    InvalidObservation,
    Observation,
    ReportMode,
    aggregate_observations,
    as_vectors,
    observation_window,
    observations_frame,
)
from ccdrs.analysis.categories import CategorySelector, UnknownCategory
from ccdrs.analysis.timecodes import InvalidTimeCode

OBS = [
    Observation("100E", "E", 615, 1, 3),
    Observation("100E", "E", 630, 1, 4),
    Observation("100E", "E", 615, 2, 1),
    Observation("100E", "W", 615, 3, 2),
    Observation("101E", "E", 700, 3, 5),
    Observation("101E", "E", 700, 1, 6),
]


def test_sums_per_key_and_category():
    sel = CategorySelector([1, 2])
    obs = [("100E", "E", 615, 1, 3), ("100E", "E", 615, 1, 4),
           ("100E", "E", 615, 2, 1)]

    table = aggregate_observations(obs, sel)

    assert as_vectors(table) == {("100E", "E"): [7, 1]}


def test_total_mode_vectors():
    sel = CategorySelector([1, 2, 3])

    res = as_vectors(aggregate_observations(OBS, sel, ReportMode.TOTAL))

    assert res == {
        ("100E", "E"): [7, 1, 0],
        ("100E", "W"): [0, 0, 2],
        ("101E", "E"): [6, 0, 5],
    }


def test_interval_mode_vectors():
    sel = CategorySelector([1, 2, 3])

    res = as_vectors(aggregate_observations(OBS, sel, "interval"))

    assert res == {
        ("100E", "E", 615): [3, 1, 0],
        ("100E", "E", 630): [4, 0, 0],
        ("100E", "W", 615): [0, 0, 2],
        ("101E", "E", 700): [6, 0, 5],
    }


def test_column_order_follows_selection():
    sel = CategorySelector([3, 1])

    res = as_vectors(aggregate_observations(OBS[-2:], sel))

    assert res == {("101E", "E"): [5, 6]}


def test_duplicate_selection_fills_first_column_only():
    sel = CategorySelector([1, 1])

    res = as_vectors(aggregate_observations(OBS[:2], sel))

    assert res == {("100E", "E"): [7, 0]}


def test_table_shape_and_index():
    sel = CategorySelector([1, 2, 3])

    table = aggregate_observations(OBS, sel, ReportMode.INTERVAL)

    assert list(table.index.names) == ["entity", "direction", "time"]
    assert list(table.columns) == [0, 1, 2]
    assert (table.dtypes == "int64").all()
    assert table.index.is_monotonic_increasing


@pytest.mark.parametrize("mode", ("total", "interval"))
def test_empty_input(mode):
    sel = CategorySelector([1, 2])

    table = aggregate_observations([], sel, mode)

    assert table.empty
    assert list(table.columns) == [0, 1]
    assert list(table.index.names) == ReportMode(mode).key_columns


@pytest.mark.parametrize("seed", (0, 1, 2, 3, 4))
@pytest.mark.parametrize("mode", ("total", "interval"))
def test_permutation_invariance(seed, mode):
    sel = CategorySelector([3, 1, 2])
    shuffled = list(OBS)
    random.Random(seed).shuffle(shuffled)

    exp = aggregate_observations(OBS, sel, mode)
    res = aggregate_observations(shuffled, sel, mode)

    pd.testing.assert_frame_equal(res, exp)


def test_accepts_dataframe_and_does_not_mutate_it():
    df = pd.DataFrame(OBS, columns=OBSERVATION_COLUMNS)
    df["extra"] = "ignored"
    before = df.copy()
    sel = CategorySelector([1, 2, 3])

    res = aggregate_observations(df, sel)

    pd.testing.assert_frame_equal(df, before)
    assert as_vectors(res) == as_vectors(aggregate_observations(OBS, sel))


def test_missing_columns():
    df = pd.DataFrame({"entity": ["100E"], "time": [615]})

    with pytest.raises(InvalidObservation, match="lacks columns"):
        observations_frame(df)


def test_unselected_category_aborts():
    sel = CategorySelector([1])

    with pytest.raises(UnknownCategory):
        aggregate_observations(OBS, sel)


def test_malformed_time_aborts():
    sel = CategorySelector([1])

    with pytest.raises(InvalidTimeCode):
        aggregate_observations([("100E", "E", 675, 1, 3)], sel)


def test_negative_count_aborts():
    sel = CategorySelector([1])

    with pytest.raises(InvalidObservation, match="negative"):
        aggregate_observations([("100E", "E", 615, 1, -3)], sel)


def test_bad_direction_aborts():
    sel = CategorySelector([1])

    with pytest.raises(InvalidObservation, match="single characters"):
        aggregate_observations([("100E", "EB", 615, 1, 3)], sel)


@pytest.mark.parametrize(
    "obs, exp_error, match",
    (
        pytest.param(
            [("100E", "E", 615, 1, 2.9)], InvalidObservation, "'count'",
            id="fractional-count",
        ),
        pytest.param(
            [("100E", "E", 615, 1.5, 2)], InvalidObservation, "'category_id'",
            id="fractional-category",
        ),
        pytest.param(
            [("100E", "E", 615.9, 1, 2)], InvalidTimeCode, "whole numbers",
            id="fractional-time",
        ),
    ),
)
def test_fractional_values_are_rejected(obs, exp_error, match):
    sel = CategorySelector([1])

    with pytest.raises(exp_error, match=match):
        aggregate_observations(obs, sel)


def test_whole_floats_are_accepted():
    sel = CategorySelector([1])
    obs = pd.DataFrame(
        [("100E", "E", 615.0, 1.0, 2.0)], columns=OBSERVATION_COLUMNS,
    )

    assert as_vectors(aggregate_observations(obs, sel)) == {("100E", "E"): [2]}


def test_observation_window():
    assert observation_window(OBS) == (601, 700)
    assert observation_window([("S1", "E", 615, 1, 2)]) == (601, 615)
    assert observation_window([]) is None
