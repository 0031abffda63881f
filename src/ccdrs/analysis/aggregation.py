"""
CCDRS Observation Aggregation (Functional Core)

Pure functions only. No I/O, no SQL, no side effects.
Input/output is DataFrames and plain dicts.

Groups raw survey observations by report key and sums their counts into one
fixed-width row per key, one column per selected category.

Package Location: src/ccdrs/analysis/aggregation.py

Report modes:
    ``ReportMode.TOTAL``     – key ``(entity, direction)``; one row per
                               station/screenline and direction over the
                               whole window.
    ``ReportMode.INTERVAL``  – key ``(entity, direction, time)``; one row per
                               15-minute bucket.

Zero-suppression:
    The survey store never materialises zero counts, so an absent
    (key, category) pair IS a zero.  A key that exists for any selected
    category gets an explicit 0 in every other category column; a key with
    no observations at all produces no row.

Validation:
    The whole frame is checked before anything is summed.  A malformed time,
    an unselected category, a negative or fractional count or a bad direction
    code aborts the report – no partially-summed table is ever returned.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .categories import CategorySelector
from .timecodes import InvalidTimeCode, interval_start, to_minutes_array

OBSERVATION_COLUMNS: List[str] = [
    "entity", "direction", "time", "category_id", "count",
]


class InvalidObservation(ValueError):
    """
    Raised when observation rows are structurally unusable: missing columns,
    negative counts, or direction codes that are not a single character.
    """
    pass


class ReportMode(str, Enum):
    """Reporting granularity; plain ``"total"`` / ``"interval"`` also work."""

    TOTAL = "total"
    INTERVAL = "interval"

    @property
    def key_columns(self) -> List[str]:
        if self is ReportMode.INTERVAL:
            return ["entity", "direction", "time"]
        return ["entity", "direction"]


class Observation(NamedTuple):
    """One measured count: entity, direction, DMG time, category, count."""

    entity: str
    direction: str
    time: int
    category_id: int
    count: int


ObservationsLike = Union[pd.DataFrame, Iterable[Observation], Iterable[tuple]]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def observations_frame(observations: ObservationsLike) -> pd.DataFrame:
    """
    Coerce observations into the canonical DataFrame.

    Accepts a DataFrame that already has :data:`OBSERVATION_COLUMNS` (extra
    columns are dropped) or any iterable of 5-tuples in that field order,
    such as :class:`Observation` instances.  The input is never mutated.

    Returns:
        DataFrame with columns ``[entity, direction, time, category_id,
        count]``; ``entity`` and ``direction`` as ``str``, the rest int64.

    Raises:
        InvalidObservation: If required columns are missing, or a count or
            category id is not a whole number.
        InvalidTimeCode: If a time is not a whole number.
    """
    if isinstance(observations, pd.DataFrame):
        missing = [c for c in OBSERVATION_COLUMNS if c not in observations.columns]
        if missing:
            raise InvalidObservation(f"Observation frame lacks columns {missing}")
        df = observations.loc[:, OBSERVATION_COLUMNS].copy()
    else:
        df = pd.DataFrame.from_records(
            [tuple(o) for o in observations], columns=OBSERVATION_COLUMNS,
        )

    if df.empty:
        return pd.DataFrame({
            "entity": pd.Series(dtype=object),
            "direction": pd.Series(dtype=object),
            "time": pd.Series(dtype="int64"),
            "category_id": pd.Series(dtype="int64"),
            "count": pd.Series(dtype="int64"),
        })

    df["entity"] = df["entity"].astype(str)
    df["direction"] = df["direction"].astype(str)
    for col in ("time", "category_id", "count"):
        _reject_fractional(df[col], col)
        df[col] = df[col].astype("int64")
    return df.reset_index(drop=True)


def aggregate_observations(
    observations: ObservationsLike,
    selector: CategorySelector,
    mode: Union[ReportMode, str] = ReportMode.TOTAL,
) -> pd.DataFrame:
    """
    Sum observation counts per report key and selected category.

    Args:
        observations: Observations already scoped to one region, survey,
            time window, direction set and category selection (see
            :func:`observations_frame` for accepted shapes).
        selector: The category selection; fixes column count and order.
        mode: ``ReportMode.TOTAL`` or ``ReportMode.INTERVAL``.

    Returns:
        DataFrame indexed by a ``MultiIndex`` named after
        ``mode.key_columns``, with integer columns ``0 .. len(selector)-1``
        holding the summed counts.  Sorted by key.  Empty (but correctly
        shaped) when there are no observations.

    Raises:
        InvalidTimeCode: If any time is not a valid DMG value.
        UnknownCategory: If any category id is outside the selection.
        InvalidObservation: On negative counts or bad direction codes.

    Example::

        >>> sel = CategorySelector([1, 2])
        >>> obs = [("100E", "E", 615, 1, 3), ("100E", "E", 615, 1, 4),
        ...        ("100E", "E", 615, 2, 1)]
        >>> aggregate_observations(obs, sel).loc[("100E", "E")].tolist()
        [7, 1]
    """
    mode = ReportMode(mode)
    keys = mode.key_columns
    width = len(selector)
    df = observations_frame(observations)

    if df.empty:
        return _empty_table(keys, width)

    _validate(df)
    df["_col"] = selector.columns_for(df["category_id"])

    table = (
        df.groupby(keys + ["_col"], sort=True)["count"]
        .sum()
        .unstack("_col", fill_value=0)
        .reindex(columns=range(width), fill_value=0)
        .astype("int64")
    )
    table.columns = pd.RangeIndex(width)
    return table


def observation_window(
    observations: ObservationsLike,
) -> Optional[Tuple[int, int]]:
    """
    Return the observed report window ``(interval_start(min), max)``.

    The start is the first minute of the earliest bucket present; the end is
    the latest bucket end present.

    Returns:
        DMG tuple, or ``None`` when there are no observations.

    Raises:
        InvalidTimeCode: If any time is malformed.
    """
    df = observations_frame(observations)
    if df.empty:
        return None
    times = df["time"].to_numpy()
    to_minutes_array(times)
    return interval_start(int(times.min())), int(times.max())


def as_vectors(table: pd.DataFrame) -> Dict[tuple, List[int]]:
    """
    Convert an aggregated table to ``{group_key: [count, ...]}``.

    Keys are plain tuples of ``mode.key_columns`` values.
    """
    return {
        tuple(key): [int(v) for v in row]
        for key, row in zip(table.index.tolist(), table.to_numpy())
    }


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _validate(df: pd.DataFrame) -> None:
    """Reject the frame on the first class of malformed values found."""
    to_minutes_array(df["time"].to_numpy())

    negative = df["count"] < 0
    if negative.any():
        raise InvalidObservation(
            f"{int(negative.sum())} observation(s) have negative counts"
        )

    bad_dir = df["direction"].str.len() != 1
    if bad_dir.any():
        codes = sorted(set(df.loc[bad_dir, "direction"].tolist()))
        raise InvalidObservation(
            f"Direction codes must be single characters, got {codes}"
        )


def _reject_fractional(values: pd.Series, col: str) -> None:
    """Raise instead of letting ``astype("int64")`` truncate ``2.9`` to 2."""
    if not pd.api.types.is_float_dtype(values):
        return
    fractional = (values % 1 != 0).to_numpy()
    if not fractional.any():
        return
    offenders = sorted(set(values[fractional].tolist()))
    if col == "time":
        raise InvalidTimeCode(f"DMG times must be whole numbers, got {offenders}")
    raise InvalidObservation(
        f"Column '{col}' must hold whole numbers, got {offenders}"
    )


def _empty_table(keys: List[str], width: int) -> pd.DataFrame:
    index = pd.MultiIndex.from_arrays(
        [np.array([], dtype=np.int64) if k == "time" else np.array([], dtype=object)
         for k in keys],
        names=keys,
    )
    return pd.DataFrame(
        np.zeros((0, width), dtype=np.int64),
        index=index,
        columns=pd.RangeIndex(width),
    )
