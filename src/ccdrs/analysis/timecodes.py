"""
CCDRS DMG Time Codes (Functional Core)

Pure functions only. No I/O, no SQL, no side effects.

Survey observations carry their time-of-day as a "DMG" integer: ``HHMM``
written as ``HH * 100 + MM`` (e.g. ``615`` is 06:15, ``1345`` is 13:45).
DMG values are NOT linear, so every subtraction or bucket calculation must go
through linear minutes-of-day first.

Package Location: src/ccdrs/analysis/timecodes.py

Fifteen-minute buckets:
    A stored observation time marks the END of a 15-minute count interval.
    The bucket ending at ``t`` starts 14 minutes earlier (``615`` covers
    ``601`` through ``615`` inclusive), so consecutive buckets never share a
    minute.

Validation:
    Only the sign and the minute field are checked.  Hours above 23 are
    accepted because surveys that run past midnight keep counting upward in
    DMG notation.
"""

from __future__ import annotations

from typing import Iterable, Union

import numpy as np

INTERVAL_MINUTES: int = 15

# Offset from a bucket's end time to its first minute.
_BUCKET_OFFSET: int = INTERVAL_MINUTES - 1


class InvalidTimeCode(ValueError):
    """
    Raised for a DMG value whose minute field is 60 or more, a negative time,
    or an interval whose end precedes its start.
    """
    pass


# ---------------------------------------------------------------------------
# Scalar API
# ---------------------------------------------------------------------------

def to_minutes(dmg: int) -> int:
    """
    Convert a DMG time to linear minutes after midnight.

    Args:
        dmg: DMG-encoded time, e.g. ``615``.

    Returns:
        Minutes after midnight, e.g. ``375``.

    Raises:
        InvalidTimeCode: If *dmg* is negative or its minute field is >= 60.
    """
    dmg = int(dmg)
    if dmg < 0:
        raise InvalidTimeCode(f"DMG time {dmg} is negative")
    hours, minutes = divmod(dmg, 100)
    if minutes >= 60:
        raise InvalidTimeCode(
            f"DMG time {dmg} has minute field {minutes} (must be < 60)"
        )
    return hours * 60 + minutes


def to_dmg(minutes: int) -> int:
    """
    Convert linear minutes after midnight back to a DMG time.

    Args:
        minutes: Minutes after midnight.

    Returns:
        DMG-encoded time.

    Raises:
        InvalidTimeCode: If *minutes* is negative (a time before 0000).
    """
    minutes = int(minutes)
    if minutes < 0:
        raise InvalidTimeCode(
            f"{minutes} minutes falls before midnight and has no DMG form"
        )
    hours, mins = divmod(minutes, 60)
    return hours * 100 + mins


def interval_start(dmg: int) -> int:
    """
    Return the first minute of the 15-minute bucket that ends at *dmg*.

    Example::

        interval_start(615)  # -> 601
        interval_start(700)  # -> 646

    Raises:
        InvalidTimeCode: If *dmg* is malformed or the bucket would start
            before midnight.
    """
    return to_dmg(to_minutes(dmg) - _BUCKET_OFFSET)


def interval_count(start_dmg: int, end_dmg: int) -> int:
    """
    Number of 15-minute buckets spanning ``[start_dmg, end_dmg]``.

    Computed as ``((minutes(end) - minutes(start)) // 15) + 1``, so a window
    that starts and ends on the same time holds exactly one bucket.

    Raises:
        InvalidTimeCode: If either bound is malformed or *end_dmg* precedes
            *start_dmg*.
    """
    start = to_minutes(start_dmg)
    end = to_minutes(end_dmg)
    if end < start:
        raise InvalidTimeCode(
            f"Interval end {end_dmg} precedes interval start {start_dmg}"
        )
    return (end - start) // INTERVAL_MINUTES + 1


def validate_window(start_dmg: int, end_dmg: int) -> tuple[int, int]:
    """
    Check a requested ``[start, end]`` DMG window before any query runs.

    Returns:
        The window as a tuple of plain ints.

    Raises:
        InvalidTimeCode: If either bound is malformed or the window is
            reversed.
    """
    interval_count(start_dmg, end_dmg)
    return int(start_dmg), int(end_dmg)


# ---------------------------------------------------------------------------
# Vectorised API (used on whole DataFrame columns)
# ---------------------------------------------------------------------------

def to_minutes_array(values: Union[Iterable[int], np.ndarray]) -> np.ndarray:
    """
    Vectorised :func:`to_minutes`.

    The whole column is rejected when any value is malformed; the error
    message lists (up to five of) the offending values.

    Returns:
        int64 array of minutes after midnight.
    """
    dmg = np.asarray(values, dtype=np.int64)
    hours, minutes = np.divmod(dmg, 100)
    bad = (dmg < 0) | (minutes >= 60)
    if bad.any():
        offenders = sorted(set(dmg[bad].tolist()))
        raise InvalidTimeCode(
            f"Malformed DMG time(s): {offenders[:5]}"
            + (" ..." if len(offenders) > 5 else "")
        )
    return hours * 60 + minutes


def to_dmg_array(minutes: Union[Iterable[int], np.ndarray]) -> np.ndarray:
    """Vectorised :func:`to_dmg`."""
    mins = np.asarray(minutes, dtype=np.int64)
    if (mins < 0).any():
        raise InvalidTimeCode(
            f"{int(mins.min())} minutes falls before midnight and has no DMG form"
        )
    hours, rest = np.divmod(mins, 60)
    return hours * 100 + rest


def interval_start_array(values: Union[Iterable[int], np.ndarray]) -> np.ndarray:
    """Vectorised :func:`interval_start`."""
    return to_dmg_array(to_minutes_array(values) - _BUCKET_OFFSET)
