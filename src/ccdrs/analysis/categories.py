"""
CCDRS Count Categories (Functional Core)

Pure functions only. No I/O, no SQL, no side effects.

A *category* is one vehicle-type / occupancy combination (``Auto1``,
``Auto2``, ``Bus``...) and defines one column of every report.  Categories
come in three kinds, modelled by :class:`CountType`:

    TECHNOLOGY     – individual vehicle/occupancy counts
    VEHICLE_TOTAL  – total vehicle counts
    PERSON_TOTAL   – total person counts

Package Location: src/ccdrs/analysis/categories.py

Column-order contract:
    The caller's selection is kept exactly as given – no sorting, no
    deduplication.  :class:`CategorySelector` turns it into a positional
    ``category_id -> column`` map ONCE; aggregation and formatting both read
    column placement from that map and nowhere else.  For an id selected
    more than once the first position owns the counts and the repeat stays 0.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence

import pandas as pd


class UnknownCategory(KeyError):
    """
    Raised when a category id is looked up outside the current selection, or
    a selected id has no display name.
    """

    def __str__(self) -> str:
        # KeyError.__str__ wraps the message in quotes
        return str(self.args[0]) if self.args else ""


class CountType(IntEnum):
    """Kind of count a category holds (values match the stored codes)."""

    TECHNOLOGY = 1
    VEHICLE_TOTAL = 2
    PERSON_TOTAL = 3


class Category(NamedTuple):
    """One selectable report column."""

    id: int
    name: str
    count_type: CountType
    occupancy: int
    description: str = ""
    display_order: int = 0


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

class CategorySelector:
    """
    Ordered category selection and its precomputed column map.

    Args:
        category_ids: Selected category ids in report column order.
        names: Optional ``{category_id: display_name}`` lookup, used for the
            report header.  Extra entries are ignored.

    Raises:
        ValueError: If *category_ids* is empty.

    Example::

        sel = CategorySelector([7, 3], names={3: "Auto1", 7: "Bus"})
        sel.index_of(3)   # -> 1
        sel.names         # -> ["Bus", "Auto1"]
    """

    def __init__(
        self,
        category_ids: Iterable[int],
        names: Optional[Mapping[int, str]] = None,
    ) -> None:
        self._ids: List[int] = [int(c) for c in category_ids]
        if not self._ids:
            raise ValueError("At least one category must be selected")

        column_map: Dict[int, int] = {}
        for position, cat_id in enumerate(self._ids):
            column_map.setdefault(cat_id, position)
        self._column_map = column_map
        self._names: Dict[int, str] = (
            {int(k): str(v) for k, v in names.items()} if names else {}
        )

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"CategorySelector({self._ids!r})"

    @property
    def ids(self) -> List[int]:
        """Selected ids in column order (a copy)."""
        return list(self._ids)

    @property
    def column_map(self) -> Dict[int, int]:
        """``{category_id: column_index}`` (a copy)."""
        return dict(self._column_map)

    @property
    def names(self) -> List[str]:
        """
        Display names in column order.

        Raises:
            UnknownCategory: If a selected id has no display name.
        """
        missing = [c for c in self._ids if c not in self._names]
        if missing:
            raise UnknownCategory(
                f"No display name for selected category id(s) {missing}"
            )
        return [self._names[c] for c in self._ids]

    def index_of(self, category_id: int) -> int:
        """
        Column index of *category_id*.

        Raises:
            UnknownCategory: If the id is not part of the selection.
        """
        try:
            return self._column_map[int(category_id)]
        except KeyError:
            raise UnknownCategory(
                f"Category id {category_id} is not in the selection {self._ids}"
            ) from None

    def columns_for(self, category_ids: pd.Series) -> pd.Series:
        """
        Map a whole column of category ids to column indices in one pass.

        Args:
            category_ids: Integer Series of category ids.

        Returns:
            int64 Series of column indices aligned with *category_ids*.

        Raises:
            UnknownCategory: Naming every id outside the selection.
        """
        columns = category_ids.map(self._column_map)
        unknown = columns.isna()
        if unknown.any():
            bad = sorted(set(category_ids[unknown].tolist()))
            raise UnknownCategory(
                f"Category id(s) {bad} are not in the selection {self._ids}"
            )
        return columns.astype("int64")


# ---------------------------------------------------------------------------
# Category list helpers
# ---------------------------------------------------------------------------

def category_display_name(vehicle_name: str, occupancy: int) -> str:
    """Return the report header name, e.g. ``("Auto", 1) -> "Auto1"``."""
    return f"{vehicle_name}{occupancy}"


def filter_by_count_type(
    categories: Iterable[Category],
    count_type: CountType,
) -> List[Category]:
    """
    Keep only categories of one :class:`CountType`, preserving order.

    Raises:
        ValueError: If *count_type* is not a valid ``CountType`` value.
    """
    count_type = CountType(count_type)
    return [c for c in categories if c.count_type == count_type]


def technology_categories(categories: Iterable[Category]) -> List[Category]:
    return filter_by_count_type(categories, CountType.TECHNOLOGY)


def vehicle_total_categories(categories: Iterable[Category]) -> List[Category]:
    return filter_by_count_type(categories, CountType.VEHICLE_TOTAL)


def person_total_categories(categories: Iterable[Category]) -> List[Category]:
    return filter_by_count_type(categories, CountType.PERSON_TOTAL)


def sort_categories(categories: Iterable[Category]) -> List[Category]:
    """Order categories for display: vehicle display order, then occupancy."""
    return sorted(categories, key=lambda c: (c.display_order, c.occupancy))


def names_by_id(categories: Sequence[Category]) -> Dict[int, str]:
    """Return ``{id: name}`` for building a :class:`CategorySelector`."""
    return {c.id: c.name for c in categories}
