"""
CCDRS Count Engine (Imperative Shell)

Orchestrates station and screenline count reports by querying the SQLite
survey store and delegating to the Functional Core (``analysis/``).

Package Location: src/ccdrs/data/counts.py

Request scope:
    Every call is scoped by the engine's ``region_id`` / ``survey_id`` plus
    the per-call directions, inclusive DMG window and ordered category ids.
    ``stations`` / ``screenlines`` optionally restrict the report to a
    subset (the "specific station" and "specific screenline" reports).

Checksums:
    Station reports carry a ``StationCount`` of 1 on every row.  Screenline
    reports look up the distinct surveyed member stations per
    (screenline, direction) from ``screenline_station``.  TOTAL rows share
    the observed window of the report; INTERVAL rows use their own bucket.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from .manager import DatabaseManager
from .reader import (
    get_category_names,
    get_report_title,
    get_screenline_memberships,
    get_screenline_observations,
    get_station_observations,
    get_survey_categories,
)
from ..analysis.aggregation import (
    ReportMode,
    aggregate_observations,
    observation_window,
)
from ..analysis.categories import (
    Category,
    CategorySelector,
    CountType,
    filter_by_count_type,
)
from ..analysis.coverage import annotate_coverage, coverage_counts
from ..analysis.formatting import (
    SCREENLINE_LABEL,
    STATION_LABEL,
    format_report,
)
from ..analysis.timecodes import validate_window

log = logging.getLogger(__name__)


class CountEngine:
    """
    Produces count reports for one region and survey.

    Example::

        engine = CountEngine(Path("ccdrs.db"), region_id=1, survey_id=3)

        # Total volume per station, eastbound and westbound, 06:01-09:00
        df = engine.station_counts(["E", "W"], 601, 900, [1, 2, 5])

        # Titled text of the same request, broken into 15-minute rows
        text = engine.station_report(
            ["E", "W"], 601, 900, [1, 2, 5], mode="interval",
        )

        # Screenline totals for two screenlines only
        df = engine.screenline_counts(
            ["N", "S"], 600, 1900, [1], screenlines=["SL01", "SL02"],
        )
    """

    def __init__(self, db_path: Path, region_id: int, survey_id: int):
        """
        Args:
            db_path:   Path to the CCDRS SQLite database.
            region_id: Region primary key.
            survey_id: Survey primary key (expected to belong to the region).
        """
        self.db_path = Path(db_path)
        self.region_id = int(region_id)
        self.survey_id = int(survey_id)
        self._names: Optional[Dict[int, str]] = None
        self._title: Optional[str] = None

    # ------------------------------------------------------------------
    # Public methods
    # ------------------------------------------------------------------

    def station_counts(
        self,
        directions: Sequence[str],
        start: int,
        end: int,
        category_ids: Sequence[int],
        mode: Union[ReportMode, str] = ReportMode.TOTAL,
        stations: Optional[Sequence[str]] = None,
    ) -> pd.DataFrame:
        """
        Annotated per-station count table.

        Args:
            directions: Direction codes to include.
            start: Inclusive DMG window start.
            end: Inclusive DMG window end.
            category_ids: Category ids in report column order.
            mode: ``"total"`` or ``"interval"``.
            stations: Optional station codes; ``None`` means all stations.

        Returns:
            DataFrame indexed by ``(entity, direction[, time])`` with the
            checksum columns followed by one int64 column per category.

        Raises:
            InvalidTimeCode: If the window is malformed or reversed.
            ValueError: If *category_ids* is empty.
        """
        mode = ReportMode(mode)
        start, end = validate_window(start, end)
        selector = self.selector(category_ids)

        observations = get_station_observations(
            self.db_path, self.region_id, self.survey_id,
            directions, start, end, selector.ids, station_codes=stations,
        )
        log.info(
            "Station observations loaded",
            extra={
                "survey_id": self.survey_id,
                "rows": len(observations),
                "mode": mode.value,
            },
        )
        return self._annotate(observations, selector, mode, coverage=None)

    def screenline_counts(
        self,
        directions: Sequence[str],
        start: int,
        end: int,
        category_ids: Sequence[int],
        mode: Union[ReportMode, str] = ReportMode.TOTAL,
        screenlines: Optional[Sequence[str]] = None,
    ) -> pd.DataFrame:
        """
        Annotated per-screenline count table.

        Same arguments as :meth:`station_counts`, with *screenlines*
        restricting the screenline codes.  ``StationCount`` is the number of
        distinct surveyed stations in the screenline for that direction.

        Raises:
            InvalidTimeCode: If the window is malformed or reversed.
            CoverageError: If observations arrive for a screenline/direction
                with no surveyed member station.
        """
        mode = ReportMode(mode)
        start, end = validate_window(start, end)
        selector = self.selector(category_ids)

        observations = get_screenline_observations(
            self.db_path, self.region_id, self.survey_id,
            directions, start, end, selector.ids, sline_codes=screenlines,
        )
        coverage = coverage_counts(
            get_screenline_memberships(
                self.db_path, self.region_id, self.survey_id,
            )
        )
        log.info(
            "Screenline observations loaded",
            extra={
                "survey_id": self.survey_id,
                "rows": len(observations),
                "screenlines": len({e for e, _ in coverage}),
                "mode": mode.value,
            },
        )
        return self._annotate(observations, selector, mode, coverage=coverage)

    def station_report(
        self,
        directions: Sequence[str],
        start: int,
        end: int,
        category_ids: Sequence[int],
        mode: Union[ReportMode, str] = ReportMode.TOTAL,
        stations: Optional[Sequence[str]] = None,
    ) -> str:
        """Titled station report text; see :meth:`station_counts`."""
        table = self.station_counts(
            directions, start, end, category_ids, mode, stations,
        )
        return self.render(table, category_ids, mode, STATION_LABEL)

    def screenline_report(
        self,
        directions: Sequence[str],
        start: int,
        end: int,
        category_ids: Sequence[int],
        mode: Union[ReportMode, str] = ReportMode.TOTAL,
        screenlines: Optional[Sequence[str]] = None,
    ) -> str:
        """Titled screenline report text; see :meth:`screenline_counts`."""
        table = self.screenline_counts(
            directions, start, end, category_ids, mode, screenlines,
        )
        return self.render(table, category_ids, mode, SCREENLINE_LABEL)

    def categories(
        self,
        count_type: Optional[Union[CountType, int]] = None,
    ) -> List[Category]:
        """
        Categories observed in the survey, in display order.

        Args:
            count_type: Optional ``CountType`` filter.
        """
        cats = get_survey_categories(self.db_path, self.survey_id)
        if count_type is not None:
            cats = filter_by_count_type(cats, CountType(count_type))
        return cats

    def title(self) -> str:
        """Report title line, ``"<Region name> <year>"``; looked up once."""
        if self._title is None:
            self._title = get_report_title(
                self.db_path, self.region_id, self.survey_id,
            )
        return self._title

    def selector(self, category_ids: Sequence[int]) -> CategorySelector:
        """Named ``CategorySelector``; category names are loaded once."""
        if self._names is None:
            self._names = get_category_names(self.db_path)
        return CategorySelector(category_ids, names=self._names)

    def render(
        self,
        table: pd.DataFrame,
        category_ids: Sequence[int],
        mode: Union[ReportMode, str],
        entity_label: str,
    ) -> str:
        """
        Titled report text for a table from :meth:`station_counts` or
        :meth:`screenline_counts`.

        Args:
            table: Annotated count table.
            category_ids: The ids the table was built with.
            mode: Mode the table was built with.
            entity_label: ``STATION_LABEL`` or ``SCREENLINE_LABEL``.
        """
        text = format_report(
            table, self.selector(category_ids), mode, entity_label,
        )
        return f"{self.title()}\n{text}"

    def region_survey(self) -> Dict[str, object]:
        """``{"region": name, "year": year}`` with ``None`` for missing rows."""
        with DatabaseManager(self.db_path) as m:
            region = m.get_region(self.region_id)
            survey = m.get_survey(self.survey_id)
        return {
            "region": region["name"] if region else None,
            "year": survey["year"] if survey else None,
        }

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _annotate(
        observations: pd.DataFrame,
        selector: CategorySelector,
        mode: ReportMode,
        coverage: Optional[Dict] = None,
    ) -> pd.DataFrame:
        table = aggregate_observations(observations, selector, mode)
        window = (
            observation_window(observations)
            if mode is ReportMode.TOTAL else None
        )
        return annotate_coverage(table, mode, window=window, coverage=coverage)


# ---------------------------------------------------------------------------
# Convenience entry-points
# ---------------------------------------------------------------------------

def get_station_report(
    db_path: Path,
    region_id: int,
    survey_id: int,
    directions: Sequence[str],
    start: int,
    end: int,
    category_ids: Sequence[int],
    mode: Union[ReportMode, str] = ReportMode.TOTAL,
    stations: Optional[Sequence[str]] = None,
) -> str:
    """Convenience wrapper around :class:`CountEngine`.station_report."""
    return CountEngine(db_path, region_id, survey_id).station_report(
        directions, start, end, category_ids, mode=mode, stations=stations,
    )


def get_screenline_report(
    db_path: Path,
    region_id: int,
    survey_id: int,
    directions: Sequence[str],
    start: int,
    end: int,
    category_ids: Sequence[int],
    mode: Union[ReportMode, str] = ReportMode.TOTAL,
    screenlines: Optional[Sequence[str]] = None,
) -> str:
    """Convenience wrapper around :class:`CountEngine`.screenline_report."""
    return CountEngine(db_path, region_id, survey_id).screenline_report(
        directions, start, end, category_ids, mode=mode,
        screenlines=screenlines,
    )
