"""
CCDRS Report Generator (Imperative Shell)

Thin orchestration layer: asks ``CountEngine`` for the annotated table,
renders and writes the titled text report, and optionally renders one Plotly
volume profile per (entity, direction) for interval reports.

No SQL lives here.  All data access goes through src/ccdrs/data/.

Package Location: src/ccdrs/reports/generators.py

Usage::

    from pathlib import Path
    from ccdrs.reports.generators import ReportGenerator

    gen = ReportGenerator(
        db_path=Path("ccdrs.db"),
        output_dir=Path("reports"),
    )
    gen.generate(
        region_id=1, survey_id=3, level="screenline", mode="interval",
        directions=["N", "S"], start=600, end=900, category_ids=[1, 2],
        plots=True,
    )
    # Writes:
    #   reports/Toronto_2016/screenline_interval.txt
    #   reports/Toronto_2016/screenline_SL01_N.html
    #   ...
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence, Union

import pandas as pd

from ..analysis.aggregation import ReportMode
from ..analysis.categories import CategorySelector
from ..analysis.formatting import SCREENLINE_LABEL, STATION_LABEL
from ..data.counts import CountEngine
from ..plotting.volumes import plot_interval_volumes

log = logging.getLogger(__name__)

LEVELS = ("station", "screenline")


class ReportGenerator:
    """
    Generates and saves count reports for one SQLite survey store.

    Responsibilities
    ----------------
    - Validate the report level and mode.
    - Delegate all DB access and core calls to ``CountEngine``.
    - Write the report text, and for interval reports optionally the
      per-entity HTML figures.

    Args:
        db_path: Path to the CCDRS SQLite database.
        output_dir: Root directory for report output.  A sub-directory named
            ``<Region>_<year>`` is created inside it per region and survey.
    """

    def __init__(self, db_path: Path, output_dir: Path) -> None:
        self.db_path = Path(db_path)
        self.output_dir = Path(output_dir)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def generate(
        self,
        region_id: int,
        survey_id: int,
        level: str,
        mode: Union[ReportMode, str],
        directions: Sequence[str],
        start: int,
        end: int,
        category_ids: Sequence[int],
        entities: Optional[Sequence[str]] = None,
        plots: bool = False,
    ) -> Path:
        """
        Build one report and write it to disk.

        Args:
            region_id: Region primary key.
            survey_id: Survey primary key.
            level: ``"station"`` or ``"screenline"``.
            mode: ``"total"`` or ``"interval"``.
            directions: Direction codes to include.
            start: Inclusive DMG window start.
            end: Inclusive DMG window end.
            category_ids: Category ids in column order.
            entities: Optional station or screenline codes to restrict to.
            plots: Also write Plotly HTML profiles (interval mode only).

        Returns:
            Path of the written ``.txt`` report.

        Raises:
            ValueError: If *level* or *mode* is not recognised.
            InvalidTimeCode / UnknownCategory / CoverageError: Propagated
                from the engine and the Functional Core.
        """
        if level not in LEVELS:
            raise ValueError(
                f"Unknown report level '{level}'. Use one of {list(LEVELS)}."
            )
        mode = ReportMode(mode)

        engine = CountEngine(self.db_path, region_id, survey_id)
        if level == "station":
            table = engine.station_counts(
                directions, start, end, category_ids, mode, stations=entities,
            )
            label = STATION_LABEL
        else:
            table = engine.screenline_counts(
                directions, start, end, category_ids, mode,
                screenlines=entities,
            )
            label = SCREENLINE_LABEL

        text = engine.render(table, category_ids, mode, label)
        selector = engine.selector(category_ids)
        title = engine.title()

        report_dir = self.output_dir / _safe_name(title)
        report_dir.mkdir(parents=True, exist_ok=True)
        out_path = report_dir / f"{level}_{mode.value}.txt"
        out_path.write_text(text, encoding="utf-8")

        log.info(
            "Report written",
            extra={
                "path": str(out_path),
                "report_level": level,
                "mode": mode.value,
                "rows": len(table),
            },
        )
        print(f"[{title}] {level} {mode.value} report saved → {out_path}")

        if plots:
            if mode is ReportMode.INTERVAL:
                self._write_plots(table, selector, level, title, report_dir)
            else:
                print(
                    f"[{title}] Plots are only drawn for interval reports"
                    " – skipping"
                )

        return out_path

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _write_plots(
        self,
        table: pd.DataFrame,
        selector: CategorySelector,
        level: str,
        title: str,
        report_dir: Path,
    ) -> List[Path]:
        """
        Write one HTML volume profile per (entity, direction) in *table*.

        Errors in individual plots are caught and printed so that a failure
        in one figure does not prevent the others from being saved.
        """
        if table.empty:
            print(f"[{title}] No rows – no plots drawn")
            return []

        written: List[Path] = []
        pairs = table.index.droplevel('time').unique()
        for entity, direction in pairs:
            try:
                fig = plot_interval_volumes(
                    table, selector.names, entity, direction, title=title,
                )
                out_path = report_dir / (
                    f"{level}_{_safe_name(entity)}_{direction}.html"
                )
                fig.write_html(str(out_path))
                written.append(out_path)
            except Exception as exc:
                log.exception(
                    "Plot failed",
                    extra={"entity": entity, "direction": direction},
                )
                print(f"[{title}] Plot {entity} {direction} FAILED: {exc}")

        print(f"[{title}] {len(written)} plot(s) saved → {report_dir}")
        return written


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------

def _safe_name(text: str) -> str:
    """``"Toronto 2016" -> "Toronto_2016"``, keeping only filename-safe chars."""
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "_", str(text).strip())
    return cleaned.strip("_") or "report"


# ---------------------------------------------------------------------------
# Convenience entry-point
# ---------------------------------------------------------------------------

def generate_report(
    db_path: Path,
    output_dir: Path,
    region_id: int,
    survey_id: int,
    level: str,
    mode: Union[ReportMode, str],
    directions: Sequence[str],
    start: int,
    end: int,
    category_ids: Sequence[int],
    entities: Optional[Sequence[str]] = None,
    plots: bool = False,
) -> Path:
    """
    Convenience function: create a ``ReportGenerator`` and write one report.

    Example::

        from pathlib import Path
        from ccdrs.reports.generators import generate_report

        generate_report(
            db_path=Path("ccdrs.db"),
            output_dir=Path("reports"),
            region_id=1, survey_id=3,
            level="station", mode="total",
            directions=["E", "W"], start=601, end=900,
            category_ids=[1, 2, 5],
        )
    """
    return ReportGenerator(db_path=db_path, output_dir=output_dir).generate(
        region_id, survey_id, level, mode, directions, start, end,
        category_ids, entities=entities, plots=plots,
    )
