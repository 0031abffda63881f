"""
CCDRS Interval Volume Plot (Functional Core)

Pure function – no SQL, no file I/O, no side effects.
Input: annotated INTERVAL-mode count table + category display names.
Output: plotly.graph_objects.Figure.

Package Location: src/ccdrs/plotting/volumes.py

Layout:
    One stacked bar per 15-minute interval, one trace per category, for a
    single (entity, direction).  The x-axis shows interval end times as
    ``HH:MM`` labels in the order they occur; intervals with no rows are not
    drawn.  The hover text carries the ``StationCount`` checksum so a thin
    screenline bar can be told apart from a missing station.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import pandas as pd
import plotly.graph_objects as go

from ..analysis.coverage import CHECKSUM_COLUMNS, STATION_COUNT

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_PALETTE: List[str] = [
    '#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd',
    '#8c564b', '#e377c2', '#7f7f7f', '#bcbd22', '#17becf',
]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def plot_interval_volumes(
    annotated: pd.DataFrame,
    category_names: Sequence[str],
    entity: str,
    direction: str,
    title: Optional[str] = None,
) -> go.Figure:
    """
    Build a stacked-bar volume profile for one entity and direction.

    Args:
        annotated: INTERVAL-mode output of ``annotate_coverage``, indexed by
            ``(entity, direction, time)`` with integer category columns
            ``0..k-1``.
        category_names: Display names for the category columns, in column
            order (``CategorySelector.names``).
        entity: Station or screenline code to plot.
        direction: One-character direction code.
        title: Optional figure title prefix (e.g. ``"Toronto 2016"``).

    Returns:
        ``plotly.graph_objects.Figure``.  Empty (no traces) when the table
        has no rows for *entity* / *direction*.

    Raises:
        ValueError: If *annotated* is not indexed by entity, direction and
            time, or if the number of names does not match the category
            columns.
    """
    if list(annotated.index.names) != ['entity', 'direction', 'time']:
        raise ValueError(
            "plot_interval_volumes needs an interval table indexed by "
            f"(entity, direction, time), got {list(annotated.index.names)}"
        )

    category_cols = [c for c in annotated.columns if c not in CHECKSUM_COLUMNS]
    if len(category_cols) != len(category_names):
        raise ValueError(
            f"{len(category_names)} category names given for "
            f"{len(category_cols)} category columns"
        )

    fig = go.Figure()
    heading = f"{entity} {direction} – 15-minute volumes"
    fig.update_layout(
        title=f"{title} · {heading}" if title else heading,
        barmode='stack',
        xaxis_title='Interval end',
        yaxis_title='Count',
        legend_title='Category',
        template='plotly_white',
    )

    mask = (
        (annotated.index.get_level_values('entity') == entity)
        & (annotated.index.get_level_values('direction') == direction)
    )
    rows = annotated.loc[mask]
    if rows.empty:
        return fig

    rows = rows.sort_index(level='time')
    times = rows.index.get_level_values('time')
    labels = [_time_label(t) for t in times]
    stations = rows[STATION_COUNT].tolist() if STATION_COUNT in rows else None

    for i, (col, name) in enumerate(zip(category_cols, category_names)):
        fig.add_trace(go.Bar(
            x=labels,
            y=rows[col].tolist(),
            name=name,
            marker_color=_PALETTE[i % len(_PALETTE)],
            customdata=stations,
            hovertemplate=(
                f"{name}: %{{y}}<br>Interval end %{{x}}"
                + ("<br>Stations %{customdata}" if stations else "")
                + "<extra></extra>"
            ),
        ))

    fig.update_xaxes(type='category')
    return fig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _time_label(dmg: int) -> str:
    """``615 -> "06:15"``; hours past 23 are kept as-is (``2415 -> "24:15"``)."""
    dmg = int(dmg)
    return f"{dmg // 100:02d}:{dmg % 100:02d}"
