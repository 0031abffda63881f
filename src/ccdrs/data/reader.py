"""
CCDRS Data Reader (Imperative Shell)

Queries the survey store and returns the canonical DataFrames consumed by
the Functional Core.  Every function opens its own ``DatabaseManager``
context, so calls are independent and safe to run side by side.

Package Location: src/ccdrs/data/reader.py

Observation frames:
    Columns ``[entity, direction, time, category_id, count]``, matching
    ``analysis.aggregation.OBSERVATION_COLUMNS``.  Rows are raw stored
    observations – summation is left to the core.

    * station frames use ``station.station_code`` as ``entity``
    * screenline frames use ``screenline.sline_code`` as ``entity``; a
      station mapped into several screenlines contributes to each

Time filtering:
    Both window bounds are inclusive: ``start <= time <= end``.  Callers
    validate the window with ``analysis.timecodes.validate_window`` first.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .manager import DatabaseManager
from ..analysis.categories import Category, CountType, category_display_name

_OBSERVATION_SELECT = """
    SELECT {entity} AS entity,
           st.direction AS direction,
           sco.time AS time,
           sco.vehicle_count_type_id AS category_id,
           sco.observation AS count
    FROM   station_count_observation sco
    JOIN   survey_station ss ON sco.survey_station_id = ss.id
    JOIN   station st        ON ss.station_id = st.id
"""


# ---------------------------------------------------------------------------
# Public API – observations
# ---------------------------------------------------------------------------

def get_station_observations(
    db_path: Path,
    region_id: int,
    survey_id: int,
    directions: Sequence[str],
    start: int,
    end: int,
    category_ids: Sequence[int],
    station_codes: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Fetch station-level observations for one region and survey.

    Args:
        db_path: Path to the SQLite database.
        region_id: Region primary key.
        survey_id: Survey primary key.
        directions: Direction codes to include (e.g. ``["N", "S"]``).
        start: Inclusive DMG window start.
        end: Inclusive DMG window end.
        category_ids: Vehicle-count-type ids to include.
        station_codes: Optional subset of station codes; ``None`` means every
            station in the region.

    Returns:
        Observation frame keyed by station code.  Empty (with the correct
        columns) when nothing matches.
    """
    sql = _OBSERVATION_SELECT.format(entity="st.station_code")
    clauses = ["st.region_id = ?", "ss.survey_id = ?"]
    params: list = [region_id, survey_id]

    _add_common_filters(clauses, params, directions, start, end, category_ids)
    if station_codes is not None:
        _add_in_clause(clauses, params, "st.station_code", station_codes)

    sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY st.station_code, sco.time, sco.vehicle_count_type_id"

    with DatabaseManager(db_path) as m:
        return _as_observations(m.query_df(sql, params))


def get_screenline_observations(
    db_path: Path,
    region_id: int,
    survey_id: int,
    directions: Sequence[str],
    start: int,
    end: int,
    category_ids: Sequence[int],
    sline_codes: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """
    Fetch observations of every station mapped into a screenline.

    Args are as for :func:`get_station_observations`, with *sline_codes*
    restricting the screenlines instead of stations.

    Returns:
        Observation frame keyed by screenline code, one row per stored
        station observation.
    """
    sql = _OBSERVATION_SELECT.format(entity="sl.sline_code") + """
    JOIN   screenline_station sls ON sls.station_id = st.id
    JOIN   screenline sl          ON sl.id = sls.screenline_id
    """
    clauses = [
        "sl.region_id = ?",
        "st.region_id = sl.region_id",
        "ss.survey_id = ?",
    ]
    params: list = [region_id, survey_id]

    _add_common_filters(clauses, params, directions, start, end, category_ids)
    if sline_codes is not None:
        _add_in_clause(clauses, params, "sl.sline_code", sline_codes)

    sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY sl.sline_code, sco.time, sco.vehicle_count_type_id"

    with DatabaseManager(db_path) as m:
        return _as_observations(m.query_df(sql, params))


def get_screenline_memberships(
    db_path: Path,
    region_id: int,
    survey_id: int,
) -> pd.DataFrame:
    """
    List the stations that make up each screenline for one survey.

    A station counts as a member when it is mapped into the screenline, lies
    in the same region, and was part of the survey (has a
    ``survey_station`` row).

    Returns:
        DataFrame with columns ``[entity, direction, station_id]``; a station
        surveyed more than once appears once per ``survey_station`` row
        (``analysis.coverage.coverage_counts`` counts distinct ids).
    """
    sql = """
        SELECT sl.sline_code AS entity,
               st.direction  AS direction,
               st.id         AS station_id
        FROM   screenline sl
        JOIN   screenline_station sls ON sls.screenline_id = sl.id
        JOIN   station st             ON st.id = sls.station_id
                                     AND st.region_id = sl.region_id
        JOIN   survey_station ss      ON ss.station_id = st.id
        JOIN   survey su              ON su.id = ss.survey_id
                                     AND su.region_id = sl.region_id
        WHERE  sl.region_id = ?
          AND  su.id = ?
        ORDER BY sl.sline_code, st.direction, st.id
    """
    with DatabaseManager(db_path) as m:
        return m.query_df(sql, [region_id, survey_id])


# ---------------------------------------------------------------------------
# Public API – categories and entities
# ---------------------------------------------------------------------------

def get_survey_categories(db_path: Path, survey_id: int) -> List[Category]:
    """
    Categories that have at least one observation in a survey.

    Returns:
        List of :class:`Category`, ordered by vehicle display order and then
        occupancy.

    Raises:
        ValueError: If a stored ``count_type`` is not a known ``CountType``.
    """
    sql = """
        SELECT DISTINCT vct.id            AS id,
                        v.name            AS vehicle_name,
                        vct.occupancy     AS occupancy,
                        vct.description   AS description,
                        vct.count_type    AS count_type,
                        v.display_order   AS display_order
        FROM   vehicle_count_type vct
        JOIN   vehicle v                     ON v.id = vct.vehicle_id
        JOIN   station_count_observation sco ON sco.vehicle_count_type_id = vct.id
        JOIN   survey_station ss             ON ss.id = sco.survey_station_id
        WHERE  ss.survey_id = ?
        ORDER BY v.display_order, vct.occupancy, vct.id
    """
    with DatabaseManager(db_path) as m:
        df = m.query_df(sql, [survey_id])

    return [
        Category(
            id=int(row.id),
            name=category_display_name(row.vehicle_name, int(row.occupancy)),
            count_type=CountType(int(row.count_type)),
            occupancy=int(row.occupancy),
            description=row.description or "",
            display_order=int(row.display_order),
        )
        for row in df.itertuples(index=False)
    ]


def get_category_names(db_path: Path) -> Dict[int, str]:
    """Return ``{vehicle_count_type_id: "<vehicle name><occupancy>"}``."""
    sql = """
        SELECT vct.id AS id, v.name AS vehicle_name, vct.occupancy AS occupancy
        FROM   vehicle_count_type vct
        JOIN   vehicle v ON v.id = vct.vehicle_id
    """
    with DatabaseManager(db_path) as m:
        df = m.query_df(sql)
    return {
        int(row.id): category_display_name(row.vehicle_name, int(row.occupancy))
        for row in df.itertuples(index=False)
    }


def get_stations(db_path: Path, region_id: int, survey_id: int) -> pd.DataFrame:
    """
    Stations of a region that took part in a survey.

    Returns:
        DataFrame ``[id, station_code, station_num, direction, description]``
        ordered by station number.
    """
    sql = """
        SELECT DISTINCT st.id, st.station_code, st.station_num,
                        st.direction, st.description
        FROM   station st
        JOIN   survey_station ss ON ss.station_id = st.id
        WHERE  st.region_id = ? AND ss.survey_id = ?
        ORDER BY st.station_num, st.station_code
    """
    with DatabaseManager(db_path) as m:
        return m.query_df(sql, [region_id, survey_id])


def get_screenlines(db_path: Path, region_id: int) -> pd.DataFrame:
    """Screenlines of a region: ``[id, sline_code, note]`` ordered by code."""
    with DatabaseManager(db_path) as m:
        return m.query_df(
            "SELECT id, sline_code, note FROM screenline "
            "WHERE region_id = ? ORDER BY sline_code",
            [region_id],
        )


def get_report_title(db_path: Path, region_id: int, survey_id: int) -> str:
    """
    First line of a report: ``"<region name> <survey year>"``.

    Falls back to ``"Unknown Region"`` for a missing region and an empty year
    for a missing survey.
    """
    with DatabaseManager(db_path) as m:
        region = m.get_region(region_id)
        survey = m.get_survey(survey_id)
    name = region["name"] if region else "Unknown Region"
    year = survey["year"] if survey else ""
    return f"{name} {year}"


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _add_common_filters(
    clauses: List[str],
    params: list,
    directions: Sequence[str],
    start: int,
    end: int,
    category_ids: Sequence[int],
) -> None:
    clauses.append("sco.time >= ?")
    clauses.append("sco.time <= ?")
    params.extend([int(start), int(end)])
    _add_in_clause(clauses, params, "st.direction", list(directions))
    _add_in_clause(
        clauses, params, "sco.vehicle_count_type_id",
        [int(c) for c in category_ids],
    )


def _add_in_clause(
    clauses: List[str],
    params: list,
    column: str,
    values: Sequence,
) -> None:
    """Append ``column IN (?, ...)``; an empty list matches nothing."""
    values = list(values)
    if not values:
        clauses.append("0 = 1")
        return
    ph = ", ".join("?" for _ in values)
    clauses.append(f"{column} IN ({ph})")
    params.extend(values)


def _as_observations(df: pd.DataFrame) -> pd.DataFrame:
    """Normalise reader output dtypes to the observation contract."""
    if df.empty:
        return pd.DataFrame(
            columns=["entity", "direction", "time", "category_id", "count"]
        )
    return df.astype({
        "entity": str,
        "direction": str,
        "time": "int64",
        "category_id": "int64",
        "count": "int64",
    })
