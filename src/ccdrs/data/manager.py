"""
Database Manager for CCDRS (Imperative Shell)

Owns the SQLite connection, the read schema of the survey store, and the
small lookup queries (regions, surveys, directions) that the reporting shell
needs around the observation queries in ``reader.py``.

Package Location: src/ccdrs/data/manager.py

Schema overview::

    region ─┬─ survey ─────────── survey_station ── station_count_observation
            ├─ station ─────────┘        (time, observation, vehicle_count_type_id)
            └─ screenline ── screenline_station ── station
    vehicle ── vehicle_count_type
    direction

Zero counts are never stored in ``station_count_observation``; readers and
the Functional Core treat a missing row as a zero.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

log = logging.getLogger(__name__)

_SCHEMA: List[str] = [
    """
    CREATE TABLE IF NOT EXISTS region (
        id   INTEGER PRIMARY KEY,
        name TEXT    NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS survey (
        id        INTEGER PRIMARY KEY,
        region_id INTEGER NOT NULL REFERENCES region (id),
        year      INTEGER NOT NULL,
        notes     TEXT,
        UNIQUE (region_id, year)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS station (
        id           INTEGER PRIMARY KEY,
        region_id    INTEGER NOT NULL REFERENCES region (id),
        station_code TEXT    NOT NULL,
        station_num  INTEGER NOT NULL,
        direction    TEXT    NOT NULL CHECK (length(direction) = 1),
        description  TEXT    NOT NULL DEFAULT '',
        UNIQUE (region_id, station_code)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS screenline (
        id         INTEGER PRIMARY KEY,
        region_id  INTEGER NOT NULL REFERENCES region (id),
        sline_code TEXT    NOT NULL,
        note       TEXT    NOT NULL DEFAULT '',
        UNIQUE (region_id, sline_code)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS screenline_station (
        screenline_id INTEGER NOT NULL REFERENCES screenline (id),
        station_id    INTEGER NOT NULL REFERENCES station (id),
        PRIMARY KEY (screenline_id, station_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS survey_station (
        id         INTEGER PRIMARY KEY,
        station_id INTEGER NOT NULL REFERENCES station (id),
        survey_id  INTEGER NOT NULL REFERENCES survey (id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vehicle (
        id            INTEGER PRIMARY KEY,
        name          TEXT    NOT NULL,
        display_order INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS vehicle_count_type (
        id          INTEGER PRIMARY KEY,
        vehicle_id  INTEGER NOT NULL REFERENCES vehicle (id),
        occupancy   INTEGER NOT NULL,
        description TEXT    NOT NULL DEFAULT '',
        count_type  INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS station_count_observation (
        survey_station_id     INTEGER NOT NULL REFERENCES survey_station (id),
        vehicle_count_type_id INTEGER NOT NULL REFERENCES vehicle_count_type (id),
        observation           INTEGER NOT NULL,
        time                  INTEGER NOT NULL,
        PRIMARY KEY (survey_station_id, vehicle_count_type_id, time)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS direction (
        id           INTEGER PRIMARY KEY,
        compass      TEXT NOT NULL,
        abbreviation TEXT NOT NULL CHECK (length(abbreviation) = 1)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_sco_time
    ON station_count_observation (time)
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_survey_station_survey
    ON survey_station (survey_id, station_id)
    """,
]


class DatabaseManager:
    """Manages SQLite access for the CCDRS reporting shell.

    Responsibilities:
        - Connection lifetime via the context-manager protocol.
        - Schema initialisation for an empty store.
        - Region / survey / direction lookups.
        - Executing reader SQL into DataFrames.
    """

    def __init__(self, db_path: Path):
        """Initialise with path to the SQLite database.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self.conn: Optional[sqlite3.Connection] = None

    def __enter__(self) -> "DatabaseManager":
        self.conn = sqlite3.connect(self.db_path)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None

    def _require_conn(self) -> sqlite3.Connection:
        if not self.conn:
            raise RuntimeError("No connection. Use 'with DatabaseManager(...) as m:'.")
        return self.conn

    # ------------------------------------------------------------------
    # Schema initialisation
    # ------------------------------------------------------------------

    def init_db(self) -> None:
        """Create the survey read schema and its indices (idempotent)."""
        conn = self._require_conn()
        cur = conn.cursor()
        for statement in _SCHEMA:
            cur.execute(statement)
        conn.commit()
        log.info("Database initialised", extra={"db_path": str(self.db_path)})

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query_df(self, sql: str, params: Optional[list] = None) -> pd.DataFrame:
        """Run *sql* with positional *params* and return a DataFrame."""
        return pd.read_sql_query(sql, self._require_conn(), params=params or [])

    def _fetch_dict(self, sql: str, params: tuple) -> Optional[Dict[str, Any]]:
        cur = self._require_conn().cursor()
        cur.execute(sql, params)
        row = cur.fetchone()
        if not row:
            return None
        return dict(zip([d[0] for d in cur.description], row))

    def get_region(self, region_id: int) -> Optional[Dict[str, Any]]:
        """Return ``{id, name}`` for a region, or ``None``."""
        return self._fetch_dict(
            "SELECT id, name FROM region WHERE id = ?", (region_id,)
        )

    def get_survey(self, survey_id: int) -> Optional[Dict[str, Any]]:
        """Return ``{id, region_id, year, notes}`` for a survey, or ``None``."""
        return self._fetch_dict(
            "SELECT id, region_id, year, notes FROM survey WHERE id = ?",
            (survey_id,),
        )

    def get_regions(self) -> pd.DataFrame:
        """All regions ordered by name."""
        return self.query_df("SELECT id, name FROM region ORDER BY name")

    def get_surveys(self, region_id: int) -> pd.DataFrame:
        """Surveys of one region ordered by year."""
        return self.query_df(
            "SELECT id, year, notes FROM survey WHERE region_id = ? ORDER BY year",
            [region_id],
        )

    def get_directions(self) -> pd.DataFrame:
        """All direction codes (``compass``, ``abbreviation``) ordered by id."""
        return self.query_df(
            "SELECT id, compass, abbreviation FROM direction ORDER BY id"
        )


# ---------------------------------------------------------------------------
# Module-level convenience wrappers
# ---------------------------------------------------------------------------

def init_db(db_path: Path) -> None:
    """Initialise a database at ``db_path``.

    Args:
        db_path: Path to the SQLite database file.
    """
    with DatabaseManager(db_path) as m:
        m.init_db()
