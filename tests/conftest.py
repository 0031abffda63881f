"""
Re-useable fixtures for tests

See https://docs.pytest.org/en/7.1.x/reference/fixtures.html#conftest-py-sharing-fixtures-across-multiple-files

The ``survey_db`` fixture builds a small survey store:

* region 1 "Toronto" with surveys 2016 (id 1) and 2011 (id 2);
  region 2 "Durham" with one foreign station
* stations 100E, 101E (eastbound), 102W (westbound) surveyed in 2016;
  103E mapped into screenline S1 but never surveyed
* screenline S1 = {100E, 101E, 102W, 103E}, S2 = {101E}
* categories Auto1 (id 1), Auto2 (id 2) [technology], Bus1 (id 3)
  [vehicle total], Truck1 (id 4) [person total, never observed]
"""

import sqlite3
from pathlib import Path

import pandas as pd
import pytest

from ccdrs.data.manager import init_db

REGIONS = [(1, "Toronto"), (2, "Durham")]
SURVEYS = [(1, 1, 2016, ""), (2, 1, 2011, ""), (3, 2, 2016, "")]
STATIONS = [
    (1, 1, "100E", 100, "E", "Main St at Bridge"),
    (2, 1, "101E", 101, "E", "King St at Bridge"),
    (3, 1, "102W", 102, "W", "Queen St at Bridge"),
    (4, 1, "103E", 103, "E", "Dundas St at Bridge"),
    (5, 2, "900E", 900, "E", "Elsewhere"),
]
SCREENLINES = [(1, 1, "S1", "River crossing"), (2, 1, "S2", "King St only")]
SCREENLINE_STATIONS = [(1, 1), (1, 2), (1, 3), (1, 4), (2, 2)]
SURVEY_STATIONS = [(1, 1, 1), (2, 2, 1), (3, 3, 1), (4, 1, 2), (5, 5, 3)]
VEHICLES = [(1, "Auto", 1), (2, "Bus", 2), (3, "Truck", 3)]
VEHICLE_COUNT_TYPES = [
    (1, 1, 1, "Auto, driver only", 1),
    (2, 1, 2, "Auto, two occupants", 1),
    (3, 2, 1, "Bus", 2),
    (4, 3, 1, "Truck", 3),
]
# (survey_station_id, vehicle_count_type_id, observation, time)
OBSERVATIONS = [
    (1, 1, 3, 615),
    (1, 1, 4, 630),
    (1, 2, 1, 615),
    (1, 3, 2, 700),
    (2, 1, 5, 615),
    (2, 3, 1, 630),
    (3, 1, 6, 615),
    (4, 1, 100, 615),
    (5, 1, 50, 615),
]
DIRECTIONS = [(1, "Northbound", "N"), (2, "Southbound", "S"),
              (3, "Eastbound", "E"), (4, "Westbound", "W")]


@pytest.fixture(scope="session", autouse=True)
def pandas_terminal_width():
    # Keep DataFrame reprs in assertion messages readable.
    pd.set_option("display.width", 120)
    pd.set_option("display.max_columns", 1000)


@pytest.fixture
def survey_db(tmp_path) -> Path:
    db_path = tmp_path / "ccdrs.db"
    init_db(db_path)

    conn = sqlite3.connect(db_path)
    try:
        conn.executemany("INSERT INTO region VALUES (?, ?)", REGIONS)
        conn.executemany("INSERT INTO survey VALUES (?, ?, ?, ?)", SURVEYS)
        conn.executemany(
            "INSERT INTO station VALUES (?, ?, ?, ?, ?, ?)", STATIONS
        )
        conn.executemany(
            "INSERT INTO screenline VALUES (?, ?, ?, ?)", SCREENLINES
        )
        conn.executemany(
            "INSERT INTO screenline_station VALUES (?, ?)", SCREENLINE_STATIONS
        )
        conn.executemany(
            "INSERT INTO survey_station VALUES (?, ?, ?)", SURVEY_STATIONS
        )
        conn.executemany("INSERT INTO vehicle VALUES (?, ?, ?)", VEHICLES)
        conn.executemany(
            "INSERT INTO vehicle_count_type VALUES (?, ?, ?, ?, ?)",
            VEHICLE_COUNT_TYPES,
        )
        conn.executemany(
            "INSERT INTO station_count_observation "
            "(survey_station_id, vehicle_count_type_id, observation, time) "
            "VALUES (?, ?, ?, ?)",
            OBSERVATIONS,
        )
        conn.executemany("INSERT INTO direction VALUES (?, ?, ?)", DIRECTIONS)
        conn.commit()
    finally:
        conn.close()

    return db_path
