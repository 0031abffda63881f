"""
Tests of ccdrs.reports and ccdrs.plotting
"""

from __future__ import annotations

import pytest

from ccdrs.analysis.aggregation import ReportMode, aggregate_observations
from ccdrs.analysis.categories import CategorySelector
from ccdrs.analysis.coverage import annotate_coverage
from ccdrs.plotting import plot_interval_volumes
from ccdrs.reports import ReportGenerator, generate_report


def test_total_report_file(survey_db, tmp_path):
    out_dir = tmp_path / "out"

    path = generate_report(
        survey_db, out_dir, 1, 1, "screenline", "total",
        ["E", "W"], 600, 900, [1, 2, 3],
    )

    assert path == out_dir / "Toronto_2016" / "screenline_total.txt"
    lines = path.read_text().splitlines()
    assert lines[0] == "Toronto 2016"
    assert lines[2] == "S1,E,2,8,601,700,12,1,3"


def test_interval_report_with_plots(survey_db, tmp_path):
    gen = ReportGenerator(survey_db, tmp_path)

    path = gen.generate(
        1, 1, "station", ReportMode.INTERVAL, ["E", "W"], 600, 900, [1, 3],
        entities=["100E", "102W"], plots=True,
    )

    report_dir = tmp_path / "Toronto_2016"
    assert path == report_dir / "station_interval.txt"
    assert sorted(p.name for p in report_dir.glob("*.html")) == [
        "station_100E_E.html",
        "station_102W_W.html",
    ]


def test_plots_skipped_for_total_reports(survey_db, tmp_path, capsys):
    ReportGenerator(survey_db, tmp_path).generate(
        1, 1, "station", "total", ["E"], 600, 900, [1], plots=True,
    )

    assert not list((tmp_path / "Toronto_2016").glob("*.html"))
    assert "only drawn for interval reports" in capsys.readouterr().out


def test_unknown_level(survey_db, tmp_path):
    with pytest.raises(ValueError, match="Unknown report level"):
        ReportGenerator(survey_db, tmp_path).generate(
            1, 1, "corridor", "total", ["E"], 600, 900, [1],
        )


def test_unknown_region_directory(survey_db, tmp_path):
    path = ReportGenerator(survey_db, tmp_path).generate(
        99, 1, "station", "total", ["E"], 600, 900, [1],
    )

    assert path.parent.name == "Unknown_Region_2016"
    assert path.read_text().splitlines()[1:] == [
        "Station,Direction,StationCount,SumOfRecords,StartTime,EndTime,Auto1",
    ]


# ---------------------------------------------------------------------------
# Plotting
# ---------------------------------------------------------------------------

def _interval_table():
    sel = CategorySelector([1, 3])
    obs = [
        ("S1", "E", 630, 1, 4),
        ("S1", "E", 615, 1, 3),
        ("S1", "E", 615, 3, 2),
        ("S1", "W", 615, 1, 9),
    ]
    table = aggregate_observations(obs, sel, "interval")
    return annotate_coverage(
        table, "interval", coverage={("S1", "E"): 2, ("S1", "W"): 1},
    )


def test_plot_interval_volumes():
    fig = plot_interval_volumes(
        _interval_table(), ["Auto1", "Bus1"], "S1", "E", title="Toronto 2016",
    )

    assert [t.name for t in fig.data] == ["Auto1", "Bus1"]
    assert list(fig.data[0].x) == ["06:15", "06:30"]
    assert list(fig.data[0].y) == [3, 4]
    assert list(fig.data[1].y) == [2, 0]
    assert list(fig.data[0].customdata) == [2, 2]
    assert fig.layout.barmode == "stack"
    assert fig.layout.title.text.startswith("Toronto 2016")


def test_plot_unknown_entity_is_empty():
    fig = plot_interval_volumes(_interval_table(), ["Auto1", "Bus1"], "S9", "E")

    assert len(fig.data) == 0


def test_plot_rejects_total_table():
    sel = CategorySelector([1])
    table = aggregate_observations([("S1", "E", 615, 1, 3)], sel)

    with pytest.raises(ValueError, match="interval table"):
        plot_interval_volumes(table, ["Auto1"], "S1", "E")


def test_plot_name_count_mismatch():
    with pytest.raises(ValueError, match="category names"):
        plot_interval_volumes(_interval_table(), ["Auto1"], "S1", "E")
