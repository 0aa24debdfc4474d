import json

import pytest

from ppt_studio.chart_data import get_chart_data, load_data_file, load_data_for_slide, parse_csv

CSV = "month,revenue,region\nJan,10,north\nFeb,12.5,north\nJan,7,south\n"


def test_parse_csv_coerces_numbers():
    rows = parse_csv(CSV)
    assert rows[0] == {"month": "Jan", "revenue": 10, "region": "north"}
    assert rows[1]["revenue"] == 12.5
    assert parse_csv("only,header") == []


def test_line_data_from_rows():
    rows = parse_csv(CSV)
    assert get_chart_data(rows, "line") == {
        "labels": ["Jan", "Feb", "Jan"],
        "values": [10.0, 12.5, 7.0],
    }


def test_line_data_from_numbers_and_dict():
    assert get_chart_data([3, 4], "line-chart") == {"labels": ["1", "2"], "values": [3, 4]}
    assert get_chart_data({"labels": ["a"], "values": [1]}, "line") == {"labels": ["a"], "values": [1]}
    assert get_chart_data("nonsense", "line") == {"labels": [], "values": []}


def test_bar_data_with_series():
    rows = parse_csv(CSV)
    data = get_chart_data(rows, "bar", x_column="month", y_column="revenue", series_column="region")
    assert data["labels"] == ["Jan", "Feb"]
    assert data["series"] == [
        {"name": "north", "values": [10.0, 12.5]},
        {"name": "south", "values": [7.0, 0]},
    ]


def test_bar_data_without_series():
    data = get_chart_data(parse_csv(CSV), "bar-chart")
    assert data["series"] is None
    assert data["values"] == [10.0, 12.5, 7.0]


def test_pie_data():
    rows = [{"name": "A", "share": 60}, {"name": "B", "share": "x"}]
    assert get_chart_data(rows, "pie") == {
        "segments": [{"label": "A", "value": 60.0}, {"label": "B", "value": 0}],
    }
    assert get_chart_data({"labels": ["a", "b"], "values": [1]}, "pie") == {
        "segments": [{"label": "a", "value": 1}, {"label": "b", "value": 0}],
    }


def test_unknown_chart_type():
    with pytest.raises(ValueError):
        get_chart_data([], "radar")


def test_load_data_file(tmp_path):
    (tmp_path / "sales.json").write_text(json.dumps({"labels": ["a"], "values": [1]}), encoding="utf-8")
    (tmp_path / "sales.csv").write_text(CSV, encoding="utf-8")
    (tmp_path / "sales.txt").write_text("x", encoding="utf-8")

    assert load_data_file(tmp_path / "sales.json") == {"labels": ["a"], "values": [1]}
    assert len(load_data_file(tmp_path / "sales.csv")) == 3
    with pytest.raises(ValueError):
        load_data_file(tmp_path / "sales.txt")
    with pytest.raises(FileNotFoundError):
        load_data_file(tmp_path / "missing.csv")


def test_load_data_for_slide(project):
    (project.data_dir / "sales.csv").write_text(CSV, encoding="utf-8")
    data = load_data_for_slide(project.data_dir, "sales.csv", "pie", label_column="month", value_column="revenue")
    assert [s["value"] for s in data["segments"]] == [10.0, 12.5, 7.0]
