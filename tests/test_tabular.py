import json

from fitcharts.export.tabular import (
    combined_csv,
    combined_json,
    dataset_csv,
    dataset_json,
    dumps,
    exported_at_now,
    format_cell,
    merge_datasets,
)


def test_merge_outer_joins_on_exact_x(dataset_factory):
    a = dataset_factory("heartRate", [0, 1, 2], [100, 101, 102])
    b = dataset_factory("power", [1, 2, 3], [200, 201, 202])
    header, rows = merge_datasets([a, b])
    assert header == ["timestamp", "heartRate", "power"]
    assert [row[0] for row in rows] == [0, 1, 2, 3]
    assert rows[0] == [0, 100.0, None]
    assert rows[3] == [3, None, 202.0]


def test_combined_csv_document(dataset_factory):
    a = dataset_factory("heartRate", [0, 1, 2], [100, 101, 102])
    b = dataset_factory("power", [1, 2, 3], [200, 201.5, 202])
    assert combined_csv([a, b]) == (
        "timestamp,heartRate,power\n"
        "0,100,\n"
        "1,101,200\n"
        "2,102,201.5\n"
        "3,,202\n"
    )


def test_timestamps_sort_numerically(dataset_factory):
    a = dataset_factory("speed", [10, 2], [1, 2])
    b = dataset_factory("power", [100], [3])
    _, rows = merge_datasets([a, b])
    assert [row[0] for row in rows] == [2, 10, 100]


def test_single_dataset_csv(dataset_factory):
    assert dataset_csv(dataset_factory("cadence", [0, 5], [80, 85])) == "timestamp,cadence\n0,80\n5,85\n"


def test_format_cell():
    assert format_cell(None) == ""
    assert format_cell(3.0) == "3"
    assert format_cell(3.25) == "3.25"
    assert format_cell(7) == "7"


def test_dataset_json_round_trip(dataset_factory):
    dataset = dataset_factory("heartRate", [0, 1, 2], [100, 101, 102])
    document = json.loads(dumps(dataset_json(dataset)))
    assert document["field"] == "heartRate"
    assert document["totalPoints"] == 3
    assert document["data"][1] == {"x": 1, "y": 101.0}
    assert document["exportedAt"].endswith("Z")


def test_combined_json(dataset_factory):
    a = dataset_factory("heartRate", [0, 1], [100, 101])
    b = dataset_factory("power", [0], [200], chart_type="bar")
    document = combined_json([a, b], exported_at="2024-01-01T00:00:00.000Z")
    assert document["totalCharts"] == 2
    assert document["exportedAt"] == "2024-01-01T00:00:00.000Z"
    assert [c["field"] for c in document["charts"]] == ["heartRate", "power"]
    assert [c["type"] for c in document["charts"]] == ["line", "bar"]
    assert document["charts"][0]["totalPoints"] == 2


def test_empty_merge():
    header, rows = merge_datasets([])
    assert header == ["timestamp"]
    assert rows == []


def test_exported_at_is_utc_iso():
    stamp = exported_at_now()
    assert stamp.endswith("Z")
    assert "T" in stamp
