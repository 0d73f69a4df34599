import pytest

from fitcharts.core.analytics.fields import (
    FIELD_CATALOG,
    UNLIMITED,
    build_series,
    downsample,
    eligible_fields,
    parse_max_points,
    select_visible_fields,
)


def test_downsample_500_to_250_keeps_first():
    points = list(range(500))
    result = downsample(points, 250)
    assert len(result) <= 250
    assert result[0] == 0


def test_downsample_uses_ceil_stride():
    assert downsample(list(range(10)), 3) == [0, 4, 8]


def test_downsample_noop_cases():
    points = list(range(5))
    assert downsample(points, UNLIMITED) == points
    assert downsample(points, 5) == points
    assert downsample(points, 50) == points
    assert downsample([], 10) == []


@pytest.mark.parametrize("bad", [0, -1, True, 2.5])
def test_downsample_rejects_invalid_limits(bad):
    with pytest.raises(ValueError):
        downsample([1, 2, 3], bad)


def test_select_visible_fields_missing_means_visible():
    visible = select_visible_fields(FIELD_CATALOG, {"speed": False, "heartRate": True})
    assert "speed" not in visible
    assert visible[0] == "heartRate"
    assert len(visible) == len(FIELD_CATALOG) - 1


def test_eligible_fields_requires_a_numeric_value():
    records = [
        {"heartRate": "abc", "power": None, "speed": "3.5"},
        {"heartRate": "", "power": float("nan")},
    ]
    assert eligible_fields(records, FIELD_CATALOG, {}) == ["speed"]


def test_build_series_skips_bad_values():
    records = [{"power": 100}, {"power": "x"}, {"power": None}, {"power": "120"}]
    assert build_series(records, "power", [0, 1, 2, 3]) == [
        {"x": 0, "y": 100.0},
        {"x": 3, "y": 120.0},
    ]


def test_parse_max_points():
    assert parse_max_points("all", 250) == UNLIMITED
    assert parse_max_points("ALL", 250) == UNLIMITED
    assert parse_max_points("100", 250) == 100
    assert parse_max_points(None, 250) == 250
    assert parse_max_points("abc", 250) == 250
    assert parse_max_points("-5", 250) == 250
