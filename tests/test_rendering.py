import io

import pytest
from PIL import Image

from fitcharts.charts.rendering import render_dataset_png, render_zone_chart_png
from fitcharts.charts.settings import ChartSettings
from fitcharts.core.analytics.zone_histogram import build_zone_charts
from fitcharts.core.analytics.zones import ZoneDataResolver

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def _open(png):
    return Image.open(io.BytesIO(png))


def test_render_dataset_png_size(dataset_factory):
    dataset = dataset_factory("heartRate", [0, 1, 2, 3], [120, 125, 130, 128], label="Heart Rate")
    png = render_dataset_png(dataset, ChartSettings.from_store({}), width=200, height=100, dpi=50)
    assert png.startswith(PNG_MAGIC)
    assert _open(png).size == (200, 100)


def test_render_each_chart_type(dataset_factory):
    for chart_type in ("line", "bar", "scatter", "area"):
        dataset = dataset_factory("speed", [0, 5, 10], [3.0, 3.5, 4.0], chart_type=chart_type)
        settings = ChartSettings.from_store({"chartjs_chartType": chart_type, "chartjs_interpolation": "step"})
        assert render_dataset_png(dataset, settings, width=160, height=80, dpi=40).startswith(PNG_MAGIC)


def test_transparent_export_theme(dataset_factory):
    dataset = dataset_factory("speed", [0, 1], [1.0, 2.0])
    settings = ChartSettings.from_store({"chartjs_exportTheme": "transparent"})
    image = _open(render_dataset_png(dataset, settings, width=200, height=100, dpi=50)).convert("RGBA")
    assert image.getpixel((0, 0))[3] == 0


def test_dark_export_theme_background(dataset_factory):
    dataset = dataset_factory("speed", [0, 1], [1.0, 2.0])
    settings = ChartSettings.from_store({"chartjs_exportTheme": "dark"})
    image = _open(render_dataset_png(dataset, settings, width=200, height=100, dpi=50)).convert("RGB")
    assert image.getpixel((0, 0)) == (26, 26, 26)


def test_render_zone_charts(lap_zone_messages):
    charts = build_zone_charts(ZoneDataResolver().resolve(lap_zone_messages))
    settings = ChartSettings.from_store({})
    for chart in charts:
        png = render_zone_chart_png(chart, settings, width=200, height=100, dpi=50)
        assert png.startswith(PNG_MAGIC)


def test_failed_render_closes_figure(dataset_factory):
    settings = ChartSettings.from_store({})
    render_dataset_png(dataset_factory("speed", [0, 1], [1.0, 2.0]), settings, width=100, height=50, dpi=25)
    import matplotlib.pyplot as plt

    before = plt.get_fignums()
    with pytest.raises(ValueError):
        render_dataset_png(dataset_factory("speed", [0, 1], [1.0, 2.0], chart_type="pie"), settings)
    assert plt.get_fignums() == before
