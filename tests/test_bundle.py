import io
import zipfile

import pytest
from PIL import Image

from fitcharts.charts.settings import ChartSettings
from fitcharts.export import bundle as bundle_module
from fitcharts.export.bundle import (
    ExportError,
    build_export_bundle,
    bundle_to_zip,
    export_bundle_zip,
    export_combined_csv,
    safe_file_name,
)


def _png(color="#ff0000"):
    buffer = io.BytesIO()
    Image.new("RGB", (40, 20), color).save(buffer, format="PNG")
    return buffer.getvalue()


def test_safe_file_name():
    assert safe_file_name("Heart Rate") == "heart-rate"
    assert safe_file_name("HR Zone by Lap (Stacked)") == "hr-zone-by-lap-stacked"
    assert safe_file_name("  ") == "chart"


def test_bundle_with_several_charts_has_composite(dataset_factory):
    datasets = [
        dataset_factory("heartRate", [0, 1], [100, 101], label="Heart Rate"),
        dataset_factory("speed", [1, 2], [3, 4], label="Speed"),
    ]
    bundle = build_export_bundle(datasets, [_png(), _png("#00ff00")], ChartSettings.from_store({}))
    assert bundle.composite_png is not None
    assert Image.open(io.BytesIO(bundle.composite_png)).size == (1620, 400)
    assert bundle.combined_csv.splitlines()[0] == "timestamp,heartRate,speed"
    assert bundle.combined_json["totalCharts"] == 2
    assert bundle.charts[0].json["exportedAt"] == bundle.exported_at

    names = set(zipfile.ZipFile(io.BytesIO(bundle_to_zip(bundle))).namelist())
    assert names == {
        "heart-rate-chart.png",
        "heart-rate-data.csv",
        "heart-rate-data.json",
        "speed-chart.png",
        "speed-data.csv",
        "speed-data.json",
        "combined-charts.png",
        "combined-data.csv",
        "combined-data.json",
    }


def test_single_chart_bundle_has_no_composite(dataset_factory):
    datasets = [dataset_factory("speed", [0], [3], label="Speed")]
    bundle = build_export_bundle(datasets, [_png()], ChartSettings.from_store({}))
    assert bundle.composite_png is None
    names = zipfile.ZipFile(io.BytesIO(bundle_to_zip(bundle))).namelist()
    assert "combined-charts.png" not in names


def test_image_count_must_match(dataset_factory):
    with pytest.raises(ValueError):
        build_export_bundle([dataset_factory("speed", [0], [3])], [], ChartSettings.from_store({}))


def test_entry_points_reject_empty_input():
    with pytest.raises(ValueError):
        export_combined_csv([])
    with pytest.raises(ValueError):
        export_bundle_zip([], ChartSettings.from_store({}))


def test_unexpected_failure_becomes_export_error(dataset_factory, monkeypatch, caplog):
    def boom(*args, **kwargs):
        raise RuntimeError("renderer exploded")

    monkeypatch.setattr(bundle_module, "render_images", boom)
    with caplog.at_level("ERROR"):
        with pytest.raises(ExportError) as excinfo:
            export_bundle_zip([dataset_factory("speed", [0], [3])], ChartSettings.from_store({}))
    assert "renderer exploded" in str(excinfo.value)
    assert "[export] zip bundle failed" in caplog.text


def test_export_bundle_zip_end_to_end(dataset_factory):
    datasets = [dataset_factory("speed", [0, 1], [3, 4], label="Speed")]
    payload = export_bundle_zip(datasets, ChartSettings.from_store({}))
    archive = zipfile.ZipFile(io.BytesIO(payload))
    assert "speed-chart.png" in archive.namelist()
    assert archive.read("combined-data.csv").decode() == "timestamp,speed\n0,3\n1,4\n"
