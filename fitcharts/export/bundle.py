"""Composite export bundle and the top-level export entry points.

Entry points validate their input, then run the whole export inside a single
guard: any unexpected failure is logged with context and re-raised as one
``ExportError`` so callers never see a half-built artifact.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..charts.rendering import render_dataset_png, render_zone_chart_png
from ..charts.schemas import ChartDataset
from ..charts.settings import ChartSettings
from ..core.analytics.zone_histogram import ZoneChart
from .compositor import composite_images, image_to_png
from .tabular import combined_csv, combined_json, dataset_csv, dataset_json, dumps, exported_at_now

logger = logging.getLogger(__name__)

COMBINED_IMAGE_NAME = "combined-charts.png"
COMBINED_CSV_NAME = "combined-data.csv"
COMBINED_JSON_NAME = "combined-data.json"


class ExportError(Exception):
    """An export could not be produced; no partial output is returned."""


@dataclass
class ExportedChart:
    name: str
    png: Optional[bytes]
    csv: Optional[str] = None
    json: Optional[Dict[str, Any]] = None


@dataclass
class CompositeExportBundle:
    charts: List[ExportedChart] = field(default_factory=list)
    composite_png: Optional[bytes] = None
    combined_csv: str = ""
    combined_json: Dict[str, Any] = field(default_factory=dict)
    exported_at: str = ""


def safe_file_name(label: str) -> str:
    name = re.sub(r"\s+", "-", label.strip()).lower()
    name = re.sub(r"[^a-z0-9_.-]", "", name)
    return name or "chart"


def _require_datasets(datasets: Sequence[ChartDataset]) -> None:
    if not datasets:
        raise ValueError("no chart datasets to export")


def build_export_bundle(
    datasets: Sequence[ChartDataset],
    images: Sequence[bytes],
    settings: ChartSettings,
    zone_charts: Sequence[ZoneChart] = (),
    zone_images: Sequence[bytes] = (),
) -> CompositeExportBundle:
    """Assemble every export artifact from already-rendered images.

    ``images`` pairs index-wise with ``datasets``; ``zone_images`` with
    ``zone_charts``. Zone charts contribute images only, no tables.
    """
    if len(images) != len(datasets) or len(zone_images) != len(zone_charts):
        raise ValueError("every chart needs exactly one rendered image")

    exported_at = exported_at_now()
    charts = [
        ExportedChart(
            name=safe_file_name(dataset.display_label),
            png=png,
            csv=dataset_csv(dataset),
            json=dataset_json(dataset, exported_at),
        )
        for dataset, png in zip(datasets, images)
    ]
    charts.extend(
        ExportedChart(name=safe_file_name(chart.title), png=png)
        for chart, png in zip(zone_charts, zone_images)
    )

    all_images = [chart.png for chart in charts if chart.png is not None]
    composite_png = None
    if len(all_images) > 1:
        composite_png = image_to_png(composite_images(all_images, settings.export_background()))

    return CompositeExportBundle(
        charts=charts,
        composite_png=composite_png,
        combined_csv=combined_csv(datasets),
        combined_json=combined_json(datasets, exported_at),
        exported_at=exported_at,
    )


def bundle_to_zip(bundle: CompositeExportBundle) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for chart in bundle.charts:
            if chart.png is not None:
                archive.writestr(f"{chart.name}-chart.png", chart.png)
            if chart.csv is not None:
                archive.writestr(f"{chart.name}-data.csv", chart.csv)
            if chart.json is not None:
                archive.writestr(f"{chart.name}-data.json", dumps(chart.json))
        if bundle.composite_png is not None:
            archive.writestr(COMBINED_IMAGE_NAME, bundle.composite_png)
        archive.writestr(COMBINED_CSV_NAME, bundle.combined_csv)
        archive.writestr(COMBINED_JSON_NAME, dumps(bundle.combined_json))
    return buffer.getvalue()


def render_images(
    datasets: Sequence[ChartDataset],
    settings: ChartSettings,
    zone_charts: Sequence[ZoneChart] = (),
):
    dataset_images = [render_dataset_png(dataset, settings) for dataset in datasets]
    zone_images = [render_zone_chart_png(chart, settings) for chart in zone_charts]
    return dataset_images, zone_images


def export_composite_png(
    datasets: Sequence[ChartDataset],
    settings: ChartSettings,
    zone_charts: Sequence[ZoneChart] = (),
) -> bytes:
    _require_datasets(datasets)
    try:
        dataset_images, zone_images = render_images(datasets, settings, zone_charts)
        composite = composite_images(dataset_images + zone_images, settings.export_background())
        return image_to_png(composite)
    except Exception as e:
        logger.exception("[export] composite image failed for %d charts", len(datasets) + len(zone_charts))
        raise ExportError(f"composite image export failed: {e}") from e


def export_combined_csv(datasets: Sequence[ChartDataset]) -> str:
    _require_datasets(datasets)
    try:
        return combined_csv(datasets)
    except Exception as e:
        logger.exception("[export] combined csv failed for %d datasets", len(datasets))
        raise ExportError(f"csv export failed: {e}") from e


def export_combined_json(datasets: Sequence[ChartDataset]) -> Dict[str, Any]:
    _require_datasets(datasets)
    try:
        return combined_json(datasets)
    except Exception as e:
        logger.exception("[export] combined json failed for %d datasets", len(datasets))
        raise ExportError(f"json export failed: {e}") from e


def export_bundle_zip(
    datasets: Sequence[ChartDataset],
    settings: ChartSettings,
    zone_charts: Sequence[ZoneChart] = (),
) -> bytes:
    _require_datasets(datasets)
    try:
        dataset_images, zone_images = render_images(datasets, settings, zone_charts)
        bundle = build_export_bundle(datasets, dataset_images, settings, zone_charts, zone_images)
        payload = bundle_to_zip(bundle)
    except Exception as e:
        logger.exception("[export] zip bundle failed for %d charts", len(datasets) + len(zone_charts))
        raise ExportError(f"zip export failed: {e}") from e
    logger.info("[export] zip bundle with %d charts (%d bytes)", len(bundle.charts), len(payload))
    return payload
