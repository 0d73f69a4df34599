"""Rasterize chart datasets and zone chart descriptors to PNG bytes."""

from __future__ import annotations

import io
import os
import re
from pathlib import Path
from typing import Optional

import numpy as np

from ..config import EXPORT_CELL_HEIGHT, EXPORT_CELL_WIDTH, MPL_CACHE_DIR, RENDER_DPI
from ..core.analytics.zone_histogram import ZoneChart
from .schemas import ChartDataset
from .settings import ChartSettings, ChartType, ExportTheme

LIGHT_TEXT = "#000000"
DARK_TEXT = "#ffffff"

_RGBA = re.compile(r"^rgba\(\s*(\d+),\s*(\d+),\s*(\d+),\s*([\d.]+)\s*\)$")


def _mpl_color(css: str):
    """CSS color string from a dataset style as a matplotlib color."""
    if css == "transparent":
        return "none"
    match = _RGBA.match(css)
    if match:
        r, g, b, alpha = match.groups()
        return (int(r) / 255.0, int(g) / 255.0, int(b) / 255.0, float(alpha))
    return css


def _pyplot():
    cache_dir = Path(MPL_CACHE_DIR)
    os.environ.setdefault("MPLCONFIGDIR", str(cache_dir))
    cache_dir.mkdir(parents=True, exist_ok=True)

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    return plt


def _text_color(settings: ChartSettings) -> str:
    return DARK_TEXT if settings.resolved_export_theme() is ExportTheme.DARK else LIGHT_TEXT


def _new_figure(width: int, height: int, dpi: int):
    plt = _pyplot()
    fig, ax = plt.subplots(figsize=(width / dpi, height / dpi), dpi=dpi)
    return plt, fig, ax


def _style_axes(fig, ax, settings: ChartSettings) -> None:
    background = settings.export_background()
    if background is None:
        fig.patch.set_alpha(0.0)
        ax.set_facecolor("none")
    else:
        fig.patch.set_facecolor(background)
        ax.set_facecolor(background)

    text_color = _text_color(settings)
    ax.tick_params(colors=text_color)
    for spine in ax.spines.values():
        spine.set_color(text_color)
    ax.xaxis.label.set_color(text_color)
    ax.yaxis.label.set_color(text_color)


def _finish(fig, ax, settings: ChartSettings, title: str, dpi: int) -> bytes:
    text_color = _text_color(settings)
    if settings.show_grid:
        ax.grid(alpha=0.3, linestyle="--")
    if settings.show_title:
        ax.set_title(title, color=text_color)
    if settings.show_legend and ax.get_legend_handles_labels()[0]:
        legend = ax.legend(frameon=False)
        for text in legend.get_texts():
            text.set_color(text_color)

    background = settings.export_background()
    buffer = io.BytesIO()
    fig.tight_layout()
    fig.savefig(
        buffer,
        format="png",
        dpi=dpi,
        transparent=background is None,
        facecolor=background if background is not None else "none",
    )
    return buffer.getvalue()


def _draw_dataset(ax, dataset: ChartDataset) -> None:
    style = dataset.style
    xs = np.asarray([point.x for point in dataset.points], dtype=float)
    ys = np.asarray([point.y for point in dataset.points], dtype=float)
    chart_type = ChartType(style.chart_type)

    if chart_type is ChartType.BAR:
        bar_width = float(np.min(np.diff(xs))) if xs.size > 1 else 1.0
        ax.bar(
            xs,
            ys,
            width=max(bar_width, 1.0),
            color=_mpl_color(style.background_color),
            edgecolor=style.border_color,
            linewidth=style.border_width,
            label=dataset.display_label,
        )
    elif chart_type is ChartType.SCATTER:
        ax.scatter(xs, ys, s=(style.point_radius * 2) ** 2, color=style.border_color, label=dataset.display_label)
    else:
        ax.plot(
            xs,
            ys,
            color=style.border_color,
            linewidth=style.border_width,
            drawstyle="steps-post" if style.stepped else "default",
            marker="o" if style.show_points else None,
            markersize=style.point_radius * 2,
            label=dataset.display_label,
        )
        if style.fill and xs.size:
            ax.fill_between(
                xs,
                ys,
                color=style.border_color,
                alpha=0.2,
                step="post" if style.stepped else None,
            )

    ax.set_xlabel("Time (s)")
    ax.set_ylabel(dataset.display_label)


def _draw_zone_chart(ax, chart: ZoneChart) -> None:
    positions = np.arange(len(chart.categories))

    bottoms: Optional[np.ndarray] = np.zeros(len(chart.categories)) if chart.stacked else None
    for series in chart.series:
        values = np.asarray(series.values, dtype=float)
        ax.bar(
            positions,
            values,
            bottom=bottoms,
            color=series.colors or None,
            label=series.label if chart.stacked else None,
        )
        if bottoms is not None:
            bottoms = bottoms + values

    ax.set_xticks(positions)
    ax.set_xticklabels(chart.categories, rotation=30 if len(chart.categories) > 8 else 0)
    ax.set_ylabel("Time (s)")


def render_dataset_png(
    dataset: ChartDataset,
    settings: ChartSettings,
    width: int = EXPORT_CELL_WIDTH,
    height: int = EXPORT_CELL_HEIGHT,
    dpi: int = RENDER_DPI,
) -> bytes:
    plt, fig, ax = _new_figure(width, height, dpi)
    try:
        _style_axes(fig, ax, settings)
        _draw_dataset(ax, dataset)
        return _finish(fig, ax, settings, dataset.display_label, dpi)
    finally:
        plt.close(fig)


def render_zone_chart_png(
    chart: ZoneChart,
    settings: ChartSettings,
    width: int = EXPORT_CELL_WIDTH,
    height: int = EXPORT_CELL_HEIGHT,
    dpi: int = RENDER_DPI,
) -> bytes:
    plt, fig, ax = _new_figure(width, height, dpi)
    try:
        _style_axes(fig, ax, settings)
        _draw_zone_chart(ax, chart)
        return _finish(fig, ax, settings, chart.title, dpi)
    finally:
        plt.close(fig)
