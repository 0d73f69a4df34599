"""Per-field chart dataset construction."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..core.analytics.fields import FIELD_COLORS, build_series, downsample, field_label
from .schemas import ChartDataset, ChartPoint, DatasetStyle
from .settings import AnimationStyle, ChartSettings, ChartType, Interpolation

logger = logging.getLogger(__name__)

FALLBACK_COLOR = "#667eea"
FILL_ALPHA = 0.2

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

ANIMATION_DURATIONS: Dict[AnimationStyle, int] = {
    AnimationStyle.NONE: 0,
    AnimationStyle.FAST: 500,
    AnimationStyle.SMOOTH: 1000,
}

ANIMATION_EASINGS: Dict[AnimationStyle, str] = {
    AnimationStyle.NONE: "linear",
    AnimationStyle.FAST: "easeInOut",
    AnimationStyle.SMOOTH: "easeOutQuart",
}


def is_hex_color(value: Any) -> bool:
    return isinstance(value, str) and bool(_HEX_COLOR.match(value))


def expand_hex(color: str) -> str:
    """``#rgb`` shorthand to ``#rrggbb``; six-digit colors are returned unchanged."""
    if len(color) == 4:
        return "#" + "".join(digit * 2 for digit in color[1:])
    return color


def hex_to_rgba(color: str, alpha: float) -> str:
    color = expand_hex(color)
    r, g, b = (int(color[i:i + 2], 16) for i in (1, 3, 5))
    return f"rgba({r}, {g}, {b}, {alpha})"


class ChartDatasetBuilder:
    """Builds one ChartDataset per field from normalized records.

    Builders hold no per-pass state; the same settings and records always
    produce equal datasets.
    """

    def __init__(self, settings: ChartSettings):
        self.settings = settings

    def resolve_color(self, field: str) -> str:
        override = self.settings.colors.get(field)
        if override is not None:
            if is_hex_color(override):
                return expand_hex(override)
            logger.warning("[datasets] ignoring invalid color %r for %s", override, field)
        return FIELD_COLORS.get(field, FALLBACK_COLOR)

    def build_style(self, color: str) -> DatasetStyle:
        settings = self.settings
        chart_type = settings.chart_type
        stepped = settings.interpolation is Interpolation.STEP
        fill = settings.show_fill or chart_type is ChartType.AREA

        style = DatasetStyle(
            chart_type=chart_type.value,
            fill=fill,
            show_points=settings.show_points,
            show_line=True,
            tension=0.0 if stepped else settings.smoothing,
            stepped=stepped,
            border_color=color,
            background_color=hex_to_rgba(color, FILL_ALPHA) if fill else "transparent",
            border_width=2,
            point_radius=3 if settings.show_points else 0,
            animation_duration=ANIMATION_DURATIONS[settings.animation],
            animation_easing=ANIMATION_EASINGS[settings.animation],
            cubic_interpolation_mode="monotone" if settings.interpolation is Interpolation.MONOTONE else "default",
        )
        if chart_type is ChartType.BAR:
            style.background_color = color
            style.border_width = 1
        elif chart_type is ChartType.SCATTER:
            style.show_line = False
            style.point_radius = 4
        return style

    def build(
        self,
        records: Sequence[Mapping[str, Any]],
        field: str,
        xs: Sequence[int],
    ) -> Optional[ChartDataset]:
        """Dataset for ``field``, or None when no record carries a usable value."""
        series = build_series(records, field, xs)
        if not series:
            return None
        points = downsample(series, self.settings.max_points)
        if len(points) < len(series):
            logger.debug("[datasets] %s limited to %d points (from %d)", field, len(points), len(series))

        color = self.resolve_color(field)
        return ChartDataset(
            field=field,
            display_label=field_label(field),
            color=color,
            points=[ChartPoint(x=point["x"], y=point["y"]) for point in points],
            original_size=len(series),
            style=self.build_style(color),
        )

    def build_all(
        self,
        records: Sequence[Mapping[str, Any]],
        fields: Sequence[str],
        xs: Sequence[int],
    ) -> List[ChartDataset]:
        datasets: List[ChartDataset] = []
        for field in fields:
            dataset = self.build(records, field, xs)
            if dataset is not None:
                datasets.append(dataset)
        return datasets
