"""Chart settings resolved once per render pass from a persisted key-value store.

Keys follow the ``chartjs_`` naming used by the settings panel:

- ``chartjs_maxpoints``: positive int or ``"all"``
- ``chartjs_chartType`` / ``chartjs_interpolation`` / ``chartjs_animation`` /
  ``chartjs_exportTheme``: enum values
- ``chartjs_showGrid`` etc.: ``on``/``off`` or ``true``/``false``
- ``chartjs_smoothing``: float in ``[0, 1]``
- ``chartjs_color_<field>``: per-field color override, ``#rgb`` or ``#rrggbb``
- ``chartjs_field_<field>``: ``"hidden"`` hides the field (also used for the
  zone chart ids such as ``hr_lap_zone_stacked``)
- ``chartjs_<hr|power>_zone_<n>_color``: 1-based zone color override
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field

from ..config import DEFAULT_MAX_POINTS
from ..core.analytics.fields import MaxPoints, parse_max_points
from ..core.analytics.zone_histogram import zone_chart_id
from ..core.analytics.zones import ZoneType

logger = logging.getLogger(__name__)

FIELD_PREFIX = "chartjs_field_"
COLOR_PREFIX = "chartjs_color_"
HIDDEN = "hidden"

_ZONE_COLOR_KEY = re.compile(r"^chartjs_(hr|power)_zone_(\d+)_color$")
_TRUE_VALUES = {"on", "true", "1", "yes", "visible"}
_FALSE_VALUES = {"off", "false", "0", "no", "hidden"}

LIGHT_BACKGROUND = "#ffffff"
DARK_BACKGROUND = "#1a1a1a"


class ChartType(str, Enum):
    LINE = "line"
    BAR = "bar"
    SCATTER = "scatter"
    AREA = "area"


class Interpolation(str, Enum):
    LINEAR = "linear"
    MONOTONE = "monotone"
    STEP = "step"


class AnimationStyle(str, Enum):
    SMOOTH = "smooth"
    FAST = "fast"
    NONE = "none"


class ExportTheme(str, Enum):
    AUTO = "auto"
    LIGHT = "light"
    DARK = "dark"
    TRANSPARENT = "transparent"


def _parse_enum(enum_cls, raw: Any, default):
    if raw is None:
        return default
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError:
        logger.warning("[settings] invalid %s %r, using %s", enum_cls.__name__, raw, default.value)
        return default


def _parse_flag(raw: Any, default: bool, key: str) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    logger.warning("[settings] invalid flag %s=%r, using %s", key, raw, default)
    return default


def _parse_smoothing(raw: Any, default: float) -> float:
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("[settings] invalid smoothing %r, using %s", raw, default)
        return default
    if not 0.0 <= value <= 1.0:
        logger.warning("[settings] smoothing %r out of range, using %s", raw, default)
        return default
    return value


def _is_visible(raw: Any) -> bool:
    return str(raw).strip().lower() != HIDDEN


class ChartSettings(BaseModel):
    """Every setting one render pass needs, parsed up front."""

    field_visibility: Dict[str, bool] = Field(default_factory=dict)
    zone_chart_visibility: Dict[str, bool] = Field(default_factory=dict)
    max_points: MaxPoints = DEFAULT_MAX_POINTS
    chart_type: ChartType = ChartType.LINE
    interpolation: Interpolation = Interpolation.LINEAR
    animation: AnimationStyle = AnimationStyle.SMOOTH
    export_theme: ExportTheme = ExportTheme.AUTO
    app_theme: str = "light"
    show_grid: bool = True
    show_legend: bool = True
    show_title: bool = True
    show_points: bool = False
    show_fill: bool = True
    smoothing: float = 0.4
    colors: Dict[str, str] = Field(default_factory=dict)
    zone_colors: Dict[ZoneType, Dict[int, str]] = Field(default_factory=dict)

    @classmethod
    def from_store(cls, store: Optional[Mapping[str, Any]], app_theme: str = "light") -> "ChartSettings":
        store = dict(store or {})
        zone_ids = {zone_chart_id(zone_type, kind) for zone_type in ZoneType for kind in ("aggregate", "lap_stacked")}

        field_visibility: Dict[str, bool] = {}
        zone_chart_visibility: Dict[str, bool] = {}
        colors: Dict[str, str] = {}
        zone_colors: Dict[ZoneType, Dict[int, str]] = {}

        for key, value in store.items():
            if value is None:
                continue
            if key.startswith(FIELD_PREFIX):
                name = key[len(FIELD_PREFIX):]
                if name in zone_ids:
                    zone_chart_visibility[name] = _is_visible(value)
                else:
                    field_visibility[name] = _is_visible(value)
            elif key.startswith(COLOR_PREFIX):
                colors[key[len(COLOR_PREFIX):]] = str(value).strip()
            else:
                match = _ZONE_COLOR_KEY.match(key)
                if match:
                    zone_number = int(match.group(2))
                    if zone_number < 1:
                        logger.warning("[settings] ignoring zone color %s: zones are 1-based", key)
                        continue
                    zone_colors.setdefault(ZoneType(match.group(1)), {})[zone_number - 1] = str(value).strip()

        return cls(
            field_visibility=field_visibility,
            zone_chart_visibility=zone_chart_visibility,
            max_points=parse_max_points(store.get("chartjs_maxpoints"), DEFAULT_MAX_POINTS),
            chart_type=_parse_enum(ChartType, store.get("chartjs_chartType"), ChartType.LINE),
            interpolation=_parse_enum(Interpolation, store.get("chartjs_interpolation"), Interpolation.LINEAR),
            animation=_parse_enum(AnimationStyle, store.get("chartjs_animation"), AnimationStyle.SMOOTH),
            export_theme=_parse_enum(ExportTheme, store.get("chartjs_exportTheme"), ExportTheme.AUTO),
            app_theme=app_theme if app_theme in ("light", "dark") else "light",
            show_grid=_parse_flag(store.get("chartjs_showGrid"), True, "showGrid"),
            show_legend=_parse_flag(store.get("chartjs_showLegend"), True, "showLegend"),
            show_title=_parse_flag(store.get("chartjs_showTitle"), True, "showTitle"),
            show_points=_parse_flag(store.get("chartjs_showPoints"), False, "showPoints"),
            show_fill=_parse_flag(store.get("chartjs_showFill"), True, "showFill"),
            smoothing=_parse_smoothing(store.get("chartjs_smoothing"), 0.4),
            colors=colors,
            zone_colors=zone_colors,
        )

    def resolved_export_theme(self) -> ExportTheme:
        if self.export_theme is ExportTheme.AUTO:
            return ExportTheme.DARK if self.app_theme == "dark" else ExportTheme.LIGHT
        return self.export_theme

    def export_background(self) -> Optional[str]:
        """Background hex for exported images, or None when transparent."""
        theme = self.resolved_export_theme()
        if theme is ExportTheme.TRANSPARENT:
            return None
        return DARK_BACKGROUND if theme is ExportTheme.DARK else LIGHT_BACKGROUND
