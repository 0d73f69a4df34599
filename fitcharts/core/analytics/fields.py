"""Metric field catalog, visibility filtering and downsampling of chart series."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Literal, Mapping, Sequence, TypeVar, Union

from .values import parse_or_skip

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNLIMITED: Literal["all"] = "all"
MaxPoints = Union[int, Literal["all"]]

FIELD_CATALOG: List[str] = [
    "speed",
    "heartRate",
    "altitude",
    "power",
    "cadence",
    "temperature",
    "distance",
    "enhancedSpeed",
    "enhancedAltitude",
    "resistance",
    "flow",
    "grit",
    "positionLat",
    "positionLong",
]

FIELD_LABELS: Dict[str, str] = {
    "speed": "Speed",
    "heartRate": "Heart Rate",
    "altitude": "Altitude",
    "power": "Power",
    "cadence": "Cadence",
    "temperature": "Temperature",
    "distance": "Distance",
    "enhancedSpeed": "Enhanced Speed",
    "enhancedAltitude": "Enhanced Altitude",
    "resistance": "Resistance",
    "flow": "Flow",
    "grit": "Grit",
    "positionLat": "Latitude",
    "positionLong": "Longitude",
}

FIELD_COLORS: Dict[str, str] = {
    "speed": "#1976d2",
    "heartRate": "#e53935",
    "altitude": "#43a047",
    "power": "#ff9800",
    "cadence": "#8e24aa",
    "temperature": "#00bcd4",
    "distance": "#607d8b",
    "enhancedSpeed": "#009688",
    "enhancedAltitude": "#cddc39",
    "resistance": "#795548",
    "flow": "#3f51b5",
    "grit": "#ff5722",
    "positionLat": "#9c27b0",
    "positionLong": "#673ab7",
}


def field_label(field: str) -> str:
    return FIELD_LABELS.get(field, field)


def select_visible_fields(
    catalog: Sequence[str],
    visibility: Mapping[str, bool],
) -> List[str]:
    """Ordered subset of ``catalog`` that is not explicitly hidden.

    A field without a persisted flag is visible.
    """
    return [field for field in catalog if visibility.get(field, True)]


def has_numeric_values(records: Sequence[Mapping[str, Any]], field: str) -> bool:
    return next(parse_or_skip(records, lambda record: record.get(field)), None) is not None


def eligible_fields(
    records: Sequence[Mapping[str, Any]],
    catalog: Sequence[str],
    visibility: Mapping[str, bool],
) -> List[str]:
    eligible: List[str] = []
    for field in select_visible_fields(catalog, visibility):
        if has_numeric_values(records, field):
            eligible.append(field)
        else:
            logger.debug("[fields] skipping %s: no numeric values", field)
    return eligible


def build_series(
    records: Sequence[Mapping[str, Any]],
    field: str,
    xs: Sequence[int],
) -> List[Dict[str, Union[int, float]]]:
    """Pair each record's numeric ``field`` value with its relative second."""
    indexed = list(enumerate(records))
    return [
        {"x": xs[index], "y": value}
        for (index, _record), value in parse_or_skip(indexed, lambda item: item[1].get(field))
    ]


def downsample(points: Sequence[T], max_points: MaxPoints) -> List[T]:
    """Keep every ``ceil(len / max_points)``-th point, starting with the first.

    The result never exceeds ``max_points`` entries. ``UNLIMITED`` or a limit
    at or above the series length returns the points unchanged.
    """
    if max_points == UNLIMITED:
        return list(points)
    if isinstance(max_points, bool) or not isinstance(max_points, int) or max_points <= 0:
        raise ValueError(f"max_points must be a positive integer or {UNLIMITED!r}, got {max_points!r}")
    total = len(points)
    if max_points >= total:
        return list(points)
    stride = math.ceil(total / max_points)
    return [point for index, point in enumerate(points) if index % stride == 0]


def parse_max_points(raw: Any, default: MaxPoints) -> MaxPoints:
    if raw is None:
        return default
    if isinstance(raw, str) and raw.strip().lower() == UNLIMITED:
        return UNLIMITED
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        logger.warning("[fields] invalid max points %r, using %r", raw, default)
        return default
    if value <= 0:
        logger.warning("[fields] non-positive max points %r, using %r", raw, default)
        return default
    return value
