from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence

from .values import clean_number

# Epoch values above this are milliseconds, values at or below it are seconds.
MILLISECONDS_THRESHOLD = 1_000_000_000_000


def format_time(seconds: int) -> Optional[str]:
    try:
        seconds = int(seconds)
        if seconds < 0:
            seconds = 0
        if seconds < 60:
            return f"{seconds}s"
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        secs = seconds % 60
        if hours == 0:
            return f"{minutes}:{secs:02d}"
        return f"{hours}:{minutes:02d}:{secs:02d}"
    except (ValueError, TypeError):
        return None


def _datetime_seconds(value: datetime) -> float:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def to_epoch_seconds(value: Any) -> Optional[float]:
    """Convert a raw record timestamp into epoch seconds.

    Accepts epoch seconds, epoch milliseconds (magnitude heuristic), numeric
    strings, ``datetime``/``date`` objects and ISO-8601 strings. Returns None
    for anything that cannot be interpreted.
    """
    if isinstance(value, datetime):
        return _datetime_seconds(value)
    if isinstance(value, date):
        return _datetime_seconds(datetime(value.year, value.month, value.day))

    number = clean_number(value)
    if number is not None:
        return number / 1000.0 if number > MILLISECONDS_THRESHOLD else number

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return _datetime_seconds(datetime.fromisoformat(text))
        except ValueError:
            return None
    return None


def relative_seconds(timestamp: Any, start: Any, index: int) -> int:
    """Offset of ``timestamp`` from ``start`` in whole seconds.

    Falls back to the record's ordinal ``index`` when either timestamp is
    missing or not interpretable, so the series still renders in order.
    """
    current = to_epoch_seconds(timestamp)
    origin = to_epoch_seconds(start)
    if current is None or origin is None:
        return index
    delta = current - origin
    if not math.isfinite(delta):
        return index
    # half-up rounding, not banker's rounding
    return int(math.floor(delta + 0.5))


def normalize_timestamps(records: Sequence[Mapping[str, Any]]) -> List[int]:
    if not records:
        return []
    start = records[0].get("timestamp")
    return [
        relative_seconds(record.get("timestamp"), start, index)
        for index, record in enumerate(records)
    ]
