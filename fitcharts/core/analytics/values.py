"""Shared numeric coercion used wherever a series or zone list is built."""

from __future__ import annotations

import json
import math
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple, TypeVar

T = TypeVar("T")


def clean_number(raw: Any) -> Optional[float]:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def parse_or_skip(
    items: Iterable[T],
    extract: Callable[[T], Any],
) -> Iterator[Tuple[T, float]]:
    """Yield ``(item, value)`` for every item whose extracted value is numeric.

    Items with missing or unparsable values are skipped one at a time, so a
    single bad sample never discards the rest of the series.
    """
    for item in items:
        value = clean_number(extract(item))
        if value is None:
            continue
        yield item, value


def safe_parse_array(raw: Any) -> List[Any]:
    """Return ``raw`` as a list, decoding JSON strings such as ``"[0, 12, 30]"``.

    Raises ValueError when a string cannot be decoded into a JSON array; other
    non-list inputs (``None``, numbers) are treated as an empty list.
    """
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if not isinstance(raw, str):
        return []
    clean = raw.strip().strip('"').strip()
    if not clean:
        return []
    parsed = json.loads(clean)
    if not isinstance(parsed, list):
        raise ValueError(f"expected a JSON array, got {type(parsed).__name__}")
    return parsed
