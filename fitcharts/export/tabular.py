"""Tabular (CSV) and JSON export documents built from chart datasets."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..charts.schemas import ChartDataset

Cell = Optional[Union[int, float]]
TIMESTAMP_COLUMN = "timestamp"


def exported_at_now() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _x_index(dataset: ChartDataset) -> Dict[int, float]:
    index: Dict[int, float] = {}
    for point in dataset.points:
        index.setdefault(point.x, point.y)
    return index


def merge_datasets(datasets: Sequence[ChartDataset]) -> Tuple[List[str], List[List[Cell]]]:
    """Outer-join datasets on their x values.

    The timestamp column is the numerically sorted union of every dataset's
    x values; a dataset without a point at exactly that x leaves its cell
    empty (None). No interpolation is done.
    """
    header = [TIMESTAMP_COLUMN] + [dataset.field for dataset in datasets]
    indexes = [_x_index(dataset) for dataset in datasets]
    timestamps = sorted(set().union(*(index.keys() for index in indexes))) if indexes else []
    rows: List[List[Cell]] = [
        [timestamp] + [index.get(timestamp) for index in indexes]
        for timestamp in timestamps
    ]
    return header, rows


def format_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_csv(header: Sequence[str], rows: Sequence[Sequence[Cell]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    for row in rows:
        writer.writerow([format_cell(value) for value in row])
    return buffer.getvalue()


def combined_csv(datasets: Sequence[ChartDataset]) -> str:
    header, rows = merge_datasets(datasets)
    return to_csv(header, rows)


def dataset_csv(dataset: ChartDataset) -> str:
    return combined_csv([dataset])


def _points(dataset: ChartDataset) -> List[Dict[str, Any]]:
    return [{"x": point.x, "y": point.y} for point in dataset.points]


def dataset_json(dataset: ChartDataset, exported_at: Optional[str] = None) -> Dict[str, Any]:
    return {
        "data": _points(dataset),
        "exportedAt": exported_at or exported_at_now(),
        "field": dataset.field,
        "totalPoints": len(dataset.points),
    }


def combined_json(
    datasets: Sequence[ChartDataset],
    exported_at: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "charts": [
            {
                "data": _points(dataset),
                "field": dataset.field,
                "totalPoints": len(dataset.points),
                "type": dataset.style.chart_type,
            }
            for dataset in datasets
        ],
        "exportedAt": exported_at or exported_at_now(),
        "totalCharts": len(datasets),
    }


def dumps(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)
