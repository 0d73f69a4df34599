"""Utilities to turn resolved zone times into zone-chart payloads."""

from __future__ import annotations

from typing import List, Literal, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from .time_utils import format_time
from .zones import LapZoneBreakdown, ZoneResolutionContext, ZoneSample, ZoneType

ChartKind = Literal["aggregate", "lap_stacked"]


class ZoneSeries(BaseModel):
    label: str
    values: List[float] = Field(default_factory=list)
    colors: List[str] = Field(default_factory=list)


class ZoneChart(BaseModel):
    chart_id: str
    kind: ChartKind
    zone_type: ZoneType
    title: str
    type: str = "bar"
    unit: str = "seconds"
    stacked: bool = False
    categories: List[str] = Field(default_factory=list)
    series: List[ZoneSeries] = Field(default_factory=list)
    tooltips: List[str] = Field(default_factory=list)
    total_seconds: float = 0.0


def zone_chart_id(zone_type: ZoneType, kind: ChartKind) -> str:
    suffix = "stacked" if kind == "lap_stacked" else "individual"
    return f"{zone_type.value}_lap_zone_{suffix}"


def _percentage(time_in_zone: float, total_time: float) -> float:
    if total_time <= 0:
        return 0.0
    return round(time_in_zone / total_time * 100.0, 1)


def build_zone_bar_chart(samples: Sequence[ZoneSample], zone_type: ZoneType) -> ZoneChart:
    """Single-bar distribution for the whole activity.

    Zones with no time were already dropped by the resolver; the remaining
    zones are charted as-is, without the per-lap meaningful-zone restriction.
    """
    total = float(sum(sample.time for sample in samples))
    tooltips = [
        f"{sample.label} • {_percentage(sample.time, total)}% • "
        f"{format_time(int(round(sample.time))) or '0s'}"
        for sample in samples
    ]
    return ZoneChart(
        chart_id=zone_chart_id(zone_type, "aggregate"),
        kind="aggregate",
        zone_type=zone_type,
        title=f"{zone_type.label_prefix} by Lap (Individual)",
        categories=[sample.label for sample in samples],
        series=[
            ZoneSeries(
                label="Time in zone",
                values=[sample.time for sample in samples],
                colors=[sample.color for sample in samples],
            )
        ],
        tooltips=tooltips,
        total_seconds=total,
    )


def build_lap_stacked_chart(laps: Sequence[LapZoneBreakdown], zone_type: ZoneType) -> ZoneChart:
    """Stacked bar per lap; every lap carries the same zones in the same order."""
    zone_slots: List[ZoneSample] = list(laps[0].zones) if laps else []
    series = [
        ZoneSeries(
            label=slot.label,
            values=[lap.zones[position].time for lap in laps],
            colors=[slot.color] * len(laps),
        )
        for position, slot in enumerate(zone_slots)
    ]
    lap_totals = [float(sum(zone.time for zone in lap.zones)) for lap in laps]
    tooltips = [
        f"{lap.lap_label} • {format_time(int(round(lap_total))) or '0s'}"
        for lap, lap_total in zip(laps, lap_totals)
    ]
    return ZoneChart(
        chart_id=zone_chart_id(zone_type, "lap_stacked"),
        kind="lap_stacked",
        zone_type=zone_type,
        title=f"{zone_type.label_prefix} by Lap (Stacked)",
        stacked=True,
        categories=[lap.lap_label for lap in laps],
        series=series,
        tooltips=tooltips,
        total_seconds=float(sum(lap_totals)),
    )


def build_zone_charts(
    context: ZoneResolutionContext,
    visibility: Optional[Mapping[str, bool]] = None,
) -> List[ZoneChart]:
    """Up to four descriptors: stacked and aggregate charts for HR and power.

    A chart is produced only when its zone type has data and its chart id is
    not hidden in ``visibility``.
    """
    visibility = visibility or {}
    charts: List[ZoneChart] = []
    for zone_type in ZoneType:
        if context.has_lap_data(zone_type) and visibility.get(zone_chart_id(zone_type, "lap_stacked"), True):
            charts.append(build_lap_stacked_chart(context.laps[zone_type], zone_type))
    for zone_type in ZoneType:
        if context.has_zone_data(zone_type) and visibility.get(zone_chart_id(zone_type, "aggregate"), True):
            charts.append(build_zone_bar_chart(context.aggregate[zone_type], zone_type))
    return charts
