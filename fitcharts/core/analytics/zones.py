"""Heart-rate and power zone time resolution from decoded zone messages.

Zone-time lists coming from the decoder always start with a "below zone 1"
bucket; every list is stripped of that first element before its remaining
entries are mapped to zones 1..N.

The aggregate distribution per zone type is taken from the first source that
yields any time:

1. the session-scoped zone message;
2. a legacy session record carrying ``time_in_hr_zone``/``time_in_power_zone``;
3. the index-wise sum of every lap-scoped zone message.

Per-lap breakdowns are restricted to the zones that have time in at least one
lap so stacked charts stay aligned across laps.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, field_validator

from .values import clean_number, safe_parse_array

logger = logging.getLogger(__name__)

FALLBACK_ZONE_COLOR = "#808080"

HEART_RATE_ZONE_COLORS: List[str] = ["#2196F3", "#4CAF50", "#FFC107", "#FF9800", "#F44336"]

POWER_ZONE_COLORS: List[str] = [
    "#4CAF50",
    "#FFB74D",
    "#FF8A65",
    "#FF5252",
    "#AB47BC",
    "#5C6BC0",
    "#424242",
]


class ZoneType(str, Enum):
    """Intensity metric a zone distribution belongs to."""
    HEART_RATE = "hr"
    POWER = "power"

    @property
    def message_attr(self) -> str:
        return "hr_zone_times" if self is ZoneType.HEART_RATE else "power_zone_times"

    @property
    def session_attr(self) -> str:
        return "time_in_hr_zone" if self is ZoneType.HEART_RATE else "time_in_power_zone"

    @property
    def label_prefix(self) -> str:
        return "HR Zone" if self is ZoneType.HEART_RATE else "Power Zone"

    @property
    def default_colors(self) -> List[str]:
        return HEART_RATE_ZONE_COLORS if self is ZoneType.HEART_RATE else POWER_ZONE_COLORS


class ZoneSource(str, Enum):
    SESSION_MESSAGE = "session_message"
    SESSION_RECORD = "session_record"
    LAP_SUMMATION = "lap_summation"


class ZoneMessage(BaseModel):
    """Time-in-zone message as produced by the activity decoder."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    reference_scope: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("reference_scope", "referenceScope", "referenceMesg", "reference_mesg"),
    )
    reference_index: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("reference_index", "referenceIndex"),
    )
    hr_zone_times: Any = Field(
        None,
        validation_alias=AliasChoices("hr_zone_times", "hrZoneTimes", "timeInHrZone", "time_in_hr_zone"),
    )
    power_zone_times: Any = Field(
        None,
        validation_alias=AliasChoices("power_zone_times", "powerZoneTimes", "timeInPowerZone", "time_in_power_zone"),
    )

    @field_validator("reference_scope", mode="before")
    @classmethod
    def _normalize_scope(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value).strip().lower()


class ZoneSample(BaseModel):
    zone_index: int = Field(..., description="0-based zone index (zone 1 is index 0)")
    time: float = Field(..., description="seconds spent in the zone")
    label: str
    color: str = FALLBACK_ZONE_COLOR

    @computed_field
    @property
    def zone(self) -> int:
        return self.zone_index + 1


class LapZoneBreakdown(BaseModel):
    lap_label: str
    reference_index: Optional[int] = None
    zones: List[ZoneSample] = Field(default_factory=list)


class ZoneResolutionContext(BaseModel):
    """Zone results of one render pass.

    ``clear`` empties every collection; the resolver calls it before writing so
    results from a previous activity never survive into the next pass.
    """

    aggregate: Dict[ZoneType, List[ZoneSample]] = Field(default_factory=dict)
    sources: Dict[ZoneType, ZoneSource] = Field(default_factory=dict)
    laps: Dict[ZoneType, List[LapZoneBreakdown]] = Field(default_factory=dict)
    meaningful_zones: Dict[ZoneType, List[int]] = Field(default_factory=dict)
    malformed_messages: int = 0

    def clear(self) -> None:
        self.aggregate.clear()
        self.sources.clear()
        self.laps.clear()
        self.meaningful_zones.clear()
        self.malformed_messages = 0

    def has_zone_data(self, zone_type: ZoneType) -> bool:
        return bool(self.aggregate.get(zone_type))

    def has_lap_data(self, zone_type: ZoneType) -> bool:
        return bool(self.laps.get(zone_type))


def zone_label(zone_type: ZoneType, zone_index: int) -> str:
    return f"{zone_type.label_prefix} {zone_index + 1}"


def lap_label(reference_index: Optional[int], position: int) -> str:
    if reference_index is not None and reference_index >= 0:
        return f"Lap {reference_index + 1}"
    return f"Lap {position + 1}"


def drop_below_zone_bucket(raw_times: Sequence[Any]) -> List[float]:
    """Strip the leading "below zone 1" bucket and coerce each entry to seconds."""
    times: List[float] = []
    for value in list(raw_times)[1:]:
        number = clean_number(value)
        times.append(number if number is not None else 0.0)
    return times


def sum_lap_times(lap_times: Iterable[Sequence[float]]) -> List[float]:
    lap_times = [times for times in lap_times if len(times)]
    if not lap_times:
        return []
    width = max(len(times) for times in lap_times)
    totals = np.zeros(width, dtype=np.float64)
    for times in lap_times:
        totals[: len(times)] += np.asarray(times, dtype=np.float64)
    return totals.tolist()


def meaningful_zone_indices(lap_times: Iterable[Sequence[float]]) -> List[int]:
    meaningful = set()
    for times in lap_times:
        meaningful.update(index for index, time in enumerate(times) if time > 0)
    return sorted(meaningful)


class ZoneDataResolver:
    """Resolves aggregate and per-lap zone distributions for one render pass."""

    def __init__(self, zone_colors: Optional[Mapping[ZoneType, Mapping[int, str]]] = None):
        self.zone_colors = zone_colors or {}

    def zone_color(self, zone_type: ZoneType, zone_index: int) -> str:
        override = self.zone_colors.get(zone_type, {}).get(zone_index)
        if override:
            return override
        palette = zone_type.default_colors
        if not palette:
            return FALLBACK_ZONE_COLOR
        return palette[zone_index % len(palette)]

    def resolve(
        self,
        zone_messages: Optional[Sequence[Union[ZoneMessage, Mapping[str, Any]]]],
        session_records: Optional[Sequence[Mapping[str, Any]]] = None,
        context: Optional[ZoneResolutionContext] = None,
    ) -> ZoneResolutionContext:
        if context is None:
            context = ZoneResolutionContext()
        context.clear()

        messages = [self._coerce_message(message) for message in zone_messages or []]
        session_messages = [m for m in messages if m.reference_scope == "session"]
        lap_messages = [m for m in messages if m.reference_scope == "lap"]

        for zone_type in ZoneType:
            lap_times = self._parse_lap_times(lap_messages, zone_type, context)

            resolved = self._resolve_aggregate(
                zone_type, session_messages, session_records or [], lap_times, context
            )
            if resolved is None:
                logger.info("[zone-resolver] no %s zone data available", zone_type.value)
            else:
                samples, source = resolved
                context.aggregate[zone_type] = samples
                context.sources[zone_type] = source
                logger.debug(
                    "[zone-resolver] %s zones from %s: %d zones",
                    zone_type.value,
                    source.value,
                    len(samples),
                )

            laps, meaningful = self._resolve_lap_breakdowns(zone_type, lap_times)
            if laps:
                context.laps[zone_type] = laps
                context.meaningful_zones[zone_type] = meaningful

        return context

    @staticmethod
    def _coerce_message(message: Union[ZoneMessage, Mapping[str, Any]]) -> ZoneMessage:
        if isinstance(message, ZoneMessage):
            return message
        return ZoneMessage.model_validate(dict(message))

    def _samples_from_times(self, zone_type: ZoneType, times: Sequence[float]) -> List[ZoneSample]:
        return [
            ZoneSample(
                zone_index=index,
                time=time,
                label=zone_label(zone_type, index),
                color=self.zone_color(zone_type, index),
            )
            for index, time in enumerate(times)
            if time > 0
        ]

    @staticmethod
    def _parse_times(raw: Any, context: ZoneResolutionContext, where: str) -> Optional[List[float]]:
        """Parse one raw zone list; a malformed list counts as empty for that message."""
        if raw is None:
            return None
        try:
            parsed = safe_parse_array(raw)
        except ValueError:
            context.malformed_messages += 1
            logger.warning("[zone-resolver] unparsable zone list in %s: %r", where, raw)
            return []
        return drop_below_zone_bucket(parsed)

    def _parse_lap_times(
        self,
        lap_messages: Sequence[ZoneMessage],
        zone_type: ZoneType,
        context: ZoneResolutionContext,
    ) -> List[Tuple[ZoneMessage, List[float]]]:
        parsed: List[Tuple[ZoneMessage, List[float]]] = []
        for message in lap_messages:
            raw = getattr(message, zone_type.message_attr)
            times = self._parse_times(
                raw, context, f"lap {message.reference_index} {zone_type.value}"
            )
            if times:
                parsed.append((message, times))
        return parsed

    def _resolve_aggregate(
        self,
        zone_type: ZoneType,
        session_messages: Sequence[ZoneMessage],
        session_records: Sequence[Mapping[str, Any]],
        lap_times: Sequence[Tuple[ZoneMessage, List[float]]],
        context: ZoneResolutionContext,
    ) -> Optional[Tuple[List[ZoneSample], ZoneSource]]:
        for message in session_messages:
            times = self._parse_times(
                getattr(message, zone_type.message_attr),
                context,
                f"session message {zone_type.value}",
            )
            if times is None:
                continue
            samples = self._samples_from_times(zone_type, times)
            if samples:
                return samples, ZoneSource.SESSION_MESSAGE
            break

        for record in session_records:
            raw = record.get(zone_type.session_attr)
            if raw is None:
                continue
            times = self._parse_times(raw, context, f"session record {zone_type.session_attr}")
            samples = self._samples_from_times(zone_type, times or [])
            if samples:
                return samples, ZoneSource.SESSION_RECORD
            break

        samples = self._samples_from_times(zone_type, sum_lap_times(times for _, times in lap_times))
        if samples:
            return samples, ZoneSource.LAP_SUMMATION
        return None

    def _resolve_lap_breakdowns(
        self,
        zone_type: ZoneType,
        lap_times: Sequence[Tuple[ZoneMessage, List[float]]],
    ) -> Tuple[List[LapZoneBreakdown], List[int]]:
        meaningful = meaningful_zone_indices(times for _, times in lap_times)
        if not meaningful:
            return [], []

        breakdowns: List[LapZoneBreakdown] = []
        for position, (message, times) in enumerate(lap_times):
            zones = [
                ZoneSample(
                    zone_index=index,
                    time=times[index] if index < len(times) else 0.0,
                    label=zone_label(zone_type, index),
                    color=self.zone_color(zone_type, index),
                )
                for index in meaningful
            ]
            breakdowns.append(
                LapZoneBreakdown(
                    lap_label=lap_label(message.reference_index, position),
                    reference_index=message.reference_index,
                    zones=zones,
                )
            )
        return breakdowns, meaningful
