"""Render pass orchestration.

One pass runs normalize -> field filter -> dataset build -> zone resolution
-> zone chart build synchronously and returns everything the renderer needs.
``RenderScheduler`` debounces bursts of setting changes so only the last
request in a burst actually runs.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel

from ..config import RENDER_DEBOUNCE_SECONDS
from ..core.analytics.fields import FIELD_CATALOG, eligible_fields, select_visible_fields
from ..core.analytics.time_utils import normalize_timestamps
from ..core.analytics.zone_histogram import ZoneChart, build_zone_charts
from ..core.analytics.zones import ZoneDataResolver, ZoneMessage, ZoneResolutionContext
from .datasets import ChartDatasetBuilder
from .schemas import ChartDataset, RenderResponse
from .settings import ChartSettings

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_NO_RECORDS = "no_records"

RecordLike = Union[BaseModel, Mapping[str, Any]]


@dataclass
class RenderResult:
    status: str
    datasets: List[ChartDataset] = field(default_factory=list)
    zone_context: ZoneResolutionContext = field(default_factory=ZoneResolutionContext)
    zone_charts: List[ZoneChart] = field(default_factory=list)
    skipped_fields: List[str] = field(default_factory=list)
    total_records: int = 0

    def to_response(self) -> RenderResponse:
        return RenderResponse(
            status=self.status,
            datasets=self.datasets,
            zone_charts=self.zone_charts,
            skipped_fields=self.skipped_fields,
            total_records=self.total_records,
        )


def _as_mapping(record: RecordLike) -> Mapping[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump()
    return record


def run_render_pass(
    records: Optional[Sequence[RecordLike]],
    zone_messages: Optional[Sequence[Union[ZoneMessage, Mapping[str, Any]]]],
    settings: ChartSettings,
    session_records: Optional[Sequence[Mapping[str, Any]]] = None,
    context: Optional[ZoneResolutionContext] = None,
) -> RenderResult:
    """Run one full render pass. Inputs are read, never mutated."""
    resolver = ZoneDataResolver(settings.zone_colors)
    context = resolver.resolve(zone_messages, session_records, context)
    zone_charts = build_zone_charts(context, settings.zone_chart_visibility)

    rows = [_as_mapping(record) for record in records or []]
    if not rows:
        logger.info("[render] no records to render, %d zone charts", len(zone_charts))
        return RenderResult(
            status=STATUS_NO_RECORDS,
            zone_context=context,
            zone_charts=zone_charts,
        )

    xs = normalize_timestamps(rows)
    visible = select_visible_fields(FIELD_CATALOG, settings.field_visibility)
    eligible = eligible_fields(rows, FIELD_CATALOG, settings.field_visibility)
    skipped = [name for name in visible if name not in eligible]

    datasets = ChartDatasetBuilder(settings).build_all(rows, eligible, xs)
    logger.info(
        "[render] %d records -> %d datasets, %d zone charts",
        len(rows),
        len(datasets),
        len(zone_charts),
    )
    return RenderResult(
        status=STATUS_OK,
        datasets=datasets,
        zone_context=context,
        zone_charts=zone_charts,
        skipped_fields=skipped,
        total_records=len(rows),
    )


class RenderScheduler:
    """Debounced, latest-wins wrapper around ``run_render_pass``.

    Each ``request`` cancels the pending one and restarts the delay. Passes
    never overlap; a pass that finishes after a newer request was made is
    discarded instead of published.
    """

    def __init__(
        self,
        render: Callable[..., RenderResult] = run_render_pass,
        delay: float = RENDER_DEBOUNCE_SECONDS,
        on_result: Optional[Callable[[RenderResult], None]] = None,
    ):
        self._render = render
        self.delay = delay
        self._on_result = on_result
        self._lock = threading.Lock()
        self._run_lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self._latest: Optional[RenderResult] = None
        self._latest_generation = 0
        self._idle = threading.Event()
        self._idle.set()

    @property
    def latest(self) -> Optional[RenderResult]:
        with self._lock:
            return self._latest

    @property
    def latest_generation(self) -> int:
        with self._lock:
            return self._latest_generation

    def request(self, *args: Any, **kwargs: Any) -> int:
        with self._lock:
            self._generation += 1
            generation = self._generation
            if self._timer is not None:
                self._timer.cancel()
            self._idle.clear()
            self._timer = threading.Timer(self.delay, self._run, args=(generation, args, kwargs))
            self._timer.daemon = True
            self._timer.start()
        logger.debug("[render] pass %d scheduled in %.3fs", generation, self.delay)
        return generation

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1
            self._idle.set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._idle.wait(timeout)

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _run(self, generation: int, args: tuple, kwargs: Dict[str, Any]) -> None:
        with self._run_lock:
            if not self._is_current(generation):
                return
            try:
                result: Optional[RenderResult] = self._render(*args, **kwargs)
            except Exception:
                logger.exception("[render] pass %d failed", generation)
                result = None

            with self._lock:
                if generation != self._generation:
                    logger.debug("[render] discarding superseded pass %d", generation)
                    return
                if result is not None:
                    self._latest = result
                    self._latest_generation = generation

            try:
                if result is not None and self._on_result is not None:
                    self._on_result(result)
            finally:
                with self._lock:
                    if generation == self._generation:
                        self._timer = None
                        self._idle.set()
