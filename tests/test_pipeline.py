import copy
import threading

from fitcharts.charts.pipeline import (
    STATUS_NO_RECORDS,
    STATUS_OK,
    RenderResult,
    RenderScheduler,
    run_render_pass,
)
from fitcharts.charts.settings import ChartSettings
from fitcharts.core.analytics.zones import ZoneResolutionContext, ZoneType


def test_render_pass_builds_datasets_in_catalog_order(sample_records):
    result = run_render_pass(sample_records, [], ChartSettings.from_store({}))
    assert result.status == STATUS_OK
    assert [d.field for d in result.datasets] == ["speed", "heartRate"]
    assert [p.x for p in result.datasets[0].points] == list(range(10))
    assert "power" in result.skipped_fields
    assert "cadence" in result.skipped_fields
    assert result.total_records == 10


def test_hidden_fields_are_not_rendered_or_reported(sample_records):
    settings = ChartSettings.from_store({"chartjs_field_speed": "hidden"})
    result = run_render_pass(sample_records, [], settings)
    assert [d.field for d in result.datasets] == ["heartRate"]
    assert "speed" not in result.skipped_fields


def test_no_records_still_resolves_zones(session_zone_message):
    result = run_render_pass([], [session_zone_message], ChartSettings.from_store({}))
    assert result.status == STATUS_NO_RECORDS
    assert result.datasets == []
    assert result.zone_context.has_zone_data(ZoneType.HEART_RATE)
    assert [c.chart_id for c in result.zone_charts] == ["hr_lap_zone_individual"]


def test_render_pass_is_idempotent_and_does_not_mutate_input(sample_records, lap_zone_messages):
    records_before = copy.deepcopy(sample_records)
    messages_before = copy.deepcopy(lap_zone_messages)
    settings = ChartSettings.from_store({})

    first = run_render_pass(sample_records, lap_zone_messages, settings)
    second = run_render_pass(sample_records, lap_zone_messages, settings)

    assert [d.model_dump() for d in first.datasets] == [d.model_dump() for d in second.datasets]
    assert [c.model_dump() for c in first.zone_charts] == [c.model_dump() for c in second.zone_charts]
    assert sample_records == records_before
    assert lap_zone_messages == messages_before


def test_render_pass_writes_supplied_context(session_zone_message):
    context = ZoneResolutionContext()
    result = run_render_pass([], [session_zone_message], ChartSettings.from_store({}), context=context)
    assert result.zone_context is context


def test_zone_color_settings_reach_zone_samples(session_zone_message):
    settings = ChartSettings.from_store({"chartjs_hr_zone_1_color": "#010203"})
    result = run_render_pass([], [session_zone_message], settings)
    assert result.zone_context.aggregate[ZoneType.HEART_RATE][0].color == "#010203"


def test_scheduler_runs_only_latest_request():
    calls = []
    delivered = []

    def render(value):
        calls.append(value)
        return RenderResult(status=STATUS_OK, total_records=value)

    scheduler = RenderScheduler(render=render, delay=0.05, on_result=delivered.append)
    for value in (1, 2, 3):
        scheduler.request(value)

    assert scheduler.wait(timeout=5)
    assert calls == [3]
    assert scheduler.latest.total_records == 3
    assert scheduler.latest_generation == 3
    assert [r.total_records for r in delivered] == [3]


def test_scheduler_discards_superseded_in_flight_result():
    started = threading.Event()
    release = threading.Event()

    def render(value):
        if value == "slow":
            started.set()
            release.wait(timeout=5)
        return RenderResult(status=STATUS_OK, skipped_fields=[value])

    scheduler = RenderScheduler(render=render, delay=0.01)
    scheduler.request("slow")
    assert started.wait(timeout=5)
    scheduler.request("fast")
    release.set()

    assert scheduler.wait(timeout=5)
    assert scheduler.latest.skipped_fields == ["fast"]


def test_scheduler_cancel():
    calls = []
    scheduler = RenderScheduler(render=lambda: calls.append(1), delay=0.2)
    scheduler.request()
    scheduler.cancel()
    assert scheduler.wait(timeout=1)
    assert scheduler.latest is None
    assert calls == []
