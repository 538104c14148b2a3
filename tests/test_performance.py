import asyncio
from concurrent.futures import ThreadPoolExecutor

import pytest

from conftest import FIXED_NOW
from core.types import LOCAL_MODEL, PRIMARY_MODEL
from telemetry.performance import PerformanceTracker
from telemetry.writer import BackgroundWriter


def test_first_record_creates_entry():
    tracker = PerformanceTracker(clock=lambda: FIXED_NOW)
    record = tracker.record(PRIMARY_MODEL, True, 120.0)
    assert record.request_count == 1
    assert record.success_count == 1
    assert record.error_count == 0
    assert record.avg_response_time_ms == 120.0
    assert record.uptime_percentage == 100.0
    assert record.last_used == FIXED_NOW


def test_running_mean_counts_failures():
    tracker = PerformanceTracker()
    tracker.record(PRIMARY_MODEL, True, 100.0)
    tracker.record(PRIMARY_MODEL, False, 400.0)
    record = tracker.record(PRIMARY_MODEL, True, 100.0)
    assert record.request_count == 3
    assert record.success_count == 2
    assert record.error_count == 1
    assert record.avg_response_time_ms == pytest.approx(200.0)
    assert record.uptime_percentage == pytest.approx(100 * 2 / 3)


def test_invariants_after_many_records():
    tracker = PerformanceTracker()
    latencies = [float(i % 17) for i in range(200)]
    outcomes = [i % 3 != 0 for i in range(200)]
    for ms, ok in zip(latencies, outcomes):
        tracker.record(LOCAL_MODEL, ok, ms)

    record = tracker.get(LOCAL_MODEL)
    k = sum(outcomes)
    assert record.request_count == 200
    assert record.success_count + record.error_count == record.request_count
    assert record.uptime_percentage == pytest.approx(100 * k / 200)
    assert record.avg_response_time_ms == pytest.approx(sum(latencies) / 200)


def test_models_are_tracked_separately():
    tracker = PerformanceTracker()
    tracker.record(PRIMARY_MODEL, False, 10)
    tracker.record(LOCAL_MODEL, True, 1)
    snap = tracker.snapshot()
    assert set(snap) == {PRIMARY_MODEL, LOCAL_MODEL}
    assert snap[PRIMARY_MODEL].uptime_percentage == 0.0
    assert tracker.get("unknown") is None


def test_snapshot_is_a_copy():
    tracker = PerformanceTracker()
    tracker.record(PRIMARY_MODEL, True, 5)
    snap = tracker.snapshot()
    snap.clear()
    assert tracker.get(PRIMARY_MODEL) is not None


def test_concurrent_threads_do_not_lose_updates():
    tracker = PerformanceTracker()
    per_worker = 500
    workers = 8

    def hammer(worker: int) -> None:
        for i in range(per_worker):
            tracker.record(PRIMARY_MODEL, (worker + i) % 2 == 0, 10.0)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        list(pool.map(hammer, range(workers)))

    record = tracker.get(PRIMARY_MODEL)
    assert record.request_count == per_worker * workers
    assert record.success_count + record.error_count == per_worker * workers
    assert record.success_count == per_worker * workers // 2
    assert record.avg_response_time_ms == pytest.approx(10.0)


@pytest.mark.asyncio
async def test_concurrent_tasks_persist_every_attempt(store):
    writer = BackgroundWriter()
    tracker = PerformanceTracker(store=store, writer=writer)

    async def attempt(i: int) -> None:
        await asyncio.sleep(0)
        tracker.record(PRIMARY_MODEL, i % 4 != 0, float(i))

    await asyncio.gather(*(attempt(i) for i in range(100)))
    await writer.aclose()

    stored = store.get_model_performance(PRIMARY_MODEL)
    in_memory = tracker.get(PRIMARY_MODEL)
    assert stored.request_count == in_memory.request_count == 100
    assert stored.success_count == in_memory.success_count == 75
    assert stored.avg_response_time_ms == pytest.approx(in_memory.avg_response_time_ms)
    assert stored.uptime_percentage == pytest.approx(75.0)


def test_negative_elapsed_is_clamped():
    tracker = PerformanceTracker()
    record = tracker.record(PRIMARY_MODEL, True, -3)
    assert record.avg_response_time_ms == 0.0
