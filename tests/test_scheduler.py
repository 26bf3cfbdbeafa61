"""Tests for the timer store."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from powerctl.core import BackgroundDispatcher, Scheduler
from powerctl.errors import DeviceNotFound, InvalidAction, MissingParameters, ScheduleNotFound
from powerctl.models import Action, Device


class RunnerSpy:
    def __init__(self) -> None:
        self.calls: list[tuple[Device, Action]] = []

    async def __call__(self, device: Device, action: Action) -> str:
        self.calls.append((device, action))
        return f"{action.value} sent to {device.ip}"


def _scheduler(registry, sink=None, runner=None):
    runner = runner or RunnerSpy()
    dispatcher = BackgroundDispatcher(sink)
    return Scheduler(registry, runner, dispatcher), runner, dispatcher


def test_reschedule_replaces_pending_task(registry):
    async def _run():
        scheduler, _, _ = _scheduler(registry)
        scheduler.schedule(2, "shutdown", 5)
        scheduler.schedule(2, "restart", 10)
        entries = scheduler.list_entries()
        scheduler.shutdown()
        return entries

    entries = asyncio.run(_run())

    assert len(entries) == 1
    entry = entries[0]
    assert entry.device_id == 2
    assert entry.action is Action.RESTART
    assert entry.name == "office-pc"
    remaining = entry.expires_at - datetime.now(timezone.utc)
    assert timedelta(minutes=9, seconds=50) < remaining <= timedelta(minutes=10)


def test_cancel_without_task_raises(registry):
    async def _run():
        scheduler, _, _ = _scheduler(registry)
        scheduler.cancel(2)

    with pytest.raises(ScheduleNotFound):
        asyncio.run(_run())


def test_cancel_removes_task_and_prevents_firing(registry):
    async def _run():
        scheduler, runner, dispatcher = _scheduler(registry)
        scheduler.schedule(2, "shutdown", 0.001)
        message = scheduler.cancel(2)
        await asyncio.sleep(0.2)
        await dispatcher.drain()
        return scheduler, runner, message

    scheduler, runner, message = asyncio.run(_run())

    assert "cancelled" in message
    assert len(scheduler) == 0
    assert runner.calls == []


def test_fire_uses_captured_snapshot_and_removes_entry(registry, sink):
    async def _run():
        scheduler, runner, dispatcher = _scheduler(registry, sink)
        scheduler.schedule(2, "restart", 0.001)
        # Registry changes after scheduling must not leak into the firing.
        registry.devices[1] = registry.devices[1].model_copy(
            update={"ip": "10.9.9.9", "secret": "rotated"}
        )
        await asyncio.sleep(0.2)
        await dispatcher.drain()
        with pytest.raises(ScheduleNotFound):
            scheduler.cancel(2)
        return scheduler, runner

    scheduler, runner = asyncio.run(_run())

    assert len(scheduler) == 0
    assert len(runner.calls) == 1
    device, action = runner.calls[0]
    assert action is Action.RESTART
    assert device.ip == "192.168.1.20"
    assert device.secret == "hunter2"
    assert any("restart sent to 192.168.1.20" in event for event in sink.events)


def test_failed_firing_is_only_logged(registry, sink):
    async def _failing(device, action):
        raise RuntimeError("boom")

    async def _run():
        scheduler, _, dispatcher = _scheduler(registry, sink, runner=_failing)
        scheduler.schedule(3, "shutdown", 0.001)
        await asyncio.sleep(0.2)
        await dispatcher.drain()
        return scheduler

    scheduler = asyncio.run(_run())

    assert len(scheduler) == 0
    assert any("failed: boom" in event for event in sink.events)


@pytest.mark.parametrize(
    ("device_id", "action", "delay", "error"),
    [
        (99, "shutdown", 5, DeviceNotFound),
        (2, None, 5, MissingParameters),
        (2, "shutdown", None, MissingParameters),
        (2, "shutdown", "soon", MissingParameters),
        (2, "shutdown", 0, MissingParameters),
        (2, "hibernate", 5, InvalidAction),
        (1, "wake", 5, MissingParameters),
    ],
)
def test_schedule_validation(registry, device_id, action, delay, error):
    async def _run():
        scheduler, _, _ = _scheduler(registry)
        try:
            scheduler.schedule(device_id, action, delay)
        finally:
            assert len(scheduler) == 0

    with pytest.raises(error):
        asyncio.run(_run())


def test_list_is_sorted_by_fire_time(registry):
    async def _run():
        scheduler, _, _ = _scheduler(registry)
        scheduler.schedule(2, "shutdown", 30)
        scheduler.schedule(3, "restart", 5)
        entries = scheduler.list_entries()
        dropped = scheduler.shutdown()
        return entries, dropped, len(scheduler)

    entries, dropped, remaining = asyncio.run(_run())

    assert [entry.device_id for entry in entries] == [3, 2]
    assert dropped == 2
    assert remaining == 0


@pytest.mark.parametrize("delay", [1e11, "1e300"])
def test_schedule_rejects_delay_beyond_calendar(registry, delay):
    async def _run():
        scheduler, _, _ = _scheduler(registry)
        try:
            scheduler.schedule(2, "shutdown", delay)
        finally:
            assert len(scheduler) == 0

    with pytest.raises(MissingParameters):
        asyncio.run(_run())


def test_reschedule_after_firing_starts_a_fresh_job(registry):
    async def _run():
        scheduler, runner, dispatcher = _scheduler(registry)
        scheduler.schedule(2, "shutdown", 0.001)
        await asyncio.sleep(0.2)
        await dispatcher.drain()
        scheduler.schedule(2, "restart", 5)
        entries = scheduler.list_entries()
        scheduler.shutdown()
        return runner, entries

    runner, entries = asyncio.run(_run())

    assert [action for _, action in runner.calls] == [Action.SHUTDOWN]
    assert [(entry.device_id, entry.action) for entry in entries] == [(2, Action.RESTART)]


def test_scheduler_logs_job_handoff(registry, caplog):
    async def _run():
        scheduler, _, dispatcher = _scheduler(registry)
        scheduler.schedule(3, "restart", 0.001)
        await asyncio.sleep(0.2)
        await dispatcher.drain()

    with caplog.at_level("DEBUG", logger="powerctl.core.scheduler"):
        asyncio.run(_run())

    assert "Firing scheduled restart for reception" in caplog.text
    assert "handed to the dispatcher" in caplog.text


def test_dispatcher_bounds_concurrency(sink):
    running = 0
    peak = 0

    async def _job(index: int) -> str:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1
        return f"job {index} done"

    async def _run():
        dispatcher = BackgroundDispatcher(sink, max_workers=2)
        for index in range(5):
            dispatcher.submit(f"Job {index}", _job(index))
        await dispatcher.drain()

    asyncio.run(_run())

    assert peak == 2
    assert len(sink.events) == 5
