"""In-process store for deferred power actions, on APScheduler.

Jobs live in APScheduler's default in-memory job store; nothing is written to
disk, so a restart drops them. One job per device, keyed by the device id.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable, Coroutine
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_EXECUTED,
    EVENT_JOB_MISSED,
    JobExecutionEvent,
)
from apscheduler.job import Job
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from powerctl.errors import DeviceNotFound, MissingParameters, ScheduleNotFound
from powerctl.models import Action, Device, ScheduleEntry

from .dispatcher import BackgroundDispatcher
from .resolver import parse_action

logger = logging.getLogger(__name__)

DeviceRunner = Callable[[Device, Action], Coroutine[Any, Any, str]]


class DeviceLookup(Protocol):
    def get_device(self, device_id: int) -> Device | None: ...


def parse_delay(value: float | int | str | None) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingParameters("Delay in minutes is required.")
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        raise MissingParameters(f"Invalid delay: {value!r}") from None
    if not math.isfinite(minutes) or minutes <= 0:
        raise MissingParameters(f"Delay must be a positive number of minutes: {value!r}")
    return minutes


def fire_time(minutes: float, now: datetime | None = None) -> datetime:
    """Absolute UTC fire time ``minutes`` from ``now``."""
    now = now or datetime.now(timezone.utc)
    try:
        return now + timedelta(minutes=minutes)
    except OverflowError:
        raise MissingParameters(f"Delay is too large: {minutes:g} minute(s)") from None


def _entry(job: Job) -> ScheduleEntry:
    device, action = job.args
    return ScheduleEntry(
        device_id=int(job.id),
        action=action,
        name=device.name,
        expires_at=job.next_run_time,
    )


class Scheduler:
    """At most one pending action per device id.

    Each job carries a copy of the device taken at schedule time. When a job
    fires, APScheduler drops it from the store and the job only hands the work
    to the dispatcher, so a later ``cancel`` can no longer stop a command that
    already started.
    """

    def __init__(
        self,
        registry: DeviceLookup,
        runner: DeviceRunner,
        dispatcher: BackgroundDispatcher,
    ) -> None:
        self._registry = registry
        self._runner = runner
        self._dispatcher = dispatcher
        self._scheduler: AsyncIOScheduler | None = None

    def _started(self) -> AsyncIOScheduler:
        loop = asyncio.get_running_loop()
        if self._scheduler is None:
            scheduler = AsyncIOScheduler(
                event_loop=loop,
                timezone=timezone.utc,
                job_defaults={"misfire_grace_time": None, "coalesce": True},
            )
            scheduler.add_listener(
                self._on_job_event, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MISSED
            )
            scheduler.start()
            self._scheduler = scheduler
        return self._scheduler

    def schedule(
        self,
        device_id: int,
        action: Action | str | None,
        delay_minutes: float | int | str | None,
    ) -> str:
        parsed_action = parse_action(action)
        minutes = parse_delay(delay_minutes)
        expires_at = fire_time(minutes)

        device = self._registry.get_device(device_id)
        if device is None:
            raise DeviceNotFound(details=f"id {device_id}")
        if parsed_action is Action.WAKE and not device.mac:
            raise MissingParameters(f"Device '{device.name}' has no MAC address.")

        scheduler = self._started()
        previous = scheduler.get_job(str(device_id))
        scheduler.add_job(
            self._fire,
            "date",
            run_date=expires_at,
            id=str(device_id),
            name=f"{parsed_action.value} {device.name}",
            args=[device.model_copy(), parsed_action],
            replace_existing=True,
        )

        if previous is not None:
            logger.info(
                "Replaced scheduled %s for %s with %s",
                previous.args[1].value,
                device.name,
                parsed_action.value,
            )
        logger.info(
            "Scheduled %s for %s at %s",
            parsed_action.value,
            device.name,
            expires_at.isoformat(timespec="seconds"),
        )
        return f"{parsed_action.value.capitalize()} scheduled for {device.name} in {minutes:g} minute(s)"

    def list_entries(self) -> list[ScheduleEntry]:
        if self._scheduler is None:
            return []
        entries = [_entry(job) for job in self._scheduler.get_jobs()]
        return sorted(entries, key=lambda entry: entry.expires_at)

    def get(self, device_id: int) -> ScheduleEntry | None:
        if self._scheduler is None:
            return None
        job = self._scheduler.get_job(str(device_id))
        return _entry(job) if job is not None else None

    def cancel(self, device_id: int) -> str:
        entry = self.get(device_id)
        if self._scheduler is None or entry is None:
            raise ScheduleNotFound(details=f"device {device_id}")
        try:
            self._scheduler.remove_job(str(device_id))
        except JobLookupError:
            raise ScheduleNotFound(details=f"device {device_id}") from None
        logger.info("Cancelled scheduled %s for %s", entry.action.value, entry.name)
        return f"Scheduled {entry.action.value} for {entry.name} cancelled"

    def shutdown(self) -> int:
        """Drop every pending job and stop the scheduler; returns the count."""
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is None:
            return 0
        dropped = len(scheduler.get_jobs())
        scheduler.remove_all_jobs()
        scheduler.shutdown(wait=False)
        if dropped:
            logger.warning("Dropped %d pending scheduled action(s)", dropped)
        return dropped

    def __len__(self) -> int:
        if self._scheduler is None:
            return 0
        return len(self._scheduler.get_jobs())

    async def _fire(self, device: Device, action: Action) -> None:
        logger.info("Firing scheduled %s for %s", action.value, device.name)
        self._dispatcher.submit(
            f"Scheduled {action.value} for {device.name}",
            self._runner(device, action),
        )

    def _on_job_event(self, event: JobExecutionEvent) -> None:
        if event.code == EVENT_JOB_MISSED:
            logger.warning("Scheduled job for device %s missed its run time", event.job_id)
        elif event.exception is not None:
            logger.error(
                "Scheduled job for device %s could not be dispatched: %s",
                event.job_id,
                event.exception,
            )
        else:
            logger.debug("Scheduled job for device %s handed to the dispatcher", event.job_id)
