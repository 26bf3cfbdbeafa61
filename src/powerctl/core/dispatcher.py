from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, Protocol

from powerctl.errors import PowerCtlError

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


class ActivitySink(Protocol):
    def record(self, event: str) -> None: ...


def record_safely(sink: ActivitySink | None, event: str) -> None:
    """Write to the activity sink; a broken sink only costs a log line."""
    if sink is None:
        return
    try:
        sink.record(event)
    except Exception:
        logger.warning("Activity sink rejected event: %s", event, exc_info=True)


class BackgroundDispatcher:
    """Fire-and-forget runner for scheduled and group work.

    At most ``max_workers`` jobs run at once; the rest wait their turn. The
    outcome of every job goes to the log and the activity sink, never back to
    whoever submitted it.
    """

    def __init__(
        self,
        sink: ActivitySink | None = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self._sink = sink
        self._max_workers = max_workers
        self._semaphore: asyncio.Semaphore | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, label: str, job: Coroutine[Any, Any, str | None]) -> asyncio.Task[None]:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_workers)
        task = asyncio.get_running_loop().create_task(
            self._run(label, job, self._semaphore)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(
        self,
        label: str,
        job: Coroutine[Any, Any, str | None],
        semaphore: asyncio.Semaphore,
    ) -> None:
        async with semaphore:
            try:
                message = await job
            except PowerCtlError as exc:
                logger.error("%s failed (%s): %s", label, exc.kind.value, exc)
                record_safely(self._sink, f"{label} failed: {exc}")
                return
            except Exception as exc:
                logger.exception("%s failed unexpectedly", label)
                record_safely(self._sink, f"{label} failed: {exc}")
                return

        logger.info("%s: %s", label, message or "done")
        record_safely(self._sink, f"{label}: {message or 'done'}")

    async def drain(self) -> None:
        """Wait for every submitted job to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
