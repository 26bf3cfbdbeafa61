from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
import threading
from collections.abc import Awaitable, Callable, Iterable, Mapping

from powerctl.models import ProbeResult, ProbeTarget, ReachabilityRecord, Transition

from .resolver import is_local

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 2.0

Pinger = Callable[[str, float], Awaitable[bool]]


def _ping_argv(ip: str, timeout: float) -> list[str]:
    if sys.platform == "win32":
        return ["ping", "-n", "1", "-w", str(int(timeout * 1000)), ip]
    if sys.platform == "darwin":
        return ["ping", "-c", "1", "-t", str(max(int(timeout), 1)), ip]
    return ["ping", "-c", "1", "-W", str(max(int(timeout), 1)), ip]


async def ping(ip: str, timeout: float) -> bool:
    """Send one ICMP echo through the system ``ping``."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *_ping_argv(ip, timeout),
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as exc:
        logger.debug("Could not start ping for %s: %s", ip, exc)
        return False

    try:
        # Small margin so ping's own deadline normally wins.
        returncode = await asyncio.wait_for(proc.wait(), timeout + 1)
    except (asyncio.TimeoutError, TimeoutError):
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()
        logger.debug("No response from %s (timeout)", ip)
        return False
    return returncode == 0


async def check_target(
    target: ProbeTarget, timeout: float, pinger: Pinger = ping
) -> ProbeResult:
    if is_local(target.ip):
        return ProbeResult(id=target.id, is_online=True)
    try:
        alive = await pinger(target.ip, timeout)
    except Exception as exc:
        logger.debug("Probe of %s failed: %s", target.ip, exc)
        alive = False
    return ProbeResult(id=target.id, is_online=alive)


async def probe(
    targets: Iterable[ProbeTarget],
    timeout: float = DEFAULT_PROBE_TIMEOUT,
    pinger: Pinger = ping,
) -> list[ProbeResult]:
    """Check every target concurrently; order follows the input."""
    return list(
        await asyncio.gather(
            *(check_target(target, timeout, pinger) for target in targets)
        )
    )


class ReachabilityTracker:
    """Previous/current online state per device id."""

    def __init__(self, initial: Mapping[int, bool] | None = None) -> None:
        self._lock = threading.Lock()
        self._records: dict[int, ReachabilityRecord] = {
            device_id: ReachabilityRecord(id=device_id, is_online=online)
            for device_id, online in (initial or {}).items()
        }

    def update(self, results: Iterable[ProbeResult]) -> list[Transition]:
        transitions: list[Transition] = []
        with self._lock:
            for result in results:
                record = self._records.get(result.id)
                if record is None:
                    self._records[result.id] = ReachabilityRecord(
                        id=result.id, is_online=result.is_online
                    )
                    continue
                record.was_online = record.is_online
                record.is_online = result.is_online
                if record.was_online != record.is_online:
                    transitions.append(
                        Transition(
                            id=result.id,
                            is_online=result.is_online,
                            was_online=record.was_online,
                        )
                    )
        return transitions

    def records(self) -> list[ReachabilityRecord]:
        with self._lock:
            return [
                ReachabilityRecord(r.id, r.is_online, r.was_online)
                for r in self._records.values()
            ]

    def forget(self, device_id: int) -> None:
        with self._lock:
            self._records.pop(device_id, None)
