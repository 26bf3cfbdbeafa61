from __future__ import annotations

from collections.abc import Sequence

import pytest

from powerctl.config import get_settings
from powerctl.core import CommandExecutor, CommandResult
from powerctl.models import Device


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("POWERCTL_CONFIG", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FakeRegistry:
    def __init__(self, devices: list[Device]) -> None:
        self.devices = list(devices)

    def get_device(self, device_id: int) -> Device | None:
        return next((d for d in self.devices if d.id == device_id), None)

    def list_devices(self) -> list[Device]:
        return list(self.devices)

    def devices_in_group(self, group: str) -> list[Device]:
        return [d for d in self.devices if d.group == group]


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[str] = []

    def record(self, event: str) -> None:
        self.events.append(event)


class FakeExecutor(CommandExecutor):
    """Records argv instead of spawning processes."""

    def __init__(self, results: dict[str, CommandResult] | None = None) -> None:
        super().__init__(timeout=1.0)
        self.results = results or {}
        self.calls: list[tuple[str, ...]] = []

    async def run(self, argv: Sequence[str]) -> CommandResult:
        self.calls.append(tuple(argv))
        key = " ".join(argv[:2])
        return self.results.get(key, CommandResult(returncode=0))


@pytest.fixture
def devices() -> list[Device]:
    return [
        Device(id=1, name="local", ip="127.0.0.1", group="lab"),
        Device(
            id=2,
            name="office-pc",
            ip="192.168.1.20",
            mac="AA:BB:CC:DD:EE:01",
            group="office",
            username="admin",
            secret="hunter2",
        ),
        Device(
            id=3,
            name="reception",
            ip="192.168.1.21",
            mac="AA:BB:CC:DD:EE:02",
            group="office",
        ),
    ]


@pytest.fixture
def registry(devices: list[Device]) -> FakeRegistry:
    return FakeRegistry(devices)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def make_executor():
    return FakeExecutor
