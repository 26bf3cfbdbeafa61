"""Business logic services."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Sequence
from typing import Protocol

from powerctl.config import Settings
from powerctl.core import (
    DEFAULT_PATTERNS,
    ActivitySink,
    BackgroundDispatcher,
    CommandExecutor,
    ErrorPattern,
    GroupFanout,
    Scheduler,
    SessionAuthenticator,
    parse_action,
    probe,
    resolve,
    send_magic_packet,
)
from powerctl.core.dispatcher import record_safely
from powerctl.core.prober import Pinger, ping
from powerctl.core.wake import MagicPacketSender
from powerctl.errors import CommandFailed, DeviceNotFound, MissingParameters
from powerctl.models import (
    DEFAULT_TARGET_IP,
    Action,
    CommandPlan,
    Device,
    PlatformFamily,
    ProbeResult,
    ProbeTarget,
    ScheduleEntry,
    Target,
)


class DeviceRepository(Protocol):
    def get_device(self, device_id: int) -> Device | None: ...

    def list_devices(self) -> list[Device]: ...

    def devices_in_group(self, group: str) -> list[Device]: ...


class PowerController:
    """Entry point for power actions, probing, scheduling and group actions.

    One instance owns the scheduler table and the background dispatcher; keep
    it alive for as long as scheduled actions should be able to fire.
    """

    def __init__(
        self,
        registry: DeviceRepository,
        sink: ActivitySink | None = None,
        platform: PlatformFamily | None = None,
        command_timeout: float = 60.0,
        probe_timeout: float = 2.0,
        max_workers: int = 8,
        patterns: Sequence[ErrorPattern] = DEFAULT_PATTERNS,
        executor: CommandExecutor | None = None,
        wake_sender: MagicPacketSender = send_magic_packet,
        pinger: Pinger = ping,
    ) -> None:
        self.registry = registry
        self.sink = sink
        self.platform = platform or PlatformFamily.detect()
        self.probe_timeout = probe_timeout
        self.executor = executor or CommandExecutor(command_timeout, patterns)
        self.authenticator = SessionAuthenticator(self.executor)
        self.dispatcher = BackgroundDispatcher(sink, max_workers=max_workers)
        self.scheduler = Scheduler(registry, self.execute_for_device, self.dispatcher)
        self.fanout = GroupFanout(
            registry, self.execute_for_device, self.dispatcher, wake_sender
        )
        self._wake_sender = wake_sender
        self._pinger = pinger

    @classmethod
    def from_settings(
        cls, settings: Settings, registry: DeviceRepository, sink: ActivitySink | None = None
    ) -> PowerController:
        platform = settings.execution.platform
        return cls(
            registry,
            sink=sink,
            platform=PlatformFamily(platform) if platform else None,
            command_timeout=settings.execution.command_timeout,
            probe_timeout=settings.probing.timeout,
            max_workers=settings.execution.max_workers,
        )

    def plan(self, action: Action | str, target: Target) -> CommandPlan:
        return resolve(action, target, self.platform)

    async def run_plan(self, plan: CommandPlan) -> str:
        if plan.requires_auth:
            await self.authenticator.authenticate(plan)
        await self.executor.execute(plan)
        message = f"Command sent successfully to {plan.target.ip}"
        record_safely(self.sink, f"{plan.action.value} sent to {plan.target.ip}")
        return message

    async def execute_for_device(self, device: Device, action: Action | str) -> str:
        """Single-device path shared by direct, scheduled and group requests."""
        parsed_action = parse_action(action)
        if parsed_action is Action.WAKE:
            if not device.mac:
                raise MissingParameters(f"Device '{device.name}' has no MAC address.")
            return await self.wake(device.mac)
        return await self.run_plan(self.plan(parsed_action, Target.from_device(device)))

    async def resolve_and_execute(
        self,
        action: Action | str | None,
        device_id: int | None = None,
        ip: str | None = None,
    ) -> str:
        parsed_action = parse_action(action)
        if device_id is not None:
            device = self.registry.get_device(device_id)
            if device is None:
                raise DeviceNotFound(details=f"id {device_id}")
            return await self.execute_for_device(device, parsed_action)

        if parsed_action is Action.WAKE:
            raise MissingParameters("Wake needs a device with a MAC address.")
        target = Target(ip=ip or DEFAULT_TARGET_IP)
        return await self.run_plan(self.plan(parsed_action, target))

    async def wake(self, mac: str | None) -> str:
        if not mac or not mac.strip():
            raise MissingParameters("MAC Address is required")
        mac = mac.strip()
        sent = await asyncio.to_thread(self._wake_sender, mac)
        if not sent:
            raise CommandFailed("Failed to send Magic Packet", details=mac)
        record_safely(self.sink, f"Magic packet sent to {mac}")
        return f"Magic Packet sent to {mac}"

    async def probe(
        self, targets: Iterable[ProbeTarget] | None = None
    ) -> list[ProbeResult]:
        """Probe ``targets``, or every registered device when omitted."""
        if targets is None:
            targets = [
                ProbeTarget(id=device.id, ip=device.ip or DEFAULT_TARGET_IP)
                for device in self.registry.list_devices()
            ]
        return await probe(targets, self.probe_timeout, self._pinger)

    def schedule(
        self,
        device_id: int,
        action: Action | str | None,
        minutes: float | int | str | None,
    ) -> str:
        message = self.scheduler.schedule(device_id, action, minutes)
        record_safely(self.sink, message)
        return message

    def list_schedules(self) -> list[ScheduleEntry]:
        return self.scheduler.list_entries()

    def cancel_schedule(self, device_id: int) -> str:
        message = self.scheduler.cancel(device_id)
        record_safely(self.sink, message)
        return message

    def group_action(self, group: str, action: Action | str) -> str:
        message = self.fanout.run(group, action)
        record_safely(self.sink, message)
        return message

    async def aclose(self) -> None:
        self.scheduler.shutdown()
        await self.dispatcher.drain()
