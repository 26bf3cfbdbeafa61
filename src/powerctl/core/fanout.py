from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from powerctl.errors import GroupNotFound
from powerctl.models import Action, Device

from .dispatcher import BackgroundDispatcher
from .resolver import parse_action
from .scheduler import DeviceRunner
from .wake import MagicPacketSender, send_magic_packet

logger = logging.getLogger(__name__)


class GroupLookup(Protocol):
    def devices_in_group(self, group: str) -> list[Device]: ...


class GroupFanout:
    """Apply one action to every device of a group, independently."""

    def __init__(
        self,
        registry: GroupLookup,
        runner: DeviceRunner,
        dispatcher: BackgroundDispatcher,
        wake_sender: MagicPacketSender = send_magic_packet,
    ) -> None:
        self._registry = registry
        self._runner = runner
        self._dispatcher = dispatcher
        self._wake_sender = wake_sender

    def run(self, group: str, action: Action | str) -> str:
        parsed_action = parse_action(action)
        members = self._registry.devices_in_group(group)
        if not members:
            raise GroupNotFound(details=group)

        skipped: list[str] = []
        for device in members:
            if parsed_action is Action.WAKE:
                if not device.mac:
                    logger.info("Skipping wake for %s: no MAC address", device.name)
                    skipped.append(device.name)
                    continue
                self._dispatcher.submit(
                    f"Group wake for {device.name}", self._wake(device)
                )
            else:
                self._dispatcher.submit(
                    f"Group {parsed_action.value} for {device.name}",
                    self._runner(device, parsed_action),
                )

        dispatched = len(members) - len(skipped)
        logger.info(
            "Group '%s': %s dispatched to %d device(s)",
            group,
            parsed_action.value,
            dispatched,
        )
        message = f"Command '{parsed_action.value}' sent to {dispatched} device(s) in group '{group}'"
        if skipped:
            message += f" (skipped, no MAC address: {', '.join(skipped)})"
        return message

    async def _wake(self, device: Device) -> str:
        sent = await asyncio.to_thread(self._wake_sender, device.mac)
        if not sent:
            # Individual send failures are not fatal for the group.
            return f"magic packet to {device.mac} could not be sent"
        return f"Magic packet sent to {device.mac}"
