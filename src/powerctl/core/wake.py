from __future__ import annotations

import logging
from typing import Protocol

from wakeonlan import send_magic_packet as _send_magic_packet

logger = logging.getLogger(__name__)


class MagicPacketSender(Protocol):
    def __call__(self, mac: str) -> bool: ...


def send_magic_packet(mac: str) -> bool:
    """Broadcast one wake-on-LAN frame for ``mac``."""
    try:
        _send_magic_packet(mac)
    except (ValueError, OSError) as exc:
        logger.error("WoL error for %s: %s", mac, exc)
        return False
    logger.debug("Magic packet sent to %s", mac)
    return True
