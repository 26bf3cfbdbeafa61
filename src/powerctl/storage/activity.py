"""Append-only activity log (one JSON object per line)."""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


class ActivityLog:
    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    def record(self, event: str) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "event": event,
        }
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a") as handle:
                handle.write(json.dumps(entry) + "\n")

    def tail(self, limit: int = 20) -> list[dict[str, str]]:
        """Last ``limit`` readable entries; damaged lines are skipped."""
        if not self.path.exists():
            return []
        with self.path.open("r") as handle:
            lines = [line for line in handle.read().splitlines() if line.strip()]

        entries: list[dict[str, str]] = []
        for line in lines[-limit:]:
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Skipping unreadable activity entry in %s: %r", self.path, line)
                continue
            if isinstance(entry, dict):
                entries.append(entry)
        return entries
