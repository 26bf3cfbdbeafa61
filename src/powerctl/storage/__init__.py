from __future__ import annotations

from .activity import ActivityLog
from .database import Database

__all__ = ["ActivityLog", "Database"]
