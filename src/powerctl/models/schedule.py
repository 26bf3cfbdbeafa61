"""Scheduler and reachability models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel

from .plan import Action


class ScheduleEntry(BaseModel):
    """Pending scheduled action, as reported to callers."""

    device_id: int
    action: Action
    name: str
    expires_at: datetime


class ProbeTarget(BaseModel):
    id: int
    ip: str


class ProbeResult(BaseModel):
    id: int
    is_online: bool


@dataclass
class ReachabilityRecord:
    id: int
    is_online: bool
    was_online: bool | None = None


@dataclass(frozen=True)
class Transition:
    id: int
    is_online: bool
    was_online: bool
