"""Data models for powerctl."""

from powerctl.models.device import Credentials, Device, DeviceRegistry
from powerctl.models.plan import (
    DEFAULT_TARGET_IP,
    Action,
    CommandPlan,
    PlatformFamily,
    ResolutionPath,
    Target,
)
from powerctl.models.schedule import (
    ProbeResult,
    ProbeTarget,
    ReachabilityRecord,
    ScheduleEntry,
    Transition,
)

__all__ = [
    "DEFAULT_TARGET_IP",
    "Action",
    "CommandPlan",
    "Credentials",
    "Device",
    "DeviceRegistry",
    "PlatformFamily",
    "ProbeResult",
    "ProbeTarget",
    "ReachabilityRecord",
    "ResolutionPath",
    "ScheduleEntry",
    "Target",
    "Transition",
]
