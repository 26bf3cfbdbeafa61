"""powerctl - shut down, restart and wake the machines on your network."""

from __future__ import annotations

from importlib.metadata import version

from .config import DatabaseConfig, ExecutionConfig, ProbingConfig, Settings, get_settings
from .errors import ErrorKind, PowerCtlError
from .models import Action, CommandPlan, Device, DeviceRegistry, PlatformFamily, Target
from .services import PowerController
from .storage import ActivityLog, Database

__all__ = [
    "Action",
    "ActivityLog",
    "CommandPlan",
    "Database",
    "DatabaseConfig",
    "Device",
    "DeviceRegistry",
    "ErrorKind",
    "ExecutionConfig",
    "PlatformFamily",
    "PowerController",
    "PowerCtlError",
    "ProbingConfig",
    "Settings",
    "Target",
    "__version__",
    "get_settings",
]

__version__ = version("powerctl")
