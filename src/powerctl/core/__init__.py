from __future__ import annotations

from .auth import SessionAuthenticator
from .classifier import DEFAULT_PATTERNS, ErrorPattern, build_patterns, classify
from .dispatcher import ActivitySink, BackgroundDispatcher
from .executor import CommandExecutor, CommandResult
from .fanout import GroupFanout
from .prober import ReachabilityTracker, ping, probe
from .resolver import is_local, parse_action, resolve
from .scheduler import Scheduler
from .wake import send_magic_packet

__all__ = [
    "DEFAULT_PATTERNS",
    "ActivitySink",
    "BackgroundDispatcher",
    "CommandExecutor",
    "CommandResult",
    "ErrorPattern",
    "GroupFanout",
    "ReachabilityTracker",
    "Scheduler",
    "SessionAuthenticator",
    "build_patterns",
    "classify",
    "is_local",
    "parse_action",
    "ping",
    "probe",
    "resolve",
    "send_magic_packet",
]
