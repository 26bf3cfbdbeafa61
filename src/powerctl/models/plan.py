"""Command plan models."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum

from powerctl.utils.redaction import Redactor

from .device import Credentials, Device

DEFAULT_TARGET_IP = "127.0.0.1"


class Action(str, Enum):
    SHUTDOWN = "shutdown"
    RESTART = "restart"
    ABORT = "abort"
    WAKE = "wake"


class PlatformFamily(str, Enum):
    WINDOWS = "windows"
    POSIX = "posix"

    @classmethod
    def detect(cls) -> PlatformFamily:
        return cls.WINDOWS if sys.platform == "win32" else cls.POSIX


class ResolutionPath(str, Enum):
    LOCAL = "local"
    NATIVE_REMOTE = "native_remote"
    BRIDGED_REMOTE = "bridged_remote"


@dataclass(frozen=True)
class Target:
    """Resolver input: where to send the command and how to log in."""

    ip: str = DEFAULT_TARGET_IP
    credentials: Credentials | None = None

    @classmethod
    def from_device(cls, device: Device) -> Target:
        return cls(ip=device.ip or DEFAULT_TARGET_IP, credentials=device.credentials)


@dataclass(frozen=True)
class CommandPlan:
    action: Action
    path: ResolutionPath
    target: Target
    argv: tuple[str, ...]
    requires_auth: bool = False
    auth_argv: tuple[str, ...] | None = None

    def display(self) -> str:
        """Command line with the secret masked, safe for logs."""
        secret = self.target.credentials.secret if self.target.credentials else None
        return Redactor().redact_secret(" ".join(self.argv), secret)
