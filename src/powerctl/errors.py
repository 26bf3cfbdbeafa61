"""Error taxonomy shared by the resolver, executor, scheduler and fan-out."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_ACTION = "InvalidAction"
    MISSING_CREDENTIALS = "MissingCredentials"
    NOT_SUPPORTED = "NotSupported"
    PERMISSION_DENIED = "PermissionDenied"
    TARGET_UNREACHABLE = "TargetUnreachable"
    MISSING_BRIDGE_TOOL = "MissingBridgeTool"
    DEVICE_NOT_FOUND = "DeviceNotFound"
    GROUP_NOT_FOUND = "GroupNotFound"
    SCHEDULE_NOT_FOUND = "ScheduleNotFound"
    MISSING_PARAMETERS = "MissingParameters"
    GENERIC = "Generic"


class PowerCtlError(Exception):
    """Base error; ``kind`` tells callers which failure class occurred."""

    kind = ErrorKind.GENERIC
    default_message = "The command failed."

    def __init__(self, message: str | None = None, details: str | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class InvalidAction(PowerCtlError):
    kind = ErrorKind.INVALID_ACTION
    default_message = "Invalid action."


class MissingCredentials(PowerCtlError):
    kind = ErrorKind.MISSING_CREDENTIALS
    default_message = "Credentials (user/secret) are required to control this target."


class NotSupported(PowerCtlError):
    kind = ErrorKind.NOT_SUPPORTED
    default_message = "Action is not supported for this target."


class PermissionDenied(PowerCtlError):
    kind = ErrorKind.PERMISSION_DENIED
    default_message = "Access denied. Check credentials and permissions on the target."


class TargetUnreachable(PowerCtlError):
    kind = ErrorKind.TARGET_UNREACHABLE
    default_message = "Target not found on the network or offline."


class MissingBridgeTool(PowerCtlError):
    kind = ErrorKind.MISSING_BRIDGE_TOOL
    default_message = 'The "net" tool (Samba) is not installed on this host.'


class DeviceNotFound(PowerCtlError):
    kind = ErrorKind.DEVICE_NOT_FOUND
    default_message = "Device not found."


class GroupNotFound(PowerCtlError):
    kind = ErrorKind.GROUP_NOT_FOUND
    default_message = "Group not found or has no devices."


class ScheduleNotFound(PowerCtlError):
    kind = ErrorKind.SCHEDULE_NOT_FOUND
    default_message = "No scheduled action for this device."


class MissingParameters(PowerCtlError):
    kind = ErrorKind.MISSING_PARAMETERS
    default_message = "Missing or invalid parameters."


class CommandFailed(PowerCtlError):
    kind = ErrorKind.GENERIC


_ERRORS_BY_KIND: dict[ErrorKind, type[PowerCtlError]] = {
    cls.kind: cls
    for cls in (
        InvalidAction,
        MissingCredentials,
        NotSupported,
        PermissionDenied,
        TargetUnreachable,
        MissingBridgeTool,
        DeviceNotFound,
        GroupNotFound,
        ScheduleNotFound,
        MissingParameters,
        CommandFailed,
    )
}


def error_for_kind(
    kind: ErrorKind, message: str | None = None, details: str | None = None
) -> PowerCtlError:
    return _ERRORS_BY_KIND[kind](message, details)


__all__ = [
    "CommandFailed",
    "DeviceNotFound",
    "ErrorKind",
    "GroupNotFound",
    "InvalidAction",
    "MissingBridgeTool",
    "MissingCredentials",
    "MissingParameters",
    "NotSupported",
    "PermissionDenied",
    "PowerCtlError",
    "ScheduleNotFound",
    "TargetUnreachable",
    "error_for_kind",
]
