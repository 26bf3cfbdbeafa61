"""Turn a power action into the command that performs it.

Managed targets are Windows machines. A Windows host reaches them with the
native ``shutdown /m``; any other host goes through Samba's ``net rpc``,
which needs stored credentials. ``resolve`` never touches the system.
"""

from __future__ import annotations

import ipaddress

from powerctl.errors import InvalidAction, MissingCredentials, MissingParameters, NotSupported
from powerctl.models import (
    Action,
    CommandPlan,
    Credentials,
    PlatformFamily,
    ResolutionPath,
    Target,
)

GRACE_SECONDS = 10
COMMAND_TAG = "RemotePC-Controller"

POWER_ACTIONS = (Action.SHUTDOWN, Action.RESTART, Action.ABORT)

_WINDOWS_FLAGS = {Action.SHUTDOWN: "/s", Action.RESTART: "/r"}
_POSIX_FLAGS = {Action.SHUTDOWN: "-h", Action.RESTART: "-r"}


def parse_action(value: str | Action | None) -> Action:
    if isinstance(value, Action):
        return value
    if value is None or not value.strip():
        raise MissingParameters("Action is required.")
    try:
        return Action(value.strip().lower())
    except ValueError:
        raise InvalidAction(details=value) from None


def is_local(ip: str) -> bool:
    host = ip.strip().lower()
    if host == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def _local_argv(action: Action, platform: PlatformFamily) -> tuple[str, ...]:
    if platform is PlatformFamily.WINDOWS:
        if action is Action.ABORT:
            return ("shutdown", "/a")
        return (
            "shutdown",
            _WINDOWS_FLAGS[action],
            "/f",
            "/t",
            str(GRACE_SECONDS),
            "/c",
            COMMAND_TAG,
        )
    if action is Action.ABORT:
        return ("shutdown", "-c")
    # shutdown(8) counts in whole minutes.
    grace_minutes = -(-GRACE_SECONDS // 60)
    return ("shutdown", _POSIX_FLAGS[action], f"+{grace_minutes}", COMMAND_TAG)


def _native_remote_argv(action: Action, ip: str) -> tuple[str, ...]:
    unc = f"\\\\{ip}"
    if action is Action.ABORT:
        return ("shutdown", "/m", unc, "/a")
    return (
        "shutdown",
        "/m",
        unc,
        _WINDOWS_FLAGS[action],
        "/f",
        "/t",
        str(GRACE_SECONDS),
        "/c",
        COMMAND_TAG,
    )


def _bridged_argv(action: Action, ip: str, credentials: Credentials) -> tuple[str, ...]:
    argv = ["net", "rpc", "shutdown"]
    if action is Action.RESTART:
        argv.append("-r")
    argv += [
        "-f",
        "-I",
        ip,
        "-U",
        f"{credentials.username}%{credentials.secret}",
        "-t",
        str(GRACE_SECONDS),
        "-C",
        COMMAND_TAG,
    ]
    return tuple(argv)


def session_argv(target: Target) -> tuple[str, ...] | None:
    """``net use`` call that opens an SMB session to the target."""
    if target.credentials is None:
        return None
    return (
        "net",
        "use",
        f"\\\\{target.ip}",
        f"/user:{target.credentials.username}",
        target.credentials.secret,
    )


def resolve(
    action: Action | str, target: Target, platform: PlatformFamily
) -> CommandPlan:
    action = parse_action(action)
    if action not in POWER_ACTIONS:
        raise InvalidAction(f"Action '{action.value}' has no power command.")

    if is_local(target.ip):
        return CommandPlan(
            action=action,
            path=ResolutionPath.LOCAL,
            target=target,
            argv=_local_argv(action, platform),
        )

    if platform is PlatformFamily.WINDOWS:
        auth_argv = session_argv(target)
        return CommandPlan(
            action=action,
            path=ResolutionPath.NATIVE_REMOTE,
            target=target,
            argv=_native_remote_argv(action, target.ip),
            requires_auth=auth_argv is not None,
            auth_argv=auth_argv,
        )

    if action is Action.ABORT:
        raise NotSupported(
            "Abort is not available when controlling a remote Windows target "
            "through Samba."
        )
    if target.credentials is None:
        raise MissingCredentials()
    return CommandPlan(
        action=action,
        path=ResolutionPath.BRIDGED_REMOTE,
        target=target,
        argv=_bridged_argv(action, target.ip, target.credentials),
    )
