"""Tests for command execution and session setup."""

from __future__ import annotations

import asyncio
import sys

import pytest

from powerctl.core import CommandExecutor, CommandResult, SessionAuthenticator, resolve
from powerctl.errors import MissingBridgeTool, PermissionDenied, TargetUnreachable
from powerctl.models import Credentials, PlatformFamily, Target


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


def test_run_captures_output():
    executor = CommandExecutor(timeout=10)
    result = asyncio.run(executor.run(_python("print('hello')")))

    assert result.ok
    assert result.stdout.strip() == "hello"


def test_run_reports_missing_tool():
    executor = CommandExecutor(timeout=10)
    result = asyncio.run(executor.run(["powerctl-no-such-tool", "rpc"]))

    assert result.returncode == 127
    assert "command not found" in result.stderr


def test_run_kills_on_timeout():
    executor = CommandExecutor(timeout=0.2)
    result = asyncio.run(executor.run(_python("import time; time.sleep(5)")))

    assert not result.ok
    assert "timed out" in result.stderr


def test_execute_classifies_failure_and_masks_secret(make_executor):
    executor = make_executor(
        {
            "net rpc": CommandResult(
                returncode=1, stderr="Could not connect as admin%hunter2: Access is denied"
            )
        }
    )
    plan = resolve(
        "shutdown",
        Target("192.168.1.20", Credentials("admin", "hunter2")),
        PlatformFamily.POSIX,
    )

    with pytest.raises(PermissionDenied) as excinfo:
        asyncio.run(executor.execute(plan))

    assert "hunter2" not in (excinfo.value.details or "")


def test_execute_unreachable_from_real_process():
    executor = CommandExecutor(timeout=10)
    plan = resolve("shutdown", Target("192.168.1.20"), PlatformFamily.WINDOWS)
    failing = _python("import sys; sys.stderr.write('The network path was not found.'); sys.exit(53)")

    async def _run():
        result = await executor.run(failing)
        raise executor.failure(result, plan)

    with pytest.raises(TargetUnreachable):
        asyncio.run(_run())


def test_execute_missing_bridge_tool(monkeypatch):
    executor = CommandExecutor(timeout=10)
    plan = resolve(
        "restart",
        Target("192.168.1.20", Credentials("admin", "pw")),
        PlatformFamily.POSIX,
    )

    async def _missing(*_args, **_kwargs):
        raise FileNotFoundError(2, "No such file or directory", "net")

    monkeypatch.setattr(asyncio, "create_subprocess_exec", _missing)

    with pytest.raises(MissingBridgeTool):
        asyncio.run(executor.execute(plan))


def test_authenticator_runs_net_use(make_executor):
    executor = make_executor()
    plan = resolve(
        "shutdown",
        Target("192.168.1.20", Credentials("admin", "pw")),
        PlatformFamily.WINDOWS,
    )

    assert asyncio.run(SessionAuthenticator(executor).authenticate(plan)) is True
    assert executor.calls == [("net", "use", "\\\\192.168.1.20", "/user:admin", "pw")]


def test_authenticator_failure_is_soft(make_executor, caplog):
    executor = make_executor({"net use": CommandResult(returncode=2, stderr="System error 53")})
    plan = resolve(
        "shutdown",
        Target("192.168.1.20", Credentials("admin", "pw")),
        PlatformFamily.WINDOWS,
    )

    assert asyncio.run(SessionAuthenticator(executor).authenticate(plan)) is False
    assert "trying command anyway" in caplog.text


def test_authenticator_skips_plans_without_auth(make_executor):
    executor = make_executor()
    plan = resolve("shutdown", Target(), PlatformFamily.WINDOWS)

    assert asyncio.run(SessionAuthenticator(executor).authenticate(plan)) is False
    assert executor.calls == []


class _ExitedDuringKill:
    """Process that finishes on its own right as the timeout kill lands."""

    returncode = 0

    async def communicate(self):
        await asyncio.sleep(5)

    def kill(self):
        raise ProcessLookupError()

    async def wait(self):
        return 0


def test_run_timeout_tolerates_already_exited_process(monkeypatch):
    async def _spawn(*_args, **_kwargs):
        return _ExitedDuringKill()

    monkeypatch.setattr(asyncio, "create_subprocess_exec", _spawn)
    executor = CommandExecutor(timeout=0.1)

    result = asyncio.run(executor.run(["shutdown", "/a"]))

    assert result.returncode == -1
    assert "timed out" in result.stderr
