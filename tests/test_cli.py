from __future__ import annotations

import pytest
from typer.testing import CliRunner

import powerctl.services as services_module
from powerctl import __version__
from powerctl.cli import app
from powerctl.config import DatabaseConfig, ExecutionConfig, Settings, get_settings, write_settings
from powerctl.core import CommandResult
from powerctl.storage import Database

runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    data_dir = tmp_path / "data"
    config_path = tmp_path / "config.toml"
    write_settings(
        Settings(
            database=DatabaseConfig(path=str(data_dir)),
            execution=ExecutionConfig(platform="posix"),
        ),
        config_path,
    )
    monkeypatch.setenv("POWERCTL_CONFIG", str(config_path))
    get_settings.cache_clear()
    return data_dir


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"powerctl version {__version__}" in result.stdout


def test_devices_add_and_list(data_dir):
    result = runner.invoke(
        app, ["devices", "add", "office-pc", "192.168.1.20", "--group", "office"]
    )
    assert result.exit_code == 0

    result = runner.invoke(app, ["devices", "list"])
    assert result.exit_code == 0
    assert "office-pc" in result.stdout
    assert "office" in result.stdout


def test_power_reports_classified_error(data_dir, monkeypatch):
    Database(data_dir).add_device("office-pc", "192.168.1.20", username="admin", secret="pw")

    async def _denied(self, argv):
        return CommandResult(returncode=5, stderr="Access is denied.")

    monkeypatch.setattr(services_module.CommandExecutor, "run", _denied)

    result = runner.invoke(app, ["power", "shutdown", "--device", "1"])
    assert result.exit_code == 1
    assert "PermissionDenied" in result.output


def test_power_local_success(data_dir, monkeypatch):
    calls = []

    async def _ok(self, argv):
        calls.append(tuple(argv))
        return CommandResult(returncode=0)

    monkeypatch.setattr(services_module.CommandExecutor, "run", _ok)

    result = runner.invoke(app, ["power", "restart"])
    assert result.exit_code == 0
    assert "Command sent successfully to 127.0.0.1" in result.stdout
    assert calls == [("shutdown", "-r", "+1", "RemotePC-Controller")]


def test_group_unknown(data_dir):
    result = runner.invoke(app, ["group", "NoSuchGroup", "shutdown"])
    assert result.exit_code == 1
    assert "GroupNotFound" in result.output


def test_schedule_unknown_device(data_dir):
    result = runner.invoke(app, ["schedule", "7", "shutdown", "5"])
    assert result.exit_code == 1
    assert "DeviceNotFound" in result.output


def test_serve_session_schedules_lists_and_cancels(data_dir):
    db = Database(data_dir)
    db.add_device("office-pc", "192.168.1.20", username="admin", secret="pw")
    db.add_device("reception", "192.168.1.21")
    requests = "\n".join(
        [
            "schedule 1 restart 10",
            "schedule 2 shutdown 5",
            "schedule 1 shutdown 30",
            "list",
            "cancel 2",
            "cancel 2",
            "schedule x shutdown 5",
            "hibernate",
            "quit",
        ]
    )

    result = runner.invoke(app, ["serve"], input=requests + "\n")

    assert result.exit_code == 0
    assert "Restart scheduled for office-pc in 10 minute(s)" in result.output
    assert "Shutdown scheduled for office-pc in 30 minute(s)" in result.output
    assert "Scheduled shutdown for reception cancelled" in result.output
    assert "ScheduleNotFound" in result.output
    assert "Device ids are numbers" in result.output
    assert "cancel DEVICE_ID" in result.output
    # The second request for office-pc replaced the first.
    assert "Dropped 1 pending action(s)." in result.output


def test_serve_ends_on_end_of_input(data_dir):
    result = runner.invoke(app, ["serve"], input="list\n")

    assert result.exit_code == 0
    assert "No pending actions." in result.output
