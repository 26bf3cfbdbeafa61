from __future__ import annotations

import json
import tomllib
from pathlib import Path

from pydantic import ValidationError

from powerctl.models import Device, DeviceRegistry

DEVICES_FILE = "devices.toml"
ACTIVITY_FILE = "activity.log"


def _toml_string(value: str) -> str:
    return json.dumps(value)


def _render_devices_toml(registry: DeviceRegistry) -> str:
    lines = [
        "# powerctl device registry",
        "# Credentials are stored in plain text; keep this file private.",
        "",
    ]

    for device in sorted(registry.devices, key=lambda item: item.id):
        lines.append("[[devices]]")
        lines.append(f"id = {device.id}")
        lines.append(f"name = {_toml_string(device.name)}")
        lines.append(f"ip = {_toml_string(device.ip)}")
        lines.append(f"mac = {_toml_string(device.mac)}")
        lines.append(f"group = {_toml_string(device.group)}")
        lines.append(f"type = {_toml_string(device.type)}")
        if device.username:
            lines.append(f"username = {_toml_string(device.username)}")
        if device.secret:
            lines.append(f"secret = {_toml_string(device.secret)}")
        lines.append("")

    return "\n".join(lines)


class Database:
    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self._devices_path = data_dir / DEVICES_FILE
        self._activity_path = data_dir / ACTIVITY_FILE

    @property
    def path(self) -> Path:
        return self._data_dir

    @property
    def devices_path(self) -> Path:
        return self._devices_path

    @property
    def activity_path(self) -> Path:
        return self._activity_path

    def ensure_dirs(self) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)

    def load_devices(self) -> DeviceRegistry:
        if not self._devices_path.exists():
            return DeviceRegistry()

        try:
            with self._devices_path.open("rb") as handle:
                data = tomllib.load(handle) or {}
        except tomllib.TOMLDecodeError as exc:
            raise ValueError(
                f"Invalid TOML in devices file: {self._devices_path}\n{exc}"
            ) from exc

        try:
            return DeviceRegistry.model_validate({"devices": data.get("devices", [])})
        except ValidationError as exc:
            raise ValueError(
                f"Invalid devices file: {self._devices_path}\n{exc}"
            ) from exc

    def save_devices(self, registry: DeviceRegistry) -> None:
        self.ensure_dirs()
        self._devices_path.write_text(_render_devices_toml(registry))
        self._devices_path.chmod(0o600)

    def add_device(
        self,
        name: str,
        ip: str,
        mac: str = "",
        group: str = "",
        type: str = "desktop",
        username: str | None = None,
        secret: str | None = None,
    ) -> Device:
        registry = self.load_devices()
        device = Device(
            id=registry.next_id(),
            name=name,
            ip=ip,
            mac=mac,
            group=group,
            type=type,
            username=username,
            secret=secret,
        )
        registry.devices.append(device)
        self.save_devices(registry)
        return device

    def remove_device(self, device_id: int) -> bool:
        registry = self.load_devices()
        remaining = [device for device in registry.devices if device.id != device_id]
        if len(remaining) == len(registry.devices):
            return False
        self.save_devices(DeviceRegistry(devices=remaining))
        return True

    # Read side consumed by the engine.

    def list_devices(self) -> list[Device]:
        return list(self.load_devices().devices)

    def get_device(self, device_id: int) -> Device | None:
        return self.load_devices().get(device_id)

    def devices_in_group(self, group: str) -> list[Device]:
        return [device for device in self.load_devices().devices if device.group == group]

    def init(self) -> bool:
        self.ensure_dirs()
        if self._devices_path.exists():
            return False
        self.save_devices(DeviceRegistry())
        return True
