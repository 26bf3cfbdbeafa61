"""Device models."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class Credentials:
    """Remote login for a target."""

    username: str
    secret: str = field(repr=False)


class Device(BaseModel):
    """Managed device (from the registry)."""

    model_config = {"frozen": True}

    id: int
    name: str
    ip: str = ""
    mac: str = ""
    group: str = ""
    type: str = "desktop"
    username: str | None = None
    secret: str | None = Field(default=None, repr=False)

    @property
    def credentials(self) -> Credentials | None:
        if self.username and self.secret:
            return Credentials(self.username, self.secret)
        return None


class DeviceRegistry(BaseModel):
    """Complete device registry."""

    devices: list[Device] = []

    def get(self, device_id: int) -> Device | None:
        for device in self.devices:
            if device.id == device_id:
                return device
        return None

    def next_id(self) -> int:
        return max((device.id for device in self.devices), default=0) + 1
