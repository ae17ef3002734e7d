from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class DeviceType(str, Enum):
    GAMEPAD = "Gamepad"
    PEDAL = "Pedal"
    KEYBOARD = "Keyboard"
    MIXER = "Mixer"


class DeviceInfo(BaseModel):
    """What the device layer reports when a device is discovered."""

    model_config = {"frozen": True}

    id: int = Field(ge=0)
    name: str
    type: str
    firmware_version: str = ""
    battery_percent: int | None = Field(default=None, ge=0, le=100)


class Device(BaseModel):
    model_config = {"extra": "ignore", "validate_assignment": True}

    id: int = Field(ge=0)
    name: str
    type: str
    firmware_version: str = ""
    battery_percent: int | None = Field(default=None, ge=0, le=100)
    online: bool = False
    editing: bool = Field(default=False, exclude=True)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be empty")
        return value

    @property
    def known_type(self) -> DeviceType | None:
        try:
            return DeviceType(self.type)
        except ValueError:
            return None

    @property
    def mains_powered(self) -> bool:
        return self.battery_percent is None


class DeviceBackup(BaseModel):
    """Settings blob returned by a device backup command."""

    device_id: int
    device_type: str
    firmware_version: str
    created_at: str
    settings: dict[str, Any] = Field(default_factory=dict)
