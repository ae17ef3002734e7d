"""Boundary to the hardware device layer.

The real driver speaks to paired peripherals over whatever bus they use; the
registry only needs discovery and a handful of fire-and-forget commands.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from typing import Protocol

from devhub.exceptions import TransportError
from devhub.models import DeviceBackup, DeviceInfo

logger = logging.getLogger(__name__)


class DeviceDriver(Protocol):
    def discover(self) -> AsyncIterator[DeviceInfo]: ...

    async def calibrate(self, device_id: int) -> None: ...

    async def backup(self, device_id: int) -> DeviceBackup: ...

    async def restore(self, device_id: int, backup: DeviceBackup) -> None: ...


SAMPLE_DEVICES = [
    DeviceInfo(
        id=1,
        name="My Custom Controller Alpha",
        type="Gamepad",
        firmware_version="v1.2.3",
        battery_percent=92,
    ),
    DeviceInfo(
        id=2,
        name="Foot Pedal Pro",
        type="Pedal",
        firmware_version="v0.9.1",
        battery_percent=78,
    ),
    DeviceInfo(
        id=3, name="Stream Deck Mini", type="Keyboard", firmware_version="v2.5.0"
    ),
    DeviceInfo(
        id=4, name="Audio Mixer Lite", type="Mixer", firmware_version="v1.0.8"
    ),
    DeviceInfo(
        id=5,
        name="Super Controller Omega",
        type="Gamepad",
        firmware_version="v3.0.1",
        battery_percent=55,
    ),
]


class MockDeviceDriver:
    """In-process driver that reports a fixed set of devices.

    Used for development without hardware attached, and in tests. Setting
    ``fail_commands`` makes every outward command raise TransportError.
    """

    def __init__(
        self,
        devices: list[DeviceInfo] | None = None,
        delay: float = 0.0,
        fail_commands: bool = False,
    ) -> None:
        self.devices = list(SAMPLE_DEVICES if devices is None else devices)
        self.delay = delay
        self.fail_commands = fail_commands
        self.calibrated: list[int] = []
        self.restored: dict[int, DeviceBackup] = {}

    def _lookup(self, device_id: int) -> DeviceInfo:
        for device in self.devices:
            if device.id == device_id:
                return device
        raise TransportError(f"Device {device_id} is not attached")

    async def _command(self, device_id: int, action: str) -> DeviceInfo:
        await asyncio.sleep(self.delay)
        if self.fail_commands:
            raise TransportError(f"Device {device_id} did not respond to {action}")
        return self._lookup(device_id)

    async def discover(self) -> AsyncIterator[DeviceInfo]:
        for device in self.devices:
            await asyncio.sleep(self.delay)
            logger.debug("Mock driver reporting device %d (%s)", device.id, device.name)
            yield device

    async def calibrate(self, device_id: int) -> None:
        await self._command(device_id, "calibrate")
        self.calibrated.append(device_id)

    async def backup(self, device_id: int) -> DeviceBackup:
        info = await self._command(device_id, "backup")
        return DeviceBackup(
            device_id=info.id,
            device_type=info.type,
            firmware_version=info.firmware_version,
            created_at=datetime.now(timezone.utc).isoformat(),
            settings={"name": info.name},
        )

    async def restore(self, device_id: int, backup: DeviceBackup) -> None:
        await self._command(device_id, "restore")
        self.restored[device_id] = backup
