from __future__ import annotations

import logging

from devhub.core.driver import DeviceDriver
from devhub.core.events import ChangeKind, Observable, RegistryEvent
from devhub.core.status import LogStream
from devhub.exceptions import (
    InvalidNameError,
    InvalidStateError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from devhub.models import Device, DeviceBackup, DeviceInfo

logger = logging.getLogger(__name__)

DEFAULT_LOW_BATTERY = 20


class DeviceRegistry(Observable[RegistryEvent]):
    """Owns the known devices, the current selection and the rename state.

    Devices are kept in registration order. Only one device can be in
    editing mode; that is tracked by ``editing_id`` rather than per device.
    Callers receive copies, so state changes only through these methods.
    """

    def __init__(
        self,
        stream: LogStream,
        driver: DeviceDriver | None = None,
        low_battery_threshold: int = DEFAULT_LOW_BATTERY,
    ) -> None:
        super().__init__()
        self._stream = stream
        self._driver = driver
        self._devices: dict[int, Device] = {}
        self._selected_id: int | None = None
        self._editing_id: int | None = None
        self.low_battery_threshold = low_battery_threshold

    def _get(self, device_id: int) -> Device:
        try:
            return self._devices[device_id]
        except KeyError:
            raise NotFoundError("Device", device_id) from None

    def _snapshot(self, device: Device) -> Device:
        return device.model_copy(update={"editing": device.id == self._editing_id})

    def _changed(self, kind: ChangeKind, device_id: int | None) -> None:
        self._notify(RegistryEvent(kind, device_id))

    # Queries

    def list_devices(self) -> list[Device]:
        return [self._snapshot(device) for device in self._devices.values()]

    def get_device(self, device_id: int) -> Device:
        return self._snapshot(self._get(device_id))

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices

    def __len__(self) -> int:
        return len(self._devices)

    @property
    def editing_id(self) -> int | None:
        return self._editing_id

    @property
    def selected_device(self) -> Device | None:
        if self._selected_id is None:
            return None
        device = self._devices.get(self._selected_id)
        return self._snapshot(device) if device else None

    # UI actions

    def select_device(self, device_id: int) -> Device | None:
        """Make ``device_id`` the viewed device; unknown ids clear the selection."""
        device = self._devices.get(device_id)
        self._selected_id = device.id if device else None
        self._changed(ChangeKind.SELECTED, self._selected_id)
        return self._snapshot(device) if device else None

    def begin_rename(self, device_id: int) -> Device:
        device = self._get(device_id)
        self._editing_id = device_id
        self._stream.info(f"Renaming device '{device.name}'")
        self._changed(ChangeKind.UPDATED, device_id)
        return self._snapshot(device)

    def commit_rename(self, device_id: int, new_name: str) -> Device:
        device = self._get(device_id)
        name = new_name.strip()
        if not name:
            raise InvalidNameError("Device name must not be empty")
        if self._editing_id != device_id:
            raise InvalidStateError(f"Device {device_id} is not being renamed")

        old_name = device.name
        device.name = name
        self._editing_id = None
        if old_name != name:
            self._stream.info(f"Device renamed: '{old_name}' -> '{name}'")
        else:
            self._stream.info(f"Device name unchanged: '{name}'")
        logger.debug("Device %d renamed to %r", device_id, name)
        self._changed(ChangeKind.UPDATED, device_id)
        return self._snapshot(device)

    def cancel_rename(self, device_id: int) -> Device:
        device = self._get(device_id)
        if self._editing_id == device_id:
            self._editing_id = None
            self._stream.info(f"Rename of '{device.name}' cancelled")
            self._changed(ChangeKind.UPDATED, device_id)
        return self._snapshot(device)

    def rename(self, device_id: int, new_name: str) -> Device:
        """Begin and commit a rename in one step."""
        self.begin_rename(device_id)
        try:
            return self.commit_rename(device_id, new_name)
        except InvalidNameError:
            self.cancel_rename(device_id)
            raise

    def unregister_device(self, device_id: int) -> None:
        device = self._get(device_id)
        del self._devices[device_id]
        if self._selected_id == device_id:
            self._selected_id = None
        if self._editing_id == device_id:
            self._editing_id = None
        self._stream.info(f"Device unregistered: '{device.name}'")
        self._changed(ChangeKind.REMOVED, device_id)

    # Device-layer events

    def load(self, devices: list[Device]) -> None:
        """Replace the registry contents with persisted devices, all offline."""
        self._devices = {
            device.id: device.model_copy(update={"online": False, "editing": False})
            for device in devices
        }
        self._selected_id = None
        self._editing_id = None

    def device_discovered(self, info: DeviceInfo) -> Device:
        existing = self._devices.get(info.id)
        if existing is None:
            if not info.name.strip():
                raise InvalidNameError(f"Device {info.id} reported an empty name")
            device = Device(
                id=info.id,
                name=info.name,
                type=info.type,
                firmware_version=info.firmware_version,
                battery_percent=info.battery_percent,
                online=True,
            )
            self._devices[device.id] = device
            self._stream.success(f"Device '{device.name}' connected")
            self._changed(ChangeKind.ADDED, device.id)
            return self._snapshot(device)

        # the stored name and type win; the hardware reports live values
        existing.firmware_version = info.firmware_version
        existing.battery_percent = info.battery_percent
        if not existing.online:
            existing.online = True
            self._stream.success(f"Device '{existing.name}' connected")
        self._changed(ChangeKind.UPDATED, existing.id)
        return self._snapshot(existing)

    def device_removed(self, device_id: int) -> None:
        device = self._devices.get(device_id)
        if device is None or not device.online:
            return
        device.online = False
        self._stream.warn(f"Device '{device.name}' disconnected")
        self._changed(ChangeKind.UPDATED, device_id)

    def battery_updated(self, device_id: int, percent: int | None) -> Device:
        device = self._get(device_id)
        if percent is not None and not 0 <= percent <= 100:
            raise ValidationError(f"Battery level {percent} is outside 0-100")

        previous = device.battery_percent
        device.battery_percent = percent
        crossed = previous is None or previous > self.low_battery_threshold
        if percent is not None and percent <= self.low_battery_threshold and crossed:
            self._stream.warn(f"Device '{device.name}' battery is low ({percent}%)")
        self._changed(ChangeKind.UPDATED, device_id)
        return self._snapshot(device)

    def firmware_updated(self, device_id: int, version: str) -> Device:
        device = self._get(device_id)
        if device.firmware_version != version:
            old = device.firmware_version
            device.firmware_version = version
            self._stream.info(
                f"Device '{device.name}' firmware updated: {old or '?'} -> {version}"
            )
            self._changed(ChangeKind.UPDATED, device_id)
        return self._snapshot(device)

    async def discover(self) -> list[Device]:
        """Pull every device the driver currently reports into the registry."""
        driver = self._require_driver()
        found: list[Device] = []
        try:
            async for info in driver.discover():
                try:
                    found.append(self.device_discovered(info))
                except ValidationError as exc:
                    self._stream.error(f"Skipping device {info.id}: {exc}")
        except TransportError as exc:
            self._stream.error(f"Device discovery failed: {exc}")
            raise
        return found

    async def refresh(self) -> None:
        """Update presence and live values of already paired devices."""
        driver = self._require_driver()
        seen: set[int] = set()
        try:
            async for info in driver.discover():
                if info.id in self._devices:
                    seen.add(info.id)
                    self.device_discovered(info)
        except TransportError as exc:
            self._stream.error(f"Device refresh failed: {exc}")
            raise
        for device_id in list(self._devices):
            if device_id not in seen:
                self.device_removed(device_id)

    # Outward commands

    def _require_driver(self) -> DeviceDriver:
        if self._driver is None:
            raise InvalidStateError("No device driver is attached")
        return self._driver

    def _command_target(self, device_id: int) -> tuple[DeviceDriver, Device]:
        device = self._get(device_id)
        driver = self._require_driver()
        if not device.online:
            raise InvalidStateError(f"Device '{device.name}' is offline")
        return driver, device

    async def calibrate(self, device_id: int) -> None:
        driver, device = self._command_target(device_id)
        try:
            await driver.calibrate(device_id)
        except TransportError as exc:
            self._stream.error(f"Calibration of '{device.name}' failed: {exc}")
            raise
        self._stream.success(f"Device '{device.name}' calibrated")

    async def backup(self, device_id: int) -> DeviceBackup:
        driver, device = self._command_target(device_id)
        try:
            backup = await driver.backup(device_id)
        except TransportError as exc:
            self._stream.error(f"Backup of '{device.name}' failed: {exc}")
            raise
        self._stream.success(f"Settings of '{device.name}' backed up")
        return backup

    async def restore(self, device_id: int, backup: DeviceBackup) -> None:
        driver, device = self._command_target(device_id)
        if backup.device_type != device.type:
            raise ValidationError(
                f"Backup is for a {backup.device_type}, not a {device.type}"
            )
        try:
            await driver.restore(device_id, backup)
        except TransportError as exc:
            self._stream.error(f"Restore of '{device.name}' failed: {exc}")
            raise
        self._stream.success(f"Settings of '{device.name}' restored")
