from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from devhub.models import Device, DeviceBackup, LogEntry, SoftwareEndpoint

DEVICES_FILE = "devices.toml"
ENDPOINTS_FILE = "endpoints.toml"
STATUS_FILE = "status.json"
BACKUP_DIR = "backups"


def _toml_string(value: str) -> str:
    return json.dumps(value)


def _render_devices_toml(devices: list[Device]) -> str:
    lines = [
        "# devhub device registry",
        "# Paired peripherals, keyed by the id reported by the device",
        "",
    ]

    for device in sorted(devices, key=lambda d: d.id):
        lines.append("[[devices]]")
        lines.append(f"id = {device.id}")
        lines.append(f"name = {_toml_string(device.name)}")
        lines.append(f"type = {_toml_string(device.type)}")
        lines.append(f"firmware_version = {_toml_string(device.firmware_version)}")
        if device.battery_percent is not None:
            lines.append(f"battery_percent = {device.battery_percent}")
        lines.append("")

    return "\n".join(lines)


def _render_endpoints_toml(endpoints: list[SoftwareEndpoint]) -> str:
    lines = [
        "# devhub software connections",
        "",
    ]

    for endpoint in sorted(endpoints, key=lambda e: e.id):
        lines.append("[[endpoints]]")
        lines.append(f"id = {endpoint.id}")
        lines.append(f"name = {_toml_string(endpoint.name)}")
        lines.append(f"host = {_toml_string(endpoint.host)}")
        lines.append(f"port = {endpoint.port}")
        lines.append("")

    return "\n".join(lines)


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle) or {}
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path.name}: {path}\n{exc}") from exc


class Database:
    """Files under the data directory that survive restarts.

    Unknown keys in stored records are ignored so files written by newer or
    older versions still load.
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self._devices_path = data_dir / DEVICES_FILE
        self._endpoints_path = data_dir / ENDPOINTS_FILE
        self._status_path = data_dir / STATUS_FILE
        self._backup_dir = data_dir / BACKUP_DIR

    @property
    def path(self) -> Path:
        return self._data_dir

    @property
    def devices_path(self) -> Path:
        return self._devices_path

    @property
    def endpoints_path(self) -> Path:
        return self._endpoints_path

    @property
    def status_path(self) -> Path:
        return self._status_path

    @property
    def backup_dir(self) -> Path:
        return self._backup_dir

    def ensure_dirs(self) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._backup_dir.mkdir(parents=True, exist_ok=True)

    def load_devices(self) -> list[Device]:
        if not self._devices_path.exists():
            return []

        data = _load_toml(self._devices_path)
        try:
            return [Device.model_validate(item) for item in data.get("devices", [])]
        except ValidationError as exc:
            raise ValueError(
                f"Invalid devices file: {self._devices_path}\n{exc}"
            ) from exc

    def save_devices(self, devices: list[Device]) -> None:
        self.ensure_dirs()
        self._devices_path.write_text(_render_devices_toml(devices))

    def load_endpoints(self) -> list[SoftwareEndpoint]:
        if not self._endpoints_path.exists():
            return []

        data = _load_toml(self._endpoints_path)
        try:
            return [
                SoftwareEndpoint.model_validate(item)
                for item in data.get("endpoints", [])
            ]
        except ValidationError as exc:
            raise ValueError(
                f"Invalid endpoints file: {self._endpoints_path}\n{exc}"
            ) from exc

    def save_endpoints(self, endpoints: list[SoftwareEndpoint]) -> None:
        self.ensure_dirs()
        self._endpoints_path.write_text(_render_endpoints_toml(endpoints))

    def save_log(self, entries: list[LogEntry]) -> None:
        self.ensure_dirs()
        with self._status_path.open("w") as handle:
            json.dump(
                [entry.model_dump(mode="json") for entry in entries], handle, indent=2
            )

    def load_log(self) -> list[LogEntry]:
        if not self._status_path.exists():
            return []

        with self._status_path.open("r") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(
                    f"Invalid status file: {self._status_path}\n{exc}"
                ) from exc

        return [LogEntry.model_validate(item) for item in data]

    def backup_path(self, device_id: int) -> Path:
        return self._backup_dir / f"device-{device_id}.json"

    def save_backup(self, backup: DeviceBackup) -> Path:
        self.ensure_dirs()
        path = self.backup_path(backup.device_id)
        with path.open("w") as handle:
            json.dump(backup.model_dump(mode="json"), handle, indent=2)
        return path

    def load_backup(self, device_id: int) -> DeviceBackup | None:
        path = self.backup_path(device_id)
        if not path.exists():
            return None

        with path.open("r") as handle:
            try:
                data = json.load(handle)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid backup file: {path}\n{exc}") from exc

        try:
            return DeviceBackup.model_validate(data)
        except ValidationError as exc:
            raise ValueError(f"Invalid backup file: {path}\n{exc}") from exc

    def init(self, force: bool = False) -> bool:
        """Create the data directory; returns False when it already existed."""
        existed = self._devices_path.exists() or self._endpoints_path.exists()
        self.ensure_dirs()
        if existed and not force:
            return False
        self.save_devices([])
        self.save_endpoints([])
        if force and self._status_path.exists():
            self._status_path.unlink()
        return True
