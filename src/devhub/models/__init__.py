"""Data models for devhub."""

from devhub.models.device import Device, DeviceBackup, DeviceInfo, DeviceType
from devhub.models.endpoint import (
    ConnectionState,
    EndpointAddress,
    ProbeResult,
    SoftwareEndpoint,
    is_valid_host,
)
from devhub.models.status import LogEntry, LogLevel, MetricsSnapshot

__all__ = [
    "ConnectionState",
    "Device",
    "DeviceBackup",
    "DeviceInfo",
    "DeviceType",
    "EndpointAddress",
    "LogEntry",
    "LogLevel",
    "MetricsSnapshot",
    "ProbeResult",
    "SoftwareEndpoint",
    "is_valid_host",
]
