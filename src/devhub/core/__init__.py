from __future__ import annotations

from .devices import DeviceRegistry
from .driver import DeviceDriver, MockDeviceDriver
from .endpoints import EndpointRegistry, validate_address
from .events import ChangeKind, Observable, RegistryEvent
from .manager import Manager, get_manager
from .mock_endpoint import MockSoftwareEndpoint, run_mock_endpoint
from .status import LogStream, MetricsSampler
from .transport import Connection, SoftwareTransport, TcpTransport

__all__ = [
    "ChangeKind",
    "Connection",
    "DeviceDriver",
    "DeviceRegistry",
    "EndpointRegistry",
    "LogStream",
    "Manager",
    "MetricsSampler",
    "MockDeviceDriver",
    "MockSoftwareEndpoint",
    "Observable",
    "RegistryEvent",
    "SoftwareTransport",
    "TcpTransport",
    "get_manager",
    "run_mock_endpoint",
    "validate_address",
]
