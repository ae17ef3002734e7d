"""devhub - peripheral device manager with software connections and a live status feed."""

from __future__ import annotations

from importlib.metadata import version

from .config import Settings, get_settings
from .core import DeviceRegistry, EndpointRegistry, LogStream, Manager, get_manager
from .exceptions import (
    DevhubError,
    InvalidNameError,
    InvalidStateError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from .models import Device, LogEntry, LogLevel, SoftwareEndpoint
from .storage import Database

__all__ = [
    "Database",
    "DevhubError",
    "Device",
    "DeviceRegistry",
    "EndpointRegistry",
    "InvalidNameError",
    "InvalidStateError",
    "LogEntry",
    "LogLevel",
    "LogStream",
    "Manager",
    "NotFoundError",
    "Settings",
    "SoftwareEndpoint",
    "TransportError",
    "ValidationError",
    "__version__",
    "get_manager",
    "get_settings",
]

__version__ = version("devhub")
