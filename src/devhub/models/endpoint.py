from __future__ import annotations

import ipaddress
import re
from enum import Enum

from pydantic import BaseModel, Field, field_validator

_HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")


def is_valid_host(host: str) -> bool:
    """Accept IPv4/IPv6 literals and RFC 1123 hostnames."""
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        pass
    if len(host) > 253:
        return False
    labels = host.rstrip(".").split(".")
    return all(_HOSTNAME_LABEL.match(label) for label in labels)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class EndpointAddress(BaseModel):
    model_config = {"frozen": True}

    host: str
    port: int = Field(ge=1, le=65535)

    @field_validator("host")
    @classmethod
    def _check_host(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("host must not be empty")
        if not is_valid_host(value):
            raise ValueError(f"'{value}' is not a hostname or IP address")
        return value

    @field_validator("port", mode="before")
    @classmethod
    def _parse_port(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            if not value.isdigit():
                raise ValueError(f"port must be a number, got '{value}'")
            return int(value)
        return value

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


class SoftwareEndpoint(EndpointAddress):
    model_config = {"frozen": False, "extra": "ignore", "validate_assignment": True}

    id: int = Field(ge=1)
    name: str
    state: ConnectionState = Field(default=ConnectionState.DISCONNECTED, exclude=True)
    last_error: str | None = Field(default=None, exclude=True)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be empty")
        return value

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    @property
    def pending(self) -> bool:
        return self.state is ConnectionState.CONNECTING

    @property
    def address(self) -> str:
        return str(EndpointAddress(host=self.host, port=self.port))


class ProbeResult(BaseModel):
    model_config = {"frozen": True}

    host: str
    port: int
    reachable: bool
    latency_ms: float | None = None
    error: str | None = None
