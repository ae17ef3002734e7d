from __future__ import annotations

import asyncio

import pytest

from devhub.config import get_settings
from devhub.core import (
    DeviceRegistry,
    EndpointRegistry,
    LogStream,
    MockDeviceDriver,
    get_manager,
)
from devhub.exceptions import TransportError


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("DEVHUB_CONFIG", raising=False)
    get_settings.cache_clear()
    get_manager.cache_clear()
    yield
    get_settings.cache_clear()
    get_manager.cache_clear()


class FakeConnection:
    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = port
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class FakeTransport:
    """Transport double; set ``fail`` to make every call unreachable and
    ``gate`` to hold connects open until the event is set."""

    def __init__(self) -> None:
        self.fail = False
        self.gate: asyncio.Event | None = None
        self.latency = 0.004
        self.connect_calls = 0
        self.connections: list[FakeConnection] = []

    async def connect(self, host: str, port: int) -> FakeConnection:
        self.connect_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise TransportError(f"Connection refused by {host}:{port}")
        connection = FakeConnection(host, port)
        self.connections.append(connection)
        return connection

    async def probe(self, host: str, port: int) -> float:
        if self.fail:
            raise TransportError(f"No route to {host}:{port}")
        return self.latency


@pytest.fixture
def stream() -> LogStream:
    return LogStream(capacity=50)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def endpoints(stream: LogStream, transport: FakeTransport) -> EndpointRegistry:
    return EndpointRegistry(stream, transport)


@pytest.fixture
def driver() -> MockDeviceDriver:
    return MockDeviceDriver()


@pytest.fixture
def devices(stream: LogStream, driver: MockDeviceDriver) -> DeviceRegistry:
    registry = DeviceRegistry(stream, driver=driver)
    asyncio.run(registry.discover())
    stream.clear()
    return registry
