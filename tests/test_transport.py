from __future__ import annotations

import asyncio

import pytest

from devhub.core import EndpointRegistry, LogStream, MockSoftwareEndpoint, TcpTransport
from devhub.exceptions import TransportError


async def _closed_port() -> int:
    server = MockSoftwareEndpoint(port=0)
    await server.start()
    port = server.port
    await server.stop()
    return port


def test_probe_and_connect_against_local_listener():
    async def scenario() -> tuple[float, int]:
        server = MockSoftwareEndpoint(port=0)
        await server.start()
        transport = TcpTransport(connect_timeout=2.0, probe_timeout=2.0)
        try:
            latency = await transport.probe("127.0.0.1", server.port)
            connection = await transport.connect("127.0.0.1", server.port)
            await asyncio.sleep(0.05)
            active = server.active_clients
            await connection.close()
            assert connection.closed
        finally:
            await server.stop()
        return latency, active

    latency, active = asyncio.run(scenario())

    assert latency >= 0
    assert active >= 1


def test_unreachable_port_raises_transport_error():
    async def scenario() -> None:
        port = await _closed_port()
        transport = TcpTransport(probe_timeout=1.0)
        await transport.probe("127.0.0.1", port)

    with pytest.raises(TransportError):
        asyncio.run(scenario())


def test_registry_over_tcp():
    async def scenario(stream: LogStream) -> tuple[bool, bool]:
        server = MockSoftwareEndpoint(port=0)
        await server.start()
        registry = EndpointRegistry(stream, TcpTransport(connect_timeout=2.0))
        endpoint = registry.add_endpoint("Mock", "127.0.0.1", server.port)
        try:
            connected = await registry.request_connect(endpoint.id)
            disconnected = await registry.request_disconnect(endpoint.id)
        finally:
            await server.stop()
        return connected.connected, disconnected.connected

    stream = LogStream()
    assert asyncio.run(scenario(stream)) == (True, False)
