from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from asyncio import StreamReader, StreamWriter

logger = logging.getLogger(__name__)


@dataclass
class MockSoftwareEndpoint:
    """TCP listener standing in for OBS, VMagicMirror and the like."""

    name: str = "mock-software"
    host: str = "127.0.0.1"
    port: int = 4455

    connections: int = 0
    bytes_received: int = 0

    _server: asyncio.Server | None = field(default=None, repr=False)
    _clients: set["StreamWriter"] = field(default_factory=set, repr=False)

    async def start(self) -> None:
        self._server = await asyncio.start_server(
            self._handle_client, self.host, self.port
        )
        if self.port == 0:
            sockets = self._server.sockets
            if sockets:
                self.port = sockets[0].getsockname()[1]
        logger.info(
            "Mock software '%s' listening on %s:%d", self.name, self.host, self.port
        )

    async def stop(self) -> None:
        for writer in list(self._clients):
            writer.close()
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    @property
    def active_clients(self) -> int:
        return len(self._clients)

    async def _handle_client(
        self, reader: "StreamReader", writer: "StreamWriter"
    ) -> None:
        peer = writer.get_extra_info("peername")
        self.connections += 1
        self._clients.add(writer)
        logger.info("Client connected: %s", peer)
        try:
            while data := await reader.read(4096):
                self.bytes_received += len(data)
        except (ConnectionError, OSError) as exc:
            logger.debug("Client %s error: %s", peer, exc)
        finally:
            self._clients.discard(writer)
            writer.close()
            logger.info("Client disconnected: %s", peer)


async def run_mock_endpoint(
    name: str = "mock-software", host: str = "127.0.0.1", port: int = 4455
) -> None:
    endpoint = MockSoftwareEndpoint(name=name, host=host, port=port)
    await endpoint.start()
    try:
        await asyncio.Event().wait()
    finally:
        await endpoint.stop()
