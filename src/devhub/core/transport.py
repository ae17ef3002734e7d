"""Boundary to locally running software (OBS, VMagicMirror, ...)."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Protocol

from devhub.exceptions import TransportError

logger = logging.getLogger(__name__)


class Connection(Protocol):
    async def close(self) -> None: ...


class SoftwareTransport(Protocol):
    async def connect(self, host: str, port: int) -> Connection: ...

    async def probe(self, host: str, port: int) -> float: ...


class TcpConnection:
    def __init__(self, host: str, port: int, writer: asyncio.StreamWriter) -> None:
        self.host = host
        self.port = port
        self._writer = writer

    @property
    def closed(self) -> bool:
        return self._writer.is_closing()

    async def close(self) -> None:
        if self._writer.is_closing():
            return
        logger.debug("Closing connection to %s:%d", self.host, self.port)
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as exc:
            raise TransportError(f"Error closing connection: {exc}") from exc


class TcpTransport:
    """Plain TCP sockets to software listening on the local network."""

    def __init__(self, connect_timeout: float = 5.0, probe_timeout: float = 2.0):
        self.connect_timeout = connect_timeout
        self.probe_timeout = probe_timeout

    async def _open(self, host: str, port: int, timeout: float) -> asyncio.StreamWriter:
        try:
            _reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout=timeout
            )
        except (asyncio.TimeoutError, TimeoutError) as exc:
            raise TransportError(f"Timed out connecting to {host}:{port}") from exc
        except OSError as exc:
            raise TransportError(f"Cannot reach {host}:{port}: {exc}") from exc
        return writer

    async def connect(self, host: str, port: int) -> TcpConnection:
        logger.debug("Opening connection to %s:%d", host, port)
        writer = await self._open(host, port, self.connect_timeout)
        return TcpConnection(host, port, writer)

    async def probe(self, host: str, port: int) -> float:
        """Return the TCP handshake time in seconds."""
        started = time.perf_counter()
        writer = await self._open(host, port, self.probe_timeout)
        latency = time.perf_counter() - started
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            logger.debug("Probe socket to %s:%d closed uncleanly", host, port)
        return latency
