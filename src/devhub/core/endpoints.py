from __future__ import annotations

import asyncio
import itertools
import logging

from pydantic import ValidationError as PydanticValidationError

from devhub.core.events import ChangeKind, Observable, RegistryEvent
from devhub.core.status import LogStream
from devhub.core.transport import Connection, SoftwareTransport
from devhub.exceptions import (
    InvalidNameError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from devhub.models import (
    ConnectionState,
    EndpointAddress,
    ProbeResult,
    SoftwareEndpoint,
)

logger = logging.getLogger(__name__)


def _first_error(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    error = errors[0]
    field = ".".join(str(part) for part in error["loc"])
    message = error["msg"].removeprefix("Value error, ")
    return f"{field}: {message}" if field else message


def validate_address(host: str, port: int | str) -> EndpointAddress:
    try:
        return EndpointAddress(host=host, port=port)  # type: ignore[arg-type]
    except PydanticValidationError as exc:
        raise ValidationError(_first_error(exc)) from None


class EndpointRegistry(Observable[RegistryEvent]):
    """Owns configured software endpoints and their connection status.

    Connects and disconnects are requests: each one takes a sequence number
    and a connect that resolves after a newer request for the same endpoint
    is discarded. The transport connection of a discarded connect is closed.
    """

    def __init__(self, stream: LogStream, transport: SoftwareTransport) -> None:
        super().__init__()
        self._stream = stream
        self._transport = transport
        self._endpoints: dict[int, SoftwareEndpoint] = {}
        self._next_id = 1
        self._sequence = itertools.count(1)
        self._latest: dict[int, int] = {}
        self._connections: dict[int, Connection] = {}
        self._connecting: dict[int, asyncio.Task[SoftwareEndpoint]] = {}

    def _get(self, endpoint_id: int) -> SoftwareEndpoint:
        try:
            return self._endpoints[endpoint_id]
        except KeyError:
            raise NotFoundError("Endpoint", endpoint_id) from None

    def _changed(self, kind: ChangeKind, endpoint_id: int) -> None:
        self._notify(RegistryEvent(kind, endpoint_id))

    def _new_request(self, endpoint_id: int) -> int:
        seq = next(self._sequence)
        self._latest[endpoint_id] = seq
        return seq

    def _is_current(self, endpoint_id: int, seq: int) -> bool:
        return endpoint_id in self._endpoints and self._latest.get(endpoint_id) == seq

    def _current_view(self, endpoint: SoftwareEndpoint) -> SoftwareEndpoint:
        stored = self._endpoints.get(endpoint.id)
        if stored is None:
            return endpoint.model_copy(update={"state": ConnectionState.DISCONNECTED})
        return stored.model_copy()

    # Queries

    def list_endpoints(self) -> list[SoftwareEndpoint]:
        return [endpoint.model_copy() for endpoint in self._endpoints.values()]

    def get_endpoint(self, endpoint_id: int) -> SoftwareEndpoint:
        return self._get(endpoint_id).model_copy()

    def __contains__(self, endpoint_id: object) -> bool:
        return endpoint_id in self._endpoints

    def __len__(self) -> int:
        return len(self._endpoints)

    # Configuration

    def load(self, endpoints: list[SoftwareEndpoint]) -> None:
        """Replace the registry contents with persisted endpoints, all disconnected."""
        self._endpoints = {
            endpoint.id: endpoint.model_copy(
                update={"state": ConnectionState.DISCONNECTED, "last_error": None}
            )
            for endpoint in endpoints
        }
        self._next_id = max(self._endpoints, default=0) + 1
        self._latest.clear()
        self._connections.clear()
        self._connecting.clear()

    def add_endpoint(self, name: str, host: str, port: int | str) -> SoftwareEndpoint:
        if not name.strip():
            raise InvalidNameError("Software name must not be empty")
        address = validate_address(host, port)

        endpoint = SoftwareEndpoint(
            id=self._next_id, name=name, host=address.host, port=address.port
        )
        self._endpoints[endpoint.id] = endpoint
        self._next_id += 1
        self._stream.info(f"Software '{endpoint.name}' added at {endpoint.address}")
        self._changed(ChangeKind.ADDED, endpoint.id)
        return endpoint.model_copy()

    async def remove_endpoint(self, endpoint_id: int) -> None:
        endpoint = self._get(endpoint_id)
        del self._endpoints[endpoint_id]
        self._latest.pop(endpoint_id, None)
        self._connecting.pop(endpoint_id, None)
        connection = self._connections.pop(endpoint_id, None)
        self._stream.info(f"Software '{endpoint.name}' removed")
        self._changed(ChangeKind.REMOVED, endpoint_id)
        if connection is not None:
            await self._close_quietly(endpoint, connection)

    # Connection requests

    async def request_connect(self, endpoint_id: int) -> SoftwareEndpoint:
        endpoint = self._get(endpoint_id)
        if endpoint.connected:
            return endpoint.model_copy()

        task = self._connecting.get(endpoint_id)
        if task is None:
            seq = self._new_request(endpoint_id)
            endpoint.state = ConnectionState.CONNECTING
            endpoint.last_error = None
            self._changed(ChangeKind.UPDATED, endpoint_id)
            task = asyncio.ensure_future(self._connect(endpoint, seq))
            self._connecting[endpoint_id] = task
            task.add_done_callback(self._forget_task)
        return await asyncio.shield(task)

    def _forget_task(self, task: asyncio.Task[SoftwareEndpoint]) -> None:
        for endpoint_id, pending in list(self._connecting.items()):
            if pending is task:
                del self._connecting[endpoint_id]

    async def _connect(self, endpoint: SoftwareEndpoint, seq: int) -> SoftwareEndpoint:
        endpoint_id = endpoint.id
        try:
            connection = await self._transport.connect(endpoint.host, endpoint.port)
        except TransportError as exc:
            if not self._is_current(endpoint_id, seq):
                logger.debug("Ignoring stale connect failure for %d", endpoint_id)
                return self._current_view(endpoint)
            endpoint.state = ConnectionState.DISCONNECTED
            endpoint.last_error = str(exc)
            self._stream.error(
                f"Failed to connect to '{endpoint.name}' ({endpoint.address}): {exc}"
            )
            self._changed(ChangeKind.UPDATED, endpoint_id)
            return endpoint.model_copy()

        if not self._is_current(endpoint_id, seq):
            logger.debug("Discarding superseded connection for %d", endpoint_id)
            await self._close_quietly(endpoint, connection)
            return self._current_view(endpoint)

        self._connections[endpoint_id] = connection
        endpoint.state = ConnectionState.CONNECTED
        self._stream.success(f"Connected to '{endpoint.name}'")
        self._changed(ChangeKind.UPDATED, endpoint_id)
        return endpoint.model_copy()

    async def request_disconnect(self, endpoint_id: int) -> SoftwareEndpoint:
        endpoint = self._get(endpoint_id)
        connection = self._connections.pop(endpoint_id, None)
        previous = endpoint.state
        if previous is ConnectionState.DISCONNECTED and connection is None:
            return endpoint.model_copy()

        self._new_request(endpoint_id)
        self._connecting.pop(endpoint_id, None)
        endpoint.state = ConnectionState.DISCONNECTED
        if previous is ConnectionState.CONNECTING:
            self._stream.info(f"Connection attempt to '{endpoint.name}' cancelled")
        else:
            self._stream.info(f"Disconnected from '{endpoint.name}'")
        self._changed(ChangeKind.UPDATED, endpoint_id)
        snapshot = endpoint.model_copy()

        if connection is not None:
            await self._close_quietly(endpoint, connection)
        return snapshot

    async def _close_quietly(
        self, endpoint: SoftwareEndpoint, connection: Connection
    ) -> None:
        try:
            await connection.close()
        except TransportError as exc:
            self._stream.warn(f"Closing connection to '{endpoint.name}': {exc}")

    async def disconnect_all(self) -> None:
        for endpoint_id in list(self._endpoints):
            await self.request_disconnect(endpoint_id)

    # Probing

    async def test_connection(
        self, host: str, port: int | str, name: str | None = None
    ) -> ProbeResult:
        """Probe an address without touching registry state."""
        address = validate_address(host, port)
        label = (name or "").strip() or str(address)
        try:
            latency = await self._transport.probe(address.host, address.port)
        except TransportError as exc:
            self._stream.error(
                f"Connection test to '{label}' ({address}) failed: unreachable ({exc})"
            )
            return ProbeResult(
                host=address.host, port=address.port, reachable=False, error=str(exc)
            )

        latency_ms = latency * 1000
        self._stream.success(
            f"Connection test to '{label}' ({address}) succeeded in {latency_ms:.1f} ms"
        )
        return ProbeResult(
            host=address.host, port=address.port, reachable=True, latency_ms=latency_ms
        )

    async def test_endpoint(self, endpoint_id: int) -> ProbeResult:
        endpoint = self._get(endpoint_id)
        return await self.test_connection(endpoint.host, endpoint.port, endpoint.name)
