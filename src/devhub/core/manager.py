from __future__ import annotations

import logging
from functools import lru_cache

from devhub.config import Settings, data_dir_from_settings, get_settings
from devhub.core.devices import DeviceRegistry
from devhub.core.driver import DeviceDriver
from devhub.core.endpoints import EndpointRegistry
from devhub.core.events import ChangeKind, RegistryEvent
from devhub.core.status import LogStream, MetricsSampler
from devhub.core.transport import SoftwareTransport, TcpTransport
from devhub.storage import Database

logger = logging.getLogger(__name__)


class Manager:
    """One running application instance: both registries, the status feed
    and the persistence behind them.

    With ``autosave`` enabled every add/update/remove in a registry is
    written to the database immediately.
    """

    def __init__(
        self,
        settings: Settings,
        database: Database | None = None,
        transport: SoftwareTransport | None = None,
        driver: DeviceDriver | None = None,
        autosave: bool = True,
    ) -> None:
        self.settings = settings
        self.database = database or Database(data_dir_from_settings(settings))
        self.stream = LogStream(capacity=settings.status.log_capacity)
        self.transport = transport or TcpTransport(
            connect_timeout=settings.transport.connect_timeout,
            probe_timeout=settings.transport.probe_timeout,
        )
        self.devices = DeviceRegistry(
            self.stream,
            driver=driver,
            low_battery_threshold=settings.status.low_battery_threshold,
        )
        self.endpoints = EndpointRegistry(self.stream, self.transport)
        self.sampler = MetricsSampler(self.stream)
        self.autosave = autosave
        self._loaded = False

        self.devices.subscribe(self._on_device_change)
        self.endpoints.subscribe(self._on_endpoint_change)

    def _should_save(self, event: RegistryEvent) -> bool:
        return self.autosave and self._loaded and event.kind is not ChangeKind.SELECTED

    def _on_device_change(self, event: RegistryEvent) -> None:
        if not self._should_save(event):
            return
        try:
            self.database.save_devices(self.devices.list_devices())
        except OSError as exc:
            self.stream.error(f"Saving devices failed: {exc}")

    def _on_endpoint_change(self, event: RegistryEvent) -> None:
        if not self._should_save(event):
            return
        try:
            self.database.save_endpoints(self.endpoints.list_endpoints())
        except OSError as exc:
            self.stream.error(f"Saving software connections failed: {exc}")

    def load(self) -> None:
        self.devices.load(self.database.load_devices())
        self.endpoints.load(self.database.load_endpoints())
        self.stream.clear()
        self.stream.extend(self.database.load_log())
        self._loaded = True
        logger.debug(
            "Loaded %d devices and %d endpoints from %s",
            len(self.devices),
            len(self.endpoints),
            self.database.path,
        )

    def save(self) -> None:
        self.database.save_devices(self.devices.list_devices())
        self.database.save_endpoints(self.endpoints.list_endpoints())
        self.database.save_log(self.stream.entries())

    async def close(self) -> None:
        await self.endpoints.disconnect_all()
        self.database.save_log(self.stream.entries())


@lru_cache
def get_manager() -> Manager:
    manager = Manager(get_settings())
    manager.load()
    return manager
