from __future__ import annotations

import asyncio

from devhub.config import DatabaseConfig, Settings, StatusConfig, write_settings
from devhub.core import Manager, MockDeviceDriver, get_manager
from devhub.models import LogLevel
from devhub.storage import Database


def _settings(tmp_path, **kwargs) -> Settings:
    return Settings(database=DatabaseConfig(path=str(tmp_path / "data")), **kwargs)


def test_autosave_persists_registry_changes(tmp_path, transport):
    settings = _settings(tmp_path)
    manager = Manager(settings, transport=transport, driver=MockDeviceDriver())
    manager.load()

    asyncio.run(manager.devices.discover())
    manager.devices.rename(2, "Left Pedal")
    manager.endpoints.add_endpoint("OBS Studio", "127.0.0.1", 4455)

    db = Database(tmp_path / "data")
    assert [d.name for d in db.load_devices()][:2] == [
        "My Custom Controller Alpha",
        "Left Pedal",
    ]
    assert db.load_endpoints()[0].name == "OBS Studio"


def test_reload_restores_state_and_log(tmp_path, transport):
    settings = _settings(tmp_path)
    first = Manager(settings, transport=transport, driver=MockDeviceDriver())
    first.load()
    asyncio.run(first.devices.discover())
    first.endpoints.add_endpoint("OBS Studio", "127.0.0.1", 4455)
    asyncio.run(first.endpoints.request_connect(1))
    first.save()

    second = Manager(settings, transport=transport)
    second.load()

    assert len(second.devices) == 5
    assert all(not device.online for device in second.devices.list_devices())
    assert second.endpoints.get_endpoint(1).connected is False
    assert second.stream.tail(1)[0].message == "Connected to 'OBS Studio'"


def test_log_capacity_from_settings(tmp_path, transport):
    settings = _settings(tmp_path, status=StatusConfig(log_capacity=3))
    manager = Manager(settings, transport=transport)

    for i in range(5):
        manager.stream.info(f"event {i}")

    assert manager.stream.capacity == 3
    assert len(manager.stream) == 3


def test_close_disconnects_everything(tmp_path, transport):
    manager = Manager(_settings(tmp_path), transport=transport)
    manager.load()
    endpoint = manager.endpoints.add_endpoint("OBS Studio", "127.0.0.1", 4455)
    asyncio.run(manager.endpoints.request_connect(endpoint.id))

    asyncio.run(manager.close())

    assert manager.endpoints.get_endpoint(endpoint.id).connected is False
    assert transport.connections[0].closed is True
    assert manager.database.status_path.exists()


def test_transport_error_is_visible_in_stream(tmp_path, transport):
    manager = Manager(_settings(tmp_path), transport=transport)
    manager.load()
    endpoint = manager.endpoints.add_endpoint("Streamlabs", "192.168.1.10", 8080)
    transport.fail = True

    asyncio.run(manager.endpoints.request_connect(endpoint.id))

    assert manager.stream.tail(1)[0].level is LogLevel.ERROR
    endpoint = manager.endpoints.add_endpoint("Other", "127.0.0.1", 1)
    assert endpoint.id == 2


def test_get_manager_is_process_wide(tmp_path, monkeypatch):
    path = tmp_path / "config.toml"
    write_settings(_settings(tmp_path), path)
    monkeypatch.setenv("DEVHUB_CONFIG", str(path))

    assert get_manager() is get_manager()
    assert get_manager().database.path == tmp_path / "data"


def test_failed_autosave_is_visible_in_stream(tmp_path, transport):
    manager = Manager(
        _settings(tmp_path), transport=transport, driver=MockDeviceDriver()
    )
    manager.load()
    # a directory in place of the file makes every write fail
    (tmp_path / "data" / "devices.toml").mkdir(parents=True)
    (tmp_path / "data" / "endpoints.toml").mkdir()

    found = asyncio.run(manager.devices.discover())
    manager.endpoints.add_endpoint("OBS Studio", "127.0.0.1", 4455)

    assert len(found) == 5
    assert len(manager.devices) == 5
    messages = [
        entry.message
        for entry in manager.stream.entries()
        if entry.level is LogLevel.ERROR
    ]
    assert any(m.startswith("Saving devices failed") for m in messages)
    assert any(m.startswith("Saving software connections failed") for m in messages)
