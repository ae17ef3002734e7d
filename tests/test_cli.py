from __future__ import annotations

import pytest
from typer.testing import CliRunner

from devhub import __version__
from devhub.cli import app
from devhub.config import DatabaseConfig, Settings, get_settings, write_settings
from devhub.storage import Database

runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    data = tmp_path / "data"
    config_path = tmp_path / "config.toml"
    write_settings(Settings(database=DatabaseConfig(path=str(data))), config_path)
    monkeypatch.setenv("DEVHUB_CONFIG", str(config_path))
    get_settings.cache_clear()
    return data


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"devhub version {__version__}" in result.stdout


def test_software_add_and_list(data_dir):
    result = runner.invoke(app, ["software", "add", "OBS", "127.0.0.1", "4455"])
    assert result.exit_code == 0
    assert "Added 'OBS'" in result.stdout

    result = runner.invoke(app, ["software", "list"])
    assert result.exit_code == 0
    assert "OBS" in result.stdout
    assert "disconnected" in result.stdout

    [endpoint] = Database(data_dir).load_endpoints()
    assert endpoint.port == 4455


def test_software_add_rejects_bad_port(data_dir):
    result = runner.invoke(app, ["software", "add", "OBS", "127.0.0.1", "99999"])
    assert result.exit_code == 1
    assert Database(data_dir).load_endpoints() == []


def test_software_remove_unknown(data_dir):
    result = runner.invoke(app, ["software", "remove", "7"])
    assert result.exit_code == 1


def test_devices_discover_rename_remove(data_dir):
    result = runner.invoke(app, ["devices", "discover"])
    assert result.exit_code == 0
    assert "Found 5 device(s)" in result.stdout

    result = runner.invoke(app, ["devices", "rename", "2", "Left Pedal"])
    assert result.exit_code == 0

    result = runner.invoke(app, ["devices", "remove", "4"])
    assert result.exit_code == 0

    devices = Database(data_dir).load_devices()
    assert [device.id for device in devices] == [1, 2, 3, 5]
    assert devices[1].name == "Left Pedal"


def test_devices_rename_blank_fails(data_dir):
    runner.invoke(app, ["devices", "discover"])

    result = runner.invoke(app, ["devices", "rename", "1", "   "])

    assert result.exit_code == 1
    assert Database(data_dir).load_devices()[0].name == "My Custom Controller Alpha"


def test_devices_show_unknown(data_dir):
    result = runner.invoke(app, ["devices", "show", "12"])
    assert result.exit_code == 1


def test_devices_backup_and_restore(data_dir):
    runner.invoke(app, ["devices", "discover"])

    result = runner.invoke(app, ["devices", "backup", "1"])
    assert result.exit_code == 0
    assert Database(data_dir).load_backup(1) is not None

    result = runner.invoke(app, ["devices", "restore", "1"])
    assert result.exit_code == 0

    result = runner.invoke(app, ["devices", "restore", "2"])
    assert result.exit_code == 1


def test_status_shows_log(data_dir):
    runner.invoke(app, ["software", "add", "OBS", "127.0.0.1", "4455"])

    result = runner.invoke(app, ["status", "--no-metrics"])

    assert result.exit_code == 0
    assert "[INFO]" in result.stdout
    assert "OBS" in result.stdout


def test_status_metrics(data_dir):
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0
    assert "CPU usage" in result.stdout
    assert "No log entries yet." in result.stdout


def test_config_theme_and_autostart(data_dir, tmp_path):
    result = runner.invoke(app, ["config", "theme", "dark"])
    assert result.exit_code == 0

    get_settings.cache_clear()
    result = runner.invoke(app, ["config", "autostart", "--off"])
    assert result.exit_code == 0

    get_settings.cache_clear()
    settings = get_settings()
    assert settings.app.theme.value == "dark"
    assert settings.app.autostart is False


def test_init_creates_data_dir(tmp_path, monkeypatch):
    config_path = tmp_path / "config.toml"
    monkeypatch.setenv("DEVHUB_CONFIG", str(config_path))

    result = runner.invoke(app, ["init", "--data-dir", str(tmp_path / "store")])

    assert result.exit_code == 0
    assert config_path.exists()
    assert (tmp_path / "store" / "devices.toml").exists()


def test_info(data_dir):
    result = runner.invoke(app, ["info"])
    assert result.exit_code == 0
    assert "Devices: 0" in result.stdout


def test_devices_restore_with_corrupt_backup(data_dir):
    runner.invoke(app, ["devices", "discover"])
    db = Database(data_dir)
    db.ensure_dirs()
    db.backup_path(1).write_text("{not json")

    result = runner.invoke(app, ["devices", "restore", "1"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
