"""Tests for config loading."""

from pathlib import Path

import pytest

from longbox.config import load_config, write_default_config


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    monkeypatch.delenv("COMICS_DIR", raising=False)
    monkeypatch.delenv("SERVER_PASSWORD", raising=False)


def test_missing_config_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "config.ini")


def test_default_config_round_trip(tmp_path):
    config_path = write_default_config(tmp_path / "comics", "Longboxes", tmp_path / "config.ini")

    config = load_config(config_path)

    assert config.library_path == tmp_path / "comics"
    assert config.library.name == "Longboxes"
    assert config.server_host == "0.0.0.0"
    assert config.server_port == 8000
    assert not config.auth_enabled
    assert config.scanner.ignore_patterns == (".DS_Store", "Thumbs.db", "@eaDir")
    assert config.monitoring.enabled
    assert config.monitoring.debounce_seconds == 2.0


def test_config_values(tmp_path):
    config_path = tmp_path / "config.ini"
    config_path.write_text(
        "[library]\npath = /srv/comics\n"
        "[server]\nport = 9090\npassword = hunter2\n"
        "[scanner]\nignore_patterns = .git, @eaDir\n"
        "[monitoring]\nenabled = no\ndebounce_seconds = 0.5\n"
    )

    config = load_config(config_path)

    assert config.library_path == Path("/srv/comics")
    assert config.server_port == 9090
    assert config.auth_enabled
    assert config.scanner.ignore_patterns == (".git", "@eaDir")
    assert not config.monitoring.enabled
    assert config.monitoring.debounce_seconds == 0.5


def test_env_overrides(tmp_path, monkeypatch):
    config_path = write_default_config(tmp_path / "comics", config_path=tmp_path / "config.ini")
    monkeypatch.setenv("COMICS_DIR", "/mnt/comics")
    monkeypatch.setenv("SERVER_PASSWORD", "from-env")

    config = load_config(config_path)

    assert config.library_path == Path("/mnt/comics")
    assert config.server.password == "from-env"
    assert config.auth_enabled
