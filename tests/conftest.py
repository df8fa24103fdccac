"""Shared fixtures: an isolated environment and a throwaway data volume."""

import socket

import pytest
import structlog

from openclaw_railway.config import BootstrapSettings

SETTINGS_ENV_VARS = [name.upper() for name in BootstrapSettings.model_fields]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in SETTINGS_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    # main() configures structlog against the stdout of the test that ran it
    structlog.reset_defaults()


@pytest.fixture
def make_settings(tmp_path):
    """Build settings pointing at a temp volume; shim and migration off unless asked for."""

    def _make(**overrides) -> BootstrapSettings:
        values = {
            "data_dir": tmp_path / "data",
            "config_dir": tmp_path / "home" / ".openclaw",
            "anthropic_api_key": "sk-ant-test",
            "shim_enabled": False,
            "migration_enabled": False,
        }
        values.update(overrides)
        return BootstrapSettings(_env_file=None, **values)

    return _make


@pytest.fixture
def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
