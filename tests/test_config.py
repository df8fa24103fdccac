"""Tests for BootstrapSettings environment loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from openclaw_railway.config import DEFAULT_MODEL, DEFAULT_PORT, BootstrapSettings


class TestBootstrapSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("HOME", "/home/gw")
        settings = BootstrapSettings(_env_file=None)
        assert settings.model == DEFAULT_MODEL
        assert settings.gateway_port == DEFAULT_PORT == 18789
        assert settings.gateway_bind == "0.0.0.0"
        assert settings.health_path == "/health"
        assert settings.shim_probe_interval_seconds == 0.5
        assert settings.handoff_mode == "exec"
        assert settings.token_file == Path("/data/.gateway_token")
        assert settings.config_file == Path("/home/gw/.openclaw/openclaw.json")

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("GATEWAY_TOKEN", "from-env")
        monkeypatch.setenv("MODEL", "openai/gpt-4o")
        monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-1")
        monkeypatch.setenv("SLACK_APP_TOKEN", "xapp-1")
        monkeypatch.setenv("DATA_DIR", "/mnt/volume")
        monkeypatch.setenv("SHIM_WARMUP_SECONDS", "12.5")
        monkeypatch.setenv("HANDOFF_MODE", "spawn")

        settings = BootstrapSettings(_env_file=None)
        assert settings.gateway_token == "from-env"
        assert settings.model == "openai/gpt-4o"
        assert settings.slack_bot_token == "xoxb-1"
        assert settings.slack_app_token == "xapp-1"
        assert settings.token_file == Path("/mnt/volume/.gateway_token")
        assert settings.shim_warmup_seconds == 12.5
        assert settings.handoff_mode == "spawn"

    def test_invalid_handoff_mode(self, monkeypatch):
        monkeypatch.setenv("HANDOFF_MODE", "fork")
        with pytest.raises(ValidationError):
            BootstrapSettings(_env_file=None)

    def test_probe_interval_must_be_positive(self):
        with pytest.raises(ValidationError):
            BootstrapSettings(_env_file=None, shim_probe_interval_seconds=0)

    def test_port_range(self):
        with pytest.raises(ValidationError):
            BootstrapSettings(_env_file=None, gateway_port=70000)

    def test_shim_must_outlive_migration(self):
        with pytest.raises(ValidationError, match="shim_handoff_timeout_seconds"):
            BootstrapSettings(
                _env_file=None,
                migration_timeout_seconds=120,
                shim_handoff_timeout_seconds=90,
            )
