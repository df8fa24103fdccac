"""Bootstrap configuration loaded from environment variables / .env file.

This is the single point where the container environment is read. ``main()``
builds one ``BootstrapSettings`` and hands it to every step; nothing else in
the package looks at ``os.environ`` for configuration.

Usage:
    from openclaw_railway.config import BootstrapSettings
    settings = BootstrapSettings()
    print(settings.token_file)
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, PositiveFloat, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL = "anthropic/claude-opus-4-5"
DEFAULT_PORT = 18789


def _default_config_dir() -> Path:
    # The image symlinks ~/.openclaw to the data volume
    return Path.home() / ".openclaw"


class BootstrapSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Providers ---
    anthropic_api_key: str = ""
    openai_api_key: str = ""  # optional fallback provider

    # --- Auth ---
    gateway_token: str = ""  # overrides the persisted token when set

    # --- Model ---
    model: str = DEFAULT_MODEL

    # --- Channels (any combination) ---
    telegram_bot_token: str = ""
    discord_bot_token: str = ""
    slack_bot_token: str = ""
    slack_app_token: str = ""  # required together with slack_bot_token

    # --- Paths ---
    data_dir: Path = Path("/data")
    config_dir: Path = Field(default_factory=_default_config_dir)

    # --- Gateway ---
    gateway_bin: str = "openclaw"
    gateway_port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    gateway_bind: str = "0.0.0.0"
    gateway_verbose: bool = True
    handoff_mode: Literal["exec", "spawn"] = "exec"

    # --- Healthcheck shim ---
    health_path: str = "/health"
    shim_enabled: bool = True
    shim_warmup_seconds: PositiveFloat = 30.0  # counted from the hand-off notification
    shim_probe_interval_seconds: PositiveFloat = 0.5
    shim_takeover_timeout_seconds: PositiveFloat = 180.0
    shim_ready_timeout_seconds: PositiveFloat = 5.0
    shim_handoff_timeout_seconds: PositiveFloat = 300.0  # release the port if never notified

    # --- Legacy config migration (``openclaw doctor --fix``) ---
    migration_enabled: bool = True
    migration_timeout_seconds: PositiveFloat = 60.0

    # --- Platform ---
    railway_public_domain: str = ""

    # --- General ---
    log_level: str = "INFO"
    log_format: str = "auto"  # auto | json | console

    @model_validator(mode="after")
    def _shim_outlives_migration(self) -> BootstrapSettings:
        # The shim must still hold the port when the migration finishes
        if self.shim_handoff_timeout_seconds <= self.migration_timeout_seconds:
            raise ValueError(
                "shim_handoff_timeout_seconds must exceed migration_timeout_seconds"
            )
        return self

    @property
    def token_file(self) -> Path:
        return self.data_dir / ".gateway_token"

    @property
    def config_file(self) -> Path:
        return self.config_dir / "openclaw.json"
