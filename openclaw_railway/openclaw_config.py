"""First-boot materialization of ``~/.openclaw/openclaw.json``.

The file is written only when it does not exist yet. Operators may hand-edit
it on the volume and the edits survive every later deploy, even when the
environment changes. Delete the file to have it regenerated.

The document is built as a model and serialized once, so it stays valid JSON
for any number of channels.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Any, Callable

from openclaw_railway.config import BootstrapSettings
from openclaw_railway.errors import ConfigWriteError
from openclaw_railway.files import write_private
from openclaw_railway.log import get_logger
from openclaw_railway.models import (
    AgentSection,
    ChannelsSection,
    DiscordChannel,
    GatewayAuth,
    GatewaySection,
    OpenClawConfig,
    SlackChannel,
    TelegramChannel,
)

logger = get_logger("openclaw-config")


@dataclass(frozen=True)
class ChannelSpec:
    """A channel and the settings fields that must all be non-empty to enable it."""

    name: str
    required: tuple[str, ...]
    build: Callable[[BootstrapSettings], Any]


CHANNELS: tuple[ChannelSpec, ...] = (
    ChannelSpec(
        "telegram",
        ("telegram_bot_token",),
        lambda s: TelegramChannel(bot_token=s.telegram_bot_token),
    ),
    ChannelSpec(
        "discord",
        ("discord_bot_token",),
        lambda s: DiscordChannel(token=s.discord_bot_token),
    ),
    ChannelSpec(
        "slack",
        ("slack_bot_token", "slack_app_token"),
        lambda s: SlackChannel(bot_token=s.slack_bot_token, app_token=s.slack_app_token),
    ),
)


def build_channels(settings: BootstrapSettings) -> ChannelsSection:
    entries: dict[str, Any] = {}
    for channel in CHANNELS:
        present = [field for field in channel.required if getattr(settings, field)]
        if len(present) == len(channel.required):
            entries[channel.name] = channel.build(settings)
        elif present:
            logger.warning(
                "channel_incomplete",
                channel=channel.name,
                missing=[f.upper() for f in channel.required if f not in present],
            )
    return ChannelsSection(**entries)


def build_config(settings: BootstrapSettings, token: str) -> OpenClawConfig:
    return OpenClawConfig(
        agent=AgentSection(model=settings.model),
        gateway=GatewaySection(
            bind=settings.gateway_bind,
            port=settings.gateway_port,
            auth=GatewayAuth(token=token),
        ),
        channels=build_channels(settings),
    )


def materialize_config(settings: BootstrapSettings, token: str) -> bool:
    """Write openclaw.json unless it already exists.

    Returns True when a new file was written, False on the no-op path.
    """
    path = settings.config_file
    try:
        exists = path.exists()
    except OSError as exc:
        raise ConfigWriteError(f"cannot stat {path}: {exc}") from exc
    if exists:
        logger.info("config_exists", path=str(path))
        return False

    config = build_config(settings, token)
    try:
        # Holds the gateway token and channel credentials
        write_private(path, config.to_json())
    except OSError as exc:
        raise ConfigWriteError(f"cannot write {path}: {exc}") from exc

    logger.info(
        "config_written",
        path=str(path),
        model=settings.model,
        channels=config.channels.enabled(),
    )
    return True


def run_migration(settings: BootstrapSettings) -> bool:
    """Run ``openclaw doctor --fix`` to repair legacy config keys.

    The command is idempotent and optional. Any failure is logged and the
    boot carries on with the config as it is.
    """
    if not settings.migration_enabled:
        return False

    cmd = [settings.gateway_bin, "doctor", "--fix"]
    try:
        proc = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=settings.migration_timeout_seconds,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.warning("migration_failed", cmd=" ".join(cmd), error=str(exc))
        return False

    if proc.returncode != 0:
        logger.warning(
            "migration_failed",
            cmd=" ".join(cmd),
            returncode=proc.returncode,
            stderr=proc.stderr.strip()[-500:],
        )
        return False

    logger.info("migration_done", cmd=" ".join(cmd))
    return True
