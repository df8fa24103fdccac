"""Container entrypoint — bootstrap OpenClaw on Railway.

Boot sequence:
    data dir → gateway token → openclaw.json → healthcheck shim (own process)
    → legacy config migration → banner → notify shim → exec ``openclaw gateway``

Every step before the exec is either idempotent or purely in-memory, so a
platform restart at any point simply reruns the sequence. Fatal errors
(token/config I/O, missing gateway binary) exit non-zero before the gateway
is started.
"""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass
from typing import NoReturn

from pydantic import ValidationError

from openclaw_railway.config import BootstrapSettings
from openclaw_railway.errors import BootstrapError, ConfigWriteError
from openclaw_railway.gateway_token import ResolvedToken, resolve_token
from openclaw_railway.log import get_logger, setup_logging
from openclaw_railway.openclaw_config import materialize_config, run_migration
from openclaw_railway.shim import launch_shim
from openclaw_railway.supervisor import handoff

logger = get_logger("bootstrap")


def ensure_data_dir(settings: BootstrapSettings) -> None:
    try:
        settings.data_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigWriteError(f"cannot create data dir {settings.data_dir}: {exc}") from exc


def control_ui_url(settings: BootstrapSettings, token: str) -> str:
    domain = settings.railway_public_domain or "<your-domain>"
    return f"https://{domain}/?token={token}"


def print_banner(settings: BootstrapSettings, token: ResolvedToken) -> None:
    """The Control UI link users copy out of the deploy logs."""
    rule = "=" * 60
    lines = [
        "",
        rule,
        "  OpenClaw on Railway",
        rule,
        f"  Gateway token : {token.value}",
        "",
    ]
    if settings.railway_public_domain:
        lines.append("  Your Control UI is at:")
    else:
        lines.append("  Once Railway assigns a domain, your Control UI will be at:")
    lines += [
        "",
        f"    {control_ui_url(settings, token.value)}",
        "",
        "  If you set GATEWAY_TOKEN as a Railway env var, you can",
        "  change it at any time. The value in the env var always wins.",
        rule,
        "",
    ]
    print("\n".join(lines), flush=True)


@dataclass
class Boot:
    token: ResolvedToken
    shim: subprocess.Popen | None = None


def bootstrap(settings: BootstrapSettings) -> Boot:
    """Everything up to (not including) the hand-off.

    The shim keeps answering /health until it is notified by the hand-off,
    however long the migration takes.
    """
    if not settings.anthropic_api_key:
        logger.warning("anthropic_api_key_missing", detail="the gateway will start without a model provider")

    ensure_data_dir(settings)
    token = resolve_token(settings)
    materialize_config(settings, token.value)
    shim = launch_shim(settings)
    run_migration(settings)
    return Boot(token, shim)


def run(settings: BootstrapSettings) -> NoReturn:
    boot = bootstrap(settings)
    print_banner(settings, boot.token)
    handoff(settings, boot.shim)


def main() -> None:
    try:
        settings = BootstrapSettings()
    except ValidationError as exc:
        setup_logging()
        logger.error("invalid_settings", error=str(exc))
        sys.exit(1)

    setup_logging(settings.log_level, settings.log_format)
    logger.info("bootstrap_starting", port=settings.gateway_port, data_dir=str(settings.data_dir))

    try:
        run(settings)
    except BootstrapError as exc:
        logger.error("bootstrap_failed", error=str(exc), error_type=type(exc).__name__)
        sys.exit(1)


if __name__ == "__main__":
    main()
