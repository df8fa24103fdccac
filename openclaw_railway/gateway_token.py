"""Gateway token resolution.

The token guards the Control UI and ends up in every shared
``https://<domain>/?token=...`` link, so it must stay stable across
restarts. Precedence:

1. ``GATEWAY_TOKEN`` from the environment, used as-is and never persisted.
2. The persisted ``/data/.gateway_token``.
3. A freshly generated 32-char hex token, persisted with mode 0600.

A persisted file that exists but cannot be read is fatal: silently
generating a new token would invalidate every link handed out so far.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from openclaw_railway.config import BootstrapSettings
from openclaw_railway.errors import TokenError
from openclaw_railway.files import write_private
from openclaw_railway.log import get_logger

logger = get_logger("token")

TOKEN_BYTES = 16
TokenSource = Literal["env", "file", "generated"]


@dataclass(frozen=True)
class ResolvedToken:
    value: str
    source: TokenSource


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def read_token_file(path: Path) -> str:
    try:
        # Files written by the old shell entrypoint end with a newline
        value = path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        raise TokenError(f"cannot read persisted token {path}: {exc}") from exc
    if not value:
        raise TokenError(f"persisted token {path} is empty; delete it to regenerate")
    return value


def write_token_file(path: Path, value: str) -> None:
    """Persist ``value`` readable by the owner only."""
    try:
        write_private(path, value + "\n")
    except OSError as exc:
        raise TokenError(f"cannot persist gateway token to {path}: {exc}") from exc


def resolve_token(settings: BootstrapSettings) -> ResolvedToken:
    if settings.gateway_token:
        logger.info("token_from_env")
        return ResolvedToken(settings.gateway_token, "env")

    path = settings.token_file
    try:
        persisted = path.exists()
    except OSError as exc:
        raise TokenError(f"cannot stat persisted token {path}: {exc}") from exc

    if persisted:
        token = ResolvedToken(read_token_file(path), "file")
        logger.info("token_from_file", path=str(path))
        return token

    token = ResolvedToken(generate_token(), "generated")
    write_token_file(path, token.value)
    logger.info("token_generated", path=str(path))
    return token
