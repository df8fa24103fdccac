"""Hand the container over to the OpenClaw gateway.

In ``exec`` mode (the default) the bootstrap process image is replaced with
``openclaw gateway``, so the gateway becomes PID 1 and receives Railway's
SIGTERM directly. ``spawn`` mode is for hosts without exec semantics: the
gateway runs as a child, termination signals are forwarded to it, and the
bootstrap exits with the child's exit code.
"""

from __future__ import annotations

import os
import signal
import subprocess
import sys
from collections.abc import Mapping
from typing import NoReturn

from openclaw_railway.config import BootstrapSettings
from openclaw_railway.errors import HandoffError
from openclaw_railway.log import get_logger
from openclaw_railway.shim import notify_shim

logger = get_logger("supervisor")

FORWARDED_SIGNALS = (signal.SIGTERM, signal.SIGINT, signal.SIGHUP)


def gateway_argv(settings: BootstrapSettings) -> list[str]:
    argv = [
        settings.gateway_bin,
        "gateway",
        "--port", str(settings.gateway_port),
        "--bind", settings.gateway_bind,
    ]
    if settings.gateway_verbose:
        argv.append("--verbose")
    return argv


def gateway_env(settings: BootstrapSettings, base: Mapping[str, str]) -> dict[str, str]:
    """Copy of ``base`` with the provider keys the gateway needs exported."""
    env = dict(base)
    env["ANTHROPIC_API_KEY"] = settings.anthropic_api_key
    if settings.openai_api_key:
        env["OPENAI_API_KEY"] = settings.openai_api_key
    return env


def exit_code(returncode: int) -> int:
    """Shell convention: death by signal N exits with 128 + N."""
    return 128 - returncode if returncode < 0 else returncode


def handoff(settings: BootstrapSettings, shim: subprocess.Popen | None = None) -> NoReturn:
    """Start the gateway. The shim, if running, starts its warm-up window now."""
    argv = gateway_argv(settings)
    env = gateway_env(settings, os.environ)
    logger.info("gateway_starting", argv=" ".join(argv), mode=settings.handoff_mode)
    notify_shim(shim)

    if settings.handoff_mode == "spawn":
        sys.exit(run_child(argv, env))

    # Buffered log lines would be lost with the old process image
    sys.stdout.flush()
    sys.stderr.flush()
    try:
        os.execvpe(argv[0], argv, env)
    except OSError as exc:
        raise HandoffError(f"cannot exec {argv[0]}: {exc}") from exc


def run_child(argv: list[str], env: Mapping[str, str]) -> int:
    """Run the gateway as a child, forwarding termination signals. Returns the exit code."""
    try:
        child = subprocess.Popen(argv, env=dict(env))
    except OSError as exc:
        raise HandoffError(f"cannot start {argv[0]}: {exc}") from exc

    def _forward(signum: int, _frame: object) -> None:
        logger.info("signal_forwarded", signal=signal.Signals(signum).name, pid=child.pid)
        child.send_signal(signum)

    previous = {sig: signal.signal(sig, _forward) for sig in FORWARDED_SIGNALS}
    try:
        returncode = child.wait()
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)

    logger.info("gateway_exited", returncode=returncode)
    return exit_code(returncode)
