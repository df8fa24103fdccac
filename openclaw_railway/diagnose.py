"""Diagnostic tool for the Railway bootstrap.

Run inside the container to check each boot step on its own, without
replacing the process with the gateway. Nothing is written to the volume.

Usage:
    railway run python -m openclaw_railway.diagnose
    railway run python -m openclaw_railway.diagnose --step token
    railway run python -m openclaw_railway.diagnose --step config
    railway run python -m openclaw_railway.diagnose --step gateway
    railway run python -m openclaw_railway.diagnose --step port
"""

from __future__ import annotations

import argparse
import json
import shutil
import socket
import sys
import traceback

from openclaw_railway.config import BootstrapSettings
from openclaw_railway.errors import TokenError
from openclaw_railway.gateway_token import read_token_file
from openclaw_railway.healthcheck import check as health_ok
from openclaw_railway.log import setup_logging
from openclaw_railway.openclaw_config import build_channels

setup_logging("DEBUG")


PASS = "\033[92m PASS \033[0m"
FAIL = "\033[91m FAIL \033[0m"
WARN = "\033[93m WARN \033[0m"
INFO = "\033[94m INFO \033[0m"


def header(title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


def result(label: str, ok: bool, detail: str = "") -> None:
    status = PASS if ok else FAIL
    print(f"  [{status}] {label}")
    if detail:
        for line in detail.strip().split("\n"):
            print(f"         {line}")


def info(label: str, detail: str = "") -> None:
    print(f"  [{INFO}] {label}")
    if detail:
        for line in detail.strip().split("\n"):
            print(f"         {line}")


def warn(label: str) -> None:
    print(f"  [{WARN}] {label}")


def step_token(settings: BootstrapSettings) -> bool:
    header("Gateway token")
    if settings.gateway_token:
        info("GATEWAY_TOKEN is set; it overrides any persisted token")
    path = settings.token_file
    if not path.exists():
        warn(f"{path} missing; a new token will be generated on next boot")
        return True
    try:
        value = read_token_file(path)
    except TokenError as exc:
        result("persisted token readable", False, str(exc))
        return False
    mode = path.stat().st_mode & 0o777
    result("persisted token readable", True, f"{len(value)} chars")
    result("token file mode is 0600", mode == 0o600, f"actual {mode:o}")
    return mode == 0o600


def step_config(settings: BootstrapSettings) -> bool:
    header("openclaw.json")
    path = settings.config_file
    configured = build_channels(settings).enabled()
    info("channels from env", ", ".join(configured) or "(none)")
    if not path.exists():
        warn(f"{path} missing; it will be generated on next boot")
        return True
    try:
        doc = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        result("config parses as JSON", False, str(exc))
        return False
    result("config parses as JSON", True)
    written = sorted(k for k in doc.get("channels", {}) if k != "_")
    info("channels in file", ", ".join(written) or "(none)")
    if "_" in doc.get("channels", {}):
        warn('legacy "_" placeholder in channels; run: openclaw doctor --fix')
    if sorted(configured) != written:
        warn("env and file disagree; the file wins (delete it to regenerate)")
    return True


def step_gateway(settings: BootstrapSettings) -> bool:
    header("Gateway binary")
    found = shutil.which(settings.gateway_bin)
    result(f"{settings.gateway_bin} on PATH", found is not None, found or "")
    result("ANTHROPIC_API_KEY set", bool(settings.anthropic_api_key))
    return found is not None


def step_port(settings: BootstrapSettings) -> bool:
    header(f"Port {settings.gateway_port}")
    try:
        with socket.create_connection(("127.0.0.1", settings.gateway_port), timeout=1.0):
            listening = True
    except OSError:
        listening = False
    info("listener present" if listening else "nothing listening")
    if not listening:
        return True
    ok = health_ok(settings.gateway_port, settings.health_path)
    result(f"GET {settings.health_path} returns 200", ok)
    return ok


STEPS = {
    "token": step_token,
    "config": step_config,
    "gateway": step_gateway,
    "port": step_port,
}


def main() -> None:
    parser = argparse.ArgumentParser(description="Bootstrap diagnostics")
    parser.add_argument("--step", choices=[*STEPS, "all"], default="all")
    args = parser.parse_args()

    settings = BootstrapSettings()
    selected = STEPS if args.step == "all" else {args.step: STEPS[args.step]}

    failed = []
    for name, fn in selected.items():
        try:
            if not fn(settings):
                failed.append(name)
        except Exception:
            result(name, False, traceback.format_exc())
            failed.append(name)

    header("Summary")
    result("all checks passed" if not failed else f"failed: {', '.join(failed)}", not failed)
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
