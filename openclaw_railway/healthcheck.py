"""Docker HEALTHCHECK: verifies something answers 200 on the gateway health path.

Works in both phases: the shim answers while the gateway warms up, the
gateway answers afterwards.

Usage:
    python -m openclaw_railway.healthcheck
"""

import sys

import httpx

from openclaw_railway.config import BootstrapSettings


def check(port: int, health_path: str = "/health", timeout: float = 5.0) -> bool:
    try:
        resp = httpx.get(f"http://127.0.0.1:{port}{health_path}", timeout=timeout)
    except httpx.HTTPError:
        return False
    return resp.status_code == 200


def main() -> None:
    settings = BootstrapSettings()
    sys.exit(0 if check(settings.gateway_port, settings.health_path) else 1)


if __name__ == "__main__":
    main()
