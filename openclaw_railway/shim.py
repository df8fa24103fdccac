"""Healthcheck shim: answers Railway's /health probe while the gateway warms up.

Railway starts probing ``/health`` as soon as the container starts, long
before the OpenClaw gateway is listening. The shim runs as a separate
process (so it survives the exec hand-off) and:

  1. binds the gateway port on 0.0.0.0; if the port is already taken the
     gateway won the race, so it logs that and exits cleanly
  2. answers the health path with 200 ``ok`` (any method) and every other
     path with 503
  3. waits for SIGUSR1, which the supervisor sends right before it execs
     the gateway; only then does the warm-up window start, after which the
     port is released for the gateway's own bind
  4. probes 127.0.0.1:<port> every ``probe_interval`` seconds until the
     gateway is accepting connections, then exits

If no hand-off notification arrives within ``handoff_timeout`` (the
bootstrap died before the exec) the port is released anyway.

Errors never propagate out of the shim: the worst case is a failed probe,
after which Railway restarts the container and the idempotent boot runs again.

Usage (normally spawned by the bootstrap):
    python -m openclaw_railway.shim --port 18789 --warmup 30
    kill -USR1 <shim pid>    # start the warm-up window
"""

from __future__ import annotations

import argparse
import asyncio
import errno
import signal
import socket
import subprocess
import sys
import time
from enum import Enum

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from openclaw_railway.config import BootstrapSettings
from openclaw_railway.log import get_logger, setup_logging
from openclaw_railway.retry import async_retry

logger = get_logger("healthcheck-shim")

LOOPBACK = "127.0.0.1"
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
HANDOFF_SIGNAL = signal.SIGUSR1


class ShimOutcome(str, Enum):
    PORT_IN_USE = "port_in_use"
    WARMUP_ELAPSED = "warmup_elapsed"
    HANDOFF_TIMEOUT = "handoff_timeout"
    SERVER_EXITED = "server_exited"
    FAILED = "failed"


def create_shim_app(health_path: str = "/health") -> FastAPI:
    app = FastAPI(docs_url=None, redoc_url=None, openapi_url=None)

    # Status depends on the path only
    @app.api_route(health_path, methods=ALL_METHODS)
    async def health() -> PlainTextResponse:
        return PlainTextResponse("ok")

    @app.api_route("/{path:path}", methods=ALL_METHODS)
    async def starting(path: str) -> PlainTextResponse:
        return PlainTextResponse("starting…", status_code=503)

    return app


def bind_listener(host: str, port: int) -> socket.socket:
    """Bind and listen immediately so probes queue up even before uvicorn starts."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(128)
    except OSError:
        sock.close()
        raise
    return sock


class HealthShim:
    """Temporary owner of the gateway port."""

    def __init__(
        self,
        port: int,
        host: str = "0.0.0.0",
        health_path: str = "/health",
        warmup_seconds: float = 30.0,
        probe_interval: float = 0.5,
        takeover_timeout: float = 180.0,
        handoff_timeout: float = 300.0,
    ) -> None:
        self.port = port
        self.host = host
        self.health_path = health_path
        self.warmup_seconds = warmup_seconds
        self.probe_interval = probe_interval
        self.takeover_timeout = takeover_timeout
        self.handoff_timeout = handoff_timeout
        self.listening = asyncio.Event()
        self._handoff = asyncio.Event()

    def request_handoff(self) -> None:
        """The gateway is being started: begin the warm-up window."""
        logger.info("handoff_notified", warmup_seconds=self.warmup_seconds)
        self._handoff.set()

    async def _hold(self, serve_task: asyncio.Task) -> ShimOutcome:
        handoff_task = asyncio.create_task(self._handoff.wait())
        try:
            done, _ = await asyncio.wait(
                {serve_task, handoff_task},
                timeout=self.handoff_timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            handoff_task.cancel()

        if serve_task in done:
            serve_task.result()
            return ShimOutcome.SERVER_EXITED
        if not self._handoff.is_set():
            logger.warning("handoff_not_notified", waited_seconds=self.handoff_timeout)
            return ShimOutcome.HANDOFF_TIMEOUT

        done, _ = await asyncio.wait({serve_task}, timeout=self.warmup_seconds)
        if serve_task in done:
            serve_task.result()
            return ShimOutcome.SERVER_EXITED
        return ShimOutcome.WARMUP_ELAPSED

    async def run(self) -> ShimOutcome:
        """Hold the port until the warm-up window after the hand-off notification ends."""
        try:
            sock = bind_listener(self.host, self.port)
        except OSError as exc:
            if exc.errno == errno.EADDRINUSE:
                logger.info("port_in_use", port=self.port, detail="gateway likely up, skipping shim")
                return ShimOutcome.PORT_IN_USE
            logger.error("shim_bind_failed", port=self.port, error=str(exc))
            return ShimOutcome.FAILED

        logger.info("shim_listening", host=self.host, port=self.port, health_path=self.health_path)
        self.listening.set()

        server = uvicorn.Server(
            uvicorn.Config(
                create_shim_app(self.health_path),
                log_config=None,
                log_level="warning",
                access_log=False,
                lifespan="off",
                timeout_graceful_shutdown=2,
            )
        )
        serve_task = asyncio.create_task(server.serve(sockets=[sock]))

        try:
            outcome = await self._hold(serve_task)
            server.should_exit = True
            await serve_task
        except Exception as exc:
            logger.error("shim_error", error=str(exc), error_type=type(exc).__name__)
            outcome = ShimOutcome.FAILED
        finally:
            if not serve_task.done():
                serve_task.cancel()
            sock.close()

        logger.info("shim_closed", port=self.port, reason=outcome.value)
        return outcome

    async def _connect_once(self) -> None:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(LOOPBACK, self.port),
            timeout=self.probe_interval,
        )
        writer.close()
        await writer.wait_closed()

    async def wait_for_takeover(self) -> bool:
        """Poll the loopback port until the gateway accepts connections."""
        attempts = max(1, int(self.takeover_timeout / self.probe_interval))
        connect = async_retry(
            max_retries=attempts,
            base_delay=self.probe_interval,
            max_delay=self.probe_interval,
            exceptions=(OSError, asyncio.TimeoutError),
            backoff=1.0,
            log_attempts=False,
        )(self._connect_once)

        started = time.monotonic()
        try:
            await connect()
        except (OSError, asyncio.TimeoutError):
            logger.warning(
                "gateway_not_listening",
                port=self.port,
                waited_seconds=round(time.monotonic() - started, 1),
            )
            return False

        logger.info(
            "gateway_listening",
            port=self.port,
            waited_seconds=round(time.monotonic() - started, 1),
        )
        return True


# ---------------------------------------------------------------------------
# Launching from the bootstrap process
# ---------------------------------------------------------------------------


def shim_command(settings: BootstrapSettings) -> list[str]:
    return [
        sys.executable, "-m", "openclaw_railway.shim",
        "--port", str(settings.gateway_port),
        "--host", settings.gateway_bind,
        "--health-path", settings.health_path,
        "--warmup", str(settings.shim_warmup_seconds),
        "--probe-interval", str(settings.shim_probe_interval_seconds),
        "--takeover-timeout", str(settings.shim_takeover_timeout_seconds),
        "--handoff-timeout", str(settings.shim_handoff_timeout_seconds),
        "--log-level", settings.log_level,
        "--log-format", settings.log_format,
    ]


def wait_until_listening(
    port: int,
    timeout: float,
    proc: subprocess.Popen | None = None,
    interval: float = 0.1,
) -> bool:
    """Block until something accepts connections on the loopback port."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if proc is not None and proc.poll() is not None:
            return False
        try:
            with socket.create_connection((LOOPBACK, port), timeout=interval):
                return True
        except OSError:
            time.sleep(interval)
    return False


def launch_shim(settings: BootstrapSettings) -> subprocess.Popen | None:
    """Start the shim as its own process and wait (bounded) until it is listening.

    Failures are logged only; the gateway is launched either way.
    """
    if not settings.shim_enabled:
        logger.info("shim_disabled")
        return None

    cmd = shim_command(settings)
    try:
        proc = subprocess.Popen(cmd, stdin=subprocess.DEVNULL, start_new_session=True)
    except OSError as exc:
        logger.warning("shim_launch_failed", error=str(exc))
        return None

    if wait_until_listening(settings.gateway_port, settings.shim_ready_timeout_seconds, proc):
        logger.info("shim_ready", pid=proc.pid, port=settings.gateway_port)
    else:
        logger.warning(
            "shim_not_ready",
            pid=proc.pid,
            exited=proc.poll() is not None,
            timeout_seconds=settings.shim_ready_timeout_seconds,
        )
    return proc


def notify_shim(proc: subprocess.Popen | None) -> None:
    """Tell a running shim that the gateway is starting now."""
    if proc is None or proc.poll() is not None:
        return
    try:
        proc.send_signal(HANDOFF_SIGNAL)
    except OSError as exc:
        logger.warning("shim_notify_failed", pid=proc.pid, error=str(exc))
        return
    logger.info("shim_notified", pid=proc.pid)


# ---------------------------------------------------------------------------
# Shim process entry point
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Temporary /health responder for the gateway port")
    parser.add_argument("--port", type=int, required=True)
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--health-path", default="/health")
    parser.add_argument("--warmup", type=float, default=30.0, help="seconds to hold the port")
    parser.add_argument("--probe-interval", type=float, default=0.5)
    parser.add_argument("--takeover-timeout", type=float, default=180.0)
    parser.add_argument("--handoff-timeout", type=float, default=300.0)
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--log-format", default="auto")
    return parser.parse_args(argv)


async def _serve(args: argparse.Namespace) -> ShimOutcome:
    shim = HealthShim(
        port=args.port,
        host=args.host,
        health_path=args.health_path,
        warmup_seconds=args.warmup,
        probe_interval=args.probe_interval,
        takeover_timeout=args.takeover_timeout,
        handoff_timeout=args.handoff_timeout,
    )
    asyncio.get_running_loop().add_signal_handler(HANDOFF_SIGNAL, shim.request_handoff)

    outcome = await shim.run()
    if outcome in (ShimOutcome.WARMUP_ELAPSED, ShimOutcome.HANDOFF_TIMEOUT):
        await shim.wait_for_takeover()
    return outcome


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_level, args.log_format)
    try:
        asyncio.run(_serve(args))
    except Exception as exc:
        logger.error("shim_crashed", error=str(exc), error_type=type(exc).__name__)
    sys.exit(0)


if __name__ == "__main__":
    main()
