"""Structured logging for the bootstrap and the shim process.

Both processes write to the same container stdout, so every event carries
the pid alongside the component name.

Usage:
    from openclaw_railway.log import get_logger, setup_logging
    setup_logging(settings.log_level, settings.log_format)
    logger = get_logger("bootstrap")
    logger.info("started", port=18789)
"""

import logging
import os
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

# Context keys whose values never reach the log verbatim
SECRET_KEYS = frozenset({"api_key", "bot_token", "app_token", "password"})


def _mask_secrets(_logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    for key, value in event_dict.items():
        if key in SECRET_KEYS and isinstance(value, str) and value:
            event_dict[key] = f"{value[:4]}…" if len(value) > 8 else "***"
    return event_dict


def _normalize_log_event(_logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """Shape every event as: timestamp, level, service, pid, msg, context."""
    if "msg" not in event_dict and "event" in event_dict:
        event_dict["msg"] = event_dict.pop("event")

    reserved = {"timestamp", "level", "service", "pid", "msg", "context"}
    context = event_dict.get("context")
    if not isinstance(context, dict):
        context = {} if context is None else {"value": context}

    for key in [k for k in event_dict if k not in reserved]:
        context[key] = event_dict.pop(key)

    event_dict["context"] = context
    event_dict.setdefault("pid", os.getpid())
    return event_dict


def setup_logging(level: str = "INFO", log_format: str = "auto") -> None:
    """Configure structlog: JSON when stdout is not a TTY (container logs), console otherwise."""
    fmt = log_format.lower()
    is_json = fmt == "json" or (fmt == "auto" and not sys.stdout.isatty())

    renderer = (
        structlog.processors.JSONRenderer()
        if is_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            _mask_secrets,
            _normalize_log_event,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def get_logger(service_name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with the component name.

    ``setup_logging`` is called explicitly once per process with the loaded
    settings; until then structlog's defaults apply.
    """
    return structlog.get_logger(service=service_name)
