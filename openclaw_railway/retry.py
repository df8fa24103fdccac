"""Async retry decorator with configurable backoff.

Usage:
    from openclaw_railway.retry import async_retry

    @async_retry(max_retries=2, base_delay=1.0)
    async def fetch_data():
        ...

    # Fixed-interval polling
    poll = async_retry(max_retries=20, base_delay=0.5, backoff=1.0)(connect_once)
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable[..., Any])


def async_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    backoff: float = 2.0,
    log_attempts: bool = True,
) -> Callable[[F], F]:
    """Decorator for async functions with retry.

    Args:
        max_retries: Maximum number of retry attempts.
        base_delay: Initial delay between retries in seconds.
        max_delay: Maximum delay cap in seconds.
        exceptions: Tuple of exception types to catch and retry.
        backoff: Delay multiplier per attempt (1.0 polls at a fixed interval).
        log_attempts: Emit a warning for every failed attempt.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            last_exc: Exception | None = None
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as exc:
                    last_exc = exc
                    if attempt == max_retries:
                        raise
                    delay = min(base_delay * (backoff**attempt), max_delay)
                    if log_attempts:
                        logger.warning(
                            "retry_attempt",
                            func=func.__name__,
                            attempt=attempt + 1,
                            max_retries=max_retries,
                            delay=delay,
                            error=str(exc),
                        )
                    await asyncio.sleep(delay)
            raise last_exc  # type: ignore[misc]

        return wrapper  # type: ignore[return-value]

    return decorator
