"""Exponential-backoff retries for calls to the listing provider and the LLM."""
from __future__ import annotations

import functools
import random
import time
from typing import Any, Callable, Tuple, Type

from hiremind.log import get_logger

log = get_logger(__name__)

Attempts = int | Callable[[Any], int]


def backoff_delay(attempt: int, base_delay: float, backoff_factor: float, max_delay: float, jitter: bool) -> float:
    """Delay before retry number *attempt* (1-based), capped at *max_delay*."""
    delay = min(base_delay * backoff_factor ** (attempt - 1), max_delay)
    return delay * (0.5 + random.random()) if jitter else delay


def retry(
    *,
    max_attempts: Attempts = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] | None = None,
) -> Callable:
    """Retry the wrapped call on *retryable* exceptions.

    *max_attempts* may be a callable taking the bound instance (first
    positional argument), so a client can read its own configured attempt
    count.  Other exceptions propagate immediately; the last retryable one is
    re-raised once attempts run out.
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            limit = max_attempts(args[0]) if callable(max_attempts) else max_attempts
            limit = max(int(limit), 1)
            attempt = 1
            while True:
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    if attempt >= limit:
                        log.error("%s gave up after %d attempt(s): %s", fn.__qualname__, limit, exc)
                        raise
                    delay = backoff_delay(attempt, base_delay, backoff_factor, max_delay, jitter)
                    log.warning(
                        "%s attempt %d/%d failed (%s); retrying in %.1fs",
                        fn.__qualname__, attempt, limit, exc, delay,
                    )
                    (sleep or time.sleep)(delay)
                    attempt += 1

        return wrapper

    return decorator
