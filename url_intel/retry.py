"""Retry utilities for remote enrichment calls (exponential backoff + jitter)."""

from __future__ import annotations

import random
import socket
import time
import urllib.error
from dataclasses import dataclass
from typing import Callable, TypeVar

T = TypeVar("T")

RETRYABLE_HTTP_STATUS = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class RetryPolicy:
    retries: int = 1  # total attempts = 1 + retries
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 5.0
    jitter: float = 0.2


def _sleep_seconds(attempt: int, policy: RetryPolicy) -> float:
    # attempt starts at 1 for the first retry sleep
    delay = min(policy.base_delay_seconds * (2 ** (attempt - 1)), policy.max_delay_seconds)
    factor = 1.0 + random.uniform(-policy.jitter, policy.jitter)
    return max(0.0, delay * factor)


def is_transient_error(e: Exception) -> bool:
    """Rate limits, 5xx responses, timeouts and connection errors are worth retrying."""
    if isinstance(e, urllib.error.HTTPError):
        return e.code in RETRYABLE_HTTP_STATUS
    if isinstance(e, (urllib.error.URLError, socket.timeout, TimeoutError, ConnectionError)):
        return True
    msg = str(e).lower()
    return any(s in msg for s in ("timed out", "timeout", "temporarily"))


def retry_call(
    fn: Callable[[], T],
    policy: RetryPolicy,
    should_retry: Callable[[Exception], bool] = is_transient_error,
) -> T:
    """Call fn, retrying exceptions accepted by should_retry.

    Raises the last exception when all attempts fail.
    """
    attempts = 1 + max(policy.retries, 0)

    for i in range(attempts):
        try:
            return fn()
        except Exception as e:  # noqa: BLE001
            if i == attempts - 1 or not should_retry(e):
                raise
            time.sleep(_sleep_seconds(i + 1, policy))

    raise RuntimeError("retry_call made no attempts")
