"""Exponential backoff with jitter for Shopify API calls.

Retries on transient HTTP errors (429, 500, 502, 503, 504) and transport errors.
Calls that mutate state are only retried when the request was never applied
(429 or a failed connect). Respects Retry-After headers. Logs each retry
attempt. The final failure is re-raised unchanged, so callers see the same
errors with or without retries.
"""

from __future__ import annotations

import functools
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)

# HTTP status codes that trigger a retry
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

# Statuses and transport failures after which a mutating request was not applied
UNAPPLIED_STATUS_CODES = {429}
UNSENT_TRANSPORT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings for outbound Shopify calls."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    jitter: float = 0.3

    @classmethod
    def from_settings(cls, settings) -> RetryPolicy:
        return cls(
            max_retries=max(settings.retry_max_attempts, 0),
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
        )

    def wrap(self, fn: Callable, idempotent: bool = True) -> Callable:
        return retry_with_backoff(
            max_retries=self.max_retries,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            jitter=self.jitter,
            idempotent=idempotent,
        )(fn)


def is_retryable(exc: BaseException, idempotent: bool = True) -> bool:
    """Whether a failed call may be sent again.

    A non-idempotent call is only resent when the server cannot have applied
    it: a 429 rejection, or a connection that was never established.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        codes = RETRYABLE_STATUS_CODES if idempotent else UNAPPLIED_STATUS_CODES
        return exc.response.status_code in codes
    if idempotent:
        return isinstance(exc, (httpx.TransportError, ConnectionError))
    return isinstance(exc, UNSENT_TRANSPORT_ERRORS)


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: float = 0.3,
    idempotent: bool = True,
) -> Callable:
    """Decorator: retry a function with exponential backoff + jitter.

    Args:
        max_retries: Maximum number of retry attempts (0 disables retrying).
        base_delay: Initial delay in seconds.
        max_delay: Maximum delay cap in seconds.
        jitter: Jitter factor (0.0-1.0). Adds randomness to prevent thundering herd.
        idempotent: False for calls that mutate state, such as an inventory
            adjustment. Those are retried only when they provably never landed.
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return fn(*args, **kwargs)
                except (httpx.HTTPError, ConnectionError) as e:
                    if attempt == max_retries or not is_retryable(e, idempotent):
                        raise
                    response = e.response if isinstance(e, httpx.HTTPStatusError) else None
                    delay = _compute_delay(attempt, base_delay, max_delay, jitter, response)
                    reason = (
                        f"HTTP {response.status_code}"
                        if response is not None
                        else f"connection error: {type(e).__name__}"
                    )
                    logger.warning(
                        "Retry %d/%d for %s (%s), waiting %.1fs",
                        attempt + 1,
                        max_retries,
                        fn.__name__,
                        reason,
                        delay,
                    )
                    time.sleep(delay)

        return wrapper

    return decorator


def _compute_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    jitter: float,
    response: httpx.Response | None = None,
) -> float:
    """Compute delay with exponential backoff + jitter, respecting Retry-After."""
    if response is not None:
        retry_after = response.headers.get("Retry-After")
        if retry_after:
            try:
                return min(float(retry_after), max_delay)
            except ValueError:
                pass

    # Exponential backoff: base * 2^attempt
    delay = base_delay * (2**attempt)
    delay = min(delay, max_delay)

    jitter_amount = delay * jitter
    delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.1, delay)
