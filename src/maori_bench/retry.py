"""
Retry wrapper

Retries an operation with exponential backoff and jitter, but only for
transient failures (HTTP 429 or any 5xx status).
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, TypeVar

from maori_bench.domain.constants import (
    RETRIABLE_STATUS_CODES,
    RETRY_BASE_DELAY_SECONDS,
    RETRY_JITTER_SECONDS,
    RETRY_MAX_DELAY_SECONDS,
    SERVER_ERROR_THRESHOLD,
)
from maori_bench.harness_config import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


def status_code_of(error: BaseException) -> int | None:
    """Return the HTTP-like status code carried by an error, if any"""
    for candidate in (
        getattr(error, "status_code", None),
        getattr(error, "status", None),
        getattr(getattr(error, "response", None), "status_code", None),
    ):
        if isinstance(candidate, int) and not isinstance(candidate, bool):
            return candidate
    return None


def is_retriable(error: BaseException) -> bool:
    """True for 429 and any status >= 500; missing status is not retriable"""
    status = status_code_of(error)
    if status is None:
        return False
    return status in RETRIABLE_STATUS_CODES or status >= SERVER_ERROR_THRESHOLD


def with_retry(
    fn: Callable[[], T],
    retries: int,
    *,
    base_delay: float = RETRY_BASE_DELAY_SECONDS,
    max_delay: float = RETRY_MAX_DELAY_SECONDS,
    jitter: float = RETRY_JITTER_SECONDS,
    sleep: Callable[[float], None] | None = None,
) -> T:
    """
    Execute with exponential backoff retry.

    Args:
        fn: The function to retry (a callable with no arguments)
        retries: Number of retries after the first attempt (>= 0)
        base_delay: Delay before the first retry in seconds, doubled after each retry
        max_delay: Upper bound for the doubled delay
        jitter: Upper bound (exclusive) of the uniform random delay added to each wait
        sleep: Sleep function (defaults to time.sleep)

    Returns:
        The return value of fn()

    Raises:
        ValueError: If retries is negative
        Exception: The original exception on a non-retriable failure or once retries are exhausted
    """
    if retries < 0:
        raise ValueError("retries must be at least 0.")
    if sleep is None:
        sleep = time.sleep

    attempt = 0
    delay = base_delay
    while True:
        try:
            return fn()
        except Exception as e:
            attempt += 1
            if not is_retriable(e) or attempt > retries:
                raise
            wait = delay + random.random() * jitter
            logger.warning(
                "Transient failure (status %s), retry %d/%d in %.2fs: %s",
                status_code_of(e), attempt, retries, wait, e,
            )
            sleep(wait)
            delay = min(max_delay, delay * 2)


def retry_with_config(fn: Callable[[], T], config: RetryConfig) -> T:
    """Run with_retry using the harness retry configuration"""
    return with_retry(
        fn,
        config.retries,
        base_delay=config.base_delay_seconds,
        max_delay=config.max_delay_seconds,
        jitter=config.jitter_seconds,
    )
