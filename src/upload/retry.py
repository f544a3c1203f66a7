# src/upload/retry.py — v1
"""Retry policy with exponential backoff for storage writes.

Only transient UploadFailures are retried; anything else is raised on
the first attempt.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from listingmedia.core.errors import UploadFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for storage writes."""

    max_retries: int = 2
    base_delay_s: float = 1.0
    backoff_factor: float = 2.0
    jitter: bool = True


def compute_delay(config: RetryConfig, attempt: int) -> float:
    """Compute delay for a given attempt (0-based)."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    config: RetryConfig | None = None,
    label: str = "upload",
    **kwargs: Any,
) -> T:
    """Execute an async storage call, retrying transient UploadFailures.

    Raises:
        UploadFailure: The last failure, once retries are exhausted or
            the failure is not transient.
    """
    config = config or RetryConfig()
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except UploadFailure as e:
            attempts += 1
            if not e.transient or attempts > config.max_retries:
                raise

            delay = compute_delay(config, attempts - 1)
            logger.warning(
                "%s failed (attempt %d/%d): %s, retrying in %.1fs",
                label, attempts, config.max_retries + 1, e, delay,
            )
            await asyncio.sleep(delay)
