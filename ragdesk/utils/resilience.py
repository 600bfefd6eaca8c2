"""Retry helper for flaky model calls."""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from typing import TypeVar

from ragdesk.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def call_with_retry(
    func: Callable[[int], T],
    *,
    retries: int,
    backoff_in_seconds: float,
    label: str = "call",
) -> T:
    """Call `func(attempt)` until it succeeds or `retries` extra attempts are spent.

    The attempt number (0-based) is passed through so callers can tighten
    their request on later attempts. Sleeps grow exponentially with jitter
    proportional to the base backoff.
    """

    attempt = 0
    while True:
        try:
            return func(attempt)
        except Exception as exc:
            if attempt >= retries:
                logger.error(
                    "Retries exhausted",
                    extra={"context": {"label": label, "attempts": attempt + 1, "error": str(exc)}},
                )
                raise
            sleep = backoff_in_seconds * 2**attempt + random.uniform(0, backoff_in_seconds)
            logger.warning(
                "Attempt failed; retrying",
                extra={
                    "context": {
                        "label": label,
                        "attempt": attempt + 1,
                        "retries_left": retries - attempt,
                        "sleep_seconds": round(sleep, 3),
                        "error": str(exc),
                    }
                },
            )
            if sleep > 0:
                time.sleep(sleep)
            attempt += 1
