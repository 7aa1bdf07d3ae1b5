"""Bounded retry for object store calls."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TypeVar

from cratecache.errors import CrateCacheError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry(
    call: Callable[[], T],
    *,
    limit: int,
    operation: str,
    exhausted: type[CrateCacheError],
    context: Mapping[str, str] | None = None,
) -> T:
    """Invoke *call* until it succeeds, at most *limit* times.

    Every ``Exception`` counts as a failed attempt. There is no delay between
    attempts. Running out of attempts raises *exhausted* chained to the last
    failure.
    """
    if limit <= 0:
        raise ValueError("retry limit must be positive")
    last_error: Exception | None = None
    for attempt in range(1, limit + 1):
        try:
            return call()
        except Exception as exc:
            last_error = exc
            logger.warning("%s failed (attempt %d/%d): %s", operation, attempt, limit, exc)
    raise exhausted(
        f"Retry limit reached during {operation}.",
        hint="The cache entry was not written; the next run will rebuild and retry.",
        context={
            **dict(context or {}),
            "operation": operation,
            "attempts": str(limit),
            "error": str(last_error),
        },
    ) from last_error
