"""Bounded retry for operations that lost a race in the store."""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from ims.domain.exceptions import ConcurrencyConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_with_retry(fn: Callable[[], T], attempts: int = 3) -> T:
    """Call ``fn`` again on ConcurrencyConflictError, at most ``attempts`` times.

    ``fn`` must run a whole unit of work so each attempt starts from fresh
    reads.  Any other error propagates immediately.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except ConcurrencyConflictError as exc:
            if attempt == attempts:
                raise
            logger.warning("conflict on attempt %d/%d, retrying: %s", attempt, attempts, exc)
    raise AssertionError("unreachable")
