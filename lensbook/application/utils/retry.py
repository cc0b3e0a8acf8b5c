from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from lensbook.application.exceptions import ConcurrencyConflictError

T = TypeVar("T")

logger = logging.getLogger(__name__)


def retry_on_conflict(operation: Callable[[], T], attempts: int = 3) -> T:
    """
    Run operation, re-running it from scratch when the store reports a
    concurrent write. Each attempt must re-read its snapshot. The last
    ConcurrencyConflictError propagates once attempts are exhausted.
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    attempt = 1
    while True:
        try:
            return operation()
        except ConcurrencyConflictError as e:
            if attempt == attempts:
                logger.warning(
                    "Giving up after concurrent write conflicts",
                    extra={"attempt": attempt, "reason": str(e)},
                )
                raise
            logger.info(
                "Concurrent write conflict, retrying",
                extra={"attempt": attempt, "reason": str(e)},
            )
            attempt += 1
