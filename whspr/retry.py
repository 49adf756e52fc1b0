"""Bounded retry for fallible network calls."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from rich.console import Console

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRY_ATTEMPTS = 3


def backoff_delay(attempt: int, base_delay: float = 0.5, max_delay: float = 4.0) -> float:
    """Return the pause before the attempt following ``attempt`` (1-based)."""

    return min(base_delay * (2 ** (attempt - 1)), max_delay)


def with_retry(
    operation: Callable[[], T],
    max_attempts: int = RETRY_ATTEMPTS,
    label: str = "operation",
    *,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    base_delay: float = 0.5,
    max_delay: float = 4.0,
    verbose: bool = False,
    console: Optional[Console] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> T:
    """Call ``operation`` until it succeeds or ``max_attempts`` calls have failed.

    Attempts run one after another. Exceptions outside ``retry_on`` propagate
    immediately; once the budget is spent the last failure is re-raised unchanged.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except retry_on as exc:
            logger.debug("%s failed (attempt %d/%d): %s", label, attempt, max_attempts, exc)
            if verbose and console is not None:
                console.print(
                    f"{label} failed (attempt {attempt}/{max_attempts}): {exc}",
                    style="dim",
                    markup=False,
                    highlight=False,
                )
            if attempt == max_attempts:
                raise
            (sleep or time.sleep)(backoff_delay(attempt, base_delay, max_delay))

    raise AssertionError("unreachable")  # pragma: no cover
