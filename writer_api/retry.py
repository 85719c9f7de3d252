from __future__ import annotations
import logging
import random
import time
from typing import Callable, Optional, Tuple, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")

QUOTA_MARKERS: Tuple[str, ...] = (
    "exceeded your current quota",
    "billing details",
    "insufficient_quota",
)

QUOTA_MESSAGE = (
    "OpenAI API quota exceeded. Please check your billing details at "
    "https://platform.openai.com/account/billing"
)


class QuotaExceededError(Exception):
    """Provider reported an exhausted quota or a billing problem. Never retried."""

    def __init__(self, message: str = QUOTA_MESSAGE):
        super().__init__(message)


class RetryExhaustedError(Exception):
    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"Failed after {attempts} attempts. Last error: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def is_quota_error(exc: BaseException) -> bool:
    if isinstance(exc, QuotaExceededError):
        return True
    msg = str(exc).lower()
    return any(marker in msg for marker in QUOTA_MARKERS)


def backoff_delay(attempt: int, initial_delay: float, max_delay: float, jitter: float) -> float:
    """Delay before retry number ``attempt + 1`` (attempt is zero-based)."""
    return min(initial_delay * (2 ** attempt) + jitter, max_delay)


def with_retry(
    operation: Callable[[], T],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 10.0,
    *,
    retryable: Optional[Callable[[BaseException], bool]] = None,
    sleep: Callable[[float], None] = time.sleep,
    jitter: Callable[[], float] = random.random,
) -> T:
    """Run ``operation`` with bounded exponential backoff.

    Quota errors abort on the first occurrence as QuotaExceededError. Errors the
    ``retryable`` predicate rejects propagate unchanged. Anything else is retried
    up to ``max_attempts`` times, then surfaces as RetryExhaustedError.

    Delays are in seconds; jitter adds up to one second so that concurrent
    callers don't retry in lockstep. ``sleep`` only blocks the calling thread.
    """
    attempts = max(1, int(max_attempts))
    last_error: Optional[BaseException] = None
    for attempt in range(attempts):
        try:
            return operation()
        except Exception as exc:
            if is_quota_error(exc):
                if isinstance(exc, QuotaExceededError):
                    raise
                raise QuotaExceededError() from exc
            if retryable is not None and not retryable(exc):
                raise
            last_error = exc
            if attempt == attempts - 1:
                break
            delay = backoff_delay(attempt, initial_delay, max_delay, jitter())
            log.info("retry: attempt %d failed (%r); retrying in %.2fs", attempt + 1, exc, delay)
            sleep(delay)
    assert last_error is not None
    raise RetryExhaustedError(attempts, last_error) from last_error
