import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from docbatch.logging.logger import Log

T = TypeVar("T")

Backoff = Callable[[int], float]


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Result of a retried call: either a value or the last error."""

    value: T | None
    error: Exception | None
    attempts: int

    @property
    def ok(self) -> bool:
        return self.error is None


def linear_backoff(step_seconds: float) -> Backoff:
    """Wait ``attempt * step`` seconds after failed attempt number ``attempt``."""
    return lambda attempt: attempt * step_seconds


def exponential_backoff(base_seconds: float) -> Backoff:
    """Wait ``2 ** attempt * base`` seconds after failed attempt number ``attempt``."""
    return lambda attempt: (2**attempt) * base_seconds


def _always(_exc: Exception) -> bool:
    return True


def retry_call(
    operation: Callable[[], T],
    *,
    max_attempts: int,
    backoff: Backoff,
    should_retry: Callable[[Exception], bool] = _always,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "operation",
) -> RetryOutcome[T]:
    """Call *operation* until it succeeds or the attempt budget is spent.

    Errors for which *should_retry* is False end the loop immediately.
    Never raises on operation failure; the error is returned in the outcome.
    """
    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return RetryOutcome(value=operation(), error=None, attempts=attempt)
        except Exception as exc:
            if not should_retry(exc):
                Log.warning(f"{label} failed with non-retryable error: {exc}")
                return RetryOutcome(value=None, error=exc, attempts=attempt)
            if attempt == attempts:
                Log.warning(f"{label} failed after {attempt} attempts: {exc}")
                return RetryOutcome(value=None, error=exc, attempts=attempt)
            delay = backoff(attempt)
            Log.warning(
                f"{label} attempt {attempt}/{attempts} failed: {exc}; retrying in {delay:.1f}s"
            )
            sleep(delay)
    raise AssertionError("unreachable")
