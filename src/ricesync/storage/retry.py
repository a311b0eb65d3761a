"""Conflict retry/backoff primitives for ricesync.

Implements bounded retry with exponential backoff for mutations rejected
with a write conflict.

Design:
- 3 total attempts by default (1 initial + 2 retries)
- Exponential backoff: base * 2^(attempt - 1), computed before each retry
- No wait before the first attempt
- Optional cap on a single wait and optional overall deadline
- Each attempt returns a tagged AttemptResult; terminal errors raise

Backoff schedule (default base=1s):
  After attempt 1: 1s
  After attempt 2: 2s
  After attempt 3: raise PersistentConflictError
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Final, Generic, TypeVar

from ricesync.storage.errors import (
    PersistentConflictError,
    RetryDeadlineExceededError,
    WriteConflictError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS: Final[int] = 3
DEFAULT_BASE_SECONDS: Final[float] = 1.0


class AttemptOutcome(StrEnum):
    """Outcome of a single mutation attempt."""

    SUCCESS = "success"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class AttemptResult(Generic[T]):
    """Tagged result of one attempt.

    Attributes:
        outcome: Whether the attempt succeeded or hit a retryable conflict.
        value: Return value on success.
        conflict: The conflict error when outcome is CONFLICT.
    """

    outcome: AttemptOutcome
    value: T | None = None
    conflict: WriteConflictError | None = None

    @classmethod
    def success(cls, value: T | None = None) -> AttemptResult[T]:
        return cls(outcome=AttemptOutcome.SUCCESS, value=value)

    @classmethod
    def retryable(cls, conflict: WriteConflictError) -> AttemptResult[T]:
        return cls(outcome=AttemptOutcome.CONFLICT, conflict=conflict)


def compute_backoff_seconds(
    attempt: int,
    base_seconds: float = DEFAULT_BASE_SECONDS,
    cap_seconds: float | None = None,
) -> float:
    """Compute the wait after a conflicting attempt.

    Args:
        attempt: One-based number of the attempt that just conflicted.
        base_seconds: Wait after the first attempt.
        cap_seconds: Optional upper bound on a single wait.

    Returns:
        Seconds to wait before the next attempt.

    Example:
        >>> compute_backoff_seconds(1)
        1.0
        >>> compute_backoff_seconds(3)
        4.0
    """
    if attempt < 1:
        return 0.0

    delay = base_seconds * (2 ** (attempt - 1))
    if cap_seconds is not None:
        delay = min(delay, cap_seconds)
    return float(delay)


def get_retry_schedule(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_seconds: float = DEFAULT_BASE_SECONDS,
    cap_seconds: float | None = None,
) -> list[float]:
    """Return the waits between consecutive attempts.

    There is one wait fewer than there are attempts.
    """
    return [
        compute_backoff_seconds(attempt, base_seconds, cap_seconds)
        for attempt in range(1, max_attempts)
    ]


class ConflictRetryPolicy:
    """Runs an attempt function until it succeeds or conflicts persist.

    The sleep and clock callables are injectable so tests can use a fake
    clock. Waiting is an ordinary awaited sleep and is cancelled with the
    calling task.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_seconds: float = DEFAULT_BASE_SECONDS,
        *,
        cap_seconds: float | None = None,
        deadline_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_seconds = base_seconds
        self.cap_seconds = cap_seconds
        self.deadline_seconds = deadline_seconds
        self._sleep = sleep
        self._clock = clock

    def backoff(self, attempt: int) -> float:
        """Wait after the given conflicting attempt."""
        return compute_backoff_seconds(attempt, self.base_seconds, self.cap_seconds)

    async def run(
        self,
        attempt_fn: Callable[[int], Awaitable[AttemptResult[T]]],
        *,
        path: str,
        operation: str,
    ) -> T | None:
        """Run attempts until success, persistent conflict or a terminal error.

        Args:
            attempt_fn: Called with the one-based attempt number.
            path: Path being mutated (for errors and logs).
            operation: Operation name (for logs).

        Returns:
            The value of the successful attempt.

        Raises:
            PersistentConflictError: If the final attempt still conflicts.
            RetryDeadlineExceededError: If the next wait would pass the deadline.
        """
        started = self._clock()
        last_conflict: WriteConflictError | None = None

        for attempt in range(1, self.max_attempts + 1):
            result = await attempt_fn(attempt)
            if result.outcome == AttemptOutcome.SUCCESS:
                return result.value

            last_conflict = result.conflict
            if attempt == self.max_attempts:
                break

            delay = self.backoff(attempt)
            if self.deadline_seconds is not None:
                elapsed = self._clock() - started
                if elapsed + delay > self.deadline_seconds:
                    logger.error(
                        "Retry deadline reached during %s of %s after %d attempts",
                        operation,
                        path,
                        attempt,
                    )
                    raise RetryDeadlineExceededError(
                        message=f"Retry deadline of {self.deadline_seconds}s exceeded",
                        path=path,
                        attempts=attempt,
                        cause=last_conflict,
                    )

            logger.warning(
                "Conflict during %s of %s. Retrying in %.1fs (%d/%d)",
                operation,
                path,
                delay,
                attempt,
                self.max_attempts,
            )
            await self._sleep(delay)

        logger.error(
            "Persistent conflict during %s of %s after %d attempts",
            operation,
            path,
            self.max_attempts,
        )
        raise PersistentConflictError(
            message=f"Persistent conflict during {operation}: {last_conflict}",
            path=path,
            attempts=self.max_attempts,
            cause=last_conflict,
        )
