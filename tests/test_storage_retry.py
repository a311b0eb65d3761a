"""Tests for conflict retry/backoff primitives."""

from __future__ import annotations

from typing import Any

import pytest

from ricesync.storage.errors import (
    PersistentConflictError,
    RetryDeadlineExceededError,
    TransportError,
    WriteConflictError,
)
from ricesync.storage.retry import (
    DEFAULT_BASE_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    AttemptOutcome,
    AttemptResult,
    ConflictRetryPolicy,
    compute_backoff_seconds,
    get_retry_schedule,
)


class FakeClock:
    """Monotonic clock advanced by the recording sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.delays: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.delays.append(delay)
        self.now += delay


def conflicting_attempts(conflicts: int, value: Any = "done") -> tuple[list[int], Any]:
    """Build an attempt function that conflicts `conflicts` times, then succeeds."""
    seen: list[int] = []

    async def attempt(number: int) -> AttemptResult[Any]:
        seen.append(number)
        if number <= conflicts:
            return AttemptResult.retryable(WriteConflictError(path="rices/r1/data"))
        return AttemptResult.success(value)

    return seen, attempt


class TestComputeBackoffSeconds:
    """Tests for compute_backoff_seconds."""

    def test_exponential_backoff(self) -> None:
        """Waits double after each conflicting attempt."""
        assert compute_backoff_seconds(1) == DEFAULT_BASE_SECONDS
        assert compute_backoff_seconds(2) == DEFAULT_BASE_SECONDS * 2
        assert compute_backoff_seconds(3) == DEFAULT_BASE_SECONDS * 4

    def test_attempt_below_one_returns_zero(self) -> None:
        assert compute_backoff_seconds(0) == 0.0
        assert compute_backoff_seconds(-3) == 0.0

    def test_custom_base_and_cap(self) -> None:
        assert compute_backoff_seconds(1, base_seconds=0.5) == 0.5
        assert compute_backoff_seconds(4, base_seconds=0.5, cap_seconds=2.0) == 2.0

    def test_returns_float(self) -> None:
        assert isinstance(compute_backoff_seconds(2, base_seconds=3), float)


class TestRetrySchedule:
    """Tests for get_retry_schedule."""

    def test_default_schedule(self) -> None:
        """Three attempts: waits of 1s and 2s, nothing after the last."""
        assert DEFAULT_MAX_ATTEMPTS == 3
        assert get_retry_schedule() == [1.0, 2.0]

    def test_single_attempt_has_no_waits(self) -> None:
        assert get_retry_schedule(max_attempts=1) == []

    def test_capped_schedule(self) -> None:
        assert get_retry_schedule(max_attempts=5, cap_seconds=3.0) == [1.0, 2.0, 3.0, 3.0]


class TestAttemptResult:
    def test_success_carries_value(self) -> None:
        result = AttemptResult.success(42)

        assert result.outcome == AttemptOutcome.SUCCESS
        assert result.value == 42
        assert result.conflict is None

    def test_retryable_carries_conflict(self) -> None:
        conflict = WriteConflictError(path="a/b")
        result: AttemptResult[None] = AttemptResult.retryable(conflict)

        assert result.outcome == AttemptOutcome.CONFLICT
        assert result.conflict is conflict


class TestConflictRetryPolicy:
    """Tests for ConflictRetryPolicy.run."""

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            ConflictRetryPolicy(max_attempts=0)

    @pytest.mark.asyncio
    async def test_first_success_does_not_wait(self) -> None:
        clock = FakeClock()
        policy = ConflictRetryPolicy(sleep=clock.sleep, clock=clock)
        seen, attempt = conflicting_attempts(0)

        result = await policy.run(attempt, path="rices/r1/data", operation="write")

        assert result == "done"
        assert seen == [1]
        assert clock.delays == []

    @pytest.mark.asyncio
    async def test_conflicts_then_success(self) -> None:
        clock = FakeClock()
        policy = ConflictRetryPolicy(sleep=clock.sleep, clock=clock)
        seen, attempt = conflicting_attempts(2)

        result = await policy.run(attempt, path="rices/r1/data", operation="write")

        assert result == "done"
        assert seen == [1, 2, 3]
        assert clock.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_persistent_conflict_after_max_attempts(self) -> None:
        clock = FakeClock()
        policy = ConflictRetryPolicy(sleep=clock.sleep, clock=clock)
        seen, attempt = conflicting_attempts(3)

        with pytest.raises(PersistentConflictError) as exc_info:
            await policy.run(attempt, path="rices/r1/data", operation="write")

        assert seen == [1, 2, 3]
        assert clock.delays == [1.0, 2.0]
        assert exc_info.value.attempts == 3
        assert exc_info.value.path == "rices/r1/data"
        assert isinstance(exc_info.value.cause, WriteConflictError)
        assert not isinstance(exc_info.value, RetryDeadlineExceededError)

    @pytest.mark.asyncio
    async def test_terminal_error_propagates_without_retry(self) -> None:
        clock = FakeClock()
        policy = ConflictRetryPolicy(sleep=clock.sleep, clock=clock)
        calls: list[int] = []

        async def attempt(number: int) -> AttemptResult[None]:
            calls.append(number)
            raise TransportError(message="unauthorized", status_code=401)

        with pytest.raises(TransportError):
            await policy.run(attempt, path="rices/r1/data", operation="write")

        assert calls == [1]
        assert clock.delays == []

    @pytest.mark.asyncio
    async def test_custom_attempts_and_base(self) -> None:
        clock = FakeClock()
        policy = ConflictRetryPolicy(
            max_attempts=4, base_seconds=0.25, sleep=clock.sleep, clock=clock
        )
        seen, attempt = conflicting_attempts(3)

        await policy.run(attempt, path="x", operation="delete")

        assert seen == [1, 2, 3, 4]
        assert clock.delays == [0.25, 0.5, 1.0]

    @pytest.mark.asyncio
    async def test_deadline_stops_before_overrunning_wait(self) -> None:
        """With a 2s deadline the 1s wait fits but 1s + 2s does not."""
        clock = FakeClock()
        policy = ConflictRetryPolicy(deadline_seconds=2.0, sleep=clock.sleep, clock=clock)
        seen, attempt = conflicting_attempts(3)

        with pytest.raises(RetryDeadlineExceededError) as exc_info:
            await policy.run(attempt, path="rices/r1/data", operation="write")

        assert seen == [1, 2]
        assert clock.delays == [1.0]
        assert exc_info.value.attempts == 2
        assert isinstance(exc_info.value, PersistentConflictError)

    @pytest.mark.asyncio
    async def test_generous_deadline_does_not_interfere(self) -> None:
        clock = FakeClock()
        policy = ConflictRetryPolicy(deadline_seconds=60.0, sleep=clock.sleep, clock=clock)
        _, attempt = conflicting_attempts(2)

        assert await policy.run(attempt, path="x", operation="write") == "done"
        assert clock.delays == [1.0, 2.0]
