"""Unit tests for the async retry helper (create_x4.retry)."""

from __future__ import annotations

import pytest

from create_x4.retry import RetryError, backoff_delay, retry_with_backoff


def flaky(failures: int, result="ok", exc_type=ConnectionError):
    """Operation that raises *failures* times before returning *result*."""
    state = {"calls": 0}

    async def operation():
        state["calls"] += 1
        if state["calls"] <= failures:
            raise exc_type(f"boom {state['calls']}")
        return result

    operation.state = state
    return operation


class TestBackoffDelay:
    @pytest.mark.unit
    def test_doubles(self):
        assert [backoff_delay(n, 1.0) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]

    @pytest.mark.unit
    def test_zero_base(self):
        assert backoff_delay(3, 0.0) == 0.0


class TestRetryWithBackoff:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_first_attempt_succeeds(self, no_sleep):
        op = flaky(0)
        assert await retry_with_backoff(op, sleep=no_sleep) == "ok"
        assert op.state["calls"] == 1
        assert no_sleep.delays == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_succeeds_on_last_attempt(self, no_sleep):
        op = flaky(2)
        assert await retry_with_backoff(op, attempts=3, base_delay=1.0, sleep=no_sleep) == "ok"
        assert op.state["calls"] == 3
        assert no_sleep.delays == [1.0, 2.0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_exhausted(self, no_sleep):
        op = flaky(10)
        with pytest.raises(RetryError) as exc_info:
            await retry_with_backoff(op, attempts=3, base_delay=0.5, sleep=no_sleep)

        assert op.state["calls"] == 3
        assert exc_info.value.attempts == 3
        assert str(exc_info.value.last_error) == "boom 3"
        assert "after 3 attempts" in str(exc_info.value)
        # No sleep after the final failure
        assert no_sleep.delays == [0.5, 1.0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_single_attempt_never_sleeps(self, no_sleep):
        with pytest.raises(RetryError):
            await retry_with_backoff(flaky(1), attempts=1, sleep=no_sleep)
        assert no_sleep.delays == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_on_retry_hook(self, no_sleep):
        seen = []
        await retry_with_backoff(
            flaky(1),
            attempts=2,
            base_delay=1.0,
            sleep=no_sleep,
            on_retry=lambda attempt, delay, exc: seen.append((attempt, delay, str(exc))),
        )
        assert seen == [(1, 1.0, "boom 1")]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_retryable_propagates(self, no_sleep):
        op = flaky(1, exc_type=KeyError)
        with pytest.raises(KeyError):
            await retry_with_backoff(op, sleep=no_sleep, retry_on=(ConnectionError,))
        assert op.state["calls"] == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_invalid_attempts(self, no_sleep):
        with pytest.raises(ValueError):
            await retry_with_backoff(flaky(0), attempts=0, sleep=no_sleep)
