"""
Tests for reliability — retry with exponential backoff.
"""

import random

import pytest

from trustpin.core.errors import NetworkError, RetryExhaustedError
from trustpin.core.reliability.retry import (
    Retrier,
    RetryPolicy,
    RetryState,
    is_retryable,
    with_retry,
)


class Flaky:
    """Fails ``failures`` times with ``error``, then returns ``value``."""

    def __init__(self, failures: int, error: Exception | None = None, value="ok"):
        self.failures = failures
        self.error = error or NetworkError("connection reset")
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.value


# ── Policy ───────────────────────────────────────────────────────────


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert (policy.max_attempts, policy.initial_delay, policy.max_delay) == (3, 2.0, 30.0)

    def test_exponential_base_delay(self):
        policy = RetryPolicy(initial_delay=2.0, max_delay=30.0)
        assert [policy.base_delay(n) for n in (1, 2, 3, 4, 5)] == [2.0, 4.0, 8.0, 16.0, 30.0]

    def test_invalid_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestIsRetryable:
    def test_network_error_flag(self):
        assert is_retryable(NetworkError("timeout"))
        assert not is_retryable(NetworkError("gone", status=404, retryable=False))

    def test_builtin_transients(self):
        assert is_retryable(TimeoutError())
        assert is_retryable(ConnectionResetError())

    def test_other_errors(self):
        assert not is_retryable(ValueError("bug"))


# ── Retrier ──────────────────────────────────────────────────────────


class TestRetrier:
    def _retrier(self, sleeps: list, **policy) -> Retrier:
        return Retrier(RetryPolicy(jitter=0, **policy), sleep=sleeps.append)

    def test_success_first_try(self):
        sleeps: list[float] = []
        state = RetryState()
        assert self._retrier(sleeps).call(Flaky(0), state=state) == "ok"
        assert state.attempts == 1
        assert sleeps == []

    def test_backoff_schedule(self):
        sleeps: list[float] = []
        op = Flaky(2)
        state = RetryState()

        assert self._retrier(sleeps, initial_delay=2.0).call(op, state=state) == "ok"

        assert op.calls == 3
        assert sleeps == [2.0, 4.0]
        assert state.delays == [2.0, 4.0]

    def test_delay_capped(self):
        sleeps: list[float] = []
        self._retrier(sleeps, max_attempts=4, initial_delay=10.0, max_delay=15.0).call(Flaky(3))
        assert sleeps == [10.0, 15.0, 15.0]

    def test_exhausted(self):
        sleeps: list[float] = []
        op = Flaky(10)
        state = RetryState()

        with pytest.raises(RetryExhaustedError) as exc:
            self._retrier(sleeps).call(op, "GET feed", state=state)

        assert op.calls == 3
        assert exc.value.attempts == 3
        assert exc.value.last_error is op.error
        assert "GET feed" in str(exc.value)
        assert state.to_dict()["attempts"] == 3

    def test_non_retryable_raised_immediately(self):
        sleeps: list[float] = []
        error = NetworkError("not found", status=404, retryable=False)
        op = Flaky(5, error=error)

        with pytest.raises(NetworkError) as exc:
            self._retrier(sleeps).call(op)

        assert exc.value is error
        assert op.calls == 1
        assert sleeps == []

    def test_programming_errors_not_retried(self):
        op = Flaky(5, error=KeyError("x"))
        with pytest.raises(KeyError):
            self._retrier([]).call(op)
        assert op.calls == 1

    def test_jitter_bounded(self):
        sleeps: list[float] = []
        retrier = Retrier(
            RetryPolicy(max_attempts=2, initial_delay=2.0, jitter=0.5),
            sleep=sleeps.append,
            rng=random.Random(7),
        )
        retrier.call(Flaky(1))
        assert 2.0 <= sleeps[0] <= 3.0

    def test_states_are_independent(self):
        retrier = self._retrier([])
        first, second = RetryState(), RetryState()
        retrier.call(Flaky(1), state=first)
        retrier.call(Flaky(0), state=second)
        assert (first.attempts, second.attempts) == (2, 1)


class TestWithRetry:
    def test_shorthand(self):
        sleeps: list[float] = []
        op = Flaky(1)
        result = with_retry(op, max_attempts=2, initial_delay=1.0, sleep=sleeps.append)
        assert result == "ok"
        assert op.calls == 2
        assert len(sleeps) == 1

    def test_shorthand_exhausted(self):
        with pytest.raises(RetryExhaustedError):
            with_retry(Flaky(5), max_attempts=2, initial_delay=0, sleep=lambda _: None)
