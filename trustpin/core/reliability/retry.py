"""
Retry with exponential backoff — the one retry loop for every network call.

Delay before attempt ``n+1`` is ``min(initial * 2**(n-1), max_delay)``
plus a random jitter of up to ``jitter`` times that delay. Only
errors that declare themselves retryable are retried; everything else
propagates on the first failure.

Attempt counters live on a ``RetryState`` owned by the caller, never
on module globals, so concurrent sessions and tests stay isolated.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from trustpin.core.errors import NetworkError, RetryExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(exc: BaseException) -> bool:
    """Whether a failure is worth another attempt."""
    if isinstance(exc, NetworkError):
        return exc.retryable
    return isinstance(exc, (TimeoutError, ConnectionError))


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and backoff shape."""

    max_attempts: int = 3
    initial_delay: float = 2.0
    max_delay: float = 30.0
    jitter: float = 0.3

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")

    def base_delay(self, attempt: int) -> float:
        """Delay after the given (1-based) failed attempt, before jitter."""
        return min(self.initial_delay * (2 ** (attempt - 1)), self.max_delay)


@dataclass
class RetryState:
    """Counters for one retried operation."""

    attempts: int = 0
    delays: list[float] = field(default_factory=list)
    last_error: BaseException | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempts": self.attempts,
            "delays": [round(d, 3) for d in self.delays],
            "last_error": str(self.last_error) if self.last_error else None,
        }


class Retrier:
    """Runs operations under a retry policy.

    ``sleep`` and ``rng`` are injectable so tests can observe the
    backoff schedule without waiting for it.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ):
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._rng = rng or random.Random()

    def call(
        self,
        operation: Callable[[], T],
        description: str = "operation",
        state: RetryState | None = None,
    ) -> T:
        """Run ``operation`` until it succeeds or the budget is spent.

        Raises:
            RetryExhaustedError: every attempt failed with a retryable error.
            Exception: the first non-retryable error, unchanged.
        """
        state = state if state is not None else RetryState()
        policy = self.policy

        while True:
            state.attempts += 1
            try:
                return operation()
            except Exception as e:
                state.last_error = e
                if not is_retryable(e):
                    raise
                if state.attempts >= policy.max_attempts:
                    logger.warning(
                        "%s failed after %d attempts: %s",
                        description, state.attempts, e,
                    )
                    raise RetryExhaustedError(
                        f"{description} failed after {state.attempts} attempts: {e}",
                        attempts=state.attempts,
                        last_error=e,
                    ) from e

                delay = policy.base_delay(state.attempts)
                delay += self._rng.uniform(0, delay * policy.jitter)
                state.delays.append(delay)
                logger.info(
                    "%s failed (attempt %d/%d): %s — retrying in %.1fs",
                    description, state.attempts, policy.max_attempts, e, delay,
                )
                self._sleep(delay)


def with_retry(
    operation: Callable[[], T],
    max_attempts: int = 3,
    initial_delay: float = 2.0,
    max_delay: float = 30.0,
    *,
    description: str = "operation",
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Functional shorthand for a one-off retried call."""
    policy = RetryPolicy(
        max_attempts=max_attempts,
        initial_delay=initial_delay,
        max_delay=max_delay,
    )
    return Retrier(policy, sleep=sleep).call(operation, description)
