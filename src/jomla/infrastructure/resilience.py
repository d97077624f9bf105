"""Retry with exponential backoff, and a circuit breaker, for outbound calls."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import TypeVar

import httpx

from jomla.domain.exceptions import DeadlineExceededError, UnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


def is_retryable_error(exc: BaseException) -> bool:
    if isinstance(exc, (UnavailableError, DeadlineExceededError, httpx.TransportError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return False


def retry_with_backoff(
    fn: Callable[[], T],
    max_attempts: int = 3,
    initial_delay: float = 0.5,
    max_delay: float = 5.0,
    multiplier: float = 2.0,
    is_retryable: Callable[[BaseException], bool] = is_retryable_error,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``fn`` until it succeeds or ``max_attempts`` is used up.

    Only errors accepted by ``is_retryable`` are retried; the last error
    is re-raised unchanged.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    delay = initial_delay
    for attempt in range(1, max_attempts + 1):
        try:
            return fn()
        except Exception as exc:
            if attempt == max_attempts or not is_retryable(exc):
                raise
            logger.warning(
                "Attempt %d/%d failed (%s); retrying in %.2fs",
                attempt,
                max_attempts,
                exc,
                delay,
            )
            sleep(delay)
            delay = min(delay * multiplier, max_delay)
    raise AssertionError("unreachable")


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Fail fast after repeated failures of a downstream dependency.

    ``failure_threshold`` consecutive failures open the circuit; after
    ``reset_timeout`` seconds one trial call is let through (half-open),
    and its outcome closes or re-opens the circuit.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        reset_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self._failure_threshold = failure_threshold
        self._reset_timeout = reset_timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at = 0.0

    @property
    def state(self) -> CircuitState:
        with self._lock:
            if self._state == CircuitState.OPEN and self._cooled_down():
                self._state = CircuitState.HALF_OPEN
            return self._state

    def call(self, fn: Callable[[], T]) -> T:
        if self.state == CircuitState.OPEN:
            raise UnavailableError(f"{self.name} is temporarily unavailable")
        try:
            result = fn()
        except Exception:
            self._record_failure()
            raise
        self._record_success()
        return result

    def _cooled_down(self) -> bool:
        return self._clock() - self._opened_at >= self._reset_timeout

    def _record_success(self) -> None:
        with self._lock:
            if self._state != CircuitState.CLOSED:
                logger.info("Circuit %s closed", self.name)
            self._state = CircuitState.CLOSED
            self._failures = 0

    def _record_failure(self) -> None:
        with self._lock:
            self._failures += 1
            if self._state == CircuitState.HALF_OPEN or self._failures >= self._failure_threshold:
                if self._state != CircuitState.OPEN:
                    logger.warning("Circuit %s opened after %d failure(s)", self.name, self._failures)
                self._state = CircuitState.OPEN
                self._opened_at = self._clock()
