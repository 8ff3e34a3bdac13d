"""Per-provider circuit breaker: skip a backend after repeated failures."""

from __future__ import annotations

import logging
import time
from enum import Enum

from lumen_ai.core.types import Clock
from lumen_ai.exceptions import CircuitOpenError
from lumen_ai.hooks.circuit_breaker_store import IBreakerStore, MemoryBreakerStore

log = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, block calls
    HALF_OPEN = "half_open"  # Testing if the backend recovered


class CircuitBreaker:
    """Tracks consecutive failures for one provider id.

    Transitions CLOSED -> OPEN after ``failure_threshold`` failures, then
    OPEN -> HALF_OPEN once ``recovery_timeout_seconds`` have passed since the
    last failure.  A success in any state closes the circuit again.

    The orchestrator calls :meth:`before_call` ahead of each backend call and
    :meth:`record_success` / :meth:`record_failure` afterwards.  Only
    retryable backend failures count; configuration errors say nothing about
    the backend's health.
    """

    def __init__(
        self,
        key: str,
        *,
        failure_threshold: int = 5,
        recovery_timeout_seconds: float = 60.0,
        store: IBreakerStore | None = None,
        clock: Clock = time.monotonic,
    ) -> None:
        self._key = key
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout_seconds
        self._clock = clock
        self._store: IBreakerStore = store if store is not None else MemoryBreakerStore(clock)
        self._state = CircuitState.CLOSED

    @property
    def key(self) -> str:
        return self._key

    @property
    def state(self) -> CircuitState:
        if self._state == CircuitState.OPEN:
            elapsed = self._clock() - self._store.get_last_failure_time(self._key)
            if elapsed >= self._recovery_timeout:
                self._state = CircuitState.HALF_OPEN
                log.info("Circuit breaker %s -> HALF_OPEN (recovery timeout elapsed)", self._key)
        return self._state

    def before_call(self) -> None:
        """Raise :class:`CircuitOpenError` while the circuit is open."""
        if self.state == CircuitState.OPEN:
            failures = self._store.get_failure_count(self._key)
            raise CircuitOpenError(
                f"Circuit breaker OPEN for {self._key}: {failures} consecutive failures. "
                f"Retry after {self._recovery_timeout}s.",
                provider_id=self._key,
            )

    def record_failure(self) -> None:
        count = self._store.record_failure(self._key)
        if self._state == CircuitState.HALF_OPEN or count >= self._failure_threshold:
            if self._state != CircuitState.OPEN:
                log.warning("Circuit breaker %s -> OPEN after %d failures", self._key, count)
            self._state = CircuitState.OPEN

    def record_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            log.info("Circuit breaker %s -> CLOSED (successful call in half-open)", self._key)
        self._store.reset(self._key)
        self._state = CircuitState.CLOSED

    def reset(self) -> None:
        """Manually reset the circuit breaker to CLOSED."""
        self._store.reset(self._key)
        self._state = CircuitState.CLOSED
