"""Pluggable circuit breaker state store protocol and in-memory implementation."""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable

from lumen_ai.core.types import Clock


@runtime_checkable
class IBreakerStore(Protocol):
    """Protocol for circuit breaker state storage backends.

    Implementations track consecutive failure counts and timestamps per
    provider id, so breaker state can be shared across orchestrator instances.
    """

    def record_failure(self, key: str) -> int:
        """Record a failure and return the new consecutive failure count."""
        ...

    def get_failure_count(self, key: str) -> int:
        ...

    def get_last_failure_time(self, key: str) -> float:
        """Timestamp of the most recent failure, on the store's clock."""
        ...

    def reset(self, key: str) -> None:
        ...


class MemoryBreakerStore:
    """In-process breaker state backed by plain dicts.

    Timestamps come from ``time.monotonic()`` unless a clock is injected.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._counts: dict[str, int] = {}
        self._times: dict[str, float] = {}

    def record_failure(self, key: str) -> int:
        count = self._counts.get(key, 0) + 1
        self._counts[key] = count
        self._times[key] = self._clock()
        return count

    def get_failure_count(self, key: str) -> int:
        return self._counts.get(key, 0)

    def get_last_failure_time(self, key: str) -> float:
        return self._times.get(key, 0.0)

    def reset(self, key: str) -> None:
        self._counts.pop(key, None)
        self._times.pop(key, None)
