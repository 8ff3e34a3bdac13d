"""Rate-limiting and usage-accounting collaborators with in-memory defaults."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

from lumen_ai.core.types import Clock

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    reason: Optional[str] = None


@runtime_checkable
class IRateLimiter(Protocol):
    """Protocol for the rate-limiting collaborator consulted before each call."""

    async def check_and_consume(self, subject_id: str, cost: int = 1) -> RateLimitDecision:
        """Consume ``cost`` units for ``subject_id`` if the budget allows it."""
        ...


@runtime_checkable
class IUsageAccountant(Protocol):
    """Protocol for the usage-accounting collaborator (fire-and-forget)."""

    async def record(
        self,
        subject_id: str,
        model_id: str,
        input_tokens: int,
        output_tokens: int,
        cost: float,
    ) -> None:
        ...


class SlidingWindowRateLimiter:
    """Per-subject sliding window over the last ``window_seconds``."""

    def __init__(
        self,
        max_requests: int = 60,
        *,
        window_seconds: float = 60.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        self._events: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        """Number of subjects with requests still inside the window."""
        return len(self._events)

    def _trim(self, subject_id: str, now: float) -> deque[float] | None:
        events = self._events.get(subject_id)
        if events is None:
            return None
        while events and now - events[0] >= self._window:
            events.popleft()
        if not events:
            del self._events[subject_id]
            return None
        return events

    async def check_and_consume(self, subject_id: str, cost: int = 1) -> RateLimitDecision:
        async with self._lock:
            now = self._clock()
            events = self._trim(subject_id, now)
            used = len(events) if events is not None else 0
            if used + cost > self._max_requests:
                return RateLimitDecision(
                    allowed=False,
                    reason=f"{used}/{self._max_requests} requests in the last {self._window:.0f}s",
                )
            if cost > 0:
                self._events.setdefault(subject_id, deque()).extend([now] * cost)
            return RateLimitDecision(allowed=True)

    async def prune(self) -> int:
        """Drop every subject whose window has emptied; returns how many were dropped."""
        async with self._lock:
            now = self._clock()
            before = len(self._events)
            for subject_id in list(self._events):
                self._trim(subject_id, now)
            return before - len(self._events)


@dataclass
class UsageRecord:
    subject_id: str
    model_id: str
    input_tokens: int
    output_tokens: int
    cost: float
    recorded_at: float = field(default_factory=time.time)


@dataclass
class SubjectTotals:
    requests: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0


class MemoryUsageAccountant:
    """Keeps every usage record in memory along with per-subject totals."""

    def __init__(self) -> None:
        self.records: list[UsageRecord] = []
        self._totals: dict[str, SubjectTotals] = defaultdict(SubjectTotals)

    async def record(
        self,
        subject_id: str,
        model_id: str,
        input_tokens: int,
        output_tokens: int,
        cost: float,
    ) -> None:
        self.records.append(UsageRecord(subject_id, model_id, input_tokens, output_tokens, cost))
        totals = self._totals[subject_id]
        totals.requests += 1
        totals.input_tokens += input_tokens
        totals.output_tokens += output_tokens
        totals.cost += cost
        log.debug("Recorded usage for %s on %s: cost=%.6f", subject_id, model_id, cost)

    def totals_for(self, subject_id: str) -> SubjectTotals:
        return self._totals.get(subject_id, SubjectTotals())
