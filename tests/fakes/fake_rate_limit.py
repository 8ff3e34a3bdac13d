"""Rate limiter and usage accountant fakes for testing."""

from __future__ import annotations

import asyncio

from lumen_ai.providers.rate_limit import RateLimitDecision


class FakeRateLimiter:
    """Allows or denies every call; records who asked."""

    def __init__(self, *, allow: bool = True) -> None:
        self.allow = allow
        self.checked: list[str] = []

    async def check_and_consume(self, subject_id: str, cost: int = 1) -> RateLimitDecision:
        self.checked.append(subject_id)
        if self.allow:
            return RateLimitDecision(allowed=True)
        return RateLimitDecision(allowed=False, reason="quota exhausted")


class FakeUsageAccountant:
    """Collects usage reports; can be made slow or failing."""

    def __init__(self, *, fail: bool = False, delay: float = 0.0) -> None:
        self.fail = fail
        self.delay = delay
        self.records: list[tuple[str, str, int, int, float]] = []

    async def record(
        self,
        subject_id: str,
        model_id: str,
        input_tokens: int,
        output_tokens: int,
        cost: float,
    ) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("accounting backend down")
        self.records.append((subject_id, model_id, input_tokens, output_tokens, cost))
