"""Cost tracking: accumulates token usage and spend per logical request."""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field


@dataclass
class UsageSummary:
    """Accumulated usage for the current request context."""

    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0
    call_count: int = 0
    fallback_count: int = 0
    calls_by_provider: dict[str, int] = field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def fallback_rate(self) -> float:
        """Fraction of successful calls served by a fallback provider."""
        return self.fallback_count / self.call_count if self.call_count > 0 else 0.0


_usage: ContextVar[UsageSummary] = ContextVar("lumen_usage")


def get_current_usage() -> UsageSummary:
    """Get the usage summary for the current request context."""
    try:
        return _usage.get()
    except LookupError:
        summary = UsageSummary()
        _usage.set(summary)
        return summary


def reset_usage() -> UsageSummary:
    """Reset and return a fresh usage tracker for the current context."""
    summary = UsageSummary()
    _usage.set(summary)
    return summary


def record_completion(
    provider_id: str,
    input_tokens: int,
    output_tokens: int,
    cost: float,
    *,
    fallback: bool = False,
) -> UsageSummary:
    """Add one successful completion to the current context's summary."""
    summary = get_current_usage()
    summary.input_tokens += input_tokens
    summary.output_tokens += output_tokens
    summary.cost += cost
    summary.call_count += 1
    if fallback:
        summary.fallback_count += 1
    summary.calls_by_provider[provider_id] = summary.calls_by_provider.get(provider_id, 0) + 1
    return summary
