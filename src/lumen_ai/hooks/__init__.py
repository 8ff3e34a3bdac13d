"""Cross-cutting hooks: logging, usage/cost tracking, circuit breaker, run tracker."""

from __future__ import annotations

from lumen_ai.hooks.circuit_breaker import CircuitBreaker, CircuitState
from lumen_ai.hooks.circuit_breaker_store import IBreakerStore, MemoryBreakerStore
from lumen_ai.hooks.cost_hook import UsageSummary, get_current_usage, record_completion, reset_usage
from lumen_ai.hooks.logging_config import setup_logging
from lumen_ai.hooks.run_tracker import (
    RunAnalytics,
    StageMetrics,
    end_run,
    get_current_run,
    start_run,
    track_stage,
)

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "IBreakerStore",
    "MemoryBreakerStore",
    "RunAnalytics",
    "StageMetrics",
    "UsageSummary",
    "end_run",
    "get_current_run",
    "get_current_usage",
    "record_completion",
    "reset_usage",
    "setup_logging",
    "start_run",
    "track_stage",
]
