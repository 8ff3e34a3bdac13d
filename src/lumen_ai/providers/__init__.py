"""Provider orchestration: model registry, fallback chain, rate limits and usage."""

from __future__ import annotations

from lumen_ai.providers.factory import create_orchestrator, default_models
from lumen_ai.providers.models import (
    BackendFamily,
    ChatMessage,
    CompletionRequest,
    CompletionResult,
    FallbackConfig,
    ProviderConfig,
    RateLimit,
)
from lumen_ai.providers.orchestrator import ProviderOrchestrator
from lumen_ai.providers.rate_limit import (
    IRateLimiter,
    IUsageAccountant,
    MemoryUsageAccountant,
    RateLimitDecision,
    SlidingWindowRateLimiter,
)

__all__ = [
    "BackendFamily",
    "ChatMessage",
    "CompletionRequest",
    "CompletionResult",
    "FallbackConfig",
    "IRateLimiter",
    "IUsageAccountant",
    "MemoryUsageAccountant",
    "ProviderConfig",
    "ProviderOrchestrator",
    "RateLimit",
    "RateLimitDecision",
    "SlidingWindowRateLimiter",
    "create_orchestrator",
    "default_models",
]
