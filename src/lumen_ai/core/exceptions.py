"""Exception hierarchy for lumen-ai.

Re-exports the base exceptions and adds the ones used by the generation
and step layers.
"""

from __future__ import annotations

from lumen_ai.exceptions import (
    AllProvidersExhaustedError,
    CircuitOpenError,
    ContextBuildError,
    LLMClientError,
    LumenError,
    NonRetryableError,
    PersistenceError,
    ProviderConfigError,
    ProviderTimeoutError,
    RateLimitExceededError,
    RetryableError,
    StepError,
)


class UnitGenerationError(LumenError):
    """Raised by a unit generator when a single unit cannot be produced."""


__all__ = [
    "LumenError",
    "ContextBuildError",
    "LLMClientError",
    "RetryableError",
    "NonRetryableError",
    "RateLimitExceededError",
    "ProviderTimeoutError",
    "CircuitOpenError",
    "ProviderConfigError",
    "AllProvidersExhaustedError",
    "PersistenceError",
    "StepError",
    "UnitGenerationError",
]
