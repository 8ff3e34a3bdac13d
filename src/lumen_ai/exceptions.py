"""Exception hierarchy for lumen-ai."""

from __future__ import annotations

from typing import Any


class LumenError(Exception):
    """Base exception for all lumen-ai errors."""


class ContextBuildError(LumenError):
    """Raised by a context builder when a data source fails."""


class LLMClientError(LumenError):
    """Raised when an AI backend call fails."""

    def __init__(self, message: str, *, provider_id: str = "", model: str = "") -> None:
        super().__init__(message)
        self.provider_id = provider_id
        self.model = model


class RetryableError(LLMClientError):
    """Rate limits, timeouts, 5xx: the next candidate may succeed."""


class NonRetryableError(LLMClientError):
    """Auth errors, bad requests, 4xx (non-429): fail immediately."""


class RateLimitExceededError(RetryableError):
    """The rate limiter refused the call (429-equivalent)."""


class ProviderTimeoutError(RetryableError):
    """The backend did not answer within the per-call deadline."""


class CircuitOpenError(RetryableError):
    """The provider's circuit breaker is open."""


class ProviderConfigError(NonRetryableError):
    """Missing credentials, unsupported backend family, or malformed config."""


class AllProvidersExhaustedError(LLMClientError):
    """Every candidate in the fallback chain failed."""

    def __init__(self, message: str, attempts: list[tuple[str, Exception]] | None = None) -> None:
        super().__init__(message)
        self.attempts: list[tuple[str, Exception]] = list(attempts or [])

    @property
    def last_error(self) -> Exception | None:
        return self.attempts[-1][1] if self.attempts else None


class PersistenceError(LumenError):
    """Raised when an analysis store operation fails."""


class StepError(LumenError):
    """Raised for an unknown or malformed workflow step."""

    def __init__(self, message: str, step: Any = None) -> None:
        super().__init__(message)
        self.step = step
