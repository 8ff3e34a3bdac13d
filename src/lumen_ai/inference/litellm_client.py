"""LiteLLM-backed client for every supported backend family."""

from __future__ import annotations

import logging
from typing import Any

from lumen_ai.exceptions import (
    LLMClientError,
    NonRetryableError,
    ProviderConfigError,
    ProviderTimeoutError,
    RateLimitExceededError,
    RetryableError,
)
from lumen_ai.inference.protocols import BackendResponse, FinishReason, TokenUsage

log = logging.getLogger(__name__)

# LiteLLM routing prefix per backend family; custom endpoints speak the OpenAI API
FAMILY_PREFIXES: dict[str, str] = {
    "openai": "openai/",
    "anthropic": "anthropic/",
    "google": "gemini/",
    "custom": "openai/",
}

_STOP_REASONS = {"stop", "end_turn", "stop_sequence", "tool_calls", "function_call"}
_LENGTH_REASONS = {"length", "max_tokens"}


def normalize_finish_reason(reason: str | None) -> FinishReason:
    if reason is None or reason in _STOP_REASONS:
        return "stop"
    if reason in _LENGTH_REASONS:
        return "length"
    return "error"


class LiteLLMBackendClient:
    """Backend client bound to one family, calling ``litellm.acompletion()``."""

    def __init__(self, family: str, *, api_key: str = "", api_base: str = "") -> None:
        if family not in FAMILY_PREFIXES:
            raise ProviderConfigError(f"Unsupported backend family: {family!r}")
        if family == "custom" and not api_base:
            raise ProviderConfigError("Custom backend family requires an api_base")
        self._family = family
        self._api_key = api_key
        self._api_base = api_base

    @property
    def family(self) -> str:
        return self._family

    def route(self, model_id: str) -> str:
        """LiteLLM model string for ``model_id``."""
        prefix = FAMILY_PREFIXES[self._family]
        return model_id if model_id.startswith(prefix) else f"{prefix}{model_id}"

    async def complete(
        self,
        model_id: str,
        messages: list[dict[str, Any]],
        **params: Any,
    ) -> BackendResponse:
        from litellm import acompletion

        kwargs: dict[str, Any] = {
            "model": self.route(model_id),
            "messages": messages,
            **{k: v for k, v in params.items() if v is not None},
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._api_base:
            kwargs["api_base"] = self._api_base

        try:
            response = await acompletion(**kwargs)
        except Exception as exc:
            raise self._classify(exc, model_id) from exc

        choice = response.choices[0]
        content = choice.message.content or ""

        usage = TokenUsage()
        if getattr(response, "usage", None):
            prompt = getattr(response.usage, "prompt_tokens", 0) or 0
            completion = getattr(response.usage, "completion_tokens", 0) or 0
            total = getattr(response.usage, "total_tokens", 0) or prompt + completion
            usage = TokenUsage(prompt, completion, total)

        return BackendResponse(
            content=content,
            finish_reason=normalize_finish_reason(choice.finish_reason),
            usage=usage,
        )

    def _classify(self, exc: Exception, model_id: str) -> LLMClientError:
        """Map a LiteLLM exception onto the retryable / non-retryable split.

        Non-retryable: authentication, permission, bad request, not found.
        Retryable (default): rate limits, timeouts, 5xx, connection errors.
        """
        from litellm.exceptions import (
            AuthenticationError,
            BadRequestError,
            NotFoundError,
            PermissionDeniedError,
            RateLimitError,
            Timeout,
        )

        context = {"provider_id": self._family, "model": model_id}
        if isinstance(exc, (AuthenticationError, PermissionDeniedError)):
            return ProviderConfigError(f"Credentials rejected by {self._family}: {exc}", **context)
        if isinstance(exc, (BadRequestError, NotFoundError)):
            return NonRetryableError(f"Non-retryable {self._family} error: {exc}", **context)
        if isinstance(exc, RateLimitError):
            return RateLimitExceededError(f"{self._family} rate limit: {exc}", **context)
        if isinstance(exc, Timeout):
            return ProviderTimeoutError(f"{self._family} timed out: {exc}", **context)
        log.debug("Treating %s from %s as retryable", type(exc).__name__, self._family)
        return RetryableError(f"{self._family} call failed: {exc}", **context)
