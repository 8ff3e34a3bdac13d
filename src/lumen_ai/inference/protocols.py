"""Backend client protocol: the only backend-specific seam in the package."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, runtime_checkable

FinishReason = Literal["stop", "length", "error"]


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def of(cls, input_tokens: int, output_tokens: int) -> TokenUsage:
        return cls(input_tokens, output_tokens, input_tokens + output_tokens)


@dataclass
class BackendResponse:
    """Normalized answer from one backend call."""

    content: str
    finish_reason: FinishReason = "stop"
    usage: TokenUsage = field(default_factory=TokenUsage)


@runtime_checkable
class IBackendClient(Protocol):
    """Protocol for per-family AI backend clients.

    Implementations translate backend failures into
    :class:`~lumen_ai.exceptions.RetryableError` or
    :class:`~lumen_ai.exceptions.NonRetryableError` so the orchestrator can
    decide whether to move down the fallback chain or stop.
    """

    async def complete(
        self,
        model_id: str,
        messages: list[dict[str, Any]],
        **params: Any,
    ) -> BackendResponse:
        """Run a single completion.

        Args:
            model_id: Backend model identifier, without routing prefix.
            messages: Chat messages in OpenAI format.
            **params: ``max_tokens``, ``temperature``, ``top_p`` and friends.

        Returns:
            BackendResponse with content, usage and a normalized finish reason.
        """
        ...
