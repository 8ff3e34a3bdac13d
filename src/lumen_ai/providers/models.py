"""Provider registry and completion data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from lumen_ai.inference.protocols import FinishReason, TokenUsage


class BackendFamily(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    CUSTOM = "custom"


class RateLimit(BaseModel):
    model_config = ConfigDict(frozen=True)

    requests_per_minute: int = Field(default=60, gt=0)
    tokens_per_minute: int = Field(default=10_000, gt=0)


class ProviderConfig(BaseModel):
    """Static description of one AI backend binding. Immutable once registered."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    id: str
    name: str = ""
    backend_family: BackendFamily
    model_id: str
    max_tokens: int = Field(default=4096, gt=0)
    cost_per_input_token: float = Field(default=0.0, ge=0.0)
    cost_per_output_token: float = Field(default=0.0, ge=0.0)
    rate_limit: RateLimit = Field(default_factory=RateLimit)
    api_key: Optional[str] = Field(default=None, repr=False)
    api_base: Optional[str] = None

    def cost_of(self, usage: TokenUsage) -> float:
        return (
            usage.input_tokens * self.cost_per_input_token
            + usage.output_tokens * self.cost_per_output_token
        )


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class CompletionRequest(BaseModel):
    """One logical completion, independent of which provider serves it."""

    messages: list[ChatMessage]
    max_tokens: Optional[int] = Field(default=None, gt=0)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    user_id: Optional[str] = None
    timeout: Optional[float] = Field(default=None, gt=0.0)

    @classmethod
    def from_prompt(cls, prompt: str, *, system: str | None = None, **kwargs: object) -> CompletionRequest:
        messages = [ChatMessage(role="system", content=system)] if system else []
        messages.append(ChatMessage(role="user", content=prompt))
        return cls(messages=messages, **kwargs)  # type: ignore[arg-type]

    def wire_messages(self) -> list[dict[str, str]]:
        return [m.model_dump() for m in self.messages]


@dataclass
class CompletionResult:
    """Outcome of one successful provider invocation. Never persisted."""

    content: str
    model: str
    provider_id: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    cost: float = 0.0
    latency_ms: float = 0.0
    finish_reason: FinishReason = "stop"
    attempt_index: int = 0

    @property
    def used_fallback(self) -> bool:
        return self.attempt_index > 0


@dataclass
class FallbackConfig:
    enabled: bool = True
    models: list[str] = field(default_factory=list)
    max_retries: int = 3
    retry_delay: float = 1.0  # seconds
