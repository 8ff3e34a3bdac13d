"""Backend clients: protocol, LiteLLM implementation and factory."""

from __future__ import annotations

from lumen_ai.inference.factory import create_backend_client
from lumen_ai.inference.litellm_client import LiteLLMBackendClient
from lumen_ai.inference.protocols import BackendResponse, IBackendClient, TokenUsage

__all__ = [
    "BackendResponse",
    "IBackendClient",
    "LiteLLMBackendClient",
    "TokenUsage",
    "create_backend_client",
]
