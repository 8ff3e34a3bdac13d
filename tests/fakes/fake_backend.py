"""Scripted backend client for testing."""

from __future__ import annotations

import asyncio
from typing import Any, Union

from lumen_ai.inference.protocols import BackendResponse, TokenUsage

Script = Union[str, BackendResponse, Exception]


class FakeBackendClient:
    """Backend client that plays back scripted responses: no LLM calls needed.

    Each call pops the next item from ``script``; an exception item is raised.
    Once the script runs out, ``default_content`` is returned.
    """

    def __init__(
        self,
        family: str = "openai",
        *,
        api_key: str = "",
        api_base: str = "",
        script: list[Script] | None = None,
        default_content: str = '{"summary": "ok", "confidence": 0.8}',
        delay: float = 0.0,
    ) -> None:
        self.family = family
        self.api_key = api_key
        self.api_base = api_base
        self.script: list[Script] = list(script or [])
        self.default_content = default_content
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        model_id: str,
        messages: list[dict[str, Any]],
        **params: Any,
    ) -> BackendResponse:
        self.calls.append({"model_id": model_id, "messages": messages, "params": params})
        if self.delay:
            await asyncio.sleep(self.delay)
        item: Script = self.script.pop(0) if self.script else self.default_content
        if isinstance(item, Exception):
            raise item
        if isinstance(item, BackendResponse):
            return item
        return BackendResponse(content=item, usage=TokenUsage.of(100, 50))


class FakeClientFactory:
    """Client factory that hands out one FakeBackendClient per registered model.

    Pre-seed ``clients`` by api_key to script a specific model; unknown keys
    get a fresh default client.
    """

    def __init__(self) -> None:
        self.clients: dict[str, FakeBackendClient] = {}

    def __call__(self, family: str, *, api_key: str = "", api_base: str = "") -> FakeBackendClient:
        client = self.clients.get(api_key)
        if client is None:
            client = FakeBackendClient(family, api_key=api_key, api_base=api_base)
            self.clients[api_key] = client
        return client
