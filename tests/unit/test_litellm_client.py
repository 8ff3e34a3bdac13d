"""Tests for the LiteLLM backend client and the client factory."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import litellm
import pytest

from lumen_ai.exceptions import (
    NonRetryableError,
    ProviderConfigError,
    ProviderTimeoutError,
    RateLimitExceededError,
    RetryableError,
)
from lumen_ai.inference.factory import create_backend_client
from lumen_ai.inference.litellm_client import LiteLLMBackendClient, normalize_finish_reason
from lumen_ai.inference.protocols import IBackendClient
from tests.fakes.fake_backend import FakeBackendClient


def _mock_response(content: str = "hello", finish_reason: str = "stop") -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.choices[0].finish_reason = finish_reason
    response.usage = MagicMock(prompt_tokens=12, completion_tokens=7, total_tokens=19)
    return response


class TestProtocolCompliance:
    def test_litellm_client_satisfies_protocol(self) -> None:
        assert isinstance(LiteLLMBackendClient("openai"), IBackendClient)

    def test_fake_client_satisfies_protocol(self) -> None:
        assert isinstance(FakeBackendClient(), IBackendClient)


class TestRouting:
    @pytest.mark.parametrize(
        "family,model,expected",
        [
            ("openai", "gpt-4o", "openai/gpt-4o"),
            ("anthropic", "claude-3-opus-20240229", "anthropic/claude-3-opus-20240229"),
            ("google", "gemini-pro", "gemini/gemini-pro"),
            ("custom", "llama3", "openai/llama3"),
            ("openai", "openai/gpt-4o", "openai/gpt-4o"),
        ],
    )
    def test_route(self, family, model, expected) -> None:
        client = LiteLLMBackendClient(family, api_base="http://localhost:8000/v1")
        assert client.route(model) == expected

    def test_unknown_family_rejected(self) -> None:
        with pytest.raises(ProviderConfigError, match="Unsupported backend family"):
            LiteLLMBackendClient("cohere")

    def test_custom_requires_api_base(self) -> None:
        with pytest.raises(ProviderConfigError, match="api_base"):
            LiteLLMBackendClient("custom")


class TestComplete:
    @pytest.mark.asyncio
    async def test_delegates_to_litellm(self) -> None:
        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acomp:
            mock_acomp.return_value = _mock_response("answer")
            client = LiteLLMBackendClient("anthropic", api_key="sk-ant")
            result = await client.complete(
                "claude-3-sonnet-20240229",
                [{"role": "user", "content": "hi"}],
                max_tokens=100,
                temperature=None,
            )

        assert result.content == "answer"
        assert result.finish_reason == "stop"
        assert result.usage.input_tokens == 12
        assert result.usage.output_tokens == 7
        assert result.usage.total_tokens == 19
        kwargs = mock_acomp.call_args.kwargs
        assert kwargs["model"] == "anthropic/claude-3-sonnet-20240229"
        assert kwargs["api_key"] == "sk-ant"
        assert kwargs["max_tokens"] == 100
        assert "temperature" not in kwargs
        assert "api_base" not in kwargs

    @pytest.mark.asyncio
    async def test_custom_endpoint_passes_api_base(self) -> None:
        with patch("litellm.acompletion", new_callable=AsyncMock) as mock_acomp:
            mock_acomp.return_value = _mock_response()
            client = LiteLLMBackendClient("custom", api_base="http://localhost:8000/v1")
            await client.complete("llama3", [{"role": "user", "content": "hi"}])

        assert mock_acomp.call_args.kwargs["api_base"] == "http://localhost:8000/v1"

    @pytest.mark.asyncio
    async def test_none_content_becomes_empty_string(self) -> None:
        response = _mock_response()
        response.choices[0].message.content = None
        with patch("litellm.acompletion", new_callable=AsyncMock, return_value=response):
            result = await LiteLLMBackendClient("openai").complete("gpt-4o", [])
        assert result.content == ""


class TestErrorClassification:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc,expected",
        [
            (
                litellm.exceptions.AuthenticationError(message="bad key", llm_provider="openai", model="gpt-4o"),
                ProviderConfigError,
            ),
            (
                litellm.exceptions.BadRequestError(message="bad request", model="gpt-4o", llm_provider="openai"),
                NonRetryableError,
            ),
            (
                litellm.exceptions.RateLimitError(message="slow down", llm_provider="openai", model="gpt-4o"),
                RateLimitExceededError,
            ),
            (
                litellm.exceptions.Timeout(message="timed out", model="gpt-4o", llm_provider="openai"),
                ProviderTimeoutError,
            ),
            (RuntimeError("connection reset"), RetryableError),
        ],
    )
    async def test_classification(self, exc, expected) -> None:
        with patch("litellm.acompletion", new_callable=AsyncMock, side_effect=exc):
            client = LiteLLMBackendClient("openai", api_key="sk")
            with pytest.raises(expected) as exc_info:
                await client.complete("gpt-4o", [{"role": "user", "content": "hi"}])

        assert exc_info.value.provider_id == "openai"
        assert exc_info.value.model == "gpt-4o"
        assert exc_info.value.__cause__ is exc

    @pytest.mark.asyncio
    async def test_rate_limit_is_retryable(self) -> None:
        exc = litellm.exceptions.RateLimitError(message="429", llm_provider="openai", model="gpt-4o")
        with patch("litellm.acompletion", new_callable=AsyncMock, side_effect=exc):
            with pytest.raises(RetryableError):
                await LiteLLMBackendClient("openai").complete("gpt-4o", [])


class TestFinishReason:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("stop", "stop"),
            ("end_turn", "stop"),
            (None, "stop"),
            ("length", "length"),
            ("max_tokens", "length"),
            ("content_filter", "error"),
        ],
    )
    def test_normalize(self, raw, expected) -> None:
        assert normalize_finish_reason(raw) == expected


class TestFactory:
    def test_default_is_litellm(self) -> None:
        client = create_backend_client("google", api_key="g-key")
        assert isinstance(client, LiteLLMBackendClient)
        assert client.family == "google"

    def test_dotted_path_loads_external_client(self) -> None:
        client = create_backend_client(
            "openai", api_key="k", client_spec="tests.fakes.fake_backend:FakeBackendClient"
        )
        assert isinstance(client, FakeBackendClient)
        assert client.api_key == "k"

    def test_unknown_module_raises_import_error(self) -> None:
        with pytest.raises(ImportError):
            create_backend_client("openai", client_spec="no_such_module_xyz:Client")

    def test_non_callable_rejected(self) -> None:
        with pytest.raises(TypeError, match="not callable"):
            create_backend_client("openai", client_spec="lumen_ai.inference.litellm_client:FAMILY_PREFIXES")
