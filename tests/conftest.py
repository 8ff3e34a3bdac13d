"""Shared fixtures for lumen-ai tests."""

from __future__ import annotations

import pytest

from lumen_ai.core.config import AppSettings, LLMConfig
from lumen_ai.hooks.cost_hook import reset_usage
from lumen_ai.providers.models import FallbackConfig
from lumen_ai.providers.orchestrator import ProviderOrchestrator
from tests.fakes.fake_backend import FakeClientFactory
from tests.fakes.helpers import RecordingSleep, make_provider
from tests.fakes.fake_rate_limit import FakeUsageAccountant


@pytest.fixture(autouse=True)
def _fresh_usage():
    reset_usage()
    yield


@pytest.fixture
def settings() -> AppSettings:
    """Settings with a fake OpenAI key and no real credentials elsewhere."""
    return AppSettings(llm=LLMConfig(openai_api_key="sk-test"))


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def accountant() -> FakeUsageAccountant:
    return FakeUsageAccountant()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def orchestrator(client_factory, accountant, recording_sleep) -> ProviderOrchestrator:
    """Orchestrator with three fake providers a -> b -> c and a three-step fallback chain."""
    orch = ProviderOrchestrator(
        usage_accountant=accountant,
        fallback=FallbackConfig(enabled=True, models=["a", "b", "c"], max_retries=3, retry_delay=1.0),
        client_factory=client_factory,
        sleep=recording_sleep,
    )
    for provider_id in ("a", "b", "c"):
        orch.register_model(make_provider(provider_id))
    return orch
