"""Orchestrator factory: wires settings and registers the default model set."""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING

from lumen_ai.inference.factory import create_backend_client
from lumen_ai.providers.models import BackendFamily, FallbackConfig, ProviderConfig, RateLimit
from lumen_ai.providers.orchestrator import ClientFactory, ProviderOrchestrator
from lumen_ai.providers.rate_limit import IRateLimiter, IUsageAccountant

if TYPE_CHECKING:
    from lumen_ai.core.config import AppSettings, LLMConfig

log = logging.getLogger(__name__)


def default_models(llm: LLMConfig) -> list[ProviderConfig]:
    """Built-in model catalogue, limited to families with credentials configured."""
    models: list[ProviderConfig] = []

    if llm.openai_api_key:
        models += [
            ProviderConfig(
                id="gpt-4o",
                name="GPT-4o",
                backend_family=BackendFamily.OPENAI,
                model_id="gpt-4o",
                api_key=llm.openai_api_key,
                max_tokens=4096,
                cost_per_input_token=0.000005,
                cost_per_output_token=0.000015,
                rate_limit=RateLimit(requests_per_minute=500, tokens_per_minute=30_000),
            ),
            ProviderConfig(
                id="gpt-4-turbo",
                name="GPT-4 Turbo",
                backend_family=BackendFamily.OPENAI,
                model_id="gpt-4-turbo",
                api_key=llm.openai_api_key,
                max_tokens=4096,
                cost_per_input_token=0.00001,
                cost_per_output_token=0.00003,
                rate_limit=RateLimit(requests_per_minute=500, tokens_per_minute=30_000),
            ),
        ]

    if llm.anthropic_api_key:
        models += [
            ProviderConfig(
                id="claude-3-opus",
                name="Claude 3 Opus",
                backend_family=BackendFamily.ANTHROPIC,
                model_id="claude-3-opus-20240229",
                api_key=llm.anthropic_api_key,
                max_tokens=4096,
                cost_per_input_token=0.000015,
                cost_per_output_token=0.000075,
                rate_limit=RateLimit(requests_per_minute=100, tokens_per_minute=10_000),
            ),
            ProviderConfig(
                id="claude-3-sonnet",
                name="Claude 3 Sonnet",
                backend_family=BackendFamily.ANTHROPIC,
                model_id="claude-3-sonnet-20240229",
                api_key=llm.anthropic_api_key,
                max_tokens=4096,
                cost_per_input_token=0.000003,
                cost_per_output_token=0.000015,
                rate_limit=RateLimit(requests_per_minute=300, tokens_per_minute=20_000),
            ),
        ]

    if llm.google_api_key:
        models.append(
            ProviderConfig(
                id="gemini-pro",
                name="Gemini Pro",
                backend_family=BackendFamily.GOOGLE,
                model_id="gemini-pro",
                api_key=llm.google_api_key,
                max_tokens=2048,
                cost_per_input_token=0.0000005,
                cost_per_output_token=0.0000015,
                rate_limit=RateLimit(requests_per_minute=60, tokens_per_minute=5_000),
            )
        )

    if llm.custom_api_base and llm.custom_model_id:
        models.append(
            ProviderConfig(
                id=llm.custom_model_id,
                name=f"Custom ({llm.custom_model_id})",
                backend_family=BackendFamily.CUSTOM,
                model_id=llm.custom_model_id,
                api_key=llm.custom_api_key or None,
                api_base=llm.custom_api_base,
            )
        )

    return models


def create_orchestrator(
    settings: AppSettings,
    *,
    rate_limiter: IRateLimiter | None = None,
    usage_accountant: IUsageAccountant | None = None,
    client_factory: ClientFactory | None = None,
    register_defaults: bool = True,
) -> ProviderOrchestrator:
    """Build a :class:`ProviderOrchestrator` from settings.

    With ``register_defaults``, every built-in model whose API key is set is
    registered; when none is, the orchestrator starts empty and every
    completion fails until a model is registered.
    """
    orch_cfg = settings.orchestrator
    factory = client_factory or functools.partial(
        create_backend_client, client_spec=settings.llm.backend_client
    )
    orchestrator = ProviderOrchestrator(
        rate_limiter=rate_limiter,
        usage_accountant=usage_accountant,
        fallback=FallbackConfig(
            enabled=orch_cfg.fallback_enabled,
            models=list(orch_cfg.fallback_models),
            max_retries=orch_cfg.max_retries,
            retry_delay=orch_cfg.retry_delay,
        ),
        client_factory=factory,
        call_timeout=settings.llm.call_timeout,
        default_temperature=settings.llm.temperature,
        default_top_p=settings.llm.top_p,
        health_check_max_tokens=orch_cfg.health_check_max_tokens,
        circuit_breaker_enabled=orch_cfg.circuit_breaker_enabled,
        failure_threshold=orch_cfg.circuit_breaker_failure_threshold,
        recovery_timeout_seconds=orch_cfg.circuit_breaker_recovery_timeout,
    )

    if register_defaults:
        models = default_models(settings.llm)
        for model in models:
            orchestrator.register_model(model)
        if not models:
            log.warning("No AI API keys configured; no default models registered")

    return orchestrator
