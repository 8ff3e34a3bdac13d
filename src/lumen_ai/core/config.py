"""Nested pydantic-settings configuration for the application.

Each group reads its own ``LUMEN_<GROUP>_*`` env vars::

    export LUMEN_LLM_ANTHROPIC_API_KEY=sk-ant-...
    export LUMEN_ORCHESTRATOR_FALLBACK_MODELS='["claude-3-sonnet", "gpt-4o"]'
    export LUMEN_CONTEXT_CACHE_MAX_ENTRIES=200
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class LLMConfig(BaseSettings):
    """Backend credentials and per-call defaults.

    Env vars use ``LUMEN_LLM_`` prefix.
    """

    model_config = {"env_prefix": "LUMEN_LLM_"}

    default_provider_id: str = "gpt-4o"
    backend_client: str = "litellm"
    temperature: float = 0.7
    top_p: float = 1.0
    call_timeout: float = Field(default=90.0, ge=1.0, le=600.0)
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""
    custom_api_base: str = ""
    custom_api_key: str = ""
    custom_model_id: str = ""


class OrchestratorConfig(BaseSettings):
    """Fallback chain and circuit breaker configuration.

    Env vars use ``LUMEN_ORCHESTRATOR_`` prefix.
    """

    model_config = {"env_prefix": "LUMEN_ORCHESTRATOR_"}

    fallback_enabled: bool = True
    fallback_models: list[str] = Field(default_factory=list)
    max_retries: int = 3
    retry_delay: float = 1.0
    health_check_max_tokens: int = 10
    circuit_breaker_enabled: bool = True
    circuit_breaker_failure_threshold: int = 5
    circuit_breaker_recovery_timeout: float = 60.0


class ContextCacheConfig(BaseSettings):
    """Enriched-context cache configuration.

    Env vars use ``LUMEN_CONTEXT_CACHE_`` prefix.
    """

    model_config = {"env_prefix": "LUMEN_CONTEXT_CACHE_"}

    base_ttl_seconds: float = 30 * 60
    min_ttl_seconds: float = 5 * 60
    max_entries: int = Field(default=100, ge=1)
    sweep_interval_seconds: float = Field(default=5 * 60, gt=0.0)
    single_flight: bool = False


class GenerationConfig(BaseSettings):
    """Phased unit generation configuration.

    Env vars use ``LUMEN_GENERATION_`` prefix.
    """

    model_config = {"env_prefix": "LUMEN_GENERATION_"}

    unit_max_tokens: int = 2000
    unit_temperature: float = 0.7
    fallback_preview_chars: int = 2000


class PersistenceConfig(BaseSettings):
    """Analysis store configuration.

    Env vars use ``LUMEN_PERSISTENCE_`` prefix.
    """

    model_config = {"env_prefix": "LUMEN_PERSISTENCE_"}

    backend: Literal["memory", "file"] = "memory"
    store_path: Path = Path("./analyses")


class ObservabilityConfig(BaseSettings):
    """Logging configuration.

    Env vars use ``LUMEN_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "LUMEN_OBSERVABILITY_"}

    log_level: str = "INFO"
    json_logs: bool | None = None


class AppSettings(BaseSettings):
    """Top-level application settings aggregating all sub-configs.

    Each sub-config reads its own ``LUMEN_<GROUP>_*`` env vars.
    """

    llm: LLMConfig = LLMConfig()
    orchestrator: OrchestratorConfig = OrchestratorConfig()
    context_cache: ContextCacheConfig = ContextCacheConfig()
    generation: GenerationConfig = GenerationConfig()
    persistence: PersistenceConfig = PersistenceConfig()
    observability: ObservabilityConfig = ObservabilityConfig()
