"""Startup validation: fail-fast on critical misconfigurations."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lumen_ai.core.config import AppSettings

log = logging.getLogger(__name__)


def validate_settings(settings: AppSettings) -> None:
    """Validate application settings at startup. Raises ValueError on fatal misconfig."""
    _check_fallback_chain(settings)
    _check_cache_ttl(settings)
    _check_api_keys(settings)
    _check_persistence(settings)


def _check_fallback_chain(settings: AppSettings) -> None:
    """Reject a chain that could never attempt a fallback."""
    orch = settings.orchestrator
    if orch.max_retries < 1:
        raise ValueError(
            f"LUMEN_ORCHESTRATOR_MAX_RETRIES must be >= 1, got {orch.max_retries}."
        )
    if orch.retry_delay < 0:
        raise ValueError("LUMEN_ORCHESTRATOR_RETRY_DELAY must not be negative.")
    duplicates = {m for m in orch.fallback_models if orch.fallback_models.count(m) > 1}
    if duplicates:
        raise ValueError(
            f"LUMEN_ORCHESTRATOR_FALLBACK_MODELS lists {sorted(duplicates)} more than once."
        )


def _check_cache_ttl(settings: AppSettings) -> None:
    cache = settings.context_cache
    if cache.min_ttl_seconds > cache.base_ttl_seconds:
        raise ValueError(
            "LUMEN_CONTEXT_CACHE_MIN_TTL_SECONDS "
            f"({cache.min_ttl_seconds}) exceeds BASE_TTL_SECONDS ({cache.base_ttl_seconds})."
        )


def _check_api_keys(settings: AppSettings) -> None:
    """Warn when no backend can be registered at all."""
    llm = settings.llm
    if not any((llm.openai_api_key, llm.anthropic_api_key, llm.google_api_key, llm.custom_api_base)):
        log.warning(
            "No AI backend credentials configured. Set LUMEN_LLM_OPENAI_API_KEY, "
            "LUMEN_LLM_ANTHROPIC_API_KEY, LUMEN_LLM_GOOGLE_API_KEY or LUMEN_LLM_CUSTOM_API_BASE; "
            "every completion will fail until a provider is registered."
        )


def _check_persistence(settings: AppSettings) -> None:
    """Warn about file persistence in containerized environments."""
    is_container = bool(
        os.environ.get("ECS_CONTAINER_METADATA_URI")
        or os.environ.get("KUBERNETES_SERVICE_HOST")
    )
    if is_container and settings.persistence.backend == "file":
        log.warning(
            "LUMEN_PERSISTENCE_BACKEND=file in a container environment. "
            "Analyses will be lost on container restart."
        )
