"""lumen-ai: AI request orchestration and enriched-context caching.

Typical wiring::

    settings = AppSettings()
    validate_settings(settings)
    setup_logging(settings.observability)

    orchestrator = create_orchestrator(settings, usage_accountant=MemoryUsageAccountant())
    cache = create_context_cache(my_builder, settings)
    store = create_analysis_store(settings)
    dispatcher = create_step_dispatcher(settings, cache, orchestrator, store)
"""

from __future__ import annotations

from lumen_ai.context.cache import ContextCache, create_context_cache
from lumen_ai.core import AppSettings, validate_settings
from lumen_ai.extraction import extract_structured
from lumen_ai.hooks import setup_logging
from lumen_ai.persistence import create_analysis_store
from lumen_ai.providers import MemoryUsageAccountant, ProviderOrchestrator, create_orchestrator
from lumen_ai.steps import StepDispatcher, create_step_dispatcher

__version__ = "0.1.0"

__all__ = [
    "AppSettings",
    "ContextCache",
    "MemoryUsageAccountant",
    "ProviderOrchestrator",
    "StepDispatcher",
    "create_analysis_store",
    "create_context_cache",
    "create_orchestrator",
    "create_step_dispatcher",
    "extract_structured",
    "setup_logging",
    "validate_settings",
]
