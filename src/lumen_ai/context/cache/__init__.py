"""Enriched-context caching: factory + in-memory implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from lumen_ai.context.cache.memory import ContextCache
from lumen_ai.context.cache.ttl_policy import compute_ttl
from lumen_ai.context.protocols import IContextBuilder

if TYPE_CHECKING:
    from lumen_ai.core.config import ContextCacheConfig

__all__ = [
    "ContextCache",
    "compute_ttl",
    "create_context_cache",
]


def create_context_cache(builder: IContextBuilder, settings: object | None = None) -> ContextCache:
    """Create a context cache from settings.

    Args:
        builder: Collaborator invoked on cache misses.
        settings: An ``AppSettings`` or ``ContextCacheConfig`` instance.
            If None, returns a ContextCache with defaults.
    """
    config: ContextCacheConfig | None = None

    if settings is not None:
        config = getattr(settings, "context_cache", None)
        if config is None and hasattr(settings, "base_ttl_seconds"):
            config = settings  # type: ignore[assignment]

    if config is None:
        return ContextCache(builder)

    return ContextCache(
        builder,
        base_ttl_seconds=config.base_ttl_seconds,
        min_ttl_seconds=config.min_ttl_seconds,
        max_entries=config.max_entries,
        sweep_interval_seconds=config.sweep_interval_seconds,
        single_flight=config.single_flight,
    )
