"""Context protocols: contracts for context builders and caches."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lumen_ai.context.models import (
    CacheStatistics,
    CacheStatus,
    ContextCollectionOptions,
    ContextPart,
    EnrichedContext,
)


@runtime_checkable
class IContextBuilder(Protocol):
    """Protocol for the collaborator that queries data sources on a cache miss."""

    async def build(self, session_id: str, options: ContextCollectionOptions) -> EnrichedContext:
        """Assemble a fresh context for ``session_id``.

        Args:
            session_id: Opaque analysis session identifier.
            options: Which data sources to consult.

        Returns:
            EnrichedContext with metadata derived from the populated parts.

        Raises:
            ContextBuildError: When any consulted data source fails.
        """
        ...


@runtime_checkable
class IContextCache(Protocol):
    """Protocol for session-keyed enriched-context caches."""

    async def get_or_update(
        self,
        session_id: str,
        options: ContextCollectionOptions | None = None,
        force_refresh: bool = False,
    ) -> EnrichedContext:
        ...

    async def invalidate_context_part(self, session_id: str, part: ContextPart) -> bool:
        ...

    async def invalidate(self, session_id: str) -> None:
        ...

    async def clear_all(self) -> None:
        ...

    async def preload(self, session_id: str, options: ContextCollectionOptions | None = None) -> None:
        ...

    def statistics(self) -> CacheStatistics:
        ...

    def cache_status(self, session_id: str) -> CacheStatus | None:
        ...
