"""Analysis persistence: store protocol, memory and file backends, factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from lumen_ai.persistence.memory_backend import MemoryAnalysisStore
from lumen_ai.persistence.models import AnalysisQuery, AnalysisRecord
from lumen_ai.persistence.protocols import IAnalysisStore, latest

if TYPE_CHECKING:
    from lumen_ai.core.config import PersistenceConfig

__all__ = [
    "AnalysisQuery",
    "AnalysisRecord",
    "IAnalysisStore",
    "MemoryAnalysisStore",
    "create_analysis_store",
    "latest",
]


def create_analysis_store(settings: object | None = None) -> IAnalysisStore:
    """Create an analysis store from settings.

    Args:
        settings: An ``AppSettings`` or ``PersistenceConfig`` instance.
            If None, returns a MemoryAnalysisStore.
    """
    config: PersistenceConfig | None = None
    if settings is not None:
        config = getattr(settings, "persistence", None)
        if config is None and hasattr(settings, "backend"):
            config = settings  # type: ignore[assignment]

    if config is None or config.backend == "memory":
        return MemoryAnalysisStore()
    if config.backend == "file":
        from lumen_ai.persistence.file_backend import FileAnalysisStore

        return FileAnalysisStore(config.store_path)
    raise ValueError(f"Unknown persistence backend: {config.backend!r}")
