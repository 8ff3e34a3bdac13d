"""Analysis store protocol: the persistence collaborator of the step layer."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lumen_ai.persistence.models import AnalysisQuery, AnalysisRecord


@runtime_checkable
class IAnalysisStore(Protocol):
    """Protocol for analysis stores (memory, file, or the host application's database)."""

    async def save(self, record: AnalysisRecord) -> AnalysisRecord:
        """Persist ``record`` in one call and return it as stored.

        Raises:
            PersistenceError: If the record could not be written.
        """
        ...

    async def query(self, query: AnalysisQuery) -> list[AnalysisRecord]:
        """Return matching records, newest first."""
        ...


async def latest(store: IAnalysisStore, query: AnalysisQuery) -> AnalysisRecord | None:
    """Newest record matching ``query``, or None."""
    records = await store.query(query.model_copy(update={"limit": 1}))
    return records[0] if records else None
