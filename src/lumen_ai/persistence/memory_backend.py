"""In-memory analysis store: for testing and single-process use."""

from __future__ import annotations

from lumen_ai.persistence.models import AnalysisQuery, AnalysisRecord


class MemoryAnalysisStore:
    """Keeps records in a dict keyed by ``record_id``."""

    def __init__(self) -> None:
        self._records: dict[str, AnalysisRecord] = {}

    async def save(self, record: AnalysisRecord) -> AnalysisRecord:
        self._records[record.record_id] = record
        return record

    async def query(self, query: AnalysisQuery) -> list[AnalysisRecord]:
        return query.apply(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)
