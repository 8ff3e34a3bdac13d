"""File-based analysis store: one JSON file per record on the local filesystem."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from pydantic import ValidationError

from lumen_ai.exceptions import PersistenceError
from lumen_ai.persistence.models import AnalysisQuery, AnalysisRecord

log = logging.getLogger(__name__)


class FileAnalysisStore:
    """Stores records as ``<record_id>.json`` in a local directory.

    Disk I/O runs in a worker thread so a slow filesystem never blocks the
    event loop.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)

    def _record_path(self, record_id: str) -> Path:
        safe_id = record_id.replace("/", "_").replace("\\", "_")
        return self._base / f"{safe_id}.json"

    async def save(self, record: AnalysisRecord) -> AnalysisRecord:
        path = self._record_path(record.record_id)
        try:
            await asyncio.to_thread(path.write_text, record.model_dump_json(), encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Failed to save analysis {record.record_id}: {exc}") from exc
        log.debug("Saved analysis %s to %s", record.record_id, path)
        return record

    async def query(self, query: AnalysisQuery) -> list[AnalysisRecord]:
        try:
            records = await asyncio.to_thread(self._load_all)
        except OSError as exc:
            raise PersistenceError(f"Failed to read analyses from {self._base}: {exc}") from exc
        return query.apply(records)

    def _load_all(self) -> list[AnalysisRecord]:
        records: list[AnalysisRecord] = []
        for path in sorted(self._base.glob("*.json")):
            try:
                records.append(AnalysisRecord.model_validate_json(path.read_text(encoding="utf-8")))
            except ValidationError as exc:
                log.warning("Skipping unreadable analysis file %s: %s", path.name, exc)
        return records
