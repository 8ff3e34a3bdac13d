"""Persisted analysis artifacts and the filter used to load them back."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

RecordStatus = Literal["completed", "partial", "error"]


class AnalysisRecord(BaseModel):
    """One analysis artifact written by a workflow step."""

    model_config = ConfigDict(protected_namespaces=())

    record_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    project_id: str
    session_id: Optional[str] = None
    workflow_step: str
    analysis_type: str
    status: RecordStatus = "completed"
    result: dict[str, Any] = Field(default_factory=dict)
    provider_id: Optional[str] = None
    model: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AnalysisQuery(BaseModel):
    """Filter over stored records. Unset fields match anything; results are newest first."""

    project_id: Optional[str] = None
    session_id: Optional[str] = None
    workflow_step: Optional[str] = None
    analysis_type: Optional[str] = None
    status: Optional[RecordStatus] = None
    limit: Optional[int] = Field(default=None, gt=0)

    def matches(self, record: AnalysisRecord) -> bool:
        for name in ("project_id", "session_id", "workflow_step", "analysis_type", "status"):
            wanted = getattr(self, name)
            if wanted is not None and getattr(record, name) != wanted:
                return False
        return True

    def apply(self, records: list[AnalysisRecord]) -> list[AnalysisRecord]:
        selected = sorted((r for r in records if self.matches(r)), key=lambda r: r.created_at, reverse=True)
        return selected[: self.limit] if self.limit else selected
