"""Phased generation models: units of work, their phases and outcomes."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional, Union

from lumen_ai.core.types import JsonDict


class PhaseStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (PhaseStatus.COMPLETED, PhaseStatus.ERROR)


@dataclass(frozen=True)
class GenerationUnit:
    """One independently generated piece of an aggregate, e.g. a document section."""

    unit_id: str
    title: str
    content: str = ""
    order: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_section(cls, section: JsonDict, index: int) -> GenerationUnit:
        return cls(
            unit_id=str(section.get("id") or f"section-{index + 1}"),
            title=str(section.get("title") or f"Section {index + 1}"),
            content=str(section.get("content") or ""),
            order=int(section.get("order", index)),
        )


@dataclass(frozen=True)
class Ok:
    value: JsonDict

    @property
    def payload(self) -> JsonDict:
        return self.value


@dataclass(frozen=True)
class Degraded:
    """Stand-in payload for a unit whose generation failed."""

    fallback: JsonDict
    reason: str

    @property
    def payload(self) -> JsonDict:
        return self.fallback


UnitOutcome = Union[Ok, Degraded]


@dataclass
class UnitPhase:
    phase: int
    total_phases: int
    unit_id: str
    title: str
    status: PhaseStatus = PhaseStatus.PENDING
    error: Optional[str] = None
    outcome: Optional[UnitOutcome] = None


OverallStatus = Literal["preparing", "generating", "completed", "error"]


@dataclass
class PhaseProgress:
    """Live view of a phased generation run.

    ``current_phase`` is 1-based and never exceeds ``total_phases``.  Errors
    in one phase do not stop later phases; they show up in ``error_count``.
    """

    project_id: str
    phases: list[UnitPhase]
    started_at: datetime
    current_phase: int = 0
    overall_status: OverallStatus = "preparing"
    success_count: int = 0
    error_count: int = 0
    completed_at: Optional[datetime] = None
    finalized: bool = False
    record_id: Optional[str] = None
    persistence_error: Optional[str] = None

    @property
    def total_phases(self) -> int:
        return len(self.phases)

    def outcomes(self) -> list[UnitOutcome]:
        return [p.outcome for p in self.phases if p.outcome is not None]

    def payloads(self) -> list[JsonDict]:
        return [outcome.payload for outcome in self.outcomes()]
