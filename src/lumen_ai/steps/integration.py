"""Cross-step integration: combine the latest result of each workflow step."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from lumen_ai.core.types import JsonDict
from lumen_ai.persistence.models import AnalysisQuery
from lumen_ai.persistence.protocols import IAnalysisStore, latest
from lumen_ai.steps.models import WorkflowStep

# Steps that persist a record; setup only probes providers and warms the cache
INTEGRATION_STEPS: tuple[str, ...] = (
    WorkflowStep.ANALYSIS.value,
    WorkflowStep.QUESTIONS.value,
    WorkflowStep.REPORT.value,
)


@dataclass
class StepContextData:
    step: str
    project_id: str
    result: JsonDict
    key_findings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    confidence: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class IntegratedContext:
    project_id: str
    steps: dict[str, StepContextData] = field(default_factory=dict)
    max_steps: int = len(INTEGRATION_STEPS)

    @property
    def integration_strength(self) -> float:
        return integration_strength(list(self.steps.values()), self.max_steps)


def as_text_list(value: Any) -> list[str]:
    """Coerce a model-produced field to a list of strings; a scalar becomes one item."""
    if value is None:
        return []
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def extract_key_findings(result: Optional[JsonDict]) -> list[str]:
    if not result:
        return []
    if result.get("key_findings") is not None:
        return as_text_list(result["key_findings"])
    findings = as_text_list(result.get("insights"))
    if result.get("summary"):
        findings.append(str(result["summary"]))
    return findings


def extract_recommendations(result: Optional[JsonDict]) -> list[str]:
    if not result:
        return []
    if result.get("recommendations") is not None:
        return as_text_list(result["recommendations"])
    return as_text_list(result.get("action_items"))


def integration_strength(steps: Sequence[StepContextData], max_steps: int = len(INTEGRATION_STEPS)) -> float:
    """``(completion_rate * 0.6 + average_confidence * 0.4) * 100``, 0 when nothing completed."""
    if not steps or max_steps <= 0:
        return 0.0
    completion_rate = min(len(steps) / max_steps, 1.0)
    average_confidence = sum(s.confidence for s in steps) / len(steps)
    return (completion_rate * 0.6 + average_confidence * 0.4) * 100


class StepIntegration:
    """Loads the latest completed record per workflow step from the store.

    Defaults to the steps :class:`StepDispatcher` persists; hosts that record
    their own steps in the same store pass those names instead.
    """

    def __init__(self, store: IAnalysisStore, steps: Sequence[str] = INTEGRATION_STEPS) -> None:
        self._store = store
        self._steps = tuple(steps)

    async def step_results(self, project_id: str, step: str) -> StepContextData | None:
        record = await latest(
            self._store,
            AnalysisQuery(project_id=project_id, workflow_step=step, status="completed"),
        )
        if record is None:
            return None
        return StepContextData(
            step=step,
            project_id=project_id,
            result=record.result,
            key_findings=extract_key_findings(record.result),
            recommendations=extract_recommendations(record.result),
            confidence=record.confidence,
            metadata=dict(record.metadata),
        )

    async def load(self, project_id: str) -> IntegratedContext:
        integrated = IntegratedContext(project_id=project_id, max_steps=len(self._steps))
        for step in self._steps:
            data = await self.step_results(project_id, step)
            if data is not None:
                integrated.steps[step] = data
        return integrated
