"""Workflow step request/result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from lumen_ai.context.models import ContextCollectionOptions


class WorkflowStep(str, Enum):
    SETUP = "setup"
    ANALYSIS = "analysis"
    QUESTIONS = "questions"
    REPORT = "report"


DEFAULT_REPORT_SECTIONS: list[dict[str, Any]] = [
    {"id": "executive-summary", "title": "Executive Summary", "content": "Overall assessment of the project."},
    {"id": "key-findings", "title": "Key Findings", "content": "Most important observations from the analysis."},
    {"id": "risks", "title": "Risks", "content": "Technical, market and delivery risks with mitigations."},
    {"id": "recommendations", "title": "Recommendations", "content": "Concrete, prioritised actions."},
    {"id": "next-steps", "title": "Next Steps", "content": "What the team should do next and in which order."},
]


class StepRequest(BaseModel):
    """Inputs shared by every workflow step for one analysis session."""

    project_id: str
    session_id: str
    provider_id: str
    user_id: Optional[str] = None
    project_description: str = ""
    documents: list[str] = Field(default_factory=list)
    options: ContextCollectionOptions = Field(default_factory=ContextCollectionOptions)
    force_refresh: bool = False
    answers: dict[str, str] = Field(default_factory=dict)
    report_sections: list[dict[str, Any]] = Field(default_factory=lambda: list(DEFAULT_REPORT_SECTIONS))


@dataclass
class StepResult:
    """Normalized outcome of one workflow step.

    ``degraded`` is True when the context-free path produced the result;
    ``error`` then carries the failure that triggered it.
    """

    step: WorkflowStep
    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    degraded: bool = False
    context_used: bool = False
    error: Optional[str] = None
    record_id: Optional[str] = None
