"""Workflow steps: dispatcher, analysis service and cross-step integration."""

from __future__ import annotations

from lumen_ai.steps.analysis_service import AnalysisOutcome, AnalysisService
from lumen_ai.steps.dispatcher import StepDispatcher, create_step_dispatcher
from lumen_ai.steps.integration import (
    INTEGRATION_STEPS,
    IntegratedContext,
    StepContextData,
    StepIntegration,
    integration_strength,
)
from lumen_ai.steps.models import StepRequest, StepResult, WorkflowStep

__all__ = [
    "AnalysisOutcome",
    "AnalysisService",
    "INTEGRATION_STEPS",
    "IntegratedContext",
    "StepContextData",
    "StepDispatcher",
    "StepIntegration",
    "StepRequest",
    "StepResult",
    "WorkflowStep",
    "create_step_dispatcher",
    "integration_strength",
]
