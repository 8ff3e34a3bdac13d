"""Tests for cross-step integration and integration strength."""

from __future__ import annotations

import pytest

from lumen_ai.persistence import AnalysisRecord, MemoryAnalysisStore
from lumen_ai.steps import INTEGRATION_STEPS, StepContextData, StepIntegration, WorkflowStep, integration_strength
from lumen_ai.steps.integration import extract_key_findings, extract_recommendations


def _step(name: str, confidence: float) -> StepContextData:
    return StepContextData(step=name, project_id="p1", result={}, confidence=confidence)


class TestIntegrationStrength:
    def test_nothing_completed(self) -> None:
        assert integration_strength([]) == 0.0

    def test_all_steps_fully_confident(self) -> None:
        steps = [_step(f"s{i}", 1.0) for i in range(3)]
        assert integration_strength(steps) == pytest.approx(100.0)

    def test_partial_completion(self) -> None:
        steps = [_step("a", 0.8), _step("b", 0.6)]
        # completion 2/3; avg confidence 0.7
        assert integration_strength(steps) == pytest.approx((2 / 3 * 0.6 + 0.7 * 0.4) * 100)

    def test_completion_rate_capped(self) -> None:
        steps = [_step(f"s{i}", 0.5) for i in range(4)]
        assert integration_strength(steps, max_steps=2) == pytest.approx((1.0 * 0.6 + 0.5 * 0.4) * 100)


class TestExtraction:
    def test_key_findings_preferred(self) -> None:
        assert extract_key_findings({"key_findings": ["a", "b"], "summary": "s"}) == ["a", "b"]

    def test_insights_and_summary_fallback(self) -> None:
        assert extract_key_findings({"insights": "one", "summary": "s"}) == ["one", "s"]

    def test_recommendations(self) -> None:
        assert extract_recommendations({"action_items": ["do x"]}) == ["do x"]
        assert extract_recommendations({"recommendations": "single"}) == ["single"]
        assert extract_recommendations(None) == []


class TestStepIntegration:
    @pytest.mark.asyncio
    async def test_loads_latest_completed_record_per_step(self) -> None:
        store = MemoryAnalysisStore()
        await store.save(
            AnalysisRecord(
                project_id="p1",
                workflow_step="analysis",
                analysis_type="project_analysis",
                result={"key_findings": ["Growing market"], "recommendations": ["Launch in Q2"]},
                confidence=0.9,
            )
        )
        await store.save(
            AnalysisRecord(
                project_id="p1", workflow_step="questions", analysis_type="questions", status="error", confidence=0.1
            )
        )

        integrated = await StepIntegration(store).load("p1")

        assert list(integrated.steps) == ["analysis"]
        analysis = integrated.steps["analysis"]
        assert analysis.key_findings == ["Growing market"]
        assert analysis.recommendations == ["Launch in Q2"]
        assert integrated.max_steps == 3
        assert integrated.integration_strength == pytest.approx((1 / 3 * 0.6 + 0.9 * 0.4) * 100)

    @pytest.mark.asyncio
    async def test_custom_step_list(self) -> None:
        store = MemoryAnalysisStore()
        await store.save(AnalysisRecord(project_id="p1", workflow_step="budget", analysis_type="x", confidence=0.5))

        integrated = await StepIntegration(store, steps=["budget"]).load("p1")

        assert integrated.max_steps == 1
        assert integrated.integration_strength == pytest.approx(80.0)

    def test_default_steps_match_persisted_workflow_steps(self) -> None:
        persisted = {WorkflowStep.ANALYSIS, WorkflowStep.QUESTIONS, WorkflowStep.REPORT}
        assert set(INTEGRATION_STEPS) == {step.value for step in persisted}
