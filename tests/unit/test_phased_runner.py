"""Tests for sequential phased generation."""

from __future__ import annotations

import pytest

from lumen_ai.generation import GenerationUnit, PhasedGenerationRunner
from lumen_ai.generation.models import Degraded, Ok, PhaseStatus
from lumen_ai.generation.runner import marked_fallback
from tests.fakes.fake_persistence import FakeAnalysisStore


def _units(n: int = 3) -> list[GenerationUnit]:
    return [
        GenerationUnit(unit_id=f"u{i}", title=f"Section {i}", content=f"original {i}", order=i)
        for i in range(n)
    ]


class ScriptedGenerator:
    """Fails for the unit ids listed in ``fail``; records call order."""

    def __init__(self, fail: set[str] | None = None) -> None:
        self.fail = fail or set()
        self.order: list[str] = []

    async def __call__(self, unit: GenerationUnit) -> dict:
        self.order.append(unit.unit_id)
        if unit.unit_id in self.fail:
            raise RuntimeError(f"model refused {unit.unit_id}")
        return {"unit_id": unit.unit_id, "title": unit.title.upper(), "content": "rewritten"}


class TestRun:
    @pytest.mark.asyncio
    async def test_all_units_succeed(self) -> None:
        store = FakeAnalysisStore()
        generator = ScriptedGenerator()
        progress = await PhasedGenerationRunner(generator, store).run(_units(), project_id="p1", session_id="s1")

        assert generator.order == ["u0", "u1", "u2"]
        assert progress.success_count == 3
        assert progress.error_count == 0
        assert progress.overall_status == "completed"
        assert progress.finalized
        assert progress.current_phase == 3
        assert all(p.status == PhaseStatus.COMPLETED for p in progress.phases)
        assert all(isinstance(o, Ok) for o in progress.outcomes())
        assert store.save_calls == 1
        assert store.saved[0].status == "completed"
        assert progress.record_id == store.saved[0].record_id

    @pytest.mark.asyncio
    async def test_failed_unit_degrades_and_later_units_still_run(self) -> None:
        store = FakeAnalysisStore()
        generator = ScriptedGenerator(fail={"u1"})
        progress = await PhasedGenerationRunner(generator, store).run(_units(), project_id="p1")

        assert generator.order == ["u0", "u1", "u2"]
        assert progress.success_count == 2
        assert progress.error_count == 1
        assert progress.success_count + progress.error_count == progress.total_phases
        assert progress.phases[1].status == PhaseStatus.ERROR
        assert progress.phases[1].error == "model refused u1"

        outcome = progress.phases[1].outcome
        assert isinstance(outcome, Degraded)
        assert outcome.payload["generation_error"] is True
        assert outcome.payload["content"] == "original 1"
        assert outcome.payload["title"] == "Section 1"

        record = store.saved[0]
        assert record.status == "partial"
        assert len(record.result["sections"]) == 3
        assert record.metadata["error_count"] == 1
        assert progress.overall_status == "completed"

    @pytest.mark.asyncio
    async def test_every_unit_failing_still_saves_complete_aggregate(self) -> None:
        store = FakeAnalysisStore()
        progress = await PhasedGenerationRunner(ScriptedGenerator(fail={"u0", "u1"}), store).run(
            _units(2), project_id="p1"
        )

        assert progress.error_count == 2
        assert store.saved[0].status == "error"
        assert [s["unit_id"] for s in store.saved[0].result["sections"]] == ["u0", "u1"]

    @pytest.mark.asyncio
    async def test_save_failure_leaves_run_unfinalized(self) -> None:
        store = FakeAnalysisStore(fail_saves=True)
        progress = await PhasedGenerationRunner(ScriptedGenerator(), store).run(_units(), project_id="p1")

        assert store.save_calls == 1
        assert progress.overall_status == "error"
        assert not progress.finalized
        assert progress.record_id is None
        assert "database unavailable" in progress.persistence_error
        assert progress.success_count == 3

    @pytest.mark.asyncio
    async def test_base_result_and_metadata_are_merged(self) -> None:
        store = FakeAnalysisStore()
        await PhasedGenerationRunner(
            ScriptedGenerator(), store, workflow_step="report", analysis_type="final_report"
        ).run(_units(1), project_id="p1", base_result={"title": "Report"}, metadata={"context_used": True})

        record = store.saved[0]
        assert record.workflow_step == "report"
        assert record.analysis_type == "final_report"
        assert record.result["title"] == "Report"
        assert record.result["generated_at"]
        assert record.metadata["context_used"] is True
        assert record.metadata["unit_count"] == 1

    @pytest.mark.asyncio
    async def test_empty_unit_list(self) -> None:
        store = FakeAnalysisStore()
        progress = await PhasedGenerationRunner(ScriptedGenerator(), store).run([], project_id="p1")
        assert progress.total_phases == 0
        assert progress.finalized
        assert store.saved[0].result["sections"] == []


class TestProgressCallback:
    @pytest.mark.asyncio
    async def test_notified_on_each_transition(self) -> None:
        snapshots: list[tuple[int, str, list[str]]] = []

        def on_progress(progress) -> None:
            snapshots.append(
                (progress.current_phase, progress.overall_status, [p.status.value for p in progress.phases])
            )

        await PhasedGenerationRunner(ScriptedGenerator(fail={"u1"}), FakeAnalysisStore()).run(
            _units(2), project_id="p1", on_progress=on_progress
        )

        assert snapshots == [
            (1, "generating", ["in_progress", "pending"]),
            (1, "generating", ["completed", "pending"]),
            (2, "generating", ["completed", "in_progress"]),
            (2, "generating", ["completed", "error"]),
            (2, "completed", ["completed", "error"]),
        ]

    @pytest.mark.asyncio
    async def test_async_callback_supported(self) -> None:
        seen: list[int] = []

        async def on_progress(progress) -> None:
            seen.append(progress.current_phase)

        await PhasedGenerationRunner(ScriptedGenerator(), FakeAnalysisStore()).run(
            _units(1), project_id="p1", on_progress=on_progress
        )
        assert seen == [1, 1, 1]

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_break_the_run(self) -> None:
        def on_progress(progress) -> None:
            raise ValueError("ui disconnected")

        progress = await PhasedGenerationRunner(ScriptedGenerator(), FakeAnalysisStore()).run(
            _units(2), project_id="p1", on_progress=on_progress
        )
        assert progress.success_count == 2
        assert progress.finalized


class TestMarkedFallback:
    def test_truncates_original_content(self) -> None:
        unit = GenerationUnit(unit_id="u", title="T", content="x" * 50, order=4)
        payload = marked_fallback(unit, "timeout", preview_chars=10)
        assert payload == {
            "unit_id": "u",
            "title": "T",
            "content": "x" * 10,
            "order": 4,
            "generation_error": True,
            "error_message": "timeout",
        }

    def test_from_section_defaults(self) -> None:
        unit = GenerationUnit.from_section({}, 2)
        assert unit.unit_id == "section-3"
        assert unit.title == "Section 3"
        assert unit.order == 2
