"""Step dispatcher: run one named workflow step, degrading to a context-free path.

Each step has a context-aware handler and a context-free fallback.  Any
unexpected exception in the handler is logged and the fallback runs instead,
so one failing data source or cache build never blocks the whole workflow.
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from lumen_ai.context.models import EnrichedContext
from lumen_ai.context.protocols import IContextCache
from lumen_ai.context.validation import validate_context
from lumen_ai.exceptions import StepError
from lumen_ai.generation.models import GenerationUnit
from lumen_ai.generation.runner import PhasedGenerationRunner, UnitGenerator, marked_fallback
from lumen_ai.hooks.run_tracker import track_stage
from lumen_ai.persistence.models import AnalysisQuery, AnalysisRecord
from lumen_ai.persistence.protocols import IAnalysisStore, latest
from lumen_ai.providers.orchestrator import ProviderOrchestrator
from lumen_ai.steps.analysis_service import AnalysisOutcome, AnalysisService
from lumen_ai.steps.models import StepRequest, StepResult, WorkflowStep

if TYPE_CHECKING:
    from lumen_ai.core.config import AppSettings

log = logging.getLogger(__name__)

RunnerFactory = Callable[[UnitGenerator], PhasedGenerationRunner]
StepHandler = Callable[[StepRequest], Awaitable[StepResult]]
StepFallback = Callable[[StepRequest, str], Awaitable[StepResult]]

ANALYSIS_TYPES = {
    WorkflowStep.ANALYSIS: "project_analysis",
    WorkflowStep.QUESTIONS: "questions",
    WorkflowStep.REPORT: "final_report",
}


class StepDispatcher:
    """Coordinates the setup -> analysis -> questions -> report workflow."""

    def __init__(
        self,
        cache: IContextCache,
        orchestrator: ProviderOrchestrator,
        analysis_service: AnalysisService,
        store: IAnalysisStore,
        *,
        runner_factory: Optional[RunnerFactory] = None,
    ) -> None:
        self._cache = cache
        self._orchestrator = orchestrator
        self._analysis = analysis_service
        self._store = store
        self._runner_factory: RunnerFactory = runner_factory or functools.partial(
            _default_runner, store=store
        )
        self._handlers: dict[WorkflowStep, tuple[StepHandler, StepFallback]] = {
            WorkflowStep.SETUP: (self._setup, self._setup_without_context),
            WorkflowStep.ANALYSIS: (self._analyze, self._analyze_without_context),
            WorkflowStep.QUESTIONS: (self._questions, self._questions_without_context),
            WorkflowStep.REPORT: (self._report, self._report_without_context),
        }

    async def run_step(self, step: WorkflowStep | str, request: StepRequest) -> StepResult:
        """Run ``step`` for ``request``.

        Raises:
            StepError: If ``step`` is not a known workflow step.
        """
        try:
            workflow_step = WorkflowStep(step)
        except ValueError as exc:
            raise StepError(f"Unknown workflow step: {step!r}", step=step) from exc

        handler, fallback = self._handlers[workflow_step]
        with track_stage(f"step:{workflow_step.value}") as stage:
            try:
                result = await handler(request)
            except Exception as exc:
                reason = str(exc) or type(exc).__name__
                log.warning(
                    "Step %s failed for session %s, falling back to context-free path: %s",
                    workflow_step.value, request.session_id, reason,
                )
                stage.degraded = True
                stage.error = reason
                stage.error_count += 1
                result = await fallback(request, reason)
                result.degraded = True
                result.error = reason
            else:
                stage.success_count += 1
        return result

    # ── setup ────────────────────────────────────────────────────────

    async def _setup(self, request: StepRequest) -> StepResult:
        health = await self._orchestrator.health_check()
        await self._cache.preload(request.session_id, request.options)
        status = self._cache.cache_status(request.session_id)
        return StepResult(
            step=WorkflowStep.SETUP,
            success=any(health.values()),
            data={
                "providers": health,
                "healthy_providers": sum(1 for ok in health.values() if ok),
                "context": status.to_dict() if status is not None else None,
            },
            context_used=status is not None,
        )

    async def _setup_without_context(self, request: StepRequest, reason: str) -> StepResult:
        health = await self._orchestrator.health_check()
        return StepResult(
            step=WorkflowStep.SETUP,
            success=any(health.values()),
            data={"providers": health, "healthy_providers": sum(1 for ok in health.values() if ok)},
        )

    # ── analysis ─────────────────────────────────────────────────────

    async def _analyze(self, request: StepRequest) -> StepResult:
        context = await self._cache.get_or_update(request.session_id, request.options, request.force_refresh)
        validation = validate_context(context)
        if not validation.is_valid:
            log.info("Context for %s has issues: %s", request.session_id, "; ".join(validation.issues))
        outcome = await self._analysis.analyze_project(request, context)
        extra = {
            "context_validation": {
                "is_valid": validation.is_valid,
                "issues": validation.issues,
                "recommendations": validation.recommendations,
            },
            "context_confidence": context.metadata.total_confidence,
        }
        return await self._persist(WorkflowStep.ANALYSIS, request, outcome, context_used=True, metadata=extra)

    async def _analyze_without_context(self, request: StepRequest, reason: str) -> StepResult:
        outcome = await self._analysis.analyze_project(request, None)
        return await self._persist(
            WorkflowStep.ANALYSIS, request, outcome, context_used=False, metadata={"fallback_reason": reason}
        )

    # ── questions ────────────────────────────────────────────────────

    async def _questions(self, request: StepRequest) -> StepResult:
        analysis = await self._latest_result(request, WorkflowStep.ANALYSIS)
        context = await self._cache.get_or_update(request.session_id, request.options)
        outcome = await self._analysis.generate_questions(request, analysis, context)
        return await self._persist(WorkflowStep.QUESTIONS, request, outcome, context_used=True)

    async def _questions_without_context(self, request: StepRequest, reason: str) -> StepResult:
        analysis = await self._latest_result(request, WorkflowStep.ANALYSIS)
        outcome = await self._analysis.generate_questions(request, analysis, None)
        return await self._persist(
            WorkflowStep.QUESTIONS, request, outcome, context_used=False, metadata={"fallback_reason": reason}
        )

    # ── report ───────────────────────────────────────────────────────

    async def _report(self, request: StepRequest) -> StepResult:
        context = await self._cache.get_or_update(request.session_id, request.options)
        return await self._generate_report(request, context)

    async def _report_without_context(self, request: StepRequest, reason: str) -> StepResult:
        return await self._generate_report(request, None)

    async def _generate_report(self, request: StepRequest, context: Optional[EnrichedContext]) -> StepResult:
        analysis = await self._latest_result(request, WorkflowStep.ANALYSIS)
        questions = await self._latest_result(request, WorkflowStep.QUESTIONS)
        units = [GenerationUnit.from_section(section, i) for i, section in enumerate(request.report_sections)]

        generate = functools.partial(
            self._analysis.write_report_section,
            request=request,
            analysis=analysis,
            answers=request.answers,
            context=context,
        )
        progress = await self._runner_factory(generate).run(
            units,
            project_id=request.project_id,
            session_id=request.session_id,
            base_result={"title": "Analysis Report", "questions": questions.get("questions", [])},
            metadata={"context_used": context is not None},
        )
        return StepResult(
            step=WorkflowStep.REPORT,
            success=progress.finalized,
            data={
                "sections": progress.payloads(),
                "success_count": progress.success_count,
                "error_count": progress.error_count,
                "overall_status": progress.overall_status,
                "persistence_error": progress.persistence_error,
            },
            context_used=context is not None,
            record_id=progress.record_id,
        )

    # ── helpers ──────────────────────────────────────────────────────

    async def _latest_result(self, request: StepRequest, step: WorkflowStep) -> dict:
        record = await latest(
            self._store,
            AnalysisQuery(
                project_id=request.project_id,
                workflow_step=step.value,
                analysis_type=ANALYSIS_TYPES[step],
            ),
        )
        return dict(record.result) if record is not None else {}

    async def _persist(
        self,
        step: WorkflowStep,
        request: StepRequest,
        outcome: AnalysisOutcome,
        *,
        context_used: bool,
        metadata: Optional[dict] = None,
    ) -> StepResult:
        record = AnalysisRecord(
            project_id=request.project_id,
            session_id=request.session_id,
            workflow_step=step.value,
            analysis_type=ANALYSIS_TYPES[step],
            status="completed" if outcome.parse_ok else "partial",
            result=outcome.data,
            provider_id=outcome.provider_id,
            model=outcome.model,
            input_tokens=outcome.usage.input_tokens,
            output_tokens=outcome.usage.output_tokens,
            cost=outcome.cost,
            confidence=outcome.confidence,
            metadata={"context_used": context_used, **(metadata or {})},
        )
        saved = await self._store.save(record)
        return StepResult(
            step=step,
            success=outcome.parse_ok,
            data=outcome.data,
            context_used=context_used,
            record_id=saved.record_id,
        )


def _default_runner(generate_unit: UnitGenerator, *, store: IAnalysisStore) -> PhasedGenerationRunner:
    return PhasedGenerationRunner(
        generate_unit,
        store,
        workflow_step=WorkflowStep.REPORT.value,
        analysis_type=ANALYSIS_TYPES[WorkflowStep.REPORT],
    )


def create_step_dispatcher(
    settings: AppSettings,
    cache: IContextCache,
    orchestrator: ProviderOrchestrator,
    store: IAnalysisStore,
) -> StepDispatcher:
    """Wire a dispatcher with generation settings applied."""
    gen = settings.generation
    analysis_service = AnalysisService(
        orchestrator, max_tokens=gen.unit_max_tokens, temperature=gen.unit_temperature
    )

    def runner_factory(generate_unit: UnitGenerator) -> PhasedGenerationRunner:
        return PhasedGenerationRunner(
            generate_unit,
            store,
            fallback_builder=functools.partial(marked_fallback, preview_chars=gen.fallback_preview_chars),
            workflow_step=WorkflowStep.REPORT.value,
            analysis_type=ANALYSIS_TYPES[WorkflowStep.REPORT],
        )

    return StepDispatcher(cache, orchestrator, analysis_service, store, runner_factory=runner_factory)
