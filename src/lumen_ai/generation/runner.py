"""Sequential phased generation with best-effort continuation."""

from __future__ import annotations

import inspect
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Sequence

from lumen_ai.core.types import JsonDict, MaybeAwaitable
from lumen_ai.generation.models import (
    Degraded,
    GenerationUnit,
    Ok,
    PhaseProgress,
    PhaseStatus,
    UnitPhase,
)
from lumen_ai.persistence.models import AnalysisRecord
from lumen_ai.persistence.protocols import IAnalysisStore

log = logging.getLogger(__name__)

UnitGenerator = Callable[[GenerationUnit], Awaitable[JsonDict]]
FallbackBuilder = Callable[[GenerationUnit, str], JsonDict]
ProgressCallback = Callable[[PhaseProgress], MaybeAwaitable]


def marked_fallback(unit: GenerationUnit, reason: str, *, preview_chars: int = 2000) -> JsonDict:
    """Keep the unit's original content, flagged as not generated."""
    return {
        "unit_id": unit.unit_id,
        "title": unit.title,
        "content": unit.content[:preview_chars],
        "order": unit.order,
        "generation_error": True,
        "error_message": reason,
    }


class PhasedGenerationRunner:
    """Generate units one after another and persist the aggregate once.

    A unit that fails is replaced by ``fallback_builder``'s payload and
    counted in ``error_count``; the run always yields a structurally complete
    aggregate.  The aggregate is written with exactly one ``store.save``; if
    that call fails the progress is returned unfinalized with
    ``overall_status="error"``.
    """

    def __init__(
        self,
        generate_unit: UnitGenerator,
        store: IAnalysisStore,
        *,
        fallback_builder: FallbackBuilder = marked_fallback,
        workflow_step: str = "proposal",
        analysis_type: str = "template_proposal",
    ) -> None:
        self._generate_unit = generate_unit
        self._store = store
        self._fallback_builder = fallback_builder
        self._workflow_step = workflow_step
        self._analysis_type = analysis_type

    async def run(
        self,
        units: Sequence[GenerationUnit],
        *,
        project_id: str,
        session_id: Optional[str] = None,
        base_result: Optional[JsonDict] = None,
        metadata: Optional[dict[str, Any]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PhaseProgress:
        total = len(units)
        progress = PhaseProgress(
            project_id=project_id,
            phases=[
                UnitPhase(phase=i + 1, total_phases=total, unit_id=u.unit_id, title=u.title)
                for i, u in enumerate(units)
            ],
            started_at=datetime.now(timezone.utc),
        )
        progress.overall_status = "generating"

        for i, unit in enumerate(units):
            phase = progress.phases[i]
            progress.current_phase = i + 1
            phase.status = PhaseStatus.IN_PROGRESS
            await self._notify(on_progress, progress)

            try:
                value = await self._generate_unit(unit)
            except Exception as exc:
                reason = str(exc) or type(exc).__name__
                phase.status = PhaseStatus.ERROR
                phase.error = reason
                phase.outcome = Degraded(fallback=self._fallback_builder(unit, reason), reason=reason)
                progress.error_count += 1
                log.warning(
                    "Phase %d/%d (%s) degraded: %s (ok=%d, failed=%d)",
                    i + 1, total, unit.title, reason, progress.success_count, progress.error_count,
                )
            else:
                phase.status = PhaseStatus.COMPLETED
                phase.outcome = Ok(value)
                progress.success_count += 1
                log.info("Phase %d/%d (%s) completed", i + 1, total, unit.title)

            await self._notify(on_progress, progress)

        progress.completed_at = datetime.now(timezone.utc)
        record = self._build_record(progress, session_id, base_result, metadata)
        try:
            saved = await self._store.save(record)
        except Exception as exc:
            progress.overall_status = "error"
            progress.persistence_error = str(exc)
            log.error("Failed to persist %s for project %s: %s", self._analysis_type, project_id, exc)
        else:
            progress.finalized = True
            progress.record_id = saved.record_id
            progress.overall_status = "completed"
            log.info(
                "Generation finished for %s: %d of %d units ok, %d degraded",
                project_id, progress.success_count, total, progress.error_count,
            )

        await self._notify(on_progress, progress)
        return progress

    def _build_record(
        self,
        progress: PhaseProgress,
        session_id: Optional[str],
        base_result: Optional[JsonDict],
        metadata: Optional[dict[str, Any]],
    ) -> AnalysisRecord:
        result = dict(base_result or {})
        result["sections"] = progress.payloads()
        result["generated_at"] = progress.completed_at.isoformat() if progress.completed_at else None

        status = "completed"
        if progress.error_count and progress.success_count:
            status = "partial"
        elif progress.error_count:
            status = "error"

        return AnalysisRecord(
            project_id=progress.project_id,
            session_id=session_id,
            workflow_step=self._workflow_step,
            analysis_type=self._analysis_type,
            status=status,
            result=result,
            metadata={
                "unit_count": progress.total_phases,
                "success_count": progress.success_count,
                "error_count": progress.error_count,
                **(metadata or {}),
            },
        )

    @staticmethod
    async def _notify(callback: Optional[ProgressCallback], progress: PhaseProgress) -> None:
        if callback is None:
            return
        try:
            result = callback(progress)
            if inspect.isawaitable(result):
                await result
        except Exception:
            log.exception("Progress callback failed")
