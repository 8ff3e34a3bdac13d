"""Analysis collaborator: prompt, complete, extract."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from lumen_ai.context.models import EnrichedContext
from lumen_ai.context.validation import summarize_context
from lumen_ai.core.exceptions import UnitGenerationError
from lumen_ai.core.types import JsonDict
from lumen_ai.extraction import extract_structured
from lumen_ai.generation.models import GenerationUnit
from lumen_ai.inference.protocols import TokenUsage
from lumen_ai.prompts import NO_CONTEXT, render
from lumen_ai.providers.models import CompletionRequest
from lumen_ai.providers.orchestrator import ProviderOrchestrator
from lumen_ai.steps.integration import as_text_list
from lumen_ai.steps.models import StepRequest

log = logging.getLogger(__name__)


@dataclass
class AnalysisOutcome:
    data: JsonDict
    provider_id: str
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    cost: float = 0.0
    parse_ok: bool = True

    @property
    def confidence(self) -> float:
        if not self.parse_ok:
            return 0.0
        try:
            value = float(self.data.get("confidence", 0.0))
        except (TypeError, ValueError):
            return 0.0
        return min(max(value, 0.0), 1.0)


def _context_block(context: Optional[EnrichedContext]) -> str:
    return summarize_context(context) if context is not None else NO_CONTEXT


def _summarize_analysis(analysis: JsonDict) -> str:
    if not analysis:
        return "No prior analysis available."
    summary = analysis.get("summary")
    if isinstance(summary, str) and summary:
        findings = as_text_list(analysis.get("key_findings"))
        return "\n".join([summary, *(f"- {f}" for f in findings if f)])
    return json.dumps(analysis, ensure_ascii=False)[:4000]


class AnalysisService:
    """Builds prompts for each workflow step and runs them through the orchestrator.

    Every method accepts ``context=None`` for the context-free path used when
    the context-aware one fails.
    """

    def __init__(
        self,
        orchestrator: ProviderOrchestrator,
        *,
        max_tokens: int = 2000,
        temperature: float = 0.7,
    ) -> None:
        self._orchestrator = orchestrator
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def analyze_project(
        self, request: StepRequest, context: Optional[EnrichedContext]
    ) -> AnalysisOutcome:
        prompt = render(
            "PROJECT_ANALYSIS_PROMPT",
            project_description=request.project_description or "(not provided)",
            documents="\n\n".join(request.documents) or "(no documents)",
            context_summary=_context_block(context),
        )
        return await self._complete(request, prompt)

    async def generate_questions(
        self,
        request: StepRequest,
        analysis: JsonDict,
        context: Optional[EnrichedContext],
    ) -> AnalysisOutcome:
        prompt = render(
            "QUESTION_GENERATION_PROMPT",
            analysis_summary=_summarize_analysis(analysis),
            context_summary=_context_block(context),
        )
        outcome = await self._complete(request, prompt)
        if not isinstance(outcome.data.get("questions"), list):
            outcome.data["questions"] = []
        return outcome

    async def write_report_section(
        self,
        unit: GenerationUnit,
        *,
        request: StepRequest,
        analysis: JsonDict,
        answers: dict[str, str],
        context: Optional[EnrichedContext] = None,
    ) -> JsonDict:
        """Generate one report section. Raises UnitGenerationError on unusable output."""
        answer_lines = "\n".join(f"- {q}: {a}" for q, a in answers.items()) or "(no answers yet)"
        analysis_summary = _summarize_analysis(analysis)
        if context is not None:
            analysis_summary = f"{analysis_summary}\n\n{summarize_context(context)}"
        prompt = render(
            "REPORT_SECTION_PROMPT",
            section_title=unit.title,
            section_brief=unit.content,
            analysis_summary=analysis_summary,
            answers=answer_lines,
        )
        outcome = await self._complete(request, prompt)
        if not outcome.parse_ok:
            raise UnitGenerationError(f"Unparseable response for report section {unit.title!r}")
        content = outcome.data.get("content")
        if not content:
            raise UnitGenerationError(f"Report section {unit.title!r} came back empty")
        return {
            "unit_id": unit.unit_id,
            "title": str(outcome.data.get("title") or unit.title),
            "content": str(content),
            "order": unit.order,
        }

    async def _complete(self, request: StepRequest, prompt: str, **overrides: Any) -> AnalysisOutcome:
        completion_request = CompletionRequest.from_prompt(
            prompt,
            system=render("ANALYST_SYSTEM_PROMPT"),
            max_tokens=overrides.get("max_tokens", self._max_tokens),
            temperature=overrides.get("temperature", self._temperature),
            user_id=request.user_id,
        )
        result = await self._orchestrator.generate_completion(request.provider_id, completion_request)
        record = extract_structured(result.content)
        if not record.ok:
            log.warning("Analysis response from %s was not valid JSON: %s", result.provider_id, record.error)
        return AnalysisOutcome(
            data=record.data,
            provider_id=result.provider_id,
            model=result.model,
            usage=result.usage,
            cost=result.cost,
            parse_ok=record.ok,
        )
