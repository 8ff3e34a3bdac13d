"""Default unit generator: rewrite one document section through a provider."""

from __future__ import annotations

import logging
from typing import Optional

from lumen_ai.core.exceptions import UnitGenerationError
from lumen_ai.core.types import JsonDict
from lumen_ai.extraction import extract_structured
from lumen_ai.generation.models import GenerationUnit
from lumen_ai.prompts import render
from lumen_ai.providers.models import CompletionRequest
from lumen_ai.providers.orchestrator import ProviderOrchestrator

log = logging.getLogger(__name__)


class SectionRewriter:
    """Restyle a section via the orchestrator and extract ``{title, content}``.

    Raises :class:`UnitGenerationError` when the response has no usable title
    or content; provider failures propagate as-is.  The phased runner turns
    either into a degraded unit.
    """

    def __init__(
        self,
        orchestrator: ProviderOrchestrator,
        provider_id: str,
        *,
        style: str = "concise business presentation",
        max_tokens: int = 2000,
        temperature: float = 0.7,
        user_id: Optional[str] = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._provider_id = provider_id
        self._style = style
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._user_id = user_id

    async def __call__(self, unit: GenerationUnit) -> JsonDict:
        prompt = render(
            "SECTION_REWRITE_PROMPT",
            style=self._style,
            section_title=unit.title,
            section_content=unit.content,
        )
        request = CompletionRequest.from_prompt(
            prompt,
            system=render("ANALYST_SYSTEM_PROMPT"),
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            user_id=self._user_id,
        )
        result = await self._orchestrator.generate_completion(self._provider_id, request)

        record = extract_structured(result.content)
        if not record.ok:
            raise UnitGenerationError(f"Unparseable response for section {unit.title!r}: {record.error}")

        title = record.data.get("title")
        content = record.data.get("content")
        if not title or not content:
            raise UnitGenerationError(f"Response for section {unit.title!r} lacks title or content")

        visuals = record.data.get("visual_elements") or []
        return {
            "unit_id": unit.unit_id,
            "title": str(title),
            "content": str(content),
            "order": unit.order,
            "visual_elements": [str(v) for v in visuals] if isinstance(visuals, list) else [],
            "provider_id": result.provider_id,
        }
