"""Prompt templates for analysis, question, report and section-rewrite calls.

Templates live in ``_PROMPT_DATA`` and are rendered with :func:`render`,
which fills ``{placeholders}`` via ``str.format``.  Every template asks for a
single JSON object so responses can go through the structured extractor.
"""

from __future__ import annotations

_PROMPT_DATA: dict[str, str] = {
    "ANALYST_SYSTEM_PROMPT": (
        "You are a senior project analyst. Answer with exactly one JSON object "
        "and no surrounding prose."
    ),
    "PROJECT_ANALYSIS_PROMPT": """Analyse the project below.

## Project
{project_description}

## Documents
{documents}

## Collected context
{context_summary}

Return JSON with these keys:
{{"summary": str, "key_findings": [str], "risks": [str], "recommendations": [str], "confidence": float between 0 and 1}}""",
    "QUESTION_GENERATION_PROMPT": """Based on the prior analysis, list the open questions the team must answer.

## Prior analysis
{analysis_summary}

## Collected context
{context_summary}

Return JSON: {{"questions": [{{"category": str, "question": str, "importance": "high" | "medium" | "low"}}], "confidence": float between 0 and 1}}""",
    "REPORT_SECTION_PROMPT": """Write the "{section_title}" section of the analysis report.

Section brief: {section_brief}

## Analysis
{analysis_summary}

## Answers from the team
{answers}

Return JSON: {{"title": str, "content": str}}""",
    "SECTION_REWRITE_PROMPT": """Rewrite the document section below in the style described.

Style: {style}

## Section title
{section_title}

## Section content
{section_content}

Return JSON: {{"title": str, "content": str, "visual_elements": [str]}}""",
}

NO_CONTEXT = "No enriched context available."


def render(name: str, **values: object) -> str:
    """Render the template ``name`` with ``values``.

    Raises:
        KeyError: If no template is named ``name`` or a placeholder is missing.
    """
    return _PROMPT_DATA[name].format(**values)


def prompt_names() -> list[str]:
    return sorted(_PROMPT_DATA)
