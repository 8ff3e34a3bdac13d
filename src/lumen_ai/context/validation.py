"""Quality gates and human-readable summaries for enriched contexts."""

from __future__ import annotations

import dataclasses

from lumen_ai.context.models import EnrichedContext

MIN_TOTAL_CONFIDENCE = 0.5
MIN_PART_CONFIDENCE = 0.4


@dataclasses.dataclass(frozen=True)
class ContextValidation:
    is_valid: bool
    issues: list[str]
    recommendations: list[str]


def validate_context(context: EnrichedContext) -> ContextValidation:
    """Flag contexts too thin or too uncertain to drive an analysis."""
    issues: list[str] = []
    recommendations: list[str] = []
    meta = context.metadata

    if meta.data_source_count == 0:
        issues.append("No data sources available")
        recommendations.append("Enable at least one data source for context collection")

    if meta.total_confidence < MIN_TOTAL_CONFIDENCE:
        issues.append(f"Low overall confidence ({meta.total_confidence * 100:.0f}%)")
        recommendations.append("Provide more detailed project documents or refresh the context")

    named_parts = (
        ("Project structure", context.project_structure),
        ("Market analysis", context.market_insights),
        ("Technology analysis", context.tech_analysis),
    )
    for label, part in named_parts:
        if part is not None and part.confidence < MIN_PART_CONFIDENCE:
            issues.append(f"{label} confidence is low ({part.confidence * 100:.0f}%)")
            recommendations.append(f"Re-run {label.lower()} with more input data")

    return ContextValidation(is_valid=not issues, issues=issues, recommendations=recommendations)


def summarize_context(context: EnrichedContext) -> str:
    """Render a short multi-line summary suitable for embedding in prompts."""
    lines = [
        f"Data sources: {context.metadata.data_source_count}",
        f"Overall confidence: {context.metadata.total_confidence * 100:.0f}%",
    ]
    if context.project_structure is not None:
        ps = context.project_structure
        techs = ", ".join(ps.main_technologies) or "unknown"
        lines.append(
            f"Project: {ps.architecture.pattern} architecture, complexity {ps.complexity:.2f}, "
            f"technologies: {techs}"
        )
    if context.market_insights is not None:
        mi = context.market_insights
        lines.append(
            f"Market: {mi.market_size or 'size unknown'}, {len(mi.competitors)} competitors, "
            f"{len(mi.opportunities)} opportunities"
        )
    if context.tech_analysis is not None:
        ta = context.tech_analysis
        lines.append(f"Technology: trend score {ta.trend_score:.2f}, adoption {ta.adoption_rate:.2f}")
    return "\n".join(lines)
