"""Enriched analysis context: models, builder protocol, validation and caching."""

from __future__ import annotations

from lumen_ai.context.models import (
    ContextCollectionOptions,
    ContextPart,
    EnrichedContext,
    MarketAnalysis,
    ProjectStructureAnalysis,
    TechAnalysis,
)
from lumen_ai.context.protocols import IContextBuilder, IContextCache
from lumen_ai.context.validation import ContextValidation, summarize_context, validate_context

__all__ = [
    "ContextCollectionOptions",
    "ContextPart",
    "ContextValidation",
    "EnrichedContext",
    "IContextBuilder",
    "IContextCache",
    "MarketAnalysis",
    "ProjectStructureAnalysis",
    "TechAnalysis",
    "summarize_context",
    "validate_context",
]
