"""Phased unit generation with per-unit degradation."""

from __future__ import annotations

from lumen_ai.generation.models import (
    Degraded,
    GenerationUnit,
    Ok,
    PhaseProgress,
    PhaseStatus,
    UnitOutcome,
    UnitPhase,
)
from lumen_ai.generation.runner import PhasedGenerationRunner, marked_fallback
from lumen_ai.generation.section_rewriter import SectionRewriter

__all__ = [
    "Degraded",
    "GenerationUnit",
    "Ok",
    "PhaseProgress",
    "PhaseStatus",
    "PhasedGenerationRunner",
    "SectionRewriter",
    "UnitOutcome",
    "UnitPhase",
    "marked_fallback",
]
