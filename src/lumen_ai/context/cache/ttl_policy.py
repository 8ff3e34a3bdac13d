"""Confidence- and richness-aware TTL for enriched contexts.

Contexts built from many high-confidence sources are expensive to rebuild and
go stale slowly, so they live longer.  Thin or low-confidence contexts are
cheap and probably wrong, so they expire fast.
"""

from __future__ import annotations

from lumen_ai.context.models import EnrichedContext

DEFAULT_BASE_TTL_SECONDS = 30 * 60
DEFAULT_MIN_TTL_SECONDS = 5 * 60


def source_factor(data_source_count: int) -> float:
    if data_source_count >= 3:
        return 1.5
    if data_source_count == 0:
        return 0.3
    return 1.0


def confidence_factor(total_confidence: float, data_source_count: int = 1) -> float:
    # An empty context carries no confidence reading at all, only a zero placeholder.
    if data_source_count == 0:
        return 1.0
    if total_confidence > 0.8:
        return 1.3
    if total_confidence < 0.4:
        return 0.5
    return 1.0


def compute_ttl(
    context: EnrichedContext,
    base: float = DEFAULT_BASE_TTL_SECONDS,
    floor: float = DEFAULT_MIN_TTL_SECONDS,
) -> float:
    """Return the TTL in seconds for ``context``.

    Three sources at 0.9 confidence give 1800 * 1.5 * 1.3 = 3510 s (58.5 min);
    no sources at all give max(1800 * 0.3, 300) = 540 s (9 min).
    """
    meta = context.metadata
    ttl = (
        base
        * source_factor(meta.data_source_count)
        * confidence_factor(meta.total_confidence, meta.data_source_count)
    )
    return max(ttl, floor)
