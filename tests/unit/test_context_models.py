"""Tests for enriched context models and validation."""

from __future__ import annotations

import pytest

from lumen_ai.context.models import (
    ContextCollectionOptions,
    ContextPart,
    EnrichedContext,
    MarketAnalysis,
    TechAnalysis,
)
from lumen_ai.context.validation import summarize_context, validate_context
from tests.fakes.fake_context_builder import make_context


class TestEnrichedContext:
    def test_assemble_derives_metadata(self):
        ctx = EnrichedContext.assemble(
            "s1",
            market_insights=MarketAnalysis(confidence=0.6),
            tech_analysis=TechAnalysis(confidence=0.8),
            processing_time_ms=12.5,
        )
        assert ctx.metadata.data_source_count == 2
        assert ctx.metadata.total_confidence == pytest.approx(0.7)
        assert ctx.metadata.processing_time_ms == 12.5

    def test_empty_context(self):
        ctx = EnrichedContext.assemble("s1")
        assert ctx.metadata.data_source_count == 0
        assert ctx.metadata.total_confidence == 0.0
        assert ctx.parts() == []

    def test_with_part_recomputes_metadata(self):
        ctx = make_context(confidence=0.9, parts=1)
        updated = ctx.with_part(ContextPart.TECH_ANALYSIS, TechAnalysis(confidence=0.5))
        assert updated.metadata.data_source_count == 2
        assert updated.metadata.total_confidence == pytest.approx(0.7)
        # original untouched
        assert ctx.tech_analysis is None
        assert ctx.metadata.data_source_count == 1

    def test_with_part_replacing_keeps_count(self):
        ctx = make_context(confidence=0.9, parts=3)
        updated = ctx.with_part(ContextPart.MARKET_INSIGHTS, MarketAnalysis(confidence=0.3))
        assert updated.metadata.data_source_count == 3
        assert updated.metadata.total_confidence == pytest.approx(0.7)

    def test_get_part(self):
        ctx = make_context(parts=2)
        assert ctx.get_part(ContextPart.MARKET_INSIGHTS) is ctx.market_insights
        assert ctx.get_part(ContextPart.TECH_ANALYSIS) is None


class TestCollectionOptions:
    def test_only_selects_one_part(self):
        base = ContextCollectionOptions(industry="fintech", analysis_depth="deep")
        opts = ContextCollectionOptions.only(ContextPart.TECH_ANALYSIS, base)
        assert opts.requested_parts() == [ContextPart.TECH_ANALYSIS]
        assert opts.industry == "fintech"
        assert opts.analysis_depth == "deep"

    def test_defaults_request_everything(self):
        assert len(ContextCollectionOptions().requested_parts()) == 3


class TestValidation:
    def test_confident_context_is_valid(self):
        result = validate_context(make_context(confidence=0.9))
        assert result.is_valid
        assert result.issues == []

    def test_empty_context_flags_missing_sources(self):
        result = validate_context(EnrichedContext.assemble("s1"))
        assert not result.is_valid
        assert any("No data sources" in issue for issue in result.issues)
        assert result.recommendations

    def test_low_part_confidence_flagged(self):
        ctx = EnrichedContext.assemble(
            "s1",
            market_insights=MarketAnalysis(confidence=0.3),
            tech_analysis=TechAnalysis(confidence=0.95),
        )
        result = validate_context(ctx)
        assert not result.is_valid
        assert any("Market analysis" in issue for issue in result.issues)

    def test_summary_mentions_sources(self):
        text = summarize_context(make_context(confidence=0.9))
        assert "Data sources: 3" in text
        assert "90%" in text
