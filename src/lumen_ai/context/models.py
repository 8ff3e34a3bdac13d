"""Data models for enriched analysis context and its cache."""

from __future__ import annotations

import dataclasses
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field

# ── Sub-results produced by independent data sources ─────────────────


class ArchitectureProfile(BaseModel):
    pattern: str = "Unknown"
    layers: list[str] = Field(default_factory=list)
    modularity: float = Field(default=0.5, ge=0.0, le=1.0)


class QualityProfile(BaseModel):
    score: float = Field(default=0.5, ge=0.0, le=1.0)
    issues: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)


class ScalabilityProfile(BaseModel):
    score: float = Field(default=0.5, ge=0.0, le=1.0)
    bottlenecks: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class ProjectStructureAnalysis(BaseModel):
    """Structured reading of a project's code and document layout."""

    summary: str = ""
    complexity: float = Field(default=0.5, ge=0.0, le=1.0)
    main_technologies: list[str] = Field(default_factory=list)
    architecture: ArchitectureProfile = Field(default_factory=ArchitectureProfile)
    code_quality: QualityProfile = Field(default_factory=QualityProfile)
    scalability: ScalabilityProfile = Field(default_factory=ScalabilityProfile)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class Competitor(BaseModel):
    name: str
    strength: float = Field(default=0.5, ge=0.0, le=1.0)
    differentiators: list[str] = Field(default_factory=list)


class MarketAnalysis(BaseModel):
    """Market insights summarised from web research."""

    summary: str = ""
    market_size: str = ""
    competitors: list[Competitor] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)
    threats: list[str] = Field(default_factory=list)
    trend_score: float = Field(default=0.5, ge=0.0, le=1.0)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class TechAnalysis(BaseModel):
    """Technology trend assessment for the project's stack."""

    summary: str = ""
    trend_score: float = Field(default=0.5, ge=0.0, le=1.0)
    adoption_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    recommendations: list[str] = Field(default_factory=list)
    alternative_tech: list[str] = Field(default_factory=list)
    risk_factors: list[str] = Field(default_factory=list)
    future_outlook: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


ContextPartValue = Union[ProjectStructureAnalysis, MarketAnalysis, TechAnalysis]


class ContextPart(str, Enum):
    """Independently rebuildable sub-results of an enriched context."""

    PROJECT_STRUCTURE = "project_structure"
    MARKET_INSIGHTS = "market_insights"
    TECH_ANALYSIS = "tech_analysis"


# ── Enriched context ─────────────────────────────────────────────────


class ContextMetadata(BaseModel):
    data_source_count: int = Field(default=0, ge=0, le=3)
    total_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    processing_time_ms: float = 0.0
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class EnrichedContext(BaseModel):
    """Aggregated, confidence-scored snapshot for one analysis session.

    ``metadata.data_source_count`` always equals the number of populated
    parts; use :meth:`assemble` or :meth:`with_part` rather than setting
    metadata by hand.
    """

    session_id: str
    project_structure: Optional[ProjectStructureAnalysis] = None
    market_insights: Optional[MarketAnalysis] = None
    tech_analysis: Optional[TechAnalysis] = None
    metadata: ContextMetadata = Field(default_factory=ContextMetadata)

    @classmethod
    def assemble(
        cls,
        session_id: str,
        *,
        project_structure: ProjectStructureAnalysis | None = None,
        market_insights: MarketAnalysis | None = None,
        tech_analysis: TechAnalysis | None = None,
        processing_time_ms: float = 0.0,
    ) -> EnrichedContext:
        """Build a context whose metadata is derived from the supplied parts."""
        ctx = cls(
            session_id=session_id,
            project_structure=project_structure,
            market_insights=market_insights,
            tech_analysis=tech_analysis,
        )
        ctx.metadata = ctx._derive_metadata(processing_time_ms)
        return ctx

    def get_part(self, part: ContextPart) -> ContextPartValue | None:
        return getattr(self, part.value)

    def parts(self) -> list[ContextPartValue]:
        """Populated sub-results, in declaration order."""
        values = (self.project_structure, self.market_insights, self.tech_analysis)
        return [v for v in values if v is not None]

    def with_part(self, part: ContextPart, value: ContextPartValue | None) -> EnrichedContext:
        """Return a copy with ``part`` replaced and metadata recomputed."""
        updated = self.model_copy(update={part.value: value})
        updated.metadata = updated._derive_metadata(self.metadata.processing_time_ms)
        return updated

    def _derive_metadata(self, processing_time_ms: float) -> ContextMetadata:
        confidences = [p.confidence for p in self.parts()]
        return ContextMetadata(
            data_source_count=len(confidences),
            total_confidence=sum(confidences) / len(confidences) if confidences else 0.0,
            processing_time_ms=processing_time_ms,
            last_updated=datetime.now(timezone.utc),
        )


class ContextCollectionOptions(BaseModel):
    """Which data sources the builder should consult."""

    include_project_structure: bool = True
    include_market_analysis: bool = True
    include_tech_trends: bool = True
    analysis_depth: Literal["quick", "standard", "deep", "comprehensive"] = "standard"
    project_type: str = "web application"
    industry: str = "technology"
    tech_stack: list[str] = Field(default_factory=list)

    @classmethod
    def only(cls, part: ContextPart, base: ContextCollectionOptions | None = None) -> ContextCollectionOptions:
        """Options that rebuild exactly one part."""
        template = base or cls()
        return template.model_copy(
            update={
                "include_project_structure": part is ContextPart.PROJECT_STRUCTURE,
                "include_market_analysis": part is ContextPart.MARKET_INSIGHTS,
                "include_tech_trends": part is ContextPart.TECH_ANALYSIS,
            }
        )

    def requested_parts(self) -> list[ContextPart]:
        flags = (
            (ContextPart.PROJECT_STRUCTURE, self.include_project_structure),
            (ContextPart.MARKET_INSIGHTS, self.include_market_analysis),
            (ContextPart.TECH_ANALYSIS, self.include_tech_trends),
        )
        return [part for part, enabled in flags if enabled]


# ── Cache bookkeeping ────────────────────────────────────────────────


@dataclasses.dataclass
class CacheEntry:
    """Cache-internal wrapper around one session's context."""

    context: EnrichedContext
    created_at: float
    ttl_seconds: float
    generation_time_ms: float = 0.0
    last_accessed_at: float = 0.0
    access_count: int = 1
    options: ContextCollectionOptions | None = None

    def __post_init__(self) -> None:
        if not self.last_accessed_at:
            self.last_accessed_at = self.created_at

    def is_expired(self, now: float) -> bool:
        return (now - self.created_at) > self.ttl_seconds


@dataclasses.dataclass(frozen=True)
class CacheStatistics:
    """Read-only snapshot of cache effectiveness."""

    total_entries: int
    hits: int
    misses: int
    hit_rate: float
    average_generation_time_ms: float
    memory_usage_kb: int
    oldest_entry: float
    newest_entry: float


@dataclasses.dataclass(frozen=True)
class CacheStatus:
    """Per-session view of a cached entry."""

    exists: bool
    is_valid: bool
    age_minutes: float
    access_count: int
    data_source_count: int
    confidence_percent: float
    ttl_seconds: float

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)
