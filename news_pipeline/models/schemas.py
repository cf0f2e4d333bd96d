from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any
from datetime import datetime

EMERGENCY_PROVENANCE = "emergency-content"


class Article(BaseModel):
    """Canonical article record produced by a source adapter."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Provenance-prefixed content hash")
    title: str = Field(..., description="Article title")
    description: Optional[str] = Field(default=None, description="Short description or lead")
    url: str = Field(default="", description="Canonical article URL")
    source: str = Field(default="", description="Publisher or provider name")
    author: Optional[str] = Field(default=None, description="Author, when the provider reports one")
    published_at: Optional[datetime] = Field(default=None, alias="publishedAt", description="Publication time (UTC)")
    country: str = Field(default="", description="Region tag of the requesting context")
    category: str = Field(default="ai", description="Coarse topic tag")
    quality_score: int = Field(default=0, ge=0, le=100, alias="qualityScore", description="Ranking sort key (0-100)")
    provenance: str = Field(..., description="Adapter that produced the record")
    region_relevance: Optional[int] = Field(
        default=None, ge=0, le=100, alias="regionRelevance",
        description="Keyword relevance to a target region (0-100)",
    )

    @property
    def is_emergency(self) -> bool:
        return self.provenance == EMERGENCY_PROVENANCE


class AggregationResult(BaseModel):
    """Outcome of one aggregated fetch."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(True, description="False only when the pipeline could not produce articles")
    articles: List[Article] = Field(default_factory=list, description="Deduplicated and ranked articles")
    total_articles: int = Field(0, alias="totalArticles", description="Number of articles returned")
    sources_used: int = Field(0, alias="sourcesUsed", description="Adapters that contributed at least one article")
    cached: bool = Field(False, description="True when served from the result cache, possibly stale")
    emergency: bool = Field(False, description="True when the articles are synthetic filler")
    query: str = Field(..., description="Requested query")
    region: str = Field(..., description="Requested region code")
    timestamp: datetime = Field(..., description="Time the result was assembled (UTC)")


class FetchNewsResponse(AggregationResult):
    processing_time_ms: int = Field(0, alias="processingTimeMs", description="Time taken to serve the request")


class CountryNewsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    region: str = Field(..., description="Region code of the view")
    articles: List[Article] = Field(..., description="Articles ordered by region relevance")
    total_articles: int = Field(..., alias="totalArticles")


class RegionViewStats(BaseModel):
    total_articles: int = 0
    high_relevance: int = 0
    avg_relevance: Optional[float] = None
    latest_article: Optional[datetime] = None
    unique_sources: int = 0


class CountryStatsResponse(BaseModel):
    stats: Dict[str, RegionViewStats] = Field(..., description="View statistics keyed by region code")


class SourceStatus(BaseModel):
    name: str
    tier: str
    active: bool
    api_key_env_var: str


class StatusResponse(BaseModel):
    sources: List[SourceStatus] = Field(..., description="Configured sources in tier order")
    cache_entries: int = Field(..., description="Entries currently held by the result cache")
    emergency_content: bool = Field(..., description="Whether emergency filler is enabled")
    timestamp: datetime


class RefreshRequest(BaseModel):
    regions: Optional[List[str]] = Field(None, description="Region codes to refresh; defaults to the configured list")
    queries: Optional[List[str]] = Field(None, description="Queries rotated across regions")
    limit: int = Field(20, ge=1, le=100, description="Articles per region")


class RegionRefreshResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    query: Optional[str] = None
    articles: int = 0
    sources_used: int = Field(0, alias="sourcesUsed")
    cached: bool = False
    emergency: bool = False
    error: Optional[str] = None


class RefreshResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    results: Dict[str, RegionRefreshResult]
    total_articles: int = Field(..., alias="totalArticles")
    successful_regions: int = Field(..., alias="successfulRegions")
    timestamp: datetime


class AuditEvent(BaseModel):
    """Structured record emitted after each aggregated fetch."""

    session_id: str
    requested_action: str
    business_context: Dict[str, Any] = Field(default_factory=dict)
    technical_context: Dict[str, Any] = Field(default_factory=dict)
    decision: str
    rationale: str
    risk_score: int = Field(0, ge=0, le=100)
    urgency_score: int = Field(0, ge=0, le=100)


class HealthResponse(BaseModel):
    status: str = Field(..., description="Overall API status ('ok' or 'unhealthy')")
    message: str = Field(..., description="Descriptive health message")
    timestamp: datetime = Field(..., description="Timestamp of health check (UTC)")
    news_sources_available: bool = Field(..., description="True if at least one news provider is configured")


class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Error message returned from the server")
