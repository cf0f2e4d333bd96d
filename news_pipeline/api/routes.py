from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
import time
import logging
from datetime import datetime, timezone
from typing import Optional

from ..core.errors import AggregationExhausted, PipelineFailure
from ..models.schemas import (
    CountryNewsResponse, CountryStatsResponse, FetchNewsResponse,
    HealthResponse, RefreshRequest, RefreshResponse, StatusResponse,
)
from ..services.news_aggregator import NewsAggregator

logger = logging.getLogger(__name__)
router = APIRouter()


def get_aggregator(request: Request) -> NewsAggregator:
    """The aggregator built at startup and stored on the application state."""
    return request.app.state.aggregator


@router.get("/news/fetch", response_model=FetchNewsResponse)
async def fetch_news(
    query: Optional[str] = Query(None, description="Search terms"),
    region: Optional[str] = Query(None, min_length=2, max_length=3, description="Region code, e.g. US"),
    limit: Optional[int] = Query(None, ge=1, description="Maximum number of articles"),
    aggregator: NewsAggregator = Depends(get_aggregator),
):
    """Fetch aggregated, deduplicated and ranked news"""
    start_time = time.time()

    try:
        result = await aggregator.fetch_aggregated_news(query, region, limit)
    except AggregationExhausted as e:
        logger.warning(f"No articles available: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    except PipelineFailure as e:
        logger.error(f"Aggregated news fetch failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch news")

    processing_time = int((time.time() - start_time) * 1000)
    return FetchNewsResponse(**result.model_dump(), processing_time_ms=processing_time)


@router.get("/news/country/{region}", response_model=CountryNewsResponse)
async def get_country_news(
    region: str,
    limit: int = Query(20, ge=1, le=50),
    aggregator: NewsAggregator = Depends(get_aggregator),
):
    """Region view built from the currently cached article pool"""
    try:
        articles = aggregator.country_view(region, limit=limit)
        return CountryNewsResponse(region=region.upper(), articles=articles, total_articles=len(articles))
    except Exception as e:
        logger.error(f"Error building country view for {region}: {e}")
        raise HTTPException(status_code=500, detail="Failed to build country view")


@router.get("/news/country-stats", response_model=CountryStatsResponse)
async def get_country_stats(aggregator: NewsAggregator = Depends(get_aggregator)):
    """Per-region view statistics"""
    try:
        return CountryStatsResponse(stats=aggregator.country_stats())
    except Exception as e:
        logger.error(f"Error computing country stats: {e}")
        raise HTTPException(status_code=500, detail="Failed to compute country stats")


@router.get("/news/status", response_model=StatusResponse)
async def get_status(aggregator: NewsAggregator = Depends(get_aggregator)):
    """Source registry and cache state"""
    return StatusResponse(**aggregator.status())


@router.post("/news/refresh-all", response_model=RefreshResponse)
async def refresh_all(
    body: Optional[RefreshRequest] = None,
    aggregator: NewsAggregator = Depends(get_aggregator),
):
    """Refresh news for a list of regions, one region at a time"""
    body = body or RefreshRequest()
    settings = aggregator.settings
    regions = body.regions or settings.REFRESH_REGIONS
    queries = body.queries or [settings.NEWS_DEFAULT_QUERY]

    try:
        results = await aggregator.refresh_regions(regions, queries, limit=body.limit)
    except Exception as e:
        logger.error(f"Error refreshing regions: {e}")
        raise HTTPException(status_code=500, detail="Failed to refresh news")

    return RefreshResponse(
        results=results,
        total_articles=sum(r.articles for r in results.values()),
        successful_regions=sum(1 for r in results.values() if r.success),
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(aggregator: NewsAggregator = Depends(get_aggregator)):
    """Enhanced health check with source status"""
    try:
        return HealthResponse(
            status="ok",
            message="Service is healthy",
            timestamp=datetime.now(timezone.utc),
            news_sources_available=bool(aggregator.registry.primary() or aggregator.registry.fallback()),
        )
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "message": str(e)}
        )
