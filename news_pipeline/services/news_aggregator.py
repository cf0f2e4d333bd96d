import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import aiohttp

from ..core.config import Settings
from ..core.errors import AggregationExhausted, NewsPipelineError, PipelineFailure, SourceError
from ..models.schemas import AggregationResult, Article, AuditEvent, RegionRefreshResult
from .audit_log import AuditDispatcher, AuditSink
from .country_relevance import CountryRelevanceFilter
from .emergency import emergency_articles
from .ranking import HeuristicRankingPolicy, RankingPolicy, dedupe, rank_articles
from .result_cache import CacheEntry, CacheKey, ResultCache, make_key
from .sources import SourceAdapter, SourceRegistry

logger = logging.getLogger(__name__)


class NewsAggregator:
    """
    Multi-source news aggregation with tiered fallback.

    The primary tier is queried concurrently first.  Only when its combined
    yield is below ``fallback_floor`` is the fallback tier queried.  When
    both tiers come back empty the caller still receives something: the
    last cached result for the same key if there is one, otherwise a fixed
    set of clearly labelled emergency articles (unless that is disabled,
    in which case ``AggregationExhausted`` is raised).

    Results are deduplicated by normalized title, ranked by a pluggable
    ``RankingPolicy`` and cached per ``(query, region)``.  Concurrent
    requests for the same key share one in-flight fetch.

    One instance is created at application startup and handed to the
    request handlers; there is no module-level singleton.
    """

    def __init__(self,
                 settings: Settings,
                 registry: Optional[SourceRegistry] = None,
                 cache: Optional[ResultCache] = None,
                 ranking_policy: Optional[RankingPolicy] = None,
                 audit_sink: Optional[AuditSink] = None,
                 relevance_filter: Optional[CountryRelevanceFilter] = None,
                 now: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.settings = settings
        self.session: Optional[aiohttp.ClientSession] = None
        if registry is None:
            registry = SourceRegistry.from_settings(settings, self._get_session)
        self.registry = registry
        # ResultCache defines __len__, so an empty injected cache is falsy
        self.cache = cache if cache is not None else ResultCache(ttl_seconds=settings.NEWS_CACHE_TTL_SECONDS)
        self.ranking_policy = ranking_policy if ranking_policy is not None else HeuristicRankingPolicy()
        self.audit = AuditDispatcher(audit_sink)
        self.relevance_filter = relevance_filter if relevance_filter is not None else CountryRelevanceFilter()
        self.fallback_floor = settings.NEWS_FALLBACK_FLOOR
        self.emergency_enabled = settings.NEWS_EMERGENCY_CONTENT
        self._now = now
        self._in_flight: Dict[CacheKey, asyncio.Task] = {}

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
        return self.session

    async def close(self):
        await self.audit.drain()
        if self.session and not self.session.closed:
            await self.session.close()

    # ------------------------------------------------------------

    async def fetch_aggregated_news(self,
                                    query: Optional[str] = None,
                                    region: Optional[str] = None,
                                    limit: Optional[int] = None) -> AggregationResult:
        """
        Fetch, deduplicate, rank and cache news for ``(query, region)``.

        :param query: Search terms; defaults to ``NEWS_DEFAULT_QUERY``
        :param region: Region code used to tag articles and key the cache
        :param limit: Maximum number of articles, clamped to ``[1, NEWS_MAX_LIMIT]``
        :return: ``AggregationResult`` with ``cached`` and ``emergency`` flags
        :raises AggregationExhausted: no articles and emergency content disabled
        :raises PipelineFailure: unexpected failure and nothing cached to serve
        """
        query = (query or self.settings.NEWS_DEFAULT_QUERY).strip() or self.settings.NEWS_DEFAULT_QUERY
        region = (region or self.settings.NEWS_DEFAULT_REGION).strip().upper() or self.settings.NEWS_DEFAULT_REGION
        limit = self._clamp_limit(limit)
        key = make_key(query, region)

        # Keep the stale entry: the strict read below evicts it if expired
        stale = self.cache.get_lenient(key)
        entry = self.cache.get(key)
        if entry is not None:
            logger.info(f"Serving {len(entry.articles)} cached articles for {query!r} in {region}")
            return self._from_cache(entry, query, region, limit)

        # The shared fetch ranks and caches the full list; each caller
        # truncates to its own limit
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._aggregate(query, region, key, stale))
            self._in_flight[key] = task
            task.add_done_callback(lambda _t, k=key: self._in_flight.pop(k, None))
        else:
            logger.info(f"Joining in-flight fetch for {query!r} in {region}")

        # Shield so a cancelled caller does not cancel the fetch others await
        result = await asyncio.shield(task)
        if len(result.articles) > limit:
            articles = result.articles[:limit]
            result = result.model_copy(update={"articles": articles, "total_articles": len(articles)})
        return result

    def _clamp_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            limit = self.settings.NEWS_DEFAULT_LIMIT
        return max(1, min(int(limit), self.settings.NEWS_MAX_LIMIT))

    def _last_resort(self, key: CacheKey, stale: Optional[CacheEntry]) -> Optional[CacheEntry]:
        """Lenient read of the last valid result for ``key``, ignoring expiry."""
        entry = self.cache.get_lenient(key) or stale
        if entry is None or not entry.articles:
            return None
        return entry

    async def _aggregate(self, query: str, region: str, key: CacheKey,
                         stale: Optional[CacheEntry] = None) -> AggregationResult:
        limit = self.settings.NEWS_MAX_LIMIT
        logger.info(f"Aggregated news fetch: {query!r} for {region}")
        try:
            collected, sources_used = await self._collect(query, region, limit)

            emergency = False
            if not collected:
                previous = self._last_resort(key, stale)
                if previous is not None:
                    logger.warning(f"All sources failed for {query!r} in {region}; serving stale cache")
                    return self._from_cache(previous, query, region, limit)
                if not self.emergency_enabled:
                    raise AggregationExhausted(query, region)
                logger.warning(f"All sources failed for {query!r} in {region}; serving emergency content")
                collected = emergency_articles(region, now=self._now())
                emergency = True

            now = self._now()
            ranked = rank_articles(dedupe(collected), limit, self.ranking_policy, now=now)

            # Filler is not cached so the next request retries the live sources
            if not emergency:
                self.cache.set(key, ranked, sources_used=sources_used)

            result = AggregationResult(
                success=True,
                articles=ranked,
                total_articles=len(ranked),
                sources_used=sources_used,
                cached=False,
                emergency=emergency,
                query=query,
                region=region,
                timestamp=now,
            )
        except AggregationExhausted:
            raise
        except Exception as e:
            logger.error(f"Aggregated news fetch failed for {query!r} in {region}: {e}")
            previous = self._last_resort(key, stale)
            if previous is not None:
                logger.warning(f"Returning {len(previous.articles)} cached articles after failure")
                return self._from_cache(previous, query, region, limit)
            raise PipelineFailure(query, region, e) from e

        self._emit_audit(result)
        return result

    async def _collect(self, query: str, region: str, limit: int) -> Tuple[List[Article], int]:
        articles, sources_used = await self._fetch_tier("primary", self.registry.primary(), query, region, limit)

        if len(articles) < self.fallback_floor:
            logger.info(
                f"Primary sources returned {len(articles)} articles (floor {self.fallback_floor}); trying fallbacks"
            )
            fallback_articles, fallback_used = await self._fetch_tier(
                "fallback", self.registry.fallback(), query, region, limit
            )
            articles.extend(fallback_articles)
            sources_used += fallback_used

        return articles, sources_used

    async def _fetch_tier(self, tier: str, adapters: Sequence[SourceAdapter],
                          query: str, region: str, limit: int) -> Tuple[List[Article], int]:
        if not adapters:
            logger.info(f"No active {tier} sources")
            return [], 0

        outcomes = await asyncio.gather(
            *(self._fetch_one(adapter, query, region, limit) for adapter in adapters)
        )

        # Results are appended in registry order, not completion order
        articles: List[Article] = []
        sources_used = 0
        for adapter, fetched in zip(adapters, outcomes):
            if fetched:
                articles.extend(fetched)
                sources_used += 1
                logger.info(f"{adapter.name}: {len(fetched)} articles")
        return articles, sources_used

    async def _fetch_one(self, adapter: SourceAdapter, query: str, region: str,
                         limit: int) -> Optional[List[Article]]:
        try:
            return await asyncio.wait_for(adapter.fetch(query, region, limit), timeout=adapter.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"{adapter.name} timed out after {adapter.timeout}s")
        except SourceError as e:
            logger.warning(f"{adapter.name} failed: {e.message}")
        except Exception as e:
            logger.error(f"{adapter.name} raised unexpectedly: {e}")
        return None

    def _from_cache(self, entry: CacheEntry, query: str, region: str, limit: int) -> AggregationResult:
        articles = entry.articles[:limit]
        return AggregationResult(
            success=True,
            articles=articles,
            total_articles=len(articles),
            sources_used=0,
            cached=True,
            emergency=any(a.is_emergency for a in articles),
            query=query,
            region=region,
            timestamp=self._now(),
        )

    def _emit_audit(self, result: AggregationResult) -> None:
        event = AuditEvent(
            session_id=f"news_fetch_{uuid.uuid4().hex}",
            requested_action="Aggregated News Fetching",
            business_context={
                "query": result.query,
                "region": result.region,
                "articleCount": result.total_articles,
                "sourcesUsed": result.sources_used,
                "emergency": result.emergency,
                "fetchTime": result.timestamp.isoformat(),
            },
            technical_context={
                "primary": [a.name for a in self.registry.primary()],
                "fallback": [a.name for a in self.registry.fallback()],
                "cacheSize": len(self.cache),
            },
            decision="fetch_aggregated_news",
            rationale=f"Fetched {result.total_articles} articles from {result.sources_used} sources",
            risk_score=10,
            urgency_score=80,
        )
        try:
            self.audit.emit(event)
        except Exception as e:
            logger.warning(f"Failed to schedule audit event: {e}")

    # ------------------------------------------------------------

    async def refresh_regions(self, regions: Sequence[str], queries: Sequence[str],
                              limit: int = 20) -> Dict[str, RegionRefreshResult]:
        """
        Fetch news for each region in turn, rotating through ``queries``.

        A failing region is reported and does not stop the others.
        """
        queries = list(queries) or [self.settings.NEWS_DEFAULT_QUERY]
        results: Dict[str, RegionRefreshResult] = {}
        for index, region in enumerate(regions):
            code = region.strip().upper()
            query = queries[index % len(queries)]
            try:
                result = await self.fetch_aggregated_news(query, code, limit)
                results[code] = RegionRefreshResult(
                    success=True,
                    query=query,
                    articles=result.total_articles,
                    sources_used=result.sources_used,
                    cached=result.cached,
                    emergency=result.emergency,
                )
            except NewsPipelineError as e:
                logger.error(f"Refresh for {code} failed: {e}")
                results[code] = RegionRefreshResult(success=False, query=query, error=str(e))
        return results

    def cached_articles(self) -> List[Article]:
        """Every cached article, stale or not, deduplicated across keys."""
        pool: List[Article] = []
        for entry in self.cache.entries():
            pool.extend(entry.articles)
        return dedupe(pool)

    def country_view(self, region: str, limit: int = 20) -> List[Article]:
        return self.relevance_filter.build_view(self.cached_articles(), region, limit=limit, now=self._now())

    def country_stats(self) -> Dict[str, Any]:
        return self.relevance_filter.view_stats(self.cached_articles(), now=self._now())

    def status(self) -> Dict[str, Any]:
        return {
            "sources": self.registry.describe(),
            "cache_entries": len(self.cache),
            "emergency_content": self.emergency_enabled,
            "timestamp": self._now(),
        }
