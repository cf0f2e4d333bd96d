"""
News provider adapters and the tiered source registry.

Each adapter knows how to build one provider's request (query parameter
names, where the API key goes, page-size caps) and how to map that
provider's JSON payload onto the canonical ``Article``.  Everything else
(fan-out, fallback, dedup, ranking) lives in the orchestrator.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

import aiohttp

from ..core.config import Settings
from ..core.errors import SourceError
from ..models.schemas import Article
from ..utils.text import clean_text, content_id, parse_datetime

logger = logging.getLogger(__name__)

PRIMARY = "primary"
FALLBACK = "fallback"

SessionProvider = Callable[[], Awaitable[aiohttp.ClientSession]]


@dataclass
class SourceConfig:
    """Static description of one provider, built once at startup."""

    name: str
    endpoint: str
    api_key_env_var: str
    tier: str
    api_key: Optional[str] = None
    active: bool = True

    def __post_init__(self) -> None:
        # A provider without credentials is switched off, never an error
        if not self.api_key:
            self.active = False


class SourceAdapter(ABC):
    """
    Base adapter: issues the HTTP GET and validates the response.

    Subclasses provide ``build_request`` and ``parse``.  ``fetch`` either
    returns a complete list of articles or raises ``SourceError``.
    """

    def __init__(self, config: SourceConfig, session_provider: SessionProvider,
                 timeout: float = 10.0):
        self.config = config
        self._session_provider = session_provider
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def tier(self) -> str:
        return self.config.tier

    @property
    def active(self) -> bool:
        return self.config.active

    @abstractmethod
    def build_request(self, query: str, region: str, limit: int) -> tuple[Dict[str, Any], Dict[str, str]]:
        """Return ``(params, headers)`` for the provider request."""
        ...

    @abstractmethod
    def parse(self, data: Dict[str, Any], region: str) -> List[Article]:
        """Map the provider payload to canonical articles."""
        ...

    def provider_error(self, data: Dict[str, Any]) -> Optional[str]:
        """Error message embedded in an otherwise successful response."""
        if data.get("status") == "error":
            return str(data.get("message") or data.get("results") or "provider reported an error")
        return None

    async def fetch(self, query: str, region: str, limit: int) -> List[Article]:
        params, headers = self.build_request(query, region, limit)
        data = await self._get_json(params, headers)
        error = self.provider_error(data)
        if error:
            raise SourceError(self.name, f"provider error: {error}")
        try:
            return self.parse(data, region)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise SourceError(self.name, f"malformed payload: {e}") from e

    async def _get_json(self, params: Dict[str, Any], headers: Dict[str, str]) -> Dict[str, Any]:
        session = await self._session_provider()
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with session.get(self.config.endpoint, params=params, headers=headers,
                                   timeout=timeout) as resp:
                if resp.status < 200 or resp.status >= 300:
                    text = await resp.text()
                    logger.warning(f"{self.name} responded with status {resp.status}: {text[:200]}")
                    raise SourceError(self.name, http_status=resp.status)
                try:
                    data = await resp.json(content_type=None)
                except ValueError as e:
                    raise SourceError(self.name, f"invalid JSON body: {e}") from e
        except SourceError:
            raise
        except asyncio.TimeoutError as e:
            raise SourceError(self.name, "request timed out", network_error=e) from e
        except aiohttp.ClientError as e:
            raise SourceError(self.name, network_error=e) from e
        if not isinstance(data, dict):
            raise SourceError(self.name, "unexpected JSON payload")
        return data

    def _article(self, *, title: Any, description: Any, url: Any, source: Any,
                 author: Any, published_at: Any, region: str, default_source: str) -> Optional[Article]:
        title_text = clean_text(title)
        if not title_text:
            return None
        url_text = clean_text(url) or ""
        return Article(
            id=content_id(self.name, url_text, title_text),
            title=title_text,
            description=clean_text(description),
            url=url_text,
            source=clean_text(source) or default_source,
            author=clean_text(author),
            published_at=parse_datetime(published_at),
            country=region,
            category="ai",
            provenance=self.name,
        )


def _collect(items: List[Optional[Article]]) -> List[Article]:
    return [a for a in items if a is not None]


class NewsAPIAdapter(SourceAdapter):
    """newsapi.org ``/v2/everything``; key sent in the ``X-Api-Key`` header."""

    def build_request(self, query, region, limit):
        params = {
            "q": query,
            "language": "en",
            "sortBy": "publishedAt",
            "pageSize": min(limit, 100),
        }
        return params, {"X-Api-Key": self.config.api_key or ""}

    def parse(self, data, region):
        return _collect([
            self._article(
                title=item.get("title"),
                description=item.get("description"),
                url=item.get("url"),
                source=(item.get("source") or {}).get("name"),
                author=item.get("author"),
                published_at=item.get("publishedAt"),
                region=region,
                default_source="NewsAPI",
            )
            for item in data.get("articles") or []
        ])


class NewsDataAdapter(SourceAdapter):
    """newsdata.io ``/api/1/news``; key in the ``apikey`` query parameter."""

    def build_request(self, query, region, limit):
        params = {
            "q": query,
            "language": "en",
            "size": min(limit, 50),
            "apikey": self.config.api_key or "",
        }
        return params, {}

    def parse(self, data, region):
        articles = []
        for item in data.get("results") or []:
            creators = item.get("creator") or []
            articles.append(self._article(
                title=item.get("title"),
                description=item.get("description"),
                url=item.get("link"),
                source=item.get("source_id"),
                author=creators[0] if isinstance(creators, list) and creators else None,
                published_at=item.get("pubDate"),
                region=region,
                default_source="NewsData",
            ))
        return _collect(articles)


class MediaStackAdapter(SourceAdapter):
    """mediastack ``/v1/news``; key in the ``access_key`` query parameter."""

    def build_request(self, query, region, limit):
        params = {
            "keywords": query,
            "languages": "en",
            "limit": min(limit, 100),
            "access_key": self.config.api_key or "",
        }
        return params, {}

    def provider_error(self, data):
        # mediastack can report failures with HTTP 200 and an ``error`` object
        error = data.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or error.get("code") or "provider error")
        return None

    def parse(self, data, region):
        return _collect([
            self._article(
                title=item.get("title"),
                description=item.get("description"),
                url=item.get("url"),
                source=item.get("source"),
                author=item.get("author"),
                published_at=item.get("published_at"),
                region=region,
                default_source="MediaStack",
            )
            for item in data.get("data") or []
        ])


class GNewsAdapter(SourceAdapter):
    """gnews.io ``/api/v4/search``; key in the ``apikey`` query parameter."""

    def build_request(self, query, region, limit):
        params = {
            "q": query,
            "lang": "en",
            "max": min(limit, 100),
            "apikey": self.config.api_key or "",
        }
        return params, {}

    def parse(self, data, region):
        articles = []
        for item in data.get("articles") or []:
            source_name = (item.get("source") or {}).get("name")
            articles.append(self._article(
                title=item.get("title"),
                description=item.get("description"),
                url=item.get("url"),
                source=source_name,
                author=source_name,
                published_at=item.get("publishedAt"),
                region=region,
                default_source="GNews",
            ))
        return _collect(articles)


ADAPTER_TYPES = {
    "newsapi": NewsAPIAdapter,
    "newsdata": NewsDataAdapter,
    "mediastack": MediaStackAdapter,
    "gnews": GNewsAdapter,
}


def default_source_configs(settings: Settings) -> List[SourceConfig]:
    """The four providers in priority order."""
    return [
        SourceConfig("newsapi", "https://newsapi.org/v2/everything",
                     "NEWS_API_KEY", PRIMARY, settings.NEWS_API_KEY),
        SourceConfig("newsdata", "https://newsdata.io/api/1/news",
                     "NEWSDATA_API_KEY", PRIMARY, settings.NEWSDATA_API_KEY),
        SourceConfig("mediastack", "http://api.mediastack.com/v1/news",
                     "MEDIASTACK_API_KEY", FALLBACK, settings.MEDIASTACK_API_KEY),
        SourceConfig("gnews", "https://gnews.io/api/v4/search",
                     "GNEWS_API_KEY", FALLBACK, settings.GNEWS_API_KEY),
    ]


class SourceRegistry:
    """Ordered adapters partitioned into primary and fallback tiers."""

    def __init__(self, adapters: List[SourceAdapter]):
        for adapter in adapters:
            if adapter.tier not in (PRIMARY, FALLBACK):
                raise ValueError(f"Unknown tier {adapter.tier!r} for source {adapter.name}")
        self._adapters = list(adapters)

    @classmethod
    def from_settings(cls, settings: Settings, session_provider: SessionProvider) -> "SourceRegistry":
        adapters: List[SourceAdapter] = []
        for config in default_source_configs(settings):
            adapter_cls = ADAPTER_TYPES[config.name]
            adapters.append(adapter_cls(config, session_provider, timeout=settings.NEWS_SOURCE_TIMEOUT_SECONDS))
            if not config.active:
                logger.info(f"News source {config.name} inactive: {config.api_key_env_var} not set")
        return cls(adapters)

    def primary(self) -> List[SourceAdapter]:
        return [a for a in self._adapters if a.tier == PRIMARY and a.active]

    def fallback(self) -> List[SourceAdapter]:
        return [a for a in self._adapters if a.tier == FALLBACK and a.active]

    def all(self) -> List[SourceAdapter]:
        return list(self._adapters)

    def describe(self) -> List[Dict[str, Any]]:
        return [
            {
                "name": a.name,
                "tier": a.tier,
                "active": a.active,
                "api_key_env_var": a.config.api_key_env_var,
            }
            for a in self._adapters
        ]
