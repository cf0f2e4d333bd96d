"""Shared fixtures and fakes for the news pipeline tests."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from news_pipeline.core.config import Settings
from news_pipeline.core.errors import SourceError
from news_pipeline.models.schemas import Article
from news_pipeline.services.sources import PRIMARY, SourceAdapter, SourceConfig

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


async def _no_session():
    raise AssertionError("fake adapters never open a session")


def make_article(title: str, *, provenance: str = "fake", hours_old: float | None = 1,
                 description: str | None = None, source: str = "Example Wire",
                 country: str = "US", category: str = "ai", url: str | None = None) -> Article:
    return Article(
        id=f"{provenance}-{abs(hash(title))}",
        title=title,
        description=description,
        url=url or f"https://example.com/{abs(hash(title))}",
        source=source,
        published_at=None if hours_old is None else NOW - timedelta(hours=hours_old),
        country=country,
        category=category,
        provenance=provenance,
    )


def make_batch(prefix: str, count: int, provenance: str = "fake") -> list[Article]:
    return [make_article(f"{prefix} headline number {i}", provenance=provenance) for i in range(count)]


class FakeAdapter(SourceAdapter):
    """Adapter that returns canned articles, raises, or stalls."""

    def __init__(self, name: str, tier: str = PRIMARY, articles: list[Article] | None = None,
                 error: Exception | None = None, delay: float = 0.0, timeout: float = 5.0):
        config = SourceConfig(name, "https://fake.invalid", f"{name.upper()}_KEY", tier, api_key="key")
        super().__init__(config, _no_session, timeout=timeout)
        self.articles = articles or []
        self.error = error
        self.delay = delay
        self.calls = 0

    def build_request(self, query, region, limit):
        return {"q": query}, {}

    def parse(self, data, region):
        return []

    async def fetch(self, query, region, limit):
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [a.model_copy(update={"country": region}) for a in self.articles]


def failing(name: str, tier: str = PRIMARY) -> FakeAdapter:
    return FakeAdapter(name, tier, error=SourceError(name, http_status=500))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        NEWS_API_KEY=None,
        NEWSDATA_API_KEY=None,
        MEDIASTACK_API_KEY=None,
        GNEWS_API_KEY=None,
        NEWS_CACHE_TTL_SECONDS=1800,
        NEWS_FALLBACK_FLOOR=10,
        NEWS_DEFAULT_LIMIT=50,
        NEWS_MAX_LIMIT=100,
        NEWS_SOURCE_TIMEOUT_SECONDS=5,
        NEWS_EMERGENCY_CONTENT=True,
    )


class FakeClock:
    def __init__(self, start: float = 1_000_000.0):
        self.value = start

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
