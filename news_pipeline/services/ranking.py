"""
Deduplication and ranking of aggregated articles.

The ranking policy is a replaceable strategy.  The default heuristic only
looks at cheap structural signals (title/description length, a credible
outlet allow-list and recency); its score is a sort key, not a measure
of relevance.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Protocol

from ..models.schemas import Article
from ..utils.text import normalize_title

CREDIBLE_SOURCES = ("reuters", "ap", "bbc", "cnn", "bloomberg", "wsj")


def dedupe(articles: Iterable[Article]) -> List[Article]:
    """
    Drop articles whose normalized title was already seen.

    First occurrence wins, so callers control which duplicate survives by
    ordering the input (primary tier before fallback tier).  Articles with
    a blank title are dropped.
    """
    seen_titles = set()
    unique: List[Article] = []
    for article in articles:
        title = normalize_title(article.title)
        if not title or title in seen_titles:
            continue
        seen_titles.add(title)
        unique.append(article)
    return unique


class RankingPolicy(Protocol):
    def score(self, article: Article, now: datetime) -> int:
        """Return a quality score in [0, 100]."""
        ...


class HeuristicRankingPolicy:
    """Structural scoring: base 50 plus length, outlet and recency bonuses."""

    def __init__(self, credible_sources: Iterable[str] = CREDIBLE_SOURCES, base: int = 50):
        self.base = base
        self._credible = [
            re.compile(rf"\b{re.escape(name.lower())}\b") for name in credible_sources
        ]

    def is_credible(self, source: Optional[str]) -> bool:
        if not source:
            return False
        lowered = source.lower()
        return any(pattern.search(lowered) for pattern in self._credible)

    def score(self, article: Article, now: datetime) -> int:
        score = self.base

        title = article.title or ""
        if len(title) > 20:
            score += 10
        if len(title) > 50:
            score += 5

        description = article.description or ""
        if len(description) > 50:
            score += 10
        if len(description) > 100:
            score += 5

        if self.is_credible(article.source):
            score += 15

        if article.published_at is not None:
            age = now - article.published_at
            if age < timedelta(hours=24):
                score += 10
            elif age < timedelta(hours=48):
                score += 5

        return max(0, min(100, score))


def _recency_key(article: Article) -> float:
    # Undated articles sort after every dated one
    if article.published_at is None:
        return float("-inf")
    return article.published_at.timestamp()


def rank_articles(articles: Iterable[Article], limit: int,
                  policy: Optional[RankingPolicy] = None,
                  now: Optional[datetime] = None) -> List[Article]:
    """
    Score, sort and truncate.

    Scores are clamped to [0, 100] regardless of what the policy returns.
    Sorting is by score descending, then publication time descending.
    """
    policy = policy or HeuristicRankingPolicy()
    now = now or datetime.now(timezone.utc)
    scored = [
        article.model_copy(update={"quality_score": max(0, min(100, int(policy.score(article, now))))})
        for article in articles
    ]
    scored.sort(key=lambda a: (a.quality_score, _recency_key(a)), reverse=True)
    return scored[:max(0, limit)]
