"""
Region relevance scoring and per-region article views.

Relevance is a weighted keyword table: a strong hit on companies, cities
and demonyms for the region, a weaker hit on phrases like "korean ai",
and a generic boost for AI/tech vocabulary.  Matching is word-bounded and
case-insensitive over the title and description.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from ..models.schemas import Article, RegionViewStats

logger = logging.getLogger(__name__)

PRIMARY_WEIGHT = 50
SECONDARY_WEIGHT = 30
TECH_WEIGHT = 20
REGION_TAG_WEIGHT = 50
VIEW_THRESHOLD = 60
HIGH_RELEVANCE = 80
VIEW_MAX_AGE = timedelta(days=7)
VIEW_MAX_LIMIT = 50
VIEW_CATEGORIES = {"technology", "ai", ""}

TECH_TERMS = ("artificial intelligence", "ai", "technology", "innovation", "startup", "digital")


def _pattern(terms: Sequence[str]) -> Optional["re.Pattern[str]"]:
    if not terms:
        return None
    alternation = "|".join(re.escape(t) for t in terms)
    return re.compile(rf"(?<!\w)(?:{alternation})(?!\w)", re.IGNORECASE)


@dataclass(frozen=True)
class RegionKeywords:
    primary: Sequence[str]
    secondary: Sequence[str]
    region: Sequence[str]


REGION_KEYWORDS: Dict[str, RegionKeywords] = {
    "US": RegionKeywords(
        primary=("openai", "google", "microsoft", "nvidia", "apple", "amazon", "american",
                 "silicon valley", "united states", "washington"),
        secondary=("american tech", "american ai", "us tech", "u.s. tech"),
        region=("openai", "google", "microsoft", "nvidia", "apple", "amazon", "american",
                "silicon valley", "united states", "u.s.", "new york", "san francisco"),
    ),
    "KR": RegionKeywords(
        primary=("samsung", "lg", "sk hynix", "naver", "kakao", "korean", "korea", "seoul"),
        secondary=("korean tech", "k-tech", "korean ai", "korean startup"),
        region=("samsung", "lg", "sk hynix", "naver", "kakao", "korean", "korea", "seoul", "busan"),
    ),
    "JP": RegionKeywords(
        primary=("sony", "nintendo", "toyota", "honda", "softbank", "rakuten", "japanese", "japan", "tokyo"),
        secondary=("japanese tech", "japanese ai", "robotics japan"),
        region=("sony", "nintendo", "toyota", "honda", "softbank", "rakuten", "japanese", "japan", "tokyo", "osaka"),
    ),
    "CN": RegionKeywords(
        primary=("alibaba", "tencent", "baidu", "huawei", "xiaomi", "bytedance", "chinese", "china", "beijing", "shanghai"),
        secondary=("chinese tech", "chinese ai", "wechat", "tiktok"),
        region=("alibaba", "tencent", "baidu", "huawei", "xiaomi", "bytedance", "chinese", "china", "beijing", "shanghai"),
    ),
    "DE": RegionKeywords(
        primary=("sap", "siemens", "bmw", "mercedes", "volkswagen", "bosch", "german", "germany", "berlin"),
        secondary=("german tech", "german ai", "industry 4.0"),
        region=("sap", "siemens", "bmw", "mercedes", "volkswagen", "bosch", "german", "germany", "berlin", "munich"),
    ),
    "FR": RegionKeywords(
        primary=("dassault", "thales", "orange", "capgemini", "ubisoft", "french", "france", "paris"),
        secondary=("french tech", "french ai"),
        region=("dassault", "thales", "orange", "capgemini", "ubisoft", "french", "france", "paris", "lyon"),
    ),
    "GB": RegionKeywords(
        primary=("arm", "deepmind", "rolls-royce", "vodafone", "british", "britain", "uk", "london", "cambridge"),
        secondary=("british tech", "uk tech", "british ai"),
        region=("arm", "deepmind", "rolls-royce", "vodafone", "british", "britain", "uk", "london", "cambridge"),
    ),
    "IN": RegionKeywords(
        primary=("infosys", "tcs", "wipro", "flipkart", "paytm", "indian", "india", "bangalore", "mumbai"),
        secondary=("indian tech", "indian ai", "indian startup"),
        region=("infosys", "tcs", "wipro", "flipkart", "paytm", "indian", "india", "bangalore", "mumbai", "delhi"),
    ),
    "CA": RegionKeywords(
        primary=("shopify", "blackberry", "canadian", "canada", "toronto", "vancouver"),
        secondary=("canadian tech", "canadian ai"),
        region=("shopify", "blackberry", "canadian", "canada", "toronto", "vancouver", "montreal"),
    ),
    "AU": RegionKeywords(
        primary=("atlassian", "canva", "afterpay", "australian", "australia", "sydney", "melbourne"),
        secondary=("australian tech", "australian ai"),
        region=("atlassian", "canva", "afterpay", "australian", "australia", "sydney", "melbourne"),
    ),
}


def _article_text(article: Article) -> str:
    return f"{article.title or ''} {article.description or ''}".lower()


class CountryRelevanceFilter:
    """Scores articles against a region and builds per-region views."""

    def __init__(self, table: Optional[Dict[str, RegionKeywords]] = None,
                 tech_terms: Sequence[str] = TECH_TERMS):
        self.table = dict(REGION_KEYWORDS if table is None else table)
        self._tech = _pattern(tech_terms)
        self._compiled: Dict[str, tuple] = {
            code: (_pattern(kw.primary), _pattern(kw.secondary), _pattern(kw.region))
            for code, kw in self.table.items()
        }

    @property
    def regions(self) -> List[str]:
        return list(self.table)

    def _patterns(self, region: str) -> tuple:
        code = region.strip().upper()
        if code in self._compiled:
            return self._compiled[code]
        # Unknown regions: no company table, match on the code itself
        return (None, None, _pattern([code.lower()]))

    def score(self, article: Article, region: str) -> int:
        """Keyword relevance of ``article`` to ``region`` in [0, 100]."""
        primary, secondary, _ = self._patterns(region)
        text = _article_text(article)
        score = 0
        if article.country and article.country.strip().upper() == region.strip().upper():
            score += REGION_TAG_WEIGHT
        if primary is not None and primary.search(text):
            score += PRIMARY_WEIGHT
        if secondary is not None and secondary.search(text):
            score += SECONDARY_WEIGHT
        if self._tech is not None and self._tech.search(text):
            score += TECH_WEIGHT
        return min(score, 100)

    def matches_region(self, article: Article, region: str) -> bool:
        _, _, region_pattern = self._patterns(region)
        return region_pattern is not None and bool(region_pattern.search(_article_text(article)))

    def tag(self, articles: Iterable[Article], region: str) -> List[Article]:
        return [
            a.model_copy(update={"region_relevance": self.score(a, region)})
            for a in articles
        ]

    def build_view(self, articles: Iterable[Article], region: str, limit: int = 20,
                   now: Optional[datetime] = None) -> List[Article]:
        """
        Select and order the articles that belong in ``region``'s view.

        An article belongs when it is tagged with the region, scores at
        least 60, or mentions one of the region's terms; it must also be
        from the last seven days (undated articles are kept) and be
        tech/AI or uncategorised.
        """
        now = now or datetime.now(timezone.utc)
        code = region.strip().upper()
        limit = max(0, min(limit, VIEW_MAX_LIMIT))
        selected: List[Article] = []
        for article in self.tag(articles, code):
            if (article.category or "").lower() not in VIEW_CATEGORIES:
                continue
            if article.published_at is not None and article.published_at < now - VIEW_MAX_AGE:
                continue
            tagged = (article.country or "").strip().upper() == code
            if not (tagged or article.region_relevance >= VIEW_THRESHOLD or self.matches_region(article, code)):
                continue
            selected.append(article)

        selected.sort(
            key=lambda a: (
                a.region_relevance,
                a.published_at.timestamp() if a.published_at else float("-inf"),
                a.quality_score,
            ),
            reverse=True,
        )
        return selected[:limit]

    def view_stats(self, articles: Sequence[Article], regions: Optional[Iterable[str]] = None,
                   now: Optional[datetime] = None) -> Dict[str, RegionViewStats]:
        stats: Dict[str, RegionViewStats] = {}
        for region in regions or self.regions:
            view = self.build_view(articles, region, limit=VIEW_MAX_LIMIT, now=now)
            if not view:
                stats[region] = RegionViewStats()
                continue
            relevances = [a.region_relevance or 0 for a in view]
            dated = [a.published_at for a in view if a.published_at is not None]
            stats[region] = RegionViewStats(
                total_articles=len(view),
                high_relevance=sum(1 for r in relevances if r >= HIGH_RELEVANCE),
                avg_relevance=round(sum(relevances) / len(relevances), 2),
                latest_article=max(dated) if dated else None,
                unique_sources=len({a.source for a in view if a.source}),
            )
        return stats
