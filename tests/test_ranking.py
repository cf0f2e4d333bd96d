"""Deduplication and ranking behavior."""

from datetime import datetime, timedelta

from conftest import NOW, make_article
from news_pipeline.services.ranking import HeuristicRankingPolicy, dedupe, rank_articles


def test_dedupe_keeps_first_of_case_and_whitespace_variants():
    first = make_article("Foo Bar", provenance="newsapi")
    second = make_article("  foo bar  ", provenance="mediastack")
    result = dedupe([first, second])
    assert len(result) == 1
    assert result[0].provenance == "newsapi"


def test_dedupe_is_idempotent():
    articles = [
        make_article("Alpha story"),
        make_article("ALPHA  story "),
        make_article("Beta story"),
        make_article("gamma STORY"),
        make_article("Gamma story"),
    ]
    once = dedupe(articles)
    assert dedupe(once) == once
    assert [a.title for a in once] == ["Alpha story", "Beta story", "gamma STORY"]


def test_dedupe_drops_blank_titles():
    blank = make_article("placeholder").model_copy(update={"title": "   "})
    kept = make_article("Real headline")
    assert dedupe([blank, kept]) == [kept]


def test_heuristic_score_components():
    policy = HeuristicRankingPolicy()
    article = make_article(
        "A" * 60,
        description="d" * 120,
        source="Reuters",
        hours_old=2,
    )
    # 50 base + 15 title + 15 description + 15 credible + 10 recency, capped
    assert policy.score(article, NOW) == 100


def test_heuristic_score_minimal_article():
    policy = HeuristicRankingPolicy()
    article = make_article("Short", source="Unknown Blog", hours_old=None)
    assert policy.score(article, NOW) == 50


def test_recency_bands():
    policy = HeuristicRankingPolicy()
    fresh = make_article("Short", source="Blog", hours_old=23)
    day_old = make_article("Short", source="Blog", hours_old=30)
    old = make_article("Short", source="Blog", hours_old=72)
    assert policy.score(fresh, NOW) == 60
    assert policy.score(day_old, NOW) == 55
    assert policy.score(old, NOW) == 50


def test_credible_match_is_word_bounded():
    policy = HeuristicRankingPolicy()
    assert policy.is_credible("AP News")
    assert policy.is_credible("BBC World")
    assert not policy.is_credible("TechCrunch Apps")
    assert not policy.is_credible(None)


class _WildPolicy:
    def __init__(self, value):
        self.value = value

    def score(self, article, now):
        return self.value


def test_rank_scores_stay_within_bounds():
    articles = [make_article(f"Story {i}") for i in range(5)]
    for value in (-40, 250):
        ranked = rank_articles(articles, limit=10, policy=_WildPolicy(value), now=NOW)
        assert all(0 <= a.quality_score <= 100 for a in ranked)


def test_rank_sorts_by_score_then_recency_and_truncates():
    newer = make_article("Same score newer", hours_old=1)
    older = make_article("Same score older", hours_old=5)
    undated = make_article("Same score undated", hours_old=None)
    strong = make_article("A much longer headline that earns the title bonus", hours_old=70)

    class ByTitle:
        def score(self, article, now):
            return 90 if article is strong or article.title == strong.title else 60

    ranked = rank_articles([undated, older, strong, newer], limit=3, policy=ByTitle(), now=NOW)
    assert [a.title for a in ranked] == [strong.title, newer.title, older.title]


def test_rank_does_not_mutate_input():
    article = make_article("Unchanged input")
    rank_articles([article], limit=1, now=NOW)
    assert article.quality_score == 0


def test_rank_default_now_handles_aware_dates():
    article = make_article("Aware date story").model_copy(
        update={"published_at": datetime.now(NOW.tzinfo) - timedelta(hours=1)}
    )
    ranked = rank_articles([article], limit=1)
    assert ranked[0].quality_score >= 60
