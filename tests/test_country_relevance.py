"""Region relevance scoring, view selection and view statistics."""

from conftest import NOW, make_article
from news_pipeline.services.country_relevance import CountryRelevanceFilter, RegionKeywords


def test_primary_and_tech_terms_score():
    relevance = CountryRelevanceFilter()
    article = make_article("Samsung opens AI lab in Seoul")
    # primary 50 + tech 20
    assert relevance.score(article, "KR") == 70


def test_secondary_phrase_adds_to_primary():
    relevance = CountryRelevanceFilter()
    article = make_article("Korean AI startup raises new funding")
    # primary "korean" + secondary "korean ai" + tech "ai", capped
    assert relevance.score(article, "KR") == 100


def test_region_tag_counts_and_total_is_capped():
    relevance = CountryRelevanceFilter()
    tagged = make_article("Kakao rolls out digital wallet", country="KR")
    assert relevance.score(tagged, "kr") == 100
    plain = make_article("Quarterly earnings roundup", country="KR")
    assert relevance.score(plain, "KR") == 50


def test_matching_is_word_bounded():
    relevance = CountryRelevanceFilter()
    article = make_article("Algorithms reshape retail pricing")
    assert relevance.score(article, "KR") == 0
    assert not relevance.matches_region(article, "KR")


def test_unknown_region_matches_on_its_code():
    relevance = CountryRelevanceFilter()
    tagged = make_article("AI policy debate heats up", country="BR")
    assert relevance.score(tagged, "BR") == 70
    assert relevance.matches_region(make_article("New BR startup fund"), "BR")


def test_us_view_ignores_the_pronoun_us():
    relevance = CountryRelevanceFilter()
    pronoun = make_article("Join us for the weekly gadget roundup", country="GB")
    company = make_article("OpenAI expands Silicon Valley campus", country="GB")

    view = relevance.build_view([pronoun, company], "US", now=NOW)

    assert [a.title for a in view] == [company.title]
    assert not relevance.matches_region(pronoun, "US")
    assert relevance.matches_region(make_article("New U.S. chip export rules"), "US")


def test_custom_table_replaces_defaults():
    table = {"NZ": RegionKeywords(primary=("auckland",), secondary=(), region=("auckland",))}
    relevance = CountryRelevanceFilter(table=table, tech_terms=())
    assert relevance.regions == ["NZ"]
    assert relevance.score(make_article("Auckland AI meetup"), "NZ") == 50


def test_view_applies_threshold_age_and_category():
    relevance = CountryRelevanceFilter()
    strong = make_article("Sony invests in AI robotics", hours_old=3)
    weak = make_article("Global markets open higher", hours_old=3)
    stale = make_article("Toyota unveils AI driving system", hours_old=8 * 24)
    undated = make_article("Nintendo explores AI characters", hours_old=None)
    off_topic = make_article("Tokyo marathon results", hours_old=3, category="sports")
    uncategorised = make_article("Rakuten expands technology arm", hours_old=4, category="")

    view = relevance.build_view([strong, weak, stale, undated, off_topic, uncategorised], "JP", now=NOW)

    titles = [a.title for a in view]
    assert strong.title in titles
    assert undated.title in titles
    assert uncategorised.title in titles
    assert weak.title not in titles
    assert stale.title not in titles
    assert off_topic.title not in titles
    assert all(a.region_relevance is not None for a in view)


def test_view_orders_by_relevance_then_recency():
    relevance = CountryRelevanceFilter()
    high = make_article("Japanese AI lab from Sony", hours_old=10)
    mid_new = make_article("Sony quarterly results", hours_old=1)
    mid_old = make_article("Honda quarterly results", hours_old=5)

    view = relevance.build_view([mid_old, high, mid_new], "JP", now=NOW)

    assert [a.title for a in view] == [high.title, mid_new.title, mid_old.title]


def test_view_limit_is_capped():
    relevance = CountryRelevanceFilter()
    articles = [make_article(f"Huawei AI update {i}") for i in range(60)]
    assert len(relevance.build_view(articles, "CN", limit=500, now=NOW)) == 50
    assert len(relevance.build_view(articles, "CN", limit=5, now=NOW)) == 5


def test_view_does_not_mutate_input():
    relevance = CountryRelevanceFilter()
    article = make_article("Infosys launches AI platform")
    relevance.build_view([article], "IN", now=NOW)
    assert article.region_relevance is None


def test_view_stats():
    relevance = CountryRelevanceFilter()
    articles = [
        make_article("Korean AI chip race heats up", source="Korea Herald", hours_old=1),
        make_article("Naver updates search", source="Yonhap", hours_old=2),
    ]

    stats = relevance.view_stats(articles, regions=["KR", "FR"], now=NOW)

    kr = stats["KR"]
    assert kr.total_articles == 2
    assert kr.high_relevance == 1
    assert kr.avg_relevance == 75.0
    assert kr.unique_sources == 2
    assert kr.latest_article == NOW.replace(hour=11)
    assert stats["FR"].total_articles == 0
    assert stats["FR"].avg_relevance is None
