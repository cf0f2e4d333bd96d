"""TTL cache strict and lenient reads."""

from conftest import make_article
from news_pipeline.services.result_cache import ResultCache, make_key


def test_keys_are_normalized():
    assert make_key("  AI News ", "us") == ("ai news", "US")


def test_strict_read_respects_ttl_boundary(clock):
    cache = ResultCache(ttl_seconds=30 * 60, clock=clock)
    key = make_key("AI", "US")
    cache.set(key, [make_article("Cached story")])

    clock.advance(29 * 60)
    entry = cache.get(key)
    assert entry is not None
    assert not cache.is_expired(entry)

    clock.advance(2 * 60)
    assert cache.get_lenient(key) is not None
    assert cache.is_expired(cache.get_lenient(key))
    assert cache.get(key) is None


def test_lenient_read_returns_expired_entry(clock):
    cache = ResultCache(ttl_seconds=30 * 60, clock=clock)
    key = make_key("AI", "US")
    articles = [make_article("Old but available")]
    cache.set(key, articles)

    clock.advance(31 * 60)
    entry = cache.get_lenient(key)
    assert entry is not None
    assert entry.articles == articles


def test_strict_read_evicts_lazily(clock):
    cache = ResultCache(ttl_seconds=60, clock=clock)
    key = make_key("AI", "US")
    cache.set(key, [make_article("Short lived")])
    clock.advance(61)

    # Nothing is purged until a strict read notices the expiry
    assert len(cache) == 1
    assert cache.get(key) is None
    assert len(cache) == 0
    assert cache.get_lenient(key) is None


def test_set_overwrites_and_restarts_ttl(clock):
    cache = ResultCache(ttl_seconds=60, clock=clock)
    key = make_key("AI", "US")
    cache.set(key, [make_article("First")])
    clock.advance(50)
    cache.set(key, [make_article("Second")])
    clock.advance(50)
    entry = cache.get(key)
    assert entry is not None
    assert [a.title for a in entry.articles] == ["Second"]


def test_miss_is_none(clock):
    cache = ResultCache(clock=clock)
    assert cache.get(make_key("nothing", "US")) is None
    assert cache.get_lenient(make_key("nothing", "US")) is None
