import pytest

from css_theme_resolver.lru_cache import LRUCache, NOT_FOUND


def test_get_missing_returns_not_found():
    cache = LRUCache(2)
    assert cache.get("missing") is NOT_FOUND
    assert cache.get("missing", "fallback") == "fallback"


def test_stored_none_is_distinguishable_from_absence():
    cache = LRUCache(2)
    cache.set("key", None)
    assert cache.get("key") is None
    assert "key" in cache


def test_evicts_least_recently_used():
    cache = LRUCache(2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)

    assert "a" not in cache
    assert cache.get("b") == 2
    assert cache.get("c") == 3
    assert len(cache) == 2


def test_get_refreshes_recency():
    cache = LRUCache(2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)

    assert cache.get("a") == 1
    assert "b" not in cache


def test_set_existing_key_updates_without_eviction():
    cache = LRUCache(2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)

    assert len(cache) == 2
    assert cache.get("a") == 10
    assert cache.get("b") == 2

    # "a" was refreshed by the update, so "b" goes first
    cache.set("a", 11)
    cache.set("c", 3)
    assert "b" not in cache
    assert cache.get("a") == 11


def test_contains_does_not_refresh_recency():
    cache = LRUCache(2)
    cache.set("a", 1)
    cache.set("b", 2)
    assert "a" in cache
    cache.set("c", 3)
    assert "a" not in cache


def test_clear():
    cache = LRUCache(3)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.clear()
    assert len(cache) == 0
    assert cache.get("a") is NOT_FOUND


def test_rejects_non_positive_size():
    with pytest.raises(ValueError):
        LRUCache(0)
    assert LRUCache(5).max_size == 5
