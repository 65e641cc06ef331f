from src.services.venue_cache import VenueSizeCache

def test_set_and_get():
    cache = VenueSizeCache()
    cache.set("a", 1)

    assert cache.get("a") == 1
    assert cache.get("missing") is None
    assert cache.stats()["hits"] == 1
    assert cache.stats()["misses"] == 1

def test_contains_does_not_count():
    cache = VenueSizeCache()
    cache.set("a", 1)

    assert "a" in cache
    assert "b" not in cache
    assert cache.hits == 0 and cache.misses == 0

def test_entries_expire():
    cache = VenueSizeCache(ttl_seconds=0)
    cache.set("a", 1)

    assert cache.get("a") is None
    assert len(cache) == 0

def test_per_entry_ttl_overrides_default():
    cache = VenueSizeCache(ttl_seconds=0)
    cache.set("a", 1, ttl_seconds=3600)

    assert cache.get("a") == 1

def test_cleanup_expired():
    cache = VenueSizeCache()
    cache.set("a", 1, ttl_seconds=0)
    cache.set("b", 2, ttl_seconds=0)
    cache.set("c", 3)

    assert cache.cleanup_expired() == 2
    assert len(cache) == 1

def test_least_recently_used_entries_are_evicted():
    cache = VenueSizeCache(max_entries=2)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")
    cache.set("c", 3)

    assert "a" in cache
    assert "b" not in cache
    assert "c" in cache

def test_clear_resets_entries_and_counters():
    cache = VenueSizeCache()
    cache.set("a", 1)
    cache.get("a")

    cache.clear()

    assert cache.stats() == {
        "entries": 0,
        "hits": 0,
        "misses": 0,
        "ttl_seconds": None,
        "max_entries": None,
    }
