import pytest

from core.cache import MemoryCache, NullCache, cache_key, is_cacheable, key_for
from core.request_types import RelayResponse, TargetRequest


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _response(body: bytes = b"{}", status: int = 200) -> RelayResponse:
    return RelayResponse(status_code=status, headers=[], content=body, media_type="application/json")


@pytest.fixture
def clock():
    return FakeClock()


class TestCacheKey:
    def test_header_order_and_case_do_not_matter(self):
        first = cache_key("https://a.test", "GET", {"Accept": "x", "X-Id": "1"})
        second = cache_key("https://a.test", "get", {"x-id": "1", "accept": "x"})

        assert first == second

    def test_identity_fields_change_the_key(self):
        base = cache_key("https://a.test", "GET", {"X-Id": "1"})

        assert cache_key("https://b.test", "GET", {"X-Id": "1"}) != base
        assert cache_key("https://a.test", "HEAD", {"X-Id": "1"}) != base
        assert cache_key("https://a.test", "GET", {"X-Id": "2"}) != base

    def test_key_for_target(self):
        target = TargetRequest(url="https://a.test", method="GET", headers={"A": "1"})

        assert key_for(target) == cache_key("https://a.test", "GET", {"A": "1"})


class TestCacheability:
    @pytest.mark.parametrize("method,expected", [("GET", True), ("HEAD", True), ("POST", False)])
    def test_methods(self, method, expected):
        assert is_cacheable(TargetRequest(url="https://a.test", method=method)) is expected

    def test_error_responses_are_not_cached(self):
        target = TargetRequest(url="https://a.test", method="GET")

        assert is_cacheable(target, _response(status=404)) is False
        assert is_cacheable(target, _response(status=304)) is True


class TestMemoryCache:
    def test_get_returns_stored_value(self, clock):
        cache = MemoryCache(clock=clock)
        cache.set("k", _response(b"1"), ttl=60)

        assert cache.get("k").content == b"1"

    def test_entry_expires_after_ttl(self, clock):
        cache = MemoryCache(clock=clock)
        cache.set("k", _response(), ttl=60)

        clock.now += 59
        assert cache.get("k") is not None
        clock.now += 1
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_reads_do_not_extend_lifetime(self, clock):
        cache = MemoryCache(clock=clock)
        cache.set("k", _response(), ttl=10)

        for _ in range(5):
            clock.now += 3
            cache.get("k")

        assert cache.get("k") is None

    def test_set_replaces_and_restarts_ttl(self, clock):
        cache = MemoryCache(clock=clock)
        cache.set("k", _response(b"old"), ttl=10)
        clock.now += 8
        cache.set("k", _response(b"new"), ttl=10)
        clock.now += 8

        assert cache.get("k").content == b"new"

    def test_capacity_bound_evicts_oldest(self, clock):
        cache = MemoryCache(max_entries=2, clock=clock)
        cache.set("a", _response(b"a"), ttl=60)
        cache.set("b", _response(b"b"), ttl=60)
        cache.set("c", _response(b"c"), ttl=60)

        assert cache.get("a") is None
        assert cache.get("b").content == b"b"
        assert cache.get("c").content == b"c"

    def test_insert_drops_expired_entries_at_the_head(self, clock):
        cache = MemoryCache(clock=clock)
        cache.set("a", _response(b"a"), ttl=10)
        cache.set("b", _response(b"b"), ttl=60)
        cache.set("c", _response(b"c"), ttl=5)
        clock.now += 20
        cache.set("d", _response(b"d"), ttl=60)

        # "c" sits behind a live entry and waits for a read to expire it
        assert list(cache._entries) == ["b", "c", "d"]
        assert cache.get("c") is None
        assert list(cache._entries) == ["b", "d"]

    def test_expired_entries_do_not_take_capacity(self, clock):
        cache = MemoryCache(max_entries=2, clock=clock)
        cache.set("a", _response(b"a"), ttl=10)
        cache.set("b", _response(b"b"), ttl=10)
        clock.now += 20
        cache.set("c", _response(b"c"), ttl=60)
        cache.set("d", _response(b"d"), ttl=60)

        assert cache.get("c").content == b"c"
        assert cache.get("d").content == b"d"

    def test_clear(self, clock):
        cache = MemoryCache(clock=clock)
        cache.set("k", _response(), ttl=60)
        cache.clear()

        assert cache.get("k") is None


def test_null_cache_never_stores():
    cache = NullCache()
    cache.set("k", _response(), ttl=60)

    assert cache.get("k") is None
