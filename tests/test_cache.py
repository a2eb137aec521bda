"""Tests for the fingerprint-keyed rule cache."""
import pytest
from cssforge.cache import CacheEntry, RuleCache, fingerprint


class TestFingerprint:
    def test_key_order_independent(self):
        assert fingerprint({"a": 1, "b": 2}) == fingerprint({"b": 2, "a": 1})

    def test_nested_key_order_independent(self):
        one = {"color": "red", "&:hover": {"opacity": 1, "color": "blue"}}
        two = {"&:hover": {"color": "blue", "opacity": 1}, "color": "red"}
        assert fingerprint(one) == fingerprint(two)

    def test_different_data(self):
        assert fingerprint({"color": "red"}) != fingerprint({"color": "blue"})

    def test_options_participate(self):
        data = {"color": "red"}
        assert fingerprint(data, {"prefix": "a"}) != fingerprint(data, {"prefix": "b"})

    def test_none_options_same_as_empty(self):
        assert fingerprint({"a": 1}) == fingerprint({"a": 1}, {})

    def test_mixed_key_types(self):
        stops = {0: {"opacity": 0}, "to": {"opacity": 1}}
        assert fingerprint(stops) == fingerprint({"to": {"opacity": 1}, 0: {"opacity": 0}})

    def test_key_type_participates(self):
        assert fingerprint({50: {"top": 0}}) != fingerprint({"50": {"top": 0}})

    def test_unserializable_value(self):
        assert fingerprint({"content": object}) == fingerprint({"content": object})

    def test_hex_digest(self):
        digest = fingerprint({"a": 1})
        assert len(digest) == 64
        int(digest, 16)


class TestCacheEntry:
    def test_size_is_utf8_bytes(self):
        entry = CacheEntry("css-a", "é", created_at=0, last_used_at=0)
        assert entry.size == 2

    def test_touch(self):
        entry = CacheEntry("css-a", ".a {}", created_at=0, last_used_at=0)
        entry.touch(5.0)
        assert entry.last_used_at == 5.0
        assert entry.use_count == 2


class TestRuleCache:
    def setup_method(self):
        self.cache = RuleCache("styles")

    def test_put_and_get(self):
        self.cache.put("k", "css-a", ".css-a {}", now=0)
        assert "k" in self.cache
        assert self.cache.get("k").identifier == "css-a"
        assert len(self.cache) == 1

    def test_missing_key(self):
        assert self.cache.get("nope") is None
        assert "nope" not in self.cache

    def test_discard(self):
        self.cache.put("k", "css-a", "", now=0)
        assert self.cache.discard("k") is True
        assert self.cache.discard("k") is False

    def test_clear_returns_count(self):
        self.cache.put("a", "css-a", "", now=0)
        self.cache.put("b", "css-b", "", now=0)
        assert self.cache.clear() == 2
        assert len(self.cache) == 0

    def test_total_size(self):
        self.cache.put("a", "css-a", "abc", now=0)
        self.cache.put("b", "css-b", "de", now=0)
        assert self.cache.total_size == 5

    def test_iter_yields_entries(self):
        self.cache.put("a", "css-a", "", now=0)
        assert [e.identifier for e in self.cache] == ["css-a"]


class TestEviction:
    def setup_method(self):
        self.cache = RuleCache("styles")

    def test_bound_enforced_oldest_first(self):
        for i in range(5):
            self.cache.put(f"k{i}", f"css-{i}", "", now=0)
        removed = self.cache.evict(now=0, max_age=100, max_entries=3)
        assert [e.identifier for e in removed] == ["css-0", "css-1"]
        assert len(self.cache) == 3
        assert "k0" not in self.cache
        assert "k4" in self.cache

    def test_idle_entries_removed(self):
        self.cache.put("old", "css-old", "", now=0)
        self.cache.put("new", "css-new", "", now=90)
        removed = self.cache.evict(now=100, max_age=50, max_entries=10)
        assert [e.identifier for e in removed] == ["css-old"]
        assert "old" not in self.cache
        assert "new" in self.cache

    def test_recently_touched_survives(self):
        self.cache.put("k", "css-k", "", now=0)
        self.cache.get("k").touch(90)
        assert self.cache.evict(now=100, max_age=50, max_entries=10) == []

    @pytest.mark.parametrize("count", [0, 1, 3])
    def test_nothing_to_evict(self, count):
        for i in range(count):
            self.cache.put(f"k{i}", f"css-{i}", "", now=0)
        assert self.cache.evict(now=0, max_age=100, max_entries=3) == []
