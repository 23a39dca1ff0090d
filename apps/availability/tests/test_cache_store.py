"""Unit tests for the in-process LRU/TTL cache store."""

from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from apps.availability.cache import CacheStore, CacheStoreFailure
from apps.availability.cache.backing import CacheBacking
from apps.availability.cache.entry import RemovalReason
from apps.availability.testing import ManualClock


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store(clock: ManualClock) -> CacheStore:
    return CacheStore(max_size=3, default_ttl=60, clock=clock)


def test_get_returns_stored_value_and_counts_hits(store: CacheStore) -> None:
    store.set("api_car_1", {"id": 1})

    assert store.get("api_car_1") == {"id": 1}
    assert store.get("api_car_2") is None
    assert store.get("api_car_2", "fallback") == "fallback"

    stats = store.stats()
    assert stats.hits == 1
    assert stats.misses == 2
    assert stats.size == 1


def test_entry_expires_exactly_at_ttl(store: CacheStore, clock: ManualClock) -> None:
    start = clock.now
    store.set("api_customer_1234567", "Ada", ttl=10)

    clock.now = start + 9.5
    assert store.get("api_customer_1234567") == "Ada"

    clock.now = start + 10
    assert store.get("api_customer_1234567") is None
    assert len(store) == 0
    assert store.stats().misses == 1


def test_timedelta_ttl_is_accepted(store: CacheStore, clock: ManualClock) -> None:
    store.set("api_locations_all", [], ttl=timedelta(minutes=1))
    assert store.ttl("api_locations_all") == pytest.approx(60)
    clock.advance(60)
    assert store.ttl("api_locations_all") is None


def test_full_store_evicts_least_recently_used(clock: ManualClock) -> None:
    store = CacheStore(max_size=2, default_ttl=60, clock=clock)
    store.set("a", 1)
    store.set("b", 2)
    store.get("a")

    store.set("c", 3)

    assert store.has("a")
    assert not store.has("b")
    assert store.has("c")
    assert len(store) == 2
    assert store.stats().evictions == 1


def test_replacing_a_key_does_not_evict(store: CacheStore) -> None:
    store.set("a", 1)
    store.set("b", 2)
    store.set("c", 3)

    store.set("b", 20)

    assert len(store) == 3
    assert store.get("b") == 20
    assert store.stats().evictions == 0


def test_per_call_max_size_only_lowers_the_limit(store: CacheStore) -> None:
    store.set("a", 1)
    store.set("b", 2)
    store.set("c", 3, max_size=2)
    assert len(store) == 2
    assert not store.has("a")

    store.set("d", 4, max_size=50)
    assert len(store) == 3


def test_invalidate_is_idempotent(store: CacheStore) -> None:
    store.set("api_car_7", "vehicle")

    assert store.invalidate("api_car_7") is True
    assert store.invalidate("api_car_7") is False
    assert store.get("api_car_7") is None


def test_invalidate_pattern_matches_whole_key_only(clock: ManualClock) -> None:
    store = CacheStore(max_size=10, default_ttl=60, clock=clock)
    store.set("api_cars_1_2030-01-01_2030-01-05", "one")
    store.set("api_cars_1_2030-02-01_2030-02-03_suv", "one-suv")
    store.set("api_cars_10_2030-01-01_2030-01-05", "ten")
    store.set("api_car_1", "vehicle")

    removed = store.invalidate_pattern("api_cars_1_*")

    assert removed == 2
    assert store.keys() == ["api_cars_10_2030-01-01_2030-01-05", "api_car_1"]
    assert store.invalidate_pattern("api_car_*") == 1
    assert store.has("api_cars_10_2030-01-01_2030-01-05")


def test_pattern_without_wildcard_is_an_exact_match(store: CacheStore) -> None:
    store.set("api_stats_2030-01-01_2030-02-01", {})
    store.set("api_stats_2030-01-01_2030-02-01_3", {})

    assert store.invalidate_pattern("api_stats_2030-01-01_2030-02-01") == 1
    assert store.has("api_stats_2030-01-01_2030-02-01_3")


def test_invalid_arguments_are_rejected(store: CacheStore) -> None:
    with pytest.raises(ValueError, match="Key cannot be null or empty."):
        store.set("", 1)
    with pytest.raises(ValueError):
        store.get("")
    with pytest.raises(ValueError):
        store.set("a", 1, ttl=0)
    with pytest.raises(ValueError):
        store.invalidate_pattern("")
    with pytest.raises(ValueError):
        CacheStore(max_size=0)


def test_sweep_removes_only_expired_entries(store: CacheStore, clock: ManualClock) -> None:
    store.set("short", 1, ttl=5)
    store.set("long", 2, ttl=50)
    clock.advance(10)

    assert store.sweep() == 1
    assert store.keys() == ["long"]
    assert store.sweep() == 0


def test_refresh_restarts_lifetime(store: CacheStore, clock: ManualClock) -> None:
    store.set("a", 1, ttl=10)
    clock.advance(8)

    assert store.refresh("a", 10) is True
    clock.advance(8)
    assert store.get("a") == 1
    assert store.refresh("missing", 10) is False


def test_removal_listener_sees_reasons_and_cannot_break_the_store(clock: ManualClock) -> None:
    seen = []

    def listener(key, reason):
        seen.append((key, reason))
        if key == "boom":
            raise RuntimeError("listener failure")

    store = CacheStore(max_size=2, default_ttl=10, clock=clock, on_remove=listener)
    store.set("boom", 0)
    store.invalidate("boom")
    store.set("a", 1)
    store.set("a", 2)
    store.set("b", 3)
    store.set("c", 4)
    clock.advance(10)
    store.sweep()

    assert seen == [
        ("boom", RemovalReason.INVALIDATED),
        ("a", RemovalReason.REPLACED),
        ("a", RemovalReason.EVICTED),
        ("b", RemovalReason.EXPIRED),
        ("c", RemovalReason.EXPIRED),
    ]


def test_export_and_import_skip_expired_entries(store: CacheStore, clock: ManualClock) -> None:
    store.set("fresh", {"n": 1}, ttl=100)
    store.set("stale", {"n": 2}, ttl=5)
    clock.advance(5)

    snapshot = store.export()
    assert list(snapshot) == ["fresh"]

    other = CacheStore(max_size=3, default_ttl=60, clock=clock)
    imported = other.import_entries({**snapshot, "broken": {"no": "value"}, "old": {"value": 1, "expires_at": 0}})
    assert imported == 1
    assert other.get("fresh") == {"n": 1}


def test_warm_and_set_many(store: CacheStore) -> None:
    assert store.warm([("a", 1, 10), ("b", 2, None)]) == 2
    store.set_many({"c": 3})
    assert store.get_many(["a", "b", "c", "d"]) == {"a": 1, "b": 2, "c": 3, "d": None}


def test_stats_report_hit_rate_and_most_accessed_key(store: CacheStore, clock: ManualClock) -> None:
    store.set("a", 1)
    clock.advance(1)
    store.set("b", 2)
    store.get("b")
    store.get("b")
    store.get("a")
    store.get("zzz")

    stats = store.stats()
    assert stats.hit_rate == pytest.approx(75.0)
    assert stats.most_accessed_key == "b"
    assert stats.oldest_entry_at == store.export()["a"]["created_at"]

    data = stats.to_dict()
    assert data["hit_count"] == 3
    assert data["miss_count"] == 1
    assert data["eviction_policy"] == "lru"


def test_clear_empties_store(store: CacheStore) -> None:
    store.set("a", 1)
    store.set("b", 2)
    store.clear()
    assert len(store) == 0
    assert store.keys() == []


def test_concurrent_writers_never_exceed_capacity() -> None:
    store = CacheStore(max_size=20, default_ttl=60)
    errors = []

    def worker(offset: int) -> None:
        try:
            for i in range(200):
                key = f"api_car_{offset * 1000 + i}"
                store.set(key, i)
                store.get(key)
                assert len(store) <= 20
        except Exception as exc:  # pragma: no cover - reported below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(store) == 20
    stats = store.stats()
    assert stats.evictions == 8 * 200 - 20


def test_persistent_entries_survive_a_new_store() -> None:
    backing = CacheBacking("availability_backing")
    backing.clear()
    first = CacheStore(max_size=5, default_ttl=60, backing=backing)
    first.set("api_locations_all", [{"id": 1}], ttl=600, persistent=True)
    first.set("api_car_1", "not persisted")

    second = CacheStore(max_size=5, default_ttl=60, backing=backing)
    assert second.load_persistent() == 1
    assert second.get("api_locations_all") == [{"id": 1}]
    assert second.get("api_car_1") is None

    second.invalidate("api_locations_all")
    third = CacheStore(max_size=5, default_ttl=60, backing=backing)
    assert third.load_persistent() == 0


class _BrokenBacking(CacheBacking):
    def save(self, entry, now):
        raise CacheStoreFailure("disk full")

    def load(self):
        raise CacheStoreFailure("unreadable")


def test_backing_failures_are_swallowed(caplog: pytest.LogCaptureFixture) -> None:
    store = CacheStore(max_size=5, default_ttl=60, backing=_BrokenBacking("availability_backing"))

    with caplog.at_level("WARNING", logger="apps.availability.cache.store"):
        store.set("api_locations_all", [], persistent=True)
        assert store.load_persistent() == 0

    assert store.get("api_locations_all") == []
    assert "disk full" in caplog.text


def test_late_backing_delete_keeps_a_newer_persisted_copy(clock: ManualClock) -> None:
    backing = CacheBacking("availability_backing")
    backing.clear()
    store: CacheStore

    def rewrite_on_expiry(key: str, reason: RemovalReason) -> None:
        # A writer slips in between the expiry and the backing cleanup.
        if reason is RemovalReason.EXPIRED:
            store.set(key, ["new"], ttl=60, persistent=True)

    store = CacheStore(max_size=5, default_ttl=60, clock=clock, backing=backing, on_remove=rewrite_on_expiry)
    store.set("api_locations_all", ["old"], ttl=10, persistent=True)
    clock.advance(10)

    assert store.get("api_locations_all") is None
    assert store.get("api_locations_all") == ["new"]

    restarted = CacheStore(max_size=5, default_ttl=60, clock=clock, backing=backing)
    assert restarted.load_persistent() == 1
    assert restarted.get("api_locations_all") == ["new"]
