"""
Tests for CalendarViewCache: keying, adaptive TTL and eviction.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
import threading

import pytest

from app.core.exceptions import UnsupportedViewTypeException
from app.services.calendar_cache import CacheKey, CalendarViewCache

USER = "01H0000000000000000000USER"
DAY = date(2023, 6, 15)


class TestKeying:
    def test_set_then_get_returns_same_object(self, calendar_cache):
        view = {"time_blocks": []}
        calendar_cache.set(USER, "week", DAY, view)

        assert calendar_cache.get(USER, "week", DAY) is view

    def test_times_on_same_day_share_an_entry(self, calendar_cache):
        view = {"time_blocks": []}
        calendar_cache.set(USER, "day", datetime(2023, 6, 15, 8, 0), view)

        assert calendar_cache.get(USER, "day", datetime(2023, 6, 15, 22, 45)) is view

    def test_view_types_are_separate(self, calendar_cache):
        calendar_cache.set(USER, "week", DAY, {"view": "week"})

        assert calendar_cache.get(USER, "month", DAY) is None

    def test_key_string_form(self):
        key = CalendarViewCache.make_key(USER, "WEEK", DAY)

        assert key == CacheKey(USER, "week", DAY)
        assert str(key) == f"{USER}:week:2023-06-15"

    def test_unknown_view_type_is_rejected(self, calendar_cache):
        with pytest.raises(UnsupportedViewTypeException):
            calendar_cache.get(USER, "year", DAY)


class TestAdaptiveTtl:
    def test_fresh_key_gets_half_the_base_ttl(self, calendar_cache, clock):
        calendar_cache.set(USER, "week", DAY, "view")

        clock.advance(149)
        assert calendar_cache.get(USER, "week", DAY) == "view"

        clock.advance(2)
        assert calendar_cache.get(USER, "week", DAY) is None
        assert calendar_cache.get_stats()["expirations"] == 1

    def test_ttl_grows_with_access_count(self, calendar_cache):
        key = calendar_cache.make_key(USER, "day", DAY)
        calendar_cache.set(USER, "day", DAY, "view")
        assert calendar_cache.ttl_for(key) == 60

        for _ in range(6):
            calendar_cache.get(USER, "day", DAY)
        assert calendar_cache.ttl_for(key) == 120

        for _ in range(5):
            calendar_cache.get(USER, "day", DAY)
        assert calendar_cache.access_count(key) == 11
        assert calendar_cache.ttl_for(key) == 240

    def test_hot_key_is_rewritten_with_longer_ttl(self, calendar_cache, clock):
        calendar_cache.set(USER, "month", DAY, "v1")
        for _ in range(11):
            calendar_cache.get(USER, "month", DAY)

        calendar_cache.set(USER, "month", DAY, "v2")
        key = calendar_cache.make_key(USER, "month", DAY)
        assert calendar_cache.access_count(key) == 0

        clock.advance(1199)
        assert calendar_cache.get(USER, "month", DAY) == "v2"
        clock.advance(2)
        assert calendar_cache.get(USER, "month", DAY) is None

    def test_expired_entry_loses_its_access_count(self, calendar_cache, clock):
        key = calendar_cache.make_key(USER, "day", DAY)
        calendar_cache.set(USER, "day", DAY, "view")
        for _ in range(7):
            calendar_cache.get(USER, "day", DAY)

        clock.advance(61)
        assert calendar_cache.get(USER, "day", DAY) is None
        assert calendar_cache.access_count(key) == 0
        assert key not in calendar_cache


class TestEviction:
    @pytest.fixture
    def small_cache(self, clock):
        return CalendarViewCache(
            max_size=10,
            base_ttls={"day": 120, "week": 300, "month": 600},
            eviction_threshold=0.8,
            eviction_ratio=0.2,
            clock=clock,
        )

    def test_least_accessed_entry_is_evicted(self, small_cache):
        for day in range(1, 9):
            small_cache.set(USER, "day", date(2023, 6, day), day)
        for day in range(1, 9):
            if day != 3:
                small_cache.get(USER, "day", date(2023, 6, day))

        small_cache.set(USER, "day", date(2023, 6, 9), 9)

        assert len(small_cache) == 8
        assert small_cache.make_key(USER, "day", date(2023, 6, 3)) not in small_cache
        assert small_cache.make_key(USER, "day", date(2023, 6, 9)) in small_cache
        assert small_cache.get_stats()["evictions"] == 1

    def test_ties_evict_oldest_entry_first(self, small_cache):
        for day in range(1, 9):
            small_cache.set(USER, "day", date(2023, 6, day), day)

        small_cache.set(USER, "day", date(2023, 6, 9), 9)

        assert small_cache.make_key(USER, "day", date(2023, 6, 1)) not in small_cache
        assert small_cache.make_key(USER, "day", date(2023, 6, 2)) in small_cache

    def test_no_eviction_below_threshold(self, small_cache):
        for day in range(1, 8):
            small_cache.set(USER, "day", date(2023, 6, day), day)

        small_cache.set(USER, "day", date(2023, 6, 8), 8)

        assert len(small_cache) == 8
        assert small_cache.get_stats()["evictions"] == 0

    def test_size_never_exceeds_max(self, small_cache):
        for day in range(1, 29):
            small_cache.set(USER, "day", date(2023, 2, day), day)

        assert len(small_cache) <= small_cache.max_size

    def test_concurrent_writers_keep_bookkeeping_consistent(self, small_cache):
        users = [f"user-{n}" for n in range(8)]
        barrier = threading.Barrier(len(users))

        def churn(user_id):
            barrier.wait()
            for round_number in range(200):
                day = date(2023, 6, 1 + round_number % 28)
                small_cache.set(user_id, "day", day, round_number)
                small_cache.get(user_id, "day", day)
                small_cache.get(users[round_number % len(users)], "week", day)
                if round_number % 25 == 0:
                    small_cache.clear_user(user_id)

        with ThreadPoolExecutor(max_workers=len(users)) as executor:
            futures = [executor.submit(churn, user_id) for user_id in users]
            for future in futures:
                future.result()

        assert len(small_cache) <= small_cache.max_size
        assert set(small_cache._entries) == set(small_cache._access_counts)
        assert small_cache.get_stats()["evictions"] > 0


class TestInvalidation:
    def test_clear_user_only_touches_that_user(self, calendar_cache):
        other = "01H0000000000000000000OTHR"
        calendar_cache.set(USER, "day", DAY, "mine")
        calendar_cache.set(USER, "week", DAY, "mine")
        calendar_cache.set(other, "day", DAY, "theirs")

        removed = calendar_cache.clear_user(USER)

        assert removed == 2
        assert calendar_cache.get(USER, "day", DAY) is None
        assert calendar_cache.get(other, "day", DAY) == "theirs"

    def test_clear_all_resets_stats(self, calendar_cache):
        calendar_cache.set(USER, "day", DAY, "view")
        calendar_cache.get(USER, "day", DAY)

        calendar_cache.clear_all()

        stats = calendar_cache.get_stats()
        assert stats["size"] == 0
        assert stats["hits"] == 0


def test_stats(calendar_cache):
    calendar_cache.set(USER, "day", DAY, "view")
    calendar_cache.get(USER, "day", DAY)
    calendar_cache.get(USER, "day", DAY)
    calendar_cache.get(USER, "week", DAY)

    stats = calendar_cache.get_stats()

    assert stats["size"] == 1
    assert stats["max_size"] == 100
    assert stats["hits"] == 2
    assert stats["misses"] == 1
    assert stats["hit_rate"] == 0.6667
    assert stats["total_accesses"] == 2
