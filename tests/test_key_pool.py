"""Tests for KeyPool: rotation, quarantine and recovery."""

from __future__ import annotations

import threading

import pytest

from purchase_guard.advisor.key_pool import (
    FAILURE_THRESHOLD,
    EmptyKeyPoolError,
    KeyPool,
)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def pool(clock):
    return KeyPool(["key-a", "key-b", "key-c"], failure_threshold=3, quarantine_seconds=60.0, clock=clock)


class TestConstruction:
    def test_empty_pool_is_configuration_error(self):
        with pytest.raises(EmptyKeyPoolError):
            KeyPool([])

    def test_blank_keys_do_not_count(self):
        with pytest.raises(EmptyKeyPoolError):
            KeyPool(["", "   "])

    def test_duplicates_dropped_order_kept(self):
        pool = KeyPool(["b", "a", "b", " a "])
        assert pool.keys == ("b", "a")
        assert len(pool) == 2

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            KeyPool(["a"], failure_threshold=0)

    def test_default_threshold(self):
        assert KeyPool(["a"]).failure_threshold == FAILURE_THRESHOLD


class TestRotation:
    def test_round_robin(self, pool):
        picks = [pool.next_credential() for _ in range(6)]
        assert picks == ["key-a", "key-b", "key-c", "key-a", "key-b", "key-c"]

    def test_single_key_always_returned(self):
        pool = KeyPool(["only"])
        assert {pool.next_credential() for _ in range(5)} == {"only"}

    def test_skips_quarantined_key(self, pool):
        for _ in range(3):
            pool.report_error("key-b")
        assert pool.is_quarantined("key-b")

        picks = [pool.next_credential() for _ in range(4)]
        assert "key-b" not in picks
        assert picks == ["key-a", "key-c", "key-a", "key-c"]

    def test_all_quarantined_degrades_to_round_robin(self, pool):
        for key in pool.keys:
            for _ in range(10):
                pool.report_error(key)

        picks = [pool.next_credential() for _ in range(6)]
        assert picks == ["key-a", "key-b", "key-c", "key-a", "key-b", "key-c"]

    def test_different_key_after_failure(self, pool):
        first = pool.next_credential()
        pool.report_error(first)
        assert pool.next_credential() != first


class TestHealthTracking:
    def test_below_threshold_not_quarantined(self, pool):
        pool.report_error("key-a")
        pool.report_error("key-a")
        assert not pool.is_quarantined("key-a")
        assert pool.get_key_state("key-a")["consecutive_failures"] == 2

    def test_threshold_quarantines(self, pool):
        for _ in range(3):
            pool.report_error("key-a")
        state = pool.get_key_state("key-a")
        assert state["state"] == "quarantined"
        assert state["total_failures"] == 3

    def test_more_failures_stay_quarantined(self, pool):
        for _ in range(8):
            pool.report_error("key-a")
        assert pool.is_quarantined("key-a")

    def test_success_resets_and_clears_quarantine(self, pool):
        for _ in range(3):
            pool.report_error("key-a")
        pool.report_success("key-a")
        state = pool.get_key_state("key-a")
        assert state["state"] == "healthy"
        assert state["consecutive_failures"] == 0
        assert state["total_successes"] == 1

    def test_success_between_failures_resets_streak(self, pool):
        pool.report_error("key-a")
        pool.report_error("key-a")
        pool.report_success("key-a")
        pool.report_error("key-a")
        assert not pool.is_quarantined("key-a")

    def test_unknown_key_ignored(self, pool):
        pool.report_error("nope")
        pool.report_success("nope")
        assert all(s["total_failures"] == 0 for s in pool.get_all_states())

    def test_reset(self, pool):
        for _ in range(3):
            pool.report_error("key-c")
        pool.reset("key-c")
        assert not pool.is_quarantined("key-c")

    def test_states_mask_keys(self):
        pool = KeyPool(["csk-secret-abcd1234"])
        state = pool.get_all_states()[0]
        assert state["key"] == "...1234"
        assert "secret" not in state["key"]


class TestQuarantineExpiry:
    def test_key_retried_after_quarantine_window(self, pool, clock):
        for _ in range(3):
            pool.report_error("key-a")
        assert "key-a" not in [pool.next_credential() for _ in range(4)]

        clock.now += 61.0
        assert "key-a" in [pool.next_credential() for _ in range(3)]

    def test_failed_retry_requarantines_immediately(self, pool, clock):
        for _ in range(3):
            pool.report_error("key-a")
        clock.now += 61.0
        pool.report_error("key-a")

        picks = [pool.next_credential() for _ in range(4)]
        assert "key-a" not in picks

    def test_successful_retry_restores_key(self, pool, clock):
        for _ in range(3):
            pool.report_error("key-a")
        clock.now += 61.0
        pool.report_success("key-a")
        clock.now -= 61.0
        assert "key-a" in [pool.next_credential() for _ in range(3)]


class TestConcurrency:
    def test_no_lost_updates_across_threads(self):
        pool = KeyPool(["k1", "k2"], failure_threshold=10_000)

        def hammer():
            for _ in range(500):
                key = pool.next_credential()
                pool.report_error(key)

        threads = [threading.Thread(target=hammer) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        total = sum(s["total_failures"] for s in pool.get_all_states())
        assert total == 8 * 500
