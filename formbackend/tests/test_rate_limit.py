"""Test the sliding-window rate limiter."""

from __future__ import annotations

import threading

import pytest

from formbackend.security.rate_limit import SlidingWindowRateLimiter

from .conftest import ManualClock


def test_admits_up_to_limit_then_denies():
    clock = ManualClock()
    limiter = SlidingWindowRateLimiter(window_seconds=60, max_points=3, clock=clock)

    assert [limiter.admit("form-a").allowed for _ in range(3)] == [True, True, True]
    denied = limiter.admit("form-a")
    assert denied.allowed is False
    assert denied.retry_after == 60


def test_denied_attempts_are_not_recorded():
    clock = ManualClock()
    limiter = SlidingWindowRateLimiter(window_seconds=60, max_points=1, clock=clock)

    assert limiter.admit("k").allowed
    clock.advance(30)
    for _ in range(5):
        assert not limiter.admit("k").allowed
    # Only the first admission occupies the window, so it reopens at t0 + 60.
    clock.advance(30)
    assert limiter.admit("k").allowed


def test_window_reopens_after_oldest_admission_expires():
    clock = ManualClock()
    limiter = SlidingWindowRateLimiter(window_seconds=10, max_points=2, clock=clock)

    assert limiter.admit("k").allowed
    clock.advance(4)
    assert limiter.admit("k").allowed
    clock.advance(1)
    decision = limiter.admit("k")
    assert not decision.allowed
    assert decision.retry_after == 5

    clock.advance(5.5)
    assert limiter.admit("k").allowed
    # The second admission (t0 + 4) is still inside the window.
    assert not limiter.admit("k").allowed


def test_keys_are_isolated():
    limiter = SlidingWindowRateLimiter(window_seconds=60, max_points=2, clock=ManualClock())

    assert limiter.admit("form-1").allowed
    assert limiter.admit("form-1").allowed
    assert not limiter.admit("form-1").allowed
    assert limiter.admit("form-2").allowed


def test_prune_drops_expired_keys():
    clock = ManualClock()
    limiter = SlidingWindowRateLimiter(window_seconds=10, max_points=2, clock=clock)
    limiter.admit("old")
    clock.advance(11)
    limiter.admit("fresh")

    assert limiter.prune() == 1
    assert len(limiter) == 1


def test_periodic_sweep_bounds_key_count():
    clock = ManualClock()
    limiter = SlidingWindowRateLimiter(window_seconds=1, max_points=1, clock=clock, sweep_every=10)
    for i in range(9):
        limiter.admit(f"key-{i}")
    clock.advance(2)
    limiter.admit("trigger")

    assert len(limiter) == 1


def test_reset_clears_state():
    limiter = SlidingWindowRateLimiter(window_seconds=60, max_points=1, clock=ManualClock())
    limiter.admit("k")
    limiter.reset()
    assert limiter.admit("k").allowed


def test_concurrent_admissions_never_exceed_limit():
    limiter = SlidingWindowRateLimiter(window_seconds=60, max_points=25)
    results: list[bool] = []
    lock = threading.Lock()

    def worker():
        for _ in range(10):
            allowed = limiter.admit("shared").allowed
            with lock:
                results.append(allowed)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == 25


@pytest.mark.parametrize("window,points", [(0, 1), (10, 0)])
def test_rejects_invalid_configuration(window, points):
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(window_seconds=window, max_points=points)
