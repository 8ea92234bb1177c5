"""Rate limiter tests"""

from canvas_relay import RateLimiter


def test_admits_up_to_capacity_within_window(rate_limiter):
    results = [rate_limiter.admit("c1") for _ in range(101)]

    assert results[:100] == [True] * 100
    assert results[100] is False


def test_window_reset_after_expiry(rate_limiter, clock):
    for _ in range(100):
        rate_limiter.admit("c1")
    assert not rate_limiter.admit("c1")

    # Still inside the window at exactly its end
    clock.advance(1.0)
    assert not rate_limiter.admit("c1")

    clock.advance(0.001)
    assert rate_limiter.admit("c1")


def test_new_window_opens_at_reset_time(clock):
    limiter = RateLimiter(window_seconds=1.0, max_events=2, clock=clock)
    limiter.admit("c1")
    clock.advance(1.5)

    assert limiter.admit("c1")
    assert limiter.admit("c1")
    assert not limiter.admit("c1")

    # Window reopened at t+1.5, so t+2.4 is still inside it
    clock.advance(0.9)
    assert not limiter.admit("c1")


def test_connections_are_independent(rate_limiter):
    for _ in range(100):
        rate_limiter.admit("c1")

    assert not rate_limiter.admit("c1")
    assert rate_limiter.admit("c2")


def test_entries_created_lazily_and_forgotten(rate_limiter):
    assert len(rate_limiter) == 0
    assert "c1" not in rate_limiter

    rate_limiter.admit("c1")
    assert "c1" in rate_limiter

    rate_limiter.forget("c1")
    rate_limiter.forget("never-seen")
    assert len(rate_limiter) == 0
