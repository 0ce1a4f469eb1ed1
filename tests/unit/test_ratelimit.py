from __future__ import annotations

from storefront.app.services.ratelimit import RateLimiter


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_rate_limiter_allows_within_limit() -> None:
    limiter = RateLimiter()
    for _ in range(3):
        assert limiter.allow("login:1.2.3.4", limit=3, window_seconds=1)


def test_rate_limiter_blocks_after_limit_and_recovers() -> None:
    clock = _Clock()
    limiter = RateLimiter(clock=clock)
    assert limiter.allow("chat:guest", limit=2, window_seconds=60)
    clock.now = 10.0
    assert limiter.allow("chat:guest", limit=2, window_seconds=60)
    clock.now = 20.0
    assert limiter.allow("chat:guest", limit=2, window_seconds=60) is False
    assert limiter.retry_after("chat:guest", window_seconds=60) == 40

    clock.now = 60.5
    assert limiter.allow("chat:guest", limit=2, window_seconds=60)


def test_rate_limiter_keys_are_independent() -> None:
    limiter = RateLimiter(clock=_Clock())
    assert limiter.allow("login:a", limit=1, window_seconds=60)
    assert limiter.allow("login:a", limit=1, window_seconds=60) is False
    assert limiter.allow("login:b", limit=1, window_seconds=60)


def test_rate_limiter_reset() -> None:
    limiter = RateLimiter(clock=_Clock())
    assert limiter.allow("admin:x", limit=1, window_seconds=60)
    limiter.reset("admin:x")
    assert limiter.retry_after("admin:x", window_seconds=60) == 0
    assert limiter.allow("admin:x", limit=1, window_seconds=60)


def test_rate_limiter_forgets_idle_keys() -> None:
    clock = _Clock()
    limiter = RateLimiter(clock=clock)
    for guest in range(50):
        assert limiter.allow(f"chat:guest_{guest}", limit=30, window_seconds=60)
    assert limiter.tracked_keys() == 50

    clock.now = 61.0
    for guest in range(50):
        assert limiter.retry_after(f"chat:guest_{guest}", window_seconds=60) == 0
    assert limiter.tracked_keys() == 0

    assert limiter.allow("chat:guest_new", limit=30, window_seconds=60)
    assert limiter.retry_after("chat:unknown", window_seconds=60) == 0
    assert limiter.tracked_keys() == 1
