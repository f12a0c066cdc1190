from __future__ import annotations

from combinators import RateLimitPolicy

from bazaar.http import AllowAll, RateLimiter, TokenBucketLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _limiter(clock: FakeClock, *, per_second: float = 1, burst: int = 2, idle_ttl: float = 180.0) -> TokenBucketLimiter:
    return TokenBucketLimiter(
        RateLimitPolicy(max_per_second=per_second, burst=burst),
        idle_ttl=idle_ttl,
        clock=clock,
    )


class TestTokenBucketLimiter:
    def test_burst_then_reject(self):
        limiter = _limiter(FakeClock())

        assert [limiter.allow("1.2.3.4") for _ in range(3)] == [True, True, False]

    def test_refills_at_rate(self):
        clock = FakeClock()
        limiter = _limiter(clock)
        limiter.allow("a")
        limiter.allow("a")

        clock.advance(0.5)
        assert limiter.allow("a") is False
        clock.advance(0.5)
        assert limiter.allow("a") is True

    def test_refill_capped_at_burst(self):
        clock = FakeClock()
        limiter = _limiter(clock)

        clock.advance(60)
        assert [limiter.allow("a") for _ in range(3)] == [True, True, False]

    def test_keys_are_independent(self):
        limiter = _limiter(FakeClock(), burst=1)

        assert limiter.allow("a") is True
        assert limiter.allow("a") is False
        assert limiter.allow("b") is True

    def test_idle_buckets_evicted(self):
        clock = FakeClock()
        limiter = _limiter(clock, idle_ttl=10)
        limiter.allow("a")
        limiter.allow("b")
        assert len(limiter) == 2

        clock.advance(11)
        limiter.allow("c")

        assert len(limiter) == 1

    def test_satisfies_protocol(self):
        assert isinstance(_limiter(FakeClock()), RateLimiter)
        assert isinstance(AllowAll(), RateLimiter)


def test_allow_all_never_rejects():
    limiter = AllowAll()
    assert all(limiter.allow("x") for _ in range(100))
