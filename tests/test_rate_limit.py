from exportpath.api.rate_limit import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_limiter_allows_up_to_limit_per_window() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=2, window_seconds=60, clock=clock)

    assert limiter.check("10.0.0.1") is None
    clock.now += 10
    assert limiter.check("10.0.0.1") is None
    clock.now += 10

    retry_after = limiter.check("10.0.0.1")
    assert retry_after == 40


def test_limiter_window_slides() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    assert limiter.check("client") is None
    clock.now += 59
    assert limiter.check("client") is not None
    clock.now += 1
    assert limiter.check("client") is None


def test_limiter_tracks_clients_independently() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=1, clock=clock)

    assert limiter.check("a") is None
    assert limiter.check("b") is None
    assert limiter.check("a") is not None


def test_rejected_requests_do_not_extend_the_window() -> None:
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=60, clock=clock)

    limiter.check("client")
    for _ in range(5):
        clock.now += 10
        limiter.check("client")

    clock.now += 10
    assert limiter.check("client") is None


def test_zero_limit_blocks_everything() -> None:
    limiter = SlidingWindowRateLimiter(limit=0, window_seconds=60, clock=FakeClock())

    assert limiter.check("client") == 60
