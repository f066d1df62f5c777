from partner_api.utils.rate_limiter import RateLimiter, RateLimitInfo


class FakeTime:
    def __init__(self):
        self.now = 1_000.0
        self.sleeps = []

    def clock(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_rate_limit_info_parses_headers():
    info = RateLimitInfo.from_headers({"X-RateLimit-Limit": "100", "X-RateLimit-Remaining": "7", "X-RateLimit-Reset": "45"})
    assert (info.limit, info.remaining, info.reset) == (100, 7, 45)
    assert info.exhausted is False
    assert info.seconds_until_reset() == 45.0


def test_rate_limit_info_tolerates_missing_and_garbage_headers():
    info = RateLimitInfo.from_headers({"X-RateLimit-Limit": "lots"})
    assert info.limit is None
    assert info.remaining is None
    assert info.seconds_until_reset() is None


def test_rate_limit_info_ignores_infinite_values():
    info = RateLimitInfo.from_headers({"X-RateLimit-Reset": "inf", "X-RateLimit-Remaining": "-inf"})
    assert info.reset is None
    assert info.remaining is None


def test_epoch_reset_is_relative_to_now():
    info = RateLimitInfo(limit=10, remaining=0, reset=1_700_000_030)
    assert info.exhausted is True
    assert info.seconds_until_reset(now=1_700_000_000) == 30.0
    assert info.seconds_until_reset(now=1_700_000_100) == 0.0


def test_limiter_sleeps_once_window_is_full():
    t = FakeTime()
    limiter = RateLimiter(requests_per_minute=2, clock=t.clock, sleep=t.sleep)

    assert limiter.wait_if_needed() == 0.0
    t.now += 10
    assert limiter.wait_if_needed() == 0.0
    t.now += 5
    waited = limiter.wait_if_needed()

    assert waited == 45.0
    assert t.sleeps == [45.0]
    assert limiter.get_stats()["requests_in_last_minute"] == 2


def test_limiter_disabled_with_zero_rpm():
    t = FakeTime()
    limiter = RateLimiter(requests_per_minute=0, clock=t.clock, sleep=t.sleep)
    for _ in range(100):
        limiter.wait_if_needed()
    assert t.sleeps == []


def test_pause_for_exhausted_quota():
    t = FakeTime()
    limiter = RateLimiter(requests_per_minute=10, clock=t.clock, sleep=t.sleep)

    assert limiter.pause_for(RateLimitInfo(remaining=3, reset=20)) == 0.0
    assert limiter.pause_for(RateLimitInfo(remaining=0, reset=20)) == 20.0
    assert t.sleeps == [20.0]
