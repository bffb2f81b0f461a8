import asyncio
import math

import pytest

from mapscli.domain.models.common import Api
from mapscli.infrastructure.resilience.rate_limiter import RateLimiter, TokenBucket


@pytest.fixture
def limiter(fake_clock):
    return RateLimiter(clock=fake_clock, sleep=fake_clock.sleep)


def test_token_bucket_refill_is_capped():
    bucket = TokenBucket(rate=2.0, capacity=4.0, available=0.0, last_refill_time=0.0)
    bucket.refill(1.0)
    assert bucket.available == pytest.approx(2.0)
    bucket.refill(100.0)
    assert bucket.available == pytest.approx(4.0)


def test_token_bucket_time_until_available():
    bucket = TokenBucket(rate=2.0, capacity=2.0, available=0.25, last_refill_time=0.0)
    assert bucket.time_until_available() == pytest.approx(0.375)
    bucket.available = 1.0
    assert bucket.time_until_available() == 0.0


@pytest.mark.parametrize("requests, per_seconds", [(0, 1.0), (-1, 1.0), (1, 0.0)])
def test_set_rate_rejects_non_positive(limiter, requests, per_seconds):
    with pytest.raises(ValueError):
        limiter.set_rate(Api.GEOCODING, requests, per_seconds)


@pytest.mark.asyncio
async def test_unlimited_category_never_waits(limiter, fake_clock):
    for _ in range(100):
        assert await limiter.acquire([Api.GEOCODING]) == 0.0
    assert fake_clock.sleeps == []
    assert limiter.available(Api.GEOCODING) == math.inf


@pytest.mark.asyncio
async def test_burst_up_to_capacity_is_immediate(limiter, fake_clock):
    limiter.set_rate(Api.GEOCODING, 3, 1.0)
    for _ in range(3):
        await limiter.acquire([Api.GEOCODING])
    assert fake_clock.sleeps == []
    assert limiter.available(Api.GEOCODING) == 0


@pytest.mark.asyncio
async def test_blocked_time_matches_rate(limiter, fake_clock):
    # 2 requests/s with a burst of 2: 5 acquisitions need at least (5 - 2) / 2 seconds.
    limiter.set_rate(Api.GEOCODING, 2, 1.0)
    start = fake_clock()
    for _ in range(5):
        await limiter.acquire([Api.GEOCODING])
    assert fake_clock() - start >= 1.5 - 1e-9


@pytest.mark.asyncio
async def test_global_bucket_applies_to_every_category(limiter, fake_clock):
    limiter.set_rate(Api.ALL, 1, 2.0)
    await limiter.acquire([Api.GEOCODING])
    waited = await limiter.acquire([Api.ELEVATION])
    assert waited == pytest.approx(2.0)


@pytest.mark.asyncio
async def test_permit_takes_from_category_and_global(limiter):
    limiter.set_rate(Api.ALL, 10, 1.0)
    limiter.set_rate(Api.PLACES, 5, 1.0)
    await limiter.acquire([Api.PLACES])
    assert limiter.bucket(Api.ALL).available == pytest.approx(9.0)
    assert limiter.bucket(Api.PLACES).available == pytest.approx(4.0)


@pytest.mark.asyncio
async def test_blocked_category_does_not_consume_global(limiter, fake_clock):
    limiter.set_rate(Api.ALL, 10, 1.0)
    limiter.set_rate(Api.PLACES, 1, 10.0)
    await limiter.acquire([Api.PLACES])
    assert limiter.bucket(Api.ALL).available == pytest.approx(9.0)

    # The second PLACES permit waits 10s; ALL refills to full meanwhile and is only charged once.
    await limiter.acquire([Api.PLACES])
    assert fake_clock.sleeps == [pytest.approx(10.0)]
    assert limiter.bucket(Api.ALL).available == pytest.approx(9.0)


@pytest.mark.asyncio
async def test_remove_rate_lifts_limit(limiter, fake_clock):
    limiter.set_rate(Api.GEOCODING, 1, 60.0)
    await limiter.acquire([Api.GEOCODING])
    limiter.remove_rate(Api.GEOCODING)
    assert await limiter.acquire([Api.GEOCODING]) == 0.0
    assert limiter.bucket(Api.GEOCODING) is None


@pytest.mark.asyncio
async def test_concurrent_acquirers_are_all_granted():
    limiter = RateLimiter()
    limiter.set_rate(Api.ALL, 50, 0.1)
    limiter.set_rate(Api.GEOCODING, 50, 0.1)
    waits = await asyncio.gather(*(limiter.acquire([Api.GEOCODING]) for _ in range(60)))
    assert len(waits) == 60
    assert limiter.available(Api.GEOCODING) <= 50
