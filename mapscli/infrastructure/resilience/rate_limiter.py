"""Implementation of the shared rate limiter.

Controls the frequency of outgoing requests per API category using one
token bucket per category plus the wildcard ``Api.ALL`` bucket. Refill is
computed lazily from the elapsed time on each acquisition attempt, so there
are no background tasks.
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from mapscli.domain.events.api_events import ApiCallDeferred
from mapscli.domain.models.common import Api

logger = logging.getLogger(__name__)


@dataclass
class TokenBucket:
    """Permits accumulate at ``rate`` per second up to ``capacity``."""
    rate: float
    capacity: float
    available: float
    last_refill_time: float

    def refill(self, now: float) -> None:
        elapsed = max(0.0, now - self.last_refill_time)
        self.available = min(self.capacity, self.available + self.rate * elapsed)
        self.last_refill_time = now

    def time_until_available(self) -> float:
        """Seconds until at least one whole permit is available."""
        missing = 1.0 - self.available
        if missing <= 0:
            return 0.0
        return missing / self.rate


class RateLimiter:
    """Token-bucket rate limiter keyed by API category.

    A permit is granted only when the category's bucket and the ``Api.ALL``
    bucket both have capacity; granting consumes one token from each.
    Categories without a configured bucket are unlimited.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initializes an empty rate limiter.

        Args:
            clock: Monotonic clock in seconds (injectable for tests).
            sleep: Coroutine used to wait for capacity (injectable for tests).
        """
        self._clock = clock
        self._sleep = sleep
        self._buckets: Dict[Api, TokenBucket] = {}
        self._locks: Dict[Api, asyncio.Lock] = {}

    def set_rate(
        self,
        api: Api,
        requests: float,
        per_seconds: float = 1.0,
        capacity: Optional[float] = None,
    ) -> None:
        """Configures (or replaces) the bucket for a category.

        Args:
            api: The category, ``Api.ALL`` for the global bucket.
            requests: Number of requests allowed per ``per_seconds``.
            per_seconds: Length of the time unit in seconds.
            capacity: Burst size. Defaults to ``requests``.
        """
        if requests <= 0 or per_seconds <= 0:
            raise ValueError("requests and per_seconds must be positive.")
        bucket_capacity = capacity if capacity is not None else float(requests)
        if bucket_capacity < 1:
            raise ValueError("Bucket capacity must allow at least one request.")
        self._buckets[api] = TokenBucket(
            rate=requests / per_seconds,
            capacity=bucket_capacity,
            available=bucket_capacity,
            last_refill_time=self._clock(),
        )
        self._locks.setdefault(api, asyncio.Lock())
        logger.info(f"RateLimiter: {api.value} limited to {requests} request(s) / {per_seconds}s "
                    f"(burst {bucket_capacity:g})")

    def remove_rate(self, api: Api) -> None:
        self._buckets.pop(api, None)

    def bucket(self, api: Api) -> Optional[TokenBucket]:
        return self._buckets.get(api)

    def _ordered(self, categories: Iterable[Api]) -> List[Api]:
        # Fixed acquisition order: ALL first, then the rest by name.
        wanted = set(categories) | {Api.ALL}
        limited = [api for api in wanted if api in self._buckets]
        return sorted(limited, key=lambda api: (api is not Api.ALL, api.value))

    async def acquire(self, categories: Iterable[Api]) -> float:
        """Waits until every named category and ``Api.ALL`` have a permit, then takes one from each.

        Never fails; the caller is suspended with ``sleep`` until refill makes
        capacity available. Permits are granted best-effort, not FIFO.

        Args:
            categories: The request's API category (or categories).

        Returns:
            Total seconds spent waiting.
        """
        wanted = list(categories)
        waited = 0.0
        while True:
            ordered = self._ordered(wanted)
            wait_time = await self._try_acquire(ordered)
            if wait_time <= 0:
                if waited > 0:
                    logger.debug(f"Rate limit permission granted after {waited:.3f}s.")
                return waited
            event = ApiCallDeferred(
                categories=",".join(api.value for api in ordered),
                wait_time_seconds=wait_time,
            )
            logger.debug(f"EVENT: {event}")
            await self._sleep(wait_time)
            waited += wait_time

    async def _try_acquire(self, ordered: List[Api]) -> float:
        """Takes a permit from every bucket, or returns how long to wait."""
        held: List[asyncio.Lock] = []
        try:
            for api in ordered:
                lock = self._locks[api]
                await lock.acquire()
                held.append(lock)

            now = self._clock()
            wait_time = 0.0
            buckets = [self._buckets[api] for api in ordered if api in self._buckets]
            for bucket in buckets:
                bucket.refill(now)
                wait_time = max(wait_time, bucket.time_until_available())

            if wait_time > 0:
                return wait_time

            for bucket in buckets:
                bucket.available -= 1.0
            return 0.0
        finally:
            for lock in reversed(held):
                lock.release()

    def available(self, api: Api) -> float:
        """Current whole permits in a bucket, after refill (infinite if unlimited)."""
        bucket = self._buckets.get(api)
        if bucket is None:
            return math.inf
        bucket.refill(self._clock())
        return math.floor(bucket.available)
