"""Service for executing Maps API calls with rate limiting and automatic retries.

Each attempt is: acquire a rate-limiter permit for the API's category (and
the global category), send the request through the transport, classify the
result. Transient failures are retried on an exponential backoff schedule
(or after the server's Retry-After hint) until the schedule's budget runs
out; permanent failures end the loop immediately.
"""

import asyncio
import logging
import random
import re
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, FrozenSet, Optional

from mapscli.domain.events.api_events import (
    ApiCallFailed,
    ApiCallInitiated,
    ApiCallSucceeded,
    RetryScheduled,
)
from mapscli.domain.exceptions import CancelledOrTimedOut, RetryBudgetExhausted, TransportError
from mapscli.domain.interfaces.transport import Transport
from mapscli.domain.models.common import Api, Url
from mapscli.domain.models.outcome import Permanent, RetryResult, Success
from mapscli.domain.models.status import ApiStatus
from mapscli.infrastructure.resilience.backoff import BackoffSchedule
from mapscli.infrastructure.resilience.classifier import (
    DEFAULT_TRANSIENT_STATUSES,
    ResponseParser,
    classify,
)
from mapscli.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"(key=)[^&]*")


def redact_url(url: str) -> str:
    """Hides the API key in URLs written to the log."""
    return _KEY_PATTERN.sub(r"\1***", url)


@dataclass
class _Progress:
    attempts: int = 0
    delay: float = 0.0


class ApiRetryService:
    """Drives the rate-limit -> transport -> classify loop for one request at a time."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        transport: Transport,
        schedule: Optional[BackoffSchedule] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        rng: Callable[[], float] = random.random,
    ):
        """Initializes the ApiRetryService.

        Args:
            rate_limiter: The shared rate limiter.
            transport: Single-shot HTTP transport.
            schedule: Backoff schedule (defaults to BackoffSchedule()).
            sleep: Coroutine used for backoff waits (injectable for tests).
            clock: Monotonic clock in seconds (injectable for tests).
            rng: Randomness source for jitter (injectable for tests).
        """
        self.rate_limiter = rate_limiter
        self.transport = transport
        self.schedule = schedule or BackoffSchedule()
        self._sleep = sleep
        self._clock = clock
        self._rng = rng

        logger.info(
            f"ApiRetryService initialized: base_interval={self.schedule.base_interval}s, "
            f"multiplier={self.schedule.multiplier}, max_interval={self.schedule.max_interval}s, "
            f"max_elapsed_time={self.schedule.max_elapsed_time}s"
        )

    def _dispatch_event(self, event) -> None:
        logger.debug(f"EVENT: {event}")

    async def execute(
        self,
        api: Api,
        url: Url,
        parse: ResponseParser,
        method: str = "GET",
        body: Optional[str] = None,
        transient_statuses: FrozenSet[ApiStatus] = DEFAULT_TRANSIENT_STATUSES,
        deadline: Optional[float] = None,
        api_name: Optional[str] = None,
    ) -> RetryResult:
        """Executes a built request until success, permanent failure or budget exhaustion.

        Args:
            api: The request's rate-limit category.
            url: Fully-qualified request URL.
            parse: Parser for the API's response envelope.
            method: HTTP method.
            body: Request body for non-GET APIs.
            transient_statuses: API statuses that are worth retrying.
            deadline: Optional time limit in seconds for the whole loop,
                including rate-limit waits, backoff sleeps and round trips.
            api_name: Display name for log and error messages.

        Returns:
            RetryResult with the parsed envelope, attempt count and timings.

        Raises:
            RemoteRejection: The service declined the request.
            MalformedResponse: The response body could not be parsed.
            RetryBudgetExhausted: Transient failures outlasted the schedule.
            CancelledOrTimedOut: The deadline expired.
        """
        progress = _Progress()
        start = self._clock()
        coro = self._run(api, url, parse, method, body, transient_statuses,
                         api_name or api.value.replace("_", " ").title(), progress, start)
        if deadline is None:
            return await coro

        try:
            return await asyncio.wait_for(coro, timeout=deadline)
        except asyncio.TimeoutError:
            elapsed = self._clock() - start
            logger.error(f"Deadline of {deadline}s expired for {api.value} after {progress.attempts} attempt(s).")
            self._dispatch_event(ApiCallFailed(
                api=api.value, attempts=progress.attempts, elapsed_seconds=elapsed,
                classification="timed_out", error_type="CancelledOrTimedOut",
                error_message=f"deadline {deadline}s expired",
            ))
            raise CancelledOrTimedOut(progress.attempts, elapsed, deadline) from None

    async def _run(
        self,
        api: Api,
        url: Url,
        parse: ResponseParser,
        method: str,
        body: Optional[str],
        transient_statuses: FrozenSet[ApiStatus],
        api_name: str,
        progress: _Progress,
        start: float,
    ) -> RetryResult:
        while True:
            # 1. Wait for rate limit permission
            await self.rate_limiter.acquire([api])

            # 2. Send the request
            progress.attempts += 1
            self._dispatch_event(ApiCallInitiated(api=api.value, attempt_number=progress.attempts))
            logger.debug(f"Making HTTP {method} request to {api_name} API: `{redact_url(url)}`")
            try:
                result = await self.transport.send(method, url, body)
            except TransportError as e:
                result = e

            # 3. Classify
            outcome = classify(result, parse, transient_statuses, api_name)
            elapsed = self._clock() - start

            if isinstance(outcome, Success):
                self._dispatch_event(ApiCallSucceeded(
                    api=api.value, attempts=progress.attempts, elapsed_seconds=elapsed,
                ))
                return RetryResult(
                    payload=outcome.payload,
                    attempts=progress.attempts,
                    elapsed_seconds=elapsed,
                    delay_seconds=progress.delay,
                )

            if isinstance(outcome, Permanent):
                self._dispatch_event(ApiCallFailed(
                    api=api.value, attempts=progress.attempts, elapsed_seconds=elapsed,
                    classification="permanent", error_type=type(outcome.error).__name__,
                    error_message=str(outcome.error),
                ))
                raise outcome.error

            # 4. Transient: wait and retry, or give up
            wait = self.schedule.next_wait(progress.attempts, elapsed, outcome.retry_after, self._rng)
            if wait is None:
                logger.error(
                    f"Retry budget exhausted for {api_name} API after {progress.attempts} attempt(s). "
                    f"Last error: {outcome.error}"
                )
                self._dispatch_event(ApiCallFailed(
                    api=api.value, attempts=progress.attempts, elapsed_seconds=elapsed,
                    classification="budget_exhausted", error_type=type(outcome.error).__name__,
                    error_message=str(outcome.error),
                ))
                raise RetryBudgetExhausted(outcome.error, progress.attempts, elapsed) from outcome.error

            logger.warning(
                f"Transient error calling {api_name} API on attempt {progress.attempts}: "
                f"{type(outcome.error).__name__}. Waiting {wait:.2f}s..."
            )
            self._dispatch_event(RetryScheduled(
                api=api.value, attempt_number=progress.attempts, delay_seconds=wait,
                retry_after_hint=outcome.retry_after,
            ))
            await self._sleep(wait)
            progress.delay += wait
