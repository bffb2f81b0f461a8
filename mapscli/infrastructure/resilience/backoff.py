"""Exponential backoff schedule for the retry coordinator.

The interval before retry ``n`` (0-indexed) is
``min(base_interval * multiplier ** n * jitter, max_interval)`` where
``jitter`` is drawn uniformly from ``[1 - jitter_factor, 1 + jitter_factor]``.
The schedule is exhausted once the next wait would push the total elapsed
time past ``max_elapsed_time``.
"""

import random
import time
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from typing import Callable, Optional

# Same defaults as the Google client libraries' exponential backoff.
DEFAULT_BASE_INTERVAL = 0.5
DEFAULT_MULTIPLIER = 1.5
DEFAULT_MAX_INTERVAL = 60.0
DEFAULT_MAX_ELAPSED_TIME = 900.0
DEFAULT_JITTER_FACTOR = 0.5


@dataclass(frozen=True)
class BackoffSchedule:
    """Backoff configuration. All times are in seconds.

    Jitter is symmetric around the exponential interval, so with the default
    ``jitter_factor`` of 0.5 a single wait may be as short as half of
    ``base_interval * multiplier ** n``. Only the midpoint of the jitter range
    grows by ``multiplier`` per retry; pass ``jitter_factor=0`` for strictly
    non-decreasing waits.
    """

    base_interval: float = DEFAULT_BASE_INTERVAL
    """Wait before the first retry"""

    multiplier: float = DEFAULT_MULTIPLIER
    """Growth factor between consecutive waits"""

    max_interval: float = DEFAULT_MAX_INTERVAL
    """Upper bound for a single wait"""

    max_elapsed_time: float = DEFAULT_MAX_ELAPSED_TIME
    """Total time budget for the retry loop"""

    jitter_factor: float = DEFAULT_JITTER_FACTOR
    """Randomization (0-1) applied to each wait"""

    max_attempts: Optional[int] = None
    """Optional hard cap on attempts, in addition to the time budget"""

    def __post_init__(self):
        if self.base_interval < 0 or self.max_interval < 0 or self.max_elapsed_time < 0:
            raise ValueError("Backoff intervals and budget must be non-negative.")
        if self.multiplier < 1:
            raise ValueError("Backoff multiplier must be >= 1.")
        if not 0 <= self.jitter_factor < 1:
            raise ValueError("Jitter factor must be in [0, 1).")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")

    def interval(self, retry_number: int, rng: Callable[[], float] = random.random) -> float:
        """Wait before retry ``retry_number`` (0 for the wait after the first failure)."""
        try:
            exponential = self.base_interval * (self.multiplier ** retry_number)
        except OverflowError:
            exponential = float("inf")
        jitter = 1.0 + self.jitter_factor * (2.0 * rng() - 1.0)
        return min(exponential * jitter, self.max_interval)

    def next_wait(
        self,
        attempts_made: int,
        elapsed: float,
        retry_after: Optional[float] = None,
        rng: Callable[[], float] = random.random,
    ) -> Optional[float]:
        """Decides how long to wait before the next attempt.

        Args:
            attempts_made: Attempts already performed (>= 1).
            elapsed: Seconds spent in the loop so far.
            retry_after: Server-supplied hint; replaces the exponential interval.
            rng: Source of randomness for jitter.

        Returns:
            Seconds to wait, or None if the schedule is exhausted.
        """
        if self.max_attempts is not None and attempts_made >= self.max_attempts:
            return None
        if retry_after is not None:
            delay = max(0.0, retry_after)
        else:
            delay = self.interval(attempts_made - 1, rng)
        if elapsed + delay > self.max_elapsed_time:
            return None
        return delay


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """
    Parse a Retry-After header value.

    The header can contain either a number of seconds or an HTTP-date.

    Args:
        value: Retry-After header value

    Returns:
        Wait time in seconds, or None if absent or unparseable
    """
    if not value:
        return None

    try:
        return max(0.0, float(value))
    except ValueError:
        pass

    try:
        dt = parsedate_to_datetime(value)
        return max(0.0, dt.timestamp() - time.time())
    except (ValueError, TypeError):
        pass

    return None
