"""Domain Events related to API calls and resilience.

Events for when calls are deferred by the rate limiter, retried, fail, or
succeed. They carry the monitoring values (attempt count, final
classification, elapsed time) and are dispatched through logging.
"""

import time
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an HTTP request is about to be sent."""
    api: str
    attempt_number: int
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallSucceeded(DomainEvent):
    """Event triggered when a call ends in Success."""
    api: str
    attempts: int
    elapsed_seconds: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when a call fails definitively."""
    api: str
    attempts: int
    elapsed_seconds: float
    classification: str  # 'permanent', 'budget_exhausted' or 'timed_out'
    error_type: str
    error_message: str
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallDeferred(DomainEvent):
    """Event triggered when the rate limiter makes a caller wait."""
    categories: str
    wait_time_seconds: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    """Event triggered when a transient failure will be retried."""
    api: str
    attempt_number: int
    delay_seconds: float
    retry_after_hint: Optional[float] = None
    timestamp: float = field(default_factory=time.time)
