"""Per-attempt outcomes of the request pipeline.

A ``TransportResponse`` is what came back over the wire; the classifier turns
it (or a ``TransportError``) into exactly one of ``Success``, ``Transient`` or
``Permanent``. These are produced once per attempt and never stored.
"""

from dataclasses import dataclass, field
from typing import Generic, Mapping, Optional, TypeVar, Union

from mapscli.domain.exceptions import MapsError

T = TypeVar("T")


@dataclass(frozen=True)
class TransportResponse:
    """Raw result of one HTTP round trip."""
    status_code: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None


@dataclass(frozen=True)
class Success(Generic[T]):
    payload: T


@dataclass(frozen=True)
class Transient:
    error: MapsError
    retry_after: Optional[float] = None


@dataclass(frozen=True)
class Permanent:
    error: MapsError


ClassifiedOutcome = Union[Success, Transient, Permanent]


@dataclass
class RetryResult(Generic[T]):
    """Terminal result of the retry loop, with values for monitoring."""

    payload: T
    """The parsed response envelope"""

    attempts: int
    """Number of attempts made (1 if the first one succeeded)"""

    elapsed_seconds: float
    """Total time spent in the loop, including waits"""

    delay_seconds: float = 0.0
    """Time spent sleeping between attempts"""
