"""Error taxonomy shared by every Maps API.

Each error kind tells the caller whether resubmitting the request makes
sense. Errors raised by the HTTP library or the JSON decoder are kept as
``__cause__`` so the taxonomy does not depend on the transport in use.
"""

from typing import Optional


class MapsError(Exception):
    """Base class for all mapscli errors."""

    retryable = False


# --- Caller errors (never retried) ---

class ValidationError(MapsError):
    """The request is missing required fields or combines incompatible ones."""


class RequestLifecycleError(MapsError):
    """A request method was called out of order."""


class RequestNotValidated(RequestLifecycleError):
    """build() was called before validate()."""

    def __init__(self, message: str = "The request must be validated before a query string may be built. "
                                      "Call validate() before build()."):
        super().__init__(message)


class QueryNotBuilt(RequestLifecycleError):
    """The query string was requested before build()."""

    def __init__(self, message: str = "The query string must be built before the request may be sent. "
                                      "Call build() before get()."):
        super().__init__(message)


class RequestAlreadyValidated(RequestLifecycleError):
    """A field was set after the request left the Unvalidated state."""


class RequestConsumed(RequestLifecycleError):
    """The request was already executed; call rebuild() to send it again."""


# --- Remote / transport outcomes ---

class TransportError(MapsError):
    """No HTTP response was received (connection, DNS, TLS, timeout)."""

    retryable = True


class RemoteRejection(MapsError):
    """The service understood the request and declined it."""

    def __init__(
        self,
        message: str,
        status: Optional[str] = None,
        error_message: Optional[str] = None,
        http_status: Optional[int] = None,
    ):
        self.status = status
        self.error_message = error_message
        self.http_status = http_status
        super().__init__(message)


class TransientRemoteCondition(MapsError):
    """The service signalled a temporary failure (HTTP 429/5xx or UNKNOWN_ERROR)."""

    retryable = True

    def __init__(
        self,
        message: str,
        status: Optional[str] = None,
        error_message: Optional[str] = None,
        http_status: Optional[int] = None,
        retry_after: Optional[float] = None,
    ):
        self.status = status
        self.error_message = error_message
        self.http_status = http_status
        self.retry_after = retry_after
        super().__init__(message)


class MalformedResponse(MapsError):
    """The response body could not be parsed into the API's envelope."""


class RetryBudgetExhausted(MapsError):
    """Retries did not help; wraps the last transient error."""

    def __init__(self, last_error: Exception, attempts: int, elapsed: float):
        self.last_error = last_error
        self.attempts = attempts
        self.elapsed = elapsed
        super().__init__(
            f"Retry budget exhausted after {attempts} attempt(s) in {elapsed:.2f}s. Last error: {last_error}"
        )


class CancelledOrTimedOut(MapsError):
    """The caller's deadline expired while the request was in flight or waiting."""

    def __init__(self, attempts: int, elapsed: float, deadline: Optional[float] = None):
        self.attempts = attempts
        self.elapsed = elapsed
        self.deadline = deadline
        super().__init__(
            f"Deadline of {deadline}s expired after {attempts} attempt(s) ({elapsed:.2f}s elapsed)"
        )
