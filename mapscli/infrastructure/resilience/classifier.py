"""Response classification: success, transient failure or permanent failure.

Pure functions with no I/O so the retry policy can be tested without a
network. The rules:

* transport error (no HTTP response)             -> Transient
* 2xx and the body fails to parse                -> Permanent
* 2xx and the API status is OK                   -> Success
* 2xx and the API status is transient (UNKNOWN_ERROR) -> Transient
* 2xx and any other API status                   -> Permanent
* 429 or 5xx                                     -> Transient
* any other HTTP status                          -> Permanent
"""

import logging
from typing import Any, Callable, FrozenSet, Optional, Protocol, Union

from mapscli.domain.exceptions import (
    MalformedResponse,
    RemoteRejection,
    TransientRemoteCondition,
    TransportError,
)
from mapscli.domain.models.outcome import ClassifiedOutcome, Permanent, Success, Transient, TransportResponse
from mapscli.domain.models.status import STATUS_DESCRIPTIONS, ApiStatus
from mapscli.infrastructure.resilience.backoff import parse_retry_after

logger = logging.getLogger(__name__)

# Only UNKNOWN_ERROR is documented as transient for the supported APIs.
DEFAULT_TRANSIENT_STATUSES: FrozenSet[ApiStatus] = frozenset({ApiStatus.UNKNOWN_ERROR})

HTTP_TOO_MANY_REQUESTS = 429

SUCCESS = "success"
TRANSIENT = "transient"
PERMANENT = "permanent"


class ResponseEnvelope(Protocol):
    """What the classifier needs from a parsed response."""
    status: ApiStatus
    error_message: Optional[str]


ResponseParser = Callable[[str], Any]


def classify_http_status(status_code: int) -> str:
    """Classifies an HTTP status code on its own."""
    if 200 <= status_code < 300:
        return SUCCESS
    if status_code == HTTP_TOO_MANY_REQUESTS or 500 <= status_code < 600:
        return TRANSIENT
    return PERMANENT


def classify_api_status(
    status: ApiStatus,
    transient_statuses: FrozenSet[ApiStatus] = DEFAULT_TRANSIENT_STATUSES,
) -> str:
    """Classifies the status embedded in a successfully parsed envelope."""
    if status is ApiStatus.OK:
        return SUCCESS
    if status in transient_statuses:
        return TRANSIENT
    return PERMANENT


def _describe(api_name: str, status: ApiStatus, error_message: Optional[str]) -> str:
    detail = error_message or STATUS_DESCRIPTIONS.get(status, "")
    return f"{api_name} API server: {status.value}. {detail}".strip()


def classify(
    result: Union[TransportResponse, TransportError],
    parse: ResponseParser,
    transient_statuses: FrozenSet[ApiStatus] = DEFAULT_TRANSIENT_STATUSES,
    api_name: str = "Google Maps",
) -> ClassifiedOutcome:
    """Turns one transport outcome into a ClassifiedOutcome.

    Args:
        result: The response received, or the transport error raised.
        parse: Parser for the API's JSON envelope; raises MalformedResponse.
        transient_statuses: API statuses worth retrying for this endpoint.
        api_name: Used in error messages.

    Returns:
        Success(envelope), Transient(error, retry_after) or Permanent(error).
    """
    if isinstance(result, TransportError):
        logger.warning(f"HTTP client returned: {result}")
        return Transient(result)

    http_class = classify_http_status(result.status_code)

    if http_class == TRANSIENT:
        retry_after = parse_retry_after(result.header("Retry-After"))
        logger.warning(f"{api_name} API returned HTTP {result.status_code}")
        error = TransientRemoteCondition(
            f"{api_name} API returned HTTP {result.status_code}",
            http_status=result.status_code,
            retry_after=retry_after,
        )
        return Transient(error, retry_after)

    if http_class == PERMANENT:
        logger.error(f"{api_name} API returned HTTP {result.status_code}")
        return Permanent(RemoteRejection(
            f"{api_name} API returned HTTP {result.status_code}",
            http_status=result.status_code,
        ))

    try:
        envelope = parse(result.body)
    except MalformedResponse as e:
        logger.error(f"{api_name} API response could not be parsed: {e}")
        return Permanent(e)
    except (ValueError, KeyError, TypeError, AttributeError, IndexError) as e:
        logger.error(f"{api_name} API response could not be parsed: {e}")
        malformed = MalformedResponse(f"{api_name} API response could not be parsed: {e}")
        malformed.__cause__ = e
        return Permanent(malformed)

    api_class = classify_api_status(envelope.status, transient_statuses)
    if api_class == SUCCESS:
        return Success(envelope)

    message = _describe(api_name, envelope.status, envelope.error_message)
    if api_class == TRANSIENT:
        logger.warning(message)
        return Transient(TransientRemoteCondition(
            message,
            status=envelope.status.value,
            error_message=envelope.error_message,
            http_status=result.status_code,
        ))

    logger.error(message)
    return Permanent(RemoteRejection(
        message,
        status=envelope.status.value,
        error_message=envelope.error_message,
        http_status=result.status_code,
    ))
