"""Executable request shared by every Maps API.

``ApiRequest`` binds the lifecycle state machine to a client context: the
client supplies the API key at build time and the retry service at send
time. Subclasses declare their category, URL, field order, validation
rules and response parser.
"""

import abc
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, FrozenSet, Iterator, Mapping, Optional, Tuple

from mapscli.domain.exceptions import ValidationError
from mapscli.domain.models.common import OUTPUT_FORMAT, Api, QueryString, Url
from mapscli.domain.models.outcome import RetryResult
from mapscli.domain.models.request import Request, RequestState
from mapscli.domain.models.status import ApiStatus
from mapscli.infrastructure.apis.encoding import build_query, format_value
from mapscli.infrastructure.resilience.classifier import DEFAULT_TRANSIENT_STATUSES

if TYPE_CHECKING:
    from mapscli.core.client import MapsClient

logger = logging.getLogger(__name__)


@dataclass
class ApiResponse:
    """Fields every response envelope carries."""
    status: ApiStatus
    error_message: Optional[str]


class ApiRequest(Request):
    """A request for one Maps API, bound to a MapsClient."""

    API: ClassVar[Api]
    API_NAME: ClassVar[str]
    SERVICE_URL: ClassVar[str]
    FIELD_ORDER: ClassVar[Tuple[str, ...]] = ()
    METHOD: ClassVar[str] = "GET"
    TRANSIENT_STATUSES: ClassVar[FrozenSet[ApiStatus]] = DEFAULT_TRANSIENT_STATUSES

    def __init__(self, client: "MapsClient"):
        super().__init__()
        self._client = client
        self.last_result: Optional[RetryResult] = None

    # --- Serialization ---

    def _ordered_fields(self, parameters: Mapping[str, Any]) -> Iterator[Tuple[str, Any]]:
        # Declared fields first, then anything else alphabetically.
        for name in self.FIELD_ORDER:
            if name in parameters:
                yield name, parameters[name]
        for name in sorted(set(parameters) - set(self.FIELD_ORDER)):
            yield name, parameters[name]

    def _format_field(self, name: str, value: Any) -> str:
        return format_value(value)

    def _serialize_parameters(self, parameters: Mapping[str, Any]) -> QueryString:
        return build_query(
            self._client.key,
            ((name, self._format_field(name, value)) for name, value in self._ordered_fields(parameters)),
        )

    def _require(self, parameters: Mapping[str, Any], *names: str) -> None:
        missing = [name for name in names if name not in parameters]
        if missing:
            raise ValidationError(
                f"{self.API_NAME} API client library: missing required parameter(s): {', '.join(missing)}"
            )

    # --- Response handling ---

    @staticmethod
    @abc.abstractmethod
    def parse_response(text: str) -> ApiResponse:
        """Parses the response body into this API's envelope.

        Raises:
            MalformedResponse: If the body cannot be parsed.
        """

    # --- Execution ---

    @property
    def url(self) -> Url:
        """The full request URL. Requires a built request."""
        return Url(f"{self.SERVICE_URL}/{OUTPUT_FORMAT}?{self.take_query()}")

    def _body(self) -> Optional[str]:
        return None

    async def get(self, deadline: Optional[float] = None) -> Any:
        """Sends a built request through the client's retry pipeline.

        Args:
            deadline: Time limit in seconds for all attempts and waits
                (defaults to the client's deadline).

        Returns:
            The parsed response envelope.
        """
        url = self.url
        self.consume()
        result = await self._client.retry_service.execute(
            self.API,
            url,
            self.parse_response,
            method=self.METHOD,
            body=self._body(),
            transient_statuses=self.TRANSIENT_STATUSES,
            deadline=deadline if deadline is not None else self._client.deadline,
            api_name=self.API_NAME,
        )
        self.last_result = result
        logger.debug(
            f"{self.API_NAME} API request succeeded after {result.attempts} attempt(s) "
            f"in {result.elapsed_seconds:.3f}s"
        )
        return result.payload

    async def execute(self, deadline: Optional[float] = None) -> Any:
        """Validates and builds the request if needed, then sends it."""
        if self.state is RequestState.UNVALIDATED:
            self.validate()
        if self.state is RequestState.VALIDATED:
            self.build()
        return await self.get(deadline)
