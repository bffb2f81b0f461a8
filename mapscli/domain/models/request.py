"""Request lifecycle shared by every Maps API request.

A request moves Unvalidated -> Validated -> Built and never goes back.
Parameters can only be set while Unvalidated; the query string only exists
once Built. Per-API subclasses supply the validation rules and the
serializer; this class only enforces the ordering.
"""

import abc
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from mapscli.domain.exceptions import (
    QueryNotBuilt,
    RequestAlreadyValidated,
    RequestConsumed,
    RequestNotValidated,
)
from mapscli.domain.models.common import QueryString


class RequestState(str, Enum):
    UNVALIDATED = "unvalidated"
    VALIDATED = "validated"
    BUILT = "built"


class Request(abc.ABC):
    """Abstract request: parameter accumulation, validation and serialization."""

    def __init__(self):
        self._parameters: Dict[str, Any] = {}
        self._state = RequestState.UNVALIDATED
        self._query: Optional[QueryString] = None
        self._consumed = False

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def parameters(self) -> Mapping[str, Any]:
        """Read-only view of the parameters set so far."""
        return MappingProxyType(self._parameters)

    @property
    def consumed(self) -> bool:
        return self._consumed

    def set_field(self, name: str, value: Any) -> "Request":
        """Sets (or, with ``None``, clears) a parameter. Only allowed while Unvalidated."""
        if self._state is not RequestState.UNVALIDATED:
            raise RequestAlreadyValidated(
                f"Cannot set '{name}': the request is already {self._state.value}"
            )
        if value is None:
            self._parameters.pop(name, None)
        else:
            self._parameters[name] = value
        return self

    def validate(self) -> "Request":
        """Checks the API's rules and moves to Validated.

        A no-op on a request that is already Validated or Built.

        Raises:
            ValidationError: If a required field is missing or fields conflict.
        """
        if self._state is not RequestState.UNVALIDATED:
            return self
        self._validate_parameters(self.parameters)
        self._state = RequestState.VALIDATED
        return self

    def build(self) -> "Request":
        """Serializes the parameters into the query string and moves to Built.

        Raises:
            RequestNotValidated: Unless the request is exactly Validated.
        """
        if self._state is not RequestState.VALIDATED:
            raise RequestNotValidated()
        self._query = self._serialize_parameters(self.parameters)
        self._state = RequestState.BUILT
        return self

    def take_query(self) -> QueryString:
        """Returns the built query string. Does not change state.

        Raises:
            QueryNotBuilt: Unless the request is Built.
        """
        if self._state is not RequestState.BUILT or self._query is None:
            raise QueryNotBuilt()
        return self._query

    def consume(self) -> QueryString:
        """Hands the query to the execution pipeline, at most once per build."""
        query = self.take_query()
        if self._consumed:
            raise RequestConsumed(
                "This request was already sent. Call rebuild() to send it again."
            )
        self._consumed = True
        return query

    def rebuild(self) -> "Request":
        """Re-serializes a Built request so it can be executed again."""
        if self._state is not RequestState.BUILT:
            raise QueryNotBuilt()
        self._query = self._serialize_parameters(self.parameters)
        self._consumed = False
        return self

    # --- Per-API hooks ---

    def _validate_parameters(self, parameters: Mapping[str, Any]) -> None:
        """Raises ValidationError if the API's rules are not met. Default: no rules."""

    @abc.abstractmethod
    def _serialize_parameters(self, parameters: Mapping[str, Any]) -> QueryString:
        """Returns a deterministic, percent-encoded query string."""
