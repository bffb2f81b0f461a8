"""Interface for the HTTP capability used by the request pipeline.

The pipeline needs exactly one thing from the network: send a GET (or a
POST with a body) to an absolute URL and hand back the status code, headers
and body. Retrying is not the transport's job.
"""

import abc
from typing import Optional

from mapscli.domain.models.common import Url
from mapscli.domain.models.outcome import TransportResponse


class Transport(abc.ABC):
    """Abstract Base Class for a single-shot HTTP transport."""

    @abc.abstractmethod
    async def send(self, method: str, url: Url, body: Optional[str] = None) -> TransportResponse:
        """Performs exactly one network round trip.

        Args:
            method: HTTP method ('GET' or 'POST').
            url: Absolute URL including the query string.
            body: Request body for non-GET APIs.

        Returns:
            The status code, headers and body of the response.

        Raises:
            TransportError: If no HTTP response was received.
        """
        pass

    async def close(self) -> None:
        """Releases network resources. Default: nothing to release."""
        pass
