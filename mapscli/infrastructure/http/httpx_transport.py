"""Concrete implementation of the Transport interface using httpx.

Performs exactly one round trip per call and maps every httpx failure that
happens before a response arrives to TransportError. Non-2xx responses are
returned as-is for the classifier to judge.
"""

import logging
from typing import Optional

import httpx

from mapscli.domain.exceptions import TransportError
from mapscli.domain.interfaces.transport import Transport
from mapscli.domain.models.common import Url
from mapscli.domain.models.outcome import TransportResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
USER_AGENT = "mapscli"


class HttpxTransport(Transport):
    """Transport backed by an ``httpx.AsyncClient``."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """Initializes the transport.

        Args:
            client: Existing AsyncClient to use. The transport only closes
                clients it created itself.
            timeout: Per-request timeout in seconds.
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
        )

    async def send(self, method: str, url: Url, body: Optional[str] = None) -> TransportResponse:
        try:
            if body is None:
                response = await self._client.request(method, url)
            else:
                response = await self._client.request(
                    method, url, content=body, headers={"Content-Type": "application/json"}
                )
            text = response.text
        except httpx.HTTPError as e:
            raise TransportError(f"HTTP client error: {type(e).__name__}: {e}") from e

        return TransportResponse(
            status_code=response.status_code,
            body=text,
            headers=dict(response.headers),
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
