"""Client context shared by every request.

Holds the API credential, the rate limiter, the transport and the retry
service. Requests are created from the client and keep a reference to it;
the client itself is read-mostly and safe to share between concurrent tasks.
"""

import logging
from datetime import datetime
from typing import Optional

from mapscli.domain.interfaces.transport import Transport
from mapscli.domain.models.common import Api, ApiKey, LatLng, PlaceId
from mapscli.infrastructure.apis.directions import DirectionsRequest, Location
from mapscli.infrastructure.apis.elevation import ElevationRequest
from mapscli.infrastructure.apis.geocoding import GeocodingRequest, ReverseGeocodingRequest
from mapscli.infrastructure.apis.places import PlaceDetailsRequest
from mapscli.infrastructure.apis.time_zone import TimeZoneRequest
from mapscli.infrastructure.config import settings
from mapscli.infrastructure.http.httpx_transport import HttpxTransport
from mapscli.infrastructure.resilience.api_retry import ApiRetryService
from mapscli.infrastructure.resilience.backoff import BackoffSchedule
from mapscli.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class MapsClient:
    """Entry point for building and sending Maps API requests."""

    def __init__(
        self,
        key: Optional[str],
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[Transport] = None,
        schedule: Optional[BackoffSchedule] = None,
        deadline: Optional[float] = None,
        retry_service: Optional[ApiRetryService] = None,
    ):
        """Initializes the client context.

        Args:
            key: Google Maps API key.
            rate_limiter: Shared rate limiter; a fresh, unlimited one if None.
            transport: HTTP transport; an HttpxTransport owned by the client if None.
            schedule: Backoff schedule for the default retry service.
            deadline: Default time limit in seconds for each request's retry loop.
            retry_service: Replaces the default retry service entirely.
        """
        if not key:
            raise ValueError("Google Maps API key not provided.")
        self.key = ApiKey(key)
        self.rate_limiter = rate_limiter or RateLimiter()
        self._owns_transport = transport is None
        self.transport = transport or HttpxTransport()
        self.retry_service = retry_service or ApiRetryService(self.rate_limiter, self.transport, schedule)
        self.deadline = deadline
        logger.debug(f"MapsClient initialized with transport {type(self.transport).__name__}")

    @classmethod
    def from_config(cls, transport: Optional[Transport] = None) -> "MapsClient":
        """Creates a client from the loaded configuration (see settings)."""
        owns_transport = transport is None
        client = cls(
            key=settings.get_api_key(),
            transport=transport or HttpxTransport(timeout=settings.get_request_timeout()),
            schedule=settings.get_backoff_schedule(),
            deadline=settings.get_deadline(),
        )
        client._owns_transport = owns_transport
        for api, (requests, per_seconds) in settings.get_rate_limits().items():
            client.with_rate(api, requests, per_seconds)
        return client

    def with_rate(self, api: Api, requests: float, per_seconds: float = 1.0) -> "MapsClient":
        """Limits a category (or ``Api.ALL``) to ``requests`` per ``per_seconds``."""
        self.rate_limiter.set_rate(api, requests, per_seconds)
        return self

    # --- Request factories ---

    def directions(self, origin: Location, destination: Location) -> DirectionsRequest:
        return DirectionsRequest(self, origin, destination)

    def elevation(self) -> ElevationRequest:
        return ElevationRequest(self)

    def geocoding(self) -> GeocodingRequest:
        return GeocodingRequest(self)

    def reverse_geocoding(self, latlng: LatLng) -> ReverseGeocodingRequest:
        return ReverseGeocodingRequest(self, latlng)

    def place_details(self, place_id: PlaceId) -> PlaceDetailsRequest:
        return PlaceDetailsRequest(self, place_id)

    def time_zone(self, location: LatLng, timestamp: datetime) -> TimeZoneRequest:
        return TimeZoneRequest(self, location, timestamp)

    # --- Resource management ---

    async def close(self) -> None:
        if self._owns_transport:
            await self.transport.close()

    async def __aenter__(self) -> "MapsClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"MapsClient(key='***', transport={type(self.transport).__name__})"
