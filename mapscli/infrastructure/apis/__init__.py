"""Per-API request builders, validation rules and response parsers."""

from mapscli.infrastructure.apis.directions import DirectionsRequest, DirectionsResponse
from mapscli.infrastructure.apis.elevation import ElevationRequest, ElevationResponse
from mapscli.infrastructure.apis.geocoding import GeocodingRequest, GeocodingResponse, ReverseGeocodingRequest
from mapscli.infrastructure.apis.places import PlaceDetailsRequest, PlaceDetailsResponse
from mapscli.infrastructure.apis.time_zone import TimeZoneRequest, TimeZoneResponse

__all__ = [
    "DirectionsRequest", "DirectionsResponse",
    "ElevationRequest", "ElevationResponse",
    "GeocodingRequest", "GeocodingResponse", "ReverseGeocodingRequest",
    "PlaceDetailsRequest", "PlaceDetailsResponse",
    "TimeZoneRequest", "TimeZoneResponse",
]
