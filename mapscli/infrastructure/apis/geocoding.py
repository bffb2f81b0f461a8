"""Geocoding API: forward (address to coordinates) and reverse requests."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from mapscli.domain.exceptions import ValidationError
from mapscli.domain.models.common import Api, LatLng
from mapscli.infrastructure.apis.base import ApiRequest, ApiResponse
from mapscli.infrastructure.apis.encoding import load_envelope, object_field, object_list, parse_latlng

SERVICE_URL = "https://maps.googleapis.com/maps/api/geocode"


class LocationType(str, Enum):
    ROOFTOP = "ROOFTOP"
    RANGE_INTERPOLATED = "RANGE_INTERPOLATED"
    GEOMETRIC_CENTER = "GEOMETRIC_CENTER"
    APPROXIMATE = "APPROXIMATE"


@dataclass(frozen=True)
class Bounds:
    """A viewport given by its south-west and north-east corners."""
    southwest: LatLng
    northeast: LatLng

    def __str__(self) -> str:
        return f"{self.southwest}|{self.northeast}"


@dataclass
class GeocodingResult:
    formatted_address: str
    location: Optional[LatLng]
    place_id: Optional[str] = None
    location_type: Optional[str] = None
    types: List[str] = field(default_factory=list)
    partial_match: bool = False


@dataclass
class GeocodingResponse(ApiResponse):
    results: List[GeocodingResult] = field(default_factory=list)


def parse_geocoding_response(text: str) -> GeocodingResponse:
    data, status, error_message = load_envelope(text)
    results = []
    for item in object_list(data, "results"):
        geometry = object_field(item, "geometry")
        results.append(GeocodingResult(
            formatted_address=item.get("formatted_address", ""),
            location=parse_latlng(geometry.get("location")),
            place_id=item.get("place_id"),
            location_type=geometry.get("location_type"),
            types=list(item.get("types") or []),
            partial_match=bool(item.get("partial_match", False)),
        ))
    return GeocodingResponse(status=status, error_message=error_message, results=results)


class GeocodingRequest(ApiRequest):
    """Forward geocoding: an address and/or components to coordinates."""

    API = Api.GEOCODING
    API_NAME = "Geocoding"
    SERVICE_URL = SERVICE_URL
    FIELD_ORDER = ("address", "bounds", "components", "language", "region")

    parse_response = staticmethod(parse_geocoding_response)

    def with_address(self, address: str) -> "GeocodingRequest":
        return self.set_field("address", address)

    def with_component(self, component: str, value: str) -> "GeocodingRequest":
        """Adds a component filter such as ``("country", "GB")``."""
        components: Dict[str, str] = dict(self.parameters.get("components", {}))
        components[component] = value
        return self.set_field("components", components)

    def with_bounds(self, bounds: Bounds) -> "GeocodingRequest":
        return self.set_field("bounds", bounds)

    def with_language(self, language: str) -> "GeocodingRequest":
        return self.set_field("language", language)

    def with_region(self, region: str) -> "GeocodingRequest":
        return self.set_field("region", region)

    def _format_field(self, name: str, value: Any) -> str:
        if name == "components":
            return "|".join(f"{key}:{value[key]}" for key in sorted(value))
        return super()._format_field(name, value)

    def _validate_parameters(self, parameters: Mapping[str, Any]) -> None:
        if "address" not in parameters and not parameters.get("components"):
            raise ValidationError(
                "Geocoding API client library: Forward geocoding requests must specify an "
                "`address` or at least one `component`."
            )


class ReverseGeocodingRequest(ApiRequest):
    """Reverse geocoding: coordinates to addresses."""

    API = Api.GEOCODING
    API_NAME = "Geocoding"
    SERVICE_URL = SERVICE_URL
    FIELD_ORDER = ("latlng", "language", "result_type", "location_type")

    parse_response = staticmethod(parse_geocoding_response)

    def __init__(self, client, latlng: LatLng):
        super().__init__(client)
        self.set_field("latlng", latlng)

    def with_language(self, language: str) -> "ReverseGeocodingRequest":
        return self.set_field("language", language)

    def with_result_types(self, result_types: Sequence[str]) -> "ReverseGeocodingRequest":
        return self.set_field("result_type", list(result_types))

    def with_location_types(self, location_types: Sequence[LocationType]) -> "ReverseGeocodingRequest":
        return self.set_field("location_type", list(location_types))

    def _validate_parameters(self, parameters: Mapping[str, Any]) -> None:
        self._require(parameters, "latlng")
