"""Places API: place details for a place ID."""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence

from mapscli.domain.exceptions import ValidationError
from mapscli.domain.models.common import Api, LatLng, PlaceId
from mapscli.infrastructure.apis.base import ApiRequest, ApiResponse
from mapscli.infrastructure.apis.encoding import load_envelope, object_field, parse_latlng


@dataclass
class PlaceResult:
    place_id: Optional[str]
    name: Optional[str] = None
    formatted_address: Optional[str] = None
    location: Optional[LatLng] = None
    types: List[str] = field(default_factory=list)
    rating: Optional[float] = None
    website: Optional[str] = None
    international_phone_number: Optional[str] = None


@dataclass
class PlaceDetailsResponse(ApiResponse):
    result: Optional[PlaceResult] = None
    html_attributions: List[str] = field(default_factory=list)


def parse_place_details_response(text: str) -> PlaceDetailsResponse:
    data, status, error_message = load_envelope(text)
    result = None
    item = object_field(data, "result")
    if item:
        result = PlaceResult(
            place_id=item.get("place_id"),
            name=item.get("name"),
            formatted_address=item.get("formatted_address"),
            location=parse_latlng(object_field(item, "geometry").get("location")),
            types=list(item.get("types") or []),
            rating=float(item["rating"]) if item.get("rating") is not None else None,
            website=item.get("website"),
            international_phone_number=item.get("international_phone_number"),
        )
    return PlaceDetailsResponse(
        status=status,
        error_message=error_message,
        result=result,
        html_attributions=list(data.get("html_attributions", [])),
    )


class PlaceDetailsRequest(ApiRequest):
    API = Api.PLACES
    API_NAME = "Places Details"
    SERVICE_URL = "https://maps.googleapis.com/maps/api/place/details"
    FIELD_ORDER = ("place_id", "fields", "language", "region", "sessiontoken")

    parse_response = staticmethod(parse_place_details_response)

    def __init__(self, client, place_id: PlaceId):
        super().__init__(client)
        self.set_field("place_id", place_id)

    def with_fields(self, fields: Sequence[str]) -> "PlaceDetailsRequest":
        return self.set_field("fields", list(fields))

    def with_language(self, language: str) -> "PlaceDetailsRequest":
        return self.set_field("language", language)

    def with_region(self, region: str) -> "PlaceDetailsRequest":
        return self.set_field("region", region)

    def with_session_token(self, session_token: str) -> "PlaceDetailsRequest":
        return self.set_field("sessiontoken", session_token)

    def _format_field(self, name: str, value: Any) -> str:
        if name == "fields":
            return ",".join(value)
        return super()._format_field(name, value)

    def _validate_parameters(self, parameters: Mapping[str, Any]) -> None:
        self._require(parameters, "place_id")
        if not str(parameters["place_id"]).strip():
            raise ValidationError("Places Details API client library: `place_id` must not be empty.")
