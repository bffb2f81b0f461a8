"""Elevation API: positional requests and sampled path requests."""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Union

from mapscli.domain.exceptions import ValidationError
from mapscli.domain.models.common import Api, LatLng
from mapscli.infrastructure.apis.base import ApiRequest, ApiResponse
from mapscli.infrastructure.apis.encoding import format_value, load_envelope, object_list, parse_latlng

MAX_SAMPLES = 512


@dataclass(frozen=True)
class Polyline:
    """An encoded polyline (https://developers.google.com/maps/documentation/utilities/polylinealgorithm)."""
    points: str

    def __str__(self) -> str:
        return f"enc:{self.points}"


Locations = Union[Sequence[LatLng], Polyline]


@dataclass
class ElevationPoint:
    elevation: float
    location: Optional[LatLng]
    resolution: Optional[float] = None


@dataclass
class ElevationResponse(ApiResponse):
    results: List[ElevationPoint] = field(default_factory=list)


def parse_elevation_response(text: str) -> ElevationResponse:
    data, status, error_message = load_envelope(text)
    results = [
        ElevationPoint(
            elevation=float(item["elevation"]),
            location=parse_latlng(item.get("location")),
            resolution=float(item["resolution"]) if item.get("resolution") is not None else None,
        )
        for item in object_list(data, "results")
    ]
    return ElevationResponse(status=status, error_message=error_message, results=results)


def format_locations(locations: Locations) -> str:
    if isinstance(locations, Polyline):
        return str(locations)
    return format_value(list(locations))


class ElevationRequest(ApiRequest):
    """Builds an Elevation API request.

    Exactly one form is allowed: positional (``locations``) or sampled path
    (``path`` together with ``samples``).
    """

    API = Api.ELEVATION
    API_NAME = "Elevation"
    SERVICE_URL = "https://maps.googleapis.com/maps/api/elevation"
    FIELD_ORDER = ("locations", "path", "samples")

    parse_response = staticmethod(parse_elevation_response)

    def positional_request(self, locations: Locations) -> "ElevationRequest":
        return self.set_field("locations", locations)

    def sampled_path_request(self, path: Locations, samples: int) -> "ElevationRequest":
        self.set_field("path", path)
        return self.set_field("samples", samples)

    def _format_field(self, name: str, value: Any) -> str:
        if name in ("locations", "path"):
            return format_locations(value)
        return super()._format_field(name, value)

    def _validate_parameters(self, parameters: Mapping[str, Any]) -> None:
        has_locations = "locations" in parameters
        has_path = "path" in parameters

        if has_locations and has_path:
            raise ValidationError(
                "Elevation API client library: a request may be positional or a sampled path, not both."
            )
        if not has_locations and not has_path:
            raise ValidationError(
                "Elevation API client library: either `locations` or `path` must be specified."
            )
        if has_path:
            if "samples" not in parameters:
                raise ValidationError("Elevation API client library: sampled path requests require `samples`.")
            samples = parameters["samples"]
            if not isinstance(samples, int) or isinstance(samples, bool):
                raise ValidationError(
                    f"Elevation API client library: `samples` must be an integer, got {samples!r}."
                )
            if not 1 <= samples <= MAX_SAMPLES:
                raise ValidationError(
                    f"Elevation API client library: `samples` must be between 1 and {MAX_SAMPLES}, got {samples}."
                )
        elif "samples" in parameters:
            raise ValidationError("Elevation API client library: `samples` is only valid with `path`.")

        for name in ("locations", "path"):
            value = parameters.get(name)
            if value is not None and not isinstance(value, Polyline) and len(value) == 0:
                raise ValidationError(f"Elevation API client library: `{name}` must not be empty.")
