"""Directions API: routes between an origin and a destination."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Union

from mapscli.domain.exceptions import ValidationError
from mapscli.domain.models.common import Api, LatLng, PlaceId
from mapscli.infrastructure.apis.base import ApiRequest, ApiResponse
from mapscli.infrastructure.apis.encoding import format_value, load_envelope, object_field, object_list, parse_latlng

# An address, a coordinate or a place ID.
Location = Union[str, LatLng, PlaceId]


class TravelMode(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"
    BICYCLING = "bicycling"
    TRANSIT = "transit"


class Avoid(str, Enum):
    TOLLS = "tolls"
    HIGHWAYS = "highways"
    FERRIES = "ferries"
    INDOOR = "indoor"


class UnitSystem(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


class TrafficModel(str, Enum):
    BEST_GUESS = "best_guess"
    PESSIMISTIC = "pessimistic"
    OPTIMISTIC = "optimistic"


class TransitMode(str, Enum):
    BUS = "bus"
    SUBWAY = "subway"
    TRAIN = "train"
    TRAM = "tram"
    RAIL = "rail"


class TransitRoutePreference(str, Enum):
    LESS_WALKING = "less_walking"
    FEWER_TRANSFERS = "fewer_transfers"


# Sentinel accepted by the API for "leave now".
DEPARTURE_NOW = "now"


def format_location(location: Location) -> str:
    if isinstance(location, PlaceId):
        return f"place_id:{location}"
    return format_value(location)


@dataclass
class TextValue:
    """A numeric value with its localized display text (distance in metres, duration in seconds)."""
    text: str
    value: int


@dataclass
class Leg:
    start_address: str
    end_address: str
    start_location: Optional[LatLng]
    end_location: Optional[LatLng]
    distance: Optional[TextValue] = None
    duration: Optional[TextValue] = None
    duration_in_traffic: Optional[TextValue] = None


@dataclass
class Route:
    summary: str
    legs: List[Leg] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    waypoint_order: List[int] = field(default_factory=list)
    overview_polyline: Optional[str] = None
    copyrights: str = ""


@dataclass
class DirectionsResponse(ApiResponse):
    routes: List[Route] = field(default_factory=list)
    available_travel_modes: List[str] = field(default_factory=list)


def _text_value(data: Optional[dict]) -> Optional[TextValue]:
    if not data:
        return None
    return TextValue(text=str(data.get("text", "")), value=int(data["value"]))


def parse_directions_response(text: str) -> DirectionsResponse:
    data, status, error_message = load_envelope(text)
    routes = []
    for item in object_list(data, "routes"):
        legs = [
            Leg(
                start_address=leg.get("start_address", ""),
                end_address=leg.get("end_address", ""),
                start_location=parse_latlng(leg.get("start_location")),
                end_location=parse_latlng(leg.get("end_location")),
                distance=_text_value(object_field(leg, "distance")),
                duration=_text_value(object_field(leg, "duration")),
                duration_in_traffic=_text_value(object_field(leg, "duration_in_traffic")),
            )
            for leg in object_list(item, "legs")
        ]
        routes.append(Route(
            summary=item.get("summary", ""),
            legs=legs,
            warnings=list(item.get("warnings") or []),
            waypoint_order=list(item.get("waypoint_order") or []),
            overview_polyline=object_field(item, "overview_polyline").get("points"),
            copyrights=item.get("copyrights", ""),
        ))
    return DirectionsResponse(
        status=status,
        error_message=error_message,
        routes=routes,
        available_travel_modes=list(data.get("available_travel_modes", [])),
    )


class DirectionsRequest(ApiRequest):
    """Builds a Directions API request."""

    API = Api.DIRECTIONS
    API_NAME = "Directions"
    SERVICE_URL = "https://maps.googleapis.com/maps/api/directions"
    FIELD_ORDER = (
        "origin", "destination", "mode", "alternatives", "avoid", "language",
        "region", "units", "waypoints", "arrival_time", "departure_time",
        "traffic_model", "transit_mode", "transit_routing_preference",
    )

    parse_response = staticmethod(parse_directions_response)

    def __init__(self, client, origin: Location, destination: Location):
        super().__init__(client)
        self.set_field("origin", origin)
        self.set_field("destination", destination)

    def with_travel_mode(self, mode: TravelMode) -> "DirectionsRequest":
        return self.set_field("mode", mode)

    def with_alternatives(self, alternatives: bool) -> "DirectionsRequest":
        return self.set_field("alternatives", alternatives)

    def with_restrictions(self, restrictions: Sequence[Avoid]) -> "DirectionsRequest":
        return self.set_field("avoid", list(restrictions))

    def with_language(self, language: str) -> "DirectionsRequest":
        return self.set_field("language", language)

    def with_region(self, region: str) -> "DirectionsRequest":
        return self.set_field("region", region)

    def with_unit_system(self, units: UnitSystem) -> "DirectionsRequest":
        return self.set_field("units", units)

    def with_waypoints(self, waypoints: Sequence[Location]) -> "DirectionsRequest":
        return self.set_field("waypoints", list(waypoints))

    def with_arrival_time(self, arrival_time: datetime) -> "DirectionsRequest":
        return self.set_field("arrival_time", arrival_time)

    def with_departure_time(self, departure_time: Union[datetime, str]) -> "DirectionsRequest":
        """Accepts a datetime or ``DEPARTURE_NOW``."""
        return self.set_field("departure_time", departure_time)

    def with_traffic_model(self, traffic_model: TrafficModel) -> "DirectionsRequest":
        return self.set_field("traffic_model", traffic_model)

    def with_transit_modes(self, transit_modes: Sequence[TransitMode]) -> "DirectionsRequest":
        return self.set_field("transit_mode", list(transit_modes))

    def with_transit_route_preference(self, preference: TransitRoutePreference) -> "DirectionsRequest":
        return self.set_field("transit_routing_preference", preference)

    def _format_field(self, name: str, value: Any) -> str:
        if name in ("origin", "destination"):
            return format_location(value)
        if name == "waypoints":
            return "|".join(format_location(waypoint) for waypoint in value)
        return super()._format_field(name, value)

    def _validate_parameters(self, parameters: Mapping[str, Any]) -> None:
        self._require(parameters, "origin", "destination")

        if "arrival_time" in parameters and "departure_time" in parameters:
            raise ValidationError(
                "Directions API client library: `arrival_time` and `departure_time` are mutually exclusive."
            )

        departure = parameters.get("departure_time")
        if isinstance(departure, str) and departure != DEPARTURE_NOW:
            raise ValidationError(
                f"Directions API client library: `departure_time` must be a datetime or '{DEPARTURE_NOW}'."
            )

        is_transit = parameters.get("mode") is TravelMode.TRANSIT
        if not is_transit:
            for name in ("transit_mode", "transit_routing_preference", "arrival_time"):
                if name in parameters:
                    raise ValidationError(
                        f"Directions API client library: `{name}` may only be used with travel mode `transit`."
                    )

        if is_transit and parameters.get("waypoints"):
            raise ValidationError(
                "Directions API client library: waypoints are not supported with travel mode `transit`."
            )

        if "traffic_model" in parameters and "departure_time" not in parameters:
            raise ValidationError(
                "Directions API client library: `traffic_model` requires a `departure_time`."
            )
