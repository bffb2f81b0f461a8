from datetime import datetime, timezone

import pytest

from mapscli.domain.exceptions import ValidationError
from mapscli.domain.models.common import LatLng, PlaceId
from mapscli.infrastructure.apis.directions import (
    DEPARTURE_NOW,
    Avoid,
    DirectionsResponse,
    TrafficModel,
    TransitMode,
    TravelMode,
    UnitSystem,
)

from conftest import json_response

DIRECTIONS_OK = {
    "status": "OK",
    "routes": [{
        "summary": "A1",
        "legs": [{
            "start_address": "Toronto, ON, Canada",
            "end_address": "Montreal, QC, Canada",
            "start_location": {"lat": 43.65, "lng": -79.38},
            "end_location": {"lat": 45.50, "lng": -73.56},
            "distance": {"text": "541 km", "value": 541000},
            "duration": {"text": "5 hours 20 mins", "value": 19200},
        }],
        "warnings": [],
        "waypoint_order": [],
        "overview_polyline": {"points": "abc"},
        "copyrights": "Map data",
    }],
}


def test_query_string_follows_field_order(client):
    request = (
        client.directions("Toronto", "Montreal")
        .with_unit_system(UnitSystem.IMPERIAL)
        .with_travel_mode(TravelMode.DRIVING)
        .with_restrictions([Avoid.TOLLS, Avoid.HIGHWAYS])
        .with_alternatives(True)
    )
    request.validate().build()
    assert request.take_query() == (
        "key=test-key&origin=Toronto&destination=Montreal&mode=driving"
        "&alternatives=true&avoid=tolls%7Chighways&units=imperial"
    )


def test_locations_and_waypoints(client):
    request = client.directions(PlaceId("ChIJabc"), LatLng(45.5, -73.5))
    request.with_waypoints(["Kingston", LatLng(44.0, -77.0)])
    request.validate().build()
    query = request.take_query()
    assert "origin=place_id%3AChIJabc" in query
    assert "destination=45.5000000%2C-73.5000000" in query
    assert "waypoints=Kingston%7C44.0000000%2C-77.0000000" in query


def test_departure_time_serialized_as_unix_seconds(client):
    request = client.directions("A", "B").with_departure_time(datetime(2020, 1, 1, tzinfo=timezone.utc))
    request.with_traffic_model(TrafficModel.PESSIMISTIC)
    request.validate().build()
    assert "departure_time=1577836800&traffic_model=pessimistic" in request.take_query()


def test_departure_now(client):
    request = client.directions("A", "B").with_departure_time(DEPARTURE_NOW).validate().build()
    assert "departure_time=now" in request.take_query()


def test_departure_rejects_other_strings(client):
    with pytest.raises(ValidationError):
        client.directions("A", "B").with_departure_time("tomorrow").validate()


def test_arrival_and_departure_are_exclusive(client):
    moment = datetime(2020, 1, 1, tzinfo=timezone.utc)
    request = (
        client.directions("A", "B")
        .with_travel_mode(TravelMode.TRANSIT)
        .with_arrival_time(moment)
        .with_departure_time(moment)
    )
    with pytest.raises(ValidationError):
        request.validate()


@pytest.mark.parametrize("configure", [
    lambda r: r.with_transit_modes([TransitMode.BUS]),
    lambda r: r.with_arrival_time(datetime(2020, 1, 1, tzinfo=timezone.utc)),
])
def test_transit_only_fields_require_transit_mode(client, configure):
    request = client.directions("A", "B").with_travel_mode(TravelMode.DRIVING)
    configure(request)
    with pytest.raises(ValidationError):
        request.validate()


def test_transit_with_transit_fields_is_valid(client):
    request = (
        client.directions("A", "B")
        .with_travel_mode(TravelMode.TRANSIT)
        .with_transit_modes([TransitMode.BUS, TransitMode.RAIL])
    )
    request.validate().build()
    assert "transit_mode=bus%7Crail" in request.take_query()


def test_waypoints_not_allowed_with_transit(client):
    request = client.directions("A", "B").with_travel_mode(TravelMode.TRANSIT).with_waypoints(["C"])
    with pytest.raises(ValidationError):
        request.validate()


def test_traffic_model_requires_departure_time(client):
    request = client.directions("A", "B").with_traffic_model(TrafficModel.BEST_GUESS)
    with pytest.raises(ValidationError):
        request.validate()


@pytest.mark.asyncio
async def test_execute_parses_routes(client, stub_transport):
    stub_transport.queue(json_response(DIRECTIONS_OK))
    response = await client.directions("Toronto", "Montreal").execute()
    assert isinstance(response, DirectionsResponse)
    leg = response.routes[0].legs[0]
    assert leg.distance.value == 541000
    assert leg.duration.text == "5 hours 20 mins"
    assert leg.end_location == LatLng(45.5, -73.56)
    assert response.routes[0].overview_polyline == "abc"
