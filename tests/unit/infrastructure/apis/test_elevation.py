import pytest

from mapscli.domain.exceptions import ValidationError
from mapscli.domain.models.common import LatLng
from mapscli.infrastructure.apis.elevation import MAX_SAMPLES, ElevationResponse, Polyline

from conftest import json_response

DENVER = LatLng(39.7391536, -104.9847034)
DEATH_VALLEY = LatLng(36.455556, -116.866667)


def test_positional_query(client):
    request = client.elevation().positional_request([DENVER, DEATH_VALLEY]).validate().build()
    assert request.url == (
        "https://maps.googleapis.com/maps/api/elevation/json?key=test-key"
        "&locations=39.7391536%2C-104.9847034%7C36.4555560%2C-116.8666670"
    )


def test_sampled_path_query(client):
    request = client.elevation().sampled_path_request([DENVER, DEATH_VALLEY], 3).validate().build()
    assert request.take_query().endswith("&samples=3")
    assert "path=39.7391536" in request.take_query()


def test_encoded_polyline(client):
    request = client.elevation().positional_request(Polyline("gfo}EtohhU")).validate().build()
    assert request.take_query() == "key=test-key&locations=enc%3Agfo%7DEtohhU"


def test_positional_and_path_are_exclusive(client):
    request = client.elevation().positional_request([DENVER]).sampled_path_request([DENVER], 2)
    with pytest.raises(ValidationError):
        request.validate()


def test_one_form_is_required(client):
    with pytest.raises(ValidationError):
        client.elevation().validate()


@pytest.mark.parametrize("samples", [0, MAX_SAMPLES + 1])
def test_samples_out_of_range(client, samples):
    with pytest.raises(ValidationError):
        client.elevation().sampled_path_request([DENVER, DEATH_VALLEY], samples).validate()


@pytest.mark.parametrize("samples", ["3", 2.5, True])
def test_samples_must_be_an_integer(client, samples):
    request = client.elevation().sampled_path_request([DENVER, DEATH_VALLEY], 3).set_field("samples", samples)
    with pytest.raises(ValidationError, match="must be an integer"):
        request.validate()


def test_samples_at_limit(client):
    client.elevation().sampled_path_request([DENVER, DEATH_VALLEY], MAX_SAMPLES).validate()


def test_samples_only_with_path(client):
    request = client.elevation().positional_request([DENVER]).set_field("samples", 2)
    with pytest.raises(ValidationError):
        request.validate()


def test_empty_locations_rejected(client):
    with pytest.raises(ValidationError):
        client.elevation().positional_request([]).validate()


@pytest.mark.asyncio
async def test_execute_parses_points(client, stub_transport):
    stub_transport.queue(json_response({
        "status": "OK",
        "results": [{"elevation": 1608.64, "location": {"lat": 39.7391536, "lng": -104.9847034}, "resolution": 4.77}],
    }))
    response = await client.elevation().positional_request([DENVER]).execute()
    assert isinstance(response, ElevationResponse)
    assert response.results[0].elevation == pytest.approx(1608.64)
    assert response.results[0].location == DENVER
