import pytest

from mapscli.domain.exceptions import MalformedResponse, RemoteRejection, TransientRemoteCondition, TransportError
from mapscli.domain.models.outcome import Permanent, Success, Transient, TransportResponse
from mapscli.domain.models.status import ApiStatus
from mapscli.infrastructure.apis.directions import parse_directions_response
from mapscli.infrastructure.apis.elevation import parse_elevation_response
from mapscli.infrastructure.apis.geocoding import parse_geocoding_response
from mapscli.infrastructure.apis.places import parse_place_details_response
from mapscli.infrastructure.resilience.classifier import (
    PERMANENT,
    SUCCESS,
    TRANSIENT,
    classify,
    classify_api_status,
    classify_http_status,
)

from conftest import json_response


@pytest.mark.parametrize("code, expected", [
    (200, SUCCESS), (204, SUCCESS),
    (429, TRANSIENT), (500, TRANSIENT), (503, TRANSIENT),
    (400, PERMANENT), (403, PERMANENT), (404, PERMANENT), (302, PERMANENT),
])
def test_classify_http_status(code, expected):
    assert classify_http_status(code) == expected


def test_classify_api_status():
    assert classify_api_status(ApiStatus.OK) == SUCCESS
    assert classify_api_status(ApiStatus.UNKNOWN_ERROR) == TRANSIENT
    assert classify_api_status(ApiStatus.OVER_QUERY_LIMIT) == PERMANENT
    assert classify_api_status(ApiStatus.OVER_QUERY_LIMIT, frozenset({ApiStatus.OVER_QUERY_LIMIT})) == TRANSIENT


def test_transport_error_is_transient():
    error = TransportError("connection reset")
    outcome = classify(error, parse_geocoding_response)
    assert isinstance(outcome, Transient)
    assert outcome.error is error


def test_server_error_is_transient():
    outcome = classify(TransportResponse(500, "oops"), parse_geocoding_response)
    assert isinstance(outcome, Transient)
    assert isinstance(outcome.error, TransientRemoteCondition)
    assert outcome.error.http_status == 500


def test_too_many_requests_carries_retry_after():
    outcome = classify(TransportResponse(429, "", {"Retry-After": "4"}), parse_geocoding_response)
    assert isinstance(outcome, Transient)
    assert outcome.retry_after == 4.0
    assert outcome.error.retry_after == 4.0


def test_client_error_is_permanent():
    outcome = classify(TransportResponse(404, "not found"), parse_geocoding_response)
    assert isinstance(outcome, Permanent)
    assert isinstance(outcome.error, RemoteRejection)
    assert outcome.error.http_status == 404


def test_ok_status_is_success():
    outcome = classify(json_response({"status": "OK", "results": []}), parse_geocoding_response)
    assert isinstance(outcome, Success)
    assert outcome.payload.status is ApiStatus.OK


def test_unknown_error_status_is_transient():
    outcome = classify(json_response({"status": "UNKNOWN_ERROR"}), parse_geocoding_response, api_name="Geocoding")
    assert isinstance(outcome, Transient)
    assert outcome.error.status == "UNKNOWN_ERROR"
    assert str(outcome.error).startswith("Geocoding API server: UNKNOWN_ERROR")


@pytest.mark.parametrize("status", ["INVALID_REQUEST", "REQUEST_DENIED", "OVER_QUERY_LIMIT", "ZERO_RESULTS"])
def test_other_statuses_are_permanent(status):
    outcome = classify(
        json_response({"status": status, "error_message": "details"}),
        parse_geocoding_response,
        api_name="Geocoding",
    )
    assert isinstance(outcome, Permanent)
    assert isinstance(outcome.error, RemoteRejection)
    assert outcome.error.status == status
    assert outcome.error.error_message == "details"
    assert str(outcome.error).startswith(f"Geocoding API server: {status}")


@pytest.mark.parametrize("body", ["not json", "[1, 2]", '{"status": "SOMETHING_NEW"}', '{"results": []}'])
def test_malformed_body_is_permanent(body):
    outcome = classify(TransportResponse(200, body), parse_geocoding_response)
    assert isinstance(outcome, Permanent)
    assert isinstance(outcome.error, MalformedResponse)


def test_parser_value_errors_become_malformed():
    body = '{"status": "OK", "results": [{"geometry": {"location": {"lat": 400, "lng": 0}}}]}'
    outcome = classify(TransportResponse(200, body), parse_geocoding_response)
    assert isinstance(outcome, Permanent)
    assert isinstance(outcome.error, MalformedResponse)
    assert isinstance(outcome.error.__cause__, ValueError)


def test_null_geometry_reads_as_missing_location():
    body = '{"status": "OK", "results": [{"formatted_address": "Somewhere", "geometry": null}]}'
    outcome = classify(TransportResponse(200, body), parse_geocoding_response)
    assert isinstance(outcome, Success)
    assert outcome.payload.results[0].location is None
    assert outcome.payload.results[0].location_type is None


@pytest.mark.parametrize("parse, body", [
    (parse_geocoding_response, '{"status": "OK", "results": [null]}'),
    (parse_geocoding_response, '{"status": "OK", "results": {"a": 1}}'),
    (parse_geocoding_response, '{"status": "OK", "results": [{"geometry": "here"}]}'),
    (parse_geocoding_response, '{"status": "OK", "results": [{"geometry": {"location": [1, 2]}}]}'),
    (parse_directions_response, '{"status": "OK", "routes": [{"legs": [null]}]}'),
    (parse_directions_response, '{"status": "OK", "routes": [null]}'),
    (parse_directions_response, '{"status": "OK", "routes": [{"legs": [{"distance": 5}]}]}'),
    (parse_elevation_response, '{"status": "OK", "results": [null]}'),
    (parse_place_details_response, '{"status": "OK", "result": ["not", "an", "object"]}'),
])
def test_wrongly_shaped_members_are_malformed(parse, body):
    outcome = classify(TransportResponse(200, body), parse)
    assert isinstance(outcome, Permanent)
    assert isinstance(outcome.error, MalformedResponse)


@pytest.mark.parametrize("error", [AttributeError("no attribute 'get'"), IndexError("list index out of range")])
def test_parser_lookup_errors_become_malformed(error):
    def parse(text):
        raise error

    outcome = classify(json_response({"status": "OK"}), parse)
    assert isinstance(outcome, Permanent)
    assert isinstance(outcome.error, MalformedResponse)
    assert outcome.error.__cause__ is error
