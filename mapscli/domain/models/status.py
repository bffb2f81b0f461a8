"""Status codes embedded in the JSON envelope of every Maps API response."""

from enum import Enum


class ApiStatus(str, Enum):
    OK = "OK"
    INVALID_REQUEST = "INVALID_REQUEST"
    MAX_ROUTE_LENGTH_EXCEEDED = "MAX_ROUTE_LENGTH_EXCEEDED"
    MAX_WAYPOINTS_EXCEEDED = "MAX_WAYPOINTS_EXCEEDED"
    NOT_FOUND = "NOT_FOUND"
    OVER_DAILY_LIMIT = "OVER_DAILY_LIMIT"
    OVER_QUERY_LIMIT = "OVER_QUERY_LIMIT"
    REQUEST_DENIED = "REQUEST_DENIED"
    DATA_NOT_AVAILABLE = "DATA_NOT_AVAILABLE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    ZERO_RESULTS = "ZERO_RESULTS"


# Human readable descriptions used when the server sends no error_message.
STATUS_DESCRIPTIONS = {
    ApiStatus.OK: "The request was successful.",
    ApiStatus.INVALID_REQUEST: "Invalid request. A required parameter is missing or malformed.",
    ApiStatus.MAX_ROUTE_LENGTH_EXCEEDED: "The requested route is too long and cannot be processed.",
    ApiStatus.MAX_WAYPOINTS_EXCEEDED: "Too many waypoints were provided in the request.",
    ApiStatus.NOT_FOUND: "At least one of the locations could not be geocoded or the place was not found.",
    ApiStatus.OVER_DAILY_LIMIT: "Usage cap exceeded, API key invalid, or billing not enabled.",
    ApiStatus.OVER_QUERY_LIMIT: "Requestor has exceeded quota.",
    ApiStatus.REQUEST_DENIED: "The service denied use of this API by your application.",
    ApiStatus.DATA_NOT_AVAILABLE: "No data is available for the requested location.",
    ApiStatus.UNKNOWN_ERROR: "The request could not be processed due to a server error. It may succeed if you try again.",
    ApiStatus.ZERO_RESULTS: "The request was successful but returned no results.",
}
