"""Query-string encoding helpers shared by the per-API request builders."""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import quote

from mapscli.domain.exceptions import MalformedResponse
from mapscli.domain.models.common import ApiKey, LatLng, PlaceId, QueryString
from mapscli.domain.models.status import ApiStatus


def percent_encode(text: str) -> str:
    """Percent-encodes everything except RFC 3986 unreserved characters."""
    return quote(text, safe="")


def unix_seconds(moment: datetime) -> int:
    """Naive datetimes are taken to be UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


def format_value(value: Any) -> str:
    """Renders a parameter value as the Maps APIs expect it (before encoding)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return str(unix_seconds(value))
    if isinstance(value, (LatLng, PlaceId)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return "|".join(format_value(item) for item in value)
    return str(value)


def build_query(key: ApiKey, fields: Iterable[Tuple[str, str]]) -> QueryString:
    """Joins ``key`` and the already-formatted fields into a query string.

    The key always comes first; the remaining order is the caller's.
    """
    parts = [f"key={percent_encode(key)}"]
    parts.extend(f"{name}={percent_encode(value)}" for name, value in fields)
    return QueryString("&".join(parts))


def load_envelope(text: str, error_field: str = "error_message") -> Tuple[dict, ApiStatus, Optional[str]]:
    """Decodes a JSON response body and extracts its status.

    Raises:
        MalformedResponse: If the body is not a JSON object with a known status.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"Response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponse("Response JSON is not an object")
    try:
        status = ApiStatus(data.get("status"))
    except ValueError as e:
        raise MalformedResponse(f"Unknown or missing status: {data.get('status')!r}") from e
    return data, status, data.get(error_field)


def object_field(data: Mapping[str, Any], name: str) -> dict:
    """Reads a nested JSON object; a missing or null member reads as ``{}``.

    Raises:
        MalformedResponse: If the member is present but not an object.
    """
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedResponse(f"`{name}` is not a JSON object")
    return value


def object_list(data: Mapping[str, Any], name: str) -> List[dict]:
    """Reads a JSON array of objects; a missing or null member reads as ``[]``.

    Raises:
        MalformedResponse: If the member is not an array or holds a non-object entry.
    """
    value = data.get(name)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise MalformedResponse(f"`{name}` is not an array of JSON objects")
    return value


def parse_latlng(data: Optional[dict]) -> Optional[LatLng]:
    """Reads a ``{"lat": .., "lng": ..}`` object."""
    if not data:
        return None
    if not isinstance(data, dict):
        raise MalformedResponse(f"Location is not a JSON object: {data!r}")
    return LatLng(float(data["lat"]), float(data["lng"]))
