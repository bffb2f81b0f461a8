"""Time Zone API: time zone and offsets for a location at a given moment."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from mapscli.domain.models.common import Api, LatLng
from mapscli.infrastructure.apis.base import ApiRequest, ApiResponse
from mapscli.infrastructure.apis.encoding import load_envelope


@dataclass
class TimeZoneResponse(ApiResponse):
    dst_offset: Optional[int] = None
    raw_offset: Optional[int] = None
    time_zone_id: Optional[str] = None
    time_zone_name: Optional[str] = None

    @property
    def total_offset(self) -> Optional[int]:
        """UTC offset in seconds including daylight saving time."""
        if self.dst_offset is None or self.raw_offset is None:
            return None
        return self.dst_offset + self.raw_offset


def parse_time_zone_response(text: str) -> TimeZoneResponse:
    # This API uses camelCase, including for its error message.
    data, status, error_message = load_envelope(text, error_field="errorMessage")
    return TimeZoneResponse(
        status=status,
        error_message=error_message,
        dst_offset=int(data["dstOffset"]) if "dstOffset" in data else None,
        raw_offset=int(data["rawOffset"]) if "rawOffset" in data else None,
        time_zone_id=data.get("timeZoneId"),
        time_zone_name=data.get("timeZoneName"),
    )


class TimeZoneRequest(ApiRequest):
    API = Api.TIME_ZONE
    API_NAME = "Time Zone"
    SERVICE_URL = "https://maps.googleapis.com/maps/api/timezone"
    FIELD_ORDER = ("location", "timestamp", "language")

    parse_response = staticmethod(parse_time_zone_response)

    def __init__(self, client, location: LatLng, timestamp: datetime):
        super().__init__(client)
        self.set_field("location", location)
        self.set_field("timestamp", timestamp)

    def with_language(self, language: str) -> "TimeZoneRequest":
        return self.set_field("language", language)

    def _validate_parameters(self, parameters: Mapping[str, Any]) -> None:
        self._require(parameters, "location", "timestamp")
