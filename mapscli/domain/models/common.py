"""Defines common Value Objects used across the different Maps APIs.

These objects represent simple values like API keys, query strings,
coordinates and place IDs, ensuring consistency and type safety.
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType

# === Core Value Objects ===

ApiKey = NewType("ApiKey", str)            # Static credential attached to every call
QueryString = NewType("QueryString", str)  # Percent-encoded query, without the leading '?'
Url = NewType("Url", str)                  # Fully-qualified request URL

# Output format segment of every request URL. Only JSON is parsed.
OUTPUT_FORMAT = "json"


class Api(str, Enum):
    """API category used to key rate-limiter buckets.

    ``ALL`` is the wildcard bucket every request draws from in addition to
    its own category.
    """
    ALL = "all"
    DIRECTIONS = "directions"
    ELEVATION = "elevation"
    GEOCODING = "geocoding"
    PLACES = "places"
    TIME_ZONE = "time_zone"

    @classmethod
    def from_name(cls, name: str) -> "Api":
        """Looks up a category by its value, case-insensitively."""
        normalized = name.strip().lower().replace("-", "_")
        for api in cls:
            if api.value == normalized:
                return api
        raise ValueError(f"Unknown API category: '{name}'")


@dataclass(frozen=True)
class LatLng:
    """A latitude/longitude pair in decimal degrees."""
    lat: float
    lng: float

    def __post_init__(self):
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude {self.lat} is outside [-90, 90]")
        if not -180.0 <= self.lng <= 180.0:
            raise ValueError(f"Longitude {self.lng} is outside [-180, 180]")

    @classmethod
    def parse(cls, text: str) -> "LatLng":
        """Parses a ``"lat,lng"`` string (as typed on the command line)."""
        try:
            lat_text, lng_text = text.split(",")
            return cls(float(lat_text), float(lng_text))
        except ValueError as e:
            raise ValueError(f"Expected 'lat,lng', got '{text}': {e}") from e

    def __str__(self) -> str:
        return f"{self.lat:.7f},{self.lng:.7f}"


@dataclass(frozen=True)
class PlaceId:
    """A textual identifier that uniquely identifies a place."""
    value: str

    def __str__(self) -> str:
        return self.value
