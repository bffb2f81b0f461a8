"""mapscli: async client for the Google Maps Platform web services.

Directions, Elevation, Geocoding, Places and Time Zone requests share one
client context, one rate limiter and one retry/backoff pipeline.
"""

from mapscli.core.client import MapsClient
from mapscli.domain.models.common import Api, LatLng, PlaceId

__version__ = "0.3.0"

__all__ = ["MapsClient", "Api", "LatLng", "PlaceId", "__version__"]
