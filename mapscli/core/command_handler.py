"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), builds the matching
Maps API request through the MapsClient, and renders the typed response
through the UserInterface. Every handler returns True on success so the
entry point can choose the process exit code.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from mapscli.core.client import MapsClient
from mapscli.domain.exceptions import (
    CancelledOrTimedOut,
    MalformedResponse,
    MapsError,
    RemoteRejection,
    RequestLifecycleError,
    RetryBudgetExhausted,
    ValidationError,
)
from mapscli.domain.interfaces.user_interface import UserInterface
from mapscli.domain.models.common import LatLng, PlaceId
from mapscli.infrastructure.apis.directions import DirectionsResponse, TravelMode
from mapscli.infrastructure.apis.elevation import ElevationResponse
from mapscli.infrastructure.apis.geocoding import GeocodingResponse
from mapscli.infrastructure.apis.places import PlaceDetailsResponse
from mapscli.infrastructure.apis.time_zone import TimeZoneResponse

logger = logging.getLogger(__name__)


def describe_error(error: MapsError) -> str:
    """Maps an error kind to the one-line message shown to the user."""
    if isinstance(error, (ValidationError, RequestLifecycleError)):
        return f"Invalid request: {error}"
    if isinstance(error, RemoteRejection):
        detail = f" ({error.error_message})" if error.error_message else ""
        return f"Rejected by service: {error}{detail}"
    if isinstance(error, RetryBudgetExhausted):
        return f"Service temporarily unavailable: {error}"
    if isinstance(error, MalformedResponse):
        return f"Malformed response: {error}"
    if isinstance(error, CancelledOrTimedOut):
        return f"Timed out: {error}"
    return f"Request failed: {error}"


def _coordinates(location: Optional[LatLng]) -> str:
    return str(location) if location is not None else ""


class CommandHandler:
    """Handles incoming commands and delegates to the Maps client."""

    def __init__(self, client: MapsClient, ui: UserInterface, deadline: Optional[float] = None):
        """Initializes the CommandHandler with the client and the UI.

        Args:
            client: Shared MapsClient used for every command.
            ui: Output surface for results and errors.
            deadline: Per-command time limit overriding the client's default.
        """
        self.client = client
        self.ui = ui
        self.deadline = deadline

    async def _run(self, command: str, action: Callable[[], Awaitable[Any]]) -> Optional[Any]:
        logger.info(f"Handling '{command}' command")
        try:
            return await action()
        except MapsError as e:
            logger.error(f"'{command}' command failed: {type(e).__name__}: {e}")
            self.ui.display_error(describe_error(e), title=command)
            return None

    async def handle_geocode(
        self,
        address: Optional[str],
        components: Sequence[str] = (),
        language: Optional[str] = None,
        region: Optional[str] = None,
    ) -> bool:
        """Handles the 'geocode' command. Components are given as ``name:value``."""
        request = self.client.geocoding()
        if address:
            request.with_address(address)
        for component in components:
            name, sep, value = component.partition(":")
            if not sep or not name or not value:
                self.ui.display_error(f"Invalid request: component '{component}' must look like name:value")
                return False
            request.with_component(name, value)
        if language:
            request.with_language(language)
        if region:
            request.with_region(region)

        response = await self._run("geocode", lambda: request.execute(self.deadline))
        if response is None:
            return False
        self._show_geocoding(response)
        return True

    async def handle_reverse_geocode(self, latlng: str, language: Optional[str] = None) -> bool:
        """Handles the 'reverse-geocode' command."""
        try:
            location = LatLng.parse(latlng)
        except ValueError as e:
            self.ui.display_error(f"Invalid request: {e}")
            return False
        request = self.client.reverse_geocoding(location)
        if language:
            request.with_language(language)

        response = await self._run("reverse-geocode", lambda: request.execute(self.deadline))
        if response is None:
            return False
        self._show_geocoding(response)
        return True

    async def handle_directions(
        self,
        origin: str,
        destination: str,
        mode: Optional[str] = None,
        waypoints: Sequence[str] = (),
        alternatives: bool = False,
    ) -> bool:
        """Handles the 'directions' command."""
        request = self.client.directions(origin, destination)
        if mode:
            try:
                request.with_travel_mode(TravelMode(mode.lower()))
            except ValueError:
                choices = ", ".join(m.value for m in TravelMode)
                self.ui.display_error(f"Invalid request: unknown travel mode '{mode}' (choose from {choices})")
                return False
        if waypoints:
            request.with_waypoints(list(waypoints))
        if alternatives:
            request.with_alternatives(True)

        response: Optional[DirectionsResponse] = await self._run(
            "directions", lambda: request.execute(self.deadline)
        )
        if response is None:
            return False
        if not response.routes:
            self.ui.display_info(f"No routes found ({response.status.value}).")
            return True

        rows: List[List[Any]] = []
        for index, route in enumerate(response.routes, start=1):
            for leg in route.legs:
                rows.append([
                    index,
                    route.summary,
                    leg.start_address,
                    leg.end_address,
                    leg.distance.text if leg.distance else "",
                    leg.duration.text if leg.duration else "",
                ])
        self.ui.display_table("Directions", ["Route", "Summary", "From", "To", "Distance", "Duration"], rows)
        for route in response.routes:
            for warning in route.warnings:
                self.ui.display_warning(warning)
        return True

    async def handle_elevation(
        self,
        locations: Sequence[str],
        path: bool = False,
        samples: Optional[int] = None,
    ) -> bool:
        """Handles the 'elevation' command; ``path`` switches to a sampled path request."""
        try:
            points = [LatLng.parse(text) for text in locations]
        except ValueError as e:
            self.ui.display_error(f"Invalid request: {e}")
            return False

        request = self.client.elevation()
        if path:
            request.sampled_path_request(points, samples if samples is not None else len(points))
        else:
            request.positional_request(points)

        response: Optional[ElevationResponse] = await self._run(
            "elevation", lambda: request.execute(self.deadline)
        )
        if response is None:
            return False
        rows = [
            [_coordinates(point.location), f"{point.elevation:.2f}",
             f"{point.resolution:.2f}" if point.resolution is not None else ""]
            for point in response.results
        ]
        self.ui.display_table("Elevation", ["Location", "Elevation (m)", "Resolution (m)"], rows)
        return True

    async def handle_timezone(
        self,
        latlng: str,
        timestamp: Optional[int] = None,
        language: Optional[str] = None,
    ) -> bool:
        """Handles the 'timezone' command; the timestamp defaults to now."""
        try:
            location = LatLng.parse(latlng)
        except ValueError as e:
            self.ui.display_error(f"Invalid request: {e}")
            return False
        moment = (
            datetime.fromtimestamp(timestamp, tz=timezone.utc)
            if timestamp is not None
            else datetime.now(timezone.utc)
        )
        request = self.client.time_zone(location, moment)
        if language:
            request.with_language(language)

        response: Optional[TimeZoneResponse] = await self._run(
            "timezone", lambda: request.execute(self.deadline)
        )
        if response is None:
            return False
        if response.time_zone_id is None:
            self.ui.display_info(f"No time zone found ({response.status.value}).")
            return True
        self.ui.display_table(
            "Time Zone",
            ["Time Zone", "Name", "Raw Offset (s)", "DST Offset (s)", "Total Offset (s)"],
            [[response.time_zone_id, response.time_zone_name, response.raw_offset,
              response.dst_offset, response.total_offset]],
        )
        return True

    async def handle_place(
        self,
        place_id: str,
        fields: Sequence[str] = (),
        language: Optional[str] = None,
    ) -> bool:
        """Handles the 'place' command."""
        request = self.client.place_details(PlaceId(place_id))
        if fields:
            request.with_fields(list(fields))
        if language:
            request.with_language(language)

        response: Optional[PlaceDetailsResponse] = await self._run(
            "place", lambda: request.execute(self.deadline)
        )
        if response is None:
            return False
        result = response.result
        if result is None:
            self.ui.display_info(f"No details found ({response.status.value}).")
            return True
        rows = [
            ["Name", result.name],
            ["Address", result.formatted_address],
            ["Location", _coordinates(result.location)],
            ["Types", ", ".join(result.types)],
            ["Rating", result.rating],
            ["Website", result.website],
            ["Phone", result.international_phone_number],
        ]
        self.ui.display_table(f"Place {result.place_id or place_id}", ["Field", "Value"], rows)
        return True

    def _show_geocoding(self, response: GeocodingResponse) -> None:
        if not response.results:
            self.ui.display_info(f"No results found ({response.status.value}).")
            return
        rows = [
            [result.formatted_address, _coordinates(result.location), result.location_type, result.place_id]
            for result in response.results
        ]
        self.ui.display_table("Geocoding Results", ["Address", "Location", "Precision", "Place ID"], rows)
