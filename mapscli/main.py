"""Main entry point for the mapscli application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Any, Awaitable, Callable, Dict, List, Optional

import typer

# --- Core Layer ---
from mapscli.core.client import MapsClient
from mapscli.core.command_handler import CommandHandler

# --- Infrastructure Layer ---
# Config
from mapscli.infrastructure.config.settings import (
    DEFAULT_CONFIG_FILE,
    get_api_key,
    get_config,
    get_request_timeout,
    load_configuration,
)
# UI
from mapscli.infrastructure.cli.display import ConsoleDisplay
# Transport
from mapscli.infrastructure.http.httpx_transport import HttpxTransport
# Monitoring
from mapscli.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, level_from_name, setup_logging

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

def create_dependencies(
    config_file: Path = DEFAULT_CONFIG_FILE,
    verbose: bool = False,
    deadline: Optional[float] = None,
) -> Dict[str, Any]:
    """Creates and wires up all dependencies for one command invocation.

    This acts as the Composition Root.

    Raises:
        ValueError: If no API key is configured or a retry setting is invalid.
    """
    # 1. Load Configuration First
    load_configuration(config_file=config_file)
    log_level = logging.DEBUG if verbose else level_from_name(get_config('logging.level'))
    setup_logging(
        log_level=log_level,
        log_format=get_config('logging.format', DEFAULT_LOG_FORMAT),
        log_file=get_config('logging.file'),
    )
    logger.info("Configuration and logging initialized.")

    # 2. Instantiate Infrastructure Adapters
    dependencies: Dict[str, Any] = {}
    dependencies['ui'] = ConsoleDisplay()
    dependencies['transport'] = HttpxTransport(timeout=get_request_timeout())

    # 3. Client and Command Handler
    try:
        dependencies['client'] = MapsClient.from_config(transport=dependencies['transport'])
    except ValueError as e:
        asyncio.run(dependencies['transport'].close())
        if not get_api_key():
            dependencies['ui'].display_error(f"{e} Set GOOGLE_MAPS_API_KEY or maps.api_key in {config_file}.")
        else:
            dependencies['ui'].display_error(f"Invalid configuration in {config_file}: {e}")
        raise
    dependencies['command_handler'] = CommandHandler(
        client=dependencies['client'],
        ui=dependencies['ui'],
        deadline=deadline,
    )
    logger.info("All dependencies initialized successfully.")
    return dependencies


# --- Typer App Definition ---
app = typer.Typer(
    name="mapscli",
    help="mapscli: Google Maps Platform client with rate limiting and automatic retries.",
    add_completion=False,
)


# --- Helper for Running Async Commands ---
def run_command(ctx: typer.Context, action: Callable[[CommandHandler], Awaitable[bool]]) -> None:
    """Runs one handler coroutine and maps its outcome to the exit code."""
    options = ctx.obj or {}
    try:
        dependencies = create_dependencies(
            config_file=options.get('config_file', DEFAULT_CONFIG_FILE),
            verbose=options.get('verbose', False),
            deadline=options.get('deadline'),
        )
    except ValueError:
        raise typer.Exit(code=1)

    async def _run() -> bool:
        try:
            return await action(dependencies['command_handler'])
        finally:
            await dependencies['client'].close()
            await dependencies['transport'].close()

    succeeded = asyncio.run(_run())
    if not succeeded:
        raise typer.Exit(code=1)


# --- CLI Commands ---

LanguageOption = Annotated[
    Optional[str],
    typer.Option("--language", "-l", help="Language for results (e.g. 'en', 'fr')."),
]


@app.command()
def geocode(
    ctx: typer.Context,
    address: Annotated[Optional[str], typer.Argument(help="Street address to geocode.")] = None,
    component: Annotated[
        Optional[List[str]],
        typer.Option("--component", "-c", help="Component filter as name:value (repeatable), e.g. country:GB."),
    ] = None,
    language: LanguageOption = None,
    region: Annotated[Optional[str], typer.Option("--region", "-r", help="Region bias (ccTLD).")] = None,
):
    """Convert an address into coordinates."""
    run_command(ctx, lambda handler: handler.handle_geocode(address, component or [], language, region))


@app.command(name="reverse-geocode")
def reverse_geocode(
    ctx: typer.Context,
    latlng: Annotated[str, typer.Argument(help="Coordinates as lat,lng (use -- before negative values).")],
    language: LanguageOption = None,
):
    """Convert coordinates into addresses."""
    run_command(ctx, lambda handler: handler.handle_reverse_geocode(latlng, language))


@app.command()
def directions(
    ctx: typer.Context,
    origin: Annotated[str, typer.Argument(help="Start address or lat,lng.")],
    destination: Annotated[str, typer.Argument(help="End address or lat,lng.")],
    mode: Annotated[
        Optional[str],
        typer.Option("--mode", "-m", help="driving, walking, bicycling or transit."),
    ] = None,
    waypoint: Annotated[
        Optional[List[str]],
        typer.Option("--waypoint", "-w", help="Intermediate stop (repeatable)."),
    ] = None,
    alternatives: Annotated[bool, typer.Option("--alternatives", help="Ask for alternative routes.")] = False,
):
    """Find routes between two places."""
    run_command(
        ctx,
        lambda handler: handler.handle_directions(origin, destination, mode, waypoint or [], alternatives),
    )


@app.command()
def elevation(
    ctx: typer.Context,
    locations: Annotated[List[str], typer.Argument(help="One or more lat,lng points.")],
    path: Annotated[bool, typer.Option("--path", help="Sample along the path through the points.")] = False,
    samples: Annotated[
        Optional[int],
        typer.Option("--samples", "-s", help="Number of samples along the path (1-512)."),
    ] = None,
):
    """Look up elevation for points or along a path."""
    run_command(ctx, lambda handler: handler.handle_elevation(locations, path, samples))


@app.command()
def timezone(
    ctx: typer.Context,
    latlng: Annotated[str, typer.Argument(help="Coordinates as lat,lng (use -- before negative values).")],
    timestamp: Annotated[
        Optional[int],
        typer.Option("--timestamp", "-t", help="Unix seconds; defaults to now."),
    ] = None,
    language: LanguageOption = None,
):
    """Look up the time zone for a location."""
    run_command(ctx, lambda handler: handler.handle_timezone(latlng, timestamp, language))


@app.command()
def place(
    ctx: typer.Context,
    place_id: Annotated[str, typer.Argument(help="Place ID to look up.")],
    field: Annotated[
        Optional[List[str]],
        typer.Option("--field", "-f", help="Restrict the returned fields (repeatable)."),
    ] = None,
    language: LanguageOption = None,
):
    """Show details for a place."""
    run_command(ctx, lambda handler: handler.handle_place(place_id, field or [], language))


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
    deadline: Annotated[
        Optional[float],
        typer.Option("--deadline", "-d", help="Give up on a request after this many seconds."),
    ] = None,
    config_file: Annotated[
        Path,
        typer.Option("--config", help="YAML configuration file."),
    ] = DEFAULT_CONFIG_FILE,
):
    """Google Maps Platform from the command line."""
    ctx.obj = {'verbose': verbose, 'deadline': deadline, 'config_file': config_file}
    logger.debug(f"main_callback called with verbose={verbose}, deadline={deadline}")


# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    logger.info("Starting mapscli application...")
    app()  # Typer takes over


if __name__ == "__main__":
    cli_entry_point()
