"""setlist2playlist CLI using Typer.

Commands:
- create: Create a playlist of an artist's average setlist
- setlist: Show the average setlist without touching Spotify
- login: Print the Spotify authorization URL
- exchange-code: Trade an authorization code for an access token
"""

import json
from datetime import date
from typing import Annotated, Optional

import typer
from pydantic import ValidationError

from .aggregator import SetlistAggregator
from .config import Settings, get_settings
from .errors import PipelineError
from .logging import bind_request_context, configure_logging, get_logger
from .models import PipelineRequest
from .pipeline import Pipeline, run_with_deadline
from .sources import SetlistFmSource
from .spotify import authorize_url, exchange_code

app = typer.Typer(
    name="setlist2playlist",
    help="Create Spotify playlists from an artist's average concert setlist.",
    add_completion=False,
)


def load_settings() -> Settings:
    """Load settings, turning missing configuration into a CLI error."""
    try:
        return get_settings()
    except ValidationError as e:
        missing = ", ".join(str(err["loc"][0]).upper() for err in e.errors())
        typer.echo(f"Error: missing or invalid configuration: {missing}", err=True)
        raise typer.Exit(2)


def require_setlist_key(settings: Settings) -> str:
    """Return the setlist.fm API key, exiting when it is not configured."""
    if not settings.setlist_fm_api_key:
        typer.echo("Error: missing or invalid configuration: SETLIST_FM_API_KEY", err=True)
        raise typer.Exit(2)
    return settings.setlist_fm_api_key


def fail(error: PipelineError, as_json: bool) -> None:
    """Report a pipeline failure and exit with status 1."""
    status, body = error.to_response()
    if as_json:
        typer.echo(json.dumps({"status": status, **body}, indent=2))
    else:
        typer.echo(f"Error ({error.code}): {error.message}", err=True)
    raise typer.Exit(1)


@app.command()
def create(
    artist_id: Annotated[str, typer.Option("--artist-id", "-a", help="setlist.fm artist MBID")],
    artist_name: Annotated[str, typer.Option("--artist-name", "-n", help="Artist name as known to Spotify")],
    token: Annotated[str, typer.Option("--token", "-t", envvar="SPOTIFY_ACCESS_TOKEN", help="Spotify user access token")] = "",
    year: Annotated[Optional[int], typer.Option("--year", "-y", help="Year of the setlists (default: current year)")] = None,
    timeout: Annotated[Optional[float], typer.Option("--timeout", help="Give up after this many seconds")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON")] = False,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")] = None,
    log_format: Annotated[Optional[str], typer.Option("--log-format", help="Log format (console, json)")] = None,
) -> None:
    """Create a private Spotify playlist from an artist's average setlist.

    Example:
        setlist2playlist create --artist-id a74b1b7f-71a5-4011-9441-d0b5e4122711 \\
            --artist-name Radiohead --year 2017 --token "$SPOTIFY_ACCESS_TOKEN"
    """
    settings = load_settings()
    require_setlist_key(settings)
    configure_logging(
        level=log_level or settings.log_level,
        format=log_format or settings.log_format,
    )
    logger = get_logger(__name__)

    request = PipelineRequest(
        artist_id=artist_id,
        artist_name=artist_name,
        year=year,
        credential=token,
    )
    bind_request_context(artist_id=artist_id, year=year)

    try:
        with Pipeline.from_settings(settings) as pipeline:
            result = run_with_deadline(
                pipeline,
                request,
                timeout if timeout is not None else settings.pipeline_timeout,
            )
    except PipelineError as e:
        logger.error("pipeline_failed", code=e.code, error=e.message)
        fail(e, as_json)

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        return

    typer.echo()
    typer.echo("=" * 60)
    typer.echo("PLAYLIST CREATED SUCCESSFULLY")
    typer.echo("=" * 60)
    typer.echo()
    typer.echo(f"Playlist ID: {result.playlist_id}")
    typer.echo(f"URL: https://open.spotify.com/playlist/{result.playlist_id}")
    typer.echo(f"Year: {result.year}")
    typer.echo(f"Tracks: {result.tracks_added}")


@app.command()
def setlist(
    artist_id: Annotated[str, typer.Option("--artist-id", "-a", help="setlist.fm artist MBID")],
    year: Annotated[Optional[int], typer.Option("--year", "-y", help="Year of the setlists (default: current year)")] = None,
) -> None:
    """Show an artist's average setlist for a year.

    Useful for checking setlist.fm data before creating a playlist.
    """
    settings = load_settings()
    api_key = require_setlist_key(settings)
    configure_logging(level="WARNING")

    target_year = year if year is not None else date.today().year

    with SetlistFmSource(
        api_key=api_key,
        timeout=settings.http_timeout,
        max_pages=settings.setlist_max_pages,
    ) as source:
        try:
            songs = SetlistAggregator(source).aggregate(artist_id, target_year)
        except PipelineError as e:
            fail(e, as_json=False)

    typer.echo(f"Average setlist ({len(songs)} songs):")
    typer.echo()
    for song in songs:
        typer.echo(f"{song.position:>3}. {song.name} ({song.frequency}x)")


@app.command()
def login() -> None:
    """Print the Spotify authorization URL to start the login flow."""
    settings = load_settings()
    try:
        url, state = authorize_url(settings)
    except PipelineError as e:
        fail(e, as_json=False)

    typer.echo("Open this URL in a browser and approve access:")
    typer.echo(url)
    typer.echo()
    typer.echo(f"State: {state}")


@app.command("exchange-code")
def exchange_code_command(
    code: Annotated[str, typer.Argument(help="The ?code= value Spotify redirected to")],
) -> None:
    """Exchange an authorization code for an access token."""
    settings = load_settings()
    try:
        token = exchange_code(settings, code)
    except PipelineError as e:
        fail(e, as_json=False)

    typer.echo(token)


def main() -> None:
    """CLI entry point."""
    app()
