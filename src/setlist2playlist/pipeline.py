"""Pipeline orchestrator for setlist2playlist.

Coordinates the full flow for one request:
1. Validate the request
2. Aggregate the artist's setlists into a ranked song list
3. Resolve each song to a Spotify track
4. Create the playlist with the resolved tracks

Errors raised by a stage propagate unchanged.
"""

import contextvars
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from datetime import date
from typing import Callable

from .aggregator import SetlistAggregator
from .builder import PlaylistBuilder, playlist_description, playlist_title
from .config import Settings
from .errors import InvalidRequest, ServiceUnavailable
from .logging import get_logger
from .models import PipelineRequest, PlaylistResult
from .resolver import TrackResolver
from .sources import SetlistFmSource, SetlistSource
from .spotify import SpotifyCatalog

logger = get_logger(__name__)


class Pipeline:
    """Main pipeline orchestrator for setlist2playlist."""

    def __init__(
        self,
        aggregator: SetlistAggregator,
        resolver: TrackResolver,
        builder: PlaylistBuilder,
        today: Callable[[], date] = date.today,
    ):
        """Initialize the pipeline.

        Args:
            aggregator: Builds the ranked song list
            resolver: Matches songs to catalog tracks
            builder: Creates the playlist
            today: Clock used to default the year
        """
        self.aggregator = aggregator
        self.resolver = resolver
        self.builder = builder
        self._today = today

    @classmethod
    def from_settings(
        cls, settings: Settings, source: SetlistSource | None = None
    ) -> "Pipeline":
        """Wire the setlist.fm source and the Spotify catalog from settings.

        Raises:
            InvalidRequest: no source given and no setlist.fm API key configured
        """
        if source is None and not settings.setlist_fm_api_key:
            raise InvalidRequest("setlist_fm_api_key", "SETLIST_FM_API_KEY is not configured")
        source = source or SetlistFmSource(
            api_key=settings.setlist_fm_api_key,
            timeout=settings.http_timeout,
            max_pages=settings.setlist_max_pages,
        )
        catalog = SpotifyCatalog(timeout=settings.http_timeout)

        logger.debug("pipeline_initialized", source=source.name)

        return cls(
            aggregator=SetlistAggregator(source),
            resolver=TrackResolver(catalog, max_workers=settings.resolver_max_workers),
            builder=PlaylistBuilder(catalog, cleanup_on_failure=settings.cleanup_on_failure),
        )

    def close(self) -> None:
        """Release the setlist source's connections, if it holds any."""
        close = getattr(self.aggregator.source, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> "Pipeline":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @staticmethod
    def validate(request: PipelineRequest) -> None:
        """Reject blank required fields.

        Raises:
            InvalidRequest: naming the first blank field
        """
        for field in ("credential", "artist_id", "artist_name"):
            value = getattr(request, field)
            if not value or not value.strip():
                raise InvalidRequest(field)

    def run(
        self,
        request: PipelineRequest,
        cancelled: threading.Event | None = None,
    ) -> PlaylistResult:
        """Run the full pipeline to create a playlist.

        Args:
            request: Artist, optional year and the user's access token
            cancelled: Set by the caller to stop the run before its next stage
                or its next track lookup

        Returns:
            PlaylistResult of the created playlist
        """
        self.validate(request)

        year = request.year if request.year is not None else self._today().year

        logger.info(
            "pipeline_start",
            artist_id=request.artist_id,
            artist_name=request.artist_name,
            year=year,
        )

        songs = self.aggregator.aggregate(request.artist_id, year)

        _checkpoint(cancelled, "resolve")
        resolutions = self.resolver.resolve_all(
            songs, request.artist_name, request.credential, cancelled=cancelled
        )
        track_ids = [r.track_id for r in resolutions if r.found and r.track_id]

        _checkpoint(cancelled, "build")
        result = self.builder.build(
            request.credential,
            playlist_title(request.artist_name, year),
            True,
            track_ids,
            year,
            description=playlist_description(request.artist_name, year),
        )

        logger.info(
            "pipeline_complete",
            playlist_id=result.playlist_id,
            songs=len(songs),
            tracks_added=result.tracks_added,
        )
        return result


def _checkpoint(cancelled: threading.Event | None, stage: str) -> None:
    if cancelled is not None and cancelled.is_set():
        logger.warning("pipeline_cancelled", before=stage)
        raise ServiceUnavailable("pipeline", f"Pipeline cancelled before {stage}", stage=stage)


def run_with_deadline(
    pipeline: Pipeline, request: PipelineRequest, timeout: float | None
) -> PlaylistResult:
    """Run the pipeline, giving up after `timeout` seconds.

    The run happens on a worker thread. On timeout the run is flagged as
    cancelled so it stops before its next stage or track lookup, and
    ServiceUnavailable is raised at once; a Spotify call already in
    progress is not interrupted.
    """
    if timeout is None:
        return pipeline.run(request)

    cancelled = threading.Event()
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pipeline")
    future = executor.submit(contextvars.copy_context().run, pipeline.run, request, cancelled)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeoutError as e:
        cancelled.set()
        logger.error("pipeline_deadline_exceeded", timeout=timeout)
        raise ServiceUnavailable(
            "pipeline", f"Pipeline did not finish within {timeout} seconds", timeout=timeout
        ) from e
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
