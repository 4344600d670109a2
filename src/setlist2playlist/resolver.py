"""Track resolution: match ranked song names to Spotify track IDs.

Lookups are independent of each other. A song that is not found, or whose
lookup fails for any reason other than authentication, is recorded as
unresolved and the pass continues.

Authentication failures stop the pass: once one is seen, queued lookups
are cancelled, lookups that start afterwards are skipped without calling
Spotify, and lookups already in flight are left to finish before the
failure is raised. A caller-supplied cancel flag stops the pass the same
way and raises ServiceUnavailable.
"""

import contextvars
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait

from .errors import AuthenticationFailure, CatalogAuthError, CatalogError, ServiceUnavailable
from .logging import get_logger
from .models import RankedSong, ResolutionResult
from .spotify import SpotifyCatalog

logger = get_logger(__name__)


def build_query(song_name: str, artist_name: str) -> str:
    """Build a Spotify search query scoped to a track title and an artist."""
    song = song_name.replace('"', "").strip()
    artist = artist_name.replace('"', "").strip()
    return f'track:"{song}" artist:"{artist}"'


class TrackResolver:
    """Resolves ranked songs to catalog track IDs, one lookup per song."""

    def __init__(self, catalog: SpotifyCatalog, max_workers: int = 4):
        """Initialize the resolver.

        Args:
            catalog: Catalog used for track search
            max_workers: Maximum concurrent lookups (1 resolves sequentially)
        """
        self.catalog = catalog
        self.max_workers = max(1, max_workers)

    def resolve_one(self, song_name: str, artist_name: str, credential: str) -> ResolutionResult:
        """Look up the best matching track for one song.

        Raises:
            AuthenticationFailure: the credential was rejected
        """
        query = build_query(song_name, artist_name)
        try:
            candidates = self.catalog.search_track(credential, query, limit=1)
        except CatalogAuthError as e:
            logger.error("track_lookup_unauthorized", song=song_name)
            raise AuthenticationFailure(details={"song": song_name}) from e
        except CatalogError as e:
            logger.warning("track_lookup_failed", song=song_name, status=e.status, error=str(e))
            return ResolutionResult.unresolved(song_name)

        if not candidates:
            logger.info("track_not_found", song=song_name, artist=artist_name)
            return ResolutionResult.unresolved(song_name)

        track = candidates[0]
        track_id = track.get("id") if isinstance(track, dict) else None
        if not track_id:
            logger.warning("track_without_id", song=song_name)
            return ResolutionResult.unresolved(song_name)

        logger.debug("track_matched", song=song_name, track_id=track_id, matched=track.get("name"))
        return ResolutionResult(song_name=song_name, track_id=track_id, found=True)

    def resolve_all(
        self,
        songs: list[RankedSong],
        artist_name: str,
        credential: str,
        cancelled: threading.Event | None = None,
    ) -> list[ResolutionResult]:
        """Resolve every song, returning one result per song in input order.

        Args:
            songs: Ranked songs to look up
            artist_name: Artist the searches are scoped to
            credential: User access token
            cancelled: Set by the caller to abandon the pass; lookups that
                have not started yet are skipped

        Raises:
            AuthenticationFailure: the credential was rejected by any lookup
            ServiceUnavailable: the pass was cancelled
        """
        if not songs:
            return []

        stop = threading.Event()

        def lookup(song: RankedSong) -> ResolutionResult | None:
            if cancelled is not None and cancelled.is_set():
                stop.set()
                raise ServiceUnavailable(
                    "pipeline", "Pipeline cancelled during resolve", stage="resolve"
                )
            if stop.is_set():
                return None
            try:
                return self.resolve_one(song.name, artist_name, credential)
            except AuthenticationFailure:
                stop.set()
                raise

        workers = min(self.max_workers, len(songs))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="resolver") as executor:
            futures: list[Future] = [
                executor.submit(contextvars.copy_context().run, lookup, song) for song in songs
            ]
            wait(futures, return_when=FIRST_EXCEPTION)

            failed = next(
                (f for f in futures if f.done() and not f.cancelled() and f.exception()),
                None,
            )
            if failed is not None:
                for future in futures:
                    future.cancel()

        if failed is not None:
            raise failed.exception()

        results = [future.result() for future in futures]
        found = sum(1 for r in results if r.found)
        logger.info("tracks_resolved", total=len(results), found=found, missing=len(results) - found)
        return results
