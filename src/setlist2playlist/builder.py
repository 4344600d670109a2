"""Playlist construction from resolved track IDs."""

from .errors import AuthenticationFailure, CatalogAuthError, CatalogError, ServiceUnavailable
from .logging import get_logger
from .models import PlaylistResult
from .spotify import SpotifyCatalog

logger = get_logger(__name__)

CATALOG_SERVICE = "catalog-service"


def playlist_title(artist_name: str, year: int) -> str:
    """Name of an average-setlist playlist, e.g. "Radiohead — Average Setlist 2024"."""
    return f"{artist_name} — Average Setlist {year}"


def playlist_description(artist_name: str, year: int) -> str:
    return f"Average setlist for {artist_name} in {year}"


def _translate(error: CatalogError, step: str) -> Exception:
    if isinstance(error, CatalogAuthError):
        return AuthenticationFailure(details={"step": step})
    return ServiceUnavailable(CATALOG_SERVICE, str(error), step=step, status=error.status)


class PlaylistBuilder:
    """Creates a private playlist and fills it with the given tracks.

    A build either returns a PlaylistResult or raises. When adding tracks
    fails after the playlist was created, the empty playlist is removed
    again if cleanup_on_failure is set; otherwise it is left in place.
    """

    def __init__(self, catalog: SpotifyCatalog, cleanup_on_failure: bool = True):
        self.catalog = catalog
        self.cleanup_on_failure = cleanup_on_failure

    def build(
        self,
        owner_credential: str,
        title: str,
        is_private: bool,
        track_ids: list[str],
        year: int,
        description: str = "",
    ) -> PlaylistResult:
        """Create the playlist and add the tracks.

        Args:
            owner_credential: Access token of the playlist owner
            title: Playlist name
            is_private: Visibility of the new playlist
            track_ids: Spotify track IDs, in playlist order
            year: Year reported back in the result
            description: Playlist description

        Raises:
            AuthenticationFailure: the token was rejected at any step
            ServiceUnavailable: Spotify failed at any step
        """
        try:
            user_id = self.catalog.current_user_id(owner_credential)
        except CatalogError as e:
            logger.error("owner_lookup_failed", error=str(e))
            raise _translate(e, "identity") from e

        try:
            playlist_id = self.catalog.create_playlist(
                owner_credential,
                user_id,
                title,
                public=not is_private,
                description=description,
            )
        except CatalogError as e:
            logger.error("playlist_creation_failed", name=title, error=str(e))
            raise _translate(e, "create") from e

        if track_ids:
            try:
                self.catalog.add_items(owner_credential, playlist_id, track_ids)
            except CatalogError as e:
                logger.error(
                    "add_tracks_failed",
                    playlist_id=playlist_id,
                    track_count=len(track_ids),
                    error=str(e),
                )
                self._discard(owner_credential, playlist_id)
                raise _translate(e, "populate") from e
        else:
            logger.info("no_tracks_to_add", playlist_id=playlist_id)

        return PlaylistResult(playlist_id=playlist_id, tracks_added=len(track_ids), year=year)

    def _discard(self, owner_credential: str, playlist_id: str) -> None:
        """Remove a playlist left empty by a failed population call."""
        if not self.cleanup_on_failure:
            logger.warning("empty_playlist_left", playlist_id=playlist_id)
            return
        try:
            self.catalog.delete_playlist(owner_credential, playlist_id)
        except CatalogError as e:
            # The population failure is what the caller sees
            logger.error("playlist_cleanup_failed", playlist_id=playlist_id, error=str(e))
