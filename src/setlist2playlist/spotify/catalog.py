"""Spotify catalog adapter.

Handles, for a caller-supplied bearer token:
- Track search
- Identity of the token owner
- Playlist creation, population and removal

A spotipy client is built per call from the token, so no state is shared
between requests or threads. Calls are never retried here.
"""

from typing import Any, Callable

import requests
import spotipy

from ..errors import CatalogAuthError, CatalogError
from ..logging import get_logger

logger = get_logger(__name__)

ClientFactory = Callable[[str], spotipy.Spotify]


def track_uri(track_id: str) -> str:
    """Convert a Spotify track ID to a track URI."""
    return f"spotify:track:{track_id}"


class SpotifyCatalog:
    """Spotify Web API wrapper used by the resolver and the playlist builder.

    Every spotipy or transport error is translated: HTTP 401 becomes
    CatalogAuthError, everything else CatalogError.
    """

    def __init__(self, timeout: float = 10.0, client_factory: ClientFactory | None = None):
        """Initialize the catalog.

        Args:
            timeout: Per-request timeout in seconds
            client_factory: Builds a spotipy client from an access token
        """
        self.timeout = timeout
        self._client_factory = client_factory or self._default_client

    def _default_client(self, credential: str) -> spotipy.Spotify:
        return spotipy.Spotify(
            auth=credential,
            requests_timeout=self.timeout,
            retries=0,
            status_retries=0,
        )

    def _call(self, operation: str, credential: str, fn: Callable[[spotipy.Spotify], Any]) -> Any:
        client = self._client_factory(credential)
        try:
            return fn(client)
        except spotipy.SpotifyException as e:
            if e.http_status == 401:
                raise CatalogAuthError(f"Spotify rejected the access token: {e.msg}", status=401) from e
            raise CatalogError(f"Spotify {operation} failed: {e.msg}", status=e.http_status) from e
        except requests.RequestException as e:
            raise CatalogError(f"Spotify {operation} failed: {e}") from e

    def search_track(self, credential: str, query: str, limit: int = 1) -> list[dict[str, Any]]:
        """Search tracks. Returns at most `limit` items, best match first.

        Spotify sometimes answers with null entries; items without an ID
        are dropped.
        """
        results = self._call(
            "search",
            credential,
            lambda client: client.search(q=query, type="track", limit=limit),
        )
        items = ((results or {}).get("tracks") or {}).get("items") or []
        return [item for item in items if isinstance(item, dict) and item.get("id")][:limit]

    def current_user_id(self, credential: str) -> str:
        """Get the Spotify user ID owning the token."""
        user = self._call("identity lookup", credential, lambda client: client.current_user())
        return user["id"]

    def create_playlist(
        self,
        credential: str,
        user_id: str,
        name: str,
        public: bool = False,
        description: str = "",
    ) -> str:
        """Create an empty playlist and return its ID."""
        playlist = self._call(
            "playlist creation",
            credential,
            lambda client: client.user_playlist_create(
                user=user_id,
                name=name,
                public=public,
                description=description,
            ),
        )
        logger.info("playlist_created", name=name, id=playlist["id"], public=public)
        return playlist["id"]

    def add_items(self, credential: str, playlist_id: str, track_ids: list[str]) -> None:
        """Add tracks to a playlist in one request, keeping their order."""
        uris = [track_uri(tid) for tid in track_ids]
        self._call(
            "adding tracks",
            credential,
            lambda client: client.playlist_add_items(playlist_id, uris),
        )
        logger.info("tracks_added", playlist_id=playlist_id, total=len(uris))

    def delete_playlist(self, credential: str, playlist_id: str) -> None:
        """Remove a playlist from the owner's library (Spotify's delete)."""
        self._call(
            "playlist removal",
            credential,
            lambda client: client.current_user_unfollow_playlist(playlist_id),
        )
        logger.info("playlist_deleted", playlist_id=playlist_id)
