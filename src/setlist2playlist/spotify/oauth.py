"""Spotify authorization-code helpers for obtaining a user access token.

Tokens live only in memory for the duration of the call: nothing is
written to disk and no refresh is attempted.
"""

import secrets

from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from ..config import Settings
from ..errors import AuthenticationFailure, InvalidRequest
from ..logging import get_logger

logger = get_logger(__name__)

SCOPE = "playlist-modify-private playlist-modify-public"


def _oauth(settings: Settings, state: str | None = None) -> SpotifyOAuth:
    if not settings.spotify_client_id:
        raise InvalidRequest("spotify_client_id", "SPOTIFY_CLIENT_ID is not configured")
    if not settings.spotify_client_secret:
        raise InvalidRequest("spotify_client_secret", "SPOTIFY_CLIENT_SECRET is not configured")

    return SpotifyOAuth(
        client_id=settings.spotify_client_id,
        client_secret=settings.spotify_client_secret,
        redirect_uri=settings.spotify_redirect_uri,
        scope=SCOPE,
        state=state,
        cache_handler=MemoryCacheHandler(),
        open_browser=False,
        requests_timeout=settings.http_timeout,
    )


def authorize_url(settings: Settings, state: str | None = None) -> tuple[str, str]:
    """Build the Spotify authorize URL.

    Args:
        settings: Application settings holding the client credentials
        state: CSRF state; a random one is generated when omitted

    Returns:
        Tuple of (authorize URL, state)
    """
    state = state or secrets.token_urlsafe(16)
    url = _oauth(settings, state).get_authorize_url(state=state)
    return url, state


def exchange_code(settings: Settings, code: str) -> str:
    """Exchange an authorization code for an access token.

    Raises:
        InvalidRequest: code or client credentials missing
        AuthenticationFailure: Spotify refused the exchange
    """
    if not code or not code.strip():
        raise InvalidRequest("code", "Authorization code is missing")

    oauth = _oauth(settings)
    try:
        token = oauth.get_access_token(code.strip(), as_dict=False, check_cache=False)
    except SpotifyOauthError as e:
        logger.error("token_exchange_failed", error=str(e))
        raise AuthenticationFailure(f"Token exchange failed: {e}") from e

    logger.info("token_exchanged")
    return token
