"""Test configuration and fixtures"""

from unittest.mock import Mock

import pytest
import structlog

from setlist2playlist.config import Settings
from setlist2playlist.errors import CatalogAuthError, CatalogError, SetlistSourceError
from setlist2playlist.models import Performance
from setlist2playlist.spotify import SpotifyCatalog


class FakeSetlistSource:
    """In-memory setlist source keyed by year.

    A year mapped to an exception raises it; an unknown year has no shows.
    """

    name = "fake-setlists"

    def __init__(self, by_year=None):
        self.by_year = by_year or {}
        self.calls = []
        self.closed = False

    def fetch_performances(self, artist_id, year):
        self.calls.append((artist_id, year))
        value = self.by_year.get(year, [])
        if isinstance(value, Exception):
            raise value
        return [Performance(songs=songs) for songs in value]

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def search_side_effect(outcomes):
    """Build a search_track side effect from {song name: outcome}.

    An outcome is a track ID, None (no match) or an exception to raise.
    """

    def search(credential, query, limit=1):
        for song, outcome in outcomes.items():
            if f'track:"{song}"' in query:
                if isinstance(outcome, Exception):
                    raise outcome
                if outcome is None:
                    return []
                return [{"id": outcome, "name": song}]
        return []

    return search


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop logging configured by a test (the CLI binds the runner's stderr)"""
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture
def settings():
    """Settings that ignore the environment and any .env file"""
    return Settings(_env_file=None, setlist_fm_api_key="test-key", resolver_max_workers=1)


@pytest.fixture
def catalog():
    """Mock Spotify catalog with a user and a playlist ready"""
    mock = Mock(spec=SpotifyCatalog)
    mock.current_user_id.return_value = "user_123"
    mock.create_playlist.return_value = "playlist_123"
    mock.search_track.return_value = []
    return mock


@pytest.fixture
def auth_error():
    return CatalogAuthError("Spotify rejected the access token", status=401)


@pytest.fixture
def server_error():
    return CatalogError("Spotify search failed: internal error", status=500)


@pytest.fixture
def source_error():
    return SetlistSourceError("setlist.fm API request failed", status=503)
