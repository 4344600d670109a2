"""Spotify module initialization."""

from .catalog import SpotifyCatalog, track_uri
from .oauth import authorize_url, exchange_code

__all__ = [
    "SpotifyCatalog",
    "track_uri",
    "authorize_url",
    "exchange_code",
]
