"""setlist2playlist - Turn an artist's average concert setlist into a Spotify playlist.

Aggregates a year of setlist.fm setlists into a frequency-ranked song list,
matches each song to a Spotify track and creates a private playlist.
"""

from .cli import main

__all__ = ["main"]
