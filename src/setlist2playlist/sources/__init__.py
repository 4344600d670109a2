"""Setlist data source interface.

The aggregator depends only on the SetlistSource protocol, so any source
of per-show song lists can feed it.
"""

from typing import Protocol, runtime_checkable

from ..models import Performance


@runtime_checkable
class SetlistSource(Protocol):
    """Protocol for setlist data sources.

    Implementations raise SetlistSourceError when the source cannot be
    reached or answers with an error. An artist with no shows in a year is
    not an error: return an empty list.
    """

    @property
    def name(self) -> str:
        """Unique identifier for this data source."""
        ...

    def fetch_performances(self, artist_id: str, year: int) -> list[Performance]:
        """Get every recorded performance of an artist in a year.

        Args:
            artist_id: Artist identifier in the source (MusicBrainz MBID for setlist.fm)
            year: Calendar year of the shows

        Returns:
            Performances in the order the source lists them
        """
        ...


from .setlist_fm import SetlistFmSource

__all__ = ["SetlistSource", "SetlistFmSource"]
