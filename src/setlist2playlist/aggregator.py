"""Setlist aggregation: turn a year of setlists into a ranked average setlist."""

from .errors import NoDataFound, ServiceUnavailable, SetlistSourceError
from .logging import get_logger
from .models import Performance, RankedSong
from .sources import SetlistSource

logger = get_logger(__name__)


def rank_songs(performances: list[Performance]) -> list[RankedSong]:
    """Rank song names by how often they were played.

    Names are compared exactly (case-sensitive). A song played twice in one
    show counts twice. Equal counts keep the order in which the songs were
    first seen.
    """
    counts: dict[str, int] = {}
    for performance in performances:
        for name in performance.songs:
            counts[name] = counts.get(name, 0) + 1

    # sorted() is stable and dicts keep insertion order
    ordered = sorted(counts.items(), key=lambda item: -item[1])
    return [
        RankedSong(name=name, position=index, frequency=count)
        for index, (name, count) in enumerate(ordered, start=1)
    ]


class SetlistAggregator:
    """Builds the average setlist of an artist for a year.

    Falls back to the previous year, exactly once, when the requested year
    has no songs.
    """

    def __init__(self, source: SetlistSource):
        self.source = source

    def _ranked_for_year(self, artist_id: str, year: int) -> list[RankedSong]:
        try:
            performances = self.source.fetch_performances(artist_id, year)
        except SetlistSourceError as e:
            logger.error("setlist_source_unavailable", artist_id=artist_id, year=year, error=str(e))
            raise ServiceUnavailable(
                "setlist-data",
                f"{self.source.name} is unavailable: {e}",
                year=year,
                status=e.status,
            ) from e
        return rank_songs(performances)

    def aggregate(self, artist_id: str, year: int) -> list[RankedSong]:
        """Get the ranked song list for an artist and year.

        Raises:
            ServiceUnavailable: the setlist source failed
            NoDataFound: neither year nor year - 1 has any songs
        """
        songs = self._ranked_for_year(artist_id, year)
        if songs:
            logger.info("setlist_aggregated", artist_id=artist_id, year=year, songs=len(songs))
            return songs

        fallback_year = year - 1
        logger.info("fallback_year", artist_id=artist_id, year=year, fallback_year=fallback_year)

        songs = self._ranked_for_year(artist_id, fallback_year)
        if songs:
            logger.info(
                "setlist_aggregated", artist_id=artist_id, year=fallback_year, songs=len(songs)
            )
            return songs

        logger.warning(
            "setlist_not_found", artist_id=artist_id, year=year, fallback_year=fallback_year
        )
        raise NoDataFound(artist_id, year, fallback_year)
