"""Setlist.fm data source implementation.

API documentation: https://api.setlist.fm/docs/1.0/index.html
"""

from datetime import date, datetime
from typing import Any

import httpx

from ..errors import SetlistSourceError
from ..logging import get_logger
from ..models import Performance

logger = get_logger(__name__)


class SetlistFmSource:
    """Setlist.fm API data source.

    Reads setlists of one artist for one year through the setlist search
    endpoint, which is the only one that filters by year.
    """

    BASE_URL = "https://api.setlist.fm/rest/1.0"

    def __init__(
        self,
        api_key: str,
        timeout: float = 10.0,
        max_pages: int = 1,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the Setlist.fm source.

        Args:
            api_key: Setlist.fm API key
            timeout: Per-request timeout in seconds
            max_pages: Maximum number of result pages (20 setlists each) to read
            transport: Optional httpx transport, used to fake the API in tests
        """
        self.max_pages = max_pages
        self._client = httpx.Client(
            base_url=self.BASE_URL,
            headers={
                "Accept": "application/json",
                "x-api-key": api_key,
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def name(self) -> str:
        return "setlist.fm"

    def _parse_date(self, date_str: str) -> date | None:
        """Parse setlist.fm date format (dd-MM-yyyy)."""
        try:
            return datetime.strptime(date_str, "%d-%m-%Y").date()
        except (ValueError, TypeError):
            logger.warning("failed_to_parse_date", date_str=date_str)
            return None

    def _get_page(self, artist_id: str, year: int, page: int) -> dict[str, Any] | None:
        """Fetch one result page. Returns None when setlist.fm has no match."""
        try:
            response = self._client.get(
                "/search/setlists",
                params={"artistMbid": artist_id, "year": year, "p": page},
            )
        except httpx.HTTPError as e:
            logger.error("setlist_request_failed", error=str(e), artist_id=artist_id, year=year)
            raise SetlistSourceError(f"setlist.fm request failed: {e}") from e

        # setlist.fm answers an empty search with 404
        if response.status_code == 404:
            return None

        try:
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(
                "setlist_request_failed",
                status=response.status_code,
                artist_id=artist_id,
                year=year,
                page=page,
            )
            raise SetlistSourceError(
                f"setlist.fm API request failed: {e}", status=response.status_code
            ) from e
        except ValueError as e:
            raise SetlistSourceError(f"setlist.fm returned invalid JSON: {e}") from e

    def fetch_performances(self, artist_id: str, year: int) -> list[Performance]:
        """Get all setlists of an artist in a year."""
        logger.info("fetching_setlists", artist_id=artist_id, year=year, source=self.name)

        all_setlists: list[dict[str, Any]] = []
        page = 1
        total_pages = 1

        while page <= min(total_pages, self.max_pages):
            data = self._get_page(artist_id, year, page)
            if data is None:
                break

            setlists = data.get("setlist", [])
            all_setlists.extend(setlists)

            items_per_page = data.get("itemsPerPage", 20)
            total = data.get("total", 0)
            total_pages = (total + items_per_page - 1) // items_per_page if items_per_page > 0 else 1

            logger.debug("fetched_page", page=page, total_pages=total_pages, count=len(setlists))
            page += 1

        performances = [self._setlist_to_performance(s) for s in all_setlists]
        dates = sorted(p.event_date for p in performances if p.event_date)

        logger.info(
            "setlists_fetched",
            artist_id=artist_id,
            year=year,
            count=len(performances),
            first_show=dates[0].isoformat() if dates else None,
            last_show=dates[-1].isoformat() if dates else None,
        )
        logger.debug("setlist_ids", ids=[p.event_id for p in performances])
        return performances

    def _setlist_to_performance(self, setlist: dict[str, Any]) -> Performance:
        """Convert a setlist.fm setlist to a Performance record.

        Songs of every set (main set and encores) are flattened in order.
        Entries without a name are dropped.
        """
        songs: list[str] = []
        for song_set in (setlist.get("sets") or {}).get("set") or []:
            for song in song_set.get("song") or []:
                name = song.get("name")
                if name and name.strip():
                    songs.append(name)

        return Performance(
            event_id=setlist.get("id"),
            event_date=self._parse_date(setlist.get("eventDate", "")),
            songs=songs,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "SetlistFmSource":
        return self

    def __exit__(self, *args) -> None:
        self.close()
