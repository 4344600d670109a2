"""Pydantic data models for setlist2playlist.

Values passed between pipeline stages are frozen: a stage never mutates
what an earlier stage produced.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Performance(BaseModel):
    """A raw setlist record for one show, as returned by a setlist data source."""

    event_id: str | None = Field(default=None, description="Identifier of the setlist in its source")
    event_date: date | None = Field(default=None, description="Date of the show, if known")
    songs: list[str] = Field(
        default_factory=list,
        description="Song names in the order they were played, across all sets and encores",
    )


class RankedSong(BaseModel):
    """A song of the average setlist, ranked by how often it was played."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Song name exactly as returned by the source")
    position: int = Field(ge=1, description="Rank by descending frequency, ties by first-seen order")
    frequency: int = Field(ge=1, description="Number of times the song was observed")


class ResolutionResult(BaseModel):
    """Outcome of matching one ranked song to a catalog track."""

    model_config = ConfigDict(frozen=True)

    song_name: str
    track_id: str | None = None
    found: bool = False

    @model_validator(mode="after")
    def _track_id_matches_found(self) -> "ResolutionResult":
        if self.found and not self.track_id:
            raise ValueError("found results require a track_id")
        if not self.found and self.track_id is not None:
            raise ValueError("unresolved results cannot carry a track_id")
        return self

    @classmethod
    def unresolved(cls, song_name: str) -> "ResolutionResult":
        return cls(song_name=song_name, track_id=None, found=False)


class PlaylistResult(BaseModel):
    """Final output of a successful pipeline run."""

    model_config = ConfigDict(frozen=True)

    playlist_id: str = Field(description="Spotify playlist ID")
    tracks_added: int = Field(ge=0, description="Number of track ids sent to the playlist")
    year: int = Field(description="Year the playlist was built for")


class PipelineRequest(BaseModel):
    """Input of one pipeline run.

    No validation happens here beyond types; blank fields are reported by
    the pipeline as InvalidRequest so the boundary gets a typed failure.
    """

    model_config = ConfigDict(frozen=True)

    artist_id: str = ""
    artist_name: str = ""
    year: int | None = None
    credential: str = Field(default="", repr=False)
