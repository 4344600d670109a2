"""Test track resolution"""

import threading
import time

import pytest

from conftest import search_side_effect
from setlist2playlist.errors import AuthenticationFailure, ServiceUnavailable
from setlist2playlist.models import RankedSong, ResolutionResult
from setlist2playlist.resolver import TrackResolver, build_query


def songs(*names):
    return [RankedSong(name=name, position=i, frequency=1) for i, name in enumerate(names, start=1)]


def outcome(results):
    return [(r.song_name, r.track_id, r.found) for r in results]


class TestBuildQuery:
    def test_scoped_to_track_and_artist(self):
        assert build_query("Creep", "Radiohead") == 'track:"Creep" artist:"Radiohead"'

    def test_strips_quotes(self):
        assert build_query('"Heroes"', "David Bowie") == 'track:"Heroes" artist:"David Bowie"'


class TestResolveOne:
    """Test a single lookup"""

    def test_found(self, catalog):
        catalog.search_track.side_effect = search_side_effect({"Creep": "t1"})

        result = TrackResolver(catalog).resolve_one("Creep", "Radiohead", "token-1")

        assert result == ResolutionResult(song_name="Creep", track_id="t1", found=True)
        catalog.search_track.assert_called_once_with(
            "token-1", 'track:"Creep" artist:"Radiohead"', limit=1
        )

    def test_not_found_is_not_an_error(self, catalog):
        result = TrackResolver(catalog).resolve_one("Unreleased", "Radiohead", "token-1")

        assert result.found is False
        assert result.track_id is None

    def test_transient_failure_is_not_found(self, catalog, server_error):
        catalog.search_track.side_effect = server_error

        result = TrackResolver(catalog).resolve_one("Creep", "Radiohead", "token-1")

        assert outcome([result]) == [("Creep", None, False)]

    def test_candidate_without_id_is_not_found(self, catalog):
        catalog.search_track.return_value = [{"name": "Creep"}]

        result = TrackResolver(catalog).resolve_one("Creep", "Radiohead", "token-1")

        assert outcome([result]) == [("Creep", None, False)]

    def test_auth_failure_propagates(self, catalog, auth_error):
        catalog.search_track.side_effect = auth_error

        with pytest.raises(AuthenticationFailure):
            TrackResolver(catalog).resolve_one("Creep", "Radiohead", "token-1")


class TestResolveAll:
    """Test resolving a whole ranked setlist"""

    def test_partial_matches_keep_order(self, catalog):
        """Songs that are not found stay in place as unresolved"""
        catalog.search_track.side_effect = search_side_effect({"A": "id-a", "B": None, "C": "id-c"})

        results = TrackResolver(catalog, max_workers=1).resolve_all(
            songs("A", "B", "C"), "Artist", "token-1"
        )

        assert outcome(results) == [("A", "id-a", True), ("B", None, False), ("C", "id-c", True)]

    def test_failed_lookup_does_not_stop_the_rest(self, catalog, server_error):
        catalog.search_track.side_effect = search_side_effect(
            {"A": server_error, "B": "id-b", "C": server_error, "D": "id-d"}
        )

        results = TrackResolver(catalog, max_workers=1).resolve_all(
            songs("A", "B", "C", "D"), "Artist", "token-1"
        )

        assert [r.found for r in results] == [False, True, False, True]
        assert catalog.search_track.call_count == 4

    def test_auth_failure_stops_new_lookups(self, catalog, auth_error):
        """Song 2 of 5 is rejected: nothing after it is looked up"""
        catalog.search_track.side_effect = search_side_effect(
            {"S1": "id-1", "S2": auth_error, "S3": "id-3", "S4": "id-4", "S5": "id-5"}
        )

        with pytest.raises(AuthenticationFailure):
            TrackResolver(catalog, max_workers=1).resolve_all(
                songs("S1", "S2", "S3", "S4", "S5"), "Artist", "token-1"
            )

        assert catalog.search_track.call_count == 2

    def test_auth_failure_skips_queued_lookups_with_concurrency(self, catalog, auth_error):
        """Once S3 is rejected, lookups still queued never reach Spotify"""
        names = [f"S{i}" for i in range(1, 21)]
        max_workers = 4
        rejected = threading.Event()
        started = []
        lock = threading.Lock()

        def search(credential, query, limit=1):
            name = query.split('"')[1]
            with lock:
                started.append((name, rejected.is_set()))
            if name == "S3":
                rejected.set()
                raise auth_error
            time.sleep(0.02)
            return [{"id": f"id-{name}"}]

        catalog.search_track.side_effect = search

        with pytest.raises(AuthenticationFailure):
            TrackResolver(catalog, max_workers=max_workers).resolve_all(
                songs(*names), "Artist", "token-1"
            )

        before = [name for name, after in started if not after]
        after = [name for name, after in started if after]
        assert "S3" in before
        assert len(after) < max_workers
        assert catalog.search_track.call_count <= len(before) + max_workers
        assert catalog.search_track.call_count < len(names)

    def test_cancelled_pass_skips_remaining_lookups(self, catalog):
        """The caller gives up during the first lookup: no further searches"""
        cancelled = threading.Event()

        def search(credential, query, limit=1):
            cancelled.set()
            return [{"id": "id-a"}]

        catalog.search_track.side_effect = search

        with pytest.raises(ServiceUnavailable) as exc_info:
            TrackResolver(catalog, max_workers=1).resolve_all(
                songs("A", "B", "C"), "Artist", "token-1", cancelled=cancelled
            )

        assert exc_info.value.service == "pipeline"
        assert exc_info.value.details["stage"] == "resolve"
        assert catalog.search_track.call_count == 1

    def test_cancelled_before_start(self, catalog):
        cancelled = threading.Event()
        cancelled.set()

        with pytest.raises(ServiceUnavailable):
            TrackResolver(catalog, max_workers=2).resolve_all(
                songs("A", "B"), "Artist", "token-1", cancelled=cancelled
            )

        catalog.search_track.assert_not_called()

    def test_unset_cancel_flag_changes_nothing(self, catalog):
        catalog.search_track.side_effect = search_side_effect({"A": "id-a"})

        results = TrackResolver(catalog, max_workers=2).resolve_all(
            songs("A", "B"), "Artist", "token-1", cancelled=threading.Event()
        )

        assert outcome(results) == [("A", "id-a", True), ("B", None, False)]

    def test_concurrent_results_follow_input_order(self, catalog):
        """Lookups finishing out of order are reassembled in input order"""
        names = [f"S{i}" for i in range(8)]
        delays = {name: 0.01 * (len(names) - i) for i, name in enumerate(names)}
        finished = []
        lock = threading.Lock()

        def search(credential, query, limit=1):
            name = query.split('"')[1]
            time.sleep(delays[name])
            with lock:
                finished.append(name)
            return [{"id": f"id-{name}"}]

        catalog.search_track.side_effect = search

        results = TrackResolver(catalog, max_workers=4).resolve_all(
            songs(*names), "Artist", "token-1"
        )

        assert [r.song_name for r in results] == names
        assert [r.track_id for r in results] == [f"id-{n}" for n in names]
        assert len(finished) == len(names)

    def test_one_result_per_song(self, catalog):
        """Duplicate-looking names still map one to one"""
        catalog.search_track.side_effect = search_side_effect({"A": "id-a"})
        ranked = songs("A", "B", "A (Reprise)")

        results = TrackResolver(catalog, max_workers=3).resolve_all(ranked, "Artist", "token-1")

        assert len(results) == len(ranked)
        assert all(r.track_id is None for r in results if not r.found)

    def test_empty_setlist(self, catalog):
        assert TrackResolver(catalog).resolve_all([], "Artist", "token-1") == []
        catalog.search_track.assert_not_called()
