"""Unit tests for festivalPlaylist domain models."""

from __future__ import annotations

import pytest
from pydantic import TypeAdapter, ValidationError

from src.models.artist import ArtistRecord, CandidateOutcome, ResolvedArtist
from src.models.lineup import LineupImage
from src.models.playlist import ArtistTrackSelection, TrackRef
from src.models.run import ArtistResolved, RunComplete, RunEvent, RunProgress, RunStatus


class TestArtistRecord:
    def test_from_spotify_full_payload(self) -> None:
        record = ArtistRecord.from_spotify(
            {
                "id": "a1",
                "name": "Bicep",
                "followers": {"total": 1500},
                "genres": ["techno", "house"],
                "popularity": 70,
                "images": [{"url": "https://img/1.jpg", "width": 640, "height": 640}, {}],
                "external_urls": {"spotify": "https://open.spotify.com/artist/a1"},
            }
        )
        assert record.follower_count == 1500
        assert record.genres == frozenset({"techno", "house"})
        assert len(record.images) == 1
        assert record.primary_image_url == "https://img/1.jpg"

    def test_from_spotify_sparse_payload(self) -> None:
        record = ArtistRecord.from_spotify({"id": "a1", "followers": None, "genres": None})
        assert record.name == ""
        assert record.follower_count == 0
        assert record.popularity is None
        assert record.primary_image_url is None

    def test_frozen(self) -> None:
        record = ArtistRecord(id="a1", name="Bicep")
        with pytest.raises(ValidationError):
            record.name = "Other"

    def test_popularity_range(self) -> None:
        with pytest.raises(ValidationError):
            ArtistRecord(id="a1", name="Bicep", popularity=101)


class TestPlaylistModels:
    def test_track_from_spotify_defaults_popularity(self) -> None:
        track = TrackRef.from_spotify({"uri": "spotify:track:1", "popularity": None})
        assert track.popularity == 0

    def test_selection_requires_positive_count(self) -> None:
        with pytest.raises(ValidationError):
            ArtistTrackSelection(artist_id="a1", track_count=0)


class TestLineupImage:
    def test_image_data_not_serialized(self) -> None:
        image = LineupImage(
            filename="lineup.png", content_type="image/png", file_size=3, image_hash="abc"
        )
        image.__pydantic_private__["_image_data"] = b"png"
        assert image.image_data == b"png"
        assert "_image_data" not in image.model_dump()


class TestRunEvents:
    def test_union_discriminates_on_event_type(self) -> None:
        adapter = TypeAdapter(RunEvent)
        event = adapter.validate_python(
            {"event_type": "run_progress", "run_id": "r", "current": 1, "total": 2}
        )
        assert isinstance(event, RunProgress)

    def test_resolved_event_round_trip(self) -> None:
        original = ArtistResolved(
            run_id="r",
            artist=ArtistRecord(id="a1", name="Bicep", genres=frozenset({"techno"})),
            query_name="Bicep",
            outcome=CandidateOutcome.AUTO_ACCEPTED,
            track_count=3,
        )
        restored = TypeAdapter(RunEvent).validate_python(original.model_dump(mode="json"))
        assert restored == original

    def test_complete_defaults(self) -> None:
        complete = RunComplete(run_id="r", resolved_count=0, unresolved_count=0, summary="done")
        assert complete.skipped_count == 0
        assert complete.cancelled is False
        assert complete.artists == []

    def test_resolved_artist_track_count_floor(self) -> None:
        with pytest.raises(ValidationError):
            ResolvedArtist(
                artist=ArtistRecord(id="a1", name="Bicep"),
                query_name="Bicep",
                outcome=CandidateOutcome.USER_ACCEPTED,
                track_count=0,
            )

    @pytest.mark.parametrize("status", list(RunStatus))
    def test_status_values_are_names(self, status: RunStatus) -> None:
        assert status.value == status.name
