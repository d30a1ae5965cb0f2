import unittest

from ai_sequence_dj.analysis import build_track_metadata, placeholder_metadata, reference_from_track
from ai_sequence_dj.models import UNKNOWN_GENRE


def _fake_track(track_id: str = "t1", release_date: str | None = "2020-01-01",
                popularity: int | None = 65) -> dict:
    track = {
        "id": track_id,
        "name": "Test Song",
        "artists": [{"id": "a1", "name": "Test Artist"}, {"id": "a2", "name": "Guest"}],
        "album": {"name": "Test Album", "release_date": release_date},
    }
    if popularity is not None:
        track["popularity"] = popularity
    return track


class BuildTrackMetadataTests(unittest.TestCase):
    def test_fields_extracted_from_track(self) -> None:
        meta = build_track_metadata(_fake_track(), artist_genres=["indie pop", "bedroom pop"])
        self.assertEqual(meta.id, "t1")
        self.assertEqual(meta.title, "Test Song")
        self.assertEqual(meta.artist, "Test Artist")
        self.assertEqual(meta.artist_id, "a1")
        self.assertEqual(meta.genre, "indie pop")
        self.assertEqual(meta.popularity, 65)
        self.assertEqual(meta.release_year, 2020)
        self.assertEqual(meta.album, "Test Album")

    def test_genre_defaults_to_unknown(self) -> None:
        self.assertEqual(build_track_metadata(_fake_track()).genre, UNKNOWN_GENRE)
        self.assertEqual(build_track_metadata(_fake_track(), artist_genres=[]).genre, UNKNOWN_GENRE)

    def test_popularity_missing_is_none(self) -> None:
        self.assertIsNone(build_track_metadata(_fake_track(popularity=None)).popularity)

    def test_missing_release_date_uses_reference_year(self) -> None:
        self.assertEqual(build_track_metadata(_fake_track(release_date=None), reference_year=2024).release_year, 2024)
        self.assertEqual(build_track_metadata(_fake_track(release_date="unknown"), reference_year=2024).release_year,
                         2024)
        self.assertIsNone(build_track_metadata(_fake_track(release_date=None)).release_year)

    def test_year_only_release_date(self) -> None:
        self.assertEqual(build_track_metadata(_fake_track(release_date="1999")).release_year, 1999)

    def test_track_without_artists(self) -> None:
        track = _fake_track()
        track["artists"] = []
        meta = build_track_metadata(track)
        self.assertEqual(meta.artist, "Unknown Artist")
        self.assertIsNone(meta.artist_id)


class PlaceholderTests(unittest.TestCase):
    def test_placeholder_keeps_identity_only(self) -> None:
        meta = placeholder_metadata(_fake_track())
        self.assertEqual(meta.id, "t1")
        self.assertEqual(meta.artist, "Test Artist")
        self.assertEqual(meta.genre, UNKNOWN_GENRE)
        self.assertIsNone(meta.popularity)
        self.assertIsNone(meta.release_year)

    def test_reference_from_track(self) -> None:
        ref = reference_from_track(_fake_track())
        self.assertEqual((ref.id, ref.title, ref.artist, ref.artist_id, ref.popularity),
                         ("t1", "Test Song", "Test Artist", "a1", 65))


if __name__ == "__main__":
    unittest.main()
