import unittest

from ai_sequence_dj.models import MoodProfile, TrackMetadata
from ai_sequence_dj.mood import DEFAULT_MOOD_PROFILES, mood_similarity, resolve_mood


def _track(genre: str = "pop", popularity: int | None = 50) -> TrackMetadata:
    return TrackMetadata(id="t1", title="Song", artist="Artist", genre=genre, popularity=popularity)


class ResolveMoodTests(unittest.TestCase):
    def test_unknown_mood_is_neutral(self) -> None:
        profile = resolve_mood("unknown-mood")
        self.assertEqual(profile.preferred_genres, ())
        self.assertEqual(profile.popularity_range, (0, 100))

    def test_missing_mood_is_neutral(self) -> None:
        self.assertEqual(resolve_mood(None), MoodProfile())

    def test_lookup_is_case_insensitive(self) -> None:
        self.assertEqual(resolve_mood("  Happy "), DEFAULT_MOOD_PROFILES["happy"])

    def test_table_has_core_moods(self) -> None:
        for mood in ("happy", "sad", "energetic", "calm"):
            self.assertIn(mood, DEFAULT_MOOD_PROFILES)


class MoodSimilarityTests(unittest.TestCase):
    def test_popularity_inside_range_scores_full_term(self) -> None:
        profile = MoodProfile(preferred_genres=(), popularity_range=(60, 100))
        self.assertAlmostEqual(mood_similarity(_track(popularity=85), profile), 0.4)

    def test_genre_and_popularity_match(self) -> None:
        profile = MoodProfile(preferred_genres=("Rock",), popularity_range=(60, 100))
        self.assertAlmostEqual(mood_similarity(_track(genre="rock", popularity=70), profile), 1.0)

    def test_popularity_outside_range_decays(self) -> None:
        profile = MoodProfile(preferred_genres=(), popularity_range=(60, 100))
        # distance 10 -> 0.4 - 10 / 50
        self.assertAlmostEqual(mood_similarity(_track(popularity=50), profile), 0.2)
        self.assertEqual(mood_similarity(_track(popularity=0), profile), 0.0)

    def test_catalog_genre_spelling_is_normalized(self) -> None:
        energetic = resolve_mood("energetic")
        self.assertAlmostEqual(mood_similarity(_track(genre="hip hop", popularity=80), energetic), 1.0)
        self.assertAlmostEqual(mood_similarity(_track(genre="Indie Pop", popularity=70), resolve_mood("happy")), 1.0)

    def test_missing_popularity_contributes_nothing(self) -> None:
        profile = MoodProfile(preferred_genres=("pop",), popularity_range=(0, 100))
        self.assertAlmostEqual(mood_similarity(_track(popularity=None), profile), 0.6)

    def test_always_within_unit_interval(self) -> None:
        for profile in list(DEFAULT_MOOD_PROFILES.values()) + [MoodProfile()]:
            for genre in ("pop", "rock", "jazz", "Unknown Genre"):
                for popularity in (None, 0, 25, 50, 75, 100):
                    score = mood_similarity(_track(genre=genre, popularity=popularity), profile)
                    self.assertGreaterEqual(score, 0.0)
                    self.assertLessEqual(score, 1.0)


if __name__ == "__main__":
    unittest.main()
