import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from ai_sequence_dj.config import EngineConfig, WEIGHT_PROFILES, env_float, env_int, get_profile, load_local_env_file
from ai_sequence_dj.context import DEFAULT_CONTEXT_RULES
from ai_sequence_dj.mood import DEFAULT_MOOD_PROFILES


class ConfigTests(unittest.TestCase):
    def test_load_local_env_file_loads_missing_values_only(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            env_path = Path(tmpdir) / ".env"
            env_path.write_text(
                """
# comment
SPOTIPY_CLIENT_ID=test-id
SPOTIPY_CLIENT_SECRET=test-secret
KEEP_ME=from_file
                """.strip(),
                encoding="utf-8",
            )

            original_keep = os.environ.get("KEEP_ME")
            os.environ["KEEP_ME"] = "existing"
            os.environ.pop("SPOTIPY_CLIENT_ID", None)
            os.environ.pop("SPOTIPY_CLIENT_SECRET", None)
            try:
                load_local_env_file(str(env_path))
                self.assertEqual(os.environ.get("SPOTIPY_CLIENT_ID"), "test-id")
                self.assertEqual(os.environ.get("SPOTIPY_CLIENT_SECRET"), "test-secret")
                self.assertEqual(os.environ.get("KEEP_ME"), "existing")
            finally:
                os.environ.pop("SPOTIPY_CLIENT_ID", None)
                os.environ.pop("SPOTIPY_CLIENT_SECRET", None)
                if original_keep is None:
                    os.environ.pop("KEEP_ME", None)
                else:
                    os.environ["KEEP_ME"] = original_keep

    def test_env_int_uses_fallback_for_empty_and_invalid(self) -> None:
        with patch.dict("os.environ", {"TRACK_LIMIT": ""}):
            self.assertEqual(env_int("TRACK_LIMIT", 20), 20)
        with patch.dict("os.environ", {"TRACK_LIMIT": "not-a-number"}):
            self.assertEqual(env_int("TRACK_LIMIT", 20), 20)
        with patch.dict("os.environ", {"TRACK_LIMIT": "12"}):
            self.assertEqual(env_int("TRACK_LIMIT", 20), 12)

    def test_env_float(self) -> None:
        with patch.dict("os.environ", {"REQUEST_TIMEOUT": "2.5"}):
            self.assertEqual(env_float("REQUEST_TIMEOUT", 10.0), 2.5)
        with patch.dict("os.environ", {"REQUEST_TIMEOUT": "soon"}):
            self.assertEqual(env_float("REQUEST_TIMEOUT", 10.0), 10.0)


class ProfileTests(unittest.TestCase):
    def test_default_profile_is_sequence(self) -> None:
        profile = get_profile()
        self.assertEqual(profile.name, "sequence")
        self.assertEqual(profile.base_weight, 0.5)
        self.assertTrue(profile.rich_predictor)

    def test_balanced_profile(self) -> None:
        profile = get_profile(" Balanced ")
        self.assertEqual(profile.base_weight, 1.0)
        self.assertFalse(profile.rich_predictor)
        self.assertIsNone(profile.similarity_cap)

    def test_unknown_profile_raises(self) -> None:
        with self.assertRaises(ValueError):
            get_profile("turbo")

    def test_base_weights_are_small_integers(self) -> None:
        for profile in WEIGHT_PROFILES.values():
            for weight in (profile.genre_match, profile.mood, profile.context, profile.popularity_bonus):
                self.assertTrue(1 <= weight <= 4)


class EngineConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        config = EngineConfig()
        self.assertEqual(config.max_results, 20)
        self.assertEqual(config.history_query_cap, 6)
        self.assertEqual(config.search_limit, 20)
        self.assertIs(config.mood_profiles, DEFAULT_MOOD_PROFILES)
        self.assertIs(config.context_rules, DEFAULT_CONTEXT_RULES)

    def test_from_env(self) -> None:
        env = {"RECOMMENDER_PROFILE": "balanced", "MAX_RESULTS": "5", "REQUEST_DEADLINE": "bad"}
        with patch.dict("os.environ", env):
            config = EngineConfig.from_env()
        self.assertEqual(config.profile.name, "balanced")
        self.assertEqual(config.max_results, 5)
        self.assertEqual(config.request_deadline, 30.0)

    def test_with_profile(self) -> None:
        config = EngineConfig().with_profile("balanced")
        self.assertEqual(config.profile.name, "balanced")
        self.assertIs(config.with_profile(None), config)


if __name__ == "__main__":
    unittest.main()
