import os
import tempfile
import unittest
from unittest.mock import patch

from votechess.config import load_settings


class LoadSettingsTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def write_yaml(self, text):
        path = os.path.join(self.tmp.name, "settings.yml")
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return path

    def test_yaml_values(self):
        path = self.write_yaml(
            "VOTECHESS_BOT_ID: VoteChess\n"
            "VOTE_SECONDS: 20\n"
            "VOTECHESS_VARIANTS: [Standard]\n"
            "VOTECHESS_RATED: true\n"
            "VOTECHESS_MODERATORS: alice, Bob\n"
            "VOTECHESS_LOG_LEVEL: debug\n"
        )
        s = load_settings(path)
        self.assertEqual(s.bot_id, "votechess")
        self.assertEqual(s.vote_seconds, 20.0)
        self.assertEqual(s.variants, ("standard",))
        self.assertTrue(s.rated)
        self.assertEqual(s.moderators, ("alice", "bob"))
        self.assertEqual(s.log_level, "DEBUG")

    def test_yaml_beats_environment(self):
        path = self.write_yaml("VOTE_SECONDS: 30\n")
        with patch.dict(os.environ, {"VOTE_SECONDS": "5"}):
            self.assertEqual(load_settings(path).vote_seconds, 30.0)

    def test_environment_fallback(self):
        missing = os.path.join(self.tmp.name, "absent.yml")
        env = {
            "VOTE_SECONDS": "7.5",
            "VOTECHESS_ABORT_SECONDS": "90",
            "VOTECHESS_VARIANTS": "crazyhouse",
            "VOTECHESS_MIN_INCREMENT": "0",
            "VOTECHESS_RATED": "no",
        }
        with patch.dict(os.environ, env):
            s = load_settings(missing)
        self.assertEqual(s.vote_seconds, 7.5)
        self.assertEqual(s.abort_seconds, 90.0)
        self.assertEqual(s.variants, ("crazyhouse",))
        self.assertEqual(s.min_increment, 0)
        self.assertFalse(s.rated)

    def test_settings_path_from_environment(self):
        path = self.write_yaml("VOTECHESS_SPEED: Classical\n")
        with patch.dict(os.environ, {"VOTECHESS_SETTINGS": path}):
            self.assertEqual(load_settings().speed, "classical")


if __name__ == "__main__":
    unittest.main()
