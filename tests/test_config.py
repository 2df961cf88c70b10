import os
import unittest
from unittest import mock

from utils import secrets
from utils.routine_config import RoutineConfig


class TestLoadConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        with mock.patch.object(secrets, "get_setting", return_value=None):
            self.assertEqual(secrets.load_config(), RoutineConfig())

    def test_env_fallback(self) -> None:
        env = {
            "ROUTINE_DATA_DIR": "/tmp/routine",
            "ROUTINE_LEAD_IN": "3",
            "ROUTINE_HISTORY_DAYS": "junk",
            "ROUTINE_DEFAULT_DURATION": "-10",
        }
        with mock.patch.object(secrets, "get_secret", return_value=None), mock.patch.dict(os.environ, env):
            cfg = secrets.load_config()
        self.assertEqual(cfg.data_dir, "/tmp/routine")
        self.assertEqual(cfg.lead_in_seconds, 3)
        self.assertEqual(cfg.history_days, 28)
        self.assertEqual(cfg.default_duration, 60)

    def test_secret_wins_over_env(self) -> None:
        with mock.patch.object(secrets, "get_secret", return_value="0"), \
                mock.patch.dict(os.environ, {"ROUTINE_LEAD_IN": "9"}):
            self.assertEqual(secrets.get_setting("ROUTINE_LEAD_IN"), "0")
            self.assertEqual(secrets.load_config().lead_in_seconds, 0)


if __name__ == "__main__":
    unittest.main()
