from __future__ import annotations

import logging
import unittest
from pathlib import Path

from lazgo.config import load_settings
from lazgo.errors import ConfigurationError
from lazgo.logging_setup import SecretMaskingFilter, mask_secrets


class SettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = load_settings({"LAZGO_API_KEY": "abc123"}, data_dir=Path("/tmp/lazgo"))
        self.assertEqual(settings.api_key.get_value(), "abc123")
        self.assertNotIn("abc123", repr(settings))
        self.assertEqual(settings.model, "gemini-2.5-flash")
        self.assertEqual(settings.school_start_time, "07:30")
        self.assertEqual(settings.on_time_policy, "exclude")
        self.assertEqual(settings.data_dir, Path("/tmp/lazgo"))

    def test_missing_key(self) -> None:
        with self.assertRaises(ConfigurationError):
            load_settings({})

    def test_invalid_values(self) -> None:
        base = {"LAZGO_API_KEY": "abc123"}
        for key, value in (
            ("LAZGO_SCHOOL_START_TIME", "tujuh"),
            ("LAZGO_ON_TIME_POLICY", "never"),
            ("LAZGO_LOG_LEVEL", "LOUD"),
        ):
            with self.subTest(key=key):
                with self.assertRaises(ConfigurationError):
                    load_settings({**base, key: value})

    def test_env_overrides(self) -> None:
        settings = load_settings(
            {
                "LAZGO_API_KEY": "abc123",
                "LAZGO_SCHOOL_START_TIME": "07:00",
                "LAZGO_ON_TIME_POLICY": "Fallthrough",
                "LAZGO_DATA_DIR": "/srv/lazgo",
            }
        )
        self.assertEqual(settings.school_start_time, "07:00")
        self.assertEqual(settings.on_time_policy, "fallthrough")
        self.assertEqual(settings.data_dir, Path("/srv/lazgo"))
        self.assertEqual(settings.roster_file, Path("/srv/lazgo/students.json"))


class MaskingTests(unittest.TestCase):
    def test_mask_secrets(self) -> None:
        text = mask_secrets("GET /v1/models?key=AIzaSyA1234567890abcdefghijkl failed")
        self.assertNotIn("AIzaSy", text)

    def test_filter_masks_args(self) -> None:
        record = logging.LogRecord("lazgo", logging.ERROR, __file__, 1, "failed: %s", ("AIza" + "x" * 30,), None)
        SecretMaskingFilter().filter(record)
        self.assertNotIn("AIza", record.getMessage())


if __name__ == "__main__":
    unittest.main()
