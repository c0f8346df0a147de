import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from analytics.config import DEFAULT_CONFIG, SETTINGS_ENV, AnalyticsSettings, load_settings
from analytics.deadline import Deadline
from analytics.errors import AnalysisTimeout


class SettingsTest(unittest.TestCase):
    def test_bundled_defaults(self):
        settings = load_settings(DEFAULT_CONFIG)
        self.assertEqual(settings.severity_thresholds, (30, 120, 480))
        self.assertEqual(settings.decay_factor, 0.7)
        self.assertEqual(settings.influence_depth, 3)
        self.assertEqual(settings.policy.influence_change_pct, 20.0)
        self.assertIsNone(settings.deadline_seconds)

    def test_env_override(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "settings.yaml"
            path.write_text(
                "influence:\n  decay_factor: 0.5\nexecution:\n  deadline_seconds: 2\n",
                encoding="utf-8",
            )
            with mock.patch.dict(os.environ, {SETTINGS_ENV: str(path)}):
                settings = load_settings()
        self.assertEqual(settings.decay_factor, 0.5)
        self.assertEqual(settings.deadline_seconds, 2.0)
        self.assertEqual(settings.severity_thresholds, (30, 120, 480))

    def test_rejects_bad_values(self):
        with self.assertRaises(ValueError):
            AnalyticsSettings(severity_thresholds=(120, 30, 480))
        with self.assertRaises(ValueError):
            AnalyticsSettings(decay_factor=1.5)
        with self.assertRaises(ValueError):
            AnalyticsSettings(max_workers=0)


class DeadlineTest(unittest.TestCase):
    def test_expiry_with_fake_clock(self):
        now = [100.0]
        deadline = Deadline(5.0, clock=lambda: now[0])
        deadline.check()
        now[0] = 104.9
        self.assertFalse(deadline.expired)
        now[0] = 105.0
        self.assertTrue(deadline.expired)
        with self.assertRaises(AnalysisTimeout):
            deadline.check()

    def test_none_never_expires(self):
        deadline = Deadline.none()
        deadline.check()
        self.assertFalse(deadline.expired)


if __name__ == "__main__":
    unittest.main()
