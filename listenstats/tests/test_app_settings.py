from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from listenstats import app_settings


class AppSettingsTest(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "nested" / "settings.json"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_file_returns_defaults(self) -> None:
        settings = app_settings.load_settings(self.path)

        self.assertEqual(settings["display"]["default_period"], "month")
        self.assertEqual(settings["concerts"]["radius_miles"], 100)

    def test_corrupt_file_returns_defaults(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json", encoding="utf-8")

        self.assertEqual(app_settings.load_settings(self.path)["display"]["top_list_size"], 10)

    def test_update_merges_nested_sections(self) -> None:
        app_settings.update_settings({"concerts": {"location": "Austin, TX"}}, self.path)
        settings = app_settings.update_settings({"concerts": {"radius_miles": 50}}, self.path)

        self.assertEqual(settings["concerts"], {"location": "Austin, TX", "radius_miles": 50})
        self.assertEqual(app_settings.load_settings(self.path), settings)


if __name__ == "__main__":
    unittest.main()
