from __future__ import annotations

import json
import unittest

from listenstats.analytics.genres import NO_GENRES, GenreIndex, as_genre_index, parse_genres


class ParseGenresTest(unittest.TestCase):
    def test_json_list(self) -> None:
        self.assertEqual(parse_genres(json.dumps(["rock", "indie"])), ("rock", "indie"))

    def test_bytes_and_lists(self) -> None:
        self.assertEqual(parse_genres(b'["jazz"]'), ("jazz",))
        self.assertEqual(parse_genres(["pop", "  "]), ("pop",))

    def test_malformed_values_yield_no_genres(self) -> None:
        for raw in (None, "", "   ", "{broken", '{"genre": "pop"}', '["ok", 3]', 42, b"\xff\xfe"):
            with self.subTest(raw=raw):
                self.assertEqual(parse_genres(raw), NO_GENRES)


class GenreIndexTest(unittest.TestCase):
    def test_lookup(self) -> None:
        index = GenreIndex({"a1": '["rock"]', "a2": "nonsense"})

        self.assertEqual(index.genres_for("a1"), ("rock",))
        self.assertEqual(index.genres_for("a2"), NO_GENRES)
        self.assertEqual(index.genres_for("missing"), NO_GENRES)
        self.assertEqual(index.genres_for_many(["a1", "a1"]), ["rock", "rock"])
        self.assertIn("a2", index)
        self.assertEqual(len(index), 2)

    def test_as_genre_index_passes_index_through(self) -> None:
        index = GenreIndex({})

        self.assertIs(as_genre_index(index), index)
        self.assertEqual(len(as_genre_index(None)), 0)


if __name__ == "__main__":
    unittest.main()
