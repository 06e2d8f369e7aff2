from __future__ import annotations

import unittest

from listenstats.reports.genres import build_genre_detail, build_genre_listing, genre_plays
from listenstats.tests.helpers import play

GENRES = {
    "a1": '["rock", "indie"]',
    "a2": '["Rock"]',
    "a3": '["jazz"]',
    "a4": "not json",
}


def _plays():
    return [
        play(track="t1", artist="a1", album="al1", duration_ms=1000),
        play(track="t1", artist="a1", album="al1", duration_ms=1000),
        play(track="t2", artist="a2", album="al2", duration_ms=5000),
        play(track="t3", artist="a3", album="al3", duration_ms=500),
        play(track="t4", artist="a4", album="al4", duration_ms=700),
    ]


class GenreListingTest(unittest.TestCase):
    def test_ranked_by_listening_time(self) -> None:
        plays = [
            play(track="t1", artist="a1", duration_ms=1000),
            play(track="t1", artist="a1", duration_ms=1000),
            play(track="t2", artist="a2", duration_ms=6000),
        ]

        listing = build_genre_listing(plays, {"a1": ["rock", "indie"], "a2": ["jazz"]})

        self.assertEqual([g["genre"] for g in listing["top_genres"]], ["jazz", "rock", "indie"])
        self.assertEqual(
            listing["top_genres"][1],
            {"genre": "rock", "play_count": 2, "total_ms": 2000, "artist_count": 1},
        )
        self.assertEqual(listing["stats"]["total_genres"], 3)
        self.assertEqual(listing["stats"]["top_genre"], "jazz")
        self.assertEqual(listing["stats"]["total_listening_ms"], 10000)
        self.assertEqual(listing["stats"]["diversity_score"], 86)

    def test_single_genre_has_no_diversity(self) -> None:
        listing = build_genre_listing([play(artist="a3")], GENRES)

        self.assertEqual(listing["stats"]["top_genre"], "jazz")
        self.assertEqual(listing["stats"]["diversity_score"], 0)

    def test_without_genres(self) -> None:
        listing = build_genre_listing([play(artist="a4")], GENRES)

        self.assertEqual(listing["top_genres"], [])
        self.assertIsNone(listing["stats"]["top_genre"])
        self.assertEqual(listing["stats"]["total_listening_ms"], 0)


class GenreDetailTest(unittest.TestCase):
    def test_matches_case_insensitively(self) -> None:
        self.assertEqual(len(genre_plays(_plays(), "ROCK", GENRES)), 3)

    def test_artists_tracks_and_stats(self) -> None:
        detail = build_genre_detail(_plays(), "Rock", GENRES)

        self.assertEqual(detail["genre"], "rock")
        self.assertEqual([a["id"] for a in detail["artists"]], ["a2", "a1"])
        self.assertEqual(detail["artists"][1]["total_ms"], 2000)
        self.assertEqual([t["id"] for t in detail["tracks"]], ["t1", "t2"])
        self.assertEqual(detail["tracks"][0]["play_count"], 2)
        self.assertEqual(detail["tracks"][0]["album_name"], "Album al1")
        self.assertEqual(
            detail["stats"],
            {"total_plays": 3, "total_ms": 7000, "unique_artists": 2, "unique_tracks": 2},
        )

    def test_limit(self) -> None:
        detail = build_genre_detail(_plays(), "rock", GENRES, limit=1)

        self.assertEqual(len(detail["artists"]), 1)
        self.assertEqual(len(detail["tracks"]), 1)

    def test_unknown_genre(self) -> None:
        detail = build_genre_detail(_plays(), "polka", GENRES)

        self.assertEqual(detail["artists"], [])
        self.assertEqual(detail["tracks"], [])
        self.assertEqual(
            detail["stats"],
            {"total_plays": 0, "total_ms": 0, "unique_artists": 0, "unique_tracks": 0},
        )


if __name__ == "__main__":
    unittest.main()
