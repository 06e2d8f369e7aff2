from __future__ import annotations

import unittest

from listenstats.reports.playlist import PlaylistArtist, PlaylistTrack, build_playlist_report
from listenstats.tests.helpers import play

GENRES = {"a1": ["punk"], "a2": ["lo-fi", "ambient"]}


def _listing():
    return [
        PlaylistTrack("t1", "One", 200_000, [PlaylistArtist("a1", "First")], release_date="1995-05-01"),
        PlaylistTrack("t2", "Two", 100_000, [PlaylistArtist("a2", "Second")], release_date="2011"),
        None,
        PlaylistTrack(
            "t3",
            "Three",
            100_000,
            [PlaylistArtist("a1", "First"), PlaylistArtist("a2", "Second")],
        ),
    ]


class PlaylistReportTest(unittest.TestCase):
    def setUp(self) -> None:
        plays = [play(track="t1"), play(track="t1"), play(track="t9")]
        self.report = build_playlist_report({"id": "p1", "name": "Mix"}, _listing(), plays, GENRES)

    def test_removed_tracks_are_skipped(self) -> None:
        self.assertEqual(self.report["playlist"]["total_tracks"], 3)
        self.assertEqual(self.report["playlist"]["total_duration_ms"], 400_000)
        self.assertEqual([t["id"] for t in self.report["tracks"]], ["t1", "t2", "t3"])

    def test_stats_only_count_playlist_tracks(self) -> None:
        stats = self.report["stats"]

        self.assertEqual(stats["tracks_played"], 1)
        self.assertEqual(stats["completion_rate"], 33)
        self.assertEqual(stats["total_listened_ms"], 360_000)
        self.assertEqual(stats["listened_percentage"], 90)
        self.assertEqual(stats["avg_plays_per_track"], 2.0)

    def test_moods_and_genres(self) -> None:
        self.assertEqual([t["mood"] for t in self.report["tracks"]], ["energetic", "chill", "chill"])
        self.assertEqual(
            self.report["mood_distribution"],
            [
                {"mood": "chill", "count": 2, "percentage": 67},
                {"mood": "energetic", "count": 1, "percentage": 33},
            ],
        )
        self.assertEqual([g["genre"] for g in self.report["top_genres"]], ["punk", "lo-fi", "ambient"])
        self.assertEqual(self.report["tracks"][2]["artist_name"], "First, Second")

    def test_decades_and_rankings(self) -> None:
        self.assertEqual(
            self.report["decade_distribution"],
            [{"decade": "1990s", "count": 1}, {"decade": "2010s", "count": 1}],
        )
        self.assertEqual([a["id"] for a in self.report["top_artists"]], ["a1", "a2"])
        self.assertEqual([t["id"] for t in self.report["most_played"]], ["t1"])
        self.assertEqual([t["id"] for t in self.report["unplayed"]], ["t2", "t3"])

    def test_empty_playlist(self) -> None:
        report = build_playlist_report({"id": "p1"}, [], [])

        self.assertEqual(report["stats"]["completion_rate"], 0)
        self.assertEqual(report["stats"]["avg_plays_per_track"], 0)
        self.assertEqual(report["mood_distribution"], [])


class PlaylistTrackTest(unittest.TestCase):
    def test_from_dict(self) -> None:
        track = PlaylistTrack.from_dict(
            {
                "id": "t1",
                "name": "One",
                "duration_ms": "1000",
                "artists": [{"id": "a1", "name": "First"}],
                "release_date": "n/a",
            }
        )

        self.assertEqual(track.duration_ms, 1000)
        self.assertEqual(track.artists, [PlaylistArtist("a1", "First")])
        self.assertIsNone(track.release_year)


if __name__ == "__main__":
    unittest.main()
