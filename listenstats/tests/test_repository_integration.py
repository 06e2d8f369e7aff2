from __future__ import annotations

import os
import unittest
from datetime import datetime, timedelta, timezone

from listenstats.db.connection import get_connection
from listenstats.db.plays import PlayRepository
from listenstats.services.stats_service import StatsService


@unittest.skipUnless(
    os.environ.get("LISTENSTATS_INTEGRATION_TEST") == "1",
    "Set LISTENSTATS_INTEGRATION_TEST=1 to run integration tests.",
)
class PlayRepositoryIntegrationTest(unittest.TestCase):
    def setUp(self) -> None:
        suffix = f"it-{os.getpid()}"
        self.user_id = f"user-{suffix}"
        self.artist_id = f"artist-{suffix}"
        self.album_id = f"album-{suffix}"
        self.track_id = f"track-{suffix}"
        self.token = f"share-{suffix}"
        self.idle_user_id = f"idle-{suffix}"
        self.now = datetime.now(timezone.utc)

        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "INSERT INTO users (id, name, image) VALUES (%s, %s, %s)",
                    (self.user_id, "Integration Listener", None),
                )
                cur.execute(
                    "INSERT INTO users (id, name, image) VALUES (%s, %s, %s)",
                    (self.idle_user_id, "Idle Listener", None),
                )
                cur.execute(
                    "INSERT INTO artists (id, name, image_url, genres) VALUES (%s, %s, %s, %s)",
                    (self.artist_id, "Integration Artist", None, '["post-punk"]'),
                )
                cur.execute(
                    "INSERT INTO albums (id, name, image_url) VALUES (%s, %s, %s)",
                    (self.album_id, "Integration Album", None),
                )
                cur.execute(
                    "INSERT INTO tracks (id, name, duration_ms) VALUES (%s, %s, %s)",
                    (self.track_id, "Integration Track", 200_000),
                )
                for days_ago in (3, 2, 1):
                    cur.execute(
                        """
                        INSERT INTO plays (user_id, track_id, artist_id, album_id, played_at)
                        VALUES (%s, %s, %s, %s, %s)
                        """,
                        (
                            self.user_id,
                            self.track_id,
                            self.artist_id,
                            self.album_id,
                            self.now - timedelta(days=days_ago),
                        ),
                    )
                cur.execute(
                    """
                    INSERT INTO share_links (token, user_id, view_count, created_at, expires_at)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (self.token, self.user_id, 0, self.now, None),
                )
            conn.commit()

    def tearDown(self) -> None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM share_links WHERE token = %s", (self.token,))
                cur.execute("DELETE FROM plays WHERE user_id = %s", (self.user_id,))
                cur.execute("DELETE FROM tracks WHERE id = %s", (self.track_id,))
                cur.execute("DELETE FROM albums WHERE id = %s", (self.album_id,))
                cur.execute("DELETE FROM artists WHERE id = %s", (self.artist_id,))
                cur.execute(
                    "DELETE FROM users WHERE id = ANY(%s)", ([self.user_id, self.idle_user_id],)
                )
            conn.commit()

    def test_fetch_plays_window_is_half_open(self) -> None:
        repository = PlayRepository()
        boundary = self.now - timedelta(days=2)

        plays = repository.fetch_plays(self.user_id, boundary, None)
        earlier = repository.fetch_plays(self.user_id, None, boundary)

        self.assertEqual(len(plays), 2)
        self.assertEqual(len(earlier), 1)
        self.assertEqual(plays[0].duration_ms, 200_000)
        self.assertEqual(plays[0].artist_name, "Integration Artist")
        self.assertEqual(plays[0].played_at.utcoffset(), timedelta(0))

    def test_share_snapshot_counts_views(self) -> None:
        service = StatsService(PlayRepository())

        snapshot = service.get_share_snapshot(self.token)

        self.assertIsNotNone(snapshot)
        self.assertEqual(snapshot["user_name"], "Integration Listener")
        self.assertEqual(snapshot["stats"]["total_plays"], 3)
        link = PlayRepository().fetch_share_link(self.token)
        self.assertEqual(link["view_count"], 1)

    def test_plays_by_user_includes_users_without_plays(self) -> None:
        grouped = PlayRepository().fetch_plays_by_user(self.now - timedelta(days=30), None)

        self.assertEqual(grouped[self.idle_user_id], [])
        self.assertEqual(len(grouped[self.user_id]), 3)

    def test_genres_are_returned_raw(self) -> None:
        genres = PlayRepository().fetch_artist_genres([self.artist_id])

        self.assertEqual(genres, {self.artist_id: '["post-punk"]'})


if __name__ == "__main__":
    unittest.main()
