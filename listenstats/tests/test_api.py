from __future__ import annotations

import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest import mock

from fastapi.testclient import TestClient

from listenstats import app_settings
from listenstats.api.app import app
from listenstats.services.stats_service import StatsService, get_stats_service
from listenstats.tests.helpers import play


class FakeRepository:
    """In-memory stand-in for PlayRepository."""

    def __init__(self, plays, genres=None, share_links=None, user_ids=()):
        self.plays = plays
        self.user_ids = list(user_ids)
        self.genres = genres or {}
        self.share_links = share_links or {}
        self.view_increments = []

    def fetch_plays(self, user_id, start=None, end=None):
        return [
            p
            for p in self.plays
            if p.user_id == user_id
            and (start is None or p.played_at >= start)
            and (end is None or p.played_at < end)
        ]

    def fetch_plays_by_user(self, start=None, end=None):
        grouped = {user_id: [] for user_id in self.user_ids}
        for p in self.plays:
            if (start is None or p.played_at >= start) and (end is None or p.played_at < end):
                grouped.setdefault(p.user_id, []).append(p)
        return grouped

    def fetch_artist_genres(self, artist_ids=None):
        if artist_ids is None:
            return dict(self.genres)
        return {a: self.genres[a] for a in artist_ids if a in self.genres}

    def fetch_user(self, user_id):
        return {"id": user_id, "name": "Listener", "image": None}

    def fetch_share_link(self, token):
        return self.share_links.get(token)

    def increment_share_views(self, token):
        self.view_increments.append(token)


class ApiTest(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        settings_patch = mock.patch.object(
            app_settings, "SETTINGS_PATH", Path(self._tmp.name) / "settings.json"
        )
        settings_patch.start()
        self.addCleanup(settings_patch.stop)
        self.addCleanup(self._tmp.cleanup)

        now = datetime.now(timezone.utc)
        self.repository = FakeRepository(
            [
                play(track="t1", artist="a1", played_at=now - timedelta(days=2)),
                play(track="t1", artist="a1", played_at=now - timedelta(days=1)),
                play(track="t2", artist="a2", played_at=now - timedelta(hours=3), duration_ms=60_000),
            ],
            genres={"a1": '["punk"]', "a2": "not json"},
            share_links={
                "live": {
                    "token": "live",
                    "user_id": "u1",
                    "view_count": 2,
                    "created_at": now,
                    "expires_at": None,
                },
                "old": {
                    "token": "old",
                    "user_id": "u1",
                    "view_count": 0,
                    "created_at": now,
                    "expires_at": now - timedelta(days=1),
                },
            },
            user_ids=("u1", "u2", "u3"),
        )
        app.dependency_overrides[get_stats_service] = lambda: StatsService(self.repository)
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        app.state.concert_lookup = None

    def test_overview(self) -> None:
        response = self.client.get("/api/stats/overview", params={"user_id": "u1", "period": "month"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["period"], "month")
        self.assertEqual(body["stats"]["total_plays"], 3)
        self.assertEqual(body["top_tracks"][0]["id"], "t1")

    def test_unknown_period_is_bad_request(self) -> None:
        response = self.client.get("/api/stats/overview", params={"user_id": "u1", "period": "decade"})
        self.assertEqual(response.status_code, 400)

    def test_user_id_is_required(self) -> None:
        self.assertEqual(self.client.get("/api/stats/diversity").status_code, 422)

    def test_diversity_skips_malformed_genres(self) -> None:
        response = self.client.get("/api/stats/diversity", params={"user_id": "u1"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([g["genre"] for g in response.json()["genre_distribution"]], ["punk"])

    def test_obsessions_with_little_data(self) -> None:
        response = self.client.get("/api/stats/obsessions", params={"user_id": "u1"})

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["insufficient_data"])

    def test_wrapped_rejects_bad_month(self) -> None:
        response = self.client.get("/api/stats/wrapped", params={"user_id": "u1", "month": 13})
        self.assertEqual(response.status_code, 422)

    def test_share_snapshot(self) -> None:
        response = self.client.get("/api/stats/share/live")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["view_count"], 3)
        self.assertEqual(response.json()["user_name"], "Listener")
        self.assertEqual(self.repository.view_increments, ["live"])

    def test_share_snapshot_not_found(self) -> None:
        for token in ("old", "missing"):
            with self.subTest(token=token):
                self.assertEqual(self.client.get(f"/api/stats/share/{token}").status_code, 404)
        self.assertEqual(self.repository.view_increments, [])

    def test_compare_ranks_users_without_recent_plays(self) -> None:
        response = self.client.get("/api/stats/compare", params={"user_id": "u1"})

        self.assertEqual(response.status_code, 200)
        comparison = response.json()["comparison"]
        self.assertEqual(comparison["total_users"], 3)
        self.assertEqual(comparison["rank"], 1)
        self.assertEqual(comparison["percentile"], 67)

    def test_genres(self) -> None:
        response = self.client.get("/api/stats/genres", params={"user_id": "u1"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["period"], "month")
        self.assertEqual([g["genre"] for g in body["top_genres"]], ["punk"])
        self.assertEqual(body["top_genres"][0]["play_count"], 2)

    def test_genre_detail(self) -> None:
        response = self.client.get("/api/stats/genres/PUNK", params={"user_id": "u1"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["genre"], "punk")
        self.assertEqual(body["stats"]["total_plays"], 2)
        self.assertEqual(body["tracks"][0]["id"], "t1")

    def test_concerts_unavailable_without_lookup(self) -> None:
        response = self.client.get("/api/stats/concerts", params={"user_id": "u1"})
        self.assertEqual(response.status_code, 503)

    def test_concerts_with_lookup(self) -> None:
        app.state.concert_lookup = lambda artist: [{"id": f"e-{artist['id']}", "date": "2030-01-05"}]

        response = self.client.get("/api/stats/concerts", params={"user_id": "u1"})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["total_concerts"], 2)
        self.assertEqual(body["concerts"][0]["artist_id"], "a1")

    def test_playlist_analysis(self) -> None:
        payload = {
            "id": "p1",
            "name": "Mix",
            "tracks": [
                {"id": "t1", "name": "One", "duration_ms": 180000, "artists": [{"id": "a1", "name": "First"}]},
                None,
                {"id": "t5", "name": "Five", "duration_ms": 100000, "artists": []},
            ],
        }

        response = self.client.post("/api/stats/playlist", params={"user_id": "u1"}, json=payload)

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["playlist"]["total_tracks"], 2)
        self.assertEqual(body["stats"]["tracks_played"], 1)
        self.assertEqual(body["tracks"][0]["mood"], "energetic")

    def test_export_csv(self) -> None:
        response = self.client.get(
            "/api/export", params={"user_id": "u1", "format": "csv", "type": "artists"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.headers["content-type"].startswith("text/csv"))
        self.assertIn("listening-stats-artists-", response.headers["content-disposition"])
        self.assertEqual(response.text.splitlines()[0], "Artist Name,Play Count,Total Hours")

    def test_export_pdf_marks_payload(self) -> None:
        response = self.client.get(
            "/api/export", params={"user_id": "u1", "format": "pdf", "type": "stats"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()["pdf_ready"])

    def test_export_rejects_invalid_options(self) -> None:
        for params in ({"format": "xml"}, {"type": "everything"}):
            with self.subTest(params=params):
                response = self.client.get("/api/export", params={"user_id": "u1", **params})
                self.assertEqual(response.status_code, 400)

    def test_settings_round_trip(self) -> None:
        response = self.client.put("/api/settings", json={"display": {"top_list_size": 25}})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["display"]["top_list_size"], 25)
        self.assertEqual(response.json()["display"]["default_period"], "month")
        stored = self.client.get("/api/settings").json()
        self.assertEqual(stored["display"]["top_list_size"], 25)

    def test_saved_display_settings_are_route_defaults(self) -> None:
        self.client.put("/api/settings", json={"display": {"top_list_size": 1, "heatmap_weeks": 2}})

        overview = self.client.get("/api/stats/overview", params={"user_id": "u1"}).json()
        self.assertEqual(len(overview["top_tracks"]), 1)
        self.assertEqual(len(overview["top_artists"]), 1)

        temporal = self.client.get("/api/stats/temporal", params={"user_id": "u1"}).json()
        self.assertEqual(len(temporal["heatmap"]), 14)

        explicit = self.client.get("/api/stats/overview", params={"user_id": "u1", "limit": 5}).json()
        self.assertEqual(len(explicit["top_tracks"]), 2)

    def test_saved_default_period(self) -> None:
        self.client.put("/api/settings", json={"display": {"default_period": "2020"}})

        overview = self.client.get("/api/stats/overview", params={"user_id": "u1"}).json()

        self.assertEqual(overview["period"], "2020")
        self.assertEqual(overview["stats"]["total_plays"], 0)

    def test_saved_concert_settings_are_route_defaults(self) -> None:
        self.client.put(
            "/api/settings", json={"concerts": {"location": "Austin, TX", "radius_miles": 5}}
        )
        distances = {"a1": 10, "a2": 3}
        app.state.concert_lookup = lambda artist: [
            {"id": f"e-{artist['id']}", "date": "2030-01-05", "distance": distances[artist["id"]]}
        ]

        body = self.client.get("/api/stats/concerts", params={"user_id": "u1"}).json()

        self.assertEqual(body["location"], "Austin, TX")
        self.assertEqual(body["radius_miles"], 5)
        self.assertEqual([c["artist_id"] for c in body["concerts"]], ["a2"])


if __name__ == "__main__":
    unittest.main()
