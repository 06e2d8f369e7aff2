from __future__ import annotations

import json
import unittest

from listenstats.analytics.diversity import compute_diversity, diversity_scores, shannon_diversity
from listenstats.config import AnalyticsConfig
from listenstats.tests.helpers import play


class ShannonDiversityTest(unittest.TestCase):
    def test_edge_cases(self) -> None:
        self.assertEqual(shannon_diversity([]), 0)
        self.assertEqual(shannon_diversity([500]), 0)
        self.assertEqual(shannon_diversity([0, 0]), 0)
        self.assertAlmostEqual(shannon_diversity([1, 1, 1, 1]), 100)
        self.assertTrue(0 < shannon_diversity([10, 1]) < 100)

    def test_is_clamped(self) -> None:
        # Category totals above the grand total push entropy past ln(N)
        self.assertLessEqual(shannon_diversity([50, 50, 50], grand_total=60), 100)


class DiversityScoresTest(unittest.TestCase):
    def test_subscores_are_bounded(self) -> None:
        scores = diversity_scores([900, 900, 900], [100, 200], 300)
        for value in (
            scores.genre_diversity,
            scores.artist_diversity,
            scores.exploration_score,
            scores.mainstream_score,
            scores.niche_score,
        ):
            self.assertTrue(0 <= value <= 100)

    def test_exploration_uses_genre_calibration(self) -> None:
        scores = diversity_scores([1] * 75, [75], 75)
        self.assertAlmostEqual(scores.exploration_score, 50)


class ComputeDiversityTest(unittest.TestCase):
    def test_single_genre_has_zero_diversity(self) -> None:
        records = [play(artist="a1", duration_ms=1000) for _ in range(10)]
        result = compute_diversity(records, {"a1": ["rock"]})

        self.assertEqual(result["raw_scores"]["genre_diversity"], 0)
        self.assertEqual(result["raw_scores"]["artist_diversity"], 0)

    def test_uniform_listening_approaches_full_diversity(self) -> None:
        genres = {f"a{i}": [f"genre-{i}"] for i in range(8)}
        records = [play(artist=f"a{i}", duration_ms=60_000) for i in range(8)]

        result = compute_diversity(records, genres)

        self.assertAlmostEqual(result["raw_scores"]["genre_diversity"], 100)
        self.assertAlmostEqual(result["raw_scores"]["artist_diversity"], 100)

    def test_overall_is_weighted_sum(self) -> None:
        config = AnalyticsConfig()
        genres = {
            "a1": ["rock", "indie rock"],
            "a2": ["pop"],
            "a3": ["jazz", "bebop", "swing"],
        }
        records = (
            [play(artist="a1", duration_ms=200_000)] * 3
            + [play(artist="a2", duration_ms=150_000)] * 5
            + [play(artist="a3", duration_ms=90_000)]
        )

        raw = compute_diversity(records, genres, config)["raw_scores"]
        expected = (
            0.35 * raw["genre_diversity"]
            + 0.35 * raw["artist_diversity"]
            + 0.15 * raw["exploration_score"]
            + 0.15 * raw["niche_score"]
        )
        self.assertAlmostEqual(raw["overall"], expected)

    def test_empty_input(self) -> None:
        result = compute_diversity([], {})

        self.assertEqual(result["scores"]["overall"], 0)
        self.assertEqual(result["genre_distribution"], [])
        self.assertEqual(result["breakdown"]["total_plays"], 0)

    def test_malformed_genres_are_skipped(self) -> None:
        genres = {
            "a1": json.dumps(["rock"]),
            "a2": "{not json",
            "a3": json.dumps({"genre": "pop"}),
            "a4": None,
        }
        records = [play(artist=a, duration_ms=1000) for a in ("a1", "a2", "a3", "a4", "a5")]

        result = compute_diversity(records, genres)

        self.assertEqual([g["genre"] for g in result["genre_distribution"]], ["rock"])
        self.assertEqual(result["breakdown"]["total_artists"], 5)
        self.assertEqual(result["breakdown"]["total_plays"], 5)

    def test_breakdown_and_distributions(self) -> None:
        genres = {"a1": ["rock", "metal"], "a2": ["rock"]}
        records = [
            play(artist="a1", duration_ms=3000),
            play(artist="a2", duration_ms=1000),
        ]

        result = compute_diversity(records, genres)
        breakdown = result["breakdown"]

        self.assertEqual(breakdown["total_genres"], 2)
        self.assertEqual(breakdown["avg_genres_per_artist"], 1.5)
        self.assertEqual(breakdown["top_genre_concentration"], 100.0)
        rock = result["genre_distribution"][0]
        self.assertEqual(rock["genre"], "rock")
        self.assertEqual(rock["artist_count"], 2)
        self.assertEqual(result["artist_distribution"][0]["artist_id"], "a1")
        self.assertEqual(result["diversity_trend"][0]["month"], "2024-01")


if __name__ == "__main__":
    unittest.main()
