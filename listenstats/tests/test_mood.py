from __future__ import annotations

import unittest

from listenstats.analytics.models import MoodScore
from listenstats.analytics.mood import MOODS, classify_mood, mood_scores, top_mood


class MoodTest(unittest.TestCase):
    def test_no_keyword_hits_is_varied(self) -> None:
        self.assertEqual(classify_mood(["deep house", "tech house"]), [MoodScore("varied", 0)])
        self.assertEqual(top_mood([]), "varied")

    def test_every_matching_keyword_counts(self) -> None:
        scores = mood_scores(["death metal"])

        self.assertEqual(scores["energetic"], 1)
        self.assertEqual(scores["angry"], 1)

    def test_ties_follow_taxonomy_order(self) -> None:
        ranked = classify_mood(["death metal"])
        self.assertEqual([m.mood for m in ranked], ["energetic", "angry"])

    def test_highest_score_first(self) -> None:
        ranked = classify_mood(["lo-fi chill", "ambient", "punk"])

        self.assertEqual(ranked[0], MoodScore("chill", 3))
        self.assertIn(MoodScore("energetic", 1), ranked)

    def test_matching_is_case_insensitive(self) -> None:
        self.assertEqual(top_mood(["Classical Piano"]), "focus")

    def test_scores_cover_every_mood(self) -> None:
        self.assertEqual(set(mood_scores(["pop"])), set(MOODS))


if __name__ == "__main__":
    unittest.main()
