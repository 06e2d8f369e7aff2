"""Mood classification from genre tags (keyword based)."""

from __future__ import annotations

from typing import Iterable

from .models import MoodScore

VARIED = "varied"

# Declaration order is the tie-break order.
MOOD_TAXONOMY: tuple[tuple[str, frozenset[str]], ...] = (
    ("energetic", frozenset({
        "workout", "gym", "power", "metal", "hardcore", "punk", "edm",
        "drum and bass", "dubstep", "dance", "electronic",
    })),
    ("chill", frozenset({
        "chill", "ambient", "lofi", "lo-fi", "relax", "sleep", "meditation",
        "acoustic", "soft", "calm",
    })),
    ("happy", frozenset({
        "happy", "feel-good", "party", "upbeat", "fun", "pop", "disco", "funk",
    })),
    ("sad", frozenset({
        "sad", "melancholy", "heartbreak", "emo", "blues", "ballad", "grief",
    })),
    ("romantic", frozenset({
        "love", "romance", "romantic", "soul", "r&b", "smooth",
    })),
    ("focus", frozenset({
        "study", "focus", "classical", "instrumental", "piano", "minimal", "ambient",
    })),
    ("angry", frozenset({
        "angry", "rage", "aggressive", "death metal", "black metal", "grindcore", "thrash",
    })),
)

MOODS = tuple(mood for mood, _ in MOOD_TAXONOMY)


def mood_scores(genres: Iterable[str]) -> dict[str, int]:
    """
    Count keyword hits per mood.

    Every (genre, keyword) pair where the lower-cased genre contains the
    keyword adds one, so "death metal" scores for both energetic ("metal")
    and angry ("death metal").
    """
    scores = {mood: 0 for mood in MOODS}
    for genre in genres:
        lowered = genre.lower()
        for mood, keywords in MOOD_TAXONOMY:
            scores[mood] += sum(1 for keyword in keywords if keyword in lowered)
    return scores


def classify_mood(genres: Iterable[str]) -> list[MoodScore]:
    """
    Rank moods for a collection of genres.

    Returns:
        Moods with a non-zero score, highest first, ties in taxonomy order;
        a single ``varied`` entry with score 0 when nothing matched
    """
    scores = mood_scores(genres)
    ranked = sorted(
        (MoodScore(mood, score) for mood, score in scores.items() if score > 0),
        key=lambda item: item.score,
        reverse=True,
    )
    return ranked or [MoodScore(VARIED, 0)]


def top_mood(genres: Iterable[str]) -> str:
    return classify_mood(genres)[0].mood
