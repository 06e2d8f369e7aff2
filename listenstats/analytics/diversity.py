"""
Diversity & Entropy Engine

Scores how spread out a listener's time is across genres and artists using
normalized Shannon entropy, plus concentration-based mainstream/niche scores.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import asdict
from typing import Any, Iterable, Sequence

import numpy as np

from ..config import DEFAULT_CONFIG, AnalyticsConfig
from .aggregation import percentage
from .genres import GenreLookup, as_genre_index
from .models import DiversityScoreSet, PlayRecord

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def shannon_diversity(values: Sequence[float], grand_total: float | None = None) -> float:
    """
    Normalized Shannon diversity of a distribution, scaled to [0, 100].

    Args:
        values: Per-category totals (e.g. listening ms per genre)
        grand_total: Denominator for the category probabilities; defaults to
            the sum of values

    Returns:
        H / ln(N) * 100, or 0 when there is at most one category or nothing
        was listened to
    """
    totals = np.asarray(list(values), dtype=float)
    n = totals.size
    total = float(totals.sum()) if grand_total is None else float(grand_total)
    if n <= 1 or total <= 0:
        return 0.0

    p = totals / total
    p = p[p > 0]
    entropy = float(-np.sum(p * np.log(p)))
    return _clamp(entropy / np.log(n) * 100)


def diversity_scores(
    genre_totals: Sequence[float],
    artist_totals: Sequence[float],
    total_ms: float,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> DiversityScoreSet:
    """Combine entropy, exploration and concentration into a score set."""
    genre_diversity = shannon_diversity(genre_totals, total_ms)
    artist_diversity = shannon_diversity(artist_totals, total_ms)

    exploration = _clamp(
        min(len(genre_totals) / config.exploration_genre_calibration, 1) * 100
    )

    top_genre_concentration = percentage(max(genre_totals, default=0), total_ms)
    niche = _clamp(max(0.0, 100 - top_genre_concentration * 2))
    mainstream = _clamp(min(top_genre_concentration * 2, 100))

    weights = config.diversity_weights
    overall = (
        genre_diversity * weights["genre_diversity"]
        + artist_diversity * weights["artist_diversity"]
        + exploration * weights["exploration_score"]
        + niche * weights["niche_score"]
    )

    return DiversityScoreSet(
        overall=overall,
        genre_diversity=genre_diversity,
        artist_diversity=artist_diversity,
        exploration_score=exploration,
        mainstream_score=mainstream,
        niche_score=niche,
    )


def _empty_result() -> dict[str, Any]:
    empty = DiversityScoreSet()
    return {
        "scores": empty.rounded(),
        "raw_scores": asdict(empty),
        "breakdown": {
            "total_genres": 0,
            "total_artists": 0,
            "total_plays": 0,
            "avg_genres_per_artist": 0,
            "top_genre_concentration": 0,
            "top5_genre_concentration": 0,
        },
        "genre_distribution": [],
        "artist_distribution": [],
        "diversity_trend": [],
    }


def compute_diversity(
    records: Iterable[PlayRecord],
    genre_lookup: GenreLookup | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> dict[str, Any]:
    """
    Compute diversity scores and distributions for a play window.

    A play adds its duration to every genre its artist carries, so genre
    totals can sum to more than the total listening time.

    Args:
        records: Play records in the window
        genre_lookup: Artist id -> genre tags
        config: Analytics constants

    Returns:
        Dict with rounded scores, raw (unrounded) scores, breakdown,
        genre/artist distributions and a monthly diversity trend
    """
    plays = list(records)
    if not plays:
        logger.debug("No plays in window, returning empty diversity scores")
        return _empty_result()

    index = as_genre_index(genre_lookup)

    genre_ms: dict[str, int] = defaultdict(int)
    genre_plays: dict[str, int] = defaultdict(int)
    genre_artists: dict[str, set[str]] = defaultdict(set)
    artist_ms: dict[str, int] = defaultdict(int)
    artist_plays: dict[str, int] = defaultdict(int)
    artist_labels: dict[str, str | None] = {}
    artist_genres: dict[str, set[str]] = defaultdict(set)
    monthly: dict[str, dict[str, Any]] = {}

    for play in plays:
        artist_ms[play.artist_id] += play.duration_ms
        artist_plays[play.artist_id] += 1
        artist_labels.setdefault(play.artist_id, play.artist_name)

        month = play.played_at.strftime("%Y-%m")
        bucket = monthly.setdefault(month, {"genres": set(), "artists": set(), "total_ms": 0})
        bucket["artists"].add(play.artist_id)
        bucket["total_ms"] += play.duration_ms

        for genre in index.genres_for(play.artist_id):
            genre_ms[genre] += play.duration_ms
            genre_plays[genre] += 1
            genre_artists[genre].add(play.artist_id)
            artist_genres[play.artist_id].add(genre)
            bucket["genres"].add(genre)

    total_ms = sum(play.duration_ms for play in plays)

    sorted_genres = sorted(genre_ms, key=lambda g: genre_ms[g], reverse=True)
    sorted_artists = sorted(artist_ms, key=lambda a: artist_ms[a], reverse=True)

    score_set = diversity_scores(
        [genre_ms[g] for g in sorted_genres],
        [artist_ms[a] for a in sorted_artists],
        total_ms,
        config,
    )

    genre_distribution = [
        {
            "genre": genre,
            "play_count": genre_plays[genre],
            "total_ms": genre_ms[genre],
            "artist_count": len(genre_artists[genre]),
            "percentage": percentage(genre_ms[genre], total_ms),
        }
        for genre in sorted_genres
    ]
    artist_distribution = [
        {
            "artist_id": artist_id,
            "name": artist_labels.get(artist_id),
            "play_count": artist_plays[artist_id],
            "total_ms": artist_ms[artist_id],
            "genre_count": len(artist_genres[artist_id]),
            "percentage": percentage(artist_ms[artist_id], total_ms),
        }
        for artist_id in sorted_artists
    ]

    top_concentration = genre_distribution[0]["percentage"] if genre_distribution else 0
    top5_concentration = sum(g["percentage"] for g in genre_distribution[:5])
    avg_genres_per_artist = (
        sum(len(artist_genres[a]) for a in sorted_artists) / len(sorted_artists)
        if sorted_artists
        else 0
    )

    diversity_trend = [
        {
            "month": month,
            "genre_count": len(monthly[month]["genres"]),
            "artist_count": len(monthly[month]["artists"]),
            "total_ms": monthly[month]["total_ms"],
        }
        for month in sorted(monthly)
    ]

    return {
        "scores": score_set.rounded(),
        "raw_scores": asdict(score_set),
        "breakdown": {
            "total_genres": len(genre_ms),
            "total_artists": len(artist_ms),
            "total_plays": len(plays),
            "avg_genres_per_artist": round(avg_genres_per_artist, 1),
            "top_genre_concentration": round(top_concentration, 1),
            "top5_genre_concentration": round(top5_concentration, 1),
        },
        "genre_distribution": genre_distribution[: config.genre_distribution_size],
        "artist_distribution": artist_distribution[: config.artist_distribution_size],
        "diversity_trend": diversity_trend,
    }
