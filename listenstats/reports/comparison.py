"""
Comparison Report

Ranks a user's recent listening time against every user and scores how much
of their recent listening went to newly discovered artists.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping

from ..analytics.aggregation import round_half_up
from ..analytics.genres import GenreLookup, as_genre_index
from ..analytics.models import PlayRecord
from ..config import DEFAULT_CONFIG, AnalyticsConfig
from .discovery import new_artist_ids

logger = logging.getLogger(__name__)

WEEKS_PER_MONTH = 4.3


def percentile_rank(user_id: str, totals: Mapping[str, int]) -> tuple[int, int, int]:
    """
    Rank a user among all users by listening time.

    Users are sorted by total descending; equal totals keep mapping order. A
    user with no entry is ranked as having listened for 0 ms.

    Returns:
        Tuple of (1-based rank, percentile 0-100, total users)
    """
    all_totals = dict(totals)
    all_totals.setdefault(user_id, 0)
    ordered = sorted(all_totals, key=lambda uid: all_totals[uid], reverse=True)
    total_users = len(ordered)
    rank = ordered.index(user_id) + 1
    percentile = round_half_up((total_users - rank) / total_users * 100)
    return rank, percentile, total_users


def discovery_score(history: Iterable[PlayRecord], window_start: datetime) -> int:
    """Share (0-100) of artists heard since ``window_start`` that are new."""
    plays = list(history)
    recent = {p.artist_id for p in plays if p.played_at >= window_start}
    new = new_artist_ids(plays, window_start) & recent
    return min(100, round_half_up(len(new) / max(len(recent), 1) * 100))


def build_comparison_report(
    user_id: str,
    user_records: Iterable[PlayRecord],
    all_users_records: Mapping[str, Iterable[PlayRecord]],
    genre_lookup: GenreLookup | None = None,
    now: datetime | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> dict[str, Any]:
    """
    Compare a user's last 30 days with every user.

    Args:
        user_id: The user being compared
        user_records: The user's play history; plays before the window only
            serve to decide which artists are new
        all_users_records: user id -> that user's plays (filtered to the window)
        genre_lookup: Artist id -> genre tags
        now: Reference time
        config: Analytics constants

    Returns:
        Dict with user stats and the comparison block
    """
    now = now or datetime.now(timezone.utc)
    window_start = now - timedelta(days=config.comparison_window_days)

    history = list(user_records)
    recent = [p for p in history if window_start <= p.played_at <= now]
    user_total_ms = sum(p.duration_ms for p in recent)

    index = as_genre_index(genre_lookup)
    genres: set[str] = set()
    for play in recent:
        genres.update(index.genres_for(play.artist_id))

    totals = {
        uid: sum(p.duration_ms for p in plays if window_start <= p.played_at <= now)
        for uid, plays in all_users_records.items()
    }
    rank, percentile, total_users = percentile_rank(user_id, totals)
    avg_hours_per_week = (
        sum(totals.values()) / len(totals) / 3_600_000 / WEEKS_PER_MONTH if totals else 0
    )

    logger.debug("User %s ranked %d of %d", user_id, rank, total_users)

    return {
        "user_stats": {
            "total_ms": user_total_ms,
            "hours_per_week": user_total_ms / 3_600_000 / WEEKS_PER_MONTH,
            "unique_artists": len({p.artist_id for p in recent}),
            "unique_tracks": len({p.track_id for p in recent}),
            "genre_count": len(genres),
            "discovery_score": discovery_score(history, window_start),
        },
        "comparison": {
            "percentile": percentile,
            "rank": rank,
            "total_users": total_users,
            "avg_hours_per_week": avg_hours_per_week,
        },
    }
