"""
Genre Evolution Report

How a user's genre mix shifts month by month: monthly shares, per-genre
monthly rank, newly discovered genres and rising/declining genres.
"""

from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Iterable

from ..analytics.genres import GenreLookup, as_genre_index
from ..analytics.models import PlayRecord

logger = logging.getLogger(__name__)

TOP_GENRES = 10
DISCOVERY_MONTHS = 3
TREND_MONTHS = 3
TREND_LIMIT = 5
MIN_TREND_SHARE = 1.0


def months_before(moment: datetime, months: int) -> datetime:
    """Shift back by calendar months, clamping the day to the target month."""
    index = moment.year * 12 + moment.month - 1 - months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def _share(genre_ms: int, month_total: int) -> float:
    return genre_ms / month_total * 100 if month_total > 0 else 0.0


def _average_share(genre: str, months: list[str], monthly: dict[str, dict[str, int]]) -> float:
    shares = []
    for month in months:
        month_total = sum(monthly[month].values())
        if month_total > 0:
            shares.append(_share(monthly[month].get(genre, 0), month_total))
    return sum(shares) / len(shares) if shares else 0.0


def build_genre_evolution(
    records: Iterable[PlayRecord],
    genre_lookup: GenreLookup | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Build the genre evolution report.

    Shares are percentages of that month's genre-attributed listening time.
    A play counts toward every genre of its artist.

    Args:
        records: Play records for the range being analyzed
        genre_lookup: Artist id -> genre tags
        now: Reference time for the discovery cutoff

    Returns:
        Report dict; every list is empty when there are no plays
    """
    now = now or datetime.now(timezone.utc)
    plays = sorted(records, key=lambda p: p.played_at)
    if not plays:
        return {
            "monthly_genre_data": [],
            "genre_rankings": {},
            "top_genres": [],
            "top_genres_over_time": [],
            "newly_discovered_genres": [],
            "declining_genres": [],
            "rising_genres": [],
        }

    index = as_genre_index(genre_lookup)
    monthly: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    first_play: dict[str, datetime] = {}
    for play in plays:
        month = play.played_at.strftime("%Y-%m")
        bucket = monthly[month]
        for genre in index.genres_for(play.artist_id):
            bucket[genre] += play.duration_ms
            if genre not in first_play or play.played_at < first_play[genre]:
                first_play[genre] = play.played_at

    months = sorted(monthly)

    monthly_genre_data = []
    rankings: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for month in months:
        bucket = monthly[month]
        month_total = sum(bucket.values())
        shares = {genre: _share(ms, month_total) for genre, ms in bucket.items()}
        monthly_genre_data.append(
            {"month": month, "total_ms": month_total, "genres": shares, "genres_ms": dict(bucket)}
        )
        ordered = sorted(shares.items(), key=lambda item: item[1], reverse=True)
        for rank, (genre, share) in enumerate(ordered, start=1):
            rankings[genre].append({"month": month, "rank": rank, "percentage": round(share, 2)})

    genre_totals: dict[str, int] = defaultdict(int)
    for bucket in monthly.values():
        for genre, ms in bucket.items():
            genre_totals[genre] += ms
    top_genres = [
        genre
        for genre, _ in sorted(genre_totals.items(), key=lambda item: item[1], reverse=True)[:TOP_GENRES]
    ]

    top_genres_over_time = []
    for month in months:
        bucket = monthly[month]
        month_total = sum(bucket.values())
        row: dict[str, Any] = {"month": month}
        for genre in top_genres:
            row[genre] = _share(bucket.get(genre, 0), month_total)
        top_genres_over_time.append(row)

    cutoff = months_before(now, DISCOVERY_MONTHS)
    newly_discovered = sorted(
        (
            {"genre": genre, "discovered_at": first.isoformat(), "total_ms": genre_totals[genre]}
            for genre, first in first_play.items()
            if first >= cutoff
        ),
        key=lambda row: row["total_ms"],
        reverse=True,
    )[:TOP_GENRES]

    recent_months = months[-TREND_MONTHS:]
    older_months = months[-2 * TREND_MONTHS:-TREND_MONTHS]
    changes = []
    for genre in genre_totals:
        recent_avg = _average_share(genre, recent_months, monthly)
        older_avg = _average_share(genre, older_months, monthly)
        changes.append(
            {
                "genre": genre,
                "recent_avg": round(recent_avg, 2),
                "older_avg": round(older_avg, 2),
                "change": round(recent_avg - older_avg, 2),
            }
        )

    rising = sorted(
        (c for c in changes if c["change"] > 0 and c["recent_avg"] > MIN_TREND_SHARE),
        key=lambda c: c["change"],
        reverse=True,
    )[:TREND_LIMIT]
    declining = sorted(
        (c for c in changes if c["change"] < 0 and c["older_avg"] > MIN_TREND_SHARE),
        key=lambda c: c["change"],
    )[:TREND_LIMIT]

    logger.debug("Genre evolution over %d months, %d genres", len(months), len(genre_totals))

    return {
        "monthly_genre_data": monthly_genre_data,
        "genre_rankings": dict(rankings),
        "top_genres": top_genres,
        "top_genres_over_time": top_genres_over_time,
        "newly_discovered_genres": newly_discovered,
        "declining_genres": declining,
        "rising_genres": rising,
    }
