"""
Temporal Pattern Engine

Hour-of-day, day-of-week and calendar-day bucketing, listening streaks and the
calendar heatmap.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Mapping

from ..config import DEFAULT_CONFIG, AnalyticsConfig
from .models import PlayRecord

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def _as_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def day_of_week(moment: datetime) -> int:
    """Day index with 0=Sunday .. 6=Saturday."""
    return (moment.weekday() + 1) % 7


def hourly_distribution(records: Iterable[PlayRecord]) -> list[dict[str, int]]:
    buckets = [{"hour": hour, "total_ms": 0, "play_count": 0} for hour in range(24)]
    for record in records:
        bucket = buckets[record.played_at.hour]
        bucket["total_ms"] += record.duration_ms
        bucket["play_count"] += 1
    return buckets


def day_of_week_distribution(records: Iterable[PlayRecord]) -> list[dict[str, Any]]:
    buckets = [
        {"day": day, "day_name": DAY_NAMES[day], "total_ms": 0, "play_count": 0}
        for day in range(7)
    ]
    for record in records:
        bucket = buckets[day_of_week(record.played_at)]
        bucket["total_ms"] += record.duration_ms
        bucket["play_count"] += 1
    return buckets


def peak_bucket(buckets: list[dict[str, Any]], metric: str = "total_ms") -> int:
    """Index of the bucket with the largest metric; ties go to the lowest index."""
    best = 0
    for index, bucket in enumerate(buckets):
        if bucket[metric] > buckets[best][metric]:
            best = index
    return best


def daily_listening(records: Iterable[PlayRecord]) -> list[dict[str, Any]]:
    """Per calendar day totals, ascending by date."""
    totals: dict[date, dict[str, int]] = defaultdict(lambda: {"total_ms": 0, "play_count": 0})
    for record in records:
        bucket = totals[record.play_date]
        bucket["total_ms"] += record.duration_ms
        bucket["play_count"] += 1
    return [
        {"date": day.isoformat(), "total_ms": data["total_ms"], "play_count": data["play_count"]}
        for day, data in sorted(totals.items())
    ]


def calculate_streak(dates: Iterable[date | datetime | str]) -> int:
    """
    Length of the run of consecutive active days starting at the earliest date.

    Duplicate dates are collapsed first so a day with several plays counts
    once. The walk stops at the first gap that is not exactly one day, so
    ``2024-01-01, 02, 03, 05`` gives 3. See :func:`current_streak` for the
    run ending today.
    """
    ordered = sorted({_as_date(d) for d in dates})
    if not ordered:
        return 0

    streak = 1
    for older, newer in zip(ordered, ordered[1:]):
        if (newer - older).days != 1:
            break
        streak += 1
    return streak


def current_streak(dates: Iterable[date | datetime | str], today: date | None = None) -> int:
    """
    Consecutive active days ending today, or ending yesterday when nothing
    has been played yet today.
    """
    today = today or utc_today()
    active = {_as_date(d) for d in dates}
    cursor = today if today in active else today - timedelta(days=1)
    streak = 0
    while cursor in active:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(dates: Iterable[date | datetime | str]) -> dict[str, Any]:
    """Longest run of consecutive active days, earliest run wins ties."""
    ordered = sorted({_as_date(d) for d in dates})
    if not ordered:
        return {"length": 0, "start_date": None, "end_date": None}

    best_start = run_start = ordered[0]
    best_length = run_length = 1
    for previous, current in zip(ordered, ordered[1:]):
        if (current - previous).days == 1:
            run_length += 1
        else:
            run_start = current
            run_length = 1
        if run_length > best_length:
            best_length = run_length
            best_start = run_start

    return {
        "length": best_length,
        "start_date": best_start.isoformat(),
        "end_date": (best_start + timedelta(days=best_length - 1)).isoformat(),
    }


def _heat_level(count: int, max_count: int) -> int:
    if count <= 0:
        return 0
    ratio = count / max_count
    if ratio > 0.75:
        return 4
    if ratio > 0.5:
        return 3
    if ratio > 0.25:
        return 2
    return 1


def build_heatmap(
    daily_counts: Mapping[date | str, int],
    weeks: int = 52,
    today: date | None = None,
) -> list[dict[str, Any]]:
    """
    Calendar heatmap for the trailing ``weeks * 7`` days ending today.

    Each day gets an intensity level 0-4 relative to the busiest day inside
    the window.
    """
    today = today or utc_today()
    counts = {_as_date(day): count for day, count in daily_counts.items()}
    days = [today - timedelta(days=offset) for offset in range(weeks * 7 - 1, -1, -1)]
    window_counts = [counts.get(day, 0) for day in days]
    max_count = max(window_counts, default=0) or 1

    return [
        {"date": day.isoformat(), "count": count, "level": _heat_level(count, max_count)}
        for day, count in zip(days, window_counts)
    ]


def listening_personality(peak_hour: int) -> str:
    if 5 <= peak_hour < 9:
        return "Early Bird"
    if 9 <= peak_hour < 17:
        return "Daytime Listener"
    if 17 <= peak_hour < 21:
        return "Evening Enthusiast"
    return "Night Owl"


def compute_temporal_patterns(
    records: Iterable[PlayRecord],
    today: date | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> dict[str, Any]:
    """
    Compute hourly, weekday and daily distributions, streaks and heatmap.

    Args:
        records: Play records in the window
        today: Reference day for the heatmap and current streak
        config: Analytics constants

    Returns:
        Dict of distributions, peaks, streak figures and heatmap cells
    """
    plays = list(records)
    today = today or utc_today()

    hourly = hourly_distribution(plays)
    weekly = day_of_week_distribution(plays)
    daily = daily_listening(plays)
    active_dates = [row["date"] for row in daily]
    peak_hour = peak_bucket(hourly)
    peak_day = peak_bucket(weekly)

    return {
        "hourly": hourly,
        "day_of_week": weekly,
        "daily": daily,
        "peak_hour": peak_hour,
        "peak_day": DAY_NAMES[peak_day],
        "personality": listening_personality(peak_hour) if plays else None,
        "streak": calculate_streak(active_dates),
        "current_streak": current_streak(active_dates, today),
        "longest_streak": longest_streak(active_dates),
        "heatmap": build_heatmap(
            {row["date"]: row["play_count"] for row in daily},
            weeks=config.heatmap_weeks,
            today=today,
        ),
    }
