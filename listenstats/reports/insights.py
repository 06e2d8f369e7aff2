"""
Listening Insights

Heuristic observations over the last 90 days: day-of-week and time-of-day
mood habits, late-night and weekend listening, listening spikes and recent
artist discovery.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

import numpy as np

from ..analytics.aggregation import round_half_up
from ..analytics.genres import GenreLookup, as_genre_index
from ..analytics.models import MoodScore, PlayRecord
from ..analytics.mood import VARIED, classify_mood
from ..analytics.temporal import DAY_NAMES, day_of_week
from ..config import DEFAULT_CONFIG, AnalyticsConfig
from .discovery import new_artist_ids

logger = logging.getLogger(__name__)

MAX_INSIGHTS = 8

TIME_SLOTS = (
    ("morning", range(6, 12), "in the morning"),
    ("afternoon", range(12, 18), "in the afternoon"),
    ("evening", range(18, 24), "in the evening"),
    ("night", range(0, 6), "late at night"),
)
WORKOUT_HOURS = (6, 7, 8, 17, 18, 19)
NIGHT_HOURS = range(0, 6)


@dataclass
class Insight:
    id: str
    type: str
    title: str
    description: str
    confidence: float
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _leading_mood(genres: Iterable[str]) -> MoodScore | None:
    ranked = classify_mood(genres)
    return None if ranked[0].mood == VARIED else ranked[0]


def _not_enough_data() -> dict[str, Any]:
    insight = Insight(
        id="not-enough-data",
        type="pattern",
        title="More Data Needed",
        description="Keep listening! We need more data to generate personalized insights.",
        confidence=100,
    )
    return {"insights": [insight.to_dict()], "mood_analysis": None, "patterns": None}


def build_insights(
    records: Iterable[PlayRecord],
    genre_lookup: GenreLookup | None = None,
    now: datetime | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> dict[str, Any]:
    """
    Derive listening insights from recent plays.

    Args:
        records: Play records; only the last ``insights_window_days`` are used
        genre_lookup: Artist id -> genre tags
        now: Reference time
        config: Analytics constants

    Returns:
        Dict with ``insights`` (highest confidence first), ``mood_analysis``
        and ``patterns``; the last two are None when there is too little data
    """
    now = now or datetime.now(timezone.utc)
    window_start = now - timedelta(days=config.insights_window_days)
    plays = sorted(
        (p for p in records if window_start <= p.played_at <= now),
        key=lambda p: p.played_at,
    )
    if len(plays) < config.insights_min_plays:
        logger.debug("Only %d plays in window, skipping insights", len(plays))
        return _not_enough_data()

    index = as_genre_index(genre_lookup)
    day_genres: dict[int, set[str]] = defaultdict(set)
    hour_genres: dict[int, set[str]] = defaultdict(set)
    day_ms = [0] * 7
    hour_ms = [0] * 24
    daily_ms: dict[str, int] = defaultdict(int)
    all_genres: list[str] = []

    for play in plays:
        hour = play.played_at.hour
        day = day_of_week(play.played_at)
        day_ms[day] += play.duration_ms
        hour_ms[hour] += play.duration_ms
        daily_ms[play.play_date.isoformat()] += play.duration_ms
        genres = index.genres_for(play.artist_id)
        all_genres.extend(genres)
        day_genres[day].update(genres)
        hour_genres[hour].update(genres)

    insights: list[Insight] = []

    for day in range(7):
        mood = _leading_mood(day_genres[day])
        if mood and mood.score >= 3:
            name = DAY_NAMES[day]
            insights.append(
                Insight(
                    id=f"mood-{name.lower()}",
                    type="mood",
                    title=f"{name} Vibes",
                    description=f"You tend to listen to {mood.mood} music on {name}s",
                    confidence=min(mood.score * 15, 90),
                    data={"day": name, "mood": mood.mood, "score": mood.score},
                )
            )

    def slot_genres(hours: Iterable[int]) -> list[str]:
        return [genre for hour in hours for genre in hour_genres[hour]]

    for slot, hours, label in TIME_SLOTS:
        genres = slot_genres(hours)
        if len(genres) < 10:
            continue
        mood = _leading_mood(genres)
        if mood and mood.score >= 5:
            insights.append(
                Insight(
                    id=f"time-{slot}",
                    type="pattern",
                    title=f"{slot.capitalize()} Routine",
                    description=f"You prefer {mood.mood} music {label}",
                    confidence=min(mood.score * 10, 85),
                    data={"time_slot": slot, "mood": mood.mood},
                )
            )

    workout_score = sum(
        next((m.score for m in classify_mood(hour_genres[hour]) if m.mood == "energetic"), 0)
        for hour in WORKOUT_HOURS
    )
    if workout_score >= 5:
        insights.append(
            Insight(
                id="workout-pattern",
                type="habit",
                title="Workout Warrior",
                description="You listen to high-energy music during typical workout hours",
                confidence=min(workout_score * 12, 88),
                data={"energy_score": workout_score},
            )
        )

    total_ms = sum(hour_ms)
    night_percent = sum(hour_ms[h] for h in NIGHT_HOURS) / total_ms * 100 if total_ms else 0.0
    if night_percent > 15:
        mood = _leading_mood(slot_genres(NIGHT_HOURS))
        vibe = f", mostly {mood.mood} vibes" if mood else ""
        insights.append(
            Insight(
                id="night-owl",
                type="habit",
                title="Night Owl",
                description=f"{round_half_up(night_percent)}% of your listening happens after midnight{vibe}",
                confidence=min(night_percent * 3, 90),
                data={"late_night_percent": night_percent},
            )
        )

    weekend_avg = (day_ms[0] + day_ms[6]) / 2
    weekday_avg = sum(day_ms[1:6]) / 5
    if weekend_avg > weekday_avg * 1.5:
        more = round_half_up((weekend_avg / weekday_avg - 1) * 100) if weekday_avg else 100
        insights.append(
            Insight(
                id="weekend-listener",
                type="pattern",
                title="Weekend Warrior",
                description=f"You listen {more}% more on weekends",
                confidence=75,
                data={"weekend_avg": weekend_avg, "weekday_avg": weekday_avg},
            )
        )
    elif weekday_avg > weekend_avg * 1.3:
        insights.append(
            Insight(
                id="weekday-listener",
                type="pattern",
                title="Workday Soundtrack",
                description="You listen more during the work week than weekends",
                confidence=70,
                data={"weekend_avg": weekend_avg, "weekday_avg": weekday_avg},
            )
        )

    daily_values = np.array(list(daily_ms.values()), dtype=float)
    avg_daily = float(daily_values.mean())
    threshold = avg_daily + 2 * float(daily_values.std())
    spikes = sorted(
        ((day, ms) for day, ms in daily_ms.items() if ms > threshold),
        key=lambda item: item[1],
        reverse=True,
    )
    if spikes:
        spike_day, spike_ms = spikes[0]
        hours = round(spike_ms / 3_600_000, 1)
        spike_date = datetime.fromisoformat(spike_day)
        label = f"{spike_date:%b} {spike_date.day}"
        insights.append(
            Insight(
                id="listening-spike",
                type="anomaly",
                title="Listening Marathon",
                description=f"On {label}, you listened for {hours} hours - way above your average!",
                confidence=85,
                data={"date": spike_day, "ms": spike_ms, "avg_daily": avg_daily},
            )
        )

    discoveries = len(new_artist_ids(plays, now - timedelta(days=30)))
    if discoveries >= 5:
        insights.append(
            Insight(
                id="explorer",
                type="discovery",
                title="Music Explorer",
                description=f"You discovered {discoveries} new artists in the last 30 days",
                confidence=80,
                data={"new_artists": discoveries},
            )
        )

    ranked_moods = [m for m in classify_mood(all_genres) if m.mood != VARIED][:3]
    ranked_moods += [None] * (3 - len(ranked_moods))
    mood_analysis = {
        slot: (m.to_dict() if m else None)
        for slot, m in zip(("primary", "secondary", "tertiary"), ranked_moods)
    }

    insights.sort(key=lambda insight: insight.confidence, reverse=True)

    return {
        "insights": [insight.to_dict() for insight in insights[:MAX_INSIGHTS]],
        "mood_analysis": mood_analysis,
        "patterns": {
            "peak_hour": max(range(24), key=lambda h: (hour_ms[h], -h)),
            "peak_day": DAY_NAMES[max(range(7), key=lambda d: (day_ms[d], -d))],
            "avg_daily_minutes": round_half_up(avg_daily / 60000),
            "total_analyzed_days": len(daily_ms),
        },
    }
