"""
Obsession Detector

Finds tracks and artists with a concentrated listening binge that stands out
from their steady-state listening.

Windows slide over the sorted *active* dates of an entity, not over calendar
days: a 14-day window covers 14 days on which the entity was played, however
far apart they are.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Iterator, Mapping

from ..config import DEFAULT_CONFIG, AnalyticsConfig
from .aggregation import round_half_up
from .genres import GenreLookup, as_genre_index
from .models import ObsessionCandidate, ObsessionPeriod, PlayRecord
from .mood import top_mood

logger = logging.getLogger(__name__)

STATUS_ACTIVE = "active"
STATUS_COOLING = "cooling"
STATUS_PAST = "past"

INSUFFICIENT_DATA_MESSAGE = "Need more listening data to detect obsessions"


@dataclass
class EntityTimeline:
    """Daily play counts and durations for one track or artist."""

    id: str
    name: str | None = None
    image_url: str | None = None
    artist_name: str | None = None
    daily_plays: dict[date, int] = field(default_factory=dict)
    daily_ms: dict[date, int] = field(default_factory=dict)
    track_counts: Counter = field(default_factory=Counter)

    @property
    def total_plays(self) -> int:
        return sum(self.daily_plays.values())

    def add(self, record: PlayRecord) -> None:
        day = record.play_date
        self.daily_plays[day] = self.daily_plays.get(day, 0) + 1
        self.daily_ms[day] = self.daily_ms.get(day, 0) + record.duration_ms


def candidate_windows(
    daily_plays: Mapping[date, int],
    window_size: int,
) -> Iterator[tuple[list[date], int, float]]:
    """
    Yield every window of ``window_size`` consecutive active dates.

    Yields:
        Tuple of (window dates, plays in window, average plays per window day)
    """
    dates = sorted(daily_plays)
    for start in range(len(dates) - window_size + 1):
        window = dates[start:start + window_size]
        plays = sum(daily_plays[d] for d in window)
        yield window, plays, plays / window_size


def _peak_date(window: list[date], daily_plays: Mapping[date, int]) -> date:
    peak = window[0]
    for day in window:
        if daily_plays[day] > daily_plays[peak]:
            peak = day
    return peak


def find_obsession_period(
    daily_plays: Mapping[date, int],
    daily_ms: Mapping[date, int] | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> ObsessionPeriod | None:
    """
    Pick the best spike window for one entity.

    A window qualifies when its average plays per active day is at least
    twice the entity's overall average and at least 2. Qualifying windows are
    scored ``avg * sqrt(window_size)`` and the first highest score wins.

    Args:
        daily_plays: Active date -> play count
        daily_ms: Active date -> listening ms, used for the period total
        config: Analytics constants

    Returns:
        The obsession period, or None when no window qualifies
    """
    if len(daily_plays) < config.obsession_min_active_days:
        return None

    avg_overall = sum(daily_plays.values()) / len(daily_plays)
    best: ObsessionPeriod | None = None
    best_score = 0.0

    for window_size in config.obsession_window_sizes:
        for window, plays, avg in candidate_windows(daily_plays, window_size):
            if avg < avg_overall * config.obsession_spike_ratio:
                continue
            if avg < config.obsession_min_window_avg:
                continue
            score = avg * math.sqrt(window_size)
            if score <= best_score:
                continue
            best_score = score
            best = ObsessionPeriod(
                start_date=window[0],
                end_date=window[-1],
                peak_date=_peak_date(window, daily_plays),
                play_count=plays,
                total_ms=sum((daily_ms or {}).get(d, 0) for d in window),
                avg_plays_per_day=avg,
            )

    return best


def calculate_intensity(period: ObsessionPeriod, avg_plays_overall: float) -> int:
    """Intensity 0-100 from spike ratio, boosted for longer periods."""
    spike_ratio = period.avg_plays_per_day / max(avg_plays_overall, 0.5)
    duration_factor = min(period.span_days / 14, 1.5)
    return min(round_half_up(spike_ratio * 20 * duration_factor), 100)


def classify_status(
    daily_plays: Mapping[date, int],
    today: date,
    cooling_days: int = 7,
) -> str:
    """
    Status of an entity relative to today.

    active: played today or yesterday; cooling: played within the trailing
    ``cooling_days``; past: otherwise.
    """
    yesterday = today - timedelta(days=1)
    if daily_plays.get(today) or daily_plays.get(yesterday):
        return STATUS_ACTIVE
    cutoff = today - timedelta(days=cooling_days)
    if any(count > 0 for day, count in daily_plays.items() if day >= cutoff):
        return STATUS_COOLING
    return STATUS_PAST


def _build_timelines(
    plays: list[PlayRecord],
) -> tuple[dict[str, EntityTimeline], dict[str, EntityTimeline]]:
    tracks: dict[str, EntityTimeline] = {}
    artists: dict[str, EntityTimeline] = {}
    for play in plays:
        track = tracks.get(play.track_id)
        if track is None:
            track = tracks[play.track_id] = EntityTimeline(
                id=play.track_id,
                name=play.track_name,
                image_url=play.album_image_url,
                artist_name=play.artist_name,
            )
        track.add(play)

        artist = artists.get(play.artist_id)
        if artist is None:
            artist = artists[play.artist_id] = EntityTimeline(
                id=play.artist_id,
                name=play.artist_name,
                image_url=play.artist_image_url,
            )
        artist.add(play)
        artist.track_counts[play.track_name or play.track_id] += 1
    return tracks, artists


def _evaluate(
    timeline: EntityTimeline,
    kind: str,
    today: date,
    min_period_plays: int,
    min_intensity: int,
    config: AnalyticsConfig,
) -> ObsessionCandidate | None:
    period = find_obsession_period(timeline.daily_plays, timeline.daily_ms, config)
    if period is None or period.play_count < min_period_plays:
        return None

    total_plays = timeline.total_plays
    avg_overall = total_plays / len(timeline.daily_plays)
    intensity = calculate_intensity(period, avg_overall)
    if intensity < min_intensity:
        return None

    top_tracks: list[dict[str, Any]] = []
    if kind == "artist":
        # Counter.most_common keeps first-seen order among equal counts
        top_tracks = [
            {"name": name, "play_count": count}
            for name, count in timeline.track_counts.most_common(3)
        ]

    return ObsessionCandidate(
        id=timeline.id,
        kind=kind,
        name=timeline.name,
        image_url=timeline.image_url,
        period=period,
        total_plays=total_plays,
        status=classify_status(timeline.daily_plays, today, config.cooling_days),
        intensity=intensity,
        artist_name=timeline.artist_name,
        top_tracks=top_tracks,
    )


def _empty_result(message: str | None, tracks: int = 0, artists: int = 0) -> dict[str, Any]:
    return {
        "insufficient_data": message is not None,
        "message": message,
        "obsessed_tracks": [],
        "obsessed_artists": [],
        "current_obsessions": [],
        "past_obsessions": [],
        "stats": {
            "total_tracks_analyzed": tracks,
            "total_artists_analyzed": artists,
            "obsession_tracks_found": 0,
            "obsession_artists_found": 0,
        },
    }


def detect_obsessions(
    records: Iterable[PlayRecord],
    genre_lookup: GenreLookup | None = None,
    now: datetime | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> dict[str, Any]:
    """
    Detect track and artist obsessions in a play window.

    Args:
        records: Play records in the query window
        genre_lookup: Optional artist genres, used to tag obsessed artists
            with their dominant mood
        now: Reference time for status classification
        config: Analytics constants

    Returns:
        Dict with obsessed tracks/artists (intensity descending), current and
        past obsessions, and analysis counts. Fewer than the minimum plays
        returns empty lists with ``insufficient_data`` set.
    """
    plays = sorted(records, key=lambda p: p.played_at)
    if len(plays) < config.obsession_min_plays:
        logger.debug(
            "Obsession detection skipped: %d plays (need %d)",
            len(plays),
            config.obsession_min_plays,
        )
        return _empty_result(INSUFFICIENT_DATA_MESSAGE)

    today = (now or datetime.now(timezone.utc)).date()
    track_timelines, artist_timelines = _build_timelines(plays)

    obsessed_tracks = [
        candidate
        for timeline in track_timelines.values()
        if (candidate := _evaluate(
            timeline, "track", today,
            config.track_min_period_plays, config.track_min_intensity, config,
        ))
    ]
    obsessed_artists = [
        candidate
        for timeline in artist_timelines.values()
        if (candidate := _evaluate(
            timeline, "artist", today,
            config.artist_min_period_plays, config.artist_min_intensity, config,
        ))
    ]

    if genre_lookup is not None:
        index = as_genre_index(genre_lookup)
        for candidate in obsessed_artists:
            candidate.mood = top_mood(index.genres_for(candidate.id))

    obsessed_tracks.sort(key=lambda c: c.intensity, reverse=True)
    obsessed_artists.sort(key=lambda c: c.intensity, reverse=True)

    def with_status(candidates: list[ObsessionCandidate], status: str, cap: int) -> list[dict[str, Any]]:
        return [c.to_dict() for c in candidates if c.status == status][:cap]

    current = (
        with_status(obsessed_tracks, STATUS_ACTIVE, config.current_track_cap)
        + with_status(obsessed_artists, STATUS_ACTIVE, config.current_artist_cap)
    )
    past = (
        with_status(obsessed_tracks, STATUS_PAST, config.past_track_cap)
        + with_status(obsessed_artists, STATUS_PAST, config.past_artist_cap)
    )

    logger.debug(
        "Obsession detection found %d tracks and %d artists",
        len(obsessed_tracks),
        len(obsessed_artists),
    )

    return {
        "insufficient_data": False,
        "message": None,
        "obsessed_tracks": [c.to_dict() for c in obsessed_tracks[: config.obsession_list_cap]],
        "obsessed_artists": [c.to_dict() for c in obsessed_artists[: config.obsession_list_cap]],
        "current_obsessions": current,
        "past_obsessions": past,
        "stats": {
            "total_tracks_analyzed": len(track_timelines),
            "total_artists_analyzed": len(artist_timelines),
            "obsession_tracks_found": len(obsessed_tracks),
            "obsession_artists_found": len(obsessed_artists),
        },
    }
