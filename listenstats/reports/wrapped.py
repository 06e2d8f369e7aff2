"""
Wrapped Report

Period recap: totals, top artists/tracks/albums/genres, listening patterns
and templated fun facts.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Iterable

from ..analytics.aggregation import (
    aggregate,
    by_album,
    by_artist,
    by_track,
    format_duration,
    percentage,
    round_half_up,
    top_n,
)
from ..analytics.genres import GenreLookup, as_genre_index
from ..analytics.models import AggregatedEntity, PlayRecord
from ..analytics.temporal import (
    DAY_NAMES,
    day_of_week_distribution,
    hourly_distribution,
    listening_personality,
    peak_bucket,
)
from ..config import DEFAULT_CONFIG, AnalyticsConfig
from .periods import PeriodBounds

logger = logging.getLogger(__name__)


def _entity_rows(
    entities: list[AggregatedEntity],
    plays_by_key: dict[str, PlayRecord],
    kind: str,
) -> list[dict[str, Any]]:
    rows = []
    for entity in entities:
        sample = plays_by_key[entity.key]
        row: dict[str, Any] = {
            "id": entity.key,
            "name": entity.label,
            "play_count": entity.play_count,
            "total_ms": entity.total_ms,
        }
        if kind == "artist":
            row["image_url"] = sample.artist_image_url
        elif kind == "track":
            row["artist_name"] = sample.artist_name
            row["album_image_url"] = sample.album_image_url
        else:
            row["artist_name"] = sample.artist_name
            row["image_url"] = sample.album_image_url
        rows.append(row)
    return rows


def genre_totals(
    plays: Iterable[PlayRecord],
    genre_lookup: GenreLookup | None,
) -> dict[str, dict[str, int]]:
    """Per-genre play count and ms; each play counts toward all its artist's genres."""
    index = as_genre_index(genre_lookup)
    totals: dict[str, dict[str, int]] = defaultdict(lambda: {"play_count": 0, "total_ms": 0})
    for play in plays:
        for genre in index.genres_for(play.artist_id):
            totals[genre]["play_count"] += 1
            totals[genre]["total_ms"] += play.duration_ms
    return dict(totals)


def build_fun_facts(
    top_track: dict[str, Any] | None,
    top_artist: dict[str, Any] | None,
    total_ms: int,
    peak_hour: int,
    peak_day: str,
    avg_minutes_per_day: int,
) -> list[str]:
    facts: list[str] = []
    if top_track:
        facts.append(f'You played "{top_track["name"]}" {top_track["play_count"]} times')
    if top_artist:
        share = round_half_up(percentage(top_artist["total_ms"], total_ms))
        facts.append(f"{share}% of your listening was {top_artist['name']}")
    facts.append(f"Your peak listening hour was {peak_hour}:00")
    facts.append(f"{peak_day} was your most active day")

    total_minutes = total_ms // 60000
    total_hours = total_minutes // 60
    if total_hours >= 24:
        facts.append(f"You listened for {round(total_hours / 24, 1)} days worth of music")
    else:
        facts.append(f"You listened for {total_hours} hours and {total_minutes % 60} minutes")
    facts.append(f"That's about {avg_minutes_per_day} minutes per day")
    return facts


def build_wrapped_report(
    records: Iterable[PlayRecord],
    period_bounds: PeriodBounds,
    genre_lookup: GenreLookup | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
) -> dict[str, Any]:
    """
    Build a wrapped recap for a period.

    Artists and albums are ranked by listening time, tracks by play count.

    Args:
        records: Play records (anything outside the period is ignored)
        period_bounds: Report window
        genre_lookup: Artist id -> genre tags
        config: Analytics constants

    Returns:
        Report dict; ``has_data`` is False and ``stats`` None for an empty period
    """
    plays = sorted(
        (r for r in records if period_bounds.contains(r.played_at)),
        key=lambda r: r.played_at,
    )

    base = {
        "period": period_bounds.label,
        "period_type": period_bounds.kind,
        "start_date": period_bounds.start.isoformat(),
        "end_date": period_bounds.end.isoformat(),
    }
    if not plays:
        logger.debug("No plays for wrapped period %s", period_bounds.label)
        return {**base, "has_data": False, "stats": None}

    total_ms = sum(p.duration_ms for p in plays)
    total_minutes = total_ms // 60000
    total_hours = total_minutes // 60

    first_by: dict[str, dict[str, PlayRecord]] = {"track": {}, "artist": {}, "album": {}}
    for play in plays:
        first_by["track"].setdefault(play.track_id, play)
        first_by["artist"].setdefault(play.artist_id, play)
        first_by["album"].setdefault(play.album_id, play)

    artists = aggregate(plays, by_artist)
    tracks = aggregate(plays, by_track)
    albums = aggregate(plays, by_album)

    top_artists = _entity_rows(
        top_n(artists.values(), "total_ms", config.wrapped_top_artists), first_by["artist"], "artist"
    )
    top_tracks = _entity_rows(
        top_n(tracks.values(), "play_count", config.wrapped_top_tracks), first_by["track"], "track"
    )
    top_albums = _entity_rows(
        top_n(albums.values(), "total_ms", config.wrapped_top_albums), first_by["album"], "album"
    )

    genres = genre_totals(plays, genre_lookup)
    top_genres = sorted(
        ({"genre": genre, **data} for genre, data in genres.items()),
        key=lambda row: row["total_ms"],
        reverse=True,
    )[: config.wrapped_top_genres]

    hourly = hourly_distribution(plays)
    weekly = day_of_week_distribution(plays)
    peak_hour = peak_bucket(hourly)
    peak_day = DAY_NAMES[peak_bucket(weekly)]
    avg_minutes_per_day = round_half_up(total_minutes / period_bounds.days)

    fun_facts = build_fun_facts(
        top_tracks[0] if top_tracks else None,
        top_artists[0] if top_artists else None,
        total_ms,
        peak_hour,
        peak_day,
        avg_minutes_per_day,
    )

    return {
        **base,
        "has_data": True,
        "stats": {
            "total_ms": total_ms,
            "total_time": format_duration(total_ms),
            "total_minutes": total_minutes,
            "total_hours": total_hours,
            "total_days": round(total_hours / 24, 1),
            "total_plays": len(plays),
            "unique_artists": len(artists),
            "unique_tracks": len(tracks),
            "unique_albums": len(albums),
            "unique_genres": len(genres),
            "avg_minutes_per_day": avg_minutes_per_day,
            "peak_hour": peak_hour,
            "peak_day": peak_day,
            "listening_personality": listening_personality(peak_hour),
        },
        "top_artists": top_artists,
        "top_tracks": top_tracks,
        "top_albums": top_albums,
        "top_genres": top_genres,
        "fun_facts": fun_facts,
        "hourly_distribution": hourly,
        "day_of_week_distribution": weekly,
    }
