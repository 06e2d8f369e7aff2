"""
Data Export

Builds JSON-serializable export payloads and CSV renderings of a user's
listening history. Format negotiation and file naming live in the API route.
"""

from __future__ import annotations

import csv
import io
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Iterable

from ..analytics.aggregation import aggregate, by_artist, by_track, top_n
from ..analytics.genres import GenreLookup, as_genre_index
from ..analytics.models import PlayRecord

EXPORT_TYPES = ("all", "plays", "artists", "tracks", "genres", "stats")
STATS_TOP_SIZE = 20
ALL_TOP_SIZE = 50
ALL_RECENT_PLAYS = 100


def _hours(ms: int) -> float:
    return round(ms / 3_600_000, 2)


def _play_row(play: PlayRecord) -> dict[str, Any]:
    return {
        "played_at": play.played_at.isoformat(),
        "track_name": play.track_name,
        "artist_name": play.artist_name,
        "album_name": play.album_name,
        "duration_ms": play.duration_ms,
    }


def _artist_stats(plays: list[PlayRecord]) -> list[dict[str, Any]]:
    entities = top_n(aggregate(plays, by_artist).values(), "play_count", limit=None)
    return [
        {
            "id": e.key,
            "name": e.label,
            "play_count": e.play_count,
            "total_ms": e.total_ms,
            "total_hours": _hours(e.total_ms),
        }
        for e in entities
    ]


def _track_stats(plays: list[PlayRecord]) -> list[dict[str, Any]]:
    artist_names = {p.track_id: p.artist_name for p in plays}
    entities = top_n(aggregate(plays, by_track).values(), "play_count", limit=None)
    return [
        {
            "id": e.key,
            "name": e.label,
            "artist_name": artist_names[e.key],
            "play_count": e.play_count,
            "total_ms": e.total_ms,
            "total_hours": _hours(e.total_ms),
        }
        for e in entities
    ]


def _genre_stats(plays: list[PlayRecord], genre_lookup: GenreLookup | None) -> list[dict[str, Any]]:
    index = as_genre_index(genre_lookup)
    counts: Counter = Counter()
    for play in plays:
        counts.update(index.genres_for(play.artist_id))
    return [{"genre": genre, "play_count": count} for genre, count in counts.most_common()]


def _summary(plays: list[PlayRecord], genre_count: int) -> dict[str, Any]:
    total_ms = sum(p.duration_ms for p in plays)
    return {
        "total_plays": len(plays),
        "total_listening_time_ms": total_ms,
        "total_listening_time_hours": _hours(total_ms),
        "unique_artists": len({p.artist_id for p in plays}),
        "unique_tracks": len({p.track_id for p in plays}),
        "unique_albums": len({p.album_id for p in plays}),
        "unique_genres": genre_count,
    }


def build_export(
    records: Iterable[PlayRecord],
    export_type: str = "all",
    genre_lookup: GenreLookup | None = None,
    user: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Build an export payload.

    Args:
        records: The user's plays
        export_type: One of ``EXPORT_TYPES``
        genre_lookup: Artist id -> genre tags
        user: Optional user info included in the ``all`` export
        now: Export timestamp

    Returns:
        JSON-serializable dict

    Raises:
        ValueError: If export_type is unknown
    """
    if export_type not in EXPORT_TYPES:
        raise ValueError(f"Unknown export type: {export_type}")

    plays = sorted(records, key=lambda p: p.played_at, reverse=True)
    exported_at = (now or datetime.now(timezone.utc)).isoformat()

    if export_type == "plays":
        return {
            "export_date": exported_at,
            "total_plays": len(plays),
            "plays": [_play_row(p) for p in plays],
        }
    if export_type == "artists":
        artists = _artist_stats(plays)
        return {"export_date": exported_at, "total_artists": len(artists), "artists": artists}
    if export_type == "tracks":
        tracks = _track_stats(plays)
        return {"export_date": exported_at, "total_tracks": len(tracks), "tracks": tracks}

    genres = _genre_stats(plays, genre_lookup)
    if export_type == "genres":
        return {"export_date": exported_at, "total_genres": len(genres), "genres": genres}

    summary = _summary(plays, len(genres))
    if export_type == "stats":
        return {
            "export_date": exported_at,
            "summary": summary,
            "top_artists": _artist_stats(plays)[:STATS_TOP_SIZE],
            "top_tracks": _track_stats(plays)[:STATS_TOP_SIZE],
            "top_genres": genres[:STATS_TOP_SIZE],
        }

    summary["date_range"] = {
        "first": plays[-1].played_at.isoformat() if plays else None,
        "last": plays[0].played_at.isoformat() if plays else None,
    }
    return {
        "export_date": exported_at,
        "user": user or {},
        "summary": summary,
        "top_artists": _artist_stats(plays)[:ALL_TOP_SIZE],
        "top_tracks": _track_stats(plays)[:ALL_TOP_SIZE],
        "top_genres": genres[:ALL_TOP_SIZE],
        "recent_plays": [_play_row(p) for p in plays[:ALL_RECENT_PLAYS]],
    }


def export_csv(payload: dict[str, Any], export_type: str) -> str:
    """
    Render an export payload as CSV text.

    ``plays``, ``artists``, ``tracks`` and ``genres`` export one row per
    item; ``stats`` and ``all`` export the summary as metric/value rows.
    """
    output = io.StringIO()
    writer = csv.writer(output)

    if export_type == "plays":
        writer.writerow(["Played At", "Track Name", "Artist Name", "Album Name", "Duration (ms)"])
        for row in payload["plays"]:
            writer.writerow(
                [row["played_at"], row["track_name"], row["artist_name"], row["album_name"], row["duration_ms"]]
            )
    elif export_type == "artists":
        writer.writerow(["Artist Name", "Play Count", "Total Hours"])
        for row in payload["artists"]:
            writer.writerow([row["name"], row["play_count"], row["total_hours"]])
    elif export_type == "tracks":
        writer.writerow(["Track Name", "Artist Name", "Play Count", "Total Hours"])
        for row in payload["tracks"]:
            writer.writerow([row["name"], row["artist_name"], row["play_count"], row["total_hours"]])
    elif export_type == "genres":
        writer.writerow(["Genre", "Play Count"])
        for row in payload["genres"]:
            writer.writerow([row["genre"], row["play_count"]])
    else:
        summary = payload["summary"]
        writer.writerow(["Metric", "Value"])
        writer.writerow(["Total Plays", summary["total_plays"]])
        writer.writerow(["Total Hours", summary["total_listening_time_hours"]])
        writer.writerow(["Unique Artists", summary["unique_artists"]])
        writer.writerow(["Unique Tracks", summary["unique_tracks"]])
        writer.writerow(["Unique Albums", summary["unique_albums"]])
        writer.writerow(["Unique Genres", summary["unique_genres"]])

    return output.getvalue()
