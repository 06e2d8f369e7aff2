"""Overview report: totals, top lists and recent plays."""

from __future__ import annotations

from typing import Any, Iterable

from ..analytics.aggregation import aggregate, by_album, by_artist, by_track, top_n
from ..analytics.models import AggregatedEntity, PlayRecord


def artist_rows(entities: list[AggregatedEntity], plays: list[PlayRecord]) -> list[dict[str, Any]]:
    images = {p.artist_id: p.artist_image_url for p in plays}
    return [
        {
            "id": e.key,
            "name": e.label,
            "image_url": images.get(e.key),
            "play_count": e.play_count,
            "total_ms": e.total_ms,
        }
        for e in entities
    ]


def track_rows(entities: list[AggregatedEntity], plays: list[PlayRecord]) -> list[dict[str, Any]]:
    first = {}
    for play in plays:
        first.setdefault(play.track_id, play)
    return [
        {
            "id": e.key,
            "name": e.label,
            "artist_name": first[e.key].artist_name,
            "album_image_url": first[e.key].album_image_url,
            "play_count": e.play_count,
            "total_ms": e.total_ms,
        }
        for e in entities
    ]


def recent_plays(plays: Iterable[PlayRecord], limit: int = 10) -> list[dict[str, Any]]:
    ordered = sorted(plays, key=lambda p: p.played_at, reverse=True)[:limit]
    return [
        {
            "track_id": p.track_id,
            "track_name": p.track_name,
            "artist_name": p.artist_name,
            "album_image_url": p.album_image_url,
            "played_at": p.played_at.isoformat(),
            "duration_ms": p.duration_ms,
        }
        for p in ordered
    ]


def listening_totals(plays: list[PlayRecord]) -> dict[str, int]:
    return {
        "total_ms": sum(p.duration_ms for p in plays),
        "total_plays": len(plays),
        "unique_artists": len({p.artist_id for p in plays}),
        "unique_tracks": len({p.track_id for p in plays}),
        "unique_albums": len({p.album_id for p in plays}),
    }


def build_overview(records: Iterable[PlayRecord], limit: int = 10) -> dict[str, Any]:
    """
    Totals, top artists (by time), top tracks (by plays), top albums (by
    time, with how many of their tracks were played) and recent plays.
    """
    plays = list(records)
    albums = aggregate(plays, by_album)
    album_tracks: dict[str, set[str]] = {}
    album_artist: dict[str, str | None] = {}
    album_image: dict[str, str | None] = {}
    for play in plays:
        album_tracks.setdefault(play.album_id, set()).add(play.track_id)
        album_artist.setdefault(play.album_id, play.artist_name)
        album_image.setdefault(play.album_id, play.album_image_url)

    top_albums = [
        {
            "id": e.key,
            "name": e.label,
            "artist_name": album_artist[e.key],
            "image_url": album_image[e.key],
            "play_count": e.play_count,
            "total_ms": e.total_ms,
            "tracks_played": len(album_tracks[e.key]),
        }
        for e in top_n(albums.values(), "total_ms", limit)
    ]

    return {
        "stats": listening_totals(plays),
        "top_artists": artist_rows(top_n(aggregate(plays, by_artist).values(), "total_ms", limit), plays),
        "top_tracks": track_rows(top_n(aggregate(plays, by_track).values(), "play_count", limit), plays),
        "top_albums": top_albums,
        "recent_plays": recent_plays(plays),
    }

