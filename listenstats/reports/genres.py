"""
Genre Reports

The genre listing (every genre with its play count, listening time and
artist count) and the drill-down into one genre's artists and tracks.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from ..analytics.aggregation import aggregate, by_artist, by_track, round_half_up, top_n
from ..analytics.diversity import shannon_diversity
from ..analytics.genres import GenreLookup, as_genre_index
from ..analytics.models import PlayRecord
from .overview import artist_rows

logger = logging.getLogger(__name__)

GENRE_DETAIL_LIMIT = 20


def build_genre_listing(
    records: Iterable[PlayRecord],
    genre_lookup: GenreLookup | None = None,
) -> dict[str, Any]:
    """
    Rank every genre heard by listening time.

    A play counts toward each genre of its artist, so genre totals can add
    up to more than the user's listening time.

    Returns:
        Dict with ``top_genres`` and ``stats`` (total genres, top genre,
        diversity score 0-100, summed genre ms)
    """
    index = as_genre_index(genre_lookup)
    totals: dict[str, dict[str, Any]] = {}
    for play in records:
        for genre in index.genres_for(play.artist_id):
            entry = totals.setdefault(genre, {"play_count": 0, "total_ms": 0, "artists": set()})
            entry["play_count"] += 1
            entry["total_ms"] += play.duration_ms
            entry["artists"].add(play.artist_id)

    top_genres = sorted(
        (
            {
                "genre": genre,
                "play_count": entry["play_count"],
                "total_ms": entry["total_ms"],
                "artist_count": len(entry["artists"]),
            }
            for genre, entry in totals.items()
        ),
        key=lambda g: g["total_ms"],
        reverse=True,
    )
    total_ms = sum(g["total_ms"] for g in top_genres)

    return {
        "top_genres": top_genres,
        "stats": {
            "total_genres": len(top_genres),
            "top_genre": top_genres[0]["genre"] if top_genres else None,
            "diversity_score": round_half_up(shannon_diversity([g["total_ms"] for g in top_genres])),
            "total_listening_ms": total_ms,
        },
    }


def genre_plays(
    records: Iterable[PlayRecord],
    genre: str,
    genre_lookup: GenreLookup | None = None,
) -> list[PlayRecord]:
    """Plays whose artist is tagged with ``genre``, compared case-insensitively."""
    wanted = genre.lower()
    index = as_genre_index(genre_lookup)
    return [
        play
        for play in records
        if any(tag.lower() == wanted for tag in index.genres_for(play.artist_id))
    ]


def build_genre_detail(
    records: Iterable[PlayRecord],
    genre: str,
    genre_lookup: GenreLookup | None = None,
    limit: int = GENRE_DETAIL_LIMIT,
) -> dict[str, Any]:
    """
    Drill into one genre: its top artists by ms, top tracks by play count
    and overall totals.

    Args:
        records: The user's plays
        genre: Genre name, matched case-insensitively
        genre_lookup: Artist id -> genre tags
        limit: Maximum artists and tracks returned

    Returns:
        Dict with ``genre`` (lowercased), ``artists``, ``tracks`` and
        ``stats``; empty lists and zero stats when nothing matches
    """
    name = genre.lower()
    plays = genre_plays(records, name, genre_lookup)
    if not plays:
        logger.debug("No plays tagged with genre %r", name)

    artists = top_n(aggregate(plays, by_artist).values(), "total_ms", limit=limit)

    first = {}
    for play in plays:
        first.setdefault(play.track_id, play)
    tracks = [
        {
            "id": entity.key,
            "name": entity.label,
            "artist_name": first[entity.key].artist_name,
            "album_name": first[entity.key].album_name,
            "album_image_url": first[entity.key].album_image_url,
            "play_count": entity.play_count,
            "total_ms": entity.total_ms,
        }
        for entity in top_n(aggregate(plays, by_track).values(), "play_count", limit=limit)
    ]

    return {
        "genre": name,
        "artists": artist_rows(artists, plays),
        "tracks": tracks,
        "stats": {
            "total_plays": len(plays),
            "total_ms": sum(p.duration_ms for p in plays),
            "unique_artists": len({p.artist_id for p in plays}),
            "unique_tracks": len({p.track_id for p in plays}),
        },
    }
