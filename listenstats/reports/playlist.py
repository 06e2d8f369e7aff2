"""
Playlist Analysis Report

Joins an external playlist listing with the user's play history and artist
genres: per-track mood, completion rate, and genre/artist/decade/mood mixes.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ..analytics.aggregation import percentage, round_half_up
from ..analytics.genres import GenreLookup, as_genre_index
from ..analytics.models import PlayRecord
from ..analytics.mood import top_mood

logger = logging.getLogger(__name__)


@dataclass
class PlaylistArtist:
    id: str
    name: str


@dataclass
class PlaylistTrack:
    """One entry of an external playlist listing."""

    id: str
    name: str
    duration_ms: int
    artists: list[PlaylistArtist] = field(default_factory=list)
    album_name: str | None = None
    album_image_url: str | None = None
    release_date: str | None = None
    added_at: str | None = None

    @property
    def release_year(self) -> int | None:
        if not self.release_date or len(self.release_date) < 4:
            return None
        try:
            return int(self.release_date[:4])
        except ValueError:
            return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlaylistTrack":
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            duration_ms=int(data.get("duration_ms") or 0),
            artists=[
                PlaylistArtist(id=a["id"], name=a.get("name") or "")
                for a in data.get("artists") or []
            ],
            album_name=data.get("album_name"),
            album_image_url=data.get("album_image_url"),
            release_date=data.get("release_date"),
            added_at=data.get("added_at"),
        )


def _analyze_track(
    track: PlaylistTrack,
    play_counts: Counter,
    listened_ms: Counter,
    index: Any,
) -> dict[str, Any]:
    genres = index.genres_for_many(a.id for a in track.artists)
    return {
        "id": track.id,
        "name": track.name,
        "artist_name": ", ".join(a.name for a in track.artists),
        "artist_ids": [a.id for a in track.artists],
        "album_name": track.album_name,
        "album_image_url": track.album_image_url,
        "duration_ms": track.duration_ms,
        "added_at": track.added_at,
        "play_count": play_counts.get(track.id, 0),
        "total_listened_ms": listened_ms.get(track.id, 0),
        "genres": genres[:5],
        "mood": top_mood(genres),
        "release_year": track.release_year,
    }


def build_playlist_report(
    playlist: Mapping[str, Any],
    tracks: Iterable[PlaylistTrack | None],
    plays: Iterable[PlayRecord],
    genre_lookup: GenreLookup | None = None,
    artist_images: Mapping[str, str | None] | None = None,
) -> dict[str, Any]:
    """
    Analyze a playlist against the user's listening.

    Args:
        playlist: Playlist metadata (id, name, description, image_url, owner,
            is_public, is_collaborative)
        tracks: Playlist entries; ``None`` entries (removed tracks) are skipped
        plays: The user's plays; only plays of playlist tracks are counted
        genre_lookup: Artist id -> genre tags
        artist_images: Optional artist id -> image url

    Returns:
        Report dict with playlist info, stats, distributions and track rows
    """
    listing = [t for t in tracks if t is not None]
    track_ids = {t.id for t in listing}
    index = as_genre_index(genre_lookup)
    artist_images = artist_images or {}

    play_counts: Counter = Counter()
    listened_ms: Counter = Counter()
    for play in plays:
        if play.track_id in track_ids:
            play_counts[play.track_id] += 1
            listened_ms[play.track_id] += play.duration_ms

    analysis = [_analyze_track(t, play_counts, listened_ms, index) for t in listing]
    total_tracks = len(listing)
    total_duration_ms = sum(t.duration_ms for t in listing)
    tracks_played = sum(1 for row in analysis if row["play_count"] > 0)
    total_listened_ms = sum(listened_ms.values())
    total_plays = sum(play_counts.values())

    genre_counts: Counter = Counter()
    for row in analysis:
        genre_counts.update(row["genres"])
    genre_total = sum(genre_counts.values())
    top_genres = [
        {
            "genre": genre,
            "count": count,
            "percentage": round_half_up(percentage(count, genre_total)),
        }
        for genre, count in genre_counts.most_common(10)
    ]

    artist_counts: dict[str, dict[str, Any]] = {}
    for track in listing:
        for artist in track.artists:
            entry = artist_counts.setdefault(
                artist.id,
                {"id": artist.id, "name": artist.name, "image_url": artist_images.get(artist.id), "count": 0},
            )
            entry["count"] += 1
    top_artists = sorted(artist_counts.values(), key=lambda a: a["count"], reverse=True)[:10]

    mood_counts = Counter(row["mood"] for row in analysis)
    mood_distribution = [
        {
            "mood": mood,
            "count": count,
            "percentage": round_half_up(percentage(count, total_tracks)),
        }
        for mood, count in mood_counts.most_common()
    ]

    decade_counts = Counter(
        f"{row['release_year'] // 10 * 10}s" for row in analysis if row["release_year"]
    )
    decade_distribution = [
        {"decade": decade, "count": decade_counts[decade]} for decade in sorted(decade_counts)
    ]

    most_played = sorted(
        (row for row in analysis if row["play_count"] > 0),
        key=lambda row: row["play_count"],
        reverse=True,
    )[:10]
    unplayed = [row for row in analysis if row["play_count"] == 0][:10]

    logger.debug(
        "Playlist %s: %d/%d tracks played",
        playlist.get("id"),
        tracks_played,
        total_tracks,
    )

    return {
        "playlist": {
            "id": playlist.get("id"),
            "name": playlist.get("name"),
            "description": playlist.get("description"),
            "image_url": playlist.get("image_url"),
            "owner": playlist.get("owner"),
            "total_tracks": total_tracks,
            "total_duration_ms": total_duration_ms,
            "is_public": playlist.get("is_public"),
            "is_collaborative": playlist.get("is_collaborative"),
        },
        "stats": {
            "tracks_played": tracks_played,
            "completion_rate": round_half_up(percentage(tracks_played, total_tracks)),
            "total_listened_ms": total_listened_ms,
            "listened_percentage": round_half_up(percentage(total_listened_ms, total_duration_ms)),
            "avg_plays_per_track": round(total_plays / tracks_played, 1) if tracks_played else 0,
        },
        "top_genres": top_genres,
        "top_artists": top_artists,
        "mood_distribution": mood_distribution,
        "decade_distribution": decade_distribution,
        "most_played": most_played,
        "unplayed": unplayed,
        "tracks": analysis,
    }
