"""Play record factories shared by the test modules."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from listenstats.analytics.models import PlayRecord

BASE_DAY = date(2024, 1, 1)


def at(day: date, hour: int = 12, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


def play(
    track: str = "t1",
    artist: str = "a1",
    album: str = "al1",
    played_at: datetime | None = None,
    duration_ms: int = 180_000,
    user: str = "u1",
    **names: str | None,
) -> PlayRecord:
    return PlayRecord(
        user_id=user,
        track_id=track,
        artist_id=artist,
        album_id=album,
        played_at=played_at or at(BASE_DAY),
        duration_ms=duration_ms,
        track_name=names.get("track_name", f"Track {track}"),
        artist_name=names.get("artist_name", f"Artist {artist}"),
        album_name=names.get("album_name", f"Album {album}"),
        album_image_url=names.get("album_image_url"),
        artist_image_url=names.get("artist_image_url"),
    )


def daily_plays(counts: list[int], start: date = BASE_DAY, **kwargs) -> list[PlayRecord]:
    """``counts[i]`` plays on day ``start + i``, spread a minute apart from noon."""
    records = []
    for offset, count in enumerate(counts):
        day = start + timedelta(days=offset)
        for n in range(count):
            records.append(play(played_at=at(day, 12, n % 60) + timedelta(hours=n // 60), **kwargs))
    return records
