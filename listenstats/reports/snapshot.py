"""Public snapshot served behind a share link."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable

from ..analytics.aggregation import aggregate, by_artist, by_track, top_n
from ..analytics.models import PlayRecord
from .overview import artist_rows, track_rows, listening_totals, recent_plays

SNAPSHOT_TOP_SIZE = 5


def is_share_expired(expires_at: datetime | None, now: datetime | None = None) -> bool:
    """A link without an expiry never expires."""
    if expires_at is None:
        return False
    return (now or datetime.now(timezone.utc)) > expires_at


def build_share_snapshot(
    records: Iterable[PlayRecord],
    user_name: str | None = None,
    user_image: str | None = None,
    view_count: int = 0,
    created_at: datetime | None = None,
) -> dict[str, Any]:
    """
    All-time snapshot: totals, top 5 artists by time, top 5 tracks by plays
    and the 10 most recent plays.

    ``view_count`` is the stored count before this view; the snapshot reports
    it including the current view.
    """
    plays = list(records)
    artists = top_n(aggregate(plays, by_artist).values(), "total_ms", SNAPSHOT_TOP_SIZE)
    tracks = top_n(aggregate(plays, by_track).values(), "play_count", SNAPSHOT_TOP_SIZE)
    return {
        "user_name": user_name or "Anonymous",
        "user_image": user_image,
        "stats": listening_totals(plays),
        "top_artists": artist_rows(artists, plays),
        "top_tracks": track_rows(tracks, plays),
        "recent_plays": recent_plays(plays),
        "view_count": view_count + 1,
        "created_at": created_at.isoformat() if created_at else None,
    }
