"""New artist discovery within a window."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from ..analytics.aggregation import aggregate, by_artist, top_n
from ..analytics.models import PlayRecord


def first_plays(records: Iterable[PlayRecord]) -> dict[str, datetime]:
    """Earliest play time per artist."""
    first: dict[str, datetime] = {}
    for record in records:
        seen = first.get(record.artist_id)
        if seen is None or record.played_at < seen:
            first[record.artist_id] = record.played_at
    return first


def new_artist_ids(history: Iterable[PlayRecord], window_start: datetime) -> set[str]:
    """
    Artists whose first-ever play falls on or after ``window_start``.

    Args:
        history: The user's full play history (or at least everything up to
            the end of the window)
        window_start: Start of the current window
    """
    return {
        artist_id
        for artist_id, first in first_plays(history).items()
        if first >= window_start
    }


def find_new_artists(
    history: Iterable[PlayRecord],
    start: datetime,
    end: datetime,
    limit: int = 5,
) -> list[dict[str, Any]]:
    """
    Artists first heard inside ``[start, end]``, ranked by listening time there.
    """
    plays = list(history)
    new_ids = new_artist_ids(plays, start)
    window = [p for p in plays if start <= p.played_at <= end and p.artist_id in new_ids]
    entities = aggregate(window, by_artist)
    images = {p.artist_id: p.artist_image_url for p in window}

    return [
        {
            "id": entity.key,
            "name": entity.label,
            "image_url": images.get(entity.key),
            "play_count": entity.play_count,
            "total_ms": entity.total_ms,
            "first_played_at": entity.first_seen.isoformat() if entity.first_seen else None,
        }
        for entity in top_n(entities.values(), "total_ms", limit)
    ]
