"""
Aggregation Primitives

Group-by reducers, top-N selection and share computation used by every report.
"""

from __future__ import annotations

import math
from typing import Callable, Iterable

from .models import AggregatedEntity, PlayRecord

KeyFn = Callable[[PlayRecord], str]
LabelFn = Callable[[PlayRecord], "str | None"]

METRICS = ("total_ms", "play_count")


def by_track(record: PlayRecord) -> str:
    return record.track_id


def by_artist(record: PlayRecord) -> str:
    return record.artist_id


def by_album(record: PlayRecord) -> str:
    return record.album_id


_DEFAULT_LABELS: dict[KeyFn, LabelFn] = {
    by_track: lambda r: r.track_name,
    by_artist: lambda r: r.artist_name,
    by_album: lambda r: r.album_name,
}


def aggregate(
    records: Iterable[PlayRecord],
    key_fn: KeyFn,
    label_fn: LabelFn | None = None,
) -> dict[str, AggregatedEntity]:
    """
    Group play records by key with running count and duration totals.

    Args:
        records: Play records in any order
        key_fn: Extracts the grouping key from a record
        label_fn: Extracts a display label; defaults to the track/artist/album
            name for the built-in key functions

    Returns:
        Mapping of key to AggregatedEntity, in first-seen key order
    """
    if label_fn is None:
        label_fn = _DEFAULT_LABELS.get(key_fn, lambda r: None)

    entities: dict[str, AggregatedEntity] = {}
    for record in records:
        key = key_fn(record)
        entity = entities.get(key)
        if entity is None:
            entity = AggregatedEntity(key=key, label=label_fn(record))
            entities[key] = entity
        entity.add(record)
    return entities


def top_n(
    entities: Iterable[AggregatedEntity],
    metric: str = "total_ms",
    limit: int | None = 10,
) -> list[AggregatedEntity]:
    """
    Select the top entities by a metric, descending.

    Ties are not broken explicitly: Python's sort is stable, so entities with
    equal metric values keep their iteration order (first-seen order when the
    input comes from :func:`aggregate`).
    """
    if metric not in METRICS:
        raise ValueError(f"Unknown metric '{metric}', expected one of {METRICS}")
    ranked = sorted(entities, key=lambda e: getattr(e, metric), reverse=True)
    if limit is None:
        return ranked
    return ranked[:limit]


def percentage(value: float, total: float) -> float:
    """Share of value in total as a percentage; 0 when total is 0."""
    if not total:
        return 0.0
    return value / total * 100


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (not banker's rounding)."""
    return math.floor(value + 0.5)


def format_duration(ms: int | None) -> str:
    """Format milliseconds to human-readable duration."""
    if not ms:
        return "0m"
    seconds = ms // 1000
    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    remaining_minutes = minutes % 60
    if hours < 24:
        return f"{hours}h {remaining_minutes}m"
    days = hours // 24
    remaining_hours = hours % 24
    return f"{days}d {remaining_hours}h"
