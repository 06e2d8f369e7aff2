"""
Concurrent Enrichment Lookups

Fans out independent per-entity lookups (concert listings, artist images)
on a thread pool. One failed lookup never aborts the others; results are
collected as they complete.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Generic, Hashable, Iterable, Mapping, TypeVar

from ..config import DEFAULT_CONFIG, ENRICHMENT_WORKERS, AnalyticsConfig
from ..reports.periods import MONTH_NAMES

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_RADIUS_MILES = 100


@dataclass
class GatherResult(Generic[K, V]):
    """Outcome of a fan-out: successful values by key and the keys that failed."""

    results: dict[K, V] = field(default_factory=dict)
    failed: dict[K, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.failed


def gather_lookups(
    keys: Iterable[K],
    lookup: Callable[[K], V],
    max_workers: int | None = None,
) -> GatherResult[K, V]:
    """
    Run ``lookup`` for every key concurrently with per-key failure isolation.

    Args:
        keys: Entities to look up; duplicates are looked up once
        lookup: Blocking per-entity call (usually network I/O)
        max_workers: Thread pool size, defaults to ``ENRICHMENT_WORKERS``

    Returns:
        GatherResult with values for keys that succeeded and an error message
        for each key whose lookup raised
    """
    unique_keys = list(OrderedDict.fromkeys(keys))
    gathered: GatherResult[K, V] = GatherResult()
    if not unique_keys:
        return gathered

    workers = max(1, min(max_workers or ENRICHMENT_WORKERS, len(unique_keys)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(lookup, key): key for key in unique_keys}
        for future in as_completed(futures):
            key = futures[future]
            try:
                gathered.results[key] = future.result()
            except Exception as e:
                logger.warning("Lookup failed for %s: %s", key, e)
                gathered.failed[key] = str(e)

    if gathered.failed:
        logger.info(
            "Enrichment finished with %d/%d failures",
            len(gathered.failed),
            len(unique_keys),
        )
    return gathered


def _event_date(value: Any) -> date | None:
    """Parse a YYYY-MM-DD event date; None when missing or malformed."""
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _month_label(event_date: date) -> str:
    return f"{MONTH_NAMES[event_date.month - 1]} {event_date.year}"


def recommend_concerts(
    top_artists: list[Mapping[str, Any]],
    lookup: Callable[[Mapping[str, Any]], Iterable[Mapping[str, Any]]],
    radius_miles: float = DEFAULT_RADIUS_MILES,
    location: str | None = None,
    config: AnalyticsConfig = DEFAULT_CONFIG,
    max_workers: int | None = None,
) -> dict[str, Any]:
    """
    Find upcoming concerts for a user's top artists.

    Args:
        top_artists: Artists ranked by preference (id, name, image_url)
        lookup: Per-artist event search returning event dicts with ``id``,
            ``date`` (YYYY-MM-DD) and optionally ``name``, ``venue``,
            ``city``, ``time``, ``price``, ``ticket_url``, ``distance``
        radius_miles: Events with a known distance beyond this are dropped
        location: Search location echoed back to the caller
        config: Analytics constants (``concert_artist_fanout``)
        max_workers: Thread pool size

    Returns:
        Dict with concerts sorted by date, grouped by month, and counts
    """
    if radius_miles is None or radius_miles <= 0:
        radius_miles = DEFAULT_RADIUS_MILES

    if not top_artists:
        return {
            "location": location,
            "radius_miles": radius_miles,
            "concerts": [],
            "concerts_by_month": {},
            "total_concerts": 0,
            "artists_with_concerts": 0,
            "failed_lookups": 0,
            "message": "No listening history found. Sync your data to get concert recommendations.",
        }

    searched = top_artists[: config.concert_artist_fanout]
    artists_by_id = {artist["id"]: artist for artist in searched}
    gathered = gather_lookups(
        artists_by_id,
        lambda artist_id: list(lookup(artists_by_id[artist_id])),
        max_workers=max_workers,
    )

    concerts_by_id: dict[str, dict[str, Any]] = {}
    for artist in searched:
        for event in gathered.results.get(artist["id"], []):
            event_id = event.get("id")
            if not event_id or event_id in concerts_by_id:
                continue
            event_date = _event_date(event.get("date"))
            if event_date is None:
                logger.warning(
                    "Skipping event %s for artist %s: bad date %r",
                    event_id,
                    artist["id"],
                    event.get("date"),
                )
                continue
            distance = event.get("distance")
            concerts_by_id[event_id] = {
                "id": event_id,
                "artist_id": artist["id"],
                "artist_name": artist.get("name"),
                "artist_image_url": artist.get("image_url"),
                "event_name": event.get("name") or f"{artist.get('name')} Live",
                "venue": event.get("venue") or "Venue TBA",
                "city": event.get("city") or location,
                "date": event_date.isoformat(),
                "time": event.get("time") or "TBA",
                "price": event.get("price") or "See site",
                "ticket_url": event.get("ticket_url"),
                "distance": round(distance) if distance is not None else None,
            }

    concerts = sorted(
        (c for c in concerts_by_id.values() if c["distance"] is None or c["distance"] <= radius_miles),
        key=lambda c: c["date"],
    )
    by_month: dict[str, list[dict[str, Any]]] = {}
    for concert in concerts:
        by_month.setdefault(_month_label(date.fromisoformat(concert["date"])), []).append(concert)

    return {
        "location": location,
        "radius_miles": radius_miles,
        "concerts": concerts,
        "concerts_by_month": by_month,
        "total_concerts": len(concerts),
        "artists_with_concerts": len({c["artist_id"] for c in concerts}),
        "failed_lookups": len(gathered.failed),
    }
