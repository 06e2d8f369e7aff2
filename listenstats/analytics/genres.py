"""Artist genre lookup.

Genre tags arrive from the metadata store as whatever the store held: a JSON
encoded list, an already decoded list, ``None`` or garbage. Everything passes
through :func:`parse_genres` once, which either yields a tuple of tags or the
``NO_GENRES`` sentinel. Malformed values are an expected branch and never
raise.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Mapping, Union

logger = logging.getLogger(__name__)

NO_GENRES: tuple[str, ...] = ()


def parse_genres(raw: Any) -> tuple[str, ...]:
    """
    Parse a raw genre field into a tuple of tag strings.

    Args:
        raw: JSON string, list/tuple of strings, or None

    Returns:
        Tuple of non-empty genre strings, or NO_GENRES when the value is
        missing or not a list of strings
    """
    if raw is None:
        return NO_GENRES

    value = raw
    if isinstance(raw, (bytes, bytearray)):
        try:
            value = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Skipping undecodable genre field")
            return NO_GENRES

    if isinstance(value, str):
        if not value.strip():
            return NO_GENRES
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            logger.debug("Skipping malformed genre field: %r", raw)
            return NO_GENRES

    if not isinstance(value, (list, tuple)):
        return NO_GENRES
    if not all(isinstance(item, str) for item in value):
        logger.debug("Skipping genre field with non-string entries: %r", raw)
        return NO_GENRES

    return tuple(item for item in value if item.strip())


class GenreIndex:
    """Read-only artist id -> genre tags lookup, tolerant of bad entries."""

    def __init__(self, raw: Mapping[str, Any] | None = None) -> None:
        self._genres: dict[str, tuple[str, ...]] = {}
        for artist_id, value in (raw or {}).items():
            self._genres[artist_id] = parse_genres(value)

    def genres_for(self, artist_id: str) -> tuple[str, ...]:
        return self._genres.get(artist_id, NO_GENRES)

    def genres_for_many(self, artist_ids: Iterable[str]) -> list[str]:
        genres: list[str] = []
        for artist_id in artist_ids:
            genres.extend(self.genres_for(artist_id))
        return genres

    def __contains__(self, artist_id: object) -> bool:
        return artist_id in self._genres

    def __len__(self) -> int:
        return len(self._genres)


GenreLookup = Union[GenreIndex, Mapping[str, Any]]


def as_genre_index(lookup: GenreLookup | None) -> GenreIndex:
    """Wrap a plain mapping in a GenreIndex; pass an existing index through."""
    if isinstance(lookup, GenreIndex):
        return lookup
    return GenreIndex(lookup)
