"""
Play History Repository

Read-only queries feeding the analytics engines. Tables read:

- ``plays (user_id, track_id, artist_id, album_id, played_at)``
- ``tracks (id, name, duration_ms)``
- ``artists (id, name, image_url, genres)`` where ``genres`` is a JSON text
  list that may be missing or malformed
- ``albums (id, name, image_url)``
- ``users (id, name, image)``
- ``share_links (token, user_id, view_count, created_at, expires_at)``
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Iterable

from listenstats.analytics.models import PlayRecord
from listenstats.db.connection import get_connection

logger = logging.getLogger(__name__)

_PLAY_COLUMNS = """
    p.user_id,
    p.track_id,
    p.artist_id,
    p.album_id,
    p.played_at,
    COALESCE(t.duration_ms, 0) AS duration_ms,
    t.name AS track_name,
    ar.name AS artist_name,
    al.name AS album_name,
    al.image_url AS album_image_url,
    ar.image_url AS artist_image_url
"""

_PLAY_JOINS = """
    FROM plays p
    LEFT JOIN tracks t ON p.track_id = t.id
    LEFT JOIN artists ar ON p.artist_id = ar.id
    LEFT JOIN albums al ON p.album_id = al.id
"""


def _to_record(row: tuple) -> PlayRecord:
    return PlayRecord(
        user_id=row[0],
        track_id=row[1],
        artist_id=row[2],
        album_id=row[3],
        played_at=row[4],
        duration_ms=int(row[5] or 0),
        track_name=row[6],
        artist_name=row[7],
        album_name=row[8],
        album_image_url=row[9],
        artist_image_url=row[10],
    )


def _time_filter(start: datetime | None, end: datetime | None) -> tuple[str, list[Any]]:
    clauses = []
    params: list[Any] = []
    if start is not None:
        clauses.append("p.played_at >= %s")
        params.append(start)
    if end is not None:
        clauses.append("p.played_at < %s")
        params.append(end)
    return "".join(f" AND {clause}" for clause in clauses), params


class PlayRepository:
    """Postgres-backed source of play records, genres, users and share links."""

    def fetch_plays(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[PlayRecord]:
        """
        Plays for one user in ``[start, end)``, oldest first.

        Args:
            user_id: User whose plays to load
            start: Inclusive lower bound, unbounded when None
            end: Exclusive upper bound, unbounded when None
        """
        time_sql, params = _time_filter(start, end)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {_PLAY_COLUMNS} {_PLAY_JOINS} "
                    f"WHERE p.user_id = %s{time_sql} ORDER BY p.played_at ASC",
                    [user_id, *params],
                )
                rows = cur.fetchall()
        logger.debug("Loaded %d plays for user %s", len(rows), user_id)
        return [_to_record(row) for row in rows]

    def fetch_plays_by_user(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict[str, list[PlayRecord]]:
        """
        Every user's plays in ``[start, end)``, grouped by user id.

        Every row of ``users`` gets an entry, with an empty list when the user
        has no plays in the range.
        """
        time_sql, params = _time_filter(start, end)
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT id FROM users ORDER BY id")
                user_ids = [row[0] for row in cur.fetchall()]
                cur.execute(
                    f"SELECT {_PLAY_COLUMNS} {_PLAY_JOINS} "
                    f"WHERE TRUE{time_sql} ORDER BY p.played_at ASC",
                    params,
                )
                rows = cur.fetchall()

        grouped: dict[str, list[PlayRecord]] = defaultdict(list)
        for user_id in user_ids:
            grouped[user_id] = []
        for row in rows:
            grouped[row[0]].append(_to_record(row))
        logger.debug("Loaded plays for %d users", len(grouped))
        return dict(grouped)

    def fetch_artist_genres(self, artist_ids: Iterable[str] | None = None) -> dict[str, Any]:
        """
        Raw genre values keyed by artist id.

        Values are returned unparsed; the analytics layer decides what is a
        usable genre list.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                if artist_ids is None:
                    cur.execute("SELECT id, genres FROM artists")
                else:
                    ids = list(artist_ids)
                    if not ids:
                        return {}
                    cur.execute("SELECT id, genres FROM artists WHERE id = ANY(%s)", (ids,))
                rows = cur.fetchall()
        return {row[0]: row[1] for row in rows}

    def fetch_user(self, user_id: str) -> dict[str, Any] | None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT id, name, image FROM users WHERE id = %s", (user_id,))
                row = cur.fetchone()
        if row is None:
            return None
        return {"id": row[0], "name": row[1], "image": row[2]}

    def fetch_share_link(self, token: str) -> dict[str, Any] | None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT token, user_id, view_count, created_at, expires_at
                    FROM share_links
                    WHERE token = %s
                    """,
                    (token,),
                )
                row = cur.fetchone()
        if row is None:
            return None
        return {
            "token": row[0],
            "user_id": row[1],
            "view_count": row[2] or 0,
            "created_at": row[3],
            "expires_at": row[4],
        }

    def increment_share_views(self, token: str) -> None:
        with get_connection() as conn:
            conn.execute(
                "UPDATE share_links SET view_count = view_count + 1 WHERE token = %s",
                (token,),
            )
            conn.commit()
