"""
Statistics Service

Loads a user's plays and artist genres once per request and hands them to
the analytics engines and report builders. Nothing is cached; every call
reflects the repository's current data.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Mapping, TypeVar

from listenstats.analytics import (
    AnalyticsError,
    GenreIndex,
    compute_diversity,
    compute_temporal_patterns,
    detect_obsessions,
)
from listenstats.analytics.aggregation import aggregate, by_artist, top_n
from listenstats.analytics.models import PlayRecord
from listenstats.config import DEFAULT_CONFIG, AnalyticsConfig
from listenstats.reports import (
    PeriodError,
    PlaylistTrack,
    build_comparison_report,
    build_export,
    build_genre_detail,
    build_genre_evolution,
    build_genre_listing,
    build_insights,
    build_overview,
    build_playlist_report,
    build_share_snapshot,
    build_wrapped_report,
    find_new_artists,
    is_share_expired,
    parse_period,
    wrapped_period,
)
from listenstats.reports.overview import artist_rows
from listenstats.services.enrichment import recommend_concerts

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StatsService:
    """
    Report entry points for the HTTP layer.

    Args:
        repository: Play source exposing ``fetch_plays``, ``fetch_plays_by_user``,
            ``fetch_artist_genres``, ``fetch_user``, ``fetch_share_link`` and
            ``increment_share_views`` (see ``listenstats.db.plays.PlayRepository``)
        config: Analytics constants
    """

    def __init__(self, repository: Any, config: AnalyticsConfig = DEFAULT_CONFIG) -> None:
        self.repository = repository
        self.config = config

    def _run(self, name: str, build: Callable[[], T]) -> T:
        try:
            return build()
        except (AnalyticsError, PeriodError):
            raise
        except Exception as e:
            logger.exception("Failed to build %s report", name)
            raise AnalyticsError(f"Failed to build {name} report: {e}") from e

    def _genres_for(self, plays: Iterable[PlayRecord]) -> GenreIndex:
        artist_ids = {play.artist_id for play in plays}
        return GenreIndex(self.repository.fetch_artist_genres(artist_ids))

    def _plays(self, user_id: str, period: str, now: datetime | None = None) -> list[PlayRecord]:
        start, end = parse_period(period, now=now)
        return self.repository.fetch_plays(user_id, start, end)

    def get_overview(self, user_id: str, period: str = "month", limit: int = 10) -> dict[str, Any]:
        def build() -> dict[str, Any]:
            plays = self._plays(user_id, period)
            return {"period": period, **build_overview(plays, limit=limit)}

        return self._run("overview", build)

    def get_diversity(self, user_id: str, period: str = "month") -> dict[str, Any]:
        def build() -> dict[str, Any]:
            plays = self._plays(user_id, period)
            return compute_diversity(plays, self._genres_for(plays), config=self.config)

        return self._run("diversity", build)

    def get_temporal(
        self,
        user_id: str,
        period: str = "year",
        heatmap_weeks: int | None = None,
    ) -> dict[str, Any]:
        config = self.config
        if heatmap_weeks is not None:
            config = replace(config, heatmap_weeks=heatmap_weeks)

        def build() -> dict[str, Any]:
            return compute_temporal_patterns(self._plays(user_id, period), config=config)

        return self._run("temporal", build)

    def get_obsessions(self, user_id: str, period: str = "all") -> dict[str, Any]:
        def build() -> dict[str, Any]:
            plays = self._plays(user_id, period)
            return detect_obsessions(plays, self._genres_for(plays), config=self.config)

        return self._run("obsession", build)

    def get_wrapped(
        self,
        user_id: str,
        kind: str = "month",
        year: int | None = None,
        month: int | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict[str, Any]:
        def build() -> dict[str, Any]:
            bounds = wrapped_period(kind, year=year, month=month, start=start, end=end)
            plays = self.repository.fetch_plays(user_id, bounds.start, bounds.end)
            return build_wrapped_report(plays, bounds, self._genres_for(plays), config=self.config)

        return self._run("wrapped", build)

    def get_comparison(self, user_id: str) -> dict[str, Any]:
        def build() -> dict[str, Any]:
            now = datetime.now(timezone.utc)
            window_start = now - timedelta(days=self.config.comparison_window_days)
            history = self.repository.fetch_plays(user_id, None, None)
            everyone = self.repository.fetch_plays_by_user(window_start, None)
            recent = [p for p in history if p.played_at >= window_start]
            return build_comparison_report(
                user_id,
                history,
                everyone,
                self._genres_for(recent),
                now=now,
                config=self.config,
            )

        return self._run("comparison", build)

    def get_playlist_analysis(
        self,
        user_id: str,
        playlist: Mapping[str, Any],
        tracks: Iterable[PlaylistTrack | None],
    ) -> dict[str, Any]:
        def build() -> dict[str, Any]:
            listing = [t for t in tracks if t is not None]
            artist_ids = {a.id for t in listing for a in t.artists}
            plays = self.repository.fetch_plays(user_id, None, None)
            images = {p.artist_id: p.artist_image_url for p in plays}
            return build_playlist_report(
                playlist,
                listing,
                plays,
                GenreIndex(self.repository.fetch_artist_genres(artist_ids)),
                artist_images=images,
            )

        return self._run("playlist", build)

    def get_share_snapshot(self, token: str) -> dict[str, Any] | None:
        """Snapshot for a share token; None when the link is unknown or expired."""

        def build() -> dict[str, Any] | None:
            link = self.repository.fetch_share_link(token)
            if link is None:
                return None
            if is_share_expired(link.get("expires_at")):
                logger.info("Share link %s has expired", token)
                return None
            user = self.repository.fetch_user(link["user_id"]) or {}
            plays = self.repository.fetch_plays(link["user_id"], None, None)
            self.repository.increment_share_views(token)
            return build_share_snapshot(
                plays,
                user_name=user.get("name"),
                user_image=user.get("image"),
                view_count=link.get("view_count", 0),
                created_at=link.get("created_at"),
            )

        return self._run("share", build)

    def get_genre_evolution(self, user_id: str, period: str = "year") -> dict[str, Any]:
        def build() -> dict[str, Any]:
            plays = self._plays(user_id, period)
            return build_genre_evolution(plays, self._genres_for(plays))

        return self._run("genre evolution", build)

    def get_genres(self, user_id: str, period: str = "month") -> dict[str, Any]:
        def build() -> dict[str, Any]:
            plays = self._plays(user_id, period)
            return {"period": period, **build_genre_listing(plays, self._genres_for(plays))}

        return self._run("genres", build)

    def get_genre_detail(self, user_id: str, genre: str) -> dict[str, Any]:
        def build() -> dict[str, Any]:
            plays = self.repository.fetch_plays(user_id, None, None)
            return build_genre_detail(plays, genre, self._genres_for(plays))

        return self._run("genre detail", build)

    def get_insights(self, user_id: str) -> dict[str, Any]:
        def build() -> dict[str, Any]:
            now = datetime.now(timezone.utc)
            plays = self.repository.fetch_plays(
                user_id, now - timedelta(days=self.config.insights_window_days), None
            )
            return build_insights(plays, self._genres_for(plays), now=now, config=self.config)

        return self._run("insights", build)

    def get_new_artists(self, user_id: str, period: str = "month") -> dict[str, Any]:
        def build() -> dict[str, Any]:
            start, end = parse_period(period)
            history = self.repository.fetch_plays(user_id, None, end)
            return {
                "period": period,
                "artists": find_new_artists(history, start, end, limit=self.config.new_artists_limit),
            }

        return self._run("new artists", build)

    def get_export(self, user_id: str, export_type: str = "all") -> dict[str, Any]:
        def build() -> dict[str, Any]:
            plays = self.repository.fetch_plays(user_id, None, None)
            user = self.repository.fetch_user(user_id)
            return build_export(plays, export_type, self._genres_for(plays), user=user)

        return self._run("export", build)

    def get_concerts(
        self,
        user_id: str,
        lookup: Callable[[Mapping[str, Any]], Iterable[Mapping[str, Any]]],
        radius_miles: float = 100,
        location: str | None = None,
    ) -> dict[str, Any]:
        def build() -> dict[str, Any]:
            plays = self.repository.fetch_plays(user_id, None, None)
            by_plays = top_n(aggregate(plays, by_artist).values(), "play_count", limit=20)
            return recommend_concerts(
                artist_rows(by_plays, plays),
                lookup,
                radius_miles=radius_miles,
                location=location,
                config=self.config,
            )

        return self._run("concerts", build)


_service: StatsService | None = None


def get_stats_service() -> StatsService:
    """Get the singleton StatsService backed by Postgres."""
    global _service
    if _service is None:
        from listenstats.db.plays import PlayRepository

        _service = StatsService(PlayRepository())
    return _service
