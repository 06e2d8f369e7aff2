"""
Statistics API Routes

Endpoints for listening reports: overview, diversity, temporal patterns,
obsessions, wrapped, comparison, playlist analysis, genres, insights and
sharing. Omitted period, list size, heatmap and concert parameters fall back
to the saved settings.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from listenstats import app_settings
from listenstats.config import DEFAULT_CONFIG
from listenstats.reports import PeriodError, PlaylistTrack
from listenstats.services.enrichment import DEFAULT_RADIUS_MILES
from listenstats.services.stats_service import StatsService, get_stats_service

router = APIRouter()
logger = logging.getLogger(__name__)

ConcertLookup = Callable[[Mapping[str, Any]], Iterable[Mapping[str, Any]]]


class PlaylistArtistModel(BaseModel):
    id: str
    name: str = ""


class PlaylistTrackModel(BaseModel):
    id: str
    name: str = ""
    duration_ms: int = 0
    artists: list[PlaylistArtistModel] = Field(default_factory=list)
    album_name: str | None = None
    album_image_url: str | None = None
    release_date: str | None = None
    added_at: str | None = None


class PlaylistAnalysisRequest(BaseModel):
    """Playlist listing fetched by the client from its music provider."""

    id: str
    name: str
    description: str | None = None
    image_url: str | None = None
    owner: str | None = None
    is_public: bool | None = None
    is_collaborative: bool | None = None
    tracks: list[PlaylistTrackModel | None] = Field(default_factory=list)


def get_concert_lookup(request: Request) -> ConcertLookup | None:
    """Per-artist event search installed on ``app.state.concert_lookup``, if any."""
    return getattr(request.app.state, "concert_lookup", None)


def _settings_section(name: str) -> dict[str, Any]:
    section = app_settings.load_settings().get(name, {})
    if isinstance(section, dict):
        return section
    return {}


def _positive_int(value: Any, default: int, upper: int | None = None) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    if number < 1:
        return default
    if upper is not None:
        number = min(number, upper)
    return number


def _display_defaults() -> dict[str, Any]:
    """Saved display preferences with invalid values replaced by defaults."""
    display = _settings_section("display")
    period = display.get("default_period")
    return {
        "default_period": period if isinstance(period, str) and period else "month",
        "top_list_size": _positive_int(display.get("top_list_size"), 10, upper=100),
        "heatmap_weeks": _positive_int(display.get("heatmap_weeks"), DEFAULT_CONFIG.heatmap_weeks),
    }


def _concert_defaults() -> dict[str, Any]:
    concerts = _settings_section("concerts")
    location = concerts.get("location")
    try:
        radius = float(concerts.get("radius_miles"))
    except (TypeError, ValueError):
        radius = DEFAULT_RADIUS_MILES
    return {
        "location": location if isinstance(location, str) and location else None,
        "radius_miles": radius if radius > 0 else DEFAULT_RADIUS_MILES,
    }


@router.get("/overview")
async def get_overview(
    user_id: str = Query(..., description="User to report on"),
    period: str | None = Query(
        None,
        description="Time period: week, month, year, all, YYYY, or YYYY-MM (default: saved setting)",
    ),
    limit: int | None = Query(
        None, ge=1, le=100, description="Max items per top list (defaults to the saved list size)"
    ),
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """
    Get high-level listening statistics.

    Returns totals, top artists/tracks/albums and recent plays.
    """
    display = _display_defaults()
    try:
        return service.get_overview(
            user_id,
            period or display["default_period"],
            limit or display["top_list_size"],
        )
    except PeriodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to get overview stats")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/diversity")
async def get_diversity(
    user_id: str = Query(..., description="User to report on"),
    period: str | None = Query(None, description="Time period (defaults to the saved display period)"),
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """Get genre/artist diversity scores and distributions."""
    try:
        return service.get_diversity(user_id, period or _display_defaults()["default_period"])
    except PeriodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to get diversity")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/temporal")
async def get_temporal(
    user_id: str = Query(..., description="User to report on"),
    period: str = Query("year", description="Time period"),
    weeks: int | None = Query(
        None, ge=1, le=260, description="Heatmap weeks (defaults to the saved heatmap size)"
    ),
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """Get hourly and weekday distributions, streaks and the activity heatmap."""
    try:
        return service.get_temporal(
            user_id, period, heatmap_weeks=weeks or _display_defaults()["heatmap_weeks"]
        )
    except PeriodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to get temporal patterns")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/obsessions")
async def get_obsessions(
    user_id: str = Query(..., description="User to report on"),
    period: str = Query("all", description="Time period"),
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """Get current and past track/artist obsessions."""
    try:
        return service.get_obsessions(user_id, period)
    except PeriodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to detect obsessions")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/wrapped")
async def get_wrapped(
    user_id: str = Query(..., description="User to report on"),
    period: str = Query("month", description="Period kind: month, year or custom"),
    year: int | None = Query(None, description="Year (defaults to current)"),
    month: int | None = Query(None, ge=1, le=12, description="Month 1-12 (month period only)"),
    start: datetime | None = Query(None, description="Custom period start"),
    end: datetime | None = Query(None, description="Custom period end"),
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """
    Generate a wrapped recap for a month, a year or a custom range.
    """
    try:
        return service.get_wrapped(user_id, period, year=year, month=month, start=start, end=end)
    except PeriodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to generate wrapped")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/compare")
async def get_comparison(
    user_id: str = Query(..., description="User to report on"),
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """Compare the user's last 30 days with every other user."""
    try:
        return service.get_comparison(user_id)
    except Exception as e:
        logger.exception("Failed to build comparison")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/playlist")
async def analyze_playlist(
    payload: PlaylistAnalysisRequest,
    user_id: str = Query(..., description="User to report on"),
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """Analyze a playlist against the user's listening history."""
    playlist = payload.model_dump(exclude={"tracks"})
    tracks = [
        PlaylistTrack.from_dict(track.model_dump()) if track is not None else None
        for track in payload.tracks
    ]
    try:
        return service.get_playlist_analysis(user_id, playlist, tracks)
    except Exception as e:
        logger.exception("Failed to analyze playlist %s", payload.id)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/genre-evolution")
async def get_genre_evolution(
    user_id: str = Query(..., description="User to report on"),
    period: str = Query("year", description="Time period"),
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """Get monthly genre shares with rising, declining and new genres."""
    try:
        return service.get_genre_evolution(user_id, period)
    except PeriodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to get genre evolution")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/genres")
async def get_genres(
    user_id: str = Query(..., description="User to report on"),
    period: str | None = Query(None, description="Time period (defaults to the saved display period)"),
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """Get every genre heard in the period, ranked by listening time."""
    try:
        return service.get_genres(user_id, period or _display_defaults()["default_period"])
    except PeriodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to get genres")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/genres/{genre}")
async def get_genre_detail(
    genre: str,
    user_id: str = Query(..., description="User to report on"),
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """Get one genre's top artists, top tracks and totals over all plays."""
    try:
        return service.get_genre_detail(user_id, genre)
    except Exception as e:
        logger.exception("Failed to get genre %s", genre)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/insights")
async def get_insights(
    user_id: str = Query(..., description="User to report on"),
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """Get listening insights for the last 90 days."""
    try:
        return service.get_insights(user_id)
    except Exception as e:
        logger.exception("Failed to get insights")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/new-artists")
async def get_new_artists(
    user_id: str = Query(..., description="User to report on"),
    period: str | None = Query(None, description="Time period (defaults to the saved display period)"),
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """Get artists first heard during the period."""
    try:
        return service.get_new_artists(user_id, period or _display_defaults()["default_period"])
    except PeriodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Failed to get new artists")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/concerts")
async def get_concerts(
    user_id: str = Query(..., description="User to report on"),
    location: str | None = Query(
        None, description="Search location, e.g. 'New York, NY' (defaults to the saved location)"
    ),
    radius_miles: float | None = Query(
        None, gt=0, description="Search radius in miles (defaults to the saved radius)"
    ),
    service: StatsService = Depends(get_stats_service),
    lookup: ConcertLookup | None = Depends(get_concert_lookup),
) -> dict[str, Any]:
    """Get upcoming concerts for the user's top artists."""
    if lookup is None:
        raise HTTPException(status_code=503, detail="Concert lookup is not configured")
    defaults = _concert_defaults()
    try:
        return service.get_concerts(
            user_id,
            lookup,
            radius_miles=radius_miles or defaults["radius_miles"],
            location=location or defaults["location"],
        )
    except Exception as e:
        logger.exception("Failed to get concerts")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/share/{token}")
async def get_share_snapshot(
    token: str,
    service: StatsService = Depends(get_stats_service),
) -> dict[str, Any]:
    """Public snapshot behind a share link."""
    try:
        snapshot = service.get_share_snapshot(token)
    except Exception as e:
        logger.exception("Failed to build share snapshot")
        raise HTTPException(status_code=500, detail=str(e))
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Share link not found or expired")
    return snapshot
