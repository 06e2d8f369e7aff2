"""Configuration for the listening analytics engine."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent
REPO_ROOT = BASE_DIR.parent


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


METADATA_DIR = Path(os.environ.get("LISTENSTATS_METADATA_DIR", REPO_ROOT / ".metadata"))

# Connection pool
DB_POOL_MIN_SIZE = int(os.environ.get("LISTENSTATS_DB_POOL_MIN", "2"))
DB_POOL_MAX_SIZE = int(os.environ.get("LISTENSTATS_DB_POOL_MAX", "10"))
DB_POOL_TIMEOUT = float(os.environ.get("LISTENSTATS_DB_POOL_TIMEOUT", "30"))
DB_POOL_MAX_IDLE = float(os.environ.get("LISTENSTATS_DB_POOL_MAX_IDLE", "300"))

# Enrichment fan-out
ENRICHMENT_WORKERS = max(1, int(os.environ.get("LISTENSTATS_ENRICHMENT_WORKERS", "4")))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("LISTENSTATS_CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
DEBUG = _parse_bool(os.environ.get("LISTENSTATS_DEBUG"))


@dataclass
class AnalyticsConfig:
    """Algorithm constants for the analytics engine."""

    # Obsession detection
    obsession_min_plays: int = 50
    obsession_min_active_days: int = 3
    obsession_window_sizes: tuple[int, ...] = (7, 14, 21)
    obsession_spike_ratio: float = 2.0
    obsession_min_window_avg: float = 2.0
    track_min_period_plays: int = 5
    artist_min_period_plays: int = 10
    track_min_intensity: int = 30
    artist_min_intensity: int = 25
    current_track_cap: int = 3
    current_artist_cap: int = 2
    past_track_cap: int = 5
    past_artist_cap: int = 3
    obsession_list_cap: int = 10
    cooling_days: int = 7

    # Diversity
    exploration_genre_calibration: int = 150
    diversity_weights: dict = field(
        default_factory=lambda: {
            "genre_diversity": 0.35,
            "artist_diversity": 0.35,
            "exploration_score": 0.15,
            "niche_score": 0.15,
        }
    )
    genre_distribution_size: int = 20
    artist_distribution_size: int = 10

    # Temporal patterns
    heatmap_weeks: int = 52

    # Reports
    wrapped_top_artists: int = 10
    wrapped_top_tracks: int = 10
    wrapped_top_albums: int = 5
    wrapped_top_genres: int = 10
    comparison_window_days: int = 30
    insights_window_days: int = 90
    insights_min_plays: int = 50
    new_artists_limit: int = 5
    concert_artist_fanout: int = 8


DEFAULT_CONFIG = AnalyticsConfig()
