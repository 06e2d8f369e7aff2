# Listening Analytics Engine
# Pure functions turning play records into aggregates, diversity scores,
# temporal patterns, obsessions and mood profiles

from .aggregation import aggregate, by_album, by_artist, by_track, percentage, top_n
from .diversity import compute_diversity, shannon_diversity
from .errors import AnalyticsError
from .genres import NO_GENRES, GenreIndex, parse_genres
from .models import (
    AggregatedEntity,
    DiversityScoreSet,
    MoodScore,
    ObsessionPeriod,
    PlayRecord,
)
from .mood import MOOD_TAXONOMY, classify_mood
from .obsession import detect_obsessions
from .temporal import calculate_streak, compute_temporal_patterns

__all__ = [
    # Models
    "PlayRecord",
    "AggregatedEntity",
    "DiversityScoreSet",
    "ObsessionPeriod",
    "MoodScore",
    "AnalyticsError",
    # Genres
    "GenreIndex",
    "NO_GENRES",
    "parse_genres",
    # Aggregation
    "aggregate",
    "top_n",
    "percentage",
    "by_track",
    "by_artist",
    "by_album",
    # Engines
    "compute_diversity",
    "shannon_diversity",
    "compute_temporal_patterns",
    "calculate_streak",
    "detect_obsessions",
    "classify_mood",
    "MOOD_TAXONOMY",
]
