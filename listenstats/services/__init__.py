from listenstats.services.enrichment import GatherResult, gather_lookups, recommend_concerts
from listenstats.services.stats_service import StatsService, get_stats_service

__all__ = [
    "GatherResult",
    "gather_lookups",
    "recommend_concerts",
    "StatsService",
    "get_stats_service",
]
