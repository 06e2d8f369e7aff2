# Listening Reports
# Period recaps, comparisons, playlist analysis and exports built on the
# analytics engines

from .comparison import build_comparison_report, percentile_rank
from .discovery import find_new_artists
from .export import EXPORT_TYPES, build_export, export_csv
from .genre_evolution import build_genre_evolution
from .genres import build_genre_detail, build_genre_listing
from .insights import build_insights
from .overview import build_overview
from .periods import PeriodBounds, PeriodError, parse_period, wrapped_period
from .playlist import PlaylistArtist, PlaylistTrack, build_playlist_report
from .snapshot import build_share_snapshot, is_share_expired
from .wrapped import build_wrapped_report

__all__ = [
    "PeriodBounds",
    "PeriodError",
    "parse_period",
    "wrapped_period",
    "build_wrapped_report",
    "build_comparison_report",
    "percentile_rank",
    "PlaylistTrack",
    "PlaylistArtist",
    "build_playlist_report",
    "build_share_snapshot",
    "is_share_expired",
    "build_overview",
    "find_new_artists",
    "build_genre_evolution",
    "build_genre_listing",
    "build_genre_detail",
    "build_insights",
    "build_export",
    "export_csv",
    "EXPORT_TYPES",
]
