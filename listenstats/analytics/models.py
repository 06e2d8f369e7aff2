"""Data types shared by the analytics engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any


@dataclass(frozen=True)
class PlayRecord:
    """A single listening event with the joined track/artist/album attributes."""

    user_id: str
    track_id: str
    artist_id: str
    album_id: str
    played_at: datetime
    duration_ms: int
    track_name: str | None = None
    artist_name: str | None = None
    album_name: str | None = None
    album_image_url: str | None = None
    artist_image_url: str | None = None

    @property
    def play_date(self) -> date:
        return self.played_at.date()


@dataclass
class AggregatedEntity:
    """Running totals for one key of a group-by over play records."""

    key: str
    label: str | None
    play_count: int = 0
    total_ms: int = 0
    first_seen: datetime | None = None
    last_seen: datetime | None = None

    def add(self, record: PlayRecord) -> None:
        self.play_count += 1
        self.total_ms += record.duration_ms
        if self.first_seen is None or record.played_at < self.first_seen:
            self.first_seen = record.played_at
        if self.last_seen is None or record.played_at > self.last_seen:
            self.last_seen = record.played_at


@dataclass(frozen=True)
class DiversityScoreSet:
    """Diversity sub-scores, each bounded to [0, 100]."""

    overall: float = 0.0
    genre_diversity: float = 0.0
    artist_diversity: float = 0.0
    exploration_score: float = 0.0
    mainstream_score: float = 0.0
    niche_score: float = 0.0

    def rounded(self) -> dict[str, int]:
        return {name: round(value) for name, value in asdict(self).items()}


@dataclass(frozen=True)
class ObsessionPeriod:
    """The highest scoring listening binge found for one entity."""

    start_date: date
    end_date: date
    peak_date: date
    play_count: int
    total_ms: int
    avg_plays_per_day: float

    @property
    def span_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "peak_date": self.peak_date.isoformat(),
            "play_count": self.play_count,
            "total_ms": self.total_ms,
            "avg_plays_per_day": round(self.avg_plays_per_day, 1),
        }


@dataclass(frozen=True)
class MoodScore:
    mood: str
    score: int

    def to_dict(self) -> dict[str, Any]:
        return {"mood": self.mood, "score": self.score}


@dataclass
class ObsessionCandidate:
    """An entity whose obsession period passed the reporting thresholds."""

    id: str
    kind: str
    name: str | None
    image_url: str | None
    period: ObsessionPeriod
    total_plays: int
    status: str
    intensity: int
    artist_name: str | None = None
    top_tracks: list[dict[str, Any]] = field(default_factory=list)
    mood: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.kind,
            "name": self.name,
            "image_url": self.image_url,
            "obsession_period": self.period.to_dict(),
            "total_plays": self.total_plays,
            "current_status": self.status,
            "intensity": self.intensity,
        }
        if self.kind == "track":
            data["artist_name"] = self.artist_name
        else:
            data["top_tracks"] = self.top_tracks
            data["mood"] = self.mood
        return data
