from __future__ import annotations

from dataclasses import dataclass, field

UNKNOWN_GENRE = "Unknown Genre"
UNKNOWN_ARTIST = "Unknown Artist"

TIMES_OF_DAY = ("morning", "afternoon", "evening", "night")
ACTIVITIES = ("workout", "study", "party", "relax")


def normalize_genre(genre: str) -> str:
    # Catalog genres come as "hip hop" or "Indie Pop"; lookup tables use "hip-hop".
    return "-".join(genre.strip().lower().split())


@dataclass(frozen=True, slots=True)
class TrackMetadata:
    id: str
    title: str
    artist: str
    genre: str = UNKNOWN_GENRE
    popularity: int | None = None
    release_year: int | None = None
    album: str | None = None
    artist_id: str | None = None
    tempo: float | None = None


@dataclass(frozen=True, slots=True)
class ReferenceTrack:
    """Caller-chosen track stub used as an explicit preference."""

    id: str
    title: str
    artist: str
    artist_id: str | None = None
    popularity: int | None = None


@dataclass(frozen=True, slots=True)
class Preferences:
    preferred_genres: tuple[str, ...] = ()
    mood: str | None = None
    current_track: str | None = None
    tempo_range: tuple[float, float] | None = None


@dataclass(frozen=True, slots=True)
class Context:
    time_of_day: str | None = None
    activity: str | None = None


@dataclass(frozen=True, slots=True)
class MoodProfile:
    preferred_genres: tuple[str, ...] = ()
    popularity_range: tuple[int, int] = (0, 100)


@dataclass(slots=True)
class SequencePattern:
    genre_transitions: dict[str, int] = field(default_factory=dict)
    artist_transitions: dict[str, int] = field(default_factory=dict)
    popularity_trend: list[int] = field(default_factory=list)
    release_year_trend: list[int] = field(default_factory=list)
    # None for an empty history.
    artist_diversity: float | None = None

    def to_dict(self) -> dict:
        return {
            "genre_transitions": dict(self.genre_transitions),
            "artist_transitions": dict(self.artist_transitions),
            "popularity_trend": list(self.popularity_trend),
            "release_year_trend": list(self.release_year_trend),
            "artist_diversity": self.artist_diversity,
        }


@dataclass(frozen=True, slots=True)
class Recommendation:
    track: TrackMetadata
    score: float


@dataclass(frozen=True, slots=True)
class EvaluationMetrics:
    genre_coherence: float = 1.0
    popularity_smoothness: float = 1.0
    genre_consistency: float = 1.0


@dataclass(slots=True)
class RecommendationResult:
    recommendations: list[Recommendation]
    evaluation_metrics: EvaluationMetrics
    search_strategy: str
    sequence_analysis: SequencePattern | None = None
    diagnostics: dict = field(default_factory=dict)
