from __future__ import annotations

from collections import Counter
from dataclasses import asdict
from typing import Sequence

from ai_sequence_dj.models import EvaluationMetrics, Recommendation, TrackMetadata, normalize_genre

# Mean popularity jump at which smoothness bottoms out.
_SMOOTHNESS_SCALE = 50.0


def genre_consistency(genres: Sequence[str]) -> float:
    """Diversity ratio: unique genres over total."""
    if len(genres) < 2:
        return 1.0
    return len(set(genres)) / len(genres)


def genre_coherence(genres: Sequence[str]) -> float:
    """Dominant-genre ratio: share of the most common genre."""
    if len(genres) < 2:
        return 1.0
    return Counter(genres).most_common(1)[0][1] / len(genres)


def popularity_smoothness(popularities: Sequence[int | None]) -> float:
    if len(popularities) < 2:
        return 1.0
    deltas = [abs(b - a) for a, b in zip(popularities, popularities[1:]) if a is not None and b is not None]
    if not deltas:
        return 1.0
    return max(0.0, 1.0 - (sum(deltas) / len(deltas)) / _SMOOTHNESS_SCALE)


def evaluate_recommendations(recommendations: Sequence[Recommendation]) -> EvaluationMetrics:
    genres = [normalize_genre(r.track.genre) for r in recommendations]
    return EvaluationMetrics(
        genre_coherence=round(genre_coherence(genres), 4),
        popularity_smoothness=round(popularity_smoothness([r.track.popularity for r in recommendations]), 4),
        genre_consistency=round(genre_consistency(genres), 4),
    )


_SAMPLE_TRACKS = (
    TrackMetadata("sample-1", "Levitating", "Dua Lipa", "pop", 86, 2020),
    TrackMetadata("sample-2", "Blinding Lights", "The Weeknd", "pop", 91, 2019),
    TrackMetadata("sample-3", "Mr. Brightside", "The Killers", "rock", 83, 2004),
    TrackMetadata("sample-4", "Electric Feel", "MGMT", "pop", 78, 2007),
    TrackMetadata("sample-5", "So What", "Miles Davis", "jazz", 65, 1959),
)

_METRIC_DESCRIPTIONS = {
    "genre_coherence": "Share of the most common genre in the list (1.0 = single genre).",
    "popularity_smoothness": "1 - mean absolute popularity change between neighbours / 50, floored at 0.",
    "genre_consistency": "Unique genres divided by list length (higher = more varied).",
}


def describe_evaluation() -> dict:
    """Static sample inputs with their metrics, for documentation and self-test."""
    sample = [Recommendation(track, score) for track, score in zip(_SAMPLE_TRACKS, (9.5, 9.0, 8.0, 7.5, 6.0))]
    return {
        "sample_recommendations": [
            {"track": asdict(r.track), "score": r.score} for r in sample
        ],
        "evaluation_metrics": asdict(evaluate_recommendations(sample)),
        "metric_descriptions": dict(_METRIC_DESCRIPTIONS),
        "notes": "All metrics default to 1.0 for lists shorter than two entries.",
    }
