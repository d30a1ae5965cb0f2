from __future__ import annotations

from collections import Counter
from typing import Sequence

from ai_sequence_dj.models import SequencePattern, TrackMetadata

TRANSITION_SEPARATOR = "->"

_POPULARITY_CHANGE = 10
_YEAR_CHANGE = 2
_SLOPE_POINTS = 3


def transition_key(src: str, dst: str) -> str:
    return f"{src}{TRANSITION_SEPARATOR}{dst}"


def _count_transitions(values: Sequence[str]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for src, dst in zip(values, values[1:]):
        key = transition_key(src, dst)
        counts[key] = counts.get(key, 0) + 1
    return counts


def _change_points(values: Sequence[int | None], threshold: int) -> list[int]:
    kept: list[int] = []
    for value in values:
        if value is None:
            continue
        if not kept or abs(value - kept[-1]) > threshold:
            kept.append(value)
    return kept


def analyze_sequence(history: Sequence[TrackMetadata]) -> SequencePattern:
    """Mine transitions, trends and artist diversity from an ordered history.

    History runs oldest to newest. Trends keep the first point and then only
    points that moved more than the change threshold away from the last kept
    point; tracks with no popularity or year are skipped for that trend.
    """

    if not history:
        return SequencePattern()

    artists = [t.artist for t in history]
    return SequencePattern(
        genre_transitions=_count_transitions([t.genre for t in history]),
        artist_transitions=_count_transitions(artists),
        popularity_trend=_change_points([t.popularity for t in history], _POPULARITY_CHANGE),
        release_year_trend=_change_points([t.release_year for t in history], _YEAR_CHANGE),
        artist_diversity=len({a.lower() for a in artists}) / len(artists),
    )


def popularity_trend_slope(trend: Sequence[int]) -> float:
    """Mean successive delta over the last few kept trend points."""
    recent = list(trend[-_SLOPE_POINTS:])
    if len(recent) < 2:
        return 0.0
    deltas = [b - a for a, b in zip(recent, recent[1:])]
    return sum(deltas) / len(deltas)


def recent_artist_diversity(history: Sequence[TrackMetadata], window: int = 5) -> float | None:
    recent = history[-window:]
    if not recent:
        return None
    return len({t.artist.lower() for t in recent}) / len(recent)


def _outgoing(pattern: SequencePattern, genre: str) -> list[tuple[str, int]]:
    prefix = genre + TRANSITION_SEPARATOR
    # dicts keep first-seen order, and sorted() is stable, so ties resolve to the earliest transition.
    outgoing = [(key[len(prefix):], count) for key, count in pattern.genre_transitions.items() if key.startswith(prefix)]
    return sorted(outgoing, key=lambda item: item[1], reverse=True)


def predict_next_genre(pattern: SequencePattern, history: Sequence[TrackMetadata]) -> str | None:
    if not history:
        return None
    last_genre = history[-1].genre
    outgoing = _outgoing(pattern, last_genre)
    return outgoing[0][0] if outgoing else last_genre


def frequent_genres(history: Sequence[TrackMetadata], limit: int = 3) -> list[str]:
    return [genre for genre, _ in Counter(t.genre for t in history).most_common(limit)]


def predict_genre_set(pattern: SequencePattern, history: Sequence[TrackMetadata]) -> tuple[str, ...]:
    """Acceptance set of plausible next genres.

    Union of the two strongest transitions out of the last genre with the
    three most frequent genres of the whole history, in that order.
    """

    if not history:
        return ()
    last_genre = history[-1].genre
    accepted: list[str] = []
    for genre, _ in _outgoing(pattern, last_genre)[:2]:
        if genre not in accepted:
            accepted.append(genre)
    for genre in frequent_genres(history):
        if genre not in accepted:
            accepted.append(genre)
    return tuple(accepted) or (last_genre,)
