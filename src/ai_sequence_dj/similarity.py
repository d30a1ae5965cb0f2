from __future__ import annotations

from typing import Sequence

from ai_sequence_dj.models import ReferenceTrack, TrackMetadata

_ARTIST_WEIGHT = 0.5
_TITLE_WEIGHT = 0.3
_POPULARITY_WEIGHT = 0.2


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ch_a in enumerate(a, start=1):
        current = [i]
        for j, ch_b in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ch_a != ch_b),
            ))
        previous = current
    return previous[-1]


def title_similarity(a: str, b: str) -> float:
    """Normalized edit-distance similarity of two titles, in [0, 1].

    Comparison ignores case and surrounding whitespace. Two empty titles are
    identical; an empty title never matches a non-empty one.
    """

    a = (a or "").strip().lower()
    b = (b or "").strip().lower()
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - levenshtein(a, b) / max(len(a), len(b))


def _artists_overlap(a: str, b: str) -> bool:
    a = a.strip().lower()
    b = b.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def _popularity_closeness(a: int | None, b: int | None) -> float:
    if a is None or b is None:
        return 0.0
    return max(0.0, 1.0 - abs(a - b) / 100.0)


def _pair_similarity(candidate: TrackMetadata, reference: ReferenceTrack | TrackMetadata) -> float:
    score = 0.0
    if _artists_overlap(candidate.artist, reference.artist):
        score += _ARTIST_WEIGHT
    score += _TITLE_WEIGHT * title_similarity(candidate.title, reference.title)
    score += _POPULARITY_WEIGHT * _popularity_closeness(candidate.popularity, reference.popularity)
    return score


def track_similarity(
    candidate: TrackMetadata,
    references: Sequence[ReferenceTrack | TrackMetadata],
) -> float:
    """Best single-reference match for a candidate (max, not average)."""
    if not references:
        return 0.0
    best = max(_pair_similarity(candidate, ref) for ref in references)
    return min(1.0, best)
