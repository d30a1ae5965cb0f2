from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from ai_sequence_dj.models import MoodProfile, TrackMetadata, normalize_genre

DEFAULT_MOOD_PROFILES: Mapping[str, MoodProfile] = MappingProxyType({
    "happy": MoodProfile(("pop", "dance", "indie-pop", "funk"), (50, 100)),
    "sad": MoodProfile(("acoustic", "indie", "folk", "blues"), (0, 60)),
    "energetic": MoodProfile(("rock", "electronic", "dance", "hip-hop", "metal"), (60, 100)),
    "calm": MoodProfile(("ambient", "classical", "jazz", "acoustic", "chill"), (0, 50)),
    "romantic": MoodProfile(("r&b", "soul", "jazz", "pop"), (30, 80)),
})

NEUTRAL_MOOD = MoodProfile()

_GENRE_WEIGHT = 0.6
_POPULARITY_WEIGHT = 0.4
# Popularity points over which the out-of-range credit decays to zero.
_POPULARITY_FALLOFF = 50.0


def resolve_mood(label: str | None, table: Mapping[str, MoodProfile] = DEFAULT_MOOD_PROFILES) -> MoodProfile:
    """Look up the genre/popularity profile for a mood label.

    Matching is case-insensitive. Unknown or missing labels resolve to the
    neutral profile (no genres, full popularity range).
    """

    if not label:
        return NEUTRAL_MOOD
    return table.get(label.strip().lower(), NEUTRAL_MOOD)


def mood_similarity(track: TrackMetadata, profile: MoodProfile) -> float:
    score = 0.0
    preferred = {normalize_genre(g) for g in profile.preferred_genres}
    if normalize_genre(track.genre) in preferred:
        score += _GENRE_WEIGHT

    if track.popularity is not None:
        low, high = profile.popularity_range
        if low <= track.popularity <= high:
            score += _POPULARITY_WEIGHT
        else:
            distance = min(abs(track.popularity - low), abs(track.popularity - high))
            score += max(0.0, _POPULARITY_WEIGHT - distance / _POPULARITY_FALLOFF)
    return min(1.0, score)
