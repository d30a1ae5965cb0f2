from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping, Sequence

from ai_sequence_dj.config import WeightProfile
from ai_sequence_dj.context import DEFAULT_CONTEXT_RULES, ContextRules, context_score
from ai_sequence_dj.models import (
    Context,
    MoodProfile,
    Preferences,
    ReferenceTrack,
    SequencePattern,
    TrackMetadata,
    normalize_genre,
)
from ai_sequence_dj.mood import DEFAULT_MOOD_PROFILES, mood_similarity, resolve_mood
from ai_sequence_dj.sequence import (
    analyze_sequence,
    popularity_trend_slope,
    predict_genre_set,
    predict_next_genre,
    recent_artist_diversity,
    transition_key,
)
from ai_sequence_dj.similarity import title_similarity, track_similarity


def _genre_set(values: Iterable[str]) -> frozenset[str]:
    return frozenset(normalize_genre(v) for v in values if v and v.strip())


@dataclass(frozen=True)
class ScoringInputs:
    """Per-request signals shared by every candidate."""

    preferences: Preferences
    context: Context
    mood_profile: MoodProfile
    history: tuple[TrackMetadata, ...] = ()
    references: tuple[ReferenceTrack, ...] = ()
    preferred_genres: frozenset[str] = frozenset()
    extracted_genres: frozenset[str] = frozenset()
    pattern: SequencePattern | None = None
    predicted_genres: tuple[str, ...] = ()
    frequent_genres: frozenset[str] = frozenset()
    artist_counts: Mapping[str, int] = field(default_factory=dict)
    recent_diversity: float | None = None
    trend_slope: float = 0.0

    @property
    def similarity_anchor(self) -> str | None:
        if self.preferences.current_track:
            return self.preferences.current_track
        if self.history:
            return self.history[-1].title
        return None


class ScoringEngine:
    def __init__(
        self,
        profile: WeightProfile,
        context_rules: ContextRules = DEFAULT_CONTEXT_RULES,
        mood_profiles: Mapping[str, MoodProfile] = DEFAULT_MOOD_PROFILES,
    ) -> None:
        self.profile = profile
        self.context_rules = context_rules
        self.mood_profiles = mood_profiles

    def prepare(
        self,
        preferences: Preferences,
        context: Context | None = None,
        history: Sequence[TrackMetadata] = (),
        references: Sequence[ReferenceTrack] = (),
        extracted_genres: Iterable[str] = (),
    ) -> ScoringInputs:
        history = tuple(history)
        mood_profile = resolve_mood(preferences.mood, self.mood_profiles)
        inputs = ScoringInputs(
            preferences=preferences,
            context=context or Context(),
            mood_profile=mood_profile,
            history=history,
            references=tuple(references),
            preferred_genres=_genre_set(preferences.preferred_genres),
            extracted_genres=_genre_set(extracted_genres),
        )
        if not history:
            return inputs

        pattern = analyze_sequence(history)
        if self.profile.rich_predictor:
            predicted = predict_genre_set(pattern, history)
        else:
            predicted = (predict_next_genre(pattern, history),)
        genre_counts = Counter(normalize_genre(t.genre) for t in history)
        return replace(
            inputs,
            pattern=pattern,
            predicted_genres=predicted,
            frequent_genres=frozenset(
                genre for genre, count in genre_counts.items()
                if count >= self.profile.genre_frequency_min_count
            ),
            artist_counts=Counter(t.artist.lower() for t in history),
            recent_diversity=recent_artist_diversity(history, self.profile.diversity_window),
            trend_slope=popularity_trend_slope(pattern.popularity_trend),
        )

    def _similarity_term(self, track: TrackMetadata, inputs: ScoringInputs) -> float:
        if inputs.references:
            similarity = track_similarity(track, inputs.references)
        elif inputs.similarity_anchor:
            similarity = title_similarity(track.title, inputs.similarity_anchor)
        else:
            return 0.0
        term = self.profile.similarity * similarity
        if self.profile.similarity_cap is not None:
            term = min(term, self.profile.similarity_cap)
        return term

    def _mood_term(self, track: TrackMetadata, inputs: ScoringInputs) -> float:
        if not inputs.preferences.mood:
            return 0.0
        similarity = mood_similarity(track, inputs.mood_profile)
        threshold = self.profile.mood_penalty_threshold
        if threshold is not None and similarity < threshold:
            return -self.profile.mood_penalty
        return self.profile.mood * similarity

    def _tempo_term(self, track: TrackMetadata, inputs: ScoringInputs) -> float:
        tempo_range = inputs.preferences.tempo_range
        if tempo_range is None or track.tempo is None:
            return 0.0
        low, high = tempo_range
        return self.profile.tempo if low <= track.tempo <= high else 0.0

    def base_preference_score(self, track: TrackMetadata, inputs: ScoringInputs) -> float:
        profile = self.profile
        genre = normalize_genre(track.genre)
        score = 0.0
        if genre in inputs.preferred_genres or genre in inputs.extracted_genres:
            score += profile.genre_match
        score += self._similarity_term(track, inputs)
        score += self._mood_term(track, inputs)
        if inputs.references:
            score += profile.context * context_score(track, inputs.context, self.context_rules)
        if track.popularity is not None and track.popularity > profile.popularity_bonus_threshold:
            score += profile.popularity_bonus
        score += self._tempo_term(track, inputs)
        return score

    def _diversity_adjustment(self, track: TrackMetadata, inputs: ScoringInputs) -> float:
        profile = self.profile
        diversity = inputs.recent_diversity
        if diversity is None:
            return 0.0
        artist = track.artist.lower()
        last_artist = inputs.history[-1].artist.lower()
        if diversity < profile.low_diversity_threshold:
            if artist != last_artist and inputs.artist_counts.get(artist, 0) <= 1:
                return profile.diversity_bonus
        elif diversity > profile.high_diversity_threshold and artist == last_artist:
            return profile.continuity_bonus
        return 0.0

    def sequence_score(self, track: TrackMetadata, inputs: ScoringInputs) -> float:
        profile = self.profile
        pattern = inputs.pattern
        last = inputs.history[-1]
        genre = normalize_genre(track.genre)
        predicted = _genre_set(inputs.predicted_genres)
        score = 0.0

        if genre in predicted:
            score += profile.predicted_genre

        if track.popularity is not None and last.popularity is not None:
            delta = track.popularity - last.popularity
            if abs(delta - inputs.trend_slope) < profile.progression_tolerance:
                score += profile.popularity_progression

        same_artist = track.artist.lower() == last.artist.lower()
        seen_pair = (
            transition_key(last.artist, track.artist) in pattern.artist_transitions
            or transition_key(track.artist, last.artist) in pattern.artist_transitions
        )
        if same_artist or seen_pair:
            score += profile.artist_transition

        score += profile.base_weight * self.base_preference_score(track, inputs)
        score += self._diversity_adjustment(track, inputs)

        if profile.genre_frequency and genre in inputs.frequent_genres:
            score += profile.genre_frequency
        if profile.convergent_evidence and genre in predicted:
            explicit = inputs.preferred_genres | _genre_set(inputs.mood_profile.preferred_genres)
            if genre in explicit:
                score += profile.convergent_evidence
        return score

    def score(self, track: TrackMetadata, inputs: ScoringInputs) -> float:
        if inputs.history:
            raw = self.sequence_score(track, inputs)
        else:
            raw = self.base_preference_score(track, inputs)
        return round(raw, 2)
