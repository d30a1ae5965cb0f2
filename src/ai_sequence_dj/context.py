from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from ai_sequence_dj.models import Context, TrackMetadata, normalize_genre

_TIME_WEIGHT = 0.6
_ACTIVITY_WEIGHT = 0.4


@dataclass(frozen=True, slots=True)
class ContextRule:
    """A genre-set rule with optional exclusive popularity bounds."""

    genres: frozenset[str]
    score: float
    popularity_above: int | None = None
    popularity_below: int | None = None

    def matches(self, genre: str, popularity: int | None) -> bool:
        if genre not in self.genres:
            return False
        if self.popularity_above is not None and (popularity is None or popularity <= self.popularity_above):
            return False
        if self.popularity_below is not None and (popularity is None or popularity >= self.popularity_below):
            return False
        return True


@dataclass(frozen=True, slots=True)
class ContextBucket:
    rules: tuple[ContextRule, ...]
    default: float


def _rule(genres: str, score: float, above: int | None = None, below: int | None = None) -> ContextRule:
    return ContextRule(frozenset(genres.split()), score, above, below)


TIME_OF_DAY_RULES: Mapping[str, ContextBucket] = MappingProxyType({
    "morning": ContextBucket((
        _rule("pop dance electronic", 1.0, above=60),
        _rule("rock indie-pop", 0.8, above=40),
        _rule("jazz acoustic", 0.6),
    ), 0.3),
    "afternoon": ContextBucket((
        _rule("pop indie alternative", 0.9),
        _rule("rock electronic", 0.7, above=30),
        _rule("jazz acoustic folk", 0.8),
    ), 0.5),
    "evening": ContextBucket((
        _rule("indie alternative acoustic", 1.0),
        _rule("pop electronic", 0.8, above=40),
        _rule("jazz ambient", 0.9),
        _rule("rock", 0.6),
    ), 0.4),
    "night": ContextBucket((
        _rule("ambient chill electronic", 1.0),
        _rule("jazz acoustic indie", 0.9),
        _rule("dance electronic", 0.8, above=70),
        _rule("rock metal", 0.5),
    ), 0.3),
})

ACTIVITY_RULES: Mapping[str, ContextBucket] = MappingProxyType({
    "workout": ContextBucket((
        _rule("rock electronic dance hip-hop metal", 1.0),
        _rule("pop", 0.8, above=60),
        _rule("indie alternative", 0.6, above=40),
    ), 0.2),
    "study": ContextBucket((
        _rule("ambient classical jazz acoustic", 1.0),
        _rule("indie folk", 0.8),
        _rule("electronic", 0.6, below=50),
        _rule("rock metal dance", 0.2),
    ), 0.4),
    "party": ContextBucket((
        _rule("dance electronic pop", 1.0, above=60),
        _rule("hip-hop rock", 0.8, above=50),
        _rule("indie-pop", 0.7, above=40),
        _rule("ambient classical acoustic", 0.1),
    ), 0.3),
    "relax": ContextBucket((
        _rule("ambient classical jazz acoustic chill", 1.0),
        _rule("indie folk", 0.9),
        _rule("electronic", 0.7, below=60),
        _rule("rock metal dance", 0.2),
    ), 0.5),
})


@dataclass(frozen=True, slots=True)
class ContextRules:
    time_of_day: Mapping[str, ContextBucket] = field(default_factory=lambda: TIME_OF_DAY_RULES)
    activity: Mapping[str, ContextBucket] = field(default_factory=lambda: ACTIVITY_RULES)


DEFAULT_CONTEXT_RULES = ContextRules()


def _bucket_score(bucket: ContextBucket, track: TrackMetadata) -> float:
    genre = normalize_genre(track.genre)
    for rule in bucket.rules:
        if rule.matches(genre, track.popularity):
            return rule.score
    return bucket.default


def time_of_day_score(track: TrackMetadata, time_of_day: str, rules: ContextRules = DEFAULT_CONTEXT_RULES) -> float:
    bucket = rules.time_of_day.get(time_of_day.lower())
    if bucket is None:
        raise ValueError(f"Unknown time of day: {time_of_day!r}")
    return _bucket_score(bucket, track)


def activity_score(track: TrackMetadata, activity: str, rules: ContextRules = DEFAULT_CONTEXT_RULES) -> float:
    bucket = rules.activity.get(activity.lower())
    if bucket is None:
        raise ValueError(f"Unknown activity: {activity!r}")
    return _bucket_score(bucket, track)


def context_score(track: TrackMetadata, context: Context, rules: ContextRules = DEFAULT_CONTEXT_RULES) -> float:
    """Blend time-of-day and activity affinity, capped at 1.0.

    A missing dimension contributes nothing to its own term.
    """

    combined = 0.0
    if context.time_of_day:
        combined += _TIME_WEIGHT * time_of_day_score(track, context.time_of_day, rules)
    if context.activity:
        combined += _ACTIVITY_WEIGHT * activity_score(track, context.activity, rules)
    return min(1.0, combined)
