from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import structlog

from ai_sequence_dj.context import DEFAULT_CONTEXT_RULES, ContextRules
from ai_sequence_dj.models import MoodProfile
from ai_sequence_dj.mood import DEFAULT_MOOD_PROFILES


def load_local_env_file(env_path: str = ".env") -> None:
    """Load key=value pairs from a local .env file into process env.

    Existing environment variables are preserved and not overwritten.
    """

    path = Path(env_path)
    if not path.exists():
        return

    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")

        if key and key not in os.environ:
            os.environ[key] = value


def env_int(name: str, fallback: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return fallback
    try:
        return int(raw)
    except ValueError:
        return fallback


def env_float(name: str, fallback: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return fallback
    try:
        return float(raw)
    except ValueError:
        return fallback


def configure_logging(level: str = "INFO") -> None:
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )


@dataclass(frozen=True, slots=True)
class WeightProfile:
    """Named scoring calibration.

    Base preference weights apply with or without history; the sequence
    weights only apply once a listening history is present.
    """

    name: str

    # Base preference scoring.
    genre_match: float = 3.0
    similarity: float = 2.0
    # When set, the similarity term is min(similarity * weight, cap).
    similarity_cap: float | None = None
    mood: float = 2.0
    # When set, mood similarity below the threshold costs mood_penalty points.
    mood_penalty_threshold: float | None = None
    mood_penalty: float = 1.0
    context: float = 2.0
    popularity_bonus: float = 1.0
    popularity_bonus_threshold: int = 70
    tempo: float = 1.0

    # Sequence scoring.
    base_weight: float = 1.0
    predicted_genre: float = 3.0
    popularity_progression: float = 2.0
    progression_tolerance: float = 20.0
    artist_transition: float = 2.0
    diversity_window: int = 5
    low_diversity_threshold: float = 0.5
    high_diversity_threshold: float = 0.8
    diversity_bonus: float = 1.5
    continuity_bonus: float = 0.5
    genre_frequency: float = 0.0
    genre_frequency_min_count: int = 2
    convergent_evidence: float = 0.0
    rich_predictor: bool = True


WEIGHT_PROFILES: Mapping[str, WeightProfile] = MappingProxyType({
    "sequence": WeightProfile(
        name="sequence",
        similarity=4.0,
        similarity_cap=2.0,
        mood_penalty_threshold=0.2,
        base_weight=0.5,
        genre_frequency=1.0,
        convergent_evidence=2.0,
    ),
    "balanced": WeightProfile(
        name="balanced",
        rich_predictor=False,
    ),
})

DEFAULT_PROFILE = "sequence"


def get_profile(name: str | None = None) -> WeightProfile:
    key = (name or DEFAULT_PROFILE).strip().lower()
    try:
        return WEIGHT_PROFILES[key]
    except KeyError:
        known = ", ".join(sorted(WEIGHT_PROFILES))
        raise ValueError(f"Unknown scoring profile {name!r}. Known profiles: {known}.") from None


@dataclass(frozen=True, slots=True)
class EngineConfig:
    profile: WeightProfile = field(default_factory=get_profile)
    mood_profiles: Mapping[str, MoodProfile] = field(default_factory=lambda: DEFAULT_MOOD_PROFILES)
    context_rules: ContextRules = field(default_factory=lambda: DEFAULT_CONTEXT_RULES)
    max_results: int = 20
    history_query_cap: int = 6
    reference_query_cap: int = 10
    search_limit: int = 20
    request_timeout: float = 10.0
    request_deadline: float = 30.0
    max_workers: int = 8

    @classmethod
    def from_env(cls) -> "EngineConfig":
        defaults = cls()
        return cls(
            profile=get_profile(os.getenv("RECOMMENDER_PROFILE") or None),
            max_results=env_int("MAX_RESULTS", defaults.max_results),
            search_limit=env_int("SEARCH_LIMIT", defaults.search_limit),
            request_timeout=env_float("REQUEST_TIMEOUT", defaults.request_timeout),
            request_deadline=env_float("REQUEST_DEADLINE", defaults.request_deadline),
            max_workers=env_int("MAX_WORKERS", defaults.max_workers),
        )

    def with_profile(self, name: str | None) -> "EngineConfig":
        if not name:
            return self
        return replace(self, profile=get_profile(name))
