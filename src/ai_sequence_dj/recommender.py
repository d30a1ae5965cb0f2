"""Recommendation entry points.

``score_and_rank`` is the pure core: given already-fetched metadata it scores,
deduplicates, ranks and evaluates. ``Recommender`` wraps it with the catalog
calls that resolve history, discover candidates and enrich them with genres.
"""
from __future__ import annotations

import time
import warnings
from typing import Sequence

import structlog

from ai_sequence_dj.analysis import build_track_metadata, placeholder_metadata
from ai_sequence_dj.catalog import CatalogClient
from ai_sequence_dj.config import EngineConfig
from ai_sequence_dj.discovery import build_discovery_queries, discover_candidates, fan_out
from ai_sequence_dj.metrics import evaluate_recommendations
from ai_sequence_dj.models import (
    Context,
    Preferences,
    Recommendation,
    RecommendationResult,
    ReferenceTrack,
    TrackMetadata,
)
from ai_sequence_dj.ranking import dedupe_candidates, rank_recommendations
from ai_sequence_dj.scoring import ScoringEngine

logger = structlog.get_logger(__name__)

STRATEGY_SEQUENCE = "sequence-analysis"
STRATEGY_REFERENCE = "reference-tracks"
STRATEGY_PREFERENCES = "genre-preferences"


class NoSignalError(ValueError):
    """Raised when a request carries nothing to recommend from."""


def has_signal(
    history: Sequence[object] | None,
    reference_tracks: Sequence[object] | None,
    preferences: Preferences,
) -> bool:
    return bool(history or reference_tracks or preferences.preferred_genres or preferences.mood)


def search_strategy(history: Sequence[object] | None, reference_tracks: Sequence[object] | None) -> str:
    if history:
        return STRATEGY_SEQUENCE
    if reference_tracks:
        return STRATEGY_REFERENCE
    return STRATEGY_PREFERENCES


def score_and_rank(
    candidates: Sequence[TrackMetadata],
    preferences: Preferences,
    context: Context | None = None,
    history: Sequence[TrackMetadata] = (),
    reference_tracks: Sequence[ReferenceTrack] = (),
    extracted_genres: Sequence[str] = (),
    config: EngineConfig | None = None,
    excluded_ids: Sequence[str] = (),
) -> RecommendationResult:
    """Score a fixed candidate pool and return the ranked, evaluated result.

    Deterministic: the same pool and inputs always give the same output.
    Metrics are computed over the full ranked list, before the presentation cap.
    """

    config = config or EngineConfig()
    if not has_signal(history, reference_tracks, preferences):
        raise NoSignalError("Provide a listening history, reference tracks, preferred genres or a mood.")

    engine = ScoringEngine(config.profile, config.context_rules, config.mood_profiles)
    inputs = engine.prepare(preferences, context, history, reference_tracks, extracted_genres)

    excluded = set(excluded_ids)
    excluded.update(t.id for t in history)
    excluded.update(r.id for r in reference_tracks)

    pool = dedupe_candidates(candidates, excluded)
    scored = [Recommendation(track, engine.score(track, inputs)) for track in pool]
    ranked = rank_recommendations(scored, excluded)

    return RecommendationResult(
        recommendations=ranked[:config.max_results],
        evaluation_metrics=evaluate_recommendations(ranked),
        search_strategy=search_strategy(history, reference_tracks),
        sequence_analysis=inputs.pattern,
        diagnostics={
            "profile": config.profile.name,
            "candidates_considered": len(pool),
            "ranked_total": len(ranked),
            "predicted_genres": list(inputs.predicted_genres),
        },
    )


def _remaining(expires_at: float) -> float:
    return max(0.0, expires_at - time.monotonic())


class Recommender:
    def __init__(self, catalog: CatalogClient, config: EngineConfig | None = None) -> None:
        self.catalog = catalog
        self.config = config or EngineConfig()

    def _fan_out(self, func, items, expires_at: float):
        return fan_out(func, items, self.config.max_workers, _remaining(expires_at))

    def _resolve_history(
        self, history_ids: Sequence[str], reference_year: int | None, expires_at: float
    ) -> list[TrackMetadata]:
        resolved = self._fan_out(self.catalog.resolve_track_by_id, list(history_ids), expires_at)
        raw_tracks = []
        for track_id, raw in zip(history_ids, resolved.results):
            if not raw or not raw.get("id"):
                warnings.warn(
                    f"History track {track_id!r} could not be resolved; leaving it out of the sequence.",
                    RuntimeWarning,
                    stacklevel=3,
                )
                continue
            raw_tracks.append(raw)
        tracks, _ = self._enrich(raw_tracks, reference_year, expires_at)
        return tracks

    def _artist_genres(
        self, artist_ids: Sequence[str], expires_at: float
    ) -> tuple[dict[str, list[str]], list[str]]:
        unique_ids = list(dict.fromkeys(a for a in artist_ids if a))
        outcome = self._fan_out(self.catalog.resolve_artist_genres, unique_ids, expires_at)
        genres = {artist_id: found or [] for artist_id, found in zip(unique_ids, outcome.results)}
        return genres, list(outcome.failures)

    def _enrich(
        self, raw_tracks: Sequence[dict], reference_year: int | None, expires_at: float
    ) -> tuple[list[TrackMetadata], int]:
        artist_ids = [((t.get("artists") or [{}])[0] or {}).get("id") for t in raw_tracks]
        genres, failed_artists = self._artist_genres(artist_ids, expires_at)
        failed = set(failed_artists)
        tracks: list[TrackMetadata] = []
        degraded = 0
        for raw, artist_id in zip(raw_tracks, artist_ids):
            if artist_id in failed:
                degraded += 1
                tracks.append(placeholder_metadata(raw))
            else:
                tracks.append(build_track_metadata(raw, genres.get(artist_id), reference_year))
        return tracks, degraded

    def recommend(
        self,
        history_ids: Sequence[str] | None = None,
        reference_tracks: Sequence[ReferenceTrack] | None = None,
        preferences: Preferences | None = None,
        context: Context | None = None,
        reference_year: int | None = None,
    ) -> RecommendationResult:
        preferences = preferences or Preferences()
        history_ids = list(history_ids or [])
        reference_tracks = list(reference_tracks or [])
        if not has_signal(history_ids, reference_tracks, preferences):
            raise NoSignalError("Provide a listening history, reference tracks, preferred genres or a mood.")

        # One deadline covers every catalog phase of the request.
        expires_at = time.monotonic() + self.config.request_deadline
        log = logger.bind(strategy=search_strategy(history_ids, reference_tracks), profile=self.config.profile.name)
        engine = ScoringEngine(self.config.profile, self.config.context_rules, self.config.mood_profiles)

        history = self._resolve_history(history_ids, reference_year, expires_at) if history_ids else []
        ref_genres, _ = self._artist_genres([r.artist_id for r in reference_tracks], expires_at)
        extracted_genres = list(dict.fromkeys(g for genres in ref_genres.values() for g in genres))

        inputs = engine.prepare(preferences, context, history, reference_tracks, extracted_genres)
        cap = self.config.history_query_cap if history else self.config.reference_query_cap
        queries = build_discovery_queries(
            preferences,
            inputs.mood_profile,
            history=history,
            references=reference_tracks,
            extracted_genres=extracted_genres,
            predicted_genres=inputs.predicted_genres,
            limit=cap,
        )
        log.info("discovery_queries_built", queries=queries)

        raw_pool, failed_queries = discover_candidates(
            self.catalog,
            queries,
            search_limit=self.config.search_limit,
            max_workers=self.config.max_workers,
            deadline=_remaining(expires_at),
        )
        excluded = set(history_ids) | {r.id for r in reference_tracks}
        raw_pool = dedupe_candidates(raw_pool, excluded)
        candidates, degraded = self._enrich(raw_pool, reference_year, expires_at)

        result = score_and_rank(
            candidates,
            preferences,
            context,
            history=history,
            reference_tracks=reference_tracks,
            extracted_genres=extracted_genres,
            config=self.config,
            excluded_ids=list(excluded),
        )
        result.diagnostics.update({
            "queries": queries,
            "failed_queries": failed_queries,
            "failed_enrichments": degraded,
            "history_resolved": len(history),
            "history_requested": len(history_ids),
            "extracted_genres": extracted_genres,
        })
        log.info(
            "recommendations_ready",
            count=len(result.recommendations),
            candidates=result.diagnostics["candidates_considered"],
        )
        return result
