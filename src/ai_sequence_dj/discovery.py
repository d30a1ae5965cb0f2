from __future__ import annotations

import time
import warnings
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence, TypeVar

import structlog

from ai_sequence_dj.catalog import CatalogClient, CatalogLookupError
from ai_sequence_dj.models import UNKNOWN_GENRE, MoodProfile, Preferences, ReferenceTrack, TrackMetadata

logger = structlog.get_logger(__name__)

_I = TypeVar("_I")
_R = TypeVar("_R")

_FREQUENT_ARTISTS = 2


@dataclass(slots=True)
class FanOutResult:
    results: list = field(default_factory=list)
    failures: list = field(default_factory=list)


def fan_out(
    func: Callable[[_I], _R],
    items: Sequence[_I],
    max_workers: int = 8,
    deadline: float = 30.0,
) -> FanOutResult:
    """Run independent catalog calls concurrently under one overall deadline.

    Results come back in input order; a failed or late call yields ``None``
    in its slot and is listed in ``failures``. Calls still pending when the
    deadline passes are cancelled. ``CatalogAuthError`` is not caught.
    """

    outcome = FanOutResult()
    if not items:
        return outcome

    expires_at = time.monotonic() + deadline
    executor = ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(items))))
    try:
        futures = [executor.submit(func, item) for item in items]
        for item, future in zip(items, futures):
            remaining = max(0.0, expires_at - time.monotonic())
            try:
                outcome.results.append(future.result(timeout=remaining))
            except (CatalogLookupError, FutureTimeoutError) as exc:
                future.cancel()
                reason = "deadline exceeded" if isinstance(exc, FutureTimeoutError) else str(exc)
                logger.warning("catalog_call_failed", item=str(item), reason=reason)
                outcome.results.append(None)
                outcome.failures.append(item)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)
    return outcome


def _add(queries: list[str], query: str) -> None:
    if query and query not in queries:
        queries.append(query)


def _genre_query(genre: str) -> str:
    if not genre or genre == UNKNOWN_GENRE:
        return ""
    return f'genre:"{genre}"'


def build_discovery_queries(
    preferences: Preferences,
    mood_profile: MoodProfile,
    history: Sequence[TrackMetadata] = (),
    references: Sequence[ReferenceTrack] = (),
    extracted_genres: Iterable[str] = (),
    predicted_genres: Iterable[str] = (),
    limit: int = 6,
) -> list[str]:
    """Free-text catalog queries for candidate discovery, deduplicated and capped."""
    queries: list[str] = []
    if history:
        if preferences.current_track:
            _add(queries, preferences.current_track.strip())
        for genre in predicted_genres:
            _add(queries, _genre_query(genre))
        artist_counts: dict[str, int] = {}
        for track in history:
            artist_counts[track.artist] = artist_counts.get(track.artist, 0) + 1
        frequent = sorted(artist_counts.items(), key=lambda item: item[1], reverse=True)
        for artist, _ in frequent[:_FREQUENT_ARTISTS]:
            _add(queries, f'artist:"{artist}"')
    for ref in references:
        _add(queries, f"{ref.title} {ref.artist}".strip())
    for genre in extracted_genres:
        _add(queries, _genre_query(genre))
    for genre in preferences.preferred_genres:
        _add(queries, _genre_query(genre))
    for genre in mood_profile.preferred_genres:
        _add(queries, _genre_query(genre))
    return queries[:limit]


def discover_candidates(
    catalog: CatalogClient,
    queries: Sequence[str],
    search_limit: int = 20,
    max_workers: int = 8,
    deadline: float = 30.0,
) -> tuple[list[dict], list[str]]:
    """Search the catalog for every query; returns (raw tracks, failed queries)."""
    outcome = fan_out(lambda q: catalog.search_tracks(q, limit=search_limit), queries, max_workers, deadline)
    tracks: list[dict] = []
    for items in outcome.results:
        tracks.extend(items or [])
    if outcome.failures:
        warnings.warn(
            f"{len(outcome.failures)} of {len(queries)} discovery queries failed; "
            "continuing with the remaining results.",
            RuntimeWarning,
            stacklevel=2,
        )
    logger.info("candidates_discovered", queries=len(queries), tracks=len(tracks), failed=len(outcome.failures))
    return tracks, list(outcome.failures)
