from __future__ import annotations

from typing import Collection, Iterable, TypeVar

from ai_sequence_dj.models import Recommendation

_T = TypeVar("_T")


def _item_id(item) -> str | None:
    if isinstance(item, dict):
        return item.get("id")
    return getattr(item, "id", None)


def dedupe_candidates(candidates: Iterable[_T], excluded_ids: Collection[str] = ()) -> list[_T]:
    """Drop id-less, repeated and excluded candidates, keeping discovery order."""
    seen: set[str] = set(excluded_ids)
    unique: list[_T] = []
    for candidate in candidates:
        candidate_id = _item_id(candidate)
        if not candidate_id or candidate_id in seen:
            continue
        seen.add(candidate_id)
        unique.append(candidate)
    return unique


def rank_recommendations(
    recommendations: Iterable[Recommendation],
    excluded_ids: Collection[str] = (),
    limit: int | None = None,
) -> list[Recommendation]:
    """Sort by score and collapse repeats of the same song.

    The sort is stable, so equal scores keep discovery order. Of several
    recommendations sharing a (title, artist) pair, ignoring case, the highest
    scored one survives.
    """

    excluded = set(excluded_ids)
    ordered = sorted(
        (r for r in recommendations if r.track.id not in excluded),
        key=lambda r: r.score,
        reverse=True,
    )
    seen: set[tuple[str, str]] = set()
    ranked: list[Recommendation] = []
    for rec in ordered:
        key = (rec.track.title.strip().lower(), rec.track.artist.strip().lower())
        if key in seen:
            continue
        seen.add(key)
        ranked.append(rec)
    if limit is not None:
        return ranked[:limit]
    return ranked
