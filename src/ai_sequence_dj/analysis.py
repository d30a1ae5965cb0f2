from __future__ import annotations

from ai_sequence_dj.models import UNKNOWN_ARTIST, UNKNOWN_GENRE, ReferenceTrack, TrackMetadata


def _release_year(track: dict, reference_year: int | None) -> int | None:
    release_date = (track.get("album") or {}).get("release_date") or track.get("release_date") or ""
    try:
        return int(str(release_date)[:4])
    except ValueError:
        return reference_year


def _popularity(track: dict) -> int | None:
    raw = track.get("popularity")
    if raw is None:
        return None
    try:
        return max(0, min(100, int(raw)))
    except (TypeError, ValueError):
        return None


def _tempo(track: dict) -> float | None:
    raw = track.get("tempo")
    if raw is None:
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def primary_artist(track: dict) -> dict:
    return (track.get("artists") or [{}])[0] or {}


def build_track_metadata(
    track: dict,
    artist_genres: list[str] | None = None,
    reference_year: int | None = None,
) -> TrackMetadata:
    """Normalize a raw catalog track into an immutable metadata record.

    The dominant genre is the first genre of the primary artist. A missing or
    malformed release date falls back to ``reference_year``.
    """

    artist = primary_artist(track)
    genres = [g for g in (artist_genres or []) if g]
    return TrackMetadata(
        id=track["id"],
        title=track.get("name") or track.get("title") or "",
        artist=artist.get("name") or UNKNOWN_ARTIST,
        genre=genres[0] if genres else UNKNOWN_GENRE,
        popularity=_popularity(track),
        release_year=_release_year(track, reference_year),
        album=(track.get("album") or {}).get("name"),
        artist_id=artist.get("id"),
        tempo=_tempo(track),
    )


def placeholder_metadata(track: dict) -> TrackMetadata:
    artist = primary_artist(track)
    return TrackMetadata(
        id=track["id"],
        title=track.get("name") or track.get("title") or "",
        artist=artist.get("name") or UNKNOWN_ARTIST,
        artist_id=artist.get("id"),
    )


def reference_from_track(track: dict) -> ReferenceTrack:
    artist = primary_artist(track)
    return ReferenceTrack(
        id=track["id"],
        title=track.get("name") or "",
        artist=artist.get("name") or UNKNOWN_ARTIST,
        artist_id=artist.get("id"),
        popularity=_popularity(track),
    )
