from __future__ import annotations

from typing import Protocol


class CatalogError(RuntimeError):
    pass


class CatalogLookupError(CatalogError):
    """A single catalog call failed; the caller degrades and carries on."""


class CatalogAuthError(CatalogError):
    """The catalog rejected our credentials; nothing else will succeed."""


class CatalogClient(Protocol):
    def resolve_track_by_id(self, track_id: str) -> dict | None: ...

    def search_tracks(self, query: str, limit: int = 20) -> list[dict]: ...

    def resolve_artist_genres(self, artist_id: str) -> list[str] | None: ...
