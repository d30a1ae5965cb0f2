from __future__ import annotations

import os
import warnings

import spotipy
import structlog
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyClientCredentials, SpotifyOauthError
from requests.exceptions import HTTPError, RequestException

from ai_sequence_dj.catalog import CatalogAuthError, CatalogLookupError

logger = structlog.get_logger(__name__)


def _status(exc: Exception) -> int | None:
    if isinstance(exc, HTTPError):
        return exc.response.status_code if exc.response is not None else None
    if isinstance(exc, SpotifyException):
        return exc.http_status
    return None


class SpotifyService:
    """Catalog client backed by the Spotify Web API (client credentials)."""

    # Spotify's search endpoint enforces a maximum of 20 results per page for
    # restricted app credentials.  Using a higher value returns HTTP 400
    # "Invalid limit", so we cap every page request at this safe maximum.
    SEARCH_PAGE_LIMIT = 20

    def __init__(self, requests_timeout: float = 10.0, market: str = "US") -> None:
        self._validate_credentials()
        self.market = market
        self.client = spotipy.Spotify(
            auth_manager=SpotifyClientCredentials(),
            requests_timeout=requests_timeout,
            retries=0,
        )

    @staticmethod
    def _validate_credentials() -> None:
        missing = [name for name in ("SPOTIPY_CLIENT_ID", "SPOTIPY_CLIENT_SECRET") if not os.getenv(name)]
        if missing:
            missing_list = ", ".join(missing)
            raise ValueError(
                f"Missing Spotify credentials: {missing_list}. "
                "Set them in environment variables or local .env file."
            )

    @staticmethod
    def _translate(exc: Exception, action: str) -> Exception:
        status = _status(exc)
        if status == 401:
            return CatalogAuthError(f"Spotify rejected the client credentials during {action}.")
        return CatalogLookupError(f"Spotify {action} failed (status={status}): {exc}")

    @staticmethod
    def _auth_failure(exc: SpotifyOauthError, action: str) -> CatalogAuthError:
        return CatalogAuthError(f"Spotify token request failed during {action}: {exc}")

    def resolve_track_by_id(self, track_id: str) -> dict | None:
        try:
            return self.client.track(track_id, market=self.market)
        except (HTTPError, SpotifyException) as exc:
            if _status(exc) in (400, 404):
                logger.info("track_not_found", track_id=track_id)
                return None
            raise self._translate(exc, "track lookup") from exc
        except SpotifyOauthError as exc:
            raise self._auth_failure(exc, "track lookup") from exc
        except RequestException as exc:
            raise CatalogLookupError(f"Spotify track lookup failed: {exc}") from exc

    def search_tracks(self, query: str, limit: int = SEARCH_PAGE_LIMIT) -> list[dict]:
        page_size = max(1, min(limit, self.SEARCH_PAGE_LIMIT))
        try:
            page = self.client.search(q=query, type="track", limit=page_size, market=self.market)
        except (HTTPError, SpotifyException) as exc:
            raise self._translate(exc, "search") from exc
        except SpotifyOauthError as exc:
            raise self._auth_failure(exc, "search") from exc
        except RequestException as exc:
            raise CatalogLookupError(f"Spotify search failed: {exc}") from exc
        items = (page or {}).get("tracks", {}).get("items", [])
        return [item for item in items if item and item.get("id")]

    def resolve_artist_genres(self, artist_id: str) -> list[str] | None:
        try:
            artist = self.client.artist(artist_id)
        except (HTTPError, SpotifyException) as exc:
            if _status(exc) == 403:
                warnings.warn(
                    "Spotify artist endpoint returned 403 Forbidden. "
                    "This endpoint may be restricted for your app credentials. "
                    "Falling back to no genres.",
                    RuntimeWarning,
                    stacklevel=2,
                )
                return None
            raise self._translate(exc, "artist lookup") from exc
        except SpotifyOauthError as exc:
            raise self._auth_failure(exc, "artist lookup") from exc
        except RequestException as exc:
            raise CatalogLookupError(f"Spotify artist lookup failed: {exc}") from exc
        return list((artist or {}).get("genres") or []) or None
