"""FastAPI web server for AI Sequence DJ."""
import pathlib
from dataclasses import asdict
from typing import Literal

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field

from ai_sequence_dj.catalog import CatalogAuthError, CatalogError
from ai_sequence_dj.config import EngineConfig
from ai_sequence_dj.metrics import describe_evaluation
from ai_sequence_dj.models import Context, Preferences, ReferenceTrack
from ai_sequence_dj.recommender import NoSignalError, Recommender, has_signal
from ai_sequence_dj.spotify_service import SpotifyService

logger = structlog.get_logger(__name__)

_INDEX_HTML_PATH = pathlib.Path(__file__).parent.parent.parent / "index.html"

app = FastAPI(title="AI Sequence DJ")

# Enable CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class ReferenceTrackIn(BaseModel):
    """A track the listener picked as an example of what they want."""
    id: str
    title: str
    artist: str
    artist_id: str | None = None
    popularity: int | None = Field(default=None, ge=0, le=100)


class PreferencesIn(BaseModel):
    preferred_genres: list[str] = []
    mood: str | None = None
    current_track: str | None = None
    tempo_range: tuple[float, float] | None = None


class ContextIn(BaseModel):
    time_of_day: Literal["morning", "afternoon", "evening", "night"] | None = None
    activity: Literal["workout", "study", "party", "relax"] | None = None


class RecommendRequest(BaseModel):
    """Recommend from a listening history, reference tracks, or preferences alone."""
    history: list[str] | None = None
    reference_tracks: list[ReferenceTrackIn] | None = None
    preferences: PreferencesIn = Field(default_factory=PreferencesIn)
    context: ContextIn | None = None
    reference_year: int | None = Field(default=None, ge=1900, le=2100)
    profile: str | None = None


class TrackOut(BaseModel):
    id: str
    title: str
    artist: str
    genre: str
    popularity: int | None = None
    release_year: int | None = None
    album: str | None = None


class RecommendationOut(BaseModel):
    track: TrackOut
    score: float


class RecommendResponse(BaseModel):
    recommendations: list[RecommendationOut]
    sequence_analysis: dict | None = None
    evaluation_metrics: dict
    search_strategy: str
    diagnostics: dict


class SearchRequest(BaseModel):
    query: str


def get_catalog(requests_timeout: float = 10.0) -> SpotifyService:
    """Initialize the Spotify-backed catalog client."""
    return SpotifyService(requests_timeout=requests_timeout)


def _to_domain(request: RecommendRequest) -> tuple[Preferences, Context, list[ReferenceTrack]]:
    prefs = request.preferences
    preferences = Preferences(
        preferred_genres=tuple(prefs.preferred_genres),
        mood=prefs.mood,
        current_track=prefs.current_track,
        tempo_range=prefs.tempo_range,
    )
    context = Context(**request.context.model_dump()) if request.context else Context()
    references = [ReferenceTrack(**ref.model_dump()) for ref in request.reference_tracks or []]
    return preferences, context, references


@app.get("/")
def serve_index():
    """Serve the frontend HTML."""
    if _INDEX_HTML_PATH.exists():
        return FileResponse(str(_INDEX_HTML_PATH), media_type="text/html")
    return {"message": "AI Sequence DJ API is running. POST /api/recommend to get recommendations."}


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/api/evaluation")
def evaluation_summary():
    """Sample inputs and metric definitions used by the evaluation report."""
    return describe_evaluation()


@app.get("/api/recommend")
def recommend_usage():
    return {
        "message": "Track Recommendation API",
        "usage": "Send POST request with { history | reference_tracks | preferences } to get recommendations",
    }


@app.post("/api/recommend", response_model=RecommendResponse)
def recommend_tracks(request: RecommendRequest):
    """Score and rank catalog candidates for the supplied signals."""
    preferences, context, references = _to_domain(request)
    if not has_signal(request.history, references, preferences):
        raise HTTPException(
            status_code=400,
            detail="Provide a listening history, reference tracks, preferred genres or a mood.",
        )

    try:
        config = EngineConfig.from_env().with_profile(request.profile)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        recommender = Recommender(get_catalog(config.request_timeout), config)
        result = recommender.recommend(
            history_ids=request.history,
            reference_tracks=references,
            preferences=preferences,
            context=context,
            reference_year=request.reference_year,
        )
    except NoSignalError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CatalogAuthError as e:
        logger.error("catalog_auth_failed", error=str(e))
        raise HTTPException(status_code=502, detail=str(e))
    except CatalogError as e:
        raise HTTPException(status_code=502, detail=f"Catalog error: {e}")
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return RecommendResponse(
        recommendations=[
            RecommendationOut(
                track=TrackOut(
                    id=rec.track.id,
                    title=rec.track.title,
                    artist=rec.track.artist,
                    genre=rec.track.genre,
                    popularity=rec.track.popularity,
                    release_year=rec.track.release_year,
                    album=rec.track.album,
                ),
                score=rec.score,
            )
            for rec in result.recommendations
        ],
        sequence_analysis=result.sequence_analysis.to_dict() if result.sequence_analysis else None,
        evaluation_metrics=asdict(result.evaluation_metrics),
        search_strategy=result.search_strategy,
        diagnostics=result.diagnostics,
    )


@app.get("/api/search")
def search_usage():
    return {
        "message": "Spotify Search API",
        "usage": "Send POST request with { query: 'search term' } to search for tracks",
    }


@app.post("/api/search")
def search_tracks(request: SearchRequest):
    """Free-text catalog search used by the track picker."""
    query = request.query.strip()
    if not query:
        raise HTTPException(status_code=400, detail="Search query is required")

    try:
        tracks = get_catalog().search_tracks(query)
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except CatalogError as e:
        raise HTTPException(status_code=502, detail=f"Failed to search tracks: {e}")

    formatted = [
        {
            "id": t["id"],
            "name": t.get("name"),
            "artists": t.get("artists", []),
            "album": t.get("album"),
            "popularity": t.get("popularity"),
            "preview_url": t.get("preview_url"),
            "external_urls": t.get("external_urls"),
        }
        for t in tracks
    ]
    return {"tracks": formatted, "query": query, "total": len(formatted)}
