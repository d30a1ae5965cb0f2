from __future__ import annotations

import argparse
import os
from dataclasses import replace

from ai_sequence_dj.analysis import reference_from_track
from ai_sequence_dj.config import EngineConfig, configure_logging, env_int, load_local_env_file
from ai_sequence_dj.models import ACTIVITIES, TIMES_OF_DAY, Context, Preferences, ReferenceTrack
from ai_sequence_dj.recommender import Recommender, has_signal


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="AI Sequence DJ recommender")
    parser.add_argument(
        "--history-id",
        action="append",
        default=[],
        help="Previously played track id, oldest first (repeatable)",
    )
    parser.add_argument(
        "--reference-id",
        action="append",
        default=[],
        help="Track id to use as an explicit reference (repeatable)",
    )
    parser.add_argument("--genre", action="append", default=[], help="Preferred genre (repeatable)")
    parser.add_argument("--mood", help="Mood label, e.g. happy, sad, energetic, calm, romantic")
    parser.add_argument("--current-track", help="Free-text title of the track playing now")
    parser.add_argument("--time-of-day", choices=TIMES_OF_DAY)
    parser.add_argument("--activity", choices=ACTIVITIES)
    parser.add_argument("--profile", default=os.getenv("RECOMMENDER_PROFILE"), help="Scoring profile name")
    parser.add_argument(
        "--reference-year",
        type=int,
        default=None,
        help="Year assumed for tracks with no release date",
    )
    parser.add_argument(
        "--limit",
        type=int,
        nargs="?",
        default=env_int("TRACK_LIMIT", 20),
        const=env_int("TRACK_LIMIT", 20),
        help="Number of recommendations to print (defaults to TRACK_LIMIT env or 20)",
    )
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "WARNING"))
    return parser.parse_args(argv)


def resolve_reference_tracks(args: argparse.Namespace, service: object) -> list[ReferenceTrack]:
    references: list[ReferenceTrack] = []
    for track_id in args.reference_id:
        track = service.resolve_track_by_id(track_id)
        if not track or not track.get("id"):
            raise ValueError(
                f"Unable to find reference track {track_id!r}. "
                "Check the id or drop --reference-id."
            )
        references.append(reference_from_track(track))
    return references


def build_inputs(args: argparse.Namespace) -> tuple[Preferences, Context]:
    preferences = Preferences(
        preferred_genres=tuple(args.genre),
        mood=args.mood,
        current_track=args.current_track,
    )
    return preferences, Context(time_of_day=args.time_of_day, activity=args.activity)


def main(argv: list[str] | None = None) -> None:
    load_local_env_file()
    args = parse_args(argv)
    configure_logging(args.log_level)

    preferences, context = build_inputs(args)
    if not has_signal(args.history_id, args.reference_id, preferences):
        raise ValueError(
            "Nothing to recommend from. "
            "Pass --history-id, --reference-id, --genre or --mood."
        )

    from ai_sequence_dj.spotify_service import SpotifyService

    config = EngineConfig.from_env().with_profile(args.profile)
    config = replace(config, max_results=args.limit)
    service = SpotifyService(requests_timeout=config.request_timeout)
    references = resolve_reference_tracks(args, service)

    result = Recommender(service, config).recommend(
        history_ids=args.history_id,
        reference_tracks=references,
        preferences=preferences,
        context=context,
        reference_year=args.reference_year,
    )
    if not result.recommendations:
        print("No recommendations found.")
        return

    print(f"Strategy: {result.search_strategy} (profile={result.diagnostics.get('profile')})")
    for rank, rec in enumerate(result.recommendations, start=1):
        track = rec.track
        print(f"{rank:>2}. {rec.score:6.2f}  {track.title} - {track.artist} [{track.genre}]")
    metrics = result.evaluation_metrics
    print(
        f"coherence={metrics.genre_coherence:.2f} "
        f"smoothness={metrics.popularity_smoothness:.2f} "
        f"consistency={metrics.genre_consistency:.2f}"
    )


if __name__ == "__main__":
    main()
