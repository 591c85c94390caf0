# raw_torrents/__main__.py

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from raw_torrents.config import get_configuration, load_provider_config, logger
from raw_torrents.services.search_logic import MEDIA_TYPES, StreamAggregator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="raw_torrents",
        description="Fetch, deduplicate and rank raw torrent streams for a title",
    )
    parser.add_argument("media_type", choices=MEDIA_TYPES, help="movie or series")
    parser.add_argument(
        "media_id", help="IMDB id (tt0111161) or TMDB id (603 / tmdb-603)"
    )
    parser.add_argument("--season", type=int, help="Season number (series only)")
    parser.add_argument("--episode", type=int, help="Episode number (series only)")
    parser.add_argument(
        "--config", default="config.ini", help="Path to an optional config.ini"
    )
    parser.add_argument(
        "--providers", type=Path, help="Override the YAML provider table"
    )
    return parser


async def run(argv: list[str] | None = None) -> dict:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.media_type == "series" and (args.season is None or args.episode is None):
        parser.error("--season and --episode are required for series")

    providers, settings = get_configuration(args.config)
    if args.providers is not None:
        providers = load_provider_config(args.providers)

    aggregator = StreamAggregator(
        providers,
        timeout=settings["timeout_seconds"],
        max_results=settings["max_results"],
        user_agent=settings["user_agent"],
    )
    return await aggregator.fetch_streams(
        args.media_type, args.media_id, args.season, args.episode
    )


def main(argv: list[str] | None = None) -> None:
    """Prints the ranked stream payload for one title as JSON."""
    payload = asyncio.run(run(argv))
    logger.info(f"Sending {len(payload['streams'])} streams")
    print(json.dumps(payload, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
