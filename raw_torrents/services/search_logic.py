# raw_torrents/services/search_logic.py

from __future__ import annotations

import asyncio
import urllib.parse
from typing import Any, Iterable

from ..config import MAX_STREAMS, PROVIDER_TIMEOUT_SECONDS, USER_AGENT, logger
from ..utils import parse_media_id
from . import fetch_client
from .deduplicator import merge
from .episode_matcher import filter_episode
from .errors import FetchError, InvalidIdentifier, MalformedProviderPayload
from .ranking import rank_streams, render_stream
from .stream_data import ProviderSource, RankedStream, RawResult

MEDIA_TYPES = ("movie", "series")
_OPTIONAL_TEXT_FIELDS = ("title", "filename", "quality")


def coerce_raw_result(entry: Any, source_name: str) -> RawResult | None:
    """
    Validates one provider result against the expected optional-field schema.

    Entries that are not objects or lack a string ``magnetLink`` are rejected.
    Optional text fields with the wrong type are dropped rather than passed
    downstream. The provider's display name is stamped as ``source``.
    """
    if not isinstance(entry, dict):
        return None
    magnet = entry.get("magnetLink")
    if not isinstance(magnet, str) or not magnet.strip():
        return None

    result: RawResult = {"magnetLink": magnet.strip(), "source": source_name}
    for field_name in _OPTIONAL_TEXT_FIELDS:
        value = entry.get(field_name)
        if isinstance(value, str) and value.strip():
            result[field_name] = value  # type: ignore[literal-required]
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            result[field_name] = str(value)  # type: ignore[literal-required]

    size = entry.get("size")
    if isinstance(size, str) and size.strip():
        result["size"] = size.strip()
    elif isinstance(size, (int, float)) and not isinstance(size, bool) and size > 0:
        result["size"] = size
    return result


def extract_results(payload: Any, source_name: str) -> list[RawResult]:
    """Pulls the ``results`` list out of a provider payload.

    Raises :class:`MalformedProviderPayload` when the payload is not an object
    with a ``results`` list. Individual bad entries are skipped.
    """
    if not isinstance(payload, dict):
        raise MalformedProviderPayload(
            source_name, f"Expected a JSON object, got {type(payload).__name__}"
        )
    entries = payload.get("results")
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise MalformedProviderPayload(
            source_name, f"'results' is {type(entries).__name__}, expected a list"
        )

    results: list[RawResult] = []
    for entry in entries:
        coerced = coerce_raw_result(entry, source_name)
        if coerced is None:
            logger.debug(f"[SEARCH] {source_name}: Skipping malformed entry {entry!r}")
            continue
        results.append(coerced)
    return results


def build_search_url(provider: ProviderSource, media_type: str, query: str) -> str:
    encoded_query = urllib.parse.quote(query, safe="")
    return f"{provider.url}/api/search?type={media_type}&query={encoded_query}"


def _to_episode_number(value: Any, label: str) -> int:
    if isinstance(value, bool) or (
        isinstance(value, float) and not value.is_integer()
    ):
        raise ValueError(f"{label} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be an integer, got {value!r}") from None
    if number < 0:
        raise ValueError(f"{label} must not be negative, got {value!r}")
    return number


class StreamAggregator:
    """
    Fetches, merges and ranks streams from every configured provider.

    Each ``fetch`` call is independent: providers are queried concurrently,
    a failing provider contributes nothing, and the caller always gets a list.
    """

    def __init__(
        self,
        providers: Iterable[ProviderSource],
        *,
        timeout: float = PROVIDER_TIMEOUT_SECONDS,
        max_results: int = MAX_STREAMS,
        user_agent: str = USER_AGENT,
    ) -> None:
        self.providers: tuple[ProviderSource, ...] = tuple(providers)
        self.timeout = timeout
        self.max_results = max_results
        self.headers = {"User-Agent": user_agent}

    async def fetch(
        self,
        media_type: str,
        media_id: str,
        season: int | str | None = None,
        episode: int | str | None = None,
    ) -> list[RankedStream]:
        """
        Returns up to ``max_results`` ranked streams for a movie or an episode.

        Unrecognised ids give an empty list. For series, ``season`` and
        ``episode`` are required; omitting them, or passing an unknown
        ``media_type``, raises ``ValueError``.
        """
        if media_type not in MEDIA_TYPES:
            raise ValueError(f"Unsupported media type: {media_type!r}")

        try:
            id_type, query_id = parse_media_id(media_id)
        except InvalidIdentifier as exc:
            logger.error(f"[SEARCH] {exc}")
            return []

        season_num: int | None = None
        episode_num: int | None = None
        if media_type == "series":
            if season is None or episode is None:
                raise ValueError("Season and episode required for series")
            season_num = _to_episode_number(season, "season")
            episode_num = _to_episode_number(episode, "episode")
            query = f"{query_id}:{season_num}:{episode_num}"
        else:
            query = query_id

        logger.info(
            f"[SEARCH] Fetching {media_type} streams for {id_type.upper()} query '{query}'"
        )
        try:
            return await self._aggregate(media_type, query, season_num, episode_num)
        except Exception as exc:  # noqa: BLE001
            logger.error(f"[SEARCH] Error aggregating streams for '{query}': {exc}")
            return []

    async def fetch_streams(
        self,
        media_type: str,
        media_id: str,
        season: int | str | None = None,
        episode: int | str | None = None,
    ) -> dict[str, list[dict[str, Any]]]:
        """Same as :meth:`fetch`, rendered as the ``{"streams": [...]}`` payload."""
        ranked = await self.fetch(media_type, media_id, season, episode)
        return {"streams": [render_stream(stream) for stream in ranked]}

    async def _aggregate(
        self,
        media_type: str,
        query: str,
        season: int | None,
        episode: int | None,
    ) -> list[RankedStream]:
        if not self.providers:
            logger.warning("[SEARCH] No providers configured.")
            return []

        tasks: list[asyncio.Task[list[RawResult]]] = [
            asyncio.create_task(self._search_provider(provider, media_type, query))
            for provider in self.providers
        ]

        # Results are concatenated in provider-table order, not completion
        # order, so deduplication is deterministic.
        results_per_provider = await asyncio.gather(*tasks)

        candidates = merge(results_per_provider)
        if season is not None and episode is not None:
            candidates = filter_episode(candidates, season, episode)

        ranked = rank_streams(candidates, limit=self.max_results)
        logger.info(
            f"[SEARCH] Aggregation complete. Returning {len(ranked)} of "
            f"{len(candidates)} streams for '{query}'."
        )
        return ranked

    async def _search_provider(
        self, provider: ProviderSource, media_type: str, query: str
    ) -> list[RawResult]:
        """Queries one provider; every failure becomes an empty list."""
        url = build_search_url(provider, media_type, query)
        logger.info(f"[SEARCH] Fetching from {provider.display_name}: {url}")
        try:
            payload = await fetch_client.fetch_json(
                url, headers=self.headers, timeout=self.timeout
            )
            results = extract_results(payload, provider.display_name)
        except FetchError as exc:
            logger.error(
                f"[SEARCH] {provider.display_name} contributed no results: "
                f"{type(exc).__name__}: {exc}"
            )
            return []
        except Exception as exc:  # noqa: BLE001
            logger.error(
                f"[SEARCH] Unexpected error fetching from {provider.display_name}: {exc}"
            )
            return []

        if not results:
            logger.info(f"[SEARCH] No results found from {provider.display_name}")
        else:
            logger.info(
                f"[SEARCH] Found {len(results)} results from {provider.display_name}"
            )
        return results
