from __future__ import annotations

import math
from typing import Any, Iterable

from ..config import logger
from .scoring import detect_video_features, quality_symbol, quality_tier
from .stream_data import CandidateStream, RankedStream

SOURCE_MARKER = "☠︎"

# Plausible file sizes in MB per quality tier. Files outside the range are
# likely mislabelled, incomplete or fake and sink within their tier.
IDEAL_SIZE_RANGES: dict[int, tuple[float, float]] = {
    2160: (10000, 80000),
    1080: (2000, 16000),
    720: (1000, 8000),
    480: (500, 4000),
}
_UNRANKED_RANGE: tuple[float, float] = (0, math.inf)


def size_fit_score(size_mb: float, tier: int) -> float:
    """Distance in MB from ``size_mb`` to the tier's ideal range (0 inside it)."""
    low, high = IDEAL_SIZE_RANGES.get(tier, _UNRANKED_RANGE)
    if size_mb < low:
        return low - size_mb
    if size_mb > high:
        return size_mb - high
    return 0.0


def _sort_key(candidate: CandidateStream) -> tuple[int, float, float]:
    tier = quality_tier(candidate.quality)
    return (-tier, size_fit_score(candidate.size_mb, tier), -candidate.size_mb)


def sort_streams(candidates: Iterable[CandidateStream]) -> list[CandidateStream]:
    """
    Orders candidates best first.

    Higher quality tier wins; within a tier the size closest to the ideal
    range wins; then the larger file. The sort is stable, so full ties keep
    their merge order and identical input always yields identical output.
    """
    return sorted(candidates, key=_sort_key)


def _build_name(symbol: str, quality: str, size: str, source: str) -> str:
    return " | ".join(part for part in (symbol, quality, size, source) if part)


def _build_title(filename: str, source: str, features: list[str]) -> str:
    feature_str = " | ".join(features)
    details = " | ".join(
        part for part in (f"{SOURCE_MARKER} {source}", feature_str) if part
    )
    return "\n".join(part for part in (filename, details) if part)


def to_ranked_stream(candidate: CandidateStream) -> RankedStream:
    """Derives the presentation fields shown by the player."""
    features = detect_video_features(candidate.filename)
    quality_display = candidate.quality.upper() if candidate.quality else ""
    symbol = quality_symbol(quality_display or candidate.filename)
    return RankedStream(
        candidate=candidate,
        quality_symbol=symbol,
        name=_build_name(
            symbol, quality_display, candidate.size, candidate.source_name
        ),
        title=_build_title(candidate.filename, candidate.source_name, features),
        features=features,
    )


def rank_streams(
    candidates: Iterable[CandidateStream], limit: int | None = None
) -> list[RankedStream]:
    """Sorts candidates, keeps the top ``limit`` and renders each one."""
    ordered = sort_streams(candidates)
    if limit is not None:
        ordered = ordered[:limit]
    ranked = [to_ranked_stream(candidate) for candidate in ordered]
    logger.debug(f"[RANK] Ranked {len(ranked)} streams")
    return ranked


def render_stream(stream: RankedStream) -> dict[str, Any]:
    """Maps a ranked stream to the item format consumed by the player."""
    return stream.to_dict()
