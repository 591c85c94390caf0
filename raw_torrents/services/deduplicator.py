from __future__ import annotations

import base64
import binascii
import re
from typing import Iterable

from ..config import logger
from ..utils import format_bytes
from .errors import MalformedMagnet
from .scoring import parse_quality, parse_size, size_to_mb
from .stream_data import CandidateStream, RawResult

# 40 hex characters, or the 32-character base32 form some indexers emit.
_BTIH_PATTERN = re.compile(r"(?i)btih:([a-f0-9]{40}|[a-z2-7]{32})(?![a-z0-9])")


def extract_info_hash(magnet_uri: str) -> str:
    """Returns the lowercase hex info hash of ``magnet_uri``.

    Raises :class:`MalformedMagnet` when no well-formed ``btih`` hash is found.
    """
    magnet_uri = magnet_uri or ""
    match = _BTIH_PATTERN.search(magnet_uri)
    if not match:
        raise MalformedMagnet(f"No btih hash in magnet link: {magnet_uri[:80]!r}")
    value = match.group(1)
    if len(value) == 40:
        return value.lower()
    try:
        return base64.b32decode(value.upper()).hex()
    except (binascii.Error, ValueError):
        raise MalformedMagnet(f"Invalid base32 btih hash: {value!r}") from None


def _derive_filename(raw: RawResult) -> str:
    filename = raw.get("filename")
    if filename:
        return filename
    title = raw.get("title") or ""
    first_line = title.split("\n")[0].strip()
    return first_line or "Unknown"


def build_candidate(raw: RawResult, info_hash: str) -> CandidateStream:
    """Normalises one provider result, filling quality and size from the title."""
    title = raw.get("title") or ""
    filename = _derive_filename(raw)

    quality = raw.get("quality") or parse_quality(title)

    size_value = raw.get("size")
    if isinstance(size_value, (int, float)) and not isinstance(size_value, bool):
        size_display = format_bytes(int(size_value)) if size_value > 0 else ""
    elif isinstance(size_value, str) and size_value.strip():
        size_display = size_value.strip()
    else:
        size_display = parse_size(title)
    size_mb = size_to_mb(size_value if size_value else size_display)

    return CandidateStream(
        info_hash=info_hash,
        magnet_uri=raw["magnetLink"],
        filename=filename,
        display_title=title or filename,
        quality=quality,
        size=size_display,
        size_mb=size_mb,
        source_name=raw.get("source") or "Unknown",
    )


def merge(
    raw_results_per_provider: Iterable[Iterable[RawResult]],
) -> list[CandidateStream]:
    """
    Merges per-provider result lists into unique candidates keyed by info hash.

    Input order decides ties: the first occurrence of a hash is kept with its
    own filename, quality and size, and later duplicates are dropped whichever
    provider they come from. Results without a usable hash are logged and
    skipped.
    """
    seen_hashes: set[str] = set()
    candidates: list[CandidateStream] = []
    duplicates = 0
    skipped = 0

    for provider_results in raw_results_per_provider:
        for raw in provider_results:
            try:
                info_hash = extract_info_hash(raw.get("magnetLink", ""))
            except MalformedMagnet as exc:
                skipped += 1
                logger.debug(
                    "[DEDUP] Skipping result from '%s': %s",
                    raw.get("source", "unknown"),
                    exc,
                )
                continue

            if info_hash in seen_hashes:
                duplicates += 1
                continue
            seen_hashes.add(info_hash)
            candidates.append(build_candidate(raw, info_hash))

    if skipped:
        logger.info(f"[DEDUP] Dropped {skipped} results with malformed magnet links.")
    logger.info(
        f"[DEDUP] {len(candidates)} unique streams ({duplicates} duplicates removed)."
    )
    return candidates
