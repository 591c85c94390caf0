from __future__ import annotations

import re
from typing import Iterable

from ..config import logger
from .stream_data import CandidateStream

# Tokens must not be glued to a preceding letter ("Season2" is not "S2"),
# and numbers are one or two digits.
_SEASON_EPISODE = re.compile(r"(?i)(?<![a-z])s(\d{1,2})e(\d{1,2})(?!\d)")
_SEASON = re.compile(r"(?i)(?<![a-z])s(\d{1,2})(?!\d)")
_EPISODE = re.compile(r"(?i)(?<![a-z])e(\d{1,2})(?!\d)")


def matches_episode(text: str, season: int, episode: int) -> bool:
    """
    Decides whether a release name is the requested episode.

    A combined ``SxxExx`` token is authoritative: the first one found must
    equal both numbers. Without it, the name must carry exactly one ``Sxx``
    and exactly one ``Exx`` token with the requested values. Anything
    ambiguous, such as season packs or multi-episode ranges, is rejected.
    """
    combined = _SEASON_EPISODE.search(text)
    if combined:
        return int(combined.group(1)) == season and int(combined.group(2)) == episode

    seasons = [int(value) for value in _SEASON.findall(text)]
    episodes = [int(value) for value in _EPISODE.findall(text)]
    return seasons == [season] and episodes == [episode]


def filter_episode(
    candidates: Iterable[CandidateStream], season: int, episode: int
) -> list[CandidateStream]:
    """Keeps the candidates whose filename (or title) names the episode."""
    kept: list[CandidateStream] = []
    total = 0
    for candidate in candidates:
        total += 1
        text = candidate.filename or candidate.display_title or ""
        if matches_episode(text, season, episode):
            kept.append(candidate)
    logger.info(
        f"[EPISODE] Filtered {total} streams to {len(kept)} matching "
        f"S{season:02d}E{episode:02d}"
    )
    return kept
