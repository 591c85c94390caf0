from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypedDict


@dataclass(frozen=True)
class ProviderSource:
    """An upstream search service queried for candidate torrents."""

    key: str
    url: str
    display_name: str


class RawResult(TypedDict, total=False):
    """
    A provider result after boundary coercion.

    ``magnetLink`` is always present; the optional text fields are present
    only when the provider sent a usable value. ``size`` keeps the provider's
    representation (display string or byte count).
    """

    magnetLink: str
    title: str
    filename: str
    quality: str
    size: str | int | float
    source: str


@dataclass
class CandidateStream:
    """Structured information for one unique torrent.

    Attributes:
        info_hash: Lowercase hex info hash; the identity of the candidate.
        magnet_uri: Magnet link as received from the first provider.
        filename: Release filename used for matching and display.
        display_title: Provider title (falls back to the filename).
        quality: Raw quality label, e.g. ``"1080p"``; empty when unknown.
        size: Size as displayed, e.g. ``"1.4 GB"``; empty when unknown.
        size_mb: Size in megabytes for ranking; 0 when unknown.
        source_name: Display name of the provider that supplied it.
    """

    info_hash: str
    magnet_uri: str
    filename: str
    display_title: str
    quality: str
    size: str
    size_mb: float
    source_name: str


@dataclass
class RankedStream:
    """A candidate with the presentation fields rendered for the player."""

    candidate: CandidateStream
    quality_symbol: str
    name: str
    title: str
    features: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "url": self.candidate.magnet_uri,
            "infoHash": self.candidate.info_hash,
            "behaviorHints": {"notWebReady": True},
        }
