# raw_torrents/services/scoring.py

import re
from typing import Any

_QUALITY_PATTERN = re.compile(r"(?i)2160p|1080p|720p|480p|4k|uhd|HDTS|CAM")
_SIZE_PATTERN = re.compile(r"(?i)(\d+(?:\.\d+)?)\s*(GB|MB)")
# "1,024 MB" groups thousands; "1,4 GB" uses a decimal comma.
_SIZE_VALUE_PATTERN = re.compile(
    r"(?i)(\d{1,3}(?:,\d{3})+|\d+)(?:[.,](\d+))?\s*(GB|MB)"
)

# Checked in order; the first rule whose substrings appear in the quality
# text wins. (tier, symbol, substrings)
_QUALITY_RULES: tuple[tuple[int, str, tuple[str, ...]], ...] = (
    (2160, "💨", ("2160", "4k", "uhd")),
    (1080, "🎛️", ("1080",)),
    (720, "🁬", ("720",)),
    (480, "⛃", ("480",)),
    (0, "🎲", ("cam", "hdts")),
)
UNKNOWN_QUALITY_SYMBOL = "🃠"

_FEATURE_PATTERNS = {
    # More specific HDR variants first; only the first HDR label is reported.
    "HDR10+": re.compile(r"(?i)\bhdr10(?:\+|plus)"),
    "HDR10": re.compile(r"(?i)\bhdr10\b"),
    "HDR": re.compile(r"(?i)\bhdr\b"),
    "Dolby Vision": re.compile(r"(?i)\b(?:dv|dovi|dolby[\s.]?vision)\b"),
    "HEVC": re.compile(r"(?i)\b(?:x\s*265|h\s*[.\s]?265|hevc)\b"),
    "AV1": re.compile(r"(?i)\bav1\b"),
    "10bit": re.compile(r"(?i)\b10[\s.-]?bit\b"),
    "Atmos": re.compile(r"(?i)\batmos\b"),
    "DTS": re.compile(r"(?i)\bdts(?:-?hd|-?x)?\b"),
    "7.1": re.compile(r"(?<!\d)7[.\s]1(?!\d)"),
    "5.1": re.compile(r"(?<!\d)5[.\s]1(?!\d)"),
    "REMUX": re.compile(r"(?i)\bremux\b"),
    "WEB-DL": re.compile(r"(?i)\bweb[\s.-]?dl\b"),
    "BluRay": re.compile(r"(?i)\bblu[\s.-]?ray\b"),
}
_HDR_LABELS = ("HDR10+", "HDR10", "HDR")


def parse_quality(text: str | None) -> str:
    """Returns the first quality token in ``text`` (e.g. ``"1080p"``), or ``""``."""
    if not text:
        return ""
    match = _QUALITY_PATTERN.search(text)
    return match.group(0) if match else ""


def parse_size(text: str | None) -> str:
    """Returns the first size token in ``text`` (e.g. ``"1.4 GB"``), or ``""``."""
    if not text:
        return ""
    match = _SIZE_PATTERN.search(text)
    return match.group(0) if match else ""


def size_to_mb(size: Any) -> float:
    """Converts a size to megabytes for ranking.

    Strings such as ``"1.5 GB"``, ``"1,5 GB"`` or ``"1,024 MB"`` are parsed
    (1 GB = 1024 MB).
    Numbers are treated as byte counts. Anything else counts as 0.
    """
    if isinstance(size, bool):
        return 0.0
    if isinstance(size, (int, float)):
        return size / (1024**2) if size > 0 else 0.0
    if not isinstance(size, str):
        return 0.0
    match = _SIZE_VALUE_PATTERN.search(size)
    if not match:
        return 0.0
    whole, fraction, unit = match.groups()
    value = float(f"{whole.replace(',', '')}.{fraction or 0}")
    if unit.upper() == "GB":
        return value * 1024
    return value


def _match_quality_rule(text: str) -> tuple[int, str] | None:
    lowered = str(text).lower()
    for tier, symbol, needles in _QUALITY_RULES:
        if any(needle in lowered for needle in needles):
            return tier, symbol
    return None


def quality_tier(text: str | None) -> int:
    """Numeric resolution tier used for ranking: 2160, 1080, 720, 480 or 0."""
    rule = _match_quality_rule(text or "")
    return rule[0] if rule else 0


def quality_symbol(text: str | None) -> str:
    """Maps a quality label (or filename) to its presentation symbol."""
    rule = _match_quality_rule(text or "")
    return rule[1] if rule else UNKNOWN_QUALITY_SYMBOL


def detect_video_features(filename: str | None) -> list[str]:
    """Lists notable video/audio features mentioned in a release name.

    Names are normalised so dots and underscores separate tokens, e.g.
    ``"Movie.2160p.DV.HDR10.x265.Atmos"`` -> ``["HDR10", "Dolby Vision",
    "HEVC", "Atmos"]``.
    """
    if not filename:
        return []
    # Keep "5.1"/"7.1" intact while splitting other dotted tokens.
    text = re.sub(r"(?<!\d)[._]|[._](?!\d)", " ", filename)
    features: list[str] = []
    for label, pattern in _FEATURE_PATTERNS.items():
        if label in _HDR_LABELS and any(f in _HDR_LABELS for f in features):
            continue
        if pattern.search(text):
            features.append(label)
    return features
