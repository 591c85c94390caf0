# raw_torrents/utils.py

import math
import re

from .services.errors import InvalidIdentifier

_IMDB_ID = re.compile(r"tt[0-9]+")
_TMDB_ID = re.compile(r"(?:tmdb-)?([0-9]+)")


def parse_media_id(media_id: str) -> tuple[str, str]:
    """
    Classifies a media identifier and returns ``(id_type, query_id)``.

    Examples:
        - "tt0111161" -> ("imdb", "tt0111161")
        - "tmdb-603" -> ("tmdb", "603")
        - "603" -> ("tmdb", "603")

    Raises:
        InvalidIdentifier: for any other shape.
    """
    if not isinstance(media_id, str):
        raise InvalidIdentifier(f"Invalid ID format: {media_id!r}")
    if _IMDB_ID.fullmatch(media_id):
        return "imdb", media_id
    tmdb_match = _TMDB_ID.fullmatch(media_id)
    if tmdb_match:
        return "tmdb", tmdb_match.group(1)
    raise InvalidIdentifier(f"Invalid ID format: {media_id!r}")


def format_bytes(size_bytes: int) -> str:
    """Converts bytes into a human-readable string (e.g., KB, MB, GB)."""
    if size_bytes <= 0:
        return "0B"
    size_name = ("B", "KB", "MB", "GB", "TB")
    i = min(int(math.floor(math.log(size_bytes, 1024))), len(size_name) - 1)
    p = math.pow(1024, i)
    s = round(size_bytes / p, 2)
    return f"{s} {size_name[i]}"
