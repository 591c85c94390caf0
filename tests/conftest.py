import sys
from pathlib import Path

import pytest

# Ensure root path is available for imports
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from raw_torrents import config  # noqa: E402
from raw_torrents.services.stream_data import (  # noqa: E402
    CandidateStream,
    ProviderSource,
)


@pytest.fixture(autouse=True)
def clear_provider_cache():
    config._provider_cache.clear()
    yield
    config._provider_cache.clear()


def magnet_for(number: int, name: str = "release") -> str:
    """Builds a magnet link whose info hash is ``number`` as 40 hex digits."""
    return f"magnet:?xt=urn:btih:{number:040x}&dn={name}"


@pytest.fixture
def make_magnet():
    return magnet_for


@pytest.fixture
def providers():
    return tuple(
        ProviderSource(
            key=f"p{idx}", url=f"https://provider{idx}.example", display_name=f"P{idx}"
        )
        for idx in range(1, 4)
    )


@pytest.fixture
def make_candidate():
    def _make(
        number: int = 1,
        *,
        quality: str = "1080p",
        size_mb: float = 4000,
        size: str = "",
        filename: str | None = None,
        source: str = "P1",
    ) -> CandidateStream:
        name = filename or f"Movie.2023.{quality or 'x'}.{number}"
        return CandidateStream(
            info_hash=f"{number:040x}",
            magnet_uri=magnet_for(number),
            filename=name,
            display_title=name,
            quality=quality,
            size=size,
            size_mb=size_mb,
            source_name=source,
        )

    return _make
