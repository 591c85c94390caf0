"""Failure modes of the aggregation pipeline.

None of these escape ``StreamAggregator.fetch``; each is caught at the stage
that raises it, logged, and turned into an empty contribution.
"""


class AggregationError(Exception):
    """Base class for every pipeline failure."""


class InvalidIdentifier(AggregationError):
    """The media id is neither an IMDB nor a TMDB identifier."""


class MalformedMagnet(AggregationError):
    """A result's magnet link carries no usable ``btih`` hash."""


class FetchError(AggregationError):
    """A provider request did not produce a usable payload."""

    def __init__(self, target: str, message: str) -> None:
        super().__init__(f"{message} ({target})")
        self.target = target


class ProviderTimeout(FetchError):
    """The provider did not answer before the timeout."""

    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(url, f"Timeout after {timeout:g}s")
        self.timeout = timeout


class ProviderHttpError(FetchError):
    """Transport failure or non-2xx response."""

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        super().__init__(url, message)
        self.status_code = status_code


class MalformedProviderPayload(FetchError):
    """The body is not JSON or does not have the expected shape."""
