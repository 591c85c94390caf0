"""Aggregates raw torrent streams from several search providers."""

__version__ = "1.0.0"
