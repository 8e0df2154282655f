"""Lichess Board API client: event watching, seeking and live game streaming."""

__version__ = "0.1.0"
