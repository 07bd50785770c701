"""URL path helpers shared by the resource modules."""

from __future__ import annotations

from urllib.parse import quote


def segment(value: str) -> str:
    """Percent-encode one path segment, including any ``/`` it contains."""
    return quote(value, safe="")


def id_from_location(location: str) -> str:
    """Return the trailing id of a ``Location`` header set by a create call."""
    return location.rstrip("/").rsplit("/", 1)[-1]
