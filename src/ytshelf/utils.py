"""Utility helpers for naming and URLs."""

from __future__ import annotations

import re
from urllib.parse import parse_qs, urlparse


_INVALID_CHARS = re.compile(r'[<>:"/\\|?*]')


def sanitize(value: str) -> str:
    return _INVALID_CHARS.sub("_", value)


def playlist_id_from_url(url: str) -> str | None:
    """Return the ``list`` query parameter of *url*, or ``None``.

    >>> playlist_id_from_url("https://www.youtube.com/playlist?list=PLabc&si=x")
    'PLabc'
    >>> playlist_id_from_url("https://www.youtube.com/watch?v=abc")
    """
    values = parse_qs(urlparse(url).query).get("list")
    if values:
        return values[0]
    return None
