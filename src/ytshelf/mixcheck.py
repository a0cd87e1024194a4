"""Detection of auto-generated mix / radio playlists."""

from __future__ import annotations

import logging

from .config import Config
from .tools import DownloadError, run_yt_dlp_lines
from .utils import playlist_id_from_url

START_RADIO_MARKER = "start_radio"

MIX_KEYWORDS = (
    "mix",
    "radio",
    "station",
    "my mix",
    "your mix",
    "daily mix",
    "discover weekly",
    "release radar",
)


def is_start_radio_link(url: str) -> bool:
    return START_RADIO_MARKER in url


def _is_mix_list_id(list_id: str | None) -> bool:
    # RD* are radio/mix lists, LM is the "liked music" auto playlist.
    if not list_id:
        return False
    return list_id.startswith("RD") or list_id == "LM"


def _title_is_mix(title: str) -> bool:
    lowered = title.lower()
    return any(keyword in lowered for keyword in MIX_KEYWORDS)


def _probe_playlist_title(config: Config, url: str) -> str | None:
    records = run_yt_dlp_lines(
        config,
        url,
        ["--flat-playlist", "--playlist-items", "1"],
        timeout=config.probe_timeout,
    )
    if not records:
        return None
    title = records[0].get("playlist_title")
    return str(title) if title else None


def is_mix_playlist(config: Config, url: str, logger: logging.Logger) -> bool:
    """Return True when *url* points at an auto-generated mix or radio list.

    The URL is checked first, without touching the network. Otherwise the
    first entry is probed for its playlist title. If that probe fails the
    playlist is let through with a warning; any other unexpected error
    rejects it.
    """
    try:
        if _is_mix_list_id(playlist_id_from_url(url)):
            return True
        try:
            title = _probe_playlist_title(config, url)
        except (DownloadError, ValueError, AttributeError) as exc:
            logger.warning(
                "Could not verify playlist type, proceeding with caution... (%s)", exc
            )
            return False
        return bool(title) and _title_is_mix(title)
    except Exception as exc:  # noqa: BLE001 - conservative classification
        logger.error("Error checking playlist type: %s", exc)
        return True
