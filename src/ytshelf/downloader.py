"""Download orchestration: metadata, dedup, transcode, tag, place."""

from __future__ import annotations

import logging
import urllib.error
from dataclasses import dataclass, field
from pathlib import Path

from mutagen import MutagenError

from .config import Config
from .library import Library
from .mixcheck import is_mix_playlist, is_start_radio_link
from .progress import ProgressReporter
from .tagging import fetch_thumbnail, write_tags
from .tools import (
    DownloadError,
    append_log_line,
    run_command,
    run_yt_dlp_json,
    run_yt_dlp_lines,
)
from .utils import sanitize


@dataclass(frozen=True)
class TrackMeta:
    video_id: str
    title: str
    artist: str
    album: str
    thumbnail: str | None

    @classmethod
    def from_info(cls, info: dict) -> "TrackMeta":
        """Resolve display fields from a yt-dlp info dict.

        title:  track > title
        artist: artist > uploader > "Unknown"
        album:  album > artist > uploader > "YouTube"
        """
        if not info.get("id"):
            raise DownloadError("yt-dlp metadata has no id")
        title = info.get("track") or info.get("title")
        if not title:
            raise DownloadError(f"yt-dlp metadata for {info['id']} has no title")
        return cls(
            video_id=str(info["id"]),
            title=str(title),
            artist=str(info.get("artist") or info.get("uploader") or "Unknown"),
            album=str(
                info.get("album")
                or info.get("artist")
                or info.get("uploader")
                or "YouTube"
            ),
            thumbnail=info.get("thumbnail") or None,
        )


@dataclass(frozen=True)
class AcquireResult:
    path: Path
    skipped: bool = False


@dataclass
class PlaylistReport:
    saved: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)
    rejected: bool = False

    @property
    def attempted(self) -> int:
        return len(self.saved) + len(self.skipped) + len(self.failed)


def transcode_args(config: Config, source: Path, target: Path) -> list[str]:
    return [
        config.ffmpeg_bin,
        "-y",
        "-i",
        str(source),
        "-q:a",
        "0",
        "-map",
        "a",
        str(target),
    ]


def download_args(config: Config, url: str, target: Path) -> list[str]:
    return [config.yt_dlp_bin, "-f", "bestaudio", "-o", str(target), url]


def _fetch_and_place(
    config: Config,
    url: str,
    meta: TrackMeta,
    final_path: Path,
    logger: logging.Logger,
) -> None:
    raw_file = config.work_dir / f"{meta.video_id}.webm"
    encoded_file = config.work_dir / f"{meta.video_id}.{config.audio_ext}"
    cover_path = config.cover_path
    config.work_dir.mkdir(parents=True, exist_ok=True)

    run_command(download_args(config, url, raw_file), logger)
    run_command(transcode_args(config, raw_file, encoded_file), logger)
    raw_file.unlink()

    if meta.thumbnail:
        fetch_thumbnail(meta.thumbnail, cover_path)
    else:
        logger.warning("No thumbnail for %s; saving without cover art", meta.title)

    write_tags(
        encoded_file,
        title=meta.title,
        artist=meta.artist,
        album=meta.album,
        cover_path=cover_path if meta.thumbnail else None,
    )
    encoded_file.replace(final_path)
    if cover_path.exists():
        cover_path.unlink()


def download_song(
    config: Config,
    url: str,
    logger: logging.Logger,
    library: Library | None = None,
) -> AcquireResult:
    """Acquire one track into the library.

    The computed destination path is the only dedup key: if a file is
    already there nothing else happens. Any failure is re-raised as
    ``DownloadError`` naming *url*; temporary files from the failed step are
    not cleaned up.
    """
    library = library or Library(config)
    logger.info("Fetching video info...")
    try:
        meta = TrackMeta.from_info(run_yt_dlp_json(config, url, logger=logger))
    except DownloadError as exc:
        raise DownloadError(f"Failed to download {url}: {exc}") from exc

    final_path = library.final_path(meta.artist, meta.title, config.audio_ext)
    if library.exists(final_path):
        logger.info("Already downloaded: %s", sanitize(meta.title))
        append_log_line(config, "skipped.log", f"{final_path} | {url}")
        return AcquireResult(path=final_path, skipped=True)

    logger.info("Downloading: %s", sanitize(meta.title))
    try:
        _fetch_and_place(config, url, meta, final_path, logger)
    except (DownloadError, urllib.error.URLError, MutagenError, OSError) as exc:
        raise DownloadError(f"Failed to download {url}: {exc}") from exc

    logger.info("Saved: %s", final_path)
    append_log_line(config, "success.log", f"{final_path} | {url}")
    return AcquireResult(path=final_path)


def resolve_playlist(
    config: Config, playlist_url: str, logger: logging.Logger | None = None
) -> list[str]:
    """Return the track URLs of *playlist_url* in playlist order."""
    entries = run_yt_dlp_lines(config, playlist_url, ["--flat-playlist"], logger=logger)
    return [
        config.watch_url_for(str(entry["id"]))
        for entry in entries
        if isinstance(entry, dict) and entry.get("id")
    ]


def download_playlist(
    config: Config,
    playlist_url: str,
    logger: logging.Logger,
    library: Library | None = None,
) -> PlaylistReport:
    """Acquire every track of a playlist, one after another.

    Start-radio links and auto-generated mixes are rejected up front. A
    failing track is logged and skipped; the rest of the playlist still runs.
    """
    logger.info("Fetching playlist...")
    report = PlaylistReport()

    if is_start_radio_link(playlist_url):
        logger.warning("Skipping start_radio link - not supported.")
        report.rejected = True
        return report

    if is_mix_playlist(config, playlist_url, logger):
        logger.warning("Mix playlists are not supported.")
        report.rejected = True
        return report

    library = library or Library(config)
    track_urls = resolve_playlist(config, playlist_url, logger)
    logger.info("Starting downloads: %s item(s)", len(track_urls))

    with ProgressReporter(total=len(track_urls), logger=logger) as progress:
        for track_url in track_urls:
            try:
                result = download_song(config, track_url, logger, library=library)
            except Exception as exc:  # noqa: BLE001 - isolate per-track failures
                reason = exc.__cause__ or exc
                logger.error("Failed to download %s: %s", track_url, reason)
                append_log_line(config, "errors.log", f"{track_url} | {reason}")
                report.failed.append((track_url, str(reason)))
                progress.fail(track_url)
                continue
            if result.skipped:
                report.skipped.append(result.path)
                progress.skip(result.path.name)
            else:
                report.saved.append(result.path)
                progress.complete(result.path.name)

    logger.info(
        "Playlist done: %s saved, %s skipped, %s failed",
        len(report.saved),
        len(report.skipped),
        len(report.failed),
    )
    return report
