"""Configuration defaults and helpers."""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path

USER_CONFIG_PATH = Path("~/.config/ytshelf/config.ini").expanduser()
ROOT_ENV_VAR = "YTSHELF_ROOT"

DEFAULT_PLAYER_BACKENDS = ("mpg123", "afplay", "ffplay", "vlc")

_USER_KEYS = {"root_dir", "work_dir", "log_dir", "player_backends", "probe_timeout"}


def load_user_config(config_path: Path = USER_CONFIG_PATH) -> dict:
    """Read ~/.config/ytshelf/config.ini and return overrides as a dict.

    Only keys that are explicitly set in the file are returned, so callers can
    distinguish "not set" from "set to default".

    Supported keys (all in [ytshelf] section):
        root_dir         = ~/Music/ytshelf
        work_dir         = /tmp
        log_dir          = ~/.cache/ytshelf/logs
        player_backends  = mpg123,ffplay
        probe_timeout    = 10
    """
    if not config_path.exists():
        return {}
    parser = configparser.ConfigParser()
    parser.read(config_path, encoding="utf-8")
    section = "ytshelf"
    if not parser.has_section(section):
        return {}
    values = {
        key: value for key, value in parser[section].items() if key in _USER_KEYS
    }
    if "player_backends" in values:
        values["player_backends"] = tuple(
            name.strip() for name in values["player_backends"].split(",") if name.strip()
        )
    if "probe_timeout" in values:
        values["probe_timeout"] = float(values["probe_timeout"])
    return values


def env_overrides(environ: dict | None = None) -> dict:
    environ = os.environ if environ is None else environ
    root = environ.get(ROOT_ENV_VAR)
    return {"root_dir": root} if root else {}


@dataclass(frozen=True)
class Config:
    root_dir: Path = Path("Music")
    # Temporary <id>.webm / <id>.mp3 / cover.jpg are staged here.
    work_dir: Path = Path(".")
    log_dir: Path = Path("~/.cache/ytshelf/logs").expanduser()
    player_backends: tuple[str, ...] = DEFAULT_PLAYER_BACKENDS
    yt_dlp_bin: str = "yt-dlp"
    ffmpeg_bin: str = "ffmpeg"
    audio_ext: str = "mp3"
    probe_timeout: float = 10
    cover_filename: str = "cover.jpg"
    watch_url: str = "https://www.youtube.com/watch?v={id}"

    def with_overrides(
        self,
        *,
        root_dir: str | Path | None = None,
        work_dir: str | Path | None = None,
        log_dir: str | Path | None = None,
        player_backends: tuple[str, ...] | None = None,
        probe_timeout: float | None = None,
    ) -> "Config":
        return Config(
            root_dir=Path(root_dir).expanduser() if root_dir else self.root_dir,
            work_dir=Path(work_dir).expanduser() if work_dir else self.work_dir,
            log_dir=Path(log_dir).expanduser() if log_dir else self.log_dir,
            player_backends=tuple(player_backends)
            if player_backends
            else self.player_backends,
            yt_dlp_bin=self.yt_dlp_bin,
            ffmpeg_bin=self.ffmpeg_bin,
            audio_ext=self.audio_ext,
            probe_timeout=probe_timeout
            if probe_timeout is not None
            else self.probe_timeout,
            cover_filename=self.cover_filename,
            watch_url=self.watch_url,
        )

    def watch_url_for(self, video_id: str) -> str:
        return self.watch_url.format(id=video_id)

    @property
    def cover_path(self) -> Path:
        return self.work_dir / self.cover_filename
