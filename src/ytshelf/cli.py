"""Command-line interface for ytshelf."""

from __future__ import annotations

import configparser
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from .config import USER_CONFIG_PATH, Config, env_overrides, load_user_config
from .downloader import download_playlist, download_song
from .library import ArtistNotFoundError, Library
from .player import AutoPlayer, PlaybackError, play_songs
from .prompt import RichChooser
from .tools import DownloadError, ensure_dependencies

USAGE = """
Usage:
  ytshelf --song "youtube-url"              # Download single song
  ytshelf --playlist "playlist-url"         # Download entire playlist
  ytshelf --play                            # Choose songs one at a time
  ytshelf --play --random                   # Play all songs in random order
  ytshelf --play --artist "Eminem"          # Choose among Eminem songs
  ytshelf --play --artist "Eminem" --random # Play all Eminem songs randomly
"""

MODE_SONG = "--song"
MODE_PLAYLIST = "--playlist"
MODE_PLAY = "--play"
MODES = (MODE_SONG, MODE_PLAYLIST, MODE_PLAY)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_UNHANDLED = 2
EXIT_INTERRUPTED = 130


@dataclass(frozen=True)
class Invocation:
    mode: str | None
    url: str | None = None
    random_order: bool = False
    artist: str | None = None


def parse_args(argv: list[str]) -> Invocation:
    """Positional parsing: ``<mode> [url]``, plus ``--random``/``--artist X``.

    Flags are presence checks anywhere on the line; anything unrecognised is
    ignored.
    """
    if not argv:
        return Invocation(mode=None)
    artist = None
    if "--artist" in argv:
        index = argv.index("--artist")
        if index + 1 < len(argv) and argv[index + 1]:
            artist = argv[index + 1]
    return Invocation(
        mode=argv[0],
        url=argv[1] if len(argv) > 1 else None,
        random_order="--random" in argv,
        artist=artist,
    )


def build_config(
    config_path: Path = USER_CONFIG_PATH, environ: dict | None = None
) -> Config:
    config = Config().with_overrides(**load_user_config(config_path))
    return config.with_overrides(**env_overrides(environ))


def configure_logging(log_dir: Path) -> logging.Logger:
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "ytshelf.log"
    logger = logging.getLogger("ytshelf")
    logger.setLevel(logging.INFO)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    # Named so ProgressReporter can swap it for a RichHandler during playlists.
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(logging.Formatter("%(message)s"))
    stream_handler.set_name("stream")
    logger.handlers.clear()
    logger.addHandler(file_handler)
    logger.addHandler(stream_handler)
    return logger


def run(invocation: Invocation, config: Config, logger: logging.Logger) -> int:
    library = Library(config)
    library.root_dir()
    if invocation.mode == MODE_SONG:
        ensure_dependencies(config)
        download_song(config, invocation.url, logger, library=library)
    elif invocation.mode == MODE_PLAYLIST:
        ensure_dependencies(config)
        download_playlist(config, invocation.url, logger, library=library)
    else:
        play_songs(
            library,
            AutoPlayer(config),
            RichChooser(),
            logger,
            random_order=invocation.random_order,
            artist=invocation.artist,
        )
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    invocation = parse_args(sys.argv[1:] if argv is None else argv)
    if invocation.mode is None:
        print(USAGE)
        return EXIT_OK
    if invocation.mode not in MODES:
        print("Unknown mode! Use --song, --playlist or --play")
        return EXIT_USAGE
    if invocation.mode in (MODE_SONG, MODE_PLAYLIST) and not invocation.url:
        print(f"{invocation.mode} needs a URL.")
        print(USAGE)
        return EXIT_USAGE

    try:
        config = build_config()
        logger = configure_logging(config.log_dir)
    except (configparser.Error, ValueError, OSError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_UNHANDLED
    try:
        return run(invocation, config, logger)
    except ArtistNotFoundError:
        logger.error("Artist not found: %s", invocation.artist)
        return EXIT_FAILED
    except (DownloadError, PlaybackError) as exc:
        logger.error("Error: %s", exc)
        return EXIT_FAILED
    except KeyboardInterrupt:
        logger.warning("Interrupted.")
        return EXIT_INTERRUPTED
    except Exception as exc:  # noqa: BLE001 - CLI boundary
        logger.exception("Unhandled error: %s", exc)
        return EXIT_UNHANDLED


if __name__ == "__main__":
    raise SystemExit(main())
