"""Local playback through an external audio player."""

from __future__ import annotations

import logging
import random
import shutil
import signal
import subprocess
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol, Sequence, TypeVar

from .config import Config
from .library import Library, SongEntry, collect_songs
from .prompt import Chooser

PLAY_NEXT = "Play next"
EXIT = "Exit"

# A player killed by one of these settles as completed, not failed.
_KILL_SIGNALS = {
    signal.SIGINT,
    signal.SIGTERM,
    getattr(signal, "SIGKILL", signal.SIGTERM),
}

# Extra arguments so each player runs headless and exits at end of file.
_BACKEND_ARGS: dict[str, list[str]] = {
    "mpg123": ["-q"],
    "afplay": [],
    "ffplay": ["-nodisp", "-autoexit", "-loglevel", "error"],
    "vlc": ["--intf", "dummy", "--play-and-exit"],
}

T = TypeVar("T")


class PlaybackError(RuntimeError):
    pass


class PlaybackState(Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Playback:
    """Completion handle for one playback.

    Settles exactly once: PENDING -> COMPLETED or PENDING -> FAILED. The
    first signal wins and later ones are ignored, so an "error" followed by
    an "exit" (or the reverse) cannot resolve it twice.
    """

    def __init__(self, process: subprocess.Popen | None = None) -> None:
        self._process = process
        self._state = PlaybackState.PENDING
        self._error: BaseException | None = None
        self._lock = threading.Lock()
        self._done = threading.Event()
        self.stopped = False

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def error(self) -> BaseException | None:
        return self._error

    def _settle(self, state: PlaybackState, error: BaseException | None) -> bool:
        with self._lock:
            if self._state is not PlaybackState.PENDING:
                return False
            self._state = state
            self._error = error
        self._done.set()
        return True

    def complete(self) -> bool:
        return self._settle(PlaybackState.COMPLETED, None)

    def fail(self, error: BaseException) -> bool:
        return self._settle(PlaybackState.FAILED, error)

    def stop(self) -> None:
        self.stopped = True
        if self._process is not None and self._process.poll() is None:
            self._process.terminate()

    def wait(self) -> PlaybackState:
        try:
            self._done.wait()
        except KeyboardInterrupt:
            # The track itself did not fail; the caller still has to stop.
            self.stop()
            self.complete()
            raise
        return self._state


def _watch(process: subprocess.Popen, playback: Playback, name: str) -> None:
    try:
        returncode = process.wait()
    except OSError as exc:
        playback.fail(PlaybackError(f"{name} failed: {exc}"))
        return
    killed = returncode < 0 and -returncode in _KILL_SIGNALS
    if returncode == 0 or killed or playback.stopped:
        playback.complete()
    else:
        playback.fail(PlaybackError(f"{name} exited with status {returncode}"))


class Player(Protocol):
    def play(self, path: Path) -> Playback: ...


@dataclass(frozen=True)
class PlayerBackend:
    name: str
    executable: str

    def command(self, path: Path) -> list[str]:
        return [self.executable, *_BACKEND_ARGS.get(self.name, []), str(path)]

    def play(self, path: Path) -> Playback:
        try:
            process = subprocess.Popen(
                self.command(path),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            playback = Playback()
            playback.fail(PlaybackError(f"{self.name} could not be started: {exc}"))
            return playback
        playback = Playback(process)
        watcher = threading.Thread(
            target=_watch, args=(process, playback, self.name), daemon=True
        )
        watcher.start()
        return playback


def find_backend(config: Config) -> PlayerBackend:
    for name in config.player_backends:
        executable = shutil.which(name)
        if executable:
            return PlayerBackend(name=name, executable=executable)
    raise PlaybackError(
        "No audio player found (tried: %s)" % ", ".join(config.player_backends)
    )


def shuffle(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a Fisher-Yates shuffled copy of *items*."""
    rng = rng or random.Random()
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def play_one(player: Player, song: SongEntry, logger: logging.Logger) -> bool:
    logger.info("Now playing: %s", song.name)
    playback = player.play(song.path)
    if playback.wait() is PlaybackState.FAILED:
        logger.error("Could not play %s: %s", song.name, playback.error)
        return False
    return True


def _play_queue(
    songs: list[SongEntry], player: Player, logger: logging.Logger
) -> int:
    for song in songs:
        play_one(player, song, logger)
    logger.info("All songs finished.")
    return len(songs)


def _play_interactive(
    songs: list[SongEntry], player: Player, chooser: Chooser, logger: logging.Logger
) -> int:
    remaining = list(songs)
    played = 0
    while remaining:
        picked = chooser.choose("Choose a song to play:", [s.name for s in remaining])
        selected = next((s for s in remaining if s.name == picked), None)
        if selected is None:
            logger.warning("Song not found: %s", picked)
            break
        play_one(player, selected, logger)
        played += 1
        remaining.remove(selected)
        if not remaining:
            logger.info("All songs played.")
            break
        if chooser.choose("Play next song or exit?", [PLAY_NEXT, EXIT]) != PLAY_NEXT:
            break
    return played


def play_songs(
    library: Library,
    player: Player,
    chooser: Chooser,
    logger: logging.Logger,
    *,
    random_order: bool = False,
    artist: str | None = None,
    rng: random.Random | None = None,
) -> int:
    """Play songs from the library and return how many were started.

    Raises ``ArtistNotFoundError`` if *artist* is given but has no directory.
    """
    songs = collect_songs(library, artist)
    if not songs:
        logger.info("No songs found.")
        return 0
    if random_order:
        return _play_queue(shuffle(songs, rng), player, logger)
    return _play_interactive(songs, player, chooser, logger)


class AutoPlayer:
    """Player that resolves the first available backend on first use."""

    def __init__(self, config: Config) -> None:
        self._config = config
        self._backend: PlayerBackend | None = None

    def play(self, path: Path) -> Playback:
        if self._backend is None:
            self._backend = find_backend(self._config)
        return self._backend.play(path)
