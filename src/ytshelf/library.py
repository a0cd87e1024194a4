"""On-disk library layout: <root>/<artist>/<title>.<ext>."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import Config
from .utils import sanitize

# Files the OS drops into folders on its own.
_JUNK_NAMES = frozenset({".DS_Store", "Thumbs.db", "desktop.ini"})


class ArtistNotFoundError(LookupError):
    pass


@dataclass(frozen=True)
class SongEntry:
    path: Path
    name: str


class Library:
    """Filesystem-backed music library.

    The directory tree is the only catalog: one directory per artist, one
    audio file per track. Nothing here writes files; the only side effect is
    directory creation.
    """

    def __init__(self, config: Config) -> None:
        self._root = config.root_dir

    def root_dir(self) -> Path:
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    def artist_path(self, name: str) -> Path:
        return self._root / sanitize(name)

    def artist_dir(self, name: str) -> Path:
        path = self.artist_path(name)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def final_path(self, artist: str, title: str, ext: str) -> Path:
        return self.artist_dir(artist) / f"{sanitize(title)}.{ext}"

    @staticmethod
    def exists(path: Path) -> bool:
        return path.exists()

    def enumerate_artists(self) -> list[Path]:
        if not self._root.is_dir():
            return []
        return sorted(p for p in self._root.iterdir() if p.is_dir())

    @staticmethod
    def enumerate_tracks(artist_dir: Path) -> list[Path]:
        return sorted(
            p
            for p in artist_dir.iterdir()
            if p.is_file() and p.name not in _JUNK_NAMES
        )


def _entries_for(library: Library, artist_dir: Path) -> list[SongEntry]:
    return [
        SongEntry(path=track, name=f"{artist_dir.name} - {track.name}")
        for track in library.enumerate_tracks(artist_dir)
    ]


def collect_songs(library: Library, artist: str | None = None) -> list[SongEntry]:
    """List playable songs, optionally restricted to one artist.

    Raises ``ArtistNotFoundError`` when *artist* has no directory.
    """
    if artist:
        artist_dir = library.artist_path(artist)
        if not artist_dir.is_dir():
            raise ArtistNotFoundError(artist)
        return _entries_for(library, artist_dir)
    songs: list[SongEntry] = []
    for artist_dir in library.enumerate_artists():
        songs.extend(_entries_for(library, artist_dir))
    return songs
