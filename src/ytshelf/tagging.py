"""Cover art download and ID3 tag embedding."""

from __future__ import annotations

import urllib.request
from pathlib import Path

from mutagen.id3 import APIC, ID3, ID3NoHeaderError, TALB, TIT2, TPE1


def fetch_thumbnail(url: str, destination: Path) -> Path:
    """Download *url* and write the raw response body to *destination*.

    HTTP and network errors propagate (``urllib.error.URLError`` and
    subclasses); the caller decides whether that aborts the track.
    """
    with urllib.request.urlopen(url) as response:
        data = response.read()
    destination.write_bytes(data)
    return destination


def write_tags(
    file_path: Path,
    *,
    title: str,
    artist: str,
    album: str,
    cover_path: Path | None = None,
) -> None:
    """Write title/artist/album (and front cover) as ID3v2.4 frames in place."""
    try:
        id3 = ID3(file_path)
    except ID3NoHeaderError:
        id3 = ID3()
    id3["TIT2"] = TIT2(encoding=3, text=[title])
    id3["TPE1"] = TPE1(encoding=3, text=[artist])
    id3["TALB"] = TALB(encoding=3, text=[album])
    if cover_path is not None and cover_path.exists():
        id3.delall("APIC")
        id3.add(
            APIC(
                encoding=3,
                mime="image/jpeg",
                type=3,
                desc="Cover",
                data=cover_path.read_bytes(),
            )
        )
    id3.save(file_path, v2_version=4)
