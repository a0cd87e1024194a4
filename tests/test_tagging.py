import tempfile
import unittest
import urllib.error
from pathlib import Path
from unittest.mock import MagicMock, patch

from mutagen.id3 import ID3

from ytshelf.tagging import fetch_thumbnail, write_tags

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg\xff\xd9"


class TestWriteTags(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.tmp = Path(self._td.name)
        self.audio = self.tmp / "abc123.mp3"
        self.audio.write_bytes(b"\x00" * 128)

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_writes_text_frames_and_cover(self) -> None:
        cover = self.tmp / "cover.jpg"
        cover.write_bytes(JPEG_BYTES)

        write_tags(
            self.audio,
            title="Song One",
            artist="Some Uploader",
            album="Some Uploader",
            cover_path=cover,
        )

        tags = ID3(self.audio)
        self.assertEqual(tags["TIT2"].text, ["Song One"])
        self.assertEqual(tags["TPE1"].text, ["Some Uploader"])
        self.assertEqual(tags["TALB"].text, ["Some Uploader"])
        pictures = tags.getall("APIC")
        self.assertEqual(len(pictures), 1)
        self.assertEqual(pictures[0].data, JPEG_BYTES)
        self.assertEqual(pictures[0].mime, "image/jpeg")
        self.assertEqual(tags.version[:2], (2, 4))

    def test_without_cover(self) -> None:
        write_tags(self.audio, title="T", artist="A", album="B")
        tags = ID3(self.audio)
        self.assertEqual(tags.getall("APIC"), [])
        self.assertEqual(tags["TALB"].text, ["B"])

    def test_rewrites_existing_tags(self) -> None:
        write_tags(self.audio, title="Old", artist="A", album="B")
        write_tags(self.audio, title="New", artist="A", album="B")
        self.assertEqual(ID3(self.audio)["TIT2"].text, ["New"])


class TestFetchThumbnail(unittest.TestCase):
    def test_writes_response_body(self) -> None:
        response = MagicMock()
        response.__enter__.return_value.read.return_value = JPEG_BYTES
        with tempfile.TemporaryDirectory() as temp_dir:
            target = Path(temp_dir) / "cover.jpg"
            with patch("ytshelf.tagging.urllib.request.urlopen", return_value=response) as urlopen:
                result = fetch_thumbnail("https://example.test/thumb.jpg", target)
            self.assertEqual(result, target)
            self.assertEqual(target.read_bytes(), JPEG_BYTES)
        urlopen.assert_called_once_with("https://example.test/thumb.jpg")

    def test_http_error_propagates(self) -> None:
        error = urllib.error.HTTPError("https://example.test/t.jpg", 404, "Not Found", {}, None)
        with tempfile.TemporaryDirectory() as temp_dir:
            target = Path(temp_dir) / "cover.jpg"
            with patch("ytshelf.tagging.urllib.request.urlopen", side_effect=error):
                with self.assertRaises(urllib.error.HTTPError):
                    fetch_thumbnail("https://example.test/t.jpg", target)
            self.assertFalse(target.exists())


if __name__ == "__main__":
    unittest.main()
