import io
import logging
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import patch

from ytshelf.cli import Invocation, build_config, main, parse_args
from ytshelf.config import Config
from ytshelf.downloader import AcquireResult
from ytshelf.tools import DownloadError

LOGGER = logging.getLogger("ytshelf.test.cli")


class TestParseArgs(unittest.TestCase):
    def test_empty(self) -> None:
        self.assertEqual(parse_args([]), Invocation(mode=None))

    def test_song(self) -> None:
        invocation = parse_args(["--song", "https://youtu.be/abc"])
        self.assertEqual(invocation.mode, "--song")
        self.assertEqual(invocation.url, "https://youtu.be/abc")

    def test_play_flags_any_position(self) -> None:
        invocation = parse_args(["--play", "--artist", "Queen", "--random"])
        self.assertTrue(invocation.random_order)
        self.assertEqual(invocation.artist, "Queen")
        invocation = parse_args(["--play", "--random", "--verbose", "--artist", "Queen"])
        self.assertTrue(invocation.random_order)
        self.assertEqual(invocation.artist, "Queen")

    def test_artist_without_value(self) -> None:
        invocation = parse_args(["--play", "--artist"])
        self.assertIsNone(invocation.artist)
        self.assertFalse(invocation.random_order)


class TestBuildConfig(unittest.TestCase):
    def test_env_beats_ini(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            ini = Path(temp_dir) / "config.ini"
            ini.write_text("[ytshelf]\nroot_dir = /from/ini\nprobe_timeout = 2\n", encoding="utf-8")
            config = build_config(ini, environ={"YTSHELF_ROOT": "/from/env"})
        self.assertEqual(config.root_dir, Path("/from/env"))
        self.assertEqual(config.probe_timeout, 2.0)


class TestMain(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.tmp = Path(self._td.name)
        self.config = Config(
            root_dir=self.tmp / "Music",
            work_dir=self.tmp / "work",
            log_dir=self.tmp / "logs",
        )
        patchers = [
            patch("ytshelf.cli.build_config", return_value=self.config),
            patch("ytshelf.cli.configure_logging", return_value=LOGGER),
            patch("ytshelf.cli.ensure_dependencies"),
        ]
        for p in patchers:
            p.start()
            self.addCleanup(p.stop)

    def tearDown(self) -> None:
        self._td.cleanup()

    def _main(self, argv: list[str]) -> tuple[int, str]:
        output = io.StringIO()
        with redirect_stdout(output):
            code = main(argv)
        return code, output.getvalue()

    def test_no_arguments_prints_usage(self) -> None:
        code, out = self._main([])
        self.assertEqual(code, 0)
        self.assertIn("Usage:", out)

    def test_unknown_mode(self) -> None:
        code, out = self._main(["--dance"])
        self.assertEqual(code, 2)
        self.assertIn("Unknown mode", out)
        self.assertNotIn("Usage:", out)

    def test_song_without_url(self) -> None:
        code, out = self._main(["--song"])
        self.assertEqual(code, 2)
        self.assertIn("Usage:", out)

    def test_song_dispatch_creates_root(self) -> None:
        url = "https://example.test/watch?v=abc123"
        result = AcquireResult(path=self.tmp / "Music" / "A" / "B.mp3")
        with patch("ytshelf.cli.download_song", return_value=result) as download:
            code, _ = self._main(["--song", url])
        self.assertEqual(code, 0)
        self.assertTrue((self.tmp / "Music").is_dir())
        args, kwargs = download.call_args
        self.assertEqual(args[:2], (self.config, url))

    def test_song_failure_exits_nonzero(self) -> None:
        with patch("ytshelf.cli.download_song", side_effect=DownloadError("Failed to download x: 403")):
            with self.assertLogs(LOGGER, level="ERROR") as logs:
                code, _ = self._main(["--song", "x"])
        self.assertEqual(code, 1)
        self.assertIn("403", logs.output[0])

    def test_playlist_dispatch(self) -> None:
        with patch("ytshelf.cli.download_playlist") as download:
            code, _ = self._main(["--playlist", "https://example.test/p?list=PL1"])
        self.assertEqual(code, 0)
        self.assertEqual(download.call_args[0][1], "https://example.test/p?list=PL1")

    def test_missing_artist_plays_nothing(self) -> None:
        with patch("ytshelf.player.PlayerBackend.play") as play, patch(
            "ytshelf.player.find_backend"
        ) as find:
            with self.assertLogs(LOGGER, level="ERROR") as logs:
                code, _ = self._main(["--play", "--artist", "Ghost", "--random"])
        self.assertEqual(code, 1)
        self.assertIn("Artist not found: Ghost", logs.output[0])
        play.assert_not_called()
        find.assert_not_called()

    def test_play_empty_library(self) -> None:
        with patch("ytshelf.player.find_backend") as find:
            with self.assertLogs(LOGGER, level="INFO") as logs:
                code, _ = self._main(["--play", "--random"])
        self.assertEqual(code, 0)
        self.assertIn("No songs found.", logs.output[0])
        find.assert_not_called()

    def test_no_player_installed(self) -> None:
        song = self.tmp / "Music" / "Queen" / "a.mp3"
        song.parent.mkdir(parents=True)
        song.write_bytes(b"\x00")
        with patch("ytshelf.player.shutil.which", return_value=None):
            with self.assertLogs(LOGGER, level="ERROR") as logs:
                code, _ = self._main(["--play", "--random"])
        self.assertEqual(code, 1)
        self.assertIn("No audio player found", logs.output[0])

    def test_bad_config_value_exits_2(self) -> None:
        ini = self.tmp / "config.ini"
        ini.write_text("[ytshelf]\nprobe_timeout = abc\n", encoding="utf-8")
        with patch("ytshelf.cli.build_config", side_effect=lambda: build_config(ini, environ={})):
            with redirect_stderr(io.StringIO()) as err:
                code, _ = self._main(["--play"])
        self.assertEqual(code, 2)
        self.assertIn("Configuration error", err.getvalue())

    def test_unwritable_log_dir_exits_2(self) -> None:
        with patch("ytshelf.cli.configure_logging", side_effect=PermissionError("denied")):
            with redirect_stderr(io.StringIO()) as err:
                code, _ = self._main(["--play"])
        self.assertEqual(code, 2)
        self.assertIn("denied", err.getvalue())

    def test_ctrl_c_exits_130(self) -> None:
        with patch("ytshelf.cli.play_songs", side_effect=KeyboardInterrupt):
            with self.assertLogs(LOGGER, level="WARNING"):
                code, _ = self._main(["--play", "--random"])
        self.assertEqual(code, 130)

    def test_unexpected_error(self) -> None:
        with patch("ytshelf.cli.download_playlist", side_effect=ValueError("weird")):
            with self.assertLogs(LOGGER, level="ERROR"):
                code, _ = self._main(["--playlist", "https://example.test/p"])
        self.assertEqual(code, 2)


if __name__ == "__main__":
    unittest.main()
