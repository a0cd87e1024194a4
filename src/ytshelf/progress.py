"""Overall progress bar for playlist downloads."""

from __future__ import annotations

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)


class ProgressReporter:
    """Reports playlist progress as a single N/total bar.

    Tracks are acquired one at a time, so there is only ever one active
    download; each finished, skipped or failed track advances the bar by one
    and prints a stable line above it.

    On entry the logging ``StreamHandler`` named ``"stream"`` is replaced with
    a ``RichHandler`` on the same console, so log messages (including the
    ``$ <command>`` echo lines) print above the bar. yt-dlp and ffmpeg run
    attached to the terminal and their own output is not routed through
    rich; it can still overwrite the bar. The original handler is restored
    on exit.
    """

    def __init__(
        self, total: int, logger: logging.Logger, console: Console | None = None
    ) -> None:
        self._logger = logger
        self._total = total
        self._completed = 0
        self.console = console or Console()
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]Downloading"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("tracks"),
            TimeElapsedColumn(),
            auto_refresh=False,
            transient=False,
            console=self.console,
        )
        self._overall_task = self._progress.add_task("overall", total=total)
        self._stream_handler: logging.Handler | None = None
        self._rich_handler: Any = None
        self._target_logger: logging.Logger | None = None

    @property
    def completed(self) -> int:
        return self._completed

    def _install_rich_handler(self) -> None:
        candidate: logging.Logger | None = self._logger
        while candidate is not None:
            for handler in candidate.handlers:
                if handler.get_name() == "stream":
                    self._target_logger = candidate
                    self._stream_handler = handler
                    break
            if self._stream_handler is not None or not candidate.propagate:
                break
            candidate = candidate.parent  # type: ignore[assignment]

        if self._stream_handler is None or self._target_logger is None:
            return

        rich_handler = RichHandler(
            console=self.console,
            show_time=False,
            show_path=False,
            markup=False,
        )
        rich_handler.setLevel(self._stream_handler.level)
        rich_handler.set_name("stream_rich")
        self._target_logger.removeHandler(self._stream_handler)
        self._target_logger.addHandler(rich_handler)
        self._rich_handler = rich_handler

    def _restore_stream_handler(self) -> None:
        if self._target_logger is None:
            return
        if self._rich_handler is not None:
            self._target_logger.removeHandler(self._rich_handler)
            self._rich_handler = None
        if self._stream_handler is not None:
            self._target_logger.addHandler(self._stream_handler)
            self._stream_handler = None

    def __enter__(self) -> "ProgressReporter":
        self._progress.start()
        self._install_rich_handler()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._restore_stream_handler()
        self._progress.stop()

    def _advance(self, line: str) -> None:
        self._completed += 1
        self._progress.console.print(line)
        self._progress.update(self._overall_task, completed=self._completed)
        self._progress.refresh()

    def complete(self, label: str) -> None:
        self._advance(f"  [green]✓[/green] {escape(label)}")

    def skip(self, label: str) -> None:
        self._advance(f"  [dim]-[/dim] {escape(label)} (already downloaded)")

    def fail(self, label: str) -> None:
        self._advance(f"  [red]✗[/red] {escape(label)}")
