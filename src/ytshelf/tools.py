"""Wrappers around the external yt-dlp / ffmpeg executables."""

from __future__ import annotations

import json
import logging
import shlex
import shutil
import subprocess
import time
from datetime import datetime
from typing import Iterable

from .config import Config


class DownloadError(RuntimeError):
    pass


def ensure_dependencies(config: Config) -> None:
    if not shutil.which(config.yt_dlp_bin):
        raise DownloadError("yt-dlp is not installed or not on PATH.")
    if not shutil.which(config.ffmpeg_bin):
        raise DownloadError("ffmpeg is required but not on PATH.")


def append_log_line(config: Config, filename: str, message: str) -> None:
    config.log_dir.mkdir(parents=True, exist_ok=True)
    log_path = config.log_dir / filename
    timestamp = datetime.now().isoformat(timespec="seconds")
    with log_path.open("a", encoding="utf-8") as handle:
        handle.write(f"{timestamp} {message}\n")


def run_command(args: list[str], logger: logging.Logger) -> None:
    """Run *args* attached to the terminal; raise DownloadError on failure."""
    logger.info("$ %s", shlex.join(args))
    try:
        returncode = subprocess.call(args)
    except OSError as exc:
        raise DownloadError(f"{args[0]} could not be started: {exc}") from exc
    if returncode != 0:
        raise DownloadError(f"{args[0]} exited with status {returncode}")


def _capture(
    args: list[str],
    *,
    timeout: float | None = None,
    logger: logging.Logger | None = None,
) -> tuple[int, str, str]:
    try:
        process = subprocess.Popen(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as exc:
        raise DownloadError(f"{args[0]} could not be started: {exc}") from exc
    started = last_log = time.monotonic()
    stdout = ""
    stderr = ""
    while True:
        step = 5.0
        if timeout is not None:
            remaining = timeout - (time.monotonic() - started)
            if remaining <= 0:
                process.kill()
                process.communicate()
                raise DownloadError(f"{args[0]} timed out after {timeout:g}s")
            step = min(step, remaining)
        try:
            out, err = process.communicate(timeout=step)
            stdout += out or ""
            stderr += err or ""
            break
        except subprocess.TimeoutExpired:
            if logger and time.monotonic() - last_log >= 10:
                logger.info("Still fetching metadata...")
                last_log = time.monotonic()
            continue
    return process.returncode, stdout, stderr


def run_yt_dlp_json(
    config: Config, url: str, logger: logging.Logger | None = None
) -> dict:
    """Return the single info dict printed by ``yt-dlp -j <url>``."""
    returncode, stdout, stderr = _capture(
        [config.yt_dlp_bin, "-j", url], logger=logger
    )
    if returncode != 0:
        raise DownloadError(
            f"yt-dlp metadata fetch failed ({returncode}): {stderr.strip()}"
        )
    try:
        payload = json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise DownloadError(f"yt-dlp returned malformed metadata: {exc}") from exc
    if not isinstance(payload, dict):
        raise DownloadError("yt-dlp returned malformed metadata: not an object")
    return payload


def run_yt_dlp_lines(
    config: Config,
    url: str,
    extra_args: Iterable[str] | None = None,
    *,
    timeout: float | None = None,
    logger: logging.Logger | None = None,
) -> list[dict]:
    """Run ``yt-dlp -j [extra_args] <url>`` and parse one JSON object per line."""
    args = [config.yt_dlp_bin, "-j"]
    if extra_args:
        args.extend(extra_args)
    args.append(url)
    returncode, stdout, stderr = _capture(args, timeout=timeout, logger=logger)
    if returncode != 0:
        raise DownloadError(
            f"yt-dlp metadata fetch failed ({returncode}): {stderr.strip()}"
        )
    records: list[dict] = []
    for line in stdout.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as exc:
            raise DownloadError(f"yt-dlp returned malformed metadata: {exc}") from exc
    return records
