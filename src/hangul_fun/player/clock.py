# src/hangul_fun/player/clock.py
from __future__ import annotations

import os
import time
from typing import Callable, Optional

from mutagen import File as MutagenFile
from mutagen import MutagenError

from hangul_fun.core.errors import AudioError

from .backend import AudioBackend


def probe_duration_ms(path: str) -> int:
    """Media length in ms, read from the file's headers with mutagen."""
    if not os.path.isfile(path):
        raise AudioError(f"Audio file does not exist: {path}")
    try:
        audio = MutagenFile(path)
    except (MutagenError, OSError) as e:
        raise AudioError(f"Cannot read audio file {path}: {e}") from e
    if audio is None or getattr(audio, "info", None) is None:
        raise AudioError(f"Unsupported audio format: {path}")
    length = float(getattr(audio.info, "length", 0.0) or 0.0)
    if length <= 0:
        raise AudioError(f"Audio file has no playable length: {path}")
    return int(length * 1000)


class ClockBackend(AudioBackend):
    """
    Silent backend: validates the file and keeps a monotonic clock bounded by
    the media duration. Useful for studying lyrics without an output device.
    """

    name = "clock"

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.monotonic
        self._duration_ms = 0
        self._base_ms = 0
        self._started_at: Optional[float] = None   # None while paused
        self._open = False

    @property
    def duration_ms(self) -> int:
        return self._duration_ms

    def open(self, path: str) -> None:
        self._duration_ms = probe_duration_ms(path)
        self._base_ms = 0
        self._started_at = None
        self._open = True

    def _require_open(self) -> None:
        if not self._open:
            raise AudioError("Audio backend is not open")

    def play(self) -> None:
        self._require_open()
        if self._started_at is None:
            self._started_at = self._clock()

    def pause(self) -> None:
        self._require_open()
        if self._started_at is not None:
            self._base_ms = self.elapsed()
            self._started_at = None

    def seek(self, ms: int) -> None:
        self._require_open()
        self._base_ms = min(max(0, int(ms)), self._duration_ms)
        if self._started_at is not None:
            self._started_at = self._clock()

    def elapsed(self) -> int:
        if self._started_at is None:
            return self._base_ms
        ms = self._base_ms + int((self._clock() - self._started_at) * 1000)
        return min(ms, self._duration_ms)

    def is_finished(self) -> bool:
        return self._open and self.elapsed() >= self._duration_ms

    def stop(self) -> None:
        self._open = False
        self._started_at = None
        self._base_ms = 0
