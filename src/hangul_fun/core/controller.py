# core/controller.py
from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from enum import Enum, auto
from typing import Optional

from hangul_fun.player.backend import AudioBackend
from hangul_fun.player.engine import AudioEngine

from .config import PlayerConfig
from .errors import AudioError, InvariantViolation, LyricsError
from .models import Cursor, SeekRequest, Song, Timeline
from .state import (
    Paused,
    PlaybackState,
    Playing,
    Seeking,
    SharedState,
    Stopped,
    can_transition,
)

logger = logging.getLogger(__name__)


class Direction(Enum):
    NEXT_LINE = auto()
    PREV_LINE = auto()
    NEXT_WORD = auto()
    PREV_WORD = auto()
    NEXT_SYLLABLE = auto()
    PREV_SYLLABLE = auto()


def check_cursor(timeline: Timeline, cursor: Cursor) -> None:
    """Raise InvariantViolation unless `cursor` addresses a real syllable."""
    if not 0 <= cursor.line < len(timeline):
        raise InvariantViolation(f"cursor line {cursor.line} outside 0..{len(timeline) - 1}")
    words = timeline[cursor.line].words
    if not 0 <= cursor.word < len(words):
        raise InvariantViolation(f"cursor word {cursor.word} outside line {cursor.line}")
    if not 0 <= cursor.syllable < len(words[cursor.word]):
        raise InvariantViolation(
            f"cursor syllable {cursor.syllable} outside word {cursor.word} of line {cursor.line}"
        )


def move_cursor(timeline: Timeline, cursor: Cursor, direction: Direction) -> Cursor:
    """Cursor after one navigation step. Stays put at the edges."""
    line, word, syl = cursor.line, cursor.word, cursor.syllable
    words = timeline[line].words

    if direction is Direction.NEXT_LINE:
        return Cursor(line + 1) if line + 1 < len(timeline) else cursor
    if direction is Direction.PREV_LINE:
        return Cursor(line - 1) if line > 0 else cursor
    if direction is Direction.NEXT_WORD:
        return Cursor(line, word + 1) if word + 1 < len(words) else cursor
    if direction is Direction.PREV_WORD:
        if syl > 0:
            return Cursor(line, word)
        return Cursor(line, word - 1) if word > 0 else cursor
    if direction is Direction.NEXT_SYLLABLE:
        if syl + 1 < len(words[word]):
            return Cursor(line, word, syl + 1)
        if word + 1 < len(words):
            return Cursor(line, word + 1)
        return cursor
    if direction is Direction.PREV_SYLLABLE:
        if syl > 0:
            return Cursor(line, word, syl - 1)
        if word > 0:
            return Cursor(line, word - 1, len(words[word - 1]) - 1)
        return cursor
    raise ValueError(f"unknown direction: {direction!r}")


class PlaybackController:
    """
    Keeps the audio clock, the lyric cursor and the user's commands consistent.

    Every mutation happens under the shared lock and swaps in a new immutable
    PlaybackState. Device calls are left to the AudioEngine, which runs on its
    own thread and never holds the lock while talking to the backend.
    """

    def __init__(self, backend: AudioBackend, config: Optional[PlayerConfig] = None,
                 shared: Optional[SharedState] = None):
        self.backend = backend
        self.config = config or PlayerConfig()
        self.shared = shared or SharedState()
        self.timeline = Timeline()
        self.song: Optional[Song] = None
        self.error: Optional[Exception] = None
        self.engine: Optional[AudioEngine] = None
        self._request_ids = itertools.count(1)

    def __enter__(self) -> "PlaybackController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ---- internals (caller holds the lock) ----

    def _commit(self, new: PlaybackState) -> None:
        old = self.shared.state
        if old.mode != new.mode:
            if not can_transition(old.mode, new.mode):
                raise InvariantViolation(
                    f"illegal transition {type(old.mode).__name__} -> {type(new.mode).__name__}"
                )
            if type(old.mode) is not type(new.mode):
                logger.debug("Playback %s -> %s", type(old.mode).__name__, type(new.mode).__name__)
        if not isinstance(new.mode, Stopped):
            check_cursor(self.timeline, new.cursor)
            if not 0 <= new.current_line_index < len(self.timeline):
                raise InvariantViolation(f"current line {new.current_line_index} out of range")
        self.shared.state = new

    def _line_for(self, elapsed_ms: int) -> int:
        # before the first timestamp the first line is current
        idx = self.timeline.line_index_at(elapsed_ms)
        return 0 if idx is None else idx

    def _following(self, s: PlaybackState, elapsed_ms: int) -> PlaybackState:
        idx = self._line_for(elapsed_ms)
        cursor = s.cursor if s.cursor.line == idx else Cursor(idx)
        return replace(s, elapsed_ms=elapsed_ms, current_line_index=idx, cursor=cursor, is_following=True)

    def _request_seek(self, s: PlaybackState, target_line: int, target_ms: int) -> SeekRequest:
        req = SeekRequest(next(self._request_ids), target_line, target_ms)
        if isinstance(s.mode, Seeking):
            logger.debug("Seek request %d supersedes %d", req.request_id, s.mode.request.request_id)
        self._commit(replace(s, mode=Seeking(req), is_following=True))
        return req

    # ---- lifecycle ----

    def start(self, song: Song, *, background: bool = True) -> None:
        """
        Open the audio device for `song` and begin playing from 0.
        With background=False the engine thread is not started; the caller
        drives `self.engine.step()` itself.
        """
        if not self.shared.snapshot().is_stopped:
            raise InvariantViolation("start() called while playback is active")
        if not len(song.timeline):
            raise LyricsError("Lyrics contain no timed lines")

        try:
            self.backend.open(song.audio_path)
        except AudioError:
            self.backend.stop()
            raise

        self.song = song
        self.timeline = song.timeline
        self.error = None
        with self.shared.lock:
            self._commit(PlaybackState(mode=Playing()))

        self.engine = AudioEngine(self, self.backend, self.config.poll_interval_ms)
        if background:
            self.engine.start()

    def stop(self) -> None:
        """Stop the engine, release the device, go to Stopped. Idempotent."""
        engine, self.engine = self.engine, None
        if engine is not None:
            engine.shutdown()
        with self.shared.lock:
            s = self.shared.state
            if not isinstance(s.mode, Stopped):
                self._commit(replace(s, mode=Stopped()))

    def finish(self) -> None:
        """Audio reached its end."""
        with self.shared.lock:
            s = self.shared.state
            if not isinstance(s.mode, Stopped):
                self._commit(replace(s, mode=Stopped()))

    def fail(self, error: Exception) -> None:
        """Fatal error on the audio-engine flow."""
        self.error = error
        self.finish()

    def snapshot(self) -> PlaybackState:
        return self.shared.snapshot()

    # ---- clock ----

    def tick(self, elapsed_ms: int) -> None:
        with self.shared.lock:
            s = self.shared.state
            if not isinstance(s.mode, (Playing, Paused)):
                return
            if s.is_following:
                self._commit(self._following(s, elapsed_ms))
            elif s.elapsed_ms != elapsed_ms:
                self._commit(replace(s, elapsed_ms=elapsed_ms))

    def playback_line_index(self) -> Optional[int]:
        """Line the audio is at, regardless of where the cursor is."""
        return self.timeline.line_index_at(self.snapshot().elapsed_ms)

    # ---- user commands ----

    def navigate(self, direction: Direction) -> bool:
        with self.shared.lock:
            s = self.shared.state
            if isinstance(s.mode, Stopped):
                return False
            cursor = move_cursor(self.timeline, s.cursor, direction)
            self._commit(replace(s, cursor=cursor, current_line_index=cursor.line, is_following=False))
            return True

    def follow(self) -> bool:
        with self.shared.lock:
            s = self.shared.state
            if isinstance(s.mode, Stopped):
                return False
            self._commit(self._following(s, s.elapsed_ms))
            return True

    def activate_current_line(self) -> Optional[SeekRequest]:
        """Seek to the line under the cursor and resume following from there."""
        with self.shared.lock:
            s = self.shared.state
            if isinstance(s.mode, Stopped):
                return None
            line = s.cursor.line
            return self._request_seek(s, line, self.timeline[line].timestamp_ms)

    def rewind(self, ms: Optional[int] = None) -> Optional[SeekRequest]:
        step = self.config.rewind_ms if ms is None else ms
        with self.shared.lock:
            s = self.shared.state
            if isinstance(s.mode, Stopped):
                return None
            base = s.mode.request.target_ms if isinstance(s.mode, Seeking) else s.elapsed_ms
            target = max(0, base - step)
            return self._request_seek(s, self._line_for(target), target)

    def pause(self) -> bool:
        with self.shared.lock:
            s = self.shared.state
            if not isinstance(s.mode, Playing):
                return False
            self._commit(replace(s, mode=Paused()))
            return True

    def resume(self) -> bool:
        with self.shared.lock:
            s = self.shared.state
            if not isinstance(s.mode, Paused):
                return False
            self._commit(replace(s, mode=Playing()))
            return True

    def toggle_pause(self) -> bool:
        with self.shared.lock:
            s = self.shared.state
            if isinstance(s.mode, Playing):
                self._commit(replace(s, mode=Paused()))
            elif isinstance(s.mode, Paused):
                self._commit(replace(s, mode=Playing()))
            else:
                return False
            return True

    # ---- audio-engine side ----

    def take_seek_request(self) -> Optional[SeekRequest]:
        """
        Hand the newest undispatched seek to the engine. Requests that were
        superseded before the engine got to them are never seen.
        """
        with self.shared.lock:
            s = self.shared.state
            if not isinstance(s.mode, Seeking) or s.mode.dispatched:
                return None
            self._commit(replace(s, mode=Seeking(s.mode.request, dispatched=True)))
            return s.mode.request

    def complete_seek(self, request_id: int) -> bool:
        """
        The device finished seeking for `request_id`. Only the current request
        resolves Seeking -> Playing; a stale result is discarded.
        """
        with self.shared.lock:
            s = self.shared.state
            if not isinstance(s.mode, Seeking) or s.mode.request.request_id != request_id:
                return False
            target = s.mode.request.target_ms
            if s.is_following:
                new = self._following(s, target)
            else:
                new = replace(s, elapsed_ms=target)
            self._commit(replace(new, mode=Playing()))
            return True
