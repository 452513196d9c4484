# core/errors.py
from __future__ import annotations


class HangulFunError(Exception):
    """Base exception for hangul-fun."""


class ParseError(HangulFunError):
    """A lyric line that could not be parsed. Recovered by the parser."""

    def __init__(self, line_no: int, line: str, reason: str):
        super().__init__(f"line {line_no}: {reason}: {line!r}")
        self.line_no = line_no
        self.line = line
        self.reason = reason


class AudioError(HangulFunError):
    """Audio device, open, seek or decode failure. Fatal for playback."""


class LyricsError(HangulFunError):
    """No usable lyrics for the song being played."""


class DecodeError(HangulFunError):
    """Input is not a valid sequence of Unicode scalar values."""

    def __init__(self, position: int, codepoint: int):
        super().__init__(f"invalid Unicode scalar U+{codepoint:04X} at position {position}")
        self.position = position
        self.codepoint = codepoint


class InvariantViolation(HangulFunError, AssertionError):
    """Playback state found inconsistent. Indicates a bug, never recovered."""
