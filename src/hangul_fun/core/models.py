# core/models.py
from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Iterator, Union


@dataclass(frozen=True)
class Jamo:
    index: int                 # slot value inside its table
    conjoining: str            # U+1100 block character
    compat: str                # U+3130 block character (for display)
    romanization: str
    romanization_before_vowel: str | None = None  # trailing consonants only


@dataclass(frozen=True)
class Decomposition:
    char: str
    leading: Jamo
    vowel: Jamo
    trailing: Jamo | None

    @property
    def codepoint(self) -> int:
        return ord(self.char)

    def jamos(self) -> tuple[Jamo, ...]:
        if self.trailing is None:
            return (self.leading, self.vowel)
        return (self.leading, self.vowel, self.trailing)

    def as_dict(self) -> dict:
        return {
            "char": self.char,
            "leading": self.leading.compat,
            "vowel": self.vowel.compat,
            "trailing": self.trailing.compat if self.trailing else None,
        }


@dataclass(frozen=True)
class Passthrough:
    char: str

    @property
    def codepoint(self) -> int:
        return ord(self.char)

    def as_dict(self) -> dict:
        return {"char": self.char}


Analysis = Union[Decomposition, Passthrough]


@dataclass(frozen=True)
class Syllable:
    char: str
    analysis: Analysis

    @property
    def codepoint(self) -> int:
        return ord(self.char)

    @property
    def decomposition(self) -> Decomposition | None:
        return self.analysis if isinstance(self.analysis, Decomposition) else None


@dataclass(frozen=True)
class Word:
    syllables: tuple[Syllable, ...]

    @property
    def text(self) -> str:
        return "".join(s.char for s in self.syllables)

    def __len__(self) -> int:
        return len(self.syllables)


@dataclass(frozen=True)
class LyricLine:
    timestamp_ms: int
    text: str
    words: tuple[Word, ...]


@dataclass(frozen=True)
class Timeline:
    """Lyric lines sorted by timestamp (stable for equal timestamps)."""
    lines: tuple[LyricLine, ...] = ()
    _times: tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_times", tuple(line.timestamp_ms for line in self.lines))

    def __len__(self) -> int:
        return len(self.lines)

    def __getitem__(self, index: int) -> LyricLine:
        return self.lines[index]

    def __iter__(self) -> Iterator[LyricLine]:
        return iter(self.lines)

    def line_index_at(self, elapsed_ms: int) -> int | None:
        """Greatest index whose timestamp is <= elapsed_ms, None before the first line."""
        idx = bisect_right(self._times, elapsed_ms) - 1
        return idx if idx >= 0 else None


@dataclass(frozen=True)
class Cursor:
    line: int = 0
    word: int = 0
    syllable: int = 0


@dataclass(frozen=True)
class SeekRequest:
    request_id: int
    target_line_index: int
    target_ms: int


@dataclass(frozen=True)
class Song:
    audio_path: str
    timeline: Timeline
    lyrics_path: str | None = None
