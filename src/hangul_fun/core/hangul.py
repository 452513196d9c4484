# core/hangul.py
"""
Hangul syllable decomposition.

A precomposed syllable block U+AC00..U+D7A3 encodes (leading, vowel, trailing)
slot values arithmetically:

    index    = cp - 0xAC00
    trailing = index % 28                (0 = no trailing consonant)
    vowel    = (index // 28) % 21
    leading  = index // (28 * 21)

Everything else is passed through untouched.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional, Union

from .errors import DecodeError
from .models import Analysis, Decomposition, Jamo, Passthrough

SYLLABLE_BASE = 0xAC00
LEADING_COUNT = 19
VOWEL_COUNT = 21
TRAILING_COUNT = 28  # includes "none"
SYLLABLE_COUNT = LEADING_COUNT * VOWEL_COUNT * TRAILING_COUNT  # 11172
SYLLABLE_LAST = SYLLABLE_BASE + SYLLABLE_COUNT - 1

LEADING_BASE = 0x1100
VOWEL_BASE = 0x1161
TRAILING_BASE = 0x11A7  # slot 0 has no character

_LEADING_COMPAT = "ㄱㄲㄴㄷㄸㄹㅁㅂㅃㅅㅆㅇㅈㅉㅊㅋㅌㅍㅎ"
_LEADING_ROMAN = (
    "g", "kk", "n", "d", "tt", "r", "m", "b", "pp", "s",
    "ss", "", "j", "jj", "ch", "k", "t", "p", "h",
)

_VOWEL_COMPAT = "ㅏㅐㅑㅒㅓㅔㅕㅖㅗㅘㅙㅚㅛㅜㅝㅞㅟㅠㅡㅢㅣ"
_VOWEL_ROMAN = (
    "a", "ae", "ya", "yae", "eo", "e", "yeo", "ye", "o", "wa", "wae",
    "oe", "yo", "u", "wo", "we", "wi", "yu", "eu", "ui", "i",
)

_TRAILING_COMPAT = "ㄱㄲㄳㄴㄵㄶㄷㄹㄺㄻㄼㄽㄾㄿㅀㅁㅂㅄㅅㅆㅇㅈㅊㅋㅌㅍㅎ"
# (syllable-final, followed by a vowel)
_TRAILING_ROMAN = (
    ("k", "g"), ("k", "kk"), ("k", "ks"), ("n", "n"), ("n", "nj"),
    ("n", "n"), ("t", "d"), ("l", "l"), ("k", "lg"), ("m", "lm"),
    ("l", "lb"), ("l", "ls"), ("l", "lt"), ("p", "lp"), ("l", "r"),
    ("m", "m"), ("p", "b"), ("p", "ps"), ("t", "s"), ("t", "ss"),
    ("ng", "ng"), ("t", "j"), ("t", "ch"), ("k", "k"), ("t", "t"),
    ("p", "p"), ("t", "h"),
)

LEADING: tuple[Jamo, ...] = tuple(
    Jamo(i, chr(LEADING_BASE + i), _LEADING_COMPAT[i], _LEADING_ROMAN[i])
    for i in range(LEADING_COUNT)
)
VOWELS: tuple[Jamo, ...] = tuple(
    Jamo(i, chr(VOWEL_BASE + i), _VOWEL_COMPAT[i], _VOWEL_ROMAN[i])
    for i in range(VOWEL_COUNT)
)
# index 0 is "no trailing consonant"
TRAILING: tuple[Optional[Jamo], ...] = (None,) + tuple(
    Jamo(i, chr(TRAILING_BASE + i), _TRAILING_COMPAT[i - 1], *_TRAILING_ROMAN[i - 1])
    for i in range(1, TRAILING_COUNT)
)

_BY_CONJOINING: dict[str, Jamo] = {
    j.conjoining: j for j in (*LEADING, *VOWELS, *TRAILING[1:])
}


class HangulCharClass(Enum):
    HANGUL_COMPATIBILITY_JAMO = "HangulCompatibilityJamo"
    HANGUL_JAMO_EXTENDED_A = "HangulJamoExtendedA"
    HANGUL_JAMO_EXTENDED_B = "HangulJamoExtendedB"
    HANGUL_JAMO = "HangulJamo"
    HANGUL_SYLLABLES = "HangulSyllables"
    OTHER = "Other"


def char_class(ch: str) -> HangulCharClass:
    cp = ord(ch)
    if 0xAC00 <= cp <= 0xD7AF:
        return HangulCharClass.HANGUL_SYLLABLES
    if 0x1100 <= cp <= 0x11FF:
        return HangulCharClass.HANGUL_JAMO
    if 0x3130 <= cp <= 0x318F:
        return HangulCharClass.HANGUL_COMPATIBILITY_JAMO
    if 0xA960 <= cp <= 0xA97F:
        return HangulCharClass.HANGUL_JAMO_EXTENDED_A
    if 0xD7B0 <= cp <= 0xD7FF:
        return HangulCharClass.HANGUL_JAMO_EXTENDED_B
    return HangulCharClass.OTHER


def is_syllable(ch: str) -> bool:
    return len(ch) == 1 and SYLLABLE_BASE <= ord(ch) <= SYLLABLE_LAST


def _as_char(value: Union[str, int]) -> str:
    if isinstance(value, int):
        if not 0 <= value <= 0x10FFFF:
            raise ValueError(f"not a Unicode code point: {value:#x}")
        return chr(value)
    if len(value) != 1:
        raise ValueError(f"expected a single character, got {value!r}")
    return value


def decompose(value: Union[str, int]) -> Analysis:
    """Split a syllable block into its jamo; anything else is a Passthrough."""
    ch = _as_char(value)
    if not is_syllable(ch):
        return Passthrough(ch)

    index = ord(ch) - SYLLABLE_BASE
    t = index % TRAILING_COUNT
    v = (index // TRAILING_COUNT) % VOWEL_COUNT
    lead = index // (TRAILING_COUNT * VOWEL_COUNT)
    return Decomposition(char=ch, leading=LEADING[lead], vowel=VOWELS[v], trailing=TRAILING[t])


def recompose(leading: int, vowel: int, trailing: int = 0) -> str:
    """Inverse of decompose(): slot values back to the syllable block."""
    if not 0 <= leading < LEADING_COUNT:
        raise ValueError(f"leading slot out of range: {leading}")
    if not 0 <= vowel < VOWEL_COUNT:
        raise ValueError(f"vowel slot out of range: {vowel}")
    if not 0 <= trailing < TRAILING_COUNT:
        raise ValueError(f"trailing slot out of range: {trailing}")
    return chr(SYLLABLE_BASE + (leading * VOWEL_COUNT + vowel) * TRAILING_COUNT + trailing)


def recompose_decomposition(d: Decomposition) -> str:
    return recompose(d.leading.index, d.vowel.index, d.trailing.index if d.trailing else 0)


def jamo_info(ch: str) -> Optional[Jamo]:
    """Table entry for a conjoining (U+1100 block) jamo, if it is a modern one."""
    return _BY_CONJOINING.get(ch)


def to_compat(ch: str) -> str:
    """Conjoining jamo -> compatibility jamo; other characters are returned as-is."""
    j = _BY_CONJOINING.get(ch)
    return j.compat if j else ch


def decompose_text(text: str) -> str:
    """Replace every syllable block with its conjoining jamo."""
    out: List[str] = []
    for ch in text:
        a = decompose(ch)
        if isinstance(a, Decomposition):
            out.extend(j.conjoining for j in a.jamos())
        else:
            out.append(ch)
    return "".join(out)


def ends_in_vowel(word: str) -> bool:
    """True if the last syllable of `word` has no trailing consonant."""
    if not word:
        raise ValueError("string is empty")
    a = decompose(word[-1])
    if not isinstance(a, Decomposition):
        raise ValueError("final character is not a hangul syllable")
    return a.trailing is None


def decode_string(text: str) -> List[Analysis]:
    """
    Per-character analysis of `text`.
    Raises DecodeError if the text holds a lone surrogate, which is what
    undecodable command-line bytes turn into.
    """
    out: List[Analysis] = []
    for pos, ch in enumerate(text):
        cp = ord(ch)
        if 0xD800 <= cp <= 0xDFFF:
            raise DecodeError(pos, cp)
        out.append(decompose(ch))
    return out
