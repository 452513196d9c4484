# core/romanize.py
from __future__ import annotations

from .hangul import decompose_text, jamo_info

SILENT_LEADING = "ᄋ"  # initial ㅇ

# Many of these hints are taken from the book "Hangeul Master" by Talk to Me in Korean.
_VOWEL_HINTS = {
    "ㅏ": "'a' as in 'father'",
    "ㅐ": "'a' as in 'sad' or 'pan', indistinct from ㅔ",
    "ㅓ": "'u' as in 'bus', 'gut', 'cup'",
    "ㅔ": "'e' as in 'bed' or 'pet', indistinct from ㅐ",
    "ㅗ": "'o' as in 'ago'",
    "ㅜ": "'oo' as in 'food'",
    "ㅡ": "'uh' with upper/lower teeth close and yucky face",
    "ㅣ": "'ee' as in 'feet'",
}


def romanize_jamo(ch: str, before_vowel: bool = False) -> str | None:
    """
    Romanization of a single conjoining jamo, or None if `ch` is not one.
    Trailing consonants differ depending on whether a vowel follows.
    """
    j = jamo_info(ch)
    if j is None:
        return None
    if before_vowel and j.romanization_before_vowel is not None:
        return j.romanization_before_vowel
    return j.romanization


def pronunciation_hint(ch: str) -> str:
    """Learner advice for a jamo (conjoining or compatibility form); '' if none."""
    j = jamo_info(ch)
    key = j.compat if j else ch
    return _VOWEL_HINTS.get(key, "")


def romanize_jamos(jamos: str) -> str:
    out: list[str] = []
    for i, ch in enumerate(jamos):
        nxt = jamos[i + 1] if i + 1 < len(jamos) else None
        r = romanize_jamo(ch, before_vowel=(nxt == SILENT_LEADING))
        out.append(ch if r is None else r)
    return "".join(out)


def romanize(text: str) -> str:
    """Romanize Hangul text, linking a final consonant into a following silent ㅇ."""
    return romanize_jamos(decompose_text(text))
