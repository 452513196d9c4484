# core/lrc.py
from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from .errors import ParseError
from .hangul import decompose
from .models import LyricLine, Syllable, Timeline, Word
from .utils import collapse

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"\[([^\[\]]*)\]")
_TS_RE = re.compile(r"(\d+):(\d{2})(?:[.:](\d{1,3}))?")
_WORD_TS_RE = re.compile(r"<\d+:\d{2}(?:[.:]\d{1,3})?>")
_OFFSET_RE = re.compile(r"[+-]?\d+")


def _ts_to_ms(mm: str, ss: str, frac: str | None) -> int:
    m = int(mm)
    s = int(ss)
    if s >= 60:
        raise ValueError(f"seconds out of range: {s}")
    if frac is None:
        ms = 0
    elif len(frac) == 1:
        ms = int(frac) * 100
    elif len(frac) == 2:
        ms = int(frac) * 10
    else:
        ms = int(frac)
    return (m * 60 + s) * 1000 + ms


def format_timestamp(ms: int) -> str:
    """Format milliseconds as mm:ss.xx (centiseconds)."""
    if ms < 0:
        ms = 0
    total_s = ms // 1000
    m = total_s // 60
    s = total_s % 60
    cs = (ms % 1000) // 10
    return f"{m:02d}:{s:02d}.{cs:02d}"


def segment(text: str) -> Tuple[Word, ...]:
    """Words are whitespace-separated runs, syllables are the scalars within them."""
    return tuple(
        Word(tuple(Syllable(ch, decompose(ch)) for ch in chunk))
        for chunk in text.split()
    )


def _split_tags(line: str) -> Tuple[List[str], str]:
    """
    Leading [..] tags of a line and the remaining text. Collection stops at
    the first bracket group that is neither timestamp-like nor key:value, so
    text such as "[Chorus]" stays part of the lyric.
    """
    tags: List[str] = []
    pos = 0
    while True:
        m = _TAG_RE.match(line, pos)
        if not m:
            break
        tag = m.group(1).strip()
        if not (tag[:1].isdigit() or ":" in tag):
            break
        tags.append(tag)
        pos = m.end()
        while pos < len(line) and line[pos] in " \t":
            pos += 1
    return tags, line[pos:]


def _parse_line(line_no: int, line: str, offset_ms: int) -> Tuple[List[int], str, Optional[int]]:
    """
    Returns (timestamps, text, new_offset). Raises ParseError for a tag that
    starts like a timestamp but does not parse as one.
    """
    tags, rest = _split_tags(line)
    times: List[int] = []
    new_offset: Optional[int] = None

    for tag in tags:
        m = _TS_RE.fullmatch(tag)
        if m:
            try:
                ms = _ts_to_ms(m.group(1), m.group(2), m.group(3))
            except ValueError as e:
                raise ParseError(line_no, line, str(e)) from e
            times.append(max(0, ms - offset_ms))
            continue

        if tag[:1].isdigit():
            raise ParseError(line_no, line, f"malformed timestamp [{tag}]")

        key, _, value = tag.partition(":")
        if key.strip().lower() == "offset":
            value = value.strip()
            if not _OFFSET_RE.fullmatch(value):
                raise ParseError(line_no, line, f"malformed offset [{tag}]")
            new_offset = int(value)
        # any other metadata tag ([ar:], [ti:], [al:], [by:], ...) is ignored

    return times, collapse(_WORD_TS_RE.sub(" ", rest)), new_offset


def parse_lrc(raw_text: str, errors: Optional[List[ParseError]] = None) -> Timeline:
    """
    Parse LRC text into a Timeline.

    - a line may carry several timestamp tags; each produces its own entry
      sharing the same text
    - metadata tags, blank lines and untagged lines are skipped
    - a malformed timestamp drops its line (logged, and appended to
      `errors` if given); parsing carries on
    - [offset:N] shifts the timestamps of the lines after it by -N ms
    - entries are sorted by time; equal times keep file order
    """
    entries: List[Tuple[int, str]] = []
    if not raw_text:
        return Timeline()

    offset_ms = 0
    for line_no, raw_line in enumerate(raw_text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or not line.startswith("["):
            continue

        try:
            times, text, new_offset = _parse_line(line_no, line, offset_ms)
        except ParseError as e:
            logger.warning("Skipping lyric line: %s", e)
            if errors is not None:
                errors.append(e)
            continue

        if new_offset is not None:
            offset_ms = new_offset
        if not times or not text:
            continue

        for t in times:
            entries.append((t, text))

    # list.sort is stable
    entries.sort(key=lambda x: x[0])
    return Timeline(tuple(LyricLine(t, text, segment(text)) for t, text in entries))
