# ui/selection_panel.py
from __future__ import annotations

from typing import List

from PySide6.QtWidgets import QFrame, QLabel, QVBoxLayout

from hangul_fun.core.models import Cursor, Jamo, Timeline
from hangul_fun.core.romanize import pronunciation_hint, romanize


def _jamo_row(label: str, jamo: Jamo, silent_ok: bool = False) -> str:
    rom = jamo.romanization
    if rom == "" and silent_ok:
        rom = "silent"
    if jamo.romanization_before_vowel and jamo.romanization_before_vowel != rom:
        rom = f"{rom}/{jamo.romanization_before_vowel}"
    hint = pronunciation_hint(jamo.conjoining)
    return f"  {label}: {jamo.compat} ({rom}) {hint}".rstrip()


def selection_lines(timeline: Timeline, cursor: Cursor) -> List[str]:
    """Text rows describing the word and syllable under the cursor."""
    word = timeline[cursor.line].words[cursor.word]
    syl = word.syllables[cursor.syllable]
    rows = [
        f"Selected word: {word.text} ({romanize(word.text)})",
        f"Selected syllable: {syl.char}",
    ]
    d = syl.decomposition
    if d is None:
        rows.append("  (not a Hangul syllable)")
        return rows
    rows.append(_jamo_row("Initial", d.leading, silent_ok=True))
    rows.append(_jamo_row("Medial ", d.vowel))
    if d.trailing is not None:
        rows.append(_jamo_row("Final  ", d.trailing))
    return rows


class SelectionPanel(QFrame):
    def __init__(self, timeline: Timeline, parent=None):
        super().__init__(parent)
        self._timeline = timeline
        self._cursor = None
        self.setFrameShape(QFrame.StyledPanel)

        root = QVBoxLayout(self)
        root.setContentsMargins(10, 6, 10, 6)
        self.text = QLabel("")
        self.text.setStyleSheet("font-family: monospace;")
        root.addWidget(self.text)

    def show_cursor(self, cursor: Cursor) -> None:
        if cursor == self._cursor:
            return
        self._cursor = cursor
        self.text.setText("\n".join(selection_lines(self._timeline, cursor)))
