# ui/lyrics_view.py
from __future__ import annotations

import html
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QLabel, QTableWidget, QTableWidgetItem, QVBoxLayout, QWidget

from hangul_fun.core.lrc import format_timestamp
from hangul_fun.core.models import Cursor, LyricLine, Timeline

ICON_PLAYING = "⏵"
ICON_PAUSED = "⏸"


def cursor_line_html(line: LyricLine, cursor: Cursor) -> str:
    """The cursor line with the selected word shaded and the selected syllable in blue."""
    parts = []
    for wi, word in enumerate(line.words):
        if wi != cursor.word:
            parts.append(html.escape(word.text))
            continue
        chars = []
        for si, syl in enumerate(word.syllables):
            color = "#2563eb" if si == cursor.syllable else "#111827"
            chars.append(f'<span style="color:{color}">{html.escape(syl.char)}</span>')
        parts.append(f'<span style="background:#d1d5db">{"".join(chars)}</span>')
    return "&gt; " + " ".join(parts)


class LyricsView(QWidget):
    """
    Lyric table (marker | time | text):
      - the cursor row shows the selected syllable
      - the row the audio is currently at carries the play/pause marker
    """

    def __init__(self, timeline: Timeline, parent=None):
        super().__init__(parent)
        self._timeline = timeline
        self._cursor: Optional[Cursor] = None
        self._marker_row: Optional[int] = None

        root = QVBoxLayout(self)
        root.setContentsMargins(10, 10, 10, 10)

        self.table = QTableWidget(len(timeline), 3)
        self.table.setHorizontalHeaderLabels(["", "Time", "Text"])
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.table.setSelectionMode(QTableWidget.SelectionMode.NoSelection)
        self.table.setFocusPolicy(Qt.NoFocus)
        self.table.setColumnWidth(0, 28)
        self.table.setColumnWidth(1, 80)
        self.table.horizontalHeader().setStretchLastSection(True)
        root.addWidget(self.table, 1)

        for row, line in enumerate(timeline):
            self.table.setItem(row, 0, QTableWidgetItem(""))
            self.table.setItem(row, 1, QTableWidgetItem(format_timestamp(line.timestamp_ms)))
            self.table.setItem(row, 2, QTableWidgetItem(line.text))

    def show_state(self, cursor: Cursor, playback_row: Optional[int], paused: bool) -> None:
        if cursor != self._cursor:
            if self._cursor is not None and self._cursor.line != cursor.line:
                self.table.removeCellWidget(self._cursor.line, 2)
            label = QLabel(cursor_line_html(self._timeline[cursor.line], cursor))
            label.setTextFormat(Qt.RichText)
            self.table.setCellWidget(cursor.line, 2, label)
            self.table.scrollToItem(self.table.item(cursor.line, 2), QTableWidget.ScrollHint.EnsureVisible)
            self._cursor = cursor

        if self._marker_row is not None and self._marker_row != playback_row:
            self.table.item(self._marker_row, 0).setText("")
        if playback_row is not None:
            self.table.item(playback_row, 0).setText(ICON_PAUSED if paused else ICON_PLAYING)
        self._marker_row = playback_row
