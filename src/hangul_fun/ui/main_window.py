from __future__ import annotations

import logging
import os

from PySide6.QtCore import QTimer
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import QGridLayout, QLabel, QMainWindow, QVBoxLayout, QWidget

from hangul_fun.core.controller import Direction, PlaybackController
from hangul_fun.core.errors import InvariantViolation
from hangul_fun.core.lrc import format_timestamp
from hangul_fun.ui.lyrics_view import ICON_PAUSED, ICON_PLAYING, LyricsView
from hangul_fun.ui.selection_panel import SelectionPanel

logger = logging.getLogger(__name__)

# If the bindings in _install_shortcuts change, change these too.
HELP_LINES = [
    "↑/↓   - prev/next line",
    "←/→   - prev/next syllable",
    "Ctrl+←/→ - prev/next word",
    "Enter - play current line",
    "Space - pause/unpause",
    "B     - rewind 2 seconds",
    "F     - follow playback",
    "Esc   - quit",
]


class MainWindow(QMainWindow):
    def __init__(self, controller: PlaybackController, refresh_interval_ms: int = 100):
        super().__init__()
        self.controller = controller
        song = controller.song
        title = os.path.basename(song.audio_path) if song else ""
        self.setWindowTitle(f"HANGUL-FUN - {title}")
        self.resize(820, 640)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)

        self.status = QLabel("")
        self.status.setObjectName("StatusBar")
        self.status.setStyleSheet("padding: 4px; background: #e5e7eb; font-weight: 600;")
        layout.addWidget(self.status)

        self.lyrics_view = LyricsView(controller.timeline)
        layout.addWidget(self.lyrics_view, 1)

        self.selection = SelectionPanel(controller.timeline)
        layout.addWidget(self.selection)

        # two-column help
        help_grid = QGridLayout()
        half = (len(HELP_LINES) + 1) // 2
        for i, text in enumerate(HELP_LINES):
            lbl = QLabel(text)
            lbl.setStyleSheet("color: #6b7280; font-family: monospace;")
            help_grid.addWidget(lbl, i % half, i // half)
        layout.addLayout(help_grid)

        self._install_shortcuts()

        self._timer = QTimer(self)
        self._timer.setInterval(refresh_interval_ms)
        self._timer.timeout.connect(self._refresh)
        self._timer.start()
        self._refresh()

    def _install_shortcuts(self) -> None:
        c = self.controller
        bindings = [
            (("Down", "Ctrl+N"), lambda: c.navigate(Direction.NEXT_LINE)),
            (("Up", "Ctrl+P"), lambda: c.navigate(Direction.PREV_LINE)),
            (("Right", "Ctrl+F"), lambda: c.navigate(Direction.NEXT_SYLLABLE)),
            (("Left", "Ctrl+B"), lambda: c.navigate(Direction.PREV_SYLLABLE)),
            (("Ctrl+Right",), lambda: c.navigate(Direction.NEXT_WORD)),
            (("Ctrl+Left",), lambda: c.navigate(Direction.PREV_WORD)),
            (("Return", "Enter"), c.activate_current_line),
            (("Space",), c.toggle_pause),
            (("B",), c.rewind),
            (("F",), c.follow),
            (("Esc",), self.close),
        ]
        for keys, action in bindings:
            for key in keys:
                QShortcut(QKeySequence(key), self, activated=lambda a=action: self._run(a))

    def _run(self, action) -> None:
        try:
            action()
        except InvariantViolation as e:
            logger.critical("Playback state corrupted: %s", e)
            self.controller.fail(e)
            self.close()
            return
        self._refresh()

    def _refresh(self) -> None:
        snap = self.controller.snapshot()
        if snap.is_stopped:
            self._timer.stop()
            QTimer.singleShot(0, self.close)
            return

        playback_row = self.controller.playback_line_index()
        self.lyrics_view.show_state(snap.cursor, playback_row, snap.is_paused)
        self.selection.show_cursor(snap.cursor)

        icon = ICON_PAUSED if snap.is_paused else ICON_PLAYING
        mode = "seeking" if snap.is_seeking else ("following" if snap.is_following else "browsing")
        self.status.setText(f" HANGUL-FUN   {icon}  {format_timestamp(snap.elapsed_ms)}   [{mode}]")

    def closeEvent(self, event):
        self._timer.stop()
        self.controller.stop()
        super().closeEvent(event)
