from __future__ import annotations

import sys

from PySide6.QtWidgets import QApplication

from hangul_fun.core.config import PlayerConfig
from hangul_fun.core.controller import PlaybackController
from hangul_fun.core.models import Song
from hangul_fun.player.backend import create_backend
from hangul_fun.ui.main_window import MainWindow


def run_player(song: Song, config: PlayerConfig) -> int:
    """
    Play `song` in the lyric window until the user quits or the audio ends.
    The device is released before this returns; an error recorded by the
    audio engine is re-raised.
    """
    qt_app = QApplication.instance() or QApplication(sys.argv[:1])

    controller = PlaybackController(create_backend(config), config)
    with controller:
        controller.start(song)
        window = MainWindow(controller, config.refresh_interval_ms)
        window.show()
        qt_app.exec()

    if controller.error is not None:
        raise controller.error
    return 0
