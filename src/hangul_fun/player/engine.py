# src/hangul_fun/player/engine.py
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional

from hangul_fun.core.errors import AudioError

from .backend import AudioBackend

if TYPE_CHECKING:
    from hangul_fun.core.controller import PlaybackController

logger = logging.getLogger(__name__)


class AudioEngine:
    """
    The audio-engine flow. Owns the backend once playback has started.

    Each step reads the controller's intent under its lock, performs the
    (possibly blocking) device calls without any lock held, and reports the
    results back: seek completion, elapsed time, end of media.
    """

    def __init__(self, controller: "PlaybackController", backend: AudioBackend, interval_ms: int = 30):
        self.controller = controller
        self.backend = backend
        self.interval_s = interval_ms / 1000.0

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._device_paused = True  # backends open paused
        self._released = False
        self._release_lock = threading.Lock()

    # ---- lifecycle ----

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="audio-engine", daemon=True)
        self._thread.start()

    def run(self) -> None:
        try:
            while not self._stop.is_set():
                if not self.step():
                    break
                self._stop.wait(self.interval_s)
        except AudioError as e:
            logger.error("Audio playback failed: %s", e)
            self.controller.fail(e)
        except Exception as e:
            logger.exception("Audio engine halted")
            self.controller.fail(e)
        finally:
            self.release()

    def shutdown(self, timeout_s: float = 3.0) -> None:
        """Ask the flow to end, wait for it, make sure the device is released."""
        self._stop.set()
        t = self._thread
        if t is not None and t.is_alive() and t is not threading.current_thread():
            t.join(timeout_s)
            if t.is_alive():
                logger.warning("Audio engine did not stop within %.1fs", timeout_s)
                return  # its finally block releases the device
        self.release()

    def release(self) -> None:
        with self._release_lock:
            if self._released:
                return
            self._released = True
        try:
            self.backend.stop()
        except AudioError as e:
            logger.warning("Error while releasing audio device: %s", e)

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ---- one iteration ----

    def step(self) -> bool:
        """Run one engine iteration. Returns False once playback is over."""
        request = self.controller.take_seek_request()
        if request is not None:
            logger.debug("Seeking to line %d (%d ms), request %d",
                         request.target_line_index, request.target_ms, request.request_id)
            self.backend.seek(request.target_ms)
            if not self.controller.complete_seek(request.request_id):
                logger.debug("Seek request %d was superseded", request.request_id)
            return True

        snap = self.controller.snapshot()
        if snap.is_stopped:
            return False
        if snap.is_seeking:
            return True

        self._sync_pause(snap.is_paused)

        if self.backend.is_finished():
            logger.debug("Reached end of media")
            self.controller.finish()
            return False

        self.controller.tick(self.backend.elapsed())
        return True

    def _sync_pause(self, want_paused: bool) -> None:
        if want_paused == self._device_paused:
            return
        if want_paused:
            self.backend.pause()
        else:
            self.backend.play()
        self._device_paused = want_paused
