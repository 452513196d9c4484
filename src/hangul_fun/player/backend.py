# src/hangul_fun/player/backend.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hangul_fun.core.config import PlayerConfig

logger = logging.getLogger(__name__)


class AudioBackend(ABC):
    """
    Audio capability used by the playback controller.

    After `open()` returns, only the audio-engine thread calls into a backend.
    Every failure is raised as core.errors.AudioError.
    """

    name = "abstract"

    @abstractmethod
    def open(self, path: str) -> None:
        """Acquire the device and load `path`, paused at 0."""

    @abstractmethod
    def play(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def seek(self, ms: int) -> None:
        """Blocking absolute seek; returns once the device reports it done."""

    @abstractmethod
    def elapsed(self) -> int:
        """Current playback position in ms."""

    @abstractmethod
    def is_finished(self) -> bool:
        """True once the media played through to its end."""

    @abstractmethod
    def stop(self) -> None:
        """Release the device. Safe to call more than once."""


def create_backend(config: "PlayerConfig") -> AudioBackend:
    """Pick the concrete backend named in the config."""
    if config.backend == "mpv":
        from .mpv_ipc import MpvBackendConfig, MpvIpcBackend

        backend: AudioBackend = MpvIpcBackend(
            MpvBackendConfig(mpv_path=config.mpv_path, ipc_endpoint=config.ipc_endpoint)
        )
    elif config.backend == "clock":
        from .clock import ClockBackend

        backend = ClockBackend()
    else:
        raise ValueError(f"unknown audio backend: {config.backend!r}")

    logger.info("Using %s audio backend", backend.name)
    return backend
