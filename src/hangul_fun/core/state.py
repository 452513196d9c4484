from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Union

from .models import Cursor, SeekRequest


@dataclass(frozen=True)
class Stopped:
    pass


@dataclass(frozen=True)
class Playing:
    pass


@dataclass(frozen=True)
class Paused:
    pass


@dataclass(frozen=True)
class Seeking:
    request: SeekRequest
    dispatched: bool = False   # handed to the audio engine


Mode = Union[Stopped, Playing, Paused, Seeking]

# (from, to) pairs the controller may perform
_ALLOWED = {
    (Stopped, Playing),
    (Playing, Paused),
    (Paused, Playing),
    (Playing, Seeking),
    (Paused, Seeking),
    (Seeking, Seeking),
    (Seeking, Playing),
    (Playing, Stopped),
    (Paused, Stopped),
    (Seeking, Stopped),
    (Stopped, Stopped),
}


def can_transition(src: Mode, dst: Mode) -> bool:
    return (type(src), type(dst)) in _ALLOWED


@dataclass(frozen=True)
class PlaybackState:
    elapsed_ms: int = 0
    is_following: bool = True
    current_line_index: int = 0
    cursor: Cursor = field(default_factory=Cursor)
    mode: Mode = field(default_factory=Stopped)

    @property
    def is_stopped(self) -> bool:
        return isinstance(self.mode, Stopped)

    @property
    def is_paused(self) -> bool:
        return isinstance(self.mode, Paused)

    @property
    def is_seeking(self) -> bool:
        return isinstance(self.mode, Seeking)


class SharedState:
    """
    The one handle both flows share: a lock and the current PlaybackState.
    States are immutable; writers swap in a new one while holding the lock,
    so readers can keep a snapshot without copying.
    """

    def __init__(self, state: PlaybackState | None = None):
        self.lock = threading.Lock()
        self.state = state or PlaybackState()

    def snapshot(self) -> PlaybackState:
        with self.lock:
            return self.state
