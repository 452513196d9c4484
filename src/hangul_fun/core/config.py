"""Runtime settings, overridable through HANGUL_FUN_* environment variables."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

BACKENDS = ("mpv", "clock")

# Amount to rewind when the user presses "B". Keep the help text in
# ui/main_window.py in sync.
REWIND_MS = 2000


@dataclass(frozen=True)
class PlayerConfig:
    backend: str = "mpv"
    mpv_path: Optional[str] = None
    ipc_endpoint: Optional[str] = None
    poll_interval_ms: int = 30      # audio-engine step
    refresh_interval_ms: int = 100  # lyric window repaint
    rewind_ms: int = REWIND_MS
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PlayerConfig":
        env = os.environ if environ is None else environ
        backend = env.get("HANGUL_FUN_BACKEND", cls.backend).strip().lower()
        if backend not in BACKENDS:
            raise ValueError(f"HANGUL_FUN_BACKEND must be one of {', '.join(BACKENDS)}, got {backend!r}")
        try:
            poll = int(env.get("HANGUL_FUN_POLL_MS", cls.poll_interval_ms))
        except ValueError as e:
            raise ValueError(f"HANGUL_FUN_POLL_MS must be an integer: {e}") from e
        return cls(
            backend=backend,
            mpv_path=env.get("HANGUL_FUN_MPV_PATH") or None,
            ipc_endpoint=env.get("HANGUL_FUN_MPV_IPC") or None,
            poll_interval_ms=max(1, poll),
            log_level=env.get("HANGUL_FUN_LOG_LEVEL", cls.log_level).upper(),
        )
