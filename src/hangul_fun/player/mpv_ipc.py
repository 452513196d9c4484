from __future__ import annotations

import json
import logging
import os
import platform
import queue
import shutil
import socket
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from hangul_fun.core.errors import AudioError

from .backend import AudioBackend

logger = logging.getLogger(__name__)


# -----------------------------
# Utilities
# -----------------------------

def _is_windows() -> bool:
    return os.name == "nt"


def _default_ipc_endpoint(app_name: str = "hangul-fun-mpv") -> str:
    r"""
    Windows: named pipe path \\.\pipe\<name>
    Unix:    unix socket path, made unique per process
    """
    if _is_windows():
        return rf"\\.\pipe\{app_name}-{os.getpid()}"
    return f"/tmp/{app_name}-{os.getpid()}.sock"


def _remove_unix_socket_if_exists(path: str) -> None:
    if _is_windows():
        return
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.debug("Could not remove stale socket %s: %s", path, e)


def _find_mpv_binary(preferred_path: Optional[str] = None) -> Optional[str]:
    """
    Locate mpv. Priority:
      1) preferred_path if it exists
      2) third_party/mpv/<platform>/mpv relative to cwd
      3) mpv on PATH
    """
    candidates: list[str] = []
    if preferred_path:
        candidates.append(preferred_path)

    cwd = os.getcwd()
    exe = "mpv.exe" if _is_windows() else "mpv"
    sys_name = "windows" if _is_windows() else ("macos" if platform.system() == "Darwin" else "linux")
    candidates += [
        os.path.join(cwd, "third_party", "mpv", sys_name, exe),
        os.path.join(cwd, "third_party", "mpv", exe),
    ]

    for c in candidates:
        if os.path.isfile(c):
            return c
    return shutil.which("mpv")


# -----------------------------
# IPC transport
# -----------------------------

class _MpvJsonIpcTransport:
    """
    Newline-delimited JSON over mpv's IPC endpoint.

    Unix: AF_UNIX socket. Windows: the named pipe opened as a binary file.
    A reader thread decodes incoming lines into a queue; writes are
    serialized with a lock.
    """

    def __init__(self, endpoint: str):
        self.endpoint = endpoint
        self._stop = threading.Event()
        self._rx_thread: Optional[threading.Thread] = None
        self._rx_queue: "queue.Queue[dict[str, Any]]" = queue.Queue()
        self._tx_lock = threading.Lock()
        self._pipe_fh = None
        self._sock: Optional[socket.socket] = None

    def connect(self, timeout_s: float = 3.0) -> None:
        deadline = time.monotonic() + timeout_s
        last_err: Optional[Exception] = None

        while time.monotonic() < deadline and not self._stop.is_set():
            try:
                if _is_windows():
                    self._pipe_fh = open(self.endpoint, "r+b", buffering=0)
                else:
                    s = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
                    try:
                        s.connect(self.endpoint)
                    except OSError:
                        s.close()
                        raise
                    self._sock = s
                break
            except OSError as e:
                last_err = e
                time.sleep(0.05)

        if self._sock is None and self._pipe_fh is None:
            raise OSError(f"Failed to connect to mpv IPC at {self.endpoint}: {last_err!r}")

        self._rx_thread = threading.Thread(target=self._rx_loop, name="mpv-ipc-rx", daemon=True)
        self._rx_thread.start()

    @property
    def closed(self) -> bool:
        return self._stop.is_set()

    def close(self) -> None:
        self._stop.set()
        if self._sock is not None:
            try:
                self._sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._sock.close()
            self._sock = None
        if self._pipe_fh is not None:
            try:
                self._pipe_fh.close()
            except OSError:
                pass
            self._pipe_fh = None

    def send(self, payload: dict[str, Any]) -> None:
        line = (json.dumps(payload) + "\n").encode("utf-8")
        with self._tx_lock:
            if self._sock is not None:
                self._sock.sendall(line)
            elif self._pipe_fh is not None:
                self._pipe_fh.write(line)
                self._pipe_fh.flush()
            else:
                raise OSError("mpv IPC is not connected")

    def recv_nowait(self) -> Optional[dict[str, Any]]:
        try:
            return self._rx_queue.get_nowait()
        except queue.Empty:
            return None

    def _read_chunk(self) -> bytes:
        if self._sock is not None:
            return self._sock.recv(4096)
        if self._pipe_fh is not None:
            return self._pipe_fh.read(4096)
        return b""

    def _rx_loop(self) -> None:
        buf = b""
        try:
            while not self._stop.is_set():
                try:
                    chunk = self._read_chunk()
                except OSError:
                    break
                if not chunk:
                    break  # EOF: mpv went away

                buf += chunk
                while b"\n" in buf:
                    line, buf = buf.split(b"\n", 1)
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        msg = json.loads(line.decode("utf-8", errors="replace"))
                    except ValueError:
                        logger.debug("Ignoring malformed mpv message: %r", line)
                        continue
                    if isinstance(msg, dict):
                        self._rx_queue.put(msg)
        finally:
            self._stop.set()


# -----------------------------
# Backend (mpv process + JSON protocol)
# -----------------------------

@dataclass
class MpvBackendConfig:
    mpv_path: Optional[str] = None
    ipc_endpoint: Optional[str] = None
    audio_only: bool = True
    cwd: Optional[str] = None
    connect_timeout_s: float = 3.0
    load_timeout_s: float = 5.0
    seek_timeout_s: float = 2.0


class MpvIpcBackend(AudioBackend):
    """
    Audio output through an mpv subprocess controlled over JSON IPC.

    There is no background pump: callers (the audio engine) drain incoming
    messages through elapsed()/is_finished()/seek().
    """

    name = "mpv-ipc"

    def __init__(self, config: Optional[MpvBackendConfig] = None):
        self.config = config or MpvBackendConfig()

        self._mpv_bin = _find_mpv_binary(self.config.mpv_path)
        if not self._mpv_bin:
            raise AudioError("mpv binary not found (bundled or on PATH); try --backend clock")

        self.ipc = self.config.ipc_endpoint or _default_ipc_endpoint()
        self._proc: Optional[subprocess.Popen] = None
        self._transport: Optional[_MpvJsonIpcTransport] = None

        self._req_id = 0
        self._replies: dict[int, dict[str, Any]] = {}
        self._observers: dict[str, list[Callable[[Any], None]]] = {}

        self._time_pos_s: float = 0.0
        self._loaded: bool = False
        self._end_reason: Optional[str] = None
        self._end_error: Optional[str] = None
        self._restarts: int = 0   # playback-restart events seen (seek done)

    # ---- lifecycle ----

    def _spawn(self) -> None:
        if not _is_windows():
            _remove_unix_socket_if_exists(self.ipc)

        args = [self._mpv_bin, "--idle=yes", "--keep-open=no", "--pause=yes"]
        if self.config.audio_only:
            args += ["--no-video", "--audio-display=no"]
        args += [f"--input-ipc-server={self.ipc}", "--terminal=no", "--msg-level=all=warn"]

        creationflags = getattr(subprocess, "CREATE_NO_WINDOW", 0) if _is_windows() else 0
        try:
            self._proc = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                cwd=self.config.cwd or None,
                creationflags=creationflags,
            )
        except OSError as e:
            raise AudioError(f"Failed to start mpv ({self._mpv_bin}): {e}") from e

        self._transport = _MpvJsonIpcTransport(self.ipc)
        try:
            self._transport.connect(timeout_s=self.config.connect_timeout_s)
        except OSError as e:
            raise AudioError(str(e)) from e

        self.observe_property("time-pos", self._on_time_pos)

    def open(self, path: str) -> None:
        if not os.path.isfile(path):
            raise AudioError(f"Audio file does not exist: {path}")
        try:
            if self._proc is None:
                self._spawn()
            self._loaded = False
            self._end_reason = None
            self.command("loadfile", os.path.abspath(path), "replace")
            self._wait_for(lambda: self._loaded or self._end_reason is not None,
                           self.config.load_timeout_s, "loading file")
        except AudioError:
            self.stop()
            raise

        if not self._loaded:
            self.stop()
            raise AudioError(f"mpv could not play {path}: {self._end_error or self._end_reason}")
        logger.debug("mpv loaded %s", path)

    def stop(self) -> None:
        """Stop playback and terminate the mpv process."""
        if self._transport is not None and not self._transport.closed:
            try:
                self.command("quit")
            except AudioError as e:
                logger.debug("mpv quit failed: %s", e)
        if self._transport is not None:
            self._transport.close()
            self._transport = None

        if self._proc is not None:
            try:
                self._proc.wait(timeout=1.0)
            except subprocess.TimeoutExpired:
                self._proc.terminate()
                try:
                    self._proc.wait(timeout=1.0)
                except subprocess.TimeoutExpired:
                    self._proc.kill()
            self._proc = None
            _remove_unix_socket_if_exists(self.ipc)
        self._loaded = False

    # ---- protocol helpers ----

    def _next_id(self) -> int:
        self._req_id += 1
        return self._req_id

    def _send(self, payload: dict[str, Any]) -> None:
        if self._transport is None or self._transport.closed:
            raise AudioError("mpv is not running")
        try:
            self._transport.send(payload)
        except OSError as e:
            raise AudioError(f"Lost connection to mpv: {e}") from e

    def command(self, *args: Any) -> None:
        """Fire-and-forget command."""
        self._send({"command": list(args)})

    def command_wait(self, *args: Any, timeout_s: float = 1.0) -> dict[str, Any]:
        """Send a command tagged with a request_id and wait for mpv's reply."""
        rid = self._next_id()
        self._send({"command": list(args), "request_id": rid})
        self._wait_for(lambda: rid in self._replies, timeout_s, f"reply to {args[0]!r}")
        return self._replies.pop(rid)

    def _wait_for(self, predicate: Callable[[], bool], timeout_s: float, what: str) -> None:
        deadline = time.monotonic() + timeout_s
        while True:
            self.process_messages(max_messages=50)
            if predicate():
                return
            if self._transport is None or self._transport.closed:
                raise AudioError(f"mpv exited while {what}")
            if time.monotonic() >= deadline:
                raise AudioError(f"mpv timed out while {what}")
            time.sleep(0.005)

    def set_property(self, name: str, value: Any) -> None:
        self.command("set_property", name, value)

    def observe_property(self, name: str, on_change: Callable[[Any], None]) -> None:
        if name not in self._observers:
            self._observers[name] = []
            self.command("observe_property", self._next_id(), name)
        self._observers[name].append(on_change)

    def process_messages(self, max_messages: int = 200) -> None:
        """Drain incoming messages: request replies, property changes, events."""
        if self._transport is None:
            return
        for _ in range(max_messages):
            msg = self._transport.recv_nowait()
            if msg is None:
                break

            if "request_id" in msg:
                rid = msg.get("request_id")
                if isinstance(rid, int):
                    self._replies[rid] = msg
                continue

            event = msg.get("event")
            if event == "property-change":
                name = msg.get("name")
                for cb in self._observers.get(name, ()):
                    cb(msg.get("data"))
            elif event == "file-loaded":
                self._loaded = True
            elif event == "playback-restart":
                self._restarts += 1
            elif event == "end-file":
                self._end_reason = msg.get("reason")
                self._end_error = msg.get("file_error")

    # ---- cached property handlers ----

    def _on_time_pos(self, value: Any) -> None:
        try:
            self._time_pos_s = float(value) if value is not None else 0.0
        except (TypeError, ValueError):
            self._time_pos_s = 0.0

    # ---- capability ----

    def play(self) -> None:
        self.set_property("pause", False)

    def pause(self) -> None:
        self.set_property("pause", True)

    def seek(self, ms: int) -> None:
        ms = max(0, int(ms))
        restarts = self._restarts
        resp = self.command_wait("seek", ms / 1000.0, "absolute+exact", timeout_s=self.config.seek_timeout_s)
        if resp.get("error") != "success":
            raise AudioError(f"Failed to seek: {resp.get('error')}")
        self._wait_for(lambda: self._restarts > restarts, self.config.seek_timeout_s, "seeking")
        self._time_pos_s = ms / 1000.0

    def elapsed(self) -> int:
        self.process_messages()
        self._raise_on_playback_error()
        return int(self._time_pos_s * 1000.0)

    def is_finished(self) -> bool:
        self.process_messages()
        self._raise_on_playback_error()
        if self._transport is None or self._transport.closed:
            raise AudioError("mpv exited unexpectedly")
        return self._end_reason == "eof"

    def _raise_on_playback_error(self) -> None:
        if self._end_reason == "error":
            raise AudioError(f"mpv playback failed: {self._end_error or 'unknown error'}")
