"""Shared fixtures: a sample lyric file, a recording audio backend, a started controller."""

import logging
import wave
from pathlib import Path

import pytest

from hangul_fun.core.controller import PlaybackController
from hangul_fun.core.lrc import parse_lrc
from hangul_fun.core.models import Song
from hangul_fun.player.backend import AudioBackend


@pytest.fixture(autouse=True)
def reset_logging():
    """The CLI installs handlers on the package logger; drop them between tests."""
    yield
    logger = logging.getLogger("hangul_fun")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


SAMPLE_LRC = """\
[ti:Sample]
[ar:Nobody]
[00:01.00]안녕 하세요
[00:03.50]밥을 먹어요
[00:05.50]hello world
[00:08.00]사랑해
[00:10.00]끝
[00:12.00]마지막 줄
"""


class FakeBackend(AudioBackend):
    """Records every call; position, end of media and failures are set by the test."""

    name = "fake"

    def __init__(self):
        self.calls = []
        self.seeks = []
        self.position = 0
        self.finished = False
        self.open_error = None
        self.seek_error = None
        self.opened_path = None
        self.stop_count = 0

    def open(self, path):
        self.calls.append("open")
        if self.open_error is not None:
            raise self.open_error
        self.opened_path = path

    def play(self):
        self.calls.append("play")

    def pause(self):
        self.calls.append("pause")

    def seek(self, ms):
        self.calls.append("seek")
        if self.seek_error is not None:
            raise self.seek_error
        self.seeks.append(ms)
        self.position = ms

    def elapsed(self):
        return self.position

    def is_finished(self):
        return self.finished

    def stop(self):
        self.calls.append("stop")
        self.stop_count += 1


@pytest.fixture
def timeline():
    return parse_lrc(SAMPLE_LRC)


@pytest.fixture
def song(timeline):
    return Song(audio_path="song.mp3", timeline=timeline)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def controller(backend, song):
    """Started controller whose audio engine is stepped by hand."""
    c = PlaybackController(backend)
    c.start(song, background=False)
    yield c
    c.stop()


def write_wav(path: Path, seconds: float = 1.0, rate: int = 8000) -> Path:
    with wave.open(str(path), "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(rate)
        w.writeframes(b"\x00\x00" * int(rate * seconds))
    return path


@pytest.fixture
def wav_file(tmp_path):
    return write_wav(tmp_path / "song.wav")
