from dataclasses import replace

import pytest

from hangul_fun.core.config import PlayerConfig
from hangul_fun.core.controller import Direction, PlaybackController, check_cursor, move_cursor
from hangul_fun.core.errors import AudioError, InvariantViolation, LyricsError
from hangul_fun.core.lrc import parse_lrc
from hangul_fun.core.models import Cursor, Song, Timeline
from hangul_fun.core.state import Paused, PlaybackState, Playing, Seeking, Stopped


def test_starts_playing_and_following(controller, backend):
    s = controller.snapshot()
    assert isinstance(s.mode, Playing)
    assert s.is_following is True
    assert s.elapsed_ms == 0
    assert s.current_line_index == 0
    assert s.cursor == Cursor()
    assert backend.opened_path == "song.mp3"


def test_tick_tracks_lines_by_binary_search(backend):
    c = PlaybackController(backend)
    c.start(Song("a.mp3", parse_lrc("[00:01.00]안녕\n[00:05.50]하세요")), background=False)

    c.tick(3000)
    assert c.snapshot().current_line_index == 0
    c.tick(6000)
    assert c.snapshot().current_line_index == 1
    assert c.snapshot().cursor == Cursor(1)
    c.stop()


def test_before_first_line_the_first_line_is_current(controller):
    controller.tick(200)
    s = controller.snapshot()
    assert s.elapsed_ms == 200
    assert s.current_line_index == 0
    assert controller.playback_line_index() is None


def test_tick_keeps_cursor_within_current_line(controller):
    controller.tick(4000)
    controller.navigate(Direction.NEXT_SYLLABLE)
    controller.follow()
    controller.tick(4500)
    assert controller.snapshot().cursor == Cursor(1, 0, 1)


def test_navigate_stops_following(controller):
    controller.tick(1500)
    controller.navigate(Direction.NEXT_LINE)
    s = controller.snapshot()
    assert s.is_following is False
    assert s.cursor == Cursor(1)
    assert s.current_line_index == 1

    controller.tick(9000)
    s = controller.snapshot()
    assert s.elapsed_ms == 9000
    assert s.cursor == Cursor(1)
    assert s.current_line_index == 1
    assert controller.playback_line_index() == 3


def test_navigate_at_edge_still_stops_following(controller):
    assert controller.navigate(Direction.PREV_LINE) is True
    s = controller.snapshot()
    assert s.cursor == Cursor(0)
    assert s.is_following is False


def test_activate_seeks_to_cursor_line_and_follows_again(controller, timeline):
    controller.navigate(Direction.NEXT_LINE)
    controller.navigate(Direction.NEXT_LINE)
    req = controller.activate_current_line()

    assert req.target_line_index == 2
    assert req.target_ms == timeline[2].timestamp_ms
    s = controller.snapshot()
    assert s.mode == Seeking(req)
    assert s.is_following is True


def test_follow_jumps_cursor_back_to_playback(controller):
    controller.tick(8500)
    controller.navigate(Direction.PREV_LINE)
    controller.navigate(Direction.PREV_LINE)
    assert controller.snapshot().cursor == Cursor(1)

    assert controller.follow() is True
    s = controller.snapshot()
    assert s.is_following is True
    assert s.cursor == Cursor(3)
    assert s.current_line_index == 3


def test_pause_and_resume_leave_clock_and_cursor_alone(controller):
    controller.tick(4000)
    controller.navigate(Direction.NEXT_WORD)
    before = controller.snapshot()

    assert controller.pause() is True
    assert controller.pause() is False
    paused = controller.snapshot()
    assert isinstance(paused.mode, Paused)
    assert replace(paused, mode=before.mode) == before

    assert controller.resume() is True
    assert controller.resume() is False
    assert controller.snapshot() == before


def test_toggle_pause(controller):
    assert controller.toggle_pause() is True
    assert controller.snapshot().is_paused
    assert controller.toggle_pause() is True
    assert isinstance(controller.snapshot().mode, Playing)


def test_pause_is_ignored_while_seeking(controller):
    controller.activate_current_line()
    assert controller.pause() is False
    assert controller.toggle_pause() is False
    assert controller.snapshot().is_seeking


def test_rewind_steps_back_from_elapsed(controller):
    controller.tick(5600)
    req = controller.rewind()
    assert req.target_ms == 3600
    assert req.target_line_index == 1

    # a second press counts from the pending target
    req = controller.rewind()
    assert req.target_ms == 1600
    assert req.target_line_index == 0


def test_rewind_clamps_at_zero(controller):
    controller.tick(500)
    assert controller.rewind(ms=2000).target_ms == 0


def test_rewind_step_comes_from_config(backend, song):
    c = PlaybackController(backend, PlayerConfig(rewind_ms=500))
    c.start(song, background=False)
    c.tick(3000)
    assert c.rewind().target_ms == 2500
    c.stop()


def test_newer_seek_supersedes_older(controller):
    first = controller.activate_current_line()
    controller.navigate(Direction.NEXT_LINE)
    second = controller.activate_current_line()
    assert second.request_id > first.request_id
    assert controller.snapshot().mode == Seeking(second)


def test_commands_before_start_do_nothing(backend):
    c = PlaybackController(backend)
    assert c.navigate(Direction.NEXT_LINE) is False
    assert c.activate_current_line() is None
    assert c.rewind() is None
    assert c.pause() is False
    assert c.follow() is False
    c.tick(1000)
    assert c.snapshot() == PlaybackState()


def test_stop_releases_device_once(controller, backend):
    controller.stop()
    controller.stop()
    assert controller.snapshot().is_stopped
    assert backend.stop_count == 1


def test_context_manager_stops(backend, song):
    with PlaybackController(backend) as c:
        c.start(song, background=False)
        assert not c.snapshot().is_stopped
    assert c.snapshot().is_stopped
    assert backend.stop_count == 1


def test_start_twice_is_an_invariant_violation(controller, song):
    with pytest.raises(InvariantViolation):
        controller.start(song, background=False)


def test_start_without_lyrics(backend):
    c = PlaybackController(backend)
    with pytest.raises(LyricsError):
        c.start(Song("a.mp3", Timeline()))
    assert "open" not in backend.calls


def test_open_failure_releases_device_and_stays_stopped(backend, song):
    backend.open_error = AudioError("no such device")
    c = PlaybackController(backend)
    with pytest.raises(AudioError, match="no such device"):
        c.start(song)
    assert c.snapshot().is_stopped
    assert backend.stop_count == 1
    assert c.engine is None


def test_illegal_transition_is_an_invariant_violation(backend):
    c = PlaybackController(backend)
    with pytest.raises(InvariantViolation):
        with c.shared.lock:
            c._commit(PlaybackState(mode=Paused()))


def test_out_of_bounds_cursor_is_an_invariant_violation(controller):
    s = controller.snapshot()
    with pytest.raises(InvariantViolation):
        with controller.shared.lock:
            controller._commit(replace(s, cursor=Cursor(0, 5)))
    # state untouched
    assert controller.snapshot() == s


def test_invariant_violation_is_an_assertion():
    assert issubclass(InvariantViolation, AssertionError)


def test_check_cursor(timeline):
    check_cursor(timeline, Cursor(1, 1, 2))
    for bad in (Cursor(6), Cursor(-1), Cursor(0, 2), Cursor(0, 0, 2)):
        with pytest.raises(InvariantViolation):
            check_cursor(timeline, bad)


@pytest.mark.parametrize(
    "start, direction, expected",
    [
        # line 1 is "밥을 먹어요"
        (Cursor(1, 0, 0), Direction.NEXT_SYLLABLE, Cursor(1, 0, 1)),
        (Cursor(1, 0, 1), Direction.NEXT_SYLLABLE, Cursor(1, 1, 0)),
        (Cursor(1, 1, 2), Direction.NEXT_SYLLABLE, Cursor(1, 1, 2)),
        (Cursor(1, 1, 0), Direction.PREV_SYLLABLE, Cursor(1, 0, 1)),
        (Cursor(1, 0, 0), Direction.PREV_SYLLABLE, Cursor(1, 0, 0)),
        (Cursor(1, 0, 1), Direction.NEXT_WORD, Cursor(1, 1, 0)),
        (Cursor(1, 1, 0), Direction.NEXT_WORD, Cursor(1, 1, 0)),
        (Cursor(1, 1, 2), Direction.PREV_WORD, Cursor(1, 1, 0)),
        (Cursor(1, 1, 0), Direction.PREV_WORD, Cursor(1, 0, 0)),
        (Cursor(1, 1, 2), Direction.NEXT_LINE, Cursor(2, 0, 0)),
        (Cursor(1, 1, 2), Direction.PREV_LINE, Cursor(0, 0, 0)),
        (Cursor(5, 0, 0), Direction.NEXT_LINE, Cursor(5, 0, 0)),
    ],
)
def test_move_cursor(timeline, start, direction, expected):
    assert move_cursor(timeline, start, direction) == expected


def test_stopped_state_is_initial():
    assert isinstance(PlaybackState().mode, Stopped)
