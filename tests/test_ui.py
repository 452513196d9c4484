import pytest

pytest.importorskip("PySide6.QtWidgets")

from hangul_fun.core.models import Cursor  # noqa: E402
from hangul_fun.ui.lyrics_view import cursor_line_html  # noqa: E402
from hangul_fun.ui.selection_panel import selection_lines  # noqa: E402


def test_selection_lines_for_hangul(timeline):
    rows = selection_lines(timeline, Cursor(1, 0, 0))
    assert rows[0] == "Selected word: 밥을 (babeul)"
    assert rows[1] == "Selected syllable: 밥"
    assert rows[2] == "  Initial: ㅂ (b)"
    assert rows[3].startswith("  Medial : ㅏ (a) 'a' as in 'father'")
    assert rows[4] == "  Final  : ㅂ (p/b)"


def test_selection_lines_silent_initial(timeline):
    rows = selection_lines(timeline, Cursor(1, 0, 1))
    assert rows[2] == "  Initial: ㅇ (silent)"
    assert rows[4] == "  Final  : ㄹ (l)"


def test_selection_lines_for_latin(timeline):
    rows = selection_lines(timeline, Cursor(2, 0, 0))
    assert rows == [
        "Selected word: hello (hello)",
        "Selected syllable: h",
        "  (not a Hangul syllable)",
    ]


def test_cursor_line_marks_word_and_syllable(timeline):
    html = cursor_line_html(timeline[1], Cursor(1, 1, 2))
    assert html.startswith("&gt; 밥을 ")
    assert '<span style="color:#2563eb">요</span>' in html
    assert '<span style="color:#111827">먹</span>' in html
