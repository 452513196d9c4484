import logging

import pytest

from hangul_fun.core.errors import ParseError
from hangul_fun.core.lrc import format_timestamp, parse_lrc, segment
from hangul_fun.core.models import Decomposition, Passthrough


def _times(tl):
    return [line.timestamp_ms for line in tl]


def _texts(tl):
    return [line.text for line in tl]


def test_two_line_file():
    tl = parse_lrc("[00:01.00]안녕\n[00:05.50]하세요\n")
    assert _times(tl) == [1000, 5500]
    assert _texts(tl) == ["안녕", "하세요"]


def test_line_with_several_tags_produces_one_entry_per_tag():
    tl = parse_lrc("[00:10.00][00:02.00]후렴\n[00:05.00]verse\n")
    assert _times(tl) == [2000, 5000, 10000]
    assert _texts(tl) == ["후렴", "verse", "후렴"]


def test_out_of_order_lines_are_sorted_stably():
    raw = "\n".join([
        "[00:03.00]a",
        "[00:01.00]b",
        "[00:03.00]c",
        "[00:02.00]d",
        "[00:03.00]e",
    ])
    tl = parse_lrc(raw)
    assert _times(tl) == [1000, 2000, 3000, 3000, 3000]
    assert _texts(tl) == ["b", "d", "a", "c", "e"]


def test_metadata_blank_and_untagged_lines_are_skipped():
    raw = "[ar:Someone]\n[ti:Title]\n\nplain words\n# comment\n[00:04.00]kept\n"
    tl = parse_lrc(raw)
    assert _texts(tl) == ["kept"]


def test_empty_input():
    assert len(parse_lrc("")) == 0
    assert len(parse_lrc("[ar:Only metadata]\n")) == 0


def test_malformed_timestamps_drop_only_their_line(caplog):
    errors = []
    raw = "[00:01.00]good\n[00:7x.00]bad digits\n[00:75.00]bad seconds\n[00:09.00]also good\n"
    with caplog.at_level(logging.WARNING, logger="hangul_fun"):
        tl = parse_lrc(raw, errors)

    assert _texts(tl) == ["good", "also good"]
    assert [e.line_no for e in errors] == [2, 3]
    assert all(isinstance(e, ParseError) for e in errors)
    assert "Skipping lyric line" in caplog.text


@pytest.mark.parametrize(
    "tag, ms",
    [
        ("00:01.00", 1000),
        ("01:02.5", 62500),
        ("01:02.34", 62340),
        ("01:02.345", 62345),
        ("01:02", 62000),
        ("1:02:50", 62500),
        ("123:00.00", 7380000),
    ],
)
def test_timestamp_forms(tag, ms):
    assert _times(parse_lrc(f"[{tag}]x")) == [ms]


def test_offset_shifts_following_lines():
    tl = parse_lrc("[00:01.00]before\n[offset:500]\n[00:02.00]after\n[00:00.20]clamped\n")
    assert _times(tl) == [0, 1000, 1500]
    assert _texts(tl) == ["clamped", "before", "after"]


def test_negative_offset_delays_lines():
    assert _times(parse_lrc("[offset:-500]\n[00:02.00]x\n")) == [2500]


def test_malformed_offset_is_reported():
    errors = []
    tl = parse_lrc("[offset:soon]\n[00:02.00]x\n", errors)
    assert _times(tl) == [2000]
    assert len(errors) == 1


def test_word_timestamps_are_stripped():
    tl = parse_lrc("[00:01.00]<00:01.00>안녕 <00:01.50>하세요 <00:02.00>\n")
    assert _texts(tl) == ["안녕 하세요"]


def test_tags_with_no_text_are_dropped():
    tl = parse_lrc("[00:01.00]\n[00:02.00]   \n[00:03.00]x\n")
    assert _texts(tl) == ["x"]


def test_bracketed_lyric_text_is_kept():
    tl = parse_lrc("[00:01.00][Chorus] 사랑해\n[00:02.00][ar:x][00:03.00]둘\n")
    assert _texts(tl) == ["[Chorus] 사랑해", "둘", "둘"]
    assert _times(tl) == [1000, 2000, 3000]


def test_whitespace_between_tags_and_inside_text_is_collapsed():
    tl = parse_lrc("[00:01.00] [00:02.00]   밥을    먹어요  \n")
    assert _texts(tl) == ["밥을 먹어요", "밥을 먹어요"]


def test_segmentation_into_words_and_syllables():
    words = segment("밥을 먹어요!")
    assert [w.text for w in words] == ["밥을", "먹어요!"]
    assert len(words[1]) == 4
    assert isinstance(words[0].syllables[0].analysis, Decomposition)
    assert isinstance(words[1].syllables[3].analysis, Passthrough)
    assert words[1].syllables[3].decomposition is None


def test_line_index_at_uses_greatest_timestamp_not_after():
    tl = parse_lrc("[00:01.00]a\n[00:05.50]b\n[00:05.50]c\n")
    assert tl.line_index_at(0) is None
    assert tl.line_index_at(999) is None
    assert tl.line_index_at(1000) == 0
    assert tl.line_index_at(5499) == 0
    assert tl.line_index_at(5500) == 2
    assert tl.line_index_at(10**9) == 2


def test_format_timestamp():
    assert format_timestamp(0) == "00:00.00"
    assert format_timestamp(62345) == "01:02.34"
    assert format_timestamp(-5) == "00:00.00"
