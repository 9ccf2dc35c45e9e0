"""Tests for cage.tui.utils -- cell widths and fitting text."""

from __future__ import annotations

from cage.tui.utils import (
    INVERSE,
    RESET,
    inverse,
    pad_to_width,
    strip_ansi,
    truncate_to_width,
    visible_width,
)


class TestVisibleWidth:
    def test_ascii(self) -> None:
        assert visible_width("hello") == 5
        assert visible_width("") == 0

    def test_ansi_codes_take_no_space(self) -> None:
        assert visible_width("\x1b[31mred\x1b[0m") == 3
        assert strip_ansi("\x1b[1;32mok\x1b[0m") == "ok"

    def test_wide_characters(self) -> None:
        assert visible_width("日本") == 4

    def test_combining_mark(self) -> None:
        assert visible_width("é") == 1

    def test_tab(self) -> None:
        assert visible_width("a\tb") == 5


class TestTruncateToWidth:
    def test_fitting_text_unchanged(self) -> None:
        assert truncate_to_width("hello", 5) == "hello"

    def test_cut_text_ends_in_ellipsis(self) -> None:
        assert truncate_to_width("hello world", 8) == "hello w…"

    def test_custom_ellipsis(self) -> None:
        assert truncate_to_width("hello world", 8, "") == "hello wo"

    def test_zero_width(self) -> None:
        assert truncate_to_width("hello", 0) == ""

    def test_styling_closed_before_ellipsis(self) -> None:
        result = truncate_to_width("\x1b[31mhello world\x1b[0m", 6)
        assert result == "\x1b[31mhello" + RESET + "…"
        assert visible_width(result) == 6

    def test_wide_character_not_split(self) -> None:
        assert truncate_to_width("日本語", 5) == "日本…"


class TestPadToWidth:
    def test_pads(self) -> None:
        assert pad_to_width("ab", 5) == "ab   "

    def test_truncates(self) -> None:
        assert pad_to_width("abcdefgh", 5) == "abcd…"

    def test_wide_text_padded_to_exact_width(self) -> None:
        assert visible_width(pad_to_width("日本", 7)) == 7


def test_inverse() -> None:
    assert inverse("x") == f"{INVERSE}x{RESET}"
