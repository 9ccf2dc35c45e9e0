"""Tests for cage.tui.viewport -- window and scrollbar geometry."""

from __future__ import annotations

import pytest

from cage.tui.viewport import (
    Scrollbar,
    Window,
    compute_window,
    max_scroll_offset,
    scrollbar_geometry,
    visible_range,
)


# ---------------------------------------------------------------------------
# compute_window
# ---------------------------------------------------------------------------


class TestComputeWindow:
    def test_empty_list(self) -> None:
        assert compute_window(0, 10, -1, 0) == Window(0, 0, 0)

    def test_selection_inside_window_keeps_offset(self) -> None:
        assert compute_window(100, 10, 8, 5) == Window(5, 5, 15)

    def test_selection_below_window_scrolls_down(self) -> None:
        window = compute_window(100, 10, 15, 0)
        assert window.scroll_offset == 6
        assert window.visible_end == 16

    def test_selection_above_window_scrolls_up(self) -> None:
        assert compute_window(100, 10, 3, 6).scroll_offset == 3

    def test_offset_clamped_after_list_shrinks(self) -> None:
        window = compute_window(12, 10, 5, 8)
        assert window == Window(2, 2, 12)
        assert 5 in window

    def test_short_list_never_scrolls(self) -> None:
        assert compute_window(5, 10, 4, 3) == Window(0, 0, 5)

    def test_zero_height_treated_as_one(self) -> None:
        assert compute_window(5, 0, 3, 0) == Window(3, 3, 4)

    def test_idempotent(self) -> None:
        first = compute_window(100, 10, 42, 0)
        second = compute_window(100, 10, 42, first.scroll_offset)
        assert first == second

    @pytest.mark.parametrize("selected", [0, 1, 9, 10, 50, 89, 90, 99])
    def test_selection_always_visible(self, selected: int) -> None:
        for offset in (0, 45, 90):
            window = compute_window(100, 10, selected, offset)
            assert window.visible_start <= selected < window.visible_end
            assert 0 <= window.scroll_offset <= max_scroll_offset(100, 10)

    def test_visible_range(self) -> None:
        assert visible_range(100, 10, 15, 0) == range(6, 16)

    def test_window_size(self) -> None:
        assert compute_window(3, 10, 0, 0).size == 3


# ---------------------------------------------------------------------------
# scrollbar_geometry
# ---------------------------------------------------------------------------


class TestScrollbarGeometry:
    def test_no_scrollbar_when_items_fit(self) -> None:
        assert scrollbar_geometry(10, 10, 0) is None
        assert scrollbar_geometry(3, 10, 0) is None

    def test_thumb_at_top(self) -> None:
        assert scrollbar_geometry(100, 10, 0) == Scrollbar(thumb_size=1, thumb_offset=0)

    def test_thumb_at_bottom(self) -> None:
        assert scrollbar_geometry(100, 10, 90) == Scrollbar(thumb_size=1, thumb_offset=9)

    def test_thumb_size_proportional(self) -> None:
        assert scrollbar_geometry(20, 10, 0).thumb_size == 5
        assert scrollbar_geometry(30, 10, 20) == Scrollbar(thumb_size=3, thumb_offset=7)

    def test_rounds_half_up(self) -> None:
        # 5 / 10 * (10 - 5) == 2.5
        assert scrollbar_geometry(20, 10, 5).thumb_offset == 3

    def test_thumb_stays_inside_track(self) -> None:
        for count in (11, 17, 100, 1000):
            for offset in range(0, count - 10 + 1, 7):
                bar = scrollbar_geometry(count, 10, offset)
                assert bar is not None
                assert 1 <= bar.thumb_size <= 10
                assert 0 <= bar.thumb_offset <= 10 - bar.thumb_size

    def test_is_thumb(self) -> None:
        bar = Scrollbar(thumb_size=2, thumb_offset=3)
        assert [bar.is_thumb(row) for row in range(6)] == [False, False, False, True, True, False]
