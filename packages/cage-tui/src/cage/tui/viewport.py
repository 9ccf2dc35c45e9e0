"""Viewport windowing for fixed-height list regions.

Pure functions of ``(item_count, viewport_height, selected_index,
scroll_offset)``.  Nothing here keeps state, so callers may invoke them on
every render.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Window:
    """Result of :func:`compute_window`.

    ``visible_start`` always equals ``scroll_offset``; it is kept as its own
    field so callers can slice ``items[visible_start:visible_end]`` directly.
    """

    scroll_offset: int
    visible_start: int
    visible_end: int

    @property
    def size(self) -> int:
        return self.visible_end - self.visible_start

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and self.visible_start <= index < self.visible_end


@dataclass(frozen=True)
class Scrollbar:
    thumb_size: int
    thumb_offset: int

    def is_thumb(self, row: int) -> bool:
        return self.thumb_offset <= row < self.thumb_offset + self.thumb_size


def _round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; scrollbars use half-up.
    return int(math.floor(value + 0.5))


def max_scroll_offset(item_count: int, viewport_height: int) -> int:
    return max(0, item_count - max(1, viewport_height))


def compute_window(
    item_count: int,
    viewport_height: int,
    selected_index: int,
    scroll_offset: int,
) -> Window:
    """Return the scroll offset and visible slice that reveal *selected_index*.

    * selection above the window: scroll up so it is the first row
    * selection below the window: scroll down so it is the last row
    * otherwise the offset is kept

    The offset is finally clamped to ``[0, item_count - viewport_height]`` so a
    list that shrank never leaves blank rows under the last item.
    """
    if item_count <= 0:
        return Window(0, 0, 0)

    height = max(1, viewport_height)
    offset = scroll_offset

    if selected_index < offset:
        offset = selected_index
    elif selected_index >= offset + height:
        offset = selected_index - height + 1

    offset = max(0, min(offset, max_scroll_offset(item_count, height)))
    end = min(item_count, offset + height)
    return Window(offset, offset, end)


def visible_range(
    item_count: int,
    viewport_height: int,
    selected_index: int,
    scroll_offset: int,
) -> range:
    window = compute_window(item_count, viewport_height, selected_index, scroll_offset)
    return range(window.visible_start, window.visible_end)


def scrollbar_geometry(
    item_count: int,
    viewport_height: int,
    scroll_offset: int,
) -> Scrollbar | None:
    """Thumb size and position for a list of *item_count* rows.

    Returns ``None`` when everything fits and no scrollbar is drawn.
    """
    height = max(1, viewport_height)
    if item_count <= height:
        return None

    thumb_size = max(1, _round_half_up(height / item_count * height))
    thumb_size = min(thumb_size, height)
    span = max(1, item_count - height)
    thumb_offset = _round_half_up(scroll_offset / span * (height - thumb_size))
    thumb_offset = max(0, min(thumb_offset, height - thumb_size))
    return Scrollbar(thumb_size=thumb_size, thumb_offset=thumb_offset)
