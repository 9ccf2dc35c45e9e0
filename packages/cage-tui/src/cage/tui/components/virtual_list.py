"""VirtualList component: a keyboard-driven list that draws only what fits."""

from __future__ import annotations

import logging
from typing import Callable, Generic, Sequence, TypeVar

from cage.tui.focus import FocusArbiter, FocusRing, Registration
from cage.tui.height import HeightResolver
from cage.tui.keybindings import KeybindingsManager, get_keybindings
from cage.tui.keys import KeyEvent
from cage.tui.list_controller import Activation, ListAction, ListController
from cage.tui.utils import inverse, pad_to_width, truncate_to_width, visible_width

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCROLLBAR_THUMB = "■"
SCROLLBAR_TRACK = "│"
DEFAULT_EMPTY_MESSAGE = "No items to display"


def _default_render(item: object, index: int, is_selected: bool) -> str:
    return f"{'›' if is_selected else ' '} {item}"


def _default_key(item: object, index: int) -> str:
    return str(index)


class VirtualList(Generic[T]):
    """Draws the visible window of *items* and moves a selection through them.

    The list never copies or filters *items*; callers replace them with
    :meth:`set_items`.  Between :meth:`mount` and :meth:`unmount` it receives
    keys from *arbiter* under *owner_id* (only while focused, when it is a
    region of *focus_ring*) and, if *heights* is given, follows the terminal
    height.
    """

    def __init__(
        self,
        items: Sequence[T] = (),
        render_item: Callable[[T, int, bool], str] | None = None,
        *,
        owner_id: str = "list",
        arbiter: FocusArbiter | None = None,
        heights: HeightResolver | None = None,
        keybindings: KeybindingsManager | None = None,
        focus_ring: FocusRing | None = None,
        key_extractor: Callable[[T, int], str] | None = None,
        on_activate: Callable[[T, int], None] | None = None,
        on_focus_change: Callable[[T, int], None] | None = None,
        empty_message: str = DEFAULT_EMPTY_MESSAGE,
        wrap_around: bool = True,
        follow_latest: bool = False,
        show_scrollbar: bool = True,
        initial_index: int = 0,
        viewport_height: int = 10,
        local_reserved: int = 0,
        max_height: int | None = None,
    ) -> None:
        self.owner_id = owner_id
        self.render_item: Callable[[T, int, bool], str] = render_item or _default_render
        self.key_extractor: Callable[[T, int], str] = key_extractor or _default_key
        self.empty_message = empty_message
        self.show_scrollbar = show_scrollbar
        self._arbiter = arbiter
        self._heights = heights
        self._keybindings = keybindings
        self._focus_ring = focus_ring
        self._local_reserved = local_reserved
        self._max_height = max_height
        self._registration: Registration | None = None
        self._unbind: Callable[[], None] | None = None

        self.controller: ListController[T] = ListController(
            items,
            viewport_height=viewport_height,
            wrap_around=wrap_around,
            follow_latest=follow_latest,
            initial_index=initial_index,
            on_activate=on_activate,
            on_focus_change=on_focus_change,
        )

    # -- lifecycle ---------------------------------------------------------

    @property
    def mounted(self) -> bool:
        return self._registration is not None or self._unbind is not None

    def mount(self) -> None:
        if self.mounted:
            return
        if self._arbiter is not None:
            handler = self.handle_key
            if self._focus_ring is not None:
                handler = self._focus_ring.guard(self.owner_id, handler)
            self._registration = self._arbiter.register(self.owner_id, handler)
        if self._heights is not None:
            self._unbind = self._heights.bind(self, self._local_reserved, self._max_height)

    def unmount(self) -> None:
        if self._registration is not None:
            self._registration.unregister()
            self._registration = None
        if self._unbind is not None:
            self._unbind()
            self._unbind = None

    # -- HeightListener ----------------------------------------------------

    @property
    def item_count(self) -> int:
        return self.controller.item_count

    def set_viewport_height(self, viewport_height: int) -> None:
        if viewport_height != self.controller.viewport_height:
            logger.debug("%s viewport height -> %d", self.owner_id, viewport_height)
        self.controller.set_viewport_height(viewport_height)

    # -- data --------------------------------------------------------------

    @property
    def items(self) -> Sequence[T]:
        return self.controller.items

    @property
    def selected_index(self) -> int:
        return self.controller.selected_index

    @property
    def selected_item(self) -> T | None:
        return self.controller.selected_item

    @property
    def viewport_height(self) -> int:
        return self.controller.viewport_height

    def set_items(self, items: Sequence[T]) -> None:
        self.controller.set_items(items)
        if self._unbind is not None and self._heights is not None:
            # A short list takes fewer rows, so the height depends on the count.
            self._heights.refresh()

    def visible_keys(self) -> list[str]:
        window = self.controller.window
        items = self.controller.items
        return [
            self.key_extractor(items[i], i)
            for i in range(window.visible_start, window.visible_end)
        ]

    # -- input -------------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> bool:
        kb = self._keybindings or get_keybindings()
        action = kb.action_for_list(event)
        if action is None:
            return False
        self.handle_action(action)
        return True

    def handle_action(self, action: ListAction) -> Activation[T] | None:
        return self.controller.handle_action(action)

    # -- rendering ---------------------------------------------------------

    def render(self, width: int) -> list[str]:
        """Exactly ``viewport_height`` rows, each exactly *width* cells wide."""
        height = self.controller.viewport_height
        if self.controller.is_empty:
            rows = [" " * width for _ in range(height)]
            message = truncate_to_width(self.empty_message, width)
            left = (width - visible_width(message)) // 2
            rows[(height - 1) // 2] = pad_to_width(" " * left + message, width)
            return rows

        scrollbar = self.controller.scrollbar if self.show_scrollbar else None
        content_width = width - 2 if scrollbar is not None else width
        window = self.controller.window
        items = self.controller.items
        selected = self.controller.selected_index

        rows: list[str] = []
        for row in range(height):
            index = window.visible_start + row
            if index < window.visible_end:
                is_selected = index == selected
                text = pad_to_width(self.render_item(items[index], index, is_selected), content_width)
                line = inverse(text) if is_selected else text
            else:
                line = " " * content_width
            if scrollbar is not None:
                line += " " + (SCROLLBAR_THUMB if scrollbar.is_thumb(row) else SCROLLBAR_TRACK)
            rows.append(line)
        return rows
