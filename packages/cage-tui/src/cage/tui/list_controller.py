"""Keyboard-driven selection and scrolling over a caller-owned item sequence.

The reducer functions (:func:`apply_action`, :func:`reconcile`) are pure: they
take a :class:`ListState` and return a new one.  :class:`ListController` keeps
the current state next to the items and fires the collaborator callbacks.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Callable, Generic, Sequence, TypeVar

from cage.tui.viewport import Scrollbar, Window, compute_window, scrollbar_geometry

T = TypeVar("T")


class ListAction(enum.Enum):
    UP = "up"
    DOWN = "down"
    PAGE_UP = "pageUp"
    PAGE_DOWN = "pageDown"
    HOME = "home"
    END = "end"
    ACTIVATE = "activate"


@dataclass(frozen=True)
class ListState:
    """Selection and scroll position of one list.

    ``selected_index`` is -1 exactly when the list is empty.  Whenever it is not,
    ``scroll_offset <= selected_index < scroll_offset + viewport_height``.
    """

    selected_index: int = -1
    scroll_offset: int = 0
    viewport_height: int = 1
    following: bool = False


@dataclass(frozen=True)
class Activation(Generic[T]):
    item: T
    index: int


def _with_window(state: ListState, item_count: int, selected: int, scroll: int) -> ListState:
    window = compute_window(item_count, state.viewport_height, selected, scroll)
    return replace(state, selected_index=selected, scroll_offset=window.scroll_offset)


def initial_state(
    item_count: int,
    viewport_height: int,
    initial_index: int = 0,
    follow_latest: bool = False,
) -> ListState:
    height = max(1, viewport_height)
    if item_count <= 0:
        return ListState(-1, 0, height, follow_latest)
    if follow_latest:
        selected = item_count - 1
    else:
        selected = max(0, min(initial_index, item_count - 1))
    # Start with the initial selection roughly centred.
    scroll = max(0, selected - height // 2)
    state = ListState(selected, scroll, height, follow_latest)
    return _with_window(state, item_count, selected, scroll)


def apply_action(
    state: ListState,
    action: ListAction,
    item_count: int,
    wrap_around: bool = True,
) -> ListState:
    """Return the state after *action*.  ``ACTIVATE`` never changes state."""
    if item_count <= 0:
        return replace(state, selected_index=-1, scroll_offset=0)
    if action is ListAction.ACTIVATE:
        return state

    last = item_count - 1
    selected = max(0, min(state.selected_index, last))
    scroll = state.scroll_offset
    following = state.following

    if action is ListAction.UP:
        if selected == 0:
            selected = last if wrap_around else 0
        else:
            selected -= 1
    elif action is ListAction.DOWN:
        if selected == last:
            selected = 0 if wrap_around else last
        else:
            selected += 1
    elif action is ListAction.PAGE_UP:
        selected = max(0, selected - state.viewport_height)
    elif action is ListAction.PAGE_DOWN:
        selected = min(last, selected + state.viewport_height)
    elif action is ListAction.HOME:
        selected = 0
        scroll = 0
    elif action is ListAction.END:
        selected = last
        following = True

    if action is not ListAction.END:
        # Moving off the tail disengages follow mode.
        following = following and selected == last

    return _with_window(replace(state, following=following), item_count, selected, scroll)


def reconcile(state: ListState, item_count: int, previous_count: int) -> ListState:
    """Recompute selection and scroll after the caller replaced its items."""
    if item_count <= 0:
        return replace(state, selected_index=-1, scroll_offset=0)

    selected = state.selected_index
    if selected < 0:
        selected = 0
    if state.following and item_count > previous_count:
        selected = item_count - 1
    selected = min(selected, item_count - 1)
    return _with_window(state, item_count, selected, state.scroll_offset)


def resize(state: ListState, item_count: int, viewport_height: int) -> ListState:
    resized = replace(state, viewport_height=max(1, viewport_height))
    if item_count <= 0:
        return replace(resized, selected_index=-1, scroll_offset=0)
    if resized.following:
        return _with_window(resized, item_count, item_count - 1, resized.scroll_offset)
    return _with_window(resized, item_count, resized.selected_index, resized.scroll_offset)


class ListController(Generic[T]):
    """Owns a :class:`ListState` for a sequence supplied by a collaborator."""

    def __init__(
        self,
        items: Sequence[T] = (),
        *,
        viewport_height: int = 10,
        wrap_around: bool = True,
        follow_latest: bool = False,
        initial_index: int = 0,
        on_activate: Callable[[T, int], None] | None = None,
        on_focus_change: Callable[[T, int], None] | None = None,
    ) -> None:
        self._items: Sequence[T] = items
        # Count last reconciled; callers may hand back the same list mutated in place.
        self._count = len(items)
        self.wrap_around = wrap_around
        self.on_activate = on_activate
        self.on_focus_change = on_focus_change
        self._state = initial_state(len(items), viewport_height, initial_index, follow_latest)

    # -- accessors ---------------------------------------------------------

    @property
    def items(self) -> Sequence[T]:
        return self._items

    @property
    def item_count(self) -> int:
        return self._count

    @property
    def state(self) -> ListState:
        return self._state

    @property
    def selected_index(self) -> int:
        return self._state.selected_index

    @property
    def scroll_offset(self) -> int:
        return self._state.scroll_offset

    @property
    def viewport_height(self) -> int:
        return self._state.viewport_height

    @property
    def following(self) -> bool:
        return self._state.following

    @property
    def is_empty(self) -> bool:
        return self._count == 0

    @property
    def selected_item(self) -> T | None:
        if 0 <= self._state.selected_index < len(self._items):
            return self._items[self._state.selected_index]
        return None

    @property
    def window(self) -> Window:
        s = self._state
        return compute_window(self._count, s.viewport_height, s.selected_index, s.scroll_offset)

    @property
    def scrollbar(self) -> Scrollbar | None:
        window = self.window
        return scrollbar_geometry(self._count, window.size, window.scroll_offset)

    # -- mutation ----------------------------------------------------------

    def handle_action(self, action: ListAction) -> Activation[T] | None:
        """Apply *action*.  Returns the activation for ``ACTIVATE``, else ``None``."""
        if action is ListAction.ACTIVATE:
            item = self.selected_item
            if item is None:
                return None
            activation = Activation(item, self._state.selected_index)
            if self.on_activate is not None:
                self.on_activate(item, activation.index)
            return activation

        self._transition(apply_action(self._state, action, self._count, self.wrap_around))
        return None

    def set_items(self, items: Sequence[T]) -> None:
        previous_count = self._count
        self._items = items
        self._count = len(items)
        self._transition(reconcile(self._state, self._count, previous_count))

    def set_viewport_height(self, viewport_height: int) -> None:
        self._transition(resize(self._state, self._count, viewport_height))

    def select(self, index: int) -> None:
        """Move the selection to *index*, clamped into range."""
        count = self._count
        if count == 0:
            return
        selected = max(0, min(index, count - 1))
        state = replace(self._state, following=self._state.following and selected == count - 1)
        self._transition(_with_window(state, count, selected, state.scroll_offset))

    def engage_follow(self) -> None:
        self._transition(apply_action(self._state, ListAction.END, self._count, self.wrap_around))
        self._state = replace(self._state, following=True)

    def disengage_follow(self) -> None:
        self._state = replace(self._state, following=False)

    def _transition(self, new_state: ListState) -> None:
        previous = self._state
        self._state = new_state
        if (
            new_state.selected_index != previous.selected_index
            and self.on_focus_change is not None
        ):
            item = self.selected_item
            if item is not None:
                self.on_focus_change(item, new_state.selected_index)
