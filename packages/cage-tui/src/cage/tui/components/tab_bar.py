"""TabBar component - one row of labels cycled with Left/Right."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from cage.tui.focus import FocusArbiter, FocusRing, Registration
from cage.tui.keybindings import KeybindingsManager, get_keybindings
from cage.tui.keys import KeyEvent
from cage.tui.utils import inverse, pad_to_width

logger = logging.getLogger(__name__)


class TabBar:
    """A strip of labels with one selected.

    ``cycleLeft`` and ``cycleRight`` move the selection, wrapping at either
    end.  As a region of *focus_ring* the bar only takes keys while focused,
    and its selected label is highlighted only then.
    """

    def __init__(
        self,
        labels: Sequence[str],
        *,
        owner_id: str = "tabs",
        arbiter: FocusArbiter | None = None,
        keybindings: KeybindingsManager | None = None,
        focus_ring: FocusRing | None = None,
        on_change: Callable[[str, int], None] | None = None,
        initial_index: int = 0,
    ) -> None:
        if not labels:
            raise ValueError("A tab bar needs at least one label")
        self.owner_id = owner_id
        self.labels = tuple(labels)
        self.on_change = on_change
        self._arbiter = arbiter
        self._keybindings = keybindings
        self._focus_ring = focus_ring
        self._index = max(0, min(initial_index, len(self.labels) - 1))
        self._registration: Registration | None = None

    @property
    def selected_index(self) -> int:
        return self._index

    @property
    def selected_label(self) -> str:
        return self.labels[self._index]

    @property
    def is_focused(self) -> bool:
        return self._focus_ring is None or self._focus_ring.has_focus(self.owner_id)

    def mount(self) -> None:
        if self._registration is not None or self._arbiter is None:
            return
        handler = self.handle_key
        if self._focus_ring is not None:
            handler = self._focus_ring.guard(self.owner_id, handler)
        self._registration = self._arbiter.register(self.owner_id, handler)

    def unmount(self) -> None:
        if self._registration is not None:
            self._registration.unregister()
            self._registration = None

    def handle_key(self, event: KeyEvent) -> bool:
        kb = self._keybindings or get_keybindings()
        if kb.matches(event, "cycleLeft"):
            self.select(self._index - 1)
        elif kb.matches(event, "cycleRight"):
            self.select(self._index + 1)
        else:
            return False
        return True

    def select(self, index: int) -> None:
        index %= len(self.labels)
        if index == self._index:
            return
        self._index = index
        logger.debug("%s -> %s", self.owner_id, self.selected_label)
        if self.on_change is not None:
            self.on_change(self.selected_label, index)

    def strip(self) -> str:
        parts = []
        for i, label in enumerate(self.labels):
            if i != self._index:
                parts.append(f" {label} ")
            elif self.is_focused:
                parts.append(inverse(f" {label} "))
            else:
                parts.append(f"[{label}]")
        return "".join(parts)

    def render(self, width: int) -> list[str]:
        return [pad_to_width(self.strip(), width)]
