"""SearchBar component - single-line text capture with exclusive focus."""

from __future__ import annotations

import logging
from typing import Callable

import grapheme

from cage.tui.focus import FocusArbiter, FocusMode, Registration, ReleaseToken
from cage.tui.height import HeightResolver
from cage.tui.keybindings import KeybindingsManager, get_keybindings
from cage.tui.keys import KeyEvent
from cage.tui.utils import pad_to_width, truncate_to_width, visible_width

logger = logging.getLogger(__name__)


class SearchBar:
    """Takes every keystroke while open so list shortcuts become plain text.

    Opening pushes an exclusive claim and reserves one terminal row; submit,
    cancel and :meth:`close` give both back.
    """

    def __init__(
        self,
        arbiter: FocusArbiter,
        *,
        owner_id: str = "search",
        heights: HeightResolver | None = None,
        keybindings: KeybindingsManager | None = None,
        prompt: str = "/",
        on_change: Callable[[str], None] | None = None,
        on_submit: Callable[[str], None] | None = None,
        on_cancel: Callable[[], None] | None = None,
    ) -> None:
        self.owner_id = owner_id
        self.prompt = prompt
        self.on_change = on_change
        self.on_submit = on_submit
        self.on_cancel = on_cancel
        self._arbiter = arbiter
        self._heights = heights
        self._keybindings = keybindings
        self._query = ""
        self._token: ReleaseToken | None = None
        self._registration: Registration | None = None

    @property
    def is_open(self) -> bool:
        return self._token is not None

    @property
    def query(self) -> str:
        return self._query

    @property
    def reserved_rows(self) -> int:
        return 1 if self.is_open else 0

    def open(self, initial: str = "") -> None:
        if self.is_open:
            return
        self._query = initial
        self._token = self._arbiter.push(self.owner_id, FocusMode.EXCLUSIVE)
        self._registration = self._arbiter.register(self.owner_id, self.handle_key)
        if self._heights is not None:
            self._heights.reserve(self.owner_id, 1)
        logger.debug("Search opened by %s", self.owner_id)

    def close(self) -> None:
        """Give back focus and the reserved row.  Safe to call repeatedly."""
        token, self._token = self._token, None
        registration, self._registration = self._registration, None
        if token is not None:
            token.release()
        if registration is not None:
            registration.unregister()
        if self._heights is not None:
            self._heights.unreserve(self.owner_id)

    def handle_key(self, event: KeyEvent) -> bool:
        if not self.is_open:
            return False
        kb = self._keybindings or get_keybindings()

        if kb.matches(event, "submit"):
            query = self._query
            self.close()
            if self.on_submit is not None:
                self.on_submit(query)
        elif kb.matches(event, "cancel"):
            self.close()
            if self.on_cancel is not None:
                self.on_cancel()
        elif kb.matches(event, "deleteCharBackward"):
            if self._query:
                self._set_query(grapheme.slice(self._query, 0, grapheme.length(self._query) - 1))
        elif event.text is not None:
            self._set_query(self._query + event.text.replace("\r", "").replace("\n", " "))
        return True

    def _set_query(self, query: str) -> None:
        self._query = query
        if self.on_change is not None:
            self.on_change(query)

    def render(self, width: int) -> list[str]:
        if not self.is_open:
            return []
        available = width - visible_width(self.prompt)
        shown = self._query
        if visible_width(shown) + 1 > available:
            # Keep the end of a long query visible, next to the cursor.
            chars = list(grapheme.graphemes(shown))
            while chars and visible_width("".join(chars)) + 1 > available:
                chars.pop(0)
            shown = "".join(chars)
        return [pad_to_width(truncate_to_width(self.prompt + shown + "█", width, ""), width)]
