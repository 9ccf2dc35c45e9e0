"""Viewport height resolution from terminal size and reserved rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

DEFAULT_TERMINAL_ROWS = 24
DEFAULT_MIN_HEIGHT = 5


class HeightListener(Protocol):
    """Anything whose viewport height follows the resolver (list controllers)."""

    @property
    def item_count(self) -> int: ...

    def set_viewport_height(self, viewport_height: int) -> None: ...


def resolve_viewport_height(
    terminal_rows: int | None,
    static_reserved: int,
    dynamic_reserved: int = 0,
    min_height: int = DEFAULT_MIN_HEIGHT,
    max_height: int | None = None,
    item_count: int = 0,
) -> int:
    """Rows available to a list after reserved rows are subtracted.

    The raw figure is clamped to ``[min_height, max_height]`` and then capped at
    ``max(item_count, 1)`` so a short list does not hold on to empty rows.
    """
    rows = terminal_rows if terminal_rows and terminal_rows > 0 else DEFAULT_TERMINAL_ROWS
    height = max(min_height, rows - static_reserved - dynamic_reserved)
    if max_height is not None:
        height = min(height, max_height)
    height = min(height, max(item_count, 1))
    return max(1, height)


@dataclass
class HeightBudget:
    terminal_rows: int | None = DEFAULT_TERMINAL_ROWS
    reserved_rows: int = 0
    dynamic_reserved_rows: int = 0
    min_height: int = DEFAULT_MIN_HEIGHT
    max_height: int | None = None

    def viewport_height(self, item_count: int) -> int:
        return resolve_viewport_height(
            self.terminal_rows,
            self.reserved_rows,
            self.dynamic_reserved_rows,
            self.min_height,
            self.max_height,
            item_count,
        )


@dataclass(eq=False)
class _Binding:
    listener: HeightListener
    local_reserved: int = 0
    max_height: int | None = None


class HeightResolver:
    """Keeps bound lists sized to the terminal.

    Call :meth:`refresh` on every terminal resize.  Changes to the reserved
    rows (``reserve``/``unreserve``/``set_static_reserved``) refresh on their own.
    """

    def __init__(
        self,
        rows_source: Callable[[], int | None],
        static_reserved: int = 0,
        min_height: int = DEFAULT_MIN_HEIGHT,
        max_height: int | None = None,
    ) -> None:
        self._rows_source = rows_source
        self._static_reserved = static_reserved
        self._min_height = min_height
        self._max_height = max_height
        self._dynamic: dict[str, int] = {}
        self._bindings: list[_Binding] = []
        self._unreadable_reported = False
        self.on_unreadable: Callable[[], None] | None = None

    # -- budget ------------------------------------------------------------

    @property
    def terminal_rows(self) -> int | None:
        try:
            rows = self._rows_source()
        except OSError:
            rows = None
        if not rows or rows <= 0:
            if not self._unreadable_reported:
                self._unreadable_reported = True
                logger.warning(
                    "Terminal size unreadable, assuming %d rows", DEFAULT_TERMINAL_ROWS
                )
                if self.on_unreadable is not None:
                    self.on_unreadable()
            return None
        return rows

    @property
    def static_reserved(self) -> int:
        return self._static_reserved

    @property
    def dynamic_reserved(self) -> int:
        return sum(self._dynamic.values())

    @property
    def reservations(self) -> dict[str, int]:
        return dict(self._dynamic)

    def budget(self, local_reserved: int = 0, max_height: int | None = None) -> HeightBudget:
        return HeightBudget(
            terminal_rows=self.terminal_rows,
            reserved_rows=self._static_reserved + local_reserved,
            dynamic_reserved_rows=self.dynamic_reserved,
            min_height=self._min_height,
            max_height=max_height if max_height is not None else self._max_height,
        )

    def set_static_reserved(self, rows: int) -> None:
        if rows != self._static_reserved:
            self._static_reserved = rows
            self.refresh()

    def reserve(self, name: str, rows: int) -> None:
        """Reserve *rows* for a transient element such as a search bar."""
        if self._dynamic.get(name) == rows:
            return
        self._dynamic[name] = rows
        logger.debug("Reserved %d row(s) for %s", rows, name)
        self.refresh()

    def unreserve(self, name: str) -> None:
        if self._dynamic.pop(name, None) is not None:
            logger.debug("Released reserved rows for %s", name)
            self.refresh()

    # -- bindings ----------------------------------------------------------

    def bind(
        self,
        listener: HeightListener,
        local_reserved: int = 0,
        max_height: int | None = None,
    ) -> Callable[[], None]:
        """Keep *listener* sized.  Returns an unbind callable."""
        binding = _Binding(listener, local_reserved, max_height)
        self._bindings.append(binding)
        self._apply(binding)

        def _unbind() -> None:
            if binding in self._bindings:
                self._bindings.remove(binding)

        return _unbind

    def height_for(self, listener: HeightListener) -> int | None:
        for binding in self._bindings:
            if binding.listener is listener:
                return self.budget(binding.local_reserved, binding.max_height).viewport_height(
                    listener.item_count
                )
        return None

    def refresh(self) -> None:
        for binding in list(self._bindings):
            self._apply(binding)

    def reset(self) -> None:
        self._dynamic.clear()
        self._bindings.clear()
        self._unreadable_reported = False

    def _apply(self, binding: _Binding) -> None:
        budget = self.budget(binding.local_reserved, binding.max_height)
        binding.listener.set_viewport_height(
            budget.viewport_height(binding.listener.item_count)
        )
