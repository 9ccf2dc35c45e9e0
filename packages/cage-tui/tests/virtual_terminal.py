"""Virtual terminal for testing -- implements the Terminal protocol in-memory.

All output is captured in a buffer for assertions, and a screen model keeps
the last text written to each row so tests can read back what is displayed.
"""

from __future__ import annotations

import re
from typing import Callable

_MOVE_TO_RE = re.compile(r"\x1b\[(\d+);(\d+)H")
_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]|\x1b\][^\x07]*\x07")


class VirtualTerminal:
    """In-memory terminal that records all writes for test inspection.

    Parameters
    ----------
    rows:
        Number of terminal rows, or ``None`` to simulate an unreadable size.
    columns:
        Number of terminal columns.
    interactive:
        Whether stdin/stdout behave like a TTY.
    """

    def __init__(
        self,
        rows: int | None = 24,
        columns: int | None = 80,
        interactive: bool = True,
    ) -> None:
        self._rows = rows
        self._columns = columns
        self._interactive = interactive
        self._buffer: list[str] = []
        self._screen: dict[int, str] = {}
        self._started = False
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._cursor_visible = True
        self._title: str = ""
        self.start_count = 0
        self.stop_count = 0

    # -- Terminal protocol: properties --------------------------------------

    @property
    def is_interactive(self) -> bool:
        return self._interactive

    @property
    def rows(self) -> int | None:
        return self._rows

    @rows.setter
    def rows(self, value: int | None) -> None:
        self._rows = value

    @property
    def columns(self) -> int | None:
        return self._columns

    @columns.setter
    def columns(self, value: int | None) -> None:
        self._columns = value

    @property
    def started(self) -> bool:
        return self._started

    # -- Terminal protocol: lifecycle ---------------------------------------

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        self._input_handler = on_input
        self._resize_handler = on_resize
        self._started = True
        self.start_count += 1

    def stop(self) -> None:
        self._started = False
        self._input_handler = None
        self._resize_handler = None
        self.stop_count += 1

    # -- Terminal protocol: output ------------------------------------------

    def write(self, data: str) -> None:
        """Append *data* to the buffer and update the screen model."""
        self._buffer.append(data)
        if "\x1b[2J" in data:
            self._screen.clear()
        matches = list(_MOVE_TO_RE.finditer(data))
        for i, match in enumerate(matches):
            end = matches[i + 1].start() if i + 1 < len(matches) else len(data)
            row = int(match.group(1)) - 1
            self._screen[row] = _ESCAPE_RE.sub("", data[match.end() : end])

    # -- Terminal protocol: cursor/screen manipulation ----------------------

    def move_to(self, row: int, column: int = 0) -> None:
        self.write(f"\x1b[{row + 1};{column + 1}H")

    def hide_cursor(self) -> None:
        self._cursor_visible = False
        self.write("\x1b[?25l")

    def show_cursor(self) -> None:
        self._cursor_visible = True
        self.write("\x1b[?25h")

    def clear_line(self) -> None:
        self.write("\x1b[2K")

    def clear_screen(self) -> None:
        self.write("\x1b[2J\x1b[H")

    def set_title(self, title: str) -> None:
        self._title = title
        self.write(f"\x1b]0;{title}\x07")

    # -- Test helpers -------------------------------------------------------

    @property
    def output(self) -> str:
        """Return everything written to the terminal as a single string."""
        return "".join(self._buffer)

    @property
    def write_count(self) -> int:
        return len(self._buffer)

    def clear_buffer(self) -> None:
        """Discard all recorded output (the screen model is kept)."""
        self._buffer.clear()

    def screen_lines(self) -> list[str]:
        """Rows currently displayed, without styling."""
        height = self._rows or 24
        return [self._screen.get(row, "") for row in range(height)]

    def screen_text(self) -> str:
        return "\n".join(self.screen_lines())

    def simulate_input(self, data: str) -> None:
        """Feed *data* into the registered input handler.

        Raises ``RuntimeError`` if no input handler has been registered
        (i.e. ``start`` was not called).
        """
        if self._input_handler is None:
            raise RuntimeError(
                "No input handler registered -- call start() first"
            )
        self._input_handler(data)

    def simulate_resize(self, rows: int | None = None, columns: int | None = None) -> None:
        """Change terminal dimensions and fire the resize callback."""
        if rows is not None:
            self._rows = rows
        if columns is not None:
            self._columns = columns
        if self._resize_handler is not None:
            self._resize_handler()
