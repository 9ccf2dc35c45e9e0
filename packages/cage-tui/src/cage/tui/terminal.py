"""Terminal abstraction for the full-screen dashboard.

``Terminal`` is the surface the dashboard draws on and reads keys from.
``ProcessTerminal`` drives the real controlling terminal: raw mode, alternate
screen, bracketed paste, and SIGWINCH resize notification delivered through
the event loop.  When stdin or stdout is not a TTY it stays inert so the
dashboard can degrade instead of crashing.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
import sys
import termios
import tty
from typing import Any, Callable, Protocol

from cage.tui.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START, StdinBuffer

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"
_ALT_SCREEN_ENABLE = "\x1b[?1049h"
_ALT_SCREEN_DISABLE = "\x1b[?1049l"

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_LINE = "\x1b[2K"
_CLEAR_SCREEN = "\x1b[2J\x1b[H"
_MOVE_TO_FMT = "\x1b[{};{}H"
_SET_TITLE_FMT = "\x1b]0;{}\x07"


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for terminal I/O operations."""

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def write(self, data: str) -> None: ...

    @property
    def is_interactive(self) -> bool: ...

    @property
    def columns(self) -> int | None: ...

    @property
    def rows(self) -> int | None: ...

    def move_to(self, row: int, column: int = 0) -> None: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def clear_line(self) -> None: ...

    def clear_screen(self) -> None: ...

    def set_title(self, title: str) -> None: ...


# ---------------------------------------------------------------------------
# ProcessTerminal implementation
# ---------------------------------------------------------------------------


class ProcessTerminal:
    """Terminal backed by ``sys.stdin``/``sys.stdout``.

    ``start`` must be called from inside a running asyncio loop; stdin is read
    with ``loop.add_reader`` and fed through a :class:`StdinBuffer`.  Resize
    arrives through ``loop.add_signal_handler``, so it runs as a loop callback
    and never interrupts the handling of a key.
    """

    def __init__(self, *, alternate_screen: bool = True) -> None:
        self._alternate_screen = alternate_screen
        self._input_handler: Callable[[str], None] | None = None
        self._resize_handler: Callable[[], None] | None = None
        self._stdin_buffer: StdinBuffer | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._original_termios: list[Any] | None = None
        self._started = False
        self._write_log_path: str = os.environ.get("CAGE_TUI_WRITE_LOG", "")

    # -- properties ---------------------------------------------------------

    @property
    def is_interactive(self) -> bool:
        try:
            return sys.stdin.isatty() and sys.stdout.isatty()
        except (AttributeError, ValueError):
            return False

    @property
    def columns(self) -> int | None:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).columns or None
        except (ValueError, OSError):
            return None

    @property
    def rows(self) -> int | None:
        try:
            return os.get_terminal_size(sys.stdout.fileno()).lines or None
        except (ValueError, OSError):
            return None

    # -- start / stop -------------------------------------------------------

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        """Enter raw mode and the alternate screen, then begin reading stdin."""
        if self._started:
            return
        self._input_handler = on_input
        self._resize_handler = on_resize

        if not self.is_interactive:
            logger.info("stdin/stdout is not a TTY; terminal input stays disabled")
            return

        fd = sys.stdin.fileno()
        self._original_termios = termios.tcgetattr(fd)
        tty.setraw(fd)
        self._started = True

        if self._alternate_screen:
            self._raw_write(_ALT_SCREEN_ENABLE)
        self._raw_write(_BRACKETED_PASTE_ENABLE)
        self.hide_cursor()

        self._setup_stdin_buffer()
        self._attach_loop()

    def stop(self) -> None:
        """Restore the terminal exactly as ``start`` found it."""
        if self._started:
            self._started = False
            self._detach_loop()
            self._decoder.reset()
            if self._stdin_buffer is not None:
                self._stdin_buffer.clear()
                self._stdin_buffer = None

            self.show_cursor()
            self._raw_write(_BRACKETED_PASTE_DISABLE)
            if self._alternate_screen:
                self._raw_write(_ALT_SCREEN_DISABLE)

            if self._original_termios is not None:
                termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._original_termios)
                self._original_termios = None

        self._input_handler = None
        self._resize_handler = None

    # -- write --------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write data to stdout and optionally to the write log."""
        self._raw_write(data)

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a", encoding="utf-8") as f:
                    f.write(data)
            except OSError as exc:
                logger.debug("Cannot append to %s: %s", self._write_log_path, exc)

    # -- cursor / screen manipulation --------------------------------------

    def move_to(self, row: int, column: int = 0) -> None:
        """Move the cursor to zero-based (*row*, *column*)."""
        self._raw_write(_MOVE_TO_FMT.format(row + 1, column + 1))

    def hide_cursor(self) -> None:
        self._raw_write(_HIDE_CURSOR)

    def show_cursor(self) -> None:
        self._raw_write(_SHOW_CURSOR)

    def clear_line(self) -> None:
        self._raw_write(_CLEAR_LINE)

    def clear_screen(self) -> None:
        self._raw_write(_CLEAR_SCREEN)

    def set_title(self, title: str) -> None:
        self._raw_write(_SET_TITLE_FMT.format(title))

    # -- private: stdin reading --------------------------------------------

    def _setup_stdin_buffer(self) -> None:
        self._stdin_buffer = StdinBuffer(timeout=0.01)

        def _on_buffer_data(data: str) -> None:
            if self._input_handler is not None:
                self._input_handler(data)

        def _on_buffer_paste(data: str) -> None:
            # Re-wrap so the input handler can tell a paste from typing.
            if self._input_handler is not None:
                self._input_handler(BRACKETED_PASTE_START + data + BRACKETED_PASTE_END)

        self._stdin_buffer.on_data(_on_buffer_data)
        self._stdin_buffer.on_paste(_on_buffer_paste)

    def _attach_loop(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; stdin and resizes will not be watched")
            return
        self._loop = loop
        loop.add_reader(sys.stdin.fileno(), self._on_stdin_readable)
        self._watch_resize(loop)

    def _detach_loop(self) -> None:
        loop = self._loop
        if loop is None:
            return
        self._loop = None
        try:
            loop.remove_reader(sys.stdin.fileno())
        except (RuntimeError, ValueError):
            pass
        self._unwatch_resize(loop)

    def _on_stdin_readable(self) -> None:
        try:
            raw = os.read(sys.stdin.fileno(), 4096)
        except OSError:
            return
        if raw:
            self._feed(raw)

    def _feed(self, raw: bytes) -> None:
        # Incremental: a character split across two reads is held until complete.
        data = self._decoder.decode(raw)
        if not data:
            return
        if self._stdin_buffer is not None:
            self._stdin_buffer.process(data)
        elif self._input_handler is not None:
            self._input_handler(data)

    # -- private: SIGWINCH -------------------------------------------------

    def _watch_resize(self, loop: asyncio.AbstractEventLoop) -> None:
        try:
            loop.add_signal_handler(signal.SIGWINCH, self._on_resize)
        except (NotImplementedError, RuntimeError, ValueError) as exc:
            logger.warning("Cannot watch SIGWINCH; resizes will go unnoticed: %s", exc)

    def _unwatch_resize(self, loop: asyncio.AbstractEventLoop) -> None:
        try:
            loop.remove_signal_handler(signal.SIGWINCH)
        except (NotImplementedError, RuntimeError, ValueError):
            pass

    def _on_resize(self) -> None:
        if self._resize_handler is not None:
            self._resize_handler()

    # -- private: raw write ------------------------------------------------

    def _raw_write(self, data: str) -> None:
        try:
            sys.stdout.write(data)
            sys.stdout.flush()
        except OSError:
            pass
