"""Dashboard: the event-loop driver that wires the core together.

One :class:`Dashboard` owns one of each shared component:

* a :class:`FocusArbiter` (interactive only if the terminal is)
* a :class:`HeightResolver` reading ``terminal.rows``
* a :class:`NavigationMachine` over the registered views
* a :class:`FullScreenLayout`
* an :class:`ErrorChannel`

Input and resize callbacks arrive on the asyncio loop thread and are handled
to completion one at a time, so each key sees the state left by the one
before it.  Rendering is coalesced onto the next loop tick and written as a
differential update: only rows that changed since the last frame are sent.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping

from cage.tui.errors import ErrorChannel, ProgrammingError
from cage.tui.focus import FocusArbiter
from cage.tui.height import HeightResolver
from cage.tui.keybindings import KeybindingsManager
from cage.tui.keys import KeyEvent, parse_key
from cage.tui.layout import FullScreenLayout
from cage.tui.navigation import NavigationMachine, ViewDefinition
from cage.tui.settings import TuiSettings
from cage.tui.stdin_buffer import BRACKETED_PASTE_END, BRACKETED_PASTE_START
from cage.tui.terminal import Terminal

logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = 80
DEFAULT_ROWS = 24

NON_INTERACTIVE_WARNING = "Input is not a terminal; keyboard input is disabled"
UNREADABLE_SIZE_WARNING = f"Terminal size unavailable; assuming {DEFAULT_ROWS} rows"


class Dashboard:
    """Runs a set of views full-screen on *terminal*."""

    def __init__(
        self,
        terminal: Terminal,
        views: Mapping[str, ViewDefinition],
        initial_view: str,
        *,
        settings: TuiSettings | None = None,
        keybindings: KeybindingsManager | None = None,
        errors: ErrorChannel | None = None,
        app_name: str = "CAGE",
    ) -> None:
        self.terminal = terminal
        self.settings = settings or TuiSettings.in_memory()
        self.keybindings = keybindings or KeybindingsManager(self.settings.get_keybindings())
        self.errors = errors or ErrorChannel()

        self.arbiter = FocusArbiter(interactive=terminal.is_interactive, errors=self.errors)
        self.heights = HeightResolver(
            lambda: self.terminal.rows,
            min_height=self.settings.get_min_list_height(),
            max_height=self.settings.get_max_list_height(),
        )
        self.heights.on_unreadable = lambda: self.errors.warning(UNREADABLE_SIZE_WARNING)
        self.navigation = NavigationMachine(
            views,
            initial_view,
            self.arbiter,
            on_exit=self.stop,
            heights=self.heights,
            keybindings=self.keybindings,
            settings=self.settings,
            errors=self.errors,
        )

        layout = self.settings.get_layout_settings()
        self.layout = FullScreenLayout(
            self.navigation,
            self.arbiter,
            heights=self.heights,
            errors=self.errors,
            keybindings=self.keybindings,
            app_name=app_name,
            header_height=layout.header_height,
            footer_height=layout.footer_height,
            content_padding=layout.content_padding,
        )
        self.heights.set_static_reserved(self.layout.static_reserved_rows)

        # Previous frame (for differential updates)
        self._previous_lines: list[str] = []
        self._previous_width = 0
        self._full_redraw_count = 0

        self._render_requested = False
        self._running = False
        self._exit = asyncio.Event()
        self._failure: BaseException | None = None

        if not self.arbiter.interactive:
            self.errors.warning(NON_INTERACTIVE_WARNING)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def exit_requested(self) -> bool:
        return self._exit.is_set()

    @property
    def full_redraws(self) -> int:
        return self._full_redraw_count

    def start(self) -> None:
        """Mount the initial view and start listening to the terminal."""
        if self._running:
            return
        self._running = True
        self._failure = None
        self.layout.attach()
        self.navigation.start()
        self.terminal.start(self.handle_input, self.handle_resize)
        self.request_render()

    def stop(self) -> None:
        """Ask :meth:`run` to return.  Safe to call from any handler."""
        logger.debug("Exit requested")
        self._exit.set()

    def shutdown(self) -> None:
        """Unmount everything and give the terminal back."""
        if not self._running:
            return
        self._running = False
        try:
            self.navigation.reset()
            self.layout.detach()
        finally:
            self.terminal.stop()

    async def run(self) -> None:
        """Run until :meth:`stop` is called; the terminal is always restored."""
        self._exit = asyncio.Event()
        try:
            self.start()
            await self._exit.wait()
        finally:
            self.shutdown()
        if self._failure is not None:
            raise self._failure

    # ------------------------------------------------------------------
    # Input handling
    # ------------------------------------------------------------------

    def handle_input(self, data: str) -> None:
        """Decode one input sequence and route it through the arbiter."""
        if not self._running:
            return

        event = _decode(data)
        if event is None:
            logger.debug("Ignoring unrecognised input %r", data)
            return

        if self.keybindings.matches(event, "quit"):
            self.stop()
            return

        try:
            self.arbiter.dispatch(event)
        except ProgrammingError as exc:
            logger.exception("Programming error while handling key %r", event.name)
            self._fail(exc)
            raise
        self.request_render()

    def handle_resize(self) -> None:
        """Re-resolve every list height, then redraw."""
        if not self._running:
            return
        self.heights.refresh()
        self.request_render()

    def _fail(self, exc: BaseException) -> None:
        # Input callbacks run outside run(); hand the error back to it.
        self._failure = exc
        self._exit.set()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def request_render(self) -> None:
        """Schedule a render on the next loop tick.  Calls coalesce."""
        if self._render_requested:
            return
        self._render_requested = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No running loop: render synchronously.
            self._do_render_tick()
            return
        loop.call_soon(self._do_render_tick)

    def _do_render_tick(self) -> None:
        self._render_requested = False
        if self._running:
            self.do_render()

    def frame_size(self) -> tuple[int, int]:
        columns = self.terminal.columns
        rows = self.heights.terminal_rows
        return (columns or DEFAULT_COLUMNS, rows or DEFAULT_ROWS)

    def render_frame(self) -> list[str]:
        """The full frame: exactly ``rows`` lines of exactly ``columns`` cells."""
        width, rows = self.frame_size()
        # Heights first, so no list renders more rows than the frame leaves it.
        self.layout.sync_banner()
        self.heights.refresh()

        body_width, body_height = self.layout.body_size(width, rows)
        view = self.navigation.current
        body = view.render(body_width, body_height) if view is not None else []
        return self.layout.render(body, width, rows)

    def do_render(self) -> None:
        """Write the frame, rewriting only the rows that changed."""
        lines = self.render_frame()
        width, _ = self.frame_size()

        force_full = width != self._previous_width or len(lines) != len(self._previous_lines)
        out: list[str] = []
        if force_full:
            self._full_redraw_count += 1
            out.append("\x1b[2J")

        for row, line in enumerate(lines):
            if force_full or line != self._previous_lines[row]:
                out.append(f"\x1b[{row + 1};1H{line}\x1b[0m")

        self._previous_lines = lines
        self._previous_width = width
        if out:
            self.terminal.write("".join(out))


def _decode(data: str) -> KeyEvent | None:
    if data.startswith(BRACKETED_PASTE_START) and data.endswith(BRACKETED_PASTE_END):
        return KeyEvent.pasted(data[len(BRACKETED_PASTE_START) : -len(BRACKETED_PASTE_END)])
    return parse_key(data)
