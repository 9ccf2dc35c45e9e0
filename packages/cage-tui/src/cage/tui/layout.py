"""Fixed full-screen frame: header, error banner, body and footer."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cage.tui.focus import FocusArbiter, Registration
from cage.tui.keybindings import KeybindingsManager, get_keybindings
from cage.tui.keys import KeyEvent
from cage.tui.utils import pad_to_width, truncate_to_width, visible_width

if TYPE_CHECKING:
    from cage.tui.errors import ErrorChannel
    from cage.tui.height import HeightResolver
    from cage.tui.navigation import NavigationMachine

logger = logging.getLogger(__name__)

LAYOUT_OWNER = "layout"
BANNER_RESERVATION = "error-banner"

DEFAULT_HEADER_HEIGHT = 3
DEFAULT_FOOTER_HEIGHT = 3
DEFAULT_CONTENT_PADDING = 2

_BANNER_ICONS = {"info": "ℹ", "warning": "⚠", "error": "✖"}

MAIN_MENU_FOOTER = "↑↓ Navigate  ↵ Select  ESC Exit"
VIEW_FOOTER = "← Back (ESC)  ↑↓ Navigate  ↵ Select"


def _boxed(text: str, width: int, height: int, corners: str, right: str = "") -> list[str]:
    """Frame *text* in a box *height* rows tall; flat text below 3 rows."""
    if height <= 0 or width <= 0:
        return []
    if height < 3 or width < 4:
        line = pad_to_width(f" {text}", width)
        return [line] + [" " * width for _ in range(height - 1)]

    top_left, top_right, bottom_left, bottom_right, horizontal, vertical = corners
    inner = width - 4
    content = truncate_to_width(text, inner)
    if right:
        gap = inner - visible_width(content) - visible_width(right)
        content = content + " " * gap + right if gap >= 1 else content
    rows = [top_left + horizontal * (width - 2) + top_right]
    rows.append(f"{vertical} {pad_to_width(content, inner)} {vertical}")
    rows.extend(f"{vertical}{' ' * (width - 2)}{vertical}" for _ in range(height - 3))
    rows.append(bottom_left + horizontal * (width - 2) + bottom_right)
    return rows


class FullScreenLayout:
    """Composes the frame around the mounted view.

    ``static_reserved_rows`` is what the header, footer and body padding take
    from the terminal; the height resolver subtracts it before sizing lists.
    While attached, Escape and ``q`` navigate back unless the mounted view
    declares ``custom_back_handler``, and Ctrl+X dismisses the error banner.
    An exclusive focus claim pre-empts both.
    """

    def __init__(
        self,
        navigation: NavigationMachine,
        arbiter: FocusArbiter,
        *,
        heights: HeightResolver | None = None,
        errors: ErrorChannel | None = None,
        keybindings: KeybindingsManager | None = None,
        app_name: str = "CAGE",
        header_height: int = DEFAULT_HEADER_HEIGHT,
        footer_height: int = DEFAULT_FOOTER_HEIGHT,
        content_padding: int = DEFAULT_CONTENT_PADDING,
    ) -> None:
        self._navigation = navigation
        self._arbiter = arbiter
        self._heights = heights
        self._errors = errors
        self._keybindings = keybindings
        self.app_name = app_name
        self.header_height = header_height
        self.footer_height = footer_height
        self.content_padding = content_padding
        self._registration: Registration | None = None

    @property
    def static_reserved_rows(self) -> int:
        return self.header_height + self.footer_height + self.content_padding

    @property
    def banner_rows(self) -> int:
        return 1 if self._errors is not None and self._errors.latest is not None else 0

    # -- back handling -----------------------------------------------------

    def attach(self) -> None:
        if self._registration is None:
            self._registration = self._arbiter.register(LAYOUT_OWNER, self.handle_key, scope=None)

    def detach(self) -> None:
        if self._registration is not None:
            self._registration.unregister()
            self._registration = None

    def handle_key(self, event: KeyEvent) -> bool:
        kb = self._keybindings or get_keybindings()
        if kb.matches(event, "dismiss"):
            if self._errors is None or self._errors.latest is None:
                return False
            self._errors.dismiss()
            return True
        if not kb.matches(event, "back"):
            return False
        if self._navigation.metadata.custom_back_handler:
            return False
        self._navigation.back()
        return True

    # -- rendering ---------------------------------------------------------

    def sync_banner(self) -> None:
        """Reserve or free the banner row to match the error channel."""
        if self._heights is None:
            return
        if self.banner_rows:
            self._heights.reserve(BANNER_RESERVATION, 1)
        else:
            self._heights.unreserve(BANNER_RESERVATION)

    def body_size(self, width: int, rows: int) -> tuple[int, int]:
        """``(width, height)`` left for the view inside the frame."""
        pad_x = 2 if width > 8 else 0
        height = rows - self.static_reserved_rows - self.banner_rows
        return max(0, width - 2 * pad_x), max(0, height)

    def header_lines(self, width: int) -> list[str]:
        metadata = self._navigation.metadata
        title = f"{self.app_name} | {metadata.title}" if metadata.title else self.app_name
        return _boxed(title, width, self.header_height, "╭╮╰╯─│", metadata.subtitle or "")

    def footer_lines(self, width: int) -> list[str]:
        metadata = self._navigation.metadata
        text = metadata.footer or ""
        if not text and metadata.show_default_footer:
            text = MAIN_MENU_FOOTER if self._navigation.is_entry_view else VIEW_FOOTER
        return _boxed(text, width, self.footer_height, "┌┐└┘─│")

    def banner_lines(self, width: int) -> list[str]:
        report = self._errors.latest if self._errors is not None else None
        if report is None:
            return []
        icon = _BANNER_ICONS.get(report.level, "!")
        text = f" {icon} {report.message}"
        kb = self._keybindings or get_keybindings()
        hint = "/".join(kb.get_keys("dismiss"))
        gap = width - visible_width(text) - visible_width(hint) - 1
        if hint and gap >= 2:
            text += " " * gap + hint
        return [pad_to_width(text, width)]

    def render(self, body: list[str], width: int, rows: int) -> list[str]:
        """Exactly *rows* lines: the frame with *body* in its content area."""
        body_width, body_height = self.body_size(width, rows)
        pad_x = (width - body_width) // 2
        pad_top = self.content_padding // 2
        pad_bottom = self.content_padding - pad_top

        lines = self.header_lines(width) + self.banner_lines(width)
        lines.extend(" " * width for _ in range(pad_top))
        for i in range(body_height):
            text = body[i] if i < len(body) else ""
            lines.append(" " * pad_x + pad_to_width(text, body_width) + " " * (width - pad_x - body_width))
        lines.extend(" " * width for _ in range(pad_bottom))
        lines.extend(self.footer_lines(width))

        if len(lines) > rows:
            # Too small for the full frame; the bottom rows are cut.
            logger.debug("Frame of %d lines clipped to %d rows", len(lines), rows)
            lines = lines[:rows]
        lines.extend(" " * width for _ in range(rows - len(lines)))
        return lines
