"""Text component - static lines, truncated to the available width."""

from __future__ import annotations

from cage.tui.utils import pad_to_width


class Text:
    def __init__(self, text: str = "", padding_x: int = 1) -> None:
        self._lines = text.splitlines()
        self._padding_x = padding_x

    def set_text(self, text: str) -> None:
        self._lines = text.splitlines()

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def render(self, width: int) -> list[str]:
        margin = " " * self._padding_x
        return [
            pad_to_width(margin + line.replace("\t", "   "), width) for line in self._lines
        ]
