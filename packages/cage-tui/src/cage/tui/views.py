"""Views mounted by the ``cage-tui`` demo: a menu, a live log and a key table."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

from cage.tui.components import SearchBar, TabBar, Text, VirtualList
from cage.tui.focus import FocusRing, Registration
from cage.tui.keybindings import get_keybindings
from cage.tui.keys import KeyEvent
from cage.tui.log_tail import LogBuffer
from cage.tui.navigation import ViewContext, ViewDefinition, ViewMetadata
from cage.tui.utils import pad_to_width, truncate_to_width

MAIN_VIEW = "main"
LOGS_VIEW = "logs"
HELP_VIEW = "help"


def _list_options(context: ViewContext) -> dict[str, Any]:
    settings = context.settings
    return {
        "arbiter": context.arbiter,
        "heights": context.heights,
        "keybindings": context.keybindings,
        "wrap_around": settings.get_wrap_around() if settings is not None else True,
    }


# ---------------------------------------------------------------------------
# Main menu
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MenuItem:
    label: str
    target: str | None
    description: str = ""


DEFAULT_MENU: tuple[MenuItem, ...] = (
    MenuItem("Live log", LOGS_VIEW, "Follow new lines as they arrive"),
    MenuItem("Keybindings", HELP_VIEW, "Keys bound to each action"),
    MenuItem("Exit", None, "Leave the dashboard"),
)


class MainMenuView:
    def __init__(self, context: ViewContext, items: tuple[MenuItem, ...] = DEFAULT_MENU) -> None:
        self._context = context
        self.list: VirtualList[MenuItem] = VirtualList(
            items,
            self._render_item,
            owner_id="menu",
            key_extractor=lambda item, _: item.target or "exit",
            on_activate=self._activate,
            **_list_options(context),
        )

    def mount(self) -> None:
        self.list.mount()

    def unmount(self) -> None:
        self.list.unmount()

    @staticmethod
    def _render_item(item: MenuItem, index: int, is_selected: bool) -> str:
        marker = "›" if is_selected else " "
        label = truncate_to_width(item.label, 20, "")
        return f"{marker} {pad_to_width(label, 20)}  {item.description}"

    def _activate(self, item: MenuItem, index: int) -> None:
        if item.target is None:
            self._context.back()
        else:
            self._context.navigate(item.target)

    def render(self, width: int, height: int) -> list[str]:
        return self.list.render(width)[:height]


# ---------------------------------------------------------------------------
# Live log
# ---------------------------------------------------------------------------


SEVERITY_TABS: tuple[tuple[str, re.Pattern[str] | None], ...] = (
    ("All", None),
    ("Warnings", re.compile(r"\b(WARN|WARNING|ERROR|CRITICAL|FATAL)\b")),
    ("Errors", re.compile(r"\b(ERROR|CRITICAL|FATAL)\b")),
)


class LogView:
    """Newest log lines, following the tail, with ``/`` to filter.

    Tab moves focus between the lines and the severity tabs; Left/Right pick
    a severity while the tabs are focused.
    """

    OWNER = "logs"
    LIST_REGION = "logs-list"
    SEVERITY_REGION = "logs-severity"

    def __init__(self, context: ViewContext, buffer: LogBuffer) -> None:
        self._context = context
        self._buffer = buffer
        self._query = ""
        self._severity: re.Pattern[str] | None = None
        self._registration: Registration | None = None
        self._unsubscribe: Callable[[], None] | None = None

        self.focus = FocusRing(context.arbiter, (self.LIST_REGION, self.SEVERITY_REGION))
        settings = context.settings
        self.list: VirtualList[str] = VirtualList(
            self._filtered(),
            lambda line, _index, _selected: line,
            owner_id=self.LIST_REGION,
            focus_ring=self.focus,
            follow_latest=settings.get_follow_latest() if settings is not None else True,
            empty_message="No log lines yet",
            # Status line above the list.
            local_reserved=1,
            **_list_options(context),
        )
        self.severity = TabBar(
            [label for label, _ in SEVERITY_TABS],
            owner_id=self.SEVERITY_REGION,
            arbiter=context.arbiter,
            keybindings=context.keybindings,
            focus_ring=self.focus,
            on_change=self._apply_severity,
        )
        self.search = SearchBar(
            context.arbiter,
            owner_id="logs-search",
            heights=context.heights,
            keybindings=context.keybindings,
            on_change=self._apply_filter,
            on_submit=self._apply_filter,
            on_cancel=lambda: self._apply_filter(""),
        )

    @property
    def query(self) -> str:
        return self._query

    def mount(self) -> None:
        self.list.mount()
        self.severity.mount()
        self._registration = self._context.arbiter.register(self.OWNER, self.handle_key)
        self._unsubscribe = self._buffer.subscribe(self._refresh)
        self.focus.start()
        self._refresh()

    def unmount(self) -> None:
        self.search.close()
        self.focus.stop()
        self.severity.unmount()
        self.list.unmount()
        if self._registration is not None:
            self._registration.unregister()
            self._registration = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def handle_key(self, event: KeyEvent) -> bool:
        kb = self._context.keybindings or get_keybindings()
        if kb.matches(event, "search"):
            self.search.open(self._query)
        elif kb.matches(event, "focusNext"):
            self.focus.next()
        elif kb.matches(event, "focusPrev"):
            self.focus.prev()
        else:
            return False
        return True

    def _filtered(self) -> list[str]:
        lines = self._buffer.lines
        if self._severity is not None:
            lines = [line for line in lines if self._severity.search(line)]
        if not self._query:
            return lines
        needle = self._query.lower()
        return [line for line in lines if needle in line.lower()]

    def _apply_filter(self, query: str) -> None:
        self._query = query
        self._context.update_metadata(subtitle=f"filter: {query}" if query else None)
        self._refresh()

    def _apply_severity(self, label: str, index: int) -> None:
        self._severity = SEVERITY_TABS[index][1]
        self._refresh()

    def _refresh(self) -> None:
        self.list.set_items(self._filtered())

    def status_line(self) -> str:
        shown = len(self.list.items)
        total = len(self._buffer)
        filtered = self._query or self._severity is not None
        count = f"{shown}/{total} lines" if filtered else f"{total} lines"
        return f"{count}  {'following' if self.list.controller.following else 'paused'}"

    def render(self, width: int, height: int) -> list[str]:
        rows = [pad_to_width(f"{self.severity.strip()}  {self.status_line()}", width)]
        rows.extend(self.list.render(width))
        rows.extend(self.search.render(width))
        return rows[:height]


# ---------------------------------------------------------------------------
# Keybinding help
# ---------------------------------------------------------------------------


class HelpView:
    def __init__(self, context: ViewContext) -> None:
        kb = context.keybindings or get_keybindings()
        self.intro = Text("Keys for each action (override under \"keybindings\" in tui.json)", padding_x=0)
        self.list: VirtualList[tuple[str, list[str]]] = VirtualList(
            kb.describe(),
            self._render_item,
            owner_id="help-list",
            key_extractor=lambda row, _: row[0],
            local_reserved=self.intro.line_count + 1,
            **_list_options(context),
        )

    def mount(self) -> None:
        self.list.mount()

    def unmount(self) -> None:
        self.list.unmount()

    @staticmethod
    def _render_item(row: tuple[str, list[str]], index: int, is_selected: bool) -> str:
        action, keys = row
        return f"{'›' if is_selected else ' '} {pad_to_width(action, 20)}  {', '.join(keys)}"

    def render(self, width: int, height: int) -> list[str]:
        rows = self.intro.render(width) + [" " * width]
        rows.extend(self.list.render(width))
        return rows[:height]


def build_views(buffer: LogBuffer, log_title: str = "Live log") -> dict[str, ViewDefinition]:
    return {
        MAIN_VIEW: ViewDefinition(
            MAIN_VIEW,
            MainMenuView,
            ViewMetadata(title="Main menu"),
        ),
        LOGS_VIEW: ViewDefinition(
            LOGS_VIEW,
            lambda context: LogView(context, buffer),
            ViewMetadata(
                title=log_title,
                footer="/ Search  ↑↓ Scroll  G Follow  Tab Focus  ←→ Severity  ESC Back",
            ),
        ),
        HELP_VIEW: ViewDefinition(
            HELP_VIEW,
            HelpView,
            ViewMetadata(title="Keybindings"),
        ),
    }
