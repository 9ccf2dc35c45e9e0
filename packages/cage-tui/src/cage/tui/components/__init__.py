"""TUI components."""

from cage.tui.components.search_bar import SearchBar
from cage.tui.components.tab_bar import TabBar
from cage.tui.components.text import Text
from cage.tui.components.virtual_list import VirtualList

__all__ = [
    "SearchBar",
    "TabBar",
    "Text",
    "VirtualList",
]
