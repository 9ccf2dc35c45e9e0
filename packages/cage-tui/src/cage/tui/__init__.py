"""cage-tui: keyboard-driven full-screen dashboard core."""

# Driver
from cage.tui.app import Dashboard

# Components (re-exported from components package)
from cage.tui.components import SearchBar, TabBar, Text, VirtualList

# Errors
from cage.tui.errors import (
    DashboardError,
    ErrorChannel,
    ErrorReport,
    FocusOwnershipError,
    ProgrammingError,
    UnknownViewError,
)

# Focus arbitration
from cage.tui.focus import (
    FocusArbiter,
    FocusClaim,
    FocusMode,
    FocusRing,
    Registration,
    ReleaseToken,
)

# Height resolution
from cage.tui.height import HeightBudget, HeightResolver, resolve_viewport_height

# Keybindings
from cage.tui.keybindings import (
    DEFAULT_KEYBINDINGS,
    DashboardAction,
    KeybindingsManager,
    get_keybindings,
    set_keybindings,
)

# Keyboard input handling
from cage.tui.keys import Key, KeyEvent, KeyId, matches_key, parse_key

# Layout
from cage.tui.layout import FullScreenLayout

# List controller
from cage.tui.list_controller import (
    Activation,
    ListAction,
    ListController,
    ListState,
    apply_action,
    reconcile,
)

# Navigation
from cage.tui.navigation import (
    NavigationMachine,
    ViewContext,
    ViewDefinition,
    ViewMetadata,
)

# Settings
from cage.tui.settings import TuiSettings

# Input buffering
from cage.tui.stdin_buffer import StdinBuffer

# Terminal interface and implementations
from cage.tui.terminal import ProcessTerminal, Terminal

# Utilities
from cage.tui.utils import pad_to_width, truncate_to_width, visible_width

# Viewport model
from cage.tui.viewport import Scrollbar, Window, compute_window, scrollbar_geometry

__all__ = [
    # Driver
    "Dashboard",
    # Components
    "SearchBar",
    "TabBar",
    "Text",
    "VirtualList",
    # Errors
    "DashboardError",
    "ErrorChannel",
    "ErrorReport",
    "FocusOwnershipError",
    "ProgrammingError",
    "UnknownViewError",
    # Focus
    "FocusArbiter",
    "FocusClaim",
    "FocusMode",
    "FocusRing",
    "Registration",
    "ReleaseToken",
    # Height
    "HeightBudget",
    "HeightResolver",
    "resolve_viewport_height",
    # Keybindings
    "DEFAULT_KEYBINDINGS",
    "DashboardAction",
    "KeybindingsManager",
    "get_keybindings",
    "set_keybindings",
    # Keys
    "Key",
    "KeyEvent",
    "KeyId",
    "matches_key",
    "parse_key",
    # Layout
    "FullScreenLayout",
    # List controller
    "Activation",
    "ListAction",
    "ListController",
    "ListState",
    "apply_action",
    "reconcile",
    # Navigation
    "NavigationMachine",
    "ViewContext",
    "ViewDefinition",
    "ViewMetadata",
    # Settings
    "TuiSettings",
    # Stdin buffer
    "StdinBuffer",
    # Terminal
    "ProcessTerminal",
    "Terminal",
    # Utils
    "pad_to_width",
    "truncate_to_width",
    "visible_width",
    # Viewport
    "Scrollbar",
    "Window",
    "compute_window",
    "scrollbar_geometry",
]
