"""Dashboard keybindings manager."""

from __future__ import annotations

from typing import Literal

from cage.tui.keys import KeyEvent, KeyId, matches_key
from cage.tui.list_controller import ListAction

DashboardAction = Literal[
    # List navigation
    "listUp",
    "listDown",
    "listPageUp",
    "listPageDown",
    "listHome",
    "listEnd",
    "listActivate",
    # Screen navigation
    "back",
    "cancel",
    "quit",
    "dismiss",
    # Focus regions / tabs
    "focusNext",
    "focusPrev",
    "cycleLeft",
    "cycleRight",
    # Text capture
    "search",
    "submit",
    "deleteCharBackward",
]

KeybindingsConfig = dict[DashboardAction, KeyId | list[KeyId]]

DEFAULT_KEYBINDINGS: dict[DashboardAction, KeyId | list[KeyId]] = {
    # List navigation
    "listUp": ["up", "k"],
    "listDown": ["down", "j"],
    "listPageUp": "pageUp",
    "listPageDown": "pageDown",
    "listHome": ["home", "g"],
    "listEnd": ["end", "G"],
    "listActivate": "enter",
    # Screen navigation
    "back": ["escape", "q"],
    "cancel": "escape",
    "quit": "ctrl+c",
    "dismiss": "ctrl+x",
    # Focus regions / tabs
    "focusNext": "tab",
    "focusPrev": "shift+tab",
    "cycleLeft": "left",
    "cycleRight": "right",
    # Text capture
    "search": "/",
    "submit": "enter",
    "deleteCharBackward": "backspace",
}

_LIST_ACTIONS: tuple[tuple[DashboardAction, ListAction], ...] = (
    ("listUp", ListAction.UP),
    ("listDown", ListAction.DOWN),
    ("listPageUp", ListAction.PAGE_UP),
    ("listPageDown", ListAction.PAGE_DOWN),
    ("listHome", ListAction.HOME),
    ("listEnd", ListAction.END),
    ("listActivate", ListAction.ACTIVATE),
)


class KeybindingsManager:
    """Maps dashboard actions to the keys that trigger them."""

    def __init__(self, config: KeybindingsConfig | None = None) -> None:
        self._action_to_keys: dict[DashboardAction, list[KeyId]] = {}
        self._build_maps(config or {})

    def _build_maps(self, config: KeybindingsConfig) -> None:
        self._action_to_keys.clear()

        # Start with defaults
        for action, keys in DEFAULT_KEYBINDINGS.items():
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)

        # Override with user config
        for action, keys in config.items():
            key_array = keys if isinstance(keys, list) else [keys]
            self._action_to_keys[action] = list(key_array)

    def matches(self, event: KeyEvent | None, action: DashboardAction) -> bool:
        """Check if *event* triggers *action*."""
        keys = self._action_to_keys.get(action)
        if not keys:
            return False
        return any(matches_key(event, key) for key in keys)

    def action_for_list(self, event: KeyEvent | None) -> ListAction | None:
        """Translate *event* into a list movement, if it is one."""
        for action, list_action in _LIST_ACTIONS:
            if self.matches(event, action):
                return list_action
        return None

    def get_keys(self, action: DashboardAction) -> list[KeyId]:
        """Get keys bound to an action."""
        return self._action_to_keys.get(action, [])

    def describe(self) -> list[tuple[DashboardAction, list[KeyId]]]:
        """Every action with its keys, in declaration order."""
        return [(action, list(keys)) for action, keys in self._action_to_keys.items()]

    def set_config(self, config: KeybindingsConfig) -> None:
        """Update configuration."""
        self._build_maps(config)


_global_keybindings: KeybindingsManager | None = None


def get_keybindings() -> KeybindingsManager:
    global _global_keybindings
    if _global_keybindings is None:
        _global_keybindings = KeybindingsManager()
    return _global_keybindings


def set_keybindings(manager: KeybindingsManager | None) -> None:
    global _global_keybindings
    _global_keybindings = manager
