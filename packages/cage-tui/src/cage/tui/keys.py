"""Decoding of raw terminal input into logical key events.

Covers the legacy xterm / VT100 sequences every terminal emits: cursor keys,
navigation keys, and their ``CSI 1;<mod>`` modified forms.  Control characters
become ``ctrl+<letter>`` and an ESC prefix becomes ``alt+``.  Printable
characters become a key named after the character itself.  Key names are
case-sensitive for printable characters, so ``"g"`` and ``"G"`` are distinct
keys.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Type alias
# ---------------------------------------------------------------------------

KeyId = str

# ---------------------------------------------------------------------------
# Key helper object
# ---------------------------------------------------------------------------


class Key:
    """Named key constants."""

    escape = "escape"
    enter = "enter"
    tab = "tab"
    shift_tab = "shift+tab"
    space = "space"
    backspace = "backspace"
    delete = "delete"
    insert = "insert"
    home = "home"
    end = "end"
    page_up = "pageUp"
    page_down = "pageDown"
    up = "up"
    down = "down"
    left = "left"
    right = "right"
    paste = "paste"

    @staticmethod
    def ctrl(key: str) -> str:
        return f"ctrl+{key}"

    @staticmethod
    def alt(key: str) -> str:
        return f"alt+{key}"

    @staticmethod
    def shift(key: str) -> str:
        return f"shift+{key}"


# ---------------------------------------------------------------------------
# Legacy sequences
# ---------------------------------------------------------------------------

LEGACY_KEY_SEQUENCES: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[4~": "end",
    "\x1b[7~": "home",
    "\x1b[8~": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[Z": "shift+tab",
}

# ``CSI 1;<mod>X`` final bytes and ``CSI <n>;<mod>~`` numbers.
_CSI_LETTER_KEYS: dict[str, str] = {
    "A": "up",
    "B": "down",
    "C": "right",
    "D": "left",
    "H": "home",
    "F": "end",
}
_CSI_TILDE_KEYS: dict[str, str] = {
    "2": "insert",
    "3": "delete",
    "5": "pageUp",
    "6": "pageDown",
}

# xterm modifier parameter -> key id prefix
_MODIFIER_PREFIXES: dict[int, str] = {
    2: "shift+",
    3: "alt+",
    4: "shift+alt+",
    5: "ctrl+",
    6: "ctrl+shift+",
    7: "ctrl+alt+",
    8: "ctrl+shift+alt+",
}


def _build_modified_sequences() -> dict[str, str]:
    table: dict[str, str] = {}
    for modifier, prefix in _MODIFIER_PREFIXES.items():
        for final, name in _CSI_LETTER_KEYS.items():
            table[f"\x1b[1;{modifier}{final}"] = prefix + name
        for number, name in _CSI_TILDE_KEYS.items():
            table[f"\x1b[{number};{modifier}~"] = prefix + name
    return table


LEGACY_MODIFIED_SEQUENCES: dict[str, str] = _build_modified_sequences()


# ---------------------------------------------------------------------------
# KeyEvent
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KeyEvent:
    """A decoded keystroke.

    ``name`` is the key id (``"up"``, ``"ctrl+c"``, ``"q"``).  ``text`` is the
    literal text the key would insert, set for printable characters and pastes.
    """

    name: KeyId
    text: str | None = None
    raw: str = ""

    @property
    def is_printable(self) -> bool:
        return self.text is not None

    @classmethod
    def char(cls, ch: str) -> KeyEvent:
        return cls(name=ch, text=ch, raw=ch)

    @classmethod
    def named(cls, name: KeyId) -> KeyEvent:
        return cls(name=name)

    @classmethod
    def pasted(cls, text: str) -> KeyEvent:
        return cls(name=Key.paste, text=text, raw=text)


# ---------------------------------------------------------------------------
# parse_key
# ---------------------------------------------------------------------------


def parse_key(data: str) -> KeyEvent | None:  # noqa: C901
    """Decode one complete input sequence, or return ``None`` if unrecognised."""
    if not data:
        return None

    name = LEGACY_KEY_SEQUENCES.get(data) or LEGACY_MODIFIED_SEQUENCES.get(data)
    if name is not None:
        return KeyEvent(name=name, raw=data)

    # --- Simple single-byte keys ---
    if data == "\x1b":
        return KeyEvent(name="escape", raw=data)
    if data in ("\r", "\n"):
        return KeyEvent(name="enter", raw=data)
    if data == "\t":
        return KeyEvent(name="tab", raw=data)
    if data == " ":
        return KeyEvent(name="space", text=" ", raw=data)
    if data in ("\x7f", "\x08"):
        return KeyEvent(name="backspace", raw=data)
    if data == "\x00":
        return KeyEvent(name="ctrl+space", raw=data)

    # --- Ctrl + letter (0x01 - 0x1a) ---
    if len(data) == 1 and 1 <= ord(data) <= 26:
        return KeyEvent(name="ctrl+" + chr(ord(data) + ord("a") - 1), raw=data)

    # --- Alt + key (ESC prefix) ---
    if len(data) == 2 and data[0] == "\x1b":
        ch = data[1]
        if ch == "\x1b":
            return KeyEvent(name="alt+escape", raw=data)
        if ch in ("\r", "\n"):
            return KeyEvent(name="alt+enter", raw=data)
        if ch in ("\x7f", "\x08"):
            return KeyEvent(name="alt+backspace", raw=data)
        if 1 <= ord(ch) <= 26:
            return KeyEvent(name="ctrl+alt+" + chr(ord(ch) + ord("a") - 1), raw=data)
        if ch.isprintable():
            return KeyEvent(name="alt+" + ch, raw=data)

    # --- Plain printable text (one grapheme or a burst of typed characters) ---
    if not data.startswith("\x1b") and data.isprintable():
        return KeyEvent(name=data if len(data) == 1 else Key.paste, text=data, raw=data)

    return None


def matches_key(event: KeyEvent | None, key_id: KeyId) -> bool:
    """Return ``True`` if *event* is the key named *key_id*.

    ``"space"`` also matches a literal ``" "`` binding.
    """
    if event is None:
        return False
    if event.name == key_id:
        return True
    if key_id == " " and event.name == "space":
        return True
    return False
