"""Display-width helpers for drawing fixed-width rows.

Widths are measured in terminal cells: ANSI escape sequences take none, text
is segmented into grapheme clusters, and each cluster is sized with wcwidth
(East Asian wide characters and emoji take two cells).
"""

from __future__ import annotations

import re
import unicodedata

import grapheme
import wcwidth as _wcwidth

# CSI sequences and OSC 8 hyperlinks.
_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]|\x1b\]8;;[^\x07]*\x07")

RESET = "\x1b[0m"
INVERSE = "\x1b[7m"

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


def _grapheme_width(g: str) -> int:
    """Width of a single grapheme cluster."""
    if not g:
        return 0
    cp = ord(g[0])
    if len(g) == 1:
        if cp < 0x20 or 0x7F <= cp <= 0x9F:
            return 0
        return max(_wcwidth.wcwidth(g), 0)

    # Emoji presentation selector, ZWJ sequences, skin tones, flags.
    for ch in g[1:]:
        tail = ord(ch)
        if tail in (0xFE0F, 0x200D) or 0x1F3FB <= tail <= 0x1F3FF:
            return 2
    if 0x1F1E6 <= cp <= 0x1F1FF or cp >= 0x1F000:
        return 2
    if unicodedata.category(g[0]) in ("Mn", "Me", "Cf"):
        return 0
    return max(_wcwidth.wcwidth(g[0]), 0)


def visible_width(text: str) -> int:
    """Number of terminal cells *text* occupies.  Tabs count as three."""
    if not text:
        return 0
    stripped = strip_ansi(text).replace("\t", "   ")
    if stripped.isascii() and stripped.isprintable():
        return len(stripped)

    cached = _width_cache.get(stripped)
    if cached is not None:
        return cached

    width = sum(_grapheme_width(g) for g in grapheme.graphemes(stripped))
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[stripped] = width
    return width


def _take_columns(text: str, max_cols: int) -> tuple[str, int, bool]:
    """Longest prefix of *text* fitting in *max_cols* cells.

    Returns ``(prefix, width, saw_ansi)``.  Escape sequences are kept and never
    split, and a wide cluster that would straddle the limit is dropped.
    """
    parts: list[str] = []
    cols = 0
    saw_ansi = False
    pos = 0
    while pos < len(text):
        match = _ANSI_RE.match(text, pos)
        if match is not None:
            parts.append(match.group())
            saw_ansi = True
            pos = match.end()
            continue
        # Next grapheme cluster up to the next escape sequence.
        next_esc = text.find("\x1b", pos + 1)
        chunk = text[pos : next_esc if next_esc != -1 else len(text)]
        cluster = next(iter(grapheme.graphemes(chunk)))
        width = 3 if cluster == "\t" else _grapheme_width(cluster)
        if cols + width > max_cols:
            break
        parts.append(cluster)
        cols += width
        pos += len(cluster)
    return "".join(parts), cols, saw_ansi


def truncate_to_width(text: str, max_width: int, ellipsis: str = "…") -> str:
    """Cut *text* to at most *max_width* cells, ending in *ellipsis* if cut."""
    if max_width <= 0:
        return ""
    if visible_width(text) <= max_width:
        return text

    ellipsis_width = visible_width(ellipsis)
    if ellipsis_width >= max_width:
        return _take_columns(ellipsis, max_width)[0]

    prefix, _, saw_ansi = _take_columns(text, max_width - ellipsis_width)
    # Close any open styling before the ellipsis.
    return prefix + (RESET if saw_ansi else "") + ellipsis


def pad_to_width(text: str, width: int, ellipsis: str = "…") -> str:
    """Truncate or right-pad *text* to exactly *width* cells."""
    if width <= 0:
        return ""
    fitted = truncate_to_width(text, width, ellipsis)
    return fitted + " " * (width - visible_width(fitted))


def inverse(text: str) -> str:
    """Render *text* in reverse video."""
    return f"{INVERSE}{text}{RESET}"
