"""Reassembly of raw stdin chunks into whole key sequences.

A terminal read can end in the middle of an escape sequence (``"\\x1b["`` now,
``"A"`` on the next read).  Feeding those halves to the key decoder one at a
time would produce an Escape press followed by garbage, so :class:`StdinBuffer`
holds partial sequences until they complete.  A sequence that never completes
(a lone ``ESC`` press) is flushed after a short timeout.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Callable, Literal

logger = logging.getLogger(__name__)

ESC = "\x1b"
BRACKETED_PASTE_START = "\x1b[200~"
BRACKETED_PASTE_END = "\x1b[201~"

Completeness = Literal["complete", "incomplete", "not-escape"]

_SGR_MOUSE = re.compile(r"^<\d+;\d+;\d+[Mm]$")
# Introducers of string sequences terminated by ST (ESC \) or, for OSC, BEL.
_STRING_INTRODUCERS = ("]", "P", "_")


def classify_sequence(data: str) -> Completeness:
    """Tell whether *data* is a finished escape sequence."""
    if not data.startswith(ESC):
        return "not-escape"
    if len(data) == 1:
        return "incomplete"

    intro = data[1]
    if intro == "[":
        return _classify_csi(data[2:])
    if intro in _STRING_INTRODUCERS:
        if data.endswith(ESC + "\\") or (intro == "]" and data.endswith("\x07")):
            return "complete"
        return "incomplete"
    if intro == "O":
        # SS3: exactly one final byte.
        return "complete" if len(data) >= 3 else "incomplete"
    # ESC + one character is an Alt chord.
    return "complete"


def _classify_csi(payload: str) -> Completeness:
    if not payload:
        return "incomplete"
    if payload.startswith("M"):
        # X10 mouse: three raw bytes after ``M``.
        return "complete" if len(payload) >= 4 else "incomplete"
    if not 0x40 <= ord(payload[-1]) <= 0x7E:
        return "incomplete"
    if payload.startswith("<"):
        return "complete" if _SGR_MOUSE.match(payload) else "incomplete"
    return "complete"


def split_sequences(buffer: str) -> tuple[list[str], str]:
    """Split *buffer* into complete sequences and an incomplete remainder."""
    sequences: list[str] = []
    pos = 0
    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue

        end = pos + 1
        while True:
            status = classify_sequence(buffer[pos:end])
            if status != "incomplete":
                break
            if end >= len(buffer):
                return sequences, buffer[pos:]
            end += 1
        sequences.append(buffer[pos:end])
        pos = end
    return sequences, ""


class StdinBuffer:
    """Emits complete key sequences and bracketed pastes from raw input.

    Callbacks are set with :meth:`on_data` and :meth:`on_paste`.  The flush
    timer needs a running asyncio loop; without one an incomplete tail waits
    for the next :meth:`process` call or an explicit :meth:`flush`.
    """

    def __init__(self, *, timeout: float = 0.01) -> None:
        self._timeout = timeout
        self._buffer = ""
        self._paste: str | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._on_data: Callable[[str], None] | None = None
        self._on_paste: Callable[[str], None] | None = None

    def on_data(self, callback: Callable[[str], None]) -> None:
        self._on_data = callback

    def on_paste(self, callback: Callable[[str], None]) -> None:
        self._on_paste = callback

    @property
    def pending(self) -> str:
        return self._buffer

    @property
    def in_paste(self) -> bool:
        return self._paste is not None

    def process(self, data: str) -> None:
        """Feed one chunk read from stdin."""
        self._cancel_timer()
        if self._paste is not None:
            self._paste += data
            self._finish_paste()
            return

        self._buffer += data
        start = self._buffer.find(BRACKETED_PASTE_START)
        if start != -1:
            before = self._buffer[:start]
            after = self._buffer[start + len(BRACKETED_PASTE_START) :]
            self._buffer = ""
            sequences, remainder = split_sequences(before)
            self._emit_all(sequences + ([remainder] if remainder else []))
            self._paste = after
            self._finish_paste()
            return

        sequences, self._buffer = split_sequences(self._buffer)
        self._emit_all(sequences)
        if self._buffer:
            self._schedule_flush()

    def _finish_paste(self) -> None:
        assert self._paste is not None
        end = self._paste.find(BRACKETED_PASTE_END)
        if end == -1:
            return
        content = self._paste[:end]
        rest = self._paste[end + len(BRACKETED_PASTE_END) :]
        self._paste = None
        if self._on_paste is not None:
            self._on_paste(content)
        if rest:
            self.process(rest)

    def flush(self) -> list[str]:
        """Return and forget whatever incomplete input is buffered."""
        self._cancel_timer()
        if not self._buffer:
            return []
        pending, self._buffer = self._buffer, ""
        return [pending]

    def clear(self) -> None:
        self._cancel_timer()
        self._buffer = ""
        self._paste = None

    def _emit_all(self, sequences: list[str]) -> None:
        if self._on_data is None:
            return
        for sequence in sequences:
            self._on_data(sequence)

    def _schedule_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timer = loop.call_later(self._timeout, self._flush_timeout)

    def _flush_timeout(self) -> None:
        self._timer = None
        flushed = self.flush()
        if flushed:
            logger.debug("Flushing incomplete input %r after timeout", flushed[0])
        self._emit_all(flushed)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
