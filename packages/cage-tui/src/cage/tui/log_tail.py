"""Line sources for the live log view.

:class:`LogBuffer` is a bounded list of lines with change listeners.  It is
filled either by :func:`tail_file`, which polls a file from the asyncio loop,
or by :class:`BufferHandler`, which captures this process's own log records.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 0.5


class LogBuffer:
    """The newest *max_lines* lines, oldest first."""

    def __init__(self, max_lines: int = 1000) -> None:
        self.max_lines = max(1, max_lines)
        self._lines: list[str] = []
        self._listeners: list[Callable[[], None]] = []

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def extend(self, lines: list[str]) -> None:
        if not lines:
            return
        self._lines.extend(lines)
        overflow = len(self._lines) - self.max_lines
        if overflow > 0:
            del self._lines[:overflow]
        for listener in list(self._listeners):
            listener()

    def append(self, line: str) -> None:
        self.extend([line])

    def clear(self) -> None:
        self._lines.clear()
        for listener in list(self._listeners):
            listener()

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe


class FileTail:
    """Reads lines appended to *path* since the previous :meth:`poll`.

    A file that shrinks (truncated or rotated) is read again from the start.
    A trailing partial line is held back until its newline arrives.
    """

    def __init__(self, path: str, buffer: LogBuffer, *, from_start: bool = True) -> None:
        self.path = path
        self.buffer = buffer
        self._offset = 0
        self._partial = ""
        self._missing_reported = False
        if not from_start:
            try:
                self._offset = os.path.getsize(path)
            except OSError:
                self._offset = 0

    def poll(self) -> int:
        """Read new lines into the buffer.  Returns how many were added."""
        try:
            size = os.path.getsize(self.path)
        except OSError as exc:
            if not self._missing_reported:
                self._missing_reported = True
                logger.warning("Cannot read %s: %s", self.path, exc)
            return 0
        self._missing_reported = False

        if size < self._offset:
            logger.info("%s shrank; reading from the start", self.path)
            self._offset = 0
            self._partial = ""
        if size == self._offset:
            return 0

        with open(self.path, encoding="utf-8", errors="replace") as f:
            f.seek(self._offset)
            chunk = f.read()
            self._offset = f.tell()

        text = self._partial + chunk
        lines = text.split("\n")
        self._partial = lines.pop()
        lines = [line.rstrip("\r") for line in lines]
        self.buffer.extend(lines)
        return len(lines)


async def tail_file(
    path: str,
    buffer: LogBuffer,
    interval: float = DEFAULT_POLL_INTERVAL,
) -> None:
    """Poll *path* forever, feeding *buffer*.  Cancel the task to stop."""
    tail = FileTail(path, buffer)
    logger.info("Following %s", path)
    while True:
        tail.poll()
        await asyncio.sleep(interval)


class BufferHandler(logging.Handler):
    """Logging handler that appends formatted records to a :class:`LogBuffer`."""

    def __init__(self, buffer: LogBuffer, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.buffer = buffer
        self._emitting = False

    def emit(self, record: logging.LogRecord) -> None:
        # Buffer listeners redraw lists, which may log in turn.
        if self._emitting:
            return
        try:
            message = self.format(record)
        except Exception:
            self.handleError(record)
            return
        self._emitting = True
        try:
            self.buffer.extend(message.splitlines() or [""])
        finally:
            self._emitting = False
