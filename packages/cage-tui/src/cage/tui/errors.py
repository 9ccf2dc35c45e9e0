"""Error taxonomy and the error channel views display.

Programming errors (an unknown view id, a foreign release token) are raised
immediately.  Environment limitations and logic slips that the core can
recover from are posted to an :class:`ErrorChannel` instead, so the hosting
view can show them without the process dying.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal

logger = logging.getLogger(__name__)

ErrorLevel = Literal["info", "warning", "error"]


class DashboardError(Exception):
    """Base class for all errors raised by the dashboard core."""


class ProgrammingError(DashboardError):
    """A defect in calling code.  Never swallowed."""


class UnknownViewError(ProgrammingError):
    """Navigation targeted a view id missing from the view table."""

    def __init__(self, view_id: str, known: list[str] | None = None) -> None:
        self.view_id = view_id
        self.known = sorted(known or [])
        message = f"Cannot navigate to unknown view: {view_id!r}"
        if self.known:
            message += f" (registered: {', '.join(self.known)})"
        super().__init__(message)


class FocusOwnershipError(ProgrammingError):
    """A focus claim was released with a token the arbiter never issued."""


@dataclass(frozen=True)
class ErrorReport:
    level: ErrorLevel
    message: str


class ErrorChannel:
    """Bounded queue of reports surfaced to the user.

    Reports are also mirrored to the module logger.
    """

    def __init__(self, max_reports: int = 20) -> None:
        self._reports: list[ErrorReport] = []
        self._max_reports = max_reports
        self._listeners: list[Callable[[ErrorReport], None]] = []

    def post(self, level: ErrorLevel, message: str) -> ErrorReport:
        report = ErrorReport(level=level, message=message)
        self._reports.append(report)
        if len(self._reports) > self._max_reports:
            del self._reports[: len(self._reports) - self._max_reports]

        log_level = {
            "info": logging.INFO,
            "warning": logging.WARNING,
            "error": logging.ERROR,
        }[level]
        logger.log(log_level, message)

        for listener in list(self._listeners):
            listener(report)
        return report

    def info(self, message: str) -> ErrorReport:
        return self.post("info", message)

    def warning(self, message: str) -> ErrorReport:
        return self.post("warning", message)

    def error(self, message: str) -> ErrorReport:
        return self.post("error", message)

    def subscribe(self, listener: Callable[[ErrorReport], None]) -> Callable[[], None]:
        """Call *listener* on every new report.  Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def reports(self) -> tuple[ErrorReport, ...]:
        return tuple(self._reports)

    @property
    def latest(self) -> ErrorReport | None:
        return self._reports[-1] if self._reports else None

    def dismiss(self) -> None:
        """Drop the most recent report."""
        if self._reports:
            self._reports.pop()

    def clear(self) -> None:
        self._reports.clear()

    def __len__(self) -> int:
        return len(self._reports)
