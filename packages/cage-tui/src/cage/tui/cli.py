"""Entry point for the cage-tui CLI."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import os

from cage.tui.app import Dashboard
from cage.tui.log_tail import BufferHandler, LogBuffer, tail_file
from cage.tui.settings import TuiSettings
from cage.tui.terminal import ProcessTerminal
from cage.tui.views import MAIN_VIEW, build_views

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cage-tui",
        description="cage-tui: keyboard-driven full-screen dashboard",
    )
    parser.add_argument("--log-file", default=None, help="Write logs to this file (default: no logging)")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    parser.add_argument("--no-wrap", action="store_true", help="Stop list selection at the ends")
    parser.add_argument(
        "--follow",
        metavar="FILE",
        default=None,
        help="Show lines appended to FILE in the live log view (default: this program's own log)",
    )
    return parser


def settings_overrides(args: argparse.Namespace) -> dict[str, object]:
    overrides: dict[str, object] = {}
    if args.no_wrap:
        overrides["wrapAround"] = False
    if args.log_file:
        overrides["logFile"] = args.log_file
    if args.log_level:
        overrides["logLevel"] = args.log_level
    return overrides


def configure_logging(settings: TuiSettings, buffer: LogBuffer | None = None) -> None:
    """Log to the configured file only; the screen belongs to the dashboard."""
    level = getattr(logging, settings.get_log_level().upper(), logging.INFO)
    log_file = settings.get_log_file()
    if log_file:
        logging.basicConfig(filename=log_file, level=level, format=LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)
    if buffer is not None:
        handler = BufferHandler(buffer)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, "%H:%M:%S"))
        root.addHandler(handler)
    if not root.handlers:
        # Keep logging's last-resort stderr handler off the screen.
        root.addHandler(logging.NullHandler())


async def run_dashboard(settings: TuiSettings, buffer: LogBuffer, follow: str | None) -> None:
    title = f"Live log: {os.path.basename(follow)}" if follow else "Live log"
    dashboard = Dashboard(ProcessTerminal(), build_views(buffer, title), MAIN_VIEW, settings=settings)
    unsubscribe = buffer.subscribe(dashboard.request_render)

    tail: asyncio.Task[None] | None = None
    if follow:
        tail = asyncio.create_task(tail_file(follow, buffer))
    try:
        await dashboard.run()
    finally:
        unsubscribe()
        if tail is not None:
            tail.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await tail


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    settings = TuiSettings.create(os.getcwd())
    settings.apply_overrides(settings_overrides(args))

    buffer = LogBuffer(settings.get_max_log_lines())
    configure_logging(settings, None if args.follow else buffer)
    logger.info("Starting cage-tui")

    try:
        asyncio.run(run_dashboard(settings, buffer, args.follow))
    except KeyboardInterrupt:
        pass
    logger.info("cage-tui stopped")


if __name__ == "__main__":
    main()
