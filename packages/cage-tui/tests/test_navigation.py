"""Tests for cage.tui.navigation -- the view stack."""

from __future__ import annotations

from typing import Callable

import pytest

from cage.tui.errors import UnknownViewError
from cage.tui.focus import FocusArbiter
from cage.tui.keys import KeyEvent
from cage.tui.navigation import NavigationMachine, ViewContext, ViewDefinition, ViewMetadata


class _RecordingView:
    """Records lifecycle events into a shared log."""

    def __init__(self, context: ViewContext, log: list[str], fail_unmount: bool = False) -> None:
        self.context = context
        self.log = log
        self.fail_unmount = fail_unmount

    def mount(self) -> None:
        self.log.append(f"mount:{self.context.view_id}")
        self.context.arbiter.register(self.context.view_id, lambda event: True)

    def unmount(self) -> None:
        self.log.append(f"unmount:{self.context.view_id}")
        if self.fail_unmount:
            raise RuntimeError("unmount failed")

    def render(self, width: int, height: int) -> list[str]:
        return [self.context.view_id]


def _views(log: list[str], **overrides: Callable[[ViewContext], object]) -> dict[str, ViewDefinition]:
    views = {
        view_id: ViewDefinition(
            view_id,
            lambda context: _RecordingView(context, log),
            ViewMetadata(title=view_id.title()),
        )
        for view_id in ("main", "logs", "help")
    }
    for view_id, factory in overrides.items():
        views[view_id] = ViewDefinition(view_id, factory, ViewMetadata(title=view_id))
    return views


@pytest.fixture
def log() -> list[str]:
    return []


@pytest.fixture
def exits() -> list[None]:
    return []


@pytest.fixture
def nav(log: list[str], exits: list[None], arbiter: FocusArbiter) -> NavigationMachine:
    machine = NavigationMachine(_views(log), "main", arbiter, on_exit=lambda: exits.append(None))
    machine.start()
    return machine


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_unregistered_initial_view(self, log: list[str], arbiter: FocusArbiter) -> None:
        with pytest.raises(UnknownViewError) as info:
            NavigationMachine(_views(log), "missing", arbiter)
        assert info.value.view_id == "missing"
        assert info.value.known == ["help", "logs", "main"]

    def test_start_mounts_entry_view(self, nav: NavigationMachine, log: list[str]) -> None:
        assert nav.current_view == "main"
        assert nav.history == ("main",)
        assert nav.is_entry_view
        assert log == ["mount:main"]

    def test_start_twice_mounts_once(self, nav: NavigationMachine, log: list[str]) -> None:
        nav.start()
        assert log == ["mount:main"]

    def test_context_carries_shared_services(
        self, log: list[str], arbiter: FocusArbiter, heights
    ) -> None:
        machine = NavigationMachine(_views(log), "main", arbiter, heights=heights)
        machine.start()
        assert machine.current.context.heights is heights
        assert machine.current.context.navigation is machine


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


class TestTransitions:
    def test_navigate_pushes_history(self, nav: NavigationMachine, log: list[str]) -> None:
        nav.navigate("logs")
        assert nav.current_view == "logs"
        assert nav.history == ("main", "logs")
        assert log == ["mount:main", "unmount:main", "mount:logs"]

    def test_history_is_not_deduplicated(self, nav: NavigationMachine) -> None:
        nav.navigate("logs")
        nav.navigate("logs")
        assert nav.history == ("main", "logs", "logs")

    def test_unknown_view_leaves_state_unchanged(
        self, nav: NavigationMachine, log: list[str]
    ) -> None:
        view = nav.current
        with pytest.raises(UnknownViewError):
            nav.navigate("nowhere")
        assert nav.history == ("main",)
        assert nav.current is view
        assert log == ["mount:main"]

    def test_back_pops_and_remounts(self, nav: NavigationMachine, log: list[str]) -> None:
        nav.navigate("logs")
        assert nav.back() is True
        assert nav.current_view == "main"
        assert log[-2:] == ["unmount:logs", "mount:main"]

    def test_back_at_entry_calls_on_exit_once(
        self, nav: NavigationMachine, exits: list[None]
    ) -> None:
        assert nav.back() is False
        assert exits == [None]
        assert nav.history == ("main",)

    def test_back_without_exit_callback(self, log: list[str], arbiter: FocusArbiter) -> None:
        machine = NavigationMachine(_views(log), "main", arbiter)
        machine.start()
        assert machine.back() is False

    def test_listeners_see_transitions(self, nav: NavigationMachine) -> None:
        seen: list[str] = []
        unsubscribe = nav.subscribe(seen.append)
        nav.navigate("help")
        nav.back()
        unsubscribe()
        nav.navigate("logs")
        assert seen == ["help", "main"]

    def test_reset(self, nav: NavigationMachine, log: list[str]) -> None:
        nav.navigate("logs")
        nav.reset()
        assert nav.history == ("main",)
        assert nav.current is None
        assert log[-1] == "unmount:logs"


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


class TestMetadata:
    def test_base_metadata(self, nav: NavigationMachine) -> None:
        assert nav.metadata.title == "Main"

    def test_overrides_apply_until_view_is_left(self, nav: NavigationMachine) -> None:
        nav.navigate("logs")
        nav.current.context.update_metadata(subtitle="filter: error")
        assert nav.metadata.subtitle == "filter: error"
        assert nav.metadata.title == "Logs"
        nav.back()
        nav.navigate("logs")
        assert nav.metadata.subtitle is None


# ---------------------------------------------------------------------------
# Cleanup on leave
# ---------------------------------------------------------------------------


class TestCleanup:
    def test_leaving_releases_claims_and_handlers(
        self, nav: NavigationMachine, arbiter: FocusArbiter
    ) -> None:
        nav.navigate("logs")
        arbiter.push("logs-search")
        nav.back()
        assert arbiter.claims == ()
        assert arbiter.handlers_for("logs") == []
        assert arbiter.scope == "main"

    def test_released_even_if_unmount_raises(self, log: list[str], arbiter: FocusArbiter) -> None:
        views = _views(log, broken=lambda context: _RecordingView(context, log, fail_unmount=True))
        machine = NavigationMachine(views, "broken", arbiter)
        machine.start()
        arbiter.push("modal")

        with pytest.raises(RuntimeError):
            machine.navigate("main")

        assert arbiter.claims == ()
        assert arbiter.handlers_for("broken") == []
        assert machine.history == ("broken",)
        assert not arbiter.dispatch(KeyEvent.char("x"))

    def test_failed_mount_restores_previous_view(
        self, log: list[str], arbiter: FocusArbiter
    ) -> None:
        def explode(context: ViewContext) -> object:
            context.arbiter.register("half", lambda event: True)
            raise ValueError("cannot build")

        machine = NavigationMachine(_views(log, bad=explode), "main", arbiter)
        machine.start()
        with pytest.raises(ValueError):
            machine.navigate("bad")
        assert machine.history == ("main",)
        assert machine.current_view == "main"
        assert arbiter.handlers_for("half") == []
        assert log == ["mount:main", "unmount:main", "mount:main"]
