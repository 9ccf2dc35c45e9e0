"""Shared fixtures: every test gets fresh arbiter, resolver and keybindings."""

from __future__ import annotations

from typing import Iterator

import pytest

from cage.tui.errors import ErrorChannel
from cage.tui.focus import FocusArbiter
from cage.tui.height import HeightResolver
from cage.tui.keybindings import KeybindingsManager, set_keybindings
from virtual_terminal import VirtualTerminal


@pytest.fixture(autouse=True)
def _reset_keybindings() -> Iterator[None]:
    set_keybindings(None)
    yield
    set_keybindings(None)


@pytest.fixture
def errors() -> ErrorChannel:
    return ErrorChannel()


@pytest.fixture
def arbiter(errors: ErrorChannel) -> Iterator[FocusArbiter]:
    arb = FocusArbiter(errors=errors)
    yield arb
    arb.reset()


@pytest.fixture
def terminal() -> VirtualTerminal:
    return VirtualTerminal(rows=24, columns=80)


@pytest.fixture
def heights(terminal: VirtualTerminal) -> Iterator[HeightResolver]:
    resolver = HeightResolver(lambda: terminal.rows, static_reserved=8)
    yield resolver
    resolver.reset()


@pytest.fixture
def keybindings() -> KeybindingsManager:
    return KeybindingsManager()
