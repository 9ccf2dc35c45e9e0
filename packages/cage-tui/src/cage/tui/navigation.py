"""Stack-based router that decides which top-level view is mounted."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Callable, Mapping, Protocol

from cage.tui.errors import UnknownViewError
from cage.tui.focus import FocusArbiter

if TYPE_CHECKING:
    from cage.tui.errors import ErrorChannel
    from cage.tui.height import HeightResolver
    from cage.tui.keybindings import KeybindingsManager
    from cage.tui.settings import TuiSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewMetadata:
    """Static description of a view, shown by the layout around it."""

    title: str = ""
    subtitle: str | None = None
    footer: str | None = None
    show_default_footer: bool = True
    # The view handles Escape itself; the layout's back handler stays quiet.
    custom_back_handler: bool = False


class View(Protocol):
    """A mounted screen.

    ``mount`` and ``unmount`` are optional and looked up with ``getattr``.
    """

    def render(self, width: int, height: int) -> list[str]: ...


@dataclass
class ViewContext:
    """Everything a view factory gets when its view is mounted."""

    view_id: str
    navigation: NavigationMachine
    arbiter: FocusArbiter
    heights: HeightResolver | None = None
    keybindings: KeybindingsManager | None = None
    settings: TuiSettings | None = None
    errors: ErrorChannel | None = None

    def navigate(self, view_id: str) -> None:
        self.navigation.navigate(view_id)

    def back(self) -> None:
        self.navigation.back()

    def update_metadata(self, **overrides: Any) -> None:
        self.navigation.update_metadata(**overrides)


ViewFactory = Callable[[ViewContext], View]


@dataclass(frozen=True)
class ViewDefinition:
    id: str
    factory: ViewFactory
    metadata: ViewMetadata = field(default_factory=ViewMetadata)


class NavigationMachine:
    """Mounts one view at a time and remembers how the user got there.

    ``navigate`` always pushes; ``back`` pops, or calls ``on_exit`` when only the
    entry view is left.  Leaving a view releases its focus claims and key
    handlers even if the view's own ``unmount`` raises.
    """

    def __init__(
        self,
        views: Mapping[str, ViewDefinition],
        initial_view: str,
        arbiter: FocusArbiter,
        on_exit: Callable[[], None] | None = None,
        *,
        heights: HeightResolver | None = None,
        keybindings: KeybindingsManager | None = None,
        settings: TuiSettings | None = None,
        errors: ErrorChannel | None = None,
    ) -> None:
        if initial_view not in views:
            raise UnknownViewError(initial_view, list(views))
        self._views = dict(views)
        self._initial_view = initial_view
        self._arbiter = arbiter
        self._on_exit = on_exit
        self._heights = heights
        self._keybindings = keybindings
        self._settings = settings
        self._errors = errors

        self._history: list[str] = [initial_view]
        self._overrides: dict[str, Any] = {}
        self._current: View | None = None
        self._mounted = False
        self._listeners: list[Callable[[str], None]] = []

    # -- accessors ---------------------------------------------------------

    @property
    def current_view(self) -> str:
        return self._history[-1]

    @property
    def current(self) -> View | None:
        return self._current

    @property
    def history(self) -> tuple[str, ...]:
        return tuple(self._history)

    @property
    def views(self) -> Mapping[str, ViewDefinition]:
        return dict(self._views)

    @property
    def is_entry_view(self) -> bool:
        return len(self._history) == 1

    @property
    def metadata(self) -> ViewMetadata:
        base = self._views[self.current_view].metadata
        return replace(base, **self._overrides) if self._overrides else base

    def subscribe(self, listener: Callable[[str], None]) -> Callable[[], None]:
        """Call *listener* with the new view id after every transition."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -- transitions -------------------------------------------------------

    def start(self) -> None:
        """Mount the view on top of the history (the entry view at first)."""
        if not self._mounted:
            self._mount(self.current_view)

    def navigate(self, view_id: str) -> None:
        if view_id not in self._views:
            raise UnknownViewError(view_id, list(self._views))

        previous = self.current_view
        logger.debug("Navigating %s -> %s", previous, view_id)
        self._unmount()
        self._history.append(view_id)
        self._overrides = {}
        try:
            self._mount(view_id)
        except Exception:
            self._history.pop()
            self._mount(previous)
            raise

    def back(self) -> bool:
        """Pop one view.  Returns ``False`` when ``on_exit`` was called instead."""
        if len(self._history) <= 1:
            logger.debug("Back from entry view %s; exiting", self.current_view)
            if self._on_exit is not None:
                self._on_exit()
            return False

        self._unmount()
        left = self._history.pop()
        self._overrides = {}
        logger.debug("Back %s -> %s", left, self.current_view)
        self._mount(self.current_view)
        return True

    def update_metadata(self, **overrides: Any) -> None:
        """Override metadata fields of the mounted view until it is left."""
        self._overrides.update(overrides)

    def reset(self) -> None:
        """Unmount and return to a fresh history holding only the entry view."""
        self._unmount()
        self._history = [self._initial_view]
        self._overrides = {}

    # -- mounting ----------------------------------------------------------

    def _mount(self, view_id: str) -> None:
        definition = self._views[view_id]
        self._arbiter.set_scope(view_id)
        context = ViewContext(
            view_id=view_id,
            navigation=self,
            arbiter=self._arbiter,
            heights=self._heights,
            keybindings=self._keybindings,
            settings=self._settings,
            errors=self._errors,
        )
        try:
            view = definition.factory(context)
            mount = getattr(view, "mount", None)
            if callable(mount):
                mount()
        except Exception:
            self._arbiter.release_scope(view_id)
            self._arbiter.set_scope(None)
            raise

        self._current = view
        self._mounted = True
        for listener in list(self._listeners):
            listener(view_id)

    def _unmount(self) -> None:
        if not self._mounted:
            return
        view_id = self.current_view
        view = self._current
        self._current = None
        self._mounted = False
        try:
            unmount = getattr(view, "unmount", None)
            if callable(unmount):
                unmount()
        finally:
            self._arbiter.release_scope(view_id)
            self._arbiter.set_scope(None)
