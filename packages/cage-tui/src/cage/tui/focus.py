"""Exclusive-focus input arbitration.

Components register key handlers under an owner id.  A component that needs
uncontested input (a text field, a modal) pushes a claim.  While a claim is on
top of the stack only its owner's handlers see keystrokes.  With no claim,
every handler of the mounted view and every global handler receives each key.

Every :meth:`FocusArbiter.push` returns a :class:`ReleaseToken`.  Calling it
more than once, or after the claim was swept away by ``release_scope`` or
``reset``, does nothing.

A :class:`FocusRing` cycles a normal claim through the regions of one view, so
Tab moves keyboard focus between, say, a list and a row of tabs.
"""

from __future__ import annotations

import enum
import itertools
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Sequence

from cage.tui.errors import ErrorChannel, FocusOwnershipError
from cage.tui.keys import KeyEvent

logger = logging.getLogger(__name__)

KeyHandler = Callable[[KeyEvent], "bool | None"]

# Sentinel: "tag with whatever view is mounted right now".
CURRENT_SCOPE: Any = object()


class FocusMode(enum.Enum):
    NORMAL = "normal"
    EXCLUSIVE = "exclusive"


@dataclass(frozen=True, eq=False)
class FocusClaim:
    owner_id: str
    mode: FocusMode
    scope: str | None = None
    claim_id: int = 0


class ReleaseToken:
    """One-shot handle that releases exactly the claim it was issued for."""

    __slots__ = ("_arbiter", "_claim", "_released")

    def __init__(self, arbiter: FocusArbiter, claim: FocusClaim) -> None:
        self._arbiter = arbiter
        self._claim = claim
        self._released = False

    @property
    def claim(self) -> FocusClaim:
        return self._claim

    @property
    def owner_id(self) -> str:
        return self._claim.owner_id

    @property
    def released(self) -> bool:
        return self._released or not self._arbiter._holds(self._claim)

    def release(self) -> None:
        self._arbiter.release(self)

    def __call__(self) -> None:
        self._arbiter.release(self)

    def __repr__(self) -> str:
        state = "released" if self.released else "held"
        return f"<ReleaseToken {self._claim.owner_id}#{self._claim.claim_id} {state}>"


@dataclass(eq=False)
class Registration:
    owner_id: str
    handler: KeyHandler
    scope: str | None = None
    active: bool = True
    _arbiter: FocusArbiter | None = field(default=None, repr=False)

    def unregister(self) -> None:
        if self.active and self._arbiter is not None:
            self._arbiter._unregister(self)
        self.active = False


class FocusArbiter:
    """Routes each key event to the handlers allowed to see it."""

    def __init__(
        self,
        interactive: bool = True,
        errors: ErrorChannel | None = None,
    ) -> None:
        self._interactive = interactive
        self._errors = errors
        self._stack: list[FocusClaim] = []
        self._registrations: list[Registration] = []
        self._scope: str | None = None
        self._ids = itertools.count(1)

        if not interactive:
            logger.info("Input source is not interactive; key dispatch disabled")

    # -- state -------------------------------------------------------------

    @property
    def interactive(self) -> bool:
        return self._interactive

    @property
    def scope(self) -> str | None:
        return self._scope

    @property
    def claims(self) -> tuple[FocusClaim, ...]:
        return tuple(self._stack)

    @property
    def top(self) -> FocusClaim | None:
        return self._stack[-1] if self._stack else None

    @property
    def mode(self) -> FocusMode:
        top = self.top
        return top.mode if top is not None else FocusMode.NORMAL

    @property
    def focus_owner(self) -> str | None:
        top = self.top
        return top.owner_id if top is not None else None

    def is_active(self, owner_id: str) -> bool:
        """True when nobody holds a claim, or *owner_id* holds the top one."""
        return not self._stack or self._stack[-1].owner_id == owner_id

    def set_scope(self, scope: str | None) -> None:
        self._scope = scope

    # -- claims ------------------------------------------------------------

    def push(
        self,
        owner_id: str,
        mode: FocusMode = FocusMode.EXCLUSIVE,
        scope: Any = CURRENT_SCOPE,
    ) -> ReleaseToken:
        claim = FocusClaim(
            owner_id=owner_id,
            mode=mode,
            scope=self._scope if scope is CURRENT_SCOPE else scope,
            claim_id=next(self._ids),
        )
        self._stack.append(claim)
        logger.debug("Focus claimed by %s (%s), depth %d", owner_id, mode.value, len(self._stack))
        return ReleaseToken(self, claim)

    def release(self, token: ReleaseToken) -> None:
        if not isinstance(token, ReleaseToken) or token._arbiter is not self:
            raise FocusOwnershipError(f"Release token {token!r} was not issued by this arbiter")
        if token._released:
            return
        token._released = True

        claim = token._claim
        index = self._index_of(claim)
        if index is None:
            # Already swept by release_scope() or reset().
            return

        if index != len(self._stack) - 1:
            top = self._stack[-1]
            message = (
                f"Focus claim of {claim.owner_id!r} released while "
                f"{top.owner_id!r} holds the top claim"
            )
            if self._errors is not None:
                self._errors.warning(message)
            else:
                logger.warning(message)

        del self._stack[index]
        logger.debug("Focus released by %s, depth %d", claim.owner_id, len(self._stack))

    @contextmanager
    def claim(
        self,
        owner_id: str,
        mode: FocusMode = FocusMode.EXCLUSIVE,
    ) -> Iterator[ReleaseToken]:
        """Hold a claim for the duration of a ``with`` block."""
        token = self.push(owner_id, mode)
        try:
            yield token
        finally:
            token.release()

    def _holds(self, claim: FocusClaim) -> bool:
        return self._index_of(claim) is not None

    def _index_of(self, claim: FocusClaim) -> int | None:
        for i, existing in enumerate(self._stack):
            if existing is claim:
                return i
        return None

    # -- handlers ----------------------------------------------------------

    def register(
        self,
        owner_id: str,
        handler: KeyHandler,
        scope: Any = CURRENT_SCOPE,
    ) -> Registration:
        """Register *handler* for *owner_id*.

        ``scope=None`` registers a global handler that outlives view changes.
        """
        registration = Registration(
            owner_id=owner_id,
            handler=handler,
            scope=self._scope if scope is CURRENT_SCOPE else scope,
            _arbiter=self,
        )
        if not self._interactive:
            registration.active = False
            return registration
        self._registrations.append(registration)
        return registration

    def _unregister(self, registration: Registration) -> None:
        self._registrations = [r for r in self._registrations if r is not registration]

    def handlers_for(self, owner_id: str) -> list[Registration]:
        return [r for r in self._registrations if r.owner_id == owner_id and r.active]

    def release_scope(self, scope: str | None) -> None:
        """Drop every claim and registration tagged with *scope*."""
        dropped_claims = [c for c in self._stack if c.scope == scope]
        if dropped_claims:
            self._stack = [c for c in self._stack if c.scope != scope]
            logger.debug(
                "Dropped %d focus claim(s) held by view %s", len(dropped_claims), scope
            )
        for registration in self._registrations:
            if registration.scope == scope:
                registration.active = False
        self._registrations = [r for r in self._registrations if r.active]

    # -- dispatch ----------------------------------------------------------

    def dispatch(self, event: KeyEvent) -> bool:
        """Deliver *event*.  Returns ``True`` if some handler consumed it."""
        if not self._interactive:
            return False

        top = self.top
        if top is not None:
            consumed = self._deliver(event, self.handlers_for(top.owner_id), top)
            if consumed or top.mode is FocusMode.EXCLUSIVE or self.top is not top:
                return consumed
            shared = [r for r in self._shared_registrations() if r.owner_id != top.owner_id]
            return self._deliver(event, shared, top)

        return self._deliver(event, self._shared_registrations(), None)

    def _shared_registrations(self) -> list[Registration]:
        return [
            r
            for r in self._registrations
            if r.active and (r.scope is None or r.scope == self._scope)
        ]

    def _deliver(
        self,
        event: KeyEvent,
        registrations: list[Registration],
        top: FocusClaim | None,
    ) -> bool:
        consumed = False
        for registration in registrations:
            if not registration.active:
                continue
            if registration.handler(event):
                consumed = True
            # A handler that claimed or released focus ends the broadcast.
            if self.top is not top:
                break
        return consumed

    # -- testing -----------------------------------------------------------

    def reset(self) -> None:
        """Forget every claim and registration."""
        self._stack.clear()
        for registration in self._registrations:
            registration.active = False
        self._registrations.clear()
        self._scope = None


class FocusRing:
    """Moves a normal claim around the focus regions of one view.

    The focused region's handlers see each key first and whatever they leave
    falls through to the rest of the view.  Handlers wrapped with
    :meth:`guard` ignore keys while their region is not focused, so an
    unfocused region never reacts to fall-through keys.
    """

    def __init__(
        self,
        arbiter: FocusArbiter,
        regions: Sequence[str],
        *,
        on_change: Callable[[str], None] | None = None,
    ) -> None:
        if not regions:
            raise ValueError("A focus ring needs at least one region")
        self.on_change = on_change
        self._arbiter = arbiter
        self._regions = tuple(regions)
        self._index = 0
        self._token: ReleaseToken | None = None

    @property
    def regions(self) -> tuple[str, ...]:
        return self._regions

    @property
    def current(self) -> str:
        return self._regions[self._index]

    @property
    def active(self) -> bool:
        """True while the ring's claim is on the arbiter's stack."""
        return self._token is not None and not self._token.released

    def has_focus(self, owner_id: str) -> bool:
        return self.current == owner_id

    def start(self) -> None:
        if self.active:
            return
        self._token = self._arbiter.push(self.current, FocusMode.NORMAL)

    def stop(self) -> None:
        """Release the ring's claim.  Safe to call repeatedly."""
        token, self._token = self._token, None
        if token is not None:
            token.release()

    def focus(self, owner_id: str) -> None:
        if owner_id not in self._regions:
            raise ValueError(f"{owner_id!r} is not a region of this focus ring")
        index = self._regions.index(owner_id)
        if index == self._index:
            return
        was_active = self.active
        self.stop()
        self._index = index
        if was_active:
            self.start()
        logger.debug("Focus region -> %s", owner_id)
        if self.on_change is not None:
            self.on_change(owner_id)

    def next(self) -> None:
        self.focus(self._regions[(self._index + 1) % len(self._regions)])

    def prev(self) -> None:
        self.focus(self._regions[(self._index - 1) % len(self._regions)])

    def guard(self, owner_id: str, handler: KeyHandler) -> KeyHandler:
        def guarded(event: KeyEvent) -> bool | None:
            if not self.has_focus(owner_id):
                return False
            return handler(event)

        return guarded
