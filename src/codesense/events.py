"""
Event system for agent sessions.

A session emits text, tool activity and exactly one terminal event per
run on its EventBus. Hosts subscribe directly, or bundle plain callbacks
in an ``AgentCallbacks`` and bind them to the bus.

Example:
    from codesense.events import EventBus, TEXT

    bus = EventBus()

    @bus.on(TEXT)
    def show(event):
        print(event.text)
"""

from __future__ import annotations

import bisect
import inspect
import itertools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from codesense.logging import get_logger

logger = get_logger("events")


# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------

# Event name constants
TEXT = "text"
TOOL_CALL = "tool_call"
TOOL_RESULT = "tool_result"
DONE = "done"
ERROR = "error"


@dataclass
class TextEvent:
    """Emitted when the model produces user-visible text."""

    text: str
    turn: int = 0


@dataclass
class ToolCallEvent:
    """Emitted before a tool call is dispatched."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)
    turn: int = 0


@dataclass
class ToolResultEvent:
    """Emitted after a tool call produced its response part."""

    name: str
    response: dict[str, Any] = field(default_factory=dict)
    turn: int = 0


@dataclass
class DoneEvent:
    """Terminal event for a run that ended without error."""

    reason: str  # "complete", "max_turns", "aborted", "declined"
    message: str = ""


@dataclass
class ErrorEvent:
    """Terminal event for a run that failed."""

    kind: str  # error taxonomy tag: "network", "state", "config", ...
    detail: str = ""


EVENTS = (TEXT, TOOL_CALL, TOOL_RESULT, DONE, ERROR)

# Handlers can be sync or async; non-None return values are collected by emit().
EventHandler = Callable[..., Any]


@dataclass(order=True)
class _Subscription:
    priority: int  # lower runs first
    seq: int  # registration order breaks priority ties
    handler: EventHandler = field(compare=False)
    source: str = field(default="", compare=False)


# ---------------------------------------------------------------------------
# EventBus
# ---------------------------------------------------------------------------


class EventBus:
    """
    Per-session event bus.

    Only the five session events can be subscribed to. Handlers run in
    priority order, then registration order, and may be sync or async. A
    failing handler is logged and never interrupts the run that emitted.

    Usage:
        bus = EventBus()

        @bus.on(DONE)
        def on_done(event: DoneEvent):
            print(event.reason)

        unsub = bus.on(ERROR, lambda e: print(e.kind))
        unsub()
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[_Subscription]] = {name: [] for name in EVENTS}
        self._seq = itertools.count()

    def _bucket(self, event: str) -> list[_Subscription]:
        try:
            return self._subscriptions[event]
        except KeyError:
            raise ValueError(f"Unknown event: {event!r}") from None

    def on(
        self,
        event: str,
        handler: EventHandler | None = None,
        priority: int = 0,
        source: str = "",
    ) -> Callable[[], None] | Callable[[EventHandler], EventHandler]:
        """
        Subscribe to ``event``.

        With a handler, returns an unsubscribe function (safe to call
        twice). Without one, returns a decorator.
        """
        bucket = self._bucket(event)
        if handler is None:

            def decorator(fn: EventHandler) -> EventHandler:
                self.on(event, fn, priority=priority, source=source)
                return fn

            return decorator

        sub = _Subscription(priority, next(self._seq), handler, source)
        bisect.insort(bucket, sub)

        def unsubscribe() -> None:
            if sub in bucket:
                bucket.remove(sub)

        return unsubscribe

    def off(self, event: str, handler: EventHandler) -> None:
        """Remove every subscription of ``handler`` to ``event``."""
        bucket = self._bucket(event)
        bucket[:] = [s for s in bucket if s.handler is not handler]

    def clear(self, event: str | None = None) -> None:
        """Drop all subscriptions, or those of one event."""
        for name in (event,) if event is not None else EVENTS:
            self._bucket(name).clear()

    async def emit(self, event: str, data: Any = None) -> list[Any]:
        """Deliver ``data`` to the subscribers of ``event``."""
        results: list[Any] = []
        for sub in list(self._bucket(event)):
            try:
                result = sub.handler(data)
                if inspect.isawaitable(result):
                    result = await result
            except Exception as e:
                logger.warning(
                    "%s handler from %s failed: %s", event, sub.source or "host", e
                )
                continue
            if result is not None:
                results.append(result)
        return results

    @property
    def handler_count(self) -> int:
        return sum(len(bucket) for bucket in self._subscriptions.values())

    def has_handlers(self, event: str) -> bool:
        return bool(self._bucket(event))


# ---------------------------------------------------------------------------
# Host callbacks
# ---------------------------------------------------------------------------


@dataclass
class AgentCallbacks:
    """
    Outbound host capabilities for one run.

    ``on_text(text)``, ``on_tool_event(event)``, ``on_done(reason, message)``
    and ``on_error(kind, detail)``. Any of them may be omitted and any may
    be a coroutine function.
    """

    on_text: Callable[[str], Any] | None = None
    on_tool_event: Callable[[ToolCallEvent | ToolResultEvent], Any] | None = None
    on_done: Callable[[str, str], Any] | None = None
    on_error: Callable[[str, str], Any] | None = None

    def bind(self, bus: EventBus, source: str = "callbacks") -> Callable[[], None]:
        """Subscribe the callbacks to ``bus``; returns an unsubscribe function."""
        unsubs: list[Callable[[], None]] = []
        if self.on_text is not None:
            on_text = self.on_text
            unsubs.append(bus.on(TEXT, lambda e: on_text(e.text), source=source))
        if self.on_tool_event is not None:
            unsubs.append(bus.on(TOOL_CALL, self.on_tool_event, source=source))
            unsubs.append(bus.on(TOOL_RESULT, self.on_tool_event, source=source))
        if self.on_done is not None:
            on_done = self.on_done
            unsubs.append(bus.on(DONE, lambda e: on_done(e.reason, e.message), source=source))
        if self.on_error is not None:
            on_error = self.on_error
            unsubs.append(bus.on(ERROR, lambda e: on_error(e.kind, e.detail), source=source))

        def unbind() -> None:
            for unsub in unsubs:
                unsub()

        return unbind
