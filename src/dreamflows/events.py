"""
Event system for dreamflows.

Provides:
- Base Event classes (Event, RenderEvent, GlitchRenderEvent, StateChangeEvent, NoteEvent)
- EventBus: synchronous pub/sub with optional event filtering

Everything runs on one event loop, so publishing delivers to every matching
subscriber before returning.
"""

from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar


E = TypeVar("E", bound="Event")

APP_TITLE = "DREAM.FLOWS"


@dataclass(frozen=True)
class Event:
    """Base event class. All events have a timestamp and metadata."""

    t: float = field(default_factory=time.monotonic)
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RenderEvent(Event):
    """Settled time display, zero-padded."""

    minutes_text: str = "25"
    seconds_text: str = "00"

    @property
    def text(self) -> str:
        return f"{self.minutes_text}:{self.seconds_text}"

    @property
    def title(self) -> str:
        return f"[{self.text}] {APP_TITLE}"


@dataclass(frozen=True)
class GlitchRenderEvent(Event):
    """Corrupted minute digits shown briefly after a drag."""

    char1: str = "2"
    char2: str = "5"

    @property
    def text(self) -> str:
        return f"{self.char1}{self.char2}:00"


@dataclass(frozen=True)
class StateChangeEvent(Event):
    """Run-state change of the countdown timer."""

    running: bool = False
    completed: bool = False

    @property
    def button_label(self) -> str:
        if self.running:
            return "ABORT_SEQUENCE"
        return "RESET_SEQUENCE" if self.completed else "INIT_SEQUENCE"

    @property
    def status_label(self) -> str:
        if self.running:
            return "SYSTEM_ACTIVE"
        return "SESSION_COMPLETE" if self.completed else "SYSTEM_IDLE"

    @property
    def audio_label(self) -> str:
        return "AUDIO_ONLINE" if self.running else "AUDIO_OFFLINE"


@dataclass(frozen=True)
class NoteEvent(Event):
    """A note handed to an audio backend."""

    voice: str = ""
    pitch: int = 60
    duration: float = 0.25  # seconds
    when: float = 0.0  # clock time
    velocity: float = 0.8
    channel: int = 0


class EventFilter:
    """Filter for events based on type and/or a predicate."""

    def __init__(
        self,
        event_type: Optional[Type[Event]] = None,
        predicate: Optional[Callable[[Event], bool]] = None,
    ):
        self.event_type = event_type
        self.predicate = predicate

    def matches(self, ev: Event) -> bool:
        if self.event_type and not isinstance(ev, self.event_type):
            return False
        if self.predicate and not self.predicate(ev):
            return False
        return True


class Subscription:
    """Handle for managing event subscriptions."""

    def __init__(
        self,
        bus: "EventBus",
        event_type: Type[Event],
        callback: Callable[[Any], None],
        filter: Optional[EventFilter] = None,
    ):
        self.bus = bus
        self.event_type = event_type
        self.callback = callback
        self.filter = filter
        self._closed = False

    def deliver(self, ev: Event) -> None:
        if self._closed:
            return
        if self.filter is None or self.filter.matches(ev):
            self.callback(ev)

    def close(self) -> None:
        """Unsubscribe from events."""
        if self._closed:
            return
        self._closed = True
        self.bus._unsubscribe(self)


class EventBus:
    """
    Synchronous event bus with pub/sub and filtering.

    Subscribers are called in subscription order. Exceptions raised by a
    subscriber propagate to the publisher.
    """

    def __init__(self):
        self._subs: Dict[Type[Event], List[Subscription]] = defaultdict(list)

    def subscribe(
        self,
        event_type: Type[E],
        callback: Callable[[E], None],
        filter: Optional[EventFilter] = None,
    ) -> Subscription:
        """Subscribe to events of a specific type, optionally filtered."""
        sub = Subscription(self, event_type, callback, filter)
        self._subs[event_type].append(sub)
        return sub

    def _unsubscribe(self, sub: Subscription) -> None:
        subs = self._subs.get(sub.event_type)
        if subs and sub in subs:
            subs.remove(sub)

    def publish(self, ev: Event) -> None:
        """Publish an event to all subscribers."""
        targets: List[Subscription] = []
        for etype, subs in self._subs.items():
            if isinstance(ev, etype):
                targets.extend(subs)
        for sub in targets:
            sub.deliver(ev)

    def subscriber_count(self, event_type: Type[Event]) -> int:
        return len(self._subs.get(event_type, ()))
