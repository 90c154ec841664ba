"""
Shared fixtures for the test suite.

Provides fakes for the two external edges of the core: the audio backend
and the one-second ticker. Neither touches real audio or real time.
"""

import asyncio
from typing import Dict, List, Optional, Tuple

import pytest

from dreamflows.events import Event, EventBus, NoteEvent
from dreamflows.synth.base import AudioUnavailableError, Voice

# ---------------------------------------------------------------------------
# Fake audio backend
# ---------------------------------------------------------------------------


class RecordingBackend:
    """Records every call the composer makes.

    Can fail the first `fail_times` acquires, hold acquire until `hold` is
    set, or raise OSError on note number `fail_on_note`.
    """

    def __init__(self, fail_times: int = 0) -> None:
        self.fail_times = fail_times
        self.acquire_calls = 0
        self.acquired = False
        self.closed = False
        self.voices: Dict[str, Voice] = {}
        self.notes: List[NoteEvent] = []
        self.released: List[str] = []
        self.gains: List[Tuple[float, float]] = []
        self.hold: Optional[asyncio.Event] = None
        self.fail_on_note: Optional[int] = None

    async def acquire(self) -> None:
        self.acquire_calls += 1
        await asyncio.sleep(0)
        if self.hold is not None:
            await self.hold.wait()
        if self.fail_times > 0:
            self.fail_times -= 1
            raise AudioUnavailableError("audio context needs a user gesture")
        self.acquired = True

    def configure_voice(self, voice: Voice) -> None:
        voice.backend = self
        self.voices[voice.name] = voice

    def trigger_note(self, voice: Voice, pitch: int, duration: float, when: float) -> None:
        if self.fail_on_note == len(self.notes) + 1:
            self.fail_on_note = None
            raise OSError("MIDI output disappeared")
        self.notes.append(
            NoteEvent(voice=voice.name, pitch=pitch, duration=duration, when=when, channel=voice.channel)
        )

    def release_all(self, voice: Voice) -> None:
        self.released.append(voice.name)

    def set_master_gain(self, db: float, ramp: float = 0.1) -> None:
        self.gains.append((db, ramp))

    def close(self) -> None:
        self.closed = True

    def notes_for(self, voice: str) -> List[NoteEvent]:
        return [n for n in self.notes if n.voice == voice]


# ---------------------------------------------------------------------------
# Fake ticker
# ---------------------------------------------------------------------------


class FakeTicker:
    """Stands in for SecondTicker; `fire()` delivers ticks by hand."""

    def __init__(self) -> None:
        self.callback = None
        self.arms = 0
        self.stops = 0
        self.active = False

    def arm(self) -> None:
        self.arms += 1
        self.active = True

    def stop(self) -> None:
        if self.active:
            self.stops += 1
        self.active = False

    def fire(self, n: int = 1) -> None:
        for _ in range(n):
            if self.active and self.callback is not None:
                self.callback()


# ---------------------------------------------------------------------------
# Event capture
# ---------------------------------------------------------------------------


class EventLog:
    def __init__(self, bus: EventBus) -> None:
        self.events: List[Event] = []
        bus.subscribe(Event, self.events.append)

    def of(self, event_type) -> list:
        return [e for e in self.events if isinstance(e, event_type)]

    def last(self, event_type) -> Optional[Event]:
        found = self.of(event_type)
        return found[-1] if found else None

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def events(bus: EventBus) -> EventLog:
    return EventLog(bus)


@pytest.fixture
def ticker() -> FakeTicker:
    return FakeTicker()


@pytest.fixture
def backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def make_backend():
    """Factory for extra backends, e.g. one that fails its first acquire."""
    return RecordingBackend
