"""
Audio backend interface and the shared note scheduling base.
"""

import asyncio
import logging
from collections import Counter, defaultdict, deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Optional, Protocol, Sequence, Set, Tuple, Union

from ..events import NoteEvent
from ..scales import Pitch, note_to_midi
from ..utils import clamp, db_to_linear

logger = logging.getLogger(__name__)

MIN_DB = -80.0


class AudioUnavailableError(RuntimeError):
    """The audio subsystem could not be acquired."""


def gain_db_to_cc(db: float) -> int:
    """Map a channel gain in dB to a GM volume controller value (CC 7)."""
    return int(clamp(round(127 * 10.0 ** (db / 40.0)), 0, 127))


@dataclass
class Voice:
    """A synthesis endpoint: one channel with its program and gain."""

    name: str
    channel: int
    program: Tuple[int, int] = (0, 0)  # (bank, program)
    gain_db: float = 0.0
    velocity: float = 0.8
    backend: Optional["AudioBackend"] = field(default=None, repr=False, compare=False)

    def trigger(
        self, pitches: Union[Pitch, Sequence[Pitch]], duration: float, when: float
    ) -> None:
        """Schedule one note, or every note of a chord, at clock time `when`."""
        if self.backend is None:
            raise RuntimeError(f"Voice {self.name!r} is not bound to a backend")
        if isinstance(pitches, (int, str)):
            pitches = (pitches,)
        for p in pitches:
            self.backend.trigger_note(self, note_to_midi(p), duration, when)

    def release(self) -> None:
        if self.backend is not None:
            self.backend.release_all(self)


class AudioBackend(Protocol):
    """Capability interface the composer drives."""

    async def acquire(self) -> None: ...
    def configure_voice(self, voice: Voice) -> None: ...
    def trigger_note(self, voice: Voice, pitch: int, duration: float, when: float) -> None: ...
    def release_all(self, voice: Voice) -> None: ...
    def set_master_gain(self, db: float, ramp: float = 0.1) -> None: ...
    def close(self) -> None: ...


class ScheduledBackend:
    """
    Base for backends that play notes on the running event loop.

    Note-on and note-off are placed with `loop.call_at`, and every pending
    handle is tracked per voice so `release_all` can cancel what has not
    sounded yet and silence what is sounding.

    Subclasses implement `_open`, `_setup_voice`, `_note_on`, `_note_off`,
    `_apply_master_gain` and `_close`.
    """

    name = "backend"

    def __init__(self, *, master_db: float = 0.0, history_size: int = 512):
        self.voices: Dict[str, Voice] = {}
        self.master_db = float(master_db)
        self.acquired = False
        self.history: Deque[NoteEvent] = deque(maxlen=history_size)
        self._pending: Dict[str, Set[asyncio.Handle]] = defaultdict(set)
        self._sounding: Dict[str, Counter] = defaultdict(Counter)
        self._ramp: list = []
        self._applied_db = self.master_db

    # -- lifecycle --

    async def acquire(self) -> None:
        if self.acquired:
            return
        await self._open()
        self.acquired = True
        for voice in self.voices.values():
            self._setup_voice(voice)
        self._set_gain_now(self.master_db)
        logger.info("[%s] acquired, %d voices", self.name, len(self.voices))

    def configure_voice(self, voice: Voice) -> None:
        voice.backend = self
        self.voices[voice.name] = voice
        if self.acquired:
            self._setup_voice(voice)

    def close(self) -> None:
        for voice in list(self.voices.values()):
            self.release_all(voice)
        self._cancel_ramp()
        if self.acquired:
            self._close()
            logger.info("[%s] closed", self.name)
        self.acquired = False

    # -- notes --

    def trigger_note(self, voice: Voice, pitch: int, duration: float, when: float) -> None:
        if not self.acquired:
            return
        loop = asyncio.get_running_loop()
        vel = int(clamp(round(voice.velocity * 127), 0, 127))
        self.history.append(
            NoteEvent(
                voice=voice.name,
                pitch=pitch,
                duration=duration,
                when=when,
                velocity=voice.velocity,
                channel=voice.channel,
            )
        )
        logger.debug("[%s] %s pitch=%d dur=%.2fs at %.3f", self.name, voice.name, pitch, duration, when)
        self._call_at(loop, voice.name, when, self._start_note, voice, pitch, vel)
        self._call_at(loop, voice.name, when + max(0.01, duration), self._end_note, voice, pitch)

    def _call_at(self, loop, voice_name: str, when: float, fn, *args) -> None:
        pending = self._pending[voice_name]
        handle = None

        def run():
            pending.discard(handle)
            fn(*args)

        handle = loop.call_at(when, run)
        pending.add(handle)

    def _start_note(self, voice: Voice, pitch: int, vel: int) -> None:
        self._sounding[voice.name][pitch] += 1
        self._note_on(voice.channel, pitch, vel)

    def _end_note(self, voice: Voice, pitch: int) -> None:
        sounding = self._sounding[voice.name]
        if sounding[pitch] <= 0:
            return
        sounding[pitch] -= 1
        if sounding[pitch] == 0:
            del sounding[pitch]
        self._note_off(voice.channel, pitch)

    def release_all(self, voice: Voice) -> None:
        pending = self._pending.pop(voice.name, set())
        for handle in pending:
            handle.cancel()
        sounding = self._sounding.pop(voice.name, Counter())
        for pitch in sounding:
            self._note_off(voice.channel, pitch)
        if pending or sounding:
            logger.debug(
                "[%s] released %s: %d pending, %d sounding",
                self.name, voice.name, len(pending), len(sounding),
            )

    def pending_count(self, voice: Optional[Voice] = None) -> int:
        if voice is not None:
            return len(self._pending.get(voice.name, ()))
        return sum(len(p) for p in self._pending.values())

    def sounding(self, voice: Voice) -> Tuple[int, ...]:
        return tuple(sorted(self._sounding.get(voice.name, ())))

    # -- master gain --

    def set_master_gain(self, db: float, ramp: float = 0.1) -> None:
        """Move the master gain to `db`, smoothed over `ramp` seconds."""
        db = max(MIN_DB, float(db))
        self.master_db = db
        if not self.acquired:
            return
        self._cancel_ramp()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is None or ramp <= 0:
            self._set_gain_now(db)
            return
        steps = 10
        start = self._applied_db
        for i in range(1, steps + 1):
            level = start + (db - start) * i / steps
            self._ramp.append(loop.call_later(ramp * i / steps, self._set_gain_now, level))

    def _set_gain_now(self, db: float) -> None:
        self._applied_db = db
        self._apply_master_gain(db_to_linear(db) if db > MIN_DB else 0.0)

    def _cancel_ramp(self) -> None:
        for handle in self._ramp:
            handle.cancel()
        self._ramp = []

    # -- subclass hooks --

    async def _open(self) -> None:
        raise NotImplementedError

    def _setup_voice(self, voice: Voice) -> None:
        raise NotImplementedError

    def _note_on(self, channel: int, pitch: int, velocity: int) -> None:
        raise NotImplementedError

    def _note_off(self, channel: int, pitch: int) -> None:
        raise NotImplementedError

    def _apply_master_gain(self, linear: float) -> None:
        raise NotImplementedError

    def _close(self) -> None:
        pass
