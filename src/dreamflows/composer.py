"""
Ambient composer: a drone chord cycle plus three phasing melody loops.

The melody loops repeat every 7, 11 and 13 beats. Because the periods are
pairwise coprime, their combined pattern only lines up again after
7 * 11 * 13 = 1001 beats.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .durations import Duration
from .loops import LoopScheduler
from .nodes.timing import Transport
from .scales import AMBIENT_CHORDS, FOCUS_SCALE, ChordCycle, notes_to_midi
from .synth.base import AudioBackend, Voice
from .synth.presets import VOICE_CHANNELS, get_preset
from .utils import DefaultRandomPolicy, RandomPolicy, lcm, pairwise_coprime

logger = logging.getLogger(__name__)


@dataclass
class ComposerConfig:
    """Configuration for the ambient composer."""

    bpm: float = 120.0
    beats_per_measure: int = 4
    preset: str = "ambient"
    chords: Tuple[Tuple[str, ...], ...] = AMBIENT_CHORDS
    scale: Tuple[str, ...] = FOCUS_SCALE
    drone_period: Duration = "4m"
    drone_release: Duration = "16n"  # cut from the sustain so chords don't overlap
    drone_gain_db: float = -12.0
    melody_gain_db: float = -12.0
    melody_periods: Tuple[int, int, int] = (7, 11, 13)
    melody_gate: Duration = "8n"
    accent_probability: float = 0.5
    accent_offset: Duration = "8n"
    low_note: str = "C3"
    low_gate: Duration = "2n"
    volume_ramp: float = 0.1


class AmbientComposer:
    """
    Builds the voices and loops on first start and runs them on a transport.

    Initialization is lazy: the backend is only acquired when `start()` is
    first awaited. If acquisition fails the error propagates and the next
    `start()` tries again.
    """

    def __init__(
        self,
        backend: AudioBackend,
        *,
        config: Optional[ComposerConfig] = None,
        transport: Optional[Transport] = None,
        rng: Optional[random.Random] = None,
        random_policy: Optional[RandomPolicy] = None,
    ):
        self.backend = backend
        self.config = config or ComposerConfig()
        self.transport = transport or Transport(
            bpm=self.config.bpm, beats_per_measure=self.config.beats_per_measure
        )
        self.scheduler = LoopScheduler(self.transport)
        self.rng = rng or random.Random()
        self.random_policy = random_policy or DefaultRandomPolicy()
        self.voices: Dict[str, Voice] = {}
        self.chords: Optional[ChordCycle] = None
        self.initialized = False
        self.playing = False
        self._scale: Tuple[int, ...] = ()
        self._init_task: Optional[asyncio.Future] = None
        self._clock_task: Optional[asyncio.Task] = None

        periods = self.config.melody_periods
        if not pairwise_coprime(periods):
            logger.warning("Melody periods %s are not pairwise coprime", periods)

    # -- lifecycle --

    async def initialize(self) -> None:
        """Acquire the backend and build voices and loops, once."""
        if self.initialized:
            return
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        task = self._init_task
        try:
            await task
        finally:
            # Failed or cancelled: let the next caller try again.
            if not self.initialized and task.done() and self._init_task is task:
                self._init_task = None

    async def _initialize(self) -> None:
        cfg = self.config
        scale = notes_to_midi(cfg.scale)
        if len(scale) < 3:
            raise ValueError("The melody scale needs at least three notes")
        chords = ChordCycle(cfg.chords)

        await self.backend.acquire()

        programs = get_preset(cfg.preset)
        for name, gain_db in (("drone", cfg.drone_gain_db), ("melody", cfg.melody_gain_db)):
            voice = Voice(
                name=name,
                channel=VOICE_CHANNELS[name],
                program=programs[name],
                gain_db=gain_db,
            )
            self.backend.configure_voice(voice)
            self.voices[name] = voice

        self.chords = chords
        self._scale = scale
        period_a, period_b, period_c = cfg.melody_periods
        self.scheduler.add("drone", cfg.drone_period, self._play_drone)
        self.scheduler.add("melody_a", period_a, self._play_melody_a)
        self.scheduler.add("melody_b", period_b, self._play_melody_b)
        self.scheduler.add("melody_c", period_c, self._play_melody_c)
        self.initialized = True
        logger.info(
            "Composer initialized: %d loops, melody cycle %d beats",
            len(self.scheduler),
            lcm(*cfg.melody_periods),
        )

    async def start(self) -> None:
        await self.initialize()
        if self.playing:
            return
        self.scheduler.start_all(at=0.0)
        self.playing = True
        self._clock_task = asyncio.get_running_loop().create_task(self.transport.start())
        self._clock_task.add_done_callback(self._clock_done)
        logger.info("Composer started")

    def _clock_done(self, task: asyncio.Task) -> None:
        if task.cancelled() or task is not self._clock_task:
            return
        exc = task.exception()
        if exc is None:
            return
        logger.error("Transport failed, stopping composer", exc_info=exc)
        self._clock_task = None
        self.stop()

    def stop(self) -> None:
        if not self.playing:
            return
        self.transport.stop()
        if self._clock_task is not None:
            self._clock_task.cancel()
            self._clock_task = None
        self.scheduler.stop_all()
        for voice in self.voices.values():
            voice.release()
        self.playing = False
        logger.info("Composer stopped")

    def set_volume(self, db: float) -> None:
        """Set the master volume in dB with a short ramp."""
        self.backend.set_master_gain(db, ramp=self.config.volume_ramp)

    def close(self) -> None:
        self.stop()
        self.backend.close()

    # -- loops --

    def _seconds(self, duration: Duration) -> float:
        return self.transport.to_seconds(duration)

    def _play_drone(self, time: float) -> None:
        chord = self.chords.advance()
        period = self.transport.to_beats(self.config.drone_period)
        sustain = max(period - self.transport.to_beats(self.config.drone_release), 0.0)
        self.voices["drone"].trigger(chord, self._seconds(sustain), time)

    def _play_melody_a(self, time: float) -> None:
        melody = self.voices["melody"]
        gate = self._seconds(self.config.melody_gate)
        melody.trigger(self._scale[0], gate, time)
        if self.random_policy.accept(self.config.accent_probability, rng=self.rng):
            melody.trigger(self._scale[2], gate, time + self._seconds(self.config.accent_offset))

    def _play_melody_b(self, time: float) -> None:
        pitch = self.random_policy.choice(self._scale, rng=self.rng)
        self.voices["melody"].trigger(pitch, self._seconds(self.config.melody_gate), time)

    def _play_melody_c(self, time: float) -> None:
        self.voices["melody"].trigger(
            self.config.low_note, self._seconds(self.config.low_gate), time
        )
