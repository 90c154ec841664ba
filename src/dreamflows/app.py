"""
FocusApp: the timer, gesture interpreter, renderer and composer wired together.
"""

import asyncio
import logging
import random
from typing import Optional, Set

from .composer import AmbientComposer, ComposerConfig
from .config import Settings, make_backend
from .events import EventBus, EventFilter, StateChangeEvent
from .gesture import GestureConfig, GestureInterpreter
from .nodes.timing import SecondTicker, Transport
from .render import Renderer
from .synth.base import AudioBackend, AudioUnavailableError
from .timer import CountdownTimer, TimerConfig

logger = logging.getLogger(__name__)

TOGGLE_KEYS = (" ", "space", "Space")


class FocusApp:
    """
    Owns one focus session's components.

    The timer, renderer and gesture interpreter are built eagerly. The
    composer is built too, but only acquires audio on the first start.
    Host input goes through `on_pointer_*`, `on_key`, `toggle` and
    `set_volume`; output comes back as events on `bus`.
    """

    def __init__(
        self,
        backend: AudioBackend,
        *,
        bus: Optional[EventBus] = None,
        timer_config: Optional[TimerConfig] = None,
        gesture_config: Optional[GestureConfig] = None,
        composer_config: Optional[ComposerConfig] = None,
        ticker: Optional[SecondTicker] = None,
        transport: Optional[Transport] = None,
        rng: Optional[random.Random] = None,
    ):
        self.bus = bus or EventBus()
        self.renderer = Renderer(self.bus, rng=rng)
        self.timer = CountdownTimer(
            self.bus, config=timer_config, ticker=ticker, renderer=self.renderer
        )
        self.gesture = GestureInterpreter(self.timer, self.request_toggle, config=gesture_config)
        self.composer = AmbientComposer(
            backend, config=composer_config, transport=transport, rng=rng
        )
        self._starting = False
        self._stop_requested = False
        self._tasks: Set[asyncio.Task] = set()
        self.bus.subscribe(
            StateChangeEvent,
            self._on_session_complete,
            filter=EventFilter(predicate=lambda ev: ev.completed),
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "FocusApp":
        config = ComposerConfig(bpm=settings.bpm, preset=settings.preset)
        return cls(make_backend(settings), composer_config=config, **kwargs)

    @property
    def running(self) -> bool:
        return self.timer.running

    # -- run state --

    async def start(self) -> None:
        """Start audio, then the countdown. Raises AudioUnavailableError."""
        if self.timer.running or self._starting:
            return
        self._starting = True
        self._stop_requested = False
        try:
            await self.composer.start()
        except AudioUnavailableError as e:
            logger.warning("Audio unavailable, staying idle: %s", e)
            self.bus.publish(StateChangeEvent(running=False))
            raise
        finally:
            self._starting = False
        if self._stop_requested:
            self._stop_requested = False
            logger.info("Stop requested while starting, staying idle")
            self.composer.stop()
            return
        self.timer.start()

    def stop(self) -> None:
        if self._starting:
            self._stop_requested = True
        self.timer.stop()
        self.composer.stop()

    async def toggle(self) -> None:
        if self.timer.running or self._starting:
            self.stop()
        else:
            await self.start()

    def request_toggle(self) -> asyncio.Task:
        """Toggle from synchronous input handlers."""
        task = asyncio.get_running_loop().create_task(self.toggle())
        self._tasks.add(task)
        task.add_done_callback(self._toggle_done)
        return task

    def _toggle_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        # Audio failures were already reported by start().
        if exc is not None and not isinstance(exc, AudioUnavailableError):
            logger.error("Toggle failed", exc_info=exc)

    def _on_session_complete(self, ev: StateChangeEvent) -> None:
        self.composer.stop()

    # -- host input --

    def on_pointer_down(self, y: float) -> None:
        self.gesture.on_pointer_down(y)

    def on_pointer_move(self, y: float) -> None:
        self.gesture.on_pointer_move(y)

    def on_pointer_up(self) -> None:
        self.gesture.on_pointer_up()

    def on_key(self, key: str) -> bool:
        """Handle a key press. Returns True when the default action should be suppressed."""
        if key in TOGGLE_KEYS:
            self.request_toggle()
            return True
        return False

    def set_volume(self, db: float) -> None:
        self.composer.set_volume(db)

    def render(self) -> None:
        self.timer.render()

    def close(self) -> None:
        self.gesture.cancel()
        self.renderer.cancel_settle()
        self.timer.stop()
        self.composer.close()
        for task in list(self._tasks):
            task.cancel()
