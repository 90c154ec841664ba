"""
Display rendering: settled MM:SS renders and the post-drag glitch.
"""

import asyncio
import logging
import random
from typing import Callable, List, Optional, Protocol

from .events import (
    EventBus,
    GlitchRenderEvent,
    RenderEvent,
    StateChangeEvent,
    Subscription,
)
from .utils import DefaultRandomPolicy, RandomPolicy

logger = logging.getLogger(__name__)

GLITCH_CHARS = "0123456789ABCDEF"


class Display(Protocol):
    """What a host UI implements to show the timer."""

    def on_render(self, minutes_text: str, seconds_text: str) -> None: ...
    def on_glitch_render(self, char1: str, char2: str) -> None: ...
    def on_state_change(self, running: bool, completed: bool) -> None: ...


def connect_display(bus: EventBus, display: Display) -> List[Subscription]:
    """Forward render and state events from the bus to a Display."""
    return [
        bus.subscribe(RenderEvent, lambda ev: display.on_render(ev.minutes_text, ev.seconds_text)),
        bus.subscribe(GlitchRenderEvent, lambda ev: display.on_glitch_render(ev.char1, ev.char2)),
        bus.subscribe(StateChangeEvent, lambda ev: display.on_state_change(ev.running, ev.completed)),
    ]


class Renderer:
    """Publishes render events for the time display."""

    def __init__(
        self,
        bus: EventBus,
        *,
        rng: Optional[random.Random] = None,
        random_policy: Optional[RandomPolicy] = None,
        glitch_probability: float = 0.5,
    ):
        self.bus = bus
        self.rng = rng or random.Random()
        self.random_policy = random_policy or DefaultRandomPolicy()
        self.glitch_probability = glitch_probability
        self._settle: Optional[asyncio.TimerHandle] = None

    def render(self, minutes: int, seconds: int) -> None:
        self.bus.publish(RenderEvent(minutes_text=f"{minutes:02d}", seconds_text=f"{seconds:02d}"))

    def glitch(self, minutes: int) -> GlitchRenderEvent:
        """Show the minutes with each digit possibly swapped for a random hex char."""
        digits = f"{minutes:02d}"
        chars = [
            self.random_policy.choice(GLITCH_CHARS, rng=self.rng)
            if self.random_policy.accept(self.glitch_probability, rng=self.rng)
            else d
            for d in digits[:2]
        ]
        ev = GlitchRenderEvent(char1=chars[0], char2=chars[1])
        self.bus.publish(ev)
        return ev

    def glitch_then_settle(self, minutes: int, settle: Callable[[], None], delay: float = 0.2) -> None:
        """Glitch now and call `settle` after `delay` seconds."""
        self.cancel_settle()
        self.glitch(minutes)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            settle()
            return
        self._settle = loop.call_later(delay, self._run_settle, settle)

    def _run_settle(self, settle: Callable[[], None]) -> None:
        self._settle = None
        settle()

    @property
    def settling(self) -> bool:
        return self._settle is not None

    def cancel_settle(self) -> None:
        if self._settle is not None:
            self._settle.cancel()
            self._settle = None
