"""
Gesture interpreter for the time display.

A pointer interaction is either a tap (toggle the timer) or a vertical drag
(edit the duration). The two are told apart by a movement threshold that,
once crossed, stays crossed for the rest of the gesture:

    IDLE --down--> ARMED --|delta| > threshold--> DRAGGING
      ^              |                               |
      +-----up: tap--+------------up: glitch---------+
"""

import enum
import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional

from .timer import CountdownTimer
from .utils import clamp

logger = logging.getLogger(__name__)


@dataclass
class GestureConfig:
    """Configuration for drag handling."""

    threshold_px: float = 5.0
    sensitivity_px_per_minute: float = 5.0
    settle_delay: float = 0.2


class GesturePhase(enum.Enum):
    IDLE = "idle"
    ARMED = "armed"
    DRAGGING = "dragging"


@dataclass
class DragGesture:
    anchor_y: float
    anchor_minutes: int
    phase: GesturePhase = GesturePhase.ARMED

    @property
    def has_crossed_threshold(self) -> bool:
        return self.phase is GesturePhase.DRAGGING


class GestureInterpreter:
    """Turns pointer down/move/up on the display into taps and drags."""

    def __init__(
        self,
        timer: CountdownTimer,
        on_tap: Callable[[], None],
        *,
        config: Optional[GestureConfig] = None,
    ):
        self.timer = timer
        self.on_tap = on_tap
        self.config = config or GestureConfig()
        self.gesture: Optional[DragGesture] = None

    @property
    def phase(self) -> GesturePhase:
        return self.gesture.phase if self.gesture else GesturePhase.IDLE

    def on_pointer_down(self, y: float) -> None:
        if self.timer.running:
            return
        self.gesture = DragGesture(anchor_y=float(y), anchor_minutes=self.timer.minutes)

    def on_pointer_move(self, y: float) -> None:
        g = self.gesture
        if g is None:
            return
        delta = g.anchor_y - float(y)  # up is positive
        if g.phase is GesturePhase.ARMED:
            if abs(delta) <= self.config.threshold_px:
                return
            g.phase = GesturePhase.DRAGGING
        if self.timer.running:
            return
        delta_minutes = math.floor(delta / self.config.sensitivity_px_per_minute)
        cfg = self.timer.config
        minutes = int(clamp(g.anchor_minutes + delta_minutes, cfg.min_minutes, cfg.max_minutes))
        if minutes != self.timer.minutes:
            self.timer.set_duration(minutes)

    def on_pointer_up(self) -> None:
        g = self.gesture
        if g is None:
            return
        self.gesture = None
        if g.phase is GesturePhase.DRAGGING:
            logger.debug("Drag settled at %d minutes", self.timer.minutes)
            self.timer.renderer.glitch_then_settle(
                self.timer.minutes, self.timer.render, self.config.settle_delay
            )
        else:
            self.on_tap()

    def cancel(self) -> None:
        """Drop the current gesture without acting on it."""
        self.gesture = None
