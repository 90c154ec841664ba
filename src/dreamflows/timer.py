"""
Countdown timer: minutes:seconds ticking once per second while running.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .events import EventBus, StateChangeEvent
from .nodes.timing import SecondTicker
from .render import Renderer
from .utils import clamp

logger = logging.getLogger(__name__)


@dataclass
class TimerConfig:
    """Configuration for the countdown timer."""

    default_minutes: int = 25
    min_minutes: int = 1
    max_minutes: int = 120
    tick_interval: float = 1.0


@dataclass
class TimerState:
    minutes: int = 25
    seconds: int = 0
    running: bool = False

    @property
    def minutes_text(self) -> str:
        return f"{self.minutes:02d}"

    @property
    def seconds_text(self) -> str:
        return f"{self.seconds:02d}"


class CountdownTimer:
    """
    Idle/running state machine.

    Calls that don't fit the current state (editing while running, stopping
    while idle) are ignored. Completion resets to the default duration and
    is reported once as a completed StateChangeEvent.
    """

    def __init__(
        self,
        bus: EventBus,
        *,
        config: Optional[TimerConfig] = None,
        ticker: Optional[SecondTicker] = None,
        renderer: Optional[Renderer] = None,
    ):
        self.bus = bus
        self.config = config or TimerConfig()
        self.renderer = renderer or Renderer(bus)
        self.state = TimerState(minutes=self.config.default_minutes)
        self.ticker = ticker or SecondTicker(interval=self.config.tick_interval)
        self.ticker.callback = self.tick

    @property
    def running(self) -> bool:
        return self.state.running

    @property
    def minutes(self) -> int:
        return self.state.minutes

    @property
    def seconds(self) -> int:
        return self.state.seconds

    def start(self) -> None:
        if self.state.running:
            return
        self.state.running = True
        self.ticker.arm()
        logger.info("Timer started at %s:%s", self.state.minutes_text, self.state.seconds_text)
        self.bus.publish(StateChangeEvent(running=True))

    def stop(self) -> None:
        if not self.state.running:
            return
        self.ticker.stop()
        self.state.running = False
        logger.info("Timer stopped at %s:%s", self.state.minutes_text, self.state.seconds_text)
        self.bus.publish(StateChangeEvent(running=False))

    def tick(self) -> None:
        """Advance one second. Completes the session after 00:00."""
        if not self.state.running:
            return
        st = self.state
        if st.seconds == 0:
            if st.minutes == 0:
                self._complete()
                return
            st.minutes -= 1
            st.seconds = 59
        else:
            st.seconds -= 1
        self.render()

    def _complete(self) -> None:
        self.ticker.stop()
        self.state = TimerState(minutes=self.config.default_minutes)
        logger.info("Session complete")
        self.render()
        self.bus.publish(StateChangeEvent(running=False, completed=True))

    def set_duration(self, minutes: int) -> None:
        """Set the duration while idle, clamped to the allowed range."""
        if self.state.running:
            return
        self.state.minutes = int(clamp(int(minutes), self.config.min_minutes, self.config.max_minutes))
        self.state.seconds = 0
        self.render()

    def render(self) -> None:
        self.renderer.render(self.state.minutes, self.state.seconds)
