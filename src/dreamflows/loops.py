"""
Loop scheduler: independent repeating callbacks on a shared transport.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .durations import Duration
from .nodes.timing import Transport

logger = logging.getLogger(__name__)


@dataclass
class Loop:
    """A callback repeated every `period` beats while armed."""

    name: str
    period: float
    callback: Callable[[float], None]
    running: bool = False
    fired: int = 0
    _event_id: Optional[int] = field(default=None, repr=False)

    def _fire(self, time: float) -> None:
        self.fired += 1
        self.callback(time)

    def start(self, transport: Transport, at: Duration = 0.0) -> None:
        if self.running:
            return
        self._event_id = transport.schedule_repeat(self._fire, self.period, start=at)
        self.running = True

    def stop(self, transport: Transport) -> None:
        if not self.running:
            return
        if self._event_id is not None:
            transport.clear(self._event_id)
        self._event_id = None
        self.running = False


class LoopScheduler:
    """Owns a set of loops and arms/disarms them together."""

    def __init__(self, transport: Transport):
        self.transport = transport
        self.loops: List[Loop] = []

    def add(self, name: str, period: Duration, callback: Callable[[float], None]) -> Loop:
        beats = self.transport.to_beats(period)
        if beats <= 0:
            raise ValueError(f"Loop {name!r} needs a positive period, got {period!r}")
        loop = Loop(name=name, period=beats, callback=callback)
        self.loops.append(loop)
        return loop

    def get(self, name: str) -> Loop:
        for loop in self.loops:
            if loop.name == name:
                return loop
        raise KeyError(name)

    def start_all(self, at: Duration = 0.0) -> None:
        for loop in self.loops:
            loop.start(self.transport, at)
        logger.debug("Armed %d loops", len(self.loops))

    def stop_all(self) -> None:
        for loop in self.loops:
            loop.stop(self.transport)
        logger.debug("Disarmed %d loops", len(self.loops))

    @property
    def running(self) -> bool:
        return any(loop.running for loop in self.loops)

    def __iter__(self):
        return iter(self.loops)

    def __len__(self):
        return len(self.loops)
