"""
Timing nodes: Transport and SecondTicker.
"""

import asyncio
import heapq
import itertools
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..durations import Duration, to_beats
from .base import Node

logger = logging.getLogger(__name__)


@dataclass
class _Repeat:
    callback: Callable[[float], None]
    interval: float  # beats
    next_beat: float


class Transport(Node):
    """
    Musical clock that fires repeating callbacks in beat order.

    Callbacks receive the clock time (event loop seconds) at which their
    firing is due. The run loop schedules `lookahead` seconds ahead so sinks
    can place notes slightly in the future. `advance_to` drives the same
    logic by hand.
    """

    def __init__(
        self,
        bpm: float = 120.0,
        beats_per_measure: int = 4,
        lookahead: float = 0.1,
        update_interval: float = 0.025,
    ):
        self.bpm = bpm
        self.beats_per_measure = beats_per_measure
        self.lookahead = lookahead
        self.update_interval = update_interval
        self._events: Dict[int, _Repeat] = {}
        self._heap: List[Tuple[float, int, int]] = []
        self._counter = 0
        self._ids = itertools.count(1)
        self._position = 0.0
        self._origin = 0.0
        self._running = False
        self._generation = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def position(self) -> float:
        """Beats scheduled so far."""
        return self._position

    def seconds_per_beat(self) -> float:
        return 60.0 / max(1e-9, self.bpm)

    def to_beats(self, duration: Duration) -> float:
        return to_beats(duration, self.beats_per_measure)

    def to_seconds(self, duration: Duration) -> float:
        return self.to_beats(duration) * self.seconds_per_beat()

    def clock_time(self, beat: float) -> float:
        return self._origin + beat * self.seconds_per_beat()

    # -- scheduling --

    def schedule_repeat(
        self,
        callback: Callable[[float], None],
        interval: Duration,
        start: Duration = 0.0,
    ) -> int:
        """Fire `callback` every `interval` from `start`. Returns an event id."""
        beats = self.to_beats(interval)
        if beats <= 0:
            raise ValueError(f"Repeat interval must be positive, got {interval!r}")
        first = self.to_beats(start)
        if first < self._position:
            first += math.ceil((self._position - first) / beats) * beats
        eid = next(self._ids)
        self._events[eid] = _Repeat(callback=callback, interval=beats, next_beat=first)
        self._push(eid, first)
        return eid

    def clear(self, event_id: int) -> None:
        """Cancel a scheduled repeat. Unknown ids are ignored."""
        self._events.pop(event_id, None)

    def scheduled_count(self) -> int:
        return len(self._events)

    def _push(self, eid: int, when: float) -> None:
        self._counter += 1
        heapq.heappush(self._heap, (when, self._counter, eid))

    def advance_to(self, beat: float) -> None:
        """Fire every callback due at or before `beat`, in time order."""
        while self._heap and self._heap[0][0] <= beat:
            when, _, eid = heapq.heappop(self._heap)
            ev = self._events.get(eid)
            if ev is None or ev.next_beat != when:
                continue
            ev.next_beat = when + ev.interval
            self._push(eid, ev.next_beat)
            ev.callback(self.clock_time(when))
        if beat > self._position:
            self._position = beat

    # -- run loop --

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        self._generation += 1
        generation = self._generation
        self._running = True
        spb = self.seconds_per_beat()
        self._origin = loop.time() - self._position * spb
        logger.info("Transport started at %.1f BPM", self.bpm)
        try:
            while self._running and generation == self._generation:
                now_beat = (loop.time() - self._origin) / spb
                self.advance_to(now_beat + self.lookahead / spb)
                await asyncio.sleep(self.update_interval)
        finally:
            if generation == self._generation:
                self._running = False

    def stop(self) -> None:
        """Stop the run loop and rewind to beat zero."""
        if self._running:
            logger.info("Transport stopped at beat %.2f", self._position)
        self._generation += 1
        self._running = False
        self._position = 0.0


class SecondTicker(Node):
    """Calls `callback` once per `interval` seconds without drifting."""

    def __init__(self, callback: Optional[Callable[[], None]] = None, interval: float = 1.0):
        self.callback = callback
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        next_t = loop.time()
        while True:
            next_t += self.interval
            await asyncio.sleep(max(0.0, next_t - loop.time()))
            if self.callback is None:
                continue
            try:
                self.callback()
            except Exception:
                logger.error("Tick callback failed", exc_info=True)

    def arm(self) -> None:
        """Run the ticker as a task, replacing any previous one."""
        self.stop()
        self._task = asyncio.get_running_loop().create_task(self.start())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
