"""Tests for dreamflows/timer.py.

Covers:
- set_duration clamping and the running lock
- tick arithmetic: seconds, minute rollover, completion
- start/stop idempotence and ticker arming
- render and state-change events
"""

from __future__ import annotations

import asyncio

import pytest

from dreamflows.events import RenderEvent, StateChangeEvent
from dreamflows.nodes.timing import SecondTicker
from dreamflows.timer import CountdownTimer, TimerConfig

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_timer(bus, ticker, **kwargs) -> CountdownTimer:
    return CountdownTimer(bus, ticker=ticker, config=TimerConfig(**kwargs))


def _set_time(timer: CountdownTimer, minutes: int, seconds: int) -> None:
    timer.state.minutes = minutes
    timer.state.seconds = seconds


# ---------------------------------------------------------------------------
# Initial state
# ---------------------------------------------------------------------------


class TestInitialState:
    def test_defaults_to_25_minutes_idle(self, bus, ticker) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        assert (t.minutes, t.seconds, t.running) == (25, 0, False)

    def test_ticker_callback_is_wired(self, bus, ticker) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        assert ticker.callback == t.tick


# ---------------------------------------------------------------------------
# set_duration
# ---------------------------------------------------------------------------


class TestSetDuration:
    @pytest.mark.parametrize("minutes", [1, 2, 25, 59, 60, 119, 120])
    def test_sets_minutes_and_zeroes_seconds(self, bus, ticker, minutes) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        _set_time(t, 10, 42)
        t.set_duration(minutes)
        assert (t.minutes, t.seconds) == (minutes, 0)

    def test_every_value_in_range(self, bus, ticker) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        for m in range(1, 121):
            t.set_duration(m)
            assert (t.minutes, t.seconds) == (m, 0)

    @pytest.mark.parametrize("minutes,expected", [(0, 1), (-5, 1), (121, 120), (999, 120)])
    def test_clamps(self, bus, ticker, minutes, expected) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.set_duration(minutes)
        assert t.minutes == expected

    def test_ignored_while_running(self, bus, ticker) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.start()
        ticker.fire(3)
        t.set_duration(5)
        assert (t.minutes, t.seconds) == (24, 57)

    def test_renders(self, bus, ticker, events) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.set_duration(7)
        ev = events.last(RenderEvent)
        assert ev.text == "07:00"
        assert ev.title == "[07:00] DREAM.FLOWS"


# ---------------------------------------------------------------------------
# tick
# ---------------------------------------------------------------------------


class TestTick:
    def test_decrements_seconds(self, bus, ticker) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.start()
        _set_time(t, 3, 10)
        ticker.fire()
        assert (t.minutes, t.seconds) == (3, 9)

    def test_rolls_over_minute(self, bus, ticker) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.start()
        _set_time(t, 3, 0)
        ticker.fire()
        assert (t.minutes, t.seconds) == (2, 59)

    def test_renders_after_every_tick(self, bus, ticker, events) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.start()
        _set_time(t, 1, 1)
        ticker.fire(2)
        assert [e.text for e in events.of(RenderEvent)] == ["01:00", "00:59"]

    def test_tick_while_idle_is_ignored(self, bus, ticker) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.tick()
        assert (t.minutes, t.seconds) == (25, 0)

    def test_counts_down_a_full_minute(self, bus, ticker) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.set_duration(1)
        t.start()
        ticker.fire(60)
        assert (t.minutes, t.seconds, t.running) == (0, 0, True)


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


class TestCompletion:
    def test_zero_zero_completes_and_resets(self, bus, ticker, events) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.start()
        _set_time(t, 0, 0)
        ticker.fire()
        assert (t.minutes, t.seconds, t.running) == (25, 0, False)
        assert ticker.active is False

    def test_completion_reported_once(self, bus, ticker, events) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.start()
        _set_time(t, 0, 0)
        ticker.fire(3)
        completed = [e for e in events.of(StateChangeEvent) if e.completed]
        assert len(completed) == 1
        assert completed[0].running is False
        assert completed[0].status_label == "SESSION_COMPLETE"
        assert completed[0].button_label == "RESET_SEQUENCE"

    def test_completion_renders_reset_value(self, bus, ticker, events) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.start()
        _set_time(t, 0, 0)
        ticker.fire()
        assert events.last(RenderEvent).text == "25:00"

    def test_custom_default_duration(self, bus, ticker) -> None:
        t = _make_timer(bus, ticker, default_minutes=50)
        t.start()
        _set_time(t, 0, 0)
        ticker.fire()
        assert t.minutes == 50


# ---------------------------------------------------------------------------
# start / stop
# ---------------------------------------------------------------------------


class TestStartStop:
    def test_start_arms_ticker_and_reports(self, bus, ticker, events) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.start()
        assert t.running is True
        assert ticker.arms == 1
        ev = events.last(StateChangeEvent)
        assert (ev.running, ev.completed) == (True, False)
        assert ev.status_label == "SYSTEM_ACTIVE"
        assert ev.button_label == "ABORT_SEQUENCE"

    def test_start_twice_arms_once(self, bus, ticker) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.start()
        t.start()
        assert ticker.arms == 1

    def test_stop_cancels_ticker(self, bus, ticker, events) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.start()
        t.stop()
        assert t.running is False
        assert ticker.active is False
        assert events.last(StateChangeEvent).status_label == "SYSTEM_IDLE"

    def test_stop_while_idle_is_noop(self, bus, ticker, events) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.stop()
        assert ticker.stops == 0
        assert events.of(StateChangeEvent) == []

    def test_stop_keeps_remaining_time(self, bus, ticker) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.start()
        ticker.fire(5)
        t.stop()
        assert (t.minutes, t.seconds) == (24, 55)

    def test_no_ticks_after_stop(self, bus, ticker) -> None:
        t = CountdownTimer(bus, ticker=ticker)
        t.start()
        t.stop()
        ticker.fire(10)
        assert (t.minutes, t.seconds) == (25, 0)

    @pytest.mark.asyncio
    async def test_failing_render_subscriber_does_not_halt_countdown(self, bus) -> None:
        renders = []

        def fragile_display(ev: RenderEvent) -> None:
            renders.append(ev.text)
            if len(renders) == 1:
                raise RuntimeError("display went away")

        bus.subscribe(RenderEvent, fragile_display)
        t = CountdownTimer(bus, ticker=SecondTicker(interval=0.01))
        t.start()
        await asyncio.sleep(0.06)
        t.stop()
        assert len(renders) >= 3
        assert renders[:2] == ["24:59", "24:58"]
        assert t.seconds < 58
