#!/usr/bin/env python3
"""
Terminal focus session - countdown with the ambient composer playing.

Requirements:
    pip install -e .

Usage:
    python main_focus.py

Settings come from the environment:
    DREAMFLOWS_BACKEND=fluidsynth|midi
    DREAMFLOWS_SOUNDFONT=/usr/share/sounds/sf2/FluidR3_GM.sf2
    DREAMFLOWS_DRIVER=alsa
    DREAMFLOWS_MIDI_PORT="IAC Driver Bus 1"
    DREAMFLOWS_PRESET=ambient|glass|strings|choir
    DREAMFLOWS_VOLUME_DB=-6

What it does:
- Drags the display to set the session length (like a mouse drag upward)
- Starts the countdown and the drone + phasing melody loops
- Prints every render to the terminal until the session ends or Ctrl+C
"""

import asyncio
import logging

from dreamflows import AudioUnavailableError, FocusApp, Settings, connect_display

# Session length the simulated drag aims for
MINUTES = 30


class TerminalDisplay:
    def __init__(self) -> None:
        self.status = "SYSTEM_IDLE"
        self.done = asyncio.Event()

    def on_render(self, minutes_text: str, seconds_text: str) -> None:
        print(f"\r[{minutes_text}:{seconds_text}] DREAM.FLOWS  {self.status:<16}", end="", flush=True)

    def on_glitch_render(self, char1: str, char2: str) -> None:
        print(f"\r[{char1}{char2}:00] DREAM.FLOWS  {self.status:<16}", end="", flush=True)

    def on_state_change(self, running: bool, completed: bool) -> None:
        if running:
            self.status = "SYSTEM_ACTIVE"
        elif completed:
            self.status = "SESSION_COMPLETE"
            self.done.set()
        else:
            self.status = "SYSTEM_IDLE"
        print(f"\n{self.status}")


def drag_to(app: FocusApp, minutes: int) -> None:
    """Simulate a vertical drag on the display."""
    px_per_minute = app.gesture.config.sensitivity_px_per_minute
    delta = (minutes - app.timer.minutes) * px_per_minute
    app.on_pointer_down(500.0)
    app.on_pointer_move(500.0 - delta)
    app.on_pointer_up()


async def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    app = FocusApp.from_settings(settings)
    display = TerminalDisplay()
    connect_display(app.bus, display)
    app.render()

    drag_to(app, MINUTES)
    await asyncio.sleep(0.3)

    try:
        await app.start()
    except AudioUnavailableError as e:
        print(f"\nAudio unavailable: {e}")
        return

    try:
        await display.done.wait()
    finally:
        app.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nABORT_SEQUENCE")
