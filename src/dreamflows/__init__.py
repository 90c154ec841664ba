"""
dreamflows - focus timer with generative ambient audio

A small asyncio core: a countdown timer you set by dragging on the time
display, and an ambient composer layering prime-period loops on a musical
clock.

Quick Start:
    from dreamflows import FocusApp, Settings, connect_display

    app = FocusApp.from_settings(Settings.from_env())
    connect_display(app.bus, my_display)
    await app.toggle()

Architecture:
    - events: Event classes and EventBus (pub/sub)
    - nodes: Transport (musical clock) and SecondTicker
    - loops: Loop and LoopScheduler
    - composer: AmbientComposer and its configuration
    - timer, gesture, render: countdown, drag/tap handling, display events
    - synth: audio backends (FluidSynth, MIDI)
    - app: FocusApp aggregate
"""

# Events
from .events import (
    Event,
    RenderEvent,
    GlitchRenderEvent,
    StateChangeEvent,
    NoteEvent,
    EventBus,
    EventFilter,
    Subscription,
)

# Scales and durations
from .scales import AMBIENT_CHORDS, FOCUS_SCALE, ChordCycle, note_to_midi
from .durations import to_beats

# Nodes
from .nodes import Node, SecondTicker, Transport

# Scheduling and composition
from .loops import Loop, LoopScheduler
from .composer import AmbientComposer, ComposerConfig

# Timer, gestures, rendering
from .timer import CountdownTimer, TimerConfig, TimerState
from .gesture import DragGesture, GestureConfig, GestureInterpreter, GesturePhase
from .render import Display, Renderer, connect_display

# Utils
from .utils import RandomPolicy, DefaultRandomPolicy

# Synth
from .synth import (
    AudioBackend,
    AudioUnavailableError,
    FluidSynthBackend,
    MidiBackend,
    Voice,
    VOICE_PRESETS,
    get_preset,
)

# App
from .config import Settings, make_backend
from .app import FocusApp


__version__ = "0.1.0"

__all__ = [
    # Events
    "Event",
    "RenderEvent",
    "GlitchRenderEvent",
    "StateChangeEvent",
    "NoteEvent",
    "EventBus",
    "EventFilter",
    "Subscription",
    # Scales and durations
    "AMBIENT_CHORDS",
    "FOCUS_SCALE",
    "ChordCycle",
    "note_to_midi",
    "to_beats",
    # Nodes
    "Node",
    "SecondTicker",
    "Transport",
    # Scheduling and composition
    "Loop",
    "LoopScheduler",
    "AmbientComposer",
    "ComposerConfig",
    # Timer, gestures, rendering
    "CountdownTimer",
    "TimerConfig",
    "TimerState",
    "DragGesture",
    "GestureConfig",
    "GestureInterpreter",
    "GesturePhase",
    "Display",
    "Renderer",
    "connect_display",
    # Utils
    "RandomPolicy",
    "DefaultRandomPolicy",
    # Synth
    "AudioBackend",
    "AudioUnavailableError",
    "FluidSynthBackend",
    "MidiBackend",
    "Voice",
    "VOICE_PRESETS",
    "get_preset",
    # App
    "Settings",
    "make_backend",
    "FocusApp",
]
