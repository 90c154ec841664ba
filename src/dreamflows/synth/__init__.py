"""
Synth module for dreamflows.

Provides audio backends:
- FluidSynthBackend: software synth output
- MidiBackend: external synth over MIDI
"""

from .base import (
    AudioBackend,
    AudioUnavailableError,
    ScheduledBackend,
    Voice,
    gain_db_to_cc,
)
from .fluidsynth import FluidSynthBackend
from .midi import MidiBackend, find_best_port
from .presets import VOICE_CHANNELS, VOICE_PRESETS, get_preset

__all__ = [
    "AudioBackend",
    "AudioUnavailableError",
    "ScheduledBackend",
    "Voice",
    "gain_db_to_cc",
    "FluidSynthBackend",
    "MidiBackend",
    "find_best_port",
    "VOICE_CHANNELS",
    "VOICE_PRESETS",
    "get_preset",
]
