"""
Voice presets for synthesizers.
"""

from typing import Dict, Tuple

# Voice presets: voice name -> (bank, program)
# GM programs: https://www.midi.org/specifications/midi-reference-tables/gm-level-1-program-chart
VOICE_PRESETS: Dict[str, Dict[str, Tuple[int, int]]] = {
    "ambient": {
        "drone": (0, 89),  # Pad 2 (warm)
        "melody": (0, 11),  # Vibraphone
    },
    "glass": {
        "drone": (0, 94),  # Pad 7 (halo)
        "melody": (0, 8),  # Celesta
    },
    "strings": {
        "drone": (0, 48),  # String Ensemble 1
        "melody": (0, 46),  # Orchestral Harp
    },
    "choir": {
        "drone": (0, 52),  # Choir Aahs
        "melody": (0, 10),  # Music Box
    },
}

# MIDI channels for each voice
VOICE_CHANNELS: Dict[str, int] = {
    "drone": 0,
    "melody": 1,
}


def get_preset(name: str) -> Dict[str, Tuple[int, int]]:
    """Get a voice preset by name."""
    return VOICE_PRESETS.get(name, VOICE_PRESETS["ambient"])
