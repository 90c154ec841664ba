"""
Pitch names and harmony helpers.
"""

import re
from dataclasses import dataclass, field
from typing import Sequence, Tuple, Union

Pitch = Union[int, str]

_NOTE_RE = re.compile(r"^([A-Ga-g])([#b]{0,2})(-?\d+)$")

_STEPS = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}


def note_to_midi(pitch: Pitch) -> int:
    """
    Convert a pitch name like "Eb4" (or a MIDI number) to a MIDI note number.

    Scientific pitch notation with C4 = 60.
    """
    if isinstance(pitch, int):
        return pitch
    m = _NOTE_RE.match(pitch.strip())
    if not m:
        raise ValueError(f"Invalid pitch name: {pitch!r}")
    letter, accidentals, octave = m.groups()
    semis = _STEPS[letter.upper()]
    semis += accidentals.count("#") - accidentals.count("b")
    midi = (int(octave) + 1) * 12 + semis
    if not 0 <= midi <= 127:
        raise ValueError(f"Pitch out of MIDI range: {pitch!r}")
    return midi


def notes_to_midi(pitches: Sequence[Pitch]) -> Tuple[int, ...]:
    return tuple(note_to_midi(p) for p in pitches)


# Slow pad progression: Cmaj7, Am7, Fmaj7, G7
AMBIENT_CHORDS: Tuple[Tuple[str, ...], ...] = (
    ("C3", "E3", "G3", "B3"),
    ("A2", "C3", "E3", "G3"),
    ("F2", "A2", "C3", "E3"),
    ("G2", "B2", "D3", "F3"),
)

# C minor pentatonic plus the octave
FOCUS_SCALE: Tuple[str, ...] = ("C4", "Eb4", "F4", "G4", "Bb4", "C5")


@dataclass
class ChordCycle:
    """Fixed sequence of chords walked one position per advance, wrapping."""

    chords: Tuple[Tuple[Pitch, ...], ...]
    cursor: int = field(default=0)

    def __post_init__(self) -> None:
        self.chords = tuple(notes_to_midi(c) for c in self.chords)
        if not self.chords or any(not c for c in self.chords):
            raise ValueError("ChordCycle needs at least one non-empty chord")
        self.cursor %= len(self.chords)

    def __len__(self) -> int:
        return len(self.chords)

    @property
    def current(self) -> Tuple[int, ...]:
        return self.chords[self.cursor]

    def advance(self) -> Tuple[int, ...]:
        """Return the chord under the cursor and move to the next one."""
        chord = self.chords[self.cursor]
        self.cursor = (self.cursor + 1) % len(self.chords)
        return chord

    def reset(self) -> None:
        self.cursor = 0
