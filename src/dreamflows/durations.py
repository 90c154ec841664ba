"""
Musical duration notation.

Durations are measured in beats (quarter notes). Strings follow the
transport notation: "4m" is four measures, "8n" an eighth note, "8t" an
eighth-note triplet, and a trailing "." dots the value.
"""

import re
from typing import Union

Duration = Union[int, float, str]

_NOTATION_RE = re.compile(r"^(\d+(?:\.\d+)?)([mnt])(\.?)$")


def measures(n: float, beats_per_measure: int = 4) -> float:
    return float(n) * beats_per_measure


def note_value(n: float) -> float:
    """Length of a 1/n note in beats: 4 -> 1.0, 8 -> 0.5, 2 -> 2.0."""
    return 4.0 / float(n)


def dotted(beats: float) -> float:
    return beats * 1.5


def triplet(beats: float) -> float:
    return beats / 3.0 * 2.0


def to_beats(value: Duration, beats_per_measure: int = 4) -> float:
    """Convert a number of beats or a notation string to beats."""
    if isinstance(value, (int, float)):
        return float(value)
    m = _NOTATION_RE.match(value.strip())
    if not m:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit, dot = m.groups()
    if unit == "m":
        beats = measures(float(amount), beats_per_measure)
    elif unit == "n":
        beats = note_value(float(amount))
    else:
        beats = triplet(note_value(float(amount)))
    return dotted(beats) if dot else beats
