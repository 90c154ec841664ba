"""Runtime settings for dreamflows.

Settings are read from DREAMFLOWS_* environment variables; anything unset
falls back to the defaults below.
"""

import logging
import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional

from .synth.base import ScheduledBackend
from .synth.fluidsynth import DEFAULT_SOUNDFONT, FluidSynthBackend
from .synth.midi import MidiBackend

logger = logging.getLogger(__name__)

ENV_PREFIX = "DREAMFLOWS"

BACKENDS = ("fluidsynth", "midi")


@dataclass
class Settings:
    backend: str = "fluidsynth"
    soundfont: str = DEFAULT_SOUNDFONT
    driver: Optional[str] = None
    midi_port: Optional[str] = None
    preset: str = "ambient"
    bpm: float = 120.0
    volume_db: float = 0.0
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        values = {}
        for f in fields(cls):
            raw = environ.get(f"{ENV_PREFIX}_{f.name.upper()}")
            if raw is None or raw == "":
                continue
            if f.name in ("bpm", "volume_db"):
                try:
                    values[f.name] = float(raw)
                except ValueError:
                    logger.warning("Ignoring %s_%s=%r: not a number", ENV_PREFIX, f.name.upper(), raw)
                continue
            values[f.name] = raw
        settings = cls(**values)
        if settings.backend not in BACKENDS:
            logger.warning("Unknown backend %r, using fluidsynth", settings.backend)
            settings.backend = "fluidsynth"
        return settings


def make_backend(settings: Settings) -> ScheduledBackend:
    """Build the audio backend the settings select."""
    if settings.backend == "midi":
        return MidiBackend(port_name=settings.midi_port, master_db=settings.volume_db)
    return FluidSynthBackend(
        soundfont_path=settings.soundfont,
        driver=settings.driver,
        master_db=settings.volume_db,
    )
