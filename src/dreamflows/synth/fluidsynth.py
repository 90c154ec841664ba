"""
FluidSynth audio output.
"""

import asyncio
import logging
from typing import Optional

from .base import AudioUnavailableError, ScheduledBackend, Voice, gain_db_to_cc

logger = logging.getLogger(__name__)

DEFAULT_SOUNDFONT = "/usr/share/sounds/sf2/FluidR3_GM.sf2"


class FluidSynthBackend(ScheduledBackend):
    """
    Plays voices through the FluidSynth software synthesizer.
    Requires: pip install pyfluidsynth

    The effects chain approximates a long reverb, a light chorus and a
    low-pass filter (CC 74) on every voice.
    """

    name = "fluidsynth"

    def __init__(
        self,
        *,
        soundfont_path: str = DEFAULT_SOUNDFONT,
        driver: Optional[str] = None,
        gain: float = 0.5,
        reverb: int = 64,
        chorus: int = 20,
        filter_cutoff: int = 60,
        master_db: float = 0.0,
    ):
        super().__init__(master_db=master_db)
        self.soundfont_path = soundfont_path
        self.driver = driver
        self.gain = gain
        self.reverb = reverb
        self.chorus = chorus
        self.filter_cutoff = filter_cutoff
        self._fs = None
        self._sfid = None

    async def _open(self) -> None:
        # Starting the audio driver blocks, keep it off the loop.
        loop = asyncio.get_running_loop()
        self._fs, self._sfid = await loop.run_in_executor(None, self._start_synth)
        self._apply_reverb()
        self._apply_chorus()

    def _start_synth(self):
        try:
            import fluidsynth
        except ImportError as e:
            raise AudioUnavailableError(f"FluidSynth is not available: {e}") from e

        fs = fluidsynth.Synth(gain=self.gain)
        try:
            fs.start(driver=self.driver)
            sfid = fs.sfload(self.soundfont_path)
        except Exception as e:
            fs.delete()
            raise AudioUnavailableError(f"FluidSynth failed to start: {e}") from e
        if sfid == -1:
            fs.delete()
            raise AudioUnavailableError(f"Could not load SoundFont {self.soundfont_path}")
        logger.info("[FluidSynthBackend] Loaded %s (driver=%s)", self.soundfont_path, self.driver or "default")
        return fs, sfid

    def _apply_reverb(self) -> None:
        if self._fs:
            self._fs.set_reverb(self.reverb / 127.0, 0.2, 0.5, 1.0)

    def _apply_chorus(self) -> None:
        if self._fs:
            if self.chorus > 0:
                self._fs.set_chorus(3, self.chorus / 127.0 * 3.0, 0.3, 1)
            else:
                self._fs.set_chorus(0, 0, 0, 0)

    def _setup_voice(self, voice: Voice) -> None:
        bank, prog = voice.program
        self._fs.program_select(voice.channel, self._sfid, bank, prog)
        self._fs.cc(voice.channel, 7, gain_db_to_cc(voice.gain_db))
        self._fs.cc(voice.channel, 74, self.filter_cutoff)

    def _note_on(self, channel: int, pitch: int, velocity: int) -> None:
        if self._fs:
            self._fs.noteon(channel, pitch, velocity)

    def _note_off(self, channel: int, pitch: int) -> None:
        if self._fs:
            self._fs.noteoff(channel, pitch)

    def _apply_master_gain(self, linear: float) -> None:
        if self._fs:
            self._fs.setting("synth.gain", self.gain * linear)

    def _close(self) -> None:
        if self._fs:
            try:
                self._fs.delete()
            except Exception as e:
                logger.warning("[FluidSynthBackend] delete failed: %s", e)
            self._fs = None
