"""
MIDI output to an external synthesizer.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import mido

from ..utils import clamp
from .base import AudioUnavailableError, ScheduledBackend, Voice, gain_db_to_cc

logger = logging.getLogger(__name__)


def _normalize(s: str) -> str:
    return s.strip().lower()


def _match_score(port_name: str, keywords: Iterable[str]) -> int:
    pn = _normalize(port_name)
    score = 0
    for kw in keywords:
        kw = _normalize(kw)
        if kw and kw in pn:
            score += 1
    return score


def find_best_port(ports: List[str], keywords: Iterable[str]) -> Optional[str]:
    if not ports:
        return None
    scored: List[Tuple[int, str]] = [(_match_score(p, keywords), p) for p in ports]
    scored.sort(key=lambda x: (x[0], len(x[1])), reverse=True)
    best_score, best_port = scored[0]
    return best_port if best_score > 0 else None


def master_volume_sysex(linear: float) -> mido.Message:
    """Universal real-time SysEx master volume (14-bit)."""
    value = int(clamp(round(linear * 16383), 0, 16383))
    return mido.Message("sysex", data=[0x7F, 0x7F, 0x04, 0x01, value & 0x7F, value >> 7])


class MidiBackend(ScheduledBackend):
    """
    Sends voices to a MIDI output port (hardware or software synth).

    The port is picked by exact name, else by the best keyword match, else
    the first available output.
    """

    name = "midi"

    def __init__(
        self,
        *,
        port_name: Optional[str] = None,
        keywords: Sequence[str] = ("synth", "fluid", "iac", "through"),
        master_db: float = 0.0,
    ):
        super().__init__(master_db=master_db)
        self.port_name = port_name
        self.keywords = tuple(keywords)
        self._port = None

    def _pick_port(self, names: List[str]) -> Optional[str]:
        if self.port_name:
            return self.port_name if self.port_name in names else None
        return find_best_port(names, self.keywords) or (names[0] if names else None)

    async def _open(self) -> None:
        try:
            names = mido.get_output_names()
        except (ImportError, OSError) as e:
            raise AudioUnavailableError(f"No MIDI backend: {e}") from e
        name = self._pick_port(names)
        if name is None:
            raise AudioUnavailableError(f"No MIDI output found among {names}")
        try:
            self._port = mido.open_output(name)
        except (OSError, IOError) as e:
            raise AudioUnavailableError(f"Could not open MIDI output {name!r}: {e}") from e
        logger.info("[MidiBackend] MIDI out: %s", name)

    def _send(self, msg: mido.Message) -> None:
        if self._port is not None:
            self._port.send(msg)

    def _setup_voice(self, voice: Voice) -> None:
        bank, prog = voice.program
        self._send(mido.Message("control_change", channel=voice.channel, control=0, value=bank))
        self._send(mido.Message("program_change", channel=voice.channel, program=prog))
        self._send(
            mido.Message(
                "control_change", channel=voice.channel, control=7, value=gain_db_to_cc(voice.gain_db)
            )
        )

    def _note_on(self, channel: int, pitch: int, velocity: int) -> None:
        self._send(mido.Message("note_on", channel=channel, note=pitch, velocity=velocity))

    def _note_off(self, channel: int, pitch: int) -> None:
        self._send(mido.Message("note_off", channel=channel, note=pitch, velocity=0))

    def _apply_master_gain(self, linear: float) -> None:
        self._send(master_volume_sysex(linear))

    def _close(self) -> None:
        if self._port is not None:
            self._port.reset()
            self._port.close()
            self._port = None
