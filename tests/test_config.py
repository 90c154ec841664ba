"""Tests for dreamflows/config.py."""

from __future__ import annotations

import logging

import pytest

from dreamflows.config import Settings, make_backend
from dreamflows.synth import FluidSynthBackend, MidiBackend
from dreamflows.synth.fluidsynth import DEFAULT_SOUNDFONT


class TestSettingsFromEnv:
    def test_defaults_when_unset(self) -> None:
        s = Settings.from_env({})
        assert s == Settings()
        assert s.backend == "fluidsynth"
        assert s.soundfont == DEFAULT_SOUNDFONT

    def test_reads_prefixed_variables(self) -> None:
        s = Settings.from_env(
            {
                "DREAMFLOWS_BACKEND": "midi",
                "DREAMFLOWS_MIDI_PORT": "FLUID Synth",
                "DREAMFLOWS_PRESET": "choir",
                "DREAMFLOWS_BPM": "96",
                "DREAMFLOWS_VOLUME_DB": "-6.5",
                "DREAMFLOWS_LOG_LEVEL": "DEBUG",
            }
        )
        assert s.backend == "midi"
        assert s.midi_port == "FLUID Synth"
        assert s.preset == "choir"
        assert s.bpm == 96.0
        assert s.volume_db == -6.5
        assert s.log_level == "DEBUG"

    def test_ignores_unprefixed_and_empty(self) -> None:
        s = Settings.from_env({"BPM": "60", "DREAMFLOWS_PRESET": ""})
        assert s.bpm == 120.0
        assert s.preset == "ambient"

    def test_bad_number_is_ignored(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            s = Settings.from_env({"DREAMFLOWS_BPM": "fast"})
        assert s.bpm == 120.0
        assert "DREAMFLOWS_BPM" in caplog.text

    def test_unknown_backend_falls_back(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            s = Settings.from_env({"DREAMFLOWS_BACKEND": "webaudio"})
        assert s.backend == "fluidsynth"
        assert "webaudio" in caplog.text

    def test_reads_os_environ_by_default(self, monkeypatch) -> None:
        monkeypatch.setenv("DREAMFLOWS_DRIVER", "alsa")
        assert Settings.from_env().driver == "alsa"


class TestMakeBackend:
    def test_fluidsynth(self) -> None:
        b = make_backend(Settings(soundfont="/tmp/x.sf2", driver="pulseaudio", volume_db=-3.0))
        assert isinstance(b, FluidSynthBackend)
        assert b.soundfont_path == "/tmp/x.sf2"
        assert b.driver == "pulseaudio"
        assert b.master_db == -3.0
        assert b.acquired is False

    def test_midi(self) -> None:
        b = make_backend(Settings(backend="midi", midi_port="IAC Bus 1"))
        assert isinstance(b, MidiBackend)
        assert b.port_name == "IAC Bus 1"

    @pytest.mark.parametrize("name", ["fluidsynth", "midi"])
    def test_backends_are_lazy(self, name) -> None:
        assert make_backend(Settings(backend=name)).acquired is False
