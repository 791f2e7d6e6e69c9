import os

os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame
import pytest
from pygame import mixer

from pychip8.backend.Audio import Audio


@pytest.fixture
def no_mixer(monkeypatch):
    def fail(*args, **kwargs):
        raise pygame.error("no audio device")

    monkeypatch.setattr(mixer, "get_init", lambda: None)
    monkeypatch.setattr(mixer, "init", fail)


def test_missing_device_disables_audio(no_mixer):
    audio = Audio()
    assert not audio.available

    audio.update(5)
    audio.stop()


def test_square_wave(no_mixer):
    audio = Audio(frequency=441, volume=0.5, sample_rate=44100)
    wave = audio._square_wave(1)
    assert len(wave) == 100
    assert wave[:50].tolist() == [16383] * 50
    assert wave[50:].tolist() == [-16383] * 50

    stereo = audio._square_wave(2)
    assert stereo.shape == (100, 2)


def test_tone_follows_sound_timer():
    audio = Audio()
    try:
        if not audio.available:
            pytest.skip("mixer could not start")

        audio.update(3)
        assert audio.playing
        audio.update(2)
        assert audio.playing
        audio.update(0)
        assert not audio.playing

        audio.update(1)
        audio.stop()
        assert not audio.playing
    finally:
        mixer.quit()
