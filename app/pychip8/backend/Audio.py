import numpy as np
import pygame
from numpy.typing import NDArray
from pygame import mixer

from pychip8.logger import log as _log


class Audio:
    """Single-tone buzzer: audible while the sound timer is non-zero."""

    def __init__(self, frequency: int = 440, volume: float = 0.25, sample_rate: int = 44100, buffer_size: int = 512):
        self.frequency = frequency
        self.volume = volume
        self.sample_rate = sample_rate
        self.available = True

        if not mixer.get_init():
            try:
                mixer.init(frequency=sample_rate, size=-16, channels=1, buffer=buffer_size)
            except pygame.error as e:
                _log.warning(f"Audio disabled, mixer could not start: {e}")
                self.available = False
                return

        self.sample_rate, _, channels = mixer.get_init()
        self.channel = mixer.Channel(0)
        self.sound = pygame.sndarray.make_sound(self._square_wave(channels))
        self.playing = False

    def _square_wave(self, channels: int) -> NDArray[np.int16]:
        # one full period per buffer so the loop is seamless
        period = max(2, int(round(self.sample_rate / self.frequency)))
        amplitude = int(32767 * self.volume)
        wave = np.full(period, -amplitude, dtype=np.int16)
        wave[: period // 2] = amplitude
        if channels > 1:
            wave = np.repeat(wave[:, None], channels, axis=1)
        return np.ascontiguousarray(wave)

    def update(self, sound_timer: int) -> None:
        if not self.available:
            return
        if sound_timer > 0 and not self.playing:
            self.channel.play(self.sound, loops=-1)
            self.playing = True
        elif sound_timer == 0 and self.playing:
            self.channel.stop()
            self.playing = False

    def stop(self) -> None:
        if self.available and self.playing:
            self.channel.stop()
            self.playing = False
