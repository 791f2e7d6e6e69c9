import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import numpy as np
import pygame
import pytest

from pychip8.backend.Screen import Screen, parse_color


@pytest.fixture
def display():
    pygame.display.init()
    yield
    pygame.display.quit()


def rgb_at(surface: pygame.Surface, x: int, y: int) -> tuple:
    return tuple(surface.get_at((x, y)))[:3]


def test_parse_color():
    assert parse_color("#102030") == (0x10, 0x20, 0x30)
    assert parse_color("white") == (255, 255, 255)


def test_window_is_scaled(display):
    screen = Screen(64, 32, scale=4)
    assert screen.surface.get_size() == (256, 128)


def test_to_rgb(display):
    screen = Screen(4, 2, scale=1, fg_color="#00FF00", bg_color="#000010")
    frame = np.zeros((2, 4), dtype=np.bool_)
    frame[1, 3] = True

    rgb = screen.to_rgb(frame)
    assert rgb.shape == (2, 4, 3)
    assert rgb[1, 3].tolist() == [0, 255, 0]
    assert rgb[0, 0].tolist() == [0, 0, 16]


def test_draw_with_outlines(display):
    screen = Screen(64, 32, scale=4, fg_color="#FF0000", bg_color="#000000")
    frame = np.zeros((32, 64), dtype=np.bool_)
    frame[0, 1] = True
    screen.draw(frame)

    assert rgb_at(screen.surface, 6, 2) == (255, 0, 0)
    assert rgb_at(screen.surface, 4, 0) == (0, 0, 0)  # outline
    assert rgb_at(screen.surface, 2, 2) == (0, 0, 0)


def test_draw_without_outlines(display):
    screen = Screen(64, 32, scale=4, fg_color="#FF0000", pixel_outlines=False)
    frame = np.zeros((32, 64), dtype=np.bool_)
    frame[0, 1] = True
    screen.draw(frame)

    assert rgb_at(screen.surface, 4, 0) == (255, 0, 0)


def test_caption(display):
    screen = Screen(64, 32, scale=1)
    screen.set_caption("pong.ch8", paused=True)
    assert pygame.display.get_caption()[0] == "PyChip8 - pong.ch8 [PAUSED]"

    screen.set_caption()
    assert pygame.display.get_caption()[0] == "PyChip8"
