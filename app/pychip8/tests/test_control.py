import os

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame

from pychip8.backend.Control import Control


def key_event(kind: int, key: int) -> pygame.event.Event:
    return pygame.event.Event(kind, key=key)


def test_default_layout():
    control = Control()
    assert control.KEY_MAPPING[pygame.K_1] == 0x1
    assert control.KEY_MAPPING[pygame.K_4] == 0xC
    assert control.KEY_MAPPING[pygame.K_q] == 0x4
    assert control.KEY_MAPPING[pygame.K_x] == 0x0
    assert control.KEY_MAPPING[pygame.K_v] == 0xF
    assert len(control.KEY_MAPPING) == 16


def test_key_down_and_up():
    control = Control()
    control.update([key_event(pygame.KEYDOWN, pygame.K_w)])
    assert control.pressed(0x5)

    control.update([])
    assert control.pressed(0x5)

    control.update([key_event(pygame.KEYUP, pygame.K_w)])
    assert not control.pressed(0x5)


def test_unmapped_keys_are_ignored():
    control = Control()
    control.update([key_event(pygame.KEYDOWN, pygame.K_F12)])
    assert not any(control.state.values())


def test_focus_loss_releases_everything():
    control = Control()
    control.update([key_event(pygame.KEYDOWN, pygame.K_a), key_event(pygame.KEYDOWN, pygame.K_s)])
    assert control.pressed(0x7) and control.pressed(0x8)

    control.update([pygame.event.Event(pygame.WINDOWFOCUSLOST)])
    assert not any(control.state.values())


def test_custom_layout():
    control = Control({"0": "enter", "1": "UP", "2": "not-a-key"})
    assert control.KEY_MAPPING == {pygame.K_RETURN: 0x0, pygame.K_UP: 0x1}
