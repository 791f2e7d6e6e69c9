import pytest

from pychip8.controller import Controller


def test_starts_released():
    pad = Controller()
    assert not pad.any_pressed()
    assert pad.first_pressed() is None
    assert pad.to_list() == [False] * 16


def test_press_and_release():
    pad = Controller()
    pad.press(0xA)
    assert pad.pressed(0xA)
    assert list(pad.pressed_keys()) == [0xA]
    pad.release(0xA)
    assert not pad.pressed(0xA)


def test_first_pressed_is_lowest():
    pad = Controller(pressed=[0xC, 0x3, 0x7])
    assert pad.first_pressed() == 0x3


def test_update_latches_mapping():
    pad = Controller()
    pad.update({1: True, 2: True})
    pad.update({1: False})
    assert list(pad.pressed_keys()) == [2]

    pad.reset()
    assert not pad.any_pressed()


def test_out_of_range_keys():
    pad = Controller()
    assert pad.pressed(0x10) is False
    assert pad.pressed(-1) is False
    with pytest.raises(ValueError):
        pad.press(16)
    with pytest.raises(ValueError):
        pad.update({0x20: True})
