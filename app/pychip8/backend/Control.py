from typing import Dict, Final, Iterable, Mapping, Optional

import pygame

from pychip8.logger import log as _log
from pychip8.util.config import DEFAULT_CONFIG


class Control(object):
    """Turns pygame keyboard events into the 16-key keypad state."""

    KEYPAD_KEYS: Final[list[int]] = list(range(16))

    def __init__(self, keyboard: Optional[Mapping[str, str]] = None) -> None:
        self.KEY_MAPPING: Dict[int, int] = self._build_key_mapping(
            DEFAULT_CONFIG["keyboard"] if keyboard is None else keyboard
        )
        self.state: Dict[int, bool] = {k: False for k in self.KEYPAD_KEYS}

    @staticmethod
    def _build_key_mapping(keyboard: Mapping[str, str]) -> Dict[int, int]:
        mapping: Dict[int, int] = {}

        for digit, key_name in keyboard.items():
            py_key_name = str(key_name)
            if py_key_name.lower() == "enter":
                py_key_name = "RETURN"
            py_key_name = py_key_name.lower() if len(py_key_name) == 1 else py_key_name.upper()

            try:
                py_key = getattr(pygame, f"K_{py_key_name}")
            except AttributeError:
                _log.warning(f"Invalid key '{key_name}' in config for keypad {digit}")
                continue

            mapping[py_key] = int(digit, 16)

        return mapping

    def update(self, events: Iterable[pygame.event.Event]) -> None:
        """Update keypad state based on pygame events"""
        for event in events:
            if event.type == pygame.KEYDOWN:
                if event.key in self.KEY_MAPPING:
                    self.state[self.KEY_MAPPING[event.key]] = True
            elif event.type == pygame.KEYUP:
                if event.key in self.KEY_MAPPING:
                    self.state[self.KEY_MAPPING[event.key]] = False
            elif event.type == pygame.WINDOWFOCUSLOST:
                # key-up events are lost while unfocused
                self.reset()

    def reset(self) -> None:
        """Release every key"""
        for k in self.state:
            self.state[k] = False

    def pressed(self, key: int) -> bool:
        return self.state.get(key, False)

