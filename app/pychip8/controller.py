from typing import Final, Iterable, Mapping, Optional

from bitarray import bitarray  # type: ignore

KEY_COUNT: Final[int] = 16


class Controller:
    """Hexadecimal keypad latch: one bit per key, written by the host, read by the CPU."""

    def __init__(self, pressed: Optional[Iterable[int]] = None) -> None:
        self._keys = bitarray(KEY_COUNT)
        self._keys.setall(0)
        for key in pressed or ():
            self.press(key)

    def __repr__(self) -> str:
        return f"<Controller pressed={list(self.pressed_keys())}>"

    @staticmethod
    def _check(key: int) -> int:
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"Keypad key must be 0x0-0xF, got {key!r}")
        return key

    def press(self, key: int) -> None:
        self._keys[self._check(key)] = 1

    def release(self, key: int) -> None:
        self._keys[self._check(key)] = 0

    def update(self, keys: Mapping[int, bool]) -> None:
        """Latch a batch of key states, e.g. the host keyboard state for this frame."""
        for key, down in keys.items():
            self._keys[self._check(key)] = bool(down)

    def reset(self) -> None:
        self._keys.setall(0)

    def pressed(self, key: int) -> bool:
        """Out-of-range keys read as released."""
        if not 0 <= key < KEY_COUNT:
            return False
        return bool(self._keys[key])

    def any_pressed(self) -> bool:
        return self._keys.any()

    def first_pressed(self) -> Optional[int]:
        """Lowest-indexed pressed key, or None."""
        if not self._keys.any():
            return None
        return self._keys.index(1)

    def pressed_keys(self) -> Iterable[int]:
        return (i for i in range(KEY_COUNT) if self._keys[i])

    def to_list(self) -> list[bool]:
        return [bool(b) for b in self._keys]
