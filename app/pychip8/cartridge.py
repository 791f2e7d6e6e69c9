from pathlib import Path
from typing import Final, Union

import numpy as np
from numpy.typing import NDArray
from returns.result import Failure, Result, Success

from pychip8.exception import RomError, RomNotFound, RomTooLarge, RomUnreadable
from pychip8.logger import log

MEMORY_SIZE: Final[int] = 0x1000  # 4 KB
PROGRAM_START: Final[int] = 0x200


class Cartridge:
    """
    A CHIP-8 program image ready to be copied into machine memory.

    CHIP-8 ROMs have no header: the whole file is program bytes, loaded at
    0x200 and executed from there. The only validation possible is that
    the image fits between 0x200 and the end of the 4 KB address space.
    """

    MAX_SIZE: Final[int] = MEMORY_SIZE - PROGRAM_START

    def __init__(self) -> None:
        self.file: str = ""
        self.ROM: NDArray[np.uint8] = np.zeros(0, dtype=np.uint8)

    def __repr__(self) -> str:
        return f"<Cartridge file={self.file!r} size={len(self.ROM)} bytes>"

    def __len__(self) -> int:
        return len(self.ROM)

    @property
    def name(self) -> str:
        return Path(self.file).name if self.file else "<memory>"

    @classmethod
    def from_bytes(cls, data: bytes, capacity: int = MEMORY_SIZE) -> Result["Cartridge", RomError]:
        """
        Validate raw program bytes.

        Args:
            data: The ROM image.
            capacity: Size of the address space the ROM will be loaded into.

        Returns:
            Success with a Cartridge, or Failure with RomUnreadable/RomTooLarge.
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            return Failure(RomUnreadable(f"Expected bytes or bytearray, got {type(data).__name__}"))

        max_size = capacity - PROGRAM_START
        if len(data) > max_size:
            return Failure(RomTooLarge(f"ROM is {len(data)} bytes, max available CHIP-8 memory is {max_size} bytes"))

        obj = cls()
        obj.ROM = np.frombuffer(bytes(data), dtype=np.uint8).copy()
        if len(obj.ROM) == 0:
            log.warning("ROM is empty, the machine will execute zeroed memory")
        return Success(obj)

    @classmethod
    def from_file(cls, filepath: Union[Path, str]) -> Result["Cartridge", RomError]:
        """
        Load a cartridge from a file path.

        Returns:
            Success with a Cartridge, or Failure with RomNotFound, RomUnreadable or RomTooLarge.
        """
        try:
            with open(filepath, "rb") as f:
                data = f.read()
        except FileNotFoundError:
            return Failure(RomNotFound(f"ROM file {filepath} does not exist"))
        except OSError as e:
            return Failure(RomUnreadable(f"Failed to read ROM file {filepath}: {e}"))

        def attach_file(cart: "Cartridge") -> "Cartridge":
            cart.file = str(filepath)
            return cart

        return cls.from_bytes(data).map(attach_file)

    @classmethod
    def EmptyCartridge(cls) -> "Cartridge":
        return cls()
