class Chip8Error(Exception):
    """Base exception for all PyChip8 related errors."""
    pass


class RomError(Chip8Error):
    """A ROM could not be turned into a runnable cartridge."""
    pass


class RomNotFound(RomError):
    pass


class RomTooLarge(RomError):
    pass


class RomUnreadable(RomError):
    pass


class MachineFault(Chip8Error):
    """The running program drove the machine into an undefined state."""
    pass


class StackOverflow(MachineFault):
    pass


class StackUnderflow(MachineFault):
    pass


class ProgramCounterOutOfRange(MachineFault):
    pass


class FontDigitOutOfRange(MachineFault):
    pass


class UnknownOpcode(Chip8Error):
    """Raised only when the emulator halts on unknown opcodes."""

    def __init__(self, opcode: int, address: int):
        self.opcode = opcode
        self.address = address
        super().__init__(f"Unknown opcode ${opcode:04X} at ${address:04X}")
