from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from string import Template
from typing import Any, Callable, Dict, Final, List, Mapping, Optional

import numpy as np
from numpy.typing import NDArray

from pychip8.cartridge import MEMORY_SIZE, PROGRAM_START, Cartridge
from pychip8.controller import Controller
from pychip8.exception import (
    Chip8Error,
    FontDigitOutOfRange,
    ProgramCounterOutOfRange,
    RomTooLarge,
    StackOverflow,
    StackUnderflow,
    UnknownOpcode,
)
from pychip8.logger import log as _logger
from pychip8.util.OpCodes import Instruction, Op, OpCodes, decode

# Template
TEMPLATE: Final[Template] = Template(
    "${PC}: opcode: ${OP} | ${ASM} | I: ${I} | SP: ${SP} | DT: ${DT} | ST: ${ST} | V: ${V} | ${DESC}"
)

FONT: Final[bytes] = bytes(
    [
        0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
        0x20, 0x60, 0x20, 0x20, 0x70,  # 1
        0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
        0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
        0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
        0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
        0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
        0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
        0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
        0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
        0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
        0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
        0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
        0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
        0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
        0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
    ]
)
FONT_START: Final[int] = 0x000
GLYPH_SIZE: Final[int] = 5
ADDRESS_MASK: Final[int] = MEMORY_SIZE - 1

DEFAULT_WIDTH: Final[int] = 64
DEFAULT_HEIGHT: Final[int] = 32
DEFAULT_STACK_DEPTH: Final[int] = 12
DEFAULT_CLOCK_HZ: Final[int] = 600
TIMER_HZ: Final[int] = 60


class RunState(Enum):
    Running = "running"
    Paused = "paused"
    Halted = "halted"


class CallStack:
    """Bounded return-address stack with checked push/pop."""

    def __init__(self, capacity: int = DEFAULT_STACK_DEPTH) -> None:
        if capacity <= 0:
            raise ValueError("Stack capacity must be positive")
        self.capacity: Final[int] = capacity
        self._slots: NDArray[np.uint16] = np.zeros(capacity, dtype=np.uint16)
        self.depth: int = 0

    def __len__(self) -> int:
        return self.depth

    def __repr__(self) -> str:
        return f"<CallStack depth={self.depth}/{self.capacity} {[f'${a:04X}' for a in self.to_list()]}>"

    def push(self, address: int) -> None:
        if self.depth >= self.capacity:
            raise StackOverflow(f"Call stack overflow: {self.capacity} nested calls, pushing ${address:04X}")
        self._slots[self.depth] = address & 0xFFFF
        self.depth += 1

    def pop(self) -> int:
        if self.depth == 0:
            raise StackUnderflow("Return from subroutine with an empty call stack")
        self.depth -= 1
        return int(self._slots[self.depth])

    def peek(self) -> Optional[int]:
        return int(self._slots[self.depth - 1]) if self.depth else None

    def clear(self) -> None:
        self.depth = 0

    def to_list(self) -> List[int]:
        return [int(a) for a in self._slots[: self.depth]]


@dataclass
class Machine:
    """The whole mutable state of one CHIP-8 run."""

    RAM: NDArray[np.uint8] = field(default_factory=lambda: np.zeros(MEMORY_SIZE, dtype=np.uint8))
    V: NDArray[np.uint8] = field(default_factory=lambda: np.zeros(16, dtype=np.uint8))
    I: int = 0
    PC: int = PROGRAM_START
    Stack: CallStack = field(default_factory=CallStack)
    DelayTimer: int = 0
    SoundTimer: int = 0
    Keypad: Controller = field(default_factory=Controller)
    Display: NDArray[np.bool_] = field(
        default_factory=lambda: np.zeros((DEFAULT_HEIGHT, DEFAULT_WIDTH), dtype=np.bool_)
    )
    State: RunState = RunState.Running

    def __post_init__(self) -> None:
        self.RAM[FONT_START : FONT_START + len(FONT)] = np.frombuffer(FONT, dtype=np.uint8)

    @property
    def width(self) -> int:
        return int(self.Display.shape[1])

    @property
    def height(self) -> int:
        return int(self.Display.shape[0])

    @classmethod
    def load(
        cls,
        cartridge: Cartridge,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        stack_depth: int = DEFAULT_STACK_DEPTH,
    ) -> "Machine":
        """Build a fresh machine with the font table and the cartridge program in memory."""
        size = len(cartridge.ROM)
        if size > MEMORY_SIZE - PROGRAM_START:
            raise RomTooLarge(f"ROM is {size} bytes, max available CHIP-8 memory is {MEMORY_SIZE - PROGRAM_START} bytes")

        machine = cls(
            Stack=CallStack(stack_depth),
            Display=np.zeros((height, width), dtype=np.bool_),
        )
        machine.RAM[PROGRAM_START : PROGRAM_START + size] = cartridge.ROM
        return machine

    def read_word(self, address: int) -> int:
        """Big-endian instruction word at ``address``."""
        if not 0 <= address <= MEMORY_SIZE - 2:
            raise ProgramCounterOutOfRange(f"Instruction fetch at ${address:04X} is outside memory")
        return (int(self.RAM[address]) << 8) | int(self.RAM[address + 1])


@dataclass
class HaltOn:
    UnknownOpcode: bool = False


@dataclass
class Debug:
    Logging: bool = False
    HaltOn: HaltOn = field(default_factory=HaltOn)


class Emulator:
    """
    PyChip8 is an object-oriented CHIP-8 interpreter.

    One Emulator owns one Machine; nothing is shared between instances, so
    several can run side by side. The host drives it one frame at a time:
    latch input with ``Input``, call ``frame`` at 60 Hz, and draw whatever
    the ``frame_complete`` event hands over.

    Events:
        frame_complete(frame, delay_timer, sound_timer)
        tracelogger(line)   only while ``debug.Logging`` is set
        reset(machine)
    """

    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        clock_hz: int = DEFAULT_CLOCK_HZ,
        stack_depth: int = DEFAULT_STACK_DEPTH,
        seed: Optional[int] = None,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("Display width and height must be positive")
        if clock_hz <= 0:
            raise ValueError("Clock rate must be positive")

        self.width: Final[int] = width
        self.height: Final[int] = height
        self.clock_hz: int = clock_hz
        self.stack_depth: Final[int] = stack_depth
        self.cartridge: Cartridge = Cartridge.EmptyCartridge()
        self._events: Dict[str, deque[Callable[..., Any]]] = {}
        self._rng: np.random.Generator = np.random.default_rng(seed)
        self.tracelog: deque[str] = deque(maxlen=2024)
        self.debug: Debug = Debug()
        self.frame_count: int = 0
        self.instruction_count: int = 0
        self.Architecture: Machine = Machine.load(self.cartridge, width, height, stack_depth)

    @property
    def instructions_per_frame(self) -> int:
        return max(1, self.clock_hz // TIMER_HZ)

    @property
    def State(self) -> RunState:
        return self.Architecture.State

    @property
    def DelayTimer(self) -> int:
        return self.Architecture.DelayTimer

    @property
    def SoundTimer(self) -> int:
        return self.Architecture.SoundTimer

    @property
    def FrameBuffer(self) -> NDArray[np.bool_]:
        """Read-only copy of the display, safe to keep across frames or threads."""
        frame = self.Architecture.Display.copy()
        frame.flags.writeable = False
        return frame

    def _tracelogger(self, ins: Instruction, address: int) -> None:
        m = self.Architecture
        line = TEMPLATE.substitute(
            PC=f"{address:04X}",
            OP=f"{ins.opcode:04X}",
            ASM=f"{OpCodes.Disassemble(ins):<18}",
            I=f"{m.I:04X}",
            SP=f"{m.Stack.depth:X}",
            DT=f"{m.DelayTimer:02X}",
            ST=f"{m.SoundTimer:02X}",
            V=" ".join(f"{int(v):02X}" for v in m.V),
            DESC=OpCodes.Describe(ins),
        )

        self.tracelog.append(line)

    def on(self, event_name: str):
        def decorator(func: Callable):
            self._events.setdefault(event_name, deque()).append(func)
            return func

        return decorator

    def _emit(self, event_name: str, *args: Any, **kwargs: Any) -> None:
        """Emit an event to all registered callbacks."""
        callbacks = self._events.get(event_name)
        if not callbacks:
            return

        for callback in callbacks:
            if not callable(callback):
                raise ValueError(f"Callback {callback} is not Callable")
            callback(*args, **kwargs)

    def Load(self, cartridge: Cartridge) -> None:
        """Insert a cartridge and start it from a clean machine."""
        self.cartridge = cartridge
        self.Reset()
        _logger.info(f"Loaded {cartridge.name} ({len(cartridge)} bytes)")

    def Reset(self) -> None:
        """Rebuild the machine from the current cartridge."""
        self.Architecture = Machine.load(self.cartridge, self.width, self.height, self.stack_depth)
        self.tracelog.clear()
        self.frame_count = 0
        self.instruction_count = 0
        _logger.debug(f"Reset: PC=${self.Architecture.PC:04X}, stack depth {self.stack_depth}")
        self._emit("reset", self.Architecture)

    def Input(self, keys: Mapping[int, bool]) -> None:
        """Latch keypad state. ``keys`` maps keypad digits 0x0-0xF to pressed flags."""
        self.Architecture.Keypad.update(keys)

    def Pause(self) -> None:
        if self.Architecture.State is RunState.Running:
            self.Architecture.State = RunState.Paused

    def Resume(self) -> None:
        if self.Architecture.State is RunState.Paused:
            self.Architecture.State = RunState.Running

    def TogglePause(self) -> RunState:
        if self.Architecture.State is RunState.Running:
            self.Pause()
        else:
            self.Resume()
        return self.Architecture.State

    def Quit(self) -> None:
        self.Architecture.State = RunState.Halted

    def step(self) -> None:
        """Fetch, decode and execute one instruction."""
        m = self.Architecture
        if m.State is RunState.Halted:
            return

        address = m.PC
        try:
            ins = decode(m.read_word(address))
            m.PC = (address + 2) & 0xFFFF

            if self.debug.Logging:
                self._tracelogger(ins, address)
                self._emit("tracelogger", self.tracelog[-1])

            self._do_execute_opcode(ins, address)
        except Chip8Error:
            m.State = RunState.Halted
            raise

        self.instruction_count += 1

    def tick(self) -> None:
        """60 Hz timer decrement."""
        m = self.Architecture
        if m.DelayTimer > 0:
            m.DelayTimer -= 1
        if m.SoundTimer > 0:
            m.SoundTimer -= 1

    def frame(self) -> bool:
        """
        Run one 60 Hz frame: a batch of instructions, then one timer tick.

        Returns False without touching the machine when it is paused or halted.
        """
        m = self.Architecture
        if m.State is not RunState.Running:
            return False

        for _ in range(self.instructions_per_frame):
            self.step()
            if m.State is not RunState.Running:
                break

        self.tick()
        self.frame_count += 1
        self._emit("frame_complete", self.FrameBuffer, m.DelayTimer, m.SoundTimer)
        return True

    def _skip(self) -> None:
        self.Architecture.PC = (self.Architecture.PC + 2) & 0xFFFF

    def _do_execute_opcode(self, ins: Instruction, address: int) -> None:
        """
        Execute a decoded instruction. PC already points past it.
        """
        m = self.Architecture
        V = m.V
        match ins.op:
            # FLOW
            case Op.CLS:
                m.Display[:] = False
            case Op.RET:
                m.PC = m.Stack.pop()
            case Op.JP:
                m.PC = ins.NNN
            case Op.CALL:
                m.Stack.push(m.PC)
                m.PC = ins.NNN
            case Op.JP_V0:
                m.PC = (int(V[0]) + ins.NNN) & 0xFFFF

            # CONDITIONALS
            case Op.SE_BYTE:
                if int(V[ins.X]) == ins.NN:
                    self._skip()
            case Op.SNE_BYTE:
                if int(V[ins.X]) != ins.NN:
                    self._skip()
            case Op.SE_REG:
                if int(V[ins.X]) == int(V[ins.Y]):
                    self._skip()
            case Op.SNE_REG:
                if int(V[ins.X]) != int(V[ins.Y]):
                    self._skip()
            case Op.SKP:
                if m.Keypad.pressed(int(V[ins.X])):
                    self._skip()
            case Op.SKNP:
                if not m.Keypad.pressed(int(V[ins.X])):
                    self._skip()

            # REGISTERS
            case Op.LD_BYTE:
                V[ins.X] = ins.NN
            case Op.ADD_BYTE:
                V[ins.X] = (int(V[ins.X]) + ins.NN) & 0xFF
            case Op.LD_REG | Op.OR | Op.AND | Op.XOR | Op.ADD_REG | Op.SUB | Op.SHR | Op.SUBN | Op.SHL:
                self._do_op_ALU(ins)
            case Op.RND:
                V[ins.X] = int(self._rng.integers(0, 256)) & ins.NN

            # INDEX / MEMORY
            case Op.LD_I:
                m.I = ins.NNN
            case Op.ADD_I:
                m.I = (m.I + int(V[ins.X])) & 0xFFFF
            case Op.LD_F:
                digit = int(V[ins.X])
                if digit <= 0xF:
                    m.I = FONT_START + digit * GLYPH_SIZE
                elif self.debug.HaltOn.UnknownOpcode:
                    raise FontDigitOutOfRange(f"Font glyph 0x{digit:02X} requested at ${address:04X}")
                else:
                    _logger.debug(f"Font glyph 0x{digit:02X} out of range at ${address:04X}, ignored")
            case Op.LD_B:
                value = int(V[ins.X])
                m.RAM[m.I & ADDRESS_MASK] = value // 100
                m.RAM[(m.I + 1) & ADDRESS_MASK] = (value // 10) % 10
                m.RAM[(m.I + 2) & ADDRESS_MASK] = value % 10
            case Op.LD_MEM_VX:
                for r in range(ins.X + 1):
                    m.RAM[(m.I + r) & ADDRESS_MASK] = V[r]
            case Op.LD_VX_MEM:
                for r in range(ins.X + 1):
                    V[r] = m.RAM[(m.I + r) & ADDRESS_MASK]

            # TIMERS / INPUT
            case Op.LD_VX_DT:
                V[ins.X] = m.DelayTimer
            case Op.LD_DT:
                m.DelayTimer = int(V[ins.X])
            case Op.LD_ST:
                m.SoundTimer = int(V[ins.X])
            case Op.LD_VX_K:
                key = m.Keypad.first_pressed()
                if key is None:
                    m.PC = address  # retry this instruction on the next step
                else:
                    V[ins.X] = key

            # DISPLAY
            case Op.DRW:
                self._do_op_DRW(ins)

            case _:  # Unknown/Unimplemented OpCode
                if self.debug.HaltOn.UnknownOpcode:
                    raise UnknownOpcode(ins.opcode, address)
                _logger.debug(f"Unknown OpCode: ${ins.opcode:04X} at PC=${address:04X}, ignored")

    def _do_op_ALU(self, ins: Instruction) -> None:
        """8XY_ family. Operands are read first; every sub-op writes VF, and before VX."""
        V = self.Architecture.V
        vx = int(V[ins.X])
        vy = int(V[ins.Y])

        match ins.op:
            case Op.LD_REG:
                V[0xF] = 0
                V[ins.X] = vy
            case Op.OR:
                V[0xF] = 0
                V[ins.X] = vx | vy
            case Op.AND:
                V[0xF] = 0
                V[ins.X] = vx & vy
            case Op.XOR:
                V[0xF] = 0
                V[ins.X] = vx ^ vy
            case Op.ADD_REG:
                total = vx + vy
                V[0xF] = int(total > 0xFF)
                V[ins.X] = total & 0xFF
            case Op.SUB:
                V[0xF] = int(vx >= vy)
                V[ins.X] = (vx - vy) & 0xFF
            case Op.SHR:
                V[0xF] = vx & 0x01
                V[ins.X] = vx >> 1
            case Op.SUBN:
                V[0xF] = int(vy >= vx)
                V[ins.X] = (vy - vx) & 0xFF
            case Op.SHL:
                V[0xF] = vx >> 7
                V[ins.X] = (vx << 1) & 0xFF

    def _do_op_DRW(self, ins: Instruction) -> None:
        """
        XOR an 8xN sprite from RAM[I] onto the display.

        The start position wraps around the screen once; everything past the
        right or bottom edge is clipped, never wrapped.
        """
        m = self.Architecture
        display = m.Display
        width = m.width
        height = m.height

        x0 = int(m.V[ins.X]) % width
        y = int(m.V[ins.Y]) % height
        m.V[0xF] = 0

        for row in range(ins.N):
            sprite_row = int(m.RAM[(m.I + row) & ADDRESS_MASK])
            x = x0
            for bit in range(7, -1, -1):
                if x > width - 1:
                    break
                if (sprite_row >> bit) & 1:
                    if display[y, x]:
                        m.V[0xF] = 1
                    display[y, x] = not display[y, x]
                x += 1

            y += 1
            if y > height - 1:
                break
