from pychip8.__version__ import __version_string__ as __version__
from pychip8.cartridge import Cartridge
from pychip8.controller import Controller
from pychip8.emulator import Emulator, Machine, RunState
from pychip8.util.OpCodes import Instruction, Op, decode

__all__ = [
    "__version__",
    "Cartridge",
    "Controller",
    "Emulator",
    "Instruction",
    "Machine",
    "Op",
    "RunState",
    "decode",
]
