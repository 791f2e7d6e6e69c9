from dataclasses import dataclass
from enum import Enum
from string import Template
from typing import Dict, Final, TypedDict


class Op(Enum):
    """Closed set of instruction variants; anything undefined decodes to UNKNOWN."""

    UNKNOWN = "UNKNOWN"
    CLS = "CLS"
    RET = "RET"
    JP = "JP"
    CALL = "CALL"
    SE_BYTE = "SE_BYTE"
    SNE_BYTE = "SNE_BYTE"
    SE_REG = "SE_REG"
    LD_BYTE = "LD_BYTE"
    ADD_BYTE = "ADD_BYTE"
    LD_REG = "LD_REG"
    OR = "OR"
    AND = "AND"
    XOR = "XOR"
    ADD_REG = "ADD_REG"
    SUB = "SUB"
    SHR = "SHR"
    SUBN = "SUBN"
    SHL = "SHL"
    SNE_REG = "SNE_REG"
    LD_I = "LD_I"
    JP_V0 = "JP_V0"
    RND = "RND"
    DRW = "DRW"
    SKP = "SKP"
    SKNP = "SKNP"
    LD_VX_DT = "LD_VX_DT"
    LD_VX_K = "LD_VX_K"
    LD_DT = "LD_DT"
    LD_ST = "LD_ST"
    ADD_I = "ADD_I"
    LD_F = "LD_F"
    LD_B = "LD_B"
    LD_MEM_VX = "LD_MEM_VX"
    LD_VX_MEM = "LD_VX_MEM"


@dataclass(frozen=True)
class Instruction:
    """A decoded 16-bit word with every operand field pre-extracted."""

    opcode: int
    op: Op
    NNN: int
    NN: int
    N: int
    X: int
    Y: int


class OpCode(TypedDict):
    syntax: str
    description: str


list_OpCode: Final[Dict[Op, OpCode]] = {
    Op.UNKNOWN: {"syntax": "???", "description": "Unimplemented opcode"},
    Op.CLS: {"syntax": "CLS", "description": "Clear screen"},
    Op.RET: {"syntax": "RET", "description": "Return from subroutine"},
    Op.JP: {"syntax": "JP ${NNN}", "description": "Jump to address ${NNN}"},
    Op.CALL: {"syntax": "CALL ${NNN}", "description": "Call subroutine at ${NNN}"},
    Op.SE_BYTE: {"syntax": "SE V${X}, ${NN}", "description": "Skip next if V${X} == ${NN}"},
    Op.SNE_BYTE: {"syntax": "SNE V${X}, ${NN}", "description": "Skip next if V${X} != ${NN}"},
    Op.SE_REG: {"syntax": "SE V${X}, V${Y}", "description": "Skip next if V${X} == V${Y}"},
    Op.LD_BYTE: {"syntax": "LD V${X}, ${NN}", "description": "Set V${X} to ${NN}"},
    Op.ADD_BYTE: {"syntax": "ADD V${X}, ${NN}", "description": "Add ${NN} to V${X}"},
    Op.LD_REG: {"syntax": "LD V${X}, V${Y}", "description": "Set V${X} to V${Y}"},
    Op.OR: {"syntax": "OR V${X}, V${Y}", "description": "V${X} |= V${Y}"},
    Op.AND: {"syntax": "AND V${X}, V${Y}", "description": "V${X} &= V${Y}"},
    Op.XOR: {"syntax": "XOR V${X}, V${Y}", "description": "V${X} ^= V${Y}"},
    Op.ADD_REG: {"syntax": "ADD V${X}, V${Y}", "description": "V${X} += V${Y}, VF = carry"},
    Op.SUB: {"syntax": "SUB V${X}, V${Y}", "description": "V${X} -= V${Y}, VF = no borrow"},
    Op.SHR: {"syntax": "SHR V${X}", "description": "V${X} >>= 1, VF = bit shifted out"},
    Op.SUBN: {"syntax": "SUBN V${X}, V${Y}", "description": "V${X} = V${Y} - V${X}, VF = no borrow"},
    Op.SHL: {"syntax": "SHL V${X}", "description": "V${X} <<= 1, VF = bit shifted out"},
    Op.SNE_REG: {"syntax": "SNE V${X}, V${Y}", "description": "Skip next if V${X} != V${Y}"},
    Op.LD_I: {"syntax": "LD I, ${NNN}", "description": "Set I to ${NNN}"},
    Op.JP_V0: {"syntax": "JP V0, ${NNN}", "description": "Jump to V0 + ${NNN}"},
    Op.RND: {"syntax": "RND V${X}, ${NN}", "description": "Set V${X} to random byte & ${NN}"},
    Op.DRW: {"syntax": "DRW V${X}, V${Y}, ${N}", "description": "Draw sprite at V${X},V${Y} of height ${N}"},
    Op.SKP: {"syntax": "SKP V${X}", "description": "Skip next if key V${X} is pressed"},
    Op.SKNP: {"syntax": "SKNP V${X}", "description": "Skip next if key V${X} is not pressed"},
    Op.LD_VX_DT: {"syntax": "LD V${X}, DT", "description": "Set V${X} to delay timer"},
    Op.LD_VX_K: {"syntax": "LD V${X}, K", "description": "Wait for a key press, store it in V${X}"},
    Op.LD_DT: {"syntax": "LD DT, V${X}", "description": "Set delay timer to V${X}"},
    Op.LD_ST: {"syntax": "LD ST, V${X}", "description": "Set sound timer to V${X}"},
    Op.ADD_I: {"syntax": "ADD I, V${X}", "description": "I += V${X}"},
    Op.LD_F: {"syntax": "LD F, V${X}", "description": "Set I to font glyph of V${X}"},
    Op.LD_B: {"syntax": "LD B, V${X}", "description": "Store BCD of V${X} at I"},
    Op.LD_MEM_VX: {"syntax": "LD [I], V${X}", "description": "Store V0..V${X} at I"},
    Op.LD_VX_MEM: {"syntax": "LD V${X}, [I]", "description": "Load V0..V${X} from I"},
}

_ALU: Final[Dict[int, Op]] = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

_MISC: Final[Dict[int, Op]] = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT,
    0x18: Op.LD_ST,
    0x1E: Op.ADD_I,
    0x29: Op.LD_F,
    0x33: Op.LD_B,
    0x55: Op.LD_MEM_VX,
    0x65: Op.LD_VX_MEM,
}


def _classify(family: int, N: int, NN: int) -> Op:
    match family:
        case 0x0:
            # secondary dispatch on the low byte only, middle nibble ignored
            if NN == 0xE0:
                return Op.CLS
            if NN == 0xEE:
                return Op.RET
            return Op.UNKNOWN
        case 0x1:
            return Op.JP
        case 0x2:
            return Op.CALL
        case 0x3:
            return Op.SE_BYTE
        case 0x4:
            return Op.SNE_BYTE
        case 0x5:
            return Op.SE_REG if N == 0 else Op.UNKNOWN
        case 0x6:
            return Op.LD_BYTE
        case 0x7:
            return Op.ADD_BYTE
        case 0x8:
            return _ALU.get(N, Op.UNKNOWN)
        case 0x9:
            return Op.SNE_REG if N == 0 else Op.UNKNOWN
        case 0xA:
            return Op.LD_I
        case 0xB:
            return Op.JP_V0
        case 0xC:
            return Op.RND
        case 0xD:
            return Op.DRW
        case 0xE:
            if NN == 0x9E:
                return Op.SKP
            if NN == 0xA1:
                return Op.SKNP
            return Op.UNKNOWN
        case _:
            return _MISC.get(NN, Op.UNKNOWN)


def decode(word: int) -> Instruction:
    """Split a big-endian instruction word into its opcode fields. Never fails."""
    word = int(word) & 0xFFFF
    N = word & 0xF
    NN = word & 0xFF
    return Instruction(
        opcode=word,
        op=_classify(word >> 12, N, NN),
        NNN=word & 0xFFF,
        NN=NN,
        N=N,
        X=(word >> 8) & 0xF,
        Y=(word >> 4) & 0xF,
    )


class OpCodes:
    @staticmethod
    def _fields(ins: Instruction) -> Dict[str, str]:
        return {
            "NNN": f"0x{ins.NNN:03X}",
            "NN": f"0x{ins.NN:02X}",
            "N": f"{ins.N}",
            "X": f"{ins.X:X}",
            "Y": f"{ins.Y:X}",
        }

    @staticmethod
    def Disassemble(ins: Instruction) -> str:
        """Assembly-style rendering, e.g. ``LD V3, 0x2A``."""
        return Template(list_OpCode[ins.op]["syntax"]).substitute(OpCodes._fields(ins))

    @staticmethod
    def Describe(ins: Instruction) -> str:
        return Template(list_OpCode[ins.op]["description"]).substitute(OpCodes._fields(ins))
