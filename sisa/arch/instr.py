import enum
from collections import namedtuple

from ..support.bits import *
from ..support.bitstruct import *
from .opcode import *


__all__ = [
    "R0", "R1", "R2", "R3", "R4", "R5", "R6", "R7",
    "WORD_BITS", "WORD_BYTES",
    "DecodeError", "Format", "Mnemonic", "InstructionInfo", "INSTRUCTIONS",
    "R3_FORMAT", "N6_FORMAT", "N8_FORMAT",
    "selector_format", "encode", "decode", "identify", "disassemble", "format_word",
    "AND", "OR", "XOR", "NOT", "ADD", "SUB", "SHA", "SHL",
    "CMPLT", "CMPLE", "CMPEQ", "CMPLTU", "CMPLEU",
    "ADDI", "LD", "ST", "LDB", "STB", "JALR",
    "BZ", "BNZ", "MOVI", "MOVHI", "IN", "OUT",
]


WORD_BITS  = 16
WORD_BYTES = 2


class DecodeError(Exception):
    pass


class Format(enum.Enum):
    R3_ARITH   = "R3-arith"
    R3_COMPARE = "R3-compare"
    N6         = "N6"
    N8         = "N8"


R3_FORMAT = bitstruct("R3_FORMAT", 16, [
    ("selector", 4),
    ("areg",     3),
    ("breg",     3),
    ("dreg",     3),
    ("func",     3),
])

N6_FORMAT = bitstruct("N6_FORMAT", 16, [
    ("selector", 4),
    ("areg",     3),
    ("dbreg",    3),
    ("imm6",     6, True),
])

N8_FORMAT = bitstruct("N8_FORMAT", 16, [
    ("selector", 4),
    ("reg",      3),
    ("flag",     1),
    ("imm8",     8, True),
])

_layouts = {
    Format.R3_ARITH:   R3_FORMAT,
    Format.R3_COMPARE: R3_FORMAT,
    Format.N6:         N6_FORMAT,
    Format.N8:         N8_FORMAT,
}

_templates = {
    Format.R3_ARITH:   "xxxx xxx xxx xxx xxx",
    Format.R3_COMPARE: "xxxx xxx xxx xxx xxx",
    Format.N6:         "xxxx xxx xxx xxxxxx",
    Format.N8:         "xxxx xxx x xxxxxxxx",
}

_implied_selectors = {
    Format.R3_ARITH:   SEL_ALU,
    Format.R3_COMPARE: SEL_CMP,
}


def selector_format(selector):
    """Return the ``Format`` of instructions with the given 4-bit selector."""
    if selector == SEL_ALU:
        return Format.R3_ARITH
    elif selector == SEL_CMP:
        return Format.R3_COMPARE
    elif SEL_ADDI <= selector <= SEL_JALR:
        return Format.N6
    elif SEL_BRANCH <= selector <= SEL_IO:
        return Format.N8
    else:
        raise DecodeError(f"reserved selector {selector:#06b}")


def encode(format, **fields):
    """
    Pack ``fields`` into a 16-bit instruction word of the given ``format``.

    Every field is masked to its width; bits that do not fit are discarded. The R3 formats imply
    their selector, so it may be omitted; N6 and N8 instructions must name theirs.
    """
    layout = _layouts[format]
    widths = dict(layout.field_widths())
    if format in _implied_selectors:
        fields.setdefault("selector", _implied_selectors[format])
        if fields["selector"] != _implied_selectors[format]:
            raise ValueError(f"{format.value} format requires selector "
                             f"{_implied_selectors[format]}, got {fields['selector']}")
    elif "selector" not in fields:
        raise TypeError(f"{format.value} format requires a selector")
    else:
        try:
            selector_matches = selector_format(fields["selector"] & 0b1111) == format
        except DecodeError:
            selector_matches = False
        if not selector_matches:
            raise ValueError(f"selector {fields['selector']} does not belong to "
                             f"{format.value} format")

    masked = {}
    for name, value in fields.items():
        if name not in widths:
            raise TypeError(f"{format.value} format has no field {name!r}")
        masked[name] = value & ((1 << widths[name]) - 1)
    return layout(**masked).to_int()


def decode(word):
    """
    Split a 16-bit instruction word into its ``Format`` and a dictionary of its fields.
    Immediate fields are sign-extended.
    """
    if word not in range(1 << WORD_BITS):
        raise ValueError(f"instruction word must be a 16-bit unsigned integer, got {word}")
    format = selector_format(word >> 12)
    return format, _layouts[format].from_int(word).to_dict()


InstructionInfo = namedtuple("InstructionInfo", ("format", "selector", "code"))


class Mnemonic(enum.Enum):
    AND    = "AND"
    OR     = "OR"
    XOR    = "XOR"
    NOT    = "NOT"
    ADD    = "ADD"
    SUB    = "SUB"
    SHA    = "SHA"
    SHL    = "SHL"
    CMPLT  = "CMPLT"
    CMPLE  = "CMPLE"
    CMPEQ  = "CMPEQ"
    CMPLTU = "CMPLTU"
    CMPLEU = "CMPLEU"
    ADDI   = "ADDI"
    LD     = "LD"
    ST     = "ST"
    LDB    = "LDB"
    STB    = "STB"
    JALR   = "JALR"
    BZ     = "BZ"
    BNZ    = "BNZ"
    MOVI   = "MOVI"
    MOVHI  = "MOVHI"
    IN     = "IN"
    OUT    = "OUT"


# `code` is the function code for the R3 formats, the flag bit for N8, and None for N6.
INSTRUCTIONS = {
    Mnemonic.AND:    InstructionInfo(Format.R3_ARITH,   SEL_ALU,    FUNC_AND),
    Mnemonic.OR:     InstructionInfo(Format.R3_ARITH,   SEL_ALU,    FUNC_OR),
    Mnemonic.XOR:    InstructionInfo(Format.R3_ARITH,   SEL_ALU,    FUNC_XOR),
    Mnemonic.NOT:    InstructionInfo(Format.R3_ARITH,   SEL_ALU,    FUNC_NOT),
    Mnemonic.ADD:    InstructionInfo(Format.R3_ARITH,   SEL_ALU,    FUNC_ADD),
    Mnemonic.SUB:    InstructionInfo(Format.R3_ARITH,   SEL_ALU,    FUNC_SUB),
    Mnemonic.SHA:    InstructionInfo(Format.R3_ARITH,   SEL_ALU,    FUNC_SHA),
    Mnemonic.SHL:    InstructionInfo(Format.R3_ARITH,   SEL_ALU,    FUNC_SHL),
    Mnemonic.CMPLT:  InstructionInfo(Format.R3_COMPARE, SEL_CMP,    FUNC_CMPLT),
    Mnemonic.CMPLE:  InstructionInfo(Format.R3_COMPARE, SEL_CMP,    FUNC_CMPLE),
    Mnemonic.CMPEQ:  InstructionInfo(Format.R3_COMPARE, SEL_CMP,    FUNC_CMPEQ),
    Mnemonic.CMPLTU: InstructionInfo(Format.R3_COMPARE, SEL_CMP,    FUNC_CMPLTU),
    Mnemonic.CMPLEU: InstructionInfo(Format.R3_COMPARE, SEL_CMP,    FUNC_CMPLEU),
    Mnemonic.ADDI:   InstructionInfo(Format.N6,         SEL_ADDI,   None),
    Mnemonic.LD:     InstructionInfo(Format.N6,         SEL_LD,     None),
    Mnemonic.ST:     InstructionInfo(Format.N6,         SEL_ST,     None),
    Mnemonic.LDB:    InstructionInfo(Format.N6,         SEL_LDB,    None),
    Mnemonic.STB:    InstructionInfo(Format.N6,         SEL_STB,    None),
    Mnemonic.JALR:   InstructionInfo(Format.N6,         SEL_JALR,   None),
    Mnemonic.BZ:     InstructionInfo(Format.N8,         SEL_BRANCH, FLAG_BZ),
    Mnemonic.BNZ:    InstructionInfo(Format.N8,         SEL_BRANCH, FLAG_BNZ),
    Mnemonic.MOVI:   InstructionInfo(Format.N8,         SEL_MOVE,   FLAG_MOVI),
    Mnemonic.MOVHI:  InstructionInfo(Format.N8,         SEL_MOVE,   FLAG_MOVHI),
    Mnemonic.IN:     InstructionInfo(Format.N8,         SEL_IO,     FLAG_IN),
    Mnemonic.OUT:    InstructionInfo(Format.N8,         SEL_IO,     FLAG_OUT),
}

_by_code = {
    (info.selector, info.code): mnemonic for mnemonic, info in INSTRUCTIONS.items()
}


def identify(word):
    """
    Decode ``word`` and resolve its mnemonic. Returns a ``(Mnemonic, fields)`` tuple.

    Raises ``DecodeError`` for reserved selectors, unassigned comparison function codes, and
    ``NOT`` instructions with a non-zero ``breg`` field.
    """
    format, fields = decode(word)
    selector = fields["selector"]
    if format in (Format.R3_ARITH, Format.R3_COMPARE):
        code = fields["func"]
    elif format == Format.N8:
        code = fields["flag"]
    else:
        code = None

    mnemonic = _by_code.get((selector, code))
    if mnemonic is None:
        raise DecodeError(f"unassigned function code {code:#05b} for selector {selector:#06b}")
    if mnemonic == Mnemonic.NOT and fields["breg"] != 0:
        raise DecodeError(f"NOT requires breg=0, got breg={fields['breg']}")
    return mnemonic, fields


def disassemble(word):
    """Render ``word`` in assembler syntax; assembling the result yields ``word`` again."""
    mnemonic, fields = identify(word)
    name   = mnemonic.value
    format = INSTRUCTIONS[mnemonic].format
    if format in (Format.R3_ARITH, Format.R3_COMPARE):
        rd, ra, rb = fields["dreg"], fields["areg"], fields["breg"]
        if mnemonic == Mnemonic.NOT:
            return f"{name} R{rd}, R{ra}"
        return f"{name} R{rd}, R{ra}, R{rb}"
    elif format == Format.N6:
        rdb, ra, imm = fields["dbreg"], fields["areg"], fields["imm6"]
        if mnemonic == Mnemonic.ADDI:
            return f"{name} R{rdb}, R{ra}, {imm}"
        elif mnemonic in (Mnemonic.LD, Mnemonic.LDB):
            return f"{name} R{rdb}, {imm}(R{ra})"
        elif mnemonic in (Mnemonic.ST, Mnemonic.STB):
            return f"{name} {imm}(R{ra}), R{rdb}"
        else:
            return f"{name} R{rdb}, R{ra}"
    else:
        reg, imm = fields["reg"], fields["imm8"]
        if mnemonic == Mnemonic.OUT:
            return f"{name} {imm}, R{reg}"
        return f"{name} R{reg}, {imm}"


def format_word(word):
    """Render ``word`` in binary with its fields separated by spaces."""
    try:
        format, _ = decode(word)
        template = _templates[format]
    except DecodeError:
        template = "xxxx xxxxxxxxxxxx"
    return bits(word, WORD_BITS).to_template(template)


R0, R1, R2, R3, R4, R5, R6, R7 = range(8)


def _r3(mnemonic, rd, ra, rb):
    assert rd in range(8) and ra in range(8) and rb in range(8)
    format, selector, func = INSTRUCTIONS[mnemonic]
    return encode(format, areg=ra, breg=rb, dreg=rd, func=func)

def _n6(mnemonic, rdb, ra, imm):
    assert rdb in range(8) and ra in range(8)
    format, selector, _ = INSTRUCTIONS[mnemonic]
    return encode(format, selector=selector, areg=ra, dbreg=rdb, imm6=imm)

def _n8(mnemonic, reg, imm):
    assert reg in range(8)
    format, selector, flag = INSTRUCTIONS[mnemonic]
    return encode(format, selector=selector, reg=reg, flag=flag, imm8=imm)


def AND   (rd, ra, rb):  return _r3(Mnemonic.AND,    rd, ra, rb)
def OR    (rd, ra, rb):  return _r3(Mnemonic.OR,     rd, ra, rb)
def XOR   (rd, ra, rb):  return _r3(Mnemonic.XOR,    rd, ra, rb)
def NOT   (rd, ra):      return _r3(Mnemonic.NOT,    rd, ra,  0)
def ADD   (rd, ra, rb):  return _r3(Mnemonic.ADD,    rd, ra, rb)
def SUB   (rd, ra, rb):  return _r3(Mnemonic.SUB,    rd, ra, rb)
def SHA   (rd, ra, rb):  return _r3(Mnemonic.SHA,    rd, ra, rb)
def SHL   (rd, ra, rb):  return _r3(Mnemonic.SHL,    rd, ra, rb)

def CMPLT (rd, ra, rb):  return _r3(Mnemonic.CMPLT,  rd, ra, rb)
def CMPLE (rd, ra, rb):  return _r3(Mnemonic.CMPLE,  rd, ra, rb)
def CMPEQ (rd, ra, rb):  return _r3(Mnemonic.CMPEQ,  rd, ra, rb)
def CMPLTU(rd, ra, rb):  return _r3(Mnemonic.CMPLTU, rd, ra, rb)
def CMPLEU(rd, ra, rb):  return _r3(Mnemonic.CMPLEU, rd, ra, rb)

def ADDI  (rd, ra, imm): return _n6(Mnemonic.ADDI,   rd, ra, imm)
def LD    (rd, ra, off): return _n6(Mnemonic.LD,     rd, ra, off)
def ST    (rs, ra, off): return _n6(Mnemonic.ST,     rs, ra, off)
def LDB   (rd, ra, off): return _n6(Mnemonic.LDB,    rd, ra, off)
def STB   (rs, ra, off): return _n6(Mnemonic.STB,    rs, ra, off)
def JALR  (rd, ra):      return _n6(Mnemonic.JALR,   rd, ra,  0)

def BZ    (rs, off):     return _n8(Mnemonic.BZ,     rs, off)
def BNZ   (rs, off):     return _n8(Mnemonic.BNZ,    rs, off)
def MOVI  (rd, imm):     return _n8(Mnemonic.MOVI,   rd, imm)
def MOVHI (rd, imm):     return _n8(Mnemonic.MOVHI,  rd, imm)
def IN    (rd, port):    return _n8(Mnemonic.IN,     rd, port)
def OUT   (port, rs):    return _n8(Mnemonic.OUT,    rs, port)
