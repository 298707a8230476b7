__all__ = [
    "SEL_ALU", "SEL_CMP", "SEL_ADDI", "SEL_LD", "SEL_ST", "SEL_LDB", "SEL_STB", "SEL_JALR",
    "SEL_BRANCH", "SEL_MOVE", "SEL_IO",
    "FUNC_AND", "FUNC_OR", "FUNC_XOR", "FUNC_NOT", "FUNC_ADD", "FUNC_SUB", "FUNC_SHA", "FUNC_SHL",
    "FUNC_CMPLT", "FUNC_CMPLE", "FUNC_CMPEQ", "FUNC_CMPLTU", "FUNC_CMPLEU",
    "FLAG_BZ", "FLAG_BNZ", "FLAG_MOVI", "FLAG_MOVHI", "FLAG_IN", "FLAG_OUT",
]


SEL_ALU     = 0b0000
SEL_CMP     = 0b0001
SEL_ADDI    = 0b0010
SEL_LD      = 0b0011
SEL_ST      = 0b0100
SEL_LDB     = 0b0101
SEL_STB     = 0b0110
SEL_JALR    = 0b0111
SEL_BRANCH  = 0b1000
SEL_MOVE    = 0b1001
SEL_IO      = 0b1010
# 0b1011..0b1111 reserved

FUNC_AND    = 0b000
FUNC_OR     = 0b001
FUNC_XOR    = 0b010
FUNC_NOT    = 0b011
FUNC_ADD    = 0b100
FUNC_SUB    = 0b101
FUNC_SHA    = 0b110
FUNC_SHL    = 0b111

FUNC_CMPLT  = 0b000
FUNC_CMPLE  = 0b001
# 0b010 unassigned
FUNC_CMPEQ  = 0b011
FUNC_CMPLTU = 0b100
FUNC_CMPLEU = 0b101
# 0b110, 0b111 unassigned

FLAG_BZ     = 0
FLAG_BNZ    = 1
FLAG_MOVI   = 0
FLAG_MOVHI  = 1
FLAG_IN     = 0
FLAG_OUT    = 1
