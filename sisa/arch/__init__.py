# Introduction
# ------------
#
# _SISA_ is a small 16-bit load/store architecture used for teaching. This package is the primary
# document defining it; the assembler (`sisa.assembler`) and the interpreter (`sisa.machine`) are
# independent consumers of the encoding defined here and must agree with it bit for bit.
#
# Overview
# --------
#
# The major characteristics of the SISA architecture are:
#   * Eight 16-bit general purpose registers, R0 to R7. R0 is not hardwired to zero.
#   * Byte-addressable 64 KiB data memory; 16-bit accesses are little-endian.
#   * Instruction stream separate from data memory, addressed by instruction index.
#   * Fixed 16-bit instruction word, stored little-endian.
#   * Four instruction formats:
#     - R3-arith, for ALU operations on three registers.
#     - R3-compare, for comparisons on three registers.
#     - N6, for operations with a register pair and a 6-bit sign-extended immediate.
#     - N8, for operations with one register and an 8-bit sign-extended immediate.
#   * No flags; comparisons write 0 or 1 to a register.
#
# Instruction format
# ------------------
#
#             +---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+
#             | F | E | D | C | B | A | 9 | 8 | 7 | 6 | 5 | 4 | 3 | 2 | 1 | 0 |
#             +---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+
#  R3-arith   | 0 | 0 | 0 | 0 |   R-opa   |   R-opb   |   R-dst   |   func    |
#             +---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+
#  R3-compare | 0 | 0 | 0 | 1 |   R-opa   |   R-opb   |   R-dst   |   func    |
#             +---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+
#  N6         |   selector    |   R-adr   | R-src/dst |       immediate       |
#             +---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+
#  N8         |   selector    | R-src/dst | f |           immediate           |
#             +---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+---+
#
# Selectors 0b0010..0b0111 are N6, 0b1000..0b1010 are N8, and 0b1011..0b1111 are reserved.
# Executing a reserved selector, or an unassigned function code, is a decode error.
#
# Instruction set summary
# -----------------------
#
# * selector=0000 (R3-arith)
#   + func=000 AND      + func=100 ADD
#   + func=001 OR       + func=101 SUB
#   + func=010 XOR      + func=110 SHA
#   + func=011 NOT      + func=111 SHL
# * selector=0001 (R3-compare)
#   + func=000 CMPLT    + func=100 CMPLTU
#   + func=001 CMPLE    + func=101 CMPLEU
#   + func=011 CMPEQ    + func=010, 110, 111 (unassigned)
# * selector=0010 ADDI
# * selector=0011 LD
# * selector=0100 ST
# * selector=0101 LDB
# * selector=0110 STB
# * selector=0111 JALR
# * selector=1000 (branch)
#   + flag=0 BZ         + flag=1 BNZ
# * selector=1001 (move immediate)
#   + flag=0 MOVI       + flag=1 MOVHI
# * selector=1010 (port I/O)
#   + flag=0 IN         + flag=1 OUT
#
# Arithmetic instructions
# -----------------------
#
# Mnemonic:  ADD Rd, Ra, Rb
# Operation: Rd ← Ra + Rb
#
# Mnemonic:  SUB Rd, Ra, Rb
# Operation: Rd ← Ra - Rb
#
# Mnemonic:  ADDI Rd, Ra, imm
# Operation: Rd ← Ra + sext(imm)
#
# All arithmetic wraps around modulo 2^16.
#
# Logic instructions
# ------------------
#
# Mnemonic:  AND Rd, Ra, Rb / OR Rd, Ra, Rb / XOR Rd, Ra, Rb
# Operation: Rd ← Ra & Rb / Ra | Rb / Ra ^ Rb
#
# Mnemonic:  NOT Rd, Ra
# Operation: Rd ← ~Ra
# The R-opb field of NOT must be zero.
#
# Shift instructions
# ------------------
#
# Mnemonic:  SHA Rd, Ra, Rb
# Operation: Rd ← Ra × 2^(Rb[3:0]), Ra signed
#
# Mnemonic:  SHL Rd, Ra, Rb
# Operation: Rd ← Ra × 2^(Rb[3:0]), Ra unsigned
#
# Both shifts only move bits towards the MSB; there is no right shift.
#
# Comparison instructions
# -----------------------
#
# Mnemonic:  CMPLT Rd, Ra, Rb / CMPLE Rd, Ra, Rb / CMPEQ Rd, Ra, Rb
# Operation: Rd ← (Ra < Rb) / (Ra ≤ Rb) / (Ra = Rb), signed
#
# Mnemonic:  CMPLTU Rd, Ra, Rb / CMPLEU Rd, Ra, Rb
# Operation: Rd ← (Ra < Rb) / (Ra ≤ Rb), unsigned
#
# Move instructions
# -----------------
#
# Mnemonic:  MOVI Rd, imm
# Operation: Rd ← sext(imm)
#
# Mnemonic:  MOVHI Rd, imm
# Operation: Rd[15:8] ← imm, Rd[7:0] unchanged
#
# Memory instructions
# -------------------
#
# Mnemonic:  LD Rd, off(Ra)
# Operation: Rd ← mem[Ra+sext(off)+1] : mem[Ra+sext(off)]
#
# Mnemonic:  ST off(Ra), Rs
# Operation: mem[Ra+sext(off)+1] : mem[Ra+sext(off)] ← Rs
#
# Mnemonic:  LDB Rd, off(Ra)
# Operation: Rd ← sext(mem[Ra+sext(off)])
#
# Mnemonic:  STB off(Ra), Rs
# Operation: mem[Ra+sext(off)] ← Rs[7:0]
#
# Effective addresses wrap around modulo 2^16.
#
# Control transfer instructions
# -----------------------------
#
# Mnemonic:  JALR Rd, Ra
# Operation: Rd ← PC+1, PC ← Ra
#
# Mnemonic:  BZ Rs, off / BNZ Rs, off
# Operation: if Rs = 0 / Rs ≠ 0: PC ← PC+sext(off)
#
# PC counts instructions, not bytes. When no transfer happens, PC ← PC+1.
#
# Port instructions
# -----------------
#
# Mnemonic:  IN Rd, port
# Operation: Rd ← port[imm[7:0]]
#
# Mnemonic:  OUT port, Rs
# Operation: port[imm[7:0]] ← Rs

from .opcode import *
from .instr import *
