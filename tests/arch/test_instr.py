import unittest

from sisa.arch import *
from sisa.assembler import Assembler


class EncodingTestCase(unittest.TestCase):
    def test_known_words(self):
        self.assertEqual(MOVI(R0, 5), 0x9005)
        self.assertEqual(ADD(R1, R0, R0), 0x000C)
        self.assertEqual(CMPLT(R5, R3, R4), 0b0001_011_100_101_000)
        self.assertEqual(ADDI(R2, R1, -1), 0b0010_001_010_111111)
        self.assertEqual(encode(Format.N8, selector=SEL_MOVE, reg=0, flag=FLAG_MOVI, imm8=5),
                         0x9005)

    def test_flags(self):
        self.assertEqual(BZ(R1, 2) & 0x100, 0)
        self.assertEqual(BNZ(R1, 2) & 0x100, 0x100)
        self.assertEqual(MOVI(R1, 2) & 0x100, 0)
        self.assertEqual(MOVHI(R1, 2) & 0x100, 0x100)
        self.assertEqual(IN(R1, 2) & 0x100, 0)
        self.assertEqual(OUT(2, R1) & 0x100, 0x100)

    def test_truncation(self):
        word = encode(Format.N8, selector=SEL_MOVE, reg=0, imm8=200)
        self.assertEqual(word, 0x90C8)
        self.assertEqual(decode(word)[1]["imm8"], -56)
        self.assertEqual(ADDI(R0, R0, 64), ADDI(R0, R0, 0))

    def test_field_isolation(self):
        selectors = {
            Format.R3_ARITH:   SEL_ALU,
            Format.R3_COMPARE: SEL_CMP,
            Format.N6:         SEL_LD,
            Format.N8:         SEL_MOVE,
        }
        layouts = {
            Format.R3_ARITH:   R3_FORMAT,
            Format.R3_COMPARE: R3_FORMAT,
            Format.N6:         N6_FORMAT,
            Format.N8:         N8_FORMAT,
        }
        for format, selector in selectors.items():
            for name, width in layouts[format].field_widths():
                if name == "selector":
                    continue
                for value in range(1 << width):
                    with self.subTest(format=format, field=name, value=value):
                        word = encode(format, selector=selector, **{name: value})
                        decoded_format, fields = decode(word)
                        self.assertEqual(decoded_format, format)
                        self.assertEqual(fields["selector"], selector)
                        self.assertEqual(fields[name] & ((1 << width) - 1), value)
                        for other, other_value in fields.items():
                            if other not in ("selector", name):
                                self.assertEqual(other_value, 0)

    def test_encode_errors(self):
        with self.assertRaisesRegex(TypeError, r"N6 format requires a selector"):
            encode(Format.N6, areg=1)
        with self.assertRaisesRegex(ValueError, r"selector 9 does not belong to N6 format"):
            encode(Format.N6, selector=SEL_MOVE)
        with self.assertRaisesRegex(ValueError, r"selector 11 does not belong to N8 format"):
            encode(Format.N8, selector=11)
        with self.assertRaisesRegex(ValueError, r"R3-arith format requires selector 0, got 1"):
            encode(Format.R3_ARITH, selector=1)
        with self.assertRaisesRegex(TypeError, r"N8 format has no field 'imm6'"):
            encode(Format.N8, selector=SEL_MOVE, imm6=1)

    def test_decode_errors(self):
        with self.assertRaisesRegex(ValueError, r"must be a 16-bit unsigned integer"):
            decode(0x10000)
        with self.assertRaisesRegex(ValueError, r"must be a 16-bit unsigned integer"):
            decode(-1)
        for selector in range(11, 16):
            with self.subTest(selector=selector):
                with self.assertRaisesRegex(DecodeError, r"reserved selector"):
                    decode(selector << 12)

    def test_selector_format(self):
        self.assertEqual(selector_format(0), Format.R3_ARITH)
        self.assertEqual(selector_format(1), Format.R3_COMPARE)
        for selector in range(2, 8):
            self.assertEqual(selector_format(selector), Format.N6)
        for selector in range(8, 11):
            self.assertEqual(selector_format(selector), Format.N8)


class IdentifyTestCase(unittest.TestCase):
    def test_table(self):
        self.assertEqual(set(INSTRUCTIONS), set(Mnemonic))
        self.assertEqual(len(Mnemonic), 25)

    def test_identify(self):
        mnemonic, fields = identify(0x9005)
        self.assertEqual(mnemonic, Mnemonic.MOVI)
        self.assertEqual(fields, {"selector": 9, "reg": 0, "flag": 0, "imm8": 5})

        mnemonic, fields = identify(LD(R1, R2, -4))
        self.assertEqual(mnemonic, Mnemonic.LD)
        self.assertEqual(fields, {"selector": 3, "areg": 2, "dbreg": 1, "imm6": -4})

    def test_every_mnemonic(self):
        words = {
            Mnemonic.AND: AND(R1, R2, R3), Mnemonic.OR: OR(R1, R2, R3),
            Mnemonic.XOR: XOR(R1, R2, R3), Mnemonic.NOT: NOT(R1, R2),
            Mnemonic.ADD: ADD(R1, R2, R3), Mnemonic.SUB: SUB(R1, R2, R3),
            Mnemonic.SHA: SHA(R1, R2, R3), Mnemonic.SHL: SHL(R1, R2, R3),
            Mnemonic.CMPLT: CMPLT(R1, R2, R3), Mnemonic.CMPLE: CMPLE(R1, R2, R3),
            Mnemonic.CMPEQ: CMPEQ(R1, R2, R3), Mnemonic.CMPLTU: CMPLTU(R1, R2, R3),
            Mnemonic.CMPLEU: CMPLEU(R1, R2, R3),
            Mnemonic.ADDI: ADDI(R1, R2, 3), Mnemonic.LD: LD(R1, R2, 3),
            Mnemonic.ST: ST(R1, R2, 3), Mnemonic.LDB: LDB(R1, R2, 3),
            Mnemonic.STB: STB(R1, R2, 3), Mnemonic.JALR: JALR(R1, R2),
            Mnemonic.BZ: BZ(R1, 3), Mnemonic.BNZ: BNZ(R1, 3),
            Mnemonic.MOVI: MOVI(R1, 3), Mnemonic.MOVHI: MOVHI(R1, 3),
            Mnemonic.IN: IN(R1, 3), Mnemonic.OUT: OUT(3, R1),
        }
        for mnemonic, word in words.items():
            with self.subTest(mnemonic=mnemonic):
                self.assertEqual(identify(word)[0], mnemonic)

    def test_reserved_compare(self):
        for func in (2, 6, 7):
            with self.subTest(func=func):
                with self.assertRaisesRegex(DecodeError, r"unassigned function code"):
                    identify(encode(Format.R3_COMPARE, func=func))

    def test_not_breg(self):
        word = encode(Format.R3_ARITH, areg=2, breg=3, dreg=1, func=FUNC_NOT)
        with self.assertRaisesRegex(DecodeError, r"NOT requires breg=0, got breg=3"):
            identify(word)


class DisassemblerTestCase(unittest.TestCase):
    def test_syntax(self):
        self.assertEqual(disassemble(MOVI(R0, 5)), "MOVI R0, 5")
        self.assertEqual(disassemble(ADD(R1, R0, R0)), "ADD R1, R0, R0")
        self.assertEqual(disassemble(NOT(R1, R2)), "NOT R1, R2")
        self.assertEqual(disassemble(ADDI(R1, R1, -3)), "ADDI R1, R1, -3")
        self.assertEqual(disassemble(LD(R1, R2, -4)), "LD R1, -4(R2)")
        self.assertEqual(disassemble(ST(R3, R4, 6)), "ST 6(R4), R3")
        self.assertEqual(disassemble(JALR(R6, R1)), "JALR R6, R1")
        self.assertEqual(disassemble(BNZ(R2, -7)), "BNZ R2, -7")
        self.assertEqual(disassemble(IN(R1, 3)), "IN R1, 3")
        self.assertEqual(disassemble(OUT(16, R2)), "OUT 16, R2")

    def test_reassemble(self):
        lines = [
            "AND R7, R6, R5", "SUB R0, R1, R2", "CMPLEU R3, R4, R5", "NOT R2, R7",
            "ADDI R1, R2, 31", "LDB R3, 0(R1)", "STB -32(R7), R0", "JALR R0, R7",
            "BZ R3, -128", "MOVHI R4, 127", "IN R5, -1", "OUT 100, R6",
        ]
        for line in lines:
            with self.subTest(line=line):
                self.assertEqual(disassemble(Assembler().assemble(line)), line)

    def test_format_word(self):
        self.assertEqual(format_word(0x9005), "1001 000 0 00000101")
        self.assertEqual(format_word(0x000C), "0000 000 000 001 100")
        self.assertEqual(format_word(ADDI(R2, R1, -1)), "0010 001 010 111111")
        self.assertEqual(format_word(0xF000), "1111 000000000000")
