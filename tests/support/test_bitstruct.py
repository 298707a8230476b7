import unittest

from sisa.support.bits import bits
from sisa.support.bitstruct import bitstruct


class BitstructTestCase(unittest.TestCase):
    def test_definition(self):
        bs = bitstruct("bs", 8, [("a", 3), ("b", 5)])
        self.assertEqual(bs.__name__, "bs")
        self.assertEqual(bs.__module__, __name__)
        self.assertEqual(bs.field_widths(), [("a", 3), ("b", 5)])

    def test_misuse(self):
        with self.assertRaisesRegex(TypeError,
                r"declared width is 8 bits, but sum of field widths is 9 bits"):
            bitstruct("bs", 8, [("a", 4), ("b", 5)])

        bs = bitstruct("bs", 8, [("a", 3), ("b", 5)])
        with self.assertRaises(TypeError):
            bs(c=1)
        with self.assertRaisesRegex(ValueError,
                r"field assignment requires a 3-bit integer, got 4-bit \(8\)"):
            bs(a=8)
        with self.assertRaisesRegex(ValueError,
                r"field assignment requires a non-negative integer, got -1"):
            bs(b=-1)
        with self.assertRaisesRegex(ValueError,
                r"initialization requires 8 bits, got 4 bits \(0000\)"):
            bs.from_bits(bits(0, 4))

    def test_msb_first(self):
        bs = bitstruct("bs", 8, [("a", 3), ("b", 5)])
        x = bs(1, 2)
        self.assertEqual(x.to_int(), 0b001_00010)
        self.assertEqual(x.to_bits(), bits("00100010"))

        y = bs.from_int(0x22)
        self.assertEqual(y.a, 1)
        self.assertEqual(y.b, 2)
        self.assertEqual(x, y)

    def test_signed(self):
        ss = bitstruct("ss", 8, [("hi", 2), ("lo", 6, True)])
        x = ss(lo=-1)
        self.assertEqual(x.to_int(), 0x3f)
        self.assertEqual(x.lo, -1)

        x.lo = 63
        self.assertEqual(x.lo, -1)
        x.lo = 31
        self.assertEqual(x.lo, 31)

        y = ss.from_int(0b01_100000)
        self.assertEqual(y.hi, 1)
        self.assertEqual(y.lo, -32)

        with self.assertRaisesRegex(ValueError,
                r"field assignment requires a 6-bit integer, got -33"):
            ss(lo=-33)
        with self.assertRaisesRegex(ValueError,
                r"field assignment requires a 6-bit integer, got 64"):
            ss(lo=64)

    def test_padding(self):
        p = bitstruct("p", 8, [("a", 4), (None, 4)])
        x = p(1)
        self.assertEqual(x.to_int(), 0x10)
        self.assertEqual(list(p._layout_), ["a", "padding_0"])
        self.assertEqual(x.to_dict(), {"a": 1})
        self.assertEqual(repr(x), f"<{__name__}.p a=0001>")

    def test_repr(self):
        ss = bitstruct("ss", 8, [("a", 3), ("b", 5, True)])
        x = ss(3, -4)
        self.assertEqual(repr(x), f"<{__name__}.ss a=011 b=11100>")
        self.assertEqual(x.to_dict(), {"a": 3, "b": -4})
