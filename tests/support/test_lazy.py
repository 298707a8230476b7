import unittest

from sisa.support.lazy import lazy


class LazyTestCase(unittest.TestCase):
    def test_deferred(self):
        calls = []
        def thunk():
            calls.append(1)
            return "abc"
        value = lazy(thunk)
        self.assertEqual(calls, [])
        self.assertEqual(str(value), "abc")
        self.assertEqual(value.upper(), "ABC")
        self.assertEqual(calls, [1])

    def test_specials(self):
        self.assertEqual("{:04x}".format(lazy(lambda: 10)), "000a")
        self.assertEqual("%s" % lazy(lambda: "x"), "x")
        self.assertEqual(len(lazy(lambda: [1, 2])), 2)
        self.assertEqual(lazy(lambda: [1, 2])[1], 2)
        self.assertEqual(int(lazy(lambda: 5)), 5)
        self.assertFalse(lazy(lambda: 0))
        self.assertEqual(lazy(lambda: 5), 5)

    def test_repr(self):
        value = lazy(lambda: 5)
        self.assertTrue(repr(value).startswith("<lazy <function"))
        str(value)
        self.assertEqual(repr(value), "<lazy 5>")

    def test_immutable(self):
        value = lazy(lambda: 5)
        with self.assertRaises(AttributeError):
            value.x = 1
