import sys
import types
import textwrap
from collections import OrderedDict

from .bits import *


__all__ = ["bitstruct"]


class _bitstruct:
    __slots__ = ()

    @staticmethod
    def _check_bits_(action, expected_width, value):
        assert isinstance(value, bits)
        if len(value) != expected_width:
            raise ValueError("%s requires %d bits, got %d bits (%s)"
                             % (action, expected_width, len(value), value))

    @staticmethod
    def _check_int_(action, expected_width, value, signed=False):
        assert isinstance(value, int)
        if signed:
            if not -(1 << (expected_width - 1)) <= value < (1 << expected_width):
                raise ValueError("%s requires a %d-bit integer, got %d"
                                 % (action, expected_width, value))
            return
        if value < 0:
            raise ValueError("%s requires a non-negative integer, got %d"
                             % (action, value))
        if value.bit_length() > expected_width:
            raise ValueError("%s requires a %d-bit integer, got %d-bit (%d)"
                             % (action, expected_width, value.bit_length(), value))

    @staticmethod
    def _define_fields_(cls, declared_bits, fields):
        fields = [(field[0], field[1], field[2] if len(field) > 2 else False)
                  for field in fields]
        total_bits = sum(width for name, width, signed in fields)
        if total_bits != declared_bits:
            raise TypeError("declared width is %d bits, but sum of field widths is %d bits"
                            % (declared_bits, total_bits))

        cls["_size_bits_"]    = declared_bits
        cls["_named_fields_"] = []
        cls["_signed_"]       = set()
        cls["_layout_"]       = OrderedDict()

        # Fields are declared MSB-first, the way instruction formats are drawn.
        offset = declared_bits
        for name, width, signed in fields:
            offset -= width
            if name is None:
                name = "padding_%d" % offset
            else:
                cls["_named_fields_"].append(name)
            if signed:
                cls["_signed_"].add(name)
            cls["_layout_"][name] = (offset, width)

        cls["__slots__"] = tuple(f"_f_{field}" for field in cls["_layout_"])

        code = textwrap.dedent(f"""
        def __init__(self, {", ".join(f"{field}=0" for field in cls["_named_fields_"])}):
            {"; ".join(f"self._f_{field} = 0"
                       for field in cls["_layout_"] if field not in cls["_named_fields_"])}
            {"; ".join(f"self.{field} = {field}"
                       for field in cls["_layout_"] if field in cls["_named_fields_"])}

        @classmethod
        def from_bits(cls, value):
            cls._check_bits_("initialization", cls._size_bits_, value)
            self = object.__new__(cls)
            {"; ".join(f"self._f_{field} = int(value[{offset}:{offset+width}])"
                       for field, (offset, width) in cls["_layout_"].items())}
            return self

        def to_bits(self):
            value = 0
            {"; ".join(f"value |= self._f_{field} << {offset}"
                       for field, (offset, width) in cls["_layout_"].items())}
            return bits(value, self._size_bits_)
        """)

        for field, (offset, width) in cls["_layout_"].items():
            signed = field in cls["_signed_"]
            if signed:
                getter = (f"return self._f_{field} - ((self._f_{field} >> {width - 1}) << {width})")
            else:
                getter = f"return self._f_{field}"
            code += textwrap.dedent(f"""
            @property
            def {field}(self):
                {getter}

            @{field}.setter
            def {field}(self, value):
                if isinstance(value, bits):
                    self._check_bits_("field assignment", {width}, value)
                else:
                    self._check_int_("field assignment", {width}, value, signed={signed})
                self._f_{field} = int(value) & {(1 << width) - 1}
            """)

        methods = {}
        exec(code, globals(), methods)
        for name, method in methods.items():
            cls[name] = method

    @classmethod
    def from_int(cls, value):
        cls._check_int_("initialization", cls._size_bits_, value)
        return cls.from_bits(bits(value, cls._size_bits_))

    @classmethod
    def field_widths(cls):
        """Returns ``(name, width)`` pairs for the named fields, MSB-first."""
        return [(name, cls._layout_[name][1]) for name in cls._named_fields_]

    def to_int(self):
        return int(self.to_bits())

    def to_dict(self):
        return {name: getattr(self, name) for name in self._named_fields_}

    def __repr__(self):
        fields = " ".join("{}={:0{}b}".format(name, getattr(self, f"_f_{name}"), self._layout_[name][1])
                          for name in self._named_fields_)
        return f"<{self.__module__}.{self.__class__.__name__} {fields}>"

    def __eq__(self, other):
        return isinstance(other, self.__class__) and self.to_bits() == other.to_bits()


def bitstruct(name, size_bits, fields):
    """
    Define a fixed-width bit-field structure.

    ``fields`` is a list of ``(name, width)`` or ``(name, width, signed)`` tuples, most
    significant field first. A ``None`` name declares padding. Signed fields read back as
    two's complement integers and accept either representation on assignment.
    """
    mod = sys._getframe(1).f_globals["__name__"] # see namedtuple()

    cls = types.new_class(name, (_bitstruct,),
        exec_body=lambda ns: _bitstruct._define_fields_(ns, size_bits, fields))
    cls.__module__ = mod

    return cls
