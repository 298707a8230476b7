import re
import operator
from collections.abc import Sequence, Iterable
from typing_extensions import Self


__all__ = ["bits"]


def _byte_len(l):
    return (l + 7) // 8


class bits(Sequence):
    """An immutable bit sequence, like ``bytes`` but for bits.

    This bit sequence is ordered from LSB to MSB; this is the direction in which it is converted
    to and from iterators. It is converted to and from strings from MSB to LSB, which is the way
    instruction words are written in the architecture manual.
    """

    __slots__ = ("_len", "_bytes")

    @classmethod
    def from_int(cls, value, length=None) -> Self:
        """Creates bits from an integer. If ``length`` is given, the integer will be
        masked to the target width (so negative integers are stored in two's complement).
        Otherwise, the smallest possible width will be used that does not mask off any bits
        of the integer, and the value must not be negative.
        """
        value = operator.index(value)
        if length is None:
            if value < 0:
                raise ValueError(f"invalid negative input for {cls.__name__}(): '{value}'")
            length = value.bit_length()
        else:
            length = operator.index(length)
            value &= ~(-1 << length)
        inst = object.__new__(cls)
        inst._len = length
        inst._bytes = value.to_bytes(_byte_len(length), "little")
        return inst

    @classmethod
    def from_str(cls, value) -> Self:
        """Creates bits from a string. Any whitespace or ``_`` characters in the string
        will be discarded. The string must consist only of ``0`` and ``1`` characters.
        The bits in the string are treated as MSB-first.
        """
        value = re.sub(r"[\s_]", "", value)
        if not re.match(r"^[01]*$", value):
            raise ValueError(f"invalid input for {cls.__name__}(): '{value}'")
        return cls.from_iter(int(x) for x in reversed(value))

    @classmethod
    def from_iter(cls, iterator) -> Self:
        """Creates bits from an iterator of bit values, LSB first."""
        value = 0
        length = 0
        for bit in iterator:
            bit = operator.index(bit)
            if bit not in (0, 1):
                raise ValueError(f"{cls.__name__} can only contain 0 and 1")
            value |= bit << length
            length += 1
        return cls.from_int(value, length)

    def __new__(cls, value=0, length=None) -> Self:
        """Creates a new bits instance from another ``bits`` instance, an ``int`` (see
        ``from_int``), a ``str`` (see ``from_str``) or an iterable of 0 and 1 (see ``from_iter``).
        """
        if isinstance(value, bits):
            if length is not None:
                raise ValueError(f"invalid input for {cls.__name__}(): when converting from bits "
                                 "length must not be provided")
            return value
        if isinstance(value, int):
            return cls.from_int(value, length)
        if isinstance(value, str):
            if length is not None:
                raise ValueError(f"invalid input for {cls.__name__}(): when converting from str "
                                 "length must not be provided")
            return cls.from_str(value)
        if isinstance(value, Iterable):
            if length is not None:
                raise ValueError(f"invalid input for {cls.__name__}(): when converting from an "
                                 "iterable length must not be provided")
            return cls.from_iter(value)
        raise TypeError(f"invalid input for {cls.__name__}(): cannot convert from "
                        f"{value.__class__.__name__}")

    def __len__(self) -> int:
        return self._len

    def __bool__(self) -> bool:
        return bool(self._len)

    def __eq__(self, other) -> bool:
        if not isinstance(other, bits):
            return False
        return self._len == other._len and self._bytes == other._bytes

    def __hash__(self) -> int:
        return hash((self._len, self._bytes))

    def __getitem__(self, key) -> Self | int:
        if isinstance(key, slice):
            start, stop, step = key.indices(self._len)
            if step == 1:
                if stop <= start:
                    return self.__class__()
                return self.from_int(self.to_int() >> start, stop - start)
            return self.from_iter(self[i] for i in range(start, stop, step))
        else:
            try:
                key = operator.index(key)
            except TypeError:
                raise TypeError(f"{self.__class__.__name__} indices must be integers or slices, "
                                f"not {key.__class__.__name__}") from None
            if key < 0:
                key += self._len
            if key not in range(self._len):
                raise IndexError(f"{self.__class__.__name__} index out of range")
            return (self._bytes[key // 8] >> (key % 8)) & 1

    def to_int(self) -> int:
        """Returns the value of this bit string as an unsigned integer."""
        return int.from_bytes(self._bytes, "little")

    def to_signed(self) -> int:
        """Returns the value of this bit string as a two's complement integer."""
        value = self.to_int()
        if self._len and value & (1 << (self._len - 1)):
            value -= 1 << self._len
        return value

    def to_str(self) -> str:
        """Returns the bit string as a human-readable string (MSB-first)."""
        return "".join(str(x) for x in reversed(self))

    def to_template(self, template) -> str:
        """Renders the bit string MSB-first into ``template``. Every character of the template
        other than a space or a newline is replaced with the next bit, so ``"xxxx xxx x xxxxxxxx"``
        renders a 16-bit value with its fields grouped. The template must have exactly as many
        such placeholders as this bit string has bits.
        """
        placeholders = sum(1 for char in template if char not in " \n")
        if placeholders != self._len:
            raise ValueError(f"template has {placeholders} placeholders, but {self.__class__.__name__} "
                             f"has {self._len} bits")
        msb_first = iter(self.to_str())
        return "".join(char if char in " \n" else next(msb_first) for char in template)

    __int__ = to_int
    __str__ = to_str

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}('{self}')"
