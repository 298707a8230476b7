from .lazy import *
from .bits import bits


__all__ = ["dump_hex", "dump_bin", "dump_mapseq"]


def dump_hex(data):
    def to_hex(data):
        try:
            data = memoryview(data)
        except TypeError:
            data = memoryview(bytes(data))
        if dump_hex.limit is None or len(data) < dump_hex.limit:
            return data.hex()
        else:
            return "{}... ({} bytes total)".format(
                data[:dump_hex.limit].hex(), len(data))
    return lazy(lambda: to_hex(data))

dump_hex.limit = 64


def dump_bin(value, width=16, template=None):
    """Render ``value`` as a ``width``-bit binary string, MSB-first, optionally grouped
    according to ``template`` (see ``bits.to_template``)."""
    def to_bin():
        data = bits(value, width)
        if template is not None:
            return data.to_template(template)
        if dump_bin.limit is None or len(data) < dump_bin.limit:
            return str(data)
        else:
            return "{}... ({} bits total)".format(
                str(data[len(data) - dump_bin.limit:]), len(data))
    return lazy(to_bin)

dump_bin.limit = 64


def dump_mapseq(joiner, mapper, data):
    def to_mapseq(data):
        try:
            data_length = len(data)
        except TypeError:
            data_length = None
        if dump_mapseq.limit is None or (data_length is not None and
                                         data_length < dump_mapseq.limit):
            return joiner.join(map(mapper, data))
        else:
            return "{}... ({} elements total)".format(
                joiner.join(mapper(elem) for elem, _ in zip(data, range(dump_mapseq.limit))),
                data_length or "?")
    return lazy(lambda: to_mapseq(data))

dump_mapseq.limit = 16
