__all__ = ["lazy"]


class lazy:
    """
    A deferred value for log message arguments.

    ``logger.trace("word=%s", lazy(lambda: expensive(word)))`` only calls ``expensive`` if the
    record is actually formatted, i.e. if the TRACE level is enabled on some handler.
    """

    __slots__ = ["_object_", "_thunk_"]

    def __init__(self, thunk):
        object.__setattr__(self, "_object_", None)
        object.__setattr__(self, "_thunk_", thunk)

    def _force_(self):
        if self._thunk_:
            object.__setattr__(self, "_object_", self._thunk_())
            object.__setattr__(self, "_thunk_", None)
        return self._object_

    def __getattr__(self, attr):
        return getattr(self._force_(), attr)

    def __setattr__(self, attr, value):
        raise AttributeError(f"cannot set attribute {attr!r} of a lazy value")

    def __repr__(self):
        if self._thunk_:
            rep = repr(self._thunk_)
        else:
            rep = repr(self._object_)
        return f"<lazy {rep}>"


def define_specials():
    def define_special(name):
        def forward(self, *args, **kwargs):
            return getattr(self._force_(), name)(*args, **kwargs)
        forward.__name__ = name
        setattr(lazy, name, forward)

    # Special methods are looked up on the type, so `__getattr__` alone does not cover them.
    for name in [
        "__str__", "__format__", "__bool__", "__len__", "__iter__", "__getitem__",
        "__eq__", "__ne__", "__hash__", "__int__", "__index__",
    ]:
        define_special(name)


define_specials()
del define_specials
