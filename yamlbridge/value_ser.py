"""Serializer sink that builds a Value tree instead of text."""

from .de import DEFAULT_RECURSION_LIMIT
from .error import RecursionLimitError, UnexpectedShapeError
from .value import Bool, Mapping, Null, Number, Sequence, String, Tagged


def to_value(shape, data, mode=None, remaining_depth=DEFAULT_RECURSION_LIMIT):
    """Produce data through shape and return the resulting Value."""
    sink = ValueSerializer(remaining_depth)
    shape.produce(data, sink, mode)
    return sink.result()


class ValueSerializer:
    """Sink holding the single Value produced into it.

    Args:
        remaining_depth: Collections that may still be entered
    """

    def __init__(self, remaining_depth=DEFAULT_RECURSION_LIMIT):
        self.remaining_depth = remaining_depth
        self._value = None

    def result(self):
        if self._value is None:
            raise UnexpectedShapeError("nothing was serialized")
        return self._value

    def _set(self, value):
        self._value = value

    def _enter(self):
        if self.remaining_depth <= 0:
            raise RecursionLimitError("recursion limit exceeded")

    def write_null(self):
        self._set(Null())

    def write_bool(self, value):
        self._set(Bool(value))

    def write_int(self, value):
        self._set(Number(int(value)))

    def write_float(self, value):
        self._set(Number(float(value)))

    def write_str(self, value):
        self._set(String(value))

    def write_tagged(self, tag, shape, value, mode=None):
        self._set(Tagged(tag, to_value(shape, value, mode, self.remaining_depth)))

    def begin_sequence(self, length=None):
        self._enter()
        return _SequenceBuilder(self)

    def begin_mapping(self, length=None):
        self._enter()
        return _MappingBuilder(self)


class _SequenceBuilder:

    def __init__(self, sink):
        self.sink = sink
        self.depth = sink.remaining_depth - 1
        self.items = []

    def element(self, shape, value, mode=None):
        self.items.append(to_value(shape, value, mode, self.depth))

    def end(self):
        self.sink._set(Sequence(self.items))


class _MappingBuilder:

    def __init__(self, sink):
        self.sink = sink
        self.depth = sink.remaining_depth - 1
        self.pairs = []

    def entry(self, key_shape, key, value_shape, value, mode=None):
        self.pairs.append((to_value(key_shape, key, mode, self.depth),
                           to_value(value_shape, value, mode, self.depth)))

    def end(self):
        self.sink._set(Mapping(self.pairs))
