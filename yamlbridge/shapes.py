"""Shape descriptors.

A Shape describes how one kind of host data maps onto YAML. It has two
halves:

- ``produce(value, sink, mode)`` writes value into a serializer sink
  (yamlbridge.ser.Serializer or yamlbridge.value_ser.ValueSerializer)
- ``build(source, mode)`` reads one node from a deserializer source
  (yamlbridge.de.Deserializer or yamlbridge.value_de.ValueDeserializer)

``mode`` is the variant representation in effect for this position, or
None. Elements of sequences, entries of maps and the inside of optionals
inherit it; fields of records and payloads of variants only keep it when
the representation is recursive.
"""

import dataclasses
import math

from .error import (
    DuplicateKeyError, MissingFieldError, NonFiniteNumberError, NumericRangeError,
    UnexpectedShapeError, UnknownFieldError, custom,
)
from .value import Bool, Mapping, Null, Number, Sequence, String, Tagged, Value
from .visitor import Visitor, describe_float, describe_int, one_of

MISSING = dataclasses.MISSING


def element_mode(mode):
    """Mode for elements of a collection or the inside of an optional."""
    if mode is None:
        return None
    return mode.element()


def nested_mode(mode):
    """Mode for record fields and variant payloads."""
    if mode is None:
        return None
    return mode.nested()


def _unexpected(value, expected):
    return UnexpectedShapeError("expected %s, found %s" % (expected, type(value).__name__))


class Shape:
    """Base class of shape descriptors."""

    name = 'any value'

    def produce(self, value, sink, mode=None):
        raise NotImplementedError

    def build(self, source, mode=None):
        raise NotImplementedError

    def __repr__(self):
        return '<%s %s>' % (type(self).__name__, self.name)


class _BoolVisitor(Visitor):
    expecting = 'a boolean'

    def visit_bool(self, value):
        return value


class BoolShape(Shape):
    name = 'bool'

    def produce(self, value, sink, mode=None):
        if not isinstance(value, bool):
            raise _unexpected(value, 'a boolean')
        sink.write_bool(value)

    def build(self, source, mode=None):
        return source.deserialize_bool(_BoolVisitor())


class _IntVisitor(Visitor):

    def __init__(self, shape):
        self.shape = shape
        self.expecting = shape.name

    def visit_int(self, value):
        self.shape.check(value)
        return value


class IntShape(Shape):
    """An integer, optionally bounded to the range of a fixed-width type.

    Args:
        name: Name used in messages, like ``u8``
        minimum: Smallest accepted value, None for unbounded
        maximum: Largest accepted value, None for unbounded
    """

    def __init__(self, name, minimum=None, maximum=None):
        self.name = name
        self.minimum = minimum
        self.maximum = maximum

    def check(self, value):
        if (self.minimum is not None and value < self.minimum) \
                or (self.maximum is not None and value > self.maximum):
            raise NumericRangeError("invalid value: %s, expected %s"
                                    % (describe_int(value), self.name))

    def produce(self, value, sink, mode=None):
        if isinstance(value, bool) or not isinstance(value, int):
            raise _unexpected(value, 'an integer')
        self.check(value)
        sink.write_int(value)

    def build(self, source, mode=None):
        return source.deserialize_int(_IntVisitor(self))


class _FloatVisitor(Visitor):

    def __init__(self, shape):
        self.shape = shape
        self.expecting = shape.name

    def visit_int(self, value):
        return float(value)

    def visit_float(self, value):
        if not self.shape.allow_non_finite and not math.isfinite(value):
            raise NonFiniteNumberError("invalid value: %s, expected %s"
                                       % (describe_float(value), self.shape.name))
        return value


class FloatShape(Shape):
    """A float. NaN and infinities are only read when allow_non_finite."""

    def __init__(self, name='f64', allow_non_finite=False):
        self.name = name
        self.allow_non_finite = allow_non_finite

    def produce(self, value, sink, mode=None):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _unexpected(value, 'a float')
        sink.write_float(float(value))

    def build(self, source, mode=None):
        return source.deserialize_float(_FloatVisitor(self))


class _StrVisitor(Visitor):
    expecting = 'a string'

    def visit_str(self, value):
        return value


class StrShape(Shape):
    name = 'str'

    def produce(self, value, sink, mode=None):
        if not isinstance(value, str):
            raise _unexpected(value, 'a string')
        sink.write_str(value)

    def build(self, source, mode=None):
        return source.deserialize_str(_StrVisitor())


class _UnitVisitor(Visitor):
    expecting = 'unit'

    def visit_unit(self):
        return None


class UnitShape(Shape):
    name = 'unit'

    def produce(self, value, sink, mode=None):
        if value is not None:
            raise _unexpected(value, 'None')
        sink.write_null()

    def build(self, source, mode=None):
        return source.deserialize_unit(_UnitVisitor())


class _ValueVisitor(Visitor):
    expecting = 'any YAML value'

    def __init__(self, source):
        self.source = source

    def visit_bool(self, value):
        return Bool(value, mark=self.source.current_mark)

    def visit_int(self, value):
        return Number(value, mark=self.source.current_mark)

    visit_float = visit_int

    def visit_str(self, value):
        return String(value, mark=self.source.current_mark)

    def visit_unit(self):
        return Null(mark=self.source.current_mark)

    visit_none = visit_unit

    def visit_seq(self, access):
        mark = self.source.current_mark
        items = []
        while access.has_next():
            items.append(access.next_element(VALUE))
        return Sequence(items, mark=mark)

    def visit_map(self, access):
        mark = self.source.current_mark
        entries = {}
        while access.has_next():
            key = access.next_key(VALUE)
            if key in entries:
                raise DuplicateKeyError("duplicate entry with key %s" % _describe_key(key),
                                        mark=access.key_mark)
            entries[key] = access.next_value(VALUE)
        return Mapping(entries, mark=mark)

    def visit_enum(self, access):
        mark = self.source.current_mark
        tag, variant = access.variant()
        return Tagged(tag, variant.newtype(VALUE), mark=mark)


def _describe_key(key):
    if isinstance(key, String):
        return '"%s"' % key.value
    if isinstance(key, Number):
        return str(key)
    if isinstance(key, Bool):
        return 'true' if key.value else 'false'
    if isinstance(key, Null):
        return 'null'
    return 'of type %s' % key.id


class ValueShape(Shape):
    """Any YAML content, read into and written from Value trees."""

    name = 'value'

    def produce(self, value, sink, mode=None):
        if not isinstance(value, Value):
            try:
                value = Value.from_python(value)
            except TypeError as exc:
                raise UnexpectedShapeError(str(exc)) from exc
        if isinstance(value, Null):
            sink.write_null()
        elif isinstance(value, Bool):
            sink.write_bool(value.value)
        elif isinstance(value, Number):
            if value.is_int():
                sink.write_int(value.value)
            else:
                sink.write_float(value.value)
        elif isinstance(value, String):
            sink.write_str(value.value)
        elif isinstance(value, Sequence):
            writer = sink.begin_sequence(len(value))
            for item in value:
                writer.element(self, item)
            writer.end()
        elif isinstance(value, Mapping):
            writer = sink.begin_mapping(len(value))
            for key, item in value.items():
                writer.entry(self, key, self, item)
            writer.end()
        else:
            sink.write_tagged(value.tag.name, self, value.value)

    def build(self, source, mode=None):
        return source.deserialize_any(_ValueVisitor(source))


class _OptionalVisitor(Visitor):

    def __init__(self, shape, mode):
        self.shape = shape
        self.mode = mode
        self.expecting = 'option'

    def visit_none(self):
        return None

    def visit_unit(self):
        return None

    def visit_some(self, source):
        return self.shape.inner.build(source, element_mode(self.mode))


class OptionalShape(Shape):
    """The inner shape, or None written as null."""

    def __init__(self, inner):
        self.inner = inner

    @property
    def name(self):
        return 'optional %s' % self.inner.name

    def produce(self, value, sink, mode=None):
        if value is None:
            sink.write_null()
        else:
            self.inner.produce(value, sink, element_mode(mode))

    def build(self, source, mode=None):
        return source.deserialize_option(_OptionalVisitor(self, mode))


def _is_sequence_data(value):
    if isinstance(value, (str, bytes, dict, Value)):
        return False
    return isinstance(value, (list, tuple, set, frozenset)) or hasattr(value, '__iter__')


class _SeqVisitor(Visitor):
    expecting = 'a sequence'

    def __init__(self, shape, mode):
        self.shape = shape
        self.mode = mode

    def visit_seq(self, access):
        items = []
        while access.has_next():
            items.append(access.next_element(self.shape.item, element_mode(self.mode)))
        return self.shape.factory(items)


class SeqShape(Shape):
    """A homogeneous sequence; factory builds the host container."""

    def __init__(self, item, factory=list):
        self.item = item
        self.factory = factory

    @property
    def name(self):
        return 'sequence of %s' % self.item.name

    def produce(self, value, sink, mode=None):
        if not _is_sequence_data(value):
            raise _unexpected(value, 'a sequence')
        items = list(value)
        writer = sink.begin_sequence(len(items))
        for item in items:
            writer.element(self.item, item, element_mode(mode))
        writer.end()

    def build(self, source, mode=None):
        return source.deserialize_seq(_SeqVisitor(self, mode))


class _TupleVisitor(Visitor):

    def __init__(self, shape, mode):
        self.shape = shape
        self.mode = mode
        self.expecting = shape.name

    def visit_seq(self, access):
        items = []
        for index, item in enumerate(self.shape.items):
            if not access.has_next():
                raise UnexpectedShapeError("invalid length %d, expected %s"
                                           % (index, self.shape.name))
            items.append(access.next_element(item, element_mode(self.mode)))
        return tuple(items)


class TupleShape(Shape):
    """A fixed-length sequence with one shape per position."""

    def __init__(self, *items):
        self.items = items

    @property
    def name(self):
        return 'a tuple of size %d' % len(self.items)

    def produce(self, value, sink, mode=None):
        if not isinstance(value, (list, tuple)):
            raise _unexpected(value, self.name)
        if len(value) != len(self.items):
            raise UnexpectedShapeError("invalid length %d, expected %s"
                                       % (len(value), self.name))
        writer = sink.begin_sequence(len(value))
        for shape, item in zip(self.items, value):
            writer.element(shape, item, element_mode(mode))
        writer.end()

    def build(self, source, mode=None):
        return source.deserialize_tuple(len(self.items), _TupleVisitor(self, mode))


class _MapVisitor(Visitor):
    expecting = 'a map'

    def __init__(self, shape, mode):
        self.shape = shape
        self.mode = mode

    def visit_map(self, access):
        mode = element_mode(self.mode)
        result = self.shape.factory()
        while access.has_next():
            key = access.next_key(self.shape.key, mode)
            value = access.next_value(self.shape.value, mode)
            try:
                result[key] = value
            except TypeError as exc:
                raise UnexpectedShapeError("unhashable mapping key: %s" % exc,
                                           mark=access.key_mark) from exc
        return result


class MapShape(Shape):
    """A mapping with homogeneous keys and values, order preserved."""

    def __init__(self, key, value, factory=dict):
        self.key = key
        self.value = value
        self.factory = factory

    @property
    def name(self):
        return 'map of %s to %s' % (self.key.name, self.value.name)

    def produce(self, value, sink, mode=None):
        if not hasattr(value, 'items'):
            raise _unexpected(value, 'a map')
        entries = list(value.items())
        writer = sink.begin_mapping(len(entries))
        for key, item in entries:
            writer.entry(self.key, key, self.value, item, element_mode(mode))
        writer.end()

    def build(self, source, mode=None):
        return source.deserialize_map(_MapVisitor(self, mode))


class Field:
    """One named field of a RecordShape.

    Args:
        key: Key of the field in YAML
        shape: Shape of the field value
        attr: Attribute or constructor argument name, defaults to key
        default: Value used when the key is absent
        default_factory: Callable producing the value when the key is absent
        variant_repr: Variant representation applied to this field's
            content, overriding the one inherited from the record
    """

    def __init__(self, key, shape, attr=None, default=MISSING,
                 default_factory=MISSING, variant_repr=None):
        self.key = key
        self.shape = shape
        self.attr = attr or key
        self.default = default
        self.default_factory = default_factory
        self.variant_repr = variant_repr

    def has_default(self):
        return self.default is not MISSING or self.default_factory is not MISSING

    def get_default(self):
        if self.default_factory is not MISSING:
            return self.default_factory()
        return self.default

    def is_optional(self):
        return isinstance(self.shape, OptionalShape)

    def mode_for(self, mode):
        if self.variant_repr is not None:
            return self.variant_repr
        return nested_mode(mode)

    def skip(self, value):
        """Whether an absent optional value is left out when writing."""
        return value is None and self.is_optional() and self.has_default()

    def __repr__(self):
        return '<Field %s: %s>' % (self.key, self.shape.name)


class _RecordVisitor(Visitor):

    def __init__(self, shape, mode):
        self.shape = shape
        self.mode = mode
        self.expecting = 'struct %s' % shape.name

    def visit_map(self, access):
        shape = self.shape
        values = {}
        while access.has_next():
            key = access.next_key(_KEY)
            field = shape.field(key)
            if field is None:
                if shape.closed:
                    raise UnknownFieldError(
                        "unknown field `%s`, %s" % (key, one_of(shape.keys())),
                        mark=access.key_mark, path=access.key_path())
                access.skip_value()
                continue
            if field.attr in values:
                raise DuplicateKeyError("duplicate field `%s`" % key,
                                        mark=access.key_mark, path=access.key_path())
            values[field.attr] = access.next_value(field.shape, field.mode_for(self.mode))
        for field in shape.fields:
            if field.attr in values:
                continue
            if field.has_default():
                values[field.attr] = field.get_default()
            elif field.is_optional():
                values[field.attr] = None
            else:
                raise MissingFieldError("missing field `%s`" % field.key)
        return shape.construct(values)


class _KeyVisitor(Visitor):
    expecting = 'field identifier'

    def visit_str(self, value):
        return value

    def visit_int(self, value):
        return str(value)

    def visit_bool(self, value):
        return 'true' if value else 'false'


class _KeyShape(Shape):
    name = 'field identifier'

    def build(self, source, mode=None):
        return source.deserialize_identifier(_KeyVisitor())


_KEY = _KeyShape()


class RecordShape(Shape):
    """A mapping with a fixed set of named fields.

    Args:
        name: Record name used in messages
        fields: Field list, in the order fields are written
        factory: Called with the field values as keyword arguments; None
            builds a dict
        closed: Reject keys that are not fields instead of ignoring them
    """

    def __init__(self, name, fields=(), factory=None, closed=False):
        self.name = name
        self.factory = factory
        self.closed = closed
        self.set_fields(fields)

    def set_fields(self, fields):
        self.fields = list(fields)
        self._by_key = {field.key: field for field in self.fields}

    def keys(self):
        return [field.key for field in self.fields]

    def field(self, key):
        return self._by_key.get(key)

    def construct(self, values):
        if self.factory is None:
            return values
        try:
            return self.factory(**values)
        except (TypeError, ValueError) as exc:
            raise custom(exc) from exc

    def _get(self, value, field):
        if isinstance(value, dict):
            if field.attr in value:
                return value[field.attr]
            if field.has_default():
                return field.get_default()
            if field.is_optional():
                return None
            raise MissingFieldError("missing field `%s`" % field.key)
        try:
            return getattr(value, field.attr)
        except AttributeError:
            raise _unexpected(value, 'struct %s' % self.name) from None

    def produce(self, value, sink, mode=None):
        entries = []
        for field in self.fields:
            item = self._get(value, field)
            if not field.skip(item):
                entries.append((field, item))
        writer = sink.begin_mapping(len(entries))
        for field, item in entries:
            writer.entry(STR, field.key, field.shape, item, field.mode_for(mode))
        writer.end()

    def build(self, source, mode=None):
        return source.deserialize_struct(self.name, self.keys(), _RecordVisitor(self, mode))


BOOL = BoolShape()
INT = IntShape('an integer')
I8 = IntShape('i8', -2 ** 7, 2 ** 7 - 1)
I16 = IntShape('i16', -2 ** 15, 2 ** 15 - 1)
I32 = IntShape('i32', -2 ** 31, 2 ** 31 - 1)
I64 = IntShape('i64', -2 ** 63, 2 ** 63 - 1)
U8 = IntShape('u8', 0, 2 ** 8 - 1)
U16 = IntShape('u16', 0, 2 ** 16 - 1)
U32 = IntShape('u32', 0, 2 ** 32 - 1)
U64 = IntShape('u64', 0, 2 ** 64 - 1)
FLOAT = FloatShape('f64')
F64 = FloatShape('f64', allow_non_finite=True)
STR = StrShape()
UNIT = UnitShape()
VALUE = ValueShape()
