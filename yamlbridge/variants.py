"""Variant shapes and their YAML representations.

A variant (tagged union) value is one of a closed set of named cases. A
case carries no payload (unit), a single value (newtype), a fixed list of
values (tuple) or named fields (record).

How a variant appears in YAML is chosen by its representation:

TAG
    ``!Name payload``; unit cases are the bare name.
SINGLETON_MAP
    ``{Name: payload}``; unit cases are the bare name.
SINGLETON_MAP_OPTIONAL
    Singleton map, applied through an optional.
SINGLETON_MAP_RECURSIVE
    Singleton map, also for every variant nested in fields and payloads.
SingletonMapCustom(serialize, deserialize)
    Singleton map whose payloads pass through user callbacks.

Singleton map representations also accept the tag form when reading.
"""

from .error import (
    AmbiguousVariantError, Error, UnexpectedShapeError, UnknownVariantError, custom,
    locate,
)
from .shapes import STR, UNIT, VALUE, Shape
from .visitor import Visitor, invalid_type, one_of

UNIT_CASE = 'unit'
NEWTYPE_CASE = 'newtype'
TUPLE_CASE = 'tuple'
RECORD_CASE = 'record'

_KIND_NAMES = {
    UNIT_CASE: 'unit variant',
    NEWTYPE_CASE: 'newtype variant',
    TUPLE_CASE: 'tuple variant',
    RECORD_CASE: 'struct variant',
}


class VariantValue:
    """Generic holder for a case and its payload.

    Used by VariantShapes built by hand, without host classes.
    """

    __slots__ = ('case', 'payload')

    def __init__(self, case, payload=None):
        self.case = case
        self.payload = payload

    def __eq__(self, other):
        if not isinstance(other, VariantValue):
            return NotImplemented
        return self.case == other.case and self.payload == other.payload

    def __hash__(self):
        return hash((self.case, self.payload))

    def __repr__(self):
        if self.payload is None:
            return 'VariantValue(%r)' % self.case
        return 'VariantValue(%r, %r)' % (self.case, self.payload)


class Case:
    """One case of a VariantShape.

    Args:
        name: Case name used in YAML
        kind: One of UNIT_CASE, NEWTYPE_CASE, TUPLE_CASE, RECORD_CASE
        payload: Shape of the payload, UNIT for unit cases
        pack: Builds the host value from a payload
        unpack: Extracts the payload from a host value
        match: Tells whether a host value is this case
    """

    def __init__(self, name, kind=UNIT_CASE, payload=None, pack=None, unpack=None,
                 match=None):
        if kind not in _KIND_NAMES:
            raise ValueError("unknown case kind %r" % kind)
        self.name = name
        self.kind = kind
        self.payload = UNIT if payload is None else payload
        self.pack = pack or (lambda payload: VariantValue(name, payload))
        self.unpack = unpack or (lambda value: value.payload)
        self.match = match or (
            lambda value: isinstance(value, VariantValue) and value.case == name)

    def __repr__(self):
        return '<Case %s (%s)>' % (self.name, self.kind)


class VariantShape(Shape):
    """A closed set of named cases.

    Args:
        name: Variant type name used in messages
        cases: Case list
        default_repr: Representation used when none is in effect, TAG
            when None
    """

    def __init__(self, name, cases=(), default_repr=None):
        self.name = name
        self.default_repr = default_repr
        self.set_cases(cases)

    def set_cases(self, cases):
        self.cases = list(cases)
        self._by_name = {case.name: case for case in self.cases}

    def case_names(self):
        return [case.name for case in self.cases]

    def case(self, name):
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownVariantError("unknown variant `%s`, %s"
                                      % (name, one_of(self.case_names(), 'variants'))) from None

    def split(self, value):
        """Return the case of value and its payload."""
        for case in self.cases:
            if case.match(value):
                return case, case.unpack(value)
        raise UnexpectedShapeError("%r is not a case of %s" % (value, self.name))

    def make(self, case, access, mode=None):
        """Read the payload of case from a variant access."""
        if case.kind == UNIT_CASE:
            access.unit()
            return case.pack(None)
        if case.kind == NEWTYPE_CASE:
            payload = access.newtype(case.payload, mode)
        elif case.kind == TUPLE_CASE:
            payload = access.tuple(case.payload, mode)
        else:
            payload = access.record(case.payload, mode)
        return case.pack(payload)

    def representation(self, mode):
        return mode or self.default_repr or TAG

    def produce(self, value, sink, mode=None):
        self.representation(mode).produce_variant(self, value, sink)

    def build(self, source, mode=None):
        return self.representation(mode).build_variant(self, source)


class VariantRepr:
    """Base class of variant representations."""

    recursive = False

    def __init__(self, name):
        self.name = name

    def element(self):
        return self

    def nested(self):
        return self if self.recursive else None

    def payload_shape(self, case):
        return case.payload

    def produce_variant(self, shape, value, sink):
        raise NotImplementedError

    def build_variant(self, shape, source):
        raise NotImplementedError

    def __repr__(self):
        return '<%s %s>' % (type(self).__name__, self.name)


class _TagVisitor(Visitor):

    def __init__(self, shape, representation):
        self.shape = shape
        self.representation = representation
        self.expecting = 'enum %s' % shape.name

    def visit_enum(self, access):
        name, variant = access.variant()
        case = self.shape.case(name)
        return self.shape.make(case, variant, self.representation.nested())


class TagRepr(VariantRepr):

    def produce_variant(self, shape, value, sink):
        case, payload = shape.split(value)
        if case.kind == UNIT_CASE:
            sink.write_str(case.name)
        else:
            sink.write_tagged(case.name, case.payload, payload, self.nested())

    def build_variant(self, shape, source):
        return source.deserialize_enum(shape.name, shape.case_names(),
                                       _TagVisitor(shape, self))


class _SingletonMapVisitor(Visitor):

    def __init__(self, shape, representation):
        self.shape = shape
        self.representation = representation
        self.expecting = 'singleton map or unit variant name of enum %s' % shape.name

    def visit_str(self, value):
        case = self.shape.case(value)
        if case.kind != UNIT_CASE:
            raise invalid_type('unit variant', _KIND_NAMES[case.kind])
        return case.pack(None)

    def visit_map(self, access):
        if not access.has_next():
            raise AmbiguousVariantError(
                "expected a YAML map with exactly one entry for enum %s, found an empty map"
                % self.shape.name)
        name = access.next_key(STR)
        try:
            case = self.shape.case(name)
        except Error as exc:
            locate(exc, access.key_mark, access.key_path())
            raise
        payload = access.next_value(self.representation.payload_shape(case),
                                    self.representation.nested())
        if access.has_next():
            raise AmbiguousVariantError(
                "expected a YAML map with exactly one entry for enum %s, found more than one"
                % self.shape.name)
        return case.pack(payload)

    def visit_enum(self, access):
        return _TagVisitor(self.shape, self.representation).visit_enum(access)


class SingletonMapRepr(VariantRepr):

    def __init__(self, name, recursive=False):
        super().__init__(name)
        self.recursive = recursive

    def produce_variant(self, shape, value, sink):
        case, payload = shape.split(value)
        if case.kind == UNIT_CASE:
            sink.write_str(case.name)
            return
        writer = sink.begin_mapping(1)
        writer.entry(STR, case.name, self.payload_shape(case), payload, self.nested())
        writer.end()

    def build_variant(self, shape, source):
        return source.deserialize_any(_SingletonMapVisitor(shape, self))


class _CallbackShape(Shape):
    """Payload shape routing values through SingletonMapCustom callbacks."""

    def __init__(self, case, representation):
        self.case = case
        self.representation = representation
        self.name = case.payload.name

    def produce(self, value, sink, mode=None):
        try:
            data = self.representation.serialize(self.case.name, value)
        except (TypeError, ValueError) as exc:
            raise custom(exc) from exc
        VALUE.produce(data, sink)

    def build(self, source, mode=None):
        value = VALUE.build(source)
        try:
            return self.representation.deserialize(self.case.name, value)
        except (TypeError, ValueError) as exc:
            raise locate(custom(exc), value.mark, source.path) from exc
        except Error as exc:
            raise locate(exc, value.mark, source.path)


class SingletonMapCustom(SingletonMapRepr):
    """Singleton map whose payloads pass through user callbacks.

    Args:
        serialize: ``serialize(case_name, payload)`` returning a Value or
            plain data (None, bool, int, float, str, list, dict)
        deserialize: ``deserialize(case_name, value)`` returning the payload
            from the Value read in YAML

    Unit cases are written and read as bare names without calling either.
    """

    def __init__(self, serialize, deserialize, name='singleton_map_custom'):
        super().__init__(name)
        self.serialize = serialize
        self.deserialize = deserialize

    def payload_shape(self, case):
        if case.kind == UNIT_CASE:
            return case.payload
        return _CallbackShape(case, self)


TAG = TagRepr('tag')
SINGLETON_MAP = SingletonMapRepr('singleton_map')
SINGLETON_MAP_OPTIONAL = SingletonMapRepr('singleton_map_optional')
SINGLETON_MAP_RECURSIVE = SingletonMapRepr('singleton_map_recursive', recursive=True)
