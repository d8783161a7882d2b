"""Shapes derived from Python type hints.

Dataclasses are records, ``enum.Enum`` subclasses are variants with unit
cases only, and classes marked with :func:`variant` are variants whose
cases are the subclasses marked with :func:`case`::

    @variant
    class Shape:
        pass

    @case
    @dataclass
    class Circle(Shape):
        radius: float

    @case
    class Empty(Shape):
        pass

A case dataclass with one field is a newtype case unless declared
otherwise with ``case(kind=...)``; with more fields it is a record case.
Fixed-width integers are expressed with the ``Annotated`` aliases
:data:`u8`, :data:`i32` and friends, or any shape placed in an
``Annotated`` hint.

Derived shapes are cached per type.
"""

import collections.abc
import dataclasses
import enum
import logging
import threading
import types
import typing

from .error import UnexpectedShapeError
from .shapes import (
    BOOL, F64, FLOAT, I8, I16, I32, I64, INT, STR, U8, U16, U32, U64, UNIT,
    VALUE, Field, MapShape, OptionalShape, RecordShape, SeqShape, Shape, TupleShape,
)
from .value import Value
from .variants import (
    NEWTYPE_CASE, RECORD_CASE, TUPLE_CASE, UNIT_CASE, Case, VariantShape, VariantValue,
)

logger = logging.getLogger(__name__)

METADATA_KEY = 'yamlbridge'

i8 = typing.Annotated[int, I8]
i16 = typing.Annotated[int, I16]
i32 = typing.Annotated[int, I32]
i64 = typing.Annotated[int, I64]
u8 = typing.Annotated[int, U8]
u16 = typing.Annotated[int, U16]
u32 = typing.Annotated[int, U32]
u64 = typing.Annotated[int, U64]
f64 = typing.Annotated[float, F64]

_PRIMITIVES = {
    bool: BOOL,
    int: INT,
    float: FLOAT,
    str: STR,
    type(None): UNIT,
}

_SEQUENCES = (list, collections.abc.Sequence, collections.abc.MutableSequence,
              collections.abc.Iterable, collections.abc.Collection)
_SETS = (set, frozenset, collections.abc.Set, collections.abc.MutableSet)
_MAPPINGS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)

_cache = {}
_lock = threading.RLock()


class _FieldOptions:
    __slots__ = ('name', 'variant_repr', 'shape')

    def __init__(self, name=None, variant_repr=None, shape=None):
        self.name = name
        self.variant_repr = variant_repr
        self.shape = shape


class _RecordOptions:
    __slots__ = ('name', 'closed')

    def __init__(self, name=None, closed=False):
        self.name = name
        self.closed = closed


class _VariantOptions:
    __slots__ = ('name', 'repr', 'cases')

    def __init__(self, name=None, repr=None):
        self.name = name
        self.repr = repr
        self.cases = []


class _CaseOptions:
    __slots__ = ('name', 'kind')

    def __init__(self, name=None, kind=None):
        self.name = name
        self.kind = kind


def field(*, name=None, variant_repr=None, shape=None, **kwargs):
    """A dataclasses.field with YAML options.

    Args:
        name: Key of the field in YAML, defaults to the attribute name
        variant_repr: Variant representation for the field's content
        shape: Shape to use instead of the one derived from the type hint
        **kwargs: Passed to dataclasses.field
    """
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata[METADATA_KEY] = _FieldOptions(name, variant_repr, shape)
    return dataclasses.field(metadata=metadata, **kwargs)


def record(cls=None, *, name=None, closed=False):
    """Set record options on a dataclass.

    With closed=True unknown keys are rejected with UnknownFieldError
    instead of ignored.
    """
    def wrap(cls):
        cls.__yaml_record__ = _RecordOptions(name, closed)
        _invalidate(cls)
        return cls

    if cls is None:
        return wrap
    return wrap(cls)


def variant(cls=None, *, name=None, repr=None):
    """Mark a class as a variant type; cases are added with :func:`case`.

    Args:
        name: Type name used in messages
        repr: Default representation, used where no other is in effect
    """
    def wrap(cls):
        cls.__yaml_variant__ = _VariantOptions(name, repr)
        _invalidate(cls)
        return cls

    if cls is None:
        return wrap
    return wrap(cls)


def case(cls=None, *, name=None, kind=None):
    """Register a subclass of a :func:`variant` class as one of its cases.

    Args:
        name: Case name used in YAML, defaults to the class name
        kind: UNIT_CASE, NEWTYPE_CASE, TUPLE_CASE or RECORD_CASE; guessed
            from the dataclass fields when not given
    """
    def wrap(cls):
        base = _variant_base(cls)
        if base is None:
            raise TypeError("%s is not a subclass of a variant class" % cls.__name__)
        cls.__yaml_case__ = _CaseOptions(name, kind)
        base.__yaml_variant__.cases.append(cls)
        _invalidate(base)
        return cls

    if cls is None:
        return wrap
    return wrap(cls)


def _variant_base(cls):
    for klass in cls.__mro__[1:]:
        if '__yaml_variant__' in vars(klass):
            return klass
    return None


def _invalidate(cls):
    with _lock:
        _cache.pop(cls, None)


def shape_of(tp):
    """Return the Shape for a type hint, deriving and caching it."""
    if isinstance(tp, Shape):
        return tp
    with _lock:
        try:
            return _cache[tp]
        except KeyError:
            pass
        except TypeError:
            return _derive(tp)
        shape = _derive(tp)
        _cache[tp] = shape
        return shape


def resolve(shape):
    """Shape for a Shape, a type hint, or None meaning any YAML value."""
    if shape is None:
        return VALUE
    return shape_of(shape)


def _derive(tp):
    if tp is typing.Any or tp is object:
        return ANY
    if tp is None:
        return UNIT
    if isinstance(tp, type) and tp in _PRIMITIVES:
        return _PRIMITIVES[tp]
    origin = typing.get_origin(tp)
    args = typing.get_args(tp)
    if origin is typing.Annotated:
        for meta in args[1:]:
            if isinstance(meta, Shape):
                return meta
        return shape_of(args[0])
    if origin is typing.Union or origin is types.UnionType:
        rest = [arg for arg in args if arg is not type(None)]
        if len(rest) == 1 and len(rest) < len(args):
            return OptionalShape(shape_of(rest[0]))
        raise TypeError("cannot derive a shape for union %r" % (tp,))
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return SeqShape(shape_of(args[0]), factory=tuple)
        if args == ((),):
            return TupleShape()
        return TupleShape(*[shape_of(arg) for arg in args])
    if origin in _SETS:
        factory = origin if origin in (set, frozenset) else set
        return SeqShape(shape_of(args[0]) if args else ANY, factory=factory)
    if origin in _SEQUENCES:
        return SeqShape(shape_of(args[0]) if args else ANY)
    if origin in _MAPPINGS:
        if args:
            return MapShape(shape_of(args[0]), shape_of(args[1]))
        return MapShape(ANY, ANY)
    if tp is list:
        return SeqShape(ANY)
    if tp is tuple:
        return SeqShape(ANY, factory=tuple)
    if tp is dict:
        return MapShape(ANY, ANY)
    if isinstance(tp, type):
        if issubclass(tp, Value):
            return VALUE
        if issubclass(tp, enum.Enum):
            return _enum_shape(tp)
        if '__yaml_variant__' in vars(tp):
            return _variant_shape(tp)
        if dataclasses.is_dataclass(tp):
            return _record_shape(tp)
    raise TypeError("cannot derive a shape for %r" % (tp,))


def _record_shape(cls):
    options = getattr(cls, '__yaml_record__', None) or _RecordOptions()
    shape = RecordShape(options.name or cls.__name__, factory=cls, closed=options.closed)
    # Registered before the fields so self-referencing types resolve to it.
    _cache[cls] = shape
    try:
        shape.set_fields(_fields(cls))
    except Exception:
        del _cache[cls]
        raise
    logger.debug("derived record shape %s with %d field(s)", shape.name, len(shape.fields))
    return shape


def _fields(cls):
    hints = typing.get_type_hints(cls, include_extras=True)
    fields = []
    for item in dataclasses.fields(cls):
        if not item.init:
            continue
        opts = item.metadata.get(METADATA_KEY) or _FieldOptions()
        fields.append(Field(
            opts.name or item.name,
            opts.shape or shape_of(hints[item.name]),
            attr=item.name,
            default=item.default,
            default_factory=item.default_factory,
            variant_repr=opts.variant_repr,
        ))
    return fields


def _enum_shape(cls):
    options = vars(cls).get('__yaml_variant__') or _VariantOptions()
    cases = [
        Case(member.name, UNIT_CASE,
             pack=lambda payload, member=member: member,
             unpack=lambda value: None,
             match=lambda value, member=member: value is member)
        for member in cls
    ]
    return VariantShape(options.name or cls.__name__, cases, default_repr=options.repr)


def _variant_shape(cls):
    options = vars(cls)['__yaml_variant__']
    shape = VariantShape(options.name or cls.__name__, default_repr=options.repr)
    _cache[cls] = shape
    try:
        shape.set_cases([_case(klass) for klass in options.cases])
    except Exception:
        del _cache[cls]
        raise
    logger.debug("derived variant shape %s with %d case(s)", shape.name, len(shape.cases))
    return shape


def _case(cls):
    options = vars(cls)['__yaml_case__']
    name = options.name or cls.__name__
    fields = []
    if dataclasses.is_dataclass(cls):
        fields = [item for item in dataclasses.fields(cls) if item.init]
    kind = options.kind
    if kind is None:
        if not fields:
            kind = UNIT_CASE
        elif len(fields) == 1:
            kind = NEWTYPE_CASE
        else:
            kind = RECORD_CASE

    def match(value):
        return isinstance(value, cls)

    if kind == UNIT_CASE:
        if fields:
            raise TypeError("unit case %s cannot have fields" % name)
        return Case(name, UNIT_CASE, pack=lambda payload: cls(),
                    unpack=lambda value: None, match=match)
    if kind == RECORD_CASE:
        payload = _record_shape_for_case(cls)
        return Case(name, RECORD_CASE, payload, pack=lambda payload: payload,
                    unpack=lambda value: value, match=match)
    hints = typing.get_type_hints(cls, include_extras=True)
    names = [item.name for item in fields]
    if kind == NEWTYPE_CASE:
        if len(fields) != 1:
            raise TypeError("newtype case %s must have exactly one field" % name)
        return Case(name, NEWTYPE_CASE, shape_of(hints[names[0]]),
                    pack=lambda payload: cls(payload),
                    unpack=lambda value: getattr(value, names[0]), match=match)
    if kind == TUPLE_CASE:
        payload = TupleShape(*[shape_of(hints[item]) for item in names])
        return Case(name, TUPLE_CASE, payload, pack=lambda payload: cls(*payload),
                    unpack=lambda value: tuple(getattr(value, item) for item in names),
                    match=match)
    raise TypeError("unknown case kind %r" % (kind,))


def _record_shape_for_case(cls):
    if not dataclasses.is_dataclass(cls):
        raise TypeError("record case %s must be a dataclass" % cls.__name__)
    return shape_of(cls)


def infer(value):
    """Shape for a runtime value, used where no type is known."""
    if isinstance(value, Value) or value is None \
            or isinstance(value, (bool, int, float, str)):
        return VALUE
    if isinstance(value, VariantValue):
        raise UnexpectedShapeError("cannot infer the variant type of %r" % (value,))
    cls = type(value)
    if isinstance(value, enum.Enum):
        return shape_of(cls)
    if '__yaml_case__' in vars(cls):
        return shape_of(_variant_base(cls))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return shape_of(cls)
    if isinstance(value, (list, tuple, set, frozenset)):
        return SeqShape(ANY)
    if isinstance(value, dict):
        return MapShape(ANY, ANY)
    raise UnexpectedShapeError("cannot serialize value of type %s" % cls.__name__)


class AnyShape(Shape):
    """Plain Python data; the shape of each value is inferred when writing.

    Reading produces None, bool, int, float, str, list and dict trees, with
    Tagged values kept as Tagged.
    """

    name = 'any value'

    def produce(self, value, sink, mode=None):
        infer(value).produce(value, sink, mode)

    def build(self, source, mode=None):
        return VALUE.build(source, mode).to_python()


ANY = AnyShape()
