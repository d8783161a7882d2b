"""
yamlbridge - Map typed Python data to and from YAML text

Host data is described by shapes: derived automatically from type hints
(dataclasses, enums, variant class hierarchies, builtin containers) or
built by hand. Untyped content is represented by the Value model.

Key features:
- Typed records with closed/open field sets, defaults and optionals
- Tagged unions written as ``!Tag`` nodes or as singleton maps
- Errors carrying the line and column of the offending node
- Value trees that keep the position they were parsed from

Example:
    >>> import yamlbridge
    >>> from dataclasses import dataclass
    >>> @dataclass
    ... class Point:
    ...     x: float
    ...     y: float
    >>> yamlbridge.to_string(Point(1.0, 2.0))
    "x: 1.0\\n'y': 2.0\\n"
    >>> yamlbridge.from_str("x: 1\\ny: 2.5\\n", Point)
    Point(x=1.0, y=2.5)
"""

import io

from yamlbridge.error import (
    Error, ErrorKind, Location, Mark, Path, ParseSyntaxError, UnexpectedShapeError,
    MissingFieldError, UnknownFieldError, UnknownVariantError, AmbiguousVariantError,
    NumericRangeError, NonFiniteNumberError, StreamError, Utf8Error, EndOfStreamError,
    MoreThanOneDocumentError, RecursionLimitError, RepetitionLimitError,
    UnknownAnchorError, DuplicateKeyError, CustomError, EmitterError, custom,
)
from yamlbridge.value import (
    Value, Null, Bool, Number, String, Sequence, Mapping, Tag, Tagged,
)
from yamlbridge.shapes import (
    Shape, BOOL, INT, I8, I16, I32, I64, U8, U16, U32, U64, FLOAT, F64, STR, UNIT,
    VALUE, OptionalShape, SeqShape, TupleShape, MapShape, RecordShape, Field,
)
from yamlbridge.variants import (
    UNIT_CASE, NEWTYPE_CASE, TUPLE_CASE, RECORD_CASE, VariantShape, Case,
    VariantValue, VariantRepr, TAG, SINGLETON_MAP, SINGLETON_MAP_OPTIONAL,
    SINGLETON_MAP_RECURSIVE, SingletonMapCustom,
)
from yamlbridge.derive import (
    ANY, field, record, variant, case, shape_of, i8, i16, i32, i64, u8, u16,
    u32, u64, f64,
)
from yamlbridge import derive as _derive
from yamlbridge.de import DEFAULT_RECURSION_LIMIT, Deserializer
from yamlbridge.loader import Loader
from yamlbridge.ser import Serializer
from yamlbridge.value_de import ValueDeserializer
from yamlbridge import value_ser as _value_ser

__version__ = '0.1.0'


def _produce_shape(data, shape):
    if shape is None:
        return _derive.infer(data)
    return _derive.shape_of(shape)


# Serialization

def to_string(data, shape=None, variant_repr=None, **options):
    """
    Serialize data as a YAML document string.

    Args:
        data: Host data to serialize
        shape: Shape or type hint describing data; inferred from the
            runtime value when None
        variant_repr: Variant representation applied at the top level
            (TAG, SINGLETON_MAP, ...)
        **options: Serializer options (indent, width, allow_unicode,
            line_break, explicit_start, explicit_end, allow_non_finite,
            recursion_limit)

    Returns:
        YAML text of one document

    Example:
        >>> yamlbridge.to_string({"name": "Alice", "age": 30})
        'name: Alice\\nage: 30\\n'
    """
    return to_string_all([data], shape, variant_repr, **options)


def to_writer(stream, data, shape=None, variant_repr=None, **options):
    """
    Serialize data as a YAML document onto a stream.

    Args:
        stream: Text stream, or binary stream when encoding is given
        data: Host data to serialize
        shape: Shape or type hint describing data
        variant_repr: Variant representation applied at the top level
        **options: Serializer options, see to_string()
    """
    to_writer_all(stream, [data], shape, variant_repr, **options)


def to_string_all(documents, shape=None, variant_repr=None, **options):
    """Serialize each item of documents as one document of a YAML stream."""
    stream = io.StringIO()
    to_writer_all(stream, documents, shape, variant_repr, **options)
    return stream.getvalue()


def to_writer_all(stream, documents, shape=None, variant_repr=None, **options):
    """
    Serialize each item of documents as one document onto a stream.

    Documents after the first are introduced by a '---' marker.
    """
    serializer = Serializer(stream, **options)
    for data in documents:
        serializer.serialize(data, _produce_shape(data, shape), variant_repr)
    serializer.close()


def to_value(data, shape=None, variant_repr=None):
    """
    Convert host data to a Value tree, as to_string() would see it.

    Example:
        >>> yamlbridge.to_value([1, "a"])
        Sequence([Number(1), String('a')])
    """
    return _value_ser.to_value(_produce_shape(data, shape), data, variant_repr)


# Deserialization

def _build(document, shape, variant_repr, recursion_limit):
    if document.error is not None:
        raise document.error
    source = Deserializer(document, remaining_depth=recursion_limit)
    return _derive.resolve(shape).build(source, variant_repr)


def from_str(text, shape=None, variant_repr=None,
             recursion_limit=DEFAULT_RECURSION_LIMIT, name='<string>'):
    """
    Deserialize a single YAML document.

    Args:
        text: YAML source
        shape: Shape or type hint of the result; None returns a Value
        variant_repr: Variant representation applied at the top level
        recursion_limit: Maximum nesting of collections
        name: Stream name reported in error marks

    Returns:
        The host data built by shape

    Raises:
        Error: Any failure, with the position of the offending node.
            MoreThanOneDocumentError if text holds several documents.

    Example:
        >>> yamlbridge.from_str("a: [1, 2]")["a"][1]
        Number(2)
    """
    loader = Loader(text, name)
    result = _build(loader.next_document(), shape, variant_repr, recursion_limit)
    if loader.next_document() is not None:
        raise MoreThanOneDocumentError(
            "deserializing from YAML containing more than one document is not supported")
    return result


def _decode(data):
    if isinstance(data, str):
        return data
    try:
        return bytes(data).decode('utf-8')
    except UnicodeDecodeError as exc:
        text = bytes(data[:exc.start]).decode('utf-8')
        line = text.count('\n')
        column = len(text) - (text.rfind('\n') + 1)
        raise Utf8Error("invalid utf-8 sequence: %s" % exc.reason,
                        mark=Mark('<bytes>', exc.start, line, column, None, None)) from exc


def _read(reader):
    try:
        return _decode(reader.read())
    except OSError as exc:
        raise StreamError(str(exc)) from exc


def from_bytes(data, shape=None, variant_repr=None,
               recursion_limit=DEFAULT_RECURSION_LIMIT):
    """Deserialize a single YAML document from UTF-8 bytes."""
    return from_str(_decode(data), shape, variant_repr, recursion_limit, name='<bytes>')


def from_reader(reader, shape=None, variant_repr=None,
                recursion_limit=DEFAULT_RECURSION_LIMIT):
    """Deserialize a single YAML document read from a text or binary stream."""
    name = getattr(reader, 'name', '<reader>')
    return from_str(_read(reader), shape, variant_repr, recursion_limit, name=str(name))


def from_str_all(text, shape=None, variant_repr=None,
                 recursion_limit=DEFAULT_RECURSION_LIMIT, name='<string>'):
    """
    Deserialize every document of a YAML stream.

    Yields:
        One result per document; an empty stream yields nothing
    """
    for document in Loader(text, name):
        if document.is_void():
            return
        yield _build(document, shape, variant_repr, recursion_limit)


def from_bytes_all(data, shape=None, variant_repr=None,
                   recursion_limit=DEFAULT_RECURSION_LIMIT):
    return from_str_all(_decode(data), shape, variant_repr, recursion_limit, name='<bytes>')


def from_reader_all(reader, shape=None, variant_repr=None,
                    recursion_limit=DEFAULT_RECURSION_LIMIT):
    name = getattr(reader, 'name', '<reader>')
    return from_str_all(_read(reader), shape, variant_repr, recursion_limit, name=str(name))


def from_value(value, shape=None, variant_repr=None):
    """
    Build host data from a Value tree, or from plain Python data.

    Failures are located at the Mark of the failing Value when the tree
    came from parsed text.
    """
    source = ValueDeserializer(Value.from_python(value))
    return _derive.resolve(shape).build(source, variant_repr)


__all__ = [
    # Errors
    'Error', 'ErrorKind', 'Location', 'Mark', 'Path', 'ParseSyntaxError',
    'UnexpectedShapeError', 'MissingFieldError', 'UnknownFieldError',
    'UnknownVariantError', 'AmbiguousVariantError', 'NumericRangeError',
    'NonFiniteNumberError', 'StreamError', 'Utf8Error', 'EndOfStreamError',
    'MoreThanOneDocumentError', 'RecursionLimitError', 'RepetitionLimitError',
    'UnknownAnchorError', 'DuplicateKeyError', 'CustomError', 'EmitterError', 'custom',
    # Value model
    'Value', 'Null', 'Bool', 'Number', 'String', 'Sequence', 'Mapping', 'Tag',
    'Tagged',
    # Shapes
    'Shape', 'BOOL', 'INT', 'I8', 'I16', 'I32', 'I64', 'U8', 'U16', 'U32', 'U64',
    'FLOAT', 'F64', 'STR', 'UNIT', 'VALUE', 'ANY', 'OptionalShape', 'SeqShape',
    'TupleShape', 'MapShape', 'RecordShape', 'Field',
    # Variants
    'UNIT_CASE', 'NEWTYPE_CASE', 'TUPLE_CASE', 'RECORD_CASE', 'VariantShape',
    'Case', 'VariantValue', 'VariantRepr', 'TAG', 'SINGLETON_MAP',
    'SINGLETON_MAP_OPTIONAL', 'SINGLETON_MAP_RECURSIVE', 'SingletonMapCustom',
    # Derivation
    'field', 'record', 'variant', 'case', 'shape_of', 'i8', 'i16', 'i32', 'i64',
    'u8', 'u16', 'u32', 'u64', 'f64',
    # Engines
    'Loader', 'Deserializer', 'Serializer', 'ValueDeserializer',
    # Functions
    'to_string', 'to_writer', 'to_string_all', 'to_writer_all', 'to_value',
    'from_str', 'from_bytes', 'from_reader', 'from_str_all', 'from_bytes_all',
    'from_reader_all', 'from_value',
]
