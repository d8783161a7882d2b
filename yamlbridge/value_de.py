"""Deserializer reading from a Value tree.

Tags are transparent when the target is a primitive; a Tagged value is
offered as a variant to variant targets. Failures are located at the
Mark of the failing Value when it came from parsed text.
"""

from .error import EndOfStreamError, Error, Path, locate
from .value import Bool, Mapping, Null, Number, Sequence, String, Tagged
from .visitor import (
    UnitVisitor, describe_bool, describe_float, describe_int, describe_str,
    invalid_length, invalid_type,
)


def describe(value):
    if isinstance(value, Null):
        return 'unit value'
    if isinstance(value, Bool):
        return describe_bool(value.value)
    if isinstance(value, Number):
        if value.is_int():
            return describe_int(value.value)
        return describe_float(value.value)
    if isinstance(value, String):
        return describe_str(value.value)
    if isinstance(value, Sequence):
        return 'sequence'
    if isinstance(value, Mapping):
        return 'map'
    return 'enum'


class ValueDeserializer:

    def __init__(self, value, path=Path.ROOT):
        if value is None:
            raise EndOfStreamError("EOF while parsing a value")
        self.value = value
        self.path = path
        self.current_mark = value.mark

    def _locate(self, exc):
        locate(exc, self.value.mark, self.path)

    def _visit_sequence(self, items, visitor):
        access = ValueSequenceAccess(items, self.path)
        result = visitor.visit_seq(access)
        if access.count < len(items):
            raise invalid_length(len(items), 'fewer elements in sequence')
        return result

    def _visit_mapping(self, mapping, visitor):
        access = ValueMappingAccess(mapping, self.path)
        result = visitor.visit_map(access)
        if access.count < len(mapping):
            raise invalid_length(len(mapping), 'fewer elements in map')
        return result

    def deserialize_any(self, visitor):
        value = self.value
        try:
            if isinstance(value, Null):
                return visitor.visit_unit()
            if isinstance(value, Bool):
                return visitor.visit_bool(value.value)
            if isinstance(value, Number):
                if value.is_int():
                    return visitor.visit_int(value.value)
                return visitor.visit_float(value.value)
            if isinstance(value, String):
                return visitor.visit_str(value.value)
            if isinstance(value, Sequence):
                return self._visit_sequence(list(value), visitor)
            if isinstance(value, Mapping):
                return self._visit_mapping(value, visitor)
            return visitor.visit_enum(ValueEnumAccess(value, self.path))
        except Error as exc:
            self._locate(exc)
            raise

    def deserialize_bool(self, visitor):
        value = self.value.untag()
        try:
            if isinstance(value, Bool):
                return visitor.visit_bool(value.value)
            raise invalid_type(describe(value), visitor)
        except Error as exc:
            self._locate(exc)
            raise

    def _deserialize_number(self, visitor):
        value = self.value.untag()
        try:
            if isinstance(value, Number):
                if value.is_int():
                    return visitor.visit_int(value.value)
                return visitor.visit_float(value.value)
            raise invalid_type(describe(value), visitor)
        except Error as exc:
            self._locate(exc)
            raise

    deserialize_int = deserialize_float = _deserialize_number

    def deserialize_str(self, visitor):
        value = self.value.untag()
        try:
            if isinstance(value, String):
                return visitor.visit_str(value.value)
            raise invalid_type(describe(value), visitor)
        except Error as exc:
            self._locate(exc)
            raise

    deserialize_identifier = deserialize_str

    def deserialize_option(self, visitor):
        try:
            if isinstance(self.value, Null):
                return visitor.visit_none()
            return visitor.visit_some(self)
        except Error as exc:
            self._locate(exc)
            raise

    def deserialize_unit(self, visitor):
        value = self.value.untag()
        try:
            if isinstance(value, Null):
                return visitor.visit_unit()
            raise invalid_type(describe(value), visitor)
        except Error as exc:
            self._locate(exc)
            raise

    def deserialize_seq(self, visitor):
        value = self.value.untag()
        try:
            if isinstance(value, Sequence):
                return self._visit_sequence(list(value), visitor)
            if isinstance(value, Null):
                return self._visit_sequence([], visitor)
            raise invalid_type(describe(value), visitor)
        except Error as exc:
            self._locate(exc)
            raise

    def deserialize_tuple(self, length, visitor):
        return self.deserialize_seq(visitor)

    def deserialize_map(self, visitor):
        value = self.value.untag()
        try:
            if isinstance(value, Mapping):
                return self._visit_mapping(value, visitor)
            if isinstance(value, Null):
                return self._visit_mapping(Mapping(), visitor)
            raise invalid_type(describe(value), visitor)
        except Error as exc:
            self._locate(exc)
            raise

    def deserialize_struct(self, name, fields, visitor):
        return self.deserialize_map(visitor)

    def deserialize_enum(self, name, variants, visitor):
        value = self.value
        try:
            if isinstance(value, Tagged):
                return visitor.visit_enum(ValueEnumAccess(value, self.path))
            if isinstance(value, String):
                return visitor.visit_enum(ValueUnitVariantAccess(value.value))
            raise invalid_type(describe(value), 'a tagged value or variant name')
        except Error as exc:
            self._locate(exc)
            raise

    def deserialize_ignored_any(self, visitor):
        return visitor.visit_unit()


class ValueSequenceAccess:

    def __init__(self, items, path):
        self.items = items
        self.path = path
        self.count = 0

    def has_next(self):
        return self.count < len(self.items)

    def next_element(self, shape, mode=None):
        item = self.items[self.count]
        path = self.path.index(self.count)
        self.count += 1
        return shape.build(ValueDeserializer(item, path), mode)


class ValueMappingAccess:

    def __init__(self, mapping, path):
        self.entries = list(mapping.items())
        self.path = path
        self.count = 0
        self.key = None
        self.key_mark = None

    def has_next(self):
        return self.count < len(self.entries)

    def next_key(self, shape, mode=None):
        key, value = self.entries[self.count]
        self.key = key
        self.key_mark = key.mark
        self.count += 1
        return shape.build(ValueDeserializer(key, self.path), mode)

    def key_path(self):
        if isinstance(self.key, String):
            return self.path.key(self.key.value)
        return self.path.unknown()

    def next_value(self, shape, mode=None):
        key, value = self.entries[self.count - 1]
        return shape.build(ValueDeserializer(value, self.key_path()), mode)

    def skip_value(self):
        return None


class ValueEnumAccess:

    def __init__(self, tagged, path):
        self.tagged = tagged
        self.path = path

    def variant(self):
        return self.tagged.tag.name, ValueVariantAccess(self.tagged.value, self.path)


class ValueVariantAccess:

    def __init__(self, value, path):
        self.value = value
        self.path = path

    def unit(self):
        return ValueDeserializer(self.value, self.path).deserialize_unit(UnitVisitor())

    def newtype(self, shape, mode=None):
        return shape.build(ValueDeserializer(self.value, self.path), mode)

    tuple = record = newtype


class ValueUnitVariantAccess:

    def __init__(self, name):
        self.name = name

    def variant(self):
        return self.name, self

    def unit(self):
        return None

    def newtype(self, shape, mode=None):
        raise invalid_type('unit variant', 'newtype variant')

    def tuple(self, shape, mode=None):
        raise invalid_type('unit variant', 'tuple variant')

    def record(self, shape, mode=None):
        raise invalid_type('unit variant', 'struct variant')
