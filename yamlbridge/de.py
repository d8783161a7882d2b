"""Deserializer over parsed YAML events.

A Deserializer is a view on one node of a loaded Document. Views created
for child nodes share the parent's cursor, so consuming a child advances
the parent. Every failure is located at the innermost node that failed.
"""

from . import resolver
from .error import (
    EndOfStreamError, Error, Path, RecursionLimitError, RepetitionLimitError,
    UnexpectedShapeError, locate,
)
from .events import (
    MappingEndEvent, MappingStartEvent, ScalarEvent, SequenceEndEvent,
    SequenceStartEvent,
)
from .loader import VOID, Alias
from .visitor import (
    Describer, StrVisitor, UnitVisitor, describe_str, invalid_length, invalid_type,
    invalid_value,
)

DEFAULT_RECURSION_LIMIT = 128

# Alias replays allowed per event of the document.
REPETITION_FACTOR = 100


class _Counter:
    __slots__ = ('value',)

    def __init__(self, value=0):
        self.value = value


def enum_tag(tag, tagged_already):
    """Return the variant name carried by a local ``!tag``, if any."""
    if tagged_already or tag is None:
        return None
    if tag.startswith('!') and len(tag) > 1:
        return tag[1:]
    return None


def visit_untagged_scalar(visitor, value):
    if resolver.parse_null(value):
        return visitor.visit_unit()
    boolean = resolver.parse_bool(value)
    if boolean is not None:
        return visitor.visit_bool(boolean)
    number = resolver.parse_int(value)
    if number is not None:
        return visitor.visit_int(number)
    if not resolver.digits_but_not_number(value):
        number = resolver.parse_float(value)
        if number is not None:
            return visitor.visit_float(number)
    return visitor.visit_str(value)


def visit_scalar(visitor, event, tagged_already):
    value = event.value
    tag = None if tagged_already else event.tag
    if tag is not None:
        if tag == resolver.BOOL_TAG:
            boolean = resolver.parse_bool(value)
            if boolean is None:
                raise invalid_value(describe_str(value), 'a boolean')
            return visitor.visit_bool(boolean)
        if tag == resolver.INT_TAG:
            number = resolver.parse_int(value)
            if number is None:
                raise invalid_value(describe_str(value), 'an integer')
            return visitor.visit_int(number)
        if tag == resolver.FLOAT_TAG:
            number = resolver.parse_float(value)
            if number is None:
                raise invalid_value(describe_str(value), 'a float')
            return visitor.visit_float(number)
        if tag == resolver.NULL_TAG:
            if not resolver.parse_null(value):
                raise invalid_value(describe_str(value), 'null')
            return visitor.visit_unit()
        if tag.startswith('!') and event.style is None:
            return visit_untagged_scalar(visitor, value)
    elif event.style is None:
        return visit_untagged_scalar(visitor, value)
    return visitor.visit_str(value)


def is_plain_or_tagged(expected_tag, event, tagged_already):
    if event.style is None:
        return True
    return not tagged_already and event.tag == expected_tag


def is_empty_plain(event):
    return isinstance(event, ScalarEvent) and event.style is None and event.value == ''


class Deserializer:
    """Reads one node of a Document through the visitor protocol.

    Args:
        document: A loaded Document
        cursor: Shared position in document.events
        counter: Shared alias replay counter
        path: Path of the node, for error messages
        remaining_depth: Collections that may still be entered
        current_enum: (enum name, tag) when the node's tag was already
            taken as a variant name
    """

    def __init__(self, document, cursor=None, counter=None, path=Path.ROOT,
                 remaining_depth=DEFAULT_RECURSION_LIMIT, current_enum=None):
        self.document = document
        self.cursor = cursor if cursor is not None else _Counter()
        self.counter = counter if counter is not None else _Counter()
        self.path = path
        self.remaining_depth = remaining_depth
        self.current_enum = current_enum
        self.current_mark = None

    # Event access

    def peek_event(self):
        try:
            return self.document.events[self.cursor.value]
        except IndexError:
            raise EndOfStreamError("EOF while parsing a value") from None

    def next_event(self):
        event, mark = self.peek_event()
        self.cursor.value += 1
        self.current_mark = mark
        return event, mark

    def child(self, path):
        """View for an element or entry of the collection being read."""
        return Deserializer(self.document, self.cursor, self.counter, path,
                            self.remaining_depth - 1)

    def jump(self, alias):
        self.counter.value += 1
        if self.counter.value > len(self.document.events) * REPETITION_FACTOR:
            raise RepetitionLimitError("repetition limit exceeded")
        return Deserializer(self.document, _Counter(alias.target), self.counter,
                            self.path.alias(), self.remaining_depth)

    def tagged(self, name, tag):
        return Deserializer(self.document, self.cursor, self.counter, self.path,
                            self.remaining_depth, current_enum=(name, tag))

    def ignore_any(self):
        depth = 0
        while True:
            event, mark = self.next_event()
            if isinstance(event, (SequenceStartEvent, MappingStartEvent)):
                depth += 1
            elif isinstance(event, (SequenceEndEvent, MappingEndEvent)):
                depth -= 1
            if depth <= 0:
                return

    def _invalid_type(self, event, visitor, tagged_already=False):
        if isinstance(event, ScalarEvent):
            try:
                unexpected = visit_scalar(Describer(), event, tagged_already)
            except Error:
                unexpected = describe_str(event.value)
        elif isinstance(event, SequenceStartEvent):
            unexpected = 'sequence'
        elif isinstance(event, MappingStartEvent):
            unexpected = 'map'
        elif event is VOID:
            return EndOfStreamError("EOF while parsing a value")
        else:
            return UnexpectedShapeError("unexpected %s" % type(event).__name__)
        return invalid_type(unexpected, visitor)

    def _locate(self, exc, mark):
        locate(exc, mark, self.path)

    # Collections

    def _enter(self):
        if self.remaining_depth <= 0:
            raise RecursionLimitError("recursion limit exceeded")

    def _visit_sequence(self, visitor):
        self._enter()
        access = SequenceAccess(self)
        value = visitor.visit_seq(access)
        self._end_sequence(access.count, visitor)
        return value

    def _visit_mapping(self, visitor):
        self._enter()
        access = MappingAccess(self)
        value = visitor.visit_map(access)
        self._end_mapping(access.count, visitor)
        return value

    def _end_sequence(self, count, visitor):
        total = count
        while True:
            event, mark = self.peek_event()
            if isinstance(event, SequenceEndEvent):
                self.cursor.value += 1
                break
            self.child(self.path.index(total)).ignore_any()
            total += 1
        if total != count:
            raise invalid_length(total, visitor)

    def _end_mapping(self, count, visitor):
        total = count
        while True:
            event, mark = self.peek_event()
            if isinstance(event, MappingEndEvent):
                self.cursor.value += 1
                break
            self.child(self.path.unknown()).ignore_any()
            self.child(self.path.unknown()).ignore_any()
            total += 1
        if total != count:
            raise invalid_length(total, visitor)

    # Deserializer protocol

    def deserialize_any(self, visitor):
        tagged_already = self.current_enum is not None
        event, mark = self.next_event()
        try:
            if isinstance(event, Alias):
                return self.jump(event).deserialize_any(visitor)
            if isinstance(event, (ScalarEvent, SequenceStartEvent, MappingStartEvent)):
                tag = enum_tag(event.tag, tagged_already)
                if tag is not None:
                    self.cursor.value -= 1
                    return visitor.visit_enum(EnumAccess(self, None, tag))
            if isinstance(event, ScalarEvent):
                return visit_scalar(visitor, event, tagged_already)
            if isinstance(event, SequenceStartEvent):
                return self._visit_sequence(visitor)
            if isinstance(event, MappingStartEvent):
                return self._visit_mapping(visitor)
            if event is VOID:
                return visitor.visit_none()
            raise self._invalid_type(event, visitor)
        except Error as exc:
            self._locate(exc, mark)
            raise

    def deserialize_bool(self, visitor):
        tagged_already = self.current_enum is not None
        event, mark = self.next_event()
        try:
            if isinstance(event, Alias):
                return self.jump(event).deserialize_bool(visitor)
            if isinstance(event, ScalarEvent) \
                    and is_plain_or_tagged(resolver.BOOL_TAG, event, tagged_already):
                boolean = resolver.parse_bool(event.value)
                if boolean is not None:
                    return visitor.visit_bool(boolean)
            raise self._invalid_type(event, visitor, tagged_already)
        except Error as exc:
            self._locate(exc, mark)
            raise

    def deserialize_int(self, visitor):
        tagged_already = self.current_enum is not None
        event, mark = self.next_event()
        try:
            if isinstance(event, Alias):
                return self.jump(event).deserialize_int(visitor)
            if isinstance(event, ScalarEvent) \
                    and is_plain_or_tagged(resolver.INT_TAG, event, tagged_already):
                number = resolver.parse_int(event.value)
                if number is not None:
                    return visitor.visit_int(number)
            raise self._invalid_type(event, visitor, tagged_already)
        except Error as exc:
            self._locate(exc, mark)
            raise

    def deserialize_float(self, visitor):
        tagged_already = self.current_enum is not None
        event, mark = self.next_event()
        try:
            if isinstance(event, Alias):
                return self.jump(event).deserialize_float(visitor)
            if isinstance(event, ScalarEvent) \
                    and is_plain_or_tagged(resolver.FLOAT_TAG, event, tagged_already):
                number = resolver.parse_float(event.value)
                if number is not None:
                    return visitor.visit_float(number)
            raise self._invalid_type(event, visitor, tagged_already)
        except Error as exc:
            self._locate(exc, mark)
            raise

    def deserialize_str(self, visitor):
        event, mark = self.next_event()
        try:
            if isinstance(event, Alias):
                return self.jump(event).deserialize_str(visitor)
            if isinstance(event, ScalarEvent):
                return visitor.visit_str(event.value)
            raise self._invalid_type(event, visitor)
        except Error as exc:
            self._locate(exc, mark)
            raise

    deserialize_identifier = deserialize_str

    def deserialize_option(self, visitor):
        event, mark = self.peek_event()
        try:
            if isinstance(event, Alias):
                self.cursor.value += 1
                self.current_mark = mark
                return self.jump(event).deserialize_option(visitor)
            if isinstance(event, ScalarEvent):
                tagged_already = self.current_enum is not None
                if event.style is not None:
                    is_some = True
                elif event.tag is not None and not tagged_already:
                    if event.tag == resolver.NULL_TAG:
                        if not resolver.parse_null(event.value):
                            raise invalid_value(describe_str(event.value), 'null')
                        is_some = False
                    else:
                        is_some = True
                else:
                    is_some = not resolver.parse_null(event.value)
            elif isinstance(event, (SequenceStartEvent, MappingStartEvent)):
                is_some = True
            elif event is VOID:
                is_some = False
            else:
                raise self._invalid_type(event, visitor)
            if is_some:
                return visitor.visit_some(self)
            self.cursor.value += 1
            self.current_mark = mark
            self.current_enum = None
            return visitor.visit_none()
        except Error as exc:
            self._locate(exc, mark)
            raise

    def deserialize_unit(self, visitor):
        tagged_already = self.current_enum is not None
        event, mark = self.next_event()
        try:
            if isinstance(event, Alias):
                return self.jump(event).deserialize_unit(visitor)
            if isinstance(event, ScalarEvent):
                if event.style is not None:
                    is_null = False
                elif event.tag is not None and not tagged_already:
                    is_null = event.tag == resolver.NULL_TAG \
                        and resolver.parse_null(event.value)
                else:
                    is_null = resolver.parse_null(event.value)
                if is_null:
                    return visitor.visit_unit()
                raise invalid_value(describe_str(event.value), 'null')
            if event is VOID:
                return visitor.visit_unit()
            raise self._invalid_type(event, visitor)
        except Error as exc:
            self._locate(exc, mark)
            raise

    def deserialize_seq(self, visitor):
        event, mark = self.next_event()
        try:
            if isinstance(event, Alias):
                return self.jump(event).deserialize_seq(visitor)
            if isinstance(event, SequenceStartEvent):
                return self._visit_sequence(visitor)
            if event is VOID or is_empty_plain(event):
                return visitor.visit_seq(EmptyAccess())
            raise self._invalid_type(event, visitor)
        except Error as exc:
            self._locate(exc, mark)
            raise

    def deserialize_tuple(self, length, visitor):
        return self.deserialize_seq(visitor)

    def deserialize_map(self, visitor):
        event, mark = self.next_event()
        try:
            if isinstance(event, Alias):
                return self.jump(event).deserialize_map(visitor)
            if isinstance(event, MappingStartEvent):
                return self._visit_mapping(visitor)
            if event is VOID or is_empty_plain(event):
                return visitor.visit_map(EmptyAccess())
            raise self._invalid_type(event, visitor)
        except Error as exc:
            self._locate(exc, mark)
            raise

    def deserialize_struct(self, name, fields, visitor):
        """Read a record; a null document root reads as an empty mapping."""
        event, mark = self.peek_event()
        if self.path.is_root() and isinstance(event, ScalarEvent) \
                and event.style is None and event.tag is None \
                and resolver.parse_null(event.value):
            self.cursor.value += 1
            self.current_mark = mark
            try:
                return visitor.visit_map(EmptyAccess())
            except Error as exc:
                self._locate(exc, mark)
                raise
        return self.deserialize_map(visitor)

    def deserialize_enum(self, name, variants, visitor):
        event, mark = self.peek_event()
        self.current_mark = mark
        try:
            if self.current_enum is not None:
                if isinstance(event, ScalarEvent) and event.value != '':
                    return visitor.visit_enum(UnitVariantAccess(self))
                outer, tag = self.current_enum
                if outer is not None:
                    where = '%s::%s' % (outer, tag)
                else:
                    where = '!' + tag
                raise UnexpectedShapeError(
                    "deserializing nested enum in %s from YAML is not supported yet" % where)
            if isinstance(event, Alias):
                self.cursor.value += 1
                return self.jump(event).deserialize_enum(name, variants, visitor)
            if isinstance(event, ScalarEvent):
                tag = enum_tag(event.tag, False)
                if tag is not None:
                    return visitor.visit_enum(EnumAccess(self, name, tag))
                return visitor.visit_enum(UnitVariantAccess(self))
            if isinstance(event, (SequenceStartEvent, MappingStartEvent)):
                tag = enum_tag(event.tag, False)
                if tag is not None:
                    return visitor.visit_enum(EnumAccess(self, name, tag))
                kind = 'sequence' if isinstance(event, SequenceStartEvent) else 'map'
                raise invalid_type(kind, "a YAML tag starting with '!'")
            if event is VOID:
                raise EndOfStreamError("EOF while parsing a value")
            raise self._invalid_type(event, visitor)
        except Error as exc:
            self._locate(exc, mark)
            raise

    def deserialize_ignored_any(self, visitor):
        self.ignore_any()
        return visitor.visit_unit()


class EmptyAccess:
    """Sequence and mapping access for an empty or null node."""

    count = 0
    key_mark = None

    def has_next(self):
        return False


class SequenceAccess:

    def __init__(self, de):
        self.de = de
        self.count = 0

    def has_next(self):
        event, mark = self.de.peek_event()
        return not isinstance(event, SequenceEndEvent)

    def next_element(self, shape, mode=None):
        element = self.de.child(self.de.path.index(self.count))
        self.count += 1
        return shape.build(element, mode)


class MappingAccess:

    def __init__(self, de):
        self.de = de
        self.count = 0
        self.key = None
        self.key_mark = None

    def has_next(self):
        event, mark = self.de.peek_event()
        return not isinstance(event, MappingEndEvent)

    def next_key(self, shape, mode=None):
        event, mark = self.de.peek_event()
        self.key_mark = mark
        self.key = event.value if isinstance(event, ScalarEvent) else None
        self.count += 1
        return shape.build(self.de.child(self.de.path), mode)

    def key_path(self):
        if self.key is None:
            return self.de.path.unknown()
        return self.de.path.key(self.key)

    def next_value(self, shape, mode=None):
        return shape.build(self.de.child(self.key_path()), mode)

    def skip_value(self):
        self.de.child(self.key_path()).ignore_any()


class EnumAccess:
    """Variant selected by the node's own ``!tag``."""

    def __init__(self, de, name, tag):
        self.de = de
        self.name = name
        self.tag = tag

    def variant(self):
        return self.tag, TaggedVariantAccess(self.de.tagged(self.name, self.tag))


class TaggedVariantAccess:

    def __init__(self, de):
        self.de = de

    def unit(self):
        return self.de.deserialize_unit(UnitVisitor())

    def newtype(self, shape, mode=None):
        return shape.build(self.de, mode)

    tuple = record = newtype


class UnitVariantAccess:
    """Variant named by a plain scalar; only unit variants fit."""

    def __init__(self, de):
        self.de = de

    def variant(self):
        return self.de.deserialize_str(StrVisitor()), self

    def unit(self):
        return None

    def newtype(self, shape, mode=None):
        raise invalid_type('unit variant', 'newtype variant')

    def tuple(self, shape, mode=None):
        raise invalid_type('unit variant', 'tuple variant')

    def record(self, shape, mode=None):
        raise invalid_type('unit variant', 'struct variant')
