"""Visitor protocol shared by the deserializers.

A shape builds itself by handing a Visitor to one of the source's
``deserialize_*`` methods; the source calls back exactly one ``visit_*``
method describing the node it found. Sources are the text Deserializer
(yamlbridge.de) and the ValueDeserializer (yamlbridge.value_de).

Collections are walked through access objects:

- sequence access: ``has_next()``, ``next_element(shape, mode)``
- mapping access: ``has_next()``, ``next_key(shape, mode)``,
  ``next_value(shape, mode)``, ``skip_value()`` and ``key_mark``, the
  mark of the key just read
- enum access: ``variant()`` returning ``(name, variant_access)``
- variant access: ``unit()``, ``newtype(shape, mode)``,
  ``tuple(shape, mode)``, ``record(shape, mode)``
"""

from .error import UnexpectedShapeError, shorten
from .resolver import format_float


def describe_str(value):
    return 'string %s' % _quote(value)


def describe_int(value):
    return 'integer `%d`' % value


def describe_float(value):
    return 'floating point `%s`' % format_float(value)


def describe_bool(value):
    return 'boolean `%s`' % ('true' if value else 'false')


def _quote(value):
    return '"%s"' % shorten(value).replace('"', '\\"')


def invalid_type(unexpected, expected):
    """Build the error for a node of the wrong kind.

    Args:
        unexpected: Description of what was found, like ``'sequence'``
        expected: A Visitor, or a description of what was wanted
    """
    if isinstance(expected, Visitor):
        expected = expected.expecting
    return UnexpectedShapeError("invalid type: %s, expected %s" % (unexpected, expected))


def invalid_value(unexpected, expected):
    if isinstance(expected, Visitor):
        expected = expected.expecting
    return UnexpectedShapeError("invalid value: %s, expected %s" % (unexpected, expected))


def invalid_length(length, expected):
    if isinstance(expected, Visitor):
        expected = expected.expecting
    return UnexpectedShapeError("invalid length %d, expected %s" % (length, expected))


class Visitor:
    """Base visitor; every visit method rejects its node by default."""

    expecting = 'any value'

    def visit_bool(self, value):
        raise invalid_type(describe_bool(value), self)

    def visit_int(self, value):
        raise invalid_type(describe_int(value), self)

    def visit_float(self, value):
        raise invalid_type(describe_float(value), self)

    def visit_str(self, value):
        raise invalid_type(describe_str(value), self)

    def visit_none(self):
        raise invalid_type('Option value', self)

    def visit_some(self, source):
        raise invalid_type('Option value', self)

    def visit_unit(self):
        raise invalid_type('unit value', self)

    def visit_seq(self, access):
        raise invalid_type('sequence', self)

    def visit_map(self, access):
        raise invalid_type('map', self)

    def visit_enum(self, access):
        raise invalid_type('enum', self)


class Describer(Visitor):
    """Returns the description of a node instead of building anything."""

    def visit_bool(self, value):
        return describe_bool(value)

    def visit_int(self, value):
        return describe_int(value)

    def visit_float(self, value):
        return describe_float(value)

    def visit_str(self, value):
        return describe_str(value)

    def visit_unit(self):
        return 'unit value'

    def visit_none(self):
        return 'unit value'


class StrVisitor(Visitor):
    expecting = 'a string'

    def visit_str(self, value):
        return value


class IgnoredAny(Visitor):
    """Accepts any node and returns None."""

    def visit_bool(self, value):
        return None

    visit_int = visit_float = visit_str = visit_bool

    def visit_none(self):
        return None

    def visit_unit(self):
        return None

    def visit_some(self, source):
        return source.deserialize_ignored_any(self)

    def visit_seq(self, access):
        while access.has_next():
            access.next_element(IGNORED)
        return None

    def visit_map(self, access):
        while access.has_next():
            access.next_key(IGNORED)
            access.skip_value()
        return None

    def visit_enum(self, access):
        name, variant = access.variant()
        return variant.newtype(IGNORED, None)


class _IgnoredShape:

    def build(self, source, mode=None):
        return source.deserialize_ignored_any(IgnoredAny())


IGNORED = _IgnoredShape()


class UnitVisitor(Visitor):
    expecting = 'unit variant'

    def visit_unit(self):
        return None


def one_of(names, what='fields'):
    """Render the accepted field or variant names for a message."""
    names = ['`%s`' % name for name in names]
    if not names:
        return 'there are no %s' % what
    if len(names) == 1:
        return 'expected %s' % names[0]
    if len(names) == 2:
        return 'expected %s or %s' % tuple(names)
    return 'expected one of %s' % ', '.join(names)
