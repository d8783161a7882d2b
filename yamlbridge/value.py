"""Generic in-memory representation of YAML content.

A Value is one of Null, Bool, Number, String, Sequence, Mapping or
Tagged. Values are immutable trees; nodes built by the deserializer carry
the Mark of the node they were read from, which takes no part in
equality.
"""

import math

from .error import Location
from .resolver import format_float, parse_float, parse_int


_NAN_HASH = hash('.nan')


class Value:
    """Base class for Value nodes."""

    id = None
    __slots__ = ('_mark',)

    def __init__(self, mark=None):
        self._mark = mark

    @property
    def mark(self):
        return self._mark

    @property
    def location(self):
        """Source Location of this node, None for values built in code."""
        if self._mark is None:
            return None
        return Location.from_mark(self._mark)

    @staticmethod
    def from_python(data):
        """Convert None, bool, int, float, str, list, tuple and dict trees.

        Raises:
            TypeError: If the data contains anything else.
        """
        if isinstance(data, Value):
            return data
        if data is None:
            return Null()
        if isinstance(data, bool):
            return Bool(data)
        if isinstance(data, (int, float)):
            return Number(data)
        if isinstance(data, str):
            return String(data)
        if isinstance(data, (list, tuple)):
            return Sequence([Value.from_python(item) for item in data])
        if isinstance(data, dict):
            return Mapping((Value.from_python(key), Value.from_python(item))
                           for key, item in data.items())
        raise TypeError("cannot convert %s to a YAML value" % type(data).__name__)

    def to_python(self):
        raise NotImplementedError

    def untag(self):
        """Return the innermost value below any Tagged wrappers."""
        return self

    def is_null(self):
        return isinstance(self.untag(), Null)

    def is_bool(self):
        return isinstance(self.untag(), Bool)

    def is_number(self):
        return isinstance(self.untag(), Number)

    def is_string(self):
        return isinstance(self.untag(), String)

    def is_sequence(self):
        return isinstance(self.untag(), Sequence)

    def is_mapping(self):
        return isinstance(self.untag(), Mapping)

    def is_tagged(self):
        return False

    def as_bool(self):
        value = self.untag()
        return value.value if isinstance(value, Bool) else None

    def as_int(self):
        value = self.untag()
        return value.as_int() if isinstance(value, Number) else None

    def as_float(self):
        value = self.untag()
        return value.as_float() if isinstance(value, Number) else None

    def as_str(self):
        value = self.untag()
        return value.value if isinstance(value, String) else None

    def get(self, index, default=None):
        """Look up a sequence position or mapping key.

        Returns default when the index does not exist or this value is not
        a collection.
        """
        return default

    def __getitem__(self, index):
        found = self.get(index)
        if found is None:
            return Null()
        return found

    def _equals(self, other):
        raise NotImplementedError

    def __eq__(self, other):
        if not isinstance(other, Value):
            try:
                other = Value.from_python(other)
            except TypeError:
                return NotImplemented
        if type(self) is not type(other):
            return False
        return self._equals(other)

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result


class Null(Value):
    """The YAML null."""

    id = 'null'
    __slots__ = ()

    def to_python(self):
        return None

    def _equals(self, other):
        return True

    def __hash__(self):
        return hash(None)

    def __repr__(self):
        return 'Null()'


class Bool(Value):
    id = 'bool'
    __slots__ = ('_value',)

    def __init__(self, value, mark=None):
        super().__init__(mark)
        self._value = bool(value)

    @property
    def value(self):
        return self._value

    def to_python(self):
        return self._value

    def _equals(self, other):
        return self._value == other._value

    def __hash__(self):
        return hash(self._value)

    def __repr__(self):
        return 'Bool(%r)' % self._value


class Number(Value):
    """An integer or a float.

    Integers and floats are distinct: ``Number(1) != Number(1.0)``. NaN is
    equal to itself so that values read back from text compare equal.
    """

    id = 'number'
    __slots__ = ('_value',)

    def __init__(self, value, mark=None):
        super().__init__(mark)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError("Number expects an int or a float, got %s"
                            % type(value).__name__)
        self._value = value

    @classmethod
    def parse(cls, text):
        """Parse YAML number text, returning None if it is not a number."""
        value = parse_int(text)
        if value is None:
            value = parse_float(text)
        if value is None:
            return None
        return cls(value)

    @property
    def value(self):
        return self._value

    def is_int(self):
        return isinstance(self._value, int)

    def is_float(self):
        return isinstance(self._value, float)

    def is_nan(self):
        return self.is_float() and math.isnan(self._value)

    def is_infinite(self):
        return self.is_float() and math.isinf(self._value)

    def is_finite(self):
        return self.is_int() or math.isfinite(self._value)

    def as_int(self):
        return self._value if self.is_int() else None

    def as_float(self):
        return float(self._value)

    def to_python(self):
        return self._value

    def _equals(self, other):
        if self.is_int() != other.is_int():
            return False
        if self.is_nan() and other.is_nan():
            return True
        return self._value == other._value

    def __hash__(self):
        if self.is_nan():
            return _NAN_HASH
        return hash(self._value)

    def __int__(self):
        return int(self._value)

    def __float__(self):
        return float(self._value)

    def __str__(self):
        if self.is_int():
            return str(self._value)
        return format_float(self._value)

    def __repr__(self):
        return 'Number(%s)' % self


class String(Value):
    id = 'string'
    __slots__ = ('_value',)

    def __init__(self, value, mark=None):
        super().__init__(mark)
        self._value = str(value)

    @property
    def value(self):
        return self._value

    def to_python(self):
        return self._value

    def _equals(self, other):
        return self._value == other._value

    def __hash__(self):
        return hash(self._value)

    def __str__(self):
        return self._value

    def __repr__(self):
        return 'String(%r)' % self._value


class Sequence(Value):
    id = 'sequence'
    __slots__ = ('_items',)

    def __init__(self, items=(), mark=None):
        super().__init__(mark)
        self._items = tuple(Value.from_python(item) for item in items)

    def get(self, index, default=None):
        if isinstance(index, bool) or not isinstance(index, int):
            return default
        if 0 <= index < len(self._items):
            return self._items[index]
        return default

    def to_python(self):
        return [item.to_python() for item in self._items]

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def _equals(self, other):
        return self._items == other._items

    def __hash__(self):
        return hash(self._items)

    def __repr__(self):
        return 'Sequence(%r)' % (list(self._items),)


class Mapping(Value):
    """Ordered key/value pairs with unique keys.

    Insertion order is kept for emission; equality ignores it. A later
    pair with an equal key replaces the value of the earlier one.
    """

    id = 'mapping'
    __slots__ = ('_entries',)

    def __init__(self, pairs=(), mark=None):
        super().__init__(mark)
        if isinstance(pairs, dict):
            pairs = pairs.items()
        entries = {}
        for key, value in pairs:
            entries[Value.from_python(key)] = Value.from_python(value)
        self._entries = entries

    def get(self, key, default=None):
        if not isinstance(key, Value):
            try:
                key = Value.from_python(key)
            except TypeError:
                return default
        return self._entries.get(key, default)

    def keys(self):
        return self._entries.keys()

    def values(self):
        return self._entries.values()

    def items(self):
        return self._entries.items()

    def to_python(self):
        result = {}
        for key, value in self._entries.items():
            key = key.to_python()
            if isinstance(key, list):
                key = tuple(key)
            result[key] = value.to_python()
        return result

    def __contains__(self, key):
        return self.get(key) is not None

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def _equals(self, other):
        return self._entries == other._entries

    def __hash__(self):
        return hash(frozenset(self._entries.items()))

    def __repr__(self):
        return 'Mapping(%r)' % (self._entries,)


class Tag:
    """A YAML tag.

    The leading ``!`` of local tags is optional when constructing and is
    ignored when comparing, so ``Tag('Foo') == Tag('!Foo')``.
    """

    __slots__ = ('_string',)

    def __init__(self, string):
        if isinstance(string, Tag):
            string = string._string
        if not string:
            raise ValueError("empty YAML tag is not allowed")
        self._string = string

    @property
    def name(self):
        """The tag without its leading ``!``."""
        if self._string.startswith('!') and len(self._string) > 1:
            return self._string[1:]
        return self._string

    def __eq__(self, other):
        if isinstance(other, str):
            other = Tag(other) if other else None
        if not isinstance(other, Tag):
            return NotImplemented
        return self.name == other.name

    def __hash__(self):
        return hash(self.name)

    def __str__(self):
        return '!' + self.name

    def __repr__(self):
        return 'Tag(%r)' % str(self)


class Tagged(Value):
    """A value annotated with an explicit ``!tag``."""

    id = 'tagged'
    __slots__ = ('_tag', '_value')

    def __init__(self, tag, value, mark=None):
        super().__init__(mark)
        self._tag = Tag(tag)
        self._value = Value.from_python(value)

    @property
    def tag(self):
        return self._tag

    @property
    def value(self):
        return self._value

    def untag(self):
        return self._value.untag()

    def is_tagged(self):
        return True

    def get(self, index, default=None):
        return self._value.get(index, default)

    def to_python(self):
        return self

    def _equals(self, other):
        return self._tag == other._tag and self._value == other._value

    def __hash__(self):
        return hash((self._tag, self._value))

    def __repr__(self):
        return 'Tagged(%r, %r)' % (str(self._tag), self._value)
