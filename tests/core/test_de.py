"""Tests for reading YAML text into typed data."""

import math
from dataclasses import dataclass, field
from typing import Any, Optional

import pytest
import yamlbridge as yb


@dataclass
class Person:
    name: str
    age: int = 0


@dataclass
class Node:
    value: int
    children: list['Node'] = field(default_factory=list)


@dataclass
class Settings:
    title: str = 'untitled'
    tags: list[str] = field(default_factory=list)
    limit: Optional[int] = None


class TestScalarResolution:
    """Plain scalars resolve to null, bool, int, float or string."""

    @pytest.mark.parametrize('text', ['~', 'null', 'Null', 'NULL', ''])
    def test_null(self, text):
        """Null spellings and the empty document."""
        assert yb.from_str(text).is_null()

    @pytest.mark.parametrize('text, expected', [
        ('true', True), ('True', True), ('TRUE', True),
        ('false', False), ('False', False), ('FALSE', False),
    ])
    def test_bool(self, text, expected):
        """Only YAML 1.2 boolean spellings are booleans."""
        assert yb.from_str(text) == yb.Bool(expected)

    @pytest.mark.parametrize('text', ['yes', 'no', 'on', 'off', 'y'])
    def test_yaml11_words_are_strings(self, text):
        """YAML 1.1 boolean words read as strings."""
        assert yb.from_str(text) == yb.String(text)

    @pytest.mark.parametrize('text, expected', [
        ('42', 42), ('-7', -7), ('+3', 3), ('0x1F', 31), ('0o17', 15),
        ('0b101', 5), ('-0x10', -16),
    ])
    def test_int(self, text, expected):
        """Decimal, hex, octal and binary integers."""
        assert yb.from_str(text, int) == expected

    def test_leading_zero_is_string(self):
        """01 is not a number."""
        assert yb.from_str('01') == yb.String('01')
        assert yb.from_str('01', str) == '01'

    def test_float(self):
        """Decimal and exponent floats."""
        assert yb.from_str('2.5', float) == 2.5
        assert yb.from_str('1e3', float) == 1000.0
        assert yb.from_str('.5', float) == 0.5

    def test_int_reads_as_float(self):
        """An integer scalar is accepted by a float target."""
        value = yb.from_str('3', float)
        assert value == 3.0
        assert isinstance(value, float)

    def test_big_int(self):
        """Integers are not limited to 64 bits."""
        assert yb.from_str('123456789012345678901234567890', int) \
            == 123456789012345678901234567890

    def test_str_accepts_any_scalar(self):
        """A string target takes the text of any scalar."""
        assert yb.from_str('42', str) == '42'
        assert yb.from_str('true', str) == 'true'
        assert yb.from_str("'quoted'", str) == 'quoted'

    def test_quoted_number_is_string(self):
        """Quoting prevents resolution."""
        assert yb.from_str("'42'") == yb.String('42')
        with pytest.raises(yb.UnexpectedShapeError):
            yb.from_str("'42'", int)


class TestCoreTags:
    """!!str, !!int, !!float, !!bool and !!null force the resolution."""

    def test_int_tag_on_quoted(self):
        """!!int reads a quoted integer."""
        assert yb.from_str('!!int "10"', int) == 10
        assert yb.from_str('!!int "10"') == yb.Number(10)

    def test_str_tag(self):
        """!!str keeps numbers as text."""
        assert yb.from_str('!!str 123') == yb.String('123')

    def test_float_tag(self):
        """!!float reads a quoted float."""
        assert yb.from_str('!!float "1.5"') == yb.Number(1.5)

    def test_bad_tagged_value(self):
        """A value that does not match its core tag is rejected."""
        with pytest.raises(yb.UnexpectedShapeError, match='invalid value'):
            yb.from_str('!!int abc')


class TestNonFinite:
    """NaN and infinities."""

    def test_value_keeps_special_floats(self):
        """The Value model represents .inf and .nan."""
        assert yb.from_str('.inf') == yb.Number(math.inf)
        assert yb.from_str('-.inf') == yb.Number(-math.inf)
        assert yb.from_str('.nan').untag().is_nan()

    def test_float_target_rejects_nan(self):
        """A plain float target only takes finite numbers."""
        with pytest.raises(yb.NonFiniteNumberError):
            yb.from_str('.nan', float)
        with pytest.raises(yb.NonFiniteNumberError):
            yb.from_str('x: .inf', dict[str, float])

    def test_f64_accepts_non_finite(self):
        """F64 opts in to NaN and infinities."""
        assert math.isnan(yb.from_str('.nan', yb.f64))
        assert yb.from_str('-.inf', yb.F64) == -math.inf


class TestIntegerRange:
    """Fixed-width integer targets check their range."""

    def test_u8_overflow(self):
        """300 does not fit u8."""
        with pytest.raises(yb.NumericRangeError):
            yb.from_str('300', yb.u8)

    def test_unsigned_negative(self):
        """Negative numbers do not fit unsigned types."""
        with pytest.raises(yb.NumericRangeError):
            yb.from_str('-1', yb.U32)

    def test_in_range(self):
        """Bounds are inclusive."""
        assert yb.from_str('255', yb.u8) == 255
        assert yb.from_str('-128', yb.i8) == -128

    def test_float_is_not_int(self):
        """A float scalar is not an integer."""
        with pytest.raises(yb.UnexpectedShapeError, match='invalid type: floating point'):
            yb.from_str('1.5', int)


class TestCollections:
    """Sequences, tuples, maps and optionals."""

    def test_list(self):
        """Block and flow sequences."""
        assert yb.from_str('- 1\n- 2\n', list[int]) == [1, 2]
        assert yb.from_str('[1, 2]', list[int]) == [1, 2]

    def test_tuple(self):
        """Tuples take exactly their length."""
        assert yb.from_str('[1, a]', tuple[int, str]) == (1, 'a')
        with pytest.raises(yb.UnexpectedShapeError, match='invalid length 1'):
            yb.from_str('[1]', tuple[int, str])
        with pytest.raises(yb.UnexpectedShapeError, match='invalid length 3'):
            yb.from_str('[1, a, 2]', tuple[int, str])

    def test_dict_keeps_order(self):
        """Mapping order is kept."""
        result = yb.from_str('b: 1\na: 2\n', dict[str, int])
        assert list(result) == ['b', 'a']

    def test_optional(self):
        """Null reads as None."""
        assert yb.from_str('~', Optional[int]) is None
        assert yb.from_str('5', Optional[int]) == 5
        assert yb.from_str('5', int | None) == 5

    def test_set(self):
        """Sets are read from sequences."""
        assert yb.from_str('[1, 2, 2]', set[int]) == {1, 2}

    def test_any(self):
        """Any builds plain Python data."""
        assert yb.from_str('a: [1, x, ~]', Any) == {'a': [1, 'x', None]}

    def test_sequence_is_not_a_map(self):
        """Kind mismatches are invalid type errors."""
        with pytest.raises(yb.UnexpectedShapeError, match='invalid type: sequence'):
            yb.from_str('[1]', dict[str, int])


class TestRecords:
    """Dataclass records."""

    def test_basic(self):
        """Fields are read by name."""
        assert yb.from_str('name: Alice\nage: 30\n', Person) == Person('Alice', 30)

    def test_defaults(self):
        """Absent fields take their defaults."""
        assert yb.from_str('name: Bob\n', Person) == Person('Bob', 0)

    def test_open_record_ignores_unknown(self):
        """Records ignore unknown keys unless closed."""
        assert yb.from_str('name: Bob\nextra: [1, 2]\n', Person) == Person('Bob')

    def test_missing_field(self):
        """Required fields must be present."""
        with pytest.raises(yb.MissingFieldError, match='missing field `name`'):
            yb.from_str('age: 3\n', Person)

    def test_duplicate_field(self):
        """A field may appear only once."""
        with pytest.raises(yb.DuplicateKeyError, match='duplicate field `name`'):
            yb.from_str('name: a\nname: b\n', Person)

    def test_recursive_type(self):
        """Self-referencing dataclasses."""
        text = 'value: 1\nchildren:\n- value: 2\n- value: 3\n  children: []\n'
        assert yb.from_str(text, Node) == Node(1, [Node(2), Node(3)])

    def test_null_document_is_empty_record(self):
        """An empty or null document gives all defaults."""
        assert yb.from_str('', Settings) == Settings()
        assert yb.from_str('~', Settings) == Settings()

    def test_empty_stream_collections(self):
        """An empty document reads as an empty collection."""
        assert yb.from_str('', list[int]) == []
        assert yb.from_str('', dict[str, int]) == {}
        assert yb.from_str('', Optional[int]) is None

    def test_empty_stream_scalar_target(self):
        """A scalar target needs a value."""
        with pytest.raises(yb.EndOfStreamError):
            yb.from_str('', int)


class TestAnchors:
    """Anchors and aliases."""

    def test_alias_replays_node(self):
        """An alias reads the anchored node again."""
        value = yb.from_str('a: &x [1, 2]\nb: *x\n')
        assert value['b'] == [1, 2]

    def test_alias_into_record(self):
        """Aliases work for typed targets."""
        text = 'base: &p {name: Ann, age: 5}\ncopy: *p\n'
        result = yb.from_str(text, dict[str, Person])
        assert result['copy'] == Person('Ann', 5)

    def test_anchor_redefinition(self):
        """A redefined anchor applies to later aliases."""
        assert yb.from_str('[&a 1, *a, &a 2, *a]', list[int]) == [1, 1, 2, 2]

    def test_unknown_anchor(self):
        """Aliases must refer to an anchor seen earlier."""
        with pytest.raises(yb.UnknownAnchorError):
            yb.from_str('a: *nope\n')

    def test_repetition_limit(self):
        """Exponential alias expansion is stopped."""
        text = (
            'a: &a [x, x, x, x, x, x, x, x, x]\n'
            'b: &b [*a, *a, *a, *a, *a, *a, *a, *a, *a]\n'
            'c: &c [*b, *b, *b, *b, *b, *b, *b, *b, *b]\n'
            'd: &d [*c, *c, *c, *c, *c, *c, *c, *c, *c]\n'
            'e: &e [*d, *d, *d, *d, *d, *d, *d, *d, *d]\n'
            'f: &f [*e, *e, *e, *e, *e, *e, *e, *e, *e]\n'
        )
        with pytest.raises(yb.RepetitionLimitError):
            yb.from_str(text)


class TestLimits:
    """Nesting and document count."""

    def test_recursion_limit(self):
        """Deep nesting is rejected."""
        text = '[' * 200 + ']' * 200
        with pytest.raises(yb.RecursionLimitError):
            yb.from_str(text)

    def test_custom_recursion_limit(self):
        """The limit is configurable."""
        assert yb.from_str('[[[1]]]', recursion_limit=3) == [[[1]]]
        with pytest.raises(yb.RecursionLimitError):
            yb.from_str('[[[1]]]', recursion_limit=2)

    def test_more_than_one_document(self):
        """Single-document functions reject streams."""
        with pytest.raises(yb.MoreThanOneDocumentError):
            yb.from_str('a\n---\nb\n')

    def test_duplicate_value_keys(self):
        """Value mappings reject duplicate keys."""
        with pytest.raises(yb.DuplicateKeyError):
            yb.from_str('a: 1\na: 2\n')


class TestValueMarks:
    """Parsed Values know where they came from."""

    def test_scalar_location(self):
        """Scalars carry byte offset, line and column."""
        value = yb.from_str('a: 1\nb: x\n')
        assert value['b'].location == yb.Location(8, 2, 4)

    def test_collection_location(self):
        """Collections are located at their first token."""
        value = yb.from_str('a:\n  - 1\n')
        assert value['a'].location == yb.Location(5, 2, 3)

    def test_tagged_value(self):
        """Local tags become Tagged values."""
        value = yb.from_str('!Point {x: 1}')
        assert value == yb.Tagged('Point', {'x': 1})
        assert value.tag.name == 'Point'
