"""Tests for the Value model (Null, Bool, Number, String, Sequence, Mapping, Tagged)."""

import math

import pytest
import yamlbridge as yb


class TestFromPython:
    """Test conversion from plain Python data."""

    def test_scalars(self):
        """Scalars map to the matching Value kinds."""
        assert isinstance(yb.Value.from_python(None), yb.Null)
        assert isinstance(yb.Value.from_python(True), yb.Bool)
        assert isinstance(yb.Value.from_python(3), yb.Number)
        assert isinstance(yb.Value.from_python(3.5), yb.Number)
        assert isinstance(yb.Value.from_python('x'), yb.String)

    def test_bool_is_not_a_number(self):
        """bool is checked before int."""
        assert yb.Value.from_python(False) == yb.Bool(False)
        assert yb.Value.from_python(False) != yb.Number(0)

    def test_nested_round_trip(self):
        """to_python() inverts from_python()."""
        data = {'a': [1, 2.0, 'x', None, True], 'b': {'c': 'd'}}
        assert yb.Value.from_python(data).to_python() == data

    def test_tuple_becomes_sequence(self):
        """Tuples convert like lists."""
        assert yb.Value.from_python((1, 2)) == yb.Sequence([1, 2])

    def test_unsupported_type(self):
        """Objects without a YAML counterpart are rejected."""
        with pytest.raises(TypeError):
            yb.Value.from_python(object())


class TestNumber:
    """Test Number semantics."""

    def test_int_and_float_are_distinct(self):
        """1 and 1.0 are different numbers."""
        assert yb.Number(1) != yb.Number(1.0)
        assert yb.Number(1) == yb.Number(1)

    def test_nan_equals_itself(self):
        """NaN compares equal to NaN."""
        assert yb.Number(math.nan) == yb.Number(math.nan)
        assert hash(yb.Number(math.nan)) == hash(yb.Number(math.nan))

    def test_predicates(self):
        """is_int/is_float/is_nan/is_infinite/is_finite."""
        assert yb.Number(3).is_int()
        assert not yb.Number(3).is_float()
        assert yb.Number(math.nan).is_nan()
        assert yb.Number(-math.inf).is_infinite()
        assert not yb.Number(math.inf).is_finite()
        assert yb.Number(2 ** 80).is_finite()

    def test_accessors(self):
        """as_int is None for floats; as_float converts ints."""
        assert yb.Number(2.5).as_int() is None
        assert yb.Number(2).as_float() == 2.0

    def test_parse(self):
        """Number.parse uses YAML number syntax."""
        assert yb.Number.parse('0x10') == yb.Number(16)
        assert yb.Number.parse('-0b101') == yb.Number(-5)
        assert yb.Number.parse('1e3') == yb.Number(1000.0)
        assert yb.Number.parse('.inf') == yb.Number(math.inf)
        assert yb.Number.parse('abc') is None

    def test_str(self):
        """str() renders YAML number text."""
        assert str(yb.Number(1.0)) == '1.0'
        assert str(yb.Number(42)) == '42'
        assert str(yb.Number(math.inf)) == '.inf'
        assert str(yb.Number(-math.inf)) == '-.inf'
        assert str(yb.Number(math.nan)) == '.nan'

    def test_rejects_non_numbers(self):
        """Number only holds int or float."""
        with pytest.raises(TypeError):
            yb.Number(True)
        with pytest.raises(TypeError):
            yb.Number('1')


class TestMapping:
    """Test Mapping semantics."""

    def test_insertion_order_kept(self):
        """Keys iterate in insertion order."""
        mapping = yb.Mapping([('name', 'Alice'), ('age', 30)])
        assert list(mapping.keys()) == [yb.String('name'), yb.String('age')]

    def test_equality_ignores_order(self):
        """Equality does not depend on order."""
        assert yb.Mapping([('a', 1), ('b', 2)]) == yb.Mapping([('b', 2), ('a', 1)])

    def test_later_duplicate_wins(self):
        """A repeated key replaces the earlier value."""
        mapping = yb.Mapping([('a', 1), ('a', 2)])
        assert len(mapping) == 1
        assert mapping['a'] == 2

    def test_lookup(self):
        """get() returns None when absent; [] returns Null."""
        mapping = yb.Mapping({'a': 1})
        assert mapping.get('missing') is None
        assert mapping['missing'].is_null()
        assert 'a' in mapping
        assert 'b' not in mapping

    def test_non_string_keys(self):
        """Any Value may be a key."""
        mapping = yb.Mapping([(1, 'one'), ((1, 2), 'pair')])
        assert mapping[1] == 'one'
        assert mapping.get(yb.Sequence([1, 2])) == 'pair'


class TestSequence:
    """Test Sequence semantics."""

    def test_index(self):
        """Positions are looked up by int."""
        seq = yb.Sequence(['a', 'b'])
        assert seq[1] == 'b'
        assert seq.get(5) is None
        assert seq[5].is_null()
        assert seq.get('a') is None

    def test_len_and_iter(self):
        """Sequences are sized iterables of Values."""
        seq = yb.Sequence([1, 2, 3])
        assert len(seq) == 3
        assert [item.as_int() for item in seq] == [1, 2, 3]


class TestTagged:
    """Test tags and tagged values."""

    def test_tag_bang_is_optional(self):
        """Tag('Foo') and Tag('!Foo') are the same tag."""
        assert yb.Tag('Foo') == yb.Tag('!Foo')
        assert yb.Tag('!Foo') == 'Foo'
        assert hash(yb.Tag('Foo')) == hash(yb.Tag('!Foo'))
        assert str(yb.Tag('Foo')) == '!Foo'
        assert yb.Tag('!Foo').name == 'Foo'

    def test_global_tag_text(self):
        """Tags holding a colon are written after a single bang too."""
        tag = yb.Tag('tag:example.com,2000:x')
        assert str(tag) == '!tag:example.com,2000:x'
        assert tag == '!tag:example.com,2000:x'

    def test_empty_tag_rejected(self):
        """An empty tag is not a tag."""
        with pytest.raises(ValueError):
            yb.Tag('')

    def test_tagged_lookup_goes_through(self):
        """Indexing a Tagged value looks into its content."""
        tagged = yb.Tagged('Point', {'x': 1})
        assert tagged['x'] == 1
        assert tagged.is_tagged()
        assert tagged.is_mapping()
        assert tagged.untag() == yb.Mapping({'x': 1})

    def test_tagged_equality(self):
        """Tag and content both take part in equality."""
        assert yb.Tagged('A', 1) == yb.Tagged('!A', 1)
        assert yb.Tagged('A', 1) != yb.Tagged('B', 1)
        assert yb.Tagged('A', 1) != yb.Tagged('A', 2)

    def test_tagged_to_python_is_itself(self):
        """Tagged values have no plain Python counterpart."""
        tagged = yb.Tagged('A', 1)
        assert tagged.to_python() is tagged


class TestAccessors:
    """Test is_*/as_* accessors."""

    def test_predicates(self):
        """Each predicate matches one kind."""
        assert yb.Null().is_null()
        assert yb.Bool(True).is_bool()
        assert yb.String('x').is_string()
        assert not yb.String('x').is_number()

    def test_as_methods(self):
        """as_* return None on a kind mismatch."""
        assert yb.String('x').as_str() == 'x'
        assert yb.String('x').as_int() is None
        assert yb.Bool(True).as_bool() is True
        assert yb.Number(2).as_int() == 2

    def test_compare_with_native(self):
        """Values compare equal to the equivalent plain data."""
        assert yb.String('x') == 'x'
        assert yb.Number(1) == 1
        assert yb.Null() == None  # noqa: E711
        assert yb.Sequence([1, 'a']) == [1, 'a']

    def test_values_built_in_code_have_no_location(self):
        """Only parsed values carry a position."""
        assert yb.String('x').location is None
