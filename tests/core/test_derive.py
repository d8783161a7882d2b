"""Tests for shapes derived from type hints and for hand-built shapes."""

from dataclasses import dataclass, field
from typing import Annotated, Optional

import pytest
import yamlbridge as yb


@dataclass
class Person:
    name: str
    age: int = 0


@yb.record(name='Account', closed=True)
@dataclass
class Account:
    owner: str = yb.field(name='owner-name')
    balance: int = 0
    cache: dict = field(default_factory=dict, init=False)


@dataclass
class Range:
    low: int
    high: int

    def __post_init__(self):
        if self.low > self.high:
            raise ValueError('low must not exceed high')


@dataclass
class Sized:
    width: yb.u16
    height: Annotated[int, yb.U16]


class TestShapeOf:
    """shape_of() maps type hints to shapes."""

    @pytest.mark.parametrize('hint, shape', [
        (bool, yb.BOOL), (int, yb.INT), (float, yb.FLOAT), (str, yb.STR),
        (yb.u8, yb.U8), (yb.i64, yb.I64), (yb.f64, yb.F64), (yb.Value, yb.VALUE),
    ])
    def test_primitives(self, hint, shape):
        """Builtin scalars and fixed-width aliases."""
        assert yb.shape_of(hint) is shape

    def test_shape_passes_through(self):
        """A Shape is its own shape."""
        assert yb.shape_of(yb.U32) is yb.U32

    def test_optional(self):
        """Optional[X] and X | None."""
        shape = yb.shape_of(Optional[int])
        assert isinstance(shape, yb.OptionalShape)
        assert shape.inner is yb.INT
        assert isinstance(yb.shape_of(str | None), yb.OptionalShape)

    def test_containers(self):
        """Lists, tuples and dicts."""
        assert isinstance(yb.shape_of(list[int]), yb.SeqShape)
        assert isinstance(yb.shape_of(tuple[int, str]), yb.TupleShape)
        assert isinstance(yb.shape_of(dict[str, int]), yb.MapShape)

    def test_record_is_cached(self):
        """Derived shapes are reused."""
        assert yb.shape_of(Person) is yb.shape_of(Person)

    def test_record_fields(self):
        """Fields follow declaration order and renames."""
        shape = yb.shape_of(Account)
        assert isinstance(shape, yb.RecordShape)
        assert shape.name == 'Account'
        assert shape.closed
        assert shape.keys() == ['owner-name', 'balance']

    @pytest.mark.parametrize('hint', [int | str, complex, bytes])
    def test_unsupported(self, hint):
        """Types without a YAML mapping are rejected."""
        with pytest.raises(TypeError):
            yb.shape_of(hint)


class TestDerivedBehaviour:
    """Derived shapes read and write as expected."""

    def test_fixed_width_fields(self):
        """Annotated shapes are range checked."""
        assert yb.from_str('width: 1\nheight: 2\n', Sized) == Sized(1, 2)
        with pytest.raises(yb.NumericRangeError):
            yb.from_str('width: 1\nheight: 70000\n', Sized)

    def test_renamed_field(self):
        """The YAML key is the renamed one."""
        account = yb.from_str('owner-name: ann\nbalance: 3\n', Account)
        assert account.owner == 'ann'
        assert account.balance == 3
        assert yb.to_string(account) == 'owner-name: ann\nbalance: 3\n'

    def test_closed_rejects_attribute_name(self):
        """Only the YAML key is a field name."""
        with pytest.raises(yb.UnknownFieldError,
                           match='expected `owner-name` or `balance`'):
            yb.from_str('owner: ann\n', Account)

    def test_variable_tuple(self):
        """tuple[X, ...] is a sequence built as a tuple."""
        assert yb.from_str('[1, 2, 3]', tuple[int, ...]) == (1, 2, 3)

    def test_frozenset(self):
        """frozenset[X] reads into a frozenset."""
        result = yb.from_str('[a, b]', frozenset[str])
        assert result == frozenset(['a', 'b'])
        assert isinstance(result, frozenset)

    def test_constructor_error(self):
        """ValueError raised while constructing becomes CustomError."""
        with pytest.raises(yb.CustomError, match='low must not exceed high'):
            yb.from_str('low: 3\nhigh: 1\n', Range)


class TestDeclarationErrors:
    """Invalid variant declarations."""

    def test_case_without_variant_base(self):
        """case() needs a variant base class."""
        with pytest.raises(TypeError):
            @yb.case
            @dataclass
            class Orphan:
                value: int

    def test_unit_case_with_fields(self):
        """A unit case cannot have fields."""
        @yb.variant
        class Base:
            pass

        @yb.case(kind=yb.UNIT_CASE)
        @dataclass
        class Bad(Base):
            value: int

        with pytest.raises(TypeError):
            yb.shape_of(Base)
        # A failed derivation is not cached.
        with pytest.raises(TypeError):
            yb.shape_of(Base)


class TestHandBuiltRecord:
    """RecordShape without a dataclass."""

    def setup_method(self):
        self.shape = yb.RecordShape('Point', [
            yb.Field('x', yb.INT),
            yb.Field('y', yb.INT, default=0),
            yb.Field('label', yb.OptionalShape(yb.STR)),
        ])

    def test_build_dict(self):
        """Without a factory, records are dicts."""
        assert yb.from_str('x: 1\n', self.shape) == {'x': 1, 'y': 0, 'label': None}

    def test_produce_dict(self):
        """Dicts are written field by field."""
        text = yb.to_string({'x': 1, 'y': 2, 'label': 'a'}, self.shape)
        assert text == "x: 1\n'y': 2\nlabel: a\n"

    def test_missing_field_on_write(self):
        """Required keys must be present in the dict."""
        with pytest.raises(yb.MissingFieldError):
            yb.to_string({'y': 2}, self.shape)


class TestAny:
    """The ANY shape infers from runtime values."""

    def test_nested_data(self):
        """Plain data and dataclasses mix."""
        data = {'people': [Person('ann', 3)], 'count': 1}
        text = yb.to_string(data)
        assert text == 'people:\n- name: ann\n  age: 3\ncount: 1\n'

    def test_read(self):
        """Reading produces plain Python data."""
        assert yb.from_str('[1, {a: b}]', yb.ANY) == [1, {'a': 'b'}]
