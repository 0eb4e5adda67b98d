"""
Tests for scalar, option and sequence decoding.
"""

import math
import sys
from typing import Any, Dict, List, Optional, Tuple

import pytest

from valuedecode import (
    Scope, decode_value, decoder_for, DecodeOptions,
    unit_val, bool_val, char_val, int_val, float_val, string_val, list_val,
    I8, I32, U8, U64, F32, Char,
    TypeMismatchError, IntegerOverflowError, EndOfSequenceError,
    ExtraneousElementsError, UnsupportedDecodeError,
)


@pytest.fixture
def scope():
    return Scope()


def L(*items):
    return list_val(items)


# --- Primitive Tests ---

class TestPrimitives:
    """Test decoding of booleans, characters and numbers."""

    def test_bool(self, scope):
        """Test boolean values decode to bool."""
        assert decode_value(scope, bool_val(True), bool) is True
        assert decode_value(scope, bool_val(False), bool) is False

    def test_bool_rejects_integer(self, scope):
        """Test an integer is not a boolean."""
        with pytest.raises(TypeMismatchError) as exc_info:
            decode_value(scope, int_val(1), bool)
        assert exc_info.value.expected == "bool"
        assert exc_info.value.found == "i64"

    def test_char(self, scope):
        """Test character values."""
        assert decode_value(scope, char_val("x"), Char) == "x"

    def test_char_rejects_string(self, scope):
        """Test a one-letter string is not a character."""
        with pytest.raises(TypeMismatchError):
            decode_value(scope, string_val("x"), Char)

    def test_i32_negative(self, scope):
        """Test an i32 value decodes into an i32 target."""
        assert decode_value(scope, int_val(-7, "i32"), I32) == -7

    def test_plain_int_is_i64(self, scope):
        """Test `int` accepts any integer that fits 64 bits."""
        assert decode_value(scope, int_val(2 ** 40), int) == 2 ** 40
        assert decode_value(scope, int_val(5, "u8"), int) == 5

    def test_plain_int_unbounded(self, scope):
        """Test `int` takes unsigned values beyond the signed 64-bit range."""
        top = 2 ** 64 - 1
        assert decode_value(scope, int_val(top, "u64"), int) == top
        assert decode_value(scope, int_val(-(2 ** 63)), int) == -(2 ** 63)

    def test_plain_int_rejects_float(self, scope):
        """Test `int` still requires an integer tag."""
        with pytest.raises(TypeMismatchError):
            decode_value(scope, float_val(1.0), int)

    def test_narrowing_within_range(self, scope):
        """Test a wide integer narrows when its value fits."""
        assert decode_value(scope, int_val(100, "i64"), I8) == 100
        assert decode_value(scope, int_val(255, "u32"), U8) == 255

    def test_overflow(self, scope):
        """Test out-of-range integers fail with integer overflow."""
        with pytest.raises(IntegerOverflowError):
            decode_value(scope, int_val(300, "i32"), U8)
        with pytest.raises(IntegerOverflowError):
            decode_value(scope, int_val(-1, "i8"), U64)

    def test_integer_rejects_string(self, scope):
        """Test type mismatch reports the requested width."""
        with pytest.raises(TypeMismatchError) as exc_info:
            decode_value(scope, string_val("3"), I32)
        assert exc_info.value.expected == "i32"
        assert exc_info.value.found == "string"
        assert '"3"' in str(exc_info.value)

    def test_float(self, scope):
        """Test float values."""
        assert decode_value(scope, float_val(2.5), float) == 2.5

    def test_integer_promoted_to_float(self, scope):
        """Test integers are accepted for float targets by default."""
        result = decode_value(scope, int_val(3), float)
        assert result == 3.0
        assert isinstance(result, float)

    def test_integer_promotion_disabled(self, scope):
        """Test promotion can be switched off."""
        options = DecodeOptions(promote_integers=False)
        with pytest.raises(TypeMismatchError):
            decode_value(scope, int_val(3), float, options)

    def test_f32_narrowing(self, scope):
        """Test f32 targets lose precision silently."""
        result = decode_value(scope, float_val(0.1), F32)
        assert result != 0.1
        assert abs(result - 0.1) < 1e-7

    def test_f32_out_of_range(self, scope):
        """Test huge values narrow to infinity rather than failing."""
        assert decode_value(scope, float_val(1e300), F32) == math.inf
        assert decode_value(scope, float_val(-1e300), F32) == -math.inf


# --- String Tests ---

class TestStrings:
    """Test string and keyword decoding."""

    def test_string_is_not_copied(self, scope):
        """Test the decoded str is the tree's own object."""
        text = "".join(["hel", "lo"])
        value = string_val(text)
        assert decode_value(scope, value, str) is text

    def test_keyword_as_string(self, scope):
        """Test keywords resolve to their text."""
        assert decode_value(scope, scope.keyword_value("side"), str) == "side"

    def test_name_is_not_a_string(self, scope):
        """Test name symbols are rejected."""
        with pytest.raises(TypeMismatchError) as exc_info:
            decode_value(scope, scope.name_value("Point"), str)
        assert exc_info.value.expected == "keyword or string"
        assert exc_info.value.found == "name"


# --- Unit and Option Tests ---

class TestUnitAndOption:
    """Test unit and option decoding."""

    def test_unit(self, scope):
        """Test unit decodes to None."""
        assert decode_value(scope, unit_val(), None) is None

    def test_unit_required(self, scope):
        """Test unit targets reject other values."""
        with pytest.raises(TypeMismatchError):
            decode_value(scope, int_val(0), None)

    def test_option_none(self, scope):
        """Test unit decodes to None for optional targets."""
        assert decode_value(scope, unit_val(), Optional[int]) is None

    def test_option_some(self, scope):
        """Test any other value decodes as the wrapped type."""
        assert decode_value(scope, int_val(5), Optional[int]) == 5

    def test_option_some_mismatch(self, scope):
        """Test a present value must still match the wrapped type."""
        with pytest.raises(TypeMismatchError):
            decode_value(scope, string_val("5"), Optional[int])

    def test_option_inside_list(self, scope):
        """Test options in sequences."""
        value = L(int_val(1), unit_val(), int_val(3))
        assert decode_value(scope, value, List[Optional[int]]) == [1, None, 3]

    @pytest.mark.skipif(sys.version_info < (3, 10), reason="X | Y unions need Python 3.10")
    def test_union_operator_option(self, scope):
        """Test `X | None` targets behave like Optional."""
        target = int | None
        assert decode_value(scope, unit_val(), target) is None
        assert decode_value(scope, int_val(7), target) == 7
        assert decode_value(scope, L(unit_val(), int_val(2)), List[target]) == [None, 2]

    @pytest.mark.skipif(sys.version_info < (3, 10), reason="X | Y unions need Python 3.10")
    def test_union_operator_untagged(self):
        """Test other `X | Y` unions are refused like typing.Union."""
        with pytest.raises(TypeError, match="untagged union"):
            decoder_for(int | str)


# --- Sequence Tests ---

class TestSequences:
    """Test lists, tuples and byte sequences."""

    def test_list(self, scope):
        """Test a list of integers."""
        value = L(int_val(1), int_val(2), int_val(3))
        assert decode_value(scope, value, List[int]) == [1, 2, 3]

    def test_empty_list(self, scope):
        """Test an empty list."""
        assert decode_value(scope, L(), List[int]) == []

    def test_nested_lists(self, scope):
        """Test lists of lists."""
        value = L(L(int_val(1)), L(), L(int_val(2), int_val(3)))
        assert decode_value(scope, value, List[List[int]]) == [[1], [], [2, 3]]

    def test_list_requires_list(self, scope):
        """Test an atom is not a sequence."""
        with pytest.raises(TypeMismatchError) as exc_info:
            decode_value(scope, int_val(1), List[int])
        assert exc_info.value.expected == "list"

    def test_list_element_mismatch(self, scope):
        """Test element errors propagate."""
        with pytest.raises(TypeMismatchError):
            decode_value(scope, L(int_val(1), string_val("two")), List[int])

    def test_tuple(self, scope):
        """Test a fixed-arity tuple."""
        value = L(int_val(1), string_val("a"))
        assert decode_value(scope, value, Tuple[int, str]) == (1, "a")

    def test_tuple_too_short(self, scope):
        """Test fewer elements than declared fail end-of-sequence."""
        with pytest.raises(EndOfSequenceError):
            decode_value(scope, L(int_val(1)), Tuple[int, str])

    def test_tuple_too_long(self, scope):
        """Test more elements than declared fail extraneous elements."""
        value = L(int_val(1), string_val("a"), int_val(2))
        with pytest.raises(ExtraneousElementsError):
            decode_value(scope, value, Tuple[int, str])

    def test_variadic_tuple(self, scope):
        """Test Tuple[T, ...] accepts any length."""
        value = L(int_val(1), int_val(2))
        assert decode_value(scope, value, Tuple[int, ...]) == (1, 2)

    def test_bytes(self, scope):
        """Test byte sequences are lists of integers."""
        value = L(int_val(1, "u8"), int_val(2, "u8"), int_val(255, "i32"))
        assert decode_value(scope, value, bytes) == b"\x01\x02\xff"

    def test_bytes_overflow(self, scope):
        """Test bytes must fit in u8."""
        with pytest.raises(IntegerOverflowError):
            decode_value(scope, L(int_val(256)), bytes)


# --- Mapping Tests ---

class TestMappings:
    """Test alist-style mappings."""

    def test_mapping(self, scope):
        """Test entries are (key value) lists."""
        value = L(L(string_val("a"), int_val(1)), L(string_val("b"), int_val(2)))
        assert decode_value(scope, value, Dict[str, int]) == {"a": 1, "b": 2}

    def test_mapping_preserves_order(self, scope):
        """Test entries keep the order they were written in."""
        value = L(L(string_val("b"), int_val(2)), L(string_val("a"), int_val(1)))
        result = decode_value(scope, value, Dict[str, int])
        assert list(result) == ["b", "a"]

    def test_keyword_keys(self, scope):
        """Test keywords are accepted as string keys."""
        value = L(L(scope.keyword_value("x"), int_val(1)))
        assert decode_value(scope, value, Dict[str, int]) == {"x": 1}

    def test_entry_too_long(self, scope):
        """Test entries with extra elements fail."""
        value = L(L(string_val("a"), int_val(1), int_val(2)))
        with pytest.raises(ExtraneousElementsError):
            decode_value(scope, value, Dict[str, int])

    def test_entry_too_short(self, scope):
        """Test entries missing their value fail."""
        value = L(L(string_val("a")))
        with pytest.raises(EndOfSequenceError):
            decode_value(scope, value, Dict[str, int])

    def test_entry_must_be_list(self, scope):
        """Test a flat key/value list is not a mapping."""
        value = L(string_val("a"), int_val(1))
        with pytest.raises(TypeMismatchError):
            decode_value(scope, value, Dict[str, int])


# --- Dynamic Target Tests ---

class TestDynamic:
    """Test that self-describing decodes are rejected."""

    def test_any_unsupported(self, scope):
        """Test Any always fails."""
        with pytest.raises(UnsupportedDecodeError):
            decode_value(scope, int_val(1), Any)

    def test_untyped_list_elements_unsupported(self, scope):
        """Test a bare list target cannot decode its elements."""
        with pytest.raises(UnsupportedDecodeError):
            decode_value(scope, L(int_val(1)), list)

    def test_untyped_empty_list(self, scope):
        """Test a bare list target still decodes an empty list."""
        assert decode_value(scope, L(), list) == []
