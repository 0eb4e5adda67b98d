"""
Decoder driving the typed-decode protocol over a value tree.

The decoder keeps an explicit stack of read cursors. The bottom frame is
the root value; every list the decoder descends into (a record's field
list, a mapping entry, a variant's payload) pushes a sequence frame that
must be left, fully consumed, before the enclosing frame is read again.

Value conventions:

    ()                       unit, None
    (Point 3 4)              positional record `Point`
    (Person (:name "Al"))    named-field record `Person`
    (Marker ())              empty record `Marker`
    (("a" 1) ("b" 2))        mapping
    Red                      zero-argument variant
    (Circle 2.5)             newtype variant
    (Square (:side 4.0))     named-field variant

Usage:
    scope = Scope()
    value = list_val([scope.name_value("Point"), int_val(3, "i32"), int_val(4, "i32")])
    point = decode_value(scope, value, Point)
"""

import math
import struct
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

from .config import DecodeOptions, default_options
from .errors import (
    DecodeError,
    InternalDecodeError,
    error_type_mismatch,
    error_integer_overflow,
    error_end_of_sequence,
    error_extraneous_elements,
    error_odd_keyword_params,
    error_name_mismatch,
    error_unsupported_decode,
)
from .protocol import (
    END,
    Deserializer,
    EnumAccess,
    MapAccess,
    SeqAccess,
    VariantAccess,
    Visitor,
)
from .scope import Name, Scope
from .typed import decoder_for
from .values import INTEGER_RANGES, Value, ValueTag, format_value


# =============================================================================
# Cursor frames
# =============================================================================

@dataclass
class SingleFrame:
    """A pending value, discarded once read."""
    value: Value


@dataclass
class SeqFrame:
    """A cursor over list elements, advanced on each read."""
    items: Tuple[Value, ...]
    pos: int = 0

    @property
    def remaining(self) -> int:
        return len(self.items) - self.pos

    def __repr__(self) -> str:
        return f"SeqFrame(pos={self.pos}, len={len(self.items)})"


Frame = Union[SingleFrame, SeqFrame]


# =============================================================================
# Decoder
# =============================================================================

class ValueDecoder(Deserializer):
    """
    Decoder over one root value.

    A decoder is single use: `decode_value` creates one, runs the target's
    seed against it and calls `finish`.
    """

    def __init__(self, scope: Scope, value: Value, options: Optional[DecodeOptions] = None):
        self.scope = scope
        self.options = options if options is not None else DecodeOptions()
        self.stack: List[Frame] = [SingleFrame(value)]

    # --- Cursor primitives ---

    def finish(self) -> None:
        """Check that every value and list has been consumed."""
        if self.stack:
            raise InternalDecodeError(f"decode state is not empty: {self.stack!r}")

    def location(self, pending: bool = False) -> str:
        """
        Path to the value under the cursor, e.g. ``$[2][0]``.

        Each open list contributes the index of its last read element, or
        with `pending` the index about to be read for the innermost list.
        """
        parts = ["$"]
        last = len(self.stack) - 1
        for i, frame in enumerate(self.stack):
            if isinstance(frame, SeqFrame):
                index = frame.pos if (pending and i == last) else max(frame.pos - 1, 0)
                parts.append(f"[{index}]")
        return "".join(parts)

    def next_value(self) -> Value:
        """Consume and return the value under the cursor."""
        if not self.stack:
            raise InternalDecodeError("missing value state")
        top = self.stack[-1]
        if isinstance(top, SingleFrame):
            self.stack.pop()
            return top.value
        if top.pos >= len(top.items):
            raise error_end_of_sequence().locate(self.location(pending=True))
        value = top.items[top.pos]
        top.pos += 1
        return value

    def peek_value(self) -> Value:
        """Look at the value under the cursor without consuming it."""
        if not self.stack:
            raise InternalDecodeError("missing value state")
        top = self.stack[-1]
        if isinstance(top, SingleFrame):
            return top.value
        if top.pos >= len(top.items):
            raise error_end_of_sequence().locate(self.location(pending=True))
        return top.items[top.pos]

    def enter_seq(self) -> int:
        """Descend into the list under the cursor; return its length."""
        value = self.next_value()
        if value.tag is not ValueTag.LIST:
            raise self._mismatch("list", value)
        self.stack.append(SeqFrame(value.data))
        return len(value.data)

    def leave_seq(self) -> None:
        """Ascend out of the innermost list, which must be exhausted."""
        if not self.stack:
            raise InternalDecodeError("missing value state")
        top = self.stack[-1]
        if not isinstance(top, SeqFrame):
            raise InternalDecodeError("not a sequence")
        if top.remaining:
            error = error_extraneous_elements(top.remaining)
            raise error.locate(self.location(pending=True))
        self.stack.pop()

    def read_name(self) -> Name:
        """Consume a name symbol."""
        value = self.next_value()
        if value.tag is not ValueTag.NAME:
            raise self._mismatch("name", value)
        return value.data

    def begin_struct(self, name: str) -> None:
        """Enter a record list and check its leading name token."""
        self.enter_seq()
        found = self.read_name()

        def check(text: str) -> None:
            if text != name:
                raise error_name_mismatch(name, text)

        self.scope.with_name(found, check)

    def enter_fields(self) -> int:
        """Enter a flattened field list; return the number of fields."""
        n = self.enter_seq()
        if n % 2 == 1:
            raise error_odd_keyword_params(n)
        return n // 2

    def _mismatch(self, expected: str, value: Value) -> DecodeError:
        return error_type_mismatch(expected, str(value.tag), format_value(value, self.scope))

    def _read_integer(self, width: str) -> int:
        value = self.next_value()
        if not value.is_integer:
            raise self._mismatch(width, value)
        low, high = INTEGER_RANGES[width]
        if not low <= value.data <= high:
            raise error_integer_overflow(width, value.data)
        return value.data

    def _read_float(self) -> float:
        value = self.next_value()
        if value.tag is ValueTag.FLOAT:
            return value.data
        if value.is_integer and self.options.promote_integers:
            return float(value.data)
        raise self._mismatch("float", value)

    def _read_unit(self) -> None:
        value = self.next_value()
        if value.tag is not ValueTag.UNIT:
            raise self._mismatch("unit", value)

    # --- Deserializer surface ---

    def deserialize_any(self, visitor: Visitor) -> Any:
        raise error_unsupported_decode()

    def deserialize_bool(self, visitor: Visitor) -> Any:
        value = self.next_value()
        if value.tag is not ValueTag.BOOL:
            raise self._mismatch("bool", value)
        return visitor.visit_bool(value.data)

    def deserialize_char(self, visitor: Visitor) -> Any:
        value = self.next_value()
        if value.tag is not ValueTag.CHAR:
            raise self._mismatch("char", value)
        return visitor.visit_char(value.data)

    def deserialize_i8(self, visitor: Visitor) -> Any:
        return visitor.visit_i8(self._read_integer("i8"))

    def deserialize_i16(self, visitor: Visitor) -> Any:
        return visitor.visit_i16(self._read_integer("i16"))

    def deserialize_i32(self, visitor: Visitor) -> Any:
        return visitor.visit_i32(self._read_integer("i32"))

    def deserialize_i64(self, visitor: Visitor) -> Any:
        return visitor.visit_i64(self._read_integer("i64"))

    def deserialize_u8(self, visitor: Visitor) -> Any:
        return visitor.visit_u8(self._read_integer("u8"))

    def deserialize_u16(self, visitor: Visitor) -> Any:
        return visitor.visit_u16(self._read_integer("u16"))

    def deserialize_u32(self, visitor: Visitor) -> Any:
        return visitor.visit_u32(self._read_integer("u32"))

    def deserialize_u64(self, visitor: Visitor) -> Any:
        return visitor.visit_u64(self._read_integer("u64"))

    def deserialize_f32(self, visitor: Visitor) -> Any:
        return visitor.visit_f32(narrow_f32(self._read_float()))

    def deserialize_f64(self, visitor: Visitor) -> Any:
        return visitor.visit_f64(self._read_float())

    def deserialize_str(self, visitor: Visitor) -> Any:
        value = self.next_value()
        if value.tag is ValueTag.STRING:
            # The tree's own str object; no copy is made
            return visitor.visit_str(value.data)
        if value.tag is ValueTag.KEYWORD:
            return self.scope.with_name(value.data, visitor.visit_str)
        raise self._mismatch("keyword or string", value)

    def deserialize_string(self, visitor: Visitor) -> Any:
        value = self.next_value()
        if value.tag is ValueTag.STRING:
            text = value.data
        elif value.tag is ValueTag.KEYWORD:
            text = self.scope.name_text(value.data)
        else:
            raise self._mismatch("keyword or string", value)
        return visitor.visit_string(text)

    def deserialize_bytes(self, visitor: Visitor) -> Any:
        return self.deserialize_seq(visitor)

    def deserialize_byte_buf(self, visitor: Visitor) -> Any:
        return self.deserialize_seq(visitor)

    def deserialize_unit(self, visitor: Visitor) -> Any:
        self._read_unit()
        return visitor.visit_unit()

    def deserialize_option(self, visitor: Visitor) -> Any:
        if self.peek_value().tag is ValueTag.UNIT:
            self.next_value()
            return visitor.visit_none()
        return visitor.visit_some(self)

    def deserialize_seq(self, visitor: Visitor) -> Any:
        n = self.enter_seq()
        result = visitor.visit_seq(_SeqReader(self, n))
        self.leave_seq()
        return result

    def deserialize_tuple(self, length: int, visitor: Visitor) -> Any:
        self.enter_seq()
        result = visitor.visit_seq(_SeqReader(self, length))
        self.leave_seq()
        return result

    def deserialize_map(self, visitor: Visitor) -> Any:
        n = self.enter_seq()
        result = visitor.visit_map(_MapReader(self, n, is_struct=False))
        self.leave_seq()
        return result

    def deserialize_unit_struct(self, name: str, visitor: Visitor) -> Any:
        self.begin_struct(name)
        self._read_unit()
        self.leave_seq()
        return visitor.visit_unit()

    def deserialize_newtype_struct(self, name: str, visitor: Visitor) -> Any:
        return self.deserialize_tuple_struct(name, 1, visitor)

    def deserialize_tuple_struct(self, name: str, length: int, visitor: Visitor) -> Any:
        self.begin_struct(name)
        result = visitor.visit_seq(_SeqReader(self, length))
        self.leave_seq()
        return result

    def deserialize_struct(self, name: str, fields: Sequence[str], visitor: Visitor) -> Any:
        self.begin_struct(name)
        n = self.enter_fields()
        result = visitor.visit_map(_MapReader(self, n, is_struct=True))
        self.leave_seq()
        self.leave_seq()
        return result

    def deserialize_enum(self, name: str, variants: Sequence[str], visitor: Visitor) -> Any:
        if self.peek_value().tag is ValueTag.LIST:
            return visitor.visit_enum(_Variant(self))
        return visitor.visit_enum(_UnitVariant(self))

    def deserialize_identifier(self, visitor: Visitor) -> Any:
        value = self.next_value()
        if value.tag is ValueTag.KEYWORD or value.tag is ValueTag.NAME:
            return self.scope.with_name(value.data, visitor.visit_str)
        raise self._mismatch("keyword", value)

    def deserialize_ignored_any(self, visitor: Visitor) -> Any:
        self.next_value()
        return visitor.visit_unit()


def narrow_f32(x: float) -> float:
    """Round a float to single precision; out-of-range values become infinite."""
    try:
        return struct.unpack("f", struct.pack("f", x))[0]
    except OverflowError:
        return math.copysign(math.inf, x)


class NameDeserializer:
    """
    Presents a resolved variant name to a seed.

    Only the identifier-like shapes are offered; variant-name seeds never
    ask for anything else.
    """

    def __init__(self, text: str):
        self.text = text

    def deserialize_identifier(self, visitor: Visitor) -> Any:
        return visitor.visit_str(self.text)

    def deserialize_str(self, visitor: Visitor) -> Any:
        return visitor.visit_str(self.text)

    def deserialize_string(self, visitor: Visitor) -> Any:
        return visitor.visit_string(self.text)

    def deserialize_any(self, visitor: Visitor) -> Any:
        return visitor.visit_str(self.text)

    def deserialize_ignored_any(self, visitor: Visitor) -> Any:
        return visitor.visit_unit()


# =============================================================================
# Access objects
# =============================================================================

class _SeqReader(SeqAccess):
    """Offers `n` elements read from the innermost list."""

    def __init__(self, de: ValueDecoder, n: int):
        self.de = de
        self.n = n

    def next_element(self, seed: Any) -> Any:
        if self.n == 0:
            return END
        self.n -= 1
        return seed.deserialize(self.de)

    def size_hint(self) -> int:
        return self.n


class _MapReader(MapAccess):
    """
    Offers `n` entries.

    Record fields are flat ``key value`` pairs; mapping entries are
    ``(key value)`` lists entered on the key and left after the value.
    """

    def __init__(self, de: ValueDecoder, n: int, is_struct: bool):
        self.de = de
        self.n = n
        self.is_struct = is_struct

    def next_key(self, seed: Any) -> Any:
        if self.n == 0:
            return END
        self.n -= 1
        if not self.is_struct:
            self.de.enter_seq()
        return seed.deserialize(self.de)

    def next_value(self, seed: Any) -> Any:
        result = seed.deserialize(self.de)
        if not self.is_struct:
            self.de.leave_seq()
        return result

    def size_hint(self) -> int:
        return self.n


def _variant_name(de: ValueDecoder, seed: Any) -> Any:
    name = de.read_name()
    return de.scope.with_name(name, lambda text: seed.deserialize(NameDeserializer(text)))


class _UnitVariant(EnumAccess, VariantAccess):
    """A bare name symbol: a variant without payload."""

    def __init__(self, de: ValueDecoder):
        self.de = de

    def variant(self, seed: Any) -> Tuple[Any, VariantAccess]:
        return _variant_name(self.de, seed), self

    def unit_variant(self) -> None:
        return None

    def newtype_variant(self, seed: Any) -> Any:
        raise error_type_mismatch("newtype variant", "unit variant")

    def tuple_variant(self, length: int, visitor: Visitor) -> Any:
        raise error_type_mismatch("tuple variant", "unit variant")

    def struct_variant(self, fields: Sequence[str], visitor: Visitor) -> Any:
        raise error_type_mismatch("struct variant", "unit variant")


class _Variant(EnumAccess, VariantAccess):
    """A list whose head names the variant and whose tail is the payload."""

    def __init__(self, de: ValueDecoder):
        self.de = de

    def variant(self, seed: Any) -> Tuple[Any, VariantAccess]:
        self.de.enter_seq()
        return _variant_name(self.de, seed), self

    def unit_variant(self) -> None:
        self.de.leave_seq()

    def newtype_variant(self, seed: Any) -> Any:
        result = seed.deserialize(self.de)
        self.de.leave_seq()
        return result

    def tuple_variant(self, length: int, visitor: Visitor) -> Any:
        result = visitor.visit_seq(_SeqReader(self.de, length))
        self.de.leave_seq()
        return result

    def struct_variant(self, fields: Sequence[str], visitor: Visitor) -> Any:
        n = self.de.enter_fields()
        result = visitor.visit_map(_MapReader(self.de, n, is_struct=True))
        self.de.leave_seq()
        if self.de.options.close_struct_variant:
            self.de.leave_seq()
        return result


# =============================================================================
# Entry point
# =============================================================================

def decode_value(scope: Scope, value: Value, target: Any,
                 options: Optional[DecodeOptions] = None) -> Any:
    """
    Decode `value` into `target`.

    `target` is a type annotation understood by `decoder_for` (``int``,
    ``List[str]``, a dataclass, ...) or any object with a
    ``deserialize(decoder)`` method.

    Raises `DecodeError` when the value does not have the shape the target
    asks for. The error's diagnostic carries the cursor location.
    """
    seed = decoder_for(target)
    de = ValueDecoder(scope, value, options if options is not None else default_options())
    try:
        result = seed.deserialize(de)
    except DecodeError as exc:
        exc.locate(de.location())
        raise
    de.finish()
    return result
