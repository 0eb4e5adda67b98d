"""
Typed-decode protocol.

A target type takes part in decoding by providing a *seed*: any object
with a ``deserialize(decoder)`` method (a class with a ``deserialize``
classmethod qualifies). The seed tells the decoder which shape it wants by
calling exactly one ``deserialize_*`` method, passing a `Visitor`. The
decoder reads the value tree and calls back exactly one ``visit_*`` method
on that visitor.

Composite shapes hand the visitor an access object (`SeqAccess`,
`MapAccess`, `EnumAccess`) through which nested seeds are decoded.

Example:

    class Celsius:
        def __init__(self, degrees):
            self.degrees = degrees

        @classmethod
        def deserialize(cls, decoder):
            return decoder.deserialize_f64(_CelsiusVisitor())

    class _CelsiusVisitor(Visitor):
        expecting = "a temperature"

        def visit_f64(self, v):
            return Celsius(v)
"""

from abc import ABC, abstractmethod
from typing import Any, Sequence, Tuple

from .errors import error_type_mismatch


class _End:
    """Marker returned by access objects once their elements run out."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "END"

    def __bool__(self) -> bool:
        return False


END = _End()


# =============================================================================
# Visitor
# =============================================================================

class Visitor:
    """
    Receives the single decoded shape.

    Every method rejects its shape by default; subclasses override the ones
    they accept. Narrow integer and float callbacks fall through to the
    widest one of their family, so a visitor accepting any signed integer
    only needs `visit_i64`.
    """

    expecting = "a value"

    def unexpected(self, found: str):
        raise error_type_mismatch(self.expecting, found)

    def visit_bool(self, v: bool) -> Any:
        return self.unexpected("boolean")

    def visit_i8(self, v: int) -> Any:
        return self.visit_i64(v)

    def visit_i16(self, v: int) -> Any:
        return self.visit_i64(v)

    def visit_i32(self, v: int) -> Any:
        return self.visit_i64(v)

    def visit_i64(self, v: int) -> Any:
        return self.unexpected("integer")

    def visit_u8(self, v: int) -> Any:
        return self.visit_u64(v)

    def visit_u16(self, v: int) -> Any:
        return self.visit_u64(v)

    def visit_u32(self, v: int) -> Any:
        return self.visit_u64(v)

    def visit_u64(self, v: int) -> Any:
        return self.unexpected("integer")

    def visit_f32(self, v: float) -> Any:
        return self.visit_f64(v)

    def visit_f64(self, v: float) -> Any:
        return self.unexpected("float")

    def visit_char(self, v: str) -> Any:
        return self.visit_str(v)

    def visit_str(self, v: str) -> Any:
        return self.unexpected("string")

    def visit_string(self, v: str) -> Any:
        return self.visit_str(v)

    def visit_bytes(self, v: bytes) -> Any:
        return self.unexpected("bytes")

    def visit_unit(self) -> Any:
        return self.unexpected("unit")

    def visit_none(self) -> Any:
        return self.unexpected("option")

    def visit_some(self, decoder: "Deserializer") -> Any:
        return self.unexpected("option")

    def visit_seq(self, access: "SeqAccess") -> Any:
        return self.unexpected("sequence")

    def visit_map(self, access: "MapAccess") -> Any:
        return self.unexpected("map")

    def visit_enum(self, access: "EnumAccess") -> Any:
        return self.unexpected("enum")


# =============================================================================
# Access interfaces
# =============================================================================

class SeqAccess(ABC):
    """Hands out the elements of a sequence one seed at a time."""

    @abstractmethod
    def next_element(self, seed: Any) -> Any:
        """Decode the next element with `seed`, or return END."""
        pass

    @abstractmethod
    def size_hint(self) -> int:
        """Number of elements still to be offered."""
        pass


class MapAccess(ABC):
    """Hands out alternating keys and values."""

    @abstractmethod
    def next_key(self, seed: Any) -> Any:
        """Decode the next key with `seed`, or return END."""
        pass

    @abstractmethod
    def next_value(self, seed: Any) -> Any:
        """Decode the value paired with the key just read."""
        pass

    @abstractmethod
    def size_hint(self) -> int:
        pass

    def next_entry(self, key_seed: Any, value_seed: Any) -> Any:
        """Decode a whole entry, returning ``(key, value)`` or END."""
        key = self.next_key(key_seed)
        if key is END:
            return END
        return key, self.next_value(value_seed)


class VariantAccess(ABC):
    """Decodes the payload of a variant once its name is known."""

    @abstractmethod
    def unit_variant(self) -> None:
        pass

    @abstractmethod
    def newtype_variant(self, seed: Any) -> Any:
        pass

    @abstractmethod
    def tuple_variant(self, length: int, visitor: Visitor) -> Any:
        pass

    @abstractmethod
    def struct_variant(self, fields: Sequence[str], visitor: Visitor) -> Any:
        pass


class EnumAccess(ABC):
    """Reads the variant name of a tagged union."""

    @abstractmethod
    def variant(self, seed: Any) -> Tuple[Any, VariantAccess]:
        """Decode the variant name with `seed`; return it with the payload access."""
        pass


# =============================================================================
# Deserializer
# =============================================================================

class Deserializer(ABC):
    """The shape-request surface a seed drives."""

    @abstractmethod
    def deserialize_any(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_bool(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_char(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_i8(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_i16(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_i32(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_i64(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_u8(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_u16(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_u32(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_u64(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_f32(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_f64(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_str(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_string(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_bytes(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_byte_buf(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_unit(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_option(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_seq(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_tuple(self, length: int, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_map(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_unit_struct(self, name: str, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_newtype_struct(self, name: str, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_tuple_struct(self, name: str, length: int, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_struct(self, name: str, fields: Sequence[str], visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_enum(self, name: str, variants: Sequence[str], visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_identifier(self, visitor: Visitor) -> Any: ...

    @abstractmethod
    def deserialize_ignored_any(self, visitor: Visitor) -> Any: ...
