"""
Decode implementations driven by Python type annotations.

`decoder_for` turns an annotation into a seed for the typed-decode
protocol, so ordinary dataclasses, enums and typing constructs can be
decoded without hand-written visitors:

    @record(positional=True)
    @dataclass
    class Point:
        x: I32
        y: I32

    class Shape(TaggedUnion):
        pass

    @variant(positional=True)
    @dataclass
    class Circle(Shape):
        radius: float

    @variant()
    @dataclass
    class Square(Shape):
        side: float

Width markers (`I8` ... `U64`, `F32`, `F64`, `Char`) are `NewType`s; the
decoded values are plain ``int``, ``float`` and ``str``.
"""

import dataclasses
import enum
import types
import typing
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, List, NewType, Optional, Sequence, Tuple, Union

from .errors import (
    error_end_of_sequence,
    error_unknown_field,
    error_duplicate_field,
    error_missing_field,
    error_unknown_variant,
)
from .protocol import END, Visitor
from .values import INTEGER_RANGES


# =============================================================================
# Width markers
# =============================================================================

I8 = NewType("I8", int)
I16 = NewType("I16", int)
I32 = NewType("I32", int)
I64 = NewType("I64", int)
U8 = NewType("U8", int)
U16 = NewType("U16", int)
U32 = NewType("U32", int)
U64 = NewType("U64", int)
F32 = NewType("F32", float)
F64 = NewType("F64", float)
Char = NewType("Char", str)


# =============================================================================
# Record and union declarations
# =============================================================================

@dataclass(frozen=True)
class RecordInfo:
    """How a dataclass is laid out in a value tree."""
    name: str
    positional: bool = False
    ignore_unknown: bool = False


def record(name: Optional[str] = None, positional: bool = False,
           ignore_unknown: bool = False):
    """
    Declare the record convention of a dataclass.

    `name` is the leading name token (the class name by default).
    Positional records are written ``(Name f1 f2 ...)``; named-field
    records ``(Name (:f1 v1 :f2 v2))``. With `ignore_unknown` undeclared
    fields are skipped instead of rejected.
    """
    def wrap(cls):
        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"@record requires a dataclass, got {cls.__name__}")
        cls.__record__ = RecordInfo(name or cls.__name__, positional, ignore_unknown)
        return cls
    return wrap


class TaggedUnion:
    """
    Base class for tagged unions.

    Subclass it once for the union, then subclass the union with one
    dataclass per variant, each marked with `@variant`.
    """

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if TaggedUnion in cls.__bases__:
            cls.__variants__ = {}


def variant(name: Optional[str] = None, positional: bool = False):
    """
    Register a dataclass as a variant of the union it subclasses.

    Payload shape follows the fields: none is a zero-argument variant, one
    positional field a newtype variant, several positional fields a tuple
    variant, otherwise a named-field variant.
    """
    def wrap(cls):
        if not dataclasses.is_dataclass(cls):
            raise TypeError(f"@variant requires a dataclass, got {cls.__name__}")
        union = _union_of(cls)
        if union is None:
            raise TypeError(f"{cls.__name__} does not subclass a TaggedUnion")
        info = RecordInfo(name or cls.__name__, positional)
        if info.name in union.__variants__:
            raise ValueError(f"duplicate variant `{info.name}` in {union.__name__}")
        cls.__record__ = info
        union.__variants__[info.name] = cls
        return cls
    return wrap


def _union_of(cls) -> Optional[type]:
    for base in cls.__mro__[1:]:
        if "__variants__" in base.__dict__:
            return base
    return None


# =============================================================================
# Visitors
# =============================================================================

class _BoolVisitor(Visitor):
    expecting = "a boolean"

    def visit_bool(self, v):
        return v


class _IntVisitor(Visitor):
    expecting = "an integer"

    def visit_i64(self, v):
        return v

    def visit_u64(self, v):
        return v


class _FloatVisitor(Visitor):
    expecting = "a float"

    def visit_f64(self, v):
        return v


class _CharVisitor(Visitor):
    expecting = "a character"

    def visit_char(self, v):
        return v


class _StrVisitor(Visitor):
    expecting = "a string"

    def visit_str(self, v):
        return v


class _UnitVisitor(Visitor):
    expecting = "unit"

    def visit_unit(self):
        return None


class _BytesVisitor(Visitor):
    expecting = "a byte sequence"

    def visit_seq(self, access):
        seed = decoder_for(U8)
        out = bytearray()
        while True:
            b = access.next_element(seed)
            if b is END:
                return bytes(out)
            out.append(b)


class _OptionVisitor(Visitor):
    expecting = "an option"

    def __init__(self, inner):
        self.inner = inner

    def visit_none(self):
        return None

    def visit_some(self, decoder):
        return self.inner.deserialize(decoder)


class _ListVisitor(Visitor):
    expecting = "a sequence"

    def __init__(self, inner, build=list):
        self.inner = inner
        self.build = build

    def visit_seq(self, access):
        items = []
        while True:
            item = access.next_element(self.inner)
            if item is END:
                return self.build(items)
            items.append(item)


class _TupleVisitor(Visitor):
    def __init__(self, items):
        self.items = items
        self.expecting = f"a tuple of size {len(items)}"

    def visit_seq(self, access):
        out = []
        for seed in self.items:
            item = access.next_element(seed)
            if item is END:
                raise error_end_of_sequence()
            out.append(item)
        return tuple(out)


class _DictVisitor(Visitor):
    expecting = "a map"

    def __init__(self, key, value):
        self.key = key
        self.value = value

    def visit_map(self, access):
        out = {}
        while True:
            entry = access.next_entry(self.key, self.value)
            if entry is END:
                return out
            out[entry[0]] = entry[1]


# =============================================================================
# Seeds
# =============================================================================

class TypeDecoder:
    """A seed for one target annotation."""

    name = "value"

    def deserialize(self, decoder) -> Any:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name})"


class PrimitiveDecoder(TypeDecoder):
    """Requests a single scalar shape."""

    def __init__(self, name: str, method: str, visitor: Visitor):
        self.name = name
        self.method = method
        self.visitor = visitor

    def deserialize(self, decoder) -> Any:
        return getattr(decoder, self.method)(self.visitor)


class IdentifierDecoder(TypeDecoder):
    """Field and variant identifiers, decoded to their text."""

    name = "identifier"

    def deserialize(self, decoder) -> str:
        return decoder.deserialize_identifier(_StrVisitor())


class IgnoredDecoder(TypeDecoder):
    """Skips one value."""

    name = "ignored"

    def deserialize(self, decoder) -> None:
        return decoder.deserialize_ignored_any(_UnitVisitor())


class DynamicDecoder(TypeDecoder):
    """`Any`: the value would have to describe itself, which is unsupported."""

    name = "any"

    def deserialize(self, decoder) -> Any:
        return decoder.deserialize_any(Visitor())


def _seed_name(seed: Any) -> str:
    """Display name of a seed, which may be a class with its own `deserialize`."""
    return (getattr(seed, "name", None)
            or getattr(seed, "__name__", None)
            or type(seed).__name__)


class IntegerDecoder(TypeDecoder):
    """
    Plain `int`: any integer tag, signed or unsigned.

    Values above the i64 range are read through the u64 shape.
    """

    name = "int"

    def deserialize(self, decoder) -> int:
        value = decoder.peek_value()
        if value.is_integer and value.data > INTEGER_RANGES["i64"][1]:
            return decoder.deserialize_u64(_IntVisitor())
        return decoder.deserialize_i64(_IntVisitor())


class OptionDecoder(TypeDecoder):
    def __init__(self, inner: TypeDecoder):
        self.inner = inner
        self.name = f"Optional[{_seed_name(inner)}]"

    def deserialize(self, decoder) -> Any:
        return decoder.deserialize_option(_OptionVisitor(self.inner))


class ListDecoder(TypeDecoder):
    def __init__(self, inner: TypeDecoder, build=list):
        self.inner = inner
        self.build = build
        self.name = f"{build.__name__}[{_seed_name(inner)}]"

    def deserialize(self, decoder) -> Any:
        return decoder.deserialize_seq(_ListVisitor(self.inner, self.build))


class TupleDecoder(TypeDecoder):
    def __init__(self, items: Sequence[TypeDecoder]):
        self.items = list(items)
        self.name = f"Tuple[{', '.join(_seed_name(i) for i in self.items)}]"

    def deserialize(self, decoder) -> Any:
        return decoder.deserialize_tuple(len(self.items), _TupleVisitor(self.items))


class DictDecoder(TypeDecoder):
    def __init__(self, key: TypeDecoder, value: TypeDecoder):
        self.key = key
        self.value = value
        self.name = f"Dict[{_seed_name(key)}, {_seed_name(value)}]"

    def deserialize(self, decoder) -> Any:
        return decoder.deserialize_map(_DictVisitor(self.key, self.value))


@dataclass
class RecordField:
    """One dataclass field as seen on the wire."""
    attr: str
    key: str
    decoder: TypeDecoder
    required: bool
    optional: bool


class RecordDecoder(TypeDecoder):
    """
    Decodes a dataclass.

    Field decoders are resolved on first use so records may refer to
    themselves.
    """

    def __init__(self, cls: type):
        self.cls = cls
        self.info = cls.__dict__.get("__record__") or RecordInfo(cls.__name__)
        self.name = self.info.name
        self._fields: Optional[List[RecordField]] = None

    @property
    def fields(self) -> List[RecordField]:
        if self._fields is None:
            hints = typing.get_type_hints(self.cls)
            fields = []
            for f in dataclasses.fields(self.cls):
                if not f.init:
                    continue
                tp = hints[f.name]
                has_default = (f.default is not dataclasses.MISSING
                               or f.default_factory is not dataclasses.MISSING)
                fields.append(RecordField(
                    attr=f.name,
                    key=f.metadata.get("rename", f.name),
                    decoder=decoder_for(tp),
                    required=not has_default,
                    optional=_optional_arg(tp) is not None,
                ))
            self._fields = fields
        return self._fields

    @property
    def keys(self) -> List[str]:
        return [f.key for f in self.fields]

    @property
    def is_newtype(self) -> bool:
        return self.info.positional and len(self.fields) == 1

    def deserialize(self, decoder) -> Any:
        fields = self.fields
        if not fields:
            return decoder.deserialize_unit_struct(self.name, _EmptyRecordVisitor(self))
        if self.is_newtype:
            return decoder.deserialize_newtype_struct(self.name, _PositionalVisitor(self))
        if self.info.positional:
            return decoder.deserialize_tuple_struct(self.name, len(fields), _PositionalVisitor(self))
        return decoder.deserialize_struct(self.name, self.keys, _NamedFieldsVisitor(self))


class _EmptyRecordVisitor(Visitor):
    def __init__(self, record: RecordDecoder):
        self.record = record
        self.expecting = f"unit struct {record.name}"

    def visit_unit(self):
        return self.record.cls()


class _PositionalVisitor(Visitor):
    def __init__(self, record: RecordDecoder):
        self.record = record
        self.expecting = f"tuple struct {record.name}"

    def visit_seq(self, access):
        values = []
        for f in self.record.fields:
            v = access.next_element(f.decoder)
            if v is END:
                raise error_end_of_sequence()
            values.append(v)
        return self.record.cls(*values)


class _NamedFieldsVisitor(Visitor):
    def __init__(self, record: RecordDecoder):
        self.record = record
        self.expecting = f"struct {record.name}"

    def visit_map(self, access):
        by_key = {f.key: f for f in self.record.fields}
        values: Dict[str, Any] = {}
        while True:
            key = access.next_key(_IDENTIFIER)
            if key is END:
                break
            f = by_key.get(key)
            if f is None:
                if self.record.info.ignore_unknown:
                    access.next_value(_IGNORED)
                    continue
                raise error_unknown_field(key, self.record.keys)
            if f.attr in values:
                raise error_duplicate_field(key)
            values[f.attr] = access.next_value(f.decoder)

        for f in self.record.fields:
            if f.attr in values or not f.required:
                continue
            if f.optional:
                values[f.attr] = None
            else:
                raise error_missing_field(f.key)
        return self.record.cls(**values)


class EnumDecoder(TypeDecoder):
    """An `Enum` whose members are zero-argument variants named like the members."""

    def __init__(self, cls: type):
        self.cls = cls
        self.name = cls.__name__

    def deserialize(self, decoder) -> Any:
        return decoder.deserialize_enum(self.name, list(self.cls.__members__), _EnumVisitor(self))


class _EnumVisitor(Visitor):
    def __init__(self, owner: EnumDecoder):
        self.owner = owner
        self.expecting = f"enum {owner.name}"

    def visit_enum(self, access):
        name, payload = access.variant(_IDENTIFIER)
        member = self.owner.cls.__members__.get(name)
        if member is None:
            raise error_unknown_variant(name, list(self.owner.cls.__members__))
        payload.unit_variant()
        return member


class UnionDecoder(TypeDecoder):
    """A `TaggedUnion` subclass."""

    def __init__(self, cls: type):
        self.cls = cls
        self.name = cls.__name__

    def deserialize(self, decoder) -> Any:
        return decoder.deserialize_enum(self.name, list(self.cls.__variants__), _UnionVisitor(self))


class _UnionVisitor(Visitor):
    def __init__(self, owner: UnionDecoder):
        self.owner = owner
        self.expecting = f"enum {owner.name}"

    def visit_enum(self, access):
        variants = self.owner.cls.__variants__
        name, payload = access.variant(_IDENTIFIER)
        cls = variants.get(name)
        if cls is None:
            raise error_unknown_variant(name, list(variants))

        rec = decoder_for(cls)
        if not rec.fields:
            payload.unit_variant()
            return cls()
        if rec.is_newtype:
            return cls(payload.newtype_variant(rec.fields[0].decoder))
        if rec.info.positional:
            return payload.tuple_variant(len(rec.fields), _PositionalVisitor(rec))
        return payload.struct_variant(rec.keys, _NamedFieldsVisitor(rec))


_IDENTIFIER = IdentifierDecoder()
_IGNORED = IgnoredDecoder()

_PRIMITIVES: Dict[Any, Tuple[str, Visitor]] = {
    bool: ("deserialize_bool", _BoolVisitor()),
    I8: ("deserialize_i8", _IntVisitor()),
    I16: ("deserialize_i16", _IntVisitor()),
    I32: ("deserialize_i32", _IntVisitor()),
    I64: ("deserialize_i64", _IntVisitor()),
    U8: ("deserialize_u8", _IntVisitor()),
    U16: ("deserialize_u16", _IntVisitor()),
    U32: ("deserialize_u32", _IntVisitor()),
    U64: ("deserialize_u64", _IntVisitor()),
    float: ("deserialize_f64", _FloatVisitor()),
    F32: ("deserialize_f32", _FloatVisitor()),
    F64: ("deserialize_f64", _FloatVisitor()),
    Char: ("deserialize_char", _CharVisitor()),
    str: ("deserialize_str", _StrVisitor()),
    bytes: ("deserialize_bytes", _BytesVisitor()),
    type(None): ("deserialize_unit", _UnitVisitor()),
}


# =============================================================================
# Annotation resolution
# =============================================================================

_UNION_ORIGINS = tuple(o for o in (Union, getattr(types, "UnionType", None)) if o is not None)


def _optional_arg(tp: Any) -> Optional[Any]:
    """Return T for ``Optional[T]``, else None."""
    if typing.get_origin(tp) in _UNION_ORIGINS:
        args = [a for a in typing.get_args(tp) if a is not type(None)]
        if len(args) == 1 and len(typing.get_args(tp)) == 2:
            return args[0]
    return None


def decoder_for(target: Any) -> Any:
    """
    Return a seed for `target`.

    Objects that already provide ``deserialize`` (including classes with a
    ``deserialize`` classmethod) are returned unchanged.
    """
    if callable(getattr(target, "deserialize", None)):
        return target
    if target is None:
        target = type(None)
    return _build_decoder(target)


@lru_cache(maxsize=None)
def _build_decoder(target: Any) -> TypeDecoder:
    if target is int:
        return IntegerDecoder()
    primitive = _PRIMITIVES.get(target)
    if primitive is not None:
        return PrimitiveDecoder(getattr(target, "__name__", str(target)), *primitive)

    if target is Any or target is object:
        return DynamicDecoder()

    origin = typing.get_origin(target)
    args = typing.get_args(target)

    if origin in _UNION_ORIGINS:
        inner = _optional_arg(target)
        if inner is None:
            raise TypeError(f"untagged union {target!r} cannot be decoded; use a TaggedUnion")
        return OptionDecoder(decoder_for(inner))

    if origin in (list, typing.get_origin(Sequence)):
        return ListDecoder(decoder_for(args[0] if args else Any))
    if origin in (set, frozenset):
        return ListDecoder(decoder_for(args[0] if args else Any), build=origin)
    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return ListDecoder(decoder_for(args[0]), build=tuple)
        return TupleDecoder([decoder_for(a) for a in args])
    if origin in (dict, typing.get_origin(typing.Mapping)):
        key, value = args if args else (Any, Any)
        return DictDecoder(decoder_for(key), decoder_for(value))

    if target in (list, tuple, set, frozenset):
        return ListDecoder(DynamicDecoder(), build=target)
    if target is dict:
        return DictDecoder(DynamicDecoder(), DynamicDecoder())

    if isinstance(target, type):
        if issubclass(target, enum.Enum):
            return EnumDecoder(target)
        if issubclass(target, TaggedUnion) and "__variants__" in target.__dict__:
            return UnionDecoder(target)
        if dataclasses.is_dataclass(target):
            return RecordDecoder(target)

    raise TypeError(f"no decoder for {target!r}")
