"""
Value tree produced by the scripting runtime.

A `Value` is an immutable tagged union: unit, boolean, character, sized
integers, float, string, the two symbol flavors (keyword and name) and
lists. Lists hold their elements as a tuple so a tree can be shared freely
between decode calls.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class ValueTag(Enum):
    """Runtime tag of a value; the enum value is the display name."""
    UNIT = "unit"
    BOOL = "bool"
    CHAR = "char"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    FLOAT = "float"
    STRING = "string"
    KEYWORD = "keyword"
    NAME = "name"
    LIST = "list"

    def __str__(self) -> str:
        return self.value


# Inclusive ranges for every integer width, keyed by display name
INTEGER_RANGES: Dict[str, Tuple[int, int]] = {
    "i8": (-(1 << 7), (1 << 7) - 1),
    "i16": (-(1 << 15), (1 << 15) - 1),
    "i32": (-(1 << 31), (1 << 31) - 1),
    "i64": (-(1 << 63), (1 << 63) - 1),
    "u8": (0, (1 << 8) - 1),
    "u16": (0, (1 << 16) - 1),
    "u32": (0, (1 << 32) - 1),
    "u64": (0, (1 << 64) - 1),
}

INTEGER_TAGS = frozenset(
    (ValueTag.I8, ValueTag.I16, ValueTag.I32, ValueTag.I64,
     ValueTag.U8, ValueTag.U16, ValueTag.U32, ValueTag.U64)
)


@dataclass(frozen=True)
class Value:
    """
    A runtime value.

    `data` holds the Python payload: None for unit, bool, a one-character
    str, int, float, str, a `Name` for symbols, or a tuple of `Value` for
    lists.
    """
    tag: ValueTag
    data: Any = None

    @property
    def is_list(self) -> bool:
        return self.tag is ValueTag.LIST

    @property
    def is_integer(self) -> bool:
        return self.tag in INTEGER_TAGS

    def __str__(self) -> str:
        return format_value(self)


# Convenience constructors

UNIT = Value(ValueTag.UNIT)


def unit_val() -> Value:
    """Create the unit value `()`."""
    return UNIT


def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return Value(ValueTag.BOOL, bool(b))


def char_val(c: str) -> Value:
    """Create a character value."""
    if not isinstance(c, str) or len(c) != 1:
        raise ValueError(f"character value must be a single character, got {c!r}")
    return Value(ValueTag.CHAR, c)


def int_val(n: int, width: str = "i64") -> Value:
    """Create an integer value of the given width (i8 ... u64)."""
    try:
        low, high = INTEGER_RANGES[width]
    except KeyError:
        raise ValueError(f"unknown integer width '{width}'") from None
    n = int(n)
    if not low <= n <= high:
        raise ValueError(f"{n} does not fit in {width}")
    return Value(ValueTag(width), n)


def float_val(x: float) -> Value:
    """Create a float value."""
    return Value(ValueTag.FLOAT, float(x))


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(ValueTag.STRING, s)


def keyword_val(name: Any) -> Value:
    """Create a keyword symbol from an interned name."""
    return Value(ValueTag.KEYWORD, name)


def name_val(name: Any) -> Value:
    """Create a name symbol from an interned name."""
    return Value(ValueTag.NAME, name)


def list_val(items: Iterable[Value]) -> Value:
    """Create a list value."""
    items = tuple(items)
    for item in items:
        if not isinstance(item, Value):
            raise TypeError(f"list elements must be Value instances, got {type(item).__name__}")
    return Value(ValueTag.LIST, items)


# Display

def format_value(value: Value, scope: Optional[Any] = None) -> str:
    """
    Render a value in s-expression form.

    Symbols are resolved through `scope` when given; without one they
    print as their interned id.
    """
    tag = value.tag
    if tag is ValueTag.UNIT:
        return "()"
    if tag is ValueTag.BOOL:
        return "true" if value.data else "false"
    if tag is ValueTag.CHAR:
        return f"#'{value.data}'"
    if tag is ValueTag.STRING:
        escaped = value.data.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if tag is ValueTag.KEYWORD or tag is ValueTag.NAME:
        text = scope.name_text(value.data) if scope is not None else f"#{value.data.id}"
        return f":{text}" if tag is ValueTag.KEYWORD else text
    if tag is ValueTag.LIST:
        return "(" + " ".join(format_value(v, scope) for v in value.data) + ")"
    return str(value.data)
