"""
valuedecode - typed decoding of scripting-runtime value trees.

This package provides:
- Values: the immutable value tree (unit, bool, char, sized integers,
  float, string, keyword and name symbols, lists)
- Scope: interning table resolving symbols to text
- ValueDecoder: cursor-stack decoder implementing the typed-decode protocol
- Typed decoders: dataclass records, enums and tagged unions decoded from
  their type annotations
- Diagnostics: coded decode errors carrying the cursor location

Usage:
    from dataclasses import dataclass
    from valuedecode import Scope, decode_value, list_val, string_val, int_val, U8

    @dataclass
    class Person:
        name: str
        age: U8

    scope = Scope()
    value = list_val([
        scope.name_value("Person"),
        list_val([
            scope.keyword_value("name"), string_val("Al"),
            scope.keyword_value("age"), int_val(30, "u8"),
        ]),
    ])
    person = decode_value(scope, value, Person)
"""

from .values import (
    Value,
    ValueTag,
    INTEGER_RANGES,
    unit_val,
    bool_val,
    char_val,
    int_val,
    float_val,
    string_val,
    keyword_val,
    name_val,
    list_val,
    format_value,
)

from .scope import (
    Name,
    Scope,
)

from .errors import (
    ErrorSeverity,
    Diagnostic,
    DecodeError,
    TypeMismatchError,
    IntegerOverflowError,
    EndOfSequenceError,
    ExtraneousElementsError,
    OddKeywordParamsError,
    NameMismatchError,
    UnsupportedDecodeError,
    CustomDecodeError,
    InternalDecodeError,
    error_custom,
)

from .protocol import (
    END,
    Visitor,
    SeqAccess,
    MapAccess,
    EnumAccess,
    VariantAccess,
    Deserializer,
)

from .config import (
    VALUEDECODE_CONFIG,
    DecodeOptions,
    load_options,
    default_options,
)

from .typed import (
    I8, I16, I32, I64,
    U8, U16, U32, U64,
    F32, F64, Char,
    RecordInfo,
    record,
    TaggedUnion,
    variant,
    decoder_for,
)

from .decoder import (
    ValueDecoder,
    decode_value,
)

__all__ = [
    # Values
    'Value',
    'ValueTag',
    'INTEGER_RANGES',
    'unit_val',
    'bool_val',
    'char_val',
    'int_val',
    'float_val',
    'string_val',
    'keyword_val',
    'name_val',
    'list_val',
    'format_value',

    # Scope
    'Name',
    'Scope',

    # Errors
    'ErrorSeverity',
    'Diagnostic',
    'DecodeError',
    'TypeMismatchError',
    'IntegerOverflowError',
    'EndOfSequenceError',
    'ExtraneousElementsError',
    'OddKeywordParamsError',
    'NameMismatchError',
    'UnsupportedDecodeError',
    'CustomDecodeError',
    'InternalDecodeError',
    'error_custom',

    # Protocol
    'END',
    'Visitor',
    'SeqAccess',
    'MapAccess',
    'EnumAccess',
    'VariantAccess',
    'Deserializer',

    # Config
    'VALUEDECODE_CONFIG',
    'DecodeOptions',
    'load_options',
    'default_options',

    # Typed decoders
    'I8', 'I16', 'I32', 'I64',
    'U8', 'U16', 'U32', 'U64',
    'F32', 'F64', 'Char',
    'RecordInfo',
    'record',
    'TaggedUnion',
    'variant',
    'decoder_for',

    # Decoder
    'ValueDecoder',
    'decode_value',
]

__version__ = "0.1.0"
