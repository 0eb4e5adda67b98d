"""
Decode-specific exceptions and error handling.

Error code ranges:
- D0xx: Scalar shape errors
- D1xx: Sequence structure errors
- D2xx: Name errors
- D3xx: Unsupported targets
- D9xx: Errors raised by target types themselves
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Diagnostic:
    """A single decode diagnostic."""
    code: str                       # D001, D101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity = ErrorSeverity.ERROR
    location: Optional[str] = None  # Cursor path, e.g. "$[2][1]"
    hints: List[str] = field(default_factory=list)

    def format(self) -> str:
        """Format the diagnostic for display."""
        header = f"{self.severity.value}[{self.code}]: {self.message}"
        if self.location is not None:
            header = f"{self.location}: {header}"
        parts = [header]
        for hint in self.hints:
            parts.append(f"    = hint: {hint}")
        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "location": self.location,
            "hints": self.hints,
        }


class DecodeError(Exception):
    """Base exception for errors reported while decoding a value."""

    code = "D000"

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def location(self) -> Optional[str]:
        return self.diagnostic.location

    def locate(self, location: str) -> "DecodeError":
        """Attach a cursor location unless one is already present."""
        if self.diagnostic.location is None:
            self.diagnostic.location = location
        return self

    def __str__(self) -> str:
        return self.diagnostic.format()


class TypeMismatchError(DecodeError):
    """Value tag does not match the requested shape (D001)."""
    code = "D001"

    def __init__(self, diagnostic: Diagnostic, expected: str, found: str):
        self.expected = expected
        self.found = found
        super().__init__(diagnostic)


class IntegerOverflowError(DecodeError):
    """Integer does not fit the requested width (D002)."""
    code = "D002"


class EndOfSequenceError(DecodeError):
    """Read attempted past the end of a list (D101)."""
    code = "D101"


class ExtraneousElementsError(DecodeError):
    """List holds more elements than the target consumed (D102)."""
    code = "D102"


class OddKeywordParamsError(DecodeError):
    """Named-field list has an odd number of elements (D103)."""
    code = "D103"


class NameMismatchError(DecodeError):
    """Leading name token of a record is not the expected one (D201)."""
    code = "D201"

    def __init__(self, diagnostic: Diagnostic, expected: str, found: str):
        self.expected = expected
        self.found = found
        super().__init__(diagnostic)


class UnsupportedDecodeError(DecodeError):
    """Target asked for a fully dynamic shape (D301)."""
    code = "D301"


class CustomDecodeError(DecodeError):
    """Message raised by a target type's own decoding logic (D901)."""
    code = "D901"


class InternalDecodeError(RuntimeError):
    """
    Cursor stack imbalance.

    Signals a broken contract between the engine and a protocol
    implementation; never raised for well-formed input.
    """
    pass


# --- Scalar shape errors ---

def error_type_mismatch(expected: str, found: str, value_text: Optional[str] = None) -> TypeMismatchError:
    """D001: Value tag does not match the requested shape."""
    message = f"type error: expected {expected}; found {found}"
    if value_text is not None:
        message = f"{message}: {value_text}"
    diag = Diagnostic(code="D001", message=message)
    return TypeMismatchError(diag, expected, found)


def error_integer_overflow(width: str, value: int) -> IntegerOverflowError:
    """D002: Integer out of range for the requested width."""
    diag = Diagnostic(
        code="D002",
        message=f"integer overflow: {value} does not fit in {width}",
    )
    return IntegerOverflowError(diag)


# --- Sequence structure errors ---

def error_end_of_sequence() -> EndOfSequenceError:
    """D101: Unexpected end of sequence."""
    diag = Diagnostic(code="D101", message="unexpected end of sequence")
    return EndOfSequenceError(diag)


def error_extraneous_elements(count: int) -> ExtraneousElementsError:
    """D102: Extraneous elements in sequence."""
    diag = Diagnostic(
        code="D102",
        message="extraneous elements in sequence",
        hints=[f"{count} element(s) left unread"],
    )
    return ExtraneousElementsError(diag)


def error_odd_keyword_params(count: int) -> OddKeywordParamsError:
    """D103: Odd number of keyword parameters."""
    diag = Diagnostic(
        code="D103",
        message="odd number of keyword parameters",
        hints=[f"field list has {count} elements; fields are written as `:key value` pairs"],
    )
    return OddKeywordParamsError(diag)


# --- Name errors ---

def error_name_mismatch(expected: str, found: str, kind: str = "struct") -> NameMismatchError:
    """D201: Record name mismatch."""
    diag = Diagnostic(
        code="D201",
        message=f"expected {kind} `{expected}`; found `{found}`",
    )
    return NameMismatchError(diag, expected, found)


# --- Unsupported targets ---

def error_unsupported_decode(what: str = "self-describing value") -> UnsupportedDecodeError:
    """D301: Dynamic decode is not supported."""
    diag = Diagnostic(
        code="D301",
        message=f"cannot decode a {what}: target type must declare its shape",
    )
    return UnsupportedDecodeError(diag)


# --- Target errors ---

def error_custom(message: str) -> CustomDecodeError:
    """D901: Message raised by a target type."""
    return CustomDecodeError(Diagnostic(code="D901", message=str(message)))


def error_unknown_field(field_name: str, expected: List[str]) -> CustomDecodeError:
    """D901: Field identifier not declared by the target record."""
    diag = Diagnostic(
        code="D901",
        message=f"unknown field `{field_name}`",
        hints=[f"expected one of: {', '.join(expected)}"] if expected else [],
    )
    return CustomDecodeError(diag)


def error_duplicate_field(field_name: str) -> CustomDecodeError:
    """D901: Field given twice."""
    return CustomDecodeError(Diagnostic(code="D901", message=f"duplicate field `{field_name}`"))


def error_missing_field(field_name: str) -> CustomDecodeError:
    """D901: Required field absent."""
    return CustomDecodeError(Diagnostic(code="D901", message=f"missing field `{field_name}`"))


def error_unknown_variant(variant_name: str, expected: List[str]) -> CustomDecodeError:
    """D901: Variant name not declared by the target union."""
    diag = Diagnostic(
        code="D901",
        message=f"unknown variant `{variant_name}`",
        hints=[f"expected one of: {', '.join(expected)}"] if expected else [],
    )
    return CustomDecodeError(diag)
