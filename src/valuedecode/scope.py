"""
Symbol table for interned names.

Keyword and name symbols in a value tree hold a `Name`, a small integer
handle. The text behind a handle is only available through the `Scope`
that interned it.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, TypeVar

from .values import Value, keyword_val, name_val

T = TypeVar("T")


@dataclass(frozen=True)
class Name:
    """Interned symbol handle."""
    id: int

    def __repr__(self) -> str:
        return f"Name({self.id})"


@dataclass
class Scope:
    """
    Interning table mapping `Name` handles to text.

    Usage:
        scope = Scope()
        point = scope.add_name("Point")
        scope.with_name(point, str.upper)   # "POINT"
    """
    name: str = "global"  # For debugging
    _names: List[str] = field(default_factory=list)
    _ids: Dict[str, Name] = field(default_factory=dict)

    def add_name(self, text: str) -> Name:
        """Intern `text`, returning the existing handle if already known."""
        existing = self._ids.get(text)
        if existing is not None:
            return existing
        handle = Name(len(self._names))
        self._names.append(text)
        self._ids[text] = handle
        return handle

    def contains_name(self, text: str) -> bool:
        return text in self._ids

    def with_name(self, name: Name, fn: Callable[[str], T]) -> T:
        """Resolve `name` and return `fn(text)`."""
        try:
            text = self._names[name.id]
        except IndexError:
            raise KeyError(f"name {name.id} is not interned in scope '{self.name}'") from None
        return fn(text)

    def name_text(self, name: Name) -> str:
        """Resolve `name` to its text."""
        return self.with_name(name, str)

    def __len__(self) -> int:
        return len(self._names)

    # Tree construction helpers

    def name_value(self, text: str) -> Value:
        """Create a name symbol value, e.g. `Point`."""
        return name_val(self.add_name(text))

    def keyword_value(self, text: str) -> Value:
        """Create a keyword symbol value, e.g. `:side`."""
        return keyword_val(self.add_name(text))
