"""Decode options with YAML file and environment override support.

Options can be given explicitly to `decode_value`, loaded from a YAML
mapping with `load_options`, or picked up from the file named by the
``VALUEDECODE_CONFIG`` environment variable.

Example file::

    close_struct_variant: true
    promote_integers: false
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

__all__ = [
    "VALUEDECODE_CONFIG",
    "DecodeOptions",
    "load_options",
    "default_options",
]

# Environment variable naming an options file
VALUEDECODE_CONFIG = "VALUEDECODE_CONFIG"


@dataclass(frozen=True)
class DecodeOptions:
    """Tunable decode behaviour."""

    # Close the per-variant list after a named-field variant payload.
    # False reproduces the legacy behaviour, which leaves that list open.
    close_struct_variant: bool = True

    # Accept integer values where a float is requested.
    promote_integers: bool = True

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "DecodeOptions":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(f"unknown decode option(s): {', '.join(unknown)}")
        for key, value in raw.items():
            if not isinstance(value, bool):
                raise ValueError(f"decode option '{key}' must be a boolean, got {value!r}")
        return cls(**raw)


def load_options(path: Path | str) -> DecodeOptions:
    """Load decode options from a YAML mapping."""

    options_path = Path(path)
    if not options_path.exists():
        raise FileNotFoundError(f"decode options not found: {options_path}")

    with options_path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp) or {}
    if not isinstance(data, dict):
        raise ValueError(f"decode options must be a mapping, got {type(data)!r}")
    return DecodeOptions.from_dict(data)


def default_options(environ: Optional[Dict[str, str]] = None) -> DecodeOptions:
    """Return options from ``VALUEDECODE_CONFIG`` if set, else defaults."""
    env = os.environ if environ is None else environ
    path = env.get(VALUEDECODE_CONFIG)
    if path:
        return load_options(path.strip())
    return DecodeOptions()
