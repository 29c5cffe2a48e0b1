from __future__ import annotations

import keyword
import re

from defew.synthesis.model import (
    FieldDescriptor,
    Private,
    Public,
    Scoped,
    SynthesisConfig,
    Visibility,
)

RESERVED_NAMES = frozenset({"cls"})


def _normalize_identifier(value: str, fallback: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9_]", "", value)
    if not cleaned:
        return fallback
    if cleaned[0].isdigit():
        return f"{fallback}{cleaned}"
    return cleaned


def is_valid_identifier(name: str) -> bool:
    return name.isidentifier() and not keyword.iskeyword(name)


def placeholder_name(field: FieldDescriptor, config: SynthesisConfig) -> str:
    """Name of the parameter or local binding that holds ``field``'s value.

    Named fields keep their own name so later expressions can refer to them.
    Unnamed fields are derived from their position, which keeps the names
    unique without any counter state.
    """
    if field.name is not None:
        return field.name
    prefix = _normalize_identifier(config.placeholder_prefix, "field")
    return f"{prefix}{field.position}"


def constructor_name(visibility: Visibility, config: SynthesisConfig) -> str:
    if isinstance(visibility, Public):
        return config.constructor_name
    if isinstance(visibility, (Private, Scoped)):
        return config.private_constructor_name
    raise TypeError(f"unexpected visibility: {visibility!r}")
