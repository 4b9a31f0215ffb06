from __future__ import annotations

from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple
from urllib.parse import quote, urlencode

from .exceptions import SerializationError


def form_value(value: Any) -> str:
    """Render a scalar the way the Robot API expects it in a form body."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (str, int, float)):
        return str(value)
    raise SerializationError(f"cannot form-encode value of type {type(value).__name__}")


def form_pairs(fields: Mapping[str, Any]) -> List[Tuple[str, str]]:
    """Flatten a mapping into key/value pairs, skipping ``None`` and repeating keys for sequences."""

    if not isinstance(fields, Mapping):
        raise SerializationError("form body must be a mapping")
    pairs: List[Tuple[str, str]] = []
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, form_value(item)) for item in value if item is not None)
            continue
        pairs.append((key, form_value(value)))
    return pairs


def form_encode(fields: Mapping[str, Any]) -> str:
    """Serialize a flat mapping as ``application/x-www-form-urlencoded``."""

    return urlencode(form_pairs(fields))


def percent_encode(text: str) -> str:
    return quote(text, safe="")


class FormEncoder:
    """Accumulates bracketed ``prefix[key]=value`` pairs for nested structures.

    Child encoders created with :meth:`nested` share the parent's buffer, so
    pairs come out in exactly the order they were set.
    """

    def __init__(self, buffer: Optional[List[str]] = None, prefix: str = "") -> None:
        self._buffer: List[str] = [] if buffer is None else buffer
        self._prefix = prefix

    def nested(self, prefix: str) -> "FormEncoder":
        return FormEncoder(self._buffer, self._prefix + prefix)

    def set(self, key: str, value: Any) -> None:
        encoded = percent_encode(form_value(value)).replace("%20", "+")
        self._buffer.append(f"{percent_encode(self._prefix)}{percent_encode(key)}={encoded}")

    def encode(self) -> str:
        return "&".join(self._buffer)


__all__ = [
    "form_value",
    "form_pairs",
    "form_encode",
    "percent_encode",
    "FormEncoder",
]
