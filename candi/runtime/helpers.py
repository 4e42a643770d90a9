"""
Helpers called by generated template code (imported there as ``_rt``).
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence, Sized
from typing import Any

from .errors import RenderError


def to_str(value: Any) -> str:
    """Stringify an output value; absent renders as empty text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return str(value)


def test(value: Any) -> bool:
    """Truthiness of non-boolean conditions: present and not false."""
    return value is not None and value is not False


def eq(left: Any, right: Any) -> bool:
    """
    Null-safe structural equality.

    Booleans never equal numbers, unlike plain ``==``.
    """
    if left is None or right is None:
        return left is right
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def concat(left: Any, right: Any) -> str:
    return to_str(left) + to_str(right)


def add(left: Any, right: Any) -> Any:
    """``+``: string concatenation if either side is text, otherwise addition."""
    if isinstance(left, str) or isinstance(right, str):
        return to_str(left) + to_str(right)
    return left + right


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def div(left: Any, right: Any) -> Any:
    """Division; two integers divide with truncation toward zero."""
    if _is_int(left) and _is_int(right):
        if right == 0:
            raise RenderError("Integer division by zero")
        quotient = abs(left) // abs(right)
        return quotient if (left >= 0) == (right >= 0) else -quotient
    return left / right


def mod(left: Any, right: Any) -> Any:
    """Remainder with the sign of the dividend."""
    if _is_int(left) and _is_int(right):
        return left - right * div(left, right)
    return math.fmod(left, right)


def attr(obj: Any, name: str) -> Any:
    """
    Property read.

    Mappings are read by key, other objects by attribute, then by a
    ``get_<name>()`` getter.
    """
    if obj is None:
        raise RenderError(f"Cannot read property '{name}' of absent value")
    if isinstance(obj, Mapping):
        return obj.get(name)
    try:
        return getattr(obj, name)
    except AttributeError:
        pass
    getter = getattr(obj, f"get_{name}", None)
    if callable(getter):
        return getter()
    raise RenderError(f"'{type(obj).__name__}' object has no property '{name}'")


def call(obj: Any, name: str, *args: Any) -> Any:
    """Method call ``obj.name(*args)``."""
    if obj is None:
        raise RenderError(f"Cannot call method '{name}' on absent value")
    method = getattr(obj, name, None)
    if method is None and isinstance(obj, Mapping):
        method = obj.get(name)
    if not callable(method):
        raise RenderError(f"'{type(obj).__name__}' object has no method '{name}'")
    return method(*args)


def index(collection: Any, key: Any) -> Any:
    """Index access for sequences and mappings; absent collections yield absent."""
    if collection is None:
        return None
    if isinstance(collection, Mapping):
        return collection.get(key)
    if isinstance(collection, Sequence):
        if isinstance(key, float) and key.is_integer():
            key = int(key)
        if not _is_int(key):
            raise RenderError(f"Sequence index must be an integer, got {type(key).__name__}")
        try:
            return collection[key]
        except IndexError:
            raise RenderError(f"Index {key} out of range for sequence of length {len(collection)}")
    raise RenderError(f"Cannot index into '{type(collection).__name__}'")


def iterate(collection: Any) -> Sized:
    """
    Loop source with a known size.

    Absent collections iterate zero times; one-shot iterables are
    materialized so the last element can be detected.
    """
    if collection is None:
        return ()
    if isinstance(collection, Mapping):
        return list(collection.items())
    if isinstance(collection, Sized) and hasattr(collection, "__iter__"):
        return collection
    try:
        return list(collection)
    except TypeError:
        raise RenderError(f"'{type(collection).__name__}' object is not iterable")


def size(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, Sized):
        return len(value)
    return len(to_str(value))


__all__ = [
    "to_str",
    "test",
    "eq",
    "concat",
    "add",
    "div",
    "mod",
    "attr",
    "call",
    "index",
    "iterate",
    "size",
]
