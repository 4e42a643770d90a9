"""
Filter registry and built-in filters.

A filter is a plain callable ``f(value, *args)``. Generated code binds the
filters it uses once per render function; a template referencing an
unregistered filter fails when it is linked.
"""

from __future__ import annotations

import logging
from datetime import date as _date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from .errors import UnknownFilterError
from .helpers import size, to_str
from .output import escape_html

logger = logging.getLogger(__name__)

FilterFunction = Callable[..., Any]


# ---------------------------- built-in filters ---------------------------- #

def upper(value: Any) -> str:
    return to_str(value).upper()


def lower(value: Any) -> str:
    return to_str(value).lower()


def capitalize(value: Any) -> str:
    """Upper-case the first character only; the rest is kept as is."""
    text = to_str(value)
    return text[:1].upper() + text[1:]


def trim(value: Any) -> str:
    return to_str(value).strip()


def length(value: Any) -> int:
    return size(value)


def escape(value: Any) -> str:
    return escape_html(to_str(value))


def truncate(value: Any, max_length: int) -> str:
    """Cut to ``max_length`` characters and append ``...`` when shortened."""
    text = to_str(value)
    max_length = int(max_length)
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def replace(value: Any, old: Any, new: Any) -> str:
    return to_str(value).replace(to_str(old), to_str(new))


def date(value: Any, fmt: str = "%Y-%m-%d") -> str:
    """
    Format a date/datetime with strftime.

    ISO-8601 strings are parsed first (a trailing ``Z`` is accepted);
    anything unparsable is returned unchanged.
    """
    if value is None:
        return ""
    if isinstance(value, (datetime, _date)):
        return value.strftime(fmt)
    if isinstance(value, str) and value.strip():
        cleaned = value.strip()
        if cleaned.endswith("Z"):
            cleaned = cleaned[:-1]
        try:
            return datetime.fromisoformat(cleaned).strftime(fmt)
        except ValueError:
            return value
    return to_str(value)


def number(value: Any, fmt: str = ",") -> str:
    """Format a number with a ``format()`` spec such as ``",.2f"``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return to_str(value)
    return format(value, fmt)


def join(value: Any, separator: str = ", ") -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    try:
        items = list(value)
    except TypeError:
        return to_str(value)
    return to_str(separator).join(to_str(item) for item in items)


def default(value: Any, fallback: Any = "") -> Any:
    """``fallback`` when the value is absent."""
    return fallback if value is None else value


BUILTIN_FILTERS: Dict[str, FilterFunction] = {
    "upper": upper,
    "lower": lower,
    "capitalize": capitalize,
    "trim": trim,
    "length": length,
    "escape": escape,
    "truncate": truncate,
    "replace": replace,
    "date": date,
    "number": number,
    "join": join,
    "default": default,
}


# ------------------------------- registry -------------------------------- #

class FilterRegistry:
    """Name → filter function mapping."""

    def __init__(self, include_builtins: bool = True):
        self._filters: Dict[str, FilterFunction] = dict(BUILTIN_FILTERS) if include_builtins else {}

    def register(self, name: str, func: Optional[FilterFunction] = None):
        """
        Register a filter. Usable directly or as a decorator:

            @filters.register("slug")
            def slug(value): ...
        """
        if not name.isidentifier():
            raise ValueError(f"Filter name must be an identifier: {name!r}")

        def decorator(f: FilterFunction) -> FilterFunction:
            if name in self._filters:
                logger.debug(f"Overriding filter '{name}'")
            self._filters[name] = f
            return f

        if func is not None:
            return decorator(func)
        return decorator

    def get(self, name: str) -> FilterFunction:
        try:
            return self._filters[name]
        except KeyError:
            raise UnknownFilterError(name) from None

    def check(self, names: Iterable[str], template: str = "") -> None:
        """Raise UnknownFilterError for the first unregistered name."""
        for name in names:
            if name not in self._filters:
                raise UnknownFilterError(name, template)

    def names(self) -> List[str]:
        return sorted(self._filters)

    def __contains__(self, name: object) -> bool:
        return name in self._filters


__all__ = [
    "FilterFunction",
    "FilterRegistry",
    "BUILTIN_FILTERS",
]
