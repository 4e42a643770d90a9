"""
Header section analyzer.

The text before ``<template>`` is declarative metadata written as YAML:

    kind: page
    layout: base
    fields: [title, posts]
    field_access: mapping

The lexer hands it over untouched; this module turns it into a
TemplateHeader. Template kind falls back to the file suffix.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ruamel.yaml import YAML
from ruamel.yaml.error import MarkedYAMLError, YAMLError

from ..errors import CompileError, SourceLocation
from .codegen.access import FieldAccessStrategy
from .nodes import TemplateKind

_yaml = YAML(typ="safe")

_KNOWN_KEYS = ("kind", "layout", "fields", "field_access")

# Longest suffixes first
KIND_SUFFIXES = (
    (".layout.html", TemplateKind.LAYOUT),
    (".widget.html", TemplateKind.WIDGET),
    (".page.html", TemplateKind.PAGE),
)


class HeaderError(CompileError):
    """Invalid header section."""
    pass


@dataclass(frozen=True)
class TemplateHeader:
    """Parsed header metadata."""
    kind: Optional[TemplateKind] = None
    layout: Optional[str] = None
    fields: Tuple[str, ...] = ()
    field_access: Optional[FieldAccessStrategy] = None

    def is_empty(self) -> bool:
        return (
            self.kind is None
            and self.layout is None
            and not self.fields
            and self.field_access is None
        )


def kind_for_path(path: str) -> TemplateKind:
    """Template kind derived from the file suffix (pages by default)."""
    for suffix, kind in KIND_SUFFIXES:
        if path.endswith(suffix):
            return kind
    return TemplateKind.PAGE


def parse_header(text: str, file_name: str = "<template>") -> TemplateHeader:
    """
    Parse header YAML.

    Args:
        text: Header section (may be empty)
        file_name: File identifier for error locations

    Returns:
        TemplateHeader (empty when there is no header)

    Raises:
        HeaderError: Invalid YAML or invalid values
    """
    start = SourceLocation(file_name, 1, 1)
    if not text.strip():
        return TemplateHeader()

    try:
        data = _yaml.load(text)
    except MarkedYAMLError as e:
        mark = e.problem_mark or e.context_mark
        location = start
        if mark is not None:
            location = SourceLocation(file_name, mark.line + 1, mark.column + 1)
        raise HeaderError(f"Invalid header YAML: {e.problem or e}", location) from e
    except YAMLError as e:
        raise HeaderError(f"Invalid header YAML: {e}", start) from e

    if data is None:
        return TemplateHeader()
    if not isinstance(data, dict):
        raise HeaderError("Header must be a YAML mapping", start)

    unknown = [key for key in data if key not in _KNOWN_KEYS]
    if unknown:
        raise HeaderError(
            f"Unknown header keys: {', '.join(map(str, unknown))}. "
            f"Allowed: {', '.join(_KNOWN_KEYS)}",
            start,
        )

    kind = None
    raw_kind = data.get("kind")
    if raw_kind is not None:
        try:
            kind = TemplateKind(str(raw_kind))
        except ValueError:
            allowed = ", ".join(k.value for k in TemplateKind)
            raise HeaderError(f"Invalid kind '{raw_kind}'. Allowed: {allowed}", start)

    layout = data.get("layout")
    if layout is not None and not isinstance(layout, str):
        raise HeaderError("'layout' must be a template name", start)

    fields = data.get("fields") or []
    if isinstance(fields, str):
        fields = [fields]
    if not isinstance(fields, list) or not all(isinstance(f, str) and f.isidentifier() for f in fields):
        raise HeaderError("'fields' must be a list of identifiers", start)

    field_access = None
    raw_access = data.get("field_access")
    if raw_access is not None:
        try:
            field_access = FieldAccessStrategy(str(raw_access))
        except ValueError:
            allowed = ", ".join(s.value for s in FieldAccessStrategy)
            raise HeaderError(f"Invalid field_access '{raw_access}'. Allowed: {allowed}", start)

    return TemplateHeader(kind=kind, layout=layout, fields=tuple(fields), field_access=field_access)


def resolve_kind(header: TemplateHeader, file_name: str) -> TemplateKind:
    """Header kind wins over the file suffix."""
    if header.kind is not None:
        return header.kind
    return kind_for_path(file_name)


__all__ = [
    "HeaderError",
    "TemplateHeader",
    "KIND_SUFFIXES",
    "kind_for_path",
    "parse_header",
    "resolve_kind",
]
