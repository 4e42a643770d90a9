"""
Name resolution contract for the code generator.

The generator never decides on its own how a template name is read or
written. It asks a NameResolver whether the name is a stored field and,
if so, which FieldAccessStrategy produces the access code.
"""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Iterable, Protocol, Tuple


class FieldAccessStrategy(Enum):
    """How generated code reads and writes fields of the render context."""
    MAPPING = "mapping"           # _ctx.get('x') / _ctx['x'] = v
    ATTRIBUTE = "attribute"       # getattr(_ctx, 'x', None) / _ctx.x = v
    GETTER_SETTER = "getter"      # _ctx.get_x() / _ctx.set_x(v)

    def read_field(self, target: str, name: str) -> str:
        """Python expression reading field ``name`` of ``target``."""
        if self == FieldAccessStrategy.MAPPING:
            return f"{target}.get({name!r})"
        elif self == FieldAccessStrategy.ATTRIBUTE:
            return f"getattr({target}, {name!r}, None)"
        return f"{target}.get_{name}()"

    def write_field(self, target: str, name: str, value: str) -> str:
        """Python statement assigning ``value`` to field ``name`` of ``target``."""
        if self == FieldAccessStrategy.MAPPING:
            return f"{target}[{name!r}] = {value}"
        elif self == FieldAccessStrategy.ATTRIBUTE:
            return f"setattr({target}, {name!r}, {value})"
        return f"{target}.set_{name}({value})"


class NameResolver(Protocol):
    """
    External name-resolution service.

    ``is_field`` answers whether a free template name is a stored field of
    the render context. Names that are not fields are looked up in the
    environment globals at render time.
    """

    access: FieldAccessStrategy

    def is_field(self, name: str) -> bool:
        ...

    def declared_fields(self) -> Tuple[str, ...]:
        """Explicitly declared field names (empty when every name is a field)."""
        ...


class ContextResolver:
    """Every free name is a field of the render context."""

    def __init__(self, access: FieldAccessStrategy = FieldAccessStrategy.MAPPING):
        self.access = access

    def is_field(self, name: str) -> bool:
        return True

    def declared_fields(self) -> Tuple[str, ...]:
        return ()


class DeclaredFieldsResolver:
    """Only the declared names are fields; anything else is a global."""

    def __init__(
        self,
        fields: Iterable[str],
        access: FieldAccessStrategy = FieldAccessStrategy.MAPPING,
    ):
        self._fields: Tuple[str, ...] = tuple(dict.fromkeys(fields))
        self._field_set: FrozenSet[str] = frozenset(self._fields)
        self.access = access

    def is_field(self, name: str) -> bool:
        return name in self._field_set

    def declared_fields(self) -> Tuple[str, ...]:
        return self._fields


def make_resolver(fields: Iterable[str] = (), access: FieldAccessStrategy = FieldAccessStrategy.MAPPING) -> NameResolver:
    """Declared fields get a DeclaredFieldsResolver, otherwise a ContextResolver."""
    fields = tuple(fields)
    if fields:
        return DeclaredFieldsResolver(fields, access)
    return ContextResolver(access)


__all__ = [
    "FieldAccessStrategy",
    "NameResolver",
    "ContextResolver",
    "DeclaredFieldsResolver",
    "make_resolver",
]
