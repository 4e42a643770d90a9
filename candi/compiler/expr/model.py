"""
Expression AST.

A closed set of immutable node types. Children are owned exclusively by
their parent; argument lists are tuples. Source locations are carried on
every node but excluded from equality so trees compare structurally.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Union

from ...errors import NO_LOCATION, SourceLocation


class ExpressionType(Enum):
    """Expression node kinds."""
    VARIABLE = "variable"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    PROPERTY = "property"
    NULL_SAFE_PROPERTY = "null_safe_property"
    METHOD_CALL = "method_call"
    NULL_SAFE_METHOD_CALL = "null_safe_method_call"
    INDEX = "index"
    BINARY = "binary"
    NOT = "not"
    NEGATE = "negate"
    TERNARY = "ternary"
    NULL_COALESCE = "null_coalesce"
    FILTER = "filter"
    GROUP = "group"


@dataclass(frozen=True)
class Expression(ABC):
    """Base class for all expression nodes."""
    location: SourceLocation = field(default=NO_LOCATION, compare=False, repr=False, kw_only=True)

    @abstractmethod
    def get_type(self) -> ExpressionType:
        """Returns the node kind."""
        pass

    def __str__(self) -> str:
        return self._to_string()

    @abstractmethod
    def _to_string(self) -> str:
        pass


def _args_to_string(args: Tuple[Expression, ...]) -> str:
    return ", ".join(str(a) for a in args)


def _quote(value: str) -> str:
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


@dataclass(frozen=True)
class Variable(Expression):
    """Identifier reference: ``name``"""
    name: str

    def get_type(self) -> ExpressionType:
        return ExpressionType.VARIABLE

    def _to_string(self) -> str:
        return self.name


@dataclass(frozen=True)
class StringLiteral(Expression):
    value: str

    def get_type(self) -> ExpressionType:
        return ExpressionType.STRING

    def _to_string(self) -> str:
        return _quote(self.value)


@dataclass(frozen=True)
class NumberLiteral(Expression):
    """
    Numeric literal kept as its raw source text (``42``, ``3.14``).
    """
    raw: str

    def get_type(self) -> ExpressionType:
        return ExpressionType.NUMBER

    def _to_string(self) -> str:
        return self.raw


@dataclass(frozen=True)
class BooleanLiteral(Expression):
    value: bool

    def get_type(self) -> ExpressionType:
        return ExpressionType.BOOLEAN

    def _to_string(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class PropertyAccess(Expression):
    """Property read: ``object.name``"""
    object: Expression
    name: str

    def get_type(self) -> ExpressionType:
        return ExpressionType.PROPERTY

    def _to_string(self) -> str:
        return f"{self.object}.{self.name}"


@dataclass(frozen=True)
class NullSafePropertyAccess(Expression):
    """
    Null-safe property read: ``object?.name``

    Yields absent (and skips the rest of the chain) when ``object`` is absent.
    """
    object: Expression
    name: str

    def get_type(self) -> ExpressionType:
        return ExpressionType.NULL_SAFE_PROPERTY

    def _to_string(self) -> str:
        return f"{self.object}?.{self.name}"


@dataclass(frozen=True)
class MethodCall(Expression):
    """Method invocation: ``object.name(args...)``"""
    object: Expression
    name: str
    args: Tuple[Expression, ...] = ()

    def get_type(self) -> ExpressionType:
        return ExpressionType.METHOD_CALL

    def _to_string(self) -> str:
        return f"{self.object}.{self.name}({_args_to_string(self.args)})"


@dataclass(frozen=True)
class NullSafeMethodCall(Expression):
    """Null-safe method invocation: ``object?.name(args...)``"""
    object: Expression
    name: str
    args: Tuple[Expression, ...] = ()

    def get_type(self) -> ExpressionType:
        return ExpressionType.NULL_SAFE_METHOD_CALL

    def _to_string(self) -> str:
        return f"{self.object}?.{self.name}({_args_to_string(self.args)})"


@dataclass(frozen=True)
class IndexAccess(Expression):
    """Index access: ``object[index]``"""
    object: Expression
    index: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.INDEX

    def _to_string(self) -> str:
        return f"{self.object}[{self.index}]"


@dataclass(frozen=True)
class BinaryOp(Expression):
    """
    Binary operation: ``left op right``

    ``operator`` is the source symbol: ``|| && == != < > <= >= + - * / % ~``.
    """
    left: Expression
    operator: str
    right: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.BINARY

    def _to_string(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class UnaryNot(Expression):
    operand: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.NOT

    def _to_string(self) -> str:
        return f"!{self.operand}"


@dataclass(frozen=True)
class UnaryMinus(Expression):
    operand: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.NEGATE

    def _to_string(self) -> str:
        return f"-{self.operand}"


@dataclass(frozen=True)
class Ternary(Expression):
    """Conditional: ``condition ? then_expr : else_expr``"""
    condition: Expression
    then_expr: Expression
    else_expr: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.TERNARY

    def _to_string(self) -> str:
        return f"({self.condition} ? {self.then_expr} : {self.else_expr})"


@dataclass(frozen=True)
class NullCoalesce(Expression):
    """Fallback for absent values: ``left ?? fallback``"""
    left: Expression
    fallback: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.NULL_COALESCE

    def _to_string(self) -> str:
        return f"({self.left} ?? {self.fallback})"


@dataclass(frozen=True)
class FilterCall(Expression):
    """
    Filter application: ``input | name`` or ``input | name(args...)``
    """
    input: Expression
    filter_name: str
    args: Tuple[Expression, ...] = ()

    def get_type(self) -> ExpressionType:
        return ExpressionType.FILTER

    def _to_string(self) -> str:
        if self.args:
            return f"{self.input} | {self.filter_name}({_args_to_string(self.args)})"
        return f"{self.input} | {self.filter_name}"


@dataclass(frozen=True)
class Grouped(Expression):
    """Explicit parentheses: ``(inner)``"""
    inner: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.GROUP

    def _to_string(self) -> str:
        return f"({self.inner})"


AnyExpression = Union[
    Variable,
    StringLiteral,
    NumberLiteral,
    BooleanLiteral,
    PropertyAccess,
    NullSafePropertyAccess,
    MethodCall,
    NullSafeMethodCall,
    IndexAccess,
    BinaryOp,
    UnaryNot,
    UnaryMinus,
    Ternary,
    NullCoalesce,
    FilterCall,
    Grouped,
]

__all__ = [
    "Expression",
    "ExpressionType",
    "Variable",
    "StringLiteral",
    "NumberLiteral",
    "BooleanLiteral",
    "PropertyAccess",
    "NullSafePropertyAccess",
    "MethodCall",
    "NullSafeMethodCall",
    "IndexAccess",
    "BinaryOp",
    "UnaryNot",
    "UnaryMinus",
    "Ternary",
    "NullCoalesce",
    "FilterCall",
    "Grouped",
    "AnyExpression",
]
