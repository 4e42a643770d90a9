"""
Expression language: AST model and parser.
"""

from __future__ import annotations

from .model import (
    BinaryOp,
    BooleanLiteral,
    Expression,
    ExpressionType,
    FilterCall,
    Grouped,
    IndexAccess,
    MethodCall,
    NullCoalesce,
    NullSafeMethodCall,
    NullSafePropertyAccess,
    NumberLiteral,
    PropertyAccess,
    StringLiteral,
    Ternary,
    UnaryMinus,
    UnaryNot,
    Variable,
)
from .parser import ExpressionParser, parse_expression

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
    "ExpressionParser",
    "parse_expression",
]
