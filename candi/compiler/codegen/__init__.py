"""
Code generation: Body AST → Python module source.
"""

from __future__ import annotations

from .access import (
    ContextResolver,
    DeclaredFieldsResolver,
    FieldAccessStrategy,
    NameResolver,
    make_resolver,
)
from .generator import CodeGenerator, generate

__all__ = [
    "CodeGenerator",
    "generate",
    "FieldAccessStrategy",
    "NameResolver",
    "ContextResolver",
    "DeclaredFieldsResolver",
    "make_resolver",
]
