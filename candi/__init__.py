"""
Candi: an HTML templating language compiled to Python.
"""

from __future__ import annotations

from .compiler import CompiledTemplate, CompileOptions, compile_source
from .errors import CandiUserError, CompileError, SourceLocation
from .runtime import DictLoader, Environment, FileSystemLoader, Template

__all__ = [
    "compile_source",
    "CompileOptions",
    "CompiledTemplate",
    "Environment",
    "Template",
    "FileSystemLoader",
    "DictLoader",
    "CandiUserError",
    "CompileError",
    "SourceLocation",
]
