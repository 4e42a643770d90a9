"""
Template compiler: lexer → body parser (with expression parser) → code generator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..errors import SourceLocation
from .codegen.access import FieldAccessStrategy, make_resolver
from .codegen.generator import generate
from .header import HeaderError, TemplateHeader, parse_header, resolve_kind
from .lexer import TemplateLexer
from .nodes import Body, TemplateKind
from .parser import BodyParser
from .tokens import Token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompileOptions:
    """
    Project-wide defaults; a template header overrides them.
    """
    fields: Tuple[str, ...] = ()
    field_access: FieldAccessStrategy = FieldAccessStrategy.MAPPING


@dataclass(frozen=True)
class CompiledTemplate:
    """Everything produced by one compilation."""
    file_name: str
    kind: TemplateKind
    header: TemplateHeader
    tokens: Tuple[Token, ...]
    body: Body
    python_source: str

    @property
    def layout(self) -> Optional[str]:
        return self.header.layout


def analyze(source: str, file_name: str = "<template>") -> Tuple[TemplateHeader, List[Token]]:
    """Split and tokenize a source, parsing its header."""
    lexer = TemplateLexer(source, file_name)
    tokens = lexer.tokenize()
    header = parse_header(lexer.header_source, file_name)
    return header, tokens


def compile_source(
    source: str,
    file_name: str = "<template>",
    options: Optional[CompileOptions] = None,
    kind: Optional[TemplateKind] = None,
) -> CompiledTemplate:
    """
    Compile template source into Python module source.

    Args:
        source: Template text (optional header + body)
        file_name: File identifier used in error locations
        options: Project-wide field declarations and access strategy
        kind: Explicit template kind (otherwise header, then file suffix)

    Raises:
        CompileError: First lexical, header or syntax error
    """
    options = options or CompileOptions()

    header, tokens = analyze(source, file_name)
    kind = kind or resolve_kind(header, file_name)
    if kind == TemplateKind.LAYOUT and header.layout is not None:
        raise HeaderError("A layout cannot declare a layout", SourceLocation(file_name, 1, 1))

    body = BodyParser(tokens, file_name, kind).parse()

    resolver = make_resolver(
        header.fields or options.fields,
        header.field_access or options.field_access,
    )
    python_source = generate(body, resolver, kind, header.layout, file_name)
    logger.debug(f"Compiled {file_name} as {kind.value}")

    return CompiledTemplate(
        file_name=file_name,
        kind=kind,
        header=header,
        tokens=tuple(tokens),
        body=body,
        python_source=python_source,
    )


__all__ = [
    "CompileOptions",
    "CompiledTemplate",
    "analyze",
    "compile_source",
]
