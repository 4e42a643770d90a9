"""
Token types and token model for the template lexer.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Dict

from ..errors import SourceLocation


class TokenType(enum.Enum):
    """Types of tokens produced by the lexer."""

    # Literal template text (HTML is opaque to the compiler)
    TEXT = "TEXT"

    # Region delimiters
    EXPR_START = "EXPR_START"        # {{  or {{-
    EXPR_END = "EXPR_END"            # }}  or -}}

    # Directive keywords
    IF = "IF"
    ELSE = "ELSE"
    END = "END"
    FOR = "FOR"
    IN = "IN"
    SWITCH = "SWITCH"
    CASE = "CASE"
    DEFAULT = "DEFAULT"
    SET = "SET"
    RAW = "RAW"
    INCLUDE = "INCLUDE"
    WIDGET = "WIDGET"
    COMPONENT = "COMPONENT"          # legacy alias of WIDGET
    CONTENT = "CONTENT"
    FRAGMENT = "FRAGMENT"
    SLOT = "SLOT"
    BLOCK = "BLOCK"
    STACK = "STACK"
    PUSH = "PUSH"

    # Identifiers and literals
    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"
    NUMBER = "NUMBER"
    TRUE = "TRUE"
    FALSE = "FALSE"

    # Chain operators
    DOT = "DOT"                      # .
    NULL_SAFE_DOT = "NULL_SAFE_DOT"  # ?.
    LBRACKET = "LBRACKET"            # [
    RBRACKET = "RBRACKET"            # ]
    LPAREN = "LPAREN"                # (
    RPAREN = "RPAREN"                # )
    COMMA = "COMMA"                  # ,

    # Ternary and null-coalesce
    QUESTION = "QUESTION"            # ?
    COLON = "COLON"                  # :
    NULL_COALESCE = "NULL_COALESCE"  # ??

    # Logical
    OR = "OR"                        # ||
    AND = "AND"                      # &&
    NOT = "NOT"                      # !

    # Equality and comparison
    EQ = "EQ"                        # ==
    NEQ = "NEQ"                      # !=
    LT = "LT"                        # <
    GT = "GT"                        # >
    LTE = "LTE"                      # <=
    GTE = "GTE"                      # >=

    # Arithmetic and concatenation
    PLUS = "PLUS"                    # +
    MINUS = "MINUS"                  # -
    STAR = "STAR"                    # *
    SLASH = "SLASH"                  # /
    PERCENT = "PERCENT"              # %
    TILDE = "TILDE"                  # ~

    # Filter pipe and assignment
    PIPE = "PIPE"                    # |
    ASSIGN = "ASSIGN"                # =

    EOF = "EOF"


# Directive keywords, recognized only as the first word of a {{ }} region
DIRECTIVE_KEYWORDS: Dict[str, TokenType] = {
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "end": TokenType.END,
    "for": TokenType.FOR,
    "switch": TokenType.SWITCH,
    "case": TokenType.CASE,
    "default": TokenType.DEFAULT,
    "set": TokenType.SET,
    "raw": TokenType.RAW,
    "include": TokenType.INCLUDE,
    "widget": TokenType.WIDGET,
    "component": TokenType.COMPONENT,
    "content": TokenType.CONTENT,
    "fragment": TokenType.FRAGMENT,
    "slot": TokenType.SLOT,
    "block": TokenType.BLOCK,
    "stack": TokenType.STACK,
    "push": TokenType.PUSH,
}


@dataclass(frozen=True)
class Token:
    """
    Token with source location for precise error diagnostics.
    """
    type: TokenType
    value: str
    location: SourceLocation

    @property
    def line(self) -> int:
        return self.location.line

    @property
    def column(self) -> int:
        return self.location.column

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


__all__ = ["TokenType", "Token", "DIRECTIVE_KEYWORDS"]
