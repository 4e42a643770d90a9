"""
Lexical analyzer for Candi templates.

Works as a two-mode scanner:
- header mode: everything before a ``<template>`` marker is declarative
  metadata; it is captured as opaque text and handed to the header analyzer
- body mode: literal text interspersed with ``{{ ... }}`` regions

Inside the body the lexer owns comment stripping (``{{-- --}}``),
whitespace trim markers (``{{-`` / ``-}}``), verbatim passthrough
(``{{ verbatim }} ... {{ end }}``) and directive keyword detection.
"""

from __future__ import annotations

import logging
import re
from typing import List, Tuple

from ..errors import CompileError, SourceLocation
from .tokens import DIRECTIVE_KEYWORDS, Token, TokenType

logger = logging.getLogger(__name__)

TEMPLATE_OPEN = "<template>"
TEMPLATE_CLOSE = "</template>"

# Whitespace removed by the trim markers
_WHITESPACE = " \t\r\n\f\v"

_IDENTIFIER = re.compile(r"[^\W\d]\w*")
_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_VERBATIM_END = re.compile(r"\{\{(-?)[ \t\r\n]*end[ \t\r\n]*(-?)\}\}")

_STRING_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "n": "\n",
    "t": "\t",
}


class TemplateLexer:
    """
    Template lexer.

    One instance tokenizes one source; instances are not reusable across
    compilations and never share state.
    """

    # Operators, longest first: '?.' and '??' must win over '?', '||' over '|'
    _OPERATOR_SPECS: List[Tuple[str, TokenType]] = [
        ("?.", TokenType.NULL_SAFE_DOT),
        ("??", TokenType.NULL_COALESCE),
        ("||", TokenType.OR),
        ("&&", TokenType.AND),
        ("==", TokenType.EQ),
        ("!=", TokenType.NEQ),
        ("<=", TokenType.LTE),
        (">=", TokenType.GTE),
        ("?", TokenType.QUESTION),
        ("|", TokenType.PIPE),
        ("<", TokenType.LT),
        (">", TokenType.GT),
        ("=", TokenType.ASSIGN),
        ("!", TokenType.NOT),
        (".", TokenType.DOT),
        (":", TokenType.COLON),
        (",", TokenType.COMMA),
        ("(", TokenType.LPAREN),
        (")", TokenType.RPAREN),
        ("[", TokenType.LBRACKET),
        ("]", TokenType.RBRACKET),
        ("+", TokenType.PLUS),
        ("-", TokenType.MINUS),
        ("*", TokenType.STAR),
        ("/", TokenType.SLASH),
        ("%", TokenType.PERCENT),
        ("~", TokenType.TILDE),
    ]

    def __init__(self, source: str, file_name: str = "<template>"):
        self.source = source
        self.file_name = file_name

        # Filled by the header/body split
        self.header_source = ""
        self.text = ""
        self.body_line = 1
        self.body_column = 1

        self.position = 0
        self.line = 1
        self.column = 1
        self.length = 0
        self.tokens: List[Token] = []

        # Set by '-}}': trim leading whitespace of the next text token
        self._trim_next_text = False

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def tokenize(self) -> List[Token]:
        """
        Split the source into header and body, then tokenize the body.

        Returns:
            Token list terminated by EOF

        Raises:
            CompileError: On any lexical error (no recovery)
        """
        self._split_source()
        return self._tokenize_body()

    def tokenize_body(self) -> List[Token]:
        """Tokenize the whole source as template body (no header split)."""
        self.header_source = ""
        self.text = self.source
        self.body_line = 1
        self.body_column = 1
        return self._tokenize_body()

    # ------------------------------------------------------------------
    # Header mode
    # ------------------------------------------------------------------

    def _split_source(self) -> None:
        """
        Separate the header section from the template body.

        With a ``<template>`` marker the text before it is the header and the
        marked region is the body. Without the marker the whole source is body.
        """
        open_at = self.source.find(TEMPLATE_OPEN)
        if open_at == -1:
            self.header_source = ""
            self.text = self.source
            self.body_line = 1
            self.body_column = 1
            return

        self.header_source = self.source[:open_at].rstrip()

        content_start = open_at + len(TEMPLATE_OPEN)
        # Skip the line break right after <template>
        if self.source.startswith("\r\n", content_start):
            content_start += 2
        elif self.source.startswith("\n", content_start):
            content_start += 1

        close_at = self.source.find(TEMPLATE_CLOSE, content_start)
        if close_at == -1:
            line, column = self._location_of(open_at)
            raise CompileError(
                f"Unterminated {TEMPLATE_OPEN} block, expected {TEMPLATE_CLOSE}",
                SourceLocation(self.file_name, line, column),
            )

        body = self.source[content_start:close_at]
        if body.endswith("\n"):
            body = body[:-1]
            if body.endswith("\r"):
                body = body[:-1]

        self.text = body
        self.body_line, self.body_column = self._location_of(content_start)
        logger.debug(
            f"Split {self.file_name}: header of {len(self.header_source)} chars, "
            f"body starts at {self.body_line}:{self.body_column}"
        )

    def _location_of(self, offset: int) -> Tuple[int, int]:
        line = self.source.count("\n", 0, offset) + 1
        column = offset - self.source.rfind("\n", 0, offset)
        return line, column

    # ------------------------------------------------------------------
    # Body mode
    # ------------------------------------------------------------------

    def _tokenize_body(self) -> List[Token]:
        self.position = 0
        self.line = self.body_line
        self.column = self.body_column
        self.length = len(self.text)
        self.tokens = []
        self._trim_next_text = False

        while self.position < self.length:
            if self._looking_at("{{--"):
                self._skip_comment()
            elif self._looking_at("{{"):
                self._lex_region()
            else:
                self._lex_text()

        self.tokens.append(Token(TokenType.EOF, "", self._loc()))
        logger.debug(f"Tokenized {self.file_name} into {len(self.tokens)} tokens")
        return self.tokens

    def _lex_text(self) -> None:
        start = self._loc()
        end = self.text.find("{{", self.position)
        if end == -1:
            end = self.length
        content = self.text[self.position:end]
        self._advance(end - self.position)

        if self._trim_next_text:
            content = content.lstrip(_WHITESPACE)
            self._trim_next_text = False

        if content:
            self.tokens.append(Token(TokenType.TEXT, content, start))

    def _skip_comment(self) -> None:
        """Consume ``{{-- ... --}}`` without emitting tokens."""
        start = self._loc()
        end = self.text.find("--}}", self.position + 4)
        if end == -1:
            raise CompileError("Unterminated comment, expected '--}}'", start)
        self._advance(end + 4 - self.position)

    def _lex_region(self) -> None:
        start = self._loc()
        trim_left = self._looking_at("{{-")
        self._advance(3 if trim_left else 2)
        if trim_left:
            self._trim_last_text()
        self._trim_next_text = False

        self._skip_whitespace()

        word = self._peek_identifier()
        if word == "verbatim" and self._is_keyword_boundary(self.position + len(word)):
            self._advance(len(word))
            self._lex_verbatim(start)
            return

        self.tokens.append(Token(TokenType.EXPR_START, "{{", start))

        keyword = DIRECTIVE_KEYWORDS.get(word)
        if keyword is not None and self._is_keyword_boundary(self.position + len(word)):
            self._lex_directive(keyword, word)
        else:
            self._lex_expression_tokens()

        self._emit_expr_end(start)

    def _lex_directive(self, keyword: TokenType, word: str) -> None:
        loc = self._loc()
        self._advance(len(word))
        self.tokens.append(Token(keyword, word, loc))
        self._skip_whitespace()

        if keyword == TokenType.ELSE:
            # else if <cond>
            if self._peek_identifier() == "if" and self._is_keyword_boundary(self.position + 2):
                if_loc = self._loc()
                self._advance(2)
                self.tokens.append(Token(TokenType.IF, "if", if_loc))
                self._lex_expression_tokens()
        elif keyword == TokenType.FOR:
            self._lex_for_header()
        elif keyword in (TokenType.INCLUDE, TokenType.WIDGET, TokenType.COMPONENT):
            if keyword == TokenType.COMPONENT:
                logger.warning(
                    f"{loc}: 'component' is deprecated, use 'widget' instead"
                )
            self.tokens.append(self._read_string())
            self._lex_expression_tokens()
        elif keyword in (
            TokenType.FRAGMENT, TokenType.SLOT, TokenType.BLOCK,
            TokenType.STACK, TokenType.PUSH,
        ):
            self.tokens.append(self._read_string())
        elif keyword in (
            TokenType.IF, TokenType.SWITCH, TokenType.CASE,
            TokenType.SET, TokenType.RAW,
        ):
            self._lex_expression_tokens()
        # END, DEFAULT, CONTENT take no arguments

    def _lex_for_header(self) -> None:
        """Read ``<name> in <collection>`` after the for keyword."""
        var_loc = self._loc()
        var_name = self._peek_identifier()
        if not var_name:
            raise CompileError("Expected loop variable name after 'for'", var_loc)
        self._advance(len(var_name))
        self.tokens.append(Token(TokenType.IDENTIFIER, var_name, var_loc))

        self._skip_whitespace()
        in_loc = self._loc()
        in_word = self._peek_identifier()
        if in_word != "in":
            got = in_word or self._peek_char()
            raise CompileError(f"Expected 'in' in for loop, got '{got}'", in_loc)
        self._advance(2)
        self.tokens.append(Token(TokenType.IN, "in", in_loc))
        self._lex_expression_tokens()

    def _lex_verbatim(self, start: SourceLocation) -> None:
        """
        Capture everything up to ``{{ end }}`` as one text token.

        No tokens are emitted for the verbatim/end markers themselves and the
        content is never tokenized recursively.
        """
        self._skip_whitespace()
        trim_content_leading = False
        if self._looking_at("-}}"):
            self._advance(3)
            trim_content_leading = True
        elif self._looking_at("}}"):
            self._advance(2)
        else:
            raise CompileError("Expected '}}' after 'verbatim'", self._loc())

        content_loc = self._loc()
        content_start = self.position
        search_from = self.position
        while True:
            marker_at = self.text.find("{{", search_from)
            if marker_at == -1:
                raise CompileError("Unterminated verbatim block, expected '{{ end }}'", start)
            end_match = _VERBATIM_END.match(self.text, marker_at)
            if end_match:
                break
            search_from = marker_at + 2

        content = self.text[content_start:marker_at]
        if trim_content_leading:
            content = content.lstrip(_WHITESPACE)
        if end_match.group(1):
            content = content.rstrip(_WHITESPACE)
        if content:
            self.tokens.append(Token(TokenType.TEXT, content, content_loc))

        self._advance(end_match.end() - self.position)
        self._trim_next_text = bool(end_match.group(2))

    def _emit_expr_end(self, start: SourceLocation) -> None:
        """Consume the closing ``}}`` (or ``-}}``) of a region."""
        self._skip_whitespace()
        end_loc = self._loc()
        if self._looking_at("-}}"):
            self._advance(3)
            self.tokens.append(Token(TokenType.EXPR_END, "}}", end_loc))
            self._trim_next_text = True
        elif self._looking_at("}}"):
            self._advance(2)
            self.tokens.append(Token(TokenType.EXPR_END, "}}", end_loc))
        elif self.position >= self.length:
            raise CompileError("Unterminated '{{' region, expected '}}'", start)
        else:
            raise CompileError(
                f"Expected '}}}}' to close template expression, got '{self._peek_char()}'",
                end_loc,
            )

    def _trim_last_text(self) -> None:
        """Trim trailing whitespace of the immediately preceding text token."""
        if not self.tokens or self.tokens[-1].type != TokenType.TEXT:
            return
        last = self.tokens[-1]
        trimmed = last.value.rstrip(_WHITESPACE)
        if trimmed:
            self.tokens[-1] = Token(TokenType.TEXT, trimmed, last.location)
        else:
            self.tokens.pop()

    # ------------------------------------------------------------------
    # Expression tokens
    # ------------------------------------------------------------------

    def _lex_expression_tokens(self) -> None:
        while True:
            self._skip_whitespace()
            if self.position >= self.length or self._at_region_end():
                return
            self._lex_expression_token()

    def _lex_expression_token(self) -> None:
        loc = self._loc()
        char = self.text[self.position]

        if char == '"':
            self.tokens.append(self._read_string())
            return

        match = _NUMBER.match(self.text, self.position)
        if match:
            self._advance(len(match.group(0)))
            self.tokens.append(Token(TokenType.NUMBER, match.group(0), loc))
            return

        match = _IDENTIFIER.match(self.text, self.position)
        if match:
            word = match.group(0)
            self._advance(len(word))
            if word == "true":
                token_type = TokenType.TRUE
            elif word == "false":
                token_type = TokenType.FALSE
            else:
                token_type = TokenType.IDENTIFIER
            self.tokens.append(Token(token_type, word, loc))
            return

        for symbol, token_type in self._OPERATOR_SPECS:
            if self._looking_at(symbol):
                self._advance(len(symbol))
                self.tokens.append(Token(token_type, symbol, loc))
                return

        if char == "&":
            raise CompileError("Expected '&&', got single '&'", loc)
        raise CompileError(f"Unexpected character {char!r} in expression", loc)

    def _read_string(self) -> Token:
        start = self._loc()
        if not self._looking_at('"'):
            got = self._peek_char() or "end of input"
            raise CompileError(f"Expected string literal, got '{got}'", start)
        self._advance(1)

        chars: List[str] = []
        while self.position < self.length and self.text[self.position] != '"':
            char = self.text[self.position]
            if char == "\\":
                self._advance(1)
                if self.position >= self.length:
                    break
                escaped = self.text[self.position]
                chars.append(_STRING_ESCAPES.get(escaped, "\\" + escaped))
            else:
                chars.append(char)
            self._advance(1)

        if self.position >= self.length:
            raise CompileError("Unterminated string literal", start)
        self._advance(1)
        return Token(TokenType.STRING, "".join(chars), start)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _looking_at(self, s: str) -> bool:
        return self.text.startswith(s, self.position)

    def _at_region_end(self) -> bool:
        return self._looking_at("}}") or self._looking_at("-}}")

    def _is_keyword_boundary(self, offset: int) -> bool:
        """A directive keyword must be followed by whitespace or the region end."""
        if offset >= self.length:
            return True
        return (
            self.text[offset] in _WHITESPACE
            or self.text.startswith("}}", offset)
            or self.text.startswith("-}}", offset)
        )

    def _peek_identifier(self) -> str:
        match = _IDENTIFIER.match(self.text, self.position)
        return match.group(0) if match else ""

    def _peek_char(self) -> str:
        if self.position >= self.length:
            return ""
        return self.text[self.position]

    def _skip_whitespace(self) -> None:
        start = self.position
        while start < self.length and self.text[start] in _WHITESPACE:
            start += 1
        if start != self.position:
            self._advance(start - self.position)

    def _advance(self, count: int) -> None:
        """Move forward, keeping line/column in sync."""
        chunk = self.text[self.position:self.position + count]
        newlines = chunk.count("\n")
        if newlines:
            self.line += newlines
            self.column = len(chunk) - chunk.rfind("\n")
        else:
            self.column += len(chunk)
        self.position += len(chunk)

    def _loc(self) -> SourceLocation:
        return SourceLocation(self.file_name, self.line, self.column)


def tokenize(source: str, file_name: str = "<template>") -> List[Token]:
    """
    Tokenize a template source (header section allowed).

    Args:
        source: Full source text
        file_name: File identifier used in locations

    Returns:
        Ordered token list terminated by EOF
    """
    return TemplateLexer(source, file_name).tokenize()


def tokenize_template(text: str, file_name: str = "<template>") -> List[Token]:
    """Tokenize body-only template text (no header split)."""
    return TemplateLexer(text, file_name).tokenize_body()


__all__ = [
    "TemplateLexer",
    "tokenize",
    "tokenize_template",
    "TEMPLATE_OPEN",
    "TEMPLATE_CLOSE",
]
