"""
Recursive-descent parser for template bodies.

Turns the lexer's token stream into a Body AST. Directive regions are
dispatched on their first keyword; embedded expressions are handed to the
ExpressionParser. Parsing is fail-fast: the first error aborts.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set as SetType, Tuple

from ..errors import CompileError, SourceLocation
from .expr.model import Expression
from .expr.parser import ExpressionParser, parse_expression
from .nodes import (
    Block,
    Body,
    ComponentCall,
    Content,
    ExpressionOutput,
    For,
    Fragment,
    Html,
    If,
    Include,
    Node,
    Push,
    RawExpressionOutput,
    Set,
    Slot,
    Stack,
    Switch,
    SwitchCase,
    TemplateKind,
)
from .tokens import Token, TokenType

logger = logging.getLogger(__name__)


# Keywords that close or split an enclosing block
_BLOCK_KEYWORDS = (TokenType.END, TokenType.ELSE, TokenType.CASE, TokenType.DEFAULT)

_KEYWORD_NAMES: Dict[TokenType, str] = {
    TokenType.END: "end",
    TokenType.ELSE: "else",
    TokenType.CASE: "case",
    TokenType.DEFAULT: "default",
}


class BodyParser:
    """
    Parser for a single template body.

    Instances hold the cursor and must not be shared between compilations.
    """

    def __init__(
        self,
        tokens: Sequence[Token],
        file_name: str = "<template>",
        kind: TemplateKind = TemplateKind.PAGE,
    ):
        self._tokens = tokens
        self._position = 0
        self.file_name = file_name
        self.kind = kind
        self._fragment_names: SetType[str] = set()
        self._block_names: SetType[str] = set()

    def parse(self) -> Body:
        """
        Parse the whole token stream.

        Returns:
            Root body of the template

        Raises:
            CompileError: On the first syntax error
        """
        body, _ = self._parse_body(terminators=())
        logger.debug(f"Parsed {self.file_name} ({self.kind.value}): {len(body)} top-level nodes")
        return body

    # ------------------------------------------------------------------
    # Bodies
    # ------------------------------------------------------------------

    def _parse_body(
        self,
        terminators: Tuple[TokenType, ...],
        opener: Optional[Token] = None,
    ) -> Tuple[Body, Optional[TokenType]]:
        """
        Parse nodes until a region starting with one of ``terminators``.

        The terminating region is left unconsumed. Returns the body and the
        terminator keyword (None at the top level).
        """
        children: List[Node] = []

        while True:
            token = self._current_token()

            if token.type == TokenType.EOF:
                if opener is not None:
                    raise CompileError(
                        f"Unterminated '{opener.value}' block, expected '{{{{ end }}}}'",
                        opener.location,
                    )
                return Body(tuple(children)), None

            if token.type == TokenType.TEXT:
                self._advance()
                children.append(Html(token.value, location=token.location))
                continue

            if token.type != TokenType.EXPR_START:
                raise CompileError(
                    f"Unexpected token {token.type.name} '{token.value}' in body",
                    token.location,
                )

            keyword = self._peek(1)
            if keyword.type in terminators:
                return Body(tuple(children)), keyword.type
            if keyword.type in _BLOCK_KEYWORDS:
                raise self._stray_keyword_error(keyword, opener)

            children.append(self._parse_region())

    def _stray_keyword_error(self, keyword: Token, opener: Optional[Token]) -> CompileError:
        name = _KEYWORD_NAMES[keyword.type]
        if keyword.type == TokenType.END:
            message = "Unexpected '{{ end }}' without an open block"
        elif keyword.type == TokenType.ELSE:
            if opener is not None and opener.type == TokenType.IF:
                message = "Unexpected '{{ else }}' after 'else' branch"
            else:
                message = "'else' is only allowed inside 'if'"
        else:
            message = f"'{name}' is only allowed inside 'switch'"
        return CompileError(message, keyword.location)

    # ------------------------------------------------------------------
    # Regions
    # ------------------------------------------------------------------

    def _parse_region(self) -> Node:
        start = self._expect(TokenType.EXPR_START, "'{{'")
        keyword = self._current_token()
        kind = keyword.type

        if kind == TokenType.IF:
            return self._parse_if(start.location)
        elif kind == TokenType.FOR:
            return self._parse_for(start.location)
        elif kind == TokenType.SWITCH:
            return self._parse_switch(start.location)
        elif kind == TokenType.SET:
            return self._parse_set(start.location)
        elif kind == TokenType.RAW:
            self._advance()
            expr = self._parse_region_expression()
            return RawExpressionOutput(expr, location=start.location)
        elif kind == TokenType.INCLUDE:
            self._advance()
            name = self._expect(TokenType.STRING, "template name")
            params = self._parse_params()
            return Include(name.value, params, location=start.location)
        elif kind in (TokenType.WIDGET, TokenType.COMPONENT):
            self._advance()
            name = self._expect(TokenType.STRING, "widget name")
            params = self._parse_params()
            return ComponentCall(name.value, params, location=start.location)
        elif kind == TokenType.CONTENT:
            self._require_kind(keyword, (TemplateKind.LAYOUT,), "'content' is only allowed in layouts")
            self._advance()
            self._expect(TokenType.EXPR_END, "'}}'")
            return Content(location=start.location)
        elif kind == TokenType.FRAGMENT:
            return self._parse_fragment(start.location)
        elif kind == TokenType.SLOT:
            self._require_kind(keyword, (TemplateKind.LAYOUT,), "'slot' is only allowed in layouts")
            self._advance()
            name = self._expect(TokenType.STRING, "slot name")
            self._expect(TokenType.EXPR_END, "'}}'")
            body = self._parse_block_body(keyword)
            return Slot(name.value, body if body.children else None, location=start.location)
        elif kind == TokenType.BLOCK:
            self._require_kind(
                keyword,
                (TemplateKind.PAGE, TemplateKind.WIDGET),
                "'block' is not allowed in layouts, use 'slot'",
            )
            self._advance()
            name = self._expect(TokenType.STRING, "block name")
            if name.value in self._block_names:
                raise CompileError(f"Duplicate block '{name.value}'", name.location)
            self._block_names.add(name.value)
            self._expect(TokenType.EXPR_END, "'}}'")
            body = self._parse_block_body(keyword)
            return Block(name.value, body, location=start.location)
        elif kind == TokenType.STACK:
            self._advance()
            name = self._expect(TokenType.STRING, "stack name")
            self._expect(TokenType.EXPR_END, "'}}'")
            return Stack(name.value, location=start.location)
        elif kind == TokenType.PUSH:
            self._advance()
            name = self._expect(TokenType.STRING, "stack name")
            self._expect(TokenType.EXPR_END, "'}}'")
            body = self._parse_block_body(keyword)
            return Push(name.value, body, location=start.location)

        expr = self._parse_region_expression()
        return ExpressionOutput(expr, location=start.location)

    def _parse_if(self, location: SourceLocation) -> If:
        """
        Parse ``if cond ... [else ...] end``.

        ``else if`` becomes a nested If in the else body; the nested If
        consumes the single closing ``end`` of the whole chain.
        """
        opener = self._expect(TokenType.IF, "'if'")
        condition = self._parse_region_expression()
        then_body, terminator = self._parse_body((TokenType.ELSE, TokenType.END), opener)

        if terminator == TokenType.END:
            self._consume_end()
            return If(condition, then_body, None, location=location)

        self._expect(TokenType.EXPR_START, "'{{'")
        else_token = self._expect(TokenType.ELSE, "'else'")
        if self._check(TokenType.IF):
            nested = self._parse_if(else_token.location)
            return If(condition, then_body, Body((nested,)), location=location)

        self._expect(TokenType.EXPR_END, "'}}'")
        else_body, _ = self._parse_body((TokenType.END,), opener)
        self._consume_end()
        return If(condition, then_body, else_body, location=location)

    def _parse_for(self, location: SourceLocation) -> For:
        opener = self._expect(TokenType.FOR, "'for'")
        var_name = self._expect(TokenType.IDENTIFIER, "loop variable name")
        self._expect(TokenType.IN, "'in'")
        collection = self._parse_region_expression()
        body = self._parse_block_body(opener)
        return For(var_name.value, collection, body, location=location)

    def _parse_switch(self, location: SourceLocation) -> Switch:
        opener = self._expect(TokenType.SWITCH, "'switch'")
        subject = self._parse_region_expression()

        # Only whitespace may separate 'switch' from its first branch
        while True:
            token = self._current_token()
            if token.type == TokenType.TEXT:
                if token.value.strip():
                    raise CompileError(
                        "Only whitespace is allowed between 'switch' and the first 'case'",
                        token.location,
                    )
                self._advance()
            elif token.type == TokenType.EOF:
                raise CompileError(
                    "Unterminated 'switch' block, expected '{{ end }}'", opener.location
                )
            elif token.type == TokenType.EXPR_START and self._peek(1).type in (
                TokenType.CASE, TokenType.DEFAULT, TokenType.END,
            ):
                break
            else:
                raise CompileError(
                    "Expected 'case', 'default' or 'end' after 'switch'", token.location
                )

        cases: List[SwitchCase] = []
        default_body: Optional[Body] = None
        branch_terminators = (TokenType.CASE, TokenType.DEFAULT, TokenType.END)

        while True:
            self._expect(TokenType.EXPR_START, "'{{'")
            keyword = self._advance()

            if keyword.type == TokenType.END:
                self._expect(TokenType.EXPR_END, "'}}'")
                break
            elif keyword.type == TokenType.CASE:
                if default_body is not None:
                    raise CompileError("'case' is not allowed after 'default' in 'switch'", keyword.location)
                value = self._parse_region_expression()
                body, _ = self._parse_body(branch_terminators, opener)
                cases.append(SwitchCase(value, body))
            else:
                if default_body is not None:
                    raise CompileError("Duplicate 'default' in 'switch'", keyword.location)
                self._expect(TokenType.EXPR_END, "'}}'")
                default_body, _ = self._parse_body(branch_terminators, opener)

        return Switch(subject, tuple(cases), default_body, location=location)

    def _parse_set(self, location: SourceLocation) -> Set:
        self._expect(TokenType.SET, "'set'")
        name = self._expect(TokenType.IDENTIFIER, "variable name")
        self._expect(TokenType.ASSIGN, "'='")
        value = self._parse_region_expression()
        return Set(name.value, value, location=location)

    def _parse_fragment(self, location: SourceLocation) -> Fragment:
        opener = self._expect(TokenType.FRAGMENT, "'fragment'")
        name = self._expect(TokenType.STRING, "fragment name")
        if name.value in self._fragment_names:
            raise CompileError(f"Duplicate fragment '{name.value}'", name.location)
        self._fragment_names.add(name.value)
        self._expect(TokenType.EXPR_END, "'}}'")
        body = self._parse_block_body(opener)
        return Fragment(name.value, body, location=location)

    def _parse_block_body(self, opener: Token) -> Body:
        """Parse a body terminated by ``{{ end }}`` and consume the end."""
        body, _ = self._parse_body((TokenType.END,), opener)
        self._consume_end()
        return body

    def _consume_end(self) -> None:
        self._expect(TokenType.EXPR_START, "'{{'")
        self._expect(TokenType.END, "'end'")
        self._expect(TokenType.EXPR_END, "'}}'")

    # ------------------------------------------------------------------
    # Embedded expressions
    # ------------------------------------------------------------------

    def _region_tokens(self) -> Tuple[List[Token], Token]:
        """Collect tokens up to (and consume) the region's EXPR_END."""
        start = self._position
        while self._current_token().type not in (TokenType.EXPR_END, TokenType.EOF):
            self._advance()
        tokens = list(self._tokens[start:self._position])
        end = self._expect(TokenType.EXPR_END, "'}}'")
        return tokens, end

    def _parse_region_expression(self) -> Expression:
        tokens, end = self._region_tokens()
        if not tokens:
            raise CompileError("Expected expression", end.location)
        return parse_expression(tokens, end_location=end.location)

    def _parse_params(self) -> Tuple[Tuple[str, Expression], ...]:
        """Parse ``key=expr`` pairs up to the end of the region."""
        tokens, end = self._region_tokens()
        params: List[Tuple[str, Expression]] = []
        seen: SetType[str] = set()
        position = 0

        while position < len(tokens):
            key = tokens[position]
            if key.type != TokenType.IDENTIFIER:
                raise CompileError(
                    f"Expected parameter name but got {key.type.name} '{key.value}'",
                    key.location,
                )
            if position + 1 >= len(tokens) or tokens[position + 1].type != TokenType.ASSIGN:
                location = tokens[position + 1].location if position + 1 < len(tokens) else end.location
                raise CompileError(f"Expected '=' after parameter '{key.value}'", location)
            if key.value in seen:
                raise CompileError(f"Duplicate parameter '{key.value}'", key.location)
            seen.add(key.value)

            parser = ExpressionParser(tokens, start=position + 2, end_location=end.location)
            params.append((key.value, parser.parse()))
            position = parser.position

        return tuple(params)

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _require_kind(self, token: Token, allowed: Tuple[TemplateKind, ...], message: str) -> None:
        if self.kind not in allowed:
            raise CompileError(message, token.location)

    def _current_token(self) -> Token:
        return self._peek(0)

    def _peek(self, offset: int) -> Token:
        index = self._position + offset
        if index >= len(self._tokens):
            return self._tokens[-1]
        return self._tokens[index]

    def _check(self, token_type: TokenType) -> bool:
        return self._current_token().type == token_type

    def _advance(self) -> Token:
        token = self._current_token()
        if token.type != TokenType.EOF:
            self._position += 1
        return token

    def _expect(self, token_type: TokenType, description: str) -> Token:
        token = self._current_token()
        if token.type != token_type:
            got = "end of input" if token.type == TokenType.EOF else f"{token.type.name} '{token.value}'"
            raise CompileError(f"Expected {description} but got {got}", token.location)
        return self._advance()


def parse_body(
    tokens: Sequence[Token],
    file_name: str = "<template>",
    kind: TemplateKind = TemplateKind.PAGE,
) -> Body:
    """Parse a token stream into a Body AST."""
    return BodyParser(tokens, file_name, kind).parse()


__all__ = ["BodyParser", "parse_body"]
