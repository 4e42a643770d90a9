"""
Recursive-descent expression parser.

Builds an expression AST from a bounded token slice (the tokens between the
region delimiters). Precedence, loosest to tightest:

expression     → ternary
ternary        → coalesce ("?" ternary ":" ternary)?
coalesce       → or_expr ("??" coalesce)?            (right-associative)
or_expr        → and_expr ("||" and_expr)*
and_expr       → equality ("&&" equality)*
equality       → comparison (("==" | "!=") comparison)*
comparison     → additive (("<" | ">" | "<=" | ">=") additive)*
additive       → multiplicative (("+" | "-") multiplicative)*
multiplicative → concat (("*" | "/" | "%") concat)*
concat         → unary ("~" unary)*
unary          → ("!" | "-") unary | filter_chain
filter_chain   → chain ("|" IDENTIFIER ("(" args ")")?)*
chain          → primary (("." | "?.") IDENTIFIER ("(" args ")")? | "[" expression "]")*
primary        → IDENTIFIER | STRING | NUMBER | "true" | "false" | "(" expression ")"
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from ...errors import CompileError, NO_LOCATION, SourceLocation
from ..tokens import Token, TokenType
from .model import (
    BinaryOp,
    BooleanLiteral,
    Expression,
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

logger = logging.getLogger(__name__)


_EQUALITY_OPS = (TokenType.EQ, TokenType.NEQ)
_COMPARISON_OPS = (TokenType.LT, TokenType.GT, TokenType.LTE, TokenType.GTE)
_ADDITIVE_OPS = (TokenType.PLUS, TokenType.MINUS)
_MULTIPLICATIVE_OPS = (TokenType.STAR, TokenType.SLASH, TokenType.PERCENT)


class ExpressionParser:
    """
    Expression parser over a token slice.

    The cursor is exposed through ``position`` so that a caller can resume
    parsing its own token stream right after the expression. Each parse is
    all-or-nothing: the first unexpected token raises CompileError.
    """

    def __init__(
        self,
        tokens: Sequence[Token],
        start: int = 0,
        end_location: Optional[SourceLocation] = None,
    ):
        """
        Args:
            tokens: Token slice; parsing stops at its end or at EOF/EXPR_END
            start: Initial cursor position
            end_location: Location reported for "unexpected end" errors
        """
        self._tokens = tokens
        self._position = start
        if end_location is None:
            end_location = tokens[-1].location if tokens else NO_LOCATION
        self._end_location = end_location

    @property
    def position(self) -> int:
        """Index of the first token not consumed yet."""
        return self._position

    def parse(self) -> Expression:
        """Parse one expression starting at the cursor."""
        return self._parse_ternary()

    def at_end(self) -> bool:
        return self._current_token() is None

    # ------------------------------------------------------------------
    # Precedence levels
    # ------------------------------------------------------------------

    def _parse_ternary(self) -> Expression:
        condition = self._parse_null_coalesce()
        if self._match(TokenType.QUESTION):
            then_expr = self._parse_ternary()
            self._expect(TokenType.COLON, "':'")
            else_expr = self._parse_ternary()
            return Ternary(condition, then_expr, else_expr, location=condition.location)
        return condition

    def _parse_null_coalesce(self) -> Expression:
        left = self._parse_or_expression()
        if self._match(TokenType.NULL_COALESCE):
            fallback = self._parse_null_coalesce()
            return NullCoalesce(left, fallback, location=left.location)
        return left

    def _parse_or_expression(self) -> Expression:
        left = self._parse_and_expression()
        while self._match(TokenType.OR):
            right = self._parse_and_expression()
            left = BinaryOp(left, "||", right, location=left.location)
        return left

    def _parse_and_expression(self) -> Expression:
        left = self._parse_equality()
        while self._match(TokenType.AND):
            right = self._parse_equality()
            left = BinaryOp(left, "&&", right, location=left.location)
        return left

    def _parse_equality(self) -> Expression:
        return self._parse_left_assoc(_EQUALITY_OPS, self._parse_comparison)

    def _parse_comparison(self) -> Expression:
        return self._parse_left_assoc(_COMPARISON_OPS, self._parse_additive)

    def _parse_additive(self) -> Expression:
        return self._parse_left_assoc(_ADDITIVE_OPS, self._parse_multiplicative)

    def _parse_multiplicative(self) -> Expression:
        return self._parse_left_assoc(_MULTIPLICATIVE_OPS, self._parse_concat)

    def _parse_concat(self) -> Expression:
        return self._parse_left_assoc((TokenType.TILDE,), self._parse_unary)

    def _parse_left_assoc(self, operators, operand) -> Expression:
        left = operand()
        while self._check(*operators):
            op = self._advance()
            right = operand()
            left = BinaryOp(left, op.value, right, location=left.location)
        return left

    def _parse_unary(self) -> Expression:
        if self._check(TokenType.NOT):
            op = self._advance()
            return UnaryNot(self._parse_unary(), location=op.location)
        if self._check(TokenType.MINUS):
            op = self._advance()
            return UnaryMinus(self._parse_unary(), location=op.location)
        return self._parse_filter_chain()

    def _parse_filter_chain(self) -> Expression:
        expr = self._parse_chain()
        while self._match(TokenType.PIPE):
            name = self._expect(TokenType.IDENTIFIER, "filter name")
            args: Tuple[Expression, ...] = ()
            if self._match(TokenType.LPAREN):
                args = self._parse_arguments()
            expr = FilterCall(expr, name.value, args, location=expr.location)
        return expr

    def _parse_chain(self) -> Expression:
        """Property, method and index access, freely interleaved."""
        expr = self._parse_primary()

        while True:
            if self._check(TokenType.DOT, TokenType.NULL_SAFE_DOT):
                null_safe = self._advance().type == TokenType.NULL_SAFE_DOT
                member = self._expect(TokenType.IDENTIFIER, "property or method name")

                if self._match(TokenType.LPAREN):
                    args = self._parse_arguments()
                    call_type = NullSafeMethodCall if null_safe else MethodCall
                    expr = call_type(expr, member.value, args, location=expr.location)
                else:
                    access_type = NullSafePropertyAccess if null_safe else PropertyAccess
                    expr = access_type(expr, member.value, location=expr.location)
            elif self._match(TokenType.LBRACKET):
                index = self.parse()
                self._expect(TokenType.RBRACKET, "']'")
                expr = IndexAccess(expr, index, location=expr.location)
            else:
                return expr

    def _parse_arguments(self) -> Tuple[Expression, ...]:
        """Parse ``args ")"``; the opening parenthesis is already consumed."""
        args: List[Expression] = []
        if not self._check(TokenType.RPAREN):
            args.append(self.parse())
            while self._match(TokenType.COMMA):
                args.append(self.parse())
        self._expect(TokenType.RPAREN, "')'")
        return tuple(args)

    def _parse_primary(self) -> Expression:
        token = self._current_token()
        if token is None:
            raise CompileError("Unexpected end of expression", self._end_location)

        if token.type == TokenType.IDENTIFIER:
            self._advance()
            return Variable(token.value, location=token.location)
        elif token.type == TokenType.STRING:
            self._advance()
            return StringLiteral(token.value, location=token.location)
        elif token.type == TokenType.NUMBER:
            self._advance()
            return NumberLiteral(token.value, location=token.location)
        elif token.type in (TokenType.TRUE, TokenType.FALSE):
            self._advance()
            return BooleanLiteral(token.type == TokenType.TRUE, location=token.location)
        elif token.type == TokenType.LPAREN:
            self._advance()
            inner = self.parse()
            self._expect(TokenType.RPAREN, "')'")
            return Grouped(inner, location=token.location)

        raise CompileError(
            f"Unexpected token {token.type.name} '{token.value}' in expression",
            token.location,
        )

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _current_token(self) -> Optional[Token]:
        """Current token, or None at the end of the slice."""
        if self._position >= len(self._tokens):
            return None
        token = self._tokens[self._position]
        if token.type in (TokenType.EOF, TokenType.EXPR_END):
            return None
        return token

    def _check(self, *types: TokenType) -> bool:
        token = self._current_token()
        return token is not None and token.type in types

    def _match(self, token_type: TokenType) -> bool:
        if self._check(token_type):
            self._position += 1
            return True
        return False

    def _advance(self) -> Token:
        token = self._tokens[self._position]
        self._position += 1
        return token

    def _expect(self, token_type: TokenType, description: str) -> Token:
        token = self._current_token()
        if token is None or token.type != token_type:
            got = f"{token.type.name} '{token.value}'" if token is not None else "end of expression"
            location = token.location if token is not None else self._end_location
            raise CompileError(f"Expected {description} but got {got}", location)
        return self._advance()


def parse_expression(
    tokens: Sequence[Token],
    end_location: Optional[SourceLocation] = None,
) -> Expression:
    """
    Parse a token slice that must contain exactly one expression.

    Raises:
        CompileError: On syntax errors or trailing tokens
    """
    parser = ExpressionParser(tokens, end_location=end_location)
    expr = parser.parse()
    if not parser.at_end():
        trailing = tokens[parser.position]
        raise CompileError(
            f"Unexpected token {trailing.type.name} '{trailing.value}' after expression",
            trailing.location,
        )
    logger.debug(f"Parsed expression {expr}")
    return expr


__all__ = ["ExpressionParser", "parse_expression"]
