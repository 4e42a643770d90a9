"""
Tests for the expression parser: precedence, associativity, chains,
filters and syntax errors.
"""

import pytest

from candi.compiler.expr import (
    BinaryOp,
    BooleanLiteral,
    ExpressionParser,
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
    parse_expression,
)
from candi.compiler.lexer import tokenize_template
from candi.errors import CompileError

from tests.infrastructure.rendering_utils import parse_expr


def parse_region(source: str):
    """parse_expression over the tokens of ``{{ source }}`` after EXPR_START."""
    return parse_expression(tokenize_template("{{ " + source + " }}")[1:])


class TestPrecedence:
    """The precedence ladder, loosest to tightest."""

    def test_and_binds_tighter_than_or(self):
        """a || b && c parses as a || (b && c)."""
        expr = parse_expr("a || b && c")

        assert expr == BinaryOp(Variable("a"), "||", BinaryOp(Variable("b"), "&&", Variable("c")))

    def test_and_before_or_on_the_left(self):
        assert str(parse_expr("a && b || c")) == "((a && b) || c)"

    def test_ternary_looser_than_null_coalesce(self):
        """a ?? b ? "x" : "y" is a ternary over a null-coalesce."""
        expr = parse_expr('a ?? b ? "x" : "y"')

        assert expr == Ternary(
            NullCoalesce(Variable("a"), Variable("b")),
            StringLiteral("x"),
            StringLiteral("y"),
        )

    def test_null_coalesce_is_right_associative(self):
        expr = parse_expr("a ?? b ?? c")

        assert expr == NullCoalesce(Variable("a"), NullCoalesce(Variable("b"), Variable("c")))

    def test_null_coalesce_looser_than_or(self):
        assert str(parse_expr("a || b ?? c")) == "((a || b) ?? c)"

    def test_nested_ternary(self):
        """Ternaries nest to the right in both branches."""
        assert str(parse_expr("a ? b ? c : d : e")) == "(a ? (b ? c : d) : e)"
        assert str(parse_expr("a ? b : c ? d : e")) == "(a ? b : (c ? d : e))"

    @pytest.mark.parametrize("source,expected", [
        ("a == b < c", "(a == (b < c))"),
        ("a != b && c", "((a != b) && c)"),
        ("a < b + c", "(a < (b + c))"),
        ("a + b * c", "(a + (b * c))"),
        ("a * b ~ c", "(a * (b ~ c))"),
        ("a - b - c", "((a - b) - c)"),
        ("a / b % c", "((a / b) % c)"),
        ("a ~ b ~ c", "((a ~ b) ~ c)"),
        ("a <= b >= c", "((a <= b) >= c)"),
        ("a == b == c", "((a == b) == c)"),
    ])
    def test_binary_levels(self, source, expected):
        """Each binary level is left-associative and ordered by the ladder."""
        assert str(parse_expr(source)) == expected

    def test_unary_binds_tighter_than_binary(self):
        assert parse_expr("!a && b") == BinaryOp(UnaryNot(Variable("a")), "&&", Variable("b"))
        assert parse_expr("-a * b") == BinaryOp(UnaryMinus(Variable("a")), "*", Variable("b"))

    def test_unary_is_looser_than_filters(self):
        """-x | abs negates the filtered value."""
        assert parse_expr("-x | abs") == UnaryMinus(FilterCall(Variable("x"), "abs"))

    def test_double_negation(self):
        assert parse_expr("!!a") == UnaryNot(UnaryNot(Variable("a")))

    def test_grouping_overrides_precedence(self):
        expr = parse_expr("(a || b) && c")

        assert isinstance(expr, BinaryOp) and expr.operator == "&&"
        assert expr.left == Grouped(BinaryOp(Variable("a"), "||", Variable("b")))


class TestFilters:
    """Filter chains."""

    def test_filter_chain_order(self):
        """name | trim | upper applies trim first."""
        expr = parse_expr("name | trim | upper")

        assert expr == FilterCall(FilterCall(Variable("name"), "trim"), "upper")
        assert str(expr) == "name | trim | upper"

    def test_filter_arguments(self):
        expr = parse_expr('text | truncate(10) | replace("a", b)')

        assert expr == FilterCall(
            FilterCall(Variable("text"), "truncate", (NumberLiteral("10"),)),
            "replace",
            (StringLiteral("a"), Variable("b")),
        )

    def test_filter_binds_tighter_than_binary(self):
        assert str(parse_expr("a ~ b | upper")) == "(a ~ b | upper)"
        assert parse_expr("a ~ b | upper").right == FilterCall(Variable("b"), "upper")

    def test_filter_on_chain(self):
        assert parse_expr("user.name | upper") == FilterCall(
            PropertyAccess(Variable("user"), "name"), "upper"
        )

    def test_filter_name_required(self):
        with pytest.raises(CompileError) as exc:
            parse_expr("a | 1")

        assert "Expected filter name" in exc.value.message


class TestChains:
    """Property, method and index access."""

    def test_index_then_property(self):
        """items[0].name"""
        expr = parse_expr("items[0].name")

        assert expr == PropertyAccess(IndexAccess(Variable("items"), NumberLiteral("0")), "name")

    def test_property_then_index(self):
        """post.items[i]"""
        expr = parse_expr("post.items[i]")

        assert expr == IndexAccess(PropertyAccess(Variable("post"), "items"), Variable("i"))

    def test_index_with_expression(self):
        assert str(parse_expr("rows[i + 1][j]")) == "rows[(i + 1)][j]"

    def test_method_call(self):
        expr = parse_expr('user.greet("hi", 2)')

        assert expr == MethodCall(Variable("user"), "greet", (StringLiteral("hi"), NumberLiteral("2")))
        assert str(expr) == 'user.greet("hi", 2)'

    def test_null_safe_chain(self):
        expr = parse_expr("user?.address?.city")

        assert expr == NullSafePropertyAccess(
            NullSafePropertyAccess(Variable("user"), "address"), "city"
        )
        assert str(expr) == "user?.address?.city"

    def test_null_safe_method_call(self):
        assert parse_expr("obj?.size()") == NullSafeMethodCall(Variable("obj"), "size", ())

    def test_mixed_chain(self):
        assert str(parse_expr("a.b?.c(1)[2].d")) == "a.b?.c(1)[2].d"


class TestLiterals:
    """Primary expressions."""

    def test_literals(self):
        assert parse_expr('"hi"') == StringLiteral("hi")
        assert parse_expr("3.5") == NumberLiteral("3.5")
        assert parse_expr("true") == BooleanLiteral(True)
        assert parse_expr("false") == BooleanLiteral(False)

    def test_string_rendering_is_quoted(self):
        assert str(parse_expr('"a\\"b"')) == '"a\\"b"'

    def test_get_type(self):
        assert parse_expr("a").get_type() == ExpressionType.VARIABLE
        assert parse_expr("a.b").get_type() == ExpressionType.PROPERTY
        assert parse_expr("a?.b()").get_type() == ExpressionType.NULL_SAFE_METHOD_CALL
        assert parse_expr("a[0]").get_type() == ExpressionType.INDEX
        assert parse_expr("a | f").get_type() == ExpressionType.FILTER
        assert parse_expr("(a)").get_type() == ExpressionType.GROUP
        assert parse_expr("-a").get_type() == ExpressionType.NEGATE
        assert parse_expr("a ?? b").get_type() == ExpressionType.NULL_COALESCE

    def test_locations(self):
        """Binary nodes take the location of their left operand."""
        expr = parse_expr("x + y")

        assert expr.location.column == 4
        assert expr.right.location.column == 8

    def test_location_ignored_in_equality(self):
        assert parse_expr("x") == Variable("x")


class TestCursor:
    """Cursor position for callers resuming their own parsing."""

    def test_position_after_expression(self):
        """The parser stops at the first token that cannot continue the expression."""
        tokens = tokenize_template("{{ a + b c = d }}")
        parser = ExpressionParser(tokens, start=1)
        expr = parser.parse()

        assert str(expr) == "(a + b)"
        assert tokens[parser.position].value == "c"

    def test_at_end(self):
        tokens = tokenize_template("{{ a }}")
        parser = ExpressionParser(tokens, start=1)
        parser.parse()

        assert parser.at_end()


class TestErrors:
    """Syntax errors are all-or-nothing and carry locations."""

    def test_unexpected_end(self):
        with pytest.raises(CompileError) as exc:
            parse_region("a +")

        assert exc.value.message == "Unexpected end of expression"

    def test_missing_member_name(self):
        with pytest.raises(CompileError) as exc:
            parse_region("a.(b)")

        assert "Expected property or method name but got LPAREN '('" in exc.value.message
        assert exc.value.location.column == 6

    def test_unclosed_call(self):
        with pytest.raises(CompileError) as exc:
            parse_region("f.g(a")

        assert "Expected ')'" in exc.value.message

    def test_unclosed_index(self):
        with pytest.raises(CompileError) as exc:
            parse_region("a[1")

        assert "Expected ']'" in exc.value.message

    def test_missing_colon(self):
        with pytest.raises(CompileError) as exc:
            parse_region("a ? b")

        assert "Expected ':'" in exc.value.message

    def test_trailing_tokens(self):
        with pytest.raises(CompileError) as exc:
            parse_region("a b")

        assert "after expression" in exc.value.message
        assert exc.value.location.column == 6

    def test_unexpected_token(self):
        with pytest.raises(CompileError) as exc:
            parse_region(", a")

        assert exc.value.message == "Unexpected token COMMA ',' in expression"
